"""
.NET assembly pre-check.

Reads PE headers and the CLR (COM descriptor) header with pefile BEFORE
handing a file to the runtime, so non-.NET files are rejected with a
specific reason instead of an opaque BadImageFormatException.
"""

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path

import pefile

logger = logging.getLogger(__name__)


@dataclass
class AssemblyCheckInfo:
    """Result of the PE/CLR pre-check."""
    path: Path
    size: int
    is_pe: bool = False
    is_dotnet: bool = False
    architecture: str = "unknown"
    bitness: int = 0  # 32 or 64
    runtime_version: str = ""
    clr_flags: int = 0
    is_il_only: bool = False
    requires_32bit: bool = False
    is_strong_name_signed: bool = False
    has_native_entry_point: bool = False
    warnings: list = field(default_factory=list)
    error: str | None = None

    @property
    def is_loadable(self) -> bool:
        return self.is_pe and self.is_dotnet and self.error is None

    @property
    def is_mixed_mode(self) -> bool:
        return self.is_dotnet and not self.is_il_only


class AssemblyCompatibilityChecker:
    """
    Pre-load assembly checker.

    Quickly inspects PE headers to detect whether a file is a .NET
    assembly and which platform it targets.
    """

    MAGIC_PE = b'MZ'

    # .NET CLR header constants
    IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR = 14
    COMIMAGE_FLAGS_ILONLY = 0x00000001
    COMIMAGE_FLAGS_32BITREQUIRED = 0x00000002
    COMIMAGE_FLAGS_STRONGNAMESIGNED = 0x00000008
    COMIMAGE_FLAGS_NATIVE_ENTRYPOINT = 0x00000010

    MACHINE_TYPES = {
        0x014c: 'x86',
        0x8664: 'x86-64',
        0x01c0: 'ARM',
        0xaa64: 'ARM64',
        0x01c4: 'ARMv7',
    }

    def __init__(self):
        """Initialize the checker."""
        self.min_file_size = 64

    def check(self, assembly_path: str | Path) -> AssemblyCheckInfo:
        """
        Check whether a file can be loaded as a .NET assembly.

        Args:
            assembly_path: Path to the file

        Returns:
            AssemblyCheckInfo; ``error`` explains why it is not loadable
        """
        path = Path(assembly_path)
        info = AssemblyCheckInfo(path=path, size=path.stat().st_size)

        if info.size < self.min_file_size:
            info.error = f"File too small to be a PE image ({info.size} bytes)"
            return info

        with open(path, "rb") as f:
            header = f.read(2)

        if header != self.MAGIC_PE:
            info.error = "Not a PE image (missing MZ signature)"
            return info

        try:
            pe = pefile.PE(str(path), fast_load=True)
        except pefile.PEFormatError as e:
            info.error = f"Invalid PE image: {e}"
            return info

        try:
            info.is_pe = True
            info.architecture = self.MACHINE_TYPES.get(
                pe.FILE_HEADER.Machine, f'unknown (0x{pe.FILE_HEADER.Machine:x})'
            )
            info.bitness = 64 if pe.FILE_HEADER.Machine in (0x8664, 0xaa64) else 32

            if not self._has_clr_header(pe):
                info.error = "PE image has no CLR header (native binary, not a .NET assembly)"
                return info

            info.is_dotnet = True
            self._analyze_clr(pe, info)
        finally:
            pe.close()

        return info

    def _has_clr_header(self, pe) -> bool:
        """Check if PE has CLR/.NET header."""
        try:
            clr_dir = pe.OPTIONAL_HEADER.DATA_DIRECTORY[self.IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR]
            return clr_dir.VirtualAddress != 0 and clr_dir.Size != 0
        except (AttributeError, IndexError):
            return False

    def _analyze_clr(self, pe, info: AssemblyCheckInfo) -> None:
        """Parse the COR20 header: runtime version and flags."""
        clr_dir = pe.OPTIONAL_HEADER.DATA_DIRECTORY[self.IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR]
        try:
            clr_data = pe.get_data(clr_dir.VirtualAddress, min(clr_dir.Size, 72))
        except pefile.PEFormatError as e:
            logger.debug(f"CLR header read failed: {e}")
            info.warnings.append("Could not read CLR header")
            return

        if len(clr_data) < 20:
            info.warnings.append("Truncated CLR header")
            return

        # COR20: cb (0-4), runtime major/minor (4-8), metadata dir (8-16), flags (16-20)
        major_runtime, minor_runtime = struct.unpack('<HH', clr_data[4:8])
        flags = struct.unpack('<I', clr_data[16:20])[0]

        info.runtime_version = f"{major_runtime}.{minor_runtime}"
        info.clr_flags = flags
        info.is_il_only = bool(flags & self.COMIMAGE_FLAGS_ILONLY)
        info.requires_32bit = bool(flags & self.COMIMAGE_FLAGS_32BITREQUIRED)
        info.is_strong_name_signed = bool(flags & self.COMIMAGE_FLAGS_STRONGNAMESIGNED)
        info.has_native_entry_point = bool(flags & self.COMIMAGE_FLAGS_NATIVE_ENTRYPOINT)

        if info.is_il_only and not info.requires_32bit and info.architecture == 'x86':
            info.architecture = 'AnyCPU'

        if info.is_mixed_mode:
            info.warnings.append("Mixed-mode assembly (native + .NET) - may only load on Windows .NET Framework")
        if info.requires_32bit:
            info.warnings.append("Assembly requires a 32-bit process")

    def format_report(self, info: AssemblyCheckInfo) -> str:
        """
        Format check results as a human-readable report.

        Args:
            info: AssemblyCheckInfo from check()

        Returns:
            Formatted string report
        """
        lines = [
            f"**Assembly Check: {info.path.name}**",
            "",
            f"- Size: {info.size} bytes",
            f"- PE image: {'Yes' if info.is_pe else 'No'}",
            f"- .NET assembly: {'Yes' if info.is_dotnet else 'No'}",
        ]

        if info.is_pe:
            lines.append(f"- Architecture: {info.architecture} ({info.bitness}-bit)")
        if info.is_dotnet:
            lines.append(f"- CLR header version: {info.runtime_version}")
            lines.append(f"- IL only: {'Yes' if info.is_il_only else 'No (mixed mode)'}")
            lines.append(f"- Strong-name signed: {'Yes' if info.is_strong_name_signed else 'No'}")

        if info.warnings:
            lines.append("")
            lines.append("**Warnings:**")
            lines.extend(f"- {w}" for w in info.warnings)

        lines.append("")
        if info.is_loadable:
            lines.append("Ready for metadata export.")
        else:
            lines.append(f"Cannot export: {info.error}")

        return "\n".join(lines)


# Module-level instance for convenience
_checker = None


def get_checker() -> AssemblyCompatibilityChecker:
    """Get or create the singleton checker."""
    global _checker
    if _checker is None:
        _checker = AssemblyCompatibilityChecker()
    return _checker
