"""
One export run over a .NET assembly.

Validates the path, pre-checks the PE/CLR headers, loads the assembly
with a fresh dependency resolver hooked in, and collects type metadata.
Only a missing or unloadable primary assembly stops the run; everything
else is recovered and reported in the result.
"""

import logging
from pathlib import Path

from dllexporter.engines.static.base import ModuleLoader
from dllexporter.engines.static.dotnet.clr_loader import RuntimeUnavailableError, get_clr_loader
from dllexporter.engines.static.dotnet.collector import MetadataCollector
from dllexporter.engines.static.dotnet.models import DependencyLedger, ExportResult
from dllexporter.engines.static.dotnet.resolver import DependencyResolver
from dllexporter.utils.compatibility import AssemblyCompatibilityChecker
from dllexporter.utils.config import get_config_int, get_config_list
from dllexporter.utils.security import SecurityError, sanitize_binary_path
from dllexporter.utils.structured_errors import (
    StructuredBaseError,
    create_module_load_failed_error,
    create_module_not_found_error,
    create_runtime_unavailable_error,
)

logger = logging.getLogger(__name__)


class DllExporter:
    """
    Export driver for .NET assemblies.

    The exporter itself is stateless between runs: every run() creates
    its own ledger and resolver, so runs never share dependency state.
    """

    def __init__(
        self,
        loader: ModuleLoader | None = None,
        checker: AssemblyCompatibilityChecker | None = None,
        extra_system_prefixes: list[str] | None = None,
        max_size_mb: int | None = None,
    ):
        """
        Initialize exporter.

        Args:
            loader: Module loading backend (pythonnet by default)
            checker: PE/CLR pre-check
            extra_system_prefixes: Additional system assembly prefixes
                (defaults to DLL_EXPORTER_EXTRA_SYSTEM_PREFIXES)
            max_size_mb: Largest accepted assembly
                (defaults to DLL_EXPORTER_MAX_FILE_SIZE_MB, then 500)
        """
        self.loader = loader or get_clr_loader()
        self.checker = checker or AssemblyCompatibilityChecker()
        if extra_system_prefixes is None:
            extra_system_prefixes = get_config_list("DLL_EXPORTER_EXTRA_SYSTEM_PREFIXES")
        self.extra_system_prefixes = extra_system_prefixes
        self.max_size_mb = max_size_mb or get_config_int("DLL_EXPORTER_MAX_FILE_SIZE_MB", 500)

    def _validate(self, module_path: str | Path) -> Path:
        try:
            return sanitize_binary_path(str(module_path), max_size_bytes=self.max_size_mb * 1024 * 1024)
        except FileNotFoundError:
            raise StructuredBaseError(create_module_not_found_error(str(module_path)))
        except (SecurityError, ValueError) as e:
            raise StructuredBaseError(create_module_load_failed_error(str(module_path), str(e)))

    def _precheck(self, path: Path) -> None:
        info = self.checker.check(path)
        for warning in info.warnings:
            logger.warning(f"{path.name}: {warning}")
        if not info.is_loadable:
            raise StructuredBaseError(create_module_load_failed_error(
                str(path),
                info.error or "Not a .NET assembly",
                {"architecture": info.architecture, "is_pe": info.is_pe},
            ))

    def run(self, module_path: str | Path) -> ExportResult:
        """
        Load an assembly and collect its public type metadata.

        Args:
            module_path: Path to the primary assembly

        Returns:
            ExportResult with ledger, types, and recovered failures

        Raises:
            StructuredBaseError: MODULE_NOT_FOUND, MODULE_LOAD_FAILED,
                or RUNTIME_UNAVAILABLE
        """
        path = self._validate(module_path)
        self._precheck(path)

        ledger = DependencyLedger()
        resolver = DependencyResolver(
            path.parent,
            self.loader.load_dependency,
            ledger=ledger,
            extra_system_prefixes=self.extra_system_prefixes,
        )
        collector = MetadataCollector()

        logger.info(f"Exporting metadata from {path}")
        try:
            with self.loader.open(path, resolver) as module:
                types = collector.collect(module)
                module_name = module.name
        except RuntimeUnavailableError as e:
            raise StructuredBaseError(create_runtime_unavailable_error(str(e)))
        except RuntimeError as e:
            raise StructuredBaseError(create_module_load_failed_error(str(path), str(e)))

        return ExportResult(
            module_name=module_name,
            module_path=str(path),
            ledger=ledger,
            types=types,
            diagnostics=collector.diagnostics,
        )
