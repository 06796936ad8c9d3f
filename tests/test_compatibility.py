"""
Tests for the PE/CLR pre-check.

pefile.PE is mocked; only the MZ/size gate reads real files.
"""

import struct
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pefile
import pytest

from dllexporter.utils.compatibility import AssemblyCompatibilityChecker


def fake_pe(machine=0x014c, clr_flags=None, runtime=(2, 5)):
    """Build a pefile.PE stand-in with an optional COR20 header."""
    pe = MagicMock()
    pe.FILE_HEADER.Machine = machine

    directories = [SimpleNamespace(VirtualAddress=0, Size=0) for _ in range(16)]
    if clr_flags is not None:
        directories[14] = SimpleNamespace(VirtualAddress=0x2008, Size=72)
        cor20 = struct.pack("<IHH", 72, *runtime) + b"\x00" * 8 + struct.pack("<I", clr_flags)
        pe.get_data.return_value = cor20 + b"\x00" * (72 - len(cor20))
    pe.OPTIONAL_HEADER.DATA_DIRECTORY = directories
    return pe


@pytest.fixture
def checker():
    return AssemblyCompatibilityChecker()


@pytest.fixture
def pe_file(tmp_path):
    path = tmp_path / "Lib.dll"
    path.write_bytes(b"MZ" + b"\x00" * 254)
    return path


class TestHeaderGate:
    """Files rejected before pefile is involved."""

    def test_too_small(self, tmp_path, checker):
        path = tmp_path / "tiny.dll"
        path.write_bytes(b"MZ")

        info = checker.check(path)

        assert not info.is_loadable
        assert "too small" in info.error

    def test_missing_mz(self, tmp_path, checker):
        path = tmp_path / "notes.dll"
        path.write_bytes(b"hello world" * 20)

        info = checker.check(path)

        assert not info.is_pe
        assert info.error == "Not a PE image (missing MZ signature)"

    def test_invalid_pe(self, pe_file, checker):
        with patch("dllexporter.utils.compatibility.pefile.PE", side_effect=pefile.PEFormatError("bad")):
            info = checker.check(pe_file)
        assert info.error.startswith("Invalid PE image")


class TestClrHeader:
    """Tests for CLR header parsing."""

    def test_native_binary(self, pe_file, checker):
        pe = fake_pe(machine=0x8664)
        with patch("dllexporter.utils.compatibility.pefile.PE", return_value=pe):
            info = checker.check(pe_file)

        assert info.is_pe
        assert not info.is_dotnet
        assert "no CLR header" in info.error
        assert info.architecture == "x86-64"
        pe.close.assert_called_once()

    def test_il_only_anycpu(self, pe_file, checker):
        with patch("dllexporter.utils.compatibility.pefile.PE", return_value=fake_pe(clr_flags=0x1)):
            info = checker.check(pe_file)

        assert info.is_loadable
        assert info.is_il_only
        assert info.architecture == "AnyCPU"
        assert info.runtime_version == "2.5"
        assert info.warnings == []

    def test_32bit_required(self, pe_file, checker):
        with patch("dllexporter.utils.compatibility.pefile.PE", return_value=fake_pe(clr_flags=0x3)):
            info = checker.check(pe_file)

        assert info.architecture == "x86"
        assert info.requires_32bit
        assert any("32-bit" in w for w in info.warnings)

    def test_mixed_mode_warns(self, pe_file, checker):
        with patch("dllexporter.utils.compatibility.pefile.PE", return_value=fake_pe(machine=0x8664, clr_flags=0x8)):
            info = checker.check(pe_file)

        assert info.is_loadable
        assert info.is_mixed_mode
        assert info.is_strong_name_signed
        assert any("Mixed-mode" in w for w in info.warnings)


class TestReport:
    def test_report_for_loadable(self, pe_file, checker):
        with patch("dllexporter.utils.compatibility.pefile.PE", return_value=fake_pe(clr_flags=0x1)):
            report = checker.format_report(checker.check(pe_file))

        assert "**Assembly Check: Lib.dll**" in report
        assert "- .NET assembly: Yes" in report
        assert report.endswith("Ready for metadata export.")

    def test_report_for_rejected(self, tmp_path, checker):
        path = tmp_path / "notes.dll"
        path.write_bytes(b"x" * 100)
        report = checker.format_report(checker.check(path))
        assert "Cannot export: Not a PE image" in report
