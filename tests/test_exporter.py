"""
Tests for a full export run with a fake reflection backend.
"""

import json

import pytest
from fakes import FakeLoader, FakeModule, FakeType, PassingChecker, greeter_type

from dllexporter.engines.static.dotnet.clr_loader import RuntimeUnavailableError
from dllexporter.engines.static.dotnet.exporter import DllExporter
from dllexporter.utils.formatters import format_json
from dllexporter.utils.structured_errors import ErrorCode, StructuredBaseError


@pytest.fixture
def assembly(tmp_path):
    path = tmp_path / "Lib.dll"
    path.write_bytes(b"MZ" + b"\x00" * 126)
    return path


def make_exporter(loader, checker=None):
    return DllExporter(
        loader=loader,
        checker=checker or PassingChecker(),
        extra_system_prefixes=[],
        max_size_mb=10,
    )


class TestRun:
    """Tests for DllExporter.run()."""

    def test_collects_types(self, assembly):
        loader = FakeLoader(FakeModule("Lib", [greeter_type()]))
        result = make_exporter(loader).run(assembly)

        assert result.module_name == "Lib"
        assert result.module_path == str(assembly.resolve())
        assert [t.full_name for t in result.types] == ["NS.Greeter"]
        assert result.diagnostics == []

    def test_helper_resolved_once(self, assembly):
        (assembly.parent / "Helper.dll").write_bytes(b"MZ")
        loader = FakeLoader(requests=[
            "Helper, Version=1.0.0.0, Culture=neutral, PublicKeyToken=null",
            "System.Runtime, Version=8.0.0.0",
            "Helper",
            "Lib.resources",
        ])

        result = make_exporter(loader).run(assembly)

        assert result.ledger.resolved == ["Helper"]
        assert result.ledger.ignored == ["System.Runtime", "Lib.resources"]
        assert len(loader.loaded_paths) == 1
        assert loader.hook_results["Helper"] == "handle:Helper.dll"

    def test_missing_dependency_recovered(self, assembly):
        loader = FakeLoader(
            FakeModule("Lib", [FakeType("NS.Ok"), None], loader_errors=["Could not load 'Missing'"]),
            requests=["Missing"],
        )
        result = make_exporter(loader).run(assembly)

        assert result.ledger.resolved == []
        assert [t.full_name for t in result.types] == ["NS.Ok"]
        assert len(result.diagnostics) == 1

    def test_dependency_load_failure_recovered(self, assembly):
        (assembly.parent / "Broken.dll").write_bytes(b"MZ")
        loader = FakeLoader(requests=["Broken"], failing={"Broken.dll"})

        result = make_exporter(loader).run(assembly)

        assert result.ledger.resolved == []
        assert loader.hook_results["Broken"] is None

    def test_hook_removed_after_run(self, assembly):
        loader = FakeLoader()
        make_exporter(loader).run(assembly)
        assert loader.hook is None

    def test_runs_do_not_share_ledgers(self, assembly):
        (assembly.parent / "Helper.dll").write_bytes(b"MZ")
        exporter = make_exporter(FakeLoader(requests=["Helper"]))
        first = exporter.run(assembly)

        exporter.loader = FakeLoader(requests=["System"])
        second = exporter.run(assembly)

        assert first.ledger.resolved == ["Helper"]
        assert first.ledger.ignored == []
        assert second.ledger.resolved == []
        assert second.ledger.ignored == ["System"]

    def test_json_matches_ledger(self, assembly):
        (assembly.parent / "Helper.dll").write_bytes(b"MZ")
        result = make_exporter(FakeLoader(requests=["Helper", "mscorlib"])).run(assembly)

        data = json.loads(format_json(result.ledger, result.types))
        assert data["ResolvedDependencies"] == result.ledger.resolved
        assert data["IgnoredDependencies"] == result.ledger.ignored


class TestFatalErrors:
    """Only a missing or unloadable primary module stops the run."""

    def test_module_not_found(self, tmp_path):
        loader = FakeLoader()
        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(loader).run(tmp_path / "Nope.dll")

        assert exc_info.value.code == ErrorCode.MODULE_NOT_FOUND
        assert "Nope.dll" in str(exc_info.value)

    def test_directory_is_load_failure(self, tmp_path):
        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(FakeLoader()).run(tmp_path)
        assert exc_info.value.code == ErrorCode.MODULE_LOAD_FAILED

    def test_too_large(self, assembly):
        exporter = make_exporter(FakeLoader())
        exporter.max_size_mb = 0
        with pytest.raises(StructuredBaseError) as exc_info:
            exporter.run(assembly)
        assert exc_info.value.code == ErrorCode.MODULE_LOAD_FAILED

    def test_precheck_rejects_native_binary(self, assembly):
        checker = PassingChecker(error="PE image has no CLR header")
        loader = FakeLoader()

        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(loader, checker).run(assembly)

        assert exc_info.value.code == ErrorCode.MODULE_LOAD_FAILED
        assert exc_info.value.structured_error.reason == "PE image has no CLR header"

    def test_loader_failure(self, assembly):
        loader = FakeLoader(open_error=RuntimeError("Failed to load assembly: BadImageFormatException"))
        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(loader).run(assembly)

        assert exc_info.value.code == ErrorCode.MODULE_LOAD_FAILED
        assert loader.hook is None

    def test_runtime_unavailable(self, assembly):
        loader = FakeLoader(open_error=RuntimeUnavailableError("No .NET runtime found"))
        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(loader).run(assembly)
        assert exc_info.value.code == ErrorCode.RUNTIME_UNAVAILABLE

    def test_troubleshooting_checklist_attached(self, tmp_path):
        with pytest.raises(StructuredBaseError) as exc_info:
            make_exporter(FakeLoader()).run(tmp_path / "Nope.dll")

        message = str(exc_info.value)
        assert "The DLL path is correct" in message
        assert "same directory" in message
