"""
Tests for the command-line driver.
"""

import json

import pytest
from fakes import FakeLoader, FakeModule, PassingChecker, greeter_type

from dllexporter import cli
from dllexporter.engines.static.dotnet.exporter import DllExporter


@pytest.fixture
def assembly(tmp_path):
    path = tmp_path / "Lib.dll"
    path.write_bytes(b"MZ" + b"\x00" * 126)
    (tmp_path / "Helper.dll").write_bytes(b"MZ")
    return path


@pytest.fixture
def fake_exporter(monkeypatch):
    """Route cli.DllExporter() to the in-memory backend."""
    def factory(module=None, requests=("Helper", "System.Runtime")):
        loader = FakeLoader(module or FakeModule("Lib", [greeter_type()]), requests=requests)
        monkeypatch.setattr(
            cli,
            "DllExporter",
            lambda: DllExporter(loader=loader, checker=PassingChecker(), extra_system_prefixes=[]),
        )
        return loader

    monkeypatch.delenv("DLL_EXPORTER_DEFAULT_FORMAT", raising=False)
    return factory


class TestUsage:
    """Tests for argument handling."""

    def test_no_arguments_prints_usage(self, capsys):
        assert cli.main([]) == 0
        out = capsys.readouterr().out
        assert "usage: dll-exporter" in out
        assert "dll-exporter MyLibrary.dll json output.json" in out

    def test_format_is_not_validated_by_parser(self):
        args = cli.build_parser().parse_args(["Lib.dll", "yaml"])
        assert args.format == "yaml"
        assert args.output_path is None

    def test_extra_arguments_ignored(self, assembly, fake_exporter, tmp_path, capsys):
        fake_exporter()
        output = tmp_path / "out.json"

        assert cli.main([str(assembly), "json", str(output), "surplus", "--verbose"]) == 0

        assert json.loads(output.read_text(encoding="utf-8"))["ResolvedDependencies"] == ["Helper"]
        assert cli.COMPLETION_NOTICE in capsys.readouterr().err

    def test_missing_module_path_still_prints_notice(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--verbose"])

        assert exc_info.value.code == 2
        assert cli.COMPLETION_NOTICE in capsys.readouterr().err


class TestExport:
    """Tests for successful runs."""

    def test_text_to_stdout(self, assembly, fake_exporter, capsys):
        fake_exporter()

        assert cli.main([str(assembly)]) == 0

        captured = capsys.readouterr()
        assert captured.out.startswith("=== 依赖解析摘要 ===")
        assert "成功解析的依赖: Helper" in captured.out
        assert cli.COMPLETION_NOTICE in captured.err
        assert cli.COMPLETION_NOTICE not in captured.out

    def test_format_case_insensitive(self, assembly, fake_exporter, capsys):
        fake_exporter()

        assert cli.main([str(assembly), "JSON"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["ResolvedDependencies"] == ["Helper"]
        assert data["IgnoredDependencies"] == ["System.Runtime"]

    def test_unknown_format_falls_back_to_text(self, assembly, fake_exporter, capsys):
        fake_exporter()
        assert cli.main([str(assembly), "yaml"]) == 0
        assert "类型: NS.Greeter" in capsys.readouterr().out

    def test_configured_default_format(self, assembly, fake_exporter, monkeypatch, capsys):
        fake_exporter()
        monkeypatch.setenv("DLL_EXPORTER_DEFAULT_FORMAT", "xml")

        assert cli.main([str(assembly)]) == 0
        assert capsys.readouterr().out.startswith('<?xml version="1.0" encoding="utf-8"?>')

    def test_writes_output_file(self, assembly, fake_exporter, tmp_path, capsys):
        fake_exporter()
        output = tmp_path / "out.json"

        assert cli.main([str(assembly), "json", str(output)]) == 0

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["Types"][0]["FullName"] == "NS.Greeter"
        assert f"Export written to: {output.resolve()}" in capsys.readouterr().out

    def test_diagnostics_warning_on_stderr(self, assembly, fake_exporter, capsys):
        fake_exporter(FakeModule("Lib", [greeter_type(), None], loader_errors=["Could not load 'Missing'"]))

        assert cli.main([str(assembly)]) == 0

        captured = capsys.readouterr()
        assert "1 type(s) or loader error(s) were skipped" in captured.err
        assert "类型: NS.Greeter" in captured.out


class TestFailures:
    """Fatal errors exit with 1 and print the checklist on stderr."""

    def test_missing_module(self, tmp_path, fake_exporter, capsys):
        fake_exporter()

        assert cli.main([str(tmp_path / "Nope.dll")]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error [MODULE_NOT_FOUND]" in captured.err
        assert "Please make sure that:" in captured.err
        assert "1. The DLL path is correct" in captured.err
        assert cli.COMPLETION_NOTICE in captured.err

    def test_output_directory_missing(self, assembly, fake_exporter, tmp_path, capsys):
        fake_exporter()

        assert cli.main([str(assembly), "json", str(tmp_path / "nope" / "out.json")]) == 1

        captured = capsys.readouterr()
        assert "Error [OUTPUT_WRITE_FAILED]" in captured.err
        assert cli.COMPLETION_NOTICE in captured.err

    def test_unexpected_exception(self, assembly, monkeypatch, capsys):
        class Exploding:
            def run(self, module_path):
                raise KeyError("boom")

        monkeypatch.setattr(cli, "DllExporter", Exploding)

        assert cli.main([str(assembly)]) == 1

        captured = capsys.readouterr()
        assert "Error [UNKNOWN_ERROR]" in captured.err
        assert cli.COMPLETION_NOTICE in captured.err
