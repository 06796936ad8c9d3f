"""
Command-line driver.

Usage:
    dll-exporter <dll-path> [text|json|xml] [output-path]
"""

import argparse
import logging
import sys

from dllexporter.engines.static.dotnet.exporter import DllExporter
from dllexporter.utils.config import configure_logging, get_config
from dllexporter.utils.formatters import normalize_format, render
from dllexporter.utils.security import SecurityError, sanitize_output_path
from dllexporter.utils.structured_errors import (
    StructuredBaseError,
    create_output_write_failed_error,
    to_structured_error,
)

logger = logging.getLogger(__name__)

EPILOG = """\
examples:
  dll-exporter MyLibrary.dll json output.json
  dll-exporter MyLibrary.dll text

note: make sure every non-system dependency DLL is in the same directory
as the target DLL.
"""

COMPLETION_NOTICE = "Done. System dependencies are ignored automatically and do not need to be provided."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dll-exporter",
        description="Export public type metadata of a .NET assembly as text, JSON or XML",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("module_path", help="Path to the .NET assembly (.dll or .exe)")
    # No choices: unknown formats fall back to text
    parser.add_argument(
        "format",
        nargs="?",
        default=None,
        help="Output format: text (default), json or xml",
    )
    parser.add_argument(
        "output_path",
        nargs="?",
        default=None,
        help="Write the export to this file instead of stdout",
    )
    return parser


def _write_output(output_path: str, content: str) -> None:
    try:
        path = sanitize_output_path(output_path)
        path.write_text(content, encoding="utf-8")
    except (OSError, SecurityError, ValueError) as e:
        raise StructuredBaseError(create_output_write_failed_error(output_path, str(e)))
    print(f"Export written to: {path}")


def main(argv: list[str] | None = None) -> int:
    """
    Run one export from the command line.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit code: 0 on success or usage, 1 on failure
    """
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv:
        parser.print_help()
        return 0

    exit_code = 1

    try:
        # Arguments past the output path are ignored
        args, extra = parser.parse_known_args(argv)
        configure_logging("WARNING")
        if extra:
            logger.warning(f"Ignoring extra arguments: {' '.join(extra)}")

        fmt = normalize_format(args.format, get_config("DLL_EXPORTER_DEFAULT_FORMAT") or "text")
        result = DllExporter().run(args.module_path)
        output = render(result, fmt)

        if args.output_path:
            _write_output(args.output_path, output)
        else:
            sys.stdout.write(output)

        if result.diagnostics:
            print(
                f"Warning: {len(result.diagnostics)} type(s) or loader error(s) were skipped; "
                "the export may be incomplete.",
                file=sys.stderr,
            )
        exit_code = 0
    except StructuredBaseError as e:
        print(e.structured_error.to_user_message(), file=sys.stderr)
    except Exception as e:
        logger.error(f"Export failed: {e}")
        print(to_structured_error(e).to_user_message(), file=sys.stderr)
    finally:
        print(COMPLETION_NOTICE, file=sys.stderr)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
