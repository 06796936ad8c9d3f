"""
.NET metadata export MCP tools.

Exposes the assembly export run, the dependency ledger, and the PE/CLR
pre-check to MCP clients.
"""

import logging

from fastmcp import FastMCP

from dllexporter.engines.static.dotnet.clr_loader import get_clr_loader
from dllexporter.engines.static.dotnet.exporter import DllExporter
from dllexporter.utils.compatibility import get_checker
from dllexporter.utils.formatters import format_dependency_summary, render
from dllexporter.utils.security import sanitize_binary_path
from dllexporter.utils.structured_errors import (
    StructuredBaseError,
    create_module_not_found_error,
    to_structured_error,
)

logger = logging.getLogger(__name__)


def register_dotnet_tools(app: FastMCP, exporter: DllExporter | None = None) -> None:
    """
    Register .NET export tools with the MCP server.

    Args:
        app: FastMCP application instance
        exporter: Exporter to use (pythonnet-backed by default)
    """
    exporter = exporter or DllExporter()
    loader = get_clr_loader()

    @app.tool()
    def export_dotnet_metadata(
        assembly_path: str,
        output_format: str = "text"
    ) -> str:
        """
        Export the public types of a .NET assembly with their members.

        Non-system dependencies are resolved from the assembly's own
        directory. Types that cannot be loaded are skipped.

        Args:
            assembly_path: Path to .NET assembly (.exe or .dll)
            output_format: text, json or xml (unknown values fall back to text)

        Returns:
            The rendered export

        Example:
            export_dotnet_metadata("C:/libs/MyLibrary.dll", "json")
        """
        try:
            result = exporter.run(assembly_path)
            return render(result, output_format)
        except StructuredBaseError as e:
            return e.structured_error.to_user_message()
        except Exception as e:
            logger.error(f"export_dotnet_metadata failed: {e}")
            return to_structured_error(e, "export_dotnet_metadata").to_user_message()

    @app.tool()
    def list_dotnet_dependencies(assembly_path: str) -> str:
        """
        Show which dependencies of an assembly were resolved or ignored.

        Args:
            assembly_path: Path to .NET assembly

        Returns:
            Resolved and ignored dependency names plus recovered failures
        """
        try:
            result = exporter.run(assembly_path)
            return format_dependency_summary(result)
        except StructuredBaseError as e:
            return e.structured_error.to_user_message()
        except Exception as e:
            logger.error(f"list_dotnet_dependencies failed: {e}")
            return to_structured_error(e, "list_dotnet_dependencies").to_user_message()

    @app.tool()
    def check_dotnet_assembly(assembly_path: str) -> str:
        """
        Check whether a file is a loadable .NET assembly without loading it.

        Args:
            assembly_path: Path to the file

        Returns:
            PE/CLR header report
        """
        try:
            path = sanitize_binary_path(assembly_path)
        except FileNotFoundError:
            return create_module_not_found_error(assembly_path).to_user_message()
        except Exception as e:
            return f"Error: {e}"

        try:
            checker = get_checker()
            return checker.format_report(checker.check(path))
        except Exception as e:
            logger.error(f"check_dotnet_assembly failed: {e}")
            return f"Error checking assembly: {e}"

    @app.tool()
    def diagnose_dotnet_setup() -> str:
        """
        Check pythonnet and .NET runtime availability.

        Returns:
            Diagnostic information about the export backend
        """
        diag = loader.diagnose()

        result = "**.NET Export Backend Diagnostics**\n\n"

        if diag["pythonnet_found"]:
            result += f"✅ **pythonnet:** {diag['pythonnet_version']}\n"
        else:
            result += "❌ **pythonnet:** Not installed\n"
            result += "   - Install with: `pip install pythonnet`\n"

        requested = diag["runtime_requested"] or "pythonnet default"
        if diag["runtime_loaded"]:
            result += f"✅ **Runtime:** {requested}\n"
            if diag["runtime_info"]:
                result += f"   - {diag['runtime_info']}\n"
        else:
            result += f"❌ **Runtime:** {requested} could not be started\n"
            result += "   - Download .NET from: https://dotnet.microsoft.com/download\n"

        if diag["error"]:
            result += f"\n**Error:** {diag['error']}\n"

        result += f"\n**Platform:** {diag['platform']}\n"
        return result

    logger.info("Registered 4 .NET export tools")
