"""
DLL Exporter MCP Server.

Provides .NET assembly metadata export to MCP clients:
- Public types with methods, properties and fields (text, JSON, XML)
- Dependency resolution report
- PE/CLR pre-check
"""

import logging

from fastmcp import FastMCP

from dllexporter.tools.dotnet_tools import register_dotnet_tools
from dllexporter.utils.config import configure_logging

logger = logging.getLogger(__name__)

app = FastMCP("dll-exporter")


def main():
    """Run the MCP server."""
    configure_logging("INFO")
    logger.info("Starting DLL Exporter MCP Server...")

    register_dotnet_tools(app)

    # Run the FastMCP server (handles stdio automatically)
    app.run()


if __name__ == "__main__":
    main()
