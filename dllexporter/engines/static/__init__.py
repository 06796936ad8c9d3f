"""
Static analysis engines.

Currently supports:
- .NET assemblies (reflection through pythonnet)
"""

from .dotnet.exporter import DllExporter

__all__ = ["DllExporter"]
