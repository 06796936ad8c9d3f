"""
Metadata engines package.

Contains the reflection-driven static export engines.
"""

from .static.dotnet.exporter import DllExporter

__all__ = ["DllExporter"]
