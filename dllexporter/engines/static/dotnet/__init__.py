"""
.NET metadata export engine.

Loads assemblies through pythonnet, resolves their non-system
dependencies from the assembly's directory, and collects public type
metadata for export.
"""

from dllexporter.engines.static.dotnet.clr_loader import ClrModuleLoader
from dllexporter.engines.static.dotnet.collector import MetadataCollector
from dllexporter.engines.static.dotnet.exporter import DllExporter
from dllexporter.engines.static.dotnet.resolver import Classification, DependencyResolver

__all__ = [
    "Classification",
    "ClrModuleLoader",
    "DependencyResolver",
    "DllExporter",
    "MetadataCollector",
]
