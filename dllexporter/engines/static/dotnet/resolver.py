"""
Dependency resolution for .NET assemblies.

The runtime asks for every dependency it cannot locate on its own. Names
that belong to the platform, localized satellite resources, or generated
XmlSerializer helpers are skipped; everything else is looked up as
``<name>.dll`` in the primary assembly's directory.
"""

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from dllexporter.engines.static.dotnet.models import DependencyLedger

logger = logging.getLogger(__name__)


class Classification(Enum):
    """Outcome of classifying a requested dependency name."""
    SYSTEM_IGNORED = "system"
    RESOURCE_IGNORED = "resource"
    GENERATED_IGNORED = "generated"
    NEEDS_RESOLUTION = "needs_resolution"


# Platform assemblies that never need manual resolution
SYSTEM_ASSEMBLIES = frozenset({
    "mscorlib", "System", "System.Core", "System.Xml", "System.Data",
    "System.Configuration", "System.Runtime", "System.Private.CoreLib",
    "netstandard", "Microsoft.Win32.Primitives", "System.AppContext",
    "System.Collections", "System.Collections.Concurrent", "System.Console",
    "System.Diagnostics.Debug", "System.Diagnostics.Tools", "System.Diagnostics.Tracing",
    "System.Globalization", "System.IO", "System.IO.Compression", "System.IO.FileSystem",
    "System.IO.FileSystem.Primitives", "System.Linq", "System.Linq.Expressions",
    "System.Net.Primitives", "System.Net.Sockets", "System.ObjectModel",
    "System.Reflection", "System.Reflection.Extensions", "System.Reflection.Primitives",
    "System.Resources.ResourceManager", "System.Runtime.Extensions",
    "System.Runtime.Handles", "System.Runtime.InteropServices",
    "System.Runtime.InteropServices.RuntimeInformation", "System.Runtime.Numerics",
    "System.Security.Cryptography.Algorithms", "System.Security.Cryptography.Primitives",
    "System.Text.Encoding", "System.Text.Encoding.Extensions", "System.Text.RegularExpressions",
    "System.Threading", "System.Threading.Tasks", "System.Threading.Thread",
    "System.Threading.Timer", "System.ValueTuple", "System.Xml.ReaderWriter",
    "System.Xml.XmlDocument", "System.Xml.XPath", "System.Xml.XPath.XDocument",
})

SYSTEM_PREFIXES = ("System.", "Microsoft.", "netstandard", "mscorlib")

RESOURCE_SUFFIX = ".resources"
GENERATED_SUFFIX = ".XmlSerializers"

_IGNORE_REASONS = {
    Classification.SYSTEM_IGNORED: "system assembly",
    Classification.RESOURCE_IGNORED: "resource assembly",
    Classification.GENERATED_IGNORED: "XML serialization assembly",
}


def simple_assembly_name(requested: str) -> str:
    """
    Reduce an assembly display name to its simple name.

    "Helper, Version=1.0.0.0, Culture=neutral" -> "Helper"
    """
    return requested.split(",", 1)[0].strip()


class DependencyResolver:
    """
    Per-run dependency resolver.

    Instances are callable so they can be passed directly as the loader's
    resolve hook. Each instance owns its ledger; create a new resolver for
    every export run.
    """

    def __init__(
        self,
        search_dir: str | Path,
        load_dependency: Callable[[Path], Any],
        ledger: DependencyLedger | None = None,
        extra_system_prefixes: Iterable[str] = (),
    ):
        """
        Initialize resolver.

        Args:
            search_dir: Directory containing the primary module
            load_dependency: Loads a dependency file and returns its handle
            ledger: Ledger to record into (a fresh one by default)
            extra_system_prefixes: Additional name prefixes treated as system
        """
        self.search_dir = Path(search_dir)
        self.ledger = ledger if ledger is not None else DependencyLedger()
        self._load_dependency = load_dependency
        self._system_prefixes = SYSTEM_PREFIXES + tuple(p for p in extra_system_prefixes if p)
        self._handles: dict[str, Any] = {}
        self._failed: set[str] = set()

    def classify(self, name: str) -> Classification:
        """Classify a simple assembly name. Never touches the file system."""
        if name in SYSTEM_ASSEMBLIES or name.startswith(self._system_prefixes):
            return Classification.SYSTEM_IGNORED
        if name.endswith(RESOURCE_SUFFIX):
            return Classification.RESOURCE_IGNORED
        if name.endswith(GENERATED_SUFFIX):
            return Classification.GENERATED_IGNORED
        return Classification.NEEDS_RESOLUTION

    def resolve(self, requested: str) -> Any:
        """
        Resolve a requested dependency.

        Args:
            requested: Simple or full display name of the assembly

        Returns:
            Loaded handle, or None if the dependency is ignored, missing,
            or failed to load
        """
        name = simple_assembly_name(requested)

        classification = self.classify(name)
        if classification is not Classification.NEEDS_RESOLUTION:
            if self.ledger.add_ignored(name):
                logger.info(f"Ignoring {_IGNORE_REASONS[classification]}: {name}")
            return None

        if self.ledger.is_resolved(name):
            return self._handles.get(name)

        if name in self._failed:
            return None

        logger.info(f"Resolving dependency: {name}")
        candidate = self.search_dir / f"{name}.dll"

        if not candidate.is_file():
            logger.warning(f"Dependency {name} not found in {self.search_dir}")
            self._failed.add(name)
            return None

        try:
            handle = self._load_dependency(candidate)
        except Exception as e:
            logger.error(f"Failed to load dependency {name}: {e}")
            self._failed.add(name)
            return None

        self._handles[name] = handle
        self.ledger.add_resolved(name)
        logger.info(f"Resolved dependency: {name} -> {candidate}")
        return handle

    def __call__(self, requested: str) -> Any:
        return self.resolve(requested)
