"""
.NET reflection backend built on pythonnet.

Loads assemblies into the current process through the CLR hosted by
pythonnet and exposes their types via the provider interfaces in
``engines.static.base``. The AppDomain.AssemblyResolve hook is attached
only for the lifetime of one ``open()`` context.
"""

import logging
import platform
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dllexporter.engines.static.base import (
    LoadedModule,
    ModuleLoader,
    ReflectedMember,
    ReflectedParameter,
    ReflectedType,
    ResolveHook,
    TypeLoadError,
)
from dllexporter.utils.config import get_config

logger = logging.getLogger(__name__)


class RuntimeUnavailableError(RuntimeError):
    """Raised when pythonnet or a .NET runtime cannot be loaded."""
    pass


def _type_full_name(clr_type: Any) -> str:
    if clr_type is None:
        return ""
    return str(clr_type.FullName or clr_type.Name)


class ClrType(ReflectedType):
    """ReflectedType view of a System.Type."""

    def __init__(self, clr_type: Any, binding_flags: Any):
        self._type = clr_type
        self._flags = binding_flags
        self.name = str(clr_type.Name)
        namespace = clr_type.Namespace
        self.namespace = str(namespace) if namespace is not None else None
        self.full_name = _type_full_name(clr_type)
        self.is_public = bool(clr_type.IsPublic)
        self.is_special_name = bool(clr_type.IsSpecialName)
        self.is_class = bool(clr_type.IsClass)
        self.is_interface = bool(clr_type.IsInterface)
        self.is_enum = bool(clr_type.IsEnum)
        self.is_value_type = bool(clr_type.IsValueType)

    def get_methods(self) -> list[ReflectedMember]:
        return [
            ReflectedMember(
                name=str(m.Name),
                type_name=str(m.ReturnType.Name),
                declaring_type=_type_full_name(m.DeclaringType),
                is_public=bool(m.IsPublic),
                is_special_name=bool(m.IsSpecialName),
                parameters=[
                    ReflectedParameter(name=str(p.Name or ""), type_name=str(p.ParameterType.Name))
                    for p in m.GetParameters()
                ],
            )
            for m in self._type.GetMethods(self._flags)
        ]

    def get_properties(self) -> list[ReflectedMember]:
        members = []
        for p in self._type.GetProperties(self._flags):
            # Public when at least one accessor is public
            public_accessors = list(p.GetAccessors(False))
            members.append(ReflectedMember(
                name=str(p.Name),
                type_name=str(p.PropertyType.Name),
                declaring_type=_type_full_name(p.DeclaringType),
                is_public=bool(public_accessors),
                is_special_name=bool(p.IsSpecialName),
                can_read=bool(p.CanRead),
                can_write=bool(p.CanWrite),
            ))
        return members

    def get_fields(self) -> list[ReflectedMember]:
        return [
            ReflectedMember(
                name=str(f.Name),
                type_name=str(f.FieldType.Name),
                declaring_type=_type_full_name(f.DeclaringType),
                is_public=bool(f.IsPublic),
                is_special_name=bool(f.IsSpecialName),
            )
            for f in self._type.GetFields(self._flags)
        ]


class ClrModule(LoadedModule):
    """LoadedModule view of a System.Reflection.Assembly."""

    def __init__(self, assembly: Any, clr: "ClrModuleLoader"):
        self._assembly = assembly
        self._clr = clr
        self.name = str(assembly.GetName().Name)
        self.location = str(assembly.Location or "")

    @property
    def full_name(self) -> str:
        return str(self._assembly.FullName)

    def get_types(self) -> list[ReflectedType]:
        flags = self._clr.member_binding_flags()
        ReflectionTypeLoadException = self._clr.reflection.ReflectionTypeLoadException

        try:
            clr_types = list(self._assembly.GetTypes())
        except ReflectionTypeLoadException as e:
            loaded = [ClrType(t, flags) for t in e.Types if t is not None]
            loader_errors = [str(le.Message) for le in e.LoaderExceptions if le is not None]
            raise TypeLoadError(str(e.Message), loaded, loader_errors) from e

        return [ClrType(t, flags) for t in clr_types]


class ClrModuleLoader(ModuleLoader):
    """
    pythonnet-backed module loader.

    The CLR is started lazily on first use. The runtime flavour comes from
    the ``runtime`` argument or the DLL_EXPORTER_RUNTIME setting
    (``coreclr``, ``netfx`` or ``mono``); when neither is set pythonnet
    picks its platform default.
    """

    def __init__(self, runtime: str | None = None):
        """
        Initialize loader.

        Args:
            runtime: pythonnet runtime name, overrides configuration
        """
        self.system = platform.system()
        self.runtime = runtime or get_config("DLL_EXPORTER_RUNTIME")
        self._system_ns = None
        self._reflection_ns = None
        self._load_error: str | None = None

    def _ensure_runtime(self) -> None:
        """Start the CLR and import the reflection namespaces."""
        if self._reflection_ns is not None:
            return

        try:
            import pythonnet

            if self.runtime:
                pythonnet.load(self.runtime)
            import clr  # noqa: F401
            import System
            import System.Reflection
        except Exception as e:
            self._load_error = str(e)
            logger.error(f"Failed to start .NET runtime via pythonnet: {e}")
            raise RuntimeUnavailableError(f"Cannot start .NET runtime: {e}") from e

        self._system_ns = System
        self._reflection_ns = System.Reflection
        logger.info(f"Started .NET runtime ({self.runtime or 'pythonnet default'}) on {self.system}")

    @property
    def reflection(self) -> Any:
        self._ensure_runtime()
        return self._reflection_ns

    def member_binding_flags(self) -> Any:
        """Public instance and static members declared on the type itself."""
        flags = self.reflection.BindingFlags
        return flags.Public | flags.Instance | flags.Static | flags.DeclaredOnly

    def is_available(self) -> bool:
        try:
            self._ensure_runtime()
        except RuntimeUnavailableError:
            return False
        return True

    def load_dependency(self, dependency_path: Path) -> Any:
        return self.reflection.Assembly.LoadFrom(str(dependency_path))

    @contextmanager
    def open(self, module_path: Path, resolve_hook: ResolveHook) -> Iterator[LoadedModule]:
        self._ensure_runtime()
        app_domain = self._system_ns.AppDomain.CurrentDomain

        def on_assembly_resolve(sender, args):
            try:
                return resolve_hook(str(args.Name))
            except Exception as e:
                logger.error(f"Resolve hook failed for {args.Name}: {e}")
                return None

        handler = self._system_ns.ResolveEventHandler(on_assembly_resolve)
        app_domain.AssemblyResolve += handler
        try:
            try:
                assembly = self.reflection.Assembly.LoadFrom(str(module_path))
            except Exception as e:
                logger.error(f"Failed to load assembly {module_path}: {e}")
                raise RuntimeError(f"Failed to load assembly: {e}") from e

            module = ClrModule(assembly, self)
            logger.info(f"Loaded assembly: {module.full_name}")
            yield module
        finally:
            app_domain.AssemblyResolve -= handler

    def diagnose(self) -> dict:
        """
        Run diagnostic checks on the pythonnet installation.

        Returns:
            Diagnostic information dict
        """
        diag = {
            "platform": self.system,
            "pythonnet_found": False,
            "pythonnet_version": None,
            "runtime_requested": self.runtime,
            "runtime_loaded": False,
            "runtime_info": None,
            "error": None,
        }

        try:
            from importlib.metadata import version

            diag["pythonnet_version"] = version("pythonnet")
            diag["pythonnet_found"] = True
        except Exception as e:
            diag["error"] = f"pythonnet not installed: {e}"
            return diag

        if self.is_available():
            diag["runtime_loaded"] = True
            try:
                import pythonnet

                diag["runtime_info"] = str(pythonnet.get_runtime_info())
            except Exception:
                pass
        else:
            diag["error"] = self._load_error

        return diag


# Module-level instance for convenience
_loader: ClrModuleLoader | None = None


def get_clr_loader() -> ClrModuleLoader:
    """Get or create the singleton CLR loader."""
    global _loader
    if _loader is None:
        _loader = ClrModuleLoader()
    return _loader
