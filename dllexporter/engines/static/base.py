"""
Base interfaces for reflection-driven metadata providers.

A provider loads a binary module and describes its types and their
declared members. The collector and the dependency resolver only talk
to these interfaces, so any backend (the .NET runtime through pythonnet,
or an in-memory fake in tests) can drive an export.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Hook invoked by the loader whenever the runtime cannot find a dependency.
# Receives the requested module name, returns a loaded handle or None.
ResolveHook = Callable[[str], Any]


@dataclass
class ReflectedParameter:
    """A parameter as reported by the provider."""
    name: str
    type_name: str


@dataclass
class ReflectedMember:
    """
    A method, property or field as reported by the provider.

    Attributes:
        name: Member name
        type_name: Simple name of the field/property type or method return type
        declaring_type: Full name of the type that declares the member
        is_public: Member (or, for properties, any accessor) is public
        is_special_name: Runtime marks the member as special-name
            (accessors, operators, event add/remove, enum backing fields)
        parameters: Method parameters in declaration order
        can_read: Property has a getter
        can_write: Property has a setter
    """

    name: str
    type_name: str
    declaring_type: str
    is_public: bool = True
    is_special_name: bool = False
    parameters: list[ReflectedParameter] = field(default_factory=list)
    can_read: bool = False
    can_write: bool = False


class ReflectedType(ABC):
    """A type definition exposed by a loaded module."""

    name: str
    namespace: str | None
    full_name: str
    is_public: bool
    is_special_name: bool
    is_class: bool
    is_interface: bool
    is_enum: bool
    is_value_type: bool

    @abstractmethod
    def get_methods(self) -> list[ReflectedMember]:
        """Return instance and static methods, including non-public ones."""
        pass

    @abstractmethod
    def get_properties(self) -> list[ReflectedMember]:
        """Return instance and static properties, including non-public ones."""
        pass

    @abstractmethod
    def get_fields(self) -> list[ReflectedMember]:
        """Return instance and static fields, including non-public ones."""
        pass


class TypeLoadError(Exception):
    """
    Raised by LoadedModule.get_types() when some types could not be loaded.

    Carries the types that did load so callers can continue with a
    partial result.
    """

    def __init__(self, message: str, loaded_types: list[ReflectedType], loader_errors: list[str]):
        super().__init__(message)
        self.loaded_types = loaded_types
        self.loader_errors = loader_errors


class LoadedModule(ABC):
    """A successfully loaded binary module."""

    name: str
    location: str

    @abstractmethod
    def get_types(self) -> list[ReflectedType]:
        """
        Enumerate every type definition the module declares.

        Returns:
            Types in the module's natural enumeration order

        Raises:
            TypeLoadError: If some types could not be loaded
        """
        pass


class ModuleLoader(ABC):
    """Base class for module loading backends."""

    @abstractmethod
    def open(self, module_path: Path, resolve_hook: ResolveHook) -> AbstractContextManager[LoadedModule]:
        """
        Load a module with a dependency hook installed.

        The hook stays installed until the returned context exits, so
        dependencies requested lazily while enumerating types are routed
        to it as well.

        Args:
            module_path: Path to the primary module
            resolve_hook: Callback for dependencies the runtime cannot find

        Returns:
            Context manager yielding the loaded module

        Raises:
            RuntimeError: If the module cannot be loaded
        """
        pass

    @abstractmethod
    def load_dependency(self, dependency_path: Path) -> Any:
        """
        Load a dependency file and return the runtime's handle for it.

        Raises:
            Exception: Any backend error; the resolver logs and swallows it
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the backing runtime can be used."""
        pass

    @abstractmethod
    def diagnose(self) -> dict[str, Any]:
        """
        Run diagnostics on the backend installation.

        Returns:
            Dictionary with installation status and configuration
        """
        pass


def iter_declared(members: list[ReflectedMember], declaring_type: str) -> Iterator[ReflectedMember]:
    """Yield the members declared directly on ``declaring_type``."""
    for member in members:
        if member.declaring_type == declaring_type:
            yield member
