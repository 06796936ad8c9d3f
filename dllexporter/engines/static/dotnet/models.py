"""
Data model for exported .NET assembly metadata.

Records are produced by the metadata collector and the dependency
resolver, then handed unchanged to the formatters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TypeKind(str, Enum):
    """Mutually exclusive kind of a type definition."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    VALUE_TYPE = "value_type"


@dataclass(frozen=True)
class ParameterRecord:
    """A method parameter (name and simple type name)."""
    name: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"Name": self.name, "Type": self.type}


@dataclass(frozen=True)
class MethodRecord:
    """A method declared directly on a type."""
    name: str
    return_type: str
    parameters: list[ParameterRecord] = field(default_factory=list)
    is_public: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "ReturnType": self.return_type,
            "Parameters": [p.to_dict() for p in self.parameters],
            "IsPublic": self.is_public,
        }


@dataclass(frozen=True)
class PropertyRecord:
    """A property declared directly on a type."""
    name: str
    type: str
    can_read: bool = False
    can_write: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.type,
            "CanRead": self.can_read,
            "CanWrite": self.can_write,
        }


@dataclass(frozen=True)
class FieldRecord:
    """A field declared directly on a type."""
    name: str
    type: str
    is_public: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"Name": self.name, "Type": self.type, "IsPublic": self.is_public}


@dataclass(frozen=True)
class TypeRecord:
    """
    Flattened metadata for one public type definition.

    Attributes:
        name: Simple type name
        namespace: Declaring namespace (None for the global namespace)
        full_name: Namespace-qualified name
        kind: Type kind
        methods: Declared public methods, in declaration order
        properties: Declared public properties, in declaration order
        fields: Declared public fields, in declaration order
    """

    name: str
    namespace: str | None
    full_name: str
    kind: TypeKind
    methods: list[MethodRecord] = field(default_factory=list)
    properties: list[PropertyRecord] = field(default_factory=list)
    fields: list[FieldRecord] = field(default_factory=list)

    @property
    def is_class(self) -> bool:
        return self.kind is TypeKind.CLASS

    @property
    def is_interface(self) -> bool:
        return self.kind is TypeKind.INTERFACE

    @property
    def is_enum(self) -> bool:
        return self.kind is TypeKind.ENUM

    @property
    def is_value_type(self) -> bool:
        # Enums are value types in the runtime's own classification
        return self.kind in (TypeKind.ENUM, TypeKind.VALUE_TYPE)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the key/value shape used by the JSON export."""
        return {
            "Name": self.name,
            "Namespace": self.namespace,
            "FullName": self.full_name,
            "Kind": self.kind.value,
            "IsClass": self.is_class,
            "IsInterface": self.is_interface,
            "IsEnum": self.is_enum,
            "IsValueType": self.is_value_type,
            "Methods": [m.to_dict() for m in self.methods],
            "Properties": [p.to_dict() for p in self.properties],
            "Fields": [f.to_dict() for f in self.fields],
        }


class DependencyLedger:
    """
    Resolved and ignored dependency names for one export run.

    Both collections keep first-seen order and hold each name at most
    once; a name is never in both.
    """

    def __init__(self):
        self._resolved: dict[str, None] = {}
        self._ignored: dict[str, None] = {}

    @property
    def resolved(self) -> list[str]:
        return list(self._resolved)

    @property
    def ignored(self) -> list[str]:
        return list(self._ignored)

    def __contains__(self, name: str) -> bool:
        return name in self._resolved or name in self._ignored

    def is_resolved(self, name: str) -> bool:
        return name in self._resolved

    def add_resolved(self, name: str) -> bool:
        """Record a resolved name. Returns False if it was already recorded."""
        if name in self:
            return False
        self._resolved[name] = None
        return True

    def add_ignored(self, name: str) -> bool:
        """Record an ignored name. Returns False if it was already recorded."""
        if name in self:
            return False
        self._ignored[name] = None
        return True

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "ResolvedDependencies": self.resolved,
            "IgnoredDependencies": self.ignored,
        }

    def __repr__(self) -> str:
        return f"DependencyLedger(resolved={self.resolved!r}, ignored={self.ignored!r})"


@dataclass(frozen=True)
class CollectionDiagnostic:
    """A recovered failure recorded while collecting types."""
    type_name: str
    message: str


@dataclass
class ExportResult:
    """Everything one export run produced, ready for the formatters."""
    module_name: str
    module_path: str
    ledger: DependencyLedger
    types: list[TypeRecord] = field(default_factory=list)
    diagnostics: list[CollectionDiagnostic] = field(default_factory=list)
