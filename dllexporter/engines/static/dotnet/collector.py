"""
Metadata collection over a loaded module.

Walks the module's type list and flattens every qualifying public type
into a TypeRecord. Recoverable failures (types the runtime could not
load, types whose members could not be read) never abort the walk; they
are logged and kept as diagnostics next to the partial result.
"""

import logging
import re

from dllexporter.engines.static.base import (
    LoadedModule,
    ReflectedMember,
    ReflectedType,
    TypeLoadError,
    iter_declared,
)
from dllexporter.engines.static.dotnet.models import (
    CollectionDiagnostic,
    FieldRecord,
    MethodRecord,
    ParameterRecord,
    PropertyRecord,
    TypeKind,
    TypeRecord,
)

logger = logging.getLogger(__name__)

# Runtime primitive names rendered with their C# keyword
TYPE_ALIASES = {
    "Void": "void",
    "Boolean": "bool",
    "Byte": "byte",
    "SByte": "sbyte",
    "Char": "char",
    "Int16": "short",
    "UInt16": "ushort",
    "Int32": "int",
    "UInt32": "uint",
    "Int64": "long",
    "UInt64": "ulong",
    "Single": "float",
    "Double": "double",
    "Decimal": "decimal",
    "String": "string",
    "Object": "object",
}

# Base name followed by any array ranks and an optional by-ref marker
_TYPE_NAME_PATTERN = re.compile(r"^(?P<base>[^\[&*]+)(?P<suffix>(\[,*\])*[&*]?)$")


def display_type_name(type_name: str | None) -> str:
    """Map a runtime simple type name to its display form (Int32[] -> int[])."""
    if not type_name:
        return ""
    match = _TYPE_NAME_PATTERN.match(type_name)
    if not match:
        return type_name
    base = match.group("base")
    return TYPE_ALIASES.get(base, base) + match.group("suffix")


def is_compiler_generated(name: str) -> bool:
    """Names like <PrivateImplementationDetails> are emitted by the compiler."""
    return name.startswith("<")


def classify_kind(reflected: ReflectedType) -> TypeKind:
    """Classify a type; value type is the fallback."""
    if reflected.is_class:
        return TypeKind.CLASS
    if reflected.is_interface:
        return TypeKind.INTERFACE
    if reflected.is_enum:
        return TypeKind.ENUM
    return TypeKind.VALUE_TYPE


class MetadataCollector:
    """
    Collects TypeRecords from a loaded module.

    After collect() returns, ``diagnostics`` holds every recovered failure
    from that call.
    """

    def __init__(self):
        self.diagnostics: list[CollectionDiagnostic] = []

    def collect(self, module: LoadedModule) -> list[TypeRecord]:
        """
        Collect metadata for every qualifying type in the module.

        Args:
            module: Loaded module to walk

        Returns:
            TypeRecords in the module's enumeration order (possibly partial)
        """
        self.diagnostics = []

        try:
            reflected_types = module.get_types()
        except TypeLoadError as e:
            logger.warning(f"Some types in {module.name} could not be loaded: {e}")
            for loader_error in e.loader_errors:
                logger.warning(f"Loader error: {loader_error}")
                self.diagnostics.append(CollectionDiagnostic(type_name="", message=loader_error))
            reflected_types = e.loaded_types

        records = []
        for reflected in reflected_types:
            if reflected is None or not self.qualifies(reflected):
                continue

            record, diagnostic = self._extract(reflected)
            if diagnostic is not None:
                self.diagnostics.append(diagnostic)
            else:
                records.append(record)

        logger.info(
            f"Collected {len(records)} types from {module.name} "
            f"({len(self.diagnostics)} recovered failures)"
        )
        return records

    @staticmethod
    def qualifies(reflected: ReflectedType) -> bool:
        """Only public, non-special, non-generated types are exported."""
        return (
            reflected.is_public
            and not reflected.is_special_name
            and not is_compiler_generated(reflected.name)
        )

    def _extract(self, reflected: ReflectedType) -> tuple[TypeRecord | None, CollectionDiagnostic | None]:
        """Build one TypeRecord, or a diagnostic if its members cannot be read."""
        try:
            record = TypeRecord(
                name=reflected.name,
                namespace=reflected.namespace,
                full_name=reflected.full_name or reflected.name,
                kind=classify_kind(reflected),
                methods=self._collect_methods(reflected),
                properties=self._collect_properties(reflected),
                fields=self._collect_fields(reflected),
            )
        except Exception as e:
            logger.error(f"Failed to process type {reflected.name}: {e}")
            return None, CollectionDiagnostic(type_name=reflected.full_name or reflected.name, message=str(e))
        return record, None

    def _declared_public(self, reflected: ReflectedType, members: list[ReflectedMember]) -> list[ReflectedMember]:
        owner = reflected.full_name or reflected.name
        return [m for m in iter_declared(members, owner) if m.is_public]

    def _collect_methods(self, reflected: ReflectedType) -> list[MethodRecord]:
        return [
            MethodRecord(
                name=m.name,
                return_type=display_type_name(m.type_name),
                parameters=[
                    ParameterRecord(name=p.name or "", type=display_type_name(p.type_name))
                    for p in m.parameters
                ],
                is_public=m.is_public,
            )
            for m in self._declared_public(reflected, reflected.get_methods())
            if not m.is_special_name
        ]

    def _collect_properties(self, reflected: ReflectedType) -> list[PropertyRecord]:
        return [
            PropertyRecord(
                name=p.name,
                type=display_type_name(p.type_name),
                can_read=p.can_read,
                can_write=p.can_write,
            )
            for p in self._declared_public(reflected, reflected.get_properties())
        ]

    def _collect_fields(self, reflected: ReflectedType) -> list[FieldRecord]:
        return [
            FieldRecord(name=f.name, type=display_type_name(f.type_name), is_public=f.is_public)
            for f in self._declared_public(reflected, reflected.get_fields())
            if not f.is_special_name
        ]


def collect_types(module: LoadedModule) -> tuple[list[TypeRecord], list[CollectionDiagnostic]]:
    """Collect types and diagnostics in one call."""
    collector = MetadataCollector()
    types = collector.collect(module)
    return types, collector.diagnostics
