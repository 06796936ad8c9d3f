"""
Output formatting for exported assembly metadata.

Three pure views over the same (ledger, types) pair: plain text, JSON,
and XML. JSON is the canonical structured form; the XML serializer walks
the same object graph independently rather than converting JSON text.
"""

import json
import xml.etree.ElementTree as ET
from typing import Any

from dllexporter.engines.static.dotnet.models import (
    DependencyLedger,
    ExportResult,
    TypeKind,
    TypeRecord,
)

EXPORT_FORMATS = ("text", "json", "xml")
DEFAULT_FORMAT = "text"

RULE_WIDTH = 80

KIND_LABELS = {
    TypeKind.CLASS: "类",
    TypeKind.INTERFACE: "接口",
    TypeKind.ENUM: "枚举",
    TypeKind.VALUE_TYPE: "值类型",
}


def normalize_format(fmt: str | None, default: str = DEFAULT_FORMAT) -> str:
    """
    Normalize a format selector.

    Matching is case-insensitive; unknown or empty values fall back to
    ``default`` (itself falling back to text when unknown).
    """
    if default not in EXPORT_FORMATS:
        default = DEFAULT_FORMAT
    if not fmt:
        return default
    fmt = fmt.strip().lower()
    return fmt if fmt in EXPORT_FORMATS else DEFAULT_FORMAT


def _visibility(is_public: bool) -> str:
    return "public" if is_public else "non-public"


def format_text(ledger: DependencyLedger, types: list[TypeRecord]) -> str:
    """
    Format the export as plain text.

    Args:
        ledger: Dependency bookkeeping from the run
        types: Collected type records

    Returns:
        Formatted string
    """
    lines = [
        "=== 依赖解析摘要 ===",
        f"成功解析的依赖: {', '.join(ledger.resolved)}",
        f"忽略的系统/资源依赖: {', '.join(ledger.ignored)}",
        "===================",
        "",
    ]

    for t in types:
        lines.append(f"类型: {t.full_name}")
        lines.append(f"种类: {KIND_LABELS[t.kind]}")
        lines.append("")

        if t.properties:
            lines.append("属性:")
            for prop in t.properties:
                getter = "get;" if prop.can_read else ""
                setter = "set;" if prop.can_write else ""
                lines.append(f"  {prop.type} {prop.name} {{ {getter} {setter} }}")
            lines.append("")

        if t.fields:
            lines.append("字段:")
            for f in t.fields:
                lines.append(f"  {_visibility(f.is_public)} {f.type} {f.name}")
            lines.append("")

        if t.methods:
            lines.append("方法:")
            for m in t.methods:
                params = ", ".join(f"{p.type} {p.name}" for p in m.parameters)
                lines.append(f"  {_visibility(m.is_public)} {m.return_type} {m.name}({params})")
            lines.append("")

        lines.append("-" * RULE_WIDTH)
        lines.append("")

    return "\n".join(lines) + "\n"


def export_document(ledger: DependencyLedger, types: list[TypeRecord]) -> dict[str, Any]:
    """Build the object graph shared by the JSON and XML exports."""
    document = ledger.to_dict()
    document["Types"] = [t.to_dict() for t in types]
    return document


def format_json(ledger: DependencyLedger, types: list[TypeRecord]) -> str:
    """
    Format the export as indented JSON.

    Args:
        ledger: Dependency bookkeeping from the run
        types: Collected type records

    Returns:
        JSON string with ResolvedDependencies, IgnoredDependencies and Types
    """
    return json.dumps(export_document(ledger, types), indent=2, ensure_ascii=False)


def _xml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append_record(parent: ET.Element, tag: str, record: dict[str, Any]) -> ET.Element:
    """Scalars become attributes (None is omitted), lists become wrapper elements."""
    element = ET.SubElement(parent, tag)
    for key, value in record.items():
        if isinstance(value, list):
            container = ET.SubElement(element, key)
            child_tag = key[:-1] if key.endswith("s") else key
            if key == "Properties":
                child_tag = "Property"
            for item in value:
                _append_record(container, child_tag, item)
        elif value is not None:
            element.set(key, _xml_value(value))
    return element


def format_xml(ledger: DependencyLedger, types: list[TypeRecord]) -> str:
    """
    Format the export as an XML document.

    Layout::

        <ExportData>
          <ResolvedDependencies><Dependency>Helper</Dependency></ResolvedDependencies>
          <IgnoredDependencies>...</IgnoredDependencies>
          <Types>
            <Type Name=".." Namespace=".." FullName=".." Kind="class" ...>
              <Methods><Method Name=".." ReturnType=".." IsPublic="true">
                <Parameters><Parameter Name=".." Type=".."/></Parameters>
              </Method></Methods>
              <Properties>...</Properties>
              <Fields>...</Fields>
            </Type>
          </Types>
        </ExportData>

    Args:
        ledger: Dependency bookkeeping from the run
        types: Collected type records

    Returns:
        XML document string with declaration
    """
    document = export_document(ledger, types)
    root = ET.Element("ExportData")

    for key in ("ResolvedDependencies", "IgnoredDependencies"):
        container = ET.SubElement(root, key)
        for name in document[key]:
            ET.SubElement(container, "Dependency").text = name

    types_element = ET.SubElement(root, "Types")
    for type_dict in document["Types"]:
        _append_record(types_element, "Type", type_dict)

    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


FORMATTERS = {
    "text": format_text,
    "json": format_json,
    "xml": format_xml,
}


def render(result: ExportResult, fmt: str | None = None) -> str:
    """
    Render an export result in the requested format.

    Args:
        result: Export run result
        fmt: Format selector (text, json, xml); case-insensitive, unknown -> text

    Returns:
        Rendered export
    """
    return FORMATTERS[normalize_format(fmt)](result.ledger, result.types)


def format_dependency_summary(result: ExportResult) -> str:
    """
    Format the dependency ledger and recovered failures for display.

    Args:
        result: Export run result

    Returns:
        Formatted string
    """
    out = f"**Dependencies of {result.module_name}**\n\n"

    out += f"**Resolved ({len(result.ledger.resolved)}):**\n"
    for name in result.ledger.resolved:
        out += f"- `{name}`\n"

    out += f"\n**Ignored ({len(result.ledger.ignored)}):**\n"
    for name in result.ledger.ignored:
        out += f"- `{name}`\n"

    if result.diagnostics:
        out += f"\n**Recovered failures ({len(result.diagnostics)}):**\n"
        for diag in result.diagnostics:
            label = diag.type_name or "(loader)"
            out += f"- {label}: {diag.message}\n"

    return out
