"""Schema-driven section document codec.

A section document is a markdown file in which every record is one titled
section followed by ``- key: value`` lines in the order its schema lists them:

    # deposit

    - id: 3f1c...
    - type: EntryPoint
    - path: programs/vault/src/lib.rs
    - start_line_index: 12
    - end_line_index: 18

List fields put one ``  - item`` line per element under their key. Nested
records are subsections one heading level down, each with its own fields.

The same encoder/decoder serves every record kind; only the schema differs.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from anchorscan.core.errors import DocumentFormatError


class FieldType(str, Enum):
    """Value encodings understood by the codec."""

    TEXT = "text"
    OPTIONAL_TEXT = "optional_text"  # empty value decodes to None
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TEXT_LIST = "text_list"
    RANGE = "range"  # "start-end" or empty for None

    @property
    def required(self) -> bool:
        return self in (FieldType.TEXT, FieldType.INTEGER, FieldType.BOOLEAN)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    key: str
    type: FieldType = FieldType.TEXT


@dataclass(frozen=True, slots=True)
class SectionSchema:
    """Ordered field layout of one record kind.

    ``title_key`` names the value used as section title. ``child`` describes
    nested records stored under ``children_key``.
    """

    document: str
    title_key: str
    fields: tuple[FieldSpec, ...]
    children_key: str | None = None
    child: SectionSchema | None = None

    def field(self, key: str) -> FieldSpec | None:
        return next((f for f in self.fields if f.key == key), None)


_KEY_LINE = re.compile(r"^- (?P<key>[A-Za-z_][A-Za-z0-9_]*):(?:\s(?P<value>.*))?$")
_ITEM_LINE = re.compile(r"^\s+- (?P<item>.*)$")


# =============================================================================
# Encoding
# =============================================================================


_LINE_BREAK_RE = re.compile(r"[ \t]*[\r\n]+[ \t]*")


def _one_line(value: object) -> str:
    """Fold line breaks into single spaces; other whitespace is kept."""
    return _LINE_BREAK_RE.sub(" ", str(value))


def _encode_field(spec: FieldSpec, value: Any) -> list[str]:
    if spec.type is FieldType.TEXT_LIST:
        return [f"- {spec.key}:"] + [f"  - {_one_line(item)}" for item in value or ()]
    if spec.type is FieldType.BOOLEAN:
        rendered = "true" if value else "false"
    elif spec.type is FieldType.RANGE:
        rendered = f"{value[0]}-{value[1]}" if value else ""
    elif value is None:
        rendered = ""
    else:
        rendered = _one_line(value)
    return [f"- {spec.key}: {rendered}".rstrip()]


def encode_section(schema: SectionSchema, values: dict[str, Any], *, level: int = 1) -> str:
    """Render one record as a section at heading ``level``."""
    lines = [f"{'#' * level} {_one_line(values[schema.title_key])}", ""]
    for spec in schema.fields:
        lines.extend(_encode_field(spec, values.get(spec.key)))
    if schema.child is not None and schema.children_key is not None:
        for child_values in values.get(schema.children_key) or ():
            lines.append("")
            lines.append(encode_section(schema.child, child_values, level=level + 1))
    return "\n".join(lines)


def encode_document(schema: SectionSchema, records: Iterable[dict[str, Any]]) -> str:
    """Render records in the given order, one section each."""
    sections = [encode_section(schema, values) for values in records]
    return "\n\n".join(sections) + "\n" if sections else ""


# =============================================================================
# Decoding
# =============================================================================


def _split_sections(lines: list[str], level: int) -> tuple[list[str], list[list[str]]]:
    """Split into (lines before the first heading, [section lines...])."""
    marker = "#" * level + " "
    preamble: list[str] = []
    sections: list[list[str]] = []
    for line in lines:
        if line.startswith(marker):
            sections.append([line])
        elif sections:
            sections[-1].append(line)
        else:
            preamble.append(line)
    return preamble, sections


def _decode_value(
    schema: SectionSchema, section: str, spec: FieldSpec, raw: str
) -> Any:
    raw = raw.strip()
    try:
        if spec.type is FieldType.INTEGER:
            return int(raw)
        if spec.type is FieldType.BOOLEAN:
            if raw not in ("true", "false"):
                raise ValueError("expected true or false")
            return raw == "true"
        if spec.type is FieldType.RANGE:
            if not raw:
                return None
            start, end = raw.split("-", 1)
            return int(start), int(end)
    except ValueError as e:
        raise DocumentFormatError.invalid_value(
            schema.document, section, spec.key, raw, str(e)
        ) from e
    if spec.type is FieldType.OPTIONAL_TEXT:
        return raw or None
    return raw


def decode_section(schema: SectionSchema, lines: list[str], *, level: int = 1) -> dict[str, Any]:
    """Parse one section (heading line included) back into a value dict."""
    section_text = "\n".join(lines).strip()
    title = lines[0][level + 1 :].strip()
    values: dict[str, Any] = {schema.title_key: title}

    body, children = _split_sections(lines[1:], level + 1)
    current_list: list[str] | None = None
    for line in body:
        if not line.strip():
            continue
        item = _ITEM_LINE.match(line)
        if item is not None:
            if current_list is None:
                raise DocumentFormatError.malformed_line(schema.document, section_text, line)
            current_list.append(item.group("item").strip())
            continue
        m = _KEY_LINE.match(line.rstrip())
        spec = schema.field(m.group("key")) if m else None
        if m is None or spec is None or spec.key in values:
            raise DocumentFormatError.malformed_line(schema.document, section_text, line)
        if spec.type is FieldType.TEXT_LIST:
            if (m.group("value") or "").strip():
                raise DocumentFormatError.malformed_line(schema.document, section_text, line)
            current_list = []
            values[spec.key] = current_list
        else:
            current_list = None
            values[spec.key] = _decode_value(schema, section_text, spec, m.group("value") or "")

    for spec in schema.fields:
        if spec.key in values:
            continue
        if spec.type.required:
            raise DocumentFormatError.missing_field(schema.document, section_text, spec.key)
        values[spec.key] = [] if spec.type is FieldType.TEXT_LIST else None

    if schema.child is not None and schema.children_key is not None:
        values[schema.children_key] = [
            decode_section(schema.child, child, level=level + 1) for child in children
        ]
    elif children:
        raise DocumentFormatError.malformed_line(schema.document, section_text, children[0][0])
    return values


def decode_document(schema: SectionSchema, text: str) -> list[dict[str, Any]]:
    """Parse every section of a document, in file order."""
    preamble, sections = _split_sections(text.split("\n"), 1)
    for line in preamble:
        if line.strip():
            raise DocumentFormatError.malformed_line(schema.document, "\n".join(preamble), line)
    return [decode_section(schema, section) for section in sections]
