"""
Attribute value codec.

Converts loose client input into schema-conformant values, produces the
minimal stored form, and renders values into prompt lines. The schema is
authoritative: unknown categories/properties are dropped, missing ones take
the empty default.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .schema import AttributeProperty, AttributeSchema, AttributeValue, AttributeValues


def _empty_value(prop: AttributeProperty) -> AttributeValue:
    return [] if prop.type == "tags" else ""


def normalize_tags(raw: Any) -> List[str]:
    """
    Tags accept a list or a comma-joined string. Each piece is split on ',',
    trimmed, empties dropped, duplicates removed (first occurrence wins).
    """
    if isinstance(raw, str):
        pieces: Iterable[Any] = [raw]
    elif isinstance(raw, (list, tuple)):
        pieces = raw
    else:
        return []

    out: List[str] = []
    seen = set()
    for piece in pieces:
        if piece is None or isinstance(piece, (dict, list, tuple)):
            continue
        for part in str(piece).split(","):
            v = part.strip()
            if v and v not in seen:
                seen.add(v)
                out.append(v)
    return out


def _coerce_string(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (list, tuple)) and raw and isinstance(raw[0], str):
        return raw[0]
    return ""


def _category_source(values: Any, key: str) -> Dict[str, Any]:
    if not isinstance(values, dict):
        return {}
    src = values.get(key)
    return src if isinstance(src, dict) else {}


def build_empty(schema: AttributeSchema) -> AttributeValues:
    return {c.key: {p.key: _empty_value(p) for p in c.properties} for c in schema.categories}


def normalize_existing(schema: AttributeSchema, existing: Any) -> AttributeValues:
    result: AttributeValues = {}
    for category in schema.categories:
        src = _category_source(existing, category.key)
        out: Dict[str, AttributeValue] = {}
        for prop in category.properties:
            if prop.key not in src:
                out[prop.key] = _empty_value(prop)
            elif prop.type == "tags":
                out[prop.key] = normalize_tags(src[prop.key])
            else:
                out[prop.key] = _coerce_string(src[prop.key])
        result[category.key] = out
    return result


def serialize(schema: AttributeSchema, values: Any) -> AttributeValues:
    """Minimal persisted form: trimmed, deduped, empties and empty categories omitted."""
    result: AttributeValues = {}
    for category in schema.categories:
        src = _category_source(values, category.key)
        if not src:
            continue
        out: Dict[str, AttributeValue] = {}
        for prop in category.properties:
            raw = src.get(prop.key)
            if prop.type == "tags":
                tags = normalize_tags(raw)
                if tags:
                    out[prop.key] = tags
            else:
                s = _coerce_string(raw).strip()
                if s:
                    out[prop.key] = s
        if out:
            result[category.key] = out
    return result


def _display(prop: AttributeProperty, value: str) -> str:
    if prop.type in ("enum", "tags"):
        return prop.option_label(value)
    return value


def render_lines(
    schema: AttributeSchema,
    values: Any,
    relevant_category_keys: Optional[Iterable[str]] = None,
) -> List[str]:
    relevant = set(relevant_category_keys) if relevant_category_keys is not None else None
    clean = serialize(schema, values)

    lines: List[str] = []
    for category in schema.sorted_categories():
        if relevant is not None and category.key not in relevant:
            continue
        stored = clean.get(category.key)
        if not stored:
            continue
        parts: List[str] = []
        for prop in category.properties:
            v = stored.get(prop.key)
            if v is None:
                continue
            if isinstance(v, list):
                shown = ", ".join(_display(prop, t) for t in v)
            else:
                shown = _display(prop, v)
            parts.append(f"{prop.label}: {shown}")
        if parts:
            lines.append(f"{category.label}: " + "; ".join(parts))
    return lines
