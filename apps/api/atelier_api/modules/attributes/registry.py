from __future__ import annotations

from typing import Dict

from atelier_api.core.errors import NotFound

from .character_appearance import character_appearance_schema
from .schema import AttributeSchema
from .style_definitions import style_definition_schema

# loaded once, read-only for the life of the process
_SCHEMAS: Dict[str, AttributeSchema] = {
    character_appearance_schema.name: character_appearance_schema,
    style_definition_schema.name: style_definition_schema,
}


def get_schema(name: str) -> AttributeSchema:
    schema = _SCHEMAS.get(name)
    if schema is None:
        raise NotFound("SCHEMA_NOT_FOUND", f"unknown attribute schema: {name}")
    return schema
