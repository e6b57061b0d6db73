"""
Per-kind descriptors for the versioned entity store.

Characters, styles and scenes share one store and one prompt composer; what
differs (tables, free-text fields, attribute schema, prompt wording) is
captured here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from atelier_api.modules.attributes.character_appearance import VISUAL_CATEGORY_KEYS, character_appearance_schema
from atelier_api.modules.attributes.schema import AttributeSchema
from atelier_api.modules.attributes.style_definitions import style_definition_schema


@dataclass(frozen=True)
class TextField:
    key: str
    label: str


@dataclass(frozen=True)
class EntityKind:
    name: str
    table: str
    version_table: str
    fk_column: str
    image_fk_column: str
    text_fields: Tuple[TextField, ...]
    # API-facing name of the attribute blob ("appearance", ...)
    attributes_field: Optional[str]
    schema: Optional[AttributeSchema]
    # None -> every category renders into the prompt
    relevant_categories: Optional[FrozenSet[str]]
    section_title: str
    fallback_label: str

    @property
    def code(self) -> str:
        return self.name.upper()

    @property
    def not_found(self) -> str:
        return f"{self.code}_NOT_FOUND"

    @property
    def version_not_found(self) -> str:
        return f"{self.code}_VERSION_NOT_FOUND"

    @property
    def has_generated_images(self) -> str:
        return f"{self.code}_HAS_GENERATED_IMAGES"

    @property
    def text_field_keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.text_fields)


CHARACTER = EntityKind(
    name="character",
    table="characters",
    version_table="character_versions",
    fk_column="character_id",
    image_fk_column="character_version_id",
    text_fields=(
        TextField("identity_summary", "Character identity"),
        TextField("physical_description", "Physical description"),
        TextField("wardrobe_description", "Wardrobe"),
        TextField("personality_mannerisms", "Personality and mannerisms"),
        TextField("extra_notes", "Additional character notes"),
    ),
    attributes_field="appearance",
    schema=character_appearance_schema,
    relevant_categories=VISUAL_CATEGORY_KEYS,
    section_title="Character",
    fallback_label="Character",
)

STYLE = EntityKind(
    name="style",
    table="styles",
    version_table="style_versions",
    fk_column="style_id",
    image_fk_column="style_version_id",
    text_fields=(
        TextField("art_style", "Art style"),
        TextField("color_palette", "Color palette"),
        TextField("lighting", "Lighting"),
        TextField("camera", "Camera"),
        TextField("render_technique", "Rendering"),
    ),
    attributes_field="style_definition",
    schema=style_definition_schema,
    relevant_categories=None,
    section_title="Art Style",
    fallback_label="Style",
)

SCENE = EntityKind(
    name="scene",
    table="scenes",
    version_table="scene_versions",
    fk_column="scene_id",
    image_fk_column="scene_version_id",
    text_fields=(
        TextField("environment_description", "Scene environment"),
        TextField("layout_description", "Scene layout"),
        TextField("time_of_day", "Time of day"),
        TextField("mood", "Scene mood"),
    ),
    attributes_field=None,
    schema=None,
    relevant_categories=None,
    section_title="Scene",
    fallback_label="Scene",
)

ALL_KINDS: Tuple[EntityKind, ...] = (CHARACTER, STYLE, SCENE)
KINDS_BY_NAME: Dict[str, EntityKind] = {k.name: k for k in ALL_KINDS}
