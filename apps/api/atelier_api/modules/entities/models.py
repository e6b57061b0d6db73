from __future__ import annotations

from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Character(SQLModel, table=True):
    __tablename__ = "characters"

    id: str = Field(primary_key=True)
    space_id: str = Field(foreign_key="spaces.id", index=True)
    name: str
    description: Optional[str] = Field(default=None)

    created_at: str
    updated_at: str


# append-only except the latest row's attributes_json (edit-locked once an image uses it)
class CharacterVersion(SQLModel, table=True):
    __tablename__ = "character_versions"
    __table_args__ = (UniqueConstraint("character_id", "version_number", name="uq_character_versions_character_id_version"),)

    id: str = Field(primary_key=True)
    character_id: str = Field(foreign_key="characters.id", index=True)
    version_number: int
    label: Optional[str] = Field(default=None)

    identity_summary: Optional[str] = Field(default=None)
    physical_description: Optional[str] = Field(default=None)
    wardrobe_description: Optional[str] = Field(default=None)
    personality_mannerisms: Optional[str] = Field(default=None)
    extra_notes: Optional[str] = Field(default=None)

    attributes_json: str = Field(default="{}")
    base_prompt: Optional[str] = Field(default=None)
    negative_prompt: Optional[str] = Field(default=None)
    base_seed: Optional[int] = Field(default=None)
    cloned_from_version_id: Optional[str] = Field(default=None)

    created_at: str


class Style(SQLModel, table=True):
    __tablename__ = "styles"

    id: str = Field(primary_key=True)
    space_id: str = Field(foreign_key="spaces.id", index=True)
    name: str
    description: Optional[str] = Field(default=None)

    created_at: str
    updated_at: str


class StyleVersion(SQLModel, table=True):
    __tablename__ = "style_versions"
    __table_args__ = (UniqueConstraint("style_id", "version_number", name="uq_style_versions_style_id_version"),)

    id: str = Field(primary_key=True)
    style_id: str = Field(foreign_key="styles.id", index=True)
    version_number: int
    label: Optional[str] = Field(default=None)

    art_style: Optional[str] = Field(default=None)
    color_palette: Optional[str] = Field(default=None)
    lighting: Optional[str] = Field(default=None)
    camera: Optional[str] = Field(default=None)
    render_technique: Optional[str] = Field(default=None)

    attributes_json: str = Field(default="{}")
    base_prompt: Optional[str] = Field(default=None)
    negative_prompt: Optional[str] = Field(default=None)
    base_seed: Optional[int] = Field(default=None)
    cloned_from_version_id: Optional[str] = Field(default=None)

    created_at: str


class Scene(SQLModel, table=True):
    __tablename__ = "scenes"

    id: str = Field(primary_key=True)
    space_id: str = Field(foreign_key="spaces.id", index=True)
    name: str
    description: Optional[str] = Field(default=None)

    created_at: str
    updated_at: str


class SceneVersion(SQLModel, table=True):
    __tablename__ = "scene_versions"
    __table_args__ = (UniqueConstraint("scene_id", "version_number", name="uq_scene_versions_scene_id_version"),)

    id: str = Field(primary_key=True)
    scene_id: str = Field(foreign_key="scenes.id", index=True)
    version_number: int
    label: Optional[str] = Field(default=None)

    environment_description: Optional[str] = Field(default=None)
    layout_description: Optional[str] = Field(default=None)
    time_of_day: Optional[str] = Field(default=None)
    mood: Optional[str] = Field(default=None)

    attributes_json: str = Field(default="{}")
    base_prompt: Optional[str] = Field(default=None)
    negative_prompt: Optional[str] = Field(default=None)
    base_seed: Optional[int] = Field(default=None)
    cloned_from_version_id: Optional[str] = Field(default=None)

    created_at: str
