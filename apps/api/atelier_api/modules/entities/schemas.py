from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# category -> property -> str | [str]; the codec normalizes whatever arrives
AttributesIn = Dict[str, Any]


class VersionRefOut(BaseModel):
    id: str
    version_number: int
    label: Optional[str] = None


class EntitySummaryOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    latest_version: Optional[VersionRefOut] = None


class EntitiesListOut(BaseModel):
    items: List[EntitySummaryOut]


class _VersionCommonOut(BaseModel):
    id: str
    version_number: int
    label: Optional[str] = None
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None
    base_seed: Optional[int] = None
    cloned_from_version_id: Optional[str] = None
    created_at: str


class _CloneCommonIn(BaseModel):
    from_version_id: str = Field(min_length=1)
    label: Optional[str] = None
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None
    base_seed: Optional[int] = None


class _PatchCommonIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


# -------------------------
# Characters
# -------------------------
class CharacterCreateIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    identity_summary: Optional[str] = None
    physical_description: Optional[str] = None
    wardrobe_description: Optional[str] = None
    personality_mannerisms: Optional[str] = None
    extra_notes: Optional[str] = None
    appearance: Optional[AttributesIn] = None
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None


class CharacterPatchIn(_PatchCommonIn):
    appearance: Optional[AttributesIn] = None


class CharacterCloneIn(_CloneCommonIn):
    identity_summary: Optional[str] = None
    physical_description: Optional[str] = None
    wardrobe_description: Optional[str] = None
    personality_mannerisms: Optional[str] = None
    extra_notes: Optional[str] = None


class CharacterVersionOut(_VersionCommonOut):
    identity_summary: Optional[str] = None
    physical_description: Optional[str] = None
    wardrobe_description: Optional[str] = None
    personality_mannerisms: Optional[str] = None
    extra_notes: Optional[str] = None
    appearance: Dict[str, Any] = Field(default_factory=dict)


class CharacterDetailOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    versions: List[CharacterVersionOut]


# -------------------------
# Styles
# -------------------------
class StyleCreateIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    art_style: Optional[str] = None
    color_palette: Optional[str] = None
    lighting: Optional[str] = None
    camera: Optional[str] = None
    render_technique: Optional[str] = None
    style_definition: Optional[AttributesIn] = None
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None


class StylePatchIn(_PatchCommonIn):
    style_definition: Optional[AttributesIn] = None


class StyleCloneIn(_CloneCommonIn):
    art_style: Optional[str] = None
    color_palette: Optional[str] = None
    lighting: Optional[str] = None
    camera: Optional[str] = None
    render_technique: Optional[str] = None


class StyleVersionOut(_VersionCommonOut):
    art_style: Optional[str] = None
    color_palette: Optional[str] = None
    lighting: Optional[str] = None
    camera: Optional[str] = None
    render_technique: Optional[str] = None
    style_definition: Dict[str, Any] = Field(default_factory=dict)


class StyleDetailOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    versions: List[StyleVersionOut]


# -------------------------
# Scenes
# -------------------------
class SceneCreateIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    environment_description: Optional[str] = None
    layout_description: Optional[str] = None
    time_of_day: Optional[str] = None
    mood: Optional[str] = None
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None


class ScenePatchIn(_PatchCommonIn):
    pass


class SceneCloneIn(_CloneCommonIn):
    environment_description: Optional[str] = None
    layout_description: Optional[str] = None
    time_of_day: Optional[str] = None
    mood: Optional[str] = None


class SceneVersionOut(_VersionCommonOut):
    environment_description: Optional[str] = None
    layout_description: Optional[str] = None
    time_of_day: Optional[str] = None
    mood: Optional[str] = None


class SceneDetailOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    versions: List[SceneVersionOut]
