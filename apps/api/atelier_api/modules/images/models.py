from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel


# soft delete only: deleted rows keep the version edit-lock and audit linkage
class Image(SQLModel, table=True):
    __tablename__ = "images"

    id: str = Field(primary_key=True)
    space_id: str = Field(foreign_key="spaces.id", index=True)
    character_version_id: str = Field(foreign_key="character_versions.id", index=True)
    style_version_id: str = Field(foreign_key="style_versions.id", index=True)
    scene_version_id: Optional[str] = Field(default=None, foreign_key="scene_versions.id", index=True)

    seed: int
    prompt: str
    negative_prompt: Optional[str] = Field(default=None)
    model_name: str
    aspect_ratio: Optional[str] = Field(default=None)
    resolution: Optional[str] = Field(default=None)

    storage_key: str
    mime_type: Optional[str] = Field(default=None)

    created_at: str
    deleted_at: Optional[str] = Field(default=None, index=True)


# append-only audit log; no FKs so rows outlive their space and image
class ImageUsageEvent(SQLModel, table=True):
    __tablename__ = "image_usage_events"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    space_id: str = Field(index=True)
    image_id: Optional[str] = Field(default=None, index=True)
    action: str  # CREATE | DELETE
    model_name: str
    seed: Optional[int] = Field(default=None)
    storage_key: Optional[str] = Field(default=None)

    created_at: str
