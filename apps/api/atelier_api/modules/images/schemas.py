from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class ImageGenerateIn(BaseModel):
    space_id: str
    character_version_id: str
    style_version_id: str
    scene_version_id: Optional[str] = None
    # any number; normalized server-side into [0, 2**31)
    seed: Optional[float] = None
    aspect_ratio: Optional[str] = None
    resolution: Optional[str] = None


class ImageOut(BaseModel):
    id: str
    space_id: str
    character_version_id: str
    style_version_id: str
    scene_version_id: Optional[str] = None
    seed: int
    prompt: str
    negative_prompt: Optional[str] = None
    model_name: str
    aspect_ratio: Optional[str] = None
    resolution: Optional[str] = None
    storage_key: str
    mime_type: Optional[str] = None
    created_at: str
    public_url: Optional[str] = None
    signed_url: Optional[str] = None


class ImagesListOut(BaseModel):
    items: List[ImageOut]
