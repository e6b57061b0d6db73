from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SpaceCreateIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class SpaceOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: str
    updated_at: str


class SpacesListOut(BaseModel):
    items: List[SpaceOut]
