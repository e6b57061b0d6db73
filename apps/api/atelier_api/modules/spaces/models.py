from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel


# tenant boundary: every character/style/scene/image row hangs off a space
class Space(SQLModel, table=True):
    __tablename__ = "spaces"

    id: str = Field(primary_key=True)
    owner_user_id: str = Field(index=True)
    name: str
    description: Optional[str] = Field(default=None)

    created_at: str
    updated_at: str
