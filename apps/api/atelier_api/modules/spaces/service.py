from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from atelier_api.core.db import get_engine, new_ulid, now_iso
from atelier_api.core.errors import SpaceNotFoundOrForbidden, ValidationFailed
from atelier_api.core.obs import emit
from atelier_api.core.storage import ObjectStorage
from atelier_api.modules.entities.kinds import ALL_KINDS


def assert_space_owned(conn: Connection, space_id: str, user_id: str) -> None:
    """
    Tenant isolation for every space-scoped read/write.

    Missing and foreign spaces raise the same error so callers cannot probe
    for other users' spaces.
    """
    row = conn.execute(
        text("SELECT id FROM spaces WHERE id = :space_id AND owner_user_id = :user_id LIMIT 1"),
        {"space_id": space_id, "user_id": user_id},
    ).first()
    if row is None:
        raise SpaceNotFoundOrForbidden()


def _row_to_space(row: Any) -> Dict[str, Any]:
    d = dict(row._mapping)
    return {
        "id": d["id"],
        "name": d["name"],
        "description": d.get("description"),
        "created_at": d["created_at"],
        "updated_at": d["updated_at"],
    }


def list_spaces(user_id: str) -> List[Dict[str, Any]]:
    with get_engine().connect() as conn:
        rows = conn.execute(
            text("SELECT * FROM spaces WHERE owner_user_id = :user_id ORDER BY created_at DESC, id DESC"),
            {"user_id": user_id},
        ).fetchall()
        return [_row_to_space(r) for r in rows]


def get_space(user_id: str, space_id: str) -> Dict[str, Any]:
    with get_engine().connect() as conn:
        row = conn.execute(
            text("SELECT * FROM spaces WHERE id = :space_id AND owner_user_id = :user_id LIMIT 1"),
            {"space_id": space_id, "user_id": user_id},
        ).first()
        if row is None:
            raise SpaceNotFoundOrForbidden()
        return _row_to_space(row)


def create_space(user_id: str, name: Optional[str], description: Optional[str] = None) -> Dict[str, Any]:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationFailed("NAME_REQUIRED", "name is required")
    desc = (description or "").strip() or None

    now = now_iso()
    space_id = new_ulid()
    with get_engine().begin() as conn:
        conn.execute(
            text(
                "INSERT INTO spaces (id, owner_user_id, name, description, created_at, updated_at) "
                "VALUES (:id, :owner_user_id, :name, :description, :created_at, :updated_at)"
            ),
            {
                "id": space_id,
                "owner_user_id": user_id,
                "name": trimmed,
                "description": desc,
                "created_at": now,
                "updated_at": now,
            },
        )
    return {"id": space_id, "name": trimmed, "description": desc, "created_at": now, "updated_at": now}


def delete_space(user_id: str, space_id: str, storage: Optional[ObjectStorage] = None) -> bool:
    """
    Removes the space with every child row in one transaction. Usage events
    stay for audit. Backing image objects are removed best-effort afterwards.
    """
    with get_engine().begin() as conn:
        row = conn.execute(
            text("SELECT id FROM spaces WHERE id = :space_id AND owner_user_id = :user_id LIMIT 1"),
            {"space_id": space_id, "user_id": user_id},
        ).first()
        if row is None:
            return False

        keys = [
            str(r[0])
            for r in conn.execute(
                text("SELECT storage_key FROM images WHERE space_id = :space_id AND deleted_at IS NULL"),
                {"space_id": space_id},
            ).fetchall()
        ]

        params = {"space_id": space_id}
        conn.execute(text("DELETE FROM images WHERE space_id = :space_id"), params)
        for kind in ALL_KINDS:
            conn.execute(
                text(
                    f"DELETE FROM {kind.version_table} WHERE {kind.fk_column} IN "
                    f"(SELECT id FROM {kind.table} WHERE space_id = :space_id)"
                ),
                params,
            )
            conn.execute(text(f"DELETE FROM {kind.table} WHERE space_id = :space_id"), params)
        conn.execute(text("DELETE FROM spaces WHERE id = :space_id"), params)

    if storage is not None:
        for key in keys:
            try:
                storage.delete(key)
            except Exception as e:
                emit("error", "images.storage_delete.failed", str(e), None, __name__, storage_key=key, space_id=space_id)
    return True
