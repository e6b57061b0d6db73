"""
Versioned entity store shared by characters, styles and scenes.

- head row (name/description) + append-only version rows
- version_number = 1 + max(existing) per entity; a unique index backs this
  up and a collision is retried as a conflict
- the latest version's attribute blob and the head's name/description are
  editable only while no image references that latest version
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from atelier_api.core.db import get_engine, new_ulid, now_iso
from atelier_api.core.errors import Conflict, NotFound, ValidationFailed
from atelier_api.core.obs import emit
from atelier_api.modules.attributes import codec
from atelier_api.modules.prompts.composer import PromptPart
from atelier_api.modules.spaces.service import assert_space_owned

from .kinds import EntityKind

MAX_VERSION_ATTEMPTS = 3

# copied from the source version on clone unless overridden
_COMMON_VERSION_FIELDS = ("base_prompt", "negative_prompt", "base_seed")


def _as_dict(row: Any) -> Dict[str, Any]:
    return dict(row._mapping)


def _safe_json_loads(v: Any) -> Dict[str, Any]:
    if not v:
        return {}
    if isinstance(v, dict):
        return v
    try:
        parsed = json.loads(v)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _encode_attributes(kind: EntityKind, raw: Any) -> str:
    if kind.schema is None or raw is None:
        return json.dumps({})
    return json.dumps(codec.serialize(kind.schema, raw), ensure_ascii=False)


def _clean_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def _row_to_version(kind: EntityKind, d: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": d["id"],
        "version_number": int(d["version_number"]),
        "label": d.get("label"),
    }
    for key in kind.text_field_keys:
        out[key] = d.get(key)
    if kind.attributes_field:
        out[kind.attributes_field] = _safe_json_loads(d.get("attributes_json"))
    out["base_prompt"] = d.get("base_prompt")
    out["negative_prompt"] = d.get("negative_prompt")
    out["base_seed"] = d.get("base_seed")
    out["cloned_from_version_id"] = d.get("cloned_from_version_id")
    out["created_at"] = d["created_at"]
    return out


def _latest_version_ref(d: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not d:
        return None
    return {"id": d["id"], "version_number": int(d["version_number"]), "label": d.get("label")}


def _get_head(conn: Connection, kind: EntityKind, space_id: str, entity_id: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(f"SELECT * FROM {kind.table} WHERE id = :id AND space_id = :space_id LIMIT 1"),
        {"id": entity_id, "space_id": space_id},
    ).first()
    return _as_dict(row) if row is not None else None


def _get_latest_version(conn: Connection, kind: EntityKind, entity_id: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(
            f"SELECT * FROM {kind.version_table} WHERE {kind.fk_column} = :entity_id "
            f"ORDER BY version_number DESC LIMIT 1"
        ),
        {"entity_id": entity_id},
    ).first()
    return _as_dict(row) if row is not None else None


def _version_has_images(conn: Connection, kind: EntityKind, version_id: str) -> bool:
    # soft-deleted images still hold the lock
    row = conn.execute(
        text(f"SELECT id FROM images WHERE {kind.image_fk_column} = :version_id LIMIT 1"),
        {"version_id": version_id},
    ).first()
    return row is not None


def _insert_version(conn: Connection, kind: EntityKind, values: Dict[str, Any]) -> None:
    keys = sorted(values.keys())
    conn.execute(
        text(
            f"INSERT INTO {kind.version_table} ({', '.join(keys)}) "
            f"VALUES ({', '.join(':' + k for k in keys)})"
        ),
        values,
    )


# -------------------------
# Operations
# -------------------------
def list_entities(kind: EntityKind, user_id: str, space_id: str) -> List[Dict[str, Any]]:
    with get_engine().connect() as conn:
        assert_space_owned(conn, space_id, user_id)

        heads = conn.execute(
            text(f"SELECT * FROM {kind.table} WHERE space_id = :space_id ORDER BY created_at DESC, id DESC"),
            {"space_id": space_id},
        ).fetchall()
        if not heads:
            return []

        latest_rows = conn.execute(
            text(
                f"SELECT v.* FROM {kind.version_table} v "
                f"JOIN {kind.table} e ON e.id = v.{kind.fk_column} "
                f"WHERE e.space_id = :space_id AND v.version_number = ("
                f"  SELECT MAX(v2.version_number) FROM {kind.version_table} v2 "
                f"  WHERE v2.{kind.fk_column} = v.{kind.fk_column})"
            ),
            {"space_id": space_id},
        ).fetchall()
        latest_by_entity = {str(r._mapping[kind.fk_column]): _as_dict(r) for r in latest_rows}

        out: List[Dict[str, Any]] = []
        for h in heads:
            d = _as_dict(h)
            out.append(
                {
                    "id": d["id"],
                    "name": d["name"],
                    "description": d.get("description"),
                    "latest_version": _latest_version_ref(latest_by_entity.get(d["id"])),
                }
            )
        return out


def create_entity(kind: EntityKind, user_id: str, space_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationFailed("NAME_REQUIRED", "name is required")
    description = (data.get("description") or "").strip() or None

    now = now_iso()
    entity_id = new_ulid()
    version_id = new_ulid()

    version: Dict[str, Any] = {
        "id": version_id,
        kind.fk_column: entity_id,
        "version_number": 1,
        "label": "v1",
        "attributes_json": _encode_attributes(kind, data.get(kind.attributes_field) if kind.attributes_field else None),
        "base_prompt": _clean_text(data.get("base_prompt")),
        "negative_prompt": _clean_text(data.get("negative_prompt")),
        "base_seed": None,
        "cloned_from_version_id": None,
        "created_at": now,
    }
    for key in kind.text_field_keys:
        version[key] = _clean_text(data.get(key))

    with get_engine().begin() as conn:
        assert_space_owned(conn, space_id, user_id)
        conn.execute(
            text(
                f"INSERT INTO {kind.table} (id, space_id, name, description, created_at, updated_at) "
                f"VALUES (:id, :space_id, :name, :description, :created_at, :updated_at)"
            ),
            {
                "id": entity_id,
                "space_id": space_id,
                "name": name,
                "description": description,
                "created_at": now,
                "updated_at": now,
            },
        )
        _insert_version(conn, kind, version)

    return {
        "id": entity_id,
        "name": name,
        "description": description,
        "latest_version": {"id": version_id, "version_number": 1, "label": "v1"},
    }


def update_entity(
    kind: EntityKind, user_id: str, space_id: str, entity_id: str, patch: Dict[str, Any]
) -> Dict[str, Any]:
    """Only the head's name/description and the latest version's attribute blob change."""
    with get_engine().begin() as conn:
        assert_space_owned(conn, space_id, user_id)

        head = _get_head(conn, kind, space_id, entity_id)
        if head is None:
            raise NotFound(kind.not_found)

        latest = _get_latest_version(conn, kind, entity_id)
        if latest is not None and _version_has_images(conn, kind, latest["id"]):
            raise Conflict(kind.has_generated_images, f"latest {kind.name} version already has generated images")

        name = head["name"]
        raw_name = patch.get("name")
        if raw_name is not None and str(raw_name).strip():
            name = str(raw_name).strip()

        description = head.get("description")
        if "description" in patch and patch["description"] is not None:
            description = str(patch["description"]).strip() or None

        conn.execute(
            text(f"UPDATE {kind.table} SET name = :name, description = :description, updated_at = :updated_at WHERE id = :id"),
            {"name": name, "description": description, "updated_at": now_iso(), "id": entity_id},
        )

        attrs = patch.get(kind.attributes_field) if kind.attributes_field else None
        if attrs is not None and latest is not None and kind.schema is not None:
            conn.execute(
                text(f"UPDATE {kind.version_table} SET attributes_json = :attributes_json WHERE id = :id"),
                {"attributes_json": _encode_attributes(kind, attrs), "id": latest["id"]},
            )

    return {
        "id": entity_id,
        "name": name,
        "description": description,
        "latest_version": _latest_version_ref(latest),
    }


def get_entity_with_versions(kind: EntityKind, user_id: str, space_id: str, entity_id: str) -> Dict[str, Any]:
    with get_engine().connect() as conn:
        assert_space_owned(conn, space_id, user_id)

        head = _get_head(conn, kind, space_id, entity_id)
        if head is None:
            raise NotFound(kind.not_found)

        rows = conn.execute(
            text(f"SELECT * FROM {kind.version_table} WHERE {kind.fk_column} = :entity_id ORDER BY version_number ASC"),
            {"entity_id": entity_id},
        ).fetchall()

        return {
            "id": head["id"],
            "name": head["name"],
            "description": head.get("description"),
            "versions": [_row_to_version(kind, _as_dict(r)) for r in rows],
        }


def clone_version(
    kind: EntityKind,
    user_id: str,
    space_id: str,
    entity_id: str,
    from_version_id: str,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    New version copied from `from_version_id`.

    `overrides` is sparse: a key that is absent or None keeps the source
    value. The attribute blob is always copied verbatim.
    """
    given = {k: v for k, v in (overrides or {}).items() if v is not None}

    for attempt in range(1, MAX_VERSION_ATTEMPTS + 1):
        try:
            with get_engine().begin() as conn:
                assert_space_owned(conn, space_id, user_id)

                if _get_head(conn, kind, space_id, entity_id) is None:
                    raise NotFound(kind.not_found)

                src_row = conn.execute(
                    text(f"SELECT * FROM {kind.version_table} WHERE id = :id AND {kind.fk_column} = :entity_id LIMIT 1"),
                    {"id": from_version_id, "entity_id": entity_id},
                ).first()
                if src_row is None:
                    raise NotFound(kind.version_not_found)
                src = _as_dict(src_row)

                max_row = conn.execute(
                    text(f"SELECT MAX(version_number) AS max_version FROM {kind.version_table} WHERE {kind.fk_column} = :entity_id"),
                    {"entity_id": entity_id},
                ).first()
                next_version = int((max_row._mapping["max_version"] if max_row is not None else None) or 0) + 1

                label = given.get("label")
                if not isinstance(label, str) or not label.strip():
                    label = f"v{next_version}"

                values: Dict[str, Any] = {
                    "id": new_ulid(),
                    kind.fk_column: entity_id,
                    "version_number": next_version,
                    "label": label,
                    "attributes_json": src.get("attributes_json") or json.dumps({}),
                    "cloned_from_version_id": src["id"],
                    "created_at": now_iso(),
                }
                for key in kind.text_field_keys + _COMMON_VERSION_FIELDS:
                    values[key] = given[key] if key in given else src.get(key)

                _insert_version(conn, kind, values)
                return _row_to_version(kind, values)
        except IntegrityError as e:
            emit(
                "warning",
                "entities.version_conflict",
                str(e.orig) if e.orig is not None else str(e),
                None,
                __name__,
                kind=kind.name,
                entity_id=entity_id,
                attempt=attempt,
            )

    raise Conflict("VERSION_CONFLICT", "concurrent version creation, retry the request")


# -------------------------
# Prompt sources
# -------------------------
def load_prompt_part(conn: Connection, kind: EntityKind, space_id: str, version_id: str) -> Optional[PromptPart]:
    """Version joined to its head, scoped to the space. None when absent or foreign."""
    row = conn.execute(
        text(
            f"SELECT v.*, e.name AS entity_name, e.description AS entity_description "
            f"FROM {kind.version_table} v JOIN {kind.table} e ON v.{kind.fk_column} = e.id "
            f"WHERE v.id = :version_id AND e.space_id = :space_id LIMIT 1"
        ),
        {"version_id": version_id, "space_id": space_id},
    ).first()
    if row is None:
        return None
    d = _as_dict(row)
    return PromptPart(
        kind=kind,
        name=d["entity_name"],
        description=d.get("entity_description"),
        fields={key: d.get(key) for key in kind.text_field_keys},
        attributes=_safe_json_loads(d.get("attributes_json")),
        base_prompt=d.get("base_prompt"),
        negative_prompt=d.get("negative_prompt"),
    )
