"""
Image synthesis orchestration.

VALIDATING -> COMPOSING -> SYNTHESIZING -> PERSISTING -> LOGGING -> DONE

- the object is uploaded before the row is inserted; a crash in between
  leaves an orphaned object, never a row without bytes
- usage events are best-effort and never fail the request
- URLs are derived on every read and never persisted
"""
from __future__ import annotations

import base64
import binascii
import threading
import time
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import text

from atelier_api.core.db import get_engine, new_ulid, now_iso
from atelier_api.core.errors import AppError, GenerationFailed, NotFound, StorageFailed, ValidationFailed
from atelier_api.core.obs import emit
from atelier_api.modules.entities.kinds import CHARACTER, SCENE, STYLE
from atelier_api.modules.entities.service import load_prompt_part
from atelier_api.modules.prompts.composer import compose
from atelier_api.modules.spaces.service import assert_space_owned

from .providers.base import GenerationRequest, ImageChunk
from .providers.registry import ServiceRegistry
from .seeds import normalize_seed

DEFAULT_MIME_TYPE = "image/png"

_EXT_BY_MIME = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}

ACTION_CREATE = "CREATE"
ACTION_DELETE = "DELETE"


def extension_for(mime_type: Optional[str]) -> str:
    return _EXT_BY_MIME.get((mime_type or "").strip().lower(), "png")


def build_storage_key(space_id: str, seed: int, mime_type: Optional[str], epoch_ms: Optional[int] = None) -> str:
    ms = int(time.time() * 1000) if epoch_ms is None else int(epoch_ms)
    return f"spaces/{space_id}/images/{ms}_{seed}.{extension_for(mime_type)}"


def take_first_image(chunks: Iterator[ImageChunk], cancel: Optional[threading.Event] = None) -> Optional[ImageChunk]:
    """
    Consume `chunks` until the first one carrying image bytes.

    The stream is closed on every exit path, including early return and
    cancellation.
    """
    try:
        for chunk in chunks:
            if cancel is not None and cancel.is_set():
                raise GenerationFailed("GENERATION_CANCELLED", "generation cancelled")
            if chunk.bytes_base64:
                return chunk
        return None
    finally:
        close = getattr(chunks, "close", None)
        if callable(close):
            close()


def _urls(registry: ServiceRegistry, storage_key: str) -> Dict[str, Optional[str]]:
    storage = registry.storage()
    return {
        "public_url": storage.public_url(storage_key),
        "signed_url": registry.signer().sign(storage_key, registry.settings.signed_url_ttl_seconds),
    }


def _row_to_image(registry: ServiceRegistry, row: Any) -> Dict[str, Any]:
    d = dict(row._mapping)
    out = {
        "id": d["id"],
        "space_id": d["space_id"],
        "character_version_id": d["character_version_id"],
        "style_version_id": d["style_version_id"],
        "scene_version_id": d.get("scene_version_id"),
        "seed": int(d["seed"]),
        "prompt": d["prompt"],
        "negative_prompt": d.get("negative_prompt"),
        "model_name": d["model_name"],
        "aspect_ratio": d.get("aspect_ratio"),
        "resolution": d.get("resolution"),
        "storage_key": d["storage_key"],
        "mime_type": d.get("mime_type"),
        "created_at": d["created_at"],
    }
    out.update(_urls(registry, out["storage_key"]))
    return out


def log_usage_event(
    user_id: str,
    space_id: str,
    image_id: Optional[str],
    action: str,
    model_name: str,
    seed: Optional[int] = None,
    storage_key: Optional[str] = None,
    request_id: Optional[str] = None,
) -> bool:
    """Best-effort audit write in its own transaction; failures are logged and swallowed."""
    try:
        with get_engine().begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO image_usage_events "
                    "(id, user_id, space_id, image_id, action, model_name, seed, storage_key, created_at) "
                    "VALUES (:id, :user_id, :space_id, :image_id, :action, :model_name, :seed, :storage_key, :created_at)"
                ),
                {
                    "id": new_ulid(),
                    "user_id": user_id,
                    "space_id": space_id,
                    "image_id": image_id,
                    "action": action,
                    "model_name": model_name,
                    "seed": seed,
                    "storage_key": storage_key,
                    "created_at": now_iso(),
                },
            )
        return True
    except Exception as e:
        emit(
            "error",
            "images.usage_event.failed",
            str(e),
            request_id,
            __name__,
            action=action,
            image_id=image_id,
            space_id=space_id,
        )
        return False


def _require_id(raw: Optional[str], field: str) -> str:
    v = (raw or "").strip()
    if not v:
        raise ValidationFailed(f"{field.upper()}_REQUIRED", f"{field} is required")
    return v


def generate_image(
    registry: ServiceRegistry,
    user_id: str,
    space_id: str,
    character_version_id: str,
    style_version_id: str,
    scene_version_id: Optional[str] = None,
    seed: Optional[float] = None,
    aspect_ratio: Optional[str] = None,
    resolution: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    character_version_id = _require_id(character_version_id, "character_version_id")
    style_version_id = _require_id(style_version_id, "style_version_id")
    scene_version_id = (scene_version_id or "").strip() or None

    # VALIDATING
    with get_engine().connect() as conn:
        assert_space_owned(conn, space_id, user_id)

        character = load_prompt_part(conn, CHARACTER, space_id, character_version_id)
        if character is None:
            raise NotFound(CHARACTER.version_not_found)
        style = load_prompt_part(conn, STYLE, space_id, style_version_id)
        if style is None:
            raise NotFound(STYLE.version_not_found)
        scene = None
        if scene_version_id:
            scene = load_prompt_part(conn, SCENE, space_id, scene_version_id)
            if scene is None:
                raise NotFound(SCENE.version_not_found)

    # COMPOSING
    composed = compose(character, style, scene)

    provider = registry.provider()
    settings = registry.settings
    normalized_seed = normalize_seed(seed)

    # SYNTHESIZING
    emit(
        "info",
        "images.generate.start",
        f"provider={provider.name} model={provider.model}",
        request_id,
        __name__,
        space_id=space_id,
        seed=normalized_seed,
    )
    req = GenerationRequest(
        prompt=composed.prompt,
        model=provider.model,
        seed=normalized_seed,
        aspect_ratio=aspect_ratio or None,
        image_size=resolution or settings.image_size,
    )
    try:
        if cancel is not None and cancel.is_set():
            raise GenerationFailed("GENERATION_CANCELLED", "generation cancelled")
        chunk = take_first_image(provider.stream(req), cancel)
    except AppError as e:
        emit("error", "images.generate.failed", e.message, request_id, __name__, reason=e.code, space_id=space_id)
        raise
    except Exception as e:
        emit("error", "images.generate.failed", str(e), request_id, __name__, reason="UPSTREAM_ERROR", space_id=space_id)
        raise GenerationFailed("UPSTREAM_ERROR", "image generation failed", {"type": type(e).__name__}) from e

    if chunk is None or not chunk.bytes_base64:
        emit("error", "images.generate.failed", "no image bytes in response", request_id, __name__, reason="IMAGE_BYTES_MISSING", space_id=space_id)
        raise GenerationFailed("IMAGE_BYTES_MISSING", "model returned no image bytes")

    # PERSISTING
    try:
        data = base64.b64decode(chunk.bytes_base64)
    except (binascii.Error, ValueError) as e:
        raise GenerationFailed("IMAGE_BYTES_MISSING", "model returned undecodable image bytes") from e

    mime_type = chunk.mime_type or DEFAULT_MIME_TYPE
    storage_key = build_storage_key(space_id, normalized_seed, mime_type)

    storage = registry.storage()
    try:
        storage.put(storage_key, data, mime_type)
    except StorageFailed:
        raise
    except Exception as e:
        raise StorageFailed("STORAGE_WRITE_FAILED", "failed to store image", {"type": type(e).__name__}) from e

    image_id = new_ulid()
    values = {
        "id": image_id,
        "space_id": space_id,
        "character_version_id": character_version_id,
        "style_version_id": style_version_id,
        "scene_version_id": scene_version_id,
        "seed": normalized_seed,
        "prompt": composed.prompt,
        "negative_prompt": composed.negative_prompt,
        "model_name": provider.model,
        "aspect_ratio": aspect_ratio or None,
        "resolution": resolution or None,
        "storage_key": storage_key,
        "mime_type": mime_type,
        "created_at": now_iso(),
    }
    with get_engine().begin() as conn:
        conn.execute(
            text(
                "INSERT INTO images (id, space_id, character_version_id, style_version_id, scene_version_id, "
                "seed, prompt, negative_prompt, model_name, aspect_ratio, resolution, storage_key, mime_type, "
                "created_at, deleted_at) VALUES (:id, :space_id, :character_version_id, :style_version_id, "
                ":scene_version_id, :seed, :prompt, :negative_prompt, :model_name, :aspect_ratio, :resolution, "
                ":storage_key, :mime_type, :created_at, NULL)"
            ),
            values,
        )

    # LOGGING
    log_usage_event(
        user_id,
        space_id,
        image_id,
        ACTION_CREATE,
        provider.model,
        seed=normalized_seed,
        storage_key=storage_key,
        request_id=request_id,
    )
    emit("info", "images.generate.done", storage_key, request_id, __name__, image_id=image_id, space_id=space_id)

    out = dict(values)
    out.update(_urls(registry, storage_key))
    return out


def list_images(registry: ServiceRegistry, user_id: str, space_id: str) -> List[Dict[str, Any]]:
    with get_engine().connect() as conn:
        assert_space_owned(conn, space_id, user_id)
        rows = conn.execute(
            text(
                "SELECT * FROM images WHERE space_id = :space_id AND deleted_at IS NULL "
                "ORDER BY created_at DESC, id DESC"
            ),
            {"space_id": space_id},
        ).fetchall()
    return [_row_to_image(registry, r) for r in rows]


def get_image(registry: ServiceRegistry, user_id: str, space_id: str, image_id: str) -> Dict[str, Any]:
    with get_engine().connect() as conn:
        assert_space_owned(conn, space_id, user_id)
        row = conn.execute(
            text("SELECT * FROM images WHERE id = :id AND space_id = :space_id AND deleted_at IS NULL LIMIT 1"),
            {"id": image_id, "space_id": space_id},
        ).first()
    if row is None:
        raise NotFound("IMAGE_NOT_FOUND")
    return _row_to_image(registry, row)


def delete_image(
    registry: ServiceRegistry,
    user_id: str,
    space_id: str,
    image_id: str,
    request_id: Optional[str] = None,
) -> bool:
    """
    Soft delete. False when the image is missing or already deleted.

    Storage cleanup and the audit event run after the commit and never undo it.
    """
    with get_engine().begin() as conn:
        assert_space_owned(conn, space_id, user_id)
        row = conn.execute(
            text("SELECT * FROM images WHERE id = :id AND space_id = :space_id LIMIT 1"),
            {"id": image_id, "space_id": space_id},
        ).first()
        if row is None:
            return False
        d = dict(row._mapping)
        if d.get("deleted_at"):
            return False
        conn.execute(
            text("UPDATE images SET deleted_at = :deleted_at WHERE id = :id AND deleted_at IS NULL"),
            {"deleted_at": now_iso(), "id": image_id},
        )

    storage_key = str(d["storage_key"])
    try:
        registry.storage().delete(storage_key)
    except Exception as e:
        emit("error", "images.storage_delete.failed", str(e), request_id, __name__, storage_key=storage_key, image_id=image_id)

    log_usage_event(
        user_id,
        space_id,
        image_id,
        ACTION_DELETE,
        str(d["model_name"]),
        seed=int(d["seed"]) if d.get("seed") is not None else None,
        storage_key=storage_key,
        request_id=request_id,
    )
    return True
