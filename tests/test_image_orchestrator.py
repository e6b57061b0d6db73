from __future__ import annotations

import base64
import re
import threading

import pytest
from sqlalchemy import text

from atelier_api.core.db import get_engine
from atelier_api.core.errors import GenerationFailed, NotFound, SpaceNotFoundOrForbidden, StorageFailed
from atelier_api.core.config import get_settings
from atelier_api.modules.entities import service as entities
from atelier_api.modules.entities.kinds import CHARACTER, SCENE, STYLE
from atelier_api.modules.images import service as images
from atelier_api.modules.images.providers.base import ImageChunk
from atelier_api.modules.images.providers.mock_provider import PLACEHOLDER_PNG_BASE64
from atelier_api.modules.images.providers.registry import ServiceRegistry
from atelier_api.modules.spaces.service import create_space

USER = "user-1"


def _latest(kind, space_id, entity_id) -> str:
    return entities.get_entity_with_versions(kind, USER, space_id, entity_id)["versions"][-1]["id"]


@pytest.fixture
def setup(db) -> dict:
    space = create_space(USER, "Studio")
    c = entities.create_entity(
        CHARACTER,
        USER,
        space["id"],
        {"name": "Ada", "identity_summary": "Pilot", "negative_prompt": "blur"},
    )
    s = entities.create_entity(STYLE, USER, space["id"], {"name": "Noir", "art_style": "Ink"})
    sc = entities.create_entity(SCENE, USER, space["id"], {"name": "Hangar", "mood": "Tense"})
    return {
        "space_id": space["id"],
        "character_version_id": _latest(CHARACTER, space["id"], c["id"]),
        "style_version_id": _latest(STYLE, space["id"], s["id"]),
        "scene_version_id": _latest(SCENE, space["id"], sc["id"]),
    }


def _usage_events():
    with get_engine().connect() as conn:
        return [dict(r._mapping) for r in conn.execute(text("SELECT * FROM image_usage_events ORDER BY created_at, id"))]


def test_generate_persists_image_and_usage_event(setup, registry, provider, storage, signer) -> None:
    out = images.generate_image(
        registry,
        USER,
        setup["space_id"],
        setup["character_version_id"],
        setup["style_version_id"],
        scene_version_id=setup["scene_version_id"],
        seed=-5,
        aspect_ratio="16:9",
    )

    assert out["seed"] == 5
    assert out["model_name"] == "test-image-model"
    assert out["negative_prompt"] == "blur"
    assert "## Scene\n- Scene mood: Tense" in out["prompt"]
    assert re.fullmatch(rf"spaces/{setup['space_id']}/images/\d+_5\.png", out["storage_key"])
    assert storage.objects[out["storage_key"]] == base64.b64decode(PLACEHOLDER_PNG_BASE64)
    assert storage.content_types[out["storage_key"]] == "image/png"
    assert out["public_url"] == f"https://bucket.test/{out['storage_key']}"
    assert out["signed_url"] == f"https://cdn.test/{out['storage_key']}?ttl=600"

    (req,) = provider.requests
    assert req.seed == 5
    assert req.prompt == out["prompt"]
    assert req.aspect_ratio == "16:9"
    assert req.image_size == get_settings().image_size

    (event,) = _usage_events()
    assert event["action"] == "CREATE"
    assert event["image_id"] == out["id"]
    assert event["seed"] == 5
    assert event["storage_key"] == out["storage_key"]


def test_generate_stops_at_first_image_chunk_and_closes_stream(setup, registry, provider) -> None:
    provider.chunks = [
        ImageChunk(text="one"),
        ImageChunk(bytes_base64=PLACEHOLDER_PNG_BASE64, mime_type="image/webp"),
        ImageChunk(bytes_base64=PLACEHOLDER_PNG_BASE64, mime_type="image/png"),
        ImageChunk(text="never read"),
    ]

    out = images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert provider.consumed == 2
    assert provider.closed is True
    assert out["storage_key"].endswith(".webp")
    assert out["mime_type"] == "image/webp"
    assert 0 <= out["seed"] < 2**31


def test_generate_without_image_bytes_fails(setup, registry, provider, storage) -> None:
    provider.chunks = [ImageChunk(text="sorry, text only")]

    with pytest.raises(GenerationFailed) as exc:
        images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert exc.value.code == "IMAGE_BYTES_MISSING"
    assert storage.objects == {}
    assert _usage_events() == []


def test_upstream_error_is_wrapped(setup, registry, provider) -> None:
    provider.chunks = []
    provider.error = ConnectionError("reset by peer")

    with pytest.raises(GenerationFailed) as exc:
        images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert exc.value.code == "UPSTREAM_ERROR"
    assert exc.value.envelope_error() == "IMAGE_GENERATION_FAILED"
    assert exc.value.envelope_details()["reason"] == "UPSTREAM_ERROR"


def test_cancelled_generation_stores_nothing(setup, registry, provider, storage) -> None:
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(GenerationFailed) as exc:
        images.generate_image(
            registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"], cancel=cancel
        )

    assert exc.value.code == "GENERATION_CANCELLED"
    assert storage.objects == {}


def test_take_first_image_cancel_mid_stream() -> None:
    cancel = threading.Event()
    closed = []

    def chunks():
        try:
            yield ImageChunk(text="a")
            cancel.set()
            yield ImageChunk(bytes_base64="AAAA")
        finally:
            closed.append(True)

    with pytest.raises(GenerationFailed) as exc:
        images.take_first_image(chunks(), cancel)

    assert exc.value.code == "GENERATION_CANCELLED"
    assert closed == [True]


def test_cross_space_version_is_rejected(setup, registry) -> None:
    other = create_space(USER, "Other")
    foreign = entities.create_entity(CHARACTER, USER, other["id"], {"name": "Stranger"})
    foreign_version = _latest(CHARACTER, other["id"], foreign["id"])

    with pytest.raises(NotFound) as exc:
        images.generate_image(registry, USER, setup["space_id"], foreign_version, setup["style_version_id"])
    assert exc.value.code == "CHARACTER_VERSION_NOT_FOUND"

    with pytest.raises(NotFound) as exc:
        images.generate_image(
            registry,
            USER,
            setup["space_id"],
            setup["character_version_id"],
            setup["style_version_id"],
            scene_version_id="missing",
        )
    assert exc.value.code == "SCENE_VERSION_NOT_FOUND"


def test_style_version_id_in_character_slot_is_rejected(setup, registry) -> None:
    with pytest.raises(NotFound) as exc:
        images.generate_image(registry, USER, setup["space_id"], setup["style_version_id"], setup["style_version_id"])
    assert exc.value.code == "CHARACTER_VERSION_NOT_FOUND"


def test_foreign_user_cannot_generate(setup, registry) -> None:
    with pytest.raises(SpaceNotFoundOrForbidden):
        images.generate_image(registry, "intruder", setup["space_id"], setup["character_version_id"], setup["style_version_id"])


def test_missing_gemini_key_surfaces_not_configured(setup, monkeypatch, storage, signer) -> None:
    monkeypatch.setenv("IMAGE_PROVIDER", "gemini")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    registry = ServiceRegistry(
        settings=get_settings(),
        storage_factory=lambda _s: storage,
        signer_factory=lambda _s: signer,
    )

    with pytest.raises(GenerationFailed) as exc:
        images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])
    assert exc.value.code == "GEMINI_NOT_CONFIGURED"


def test_storage_write_failure_inserts_no_row(setup, registry, storage) -> None:
    storage.fail_put = True

    with pytest.raises(StorageFailed) as exc:
        images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert exc.value.code == "STORAGE_WRITE_FAILED"
    assert images.list_images(registry, USER, setup["space_id"]) == []


def test_usage_event_failure_does_not_fail_generation(setup, registry) -> None:
    with get_engine().begin() as conn:
        conn.execute(text("DROP TABLE image_usage_events"))

    out = images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert [i["id"] for i in images.list_images(registry, USER, setup["space_id"])] == [out["id"]]


def test_delete_is_soft_and_idempotent(setup, registry, storage) -> None:
    out = images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])

    assert images.delete_image(registry, USER, setup["space_id"], out["id"]) is True
    assert images.delete_image(registry, USER, setup["space_id"], out["id"]) is False
    assert images.delete_image(registry, USER, setup["space_id"], "missing") is False

    assert storage.deleted == [out["storage_key"]]
    # storage delete stays safe to repeat
    storage.delete(out["storage_key"])

    assert images.list_images(registry, USER, setup["space_id"]) == []
    with pytest.raises(NotFound) as exc:
        images.get_image(registry, USER, setup["space_id"], out["id"])
    assert exc.value.code == "IMAGE_NOT_FOUND"

    with get_engine().connect() as conn:
        row = conn.execute(text("SELECT deleted_at FROM images WHERE id = :id"), {"id": out["id"]}).first()
    assert row is not None and row[0] is not None

    assert [e["action"] for e in _usage_events()] == ["CREATE", "DELETE"]


def test_delete_survives_storage_failure(setup, registry, storage) -> None:
    out = images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])
    storage.fail_delete = True

    assert images.delete_image(registry, USER, setup["space_id"], out["id"]) is True
    assert images.list_images(registry, USER, setup["space_id"]) == []


def test_list_recomputes_urls(setup, registry, signer) -> None:
    out = images.generate_image(registry, USER, setup["space_id"], setup["character_version_id"], setup["style_version_id"])
    signer.calls.clear()

    (item,) = images.list_images(registry, USER, setup["space_id"])

    assert item["signed_url"] == out["signed_url"]
    assert signer.calls == [(out["storage_key"], 600)]


def test_storage_key_extension_map() -> None:
    assert images.extension_for("image/jpeg") == "jpg"
    assert images.extension_for("image/webp") == "webp"
    assert images.extension_for("application/octet-stream") == "png"
    assert images.extension_for(None) == "png"
    assert images.build_storage_key("sp", 12, "image/jpeg", epoch_ms=1700000000000) == "spaces/sp/images/1700000000000_12.jpg"
