"""Shared fixtures: per-test SQLite database, in-memory capabilities, signed tokens."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, Iterator, List, Optional

ROOT = Path(__file__).resolve().parents[1]
API = ROOT / "apps" / "api"
if str(API) not in sys.path:
    sys.path.insert(0, str(API))

import jwt
import pytest
from fastapi.testclient import TestClient

from atelier_api.core.config import get_settings
from atelier_api.core.db import init_db, reset_engine
from atelier_api.modules.images.providers.base import GenerationRequest, ImageChunk
from atelier_api.modules.images.providers.mock_provider import PLACEHOLDER_PNG_BASE64
from atelier_api.modules.images.providers.registry import ServiceRegistry

TEST_JWT_SECRET = "test-secret"


class MemoryStorage:
    """Object storage fake; delete of a missing key is a no-op like the real backends."""

    kind = "memory"

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_delete = False
        self.fail_put = False

    def put(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise OSError("disk full")
        self.objects[key] = data
        self.content_types[key] = content_type

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise OSError("storage unavailable")
        self.deleted.append(key)
        self.objects.pop(key, None)

    def public_url(self, key: str) -> Optional[str]:
        return f"https://bucket.test/{key}"


class RecordingSigner:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def sign(self, key: str, ttl_seconds: int = 600) -> Optional[str]:
        self.calls.append((key, ttl_seconds))
        return f"https://cdn.test/{key}?ttl={ttl_seconds}"


class ScriptedProvider:
    """Yields the queued chunks in order, then raises `error` if one is set."""

    name = "scripted"

    def __init__(
        self,
        chunks: Optional[List[ImageChunk]] = None,
        error: Optional[Exception] = None,
        model: str = "test-image-model",
    ) -> None:
        self.model = model
        if chunks is None:
            chunks = [
                ImageChunk(text="thinking"),
                ImageChunk(bytes_base64=PLACEHOLDER_PNG_BASE64, mime_type="image/png"),
            ]
        self.chunks = list(chunks)
        self.error = error
        self.requests: List[GenerationRequest] = []
        self.consumed = 0
        self.closed = False

    def stream(self, request: GenerationRequest) -> Iterator[ImageChunk]:
        self.requests.append(request)
        try:
            for chunk in self.chunks:
                self.consumed += 1
                yield chunk
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


def make_token(user_id: str, secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode({"sub": user_id}, secret, algorithm="HS256")


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def db(tmp_path, monkeypatch) -> Iterator[Path]:
    db_path = tmp_path / "app.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.delenv("AWS_S3_BUCKET", raising=False)
    monkeypatch.delenv("ARGUS_S3_BUCKET", raising=False)
    reset_engine()
    init_db()
    yield db_path
    reset_engine()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def signer() -> RecordingSigner:
    return RecordingSigner()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def registry(db, storage, signer, provider) -> ServiceRegistry:
    return ServiceRegistry(
        settings=get_settings(),
        provider_factory=lambda _settings: provider,
        storage_factory=lambda _settings: storage,
        signer_factory=lambda _settings: signer,
    )


@pytest.fixture
def client(registry) -> Iterator[TestClient]:
    from atelier_api.main import create_app

    app = create_app(registry=registry)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_headers():
    return auth_headers
