from __future__ import annotations

import base64
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from atelier_api.core.auth import decode_user_id
from atelier_api.core.config import get_settings, normalize_private_key
from atelier_api.core.errors import GenerationFailed, StorageFailed, Unauthenticated
from atelier_api.core.signing import CloudFrontUrlSigner, NullUrlSigner, build_signer
from atelier_api.core.storage import LocalObjectStorage, S3ObjectStorage, build_storage
from atelier_api.modules.images.providers.base import GenerationRequest
from atelier_api.modules.images.providers.gemini_provider import GeminiImageProvider
from atelier_api.modules.images.providers.mock_provider import MockImageProvider
from atelier_api.modules.images.providers.registry import ServiceRegistry, build_provider


# -------------------------
# auth
# -------------------------
def test_decode_user_id_returns_subject() -> None:
    token = jwt.encode({"sub": "u-1"}, "s3cret", algorithm="HS256")
    assert decode_user_id(token, "s3cret") == "u-1"


@pytest.mark.parametrize(
    "claims, secret",
    [
        ({"sub": "u-1"}, "wrong"),
        ({"email": "a@b.c"}, "s3cret"),
    ],
)
def test_decode_user_id_rejects(claims, secret) -> None:
    token = jwt.encode(claims, "s3cret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        decode_user_id(token, secret)


# -------------------------
# storage
# -------------------------
def test_local_storage_put_delete_is_idempotent(tmp_path) -> None:
    storage = LocalObjectStorage(str(tmp_path))
    storage.put("spaces/s/images/1_2.png", b"png", "image/png")

    assert (tmp_path / "spaces/s/images/1_2.png").read_bytes() == b"png"
    assert storage.public_url("spaces/s/images/1_2.png") is None

    storage.delete("spaces/s/images/1_2.png")
    storage.delete("spaces/s/images/1_2.png")
    assert not (tmp_path / "spaces/s/images/1_2.png").exists()
    assert storage.health()["status"] == "ok"


def test_local_storage_rejects_escaping_keys(tmp_path) -> None:
    storage = LocalObjectStorage(str(tmp_path / "root"))
    with pytest.raises(StorageFailed) as exc:
        storage.put("../outside.png", b"x", "image/png")
    assert exc.value.code == "STORAGE_KEY_INVALID"


class _StubS3Client:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    def put_object(self, **kwargs: Any) -> None:
        self.calls.append({"op": "put", **kwargs})

    def delete_object(self, **kwargs: Any) -> None:
        self.calls.append({"op": "delete", **kwargs})


def test_s3_storage_calls_client() -> None:
    client = _StubS3Client()
    storage = S3ObjectStorage(bucket="imgs", region="eu-west-1", client=client)

    storage.put("spaces/s/images/a.png", b"x", "image/png")
    storage.delete("spaces/s/images/a.png")

    assert client.calls == [
        {"op": "put", "Bucket": "imgs", "Key": "spaces/s/images/a.png", "Body": b"x", "ContentType": "image/png"},
        {"op": "delete", "Bucket": "imgs", "Key": "spaces/s/images/a.png"},
    ]
    assert storage.public_url("spaces/s/images/a.png") == "https://imgs.s3.eu-west-1.amazonaws.com/spaces/s/images/a.png"


def test_build_storage_defaults_to_local(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("AWS_S3_BUCKET", raising=False)
    monkeypatch.delenv("ARGUS_S3_BUCKET", raising=False)
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path))
    assert isinstance(build_storage(get_settings()), LocalObjectStorage)


# -------------------------
# signing
# -------------------------
def _pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode("ascii")


def test_cloudfront_signer_produces_canned_policy_url() -> None:
    fixed = datetime(2030, 1, 1, tzinfo=timezone.utc)
    signer = CloudFrontUrlSigner("cdn.example.com", "KPID", _pem(), clock=lambda: fixed)

    url = signer.sign("spaces/s/images/a.png", ttl_seconds=600)

    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://cdn.example.com/spaces/s/images/a.png"
    assert qs["Key-Pair-Id"] == ["KPID"]
    assert qs["Expires"] == [str(int(fixed.timestamp()) + 600)]
    assert qs["Signature"][0]


def test_build_signer_without_config_is_null(monkeypatch) -> None:
    for k in ("CF_DOMAIN", "CF_KEY_PAIR_ID", "CF_PRIVATE_KEY_PEM"):
        monkeypatch.delenv(k, raising=False)
    signer = build_signer(get_settings())
    assert isinstance(signer, NullUrlSigner)
    assert signer.sign("x") is None


def test_build_signer_with_bad_pem_is_null(monkeypatch) -> None:
    monkeypatch.setenv("CF_DOMAIN", "cdn.example.com")
    monkeypatch.setenv("CF_KEY_PAIR_ID", "KPID")
    monkeypatch.setenv("CF_PRIVATE_KEY_PEM", "not a key")
    assert isinstance(build_signer(get_settings()), NullUrlSigner)


def test_private_key_literal_newlines_are_expanded() -> None:
    assert normalize_private_key("-----BEGIN-----\\nabc\\n-----END-----") == "-----BEGIN-----\nabc\n-----END-----"
    assert normalize_private_key(None) is None


# -------------------------
# providers
# -------------------------
class _FakeModels:
    def __init__(self, chunks: List[Any]) -> None:
        self.chunks = chunks
        self.calls: List[Dict[str, Any]] = []

    def generate_content_stream(self, **kwargs: Any):
        self.calls.append(kwargs)
        return iter(self.chunks)


def _chunk(*parts: Any) -> Any:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def test_gemini_provider_streams_text_and_inline_images() -> None:
    models = _FakeModels(
        [
            SimpleNamespace(candidates=None),
            _chunk(SimpleNamespace(inline_data=None, text="working")),
            _chunk(SimpleNamespace(inline_data=SimpleNamespace(data=b"\x89PNG", mime_type="image/png"), text=None)),
        ]
    )
    provider = GeminiImageProvider(api_key="k", model="img-model", client=SimpleNamespace(models=models))

    chunks = list(provider.stream(GenerationRequest(prompt="p", model="img-model", seed=9, aspect_ratio="1:1", image_size="1K")))

    assert [c.text for c in chunks] == ["working", None]
    assert chunks[1].bytes_base64 == base64.b64encode(b"\x89PNG").decode("ascii")
    assert chunks[1].mime_type == "image/png"

    (call,) = models.calls
    assert call["model"] == "img-model"
    assert call["contents"] == ["p"]
    assert call["config"].seed == 9
    assert call["config"].response_modalities == ["IMAGE", "TEXT"]
    assert call["config"].image_config.aspect_ratio == "1:1"


def test_mock_provider_yields_png() -> None:
    chunks = list(MockImageProvider().stream(GenerationRequest(prompt="p", model="mock-image", seed=1)))
    assert chunks[-1].mime_type == "image/png"
    assert base64.b64decode(chunks[-1].bytes_base64).startswith(b"\x89PNG")


def test_build_provider_selection(monkeypatch) -> None:
    monkeypatch.setenv("IMAGE_PROVIDER", "mock")
    assert isinstance(build_provider(get_settings()), MockImageProvider)

    monkeypatch.setenv("IMAGE_PROVIDER", "gemini")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(GenerationFailed) as exc:
        build_provider(get_settings())
    assert exc.value.code == "GEMINI_NOT_CONFIGURED"


def test_registry_builds_once_and_retries_after_failure() -> None:
    built: List[int] = []
    failures = [True]

    def factory(_settings):
        if failures:
            failures.pop()
            raise GenerationFailed("GEMINI_NOT_CONFIGURED")
        built.append(1)
        return MockImageProvider()

    registry = ServiceRegistry(settings=get_settings(), provider_factory=factory)

    with pytest.raises(GenerationFailed):
        registry.provider()
    first = registry.provider()
    assert registry.provider() is first
    assert built == [1]
