"""
Object storage capability.

Two backends share one contract:
- LocalObjectStorage: files under STORAGE_ROOT (default ./data/storage)
- S3ObjectStorage: boto3 put_object/delete_object against AWS_S3_BUCKET

delete() is idempotent on both: a missing key is not an error.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from atelier_api.core.config import Settings
from atelier_api.core.errors import StorageFailed


class ObjectStorage(Protocol):
    kind: str

    def put(self, key: str, data: bytes, content_type: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def public_url(self, key: str) -> Optional[str]:
        ...


def _repo_root() -> Path:
    # apps/api/atelier_api/core/storage.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def get_storage_root(raw: Optional[str] = None) -> Path:
    raw = raw or os.getenv("STORAGE_ROOT", "./data/storage")
    p = Path(raw)
    return (_repo_root() / p).resolve() if not p.is_absolute() else p


def _safe_under_root(root: Path, key: str) -> Path:
    candidate = (root / key.lstrip("/")).resolve()
    root_resolved = root.resolve()
    if str(candidate).startswith(str(root_resolved) + os.sep):
        return candidate
    raise StorageFailed("STORAGE_KEY_INVALID", f"key escapes storage root: {key!r}")


class LocalObjectStorage:
    kind = "local_fs"

    def __init__(self, root: Optional[str] = None) -> None:
        self.root = get_storage_root(root)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        _ = content_type  # filesystem keeps no content type
        path = _safe_under_root(self.root, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def delete(self, key: str) -> None:
        path = _safe_under_root(self.root, key)
        path.unlink(missing_ok=True)

    def public_url(self, key: str) -> Optional[str]:
        return None

    def health(self) -> Dict[str, Any]:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            probe = self.root / ".probe_write"
            probe.write_text("ok", encoding="utf-8")
            probe.unlink(missing_ok=True)
            return {"status": "ok", "kind": self.kind, "root": str(self.root.as_posix())}
        except OSError as e:
            return {"status": "error", "kind": self.kind, "root": str(self.root.as_posix()), "error": str(e)}


class S3ObjectStorage:
    kind = "s3"

    def __init__(self, bucket: str, region: str, client: Any = None) -> None:
        self.bucket = bucket
        self.region = region
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self._client = client

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)

    def delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=key)

    def public_url(self, key: str) -> Optional[str]:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key.lstrip('/')}"

    def health(self) -> Dict[str, Any]:
        return {"status": "ok", "kind": self.kind, "bucket": self.bucket, "region": self.region}


def build_storage(settings: Settings) -> ObjectStorage:
    if settings.s3_configured:
        return S3ObjectStorage(bucket=str(settings.s3_bucket), region=str(settings.s3_region))
    return LocalObjectStorage(settings.storage_root)


def storage_health(storage: ObjectStorage) -> Dict[str, Any]:
    health = getattr(storage, "health", None)
    if health is None:
        return {"status": "ok", "kind": getattr(storage, "kind", "unknown")}
    return health()
