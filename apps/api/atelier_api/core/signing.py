"""
Signed CDN URLs for stored objects.

CloudFrontUrlSigner signs canned-policy URLs with the distribution key pair;
NullUrlSigner is used when CF_DOMAIN / CF_KEY_PAIR_ID / CF_PRIVATE_KEY_PEM are
not all set. Callers treat a None URL as acceptable.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

from botocore.signers import CloudFrontSigner
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from atelier_api.core.config import Settings
from atelier_api.core.obs import emit

DEFAULT_TTL_SECONDS = 600


class UrlSigner(Protocol):
    def sign(self, key: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> Optional[str]:
        ...


class NullUrlSigner:
    def sign(self, key: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> Optional[str]:
        return None


def _rsa_signer(private_key_pem: str) -> Callable[[bytes], bytes]:
    private_key: Any = serialization.load_pem_private_key(private_key_pem.encode("utf-8"), password=None)

    def _sign(message: bytes) -> bytes:
        # CloudFront only accepts SHA-1 RSA signatures
        return private_key.sign(message, padding.PKCS1v15(), hashes.SHA1())

    return _sign


class CloudFrontUrlSigner:
    def __init__(
        self,
        domain: str,
        key_pair_id: str,
        private_key_pem: str,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.domain = domain.rstrip("/")
        if "://" not in self.domain:
            self.domain = f"https://{self.domain}"
        self._signer = CloudFrontSigner(key_pair_id, _rsa_signer(private_key_pem))
        self._clock = clock

    def sign(self, key: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> Optional[str]:
        url = f"{self.domain}/{key.lstrip('/')}"
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        try:
            return self._signer.generate_presigned_url(url, date_less_than=expires_at)
        except Exception as e:
            emit("error", "signing.failed", str(e), None, __name__, key=key)
            return None


def build_signer(settings: Settings) -> UrlSigner:
    if not settings.cloudfront_configured:
        return NullUrlSigner()
    try:
        return CloudFrontUrlSigner(
            domain=str(settings.cf_domain),
            key_pair_id=str(settings.cf_key_pair_id),
            private_key_pem=str(settings.cf_private_key),
        )
    except ValueError as e:
        # unreadable PEM: run without signed URLs
        emit("error", "signing.failed", f"invalid CloudFront private key: {e}", None, __name__)
        return NullUrlSigner()
