from __future__ import annotations

import threading
from typing import Callable, Optional

from atelier_api.core.config import Settings, get_settings
from atelier_api.core.errors import GenerationFailed
from atelier_api.core.signing import UrlSigner, build_signer
from atelier_api.core.storage import ObjectStorage, build_storage

from .base import ImageProvider
from .gemini_provider import GeminiImageProvider
from .mock_provider import MockImageProvider


def build_provider(settings: Settings) -> ImageProvider:
    """
    Provider selection:
      IMAGE_PROVIDER=mock   -> offline MockImageProvider
      IMAGE_PROVIDER=gemini -> GeminiImageProvider (needs GOOGLE_API_KEY)
    """
    if settings.image_provider == "mock":
        return MockImageProvider()
    if not settings.google_api_key:
        raise GenerationFailed("GEMINI_NOT_CONFIGURED", "GOOGLE_API_KEY is not set")
    return GeminiImageProvider(
        api_key=settings.google_api_key,
        model=settings.image_model,
        timeout_seconds=settings.generation_timeout_seconds,
    )


class ServiceRegistry:
    """
    Process-scoped holder of the external capabilities.

    Each client is built on first use by its factory and cached for the
    lifetime of the registry. A factory that raises caches nothing, so a
    later call retries (e.g. once the API key is configured).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider_factory: Optional[Callable[[Settings], ImageProvider]] = None,
        storage_factory: Optional[Callable[[Settings], ObjectStorage]] = None,
        signer_factory: Optional[Callable[[Settings], UrlSigner]] = None,
    ) -> None:
        self._settings = settings
        self._provider_factory = provider_factory or build_provider
        self._storage_factory = storage_factory or build_storage
        self._signer_factory = signer_factory or build_signer
        self._lock = threading.Lock()
        self._provider: Optional[ImageProvider] = None
        self._storage: Optional[ObjectStorage] = None
        self._signer: Optional[UrlSigner] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def provider(self) -> ImageProvider:
        with self._lock:
            if self._provider is None:
                self._provider = self._provider_factory(self.settings)
            return self._provider

    def storage(self) -> ObjectStorage:
        with self._lock:
            if self._storage is None:
                self._storage = self._storage_factory(self.settings)
            return self._storage

    def signer(self) -> UrlSigner:
        with self._lock:
            if self._signer is None:
                self._signer = self._signer_factory(self.settings)
            return self._signer
