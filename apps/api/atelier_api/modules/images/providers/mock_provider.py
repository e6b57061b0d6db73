from __future__ import annotations

from typing import Iterator

from .base import GenerationRequest, ImageChunk

# 1x1 transparent PNG
PLACEHOLDER_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class MockImageProvider:
    """
    Offline provider (IMAGE_PROVIDER=mock):
    - one text chunk, then one fixed PNG chunk
    - no network, no credentials
    """

    name = "mock"

    def __init__(self, model: str = "mock-image") -> None:
        self.model = model

    def stream(self, request: GenerationRequest) -> Iterator[ImageChunk]:
        yield ImageChunk(text=f"mock render seed={request.seed}")
        yield ImageChunk(bytes_base64=PLACEHOLDER_PNG_BASE64, mime_type="image/png")
