from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Protocol


@dataclass(frozen=True)
class ImageChunk:
    """One streamed piece of a generation response; any field may be absent."""

    bytes_base64: Optional[str] = None
    mime_type: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    model: str
    seed: int
    aspect_ratio: Optional[str] = None
    image_size: Optional[str] = None


class ImageProvider(Protocol):
    """
    Streaming image generation capability.

    Implementations return an iterator; callers may stop consuming early and
    call `close()` on it when the iterator is a generator.
    """

    name: str
    model: str

    def stream(self, request: GenerationRequest) -> Iterator[ImageChunk]:
        ...
