from __future__ import annotations

import base64
from typing import Any, Iterator, Optional

from google import genai
from google.genai import types

from .base import GenerationRequest, ImageChunk


class GeminiImageProvider:
    """
    Gemini image generation over the streaming endpoint.

    The client is built once and shared; each `stream` call carries the full
    request, so concurrent use is safe.
    """

    name = "gemini"

    def __init__(self, api_key: str, model: str, timeout_seconds: int = 120, client: Any = None) -> None:
        self.model = model
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def _config(self, request: GenerationRequest) -> types.GenerateContentConfig:
        image_config: Optional[types.ImageConfig] = None
        if request.aspect_ratio or request.image_size:
            image_config = types.ImageConfig(
                aspect_ratio=request.aspect_ratio or None,
                image_size=request.image_size or None,
            )
        return types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
            seed=request.seed,
            image_config=image_config,
        )

    def stream(self, request: GenerationRequest) -> Iterator[ImageChunk]:
        responses = self.client.models.generate_content_stream(
            model=request.model or self.model,
            contents=[request.prompt],
            config=self._config(request),
        )
        for chunk in responses:
            candidates = getattr(chunk, "candidates", None) or []
            if not candidates:
                continue
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) or []
            for part in parts:
                inline = getattr(part, "inline_data", None)
                if inline is not None and getattr(inline, "data", None):
                    data = inline.data
                    encoded = data if isinstance(data, str) else base64.b64encode(data).decode("ascii")
                    yield ImageChunk(bytes_base64=encoded, mime_type=getattr(inline, "mime_type", None))
                elif getattr(part, "text", None):
                    yield ImageChunk(text=part.text)
