"""Image generation service client.

:class:`GeminiImageService` sends a :class:`~lyricalvision.core.models.GenerationRequest`
to a Gemini image model through the ``google-genai`` async client and returns
the raw SDK response.  Finding the image in the response is left to
:mod:`lyricalvision.core.extractor`, and classifying failures to
:mod:`lyricalvision.core.errors`; provider errors are propagated unchanged so
their messages can be inspected.

The API key is fetched from a provider callable on every call, so a key
installed mid-session is used by the very next request.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import Any, Protocol

from google import genai
from google.genai import types

from .errors import MissingApiKeyError
from .models import GenerationRequest, InlineDataPart, TextPart

logger = logging.getLogger(__name__)


class ImageService(Protocol):
    """Anything that can turn a generation request into a provider response."""

    async def generate(self, request: GenerationRequest) -> Any: ...


def to_genai_parts(request: GenerationRequest) -> list[types.Part]:
    """Convert request parts to SDK parts, preserving order."""
    parts: list[types.Part] = []
    for part in request.parts:
        if isinstance(part, InlineDataPart):
            parts.append(
                types.Part.from_bytes(data=base64.b64decode(part.data), mime_type=part.mime_type)
            )
        elif isinstance(part, TextPart):
            parts.append(types.Part.from_text(text=part.text))
    return parts


def to_genai_config(request: GenerationRequest) -> types.GenerateContentConfig:
    """Build the SDK config carrying the aspect ratio and optional size hint."""
    if request.image_size:
        image_config = types.ImageConfig(
            aspect_ratio=request.aspect_ratio,
            image_size=request.image_size,
        )
    else:
        image_config = types.ImageConfig(aspect_ratio=request.aspect_ratio)
    return types.GenerateContentConfig(
        response_modalities=["TEXT", "IMAGE"],
        image_config=image_config,
    )


class GeminiImageService:
    """Gemini-backed :class:`ImageService`.

    Args:
        api_key_provider: Returns the key to use for the next call, or None.
        client_factory: Builds a ``genai.Client`` for a key.  Overridable
            for tests.
    """

    def __init__(
        self,
        api_key_provider: Callable[[], str | None],
        client_factory: Callable[[str], genai.Client] | None = None,
    ) -> None:
        self._api_key_provider = api_key_provider
        self._client_factory = client_factory or (lambda key: genai.Client(api_key=key))

    async def generate(self, request: GenerationRequest) -> types.GenerateContentResponse:
        """Send *request* and return the provider response.

        Raises:
            MissingApiKeyError: If no API key is available.
            google.genai.errors.APIError: On any provider-side failure.
        """
        api_key = self._api_key_provider()
        if not api_key:
            raise MissingApiKeyError()

        client = self._client_factory(api_key)
        logger.info(
            f"Requesting image from {request.model_id} "
            f"(aspect={request.aspect_ratio}, size={request.image_size}, "
            f"parts={len(request.parts)})"
        )
        response = await client.aio.models.generate_content(
            model=request.model_id,
            contents=[types.Content(role="user", parts=to_genai_parts(request))],
            config=to_genai_config(request),
        )
        return response
