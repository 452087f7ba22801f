"""Pydantic request models for the Lyrical Vision API.

These models define the JSON schema for the API endpoints that accept a body.
FastAPI uses them for automatic request validation and OpenAPI documentation.

Models
------
LyricsRequest
    Payload for ``POST /api/lyrics`` — the raw lyrics to segment.
SettingsUpdate
    Payload for ``PUT /api/settings`` — a partial update of the shared
    generation settings.  Omitted fields keep their current value.
ApiKeyRequest
    Payload for ``POST /api/key`` — answers a key selection request.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LyricsRequest(BaseModel):
    """Request body for ``POST /api/lyrics``.

    Attributes:
        lyrics: Raw lyrics.  Stanzas are separated by at least one blank line.
    """

    lyrics: str = Field(
        ...,
        description="Raw lyrics; separate stanzas with an empty line.",
    )


class SettingsUpdate(BaseModel):
    """Request body for ``PUT /api/settings``.

    Every field is optional; only fields present in the request are changed.

    Attributes:
        model_id: Image model id from the catalog.
        style_id: Art style id from the catalog, or ``"custom"``.
        custom_style_prompt: Free-form style text used with ``"custom"``.
        aspect_ratio: Aspect ratio id from the catalog (e.g. ``"16:9"``).
        image_size: Size hint for premium models (``"1K"``, ``"2K"``, ``"4K"``).
        context: Visual context shared by every stanza.
        subject: Main subject shared by every stanza.
    """

    model_id: str | None = Field(default=None, description="Image model id.")
    style_id: str | None = Field(default=None, description="Art style id.")
    custom_style_prompt: str | None = Field(
        default=None,
        description="Free-form style text (used when style_id='custom').",
    )
    aspect_ratio: str | None = Field(default=None, description="Aspect ratio id.")
    image_size: str | None = Field(default=None, description="Premium image size hint.")
    context: str | None = Field(default=None, description="Global visual context.")
    subject: str | None = Field(default=None, description="Global main subject.")


class ApiKeyRequest(BaseModel):
    """Request body for ``POST /api/key``.

    Attributes:
        api_key: The key to use for this session.
    """

    api_key: str = Field(..., min_length=1, description="Gemini API key.")
