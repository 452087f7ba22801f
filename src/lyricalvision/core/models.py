"""Data models for Lyrical Vision session state and generation requests."""

import uuid
from dataclasses import dataclass, field


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


@dataclass
class Stanza:
    """One lyric segment and its generation state.

    ``is_loading`` is True only while a generation request for this stanza is
    outstanding.  ``image_url`` holds a ``data:`` URI once a generation has
    succeeded and stays in place while a regeneration is pending.
    """

    text: str
    id: str = field(default_factory=new_id)
    image_url: str | None = None
    is_loading: bool = False
    error: str | None = None

    @property
    def has_image(self) -> bool:
        return self.image_url is not None


@dataclass(frozen=True)
class ReferenceImage:
    """A user-supplied image used to steer visual consistency.

    Attributes
    ----------
    data : str
        Base64-encoded image payload
    mime_type : str
        Declared or sniffed MIME type, e.g. ``image/png``
    id : str
        Opaque identifier used for removal
    """

    data: str
    mime_type: str
    id: str = field(default_factory=new_id)


@dataclass
class GenerationConfig:
    """Shared settings read fresh at the moment a generation is requested.

    This is ambient state: it is not owned by any stanza, so changing it only
    affects requests issued afterwards.
    """

    model_id: str
    style_id: str
    aspect_ratio: str
    image_size: str = "1K"
    custom_style_prompt: str = ""
    context: str = ""
    subject: str = ""


@dataclass(frozen=True)
class TextPart:
    """A plain-text request part."""

    text: str


@dataclass(frozen=True)
class InlineDataPart:
    """An inline binary request part (base64 payload plus MIME type)."""

    data: str
    mime_type: str


@dataclass(frozen=True)
class GenerationRequest:
    """Ephemeral payload for one generation attempt.

    Parts are ordered: reference images first, then a single text part.
    ``image_size`` is only set for premium-tier models.
    """

    model_id: str
    parts: tuple[TextPart | InlineDataPart, ...]
    aspect_ratio: str
    image_size: str | None = None

    @property
    def prompt_text(self) -> str:
        """Return the text of the request's text part (empty if none)."""
        return next((p.text for p in self.parts if isinstance(p, TextPart)), "")
