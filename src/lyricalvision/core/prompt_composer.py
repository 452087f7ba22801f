"""Per-stanza request composition for the image service.

The composer turns the shared session settings plus one stanza's lyrics into
an ordered, multi-part :class:`~lyricalvision.core.models.GenerationRequest`.
It is pure: the same inputs always produce the same request and nothing is
read from or written to the outside world.

Part Order
----------
::

    [Reference image 1]        (inline data, only if references are attached)
    [Reference image 2]
    [Reference image 3]
    [Text part]

Text Part Structure
-------------------
::

    Art style: [Canned modifier or custom style text]

    Visual context of the entire song: [Context or "Open interpretation"]

    Main subject: [Subject or "Not specified"]

    Scene based on these lyrics:
    "[Stanza text]"

    [Fixed: reference-image or continuity instructions]

    [Fixed: series coherence directive]

Sections are separated by double newlines.

Request Side-Channel
--------------------
The aspect ratio always travels next to the parts.  The image size hint is
only attached for premium-tier models; other models ignore it.
"""

from __future__ import annotations

from collections.abc import Sequence

from .catalog import CUSTOM_STYLE_ID, GenerationCatalog
from .models import GenerationConfig, GenerationRequest, InlineDataPart, ReferenceImage, TextPart

# ---------------------------------------------------------------------------
# Fixed instruction blocks.
# The reference wording asks the model to build on the attached images; the
# continuity wording is used when there is nothing to build on.  The coherence
# directive is appended either way so every image in a storyboard matches.
# ---------------------------------------------------------------------------

_REFERENCE_INSTRUCTIONS = (
    "Use the attached reference images as the visual foundation. Synthesize their "
    "characters, setting and details into this scene, keeping recognisable features "
    "consistent with the references while depicting what the lyrics describe."
)

_CONTINUITY_INSTRUCTIONS = (
    "This image is one frame of a series illustrating the same song. Maintain "
    "continuity with the other frames: the same main subject, the same world and "
    "the same visual language, while depicting what the lyrics describe."
)

_COHERENCE_DIRECTIVE = (
    "Keep a consistent color palette and lighting across the whole series and stay "
    "stylistically coherent with the requested art style. Visualize the lyrics "
    "metaphorically or literally. High quality, detailed. Do not render the lyrics as text."
)

_EMPTY_CONTEXT = "Open interpretation"
_EMPTY_SUBJECT = "Not specified"


class CompositionError(ValueError):
    """Raised when settings cannot be turned into a request."""


def resolve_style_prompt(settings: GenerationConfig, catalog: GenerationCatalog) -> str:
    """Return the style text for *settings*.

    The custom style uses the user's free-form text; every other style uses
    its catalog modifier.

    Raises:
        CompositionError: If the style id is not in the catalog.
    """
    if settings.style_id == CUSTOM_STYLE_ID:
        return settings.custom_style_prompt.strip()

    style = catalog.get_style(settings.style_id)
    if style is None:
        raise CompositionError(f"Unknown art style: {settings.style_id}")
    return style.prompt_modifier


def build_prompt_text(
    style_prompt: str,
    context: str,
    subject: str,
    lyrics: str,
    *,
    has_references: bool,
) -> str:
    """Compile the text part of a generation request.

    Args:
        style_prompt: Resolved art style text.
        context: Global visual context for the whole song.
        subject: Global main subject.
        lyrics: The target stanza's text.
        has_references: Selects the reference-image instructions instead of
            the plain continuity instructions.

    Returns:
        The prompt with sections separated by double newlines.
    """
    parts = [
        f"Art style: {style_prompt}",
        f"Visual context of the entire song: {context.strip() or _EMPTY_CONTEXT}",
        f"Main subject: {subject.strip() or _EMPTY_SUBJECT}",
        f'Scene based on these lyrics:\n"{lyrics}"',
        _REFERENCE_INSTRUCTIONS if has_references else _CONTINUITY_INSTRUCTIONS,
        _COHERENCE_DIRECTIVE,
    ]
    return "\n\n".join(parts)


def compose_generation_request(
    lyrics: str,
    settings: GenerationConfig,
    references: Sequence[ReferenceImage],
    catalog: GenerationCatalog,
) -> GenerationRequest:
    """Build the ordered request for one stanza.

    Args:
        lyrics: The target stanza's text.
        settings: Current shared settings.
        references: Current reference images in attachment order.
        catalog: Catalog used to resolve the style and the model tier.

    Returns:
        A :class:`GenerationRequest` with reference parts first, then one
        text part.
    """
    style_prompt = resolve_style_prompt(settings, catalog)

    parts: list[TextPart | InlineDataPart] = [
        InlineDataPart(data=ref.data, mime_type=ref.mime_type) for ref in references
    ]
    parts.append(
        TextPart(
            build_prompt_text(
                style_prompt,
                settings.context,
                settings.subject,
                lyrics,
                has_references=bool(references),
            )
        )
    )

    image_size = settings.image_size if catalog.is_premium_model(settings.model_id) else None

    return GenerationRequest(
        model_id=settings.model_id,
        parts=tuple(parts),
        aspect_ratio=settings.aspect_ratio,
        image_size=image_size,
    )
