"""Split pasted lyrics into stanzas."""

import logging
import re

from .models import Stanza

logger = logging.getLogger(__name__)

# A stanza break is any whitespace run that contains at least one blank line.
_STANZA_BREAK = re.compile(r"\n\s*\n")


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_stanza_texts(text: str) -> list[str]:
    """Return the trimmed, non-empty stanza texts of *text* in order."""
    pieces = _STANZA_BREAK.split(normalize_line_endings(text))
    return [piece.strip() for piece in pieces if piece.strip()]


def segment_lyrics(text: str) -> list[Stanza]:
    """Split lyrics into new stanzas, one per blank-line separated block.

    Args:
        text: Raw multi-line lyrics in any line-ending style.

    Returns:
        Fresh :class:`Stanza` objects in original order, each with a new id
        and no generation state.  Whitespace-only input yields an empty list.
    """
    stanzas = [Stanza(text=piece) for piece in split_stanza_texts(text)]
    logger.debug(f"Segmented lyrics into {len(stanzas)} stanzas")
    return stanzas
