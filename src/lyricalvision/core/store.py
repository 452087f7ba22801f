"""In-memory stanza store with explicit state transitions.

The store is the only place stanza state changes.  Each transition looks the
stanza up by id and is a silent no-op (returning None) when it is missing, so
a response for a deleted stanza simply has no effect.
"""

import logging

from .models import Stanza

logger = logging.getLogger(__name__)


class StanzaStore:
    """Ordered collection of stanzas for one session."""

    def __init__(self) -> None:
        self._stanzas: list[Stanza] = []

    def __len__(self) -> int:
        return len(self._stanzas)

    def __contains__(self, stanza_id: str) -> bool:
        return self.get(stanza_id) is not None

    def all(self) -> list[Stanza]:
        """Return the stanzas in display order."""
        return list(self._stanzas)

    def get(self, stanza_id: str) -> Stanza | None:
        return next((s for s in self._stanzas if s.id == stanza_id), None)

    def replace_all(self, stanzas: list[Stanza]) -> None:
        """Discard the current collection and adopt *stanzas*."""
        self._stanzas = list(stanzas)
        logger.info(f"Stanza collection replaced ({len(self._stanzas)} stanzas)")

    def remove(self, stanza_id: str) -> bool:
        """Remove one stanza.  Returns True if it existed."""
        before = len(self._stanzas)
        self._stanzas = [s for s in self._stanzas if s.id != stanza_id]
        return len(self._stanzas) != before

    def clear(self) -> None:
        self._stanzas = []

    # -- Generation transitions -------------------------------------------

    def mark_pending(self, stanza_id: str) -> Stanza | None:
        """Start a request: set loading and clear the error, keep the image."""
        stanza = self.get(stanza_id)
        if stanza is not None:
            stanza.is_loading = True
            stanza.error = None
        return stanza

    def mark_success(self, stanza_id: str, image_url: str) -> Stanza | None:
        stanza = self.get(stanza_id)
        if stanza is not None:
            stanza.image_url = image_url
            stanza.error = None
            stanza.is_loading = False
        return stanza

    def mark_error(self, stanza_id: str, message: str) -> Stanza | None:
        stanza = self.get(stanza_id)
        if stanza is not None:
            stanza.error = message
            stanza.is_loading = False
        return stanza
