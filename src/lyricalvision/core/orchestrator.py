"""Per-stanza generation lifecycle.

:class:`GenerationOrchestrator` drives one generation attempt for one stanza:

1. Unknown stanza id: nothing happens.
2. Premium model without a selected key: the key gate's selection flow runs
   and the stanza is left untouched.  The user generates again afterwards.
3. The stanza is marked pending (loading, error cleared, old image kept).
4. A request is composed from the *current* settings and references and
   sent to the image service.
5. Success: the extracted image replaces the stanza's image.
6. Failure: the error is classified and a user-facing message recorded.  A
   rejected key also resets the gate and starts selection again.

Every failure is contained at the stanza boundary; one stanza's failure never
touches another stanza or the session.

Overlapping Requests
--------------------
Requests are not versioned by default, so when the same stanza is generated
twice before the first call resolves, whichever response arrives last
decides the final state.  With ``discard_stale_responses=True`` each request
is stamped with a per-stanza counter and responses whose stamp is no longer
the latest are dropped.

A request for a stanza that is deleted while in flight is never cancelled;
its result is discarded because the store lookup misses.

A key host that fails during selection is logged and contained like any
other failure; the stanza is left as it was.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from .catalog import GenerationCatalog
from .errors import ErrorKind, classify_error, user_message
from .extractor import extract_image_data_uri
from .image_service import ImageService
from .key_gate import KeyGate
from .models import GenerationConfig, ReferenceImage
from .prompt_composer import compose_generation_request
from .store import StanzaStore

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Runs generation requests against a :class:`StanzaStore`.

    Args:
        store: Stanza collection mutated by this orchestrator.
        gate: Key gate consulted before premium requests.
        image_service: Service that performs the generation call.
        catalog: Catalog used for style and model-tier lookups.
        settings_provider: Returns the current shared settings.
        references_provider: Returns the current reference images.
        discard_stale_responses: Drop responses from superseded requests.
    """

    def __init__(
        self,
        store: StanzaStore,
        gate: KeyGate,
        image_service: ImageService,
        catalog: GenerationCatalog,
        settings_provider: Callable[[], GenerationConfig],
        references_provider: Callable[[], Sequence[ReferenceImage]],
        *,
        discard_stale_responses: bool = False,
    ) -> None:
        self.store = store
        self.gate = gate
        self.image_service = image_service
        self.catalog = catalog
        self._settings_provider = settings_provider
        self._references_provider = references_provider
        self.discard_stale_responses = discard_stale_responses
        self._request_counters: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> set[asyncio.Task]:
        """Scheduled generation tasks that have not finished yet."""
        return set(self._tasks)

    def schedule_generation(self, stanza_id: str) -> asyncio.Task:
        """Start :meth:`request_generation` in the background and return its task.

        Must be called from a running event loop.  The task is retained until
        it finishes.
        """
        task = asyncio.create_task(self.request_generation(stanza_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every scheduled task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def forget(self, stanza_id: str | None = None) -> None:
        """Drop request counters for *stanza_id*, or for every stanza if None.

        In-flight responses for a forgotten stanza are discarded when stale
        responses are being dropped.
        """
        if stanza_id is None:
            self._request_counters.clear()
        else:
            self._request_counters.pop(stanza_id, None)

    def _next_stamp(self, stanza_id: str) -> int:
        if not self.discard_stale_responses:
            return 0
        stamp = self._request_counters.get(stanza_id, 0) + 1
        self._request_counters[stanza_id] = stamp
        return stamp

    async def _start_key_selection(self, stanza_id: str) -> None:
        try:
            await self.gate.select_key()
        except Exception as e:
            logger.error(f"Key selection failed for stanza {stanza_id}: {e}", exc_info=True)

    def _is_stale(self, stanza_id: str, stamp: int) -> bool:
        return (
            self.discard_stale_responses
            and self._request_counters.get(stanza_id) != stamp
        )

    async def request_generation(self, stanza_id: str) -> None:
        """Run one generation attempt for *stanza_id*.  Never raises for
        provider or composition failures."""
        stanza = self.store.get(stanza_id)
        if stanza is None:
            logger.debug(f"Generation requested for unknown stanza {stanza_id}")
            return

        settings = self._settings_provider()
        if self.gate.requires_gate(self.catalog.is_premium_model(settings.model_id)):
            logger.info(f"Model {settings.model_id} requires a selected key, starting selection")
            await self._start_key_selection(stanza_id)
            return

        stamp = self._next_stamp(stanza_id)
        self.store.mark_pending(stanza_id)

        try:
            request = compose_generation_request(
                stanza.text,
                settings,
                list(self._references_provider()),
                self.catalog,
            )
            response = await self.image_service.generate(request)
            image_url = extract_image_data_uri(response)
        except Exception as e:
            await self._handle_failure(stanza_id, stamp, e)
            return

        if self._is_stale(stanza_id, stamp):
            logger.info(f"Discarding stale response for stanza {stanza_id} (request #{stamp})")
            return

        if self.store.mark_success(stanza_id, image_url) is None:
            logger.info(f"Stanza {stanza_id} was removed before its image arrived")
        else:
            logger.info(f"Stanza {stanza_id} image generated")

    async def _handle_failure(self, stanza_id: str, stamp: int, error: Exception) -> None:
        kind = classify_error(error)
        message = user_message(kind, error)

        if kind is ErrorKind.UNKNOWN:
            logger.error(f"Generation failed for stanza {stanza_id}: {error}", exc_info=True)
        else:
            logger.warning(f"Generation failed for stanza {stanza_id} ({kind.value}): {error}")

        if kind is ErrorKind.EXPIRED_KEY:
            self.gate.reset()

        if self._is_stale(stanza_id, stamp):
            logger.info(f"Discarding stale failure for stanza {stanza_id} (request #{stamp})")
        else:
            self.store.mark_error(stanza_id, message)

        if kind is ErrorKind.EXPIRED_KEY:
            await self._start_key_selection(stanza_id)
