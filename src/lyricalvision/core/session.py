"""Session wiring for one Lyrical Vision user.

A :class:`StoryboardSession` owns everything one user works on: the stanza
store, the shared generation settings, the reference image library, the key
gate and the orchestrator.  Nothing is persisted; a session lives as long as
the process that created it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import fields

from .catalog import GenerationCatalog, load_catalog
from .config import LyricalVisionConfig
from .image_service import GeminiImageService, ImageService
from .key_gate import KeyGate, KeyHost, SessionKeyHost
from .models import GenerationConfig, Stanza
from .orchestrator import GenerationOrchestrator
from .references import ReferenceImageLibrary
from .segmenter import segment_lyrics
from .store import StanzaStore

logger = logging.getLogger(__name__)


class SettingsError(ValueError):
    """Raised when a settings update names something not in the catalog."""


class StoryboardSession:
    """All state and collaborators for one storyboard.

    Args:
        config: Application configuration (defaults, behaviour switches).
        catalog: Catalog of selectable options.
        key_host: Host capability for key selection.  Defaults to a
            :class:`SessionKeyHost` seeded with ``config.api_key``.
        image_service: Generation service.  Defaults to a
            :class:`GeminiImageService` reading the key from ``key_host``.
    """

    def __init__(
        self,
        config: LyricalVisionConfig,
        catalog: GenerationCatalog,
        key_host: KeyHost | None = None,
        image_service: ImageService | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.key_host = key_host if key_host is not None else SessionKeyHost(config.api_key)

        if image_service is None:
            image_service = GeminiImageService(
                api_key_provider=lambda: getattr(self.key_host, "api_key", config.api_key)
            )

        self.settings = self.default_settings()
        self.store = StanzaStore()
        self.references = ReferenceImageLibrary(max_images=config.max_reference_images)
        self.gate = KeyGate(self.key_host, verify_after_select=config.verify_key_after_select)
        self.orchestrator = GenerationOrchestrator(
            store=self.store,
            gate=self.gate,
            image_service=image_service,
            catalog=catalog,
            settings_provider=lambda: self.settings,
            references_provider=lambda: self.references.images,
            discard_stale_responses=config.discard_stale_responses,
        )

    @classmethod
    def from_config(cls, config: LyricalVisionConfig) -> StoryboardSession:
        """Build a session with the catalog named by *config*."""
        return cls(config, load_catalog(config.catalog_path))

    def default_settings(self) -> GenerationConfig:
        settings = GenerationConfig(
            model_id=self.config.default_model_id,
            style_id=self.config.default_style_id,
            aspect_ratio=self.config.default_aspect_ratio,
            image_size=self.config.premium_image_size,
        )
        self._validate_settings(settings)
        return settings

    async def startup(self) -> None:
        """Probe the key host once so the gate starts in the right state."""
        await self.gate.refresh()

    # -- Stanzas ------------------------------------------------------------

    def load_lyrics(self, text: str) -> list[Stanza]:
        """Segment *text* and replace the stanza collection.

        Whitespace-only input leaves the current collection untouched and
        returns an empty list.
        """
        stanzas = segment_lyrics(text)
        if not stanzas:
            logger.info("Ignoring empty lyrics input")
            return []
        self.store.replace_all(stanzas)
        self.orchestrator.forget()
        return stanzas

    def delete_stanza(self, stanza_id: str) -> bool:
        self.orchestrator.forget(stanza_id)
        return self.store.remove(stanza_id)

    def reset(self) -> None:
        """Start a new project: drop stanzas, references and free-form text.

        In-flight requests keep running; their results are discarded.
        """
        self.store.clear()
        self.orchestrator.forget()
        self.references.clear()
        self.settings.context = ""
        self.settings.subject = ""
        self.settings.custom_style_prompt = ""
        logger.info("Session reset")

    def generate(self, stanza_id: str) -> asyncio.Task:
        return self.orchestrator.schedule_generation(stanza_id)

    def generate_all(self) -> list[asyncio.Task]:
        """Schedule every stanza that has no image and is not loading."""
        return [
            self.orchestrator.schedule_generation(stanza.id)
            for stanza in self.store.all()
            if not stanza.has_image and not stanza.is_loading
        ]

    # -- Settings -----------------------------------------------------------

    def update_settings(self, **changes) -> GenerationConfig:
        """Apply *changes* to the shared settings.

        Only fields of :class:`GenerationConfig` are accepted.  The update is
        validated as a whole and applied only if valid.

        Raises:
            SettingsError: For unknown fields or values not in the catalog.
        """
        known = {f.name for f in fields(GenerationConfig)}
        unknown = set(changes) - known
        if unknown:
            raise SettingsError(f"Unknown settings: {', '.join(sorted(unknown))}")

        candidate = GenerationConfig(
            **({name: getattr(self.settings, name) for name in known} | changes)
        )
        self._validate_settings(candidate)
        self.settings = candidate
        logger.info(
            f"Settings updated: model={candidate.model_id}, style={candidate.style_id}, "
            f"aspect={candidate.aspect_ratio}"
        )
        return candidate

    def _validate_settings(self, settings: GenerationConfig) -> None:
        if self.catalog.get_model(settings.model_id) is None:
            raise SettingsError(f"Unknown model: {settings.model_id}")
        if self.catalog.get_style(settings.style_id) is None:
            raise SettingsError(f"Unknown art style: {settings.style_id}")
        if not self.catalog.has_aspect_ratio(settings.aspect_ratio):
            raise SettingsError(f"Unknown aspect ratio: {settings.aspect_ratio}")
        if settings.image_size not in self.catalog.image_sizes:
            raise SettingsError(f"Unknown image size: {settings.image_size}")

    @property
    def requires_gate(self) -> bool:
        return self.gate.requires_gate(self.catalog.is_premium_model(self.settings.model_id))
