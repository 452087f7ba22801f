"""Core functionality for storyboard generation.

This module provides the components that turn pasted lyrics into one
generated image per stanza:

- **segmenter**: splits lyrics into stanzas
- **references**: decodes and caps user reference images
- **prompt_composer**: builds the ordered multi-part request for a stanza
- **key_gate**: gates the premium model behind key selection
- **image_service**: sends requests to Gemini image models
- **extractor**: finds the generated image in a response
- **orchestrator**: drives the per-stanza pending/success/error lifecycle
- **session**: wires one user's state and collaborators together
- **config** / **catalog**: environment configuration and selectable options

Architecture Overview
---------------------
Data flows one way::

    lyrics -> segmenter -> StanzaStore
    generate(id) -> KeyGate check -> prompt_composer -> image_service
                 -> extractor -> StanzaStore

Usage Example
-------------
    from lyricalvision.core import StoryboardSession, config

    session = StoryboardSession.from_config(config)
    await session.startup()
    session.load_lyrics("First verse\n\nChorus")
    await session.generate(session.store.all()[0].id)
"""

from lyricalvision.core.catalog import GenerationCatalog, load_catalog
from lyricalvision.core.config import LyricalVisionConfig, config
from lyricalvision.core.key_gate import KeyGate, KeyHost, SessionKeyHost
from lyricalvision.core.orchestrator import GenerationOrchestrator
from lyricalvision.core.segmenter import segment_lyrics
from lyricalvision.core.session import StoryboardSession

__all__ = [
    "GenerationCatalog",
    "GenerationOrchestrator",
    "KeyGate",
    "KeyHost",
    "LyricalVisionConfig",
    "SessionKeyHost",
    "StoryboardSession",
    "config",
    "load_catalog",
    "segment_lyrics",
]
