"""Lyrical Vision - storyboard images for song lyrics, one image per stanza."""

__version__ = "0.1.0"

from lyricalvision.core.config import LyricalVisionConfig, config
from lyricalvision.core.session import StoryboardSession

__all__ = [
    "LyricalVisionConfig",
    "StoryboardSession",
    "config",
]
