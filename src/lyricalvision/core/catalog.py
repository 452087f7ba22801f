"""Versioned catalog of the choices offered to a Lyrical Vision session.

The catalog is the single place that lists the selectable image models, the
aspect ratios, the premium image size hints and the canned art styles.  It is
loaded from ``data/catalog.json`` (or ``LYRICALVISION_CATALOG_PATH``) and
validated with Pydantic so that a malformed file fails loudly at startup
rather than producing odd prompts later.

Schema
------
::

    {
      "schema_version": 1,
      "models":        [{"id": ..., "label": ..., "premium": bool}],
      "aspect_ratios": [{"id": "16:9", "label": ...}],
      "image_sizes":   ["1K", "2K", "4K"],
      "styles":        [{"id": ..., "name": ..., "prompt_modifier": ...}]
    }

The style with id ``"custom"`` is special: selecting it makes the prompt
composer use the user's free-form style text instead of ``prompt_modifier``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

CATALOG_SCHEMA_VERSION = 1
CUSTOM_STYLE_ID = "custom"


class CatalogError(Exception):
    """Raised when the catalog file is missing, unreadable or inconsistent."""


class ModelOption(BaseModel):
    """One selectable image model."""

    id: str
    label: str
    premium: bool = Field(
        default=False,
        description="Premium models require a selected paid key before generation.",
    )


class AspectRatioOption(BaseModel):
    """One selectable aspect ratio, e.g. ``16:9``."""

    id: str
    label: str


class ArtStyle(BaseModel):
    """A canned art style and the prompt text it contributes."""

    id: str
    name: str
    prompt_modifier: str


class GenerationCatalog(BaseModel):
    """All choices a session may select from.

    Attributes:
        schema_version: Version of the catalog layout.  Only
            :data:`CATALOG_SCHEMA_VERSION` is accepted.
        models: Selectable image models, in display order.
        aspect_ratios: Selectable aspect ratios, in display order.
        image_sizes: Size hints accepted by premium models.
        styles: Canned art styles, including the ``custom`` placeholder.
    """

    schema_version: int = CATALOG_SCHEMA_VERSION
    models: list[ModelOption] = Field(min_length=1)
    aspect_ratios: list[AspectRatioOption] = Field(min_length=1)
    image_sizes: list[str] = Field(default_factory=lambda: ["1K", "2K", "4K"])
    styles: list[ArtStyle] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_consistency(self) -> GenerationCatalog:
        if self.schema_version != CATALOG_SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported catalog schema_version {self.schema_version}, "
                f"expected {CATALOG_SCHEMA_VERSION}"
            )
        for label, ids in (
            ("model", [m.id for m in self.models]),
            ("aspect ratio", [a.id for a in self.aspect_ratios]),
            ("style", [s.id for s in self.styles]),
        ):
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate {label} ids in catalog: {ids}")
        return self

    def get_model(self, model_id: str) -> ModelOption | None:
        return next((m for m in self.models if m.id == model_id), None)

    def get_style(self, style_id: str) -> ArtStyle | None:
        return next((s for s in self.styles if s.id == style_id), None)

    def has_aspect_ratio(self, ratio_id: str) -> bool:
        return any(a.id == ratio_id for a in self.aspect_ratios)

    def is_premium_model(self, model_id: str) -> bool:
        """Return True if *model_id* is a premium-tier model.

        Unknown model ids are treated as non-premium.
        """
        model = self.get_model(model_id)
        return bool(model and model.premium)


def load_catalog(path: Path) -> GenerationCatalog:
    """Load and validate the catalog at *path*.

    Args:
        path: Path to the catalog JSON file.

    Returns:
        The validated :class:`GenerationCatalog`.

    Raises:
        CatalogError: If the file cannot be read, is not valid JSON, or fails
            schema validation.
    """
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    try:
        catalog = GenerationCatalog.model_validate(raw)
    except ValueError as e:
        raise CatalogError(f"Invalid catalog {path}: {e}") from e

    logger.info(
        f"Loaded catalog v{catalog.schema_version} from {path}: "
        f"{len(catalog.models)} models, {len(catalog.styles)} styles"
    )
    return catalog
