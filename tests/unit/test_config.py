"""Tests for lyricalvision.core.config — configuration management.

Tests cover:
- Default values for configuration fields.
- Environment variable overrides via the LYRICALVISION_ prefix.
- Pydantic validation constraints (port range, reference cap, literals).
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lyricalvision.core.config import DEFAULT_CATALOG_PATH, LyricalVisionConfig


class TestConfigDefaults:
    """Verify that LyricalVisionConfig provides sensible defaults."""

    def test_defaults(self, monkeypatch):
        for name in ("API_KEY", "DEFAULT_MODEL_ID", "MAX_REFERENCE_IMAGES", "SERVER_PORT"):
            monkeypatch.delenv(f"LYRICALVISION_{name}", raising=False)
        cfg = LyricalVisionConfig(_env_file=None)

        assert cfg.api_key is None
        assert cfg.default_model_id == "gemini-2.5-flash-image"
        assert cfg.max_reference_images == 3
        assert cfg.server_port == 7860

    def test_behaviour_switches_default_to_source_behaviour(self, test_config):
        assert test_config.discard_stale_responses is False
        assert test_config.verify_key_after_select is False

    def test_catalog_path_points_at_bundled_file(self):
        assert DEFAULT_CATALOG_PATH.name == "catalog.json"
        assert DEFAULT_CATALOG_PATH.exists()


class TestConfigEnvironment:
    """Verify environment variable overrides."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("LYRICALVISION_API_KEY", "secret")
        monkeypatch.setenv("LYRICALVISION_DISCARD_STALE_RESPONSES", "true")

        cfg = LyricalVisionConfig(_env_file=None)

        assert cfg.api_key == "secret"
        assert cfg.discard_stale_responses is True


class TestConfigValidation:
    """Verify Pydantic constraints."""

    @pytest.mark.parametrize("value", [0, 4])
    def test_reference_cap_range(self, value):
        with pytest.raises(ValidationError):
            LyricalVisionConfig(_env_file=None, max_reference_images=value)

    def test_port_range(self):
        with pytest.raises(ValidationError):
            LyricalVisionConfig(_env_file=None, server_port=80)

    def test_image_size_literal(self):
        with pytest.raises(ValidationError):
            LyricalVisionConfig(_env_file=None, premium_image_size="8K")
