"""Configuration management for Lyrical Vision.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LYRICALVISION_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LYRICALVISION_* prefix)
2. .env file in the project root
3. Default values defined in LyricalVisionConfig

Example .env file:
    LYRICALVISION_API_KEY=your-gemini-key
    LYRICALVISION_DEFAULT_MODEL_ID=gemini-2.5-flash-image
    LYRICALVISION_DEFAULT_ASPECT_RATIO=16:9
    LYRICALVISION_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from lyricalvision.core.config import config

    print(config.default_model_id)
    print(config.max_reference_images)

Behaviour Switches
------------------
Two flags select between the observed source behaviour and a stricter
alternative.  Both default to the observed behaviour:

- discard_stale_responses: when False, overlapping generations for one stanza
  resolve last-write-wins.  When True, each request is stamped with a
  per-stanza counter and responses from superseded requests are dropped.
- verify_key_after_select: when False, the key gate assumes a key was chosen
  as soon as the host selection flow returns.  When True, the host is probed
  again and the gate follows the probe result.

See Also
--------
- .env.example: Template with all available configuration options
- lyricalvision.core.catalog: Models, aspect ratios and styles offered to users
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


class LyricalVisionConfig(BaseSettings):
    """Main configuration for Lyrical Vision.

    Values are loaded from environment variables with the LYRICALVISION_
    prefix, with fallback to defaults defined here.

    Attributes
    ----------
    Credentials:
        api_key : str | None
            Gemini API key installed into the session key host at startup.
            When unset, the premium model is gated until a key is provided.

    Catalog and Defaults:
        catalog_path : Path
            JSON file describing models, aspect ratios, styles and image sizes
        default_model_id : str
            Model selected for a new session
        default_style_id : str
            Art style selected for a new session
        default_aspect_ratio : str
            Aspect ratio selected for a new session
        premium_image_size : str
            Image size hint sent with premium-tier requests

    Generation Behaviour:
        max_reference_images : int
            Maximum number of reference images attached to a request (1-3)
        discard_stale_responses : bool
            Drop responses from superseded requests for the same stanza
        verify_key_after_select : bool
            Re-probe the key host after the selection flow returns

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level used by the server entry point

    Examples
    --------
        >>> custom_config = LyricalVisionConfig(
        ...     default_model_id="gemini-3-pro-image-preview",
        ...     max_reference_images=2,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LYRICALVISION_",
        case_sensitive=False,
    )

    # Credentials
    api_key: str | None = Field(
        default=None,
        description="Gemini API key (leave unset to require key selection)",
    )

    # Catalog and session defaults
    catalog_path: Path = Field(
        default=DEFAULT_CATALOG_PATH,
        description="JSON catalog of models, aspect ratios, styles and image sizes",
    )
    default_model_id: str = Field(
        default="gemini-2.5-flash-image",
        description="Model selected when a session starts",
    )
    default_style_id: str = Field(
        default="cinematic",
        description="Art style selected when a session starts",
    )
    default_aspect_ratio: str = Field(
        default="16:9",
        description="Aspect ratio selected when a session starts",
    )
    premium_image_size: Literal["1K", "2K", "4K"] = Field(
        default="1K",
        description="Image size hint for premium-tier models",
    )

    # Generation behaviour
    max_reference_images: int = Field(
        default=3,
        description="Maximum reference images per request",
        ge=1,
        le=3,
    )
    discard_stale_responses: bool = Field(
        default=False,
        description="Discard responses from superseded requests for the same stanza",
    )
    verify_key_after_select: bool = Field(
        default=False,
        description="Re-probe the key host after the selection flow completes",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for the server entry point",
    )


# Global configuration instance
# Loads values from environment variables (LYRICALVISION_* prefix) and .env file.
config = LyricalVisionConfig()
