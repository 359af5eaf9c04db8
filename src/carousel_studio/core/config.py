"""Configuration management for Carousel Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the CAROUSEL_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CAROUSEL_* prefix)
2. .env file in the project root
3. Default values defined in CarouselConfig

Example .env file:
    CAROUSEL_GOOGLE_API_KEY=your-key
    CAROUSEL_IMAGE_MODEL=gemini-2.5-flash-image
    CAROUSEL_DATA_DIR=data
    CAROUSEL_SERVER_PORT=7860

The Google API key is also accepted under the plain ``GOOGLE_API_KEY`` name so
an existing Gemini setup works without renaming anything.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from carousel_studio.core.config import config

    print(config.image_model)
    print(config.resolved_store_path)

Credential Semantics
--------------------
The API key is read once, when the settings object is built.  A missing key
is a permanent condition for the lifetime of the process: generation and idea
conversion report ``CredentialMissing`` until the server is restarted with a
key configured.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Presets shipped with the package; overridable through CAROUSEL_PRESETS_PATH.
DEFAULT_PRESETS_PATH = Path(__file__).resolve().parent.parent / "data" / "presets.json"


class CarouselConfig(BaseSettings):
    """Main configuration for Carousel Studio.

    Attributes
    ----------
    Service Settings:
        google_api_key : str | None
            Gemini API key.  ``None`` disables generation and idea conversion.
        image_model : str
            Gemini model used for slide images
        text_model : str
            Gemini model used to turn an idea into slide prompts

    Storage:
        data_dir : Path
            Directory for the session database
        store_path : Path | None
            SQLite key-value store (defaults to ``data_dir/session.db``)
        presets_path : Path | None
            Style preset registry (defaults to the packaged ``presets.json``)
        snapshot_history : int
            How many pre-batch session snapshots are kept

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level used by ``main()``

    Examples
    --------
        >>> custom_config = CarouselConfig(
        ...     google_api_key="test-key",
        ...     data_dir="/tmp/carousel",
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAROUSEL_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Gemini services
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "CAROUSEL_GOOGLE_API_KEY", "GOOGLE_API_KEY"
        ),
        description="Gemini API key (read once at startup)",
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Gemini model used to render slide images",
    )
    text_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for idea-to-prompts conversion",
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for the session database",
    )
    store_path: Path | None = Field(
        default=None,
        description="SQLite key-value store path (defaults to data_dir/session.db)",
    )
    presets_path: Path | None = Field(
        default=None,
        description="Style preset registry JSON (defaults to the packaged presets)",
    )
    snapshot_history: int = Field(
        default=20,
        description="Number of pre-batch session snapshots to keep",
        ge=1,
        le=1000,
    )

    # Server
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
        description="Logging level for the server process",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def resolved_store_path(self) -> Path:
        """Location of the SQLite session store."""
        return self.store_path or self.data_dir / "session.db"

    @property
    def resolved_presets_path(self) -> Path:
        """Location of the style preset registry."""
        return self.presets_path or DEFAULT_PRESETS_PATH

    @property
    def has_credential(self) -> bool:
        """True when a non-blank API key was configured."""
        return bool(self.google_api_key and self.google_api_key.strip())


# Global configuration instance
# Loaded once from CAROUSEL_* environment variables and the .env file.
config = CarouselConfig()
