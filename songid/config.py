# pyright: reportExplicitAny=false
"""Configuration management for SongID."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = "config.yaml"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class DemoMode(str, Enum):
    """What the identifier does when real providers cannot produce a match."""

    PLACEHOLDER = "placeholder"
    HEURISTIC = "heuristic"
    OFF = "off"


class StoreBackend(str, Enum):
    """Supported persistence backends."""

    MEMORY = "memory"
    SQL = "sql"


class AudDConfig(BaseModel):
    """AudD recognition credentials."""

    api_token: str | None = Field(default=None, description="AudD API token")
    url: str = "https://api.audd.io/"
    max_sample_bytes: int | None = None
    sample_offset: float = 0.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)


class ACRCloudConfig(BaseModel):
    """ACRCloud identify API credentials."""

    host: str | None = Field(default=None, description="e.g. identify-eu-west-1.acrcloud.com")
    access_key: str | None = None
    access_secret: str | None = None
    max_sample_bytes: int | None = 800 * 1024
    sample_offset: float = 0.0
    rec_length_seconds: int = Field(
        default=10, gt=0, description="Seconds the SDK fingerprints"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.access_key and self.access_secret)


class ShazamConfig(BaseModel):
    """Shazam access through RapidAPI."""

    rapidapi_key: str | None = None
    rapidapi_host: str = "shazam-song-recognition-api.p.rapidapi.com"
    path: str = "/recognize/file"
    max_sample_bytes: int | None = 512 * 1024
    sample_offset: float = 0.25

    @property
    def is_configured(self) -> bool:
        return bool(self.rapidapi_key)


class AudioTagConfig(BaseModel):
    """AudioTag.info API credentials."""

    api_key: str | None = None
    url: str = "https://audiotag.info/api"
    max_sample_bytes: int | None = None
    sample_offset: float = 0.0
    poll_interval_seconds: float = 1.0
    max_polls: int = 10

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class ProvidersConfig(BaseModel):
    """Credentials for every supported recognition provider."""

    audd: AudDConfig = Field(default_factory=AudDConfig)
    acrcloud: ACRCloudConfig = Field(default_factory=ACRCloudConfig)
    shazam: ShazamConfig = Field(default_factory=ShazamConfig)
    audiotag: AudioTagConfig = Field(default_factory=AudioTagConfig)

    def fill_from_env(self) -> None:
        """Fill credentials the YAML file left unset from environment variables."""
        if not self.audd.api_token:
            self.audd.api_token = os.getenv("AUDD_API_KEY") or os.getenv("MUSIC_API_KEY")
        if not self.acrcloud.host:
            self.acrcloud.host = os.getenv("ACRCLOUD_HOST")
        if not self.acrcloud.access_key:
            self.acrcloud.access_key = os.getenv("ACRCLOUD_ACCESS_KEY")
        if not self.acrcloud.access_secret:
            self.acrcloud.access_secret = os.getenv("ACRCLOUD_ACCESS_SECRET")
        if not self.shazam.rapidapi_key:
            self.shazam.rapidapi_key = os.getenv("RAPIDAPI_KEY")
        if not self.audiotag.api_key:
            self.audiotag.api_key = os.getenv("AUDIOTAG_API_KEY")


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"


class Config(BaseModel):
    """Global configuration."""

    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    demo_mode: DemoMode = DemoMode.PLACEHOLDER
    provider_timeout_seconds: float = Field(default=20.0, gt=0)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)
    history_max_limit: int = Field(default=100, gt=0)
    upload_dir: str | None = Field(
        default=None, description="Directory for temporary upload files (system temp if unset)"
    )
    store: StoreBackend = StoreBackend.MEMORY
    database_url: str | None = None
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("provider_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Provider calls must always be bounded."""
        if v > 300:
            raise ValueError(f"Provider timeout must be at most 300 seconds, got {v}")
        return v

    @classmethod
    def _collect_required_env_vars(cls, data: Any, collected: set[str] | None = None) -> set[str]:
        """Recursively collect all ${VAR_NAME} references from config data."""
        if collected is None:
            collected = set()

        if isinstance(data, dict):
            for v in data.values():
                cls._collect_required_env_vars(v, collected)
        elif isinstance(data, list):
            for item in data:
                cls._collect_required_env_vars(item, collected)
        elif isinstance(data, str):
            collected.update(re.findall(r"\$\{([^}]+)\}", data))

        return collected

    @classmethod
    def _substitute_env_vars(cls, data: Any) -> Any:
        """Recursively substitute ${VAR_NAME} with environment variables."""
        if isinstance(data, dict):
            return {k: cls._substitute_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            return re.sub(r"\$\{([^}]+)\}", lambda m: os.environ[m.group(1)], data)
        else:
            return data

    @classmethod
    def load(cls, config_path: str | None = None) -> Config:
        """Load configuration from a YAML file, falling back to environment only.

        Note: Assumes environment variables are already loaded (e.g., via load_dotenv()).
        """
        path = Path(config_path or os.getenv("SONGID_CONFIG", DEFAULT_CONFIG_PATH))
        data: dict[str, Any] = {}
        if path.exists():
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        elif config_path is not None:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        missing_vars = [
            var for var in cls._collect_required_env_vars(data) if var not in os.environ
        ]
        if missing_vars:
            raise ValueError(
                f"Missing required environment variables: {', '.join(sorted(missing_vars))}\n"
                + "Please set these in your .env file or environment."
            )

        data = cls._substitute_env_vars(data)
        config = cls(**data)
        config.providers.fill_from_env()

        if config.database_url is None:
            config.database_url = os.getenv("DATABASE_URL")
        if os.getenv("SONGID_DEMO_MODE"):
            config.demo_mode = DemoMode(os.environ["SONGID_DEMO_MODE"])

        return config


# Global config instance
_config: Config | None = None


def load_config(config_path: str | None = None) -> Config:
    """Load and cache the global configuration."""
    global _config
    _config = Config.load(config_path)
    return _config


def get_config() -> Config:
    """Get the cached configuration (loads if not already loaded)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
