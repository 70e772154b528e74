"""
Configuration management for ReelIndex.

Handles loading, validation, and access to application configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

# Global configuration instance
_config: Optional["ReelIndexConfig"] = None


DEFAULT_VIDEO_EXTENSIONS = [".mp4", ".mkv", ".avi", ".mov", ".wmv", ".webm", ".m4v", ".flv"]
DEFAULT_AUDIO_EXTENSIONS = [
    ".mp3", ".flac", ".wav", ".m4a", ".aac", ".ogg", ".wma", ".opus", ".aiff",
]
# Files the metadata scan resolves; audio-only formats are left to the index.
DEFAULT_METADATA_EXTENSIONS = [".mp4", ".mkv", ".avi", ".webm", ".mov", ".m4v", ".ogg"]


class DatabaseConfig(BaseModel):
    """Database configuration."""
    url: str = "sqlite:///./reelindex.db"
    echo: bool = False


class ProviderRateLimit(BaseModel):
    """Rolling-window quota for one metadata provider."""
    requests: int = Field(default=60, gt=0)
    per_seconds: float = Field(default=60.0, gt=0)
    min_delay_seconds: float = Field(default=0.0, ge=0)


class RateLimitsConfig(BaseModel):
    """Per-provider rate limits."""
    omdb: ProviderRateLimit = Field(
        default_factory=lambda: ProviderRateLimit(
            requests=1000, per_seconds=86400, min_delay_seconds=0.25
        )
    )
    tvmaze: ProviderRateLimit = Field(
        default_factory=lambda: ProviderRateLimit(
            requests=20, per_seconds=10, min_delay_seconds=0.5
        )
    )
    wikidata: ProviderRateLimit = Field(
        default_factory=lambda: ProviderRateLimit(
            requests=50, per_seconds=60, min_delay_seconds=0.2
        )
    )


class MetadataConfig(BaseModel):
    """Metadata resolution configuration."""
    omdb_api_key: str = ""
    thumbnail_dir: str = "public/thumbnails"
    thumbnail_url_prefix: str = "/thumbnails"
    freshness_days: int = Field(default=7, ge=0)
    request_timeout: float = 15.0  # API lookups
    download_timeout: float = 30.0  # Artwork downloads
    max_redirects: int = 5
    user_agent: str = "ReelIndex/1.0"
    media_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_METADATA_EXTENSIONS)
    )
    rate_limits: RateLimitsConfig = Field(default_factory=RateLimitsConfig)


class LibraryConfig(BaseModel):
    """A named media root; index entries under its path carry its name."""
    name: str
    path: str


class ScannerConfig(BaseModel):
    """File-system indexer configuration."""
    video_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS))
    audio_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS))
    libraries: list[LibraryConfig] = Field(default_factory=list)
    max_error_details: int = 100


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/reelindex.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    to_console: bool = True
    to_file: bool = True


class ReelIndexConfig(BaseModel):
    """Main ReelIndex configuration."""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> ReelIndexConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. Defaults to config.yaml in project root.

    Returns:
        Loaded and validated configuration.
    """
    global _config

    if config_path is None:
        possible_paths = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data: dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    env_overrides = _get_env_overrides()
    _deep_merge(config_data, env_overrides)

    _config = ReelIndexConfig(**config_data)
    return _config


def get_config() -> ReelIndexConfig:
    """
    Get the current configuration.

    Returns:
        Current configuration (loads default if not yet loaded).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> ReelIndexConfig:
    """Reload configuration from disk."""
    global _config
    _config = None
    return load_config()


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    # Values for string settings are passed through untouched so that
    # numeric-looking API keys stay strings.
    env_map = {
        "REELINDEX_DATABASE_URL": (("database", "url"), False),
        "REELINDEX_DATABASE_ECHO": (("database", "echo"), True),
        "REELINDEX_OMDB_API_KEY": (("metadata", "omdb_api_key"), False),
        "REELINDEX_THUMBNAIL_DIR": (("metadata", "thumbnail_dir"), False),
        "REELINDEX_FRESHNESS_DAYS": (("metadata", "freshness_days"), True),
        "REELINDEX_LOG_LEVEL": (("logging", "level"), False),
    }

    for env_var, (path, typed) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(overrides, path, _parse_env_value(value) if typed else value)

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _set_nested(d: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set a nested dictionary value from a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override into base dictionary."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


class _ConfigProxy:
    """
    Proxy object that provides lazy access to configuration.

    Allows modules to import `config` directly:
        from reelindex.config import config
        config.metadata.omdb_api_key
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_config(), name)

    def __repr__(self) -> str:
        return f"<ConfigProxy for {get_config()}>"


config = _ConfigProxy()
