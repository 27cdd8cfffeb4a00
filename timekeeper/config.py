"""Configuration management for the campaign timeline service."""

from datetime import date
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class TimelineConfig(BaseModel):
    """Defaults for newly created campaign timelines."""

    default_start: date = date(2024, 1, 1)
    initial_version: int = 1


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["https://localhost:3000"])
    log_level: str = "INFO"


class PathsConfig(BaseModel):
    """File paths configuration."""

    database: Path = Path("./data/timekeeper.db")


class TimingConfig(BaseModel):
    """Request latency tracking configuration."""

    window_size: int = 100
    slow_request_ms: float = 500.0


class AppConfig(BaseModel):
    """Main application configuration."""

    timeline: TimelineConfig = Field(default_factory=TimelineConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ./config.yaml

    Returns:
        AppConfig instance with loaded or default values
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return AppConfig(**data)

    return AppConfig()


def save_config(config: AppConfig, config_path: Path | str | None = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: AppConfig instance to save
        config_path: Path to save to. Defaults to ./config.yaml
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    # Dates and paths go out as plain strings
    data = config.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance.

    Returns:
        The loaded AppConfig instance
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Path | str | None = None) -> AppConfig:
    """Reload configuration from disk.

    Args:
        config_path: Path to config file

    Returns:
        Newly loaded AppConfig instance
    """
    global _config
    _config = load_config(config_path)
    return _config
