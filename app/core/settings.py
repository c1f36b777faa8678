"""
Server settings, persisted at: <CONFIG_DIR>/settings.yaml

The config directory comes from the RESOURCEPACK_SERVER_CONFIG_DIR
environment variable, or '<project root>/config' when unset. A missing
settings file is created with every default filled in so operators have
something to edit.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV_VAR = "RESOURCEPACK_SERVER_CONFIG_DIR"
SETTINGS_FILE_NAME = "settings.yaml"

# Resolve repository root (project root, not the Python package root)
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_CONFIG_DIR = _REPO_ROOT / "config"


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0", description="Interface the HTTP server binds to.")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port.")
    debug: bool = Field(default=False, description="Enable auto-reload and verbose logging.")


class PacksConfig(BaseModel):
    directory: str = Field(
        default="resourcepacks",
        description="Directory scanned for resource packs (archives and directories).",
    )
    file_monitor: bool = Field(
        default=True,
        description="Rescan automatically when the packs directory changes.",
    )
    file_monitor_interval: float = Field(
        default=0.5,
        ge=0,
        description="Seconds to wait after a change event before rescanning.",
    )
    scan_cooldown: float = Field(
        default=2.0,
        ge=0,
        description="Minimum seconds between two automatic rescans.",
    )
    temp_dir: Optional[str] = Field(
        default=None,
        description="Where zip archives for directory packs are built. Defaults to the system temp dir.",
    )


class LoggingConfig(BaseModel):
    level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(
        default="INFO", description="Root log level."
    )
    file: str = Field(
        default="logs/server.log",
        description="Log file path in addition to stdout. Empty disables file logging.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v):
        # settings.yaml may spell levels in lower case
        return v.upper() if isinstance(v, str) else v


class Settings(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    packs: PacksConfig = Field(default_factory=PacksConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """
    Determine the config directory path.

    Priority:
    1. Environment variable RESOURCEPACK_SERVER_CONFIG_DIR
    2. '<project root>/config'
    """
    env_path = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_CONFIG_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def save_settings(settings: Settings, path: Path) -> None:
    path.write_text(
        yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False),
        encoding="utf-8",
    )


def load_settings(config_dir: Optional[Path] = None) -> Settings:
    """
    Load settings.yaml, merging with defaults for any missing fields.

    If the file does not exist it is written with the defaults. If it
    cannot be parsed, the defaults are used and the file is left alone.
    """
    path = (config_dir or get_config_dir()) / SETTINGS_FILE_NAME
    if not path.exists():
        settings = Settings()
        save_settings(settings, path)
        logger.info(f"Created settings file from defaults: {path}")
        return settings

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return Settings(**raw)
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        logger.warning(f"Invalid settings file {path}, using defaults: {e}")
        return Settings()


def resolve_packs_directory(settings: Settings, base_dir: Optional[Path] = None) -> Path:
    """
    Absolute packs directory; relative paths are taken from base_dir
    (the current working directory by default).
    """
    d = Path(settings.packs.directory).expanduser()
    if not d.is_absolute():
        d = (base_dir or Path.cwd()) / d
    return d
