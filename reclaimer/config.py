"""Reclaimer configuration management.

Configuration sources (in priority order):
1. Environment variables (MODE, CLEANUP_INTERVAL, ...)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from reclaimer.errors import ConfigurationError

WINDOWS_SOCKET = "npipe:////./pipe/docker_engine"
UNIX_SOCKET = "unix:///var/run/docker.sock"

SECONDS_PER_HOUR = 3600


class EngineMode(str, Enum):
    """How the engine is deployed. Recorded for diagnostics only."""

    STANDALONE = "standalone"
    SWARM = "swarm"


def default_socket(platform: str | None = None) -> str:
    """Platform-appropriate local transport to the engine."""
    platform = platform or sys.platform
    if platform == "win32":
        return WINDOWS_SOCKET
    return UNIX_SOCKET


class Settings(BaseSettings):
    """Reclaimer daemon settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    mode: EngineMode = EngineMode.STANDALONE
    swarm_global: bool = False

    # Hours between maintenance cycles
    cleanup_interval: int = Field(default=24, gt=0)

    # Minimum age in days before an unreferenced volume may be removed
    unused_volume_retention: int = Field(default=7, ge=0)

    remove_build_cache: bool = False

    # Image prune removes every unused image, not just dangling layers
    prune_all_unused_images: bool = True

    # None = platform default (named pipe on Windows, unix socket elsewhere)
    docker_socket: str | None = None

    log_level: Literal["debug", "info", "warning", "error"] = "info"

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values loaded from the YAML file (passed as init kwargs)
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)

    @property
    def interval_seconds(self) -> int:
        """Cleanup interval converted to seconds."""
        return self.cleanup_interval * SECONDS_PER_HOUR

    @property
    def scope(self) -> str:
        """Human-readable execution scope for startup diagnostics."""
        if self.mode is EngineMode.SWARM:
            return "swarm_global" if self.swarm_global else "swarm_node"
        return "standalone"

    def resolved_socket(self) -> str:
        """Engine URL, normalized to a scheme-qualified form."""
        socket = self.docker_socket
        if not socket:
            return default_socket()
        if socket.startswith("/"):
            return f"unix://{socket}"
        return socket


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. RECLAIMER_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/reclaimer/config.yaml

    Raises:
        ConfigurationError: the file is not valid YAML or not a mapping
    """
    config_paths = [
        os.environ.get("RECLAIMER_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/reclaimer/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"Invalid configuration: cannot parse {path}: {e}",
                        details={"path": str(path)},
                    ) from e
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Invalid configuration: {path} must contain a mapping, "
                    f"got {type(data).__name__}",
                    details={"path": str(path)},
                )
            return data

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. Environment variables
    2. YAML config file (if exists)
    3. Defaults
    """
    file_config = _load_config_file()
    return Settings(**file_config)
