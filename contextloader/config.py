"""
Configuration for contextloader.

Settings are a Pydantic model populated from ``CONTEXTLOADER_*``
environment variables. Loaders take explicit arguments; these settings only
supply defaults for discovery roots, ignore lists and logging.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "CONTEXTLOADER_"

DEFAULT_IGNORE: tuple[str, ...] = (
    "__pycache__",
    ".git",
    ".venv",
    "node_modules",
    "dist",
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoaderSettings(BaseModel):
    """
    Process-wide defaults for loaders.

    Environment Variables:
        CONTEXTLOADER_ROOT: discovery root (default: current directory)
        CONTEXTLOADER_ENVIRONMENT: development | test | production
        CONTEXTLOADER_IGNORE: comma-separated directory names to skip
        CONTEXTLOADER_EXPORT_NAME: module attribute read by the importer
        CONTEXTLOADER_LOG_LEVEL: stdlib log level name
        CONTEXTLOADER_LOG_JSON: "true" to emit JSON log lines
    """

    model_config = ConfigDict(extra="forbid")

    root: str = Field(".", description="Directory discovery patterns are relative to")
    environment: str = Field("development", description="Deployment environment")
    ignore: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE),
        description="Directory names never descended into during discovery",
    )
    export_name: str | None = Field(
        None, description="Module attribute holding artifacts (None: try the defaults)"
    )
    log_level: str = Field("INFO", description="Stdlib log level name")
    log_json: bool = Field(False, description="Emit structured JSON log lines")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("environment")
    @classmethod
    def _check_environment(cls, value: str) -> str:
        return value.lower()


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_settings() -> LoaderSettings:
    """Build settings from the environment (uncached)."""
    return LoaderSettings(
        root=os.getenv(f"{ENV_PREFIX}ROOT", "."),
        environment=os.getenv(f"{ENV_PREFIX}ENVIRONMENT", "development"),
        ignore=_env_list(f"{ENV_PREFIX}IGNORE", list(DEFAULT_IGNORE)),
        export_name=os.getenv(f"{ENV_PREFIX}EXPORT_NAME") or None,
        log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
        log_json=os.getenv(f"{ENV_PREFIX}LOG_JSON", "false").lower() == "true",
    )


@lru_cache()
def get_settings() -> LoaderSettings:
    """
    Get settings from environment.

    Uses lru_cache for singleton pattern. Call ``get_settings.cache_clear()``
    after changing the environment in tests.
    """
    return load_settings()


def configure_logging(settings: LoaderSettings | None = None) -> None:
    """Configure the ``contextloader`` logger hierarchy from settings."""
    settings = settings or get_settings()
    fmt = "%(message)s" if settings.log_json else "%(asctime)s %(levelname)s %(name)s: %(message)s"
    package_logger = logging.getLogger("contextloader")
    package_logger.setLevel(settings.log_level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        package_logger.addHandler(handler)


__all__ = [
    "DEFAULT_IGNORE",
    "ENV_PREFIX",
    "LoaderSettings",
    "configure_logging",
    "get_settings",
    "load_settings",
]
