"""Application settings loaded from the environment or .env via Pydantic."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class NoiseSettings(BaseSettings):
    workers: int = Field(default=0, ge=0)
    chunk_size: int = Field(default=65536, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="FNOISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("workers", mode="before")
    @classmethod
    def _auto_workers(cls, value):
        # "auto" uses every available core
        if isinstance(value, str) and value.strip().lower() == "auto":
            return os.cpu_count() or 1
        return value


_settings: Optional[NoiseSettings] = None


def get_settings() -> NoiseSettings:
    global _settings
    if _settings is None:
        _settings = NoiseSettings()
        logger.debug(
            "Settings: workers=%d chunk_size=%d (cwd %s)",
            _settings.workers,
            _settings.chunk_size,
            Path.cwd(),
        )
    return _settings


def default_workers() -> int:
    return get_settings().workers


def default_chunk_size() -> int:
    return get_settings().chunk_size


def reset_settings_cache() -> None:
    global _settings
    _settings = None
