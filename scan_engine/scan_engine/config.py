"""Scan engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scan_engine.sql_toolkit import Dialect

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SQLSCOUT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLSCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Parsing
    dialect: Dialect = Dialect.GENERIC

    # Source discovery
    python_suffixes: list[str] = Field(default_factory=lambda: [".py"])
    yaml_suffixes: list[str] = Field(default_factory=lambda: [".yml", ".yaml"])
    plain_text_suffixes: list[str] = Field(default_factory=lambda: [".sql", ".txt"])
    excluded_dirs: list[str] = Field(
        default_factory=lambda: [".git", ".hg", ".venv", "venv", "node_modules", "__pycache__", ".tox"]
    )
    max_file_bytes: int = Field(default=2_000_000, gt=0)

    # Telemetry
    structured_logging: bool = False

    @field_validator("python_suffixes", "yaml_suffixes", "plain_text_suffixes", mode="after")
    @classmethod
    def normalise_suffixes(cls, v: list[str]) -> list[str]:
        normalised = []
        for suffix in v:
            suffix = suffix.strip().lower()
            if suffix and not suffix.startswith("."):
                suffix = f".{suffix}"
            if suffix:
                normalised.append(suffix)
        return normalised

    @property
    def scanned_suffixes(self) -> frozenset[str]:
        return frozenset(self.python_suffixes + self.yaml_suffixes + self.plain_text_suffixes)


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings (dialect=%s)", settings.dialect.value)

    return settings
