"""Unit tests for scan_engine.config."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from scan_engine.config import Settings, load_settings
from scan_engine.sql_toolkit import Dialect

# ---------------------------------------------------------------------------
# Settings - default values
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    def test_default_debug(self):
        assert Settings().debug is False

    def test_default_dialect(self):
        assert Settings().dialect == Dialect.GENERIC

    def test_default_suffixes(self):
        settings = Settings()
        assert settings.scanned_suffixes == frozenset({".py", ".yml", ".yaml", ".sql", ".txt"})

    def test_default_exclusions(self):
        assert ".git" in Settings().excluded_dirs

    def test_default_structured_logging(self):
        assert Settings().structured_logging is False


# ---------------------------------------------------------------------------
# Settings - environment and validation
# ---------------------------------------------------------------------------


class TestSettingsEnvironment:
    def test_dialect_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLSCOUT_DIALECT", "postgres")
        assert Settings().dialect == Dialect.POSTGRES

    def test_suffix_list_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLSCOUT_PLAIN_TEXT_SUFFIXES", '["SQL", ".Hql"]')
        assert Settings().plain_text_suffixes == [".sql", ".hql"]

    def test_invalid_dialect_rejected(self):
        with pytest.raises(ValidationError):
            Settings(dialect="cobol")

    def test_max_file_bytes_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(max_file_bytes=0)

    def test_blank_suffix_dropped(self):
        assert Settings(yaml_suffixes=["yml", " "]).yaml_suffixes == [".yml"]


class TestLoadSettings:
    def test_overrides(self):
        settings = load_settings(dialect=Dialect.MYSQL, debug=True)
        assert settings.dialect == Dialect.MYSQL
        assert settings.debug is True
