"""Unit tests for engine settings."""

import pytest
from pydantic import ValidationError

from aso_engine.config import Settings


def test_database_url_is_normalized_to_asyncpg() -> None:
    settings = Settings(_env_file=None, database_url="postgres://user:pw@db:5432/aso")

    assert settings.database_url == "postgresql+asyncpg://user:pw@db:5432/aso"


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.pattern_cache_ttl_seconds == 300
    assert settings.title_coverage_weight + settings.subtitle_coverage_weight == pytest.approx(1.0)
    assert (settings.combo_min_length, settings.combo_max_length) == (2, 4)


def test_coverage_weights_must_sum_to_one() -> None:
    with pytest.raises(ValidationError, match="must sum to 1.0"):
        Settings(_env_file=None, title_coverage_weight=0.7, subtitle_coverage_weight=0.4)


def test_combo_length_bounds_are_checked() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, combo_min_length=3, combo_max_length=2)


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_FIELD_LENGTH", "120")
    monkeypatch.setenv("PATTERN_CACHE_TTL_SECONDS", "0")

    settings = Settings(_env_file=None)

    assert settings.max_field_length == 120
    assert settings.pattern_cache_ttl_seconds == 0
