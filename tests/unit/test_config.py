"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from src.core.config import Constants, Settings


def test_defaults() -> None:
    """Test a bare Settings carries the documented defaults."""
    settings = Settings(_env_file=None)

    assert settings.daily_challenge_count == 3
    assert settings.default_weekly_goal == 7
    assert settings.timezone == "UTC"
    assert settings.logfire_token is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test environment variables override defaults case-insensitively."""
    monkeypatch.setenv("PARTNERSHIP_ID", "couple-42")
    monkeypatch.setenv("daily_challenge_count", "5")

    settings = Settings(_env_file=None)

    assert settings.partnership_id == "couple-42"
    assert settings.daily_challenge_count == 5


def test_challenge_count_must_be_positive() -> None:
    """Test a zero challenge count is rejected."""
    with pytest.raises(ValidationError, match="daily_challenge_count"):
        Settings(_env_file=None, daily_challenge_count=0)


def test_rollover_hour_bounds() -> None:
    """Test the rollover hour must be a valid hour of the day."""
    with pytest.raises(ValidationError, match="daily_rollover_hour"):
        Settings(_env_file=None, daily_rollover_hour=24)


def test_warning_day_options_include_default() -> None:
    """Test the default warning window is one of the selectable options."""
    assert Constants.DEFAULT_WARNING_DAYS in Constants.WARNING_DAY_OPTIONS
