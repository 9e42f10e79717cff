"""Tests for contact settings."""

import pytest

from src.shared.contact.config import ContactSettings


@pytest.mark.parametrize("kwargs", [
    {"rate_limit_window_seconds": 0},
    {"rate_limit_window_seconds": -1},
    {"rate_limit_max_requests": 0},
    {"turnstile_timeout_seconds": 0},
])
def test_rejects_unusable_limits(kwargs):
    with pytest.raises(ValueError):
        ContactSettings(**kwargs)


def test_zero_window_from_env_is_rejected(monkeypatch):
    monkeypatch.setenv("CONTACT_RATE_LIMIT_WINDOW_SECONDS", "0")
    with pytest.raises(ValueError, match="rate_limit_window_seconds"):
        ContactSettings.from_env()


def test_defaults():
    settings = ContactSettings()
    assert settings.rate_limit_max_requests == 5
    assert settings.rate_limit_window_seconds == 3600
    assert settings.default_origin == "https://twistan.com"
    assert settings.turnstile_secret_key is None
