"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from radar.core.settings import Settings


def test_blank_keys_become_none(monkeypatch):
    monkeypatch.setenv("YOUTUBE_API_KEY", "   ")
    monkeypatch.setenv("CRON_SECRET", "")

    settings = Settings()

    assert settings.youtube_api_key is None
    assert settings.cron_secret is None


def test_values_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("RSS_ITEM_LIMIT", "5")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("POLYMARKET_API_BASE", "http://localhost:9000")

    settings = Settings()

    assert settings.rss_item_limit == 5
    assert settings.http_timeout_seconds == 2.5
    assert settings.polymarket_api_base == "http://localhost:9000"


def test_database_url_is_required():
    with pytest.raises(ValidationError):
        Settings(database_url="")
