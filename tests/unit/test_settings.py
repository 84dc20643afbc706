"""Settings parsing tests."""

import logging

import pytest

from src.config.settings import Settings
from src.contracts import QueueCategory


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RIOT_API_KEY", "DISCORD_BOT_TOKEN", "DISCORD_TOKEN", "TRACKING_INTERVAL"):
        monkeypatch.delenv(name, raising=False)

    settings = _settings()

    assert settings.riot_api_key == ""
    assert settings.tracking_interval_seconds == 60
    assert settings.points_per_division == 100
    assert settings.lol_tracked_queue_set == {QueueCategory.RANKED_SOLO_5x5, QueueCategory.RANKED_FLEX_SR}
    assert settings.tft_tracked_queue_set == {QueueCategory.RANKED_TFT}


def test_environment_aliases(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RIOT_API_KEY", "RGAPI-test")
    monkeypatch.setenv("DISCORD_TOKEN", "bot-token")
    monkeypatch.setenv("TRACKING_INTERVAL", "90")
    monkeypatch.setenv("NOTIFICATION_CHANNEL_ID", "123456789")

    settings = _settings()

    assert settings.riot_api_key == "RGAPI-test"
    assert settings.discord_bot_token == "bot-token"
    assert settings.tracking_interval_seconds == 90
    assert settings.notification_channel == 123456789


def test_queue_list_ignores_unknown_names(caplog: pytest.LogCaptureFixture) -> None:
    settings = _settings(lol_tracked_queues="RANKED_SOLO_5x5, ARAM ,")

    with caplog.at_level(logging.WARNING):
        queues = settings.lol_tracked_queue_set

    assert queues == {QueueCategory.RANKED_SOLO_5x5}
    assert "ARAM" in caplog.text


def test_non_numeric_channel_id() -> None:
    assert _settings(notification_channel_id="general").notification_channel is None


def test_recap_hour_is_validated() -> None:
    with pytest.raises(ValueError):
        _settings(recap_hour=24)
