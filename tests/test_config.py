"""Tests for TrackerConfig."""

import pytest

from price_tracker.config import TrackerConfig
from price_tracker.errors import ConfigurationError


class TestTrackerConfig:
    """Tests for loading and validating configuration."""

    def test_defaults(self, monkeypatch):
        """Defaults apply when no environment is set."""
        for name in ["TRACKER_SYMBOL", "COUNTDOWN_SECONDS", "HTTP_PORT", "SCORE_REPORT_URL"]:
            monkeypatch.delenv(name, raising=False)
        config = TrackerConfig.from_env()
        assert config.symbol == "BTCUSDT"
        assert config.countdown_seconds == 30
        assert config.tick_interval_s == 1.0
        assert config.http_port == 8080
        assert config.score_report_url == ""
        config.validate()

    def test_from_env(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("TRACKER_SYMBOL", "ETHUSDT")
        monkeypatch.setenv("COUNTDOWN_SECONDS", "10")
        monkeypatch.setenv("SCORE_REPORT_URL", "http://scores:9000/result")
        config = TrackerConfig.from_env()
        assert config.symbol == "ETHUSDT"
        assert config.countdown_seconds == 10
        assert config.score_report_url == "http://scores:9000/result"

    @pytest.mark.parametrize("overrides", [
        {"symbol": ""},
        {"countdown_seconds": 0},
        {"tick_interval_s": 0.0},
        {"stale_threshold_ms": -1},
        {"event_queue_size": 0},
        {"http_port": 70000},
    ])
    def test_validate_rejects(self, overrides):
        """Invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            TrackerConfig(**overrides).validate()
