"""Tests for PriceTrackerApp wiring (no network)."""

import asyncio

import pytest

from price_tracker.app import PriceTrackerApp
from price_tracker.config import TrackerConfig
from price_tracker.errors import ConfigurationError
from price_tracker.reporter import CallbackScoreReporter, HttpScoreReporter, LoggingScoreReporter


class TestPriceTrackerApp:
    """Tests for component setup."""

    def test_invalid_config_rejected(self):
        """The app refuses an invalid configuration."""
        with pytest.raises(ConfigurationError):
            PriceTrackerApp(TrackerConfig(countdown_seconds=0))

    def test_components_wired(self):
        """Feed callbacks point at the tracker, countdown comes from config."""
        async def scenario():
            app = PriceTrackerApp(TrackerConfig(symbol="ethusdt", countdown_seconds=10))
            app._setup_components()
            return app

        app = asyncio.run(scenario())
        assert app.controller.countdown_seconds == 10
        assert app.controller.sink is app.sink
        assert app.tracker.symbol == "ETHUSDT"
        assert app.binance.symbol == "ETHUSDT"
        assert app.server.feed_health is app.binance.health
        assert isinstance(app.reporter, LoggingScoreReporter)

    def test_reporter_selection(self):
        """A scoring URL selects the HTTP reporter, an override wins over both."""
        async def scenario():
            http_app = PriceTrackerApp(TrackerConfig(score_report_url="http://scores/result"))
            http_app._setup_components()
            override = CallbackScoreReporter(lambda turn, code: None)
            custom_app = PriceTrackerApp(TrackerConfig(), reporter=override)
            custom_app._setup_components()
            return http_app.reporter, custom_app.reporter, override

        http_reporter, custom_reporter, override = asyncio.run(scenario())
        assert isinstance(http_reporter, HttpScoreReporter)
        assert http_reporter.url == "http://scores/result"
        assert custom_reporter is override
