"""Configuration for the price tracker."""

import os
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass
class TrackerConfig:
    """
    Configuration container for the price tracker.

    Loaded from environment variables with sensible defaults.
    """
    # Feed settings
    symbol: str = "BTCUSDT"
    binance_ws_url: str = "wss://stream.binance.com:9443/ws/!ticker@arr"

    # Staleness detection
    stale_threshold_ms: int = 5000  # The all-market ticker stream pushes about once per second

    # Session settings
    countdown_seconds: int = 30
    tick_interval_s: float = 1.0

    # Event queue
    event_queue_size: int = 10000

    # Score reporting (empty means log only)
    score_report_url: str = ""

    # HTTP server settings
    http_host: str = "0.0.0.0"
    http_port: int = 8080

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """Load configuration from environment variables."""
        return cls(
            symbol=os.getenv("TRACKER_SYMBOL", "BTCUSDT"),
            binance_ws_url=os.getenv(
                "BINANCE_WS_URL",
                "wss://stream.binance.com:9443/ws/!ticker@arr"
            ),
            stale_threshold_ms=int(os.getenv("STALE_THRESHOLD_MS", "5000")),
            countdown_seconds=int(os.getenv("COUNTDOWN_SECONDS", "30")),
            tick_interval_s=float(os.getenv("TICK_INTERVAL_S", "1.0")),
            event_queue_size=int(os.getenv("EVENT_QUEUE_SIZE", "10000")),
            score_report_url=os.getenv("SCORE_REPORT_URL", ""),
            http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
            http_port=int(os.getenv("HTTP_PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.symbol:
            raise ConfigurationError("symbol must not be empty")

        if self.stale_threshold_ms <= 0:
            raise ConfigurationError("stale_threshold_ms must be positive")

        if self.countdown_seconds < 1:
            raise ConfigurationError("countdown_seconds must be at least 1")

        if self.tick_interval_s <= 0:
            raise ConfigurationError("tick_interval_s must be positive")

        if self.event_queue_size < 1:
            raise ConfigurationError("event_queue_size must be at least 1")

        if self.http_port < 1 or self.http_port > 65535:
            raise ConfigurationError("http_port must be between 1 and 65535")
