"""Main application for the price tracker."""

import asyncio
import logging
import signal
from typing import Optional

from dotenv import load_dotenv

from .config import TrackerConfig
from .binance_ws import BinanceTickerClient
from .feed_sink import PriceFeedSink
from .reporter import ScoreReporter, HttpScoreReporter, LoggingScoreReporter
from .session import SessionController
from .tracker import PriceTracker
from .server import TrackerServer
from .util import setup_logging

logger = logging.getLogger(__name__)


class PriceTrackerApp:
    """
    Main application that wires everything together.

    Component graph:
    BinanceTickerClient --> PriceTracker queue --> SessionController --> ScoreReporter
                                  |                       |
                                  |                 PriceFeedSink
                                  └──────────► TrackerServer (GET /state, POST /session/start)
    """

    def __init__(self, config: TrackerConfig, reporter: Optional[ScoreReporter] = None):
        """
        Initialize the application.

        Args:
            config: Application configuration
            reporter: ScoreReporter override (defaults from config)
        """
        self.config = config

        # Validate config
        config.validate()

        self._reporter_override = reporter

        # Components
        self.sink: Optional[PriceFeedSink] = None
        self.reporter: Optional[ScoreReporter] = None
        self.controller: Optional[SessionController] = None
        self.tracker: Optional[PriceTracker] = None
        self.binance: Optional[BinanceTickerClient] = None
        self.server: Optional[TrackerServer] = None

        # Control
        self._shutdown_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    def _build_reporter(self) -> ScoreReporter:
        if self._reporter_override is not None:
            return self._reporter_override
        if self.config.score_report_url:
            return HttpScoreReporter(self.config.score_report_url)
        return LoggingScoreReporter()

    def _setup_components(self) -> None:
        """Initialize all components."""
        self.sink = PriceFeedSink(stale_threshold_ms=self.config.stale_threshold_ms)
        self.reporter = self._build_reporter()

        self.controller = SessionController(
            sink=self.sink,
            reporter=self.reporter,
            countdown_seconds=self.config.countdown_seconds,
        )

        self.tracker = PriceTracker(
            controller=self.controller,
            symbol=self.config.symbol,
            tick_interval_s=self.config.tick_interval_s,
            queue_size=self.config.event_queue_size,
        )

        # Feed client pushes into the tracker queue
        self.binance = BinanceTickerClient(
            symbol=self.config.symbol,
            url=self.config.binance_ws_url,
            on_tick=self.tracker.on_tick,
            on_disconnect=self.tracker.on_disconnect,
        )

        self.server = TrackerServer(
            tracker=self.tracker,
            feed_health=self.binance.health,
            host=self.config.http_host,
            port=self.config.http_port,
        )

    async def start(self) -> None:
        """Start the application."""
        logger.info("Starting price tracker...")

        self._setup_components()

        await self.server.start()

        self._tasks = [
            asyncio.create_task(
                self.tracker.run(self._shutdown_event),
                name="tracker"
            ),
            asyncio.create_task(
                self.binance.run(self._shutdown_event),
                name="binance_ws"
            ),
        ]

        logger.info("Price tracker started")

    async def stop(self) -> None:
        """Stop the application."""
        logger.info("Stopping price tracker...")

        self._shutdown_event.set()

        # Release the feed first so nothing is pushed into a stopped tracker
        if self.binance:
            self.binance.stop()
        if self.tracker:
            self.tracker.stop()

        for task in self._tasks:
            task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        if self.server:
            await self.server.stop()

        if self.reporter:
            await self.reporter.aclose()

        logger.info("Price tracker stopped")

    async def run(self) -> None:
        """
        Run the application until shutdown signal.

        Handles SIGINT and SIGTERM for graceful shutdown.
        """
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal)

        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    def _handle_signal(self) -> None:
        """Handle shutdown signal."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()


def main() -> None:
    """Entry point for the application."""
    load_dotenv()

    config = TrackerConfig.from_env()

    setup_logging("price_tracker", level=config.log_level)

    logger.info(
        f"Starting with config: symbol={config.symbol}, "
        f"countdown={config.countdown_seconds}s, port={config.http_port}"
    )

    app = PriceTrackerApp(config)
    asyncio.run(app.run())


if __name__ == "__main__":
    main()
