"""Score reporters - deliver session outcomes to the scoring side."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import aiohttp
import orjson

logger = logging.getLogger(__name__)


class ScoreReporter(ABC):
    """
    Abstract base class for score reporters.

    Receives (turn, outcome_code) once per resolved session, where
    outcome_code is 0 for FUTURE_UP and 1 for FUTURE_DOWN.
    report() is called from the event loop and must not block.
    """

    @abstractmethod
    def report(self, turn: int, outcome_code: int) -> None:
        """
        Deliver one outcome.

        Args:
            turn: Turn identifier supplied by the caller
            outcome_code: 0 (FUTURE_UP) or 1 (FUTURE_DOWN)
        """
        ...

    async def aclose(self) -> None:
        """Release resources. Default implementation does nothing."""
        pass


class LoggingScoreReporter(ScoreReporter):
    """Reporter that only logs outcomes (used when no scoring URL is set)."""

    def report(self, turn: int, outcome_code: int) -> None:
        logger.info(f"Score report: turn={turn} result={outcome_code}")


class CallbackScoreReporter(ScoreReporter):
    """Reporter that forwards outcomes to a plain callable."""

    def __init__(self, callback: Callable[[int, int], None]):
        self._callback = callback

    def report(self, turn: int, outcome_code: int) -> None:
        self._callback(turn, outcome_code)


class HttpScoreReporter(ScoreReporter):
    """
    Posts outcomes to the scoring service as JSON.

    Each report becomes a background task so the event loop never waits
    on the network. Failures are logged, never retried: a report is
    delivered at most once.
    """

    def __init__(self, url: str, timeout_seconds: float = 5.0):
        """
        Initialize the reporter.

        Args:
            url: Endpoint receiving {"turn": int, "result": int}
            timeout_seconds: Request timeout
        """
        self.url = url
        self.timeout_seconds = timeout_seconds

        self._session: Optional[aiohttp.ClientSession] = None
        self._pending: set[asyncio.Task] = set()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def post(self, turn: int, outcome_code: int) -> bool:
        """
        Send one report.

        Returns:
            True if the scoring service accepted it
        """
        body = orjson.dumps({"turn": turn, "result": outcome_code})
        try:
            session = await self._get_session()
            async with session.post(
                self.url,
                data=body,
                headers={"Content-Type": "application/json"},
            ) as resp:
                if resp.status >= 300:
                    logger.warning(f"Score report for turn {turn} returned {resp.status}")
                    return False
                logger.info(f"Score reported: turn={turn} result={outcome_code}")
                return True

        except asyncio.TimeoutError:
            logger.warning(f"Score report for turn {turn} timed out")
            return False

        except aiohttp.ClientError as e:
            logger.warning(f"Score report for turn {turn} failed: {e}")
            return False

    def report(self, turn: int, outcome_code: int) -> None:
        task = asyncio.get_running_loop().create_task(
            self.post(turn, outcome_code),
            name=f"score_report_{turn}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def aclose(self) -> None:
        """Wait for in-flight reports, then close the HTTP session."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._session and not self._session.closed:
            await self._session.close()
