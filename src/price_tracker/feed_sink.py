"""Price feed sink: current price and append-only history."""

import logging
import math
from typing import Any, Optional

from .errors import FeedDataError
from .util import now_ms

logger = logging.getLogger(__name__)


def parse_price(raw: Any) -> float:
    """
    Convert a raw feed value to a finite price.

    Binance sends prices as decimal strings, tests and callers may pass
    numbers directly.

    Args:
        raw: String or number from the feed

    Returns:
        Price as float

    Raises:
        FeedDataError: If the value is not a finite number
    """
    if isinstance(raw, bool) or raw is None:
        raise FeedDataError(f"not a price: {raw!r}")
    try:
        price = float(raw)
    except (TypeError, ValueError) as e:
        raise FeedDataError(f"not a price: {raw!r}") from e
    if not math.isfinite(price):
        raise FeedDataError(f"non-finite price: {raw!r}")
    return price


class PriceFeedSink:
    """
    Receives samples from the feed and keeps the price history.

    Responsibilities:
    - Append every valid sample to the history (duplicates included)
    - Track the current price
    - Track feed freshness for health reporting

    The history index is the x-coordinate used by all chart markers, so
    on_sample is the only operation that advances it.
    """

    def __init__(self, stale_threshold_ms: int = 5000):
        """
        Initialize the sink.

        Args:
            stale_threshold_ms: Threshold in ms after which the feed is considered stale
        """
        self.stale_threshold_ms = stale_threshold_ms
        self._history: list[float] = []
        self._current_price: Optional[float] = None
        self._last_sample_local_ms: Optional[int] = None
        self._dropped = 0
        self._history_view: Optional[tuple] = None

    @property
    def current_price(self) -> Optional[float]:
        """Latest price, or None before the first sample or after invalidate()."""
        return self._current_price

    @property
    def history(self) -> tuple:
        """
        Read-only view of all samples received so far.

        The tuple is built once per append and shared by every reader
        until the next sample arrives.
        """
        if self._history_view is None:
            self._history_view = tuple(self._history)
        return self._history_view

    @property
    def dropped(self) -> int:
        """Number of malformed samples dropped."""
        return self._dropped

    @property
    def last_sample_local_ms(self) -> Optional[int]:
        """Local receive time of the last accepted sample."""
        return self._last_sample_local_ms

    def __len__(self) -> int:
        return len(self._history)

    def on_sample(self, sample: Any, ts_local_ms: Optional[int] = None) -> bool:
        """
        Accept a sample from the feed.

        Args:
            sample: Raw price value
            ts_local_ms: Local receive timestamp (defaults to now)

        Returns:
            True if the sample was appended, False if it was dropped
        """
        try:
            price = parse_price(sample)
        except FeedDataError as e:
            self._dropped += 1
            logger.debug(f"Dropping sample: {e}")
            return False

        self._history.append(price)
        self._history_view = None
        self._current_price = price
        self._last_sample_local_ms = ts_local_ms if ts_local_ms is not None else now_ms()
        return True

    def invalidate(self) -> None:
        """
        Forget the current price while keeping the history.

        Called when the feed disconnects so nothing resolves against a
        price that is no longer live.
        """
        if self._current_price is not None:
            logger.info("Current price invalidated (feed disconnected)")
        self._current_price = None

    def age_ms(self, now: Optional[int] = None) -> int:
        """
        Get age in milliseconds since the last accepted sample.

        Args:
            now: Current timestamp (defaults to current time)

        Returns:
            Age in milliseconds, or a large value if no samples received
        """
        if self._last_sample_local_ms is None:
            return 999999

        if now is None:
            now = now_ms()

        return now - self._last_sample_local_ms

    def is_stale(self, now: Optional[int] = None) -> bool:
        """Check if the feed is stale."""
        return self.age_ms(now) > self.stale_threshold_ms
