"""Binance all-market ticker WebSocket client."""

import asyncio
import logging
from typing import Optional, Callable, Awaitable

import orjson
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from .errors import FeedDataError
from .feed_sink import parse_price
from .types import PriceTick, FeedHealth
from .util import now_ms

logger = logging.getLogger(__name__)


class ExponentialBackoff:
    """Exponential backoff for reconnection."""

    def __init__(self, min_seconds: float = 1.0, max_seconds: float = 60.0):
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self._current = min_seconds

    def reset(self) -> None:
        """Reset backoff to minimum."""
        self._current = self.min_seconds

    def next(self) -> float:
        """Get next backoff duration and increase for next time."""
        current = self._current
        self._current = min(self._current * 2, self.max_seconds)
        return current


class BinanceTickerClient:
    """
    Binance ticker WebSocket client.

    Subscribes to the all-market ticker array stream and emits a PriceTick
    for every entry of the tracked symbol. Other symbols are ignored.
    Connection lifecycle (reconnect, backoff) lives entirely here; the
    tracker only sees ticks and disconnect notifications.
    """

    def __init__(
        self,
        symbol: str,
        url: str = "wss://stream.binance.com:9443/ws/!ticker@arr",
        on_tick: Optional[Callable[[PriceTick], Awaitable[None]]] = None,
        on_disconnect: Optional[Callable[[str], Awaitable[None]]] = None,
    ):
        self.symbol = symbol.upper()
        self._url = url
        self._on_tick = on_tick
        self._on_disconnect = on_disconnect

        # Connection state
        self._connected = False
        self._running = False
        self._ws: Optional[ClientConnection] = None

        # Health tracking
        self.health = FeedHealth()

        # Backoff for reconnection
        self._backoff = ExponentialBackoff()

    @property
    def connected(self) -> bool:
        """Whether the WebSocket is connected."""
        return self._connected

    def parse_message(self, raw: bytes | str) -> list[PriceTick]:
        """
        Parse a raw ticker frame into ticks for the tracked symbol.

        Args:
            raw: Raw message (JSON array of 24hr ticker objects)

        Returns:
            List of PriceTick (empty if the frame has nothing for us)

        Raises:
            FeedDataError: If the frame is not a JSON array
        """
        recv_ts_ms = now_ms()

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise FeedDataError(f"invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise FeedDataError(f"expected ticker array, got {type(data).__name__}")

        ticks = []
        for ticker in data:
            if not isinstance(ticker, dict) or ticker.get("s") != self.symbol:
                continue
            try:
                price = parse_price(ticker.get("c"))
            except FeedDataError as e:
                logger.warning(f"Bad {self.symbol} ticker entry: {e}")
                continue

            ts_exchange_ms = ticker.get("E")
            if not isinstance(ts_exchange_ms, int):
                ts_exchange_ms = recv_ts_ms

            ticks.append(PriceTick(
                symbol=self.symbol,
                price=price,
                ts_exchange_ms=ts_exchange_ms,
                ts_local_ms=recv_ts_ms,
            ))

        return ticks

    async def emit(self, tick: PriceTick) -> None:
        """
        Emit a tick to the callback.

        Args:
            tick: PriceTick to emit
        """
        self.health.last_event_ts_exchange_ms = tick.ts_exchange_ms
        self.health.last_event_ts_local_ms = tick.ts_local_ms

        if self._on_tick:
            try:
                await self._on_tick(tick)
            except Exception as e:
                logger.warning(f"Error in tick callback: {e}")

    async def handle_message(self, raw: bytes | str) -> int:
        """
        Parse one frame and emit its ticks. Malformed frames are dropped.

        Returns:
            Number of ticks emitted
        """
        try:
            ticks = self.parse_message(raw)
        except FeedDataError as e:
            logger.warning(f"Failed to parse Binance message: {e}")
            return 0

        for tick in ticks:
            await self.emit(tick)
        return len(ticks)

    async def connect(self) -> None:
        """Establish WebSocket connection."""
        logger.info(f"Connecting to Binance: {self._url[:80]}...")

        self._ws = await connect(
            self._url,
            ping_interval=20,
            ping_timeout=60,
            max_size=2**22,  # The ticker array covers every symbol
            compression=None,
        )
        self._connected = True
        self.health.connected = True
        self._backoff.reset()

        logger.info(f"Connected to Binance, tracking {self.symbol}")

    async def close(self) -> None:
        """Close the WebSocket connection."""
        was_connected = self._connected
        self._connected = False
        self.health.connected = False

        if self._ws:
            try:
                await self._ws.close()
            except Exception as e:
                logger.debug(f"Error closing Binance socket: {e}")
            self._ws = None

        if was_connected and self._on_disconnect:
            try:
                await self._on_disconnect("connection closed")
            except Exception as e:
                logger.warning(f"Error in disconnect callback: {e}")

    async def run(self, shutdown_event: Optional[asyncio.Event] = None) -> None:
        """
        Main loop: reads WS frames, parses, emits.

        Handles reconnection with exponential backoff.
        """
        self._running = True

        while self._running:
            if shutdown_event and shutdown_event.is_set():
                break

            try:
                await self.connect()

                async for message in self._ws:
                    if shutdown_event and shutdown_event.is_set():
                        break
                    if not self._running:
                        break

                    await self.handle_message(message)

            except ConnectionClosed as e:
                logger.warning(f"Binance connection closed: {e}")
                self.health.reconnect_count += 1
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"Binance error: {e}")
                self.health.reconnect_count += 1
            finally:
                await self.close()

            if shutdown_event and shutdown_event.is_set():
                break
            if not self._running:
                break

            # Wait before reconnecting
            backoff = self._backoff.next()
            logger.info(f"Reconnecting in {backoff:.1f}s...")
            await asyncio.sleep(backoff)

        logger.info("Binance ticker client stopped")

    def stop(self) -> None:
        """Stop the client."""
        self._running = False
