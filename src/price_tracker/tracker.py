"""Price tracker - single-writer event loop around the session controller."""

import asyncio
import logging
from typing import Optional

from .events import (
    TrackerEvent,
    PriceSampleEvent,
    ClockTickEvent,
    StartSessionEvent,
    SetTurnEvent,
    FeedDisconnectedEvent,
)
from .session import SessionController
from .types import PriceTick, Resolution, TrackerSnapshot
from .util import now_ms

logger = logging.getLogger(__name__)


class PriceTracker:
    """
    Single-writer event loop for the tracker state.

    INVARIANT: only run()/dispatch() mutate the sink and the session.

    Feed ticks, countdown ticks and user actions all go through one
    queue and are processed one at a time, so a countdown reaching zero
    and a late price arriving can interleave in either order without
    racing.
    """

    def __init__(
        self,
        controller: SessionController,
        symbol: str,
        tick_interval_s: float = 1.0,
        queue_size: int = 10000,
    ):
        """
        Initialize the tracker.

        Args:
            controller: SessionController owning the session
            symbol: Tracked symbol; ticks for other symbols are ignored
            tick_interval_s: Seconds between countdown ticks
            queue_size: Maximum queued events; beyond it samples and actions are dropped and countdown ticks wait
        """
        self.controller = controller
        self.symbol = symbol.upper()
        self.tick_interval_s = tick_interval_s

        # Event queue - all events flow through here
        self.queue: asyncio.Queue[TrackerEvent] = asyncio.Queue(maxsize=queue_size)

        self._running = False
        self._event_count = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._last_resolution: Optional[Resolution] = None

    @property
    def event_count(self) -> int:
        """Number of events processed."""
        return self._event_count

    @property
    def last_resolution(self) -> Optional[Resolution]:
        """Most recent resolution, if any."""
        return self._last_resolution

    # --- producers -------------------------------------------------------

    def submit(self, event: TrackerEvent) -> bool:
        """
        Enqueue an event without blocking.

        Returns:
            False if the queue was full and the event was dropped
        """
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            logger.warning(f"Event queue full, dropping {type(event).__name__}")
            return False

    async def on_tick(self, tick: PriceTick) -> None:
        """Feed callback: enqueue a price sample for the tracked symbol."""
        if tick.symbol.upper() != self.symbol:
            return
        self.submit(PriceSampleEvent(
            ts_local_ms=tick.ts_local_ms,
            price=tick.price,
            ts_exchange_ms=tick.ts_exchange_ms,
        ))

    async def on_disconnect(self, reason: str) -> None:
        """Feed callback: the current price is no longer live."""
        self.submit(FeedDisconnectedEvent(ts_local_ms=now_ms(), reason=reason))

    def request_start(self) -> bool:
        """User action: start a session at the current price."""
        return self.submit(StartSessionEvent(ts_local_ms=now_ms()))

    def request_turn(self, turn: Optional[int]) -> bool:
        """Caller action: set the turn identifier used for reporting."""
        return self.submit(SetTurnEvent(ts_local_ms=now_ms(), turn=turn))

    # --- consumer --------------------------------------------------------

    def dispatch(self, event: TrackerEvent) -> Optional[Resolution]:
        """
        Apply one event to the tracker state.

        Args:
            event: Event to process

        Returns:
            Resolution if the event resolved the session
        """
        resolution = None

        if isinstance(event, PriceSampleEvent):
            resolution = self.controller.on_sample(event.price, event.ts_local_ms)
        elif isinstance(event, ClockTickEvent):
            resolution = self.controller.tick(event.session_id)
        elif isinstance(event, StartSessionEvent):
            session = self.controller.start_session()
            if session is not None:
                self._restart_timer(session.session_id)
        elif isinstance(event, SetTurnEvent):
            self.controller.set_turn(event.turn)
        elif isinstance(event, FeedDisconnectedEvent):
            self.controller.sink.invalidate()
        else:
            logger.warning(f"Unknown event type: {type(event).__name__}")

        self._event_count += 1

        if resolution is not None:
            self._last_resolution = resolution
        return resolution

    async def run(self, shutdown_event: Optional[asyncio.Event] = None) -> None:
        """
        Main loop: get event, dispatch.
        """
        self._running = True
        logger.info(f"Price tracker started for {self.symbol}")

        while self._running:
            if shutdown_event and shutdown_event.is_set():
                break

            try:
                try:
                    event = await asyncio.wait_for(self.queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                self.dispatch(event)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Tracker error: {e}", exc_info=True)

        self._cancel_timer()
        logger.info("Price tracker stopped")

    def stop(self) -> None:
        """Stop the loop and the countdown timer."""
        self._running = False
        self._cancel_timer()

    # --- countdown timer -------------------------------------------------

    def _restart_timer(self, session_id: int) -> None:
        """Replace the countdown timer with one for the given session."""
        self._cancel_timer()
        self._timer_task = asyncio.get_running_loop().create_task(
            self._countdown(session_id),
            name=f"countdown_{session_id}",
        )

    def _cancel_timer(self) -> None:
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

    async def _countdown(self, session_id: int) -> None:
        """
        Enqueue one ClockTickEvent per interval for the whole countdown.

        Ticks wait for queue space instead of being dropped: a lost tick
        would leave the session armed forever.
        """
        for _ in range(self.controller.countdown_seconds):
            await asyncio.sleep(self.tick_interval_s)
            event = ClockTickEvent(ts_local_ms=now_ms(), session_id=session_id)
            try:
                self.queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Event queue full, waiting to enqueue tick for session {session_id}")
                await self.queue.put(event)

    # --- read side -------------------------------------------------------

    def snapshot(self) -> TrackerSnapshot:
        """
        Build a read-only view of the current state.

        Must be called from the event loop thread; taken between events.
        """
        sink = self.controller.sink
        session = self.controller.session

        return TrackerSnapshot(
            seq=self._event_count,
            symbol=self.symbol,
            current_price=sink.current_price,
            history=sink.history,
            state=self.controller.state,
            baseline_price=session.baseline_price if session else None,
            remaining_seconds=session.remaining_seconds if session else 0,
            turn=self.controller.turn,
            result=session.outcome.label if session and session.outcome else None,
            markers=self.controller.markers(),
        )
