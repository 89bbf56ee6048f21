"""Session controller - single prediction session and its resolution."""

import logging
from typing import Any, Optional

from .feed_sink import PriceFeedSink
from .markers import COUNTDOWN_SECONDS, project
from .reporter import ScoreReporter
from .resolver import resolve
from .types import Markers, Resolution, Session, SessionState

logger = logging.getLogger(__name__)


class SessionController:
    """
    Owns the single active session.

    State machine:
        IDLE --start--> ARMED --tick...--> (remaining == 0, price known) --> RESOLVED
        RESOLVED --start--> ARMED
        ARMED --start--> ARMED (previous session abandoned, never reported)

    INVARIANT: a session is reported at most once. The resolved flag is
    set before the reporter is called and nothing clears it.

    Not thread-safe: callers serialize access through one event queue.
    """

    def __init__(
        self,
        sink: PriceFeedSink,
        reporter: Optional[ScoreReporter] = None,
        countdown_seconds: int = COUNTDOWN_SECONDS,
    ):
        """
        Initialize the controller.

        Args:
            sink: PriceFeedSink providing current price and history
            reporter: ScoreReporter receiving outcomes (None disables reporting)
            countdown_seconds: Countdown length for each session
        """
        self.sink = sink
        self.reporter = reporter
        self.countdown_seconds = countdown_seconds

        self._session: Optional[Session] = None
        self._session_counter = 0
        self._turn: Optional[int] = None

    @property
    def session(self) -> Optional[Session]:
        """Current session (None before the first start)."""
        return self._session

    @property
    def turn(self) -> Optional[int]:
        """Turn identifier reported with the next outcome."""
        return self._turn

    @property
    def state(self) -> SessionState:
        """Lifecycle state of the current session (IDLE before the first start)."""
        if self._session is None:
            return SessionState.IDLE
        if self._session.resolved:
            return SessionState.RESOLVED
        return SessionState.ARMED

    def set_turn(self, turn: Optional[int]) -> None:
        """
        Set the externally supplied turn identifier.

        The value current at resolution time is the one reported.
        """
        self._turn = turn

    def start_session(self) -> Optional[Session]:
        """
        Start a new session at the current price.

        Does nothing when no current price is available. Replaces any
        previous session; an unresolved one is dropped without a report.

        Returns:
            The new Session, or None if no baseline could be captured
        """
        price = self.sink.current_price
        if price is None:
            logger.info("Cannot start session: no current price yet")
            return None

        previous = self._session
        if previous is not None and not previous.resolved:
            logger.info(
                f"Session {previous.session_id} abandoned with "
                f"{previous.remaining_seconds}s remaining"
            )

        self._session_counter += 1
        self._session = Session(
            session_id=self._session_counter,
            baseline_price=price,
            baseline_index=len(self.sink),
            remaining_seconds=self.countdown_seconds,
        )

        logger.info(
            f"Session {self._session.session_id} started: baseline={price} "
            f"index={self._session.baseline_index} countdown={self.countdown_seconds}s"
        )
        return self._session

    def tick(self, session_id: Optional[int] = None) -> Optional[Resolution]:
        """
        Advance the countdown by one second.

        Args:
            session_id: Session the tick was scheduled for; ticks for a
                superseded session are ignored

        Returns:
            Resolution if this tick resolved the session
        """
        session = self._session
        if session is None:
            return None
        if session_id is not None and session_id != session.session_id:
            logger.debug(f"Ignoring tick for superseded session {session_id}")
            return None

        if session.remaining_seconds > 0 and not session.resolved:
            session.remaining_seconds -= 1

        return self.check_expiry()

    def on_sample(self, sample: Any, ts_local_ms: Optional[int] = None) -> Optional[Resolution]:
        """
        Feed a sample through the sink and retry a deferred resolution.

        Returns:
            Resolution if the sample completed a session waiting for a price
        """
        if not self.sink.on_sample(sample, ts_local_ms):
            return None
        return self.check_expiry()

    def check_expiry(self) -> Optional[Resolution]:
        """
        Resolve the session if its countdown is over.

        Safe to call any number of times. When the countdown is over but no
        current price exists, resolution waits for the next call.

        Returns:
            Resolution the first time the session resolves, else None
        """
        session = self._session
        if session is None or session.resolved or session.remaining_seconds != 0:
            return None

        final = self.sink.current_price
        if final is None:
            logger.debug(f"Session {session.session_id} expired without a price, deferring")
            return None

        outcome = resolve(session.baseline_price, final)
        session.resolved = True
        session.outcome = outcome

        turn = self._turn
        reported = False
        if turn is None:
            logger.info(
                f"Session {session.session_id} resolved {outcome.label} "
                f"({session.baseline_price} -> {final}), no turn to report"
            )
        else:
            logger.info(
                f"Session {session.session_id} resolved {outcome.label} "
                f"({session.baseline_price} -> {final}), reporting turn {turn}"
            )
            reported = self._report(turn, outcome.code)

        return Resolution(
            session_id=session.session_id,
            baseline_price=session.baseline_price,
            final_price=final,
            outcome=outcome,
            turn=turn,
            reported=reported,
        )

    def _report(self, turn: int, outcome_code: int) -> bool:
        """Hand the outcome to the reporter, logging any failure."""
        if self.reporter is None:
            return False
        try:
            self.reporter.report(turn, outcome_code)
            return True
        except Exception as e:
            logger.warning(f"Score reporter failed for turn {turn}: {e}")
            return False

    def markers(self) -> Markers:
        """Project chart markers for the current state."""
        return project(self._session, len(self.sink), self.countdown_seconds)
