"""Type definitions for the price tracker."""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum, auto


class Outcome(Enum):
    """
    Binary result of a prediction session.

    Naming follows the game's betting convention: FUTURE_UP wins when the
    price ends below the baseline.
    """
    FUTURE_UP = 0
    FUTURE_DOWN = 1

    @property
    def code(self) -> int:
        """Wire code sent to the score reporter (0 = up, 1 = down)."""
        return self.value

    @property
    def label(self) -> str:
        """Human readable result."""
        return "Future Up" if self is Outcome.FUTURE_UP else "Future Down"


class SessionState(Enum):
    """Session lifecycle states.

    IDLE: No session has been started yet.
    ARMED: Baseline captured, countdown running or waiting for a price.
    RESOLVED: Outcome computed and reported.
    """
    IDLE = auto()
    ARMED = auto()
    RESOLVED = auto()


@dataclass(slots=True)
class PriceTick:
    """
    Normalized ticker update for one symbol.

    Carries both exchange and local timestamps.
    """
    symbol: str
    price: float
    ts_exchange_ms: int  # Exchange event time
    ts_local_ms: int  # Local receive time


@dataclass(slots=True)
class Session:
    """One prediction attempt, owned by SessionController."""
    session_id: int
    baseline_price: float
    baseline_index: int  # History length when the session started
    remaining_seconds: int
    resolved: bool = False
    outcome: Optional[Outcome] = None


@dataclass(frozen=True, slots=True)
class Markers:
    """Chart marker indices derived from the session and history length."""
    baseline_marker: Optional[int] = None
    countdown_end_marker: Optional[int] = None
    end_marker: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Resolution:
    """Result of resolving a session."""
    session_id: int
    baseline_price: float
    final_price: float
    outcome: Outcome
    turn: Optional[int]
    reported: bool


@dataclass(slots=True)
class FeedHealth:
    """WebSocket health state."""
    connected: bool = False
    last_event_ts_local_ms: Optional[int] = None
    last_event_ts_exchange_ms: Optional[int] = None
    reconnect_count: int = 0


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """
    Read-only view of the tracker for renderers.

    Contract invariants:
    - A snapshot is self-consistent (taken between two events).
    - history is append-only across successive snapshots.
    """
    seq: int  # Number of events processed when the snapshot was taken
    symbol: str
    current_price: Optional[float]
    history: tuple = ()

    # Session
    state: SessionState = SessionState.IDLE
    baseline_price: Optional[float] = None  # Horizontal reference line
    remaining_seconds: int = 0
    turn: Optional[int] = None
    result: Optional[str] = None

    markers: Markers = field(default_factory=Markers)

    def to_dict(self, history_tail: Optional[int] = None) -> dict:
        """
        Serialize to dictionary for JSON transport.

        Args:
            history_tail: Keep only the last N history samples (None keeps all).
                history_offset is the index of the first sample sent, so
                marker indices stay valid against the full history.
        """
        history = self.history
        offset = 0
        if history_tail is not None and history_tail < len(history):
            offset = len(history) - history_tail
            history = history[offset:]

        return {
            "seq": self.seq,
            "symbol": self.symbol,
            "current_price": self.current_price,
            "history": list(history),
            "history_offset": offset,
            "state": self.state.name,
            "baseline_price": self.baseline_price,
            "remaining_seconds": self.remaining_seconds,
            "turn": self.turn,
            "result": self.result,
            "markers": {
                "baseline": self.markers.baseline_marker,
                "countdown_end": self.markers.countdown_end_marker,
                "end": self.markers.end_marker,
            },
        }
