"""Event types for the tracker's single event queue."""

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class TrackerEvent:
    """Base class for tracker queue events."""
    ts_local_ms: int


@dataclass(slots=True)
class PriceSampleEvent(TrackerEvent):
    """Price for the tracked symbol from the feed."""
    price: float
    ts_exchange_ms: Optional[int] = None


@dataclass(slots=True)
class ClockTickEvent(TrackerEvent):
    """One countdown second elapsed for the given session."""
    session_id: int


@dataclass(slots=True)
class StartSessionEvent(TrackerEvent):
    """User pressed start."""
    pass


@dataclass(slots=True)
class SetTurnEvent(TrackerEvent):
    """Caller changed the current turn identifier."""
    turn: Optional[int]


@dataclass(slots=True)
class FeedDisconnectedEvent(TrackerEvent):
    """Feed connection dropped; the current price is no longer live."""
    reason: str = ""
