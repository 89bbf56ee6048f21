"""Price Tracker - live price prediction mini-game.

This service is responsible for:
- Binance ticker ingestion for one tracked symbol
- Price history and current price bookkeeping
- A single prediction session with a fixed countdown
- Resolving and reporting the session outcome exactly once
- Serving state snapshots and the start action over HTTP
"""

from .types import Outcome, Session, SessionState, Markers, TrackerSnapshot
from .resolver import resolve
from .markers import project
from .feed_sink import PriceFeedSink
from .session import SessionController

__version__ = "0.1.0"

__all__ = [
    "Outcome",
    "Session",
    "SessionState",
    "Markers",
    "TrackerSnapshot",
    "resolve",
    "project",
    "PriceFeedSink",
    "SessionController",
]
