"""Chart marker projection."""

from typing import Optional

from .types import Markers, Session

COUNTDOWN_SECONDS = 30


def project(
    session: Optional[Session],
    history_length: int,
    countdown_seconds: int = COUNTDOWN_SECONDS,
) -> Markers:
    """
    Derive marker indices for the renderer.

    - baseline: where the session started
    - countdown_end: where the window would end at one sample per second
    - end: where the history actually was when the countdown ran out

    Args:
        session: Current session, or None before the first start
        history_length: Current length of the price history
        countdown_seconds: Countdown length used for the projected end

    Returns:
        Markers (all None without a session)
    """
    if session is None:
        return Markers()

    end_marker = history_length if session.remaining_seconds == 0 else None

    return Markers(
        baseline_marker=session.baseline_index,
        countdown_end_marker=session.baseline_index + countdown_seconds,
        end_marker=end_marker,
    )
