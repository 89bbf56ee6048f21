"""Outcome resolution for a finished session."""

from .types import Outcome


def resolve(baseline: float, final: float) -> Outcome:
    """
    Classify a session from its baseline and final price.

    A final price strictly below the baseline is FUTURE_UP. Everything
    else, including an unchanged price, is FUTURE_DOWN.

    Args:
        baseline: Price captured when the session started
        final: Most recent price when the countdown ended

    Returns:
        Outcome
    """
    if final < baseline:
        return Outcome.FUTURE_UP
    return Outcome.FUTURE_DOWN
