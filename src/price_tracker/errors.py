"""Custom exceptions for the price tracker."""


class PriceTrackerError(Exception):
    """Base exception for price tracker errors."""
    pass


class FeedDataError(PriceTrackerError):
    """Raised when a feed message or sample is malformed."""
    pass


class ConfigurationError(PriceTrackerError):
    """Raised when configuration is invalid."""
    pass
