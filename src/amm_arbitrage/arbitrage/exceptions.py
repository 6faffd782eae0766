"""Exceptions raised by the arbitrage engine and its reserve sources."""
from enum import Enum
from typing import Optional


class NoOpportunityReason(str, Enum):
    """Why an evaluation produced no tradable opportunity."""
    EQUAL_PRICES = "equal_prices"
    UNPROFITABLE_AFTER_FEES = "unprofitable_after_fees"
    NON_POSITIVE_SIZE = "non_positive_size"
    NON_FINITE_SIZE = "non_finite_size"
    UNPROFITABLE_AFTER_ROUNDING = "unprofitable_after_rounding"


class ArbitrageError(Exception):
    """Base class for all arbitrage engine errors."""


class InvalidReserveError(ArbitrageError, ValueError):
    """A reserve is zero, negative, missing or not an integer."""

    def __init__(self, venue_id: str, message: str):
        self.venue_id = venue_id
        super().__init__(f"Invalid reserves for venue {venue_id}: {message}")


class IncompatibleVenuesError(ArbitrageError, ValueError):
    """Two venues cannot be compared in raw reserve units."""


class NoOpportunityError(ArbitrageError):
    """
    No profitable trade exists for the given venues.

    This is a normal outcome rather than a failure; the evaluator turns it
    into a ``NoOpportunity`` result.
    """

    def __init__(self, reason: NoOpportunityReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason.value)


class UpstreamFetchError(ArbitrageError):
    """Reserve retrieval failed or exceeded its deadline."""

    def __init__(self, venue_id: str, message: str):
        self.venue_id = venue_id
        super().__init__(f"Failed to fetch reserves for {venue_id}: {message}")


class StaleSnapshotError(ArbitrageError):
    """A reserve snapshot is older than the allowed age."""

    def __init__(self, venue_id: str, age_seconds: float, max_age_seconds: float):
        self.venue_id = venue_id
        self.age_seconds = age_seconds
        self.max_age_seconds = max_age_seconds
        super().__init__(
            f"Reserve snapshot for {venue_id} is {age_seconds:.1f}s old "
            f"(max {max_age_seconds:.1f}s)"
        )
