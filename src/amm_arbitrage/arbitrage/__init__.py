"""
Cross-venue AMM arbitrage engine.

Pure pricing, direction selection and closed-form sizing for two constant
product pools. No I/O happens in this package.
"""
from .exceptions import (
    ArbitrageError,
    IncompatibleVenuesError,
    InvalidReserveError,
    NoOpportunityError,
    NoOpportunityReason,
    StaleSnapshotError,
    UpstreamFetchError,
)
from .models import (
    ArbitrageOpportunity,
    EvaluationResult,
    NoOpportunity,
    OptimalTrade,
    ReserveSnapshot,
    TradeDirection,
    Venue,
    VenueConfig,
    VenueRoles,
)
from .pricing import price_of, validate_reserves
from .spread_detector import rank_venues, select_direction
from .optimal_size import OptimalSizeSolver, two_leg_profit
from .evaluator import ArbitrageEvaluator

__all__ = [
    # Errors
    "ArbitrageError",
    "IncompatibleVenuesError",
    "InvalidReserveError",
    "NoOpportunityError",
    "NoOpportunityReason",
    "StaleSnapshotError",
    "UpstreamFetchError",

    # Models
    "ArbitrageOpportunity",
    "EvaluationResult",
    "NoOpportunity",
    "OptimalTrade",
    "ReserveSnapshot",
    "TradeDirection",
    "Venue",
    "VenueConfig",
    "VenueRoles",

    # Engine
    "price_of",
    "validate_reserves",
    "rank_venues",
    "select_direction",
    "OptimalSizeSolver",
    "two_leg_profit",
    "ArbitrageEvaluator",
]
