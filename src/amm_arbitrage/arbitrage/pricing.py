"""Spot prices of constant product venues."""
import logging
from decimal import Decimal, localcontext

from .exceptions import InvalidReserveError
from .models import Venue

logger = logging.getLogger(__name__)

# Significant digits for price arithmetic, independent of the caller's context
PRICE_PRECISION = 78


def _check_reserve(venue_id: str, name: str, value) -> None:
    if value is None:
        raise InvalidReserveError(venue_id, f"{name} is missing")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidReserveError(venue_id, f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidReserveError(venue_id, f"{name} must be positive, got {value}")


def validate_reserves(venue: Venue) -> None:
    """
    Reject a venue whose reserves cannot define a price.

    Raises:
        InvalidReserveError: If either reserve is missing, non-integer, zero or negative
    """
    _check_reserve(venue.id, "reserve_base", venue.reserve_base)
    _check_reserve(venue.id, "reserve_quote", venue.reserve_quote)


def price_of(venue: Venue) -> Decimal:
    """
    Spot price of the base asset in quote units (quote per base).

    price = (reserve_quote / 10**decimals_quote) / (reserve_base / 10**decimals_base)

    Computed fresh on every call from the venue's reserves.
    """
    validate_reserves(venue)
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        price = venue.math.get_spot_price(
            venue.to_base_units(venue.reserve_base),
            venue.to_quote_units(venue.reserve_quote),
        )
    logger.debug(f"Spot price on {venue.id}: {price}")
    return price
