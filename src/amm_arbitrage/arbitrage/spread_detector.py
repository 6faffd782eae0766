"""
Spread detection between venues trading the same pair.

The trader buys the base asset where it is cheap and sells it where it is
expensive. Pricing works for any number of venues; sizing is two-legged, so
``select_direction`` only ever picks a pair.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Tuple

from .exceptions import NoOpportunityError, NoOpportunityReason
from .models import TradeDirection, Venue, VenueRoles
from .pricing import price_of

logger = logging.getLogger(__name__)


def rank_venues(venues: Iterable[Venue]) -> List[Tuple[Venue, Decimal]]:
    """
    Price every venue and sort them from cheapest to most expensive.

    All venues are validated before any comparison is made.
    """
    priced = [(venue, price_of(venue)) for venue in venues]
    return sorted(priced, key=lambda item: item[1])


def select_direction(venue_a: Venue, venue_b: Venue) -> VenueRoles:
    """
    Assign buy/sell roles to two venues.

    Raises:
        InvalidReserveError: If either venue has unusable reserves
        NoOpportunityError: If both venues quote the same price
    """
    price_a = price_of(venue_a)
    price_b = price_of(venue_b)

    if price_a == price_b:
        raise NoOpportunityError(
            NoOpportunityReason.EQUAL_PRICES,
            f"{venue_a.id} and {venue_b.id} both quote {price_a}",
        )

    if price_a < price_b:
        roles = VenueRoles(
            buy=venue_a, sell=venue_b,
            buy_price=price_a, sell_price=price_b,
            direction=TradeDirection.BUY_A_SELL_B,
        )
    else:
        roles = VenueRoles(
            buy=venue_b, sell=venue_a,
            buy_price=price_b, sell_price=price_a,
            direction=TradeDirection.BUY_B_SELL_A,
        )

    logger.debug(
        f"Direction {roles.direction.value}: buy {roles.buy.id} @ {roles.buy_price}, "
        f"sell {roles.sell.id} @ {roles.sell_price}"
    )
    return roles
