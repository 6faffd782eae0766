"""
Arbitrage evaluation for a pair of venues.

Prices both venues, picks the direction and sizes the trade. Receives
already-fetched snapshots and performs no I/O.
"""
import logging
from typing import Optional, Sequence

from .exceptions import NoOpportunityError, NoOpportunityReason
from .models import ArbitrageOpportunity, EvaluationResult, NoOpportunity, Venue
from .optimal_size import OptimalSizeSolver
from .pricing import price_of
from .spread_detector import rank_venues, select_direction

logger = logging.getLogger(__name__)


class ArbitrageEvaluator:
    """Evaluates two constant product venues for an arbitrage opportunity."""

    def __init__(self, solver: Optional[OptimalSizeSolver] = None):
        self.solver = solver or OptimalSizeSolver()

    def evaluate(self, venue_a: Venue, venue_b: Venue) -> EvaluationResult:
        """
        Evaluate two venues trading the same pair.

        Returns:
            ArbitrageOpportunity when a profitable size exists, NoOpportunity otherwise

        Raises:
            InvalidReserveError: If either venue has unusable reserves
            IncompatibleVenuesError: If the venues scale their tokens differently
        """
        # Both venues are validated before any direction or size work
        price_a = price_of(venue_a)
        price_b = price_of(venue_b)

        try:
            roles = select_direction(venue_a, venue_b)
            trade = self.solver.solve(roles.buy, roles.sell)
        except NoOpportunityError as e:
            logger.debug(f"No opportunity between {venue_a.id} and {venue_b.id}: {e}")
            return NoOpportunity(
                reason=e.reason,
                venue_a_id=venue_a.id,
                venue_b_id=venue_b.id,
                price_a=price_a,
                price_b=price_b,
                detail=str(e),
            )

        opportunity = ArbitrageOpportunity(
            buy_venue_id=roles.buy.id,
            sell_venue_id=roles.sell.id,
            direction=roles.direction,
            optimal_input_base_amount=trade.base_amount,
            optimal_input_quote_amount=trade.quote_in,
            expected_profit_quote=trade.expected_profit,
            executable_base_amount=trade.executable_base_amount,
            executable_profit_quote=trade.executable_profit,
            buy_price=roles.buy_price,
            sell_price=roles.sell_price,
            buy_price_impact=roles.buy.math.calculate_price_impact(
                trade.quote_in, roles.buy.reserve_quote, roles.buy.reserve_base
            ),
            sell_price_impact=roles.sell.math.calculate_price_impact(
                trade.base_amount, roles.sell.reserve_base, roles.sell.reserve_quote
            ),
            decimals_base=roles.buy.decimals_base,
            decimals_quote=roles.buy.decimals_quote,
        )
        logger.info(
            f"💰 Opportunity: buy {opportunity.buy_venue_id} @ {opportunity.buy_price:.6f}, "
            f"sell {opportunity.sell_venue_id} @ {opportunity.sell_price:.6f}, "
            f"size {opportunity.base_amount_display():.6f} base, "
            f"profit {opportunity.profit_display():.6f} quote"
        )
        return opportunity

    def evaluate_best_pair(self, venues: Sequence[Venue]) -> EvaluationResult:
        """
        Evaluate the cheapest venue against the most expensive one.

        Sizing stays two-legged; the remaining venues are only priced.
        """
        if len(venues) < 2:
            raise ValueError(f"Need at least two venues, got {len(venues)}")

        ranked = rank_venues(venues)
        (cheapest, low), (dearest, high) = ranked[0], ranked[-1]
        if low == high:
            return NoOpportunity(
                reason=NoOpportunityReason.EQUAL_PRICES,
                venue_a_id=cheapest.id,
                venue_b_id=dearest.id,
                price_a=low,
                price_b=high,
            )
        return self.evaluate(cheapest, dearest)
