"""
Optimal Arbitrage Size Solver.

Closed-form trade size for a two-leg arbitrage between constant product
pools: spend quote on the cheap pool, sell the acquired base on the
expensive one.

With buy pool reserves (Q1 quote, B1 base), sell pool reserves (B2 base,
Q2 quote) and fee ratios f1, f2, spending x quote returns

    out(x) = a*x / (b + c*x)
    a = f1*f2*B1*Q2,  b = Q1*B2,  c = f1*(B2 + f2*B1)

Profit out(x) - x is concave. Setting its derivative a*b/(b + c*x)**2 - 1
to zero gives

    x* = (sqrt(a*b) - b) / c

and the base amount bought on the first leg is f1*x*B1 / (Q1 + f1*x*).
A trade exists only when a > b, i.e. sell_price * f1 * f2 > buy_price.

Reserves stay integers throughout. Multiplying a, b and c by the fee
denominators keeps them exact; Decimal is used only from the square root on.
"""
import logging
import math
from decimal import Decimal, localcontext
from typing import Union

from .exceptions import (
    IncompatibleVenuesError,
    NoOpportunityError,
    NoOpportunityReason,
)
from .models import OptimalTrade, Venue
from .pricing import validate_reserves

logger = logging.getLogger(__name__)

# Enough significant digits for products of uint256 reserves
DEFAULT_PRECISION = 78
DEFAULT_TOLERANCE = Decimal('1e-12')


def two_leg_profit(buy: Venue, sell: Venue, base_amount: Union[int, Decimal]) -> Decimal:
    """
    Profit in raw quote units of routing ``base_amount`` through the pair.

    Quote received for selling ``base_amount`` on ``sell`` minus the quote
    needed to buy ``base_amount`` out of ``buy``.

    Raises:
        ValueError: If ``base_amount`` would drain the buy pool
    """
    validate_reserves(buy)
    validate_reserves(sell)
    with localcontext() as ctx:
        ctx.prec = DEFAULT_PRECISION
        cost = buy.math.calculate_amount_in(base_amount, buy.reserve_quote, buy.reserve_base)
        received = sell.math.calculate_amount_out(base_amount, sell.reserve_base, sell.reserve_quote)
        return received - cost


class OptimalSizeSolver:
    """Solves for the profit-maximizing input of a two-leg AMM arbitrage."""

    def __init__(self,
                 precision: int = DEFAULT_PRECISION,
                 tolerance: Union[str, Decimal] = DEFAULT_TOLERANCE):
        """
        Args:
            precision: Significant digits for the Decimal square root step
            tolerance: Max allowed |d(profit)/dx| at the solution
        """
        if precision < 28:
            raise ValueError(f"Precision must be at least 28 digits, got {precision}")
        self.precision = precision
        self.tolerance = Decimal(tolerance)

    def solve(self, buy: Venue, sell: Venue) -> OptimalTrade:
        """
        Compute the optimal trade for venues already ordered as (buy, sell).

        Raises:
            InvalidReserveError: If either venue has unusable reserves
            IncompatibleVenuesError: If the venues scale their tokens differently
            NoOpportunityError: If no positive, finite, profitable size exists
        """
        validate_reserves(buy)
        validate_reserves(sell)
        if (buy.decimals_base, buy.decimals_quote) != (sell.decimals_base, sell.decimals_quote):
            raise IncompatibleVenuesError(
                f"Decimals differ between {buy.id} ({buy.decimals_base}/{buy.decimals_quote}) "
                f"and {sell.id} ({sell.decimals_base}/{sell.decimals_quote})"
            )

        buy_math, sell_math = buy.math, sell.math
        n1, d1 = buy_math.fee_numerator, buy_math.fee_denominator
        n2, d2 = sell_math.fee_numerator, sell_math.fee_denominator

        # a, b, c scaled by d1*d2 so that they are exact integers
        a = n1 * n2 * buy.reserve_base * sell.reserve_quote
        b = d1 * d2 * buy.reserve_quote * sell.reserve_base
        c = n1 * (d2 * sell.reserve_base + n2 * buy.reserve_base)

        if a <= b:
            raise NoOpportunityError(
                NoOpportunityReason.UNPROFITABLE_AFTER_FEES,
                f"Spread between {buy.id} and {sell.id} does not cover fees",
            )

        with localcontext() as ctx:
            ctx.prec = self.precision
            quote_in = (Decimal(a * b).sqrt() - b) / c

            if not quote_in.is_finite():
                raise NoOpportunityError(NoOpportunityReason.NON_FINITE_SIZE)
            if quote_in <= 0:
                raise NoOpportunityError(NoOpportunityReason.NON_POSITIVE_SIZE)

            marginal = Decimal(a) * b / (b + c * quote_in) ** 2 - 1
            if abs(marginal) > self.tolerance:
                logger.warning(
                    f"Optimum for {buy.id}->{sell.id} misses zero derivative by {marginal}"
                )
                raise NoOpportunityError(
                    NoOpportunityReason.NON_FINITE_SIZE,
                    f"Marginal profit {marginal} exceeds tolerance {self.tolerance}",
                )

            base_amount = buy_math.calculate_amount_out(quote_in, buy.reserve_quote, buy.reserve_base)
            quote_out = sell_math.calculate_amount_out(base_amount, sell.reserve_base, sell.reserve_quote)
            expected_profit = quote_out - quote_in

        executable_base = math.floor(base_amount)
        if executable_base <= 0:
            raise NoOpportunityError(
                NoOpportunityReason.NON_POSITIVE_SIZE,
                f"Optimal size {base_amount} rounds to zero",
            )

        executable_quote_in = buy_math.get_amount_in(executable_base, buy.reserve_quote, buy.reserve_base)
        executable_quote_out = sell_math.get_amount_out(executable_base, sell.reserve_base, sell.reserve_quote)
        self._check_invariants(buy, sell, executable_base, executable_quote_in, executable_quote_out)

        if executable_quote_out <= executable_quote_in:
            raise NoOpportunityError(
                NoOpportunityReason.UNPROFITABLE_AFTER_ROUNDING,
                f"Rounded trade of {executable_base} base is not profitable",
            )

        trade = OptimalTrade(
            quote_in=quote_in,
            base_amount=base_amount,
            quote_out=quote_out,
            expected_profit=expected_profit,
            executable_base_amount=executable_base,
            executable_quote_in=executable_quote_in,
            executable_quote_out=executable_quote_out,
        )
        logger.debug(
            f"Optimal trade {buy.id}->{sell.id}: {base_amount} base for {quote_in} quote, "
            f"profit {expected_profit}"
        )
        return trade

    @staticmethod
    def _check_invariants(buy: Venue,
                          sell: Venue,
                          base_amount: int,
                          quote_in: int,
                          quote_out: int) -> None:
        """Both legs must leave k unchanged or larger."""
        if not buy.math.invariant_holds(buy.reserve_quote, buy.reserve_base, quote_in, base_amount):
            raise ArithmeticError(f"Buy leg on {buy.id} would decrease k")
        if not sell.math.invariant_holds(sell.reserve_base, sell.reserve_quote, base_amount, quote_out):
            raise ArithmeticError(f"Sell leg on {sell.id} would decrease k")
