"""
Unit tests for the closed-form optimal size solver.

Checks the solution against the two-leg profit function it maximizes.
"""
import math
from decimal import Decimal, localcontext

import pytest

from amm_arbitrage.arbitrage import (
    IncompatibleVenuesError,
    InvalidReserveError,
    NoOpportunityError,
    NoOpportunityReason,
    OptimalSizeSolver,
    Venue,
    two_leg_profit,
)

RELATIVE_TOLERANCE = Decimal('1e-6')


@pytest.fixture
def solver():
    return OptimalSizeSolver()


@pytest.fixture
def buy_venue():
    # 2000 USDC/ETH
    return Venue(id="venue_a", reserve_base=500 * 10**18, reserve_quote=1_000_000 * 10**6)


@pytest.fixture
def sell_venue():
    # ~2083.33 USDC/ETH
    return Venue(id="venue_b", reserve_base=480 * 10**18, reserve_quote=1_000_000 * 10**6)


def closed_form_profit(buy: Venue, sell: Venue) -> float:
    """Maximum profit (sqrt(a) - sqrt(b))**2 / c in floating point."""
    f1, f2 = float(buy.fee_ratio), float(sell.fee_ratio)
    a = f1 * f2 * buy.reserve_base * sell.reserve_quote
    b = buy.reserve_quote * sell.reserve_base
    c = f1 * (sell.reserve_base + f2 * buy.reserve_base)
    return (math.sqrt(a) - math.sqrt(b)) ** 2 / c


class TestOptimalSize:
    """Test the solver on a profitable pair."""

    def test_known_pair(self, solver, buy_venue, sell_venue):
        """Test the optimum for a 2000 vs 2083.33 USDC/ETH pair."""
        trade = solver.solve(buy_venue, sell_venue)

        # ~8639 USDC buys ~4.27 ETH for ~151.7 USDC profit
        assert Decimal('4.0e18') < trade.base_amount < Decimal('4.5e18')
        assert Decimal('8.5e9') < trade.quote_in < Decimal('8.8e9')
        assert Decimal('1.0e8') < trade.expected_profit < Decimal('2.0e8')
        assert trade.base_amount < min(buy_venue.reserve_base, sell_venue.reserve_base)

    def test_matches_closed_form_profit(self, solver, buy_venue, sell_venue):
        """Test profit at the optimum equals (sqrt(a) - sqrt(b))**2 / c."""
        trade = solver.solve(buy_venue, sell_venue)
        expected = closed_form_profit(buy_venue, sell_venue)

        assert float(trade.expected_profit) == pytest.approx(expected, rel=1e-9)

    def test_profit_consistent_with_legs(self, solver, buy_venue, sell_venue):
        """Test the reported legs add up."""
        trade = solver.solve(buy_venue, sell_venue)

        assert abs(trade.quote_out - trade.quote_in - trade.expected_profit) <= trade.expected_profit * Decimal('1e-20')
        leg_profit = two_leg_profit(buy_venue, sell_venue, trade.base_amount)
        assert abs(leg_profit - trade.expected_profit) <= trade.expected_profit * RELATIVE_TOLERANCE

    @pytest.mark.parametrize("relative_step", ["1e-9", "1e-6", "1e-3", "1e-1"])
    def test_local_maximum(self, solver, buy_venue, sell_venue, relative_step):
        """Test nearby sizes never beat the optimum."""
        trade = solver.solve(buy_venue, sell_venue)
        optimum = two_leg_profit(buy_venue, sell_venue, trade.base_amount)
        epsilon = trade.base_amount * Decimal(relative_step)

        for size in (trade.base_amount - epsilon, trade.base_amount + epsilon):
            assert two_leg_profit(buy_venue, sell_venue, size) <= optimum * (1 + RELATIVE_TOLERANCE)

    def test_brute_force_scan(self, solver, buy_venue, sell_venue):
        """Test a grid search over sizes finds nothing better."""
        trade = solver.solve(buy_venue, sell_venue)
        optimum = two_leg_profit(buy_venue, sell_venue, trade.base_amount)

        grid = [Decimal(step) * 10**16 for step in range(1, 1_000)]
        best_size = max(grid, key=lambda size: two_leg_profit(buy_venue, sell_venue, size))

        assert two_leg_profit(buy_venue, sell_venue, best_size) <= optimum
        assert abs(best_size - trade.base_amount) <= Decimal(10**16)

    def test_executable_amounts(self, solver, buy_venue, sell_venue):
        """Test the rounded trade stays profitable and close to the optimum."""
        trade = solver.solve(buy_venue, sell_venue)

        assert trade.executable_base_amount == math.floor(trade.base_amount)
        assert trade.executable_profit > 0
        assert abs(trade.executable_profit - trade.expected_profit) <= 10

        buy_math, sell_math = buy_venue.math, sell_venue.math
        assert buy_math.get_amount_out(
            trade.executable_quote_in, buy_venue.reserve_quote, buy_venue.reserve_base
        ) >= trade.executable_base_amount
        assert sell_math.get_amount_out(
            trade.executable_base_amount, sell_venue.reserve_base, sell_venue.reserve_quote
        ) == trade.executable_quote_out

    def test_deterministic(self, solver, buy_venue, sell_venue):
        """Test repeated solves give identical results."""
        assert solver.solve(buy_venue, sell_venue) == solver.solve(buy_venue, sell_venue)

    def test_different_fees(self, solver, buy_venue):
        """Test each venue's own fee ratio is used."""
        cheap_sell = Venue(
            id="low_fee", reserve_base=480 * 10**18, reserve_quote=1_000_000 * 10**6,
            fee_ratio=Decimal('0.9995')
        )
        standard_sell = Venue(id="std_fee", reserve_base=480 * 10**18, reserve_quote=1_000_000 * 10**6)

        low_fee_trade = solver.solve(buy_venue, cheap_sell)
        standard_trade = solver.solve(buy_venue, standard_sell)

        assert low_fee_trade.expected_profit > standard_trade.expected_profit
        assert float(low_fee_trade.expected_profit) == pytest.approx(
            closed_form_profit(buy_venue, cheap_sell), rel=1e-9
        )

    def test_no_fee_pools(self, solver):
        """Test fee ratio 1 captures even a small spread."""
        buy = Venue(id="a", reserve_base=1_000 * 10**18, reserve_quote=2_000_000 * 10**6, fee_ratio=1)
        sell = Venue(id="b", reserve_base=999 * 10**18, reserve_quote=2_000_000 * 10**6, fee_ratio=1)

        trade = solver.solve(buy, sell)

        assert trade.base_amount > 0
        optimum = two_leg_profit(buy, sell, trade.base_amount)
        epsilon = trade.base_amount / 1_000
        assert two_leg_profit(buy, sell, trade.base_amount + epsilon) <= optimum
        assert two_leg_profit(buy, sell, trade.base_amount - epsilon) <= optimum


class TestNoOpportunity:
    """Test cases where the solver must refuse to size a trade."""

    def test_equal_pools(self, solver, buy_venue):
        """Test identical pools cannot be arbitraged."""
        twin = Venue(id="twin", reserve_base=buy_venue.reserve_base, reserve_quote=buy_venue.reserve_quote)

        with pytest.raises(NoOpportunityError) as exc_info:
            solver.solve(buy_venue, twin)
        assert exc_info.value.reason == NoOpportunityReason.UNPROFITABLE_AFTER_FEES

    def test_inverted_roles(self, solver, buy_venue, sell_venue):
        """Test passing (sell, buy) is not silently corrected."""
        with pytest.raises(NoOpportunityError) as exc_info:
            solver.solve(sell_venue, buy_venue)
        assert exc_info.value.reason == NoOpportunityReason.UNPROFITABLE_AFTER_FEES

    def test_spread_below_fees(self, solver, buy_venue):
        """Test a 0.2% spread does not cover two 0.3% fees."""
        close = Venue(id="close", reserve_base=499 * 10**18, reserve_quote=1_000_000 * 10**6)

        with pytest.raises(NoOpportunityError) as exc_info:
            solver.solve(buy_venue, close)
        assert exc_info.value.reason == NoOpportunityReason.UNPROFITABLE_AFTER_FEES

    def test_size_rounds_to_zero(self, solver):
        """Test a positive but sub-unit optimum is reported as no opportunity."""
        buy = Venue(id="tiny_a", reserve_base=10, reserve_quote=1_000,
                    decimals_base=0, decimals_quote=0, fee_ratio=1)
        sell = Venue(id="tiny_b", reserve_base=10, reserve_quote=1_100,
                     decimals_base=0, decimals_quote=0, fee_ratio=1)

        with pytest.raises(NoOpportunityError) as exc_info:
            solver.solve(buy, sell)
        assert exc_info.value.reason == NoOpportunityReason.NON_POSITIVE_SIZE


class TestSolverValidation:
    """Test input validation."""

    def test_invalid_reserves(self, solver, buy_venue):
        """Test empty pools raise InvalidReserveError."""
        empty = Venue(id="empty", reserve_base=480 * 10**18, reserve_quote=0)

        with pytest.raises(InvalidReserveError):
            solver.solve(buy_venue, empty)
        with pytest.raises(InvalidReserveError):
            solver.solve(empty, buy_venue)

    def test_mismatched_decimals(self, solver, buy_venue):
        """Test raw reserves with different scaling are refused."""
        other = Venue(id="other", reserve_base=480 * 10**8, reserve_quote=1_000_000 * 10**6, decimals_base=8)

        with pytest.raises(IncompatibleVenuesError):
            solver.solve(buy_venue, other)

    def test_minimum_precision(self):
        """Test precision below the Decimal default is refused."""
        with pytest.raises(ValueError):
            OptimalSizeSolver(precision=10)

    def test_two_leg_profit_drain(self, buy_venue, sell_venue):
        """Test sizes that would empty the buy pool are refused."""
        with pytest.raises(ValueError):
            two_leg_profit(buy_venue, sell_venue, buy_venue.reserve_base)

    def test_two_leg_profit_ignores_caller_precision(self, buy_venue, sell_venue):
        """Test the profit does not depend on the caller's Decimal context."""
        size = Decimal('4.27e18')
        expected = two_leg_profit(buy_venue, sell_venue, size)

        with localcontext() as ctx:
            ctx.prec = 6
            assert two_leg_profit(buy_venue, sell_venue, size) == expected

    def test_two_leg_profit_zero(self, buy_venue, sell_venue):
        """Test a zero size has zero profit."""
        assert two_leg_profit(buy_venue, sell_venue, 0) == 0
