"""
Constant Product Math Implementation.

Implements the constant product formula (x * y = k) used by Uniswap V2
and its forks (SushiSwap, PancakeSwap, etc.), for an arbitrary fee ratio.

Two flavours are provided:
- exact integer methods (``get_amount_out`` / ``get_amount_in``) that mirror
  the on-chain rounding and are used for invariant checks;
- continuous ``Decimal`` methods (``calculate_*``) used by the optimizer.
"""
from decimal import Decimal, InvalidOperation
from typing import Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_FEE_RATIO = Decimal('0.997')

Number = Union[int, Decimal]


def to_fee_ratio(value: Union[str, int, float, Decimal]) -> Decimal:
    """Convert a fee ratio to Decimal, validating the (0, 1] range."""
    if isinstance(value, bool):
        raise ValueError(f"Fee ratio must be a number, got {value!r}")
    try:
        # str() keeps 0.997 as 0.997 instead of its binary expansion
        ratio = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Fee ratio must be a number, got {value!r}") from e
    if not ratio.is_finite() or ratio <= 0 or ratio > 1:
        raise ValueError(f"Fee ratio must be in (0, 1], got {value!r}")
    return ratio


class ConstantProductMath:
    """
    Constant product AMM math for a pool with a given fee ratio.

    The fee ratio is the fraction of the input retained after the fee,
    e.g. 0.997 for the 0.3% Uniswap V2 fee.
    """

    def __init__(self, fee_ratio: Union[str, float, Decimal] = DEFAULT_FEE_RATIO):
        """
        Initialize constant product math.

        Args:
            fee_ratio: Fraction of input retained after fee (default 0.997)
        """
        self.fee_ratio = to_fee_ratio(fee_ratio)
        # Exact rational form, e.g. 0.997 -> (997, 1000)
        self.fee_numerator, self.fee_denominator = self.fee_ratio.as_integer_ratio()

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """
        Exact integer output amount, rounded down like the pair contract.

        Formula: amountOut = (amountIn * n * reserveOut) / (reserveIn * d + amountIn * n)
        where n/d is the fee ratio.
        """
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return 0

        amount_in_with_fee = amount_in * self.fee_numerator
        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in * self.fee_denominator + amount_in_with_fee
        return numerator // denominator

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """
        Exact integer input required for a desired output, rounded up.

        Formula: amountIn = (reserveIn * amountOut * d) / ((reserveOut - amountOut) * n) + 1

        Raises:
            ValueError: If the reserves are empty or the trade would drain the pool
        """
        if reserve_in <= 0 or reserve_out <= 0:
            raise ValueError("Reserves must be positive")
        if amount_out <= 0:
            return 0
        if amount_out >= reserve_out:
            raise ValueError(f"Trade would drain pool: {amount_out} >= {reserve_out}")

        numerator = reserve_in * amount_out * self.fee_denominator
        denominator = (reserve_out - amount_out) * self.fee_numerator
        return numerator // denominator + 1

    def calculate_amount_out(self,
                             amount_in: Number,
                             reserve_in: Number,
                             reserve_out: Number) -> Decimal:
        """
        Continuous output amount for a given input.

        Formula: amountOut = reserveOut * amountIn * fee / (reserveIn + amountIn * fee)

        Args:
            amount_in: Amount of input token
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool

        Returns:
            Amount of output token
        """
        amount_in = Decimal(amount_in)
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return Decimal('0')

        amount_in_with_fee = amount_in * self.fee_ratio
        return Decimal(reserve_out) * amount_in_with_fee / (Decimal(reserve_in) + amount_in_with_fee)

    def calculate_amount_in(self,
                            amount_out: Number,
                            reserve_in: Number,
                            reserve_out: Number) -> Decimal:
        """
        Continuous input required for a desired output.

        Formula: amountIn = reserveIn * amountOut / ((reserveOut - amountOut) * fee)

        Raises:
            ValueError: If the reserves are empty or the trade would drain the pool
        """
        amount_out = Decimal(amount_out)
        if reserve_in <= 0 or reserve_out <= 0:
            raise ValueError("Reserves must be positive")
        if amount_out <= 0:
            return Decimal('0')
        if amount_out >= reserve_out:
            raise ValueError(f"Trade would drain pool: {amount_out} >= {reserve_out}")

        return Decimal(reserve_in) * amount_out / ((Decimal(reserve_out) - amount_out) * self.fee_ratio)

    def calculate_price_impact(self,
                               amount_in: Number,
                               reserve_in: Number,
                               reserve_out: Number) -> Decimal:
        """
        Calculate the price impact of a trade.

        Price impact = 1 - (post_trade_price / pre_trade_price)

        Returns:
            Price impact as a decimal (0.01 = 1% impact)
        """
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return Decimal('0')

        pre_trade_price = Decimal(reserve_out) / Decimal(reserve_in)
        amount_out = self.calculate_amount_out(amount_in, reserve_in, reserve_out)

        new_reserve_in = Decimal(reserve_in) + Decimal(amount_in)
        new_reserve_out = Decimal(reserve_out) - amount_out
        post_trade_price = new_reserve_out / new_reserve_in

        return Decimal('1') - (post_trade_price / pre_trade_price)

    def get_spot_price(self,
                       reserve_in: Number,
                       reserve_out: Number,
                       include_fee: bool = False) -> Decimal:
        """
        Get the current spot price (output tokens per input token).

        Args:
            reserve_in: Reserve of input token
            reserve_out: Reserve of output token
            include_fee: Whether to apply the fee ratio to the price
        """
        if reserve_in <= 0 or reserve_out <= 0:
            raise ValueError("Reserves must be positive")

        spot_price = Decimal(reserve_out) / Decimal(reserve_in)
        if include_fee:
            spot_price *= self.fee_ratio
        return spot_price

    @staticmethod
    def calculate_invariant(reserve_0: int, reserve_1: int) -> int:
        """Calculate the invariant k = x * y."""
        return reserve_0 * reserve_1

    def invariant_holds(self,
                        reserve_in: int,
                        reserve_out: int,
                        amount_in: int,
                        amount_out: int) -> bool:
        """Check that a swap leaves k unchanged or larger (fees accrue to k)."""
        if amount_out >= reserve_out:
            return False
        k_before = self.calculate_invariant(reserve_in, reserve_out)
        k_after = self.calculate_invariant(reserve_in + amount_in, reserve_out - amount_out)
        return k_after >= k_before
