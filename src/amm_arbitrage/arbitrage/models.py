"""
Arbitrage Data Models.

Value types describing venues, reserve snapshots and evaluation results.
All of them are immutable; an evaluation is a pure function of two Venues.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..protocols.dex_protocols import ConstantProductMath, DEFAULT_FEE_RATIO, to_fee_ratio
from .exceptions import NoOpportunityReason


def _check_decimals(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")


class TradeDirection(str, Enum):
    """Which of the two evaluated venues is bought from."""
    BUY_A_SELL_B = "buy_a_sell_b"
    BUY_B_SELL_A = "buy_b_sell_a"


@dataclass(frozen=True)
class Venue:
    """
    One constant product liquidity pool.

    Reserves are raw on-chain integers (before decimal scaling). They are
    validated when a price or size is computed, not at construction, so
    that an invalid snapshot surfaces as ``InvalidReserveError``.
    """
    id: str
    reserve_base: Optional[int]
    reserve_quote: Optional[int]
    decimals_base: int = 18
    decimals_quote: int = 6
    fee_ratio: Decimal = DEFAULT_FEE_RATIO

    def __post_init__(self):
        object.__setattr__(self, "fee_ratio", to_fee_ratio(self.fee_ratio))
        _check_decimals("decimals_base", self.decimals_base)
        _check_decimals("decimals_quote", self.decimals_quote)

    @property
    def math(self) -> ConstantProductMath:
        """Swap math for this venue's fee ratio."""
        return ConstantProductMath(self.fee_ratio)

    def to_base_units(self, amount: Union[int, Decimal]) -> Decimal:
        """Convert a raw base amount to display units."""
        return Decimal(amount).scaleb(-self.decimals_base)

    def to_quote_units(self, amount: Union[int, Decimal]) -> Decimal:
        """Convert a raw quote amount to display units."""
        return Decimal(amount).scaleb(-self.decimals_quote)


@dataclass(frozen=True)
class ReserveSnapshot:
    """Reserves of one venue as read from the chain."""
    venue_id: str
    reserve_base: int
    reserve_quote: int
    as_of: datetime
    block_number: Optional[int] = None

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        """Seconds elapsed since the snapshot was taken."""
        now = now or datetime.now(timezone.utc)
        return (now - self.as_of).total_seconds()


@dataclass(frozen=True)
class VenueRoles:
    """Venues ordered for a trade: buy base where cheap, sell where dear."""
    buy: Venue
    sell: Venue
    buy_price: Decimal
    sell_price: Decimal
    direction: TradeDirection


@dataclass(frozen=True)
class OptimalTrade:
    """
    Profit-maximizing trade for an ordered venue pair.

    Continuous amounts are in raw units as ``Decimal``; the ``executable_*``
    fields are integer amounts computed with on-chain rounding.
    """
    quote_in: Decimal
    base_amount: Decimal
    quote_out: Decimal
    expected_profit: Decimal
    executable_base_amount: int
    executable_quote_in: int
    executable_quote_out: int

    @property
    def executable_profit(self) -> int:
        return self.executable_quote_out - self.executable_quote_in


class ArbitrageOpportunity(BaseModel):
    """A sized cross-venue arbitrage opportunity."""

    buy_venue_id: str = Field(..., description="Venue where the base asset is bought")
    sell_venue_id: str = Field(..., description="Venue where the base asset is sold")
    direction: TradeDirection = Field(..., description="Direction relative to the evaluated pair")

    optimal_input_base_amount: Decimal = Field(..., description="Base amount routed through the buy leg (raw units)", gt=0)
    optimal_input_quote_amount: Decimal = Field(..., description="Quote spent on the buy leg (raw units)", gt=0)
    expected_profit_quote: Decimal = Field(..., description="Profit at the optimum in quote (raw units)")

    executable_base_amount: int = Field(..., description="Optimal base amount rounded down", gt=0)
    executable_profit_quote: int = Field(..., description="Profit of the rounded trade with on-chain rounding")

    buy_price: Decimal = Field(..., description="Spot price on the buy venue (quote per base)", gt=0)
    sell_price: Decimal = Field(..., description="Spot price on the sell venue (quote per base)", gt=0)
    buy_price_impact: Decimal = Field(..., description="Price impact of the buy leg (0.01 = 1%)")
    sell_price_impact: Decimal = Field(..., description="Price impact of the sell leg (0.01 = 1%)")

    decimals_base: int = Field(default=18, ge=0)
    decimals_quote: int = Field(default=6, ge=0)

    model_config = {"frozen": True}

    def spread(self) -> Decimal:
        """Relative price difference between the sell and buy venues."""
        return self.sell_price / self.buy_price - 1

    def base_amount_display(self) -> Decimal:
        """Optimal base amount in display units."""
        return self.optimal_input_base_amount.scaleb(-self.decimals_base)

    def quote_amount_display(self) -> Decimal:
        """Quote spent on the buy leg in display units."""
        return self.optimal_input_quote_amount.scaleb(-self.decimals_quote)

    def profit_display(self) -> Decimal:
        """Expected profit in display units of the quote asset."""
        return self.expected_profit_quote.scaleb(-self.decimals_quote)


class NoOpportunity(BaseModel):
    """Sentinel result: the pair cannot be arbitraged profitably."""

    reason: NoOpportunityReason = Field(..., description="Why no opportunity exists")
    venue_a_id: str
    venue_b_id: str
    price_a: Optional[Decimal] = None
    price_b: Optional[Decimal] = None
    detail: Optional[str] = None

    model_config = {"frozen": True}


EvaluationResult = Union[ArbitrageOpportunity, NoOpportunity]


class VenueConfig(BaseModel):
    """Static configuration of a Uniswap V2 style pair."""

    id: str = Field(..., description="Human readable venue name")
    pair_address: str = Field(..., description="Pair contract address")
    chain: str = Field(default="ethereum", description="Chain the pair lives on")
    base_is_token0: bool = Field(default=False, description="Whether the base asset is token0 of the pair")
    decimals_base: int = Field(default=18, ge=0)
    decimals_quote: int = Field(default=6, ge=0)
    fee_ratio: Decimal = Field(default=DEFAULT_FEE_RATIO, description="Fraction of input kept after fee")

    @field_validator("fee_ratio", mode="before")
    @classmethod
    def _validate_fee_ratio(cls, value):
        return to_fee_ratio(value)

    def build_venue(self, snapshot: ReserveSnapshot) -> Venue:
        """Combine this configuration with fetched reserves."""
        return Venue(
            id=self.id,
            reserve_base=snapshot.reserve_base,
            reserve_quote=snapshot.reserve_quote,
            decimals_base=self.decimals_base,
            decimals_quote=self.decimals_quote,
            fee_ratio=self.fee_ratio,
        )
