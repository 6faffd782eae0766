"""Application settings and configuration."""
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from ..arbitrage.models import VenueConfig
from ..protocols.dex_protocols import DEFAULT_FEE_RATIO, to_fee_ratio


def default_venues() -> List[VenueConfig]:
    """Uniswap V2 and SushiSwap USDC/WETH pairs on Ethereum mainnet."""
    # Both pairs hold USDC as token0 and WETH as token1
    return [
        VenueConfig(
            id="uniswap_v2",
            pair_address="0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc",
            base_is_token0=False,
            decimals_base=18,
            decimals_quote=6,
        ),
        VenueConfig(
            id="sushiswap",
            pair_address="0x397FF1542f962076d0BFE58eA045FfA2d347ACa0",
            base_is_token0=False,
            decimals_base=18,
            decimals_quote=6,
        ),
    ]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # RPC URLs for different chains
    ethereum_rpc_url: Optional[str] = Field(
        default="https://eth.llamarpc.com",
        description="Ethereum mainnet RPC URL",
        alias="ETHEREUM_RPC_URL"
    )

    arbitrum_rpc_url: Optional[str] = Field(
        default=None,
        description="Arbitrum mainnet RPC URL",
        alias="ARBITRUM_RPC_URL"
    )

    base_rpc_url: Optional[str] = Field(
        default=None,
        description="Base mainnet RPC URL",
        alias="BASE_RPC_URL"
    )

    rpc_request_timeout: float = Field(
        default=30.0,
        description="HTTP timeout for a single RPC request in seconds",
        alias="RPC_REQUEST_TIMEOUT"
    )

    # Reserve fetching
    fetch_timeout_seconds: float = Field(
        default=10.0,
        description="Deadline for fetching one venue's reserves",
        alias="FETCH_TIMEOUT_SECONDS",
        gt=0
    )

    max_snapshot_age_seconds: Optional[float] = Field(
        default=60.0,
        description="Reject reserve snapshots older than this; an empty value or 'none' disables the check",
        alias="MAX_SNAPSHOT_AGE_SECONDS"
    )

    poll_interval_seconds: float = Field(
        default=12.0,
        description="Delay between scans when polling",
        alias="POLL_INTERVAL_SECONDS",
        gt=0
    )

    # Solver settings
    default_fee_ratio: Decimal = Field(
        default=DEFAULT_FEE_RATIO,
        description="Fraction of input kept after the venue fee (0.997 = 0.3% fee)",
        alias="DEFAULT_FEE_RATIO"
    )

    solver_precision: int = Field(
        default=78,
        description="Significant digits used for the optimal size square root",
        alias="SOLVER_PRECISION",
        ge=28
    )

    solver_tolerance: Decimal = Field(
        default=Decimal("1e-12"),
        description="Max marginal profit allowed at the solved optimum",
        alias="SOLVER_TOLERANCE",
        gt=0
    )

    venues: List[VenueConfig] = Field(
        default_factory=default_venues,
        description="Venues to scan, as a JSON list",
        alias="VENUES",
        min_length=2
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator("default_fee_ratio", mode="before")
    @classmethod
    def _validate_fee_ratio(cls, value):
        return to_fee_ratio(value)

    @field_validator("max_snapshot_age_seconds", mode="before")
    @classmethod
    def _parse_max_snapshot_age(cls, value):
        if isinstance(value, str) and value.strip().lower() in ("", "none"):
            return None
        return value

    @model_validator(mode="after")
    def _apply_default_fee_ratio(self):
        # Venues that do not set fee_ratio explicitly inherit the default
        self.venues = [
            venue if "fee_ratio" in venue.model_fields_set
            else venue.model_copy(update={"fee_ratio": self.default_fee_ratio})
            for venue in self.venues
        ]
        return self

    def rpc_urls(self) -> dict:
        """Configured RPC URL per chain name."""
        urls = {
            "ethereum": self.ethereum_rpc_url,
            "arbitrum": self.arbitrum_rpc_url,
            "base": self.base_rpc_url,
        }
        return {chain: url for chain, url in urls.items() if url}


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
