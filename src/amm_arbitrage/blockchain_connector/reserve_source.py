"""
Reserve sources.

A reserve source turns a ``VenueConfig`` into a fresh ``ReserveSnapshot``.
Failures are reported as ``UpstreamFetchError``; sources never retry.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ..arbitrage.exceptions import UpstreamFetchError
from ..arbitrage.models import ReserveSnapshot, VenueConfig
from .provider import BlockchainProvider

logger = logging.getLogger(__name__)

# Uniswap V2 pair ABI (just getReserves)
UNISWAP_V2_PAIR_ABI = [
    {
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"internalType": "uint112", "name": "_reserve0", "type": "uint112"},
            {"internalType": "uint112", "name": "_reserve1", "type": "uint112"},
            {"internalType": "uint32", "name": "_blockTimestampLast", "type": "uint32"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]


class ReserveSource(ABC):
    """Supplies current reserves of a configured venue."""

    @abstractmethod
    async def fetch_reserves(self, config: VenueConfig) -> ReserveSnapshot:
        """
        Fetch reserves for one venue.

        Raises:
            UpstreamFetchError: If the reserves cannot be retrieved
        """


class UniswapV2ReserveSource(ReserveSource):
    """Reads reserves from Uniswap V2 style pair contracts."""

    def __init__(self, provider: BlockchainProvider):
        self.provider = provider

    async def fetch_reserves(self, config: VenueConfig) -> ReserveSnapshot:
        w3 = await self.provider.get_web3(config.chain)
        if not w3:
            raise UpstreamFetchError(config.id, f"no connection to chain {config.chain}")

        try:
            pair_contract = w3.eth.contract(
                address=w3.to_checksum_address(config.pair_address),
                abi=UNISWAP_V2_PAIR_ABI
            )
            # Pin the read to a block so the snapshot is consistent
            block_number = await w3.eth.block_number
            reserve0, reserve1, _ = await pair_contract.functions.getReserves().call(
                block_identifier=block_number
            )
        except Exception as e:
            logger.error(f"Error getting reserves from {config.id} ({config.pair_address}): {e}")
            raise UpstreamFetchError(config.id, str(e)) from e

        if config.base_is_token0:
            reserve_base, reserve_quote = reserve0, reserve1
        else:
            reserve_base, reserve_quote = reserve1, reserve0

        logger.info(f"Reserves in {config.id} (base, quote): {reserve_base}, {reserve_quote} @ block {block_number}")
        return ReserveSnapshot(
            venue_id=config.id,
            reserve_base=int(reserve_base),
            reserve_quote=int(reserve_quote),
            as_of=datetime.now(timezone.utc),
            block_number=block_number,
        )
