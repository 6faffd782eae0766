"""Blockchain provider for EVM reserve reads."""
from typing import Dict, Optional, Any
import logging

from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider
from web3.exceptions import Web3Exception

from ..config.settings import Settings


logger = logging.getLogger(__name__)

# Chain IDs of the networks the settings can point at
KNOWN_CHAIN_IDS = {
    "ethereum": 1,
    "arbitrum": 42161,
    "base": 8453,
}


class ChainConfig:
    """Configuration for a blockchain network."""

    def __init__(
        self,
        name: str,
        chain_id: int,
        rpc_url: str
    ):
        self.name = name
        self.chain_id = chain_id
        self.rpc_url = rpc_url


class BlockchainProvider:
    """
    Async blockchain provider owning one AsyncWeb3 client per chain.

    Created once by the caller, reused for every fetch and closed on
    shutdown. Nothing in the package keeps a global instance.
    """

    def __init__(self, settings: Settings):
        """Initialize the blockchain provider."""
        self.settings = settings
        self.web3_instances: Dict[str, AsyncWeb3] = {}
        self.chain_configs: Dict[str, ChainConfig] = {}
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize all blockchain connections."""
        if self._initialized:
            return

        logger.info("🔗 Initializing blockchain connections...")
        self._setup_chain_configs()
        await self._initialize_web3_instances()

        if not self.web3_instances:
            # Left uninitialized so the next get_web3 call reconnects
            logger.error("❌ No blockchain connection could be established")
            return

        self._initialized = True
        logger.info(f"✅ Initialized {len(self.web3_instances)} blockchain connections")

    def _setup_chain_configs(self) -> None:
        """Set up configuration for chains that have an RPC URL."""
        configs = {}
        for chain_name, rpc_url in self.settings.rpc_urls().items():
            configs[chain_name] = ChainConfig(
                name=chain_name.capitalize(),
                chain_id=KNOWN_CHAIN_IDS[chain_name],
                rpc_url=rpc_url,
            )

        self.chain_configs = configs
        logger.info(f"📋 Configured {len(configs)} chains: {list(configs.keys())}")

    async def _initialize_web3_instances(self) -> None:
        """Initialize Web3 instances for all configured chains."""
        for chain_name, config in self.chain_configs.items():
            try:
                provider = AsyncHTTPProvider(
                    config.rpc_url,
                    request_kwargs={"timeout": self.settings.rpc_request_timeout}
                )
                w3 = AsyncWeb3(provider)

                chain_id = await w3.eth.chain_id
                if chain_id != config.chain_id:
                    logger.warning(
                        f"⚠️ Chain ID mismatch for {chain_name}: "
                        f"expected {config.chain_id}, got {chain_id}"
                    )

                self.web3_instances[chain_name] = w3
                logger.info(f"✅ Connected to {config.name} (chain ID: {chain_id})")

            except Exception as e:
                logger.error(f"❌ Failed to connect to {chain_name}: {e}")
                continue

    async def get_web3(self, chain_name: str) -> Optional[AsyncWeb3]:
        """Get Web3 instance for a specific chain."""
        if not self._initialized:
            await self.initialize()

        return self.web3_instances.get(chain_name.lower())

    async def get_chain_config(self, chain_name: str) -> Optional[ChainConfig]:
        """Get chain configuration for a specific chain."""
        if not self._initialized:
            await self.initialize()

        return self.chain_configs.get(chain_name.lower())

    async def is_connected(self, chain_name: str) -> bool:
        """Check if connected to a specific chain."""
        w3 = await self.get_web3(chain_name)
        if not w3:
            return False

        try:
            return await w3.is_connected()
        except Exception:
            return False

    async def get_block_number(self, chain_name: str) -> Optional[int]:
        """Get current block number for a chain."""
        w3 = await self.get_web3(chain_name)
        if not w3:
            return None

        try:
            return await w3.eth.block_number
        except Web3Exception as e:
            logger.error(f"Failed to get block number for {chain_name}: {e}")
            return None

    async def get_chain_health(self, chain_name: str) -> Dict[str, Any]:
        """Get health information for a specific chain."""
        w3 = await self.get_web3(chain_name)
        config = await self.get_chain_config(chain_name)

        if not w3 or not config:
            return {
                "chain": chain_name,
                "status": "not_configured",
                "connected": False
            }

        try:
            is_connected = await w3.is_connected()
            block_number = await self.get_block_number(chain_name) if is_connected else None

            return {
                "chain": chain_name,
                "name": config.name,
                "chain_id": config.chain_id,
                "status": "healthy" if is_connected else "unhealthy",
                "connected": is_connected,
                "block_number": block_number,
            }
        except Exception as e:
            return {
                "chain": chain_name,
                "name": config.name,
                "status": "error",
                "connected": False,
                "error": str(e)
            }

    async def close(self) -> None:
        """Close all blockchain connections."""
        logger.info("🔒 Closing blockchain connections...")

        for chain_name, w3 in self.web3_instances.items():
            try:
                if hasattr(w3.provider, 'disconnect'):
                    await w3.provider.disconnect()
            except Exception as e:
                logger.error(f"Error closing {chain_name} connection: {e}")

        self.web3_instances.clear()
        self._initialized = False
        logger.info("✅ All blockchain connections closed")
