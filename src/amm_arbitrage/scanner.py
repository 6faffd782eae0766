"""
Pair scanner.

Fetches reserves for the configured venues concurrently, rejects stale
snapshots and hands fresh Venues to the evaluator.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from .arbitrage.evaluator import ArbitrageEvaluator
from .arbitrage.exceptions import StaleSnapshotError, UpstreamFetchError
from .arbitrage.models import EvaluationResult, ReserveSnapshot, Venue, VenueConfig
from .blockchain_connector.reserve_source import ReserveSource

logger = logging.getLogger(__name__)


class PairScanner:
    """Runs fetch-then-evaluate cycles over configured venues."""

    def __init__(
        self,
        reserve_source: ReserveSource,
        evaluator: Optional[ArbitrageEvaluator] = None,
        fetch_timeout_seconds: float = 10.0,
        max_snapshot_age_seconds: Optional[float] = None
    ):
        """
        Initialize the scanner.

        Args:
            reserve_source: Where reserves come from
            evaluator: Evaluator to run on fresh venues
            fetch_timeout_seconds: Deadline for each venue's fetch
            max_snapshot_age_seconds: Reject older snapshots; None disables the check
        """
        self.reserve_source = reserve_source
        self.evaluator = evaluator or ArbitrageEvaluator()
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.max_snapshot_age_seconds = max_snapshot_age_seconds

    async def fetch_venue(self, config: VenueConfig) -> Venue:
        """
        Fetch one venue's reserves under the deadline.

        Raises:
            UpstreamFetchError: If the fetch fails or times out
            StaleSnapshotError: If the snapshot is too old
        """
        try:
            snapshot = await asyncio.wait_for(
                self.reserve_source.fetch_reserves(config),
                timeout=self.fetch_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching reserves for {config.id}")
            raise UpstreamFetchError(
                config.id, f"timed out after {self.fetch_timeout_seconds}s"
            ) from None

        self._check_freshness(snapshot)
        return config.build_venue(snapshot)

    async def fetch_venues(self, configs: Sequence[VenueConfig]) -> List[Venue]:
        """
        Fetch all venues concurrently and wait for every fetch to finish.

        The first failure, in config order, is raised once all fetches
        are done; no partial result is returned.
        """
        results = await asyncio.gather(
            *(self.fetch_venue(config) for config in configs),
            return_exceptions=True
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            logger.warning(f"Reserve fetch failed: {failure}")
        if failures:
            raise failures[0]

        return list(results)

    async def scan(self, config_a: VenueConfig, config_b: VenueConfig) -> EvaluationResult:
        """Fetch two venues and evaluate them."""
        venue_a, venue_b = await self.fetch_venues([config_a, config_b])
        return self.evaluator.evaluate(venue_a, venue_b)

    async def scan_all(self, configs: Sequence[VenueConfig]) -> EvaluationResult:
        """Fetch every venue and evaluate the widest-spread pair."""
        if len(configs) == 2:
            return await self.scan(configs[0], configs[1])
        venues = await self.fetch_venues(configs)
        return self.evaluator.evaluate_best_pair(venues)

    def _check_freshness(self, snapshot: ReserveSnapshot) -> None:
        if self.max_snapshot_age_seconds is None:
            return
        age = snapshot.age_seconds()
        if age > self.max_snapshot_age_seconds:
            raise StaleSnapshotError(snapshot.venue_id, age, self.max_snapshot_age_seconds)
