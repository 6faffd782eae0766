"""Command line runner: scan the configured venues and log the result."""
import argparse
import asyncio
import logging
from typing import List, Optional

from .arbitrage.evaluator import ArbitrageEvaluator
from .arbitrage.exceptions import ArbitrageError
from .arbitrage.models import ArbitrageOpportunity, EvaluationResult
from .arbitrage.optimal_size import OptimalSizeSolver
from .blockchain_connector import BlockchainProvider, UniswapV2ReserveSource
from .config.settings import Settings, get_settings
from .scanner import PairScanner

logger = logging.getLogger(__name__)


def build_scanner(settings: Settings, provider: BlockchainProvider) -> PairScanner:
    """Wire the scanner from settings around an existing provider."""
    solver = OptimalSizeSolver(
        precision=settings.solver_precision,
        tolerance=settings.solver_tolerance
    )
    return PairScanner(
        reserve_source=UniswapV2ReserveSource(provider),
        evaluator=ArbitrageEvaluator(solver),
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        max_snapshot_age_seconds=settings.max_snapshot_age_seconds
    )


def report(result: EvaluationResult) -> None:
    """Log an evaluation result in display units."""
    if isinstance(result, ArbitrageOpportunity):
        logger.info(
            f"{result.buy_venue_id} price: {result.buy_price:.6f}, "
            f"{result.sell_venue_id} price: {result.sell_price:.6f} "
            f"(spread {result.spread() * 100:.4f}%)"
        )
        logger.info(
            f"Optimal size (buy {result.buy_venue_id}, sell {result.sell_venue_id}): "
            f"{result.base_amount_display():.8f} base for {result.quote_amount_display():.6f} quote, "
            f"expected profit {result.profit_display():.6f} quote"
        )
        logger.info(
            f"Price impact: buy leg {result.buy_price_impact * 100:.4f}%, "
            f"sell leg {result.sell_price_impact * 100:.4f}%"
        )
    else:
        logger.info(
            f"No opportunity between {result.venue_a_id} ({result.price_a}) and "
            f"{result.venue_b_id} ({result.price_b}): {result.reason.value}"
        )


async def run(settings: Settings, interval: Optional[float] = None) -> None:
    """Scan once, or every ``interval`` seconds until cancelled."""
    provider = BlockchainProvider(settings)
    scanner = build_scanner(settings, provider)

    try:
        await provider.initialize()
        while True:
            try:
                report(await scanner.scan_all(settings.venues))
            except ArbitrageError as e:
                if interval is None:
                    raise
                logger.error(f"❌ Scan failed: {e}")

            if interval is None:
                break
            await asyncio.sleep(interval)
    finally:
        await provider.close()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Detect and size AMM arbitrage between two venues')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--once', action='store_true',
                      help='Scan once and exit (default)')
    mode.add_argument('--interval', type=float,
                      help='Poll every INTERVAL seconds')
    mode.add_argument('--poll', action='store_true',
                      help='Poll using POLL_INTERVAL_SECONDS from settings')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser.parse_args(argv)


def cli(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = get_settings()
    interval = args.interval
    if args.poll:
        interval = settings.poll_interval_seconds

    try:
        asyncio.run(run(settings, interval))
    except KeyboardInterrupt:
        logger.info("🛑 Shutdown requested by user")
    except ArbitrageError as e:
        logger.error(f"❌ {e}")
        return 1
    return 0
