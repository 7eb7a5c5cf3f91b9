"""
Solana Balance Ledger: Main Entry Point
========================================
Rebuilds the SOL balance history of one wallet and writes yearly reports.

Running this file:
1. Loads configuration from .env (overridable with --wallet / --rpc)
2. Validates it before touching the network or the disk
3. Backfills signatures into output/signatures.json
4. Fetches any transactions missing from output/transactions/
5. Classifies every cached transaction and writes balance_changes_<year>.csv

Usage:
    python main.py                          # Full pipeline
    python main.py -w <wallet> -r <rpc>     # Override .env
    python main.py --yearly-sum             # Incoming SOL over the past year
    python main.py --historical-sum         # Incoming SOL older than one year

Price files go in solprice/<year>.csv (CoinMarketCap historical export).
"""

import asyncio
import argparse
import sys

from analyzer.balance_analyzer import BalanceAnalyzer
from config.settings import Settings
from fetcher.signature_backfiller import SignatureBackfiller
from fetcher.transaction_fetcher import TransactionFetcher
from ledger.signature_store import SignatureStore
from ledger.transaction_cache import DirectoryTransactionCache
from reports.price_loader import PriceLoader
from reports.report_writer import ReportWriter
from reports.sum_calculator import SumCalculator
from utils.errors import ConfigurationError
from utils.logger import bind_run_context, setup_logging, get_logger
from utils.solana_client import SolanaClient
from utils.throttle import Throttle

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solana wallet balance ledger")
    parser.add_argument("-w", "--wallet", help="Wallet address to analyze (default: WALLET_ADDRESS)")
    parser.add_argument("-r", "--rpc", help="RPC URL to use (default: RPC_URL)")
    sums = parser.add_mutually_exclusive_group()
    sums.add_argument(
        "-y", "--yearly-sum", action="store_true",
        help="Sum incoming balance changes for the past year",
    )
    sums.add_argument(
        "-H", "--historical-sum", action="store_true",
        help="Sum incoming balance changes older than one year",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings()
    if args.wallet:
        settings.wallet_address = args.wallet
    if args.rpc:
        settings.rpc_url = args.rpc
    return settings


async def run_pipeline(settings: Settings) -> None:
    """Backfill -> fetch -> analyze -> report. Each stage resumes from disk."""
    throttle = Throttle(min_interval=settings.request_interval_seconds)
    solana = SolanaClient(
        settings.rpc_url, throttle=throttle, timeout_seconds=settings.request_timeout_seconds
    )
    store = SignatureStore(settings.signatures_path)
    cache = DirectoryTransactionCache(settings.transactions_dir)

    await solana.initialize()
    try:
        # Stage 1: signatures
        backfiller = SignatureBackfiller(settings, store, solana, throttle)
        backfill = await backfiller.run()
        logger.info("total_signatures", count=backfill.total)

        # Stage 2: transactions (only if something is missing)
        fetcher = TransactionFetcher(settings, store, cache, solana, throttle)
        missing = len(fetcher.pending_signatures())
        logger.info("existing_transaction_files", count=len(cache), missing=missing)
        if missing:
            await fetcher.run()
    finally:
        await solana.close()

    # Stage 3: classify and report
    logger.info("analyzing_balance_changes")
    analysis = BalanceAnalyzer(settings, cache).run()
    writer = ReportWriter(settings.output_dir, PriceLoader(settings.price_dir))
    writer.write(analysis.balance_changes)


async def main(argv: list[str] | None = None) -> int:
    """Main async entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    setup_logging(log_level=settings.log_level, log_dir=settings.log_dir, log_format=settings.log_format)

    sum_mode = args.yearly_sum or args.historical_sum
    try:
        settings.require_valid(require_pipeline=not sum_mode)
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return 1

    if args.yearly_sum:
        SumCalculator(settings.output_dir, settings.report_timezone).trailing_sum()
        return 0
    if args.historical_sum:
        SumCalculator(settings.output_dir, settings.report_timezone).historical_sum()
        return 0

    bind_run_context(wallet=settings.wallet_address)
    logger.info("ledger_starting", output=settings.output_dir)
    try:
        await run_pipeline(settings)
    except KeyboardInterrupt:
        logger.info("ledger_stopping", reason="keyboard_interrupt")
        return 130
    except Exception as e:
        logger.error("ledger_error", error=str(e), type=type(e).__name__)
        raise
    logger.info("ledger_finished")
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
