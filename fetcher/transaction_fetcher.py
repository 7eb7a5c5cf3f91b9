"""
Transaction Fetcher
===================
Downloads the full transaction for every signature we know about but
haven't cached yet.

- Pending work = Signature Store minus Transaction Cache
- One request at a time, with a short pause after each success and a
  longer one after each failure
- Each success is written to the cache immediately; each failure is
  appended to fetch_errors.json immediately
- A failure never stops the run. Failed signatures stay pending and are
  retried the next time the fetcher runs.
"""

from dataclasses import dataclass, field

from config.settings import Settings
from ledger.side_files import write_json_list
from ledger.signature_store import SignatureStore
from ledger.transaction_cache import TransactionCache
from utils.errors import TransientFetchError
from utils.logger import get_logger
from utils.solana_client import SolanaClient
from utils.throttle import Throttle

logger = get_logger(__name__)


@dataclass
class FetchResult:
    pending: int
    fetched: int
    failed: list[str] = field(default_factory=list)
    cached_total: int = 0


class TransactionFetcher:
    """
    Drains the pending signatures into the transaction cache.

    Usage:
        fetcher = TransactionFetcher(settings, store, cache, solana, throttle)
        result = await fetcher.run()
    """

    def __init__(
        self,
        settings: Settings,
        store: SignatureStore,
        cache: TransactionCache,
        solana: SolanaClient,
        throttle: Throttle,
    ):
        self.settings = settings
        self.store = store
        self.cache = cache
        self.solana = solana
        self.throttle = throttle

    def pending_signatures(self) -> list[str]:
        """Known signatures without a cached transaction, newest first."""
        return self.cache.pending(r.signature for r in self.store.load())

    async def run(self) -> FetchResult:
        pending = self.pending_signatures()
        total = len(pending)
        logger.info("transactions_to_fetch", count=total)

        fetched = 0
        failures: list[str] = []

        for i, signature in enumerate(pending, start=1):
            try:
                transaction = await self.solana.get_transaction(signature)
                self.cache.put(signature, transaction)
            except (TransientFetchError, OSError) as e:
                logger.error("transaction_fetch_failed", signature=signature, error=str(e))
                failures.append(signature)
                write_json_list(self.settings.fetch_errors_path, failures)
                await self.throttle.pause(self.settings.tx_failure_delay_seconds)
                continue

            fetched += 1
            logger.info("transaction_fetched", progress=f"{i}/{total}", signature=signature)
            await self.throttle.pause(self.settings.tx_delay_seconds)

        result = FetchResult(
            pending=total,
            fetched=fetched,
            failed=failures,
            cached_total=len(self.cache),
        )
        logger.info("transactions_cached", total=result.cached_total, fetched=fetched)
        if failures:
            logger.warning(
                "transactions_failed",
                count=len(failures),
                path=str(self.settings.fetch_errors_path),
                note="Re-run to retry them",
            )
        return result
