"""
Signature Backfiller
====================
Pages backward through the wallet's history and merges what it finds
into the Signature Store.

The process:
1. Load the signatures we already have (the checkpoint)
2. Ask the RPC for the newest page (1000 signatures), then keep asking
   for the page before the last signature we received
3. Stop as soon as:
   - a page contains a signature we already had (we've caught up), or
   - a page comes back short (we reached the wallet's first transaction), or
   - the same page failed max_page_retries times in a row
4. Merge, dedup, sort newest first, and write the checkpoint back

Whatever was fetched before a failure is always saved.
"""

from dataclasses import dataclass

from config.settings import Settings
from ledger.models import SignatureRecord
from ledger.signature_store import SignatureStore, merge_signatures
from utils.errors import TransientFetchError
from utils.logger import get_logger
from utils.solana_client import SolanaClient
from utils.throttle import Throttle

logger = get_logger(__name__)


@dataclass
class BackfillResult:
    existing: int
    fetched: int
    added: int
    total: int
    pages: int
    aborted: bool = False


class SignatureBackfiller:
    """
    Resumable signature backfill for one wallet.

    Usage:
        backfiller = SignatureBackfiller(settings, store, solana, throttle)
        result = await backfiller.run()
    """

    def __init__(
        self,
        settings: Settings,
        store: SignatureStore,
        solana: SolanaClient,
        throttle: Throttle,
    ):
        self.settings = settings
        self.store = store
        self.solana = solana
        self.throttle = throttle

    async def run(self) -> BackfillResult:
        existing_records = self.store.load()
        if existing_records:
            logger.info("existing_signatures_loaded", count=len(existing_records))
        known = {r.signature for r in existing_records}

        new_records, pages, aborted = await self._fetch_pages(known)

        merged = merge_signatures(new_records, existing_records)
        self.store.save(merged)

        result = BackfillResult(
            existing=len(existing_records),
            fetched=len(new_records),
            added=len(merged) - len(existing_records),
            total=len(merged),
            pages=pages,
            aborted=aborted,
        )
        logger.info(
            "signatures_saved",
            path=str(self.store.path),
            existing=result.existing,
            added=result.added,
            total=result.total,
            aborted=result.aborted,
        )
        return result

    async def _fetch_pages(self, known: set[str]) -> tuple[list[SignatureRecord], int, bool]:
        """
        Page backward until caught up, exhausted, or out of retries.

        Returns (records fetched, pages fetched, aborted).
        """
        page_size = self.settings.page_size
        max_retries = self.settings.max_page_retries
        fetched: list[SignatureRecord] = []
        before: str | None = None
        pages = 0
        retry_count = 0

        while True:
            try:
                page = await self.solana.get_signatures_for_address(
                    self.settings.wallet_address, limit=page_size, before=before
                )
            except TransientFetchError as e:
                retry_count += 1
                logger.error("signature_page_failed", before=before, attempt=retry_count, error=str(e))
                if retry_count >= max_retries:
                    logger.warning(
                        "signature_backfill_aborted",
                        retries=max_retries,
                        note="Saving progress so far",
                    )
                    return fetched, pages, True
                logger.info(
                    "signature_page_retry",
                    attempt=f"{retry_count}/{max_retries}",
                    delay=self.settings.page_retry_delay_seconds,
                )
                await self.throttle.pause(self.settings.page_retry_delay_seconds)
                continue

            retry_count = 0
            pages += 1
            records = [SignatureRecord.from_dict(item) for item in page]
            logger.info("signature_page_fetched", page=pages, count=len(records))

            caught_up = any(r.signature in known for r in records)
            if records:
                before = records[-1].signature
                fetched.extend(records)

            if caught_up:
                logger.info("signature_backfill_caught_up", note="Found existing signature, stopping")
                break
            if len(records) < page_size:
                break

            await self.throttle.pause(self.settings.page_delay_seconds)

        return fetched, pages, False
