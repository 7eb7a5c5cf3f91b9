"""
Pytest fixtures for the ledger tests.

Everything runs against tmp_path and a scripted fake RPC client; delays are
recorded by a fake sleep instead of actually waiting.
"""

from __future__ import annotations

import pytest

from config.settings import Settings
from utils.errors import TransactionNotFoundError
from utils.throttle import Throttle

# Valid Solana pubkeys (base58, 32 bytes)
WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
OTHER = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"


class RecordingSleep:
    """Async sleep replacement that remembers every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeSolana:
    """
    Scripted stand-in for SolanaClient.

    pages: consumed in order by get_signatures_for_address; an Exception
    instance is raised instead of returned.
    transactions: signature -> tx dict or Exception; unknown signatures
    raise TransactionNotFoundError.
    """

    def __init__(self, pages=None, transactions=None):
        self.pages = list(pages or [])
        self.transactions = dict(transactions or {})
        self.page_calls: list[tuple[int, str | None]] = []
        self.tx_calls: list[str] = []

    async def get_signatures_for_address(self, address, limit=1000, before=None):
        self.page_calls.append((limit, before))
        if not self.pages:
            return []
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    async def get_transaction(self, signature):
        self.tx_calls.append(signature)
        tx = self.transactions.get(signature)
        if tx is None:
            raise TransactionNotFoundError(signature)
        if isinstance(tx, Exception):
            raise tx
        return tx


def sig(signature: str, block_time: int) -> dict:
    """A getSignaturesForAddress entry."""
    return {
        "signature": signature,
        "slot": block_time * 2,
        "err": None,
        "memo": None,
        "blockTime": block_time,
        "confirmationStatus": "finalized",
    }


def make_tx(
    signature: str,
    keys: list,
    pre: list[int] | None,
    post: list[int] | None,
    block_time: int | None = 1704067200,
    err=None,
    logs: list[str] | None = None,
) -> dict:
    """A getTransaction (jsonParsed) result with just the fields we read."""
    meta = {"err": err, "fee": 5000, "logMessages": logs or []}
    if pre is not None:
        meta["preBalances"] = pre
    if post is not None:
        meta["postBalances"] = post
    return {
        "blockTime": block_time,
        "slot": 1,
        "meta": meta,
        "transaction": {
            "signatures": [signature],
            "message": {"accountKeys": keys},
        },
    }


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at tmp_path, with small pages for paging tests."""
    return Settings(
        wallet_address=WALLET,
        rpc_url="http://localhost:8899",
        output_dir=str(tmp_path / "output"),
        price_dir=str(tmp_path / "solprice"),
        page_size=2,
        page_delay_seconds=1.0,
        page_retry_delay_seconds=5.0,
        max_page_retries=3,
        tx_delay_seconds=0.2,
        tx_failure_delay_seconds=1.0,
        request_interval_seconds=0.0,
        report_timezone="UTC",
        log_level="DEBUG",
        log_dir=None,
    )


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def throttle(sleeper):
    return Throttle(sleep=sleeper)
