"""
Tests for TransactionFetcher: pending set, per-signature persistence,
failure tracking and resume behaviour.
"""

from __future__ import annotations

import asyncio
import json

from conftest import FakeSolana, WALLET, make_tx, sig
from fetcher.transaction_fetcher import TransactionFetcher
from ledger.models import SignatureRecord
from ledger.signature_store import SignatureStore
from ledger.transaction_cache import DirectoryTransactionCache, MemoryTransactionCache
from utils.errors import TransientFetchError


def _store(settings, *names):
    store = SignatureStore(settings.signatures_path)
    store.save([SignatureRecord.from_dict(sig(n, 100 - i)) for i, n in enumerate(names)])
    return store


def _tx(name):
    return make_tx(name, [WALLET], [1], [2])


def test_pending_is_store_minus_cache(settings, throttle):
    store = _store(settings, "S1", "S2", "S3")
    cache = MemoryTransactionCache({"S2": _tx("S2")})
    fetcher = TransactionFetcher(settings, store, cache, FakeSolana(), throttle)
    assert fetcher.pending_signatures() == ["S1", "S3"]


def test_fetches_and_persists_each_signature(settings, throttle, sleeper):
    store = _store(settings, "S1", "S2")
    cache = DirectoryTransactionCache(settings.transactions_dir)
    solana = FakeSolana(transactions={"S1": _tx("S1"), "S2": _tx("S2")})

    result = asyncio.run(TransactionFetcher(settings, store, cache, solana, throttle).run())

    assert result.fetched == 2
    assert result.failed == []
    assert cache.keys() == {"S1", "S2"}
    saved = json.loads((settings.transactions_dir / "S1.json").read_text())
    assert saved["transaction"]["signatures"] == ["S1"]
    assert sleeper.delays == [0.2, 0.2]
    assert not settings.fetch_errors_path.exists()


def test_failure_is_recorded_and_run_continues(settings, throttle, sleeper):
    store = _store(settings, "S1", "S2", "S3")
    cache = DirectoryTransactionCache(settings.transactions_dir)
    solana = FakeSolana(transactions={
        "S1": _tx("S1"),
        "S2": TransientFetchError("getTransaction", "HTTP 503"),
        "S3": _tx("S3"),
    })

    result = asyncio.run(TransactionFetcher(settings, store, cache, solana, throttle).run())

    assert solana.tx_calls == ["S1", "S2", "S3"]
    assert result.failed == ["S2"]
    assert result.fetched == 2
    assert result.cached_total == 2
    assert json.loads(settings.fetch_errors_path.read_text()) == ["S2"]
    assert sleeper.delays == [0.2, 1.0, 0.2]


def test_not_found_counts_as_failure(settings, throttle):
    store = _store(settings, "S1")
    cache = MemoryTransactionCache()
    result = asyncio.run(TransactionFetcher(settings, store, cache, FakeSolana(), throttle).run())
    assert result.failed == ["S1"]
    assert len(cache) == 0


def test_rerun_only_requests_missing(settings, throttle):
    store = _store(settings, "S1", "S2")
    cache = DirectoryTransactionCache(settings.transactions_dir)
    first = FakeSolana(transactions={"S1": _tx("S1")})
    asyncio.run(TransactionFetcher(settings, store, cache, first, throttle).run())

    second = FakeSolana(transactions={"S1": _tx("S1"), "S2": _tx("S2")})
    result = asyncio.run(TransactionFetcher(settings, store, cache, second, throttle).run())

    assert second.tx_calls == ["S2"]
    assert result.pending == 1
    assert cache.keys() == {"S1", "S2"}


def test_nothing_pending(settings, throttle, sleeper):
    store = _store(settings, "S1")
    cache = MemoryTransactionCache({"S1": _tx("S1")})
    solana = FakeSolana()
    result = asyncio.run(TransactionFetcher(settings, store, cache, solana, throttle).run())
    assert result.pending == 0
    assert solana.tx_calls == []
    assert sleeper.delays == []


class FailingWriteCache(MemoryTransactionCache):
    """Memory cache whose writes fail for chosen signatures, like a full disk."""

    def __init__(self, failing: set[str]):
        super().__init__()
        self.failing = failing

    def put(self, signature, transaction):
        if signature in self.failing:
            raise OSError(28, "No space left on device")
        super().put(signature, transaction)


def test_cache_write_failure_is_recorded_and_run_continues(settings, throttle, sleeper):
    store = _store(settings, "S1", "S2", "S3")
    cache = FailingWriteCache({"S2"})
    solana = FakeSolana(transactions={n: _tx(n) for n in ("S1", "S2", "S3")})

    result = asyncio.run(TransactionFetcher(settings, store, cache, solana, throttle).run())

    assert result.failed == ["S2"]
    assert result.fetched == 2
    assert cache.keys() == {"S1", "S3"}
    assert json.loads(settings.fetch_errors_path.read_text()) == ["S2"]
    assert sleeper.delays == [0.2, 1.0, 0.2]
