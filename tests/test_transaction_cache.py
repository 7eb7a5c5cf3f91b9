"""
Tests for the transaction cache backends.
"""

from __future__ import annotations

import pytest

from ledger.transaction_cache import DirectoryTransactionCache, MemoryTransactionCache


@pytest.fixture(params=["directory", "memory"])
def cache(request, tmp_path):
    if request.param == "directory":
        return DirectoryTransactionCache(tmp_path / "transactions")
    return MemoryTransactionCache()


def test_empty_cache(cache):
    assert cache.keys() == set()
    assert len(cache) == 0
    assert cache.has("S1") is False


def test_put_then_read(cache):
    cache.put("S1", {"blockTime": 1})
    assert cache.has("S1")
    assert cache.read("S1") == {"blockTime": 1}
    assert list(cache) == ["S1"]


def test_pending_preserves_order(cache):
    cache.put("S2", None)
    assert cache.pending(["S3", "S2", "S1"]) == ["S3", "S1"]


def test_directory_ignores_other_files(tmp_path):
    directory = tmp_path / "transactions"
    directory.mkdir()
    (directory / "S1.json").write_text("{}")
    (directory / "S2.json.tmp").write_text("{")
    (directory / "notes.txt").write_text("hi")
    cache = DirectoryTransactionCache(directory)
    assert cache.keys() == {"S1"}
    assert cache.source_name("S1") == "S1.json"


def test_directory_read_of_corrupt_file_raises_value_error(tmp_path):
    directory = tmp_path / "transactions"
    directory.mkdir()
    (directory / "S1.json").write_text("{not json")
    with pytest.raises(ValueError):
        DirectoryTransactionCache(directory).read("S1")
