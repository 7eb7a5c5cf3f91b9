"""
Transaction Cache
=================
One raw getTransaction result per signature, keyed by signature.

The cache doubles as the fetcher's work queue: a signature with no
cached record is still pending. Both implementations answer the same
key-presence questions, so the fetcher and analyzer don't care whether
records live in a directory of files or in memory.

Records are immutable once written.
"""

import json
import os
from pathlib import Path
from typing import Any, Iterable, Iterator


class TransactionCache:
    """Interface shared by every cache backend."""

    def keys(self) -> set[str]:
        raise NotImplementedError

    def put(self, signature: str, transaction: Any) -> None:
        raise NotImplementedError

    def read(self, signature: str) -> Any:
        """Return the parsed record. Raises ValueError if it isn't valid JSON."""
        raise NotImplementedError

    def source_name(self, signature: str) -> str:
        """How the record is named in error reports."""
        return signature

    def has(self, signature: str) -> bool:
        return signature in self.keys()

    def pending(self, signatures: Iterable[str]) -> list[str]:
        """Signatures with no cached record, in the order given."""
        cached = self.keys()
        return [s for s in signatures if s not in cached]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.keys()))

    def __len__(self) -> int:
        return len(self.keys())


class DirectoryTransactionCache(TransactionCache):
    """
    Stores each transaction as <directory>/<signature>.json.

    Usage:
        cache = DirectoryTransactionCache(settings.transactions_dir)
        if not cache.has(sig):
            cache.put(sig, tx)
    """

    SUFFIX = ".json"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, signature: str) -> Path:
        return self.directory / f"{signature}{self.SUFFIX}"

    def keys(self) -> set[str]:
        if not self.directory.exists():
            return set()
        return {
            p.name[: -len(self.SUFFIX)]
            for p in self.directory.iterdir()
            if p.is_file() and p.name.endswith(self.SUFFIX)
        }

    def has(self, signature: str) -> bool:
        return self._path(signature).is_file()

    def put(self, signature: str, transaction: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(signature)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(transaction, f)
        os.replace(tmp_path, path)

    def read(self, signature: str) -> Any:
        with open(self._path(signature), encoding="utf-8") as f:
            return json.load(f)

    def source_name(self, signature: str) -> str:
        return self._path(signature).name


class MemoryTransactionCache(TransactionCache):
    """In-memory cache holding the serialized JSON text per signature."""

    def __init__(self, records: dict[str, Any] | None = None):
        self._records: dict[str, str] = {}
        for signature, transaction in (records or {}).items():
            self.put(signature, transaction)

    def keys(self) -> set[str]:
        return set(self._records)

    def put(self, signature: str, transaction: Any) -> None:
        self._records[signature] = json.dumps(transaction)

    def put_raw(self, signature: str, text: str) -> None:
        """Store text as-is, even if it isn't valid JSON."""
        self._records[signature] = text

    def read(self, signature: str) -> Any:
        return json.loads(self._records[signature])
