"""
Signature Store
===============
The wallet's transaction references, persisted as one JSON array.

This file is the backfill checkpoint:
- Deduplicated by signature
- Always sorted by blockTime, newest first
- Only ever grows (merges never drop an entry)
"""

import json
import os
from pathlib import Path

from ledger.models import SignatureRecord
from utils.logger import get_logger

logger = get_logger(__name__)


def merge_signatures(
    new_records: list[SignatureRecord], existing_records: list[SignatureRecord]
) -> list[SignatureRecord]:
    """
    Union two signature lists keyed by signature, sorted newest first.

    A signature present in both keeps the stored record. Entries with the
    same blockTime keep their relative order (new page order first).
    """
    merged: dict[str, SignatureRecord] = {}
    for record in [*new_records, *existing_records]:
        merged[record.signature] = record
    return sorted(merged.values(), key=lambda r: r.block_time or 0, reverse=True)


class SignatureStore:
    """
    JSON-file-backed signature list.

    Usage:
        store = SignatureStore(settings.signatures_path)
        records = store.load()
        store.save(merge_signatures(page, records))
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[SignatureRecord]:
        """Read the stored signatures; an absent file is an empty store."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return [SignatureRecord.from_dict(item) for item in data]

    def save(self, records: list[SignatureRecord]) -> None:
        """Overwrite the file with `records` (written to a temp file, then swapped in)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in records], f, indent=2)
        os.replace(tmp_path, self.path)
