"""Helpers for the JSON side files (fetch failures, analysis outcomes)."""

import json
import os
from pathlib import Path


def write_json_list(path: Path, items: list) -> None:
    """Rewrite a JSON array file, swapping it in only once fully written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(items, f, indent=2)
    os.replace(tmp_path, path)


def write_if_not_empty(path: Path, items: list) -> bool:
    """Write the file only when there is something to record. Returns True if written."""
    if not items:
        return False
    write_json_list(path, items)
    return True
