"""Shared JSON file helpers for the file-backed stores.

Unlike a cache, enforcement state must never silently read as empty: a
corrupt or unreadable file raises ``PersistenceError`` instead of returning
``[]``. Writes go through a temporary file and ``os.replace`` so a crash
mid-write leaves the previous contents intact.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

from trustsafety.errors import PersistenceError


class JsonFileStore:
    """Base class for stores that keep their records in JSON files."""

    def __init__(self, base_dir: Path) -> None:
        self._base = Path(base_dir)
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create store directory {self._base}: {exc}") from exc
        self._lock = threading.RLock()

    @property
    def base_dir(self) -> Path:
        return self._base

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc
        if not isinstance(data, type(default)):
            raise PersistenceError(f"Unexpected content in {path}")
        return data

    def _write_json(self, path: Path, data: Any) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc
