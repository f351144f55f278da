"""File-based JSON storage for suspension records.

Storage path: ``~/.trustsafety/suspensions/suspensions.json``. The active
record of an account is the latest-wins pointer; superseded records stay in
the file as history.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from trustsafety.config import DEFAULT_DATA_DIR
from trustsafety.errors import Conflict, NotFound
from trustsafety.storage import JsonFileStore
from trustsafety.suspension.models import SuspensionRecord


class SuspensionStore(JsonFileStore):
    """Suspension history with at most one active record per account."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(Path(base_dir) if base_dir else DEFAULT_DATA_DIR / "suspensions")
        self._path = self._base / "suspensions.json"

    def create(self, record: SuspensionRecord) -> SuspensionRecord:
        with self._lock:
            rows = self._read_json(self._path, [])
            if any(d["account_id"] == record.account_id and d.get("active") for d in rows):
                raise Conflict(f"Account '{record.account_id}' already has an active suspension")
            rows.append(record.to_dict())
            self._write_json(self._path, rows)
        return record

    def get(self, suspension_id: str) -> Optional[SuspensionRecord]:
        for d in self._read_json(self._path, []):
            if d["id"] == suspension_id:
                return SuspensionRecord.from_dict(d)
        return None

    def get_active(self, account_id: str) -> Optional[SuspensionRecord]:
        for d in self._read_json(self._path, []):
            if d["account_id"] == account_id and d.get("active"):
                return SuspensionRecord.from_dict(d)
        return None

    def supersede(self, suspension_id: str, actor_id: str, reason: str = "") -> SuspensionRecord:
        """Clear the active flag of a record, keeping it for audit."""
        with self._lock:
            rows = self._read_json(self._path, [])
            for d in rows:
                if d["id"] == suspension_id:
                    if not d.get("active"):
                        raise Conflict(f"Suspension '{suspension_id}' is no longer active")
                    d["active"] = False
                    d["superseded_at"] = datetime.now(timezone.utc).isoformat()
                    d["superseded_by"] = actor_id
                    d["reinstatement_reason"] = reason
                    self._write_json(self._path, rows)
                    return SuspensionRecord.from_dict(d)
        raise NotFound(f"Suspension '{suspension_id}' not found")

    def history(self, account_id: str) -> list[SuspensionRecord]:
        """Return every suspension of *account_id*, newest first."""
        rows = [
            SuspensionRecord.from_dict(d)
            for d in self._read_json(self._path, [])
            if d["account_id"] == account_id
        ]
        rows.sort(key=lambda r: r.suspended_at, reverse=True)
        return rows

    def list_active(self) -> list[SuspensionRecord]:
        return [
            SuspensionRecord.from_dict(d)
            for d in self._read_json(self._path, [])
            if d.get("active")
        ]
