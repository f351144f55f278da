"""File-based JSON storage for appeals.

Storage path: ``~/.trustsafety/appeals/appeals.json`` -- list of appeal dicts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from trustsafety.appeals.models import Appeal, AppealStatus
from trustsafety.config import DEFAULT_DATA_DIR
from trustsafety.errors import Conflict, NotFound, ValidationError
from trustsafety.storage import JsonFileStore


class AppealStore(JsonFileStore):
    """Appeal records; at most one pending appeal per account."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(Path(base_dir) if base_dir else DEFAULT_DATA_DIR / "appeals")
        self._appeals_path = self._base / "appeals.json"

    def create(self, appeal: Appeal) -> Appeal:
        """Persist a new pending appeal. Raises ``Conflict`` on a second pending one."""
        with self._lock:
            rows = self._read_json(self._appeals_path, [])
            for d in rows:
                if d["account_id"] == appeal.account_id and d.get("status") == "pending":
                    raise Conflict(f"Account '{appeal.account_id}' already has a pending appeal")
            rows.append(appeal.to_dict())
            self._write_json(self._appeals_path, rows)
        return appeal

    def get(self, appeal_id: str) -> Optional[Appeal]:
        """Look up an appeal by ID. Returns None if not found."""
        for d in self._read_json(self._appeals_path, []):
            if d["id"] == appeal_id:
                return Appeal.from_dict(d)
        return None

    def list_appeals(
        self,
        status: Optional[AppealStatus] = None,
        account_id: Optional[str] = None,
    ) -> list[Appeal]:
        """Return appeals oldest first, optionally filtered."""
        appeals = [Appeal.from_dict(d) for d in self._read_json(self._appeals_path, [])]
        if status:
            appeals = [a for a in appeals if a.status == status]
        if account_id:
            appeals = [a for a in appeals if a.account_id == account_id]
        return appeals

    def pending_for_account(self, account_id: str) -> Optional[Appeal]:
        pending = self.list_appeals(status=AppealStatus.pending, account_id=account_id)
        return pending[0] if pending else None

    def for_suspension(self, suspension_id: str) -> list[Appeal]:
        return [a for a in self.list_appeals() if a.suspension_id == suspension_id]

    def decide(
        self,
        appeal_id: str,
        status: AppealStatus,
        admin_id: str,
        notes: str = "",
    ) -> Appeal:
        """Move a pending appeal to *status*. Raises ``Conflict`` if already decided."""
        if status == AppealStatus.pending:
            raise ValidationError("An appeal can only be decided as approved or rejected")
        with self._lock:
            rows = self._read_json(self._appeals_path, [])
            for d in rows:
                if d["id"] == appeal_id:
                    if d.get("status") != "pending":
                        raise Conflict(f"Appeal '{appeal_id}' was already {d.get('status')}")
                    d["status"] = status.value
                    d["resolved_at"] = datetime.now(timezone.utc).isoformat()
                    d["resolved_by"] = admin_id
                    d["resolution_notes"] = notes
                    self._write_json(self._appeals_path, rows)
                    return Appeal.from_dict(d)
        raise NotFound(f"Appeal '{appeal_id}' not found")
