"""Audit trail for enforcement actions.

Every recorded violation, suspension, reinstatement and appeal step is
appended as one JSON line to a daily file under ``~/.trustsafety/audit_logs/``.
Entries are keyed by the account they concern so an operator can replay the
enforcement history of one account.
"""

from __future__ import annotations

import csv
import io
import json
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from trustsafety.config import DEFAULT_DATA_DIR
from trustsafety.errors import PersistenceError


class AuditAction(str, Enum):
    violation_recorded = "violation.recorded"
    account_suspended = "account.suspended"
    account_reinstated = "account.reinstated"
    appeal_submitted = "appeal.submitted"
    appeal_approved = "appeal.approved"
    appeal_rejected = "appeal.rejected"


@dataclass
class AuditEntry:
    id: str
    timestamp: str
    actor: str
    action: str
    account_id: str
    subject_id: str = ""  # violation, suspension or appeal id
    details: dict[str, Any] = field(default_factory=dict)


_CSV_FIELDS = ["id", "timestamp", "actor", "action", "account_id", "subject_id"]


class AuditLogger:
    """Append-only JSONL audit trail, one file per UTC day."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else DEFAULT_DATA_DIR / "audit_logs"
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create audit directory {self._base_dir}: {exc}") from exc
        self._lock = threading.Lock()

    def _path_for(self, day: datetime) -> Path:
        return self._base_dir / f"{day:%Y-%m-%d}.jsonl"

    def _load(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
                entries.extend(AuditEntry(**json.loads(line)) for line in lines if line.strip())
            except (OSError, ValueError, TypeError) as exc:
                raise PersistenceError(f"Cannot read audit file {path}: {exc}") from exc
        return entries

    def record(
        self,
        action: AuditAction | str,
        actor: str,
        account_id: str,
        subject_id: str = "",
        **details: Any,
    ) -> AuditEntry:
        """Append one entry and return it."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor,
            action=AuditAction(action).value,
            account_id=account_id,
            subject_id=subject_id,
            details=details,
        )
        line = json.dumps(asdict(entry), default=str)
        try:
            with self._lock, self._path_for(now).open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            raise PersistenceError(f"Cannot write audit entry: {exc}") from exc
        return entry

    def events(
        self,
        *,
        account_id: Optional[str] = None,
        actor: Optional[str] = None,
        action: Optional[AuditAction | str] = None,
        since: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return matching entries, newest first. *since* is an ISO timestamp."""
        wanted = AuditAction(action).value if action else None
        entries = [
            e
            for e in self._load()
            if (account_id is None or e.account_id == account_id)
            and (actor is None or e.actor == actor)
            and (wanted is None or e.action == wanted)
            and (since is None or e.timestamp >= since)
        ]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export(self, fmt: str = "json", **filters: Any) -> str:
        """Render matching entries as ``json`` or ``csv``."""
        entries = self.events(**filters)
        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=_CSV_FIELDS, extrasaction="ignore")
            writer.writeheader()
            for e in entries:
                writer.writerow(asdict(e))
            return buf.getvalue()
        if fmt != "json":
            raise ValueError(f"Unsupported export format '{fmt}'")
        return json.dumps([asdict(e) for e in entries], indent=2, default=str)
