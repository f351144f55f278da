"""Append-only, file-based violation ledger.

Storage path: ``~/.trustsafety/violations/<account_id>.json``, one list of
violation dicts per account.

The ledger exposes no update or delete operation. Only the engine's trusted
context (``system``) or an admin may append; account owners may read their
own history and nothing else.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_owner_or_role, require_role
from trustsafety.concurrency import AccountLocks
from trustsafety.config import DEFAULT_DATA_DIR
from trustsafety.ledger.models import ViolationRecord
from trustsafety.storage import JsonFileStore

logger = logging.getLogger("trustsafety.ledger")


class ViolationLedger(JsonFileStore):
    """Per-account append-only record store."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(Path(base_dir) if base_dir else DEFAULT_DATA_DIR / "violations")
        # One file per account, so appends only contend per account.
        self._file_locks = AccountLocks()

    def _path_for(self, account_id: str) -> Path:
        return self._base / f"{quote(account_id, safe='')}.json"

    def _load(self, account_id: str) -> list[ViolationRecord]:
        return [
            ViolationRecord.from_dict(d)
            for d in self._read_json(self._path_for(account_id), [])
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, record: ViolationRecord, actor: Actor) -> tuple[ViolationRecord, bool]:
        """Append *record* to its account's ledger.

        Returns ``(stored_record, created)``. When a record with the same
        ``source_reference`` already exists for the account, nothing is
        written and the existing record is returned with ``created=False``,
        so a retried append never counts the same event twice.
        """
        require_role(actor, Role.admin)
        path = self._path_for(record.account_id)
        with self._file_locks.hold(record.account_id):
            rows = self._read_json(path, [])
            if record.source_reference:
                for d in rows:
                    if d.get("source_reference") == record.source_reference:
                        logger.info(
                            "Duplicate violation for %s (source %s) ignored",
                            record.account_id,
                            record.source_reference,
                        )
                        return ViolationRecord.from_dict(d), False
            rows.append(record.to_dict())
            self._write_json(path, rows)
        logger.info(
            "Violation %s recorded for %s: %s",
            record.id,
            record.account_id,
            record.type.value,
        )
        return record, True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def records(self, account_id: str) -> list[ViolationRecord]:
        """Return the account's violations oldest first (trusted callers only)."""
        return self._load(account_id)

    def list_for_account(self, account_id: str, actor: Actor) -> list[ViolationRecord]:
        """Return the account's violation history, newest first.

        Owners may read their own history; admins may read anyone's.
        """
        require_owner_or_role(actor, account_id, Role.admin)
        rows = self._load(account_id)
        rows.sort(key=lambda r: r.timestamp, reverse=True)
        return rows

    def count(self, account_id: str) -> int:
        return len(self._read_json(self._path_for(account_id), []))
