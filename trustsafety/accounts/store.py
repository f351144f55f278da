"""File-based JSON storage for accounts.

Storage path: ``~/.trustsafety/accounts/accounts.json`` (a list of account
dicts). Reads are strongly consistent with preceding writes from the same
process.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from trustsafety.accounts.models import INITIAL_REPUTATION, Account, AccountStatus
from trustsafety.config import DEFAULT_DATA_DIR
from trustsafety.errors import Conflict, NotFound, ValidationError
from trustsafety.storage import JsonFileStore


class AccountStore(JsonFileStore):
    """File-based storage for accounts."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(Path(base_dir) if base_dir else DEFAULT_DATA_DIR / "accounts")
        self._accounts_path = self._base / "accounts.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _account_from_dict(d: dict) -> Account:
        return Account(
            id=d["id"],
            reputation_score=float(d.get("reputation_score", INITIAL_REPUTATION)),
            status=AccountStatus(d.get("status", "active")),
            can_appeal=bool(d.get("can_appeal", False)),
            is_active=bool(d.get("is_active", True)),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )

    @staticmethod
    def _account_to_dict(a: Account) -> dict:
        return {
            "id": a.id,
            "reputation_score": a.reputation_score,
            "status": a.status.value,
            "can_appeal": a.can_appeal,
            "is_active": a.is_active,
            "created_at": a.created_at,
            "updated_at": a.updated_at,
        }

    def _update(self, account_id: str, **fields) -> Account:
        with self._lock:
            accounts = self._read_json(self._accounts_path, [])
            for d in accounts:
                if d["id"] == account_id:
                    d.update(fields)
                    d["updated_at"] = datetime.now(timezone.utc).isoformat()
                    self._write_json(self._accounts_path, accounts)
                    return self._account_from_dict(d)
        raise NotFound(f"Account '{account_id}' not found")

    # ------------------------------------------------------------------
    # Account CRUD
    # ------------------------------------------------------------------

    def create_account(self, account_id: str) -> Account:
        """Register a new account at the initial reputation of 5.0."""
        if not account_id:
            raise ValidationError("Account id must not be empty")
        with self._lock:
            accounts = self._read_json(self._accounts_path, [])
            if any(d["id"] == account_id for d in accounts):
                raise Conflict(f"Account '{account_id}' already exists")
            account = Account(id=account_id)
            accounts.append(self._account_to_dict(account))
            self._write_json(self._accounts_path, accounts)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        for d in self._read_json(self._accounts_path, []):
            if d["id"] == account_id:
                return self._account_from_dict(d)
        return None

    def list_accounts(self, status: Optional[AccountStatus] = None) -> list[Account]:
        accounts = [self._account_from_dict(d) for d in self._read_json(self._accounts_path, [])]
        if status:
            accounts = [a for a in accounts if a.status == status]
        return accounts

    def update_account_status(
        self,
        account_id: str,
        status: AccountStatus,
        can_appeal: Optional[bool] = None,
    ) -> Account:
        """Set the status; ``is_active`` follows it (False only while suspended)."""
        fields = {
            "status": status.value,
            "is_active": status != AccountStatus.suspended,
        }
        if can_appeal is not None:
            fields["can_appeal"] = can_appeal
        return self._update(account_id, **fields)

    def set_can_appeal(self, account_id: str, can_appeal: bool) -> Account:
        return self._update(account_id, can_appeal=can_appeal)

    def update_reputation(self, account_id: str, score: float) -> Account:
        return self._update(account_id, reputation_score=score)
