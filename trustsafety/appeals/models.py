"""Appeal data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class AppealStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class AppealDecision(str, Enum):
    """What an admin may decide for a pending appeal."""

    approved = "approved"
    rejected = "rejected"


@dataclass
class Appeal:
    """A request to reverse one suspension."""

    account_id: str
    suspension_id: str
    message: str
    status: AppealStatus = AppealStatus.pending
    id: str = ""
    submitted_at: str = ""
    resolved_at: Optional[str] = None
    resolved_by: Optional[str] = None
    resolution_notes: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = uuid.uuid4().hex[:16]
        if not self.submitted_at:
            self.submitted_at = datetime.now(timezone.utc).isoformat()
        if isinstance(self.status, str):
            self.status = AppealStatus(self.status)

    @property
    def is_pending(self) -> bool:
        return self.status == AppealStatus.pending

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "suspension_id": self.suspension_id,
            "message": self.message,
            "status": self.status.value,
            "submitted_at": self.submitted_at,
            "resolved_at": self.resolved_at,
            "resolved_by": self.resolved_by,
            "resolution_notes": self.resolution_notes,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Appeal:
        return cls(
            id=d["id"],
            account_id=d["account_id"],
            suspension_id=d.get("suspension_id", ""),
            message=d.get("message", ""),
            status=AppealStatus(d.get("status", "pending")),
            submitted_at=d.get("submitted_at", ""),
            resolved_at=d.get("resolved_at"),
            resolved_by=d.get("resolved_by"),
            resolution_notes=d.get("resolution_notes", ""),
        )
