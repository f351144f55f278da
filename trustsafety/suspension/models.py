"""Suspension records, reasons and derived warning levels."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class SuspensionReason(str, Enum):
    low_reputation = "low_reputation"
    contact_sharing = "contact_sharing"
    spam = "spam"
    inappropriate = "inappropriate"
    fraud = "fraud"
    other = "other"


class WarningLevel(str, Enum):
    """Display bucketing of risk. Derived on read, never stored."""

    none = "none"
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def message(self) -> str:
        return {
            WarningLevel.critical: (
                "Critical: your account is at risk of suspension because of its low "
                "reputation. Any further violation will suspend it."
            ),
            WarningLevel.high: (
                "Final warning: you have received multiple violations. One more may "
                "result in account suspension."
            ),
            WarningLevel.medium: (
                "Warning: you have recent violations. Continued policy breaches will "
                "lead to suspension."
            ),
            WarningLevel.low: "Reminder: please follow our usage policies to avoid problems.",
            WarningLevel.none: "",
        }[self]


@dataclass
class SuspensionRecord:
    """One suspension lifecycle. Superseded on reinstatement, never deleted."""

    account_id: str
    reason: SuspensionReason
    details: str = ""
    can_appeal: bool = True
    suspended_by: str = "system"
    id: str = ""
    suspended_at: str = ""
    active: bool = True
    superseded_at: Optional[str] = None
    superseded_by: Optional[str] = None
    reinstatement_reason: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = uuid.uuid4().hex[:16]
        if not self.suspended_at:
            self.suspended_at = datetime.now(timezone.utc).isoformat()
        if isinstance(self.reason, str):
            self.reason = SuspensionReason(self.reason)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "reason": self.reason.value,
            "details": self.details,
            "can_appeal": self.can_appeal,
            "suspended_by": self.suspended_by,
            "suspended_at": self.suspended_at,
            "active": self.active,
            "superseded_at": self.superseded_at,
            "superseded_by": self.superseded_by,
            "reinstatement_reason": self.reinstatement_reason,
        }

    @classmethod
    def from_dict(cls, d: dict) -> SuspensionRecord:
        return cls(
            id=d["id"],
            account_id=d["account_id"],
            reason=SuspensionReason(d.get("reason", "other")),
            details=d.get("details", ""),
            can_appeal=bool(d.get("can_appeal", False)),
            suspended_by=d.get("suspended_by", "system"),
            suspended_at=d.get("suspended_at", ""),
            active=bool(d.get("active", False)),
            superseded_at=d.get("superseded_at"),
            superseded_by=d.get("superseded_by"),
            reinstatement_reason=d.get("reinstatement_reason", ""),
        )
