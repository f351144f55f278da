"""Violation ledger records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from trustsafety.moderation.models import Severity


class ViolationType(str, Enum):
    """Kinds of policy breach, each with a fixed reputation decrement."""

    contact_sharing = "contact_sharing"
    spam = "spam"
    inappropriate_content = "inappropriate_content"
    no_show = "no_show"

    @property
    def weight(self) -> float:
        return {
            ViolationType.contact_sharing: 0.5,
            ViolationType.inappropriate_content: 0.4,
            ViolationType.spam: 0.3,
            ViolationType.no_show: 0.2,
        }[self]


@dataclass(frozen=True)
class ViolationRecord:
    """A single recorded violation. Immutable once created."""

    account_id: str
    type: ViolationType
    description: str = ""
    severity: Severity = Severity.medium  # severity at detection
    source_reference: Optional[str] = None  # e.g. originating message id
    reported_by: Optional[str] = None
    id: str = ""
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", uuid.uuid4().hex[:16])
        if not self.timestamp:
            object.__setattr__(self, "timestamp", datetime.now(timezone.utc).isoformat())
        if not isinstance(self.type, ViolationType):
            object.__setattr__(self, "type", ViolationType(self.type))
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity(self.severity))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "type": self.type.value,
            "description": self.description,
            "severity": self.severity.value,
            "source_reference": self.source_reference,
            "reported_by": self.reported_by,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict) -> ViolationRecord:
        return cls(
            id=d["id"],
            account_id=d["account_id"],
            type=ViolationType(d["type"]),
            description=d.get("description", ""),
            severity=Severity(d.get("severity", "medium")),
            source_reference=d.get("source_reference"),
            reported_by=d.get("reported_by"),
            timestamp=d.get("timestamp", ""),
        )
