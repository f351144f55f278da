"""Account and actor models referenced by the enforcement engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

INITIAL_REPUTATION = 5.0
MIN_REPUTATION = 0.0
MAX_REPUTATION = 5.0


class Role(str, Enum):
    """Role hierarchy: system > admin > user."""

    system = "system"
    admin = "admin"
    user = "user"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.system: 50,
            Role.admin: 40,
            Role.user: 10,
        }[self]


@dataclass(frozen=True)
class Actor:
    """Whoever is performing an operation: the engine, an admin or an account owner."""

    id: str
    role: Role = Role.user

    def __post_init__(self) -> None:
        if isinstance(self.role, str) and not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))


SYSTEM_ACTOR = Actor(id="system", role=Role.system)


class AccountStatus(str, Enum):
    active = "active"
    warned = "warned"
    suspended = "suspended"


@dataclass
class Account:
    """A marketplace account as seen by the engine."""

    id: str
    reputation_score: float = INITIAL_REPUTATION
    status: AccountStatus = AccountStatus.active
    can_appeal: bool = False
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        now = datetime.now(timezone.utc).isoformat()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = self.created_at
        if isinstance(self.status, str):
            self.status = AccountStatus(self.status)

    @property
    def is_suspended(self) -> bool:
        return self.status == AccountStatus.suspended

    @property
    def score_in_range(self) -> bool:
        return MIN_REPUTATION <= self.reputation_score <= MAX_REPUTATION
