"""Suspension state machine.

Score bands::

    active      reputation >= 3.5
    warned      2.5 <= reputation < 3.5
    suspended   reputation < 2.5

A suspended account stays suspended whatever happens to its score until an
admin reinstates it. Reinstatement does not touch the score: the account
keeps its decayed reputation, so one further violation can suspend it again.

Each transition writes the suspension record first and the account status
second. If the status write fails, the next attempt at the same transition
finds the record already written and only finishes the status update:

- an active record on an account that is not suspended is an interrupted
  suspension;
- a suspended account whose latest record is superseded is an interrupted
  reinstatement.

Callers must serialise calls for the same account (see ``AccountLocks``).
"""

from __future__ import annotations

import logging
from typing import Optional

from trustsafety.accounts.models import Account, AccountStatus, Actor, Role, SYSTEM_ACTOR
from trustsafety.accounts.permissions import require_role
from trustsafety.accounts.store import AccountStore
from trustsafety.errors import Conflict, DataIntegrityError, NotFound
from trustsafety.ledger.models import ViolationRecord, ViolationType
from trustsafety.moderation.models import Severity
from trustsafety.security.audit_log import AuditAction, AuditLogger
from trustsafety.suspension.models import SuspensionReason, SuspensionRecord, WarningLevel
from trustsafety.suspension.store import SuspensionStore

logger = logging.getLogger("trustsafety.suspension")

SUSPENSION_THRESHOLD = 2.5
WARNING_THRESHOLD = 3.5
HIGH_WARNING_VIOLATIONS = 5
MEDIUM_WARNING_VIOLATIONS = 3

_REASON_FOR_TYPE: dict[ViolationType, SuspensionReason] = {
    ViolationType.contact_sharing: SuspensionReason.contact_sharing,
    ViolationType.spam: SuspensionReason.spam,
    ViolationType.inappropriate_content: SuspensionReason.inappropriate,
}


def status_for_score(reputation: float) -> AccountStatus:
    if reputation < SUSPENSION_THRESHOLD:
        return AccountStatus.suspended
    if reputation < WARNING_THRESHOLD:
        return AccountStatus.warned
    return AccountStatus.active


def warning_level(reputation: float, violation_count: int) -> WarningLevel:
    """Bucket current risk for display."""
    if reputation < SUSPENSION_THRESHOLD:
        return WarningLevel.critical
    if reputation < WARNING_THRESHOLD or violation_count >= HIGH_WARNING_VIOLATIONS:
        return WarningLevel.high
    if violation_count >= MEDIUM_WARNING_VIOLATIONS:
        return WarningLevel.medium
    if violation_count >= 1:
        return WarningLevel.low
    return WarningLevel.none


def suspension_reason_for(trigger: Optional[ViolationRecord]) -> SuspensionReason:
    """A single high-severity event names its own reason; decay is ``low_reputation``."""
    if trigger is not None and trigger.severity == Severity.high:
        return _REASON_FOR_TYPE.get(trigger.type, SuspensionReason.low_reputation)
    return SuspensionReason.low_reputation


class SuspensionStateMachine:
    """Owns the account ``status``, ``is_active`` and ``can_appeal`` fields."""

    def __init__(
        self,
        accounts: AccountStore,
        suspensions: SuspensionStore,
        audit: AuditLogger,
    ) -> None:
        self._accounts = accounts
        self._suspensions = suspensions
        self._audit = audit

    def evaluate(
        self,
        account: Account,
        reputation: float,
        trigger: Optional[ViolationRecord] = None,
    ) -> tuple[Account, Optional[SuspensionRecord]]:
        """Apply the score bands after a violation.

        Returns the updated account and the suspension record applied by this
        call, if any, including one left behind by an interrupted suspension. Evaluating twice with the same inputs is a no-op the
        second time.
        """
        if account.is_suspended:
            return account, None

        interrupted = self._interrupted_suspension(account.id)
        if interrupted is not None:
            return self._finish_suspension(interrupted), interrupted

        target = status_for_score(reputation)
        if target != AccountStatus.suspended:
            if target != account.status:
                logger.info("Account %s moved %s -> %s", account.id, account.status.value, target.value)
                account = self._accounts.update_account_status(account.id, target)
            return account, None

        reason = suspension_reason_for(trigger)
        record = SuspensionRecord(
            account_id=account.id,
            reason=reason,
            details=f"Reputation fell to {reputation:.2f}, below {SUSPENSION_THRESHOLD}",
            can_appeal=True,
            suspended_by=SYSTEM_ACTOR.id,
        )
        self._suspensions.create(record)
        return self._finish_suspension(record), record

    def resume_interrupted(self, account: Account) -> Account:
        """Complete a suspension whose record was written but whose status was not."""
        if account.is_suspended:
            return account
        interrupted = self._interrupted_suspension(account.id)
        if interrupted is None:
            return account
        return self._finish_suspension(interrupted)

    def suspend(
        self,
        account_id: str,
        reason: SuspensionReason,
        details: str,
        actor: Actor,
        can_appeal: bool = True,
    ) -> SuspensionRecord:
        """Manually suspend an account regardless of its reputation."""
        require_role(actor, Role.admin)
        account = self._accounts.get_account(account_id)
        if account is None:
            raise NotFound(f"Account '{account_id}' not found")
        if account.is_suspended:
            raise Conflict(f"Account '{account_id}' is already suspended")

        interrupted = self._interrupted_suspension(account_id)
        if interrupted is not None:
            self._finish_suspension(interrupted)
            return interrupted

        record = SuspensionRecord(
            account_id=account_id,
            reason=reason,
            details=details,
            can_appeal=can_appeal,
            suspended_by=actor.id,
        )
        self._suspensions.create(record)
        self._finish_suspension(record)
        return record

    def reinstate(self, account_id: str, actor: Actor, reason: str = "") -> Account:
        """Lift the active suspension. The reputation score is left as is."""
        require_role(actor, Role.admin)
        account = self._accounts.get_account(account_id)
        if account is None:
            raise NotFound(f"Account '{account_id}' not found")
        if not account.is_suspended:
            raise Conflict(f"Account '{account_id}' is not suspended")

        active = self._suspensions.get_active(account_id)
        if active is not None:
            lifted = self._suspensions.supersede(active.id, actor.id, reason)
        else:
            history = self._suspensions.history(account_id)
            if not history:
                logger.error("Account %s is suspended without any suspension record", account_id)
                raise DataIntegrityError(f"Account '{account_id}' has no suspension record")
            lifted = history[0]
            logger.warning(
                "Completing interrupted reinstatement of %s (suspension %s)", account_id, lifted.id
            )

        account = self._accounts.update_account_status(account_id, AccountStatus.active)
        self._audit.record(
            AuditAction.account_reinstated,
            actor.id,
            account_id,
            lifted.id,
            reason=reason,
            reputation_score=account.reputation_score,
        )
        logger.info("Account %s reinstated by %s", account_id, actor.id)
        return account

    def _interrupted_suspension(self, account_id: str) -> Optional[SuspensionRecord]:
        """Active record left on an account whose status was never set to suspended."""
        record = self._suspensions.get_active(account_id)
        if record is not None:
            logger.warning("Completing interrupted suspension of %s (%s)", account_id, record.id)
        return record

    def _finish_suspension(self, record: SuspensionRecord) -> Account:
        """Apply the status change for an already written active *record*."""
        account_id = record.account_id
        account = self._accounts.update_account_status(
            account_id, AccountStatus.suspended, can_appeal=record.can_appeal
        )
        self._audit.record(
            AuditAction.account_suspended,
            record.suspended_by,
            account_id,
            record.id,
            reason=record.reason.value,
            notes=record.details,
            can_appeal=record.can_appeal,
        )
        logger.warning("Account %s suspended: %s", account_id, record.reason.value)
        return account

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_suspension(self, account_id: str) -> Optional[SuspensionRecord]:
        return self._suspensions.get_active(account_id)

    def active_suspensions(self) -> list[SuspensionRecord]:
        return self._suspensions.list_active()

    def history(self, account_id: str) -> list[SuspensionRecord]:
        return self._suspensions.history(account_id)
