"""Enforcement engine facade.

Wires the pure analyzer, the violation ledger, the reputation model, the
suspension state machine and the appeal workflow into the data flow::

    message -> analyze -> (blocked) record_violation -> recompute reputation
            -> evaluate suspension -> (suspended) appeal -> admin resolution

``record_violation`` runs append, recompute and evaluate as one unit under
the account's lock, so two violations for the same account can never both
read a stale score and miss a threshold crossing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from trustsafety.accounts.models import SYSTEM_ACTOR, Account, AccountStatus, Actor, Role
from trustsafety.accounts.permissions import require_role
from trustsafety.accounts.store import AccountStore
from trustsafety.appeals.models import Appeal, AppealDecision
from trustsafety.appeals.store import AppealStore
from trustsafety.appeals.workflow import AppealWorkflow
from trustsafety.concurrency import AccountLocks, with_retry
from trustsafety.config import EngineConfig
from trustsafety.errors import DataIntegrityError, NotFound, ValidationError
from trustsafety.ledger.models import ViolationRecord, ViolationType
from trustsafety.ledger.reputation import ReputationModel
from trustsafety.ledger.store import ViolationLedger
from trustsafety.moderation import DetectionResult, Severity, analyze
from trustsafety.security.audit_log import AuditAction, AuditLogger
from trustsafety.suspension.machine import SuspensionStateMachine, warning_level
from trustsafety.suspension.models import SuspensionReason, SuspensionRecord, WarningLevel
from trustsafety.suspension.store import SuspensionStore

logger = logging.getLogger("trustsafety.engine")

ACCOUNT_SUSPENDED_EXPLANATION = (
    "Your account is suspended. Messages cannot be sent until it is reinstated."
)


@dataclass
class ViolationOutcome:
    """What happened to the account after a violation was recorded."""

    record: ViolationRecord
    created: bool
    reputation: float
    status: AccountStatus
    suspension: Optional[SuspensionRecord] = None

    @property
    def suspended_now(self) -> bool:
        return self.suspension is not None


@dataclass
class MessageVerdict:
    """Decision for one outbound chat message."""

    detection: DetectionResult
    delivered: bool
    requires_confirmation: bool = False
    explanation: str = ""
    violation: Optional[ViolationOutcome] = None


@dataclass
class AccountSummary:
    account: Account
    reputation: float
    warning_level: WarningLevel
    violation_count: int
    active_suspension: Optional[SuspensionRecord] = None
    pending_appeal: Optional[Appeal] = None
    recent_violations: list[ViolationRecord] = field(default_factory=list)


class TrustSafetyEngine:
    """Single entry point used by the message pipeline, the CLI and the API."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        base = self.config.data_dir
        self.accounts = AccountStore(base / "accounts")
        self.ledger = ViolationLedger(base / "violations")
        self.reputation = ReputationModel(self.ledger)
        self.audit = AuditLogger(base / "audit_logs")
        self.suspensions = SuspensionStateMachine(
            self.accounts, SuspensionStore(base / "suspensions"), self.audit
        )
        self.locks = AccountLocks()
        self.appeals = AppealWorkflow(
            self.accounts,
            AppealStore(base / "appeals"),
            self.suspensions,
            self.locks,
            self.audit,
            max_message_length=self.config.appeal_max_length,
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register_account(self, account_id: str) -> Account:
        return self.accounts.create_account(account_id)

    def get_account(self, account_id: str) -> Account:
        """Return the account, refusing unknown ids and out-of-range scores."""
        account = self.accounts.get_account(account_id)
        if account is None:
            raise NotFound(f"Account '{account_id}' not found")
        if not account.score_in_range:
            logger.error(
                "Account %s has out-of-range reputation %s",
                account_id,
                account.reputation_score,
            )
            raise DataIntegrityError(
                f"Account '{account_id}' has reputation {account.reputation_score} outside [0.0, 5.0]"
            )
        return account

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @staticmethod
    def analyze(text: str) -> DetectionResult:
        return analyze(text)

    def screen_message(
        self,
        account_id: str,
        text: str,
        message_id: Optional[str] = None,
    ) -> MessageVerdict:
        """Gate an outbound message before it is persisted or delivered.

        High severity blocks the message and records a contact-sharing
        violation keyed by *message_id*. Medium severity asks the sender to
        confirm. Low and none are delivered unchanged.
        """
        with self.locks.hold(account_id):
            account = self.suspensions.resume_interrupted(self.get_account(account_id))
        result = analyze(text)

        if account.is_suspended:
            return MessageVerdict(
                detection=result,
                delivered=False,
                explanation=ACCOUNT_SUSPENDED_EXPLANATION,
            )

        if result.should_block_message():
            categories = ", ".join(c.value for c in result.categories) or "unverifiable content"
            outcome = self.record_violation(
                account_id,
                ViolationType.contact_sharing,
                description=f"Blocked message containing {categories}",
                severity=Severity.high,
                source_reference=message_id,
            )
            return MessageVerdict(
                detection=result,
                delivered=False,
                explanation=result.explanation(),
                violation=outcome,
            )

        if result.should_warn_user():
            return MessageVerdict(
                detection=result,
                delivered=False,
                requires_confirmation=True,
                explanation=result.explanation(),
            )

        return MessageVerdict(detection=result, delivered=True)

    # ------------------------------------------------------------------
    # Violations & reputation
    # ------------------------------------------------------------------

    def record_violation(
        self,
        account_id: str,
        violation_type: ViolationType | str,
        description: str = "",
        *,
        severity: Severity | str = Severity.medium,
        source_reference: Optional[str] = None,
        reported_by: Optional[str] = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> ViolationOutcome:
        """Append a violation, recompute the score and evaluate suspension."""
        require_role(actor, Role.admin)
        try:
            record = ViolationRecord(
                account_id=account_id,
                type=ViolationType(violation_type),
                description=description,
                severity=Severity(severity),
                source_reference=source_reference,
                reported_by=reported_by,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from None

        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            stored, created = with_retry(
                lambda: self.ledger.append(record, actor),
                attempts=self.config.persistence_retry_attempts,
                delay=self.config.persistence_retry_delay,
            )
            score = self.reputation.current_reputation(account_id)
            if score != account.reputation_score:
                logger.info(
                    "Reputation of %s: %.2f -> %.2f", account_id, account.reputation_score, score
                )
                account = self.accounts.update_reputation(account_id, score)
            account, suspension = self.suspensions.evaluate(account, score, stored)

        if created:
            self.audit.record(
                AuditAction.violation_recorded,
                actor.id,
                account_id,
                stored.id,
                type=stored.type.value,
                severity=stored.severity.value,
                reputation_score=score,
            )
        return ViolationOutcome(
            record=stored,
            created=created,
            reputation=score,
            status=account.status,
            suspension=suspension,
        )

    def current_reputation(self, account_id: str) -> float:
        self.get_account(account_id)
        return self.reputation.current_reputation(account_id)

    def warning_level(self, account_id: str) -> WarningLevel:
        self.get_account(account_id)
        score = self.reputation.current_reputation(account_id)
        return warning_level(score, self.ledger.count(account_id))

    def violation_history(self, account_id: str, actor: Actor) -> list[ViolationRecord]:
        return self.ledger.list_for_account(account_id, actor)

    # ------------------------------------------------------------------
    # Suspension
    # ------------------------------------------------------------------

    def suspend(
        self,
        account_id: str,
        reason: SuspensionReason | str,
        details: str,
        actor: Actor,
        can_appeal: bool = True,
    ) -> SuspensionRecord:
        try:
            reason = SuspensionReason(reason)
        except ValueError:
            raise ValidationError(f"Unknown suspension reason '{reason}'") from None
        with self.locks.hold(account_id):
            return self.suspensions.suspend(account_id, reason, details, actor, can_appeal=can_appeal)

    def reinstate(self, account_id: str, actor: Actor, reason: str = "") -> Account:
        with self.locks.hold(account_id):
            return self.suspensions.reinstate(account_id, actor, reason)

    def active_suspensions(self) -> list[SuspensionRecord]:
        return self.suspensions.active_suspensions()

    def suspension_history(self, account_id: str) -> list[SuspensionRecord]:
        """Every suspension of the account, newest first, superseded ones included."""
        self.get_account(account_id)
        return self.suspensions.history(account_id)

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    def submit_appeal(self, account_id: str, message: str, actor: Optional[Actor] = None) -> Appeal:
        return self.appeals.submit_appeal(account_id, message, actor)

    def resolve_appeal(
        self,
        appeal_id: str,
        decision: AppealDecision | str,
        admin: Actor,
        notes: str = "",
    ) -> Appeal:
        return self.appeals.resolve_appeal(appeal_id, decision, admin, notes)

    def pending_appeals(self) -> list[Appeal]:
        return self.appeals.pending_appeals()

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def account_summary(self, account_id: str, recent: int = 5) -> AccountSummary:
        account = self.get_account(account_id)
        history = self.ledger.list_for_account(account_id, SYSTEM_ACTOR)
        pending = [a for a in self.appeals.appeals_for_account(account_id) if a.is_pending]
        score = self.reputation.current_reputation(account_id)
        return AccountSummary(
            account=account,
            reputation=score,
            warning_level=warning_level(score, len(history)),
            violation_count=len(history),
            active_suspension=self.suspensions.active_suspension(account_id),
            pending_appeal=pending[0] if pending else None,
            recent_violations=history[:recent],
        )