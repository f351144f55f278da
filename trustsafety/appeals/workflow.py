"""Appeal workflow: one-shot submission by the owner, resolution by an admin.

Rejection clears ``can_appeal`` so a suspension can be appealed at most once.
Approval reinstates the account through the suspension state machine.
"""

from __future__ import annotations

import logging
from typing import Optional

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_owner_or_role, require_role
from trustsafety.accounts.store import AccountStore
from trustsafety.appeals.models import Appeal, AppealDecision, AppealStatus
from trustsafety.appeals.store import AppealStore
from trustsafety.concurrency import AccountLocks
from trustsafety.errors import Conflict, NotEligible, NotFound, ValidationError
from trustsafety.security.audit_log import AuditAction, AuditLogger
from trustsafety.suspension.machine import SuspensionStateMachine

logger = logging.getLogger("trustsafety.appeals")

# Reasons carried by NotEligible so callers can explain the refusal.
NOT_SUSPENDED = "not_suspended"
APPEAL_NOT_ALLOWED = "appeal_not_allowed"
APPEAL_EXHAUSTED = "appeal_exhausted"


class AppealWorkflow:
    def __init__(
        self,
        accounts: AccountStore,
        appeals: AppealStore,
        machine: SuspensionStateMachine,
        locks: AccountLocks,
        audit: AuditLogger,
        max_message_length: int = 500,
    ) -> None:
        self._accounts = accounts
        self._appeals = appeals
        self._machine = machine
        self._locks = locks
        self._audit = audit
        self._max_length = max_message_length

    def _validate_message(self, message: str) -> str:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Appeal message must not be empty")
        if len(text) > self._max_length:
            raise ValidationError(
                f"Appeal message is {len(text)} characters; the limit is {self._max_length}"
            )
        return text

    def submit_appeal(self, account_id: str, message: str, actor: Optional[Actor] = None) -> Appeal:
        """File an appeal against the account's active suspension."""
        actor = actor or Actor(id=account_id, role=Role.user)
        require_owner_or_role(actor, account_id, Role.admin)
        text = self._validate_message(message)

        with self._locks.hold(account_id):
            account = self._accounts.get_account(account_id)
            if account is None:
                raise NotFound(f"Account '{account_id}' not found")

            if self._appeals.pending_for_account(account_id) is not None:
                raise Conflict("An appeal for this account is already pending review")
            if not account.is_suspended:
                raise NotEligible("Only suspended accounts can appeal", reason=NOT_SUSPENDED)
            if not account.can_appeal:
                raise NotEligible(
                    "The right to appeal this suspension has been exhausted",
                    reason=APPEAL_NOT_ALLOWED,
                )

            suspension = self._machine.active_suspension(account_id)
            if suspension is None or not suspension.can_appeal:
                raise NotEligible("This suspension cannot be appealed", reason=APPEAL_NOT_ALLOWED)
            if self._appeals.for_suspension(suspension.id):
                raise NotEligible(
                    "This suspension has already been appealed",
                    reason=APPEAL_EXHAUSTED,
                )

            appeal = self._appeals.create(
                Appeal(account_id=account_id, suspension_id=suspension.id, message=text)
            )

        self._audit.record(
            AuditAction.appeal_submitted,
            actor.id,
            account_id,
            appeal.id,
            suspension_id=suspension.id,
        )
        logger.info("Appeal %s submitted for %s", appeal.id, account_id)
        return appeal

    def resolve_appeal(
        self,
        appeal_id: str,
        decision: AppealDecision | str,
        admin: Actor,
        notes: str = "",
    ) -> Appeal:
        """Approve (reinstate) or reject (close appeal rights) a pending appeal."""
        require_role(admin, Role.admin)
        try:
            decision = AppealDecision(decision)
        except ValueError:
            raise ValidationError(f"Unknown appeal decision '{decision}'") from None

        appeal = self._appeals.get(appeal_id)
        if appeal is None:
            raise NotFound(f"Appeal '{appeal_id}' not found")

        # The account changes before the decision is stored, so a failure
        # leaves the appeal pending and resolving it again finishes the job.
        with self._locks.hold(appeal.account_id):
            appeal = self._appeals.get(appeal_id)
            if not appeal.is_pending:
                raise Conflict(f"Appeal '{appeal_id}' was already {appeal.status.value}")

            if decision == AppealDecision.approved:
                self._lift_appealed_suspension(appeal, admin, notes)
            else:
                self._accounts.set_can_appeal(appeal.account_id, False)

            resolved = self._appeals.decide(
                appeal_id, AppealStatus(decision.value), admin.id, notes
            )

        self._audit.record(
            AuditAction(f"appeal.{decision.value}"),
            admin.id,
            appeal.account_id,
            appeal_id,
            notes=notes,
        )
        logger.info("Appeal %s %s by %s", appeal_id, decision.value, admin.id)
        return resolved

    def _lift_appealed_suspension(self, appeal: Appeal, admin: Actor, notes: str) -> None:
        account = self._accounts.get_account(appeal.account_id)
        if account is None:
            raise NotFound(f"Account '{appeal.account_id}' not found")
        active = self._machine.active_suspension(appeal.account_id)
        # No active record on a suspended account means an earlier
        # reinstatement stopped before the status write.
        if account.is_suspended and (active is None or active.id == appeal.suspension_id):
            self._machine.reinstate(appeal.account_id, admin, reason=notes or "appeal approved")
        else:
            logger.info(
                "Appeal %s approved but suspension %s is no longer active",
                appeal.id,
                appeal.suspension_id,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def pending_appeals(self) -> list[Appeal]:
        return self._appeals.list_appeals(status=AppealStatus.pending)

    def list_appeals(
        self,
        status: Optional[AppealStatus] = None,
        account_id: Optional[str] = None,
    ) -> list[Appeal]:
        return self._appeals.list_appeals(status=status, account_id=account_id)

    def appeals_for_account(self, account_id: str) -> list[Appeal]:
        return self._appeals.list_appeals(account_id=account_id)

    def get_appeal(self, appeal_id: str) -> Optional[Appeal]:
        return self._appeals.get(appeal_id)
