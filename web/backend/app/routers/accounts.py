"""Accounts router -- reputation, violation history, suspend and reinstate."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_owner_or_role
from trustsafety.engine import TrustSafetyEngine
from web.backend.app.middleware.auth import get_current_actor, get_engine
from web.backend.app.models.api import (
    AccountResponse,
    ReinstateRequest,
    ReputationResponse,
    SuspendRequest,
    SuspensionResponse,
    ViolationResponse,
)
from web.backend.app.routers._convert import (
    account_response,
    suspension_response,
    violation_response,
)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get(
    "/{account_id}/reputation",
    response_model=ReputationResponse,
    summary="Get an account's reputation and warning level",
)
def get_reputation(
    account_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Visible to the account owner and to admins."""
    require_owner_or_role(actor, account_id, Role.admin)
    summary = engine.account_summary(account_id)
    return ReputationResponse(
        account_id=account_id,
        reputation_score=summary.reputation,
        status=summary.account.status.value,
        is_active=summary.account.is_active,
        can_appeal=summary.account.can_appeal,
        warning_level=summary.warning_level.value,
        warning_message=summary.warning_level.message,
        violation_count=summary.violation_count,
        active_suspension=suspension_response(summary.active_suspension),
    )


@router.get(
    "/{account_id}/violations",
    response_model=list[ViolationResponse],
    summary="List an account's violations, newest first",
)
def list_violations(
    account_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Visible to the account owner and to admins."""
    require_owner_or_role(actor, account_id, Role.admin)
    engine.get_account(account_id)
    return [violation_response(r) for r in engine.violation_history(account_id, actor)]


@router.post(
    "/{account_id}/suspend",
    response_model=SuspensionResponse,
    summary="Manually suspend an account",
    status_code=status.HTTP_201_CREATED,
)
def suspend_account(
    account_id: str,
    body: SuspendRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Admin only. Suspends regardless of the current reputation."""
    record = engine.suspend(
        account_id,
        body.reason,
        body.details,
        actor,
        can_appeal=body.can_appeal,
    )
    return suspension_response(record)


@router.post(
    "/{account_id}/reinstate",
    response_model=AccountResponse,
    summary="Reinstate a suspended account",
)
def reinstate_account(
    account_id: str,
    body: ReinstateRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Admin only. The reputation score is left unchanged."""
    return account_response(engine.reinstate(account_id, actor, reason=body.reason))
