"""Appeals router -- submission by the account owner, review by admins."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_role
from trustsafety.appeals.models import AppealStatus
from trustsafety.engine import TrustSafetyEngine
from trustsafety.errors import ValidationError
from web.backend.app.middleware.auth import get_current_actor, get_engine
from web.backend.app.models.api import (
    AppealResponse,
    ResolveAppealRequest,
    SubmitAppealRequest,
)
from web.backend.app.routers._convert import appeal_response

router = APIRouter(prefix="/api", tags=["appeals"])


@router.post(
    "/appeals",
    response_model=AppealResponse,
    summary="Submit an appeal against an active suspension",
    status_code=status.HTTP_201_CREATED,
)
def submit_appeal(
    body: SubmitAppealRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """One appeal per suspension; the caller must own the account or be an admin."""
    return appeal_response(engine.submit_appeal(body.account_id, body.message, actor))


@router.get(
    "/appeals",
    response_model=list[AppealResponse],
    summary="List appeals",
)
def list_appeals(
    status_filter: Optional[str] = Query(None, alias="status"),
    account_id: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Admin review queue, filterable by status and account."""
    require_role(actor, Role.admin)
    appeal_status = None
    if status_filter:
        try:
            appeal_status = AppealStatus(status_filter)
        except ValueError:
            raise ValidationError(f"Unknown appeal status '{status_filter}'") from None
    appeals = engine.appeals.list_appeals(status=appeal_status, account_id=account_id)
    return [appeal_response(a) for a in appeals]


@router.post(
    "/appeals/{appeal_id}/resolve",
    response_model=AppealResponse,
    summary="Approve or reject a pending appeal",
)
def resolve_appeal(
    appeal_id: str,
    body: ResolveAppealRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Approval reinstates the account; rejection ends its appeal rights."""
    return appeal_response(engine.resolve_appeal(appeal_id, body.decision, actor, body.notes))
