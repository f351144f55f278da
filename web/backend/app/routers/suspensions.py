"""Suspensions router -- the admin view of currently suspended accounts."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_role
from trustsafety.engine import TrustSafetyEngine
from web.backend.app.middleware.auth import get_current_actor, get_engine
from web.backend.app.models.api import SuspensionResponse
from web.backend.app.routers._convert import suspension_response

router = APIRouter(prefix="/api", tags=["suspensions"])


@router.get(
    "/suspensions",
    response_model=list[SuspensionResponse],
    summary="List active suspensions",
)
def list_suspensions(
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    require_role(actor, Role.admin)
    return [suspension_response(r) for r in engine.active_suspensions()]
