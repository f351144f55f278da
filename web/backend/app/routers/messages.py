"""Messages router -- off-platform contact analysis and the send-time gate."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from trustsafety.accounts.models import Actor, Role
from trustsafety.accounts.permissions import require_owner_or_role
from trustsafety.engine import TrustSafetyEngine
from web.backend.app.middleware.auth import get_current_actor, get_engine
from web.backend.app.models.api import (
    AnalyzeRequest,
    DetectionResponse,
    ScreenRequest,
    ScreenResponse,
)
from web.backend.app.routers._convert import detection_response, verdict_response

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.post(
    "/analyze",
    response_model=DetectionResponse,
    summary="Analyze a message for off-platform contact",
)
async def analyze_message(
    body: AnalyzeRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Run the pattern analyzer. Nothing is recorded."""
    return detection_response(engine.analyze(body.text))


@router.post(
    "/screen",
    response_model=ScreenResponse,
    summary="Screen an outbound message before delivery",
)
def screen_message(
    body: ScreenRequest,
    actor: Actor = Depends(get_current_actor),
    engine: TrustSafetyEngine = Depends(get_engine),
):
    """Block, warn or deliver; a blocked message records a violation.

    Only the sender or the messaging pipeline (system role) may screen.
    """
    require_owner_or_role(actor, body.account_id, Role.system)
    verdict = engine.screen_message(body.account_id, body.text, message_id=body.message_id)
    return verdict_response(verdict)
