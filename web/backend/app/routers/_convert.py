"""Dataclass -> response model conversion shared by the routers."""

from __future__ import annotations

from typing import Optional

from trustsafety.accounts.models import Account
from trustsafety.appeals.models import Appeal
from trustsafety.engine import MessageVerdict, ViolationOutcome
from trustsafety.ledger.models import ViolationRecord
from trustsafety.moderation.models import DetectionResult
from trustsafety.suspension.models import SuspensionRecord
from web.backend.app.models.api import (
    AccountResponse,
    AppealResponse,
    DetectionResponse,
    PatternMatchResponse,
    ScreenResponse,
    SuspensionResponse,
    ViolationOutcomeResponse,
    ViolationResponse,
)


def detection_response(result: DetectionResult) -> DetectionResponse:
    return DetectionResponse(
        severity=result.severity.value,
        has_violation=result.has_violation,
        failed_closed=result.failed_closed,
        should_block=result.should_block_message(),
        should_warn=result.should_warn_user(),
        categories=[c.value for c in result.categories],
        matches=[
            PatternMatchResponse(
                category=m.category.value,
                text=m.text,
                start=m.start,
                end=m.end,
                severity=m.severity.value,
            )
            for m in result.matches
        ],
        explanation=result.explanation(),
    )


def violation_response(record: ViolationRecord) -> ViolationResponse:
    return ViolationResponse(**record.to_dict())


def suspension_response(record: Optional[SuspensionRecord]) -> Optional[SuspensionResponse]:
    if record is None:
        return None
    return SuspensionResponse(**record.to_dict())


def outcome_response(outcome: Optional[ViolationOutcome]) -> Optional[ViolationOutcomeResponse]:
    if outcome is None:
        return None
    return ViolationOutcomeResponse(
        record=violation_response(outcome.record),
        created=outcome.created,
        reputation=outcome.reputation,
        status=outcome.status.value,
        suspension=suspension_response(outcome.suspension),
    )


def verdict_response(verdict: MessageVerdict) -> ScreenResponse:
    return ScreenResponse(
        delivered=verdict.delivered,
        requires_confirmation=verdict.requires_confirmation,
        explanation=verdict.explanation,
        detection=detection_response(verdict.detection),
        violation=outcome_response(verdict.violation),
    )


def account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        reputation_score=account.reputation_score,
        status=account.status.value,
        can_appeal=account.can_appeal,
        is_active=account.is_active,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


def appeal_response(appeal: Appeal) -> AppealResponse:
    return AppealResponse(**appeal.to_dict())
