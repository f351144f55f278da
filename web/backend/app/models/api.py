"""Pydantic models for API request/response serialization.

These models mirror the ``trustsafety`` dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Message models
# ---------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    text: str


class PatternMatchResponse(BaseModel):
    """Mirrors trustsafety.moderation.models.PatternMatch."""

    category: str
    text: str
    start: int
    end: int
    severity: str


class DetectionResponse(BaseModel):
    """Mirrors trustsafety.moderation.models.DetectionResult."""

    severity: str = "none"
    has_violation: bool = False
    failed_closed: bool = False
    should_block: bool = False
    should_warn: bool = False
    categories: list[str] = Field(default_factory=list)
    matches: list[PatternMatchResponse] = Field(default_factory=list)
    explanation: str = ""


class ScreenRequest(BaseModel):
    account_id: str
    text: str
    message_id: Optional[str] = None


class ViolationResponse(BaseModel):
    """Mirrors trustsafety.ledger.models.ViolationRecord."""

    id: str
    account_id: str
    type: str
    description: str = ""
    severity: str = "medium"
    source_reference: Optional[str] = None
    reported_by: Optional[str] = None
    timestamp: str = ""


class SuspensionResponse(BaseModel):
    """Mirrors trustsafety.suspension.models.SuspensionRecord."""

    id: str
    account_id: str
    reason: str
    details: str = ""
    can_appeal: bool = True
    suspended_by: str = "system"
    suspended_at: str = ""
    active: bool = True
    superseded_at: Optional[str] = None
    superseded_by: Optional[str] = None
    reinstatement_reason: str = ""


class ViolationOutcomeResponse(BaseModel):
    """Mirrors trustsafety.engine.ViolationOutcome."""

    record: ViolationResponse
    created: bool = True
    reputation: float
    status: str
    suspension: Optional[SuspensionResponse] = None


class ScreenResponse(BaseModel):
    """Mirrors trustsafety.engine.MessageVerdict."""

    delivered: bool
    requires_confirmation: bool = False
    explanation: str = ""
    detection: DetectionResponse
    violation: Optional[ViolationOutcomeResponse] = None


# ---------------------------------------------------------------------------
# Account models
# ---------------------------------------------------------------------------


class ReputationResponse(BaseModel):
    account_id: str
    reputation_score: float
    status: str
    is_active: bool = True
    can_appeal: bool = False
    warning_level: str = "none"
    warning_message: str = ""
    violation_count: int = 0
    active_suspension: Optional[SuspensionResponse] = None


class SuspendRequest(BaseModel):
    reason: str = "other"
    details: str = ""
    can_appeal: bool = True


class ReinstateRequest(BaseModel):
    reason: str = ""


class AccountResponse(BaseModel):
    """Mirrors trustsafety.accounts.models.Account."""

    id: str
    reputation_score: float
    status: str
    can_appeal: bool = False
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# Appeal models
# ---------------------------------------------------------------------------


class SubmitAppealRequest(BaseModel):
    account_id: str
    message: str


class ResolveAppealRequest(BaseModel):
    decision: str
    notes: str = ""


class AppealResponse(BaseModel):
    """Mirrors trustsafety.appeals.models.Appeal."""

    id: str
    account_id: str
    suspension_id: str
    message: str
    status: str = "pending"
    submitted_at: str = ""
    resolved_at: Optional[str] = None
    resolved_by: Optional[str] = None
    resolution_notes: str = ""
