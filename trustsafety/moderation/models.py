"""Data models for off-platform contact detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Ordered severity: none < low < medium < high."""

    none = "none"
    low = "low"
    medium = "medium"
    high = "high"

    @property
    def rank(self) -> int:
        return {
            Severity.none: 0,
            Severity.low: 1,
            Severity.medium: 2,
            Severity.high: 3,
        }[self]


class PatternCategory(str, Enum):
    """What kind of off-platform contact a match represents."""

    phone_number = "phone_number"
    email_address = "email_address"
    raw_url = "raw_url"
    messaging_app = "messaging_app"
    contact_request = "contact_request"
    social_handle = "social_handle"

    @property
    def severity(self) -> Severity:
        return {
            PatternCategory.phone_number: Severity.high,
            PatternCategory.email_address: Severity.high,
            PatternCategory.raw_url: Severity.low,
            PatternCategory.messaging_app: Severity.medium,
            PatternCategory.contact_request: Severity.medium,
            PatternCategory.social_handle: Severity.low,
        }[self]


# User-facing explanations, one per category.
_EXPLANATIONS: dict[PatternCategory, str] = {
    PatternCategory.phone_number: (
        "Message blocked: sharing phone numbers is against our policies. "
        "Please keep all communication in the app chat."
    ),
    PatternCategory.email_address: (
        "Message blocked: sharing email addresses is against our policies. "
        "Please keep all communication in the app chat."
    ),
    PatternCategory.messaging_app: (
        "Avoid moving the conversation to other messaging apps. "
        "Chatting here keeps your booking protected."
    ),
    PatternCategory.contact_request: (
        "Avoid asking for or offering contact details outside the app. "
        "Chatting here keeps your booking protected."
    ),
    PatternCategory.raw_url: "Tip: keep all communication in the app for your safety.",
    PatternCategory.social_handle: "Tip: keep all communication in the app for your safety.",
}

_FAILED_CLOSED_EXPLANATION = (
    "Message blocked: it could not be checked right now. Please try again."
)


@dataclass(frozen=True)
class PatternMatch:
    """A single matched span."""

    category: PatternCategory
    text: str
    start: int
    end: int

    @property
    def severity(self) -> Severity:
        return self.category.severity


@dataclass
class DetectionResult:
    """Outcome of analysing one message. Never persisted."""

    matches: list[PatternMatch] = field(default_factory=list)
    severity: Severity = Severity.none
    failed_closed: bool = False

    @property
    def has_violation(self) -> bool:
        return bool(self.matches) or self.failed_closed

    @property
    def categories(self) -> list[PatternCategory]:
        seen: list[PatternCategory] = []
        for m in self.matches:
            if m.category not in seen:
                seen.append(m.category)
        return seen

    def should_block_message(self) -> bool:
        """High severity is a hard gate: the message must not be delivered."""
        return self.severity == Severity.high

    def should_warn_user(self) -> bool:
        """Medium severity asks the sender to confirm before delivery."""
        return self.severity == Severity.medium

    def explanation(self) -> str:
        """Return a category-appropriate message for the sender."""
        if self.failed_closed:
            return _FAILED_CLOSED_EXPLANATION
        if not self.matches:
            return ""
        top = max(self.matches, key=lambda m: m.severity.rank)
        return _EXPLANATIONS[top.category]
