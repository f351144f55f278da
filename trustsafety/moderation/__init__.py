"""Text pattern analyzer: pure detection of off-platform contact attempts."""

from trustsafety.moderation.analyzer import analyze, redact
from trustsafety.moderation.models import (
    DetectionResult,
    PatternCategory,
    PatternMatch,
    Severity,
)

__all__ = [
    "analyze",
    "redact",
    "DetectionResult",
    "PatternCategory",
    "PatternMatch",
    "Severity",
]
