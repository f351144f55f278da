"""Exception taxonomy shared by every enforcement component."""

from __future__ import annotations


class TrustSafetyError(Exception):
    """Base class for all engine errors."""


class ValidationError(TrustSafetyError):
    """Malformed input: bad appeal message, unknown account or appeal."""


class NotEligible(TrustSafetyError):
    """The account's current state does not allow the requested operation."""

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason


class Conflict(TrustSafetyError):
    """Duplicate pending appeal or a state change that already happened."""


class PersistenceError(TrustSafetyError):
    """The backing store could not be read or written."""


class Unauthorized(TrustSafetyError):
    """The acting principal lacks the role required for the operation."""


class DataIntegrityError(TrustSafetyError):
    """Stored state violates an engine invariant (e.g. score out of range)."""


class NotFound(ValidationError):
    """The referenced account, appeal or suspension does not exist."""
