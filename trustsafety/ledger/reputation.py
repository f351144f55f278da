"""Reputation derived from the violation ledger.

The score is always recomputed from the full ledger rather than kept as a
running counter, so reading it any number of times, in any order, gives the
same answer, and a duplicated event can never be applied twice.
"""

from __future__ import annotations

from typing import Iterable

from trustsafety.accounts.models import INITIAL_REPUTATION, MAX_REPUTATION, MIN_REPUTATION
from trustsafety.ledger.models import ViolationRecord
from trustsafety.ledger.store import ViolationLedger


def compute_reputation(records: Iterable[ViolationRecord]) -> float:
    """Return ``clamp(5.0 - sum(weights), 0.0, 5.0)`` for *records*."""
    penalty = sum(r.type.weight for r in records)
    score = INITIAL_REPUTATION - penalty
    # Weights have one decimal; rounding keeps band boundaries such as 2.5 exact.
    return round(min(MAX_REPUTATION, max(MIN_REPUTATION, score)), 2)


class ReputationModel:
    """Read-side view computing each account's score from its ledger."""

    def __init__(self, ledger: ViolationLedger) -> None:
        self._ledger = ledger

    def current_reputation(self, account_id: str) -> float:
        return compute_reputation(self._ledger.records(account_id))
