"""Tests for the suspension state machine and warning levels."""

import tempfile
from pathlib import Path

import pytest

from trustsafety.accounts.models import AccountStatus, Actor, Role
from trustsafety.config import EngineConfig
from trustsafety.engine import TrustSafetyEngine
from trustsafety.errors import Conflict, NotFound, PersistenceError, Unauthorized
from trustsafety.ledger.models import ViolationRecord, ViolationType
from trustsafety.moderation.models import Severity
from trustsafety.suspension.machine import (
    status_for_score,
    suspension_reason_for,
    warning_level,
)
from trustsafety.suspension.models import SuspensionReason, WarningLevel

ADMIN = Actor(id="admin1", role=Role.admin)


def _engine(tmp: str) -> TrustSafetyEngine:
    return TrustSafetyEngine(EngineConfig(data_dir=Path(tmp)))


# --- Pure rules ---


def test_status_bands():
    assert status_for_score(5.0) == AccountStatus.active
    assert status_for_score(3.5) == AccountStatus.active
    assert status_for_score(3.49) == AccountStatus.warned
    assert status_for_score(2.5) == AccountStatus.warned
    assert status_for_score(2.49) == AccountStatus.suspended


def test_warning_levels():
    assert warning_level(5.0, 0) == WarningLevel.none
    assert warning_level(4.8, 1) == WarningLevel.low
    assert warning_level(4.4, 3) == WarningLevel.medium
    assert warning_level(4.0, 5) == WarningLevel.high
    assert warning_level(3.0, 2) == WarningLevel.high
    assert warning_level(2.0, 6) == WarningLevel.critical
    assert WarningLevel.none.message == ""
    assert "suspension" in WarningLevel.critical.message


def test_suspension_reason():
    decay = ViolationRecord(account_id="u1", type="contact_sharing", severity="medium")
    blocked = ViolationRecord(account_id="u1", type="contact_sharing", severity="high")
    no_show = ViolationRecord(account_id="u1", type="no_show", severity="high")
    assert suspension_reason_for(None) == SuspensionReason.low_reputation
    assert suspension_reason_for(decay) == SuspensionReason.low_reputation
    assert suspension_reason_for(blocked) == SuspensionReason.contact_sharing
    assert suspension_reason_for(no_show) == SuspensionReason.low_reputation


# --- Score-driven transitions ---


def test_six_contact_sharing_violations_suspend():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")

        scores = []
        statuses = []
        for i in range(6):
            outcome = engine.record_violation("u1", "contact_sharing", f"event {i}")
            scores.append(outcome.reputation)
            statuses.append(outcome.status)

        assert scores == [4.5, 4.0, 3.5, 3.0, 2.5, 2.0]
        assert statuses == [
            AccountStatus.active,
            AccountStatus.active,
            AccountStatus.active,
            AccountStatus.warned,
            AccountStatus.warned,
            AccountStatus.suspended,
        ]
        assert outcome.suspended_now
        assert outcome.suspension.reason == SuspensionReason.low_reputation

        account = engine.get_account("u1")
        assert account.is_suspended
        assert account.can_appeal
        assert not account.is_active
        assert account.reputation_score == 2.0


def test_high_severity_trigger_names_the_violation_type():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(5):
            engine.record_violation("u1", "contact_sharing")
        outcome = engine.record_violation("u1", "contact_sharing", severity=Severity.high)
        assert outcome.suspension.reason == SuspensionReason.contact_sharing


def test_suspended_account_stays_suspended():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(6):
            engine.record_violation("u1", "contact_sharing")
        outcome = engine.record_violation("u1", "spam")
        assert outcome.status == AccountStatus.suspended
        assert not outcome.suspended_now
        assert len(engine.suspensions.history("u1")) == 1


def test_reputation_never_increases_without_reinstatement():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        previous = engine.current_reputation("u1")
        for t in ["spam", "no_show", "inappropriate_content", "spam", "contact_sharing"]:
            score = engine.record_violation("u1", t).reputation
            assert score <= previous
            previous = score


# --- Manual suspension & reinstatement ---


def test_manual_suspension_ignores_score():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        record = engine.suspend("u1", "fraud", "chargeback ring", ADMIN, can_appeal=False)
        assert record.suspended_by == "admin1"
        account = engine.get_account("u1")
        assert account.is_suspended
        assert not account.can_appeal
        assert account.reputation_score == 5.0


def test_manual_suspension_requires_admin():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        with pytest.raises(Unauthorized):
            engine.suspend("u1", "spam", "", Actor(id="u2"))


def test_double_suspension_conflicts():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.suspend("u1", "spam", "", ADMIN)
        with pytest.raises(Conflict):
            engine.suspend("u1", "spam", "", ADMIN)


def test_suspend_unknown_account():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(NotFound):
            _engine(tmp).suspend("ghost", "spam", "", ADMIN)


def test_reinstatement_keeps_score_and_history():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(6):
            engine.record_violation("u1", "contact_sharing")
        suspension = engine.suspensions.active_suspension("u1")

        account = engine.reinstate("u1", ADMIN, "first offense")
        assert account.status == AccountStatus.active
        assert account.is_active
        assert account.reputation_score == 2.0
        assert engine.suspensions.active_suspension("u1") is None

        history = engine.suspensions.history("u1")
        assert [r.id for r in history] == [suspension.id]
        assert not history[0].active
        assert history[0].superseded_by == "admin1"
        assert history[0].reinstatement_reason == "first offense"


def test_one_violation_after_reinstatement_resuspends():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(6):
            engine.record_violation("u1", "contact_sharing")
        engine.reinstate("u1", ADMIN)

        outcome = engine.record_violation("u1", "no_show")
        assert outcome.reputation == 1.8
        assert outcome.suspended_now
        history = engine.suspension_history("u1")
        assert [r.active for r in history] == [True, False]


def test_reinstate_requires_suspension():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        with pytest.raises(Conflict):
            engine.reinstate("u1", ADMIN)


def test_reinstate_requires_admin():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.suspend("u1", "spam", "", ADMIN)
        with pytest.raises(Unauthorized):
            engine.reinstate("u1", Actor(id="u1"))


def test_transitions_are_audited():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.suspend("u1", "spam", "bulk invites", ADMIN)
        engine.reinstate("u1", ADMIN, "cleared")
        actions = [e.action for e in engine.audit.events(account_id="u1")]
        assert "account.suspended" in actions
        assert "account.reinstated" in actions


def test_active_suspensions_listing():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        for account_id in ["u1", "u2", "u3"]:
            engine.register_account(account_id)
        engine.suspend("u1", "spam", "", ADMIN)
        engine.suspend("u2", "fraud", "", ADMIN)
        engine.reinstate("u2", ADMIN)
        assert [r.account_id for r in engine.active_suspensions()] == ["u1"]


# --- Interrupted transitions ---


def _fail_next_status_write(engine: TrustSafetyEngine, status: AccountStatus) -> list:
    """Make the next write of *status* to the account store raise once."""
    real_update = engine.accounts.update_account_status
    failures = []

    def flaky_update(account_id, new_status, can_appeal=None):
        if new_status == status and not failures:
            failures.append(account_id)
            raise PersistenceError("disk full")
        return real_update(account_id, new_status, can_appeal=can_appeal)

    engine.accounts.update_account_status = flaky_update
    return failures


def test_interrupted_automatic_suspension_completes_on_next_violation():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u2")
        for _ in range(5):
            engine.record_violation("u2", "contact_sharing")

        failures = _fail_next_status_write(engine, AccountStatus.suspended)
        with pytest.raises(PersistenceError):
            engine.record_violation("u2", "contact_sharing")
        assert failures == ["u2"]
        assert engine.get_account("u2").status == AccountStatus.warned
        pending = engine.suspensions.active_suspension("u2")
        assert pending is not None

        outcome = engine.record_violation("u2", "spam")
        assert outcome.status == AccountStatus.suspended
        assert outcome.suspension.id == pending.id
        assert outcome.reputation == 1.7
        assert engine.get_account("u2").is_suspended
        assert len(engine.suspension_history("u2")) == 1


def test_retried_violation_completes_interrupted_suspension():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for i in range(5):
            engine.record_violation("u1", "contact_sharing", source_reference=f"m{i}")

        _fail_next_status_write(engine, AccountStatus.suspended)
        with pytest.raises(PersistenceError):
            engine.record_violation("u1", "contact_sharing", source_reference="m5")

        outcome = engine.record_violation("u1", "contact_sharing", source_reference="m5")
        assert not outcome.created
        assert outcome.status == AccountStatus.suspended
        assert engine.ledger.count("u1") == 6


def test_interrupted_suspension_blocks_messages():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(5):
            engine.record_violation("u1", "contact_sharing")
        _fail_next_status_write(engine, AccountStatus.suspended)
        with pytest.raises(PersistenceError):
            engine.record_violation("u1", "contact_sharing")

        verdict = engine.screen_message("u1", "see you tomorrow")
        assert not verdict.delivered
        assert engine.get_account("u1").is_suspended


def test_interrupted_manual_suspension_completes_on_retry():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        _fail_next_status_write(engine, AccountStatus.suspended)
        with pytest.raises(PersistenceError):
            engine.suspend("u1", "fraud", "chargebacks", ADMIN, can_appeal=False)

        record = engine.suspend("u1", "fraud", "chargebacks", ADMIN, can_appeal=False)
        account = engine.get_account("u1")
        assert account.is_suspended
        assert not account.can_appeal
        assert [r.id for r in engine.suspension_history("u1")] == [record.id]


def test_interrupted_reinstatement_completes_on_retry():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        suspension = engine.suspend("u1", "spam", "", ADMIN)

        _fail_next_status_write(engine, AccountStatus.active)
        with pytest.raises(PersistenceError):
            engine.reinstate("u1", ADMIN, "cleared")
        assert engine.get_account("u1").is_suspended
        assert engine.suspensions.active_suspension("u1") is None

        account = engine.reinstate("u1", ADMIN, "cleared")
        assert account.status == AccountStatus.active
        assert [r.id for r in engine.suspension_history("u1")] == [suspension.id]
        reinstated = engine.audit.events(account_id="u1", action="account.reinstated")
        assert [e.subject_id for e in reinstated] == [suspension.id]
