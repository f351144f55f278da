"""Tests for the engine facade: message screening, retries and concurrency."""

import tempfile
import threading
from pathlib import Path

import pytest

from trustsafety.accounts.models import AccountStatus, Actor, Role
from trustsafety.concurrency import AccountLocks, with_retry
from trustsafety.config import EngineConfig
from trustsafety.engine import ACCOUNT_SUSPENDED_EXPLANATION, TrustSafetyEngine
from trustsafety.errors import (
    Conflict,
    DataIntegrityError,
    NotFound,
    PersistenceError,
    Unauthorized,
    ValidationError,
)
from trustsafety.moderation.models import Severity
from trustsafety.suspension.models import SuspensionReason, WarningLevel


def _engine(tmp: str, **overrides) -> TrustSafetyEngine:
    overrides.setdefault("persistence_retry_delay", 0.0)
    return TrustSafetyEngine(EngineConfig(data_dir=Path(tmp), **overrides))


# --- Accounts ---


def test_register_account_starts_at_five():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        account = engine.register_account("u1")
        assert account.reputation_score == 5.0
        assert account.status == AccountStatus.active
        assert engine.warning_level("u1") == WarningLevel.none
        with pytest.raises(Conflict):
            engine.register_account("u1")


def test_unknown_account():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        with pytest.raises(NotFound):
            engine.get_account("ghost")
        with pytest.raises(ValidationError):
            engine.record_violation("ghost", "spam")


def test_reputation_reads_refuse_unknown_accounts():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        with pytest.raises(ValidationError):
            engine.current_reputation("ghost")
        with pytest.raises(ValidationError):
            engine.warning_level("ghost")


def test_out_of_range_score_is_a_data_integrity_error():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.accounts.update_reputation("u1", 7.5)
        with pytest.raises(DataIntegrityError):
            engine.get_account("u1")


# --- Message screening ---


def test_clean_message_is_delivered():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        verdict = engine.screen_message("u1", "See you at 8pm!")
        assert verdict.delivered
        assert verdict.violation is None
        assert engine.ledger.count("u1") == 0


def test_low_severity_is_delivered_without_violation():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        verdict = engine.screen_message("u1", "meu instagram é @maria")
        assert verdict.delivered
        assert not verdict.requires_confirmation
        assert verdict.detection.severity == Severity.low
        assert engine.ledger.count("u1") == 0


def test_medium_severity_requires_confirmation():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        verdict = engine.screen_message("u1", "fala comigo no whatsapp")
        assert not verdict.delivered
        assert verdict.requires_confirmation
        assert verdict.explanation
        assert engine.ledger.count("u1") == 0


def test_blocked_message_records_violation():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        verdict = engine.screen_message("u1", "Liga-me no 923456789", message_id="msg-1")
        assert not verdict.delivered
        assert "phone" in verdict.explanation
        assert verdict.violation.created
        assert verdict.violation.reputation == 4.5

        record = engine.ledger.records("u1")[0]
        assert record.source_reference == "msg-1"
        assert record.severity == Severity.high


def test_rescreening_the_same_message_counts_once():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.screen_message("u1", "call 923456789", message_id="msg-1")
        verdict = engine.screen_message("u1", "call 923456789", message_id="msg-1")
        assert not verdict.delivered
        assert not verdict.violation.created
        assert engine.current_reputation("u1") == 4.5


def test_blocked_messages_suspend_with_contact_sharing_reason():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for i in range(6):
            verdict = engine.screen_message("u1", f"mail me at u1.{i}@example.com", message_id=f"m{i}")
        assert verdict.violation.suspended_now
        assert verdict.violation.suspension.reason == SuspensionReason.contact_sharing


def test_suspended_account_cannot_send():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.suspend("u1", "spam", "", Actor(id="admin1", role=Role.admin))
        verdict = engine.screen_message("u1", "hello", message_id="msg-9")
        assert not verdict.delivered
        assert verdict.explanation == ACCOUNT_SUSPENDED_EXPLANATION
        assert engine.ledger.count("u1") == 0


# --- Violations ---


def test_record_violation_requires_trusted_actor():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        with pytest.raises(Unauthorized):
            engine.record_violation("u1", "spam", actor=Actor(id="u1"))


def test_unknown_violation_type():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        with pytest.raises(ValidationError):
            engine.record_violation("u1", "rudeness")


def test_violation_history_for_owner():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.record_violation("u1", "no_show", "missed the event")
        history = engine.violation_history("u1", Actor(id="u1"))
        assert [r.description for r in history] == ["missed the event"]


def test_account_summary():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        for _ in range(3):
            engine.record_violation("u1", "spam")
        summary = engine.account_summary("u1")
        assert summary.reputation == 4.1
        assert summary.violation_count == 3
        assert summary.warning_level == WarningLevel.medium
        assert summary.active_suspension is None


# --- Persistence retry ---


def test_ledger_append_is_retried():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        real_append = engine.ledger.append
        calls = []

        def flaky_append(record, actor):
            calls.append(record.id)
            if len(calls) == 1:
                raise PersistenceError("disk busy")
            return real_append(record, actor)

        engine.ledger.append = flaky_append
        outcome = engine.record_violation("u1", "spam", source_reference="booking-7")
        assert len(calls) == 2
        assert outcome.created
        assert engine.current_reputation("u1") == 4.7


def test_persistence_failure_surfaces_after_retries():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp, persistence_retry_attempts=2)
        engine.register_account("u1")

        def broken_append(record, actor):
            raise PersistenceError("store offline")

        engine.ledger.append = broken_append
        with pytest.raises(PersistenceError):
            engine.record_violation("u1", "spam")
        assert engine.get_account("u1").reputation_score == 5.0


def test_with_retry_backoff():
    sleeps = []
    attempts = []

    def operation():
        attempts.append(1)
        if len(attempts) < 3:
            raise PersistenceError("try again")
        return "ok"

    assert with_retry(operation, attempts=3, delay=0.05, sleep=sleeps.append) == "ok"
    assert sleeps == [0.05, 0.1]


def test_with_retry_does_not_retry_other_errors():
    attempts = []

    def operation():
        attempts.append(1)
        raise ValueError("bug")

    with pytest.raises(ValueError):
        with_retry(operation, attempts=3, delay=0, sleep=lambda s: None)
    assert len(attempts) == 1


# --- Concurrency ---


def test_concurrent_violations_for_one_account_are_serialised():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        errors = []

        def worker(i):
            try:
                engine.record_violation("u1", "contact_sharing", source_reference=f"msg-{i}")
            except Exception as exc:  # collected for the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert engine.ledger.count("u1") == 8
        account = engine.get_account("u1")
        assert account.reputation_score == 1.0
        assert account.is_suspended
        assert len(engine.suspensions.history("u1")) == 1


def test_account_locks_are_per_account():
    locks = AccountLocks()
    acquired = threading.Event()

    with locks.hold("u1"):
        def other():
            with locks.hold("u2"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        t.join(timeout=5)
        assert acquired.is_set()


def test_account_locks_are_dropped_after_use():
    locks = AccountLocks()
    with locks.hold("u1"):
        with locks.hold("u1"):
            assert len(locks) == 1
        assert len(locks) == 1
    assert len(locks) == 0

    with pytest.raises(RuntimeError):
        with locks.hold("u2"):
            raise RuntimeError("boom")
    assert len(locks) == 0


def test_ledger_appends_for_other_accounts_do_not_wait():
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine(tmp)
        engine.register_account("u1")
        engine.register_account("u2")
        done = threading.Event()

        def other():
            engine.record_violation("u2", "spam")
            done.set()

        with engine.ledger._file_locks.hold("u1"):
            t = threading.Thread(target=other)
            t.start()
            t.join(timeout=5)
            assert done.is_set()
        assert engine.ledger.count("u2") == 1
