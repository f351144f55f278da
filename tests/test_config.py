"""Tests for configuration loading, JSON storage and the audit log."""

import csv
import io
import json
import tempfile
from pathlib import Path

import pytest
import yaml

from trustsafety.accounts.store import AccountStore
from trustsafety.config import DEFAULT_DATA_DIR, EngineConfig, load_config
from trustsafety.errors import PersistenceError
from trustsafety.security.audit_log import AuditAction, AuditLogger


# --- Config ---


def test_defaults_without_file():
    config = load_config(None)
    assert config.data_dir == DEFAULT_DATA_DIR
    assert config.appeal_max_length == 500
    assert config.persistence_retry_attempts == 3
    assert config.api_keys == []


def test_load_yaml_config():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "trustsafety.yaml"
        path.write_text(
            yaml.dump(
                {
                    "data_dir": str(Path(tmp) / "data"),
                    "appeal_max_length": 280,
                    "log_level": "DEBUG",
                    "api_keys": [
                        {"key_hash": "abc", "actor_id": "moderator", "role": "admin"},
                        {"key_hash": "def", "actor_id": "u1"},
                    ],
                    "unknown_key": True,
                }
            )
        )
        config = load_config(path)
        assert config.data_dir == Path(tmp) / "data"
        assert config.appeal_max_length == 280
        assert config.persistence_retry_attempts == 3
        assert config.log_level == "DEBUG"
        assert [(k.actor_id, k.role) for k in config.api_keys] == [
            ("moderator", "admin"),
            ("u1", "user"),
        ]


def test_empty_yaml_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "empty.yaml"
        path.write_text("")
        assert load_config(path).appeal_max_length == 500


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        EngineConfig(appeal_max_length=0)
    with pytest.raises(ValueError):
        EngineConfig(persistence_retry_attempts=0)


def test_data_dir_expands_user():
    assert EngineConfig(data_dir="~/ts-data").data_dir == Path.home() / "ts-data"


# --- Storage ---


def test_corrupt_store_file_is_not_read_as_empty():
    with tempfile.TemporaryDirectory() as tmp:
        store = AccountStore(Path(tmp))
        store.create_account("u1")
        (Path(tmp) / "accounts.json").write_text("[{broken")
        with pytest.raises(PersistenceError):
            store.get_account("u1")


def test_wrong_shape_is_rejected():
    with tempfile.TemporaryDirectory() as tmp:
        store = AccountStore(Path(tmp))
        (Path(tmp) / "accounts.json").write_text(json.dumps({"u1": {}}))
        with pytest.raises(PersistenceError):
            store.list_accounts()


def test_writes_leave_no_temp_files():
    with tempfile.TemporaryDirectory() as tmp:
        store = AccountStore(Path(tmp))
        store.create_account("u1")
        store.update_reputation("u1", 4.5)
        assert sorted(p.name for p in Path(tmp).iterdir()) == ["accounts.json"]
        assert store.get_account("u1").reputation_score == 4.5


# --- Audit log ---


def test_audit_log_filters():
    with tempfile.TemporaryDirectory() as tmp:
        log = AuditLogger(Path(tmp))
        log.record(AuditAction.violation_recorded, "system", "u1", "v1", type="spam")
        log.record(AuditAction.account_suspended, "admin1", "u1", "s1", reason="spam")
        log.record("account.reinstated", "admin1", "u2", "s2")

        assert len(log.events()) == 3
        assert [e.action for e in log.events(actor="system")] == ["violation.recorded"]
        assert [e.subject_id for e in log.events(account_id="u1", actor="admin1")] == ["s1"]
        assert len(log.events(action=AuditAction.account_reinstated)) == 1
        assert len(log.events(limit=1)) == 1
        assert log.events(since="2999-01-01") == []


def test_unknown_audit_action_rejected():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(ValueError):
            AuditLogger(Path(tmp)).record("account.deleted", "admin1", "u1")


def test_audit_log_persists_as_jsonl():
    with tempfile.TemporaryDirectory() as tmp:
        AuditLogger(Path(tmp)).record("appeal.approved", "admin1", "u1", "a1", notes="ok")
        files = list(Path(tmp).glob("*.jsonl"))
        assert len(files) == 1
        entry = json.loads(files[0].read_text().strip())
        assert entry["action"] == "appeal.approved"
        assert entry["details"] == {"notes": "ok"}

        # A fresh logger sees the same entries
        assert AuditLogger(Path(tmp)).events()[0].subject_id == "a1"


def test_corrupt_audit_file_raises():
    with tempfile.TemporaryDirectory() as tmp:
        (Path(tmp) / "2024-01-01.jsonl").write_text("{oops\n")
        with pytest.raises(PersistenceError):
            AuditLogger(Path(tmp)).events()


def test_audit_export():
    with tempfile.TemporaryDirectory() as tmp:
        log = AuditLogger(Path(tmp))
        log.record(AuditAction.account_suspended, "admin1", "u1", "s1", notes="a, b")

        rows = list(csv.DictReader(io.StringIO(log.export("csv"))))
        assert rows[0]["action"] == "account.suspended"
        assert rows[0]["account_id"] == "u1"

        data = json.loads(log.export("json", actor="admin1"))
        assert data[0]["details"]["notes"] == "a, b"

        with pytest.raises(ValueError):
            log.export("xml")
