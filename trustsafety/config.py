"""Engine configuration loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_DATA_DIR = Path.home() / ".trustsafety"


@dataclass
class APIKeyEntry:
    """An API key accepted by the HTTP surface (stored as a sha256 hash)."""

    key_hash: str
    actor_id: str
    role: str = "user"


@dataclass
class EngineConfig:
    """Runtime settings for the enforcement engine."""

    data_dir: Path = DEFAULT_DATA_DIR
    appeal_max_length: int = 500
    persistence_retry_attempts: int = 3
    persistence_retry_delay: float = 0.05  # seconds, doubled per attempt
    log_level: str = "INFO"
    api_keys: list[APIKeyEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.appeal_max_length < 1:
            raise ValueError("appeal_max_length must be positive")
        if self.persistence_retry_attempts < 1:
            raise ValueError("persistence_retry_attempts must be at least 1")


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load an engine config from a YAML file.

    Missing keys fall back to defaults; a missing *path* yields the defaults.
    """
    if path is None:
        return EngineConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    keys = [
        APIKeyEntry(
            key_hash=k["key_hash"],
            actor_id=k["actor_id"],
            role=k.get("role", "user"),
        )
        for k in data.get("api_keys", [])
    ]

    return EngineConfig(
        data_dir=data.get("data_dir", DEFAULT_DATA_DIR),
        appeal_max_length=int(data.get("appeal_max_length", 500)),
        persistence_retry_attempts=int(data.get("persistence_retry_attempts", 3)),
        persistence_retry_delay=float(data.get("persistence_retry_delay", 0.05)),
        log_level=str(data.get("log_level", "INFO")),
        api_keys=keys,
    )
