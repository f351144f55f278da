"""Auth middleware -- FastAPI dependencies for the engine and the calling actor.

Callers authenticate with ``X-API-Key: <raw_key>``. The key's sha256 digest is
looked up in ``EngineConfig.api_keys``, which maps it to an actor id and role.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from trustsafety.accounts.models import Actor
from trustsafety.config import load_config
from trustsafety.engine import TrustSafetyEngine
from trustsafety.logging import configure_logging

CONFIG_ENV_VAR = "TRUSTSAFETY_CONFIG"

# Shared engine instance
_engine: Optional[TrustSafetyEngine] = None


def get_engine() -> TrustSafetyEngine:
    """Return the singleton engine, configured from ``$TRUSTSAFETY_CONFIG``."""
    global _engine
    if _engine is None:
        config = load_config(os.environ.get(CONFIG_ENV_VAR))
        configure_logging(getattr(logging, config.log_level.upper(), logging.INFO))
        _engine = TrustSafetyEngine(config)
    return _engine


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


async def get_current_actor(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    engine: TrustSafetyEngine = Depends(get_engine),
) -> Actor:
    """FastAPI dependency that resolves the API key to an ``Actor``.

    Raises ``401 Unauthorized`` if the key is missing or unknown.
    """
    if x_api_key:
        digest = hash_api_key(x_api_key)
        for entry in engine.config.api_keys:
            if hmac.compare_digest(entry.key_hash, digest):
                return Actor(id=entry.actor_id, role=entry.role)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "APIKey"},
    )
