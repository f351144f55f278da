"""FastAPI application for the trust & safety enforcement engine.

Provides REST API endpoints wrapping the ``trustsafety`` package for:
- Message analysis and screening
- Account reputation and violation history
- Manual suspension and reinstatement
- Appeal submission and review
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trustsafety import __version__
from trustsafety.errors import (
    Conflict,
    DataIntegrityError,
    NotEligible,
    NotFound,
    PersistenceError,
    TrustSafetyError,
    Unauthorized,
    ValidationError,
)
from web.backend.app.routers import accounts, appeals, messages, suspensions

logger = logging.getLogger("trustsafety.api")

app = FastAPI(
    title="Trust & Safety API",
    description=(
        "REST API for the trust & safety enforcement engine. "
        "Provides endpoints for message screening, reputation, "
        "suspensions and appeals."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Engine errors -> HTTP status codes
# ---------------------------------------------------------------------------

# Checked in order, so subclasses come before their bases.
_STATUS_FOR_ERROR: list[tuple[type[TrustSafetyError], int]] = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotEligible, status.HTTP_403_FORBIDDEN),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (Conflict, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (DataIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for_error(exc: TrustSafetyError) -> int:
    for error_type, code in _STATUS_FOR_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(TrustSafetyError)
async def trust_safety_error_handler(request: Request, exc: TrustSafetyError):
    code = status_for_error(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, NotEligible) and exc.reason:
        body["reason"] = exc.reason
    return JSONResponse(status_code=code, content=body)


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(messages.router)
app.include_router(accounts.router)
app.include_router(suspensions.router)
app.include_router(appeals.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "Trust & Safety API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
