"""
Domain errors and global exception handlers.

Domain errors carry a ``context`` dict (collaborator id, date, ...) so the
client can drive a corrective action. Handlers prevent stack-trace leakage.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class DomainError(Exception):
    """Base class for scheduling / attendance rule violations."""

    status_code = 400

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {k: _jsonable(v) for k, v in context.items()}


class NotFoundError(DomainError):
    """Unknown pattern, collaborator or shift, or an empty copy source."""

    status_code = 404


class ConflictError(DomainError):
    """Uniqueness violation from a concurrent writer. Safe to retry."""

    status_code = 409


class BlockedError(DomainError):
    """A stale open shift blocks new attendance until an admin closes it."""

    status_code = 423


class UnscheduledError(DomainError):
    """Entry on a day without a schedule row while the policy forbids it."""

    status_code = 422


class ValidationError(DomainError):
    """Input that violates a domain rule (bad range, bad correction time)."""

    status_code = 422


def _jsonable(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


# ── Handlers ────────────────────────────────────────────────────────
async def _domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Domain error: %s %s", exc.message, exc.context)
    else:
        logger.info("%s: %s %s", type(exc).__name__, exc.message, exc.context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "success": False, "context": exc.context},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(DomainError, _domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
