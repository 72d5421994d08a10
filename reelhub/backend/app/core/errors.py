"""
Reelhub error kinds.

The engagement core signals failures through these types rather than HTTP
codes; the API layer renders them with ``engagement_error_handler``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from app.core.metrics import STORAGE_ERRORS

logger = logging.getLogger(__name__)


class EngagementError(Exception):
    status_code: int = 500
    kind: str = "engagement_error"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.kind


class InvalidIdentifier(EngagementError):
    status_code = 400
    kind = "invalid_identifier"


class NotFound(EngagementError):
    status_code = 404
    kind = "not_found"


class SelfReferenceRejected(EngagementError):
    status_code = 400
    kind = "self_reference_rejected"


class Conflict(EngagementError):
    """Concurrent duplicate insert. Recovered by the toggle engine and view ledger."""
    status_code = 409
    kind = "conflict"


class StorageUnavailable(EngagementError):
    """Transient infrastructure failure; the caller may retry."""
    status_code = 503
    kind = "storage_unavailable"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` is a duplicate-key failure rather than FK/check/not-null."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == "23505"
    name = getattr(orig, "sqlite_errorname", None)
    if name:
        return name in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")
    message = str(orig).lower()
    return "unique" in message or "duplicate" in message


@asynccontextmanager
async def translate_storage_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise driver-level connectivity failures as ``StorageUnavailable``."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        STORAGE_ERRORS.labels(operation=operation).inc()
        logger.error(f"Storage failure during {operation}: {e.__class__.__name__}")
        raise StorageUnavailable(f"Storage unavailable during {operation}") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            STORAGE_ERRORS.labels(operation=operation).inc()
            logger.error(f"Connection invalidated during {operation}")
            raise StorageUnavailable(f"Storage unavailable during {operation}") from e
        raise


async def engagement_error_handler(request: Request, exc: EngagementError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
    )
