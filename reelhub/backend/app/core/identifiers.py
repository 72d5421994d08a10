"""
Identifier validation — rejects malformed entity references before any
store round trip.
"""
from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidIdentifier, NotFound

ExistenceCheck = Callable[[uuid.UUID], Awaitable[bool]]


def validate_identifier(raw: Any, field: str = "id") -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    if raw is None:
        raise InvalidIdentifier(f"{field} is required")
    text = str(raw).strip()
    if not text:
        raise InvalidIdentifier(f"{field} is required")
    try:
        return uuid.UUID(text)
    except ValueError:
        raise InvalidIdentifier(f"Invalid {field}")


async def validate_existing(raw: Any, lookup: ExistenceCheck, field: str = "id") -> uuid.UUID:
    """Validate ``raw`` and confirm the entity exists via the injected ``lookup``."""
    ident = validate_identifier(raw, field)
    if not await lookup(ident):
        label = field[:-3] if field.endswith("_id") else field
        raise NotFound(f"{label.replace('_', ' ').capitalize()} not found")
    return ident


def entity_exists(db: AsyncSession, model) -> ExistenceCheck:
    """Existence check for any mapped model with an ``id`` primary key."""

    async def _lookup(ident: uuid.UUID) -> bool:
        found = await db.scalar(select(model.id).where(model.id == ident).limit(1))
        return found is not None

    return _lookup
