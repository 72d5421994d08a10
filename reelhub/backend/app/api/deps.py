"""
Reelhub API dependencies — viewer identity and view session.

Tokens are issued elsewhere; this layer only verifies them. A missing or
invalid token on a public route means "anonymous viewer", never an error.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import InvalidIdentifier, translate_storage_errors
from app.core.identifiers import entity_exists, validate_identifier
from app.models.models import User

logger = logging.getLogger(__name__)
settings = get_settings()


def extract_access_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    cookie = request.cookies.get(settings.access_token_cookie)
    return cookie.strip() if cookie and cookie.strip() else None


def decode_viewer_id(token: str) -> Optional[uuid.UUID]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("Expired access token; treating viewer as anonymous")
        return None
    except jwt.PyJWTError:
        return None

    subject = payload.get("_id") or payload.get("sub")
    try:
        return validate_identifier(subject, "token subject")
    except InvalidIdentifier:
        return None


async def get_viewer_id(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[uuid.UUID]:
    """
    Authenticated viewer id, or None for anonymous viewers. A valid token whose
    user no longer exists is treated as anonymous.
    """
    token = extract_access_token(request)
    if not token:
        return None
    viewer_id = decode_viewer_id(token)
    if viewer_id is None:
        return None
    async with translate_storage_errors("viewer.lookup"):
        known = await entity_exists(db, User)(viewer_id)
    if not known:
        logger.info(f"Token subject {viewer_id} has no user; treating viewer as anonymous")
        return None
    return viewer_id


async def require_viewer(viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id)) -> uuid.UUID:
    if viewer_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized request")
    return viewer_id


def get_view_session_id(request: Request) -> str:
    """
    Stable per-browser session: the session cookie, else the client address.
    X-Forwarded-For is honoured only when ``trust_forwarded_for`` is set.
    """
    cookie = request.cookies.get(settings.session_cookie)
    if cookie and cookie.strip():
        return cookie.strip()
    xff = request.headers.get("x-forwarded-for") if settings.trust_forwarded_for else None
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else "0.0.0.0"
