"""
Reelhub API — Channel dashboard and profile routes.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id
from app.core.database import get_db
from app.core.errors import NotFound
from app.core.identifiers import entity_exists, validate_existing, validate_identifier
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import User
from app.schemas.schemas import ChannelProfile, ChannelStats, VideoOut
from app.services.channels.channel_service import channel_service

router = APIRouter(tags=["Channels"])


@router.get("/dashboard/c/{channel_id}/stats", response_model=ChannelStats)
async def get_channel_stats(channel_id: str, db: AsyncSession = Depends(get_db)):
    """Total videos, subscribers, views and likes for a channel."""
    cid = await validate_existing(channel_id, entity_exists(db, User), "channel_id")
    return await channel_service.get_stats(cid, db)


@router.get("/dashboard/c/{channel_id}/videos", response_model=PageEnvelope[VideoOut])
async def get_channel_videos(
    channel_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    cid = await validate_existing(channel_id, entity_exists(db, User), "channel_id")
    return await channel_service.list_videos(cid, normalize_page(page, limit), db, viewer_id)


@router.get("/channels/{channel_id}", response_model=ChannelProfile)
async def get_channel_profile(
    channel_id: str,
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    cid = validate_identifier(channel_id, "channel_id")
    profile = await channel_service.get_profile(cid, db, viewer_id)
    if profile is None:
        raise NotFound("Channel not found")
    return profile
