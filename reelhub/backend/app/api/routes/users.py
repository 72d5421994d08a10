"""
Reelhub API — User routes: channel profile by username and watch history.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_view_session_id, require_viewer
from app.core.database import commit, get_db
from app.core.errors import NotFound
from app.core.identifiers import validate_identifier
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import Video, View
from app.schemas.schemas import ChannelProfile, VideoOut, ViewResponse
from app.services.aggregation.composer import SortSpec
from app.services.aggregation.pipelines import video_pipeline
from app.services.channels.channel_service import channel_service
from app.services.engagement.view_ledger import ViewLedger

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/c/{username}", response_model=ChannelProfile)
async def get_channel_by_username(
    username: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    """Channel profile; the username match ignores case."""
    profile = await channel_service.get_profile_by_username(username, db, viewer_id)
    if profile is None:
        raise NotFound("Channel does not exist")
    return profile


@router.get("/history", response_model=PageEnvelope[VideoOut])
async def get_watch_history(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    """Published videos the viewer watched, each once, most recently watched first."""
    query = (
        select(Video)
        .join(View, View.video_id == Video.id)
        .where(View.viewer_id == viewer_id, Video.is_published.is_(True))
        .group_by(Video.id)
    )
    return await video_pipeline.fetch_page(
        db, query, normalize_page(page, limit), viewer_id, sort=SortSpec(func.max(View.created_at)),
    )


@router.post("/history/{video_id}", response_model=ViewResponse)
async def add_to_watch_history(
    video_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    session_id: str = Depends(get_view_session_id),
    db: AsyncSession = Depends(get_db),
):
    """Record a watch for the viewer; counted at most once per session."""
    vid = validate_identifier(video_id, "video_id")
    found = await db.scalar(
        select(Video.id).where(Video.id == vid, Video.is_published.is_(True))
    )
    if found is None:
        raise NotFound("Video not found")

    ledger = ViewLedger(db)
    outcome = await ledger.record_view(vid, viewer_id, session_id)
    response = ViewResponse(counted=outcome.counted, views=await ledger.current_views(vid))
    await commit(db)
    return response
