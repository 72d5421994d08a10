"""
Reelhub API — Like routes.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_viewer
from app.core.database import commit, get_db
from app.core.identifiers import entity_exists, validate_existing
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import Comment, EngagementKind, Like, Tweet, Video
from app.schemas.schemas import LikeToggleResponse, VideoOut
from app.services.aggregation.composer import SortSpec
from app.services.aggregation.pipelines import video_pipeline
from app.services.engagement.like_store import LikeStore

router = APIRouter(prefix="/likes", tags=["Likes"])


async def _toggle_like(
    db: AsyncSession, viewer_id: uuid.UUID, raw_id: str, kind: EngagementKind, model, field: str,
) -> LikeToggleResponse:
    target_id = await validate_existing(raw_id, entity_exists(db, model), field)
    store = LikeStore(db)
    liked = await store.toggle(viewer_id, target_id, kind)
    response = LikeToggleResponse(liked=liked, likes_count=await store.count_for(target_id, kind))
    await commit(db)
    return response


@router.post("/toggle/v/{video_id}", response_model=LikeToggleResponse)
async def toggle_video_like(
    video_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle_like(db, viewer_id, video_id, EngagementKind.VIDEO, Video, "video_id")


@router.post("/toggle/c/{comment_id}", response_model=LikeToggleResponse)
async def toggle_comment_like(
    comment_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle_like(db, viewer_id, comment_id, EngagementKind.COMMENT, Comment, "comment_id")


@router.post("/toggle/t/{tweet_id}", response_model=LikeToggleResponse)
async def toggle_tweet_like(
    tweet_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle_like(db, viewer_id, tweet_id, EngagementKind.TWEET, Tweet, "tweet_id")


@router.get("/videos", response_model=PageEnvelope[VideoOut])
async def list_liked_videos(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    """Videos the viewer liked, most recently liked first."""
    query = (
        select(Video)
        .join(Like, and_(Like.target_id == Video.id, Like.kind == EngagementKind.VIDEO))
        .where(Like.liked_by == viewer_id)
    )
    return await video_pipeline.fetch_page(
        db, query, normalize_page(page, limit), viewer_id, sort=SortSpec(Like.created_at),
    )
