"""
Reelhub API — Tweet routes.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id
from app.core.database import get_db
from app.core.identifiers import entity_exists, validate_existing
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import Tweet, User
from app.schemas.schemas import TweetOut
from app.services.aggregation.pipelines import tweet_pipeline

router = APIRouter(prefix="/tweets", tags=["Tweets"])


@router.get("/feed", response_model=PageEnvelope[TweetOut])
async def tweet_feed(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    return await tweet_pipeline.fetch_page(db, select(Tweet), normalize_page(page, limit), viewer_id)


@router.get("/user/{user_id}", response_model=PageEnvelope[TweetOut])
async def user_tweets(
    user_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    owner = await validate_existing(user_id, entity_exists(db, User), "user_id")
    query = select(Tweet).where(Tweet.owner_id == owner)
    return await tweet_pipeline.fetch_page(db, query, normalize_page(page, limit), viewer_id)
