"""
Reelhub Search Service — case-insensitive substring search across videos,
channels and tweets.

Each entity type runs through its own enrichment pipeline, so results carry
the same counts and viewer flags as every other listing. Wildcards in the
query are escaped and match literally.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.pagination import PageWindow
from app.models.models import Tweet, User, Video
from app.schemas.schemas import SearchResults
from app.services.aggregation.pipelines import channel_pipeline, tweet_pipeline, video_pipeline

logger = logging.getLogger(__name__)
settings = get_settings()

SEARCH_TYPES = ("all", "video", "user", "tweet")


class SearchService:
    """Per-type capped search; no pagination. ``search_type`` is one of SEARCH_TYPES."""

    async def search(
        self,
        db: AsyncSession,
        q: Optional[str],
        search_type: str = "all",
        viewer_id: Optional[uuid.UUID] = None,
    ) -> SearchResults:
        term = (q or "").strip()
        results = SearchResults(query=term, type=search_type)
        if not term:
            return results

        if search_type in ("all", "video"):
            query = select(Video).where(
                Video.is_published.is_(True),
                or_(
                    Video.title.icontains(term, autoescape=True),
                    Video.description.icontains(term, autoescape=True),
                ),
            )
            page = await video_pipeline.fetch_page(
                db, query, PageWindow(page=1, limit=settings.search_video_limit), viewer_id,
            )
            results.videos = page.items

        if search_type in ("all", "user"):
            query = select(User).where(User.username.icontains(term, autoescape=True))
            page = await channel_pipeline.fetch_page(
                db, query, PageWindow(page=1, limit=settings.search_user_limit), viewer_id,
            )
            results.users = page.items

        if search_type in ("all", "tweet"):
            query = select(Tweet).where(Tweet.content.icontains(term, autoescape=True))
            page = await tweet_pipeline.fetch_page(
                db, query, PageWindow(page=1, limit=settings.search_tweet_limit), viewer_id,
            )
            results.tweets = page.items

        logger.debug(
            f"Search '{term}' ({search_type}): {len(results.videos)} videos, "
            f"{len(results.users)} users, {len(results.tweets)} tweets"
        )
        return results


search_service = SearchService()
