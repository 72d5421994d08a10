"""
Reelhub Channel Service — creator dashboard and channel profile.

Every figure is recomputed from the store per request; nothing is cached.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import translate_storage_errors
from app.core.pagination import PageEnvelope, PageWindow
from app.models.models import EngagementKind, Like, User, Video
from app.schemas.schemas import ChannelProfile, ChannelStats, VideoOut
from app.services.aggregation.pipelines import channel_pipeline, video_pipeline
from app.services.engagement.subscription_graph import SubscriptionGraph

logger = logging.getLogger(__name__)


class ChannelService:
    """Aggregates per-channel figures over videos, likes and subscriptions."""

    async def get_stats(self, channel_id: uuid.UUID, db: AsyncSession) -> ChannelStats:
        async with translate_storage_errors("channel.stats"):
            total_videos = await db.scalar(
                select(func.count(Video.id)).where(Video.owner_id == channel_id)
            )
            total_views = await db.scalar(
                select(func.coalesce(func.sum(Video.views), 0)).where(Video.owner_id == channel_id)
            )
            total_likes = await db.scalar(
                select(func.count(Like.id))
                .join(Video, Video.id == Like.target_id)
                .where(Like.kind == EngagementKind.VIDEO, Video.owner_id == channel_id)
            )
        total_subscribers = await SubscriptionGraph(db).count_subscribers(channel_id)

        return ChannelStats(
            channel_id=str(channel_id),
            total_videos=total_videos or 0,
            total_subscribers=total_subscribers,
            total_views=int(total_views or 0),
            total_likes=total_likes or 0,
        )

    async def get_profile(
        self, channel_id: uuid.UUID, db: AsyncSession, viewer_id: Optional[uuid.UUID] = None,
    ) -> Optional[ChannelProfile]:
        """Channel summary with subscriber count and the viewer's subscription flag."""
        profile = await channel_pipeline.fetch_one(db, channel_id, viewer_id)
        if profile is None:
            return None
        following = await SubscriptionGraph(db).count_subscriptions(channel_id)
        return profile.model_copy(update={"subscribed_to_count": following})

    async def get_profile_by_username(
        self, username: str, db: AsyncSession, viewer_id: Optional[uuid.UUID] = None,
    ) -> Optional[ChannelProfile]:
        name = (username or "").strip().lower()
        if not name:
            return None
        async with translate_storage_errors("channel.lookup"):
            channel_id = await db.scalar(select(User.id).where(func.lower(User.username) == name))
        if channel_id is None:
            return None
        return await self.get_profile(channel_id, db, viewer_id)

    async def list_videos(
        self,
        channel_id: uuid.UUID,
        window: PageWindow,
        db: AsyncSession,
        viewer_id: Optional[uuid.UUID] = None,
    ) -> PageEnvelope[VideoOut]:
        query = select(Video).where(Video.owner_id == channel_id)
        return await video_pipeline.fetch_page(db, query, window, viewer_id)


channel_service = ChannelService()
