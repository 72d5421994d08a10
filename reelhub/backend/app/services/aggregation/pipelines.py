"""
Prebuilt enrichment pipelines for each listing surface.
"""
from __future__ import annotations

from app.models.models import Comment, EngagementKind, Tweet, User, Video
from app.schemas.schemas import ChannelProfile, CommentOut, TweetOut, VideoOut
from app.services.aggregation.composer import (
    EnrichedItem,
    EnrichmentPipeline,
    LikeCount,
    LikedByViewer,
    SubscribedByViewer,
    SubscriberCount,
)


def _comment_out(item: EnrichedItem) -> CommentOut:
    c = item.entity
    return CommentOut(
        id=str(c.id),
        video_id=str(c.video_id),
        content=c.content,
        owner=item.owner,
        likes_count=item.count,
        is_liked=item.flag,
        created_at=c.created_at,
    )


def _video_out(item: EnrichedItem) -> VideoOut:
    v = item.entity
    return VideoOut(
        id=str(v.id),
        title=v.title,
        description=v.description,
        video_url=v.video_url,
        thumbnail_url=v.thumbnail_url,
        duration_seconds=v.duration_seconds or 0.0,
        views=v.views or 0,
        is_published=v.is_published,
        owner=item.owner,
        likes_count=item.count,
        is_liked=item.flag,
        created_at=v.created_at,
    )


def _tweet_out(item: EnrichedItem) -> TweetOut:
    t = item.entity
    return TweetOut(
        id=str(t.id),
        content=t.content,
        owner=item.owner,
        likes_count=item.count,
        is_liked=item.flag,
        created_at=t.created_at,
    )


def _channel_out(item: EnrichedItem) -> ChannelProfile:
    u = item.entity
    return ChannelProfile(
        id=str(u.id),
        username=u.username,
        full_name=u.full_name,
        avatar_url=u.avatar_url,
        cover_image_url=u.cover_image_url,
        subscribers_count=item.count,
        is_subscribed=item.flag,
    )


comment_pipeline = EnrichmentPipeline(
    Comment, _comment_out,
    owner_column=Comment.owner_id,
    count=LikeCount(EngagementKind.COMMENT),
    viewer_flag=LikedByViewer(EngagementKind.COMMENT),
)

video_pipeline = EnrichmentPipeline(
    Video, _video_out,
    owner_column=Video.owner_id,
    count=LikeCount(EngagementKind.VIDEO),
    viewer_flag=LikedByViewer(EngagementKind.VIDEO),
)

tweet_pipeline = EnrichmentPipeline(
    Tweet, _tweet_out,
    owner_column=Tweet.owner_id,
    count=LikeCount(EngagementKind.TWEET),
    viewer_flag=LikedByViewer(EngagementKind.TWEET),
)

channel_pipeline = EnrichmentPipeline(
    User, _channel_out,
    count=SubscriberCount(),
    viewer_flag=SubscribedByViewer(),
)
