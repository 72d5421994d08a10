"""
Reelhub API Schemas — Pydantic v2 models for request/response validation.

Enriched records are read-only projections: a primary entity plus owner
summary, a derived count and a viewer-relative flag. None of them is
persisted.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════
# Users / Channels
# ═══════════════════════════════════════════════════════════════════════

class UserSummary(BaseModel):
    """Public projection of a user; never credentials or internal fields."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    full_name: str
    avatar_url: Optional[str] = None


class ChannelProfile(BaseModel):
    id: str
    username: str
    full_name: str
    avatar_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    subscribers_count: int = 0
    subscribed_to_count: int = 0
    is_subscribed: bool = False


class ChannelStats(BaseModel):
    channel_id: str
    total_videos: int
    total_subscribers: int
    total_views: int
    total_likes: int


# ═══════════════════════════════════════════════════════════════════════
# Enriched content
# ═══════════════════════════════════════════════════════════════════════

class CommentOut(BaseModel):
    id: str
    video_id: str
    content: str
    owner: Optional[UserSummary] = None
    likes_count: int = 0
    is_liked: bool = False
    created_at: Optional[datetime] = None


class VideoOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    duration_seconds: float = 0.0
    views: int = 0
    is_published: bool = True
    owner: Optional[UserSummary] = None
    likes_count: int = 0
    is_liked: bool = False
    created_at: Optional[datetime] = None


class TweetOut(BaseModel):
    id: str
    content: str
    owner: Optional[UserSummary] = None
    likes_count: int = 0
    is_liked: bool = False
    created_at: Optional[datetime] = None


# ═══════════════════════════════════════════════════════════════════════
# Engagement results
# ═══════════════════════════════════════════════════════════════════════

class LikeToggleResponse(BaseModel):
    liked: bool
    likes_count: int


class SubscriptionToggleResponse(BaseModel):
    subscribed: bool
    subscribers_count: int


class ViewResponse(BaseModel):
    counted: bool
    views: int


class ReconcileResponse(BaseModel):
    video_id: str
    views: int


# ═══════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


# ═══════════════════════════════════════════════════════════════════════
# Search
# ═══════════════════════════════════════════════════════════════════════

class SearchResults(BaseModel):
    query: str
    type: str = "all"
    videos: List[VideoOut] = Field(default_factory=list)
    users: List[ChannelProfile] = Field(default_factory=list)
    tweets: List[TweetOut] = Field(default_factory=list)
