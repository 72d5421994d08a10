"""
Reelhub API — Subscription routes.
"""
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_viewer
from app.core.database import commit, get_db
from app.core.errors import SelfReferenceRejected
from app.core.identifiers import entity_exists, validate_existing, validate_identifier
from app.models.models import User
from app.schemas.schemas import SubscriptionToggleResponse, UserSummary
from app.services.engagement.subscription_graph import SubscriptionGraph

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/c/{channel_id}", response_model=SubscriptionToggleResponse)
async def toggle_subscription(
    channel_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    """Subscribe to or unsubscribe from a channel."""
    channel_uuid = validate_identifier(channel_id, "channel_id")
    if channel_uuid == viewer_id:
        raise SelfReferenceRejected("You cannot subscribe to your own channel")
    await validate_existing(channel_uuid, entity_exists(db, User), "channel_id")

    graph = SubscriptionGraph(db)
    subscribed = await graph.toggle(viewer_id, channel_uuid)
    response = SubscriptionToggleResponse(
        subscribed=subscribed,
        subscribers_count=await graph.count_subscribers(channel_uuid),
    )
    await commit(db)
    return response


@router.get("/c/{channel_id}", response_model=List[UserSummary])
async def list_channel_subscribers(channel_id: str, db: AsyncSession = Depends(get_db)):
    channel_uuid = await validate_existing(channel_id, entity_exists(db, User), "channel_id")
    return await SubscriptionGraph(db).list_subscribers(channel_uuid)


@router.get("/u/{subscriber_id}", response_model=List[UserSummary])
async def list_subscribed_channels(
    subscriber_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    subscriber_uuid = await validate_existing(subscriber_id, entity_exists(db, User), "user_id")
    return await SubscriptionGraph(db).list_subscriptions(subscriber_uuid)
