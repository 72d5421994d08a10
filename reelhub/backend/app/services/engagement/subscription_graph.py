"""
Reelhub Subscription Graph — subscriber -> channel edges between users.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterable, List, NamedTuple, Set

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    Conflict, NotFound, SelfReferenceRejected, is_unique_violation, translate_storage_errors,
)
from app.models.models import Subscription, User
from app.schemas.schemas import UserSummary
from app.services.engagement.toggle_engine import toggle_relation

logger = logging.getLogger(__name__)


class SubscriptionKey(NamedTuple):
    subscriber_id: uuid.UUID
    channel_id: uuid.UUID


def user_summary(row) -> UserSummary:
    return UserSummary(
        id=str(row.id),
        username=row.username,
        full_name=row.full_name,
        avatar_url=row.avatar_url,
    )


USER_SUMMARY_COLUMNS = (User.id, User.username, User.full_name, User.avatar_url)


class SubscriptionGraph:
    name = "subscription"

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Relation protocol (toggle engine) ────────────────────────────────

    async def delete(self, key: SubscriptionKey) -> bool:
        async with translate_storage_errors("subscription.delete"):
            result = await self.db.execute(
                delete(Subscription).where(
                    Subscription.subscriber_id == key.subscriber_id,
                    Subscription.channel_id == key.channel_id,
                )
            )
        return (result.rowcount or 0) > 0

    async def insert(self, key: SubscriptionKey) -> Subscription:
        record = Subscription(subscriber_id=key.subscriber_id, channel_id=key.channel_id)
        async with translate_storage_errors("subscription.insert"):
            try:
                async with self.db.begin_nested():
                    self.db.add(record)
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise Conflict("Already subscribed") from e
                raise NotFound("Channel not found") from e
        return record

    # ── Operations ───────────────────────────────────────────────────────

    async def toggle(self, subscriber_id: uuid.UUID, channel_id: uuid.UUID) -> bool:
        """Subscribe if absent, unsubscribe if present. Returns True when now subscribed."""
        if subscriber_id == channel_id:
            raise SelfReferenceRejected("You cannot subscribe to your own channel")
        return await toggle_relation(self, SubscriptionKey(subscriber_id, channel_id))

    async def is_subscribed(self, subscriber_id: uuid.UUID, channel_id: uuid.UUID) -> bool:
        async with translate_storage_errors("subscription.exists"):
            found = await self.db.scalar(
                select(Subscription.id)
                .where(
                    Subscription.subscriber_id == subscriber_id,
                    Subscription.channel_id == channel_id,
                )
                .limit(1)
            )
        return found is not None

    async def list_subscribers(self, channel_id: uuid.UUID) -> List[UserSummary]:
        """Users subscribed to ``channel_id``, most recent first."""
        async with translate_storage_errors("subscription.list"):
            rows = await self.db.execute(
                select(*USER_SUMMARY_COLUMNS)
                .join(Subscription, Subscription.subscriber_id == User.id)
                .where(Subscription.channel_id == channel_id)
                .order_by(Subscription.created_at.desc(), Subscription.id)
            )
        return [user_summary(r) for r in rows]

    async def list_subscriptions(self, subscriber_id: uuid.UUID) -> List[UserSummary]:
        """Channels ``subscriber_id`` follows, most recent first."""
        async with translate_storage_errors("subscription.list"):
            rows = await self.db.execute(
                select(*USER_SUMMARY_COLUMNS)
                .join(Subscription, Subscription.channel_id == User.id)
                .where(Subscription.subscriber_id == subscriber_id)
                .order_by(Subscription.created_at.desc(), Subscription.id)
            )
        return [user_summary(r) for r in rows]

    async def count_subscribers(self, channel_id: uuid.UUID) -> int:
        async with translate_storage_errors("subscription.count"):
            count = await self.db.scalar(
                select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
            )
        return count or 0

    async def count_subscriptions(self, subscriber_id: uuid.UUID) -> int:
        async with translate_storage_errors("subscription.count"):
            count = await self.db.scalar(
                select(func.count(Subscription.id)).where(Subscription.subscriber_id == subscriber_id)
            )
        return count or 0

    async def counts_for(self, channel_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        ids = list(channel_ids)
        if not ids:
            return {}
        async with translate_storage_errors("subscription.count"):
            rows = await self.db.execute(
                select(Subscription.channel_id, func.count(Subscription.id))
                .where(Subscription.channel_id.in_(ids))
                .group_by(Subscription.channel_id)
            )
        return {channel_id: count for channel_id, count in rows}

    async def subscribed_among(
        self, subscriber_id: uuid.UUID, channel_ids: Iterable[uuid.UUID],
    ) -> Set[uuid.UUID]:
        ids = list(channel_ids)
        if not ids:
            return set()
        async with translate_storage_errors("subscription.exists"):
            rows = await self.db.scalars(
                select(Subscription.channel_id).where(
                    Subscription.subscriber_id == subscriber_id,
                    Subscription.channel_id.in_(ids),
                )
            )
        return set(rows)
