"""
Reelhub Engagement Store — "user liked target of kind K".

Every operation takes the kind explicitly; the store never infers it from the
target id. Uniqueness of (liked_by, kind, target_id) is enforced by the
``uq_likes_user_kind_target`` constraint, not by read-before-write checks.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterable, NamedTuple, Set

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, NotFound, is_unique_violation, translate_storage_errors
from app.models.models import EngagementKind, Like
from app.services.engagement.toggle_engine import toggle_relation

logger = logging.getLogger(__name__)


class LikeKey(NamedTuple):
    user_id: uuid.UUID
    target_id: uuid.UUID
    kind: EngagementKind


class LikeStore:
    """Likes over videos, comments and tweets, bound to one request session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, user_id: uuid.UUID, target_id: uuid.UUID, kind: EngagementKind) -> bool:
        async with translate_storage_errors("like.exists"):
            found = await self.db.scalar(
                select(Like.id)
                .where(Like.liked_by == user_id, Like.kind == kind, Like.target_id == target_id)
                .limit(1)
            )
        return found is not None

    async def insert(self, user_id: uuid.UUID, target_id: uuid.UUID, kind: EngagementKind) -> Like:
        """Insert inside a SAVEPOINT so a duplicate leaves the request transaction usable."""
        like = Like(liked_by=user_id, kind=kind, target_id=target_id)
        async with translate_storage_errors("like.insert"):
            try:
                async with self.db.begin_nested():
                    self.db.add(like)
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise Conflict("Already liked") from e
                raise NotFound("User not found") from e
        return like

    async def delete(self, user_id: uuid.UUID, target_id: uuid.UUID, kind: EngagementKind) -> bool:
        async with translate_storage_errors("like.delete"):
            result = await self.db.execute(
                delete(Like).where(
                    Like.liked_by == user_id, Like.kind == kind, Like.target_id == target_id,
                )
            )
        return (result.rowcount or 0) > 0

    async def count_for(self, target_id: uuid.UUID, kind: EngagementKind) -> int:
        async with translate_storage_errors("like.count"):
            count = await self.db.scalar(
                select(func.count(Like.id)).where(Like.kind == kind, Like.target_id == target_id)
            )
        return count or 0

    async def counts_for(self, target_ids: Iterable[uuid.UUID], kind: EngagementKind) -> Dict[uuid.UUID, int]:
        """Like counts for many targets of one kind in a single grouped query."""
        ids = list(target_ids)
        if not ids:
            return {}
        async with translate_storage_errors("like.count"):
            rows = await self.db.execute(
                select(Like.target_id, func.count(Like.id))
                .where(Like.kind == kind, Like.target_id.in_(ids))
                .group_by(Like.target_id)
            )
        return {target_id: count for target_id, count in rows}

    async def liked_among(
        self, user_id: uuid.UUID, target_ids: Iterable[uuid.UUID], kind: EngagementKind,
    ) -> Set[uuid.UUID]:
        ids = list(target_ids)
        if not ids:
            return set()
        async with translate_storage_errors("like.exists"):
            rows = await self.db.scalars(
                select(Like.target_id).where(
                    Like.liked_by == user_id, Like.kind == kind, Like.target_id.in_(ids),
                )
            )
        return set(rows)

    async def toggle(self, user_id: uuid.UUID, target_id: uuid.UUID, kind: EngagementKind) -> bool:
        """Like if absent, unlike if present. Returns True when now liked."""
        return await toggle_relation(_LikeRelation(self), LikeKey(user_id, target_id, kind))


class _LikeRelation:
    """Adapts LikeStore to the toggle engine's keyed relation protocol."""

    name = "like"

    def __init__(self, store: LikeStore):
        self.store = store

    async def delete(self, key: LikeKey) -> bool:
        return await self.store.delete(*key)

    async def insert(self, key: LikeKey) -> Like:
        return await self.store.insert(*key)
