"""
Reelhub Aggregation Composer — enriched, paginated, viewer-relative listings.

One parameterized pipeline serves comments, videos, tweets and channels:

    1. total      count(*) over the whole filtered query (never just the page)
    2. window     ORDER BY <sort>, id  OFFSET skip LIMIT limit
    3. owner      one IN-query on users, public fields only; dangling -> None
    4. count      one GROUP BY query (likes of kind K or subscribers)
    5. flag       one IN-query for the viewer; anonymous viewers are always False

Each stage is a batched round trip, so a page costs a fixed number of queries
regardless of its size (no N+1).
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Set, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import translate_storage_errors
from app.core.pagination import PageEnvelope, PageWindow
from app.models.models import EngagementKind, User
from app.schemas.schemas import UserSummary
from app.services.engagement.like_store import LikeStore
from app.services.engagement.subscription_graph import (
    USER_SUMMARY_COLUMNS,
    SubscriptionGraph,
    user_summary,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════
# Pipeline stages
# ═══════════════════════════════════════════════════════════════════════

class CountSource(Protocol):
    async def counts(self, db: AsyncSession, ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        ...


class FlagSource(Protocol):
    async def flagged(self, db: AsyncSession, viewer_id: uuid.UUID, ids: List[uuid.UUID]) -> Set[uuid.UUID]:
        ...


@dataclass(frozen=True)
class LikeCount:
    kind: EngagementKind

    async def counts(self, db: AsyncSession, ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        return await LikeStore(db).counts_for(ids, self.kind)


@dataclass(frozen=True)
class LikedByViewer:
    kind: EngagementKind

    async def flagged(self, db: AsyncSession, viewer_id: uuid.UUID, ids: List[uuid.UUID]) -> Set[uuid.UUID]:
        return await LikeStore(db).liked_among(viewer_id, ids, self.kind)


@dataclass(frozen=True)
class SubscriberCount:
    async def counts(self, db: AsyncSession, ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        return await SubscriptionGraph(db).counts_for(ids)


@dataclass(frozen=True)
class SubscribedByViewer:
    async def flagged(self, db: AsyncSession, viewer_id: uuid.UUID, ids: List[uuid.UUID]) -> Set[uuid.UUID]:
        return await SubscriptionGraph(db).subscribed_among(viewer_id, ids)


@dataclass(frozen=True)
class SortSpec:
    """Primary sort key; ties are always broken by the entity id in the same direction."""
    column: Any
    descending: bool = True

    def clauses(self, id_column) -> list:
        if self.descending:
            return [self.column.desc(), id_column.desc()]
        return [self.column.asc(), id_column.asc()]


@dataclass
class EnrichedItem:
    entity: Any
    owner: Optional[UserSummary] = None
    count: int = 0
    flag: bool = False


# ═══════════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════════

class EnrichmentPipeline(Generic[T]):
    """
    Parameterized enrichment over one primary entity model.

    ``owner_column`` names the entity's owner FK (None when the entity is
    itself the user, as for channels); ``project`` turns an EnrichedItem into
    the response schema.
    """

    def __init__(
        self,
        model,
        project: Callable[[EnrichedItem], T],
        owner_column=None,
        count: Optional[CountSource] = None,
        viewer_flag: Optional[FlagSource] = None,
    ):
        self.model = model
        self.project = project
        self.owner_column = owner_column
        self.count = count
        self.viewer_flag = viewer_flag

    def default_sort(self) -> SortSpec:
        return SortSpec(self.model.created_at, descending=True)

    async def fetch_page(
        self,
        db: AsyncSession,
        query: Select,
        window: PageWindow,
        viewer_id: Optional[uuid.UUID] = None,
        sort: Optional[SortSpec] = None,
    ) -> PageEnvelope[T]:
        sort = sort or self.default_sort()
        async with translate_storage_errors("aggregate.page"):
            total = await db.scalar(
                select(func.count()).select_from(query.order_by(None).subquery())
            ) or 0
            if total == 0 or window.skip >= total:
                return PageEnvelope.build([], total, window)

            page_query = (
                query.order_by(None)
                .order_by(*sort.clauses(self.model.id))
                .offset(window.skip)
                .limit(window.limit)
            )
            entities = list((await db.scalars(page_query)).all())

        items = await self.enrich(db, entities, viewer_id)
        return PageEnvelope.build([self.project(i) for i in items], total, window)

    async def fetch_one(
        self,
        db: AsyncSession,
        entity_id: uuid.UUID,
        viewer_id: Optional[uuid.UUID] = None,
        query: Optional[Select] = None,
    ) -> Optional[T]:
        query = query if query is not None else select(self.model)
        async with translate_storage_errors("aggregate.one"):
            entity = await db.scalar(query.where(self.model.id == entity_id))
        if entity is None:
            return None
        items = await self.enrich(db, [entity], viewer_id)
        return self.project(items[0])

    async def enrich(
        self,
        db: AsyncSession,
        entities: List[Any],
        viewer_id: Optional[uuid.UUID] = None,
    ) -> List[EnrichedItem]:
        if not entities:
            return []
        ids = [e.id for e in entities]

        owners: Dict[uuid.UUID, UserSummary] = {}
        if self.owner_column is not None:
            owner_key = self.owner_column.key
            owner_ids = {getattr(e, owner_key) for e in entities} - {None}
            owners = await self._owner_summaries(db, owner_ids)

        counts: Dict[uuid.UUID, int] = {}
        if self.count is not None:
            counts = await self.count.counts(db, ids)

        flagged: Set[uuid.UUID] = set()
        if self.viewer_flag is not None and viewer_id is not None:
            flagged = await self.viewer_flag.flagged(db, viewer_id, ids)

        items = []
        for e in entities:
            owner = None
            if self.owner_column is not None:
                owner = owners.get(getattr(e, self.owner_column.key))
            items.append(EnrichedItem(
                entity=e,
                owner=owner,
                count=counts.get(e.id, 0),
                flag=e.id in flagged,
            ))
        return items

    @staticmethod
    async def _owner_summaries(db: AsyncSession, owner_ids: Set[uuid.UUID]) -> Dict[uuid.UUID, UserSummary]:
        if not owner_ids:
            return {}
        async with translate_storage_errors("aggregate.owners"):
            rows = await db.execute(select(*USER_SUMMARY_COLUMNS).where(User.id.in_(owner_ids)))
        summaries = {r.id: user_summary(r) for r in rows}
        missing = owner_ids - summaries.keys()
        if missing:
            logger.debug(f"{len(missing)} owners no longer exist; summaries left empty")
        return summaries
