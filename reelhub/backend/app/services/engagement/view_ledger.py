"""
Reelhub View Ledger — at most one counted view per (video, viewer-or-guest,
session).

Recording a view inserts a ``View`` row and bumps ``videos.views`` inside one
SAVEPOINT, so the counter moves only when a new row was created and can never
exceed the number of distinct view records. A duplicate key is the expected
"already counted" outcome, not a failure; every other storage error is raised.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidIdentifier, NotFound, is_unique_violation, translate_storage_errors
from app.core.metrics import VIEW_COUNTER_REPAIRS, VIEWS_RECORDED
from app.models.models import Video, View

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewOutcome:
    counted: bool


def viewer_key(viewer_id: Optional[uuid.UUID]) -> str:
    return str(viewer_id) if viewer_id else ""


class ViewLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_view(
        self,
        video_id: uuid.UUID,
        viewer_id: Optional[uuid.UUID],
        session_id: str,
    ) -> ViewOutcome:
        session_id = (session_id or "").strip()
        if not session_id:
            raise InvalidIdentifier("sessionId is required")

        view = View(
            video_id=video_id,
            viewer_id=viewer_id,
            viewer_key=viewer_key(viewer_id),
            session_id=session_id,
        )
        async with translate_storage_errors("view.record"):
            try:
                async with self.db.begin_nested():
                    self.db.add(view)
                    await self.db.flush()
                    await self.db.execute(
                        update(Video)
                        .where(Video.id == video_id)
                        .values(views=Video.views + 1)
                        .execution_options(synchronize_session=False)
                    )
            except IntegrityError as e:
                if not is_unique_violation(e):
                    raise NotFound("Video not found") from e
                VIEWS_RECORDED.labels(counted="false").inc()
                logger.debug(f"Duplicate view ignored: video={video_id} session={session_id}")
                return ViewOutcome(counted=False)

        VIEWS_RECORDED.labels(counted="true").inc()
        logger.info(f"View counted: video={video_id} viewer={viewer_id or 'guest'}")
        return ViewOutcome(counted=True)

    async def current_views(self, video_id: uuid.UUID) -> int:
        """The stored counter on the video row."""
        async with translate_storage_errors("view.read"):
            views = await self.db.scalar(select(Video.views).where(Video.id == video_id))
        return views or 0

    async def count_views(self, video_id: uuid.UUID) -> int:
        """Derived count: number of distinct view records for the video."""
        async with translate_storage_errors("view.count"):
            count = await self.db.scalar(
                select(func.count(View.id)).where(View.video_id == video_id)
            )
        return count or 0

    # ── Repair ───────────────────────────────────────────────────────────

    async def reconcile(self, video_id: uuid.UUID) -> int:
        """Rewrite one video's counter to the derived count. Returns the count."""
        derived = await self.count_views(video_id)
        async with translate_storage_errors("view.reconcile"):
            result = await self.db.execute(
                update(Video)
                .where(Video.id == video_id, Video.views != derived)
                .values(views=derived)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount:
            VIEW_COUNTER_REPAIRS.inc()
            logger.warning(f"View counter repaired: video={video_id} views={derived}")
        return derived

    async def reconcile_all(self) -> int:
        """Repair every drifted counter in one statement. Returns rows touched."""
        derived = (
            select(func.count(View.id))
            .where(View.video_id == Video.id)
            .correlate(Video)
            .scalar_subquery()
        )
        async with translate_storage_errors("view.reconcile"):
            result = await self.db.execute(
                update(Video)
                .where(Video.views != derived)
                .values(views=derived)
                .execution_options(synchronize_session=False)
            )
        repaired = result.rowcount or 0
        if repaired:
            VIEW_COUNTER_REPAIRS.inc(repaired)
            logger.warning(f"View counters repaired: {repaired} videos")
        return repaired
