"""
Reelhub API — Video routes.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_view_session_id, get_viewer_id, require_viewer
from app.core.config import get_settings
from app.core.database import commit, get_db
from app.core.errors import NotFound
from app.core.identifiers import validate_identifier
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import Video
from app.schemas.schemas import ReconcileResponse, VideoOut, ViewResponse
from app.services.aggregation.composer import SortSpec
from app.services.aggregation.pipelines import video_pipeline
from app.services.engagement.view_ledger import ViewLedger

settings = get_settings()
router = APIRouter(prefix="/videos", tags=["Videos"])


def _published():
    return select(Video).where(Video.is_published.is_(True))


@router.get("", response_model=PageEnvelope[VideoOut])
async def list_videos(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Published videos, newest first unless ``sort_by`` names another key."""
    stmt = _published()
    if query and query.strip():
        term = query.strip()
        stmt = stmt.where(or_(
            Video.title.icontains(term, autoescape=True),
            Video.description.icontains(term, autoescape=True),
        ))

    sort = None
    if sort_by:
        if sort_by not in settings.video_sort_keys:
            raise HTTPException(status_code=400, detail=f"Unsupported sort_by: {sort_by}")
        sort = SortSpec(getattr(Video, sort_by), descending=sort_type == "desc")

    return await video_pipeline.fetch_page(db, stmt, normalize_page(page, limit), viewer_id, sort=sort)


@router.get("/{video_id}", response_model=VideoOut)
async def get_video(
    video_id: str,
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Video detail with like count and the viewer's like flag."""
    vid = validate_identifier(video_id, "video_id")
    video = await video_pipeline.fetch_one(db, vid, viewer_id, query=_published())
    if video is None:
        raise NotFound("Video not found")
    return video


@router.post("/view/{video_id}", response_model=ViewResponse)
async def register_view(
    video_id: str,
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    session_id: str = Depends(get_view_session_id),
    db: AsyncSession = Depends(get_db),
):
    """Count a view once per (video, viewer-or-guest, session)."""
    vid = validate_identifier(video_id, "video_id")
    if await db.scalar(_published().with_only_columns(Video.id).where(Video.id == vid)) is None:
        raise NotFound("Video not found")

    ledger = ViewLedger(db)
    outcome = await ledger.record_view(vid, viewer_id, session_id)
    response = ViewResponse(counted=outcome.counted, views=await ledger.current_views(vid))
    await commit(db)
    return response


@router.post("/{video_id}/views/reconcile", response_model=ReconcileResponse)
async def reconcile_views(
    video_id: str,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    """Rewrite the view counter from the view records. Owner only."""
    vid = validate_identifier(video_id, "video_id")
    owner_id = await db.scalar(select(Video.owner_id).where(Video.id == vid))
    if owner_id is None:
        raise NotFound("Video not found")
    if owner_id != viewer_id:
        raise HTTPException(status_code=403, detail="Not authorized")

    views = await ViewLedger(db).reconcile(vid)
    await commit(db)
    return ReconcileResponse(video_id=str(vid), views=views)
