"""
Reelhub API — Comment Routes

Enriched comment listing for a video (owner, like count, viewer's like flag)
and comment creation.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id, require_viewer
from app.core.database import commit, get_db
from app.core.identifiers import entity_exists, validate_existing
from app.core.pagination import PageEnvelope, normalize_page
from app.models.models import Comment, Video
from app.schemas.schemas import CommentCreate, CommentOut
from app.services.aggregation.pipelines import comment_pipeline

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/{video_id}", response_model=PageEnvelope[CommentOut])
async def list_video_comments(
    video_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """Comments for a video, newest first, with like counts and the viewer's like flag."""
    vid = await validate_existing(video_id, entity_exists(db, Video), "video_id")
    query = select(Comment).where(Comment.video_id == vid)
    return await comment_pipeline.fetch_page(db, query, normalize_page(page, limit), viewer_id)


@router.post("/{video_id}", response_model=CommentOut, status_code=201)
async def add_comment(
    video_id: str,
    body: CommentCreate,
    viewer_id: uuid.UUID = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    vid = await validate_existing(video_id, entity_exists(db, Video), "video_id")
    content = body.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment content is required")

    comment = Comment(video_id=vid, owner_id=viewer_id, content=content)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)

    items = await comment_pipeline.enrich(db, [comment], viewer_id)
    await commit(db)
    return comment_pipeline.project(items[0])
