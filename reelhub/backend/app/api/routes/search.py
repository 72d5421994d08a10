"""
Reelhub API — Search routes.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id
from app.core.database import get_db
from app.schemas.schemas import SearchResults
from app.services.search.search_service import SEARCH_TYPES, search_service

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResults)
async def search(
    q: Optional[str] = Query(None, max_length=256),
    kind: str = Query("all", alias="type"),
    viewer_id: Optional[uuid.UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Search videos (title, description), channels (username) and tweets
    (content). An empty query returns empty results.
    """
    search_type = kind.strip().lower()
    if search_type not in SEARCH_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid search type: {kind}")
    return await search_service.search(db, q, search_type, viewer_id)
