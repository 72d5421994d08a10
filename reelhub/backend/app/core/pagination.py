"""
Pagination policy shared by every listing endpoint.

``limit`` is clamped because each page item fans out into several
enrichment lookups (owner, count, viewer flag).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from app.core.config import get_settings

settings = get_settings()

T = TypeVar("T")


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def normalize_page(page_raw: Any = None, limit_raw: Any = None) -> PageWindow:
    page = _to_int(page_raw)
    limit = _to_int(limit_raw)

    if page is None or page < 1:
        page = settings.default_page
    if limit is None or limit < 1:
        limit = settings.default_page_size
    limit = min(limit, settings.max_page_size)
    return PageWindow(page=page, limit=limit)


class PageEnvelope(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, items: List[T], total: int, window: PageWindow) -> "PageEnvelope[T]":
        return cls(
            items=items,
            total=total,
            page=window.page,
            limit=window.limit,
            total_pages=math.ceil(total / window.limit) if total else 0,
        )
