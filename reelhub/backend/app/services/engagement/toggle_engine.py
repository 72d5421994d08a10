"""
Reelhub Toggle Engine — flip a unique relation's presence.

Delete first: if a row went away the relation is now absent. Otherwise insert;
a uniqueness conflict on that insert means a concurrent caller created the
same row, which already satisfies this caller's intent.

No in-process locking: several server processes share the database, so the
unique constraint is the only arbiter. Under concurrent opposite toggles the
final state is whichever statement commits last.
"""
from __future__ import annotations

import logging
from typing import Protocol, TypeVar

from app.core.errors import Conflict
from app.core.metrics import ENGAGEMENT_TOGGLES

logger = logging.getLogger(__name__)

K = TypeVar("K", contravariant=True)


class Relation(Protocol[K]):
    name: str

    async def delete(self, key: K) -> bool:
        ...

    async def insert(self, key: K) -> object:
        ...


async def toggle_relation(relation: Relation[K], key: K) -> bool:
    """Return the relation's state after the toggle (True = present)."""
    if await relation.delete(key):
        ENGAGEMENT_TOGGLES.labels(relation=relation.name, state="absent").inc()
        logger.debug(f"{relation.name} toggled off: {key}")
        return False

    try:
        await relation.insert(key)
    except Conflict:
        logger.debug(f"{relation.name} insert raced with an identical insert: {key}")

    ENGAGEMENT_TOGGLES.labels(relation=relation.name, state="present").inc()
    logger.debug(f"{relation.name} toggled on: {key}")
    return True
