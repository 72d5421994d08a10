import asyncio
import unittest
import uuid
from unittest.mock import patch

from prometheus_client import REGISTRY
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.core.errors import InvalidIdentifier, NotFound, StorageUnavailable
from app.models.models import Video, View
from app.services.engagement.view_ledger import ViewLedger, viewer_key
from helpers import DatabaseTestCase, add_user, add_video, run_async


class TestViewerKey(unittest.TestCase):
    def test_guest_key_is_empty(self):
        self.assertEqual(viewer_key(None), "")

    def test_user_key_is_id(self):
        ident = uuid.uuid4()
        self.assertEqual(viewer_key(ident), str(ident))


class TestViewLedger(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        run_async(self._seed())

    async def _seed(self):
        async with self.session() as db:
            self.alice = await add_user(db, "alice")
            self.video = await add_video(db, self.alice, "first")
            self.other = await add_video(db, self.alice, "second")
            await db.commit()

    async def _record(self, viewer_id, session_id, video_id=None):
        async with self.session() as db:
            outcome = await ViewLedger(db).record_view(video_id or self.video.id, viewer_id, session_id)
            await db.commit()
            return outcome

    async def _views(self, video_id=None):
        async with self.session() as db:
            ledger = ViewLedger(db)
            vid = video_id or self.video.id
            return await ledger.current_views(vid), await ledger.count_views(vid)

    def test_repeat_view_in_same_session_counts_once(self):
        async def scenario():
            first = await self._record(None, "sess-1")
            second = await self._record(None, "sess-1")
            return first.counted, second.counted, await self._views()

        self.assertEqual(run_async(scenario()), (True, False, (1, 1)))

    def test_viewer_and_session_are_both_part_of_the_key(self):
        async def scenario():
            await self._record(None, "sess-1")
            await self._record(self.alice.id, "sess-1")
            await self._record(None, "sess-2")
            await self._record(self.alice.id, "sess-1")
            return await self._views()

        self.assertEqual(run_async(scenario()), (3, 3))

    def test_concurrent_guest_views_count_once(self):
        async def scenario():
            outcomes = await asyncio.gather(*(self._record(None, "shared") for _ in range(4)))
            return [o.counted for o in outcomes], await self._views()

        counted, views = run_async(scenario())
        self.assertEqual(counted.count(True), 1)
        self.assertEqual(views, (1, 1))

    def test_unknown_video_is_not_found(self):
        with self.assertRaises(NotFound):
            run_async(self._record(None, "sess-1", video_id=uuid.uuid4()))

    def test_blank_session_is_rejected(self):
        with self.assertRaises(InvalidIdentifier):
            run_async(self._record(None, "   "))
        self.assertEqual(run_async(self._views()), (0, 0))

    def test_counter_never_moves_without_a_record(self):
        async def scenario():
            async with self.session() as db:
                ledger = ViewLedger(db)
                await ledger.record_view(self.video.id, None, "a")
                await ledger.record_view(self.video.id, None, "a")
                await ledger.record_view(self.video.id, None, "b")
                await db.commit()
            rows = await self._count_rows()
            return rows, await self._views()

        self.assertEqual(run_async(scenario()), (2, (2, 2)))

    async def _count_rows(self):
        async with self.session() as db:
            return len((await db.scalars(select(View.id).where(View.video_id == self.video.id))).all())

    def test_reconcile_repairs_drift(self):
        async def scenario():
            await self._record(None, "a")
            await self._record(None, "b")
            async with self.session() as db:
                await db.execute(update(Video).where(Video.id == self.video.id).values(views=7))
                await db.commit()
            async with self.session() as db:
                repaired = await ViewLedger(db).reconcile(self.video.id)
                await db.commit()
            return repaired, await self._views()

        self.assertEqual(run_async(scenario()), (2, (2, 2)))

    def test_reconcile_all_touches_only_drifted_videos(self):
        async def scenario():
            await self._record(None, "a")
            async with self.session() as db:
                await db.execute(update(Video).where(Video.id == self.other.id).values(views=3))
                await db.commit()
            async with self.session() as db:
                touched = await ViewLedger(db).reconcile_all()
                await db.commit()
            return touched, await self._views(), await self._views(self.other.id)

        self.assertEqual(run_async(scenario()), (1, (1, 1), (0, 0)))

    def test_storage_outage_is_storage_unavailable(self):
        labels = {"operation": "view.record"}
        before = REGISTRY.get_sample_value("reelhub_storage_errors_total", labels) or 0.0

        async def scenario():
            async with self.session() as db:
                failure = OperationalError("INSERT INTO views", {}, Exception("database is locked"))
                with patch.object(db, "flush", side_effect=failure):
                    await ViewLedger(db).record_view(self.video.id, None, "a")

        with self.assertRaises(StorageUnavailable):
            run_async(scenario())
        self.assertEqual(REGISTRY.get_sample_value("reelhub_storage_errors_total", labels), before + 1)
        self.assertEqual(run_async(self._views()), (0, 0))
