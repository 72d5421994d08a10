import uuid
from unittest.mock import AsyncMock, patch

from app.core.errors import Conflict, NotFound
from app.models.models import EngagementKind
from app.services.engagement.like_store import LikeStore
from helpers import DatabaseTestCase, add_comment, add_tweet, add_user, add_video, run_async


class TestLikeStore(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        run_async(self._seed())

    async def _seed(self):
        async with self.session() as db:
            self.alice = await add_user(db, "alice")
            self.bob = await add_user(db, "bob")
            self.video = await add_video(db, self.alice)
            self.comment = await add_comment(db, self.video, self.bob, "first!")
            self.tweet = await add_tweet(db, self.alice, "hello")
            await db.commit()

    async def _toggle(self, user_id, target_id, kind):
        async with self.session() as db:
            state = await LikeStore(db).toggle(user_id, target_id, kind)
            await db.commit()
            return state

    async def _count(self, target_id, kind):
        async with self.session() as db:
            return await LikeStore(db).count_for(target_id, kind)

    def test_toggle_alternates_within_one_session(self):
        async def scenario():
            async with self.session() as db:
                store = LikeStore(db)
                self.assertTrue(await store.toggle(self.bob.id, self.video.id, EngagementKind.VIDEO))
                self.assertTrue(await store.exists(self.bob.id, self.video.id, EngagementKind.VIDEO))
                self.assertFalse(await store.toggle(self.bob.id, self.video.id, EngagementKind.VIDEO))
                self.assertFalse(await store.exists(self.bob.id, self.video.id, EngagementKind.VIDEO))
                await db.commit()

        run_async(scenario())

    def test_odd_number_of_toggles_leaves_one_like(self):
        async def scenario():
            for _ in range(5):
                await self._toggle(self.bob.id, self.video.id, EngagementKind.VIDEO)
            return await self._count(self.video.id, EngagementKind.VIDEO)

        self.assertEqual(run_async(scenario()), 1)

    def test_comment_like_then_unlike(self):
        async def scenario():
            liked = await self._toggle(self.alice.id, self.comment.id, EngagementKind.COMMENT)
            unliked = await self._toggle(self.alice.id, self.comment.id, EngagementKind.COMMENT)
            return liked, unliked, await self._count(self.comment.id, EngagementKind.COMMENT)

        self.assertEqual(run_async(scenario()), (True, False, 0))

    def test_counts_never_cross_kinds(self):
        shared_id = self.video.id

        async def scenario():
            await self._toggle(self.alice.id, shared_id, EngagementKind.VIDEO)
            await self._toggle(self.bob.id, shared_id, EngagementKind.VIDEO)
            await self._toggle(self.bob.id, shared_id, EngagementKind.COMMENT)
            return (
                await self._count(shared_id, EngagementKind.VIDEO),
                await self._count(shared_id, EngagementKind.COMMENT),
                await self._count(shared_id, EngagementKind.TWEET),
            )

        self.assertEqual(run_async(scenario()), (2, 1, 0))

    def test_duplicate_insert_is_conflict_and_session_survives(self):
        async def scenario():
            async with self.session() as db:
                store = LikeStore(db)
                await store.insert(self.bob.id, self.tweet.id, EngagementKind.TWEET)
                with self.assertRaises(Conflict):
                    await store.insert(self.bob.id, self.tweet.id, EngagementKind.TWEET)
                count = await store.count_for(self.tweet.id, EngagementKind.TWEET)
                await db.commit()
                return count

        self.assertEqual(run_async(scenario()), 1)

    def test_insert_for_unknown_user_is_not_found(self):
        async def scenario():
            async with self.session() as db:
                await LikeStore(db).insert(uuid.uuid4(), self.video.id, EngagementKind.VIDEO)

        with self.assertRaises(NotFound):
            run_async(scenario())

    def test_toggle_reports_liked_when_concurrent_like_won(self):
        async def scenario():
            async with self.session() as db:
                store = LikeStore(db)
                await store.insert(self.bob.id, self.video.id, EngagementKind.VIDEO)
                # The delete ran before the concurrent insert committed, so it saw nothing.
                with patch.object(LikeStore, "delete", AsyncMock(return_value=False)):
                    state = await store.toggle(self.bob.id, self.video.id, EngagementKind.VIDEO)
                count = await store.count_for(self.video.id, EngagementKind.VIDEO)
                await db.commit()
                return state, count

        self.assertEqual(run_async(scenario()), (True, 1))

    def test_batched_counts_and_flags(self):
        async def scenario():
            async with self.session() as db:
                other = await add_comment(db, self.video, self.alice, "second")
                store = LikeStore(db)
                await store.toggle(self.alice.id, self.comment.id, EngagementKind.COMMENT)
                await store.toggle(self.bob.id, self.comment.id, EngagementKind.COMMENT)
                ids = [self.comment.id, other.id]
                counts = await store.counts_for(ids, EngagementKind.COMMENT)
                liked = await store.liked_among(self.bob.id, ids, EngagementKind.COMMENT)
                await db.commit()
                return counts, liked, other.id

        counts, liked, other_id = run_async(scenario())
        self.assertEqual(counts, {self.comment.id: 2})
        self.assertEqual(liked, {self.comment.id})
        self.assertNotIn(other_id, liked)

    def test_empty_batches_skip_storage(self):
        async def scenario():
            async with self.session() as db:
                store = LikeStore(db)
                return await store.counts_for([], EngagementKind.VIDEO), await store.liked_among(
                    self.bob.id, [], EngagementKind.VIDEO
                )

        self.assertEqual(run_async(scenario()), ({}, set()))
