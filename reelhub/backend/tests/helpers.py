import asyncio
import os
import tempfile
import unittest
import uuid
from datetime import datetime, timedelta
from typing import Optional

import jwt

from app.core import database
from app.core.config import get_settings
from app.models.models import Comment, Tweet, User, Video

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def run_async(coro):
    return asyncio.run(coro)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def token_for(user_id: uuid.UUID) -> str:
    settings = get_settings()
    return jwt.encode({"_id": str(user_id)}, settings.secret_key, algorithm=settings.jwt_algorithm)


class DatabaseTestCase(unittest.TestCase):
    """Each test gets a fresh SQLite file with the full schema."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        url = f"sqlite+aiosqlite:///{os.path.join(self._tmpdir.name, 'test.db')}"
        self.engine = database.configure_engine(url)
        run_async(self._create_schema())

    def tearDown(self):
        run_async(self.engine.dispose())
        self._tmpdir.cleanup()

    async def _create_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(database.Base.metadata.create_all)

    def session(self):
        return database.async_session_factory()


async def add_user(db, username: str, created_at: Optional[datetime] = None) -> User:
    user = User(
        username=username,
        full_name=username.title(),
        email=f"{username}@example.com",
        avatar_url=f"https://cdn.example.com/{username}.png",
        hashed_password="not-a-real-hash",
        refresh_token="secret-refresh-token",
        created_at=created_at or BASE_TIME,
    )
    db.add(user)
    await db.flush()
    return user


async def add_video(
    db, owner: Optional[User], title: str = "clip", created_at: Optional[datetime] = None,
    views: int = 0, is_published: bool = True,
) -> Video:
    video = Video(
        owner_id=owner.id if owner else None,
        title=title,
        video_url=f"https://cdn.example.com/{title}.mp4",
        duration_seconds=12.5,
        views=views,
        is_published=is_published,
        created_at=created_at or BASE_TIME,
    )
    db.add(video)
    await db.flush()
    return video


async def add_comment(
    db, video: Video, owner: Optional[User], content: str, created_at: Optional[datetime] = None,
) -> Comment:
    comment = Comment(
        video_id=video.id,
        owner_id=owner.id if owner else None,
        content=content,
        created_at=created_at or BASE_TIME,
    )
    db.add(comment)
    await db.flush()
    return comment


async def add_tweet(db, owner: Optional[User], content: str, created_at: Optional[datetime] = None) -> Tweet:
    tweet = Tweet(owner_id=owner.id if owner else None, content=content, created_at=created_at or BASE_TIME)
    db.add(tweet)
    await db.flush()
    return tweet
