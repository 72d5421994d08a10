"""
Reelhub — Main FastAPI Application

Engagement & aggregation backend for a social-video platform.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from app.core import database
from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import EngagementError, engagement_error_handler
from app.services.engagement.view_ledger import ViewLedger

settings = get_settings()

# ── Logging ──────────────────────────────────────────────────────────────

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level)
    ),
)
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

logger = structlog.get_logger()


# ── Lifespan ─────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    logger.info("Starting Reelhub", version=settings.app_version)
    await init_db()
    if settings.reconcile_views_on_startup:
        async with database.async_session_factory() as db:
            repaired = await ViewLedger(db).reconcile_all()
            await db.commit()
        logger.info("View counters reconciled", repaired=repaired)
    logger.info("Reelhub ready", api_prefix=settings.api_prefix)

    yield

    await database.engine.dispose()
    logger.info("Shutting down Reelhub")


# ── App ──────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Reelhub",
    description="Likes, views and subscriptions with enriched, viewer-relative listings",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(EngagementError, engagement_error_handler)

if settings.metrics_enabled:
    app.mount("/metrics", make_asgi_app())

# ── Routes ───────────────────────────────────────────────────────────────

from app.api.routes import comments, dashboard, likes, search, subscriptions, tweets, users, videos

app.include_router(likes.router, prefix=settings.api_prefix)
app.include_router(subscriptions.router, prefix=settings.api_prefix)
app.include_router(comments.router, prefix=settings.api_prefix)
app.include_router(videos.router, prefix=settings.api_prefix)
app.include_router(tweets.router, prefix=settings.api_prefix)
app.include_router(dashboard.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(search.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": "Reelhub",
        "version": settings.app_version,
        "features": ["likes", "views", "subscriptions", "enriched_listings", "watch_history", "search"],
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}
