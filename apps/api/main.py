"""
Video catalogue: FastAPI backend.

  GET    /api/v1/videos                              List videos (paginated)
  POST   /api/v1/videos                              Publish a video + thumbnail
  GET    /api/v1/videos/{id}                         Fetch a video
  PATCH  /api/v1/videos/{id}                         Update title/description/thumbnail
  DELETE /api/v1/videos/{id}                         Delete a video
  PATCH  /api/v1/videos/toggle/publish/{id}          Flip isPublished
  GET    /media/...                                  Locally hosted media (MEDIA_BACKEND=local)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import settings
from db.engine import close_db, init_db
from routers import videos
from storage.media import LocalMediaStorage, get_media_storage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# ── Lifespan: init/close DB pool ──────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DATABASE_URL:
        await init_db()
        logger.info("Database pool initialized")
    else:
        logger.warning("DATABASE_URL not set, video endpoints will answer 500")
    yield
    if settings.DATABASE_URL:
        await close_db()
        logger.info("Database pool closed")


app = FastAPI(title="Video Catalogue", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(videos.router, prefix="/api/v1")

# ── Serve uploaded media when it lives on local disk ──────────────────────────
media_storage = get_media_storage()
if isinstance(media_storage, LocalMediaStorage):
    app.mount("/media", StaticFiles(directory=str(media_storage.base)), name="media")
    logger.info("Serving local media from %s", media_storage.base)
