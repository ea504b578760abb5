import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Keep media and spooled uploads out of the repo before settings is imported
_TMP = Path(tempfile.mkdtemp(prefix="video_catalogue_tests_"))
os.environ.setdefault("MEDIA_DIR", str(_TMP / "media"))
os.environ.setdefault("UPLOAD_TMP_DIR", str(_TMP / "uploads"))
os.environ["MEDIA_BACKEND"] = "local"
os.environ.pop("DATABASE_URL", None)

from fastapi.testclient import TestClient  # noqa: E402

from db import queries  # noqa: E402
from routers import videos as videos_router  # noqa: E402
from storage.media import MediaStorage, UploadResult, resource_type_for  # noqa: E402


class FakeVideoStore:
    """In-memory stand-in for db.queries with the same call signatures."""

    def __init__(self):
        self.rows: dict[uuid.UUID, dict] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add(self, **fields) -> dict:
        now = self._tick()
        row = {
            "id": uuid.uuid4(),
            "title": "A video",
            "description": "Some description",
            "video_file": "http://media.test/videos/v.mp4",
            "thumbnail": "http://media.test/images/t.jpg",
            "duration": 12.5,
            "views": 0,
            "is_published": True,
            "user_id": None,
            "created_at": now,
            "updated_at": now,
        }
        row.update(fields)
        self.rows[row["id"]] = row
        return dict(row)

    def _matching(self, user_id, search):
        rows = list(self.rows.values())
        if user_id:
            rows = [r for r in rows if r["user_id"] == user_id]
        if search:
            needle = search.lower()
            rows = [
                r for r in rows
                if needle in (r["title"] or "").lower() or needle in (r["description"] or "").lower()
            ]
        return rows

    async def find_videos(self, *, user_id=None, search=None, sort_by=None, sort_type=None, limit=10, offset=0):
        order = queries.sort_clause(sort_by, sort_type)
        rows = sorted(self._matching(user_id, search), key=lambda r: r["created_at"])
        column = queries.SORTABLE_COLUMNS.get(sort_by or "")
        if column:
            rows.sort(key=lambda r: r[column], reverse=f"{column} DESC" in order)
        return [dict(r) for r in rows[offset:offset + limit]]

    async def count_videos(self, *, user_id=None, search=None):
        return len(self._matching(user_id, search))

    async def get_video(self, video_id):
        row = self.rows.get(uuid.UUID(video_id))
        return dict(row) if row else None

    async def insert_video(self, *, title, description, video_file, thumbnail, duration, user_id=None):
        return self.add(
            title=title,
            description=description,
            video_file=video_file,
            thumbnail=thumbnail,
            duration=duration,
            user_id=user_id,
        )

    async def update_video(self, video_id, fields):
        row = self.rows.get(uuid.UUID(video_id))
        if row is None:
            return None
        if fields:
            row.update(fields)
            row["updated_at"] = self._tick()
        return dict(row)

    async def toggle_publish(self, video_id):
        row = self.rows.get(uuid.UUID(video_id))
        if row is None:
            return None
        row["is_published"] = not row["is_published"]
        return dict(row)

    async def delete_video(self, video_id):
        row = self.rows.pop(uuid.UUID(video_id), None)
        return dict(row) if row else None


class FakeMediaStorage(MediaStorage):
    """Records uploads; videos report 12345 hundredths of a second."""

    def __init__(self, video_duration: float | None = 12345):
        self.video_duration = video_duration
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail = False

    async def upload(self, local_path):
        path = Path(local_path)
        try:
            if self.fail:
                raise ConnectionError("media host unavailable")
            resource_type = resource_type_for(path)
            self.uploaded.append(path.read_bytes().decode())
            public_id = f"{resource_type}s/{len(self.uploaded)}{path.suffix}"
            return UploadResult(
                url=f"http://media.test/{public_id}",
                public_id=public_id,
                resource_type=resource_type,
                bytes=path.stat().st_size,
                duration=self.video_duration if resource_type == "video" else None,
            )
        finally:
            path.unlink(missing_ok=True)

    async def delete(self, public_id):
        self.deleted.append(public_id)


@pytest.fixture
def store(monkeypatch):
    fake = FakeVideoStore()
    monkeypatch.setattr(videos_router, "find_videos", fake.find_videos)
    monkeypatch.setattr(videos_router, "count_videos", fake.count_videos)
    monkeypatch.setattr(videos_router, "get_video", fake.get_video)
    monkeypatch.setattr(videos_router, "insert_video", fake.insert_video)
    monkeypatch.setattr(videos_router, "update_video_row", fake.update_video)
    monkeypatch.setattr(videos_router, "toggle_publish", fake.toggle_publish)
    monkeypatch.setattr(videos_router, "delete_video_row", fake.delete_video)
    return fake


@pytest.fixture
def media(monkeypatch):
    fake = FakeMediaStorage()
    monkeypatch.setattr(videos_router, "get_media_storage", lambda: fake)
    return fake


@pytest.fixture
def client(store, media):
    from main import app

    return TestClient(app)
