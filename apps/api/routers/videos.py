"""Video catalogue endpoints: list, publish, fetch, update, delete, toggle publish.

Every handler answers 404 when the video is missing and a generic 500 for
any other failure; the underlying error is only logged.
"""

import logging
import math
import uuid
from pathlib import Path

from fastapi import APIRouter, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

import settings
from db.queries import (
    count_videos,
    delete_video as delete_video_row,
    find_videos,
    get_video,
    insert_video,
    toggle_publish,
    update_video as update_video_row,
)
from schemas.video import PageInfo, VideoListResponse, VideoOut
from storage.media import MediaStorage, UploadResult, get_media_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

CHUNK_SIZE = 1024 * 1024  # 1 MB
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

NOT_FOUND_MESSAGE = "Video does not exist"
GENERIC_ERROR_MESSAGE = "Something went wrong!"
DELETED_MESSAGE = "Deleted Video Sucessfully!"


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"message": message})


def _not_found() -> JSONResponse:
    return _error(404, NOT_FOUND_MESSAGE)


def _server_error(action: str, video_id: str | None = None) -> JSONResponse:
    if video_id:
        logger.exception("Failed to %s video %s", action, video_id)
    else:
        logger.exception("Failed to %s video", action)
    return _error(500, GENERIC_ERROR_MESSAGE)


def _video_body(row: dict) -> dict:
    return {"video": VideoOut.from_row(row).to_json()}


def _positive_int(value: str, name: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"{name} must be >= 1, got {number}")
    return number


async def _spool(upload: UploadFile | None, field: str) -> Path:
    """Write a multipart file to a temp path for the media backend to pick up."""
    if upload is None or not upload.filename:
        raise ValueError(f"Missing '{field}' file")

    ext = Path(upload.filename).suffix.lower()
    settings.UPLOAD_TMP_DIR.mkdir(parents=True, exist_ok=True)
    dest = settings.UPLOAD_TMP_DIR / f"{uuid.uuid4().hex}{ext}"
    try:
        with open(dest, "wb") as f:
            while chunk := await upload.read(CHUNK_SIZE):
                f.write(chunk)
    except Exception:
        dest.unlink(missing_ok=True)
        raise
    return dest


async def _discard(media: MediaStorage, uploads: list[UploadResult]) -> None:
    """Delete assets whose catalogue entry was never written."""
    for uploaded in uploads:
        try:
            await media.delete(uploaded.public_id)
        except Exception:
            logger.exception("Could not remove orphaned media %s", uploaded.public_id)


def _require_form_body(request: Request) -> None:
    content_type = request.headers.get("content-type", "")
    if content_type and not content_type.startswith(FORM_CONTENT_TYPES):
        raise ValueError(f"Expected a form body, got '{content_type}'")


@router.get("/videos")
async def get_all_videos(
    page: str = "1",
    limit: str = "10",
    query: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_type: str | None = Query(None, alias="sortType"),
    user_id: str | None = Query(None, alias="userId"),
):
    """List videos a page at a time, optionally for a single owner."""
    try:
        page_num = _positive_int(page, "page")
        page_size = _positive_int(limit, "limit")

        rows = await find_videos(
            user_id=user_id,
            search=query,
            sort_by=sort_by,
            sort_type=sort_type,
            limit=page_size,
            offset=(page_num - 1) * page_size,
        )
        total = await count_videos(user_id=user_id, search=query)

        response = VideoListResponse(
            videos=[VideoOut.from_row(r) for r in rows],
            page_info=PageInfo(
                total_videos=total,
                current_page=page_num,
                total_pages=math.ceil(total / page_size),
            ),
        )
        return JSONResponse(status_code=200, content=response.to_json())
    except Exception:
        return _server_error("list")


@router.post("/videos")
async def publish_video(
    title: str | None = Form(None),
    description: str | None = Form(None),
    user_id: str | None = Form(None, alias="userId"),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
):
    """Upload a video and its thumbnail, then create the catalogue entry.

    Both files are spooled before anything is uploaded. If an upload or the
    insert fails, assets already stored are deleted again.
    """
    spooled: list[Path] = []
    stored: list[UploadResult] = []
    media = None
    try:
        spooled.append(await _spool(video_file, "videoFile"))
        spooled.append(await _spool(thumbnail, "thumbnail"))

        media = get_media_storage()
        for path in spooled:
            stored.append(await media.upload(path))
        uploaded_video, uploaded_thumbnail = stored

        duration = None
        if uploaded_video.duration is not None:
            duration = uploaded_video.duration / settings.VIDEO_DURATION_DIVISOR

        row = await insert_video(
            title=title,
            description=description,
            video_file=uploaded_video.url,
            thumbnail=uploaded_thumbnail.url,
            duration=duration,
            user_id=user_id,
        )
        logger.info("Published video %s", row["id"])
        return JSONResponse(status_code=201, content=_video_body(row))
    except Exception:
        for path in spooled:
            path.unlink(missing_ok=True)
        if media is not None:
            await _discard(media, stored)
        return _server_error("publish")


@router.get("/videos/{video_id}")
async def get_video_by_id(video_id: str):
    try:
        video = await get_video(video_id)
        if not video:
            return _not_found()
        return JSONResponse(status_code=200, content=_video_body(video))
    except Exception:
        return _server_error("fetch", video_id)


@router.patch("/videos/{video_id}")
async def update_video(
    request: Request,
    video_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
):
    """Patch title/description and optionally replace the thumbnail.

    Takes multipart/form-data (or urlencoded when no file is sent); any other
    body, JSON included, is rejected with the generic 500. Empty strings are
    treated as "not supplied".
    """
    media = None
    stored: list[UploadResult] = []
    try:
        _require_form_body(request)

        video = await get_video(video_id)
        if not video:
            return _not_found()

        changes: dict = {}
        if title:
            changes["title"] = title
        if description:
            changes["description"] = description
        if thumbnail is not None and thumbnail.filename:
            media = get_media_storage()
            stored.append(await media.upload(await _spool(thumbnail, "thumbnail")))
            changes["thumbnail"] = stored[0].url

        updated = await update_video_row(video_id, changes)
        if not updated:
            if media is not None:
                await _discard(media, stored)
            return _not_found()
        return JSONResponse(status_code=200, content=_video_body(updated))
    except Exception:
        if media is not None:
            await _discard(media, stored)
        return _server_error("update", video_id)


@router.delete("/videos/{video_id}")
async def delete_video(video_id: str):
    try:
        video = await get_video(video_id)
        if not video:
            return _not_found()

        await delete_video_row(video_id)
        logger.info("Deleted video %s", video_id)
        return JSONResponse(status_code=200, content={"message": DELETED_MESSAGE})
    except Exception:
        return _server_error("delete", video_id)


@router.patch("/videos/toggle/publish/{video_id}")
async def toggle_publish_status(video_id: str):
    """Flip isPublished in a single UPDATE; a missing row is a 404."""
    try:
        toggled = await toggle_publish(video_id)
        if not toggled:
            return _not_found()
        return JSONResponse(status_code=200, content=_video_body(toggled))
    except Exception:
        return _server_error("toggle publish status of", video_id)
