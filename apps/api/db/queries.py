"""Typed query functions for the videos table."""

from __future__ import annotations

import uuid

from db.engine import get_pool

# Public (camelCase) field name -> column. Anything else is not sortable.
SORTABLE_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "duration": "duration",
    "views": "views",
    "isPublished": "is_published",
}

# Column names accepted by update_video()
UPDATABLE_COLUMNS = {"title", "description", "thumbnail", "video_file", "duration", "is_published"}

_SORT_DIRECTIONS = {
    "asc": "ASC",
    "ascending": "ASC",
    "1": "ASC",
    "desc": "DESC",
    "descending": "DESC",
    "-1": "DESC",
}


def sort_clause(sort_by: str | None, sort_type: str | None) -> str:
    """Build an ORDER BY clause from user-supplied sort parameters.

    Unknown or missing sort_by keeps insertion order. An unrecognised
    sort_type raises ValueError.
    """
    direction = "ASC"
    if sort_type is not None and sort_type != "":
        key = str(sort_type).strip().lower()
        if key not in _SORT_DIRECTIONS:
            raise ValueError(f"Invalid sort value: {sort_type!r}")
        direction = _SORT_DIRECTIONS[key]

    column = SORTABLE_COLUMNS.get(sort_by or "")
    if column is None:
        return "ORDER BY created_at ASC, id ASC"
    return f"ORDER BY {column} {direction}, id ASC"


def _where(user_id: str | None, search: str | None) -> tuple[str, list]:
    conditions: list[str] = []
    params: list = []
    idx = 1

    if user_id:
        conditions.append(f"user_id = ${idx}")
        params.append(user_id)
        idx += 1

    if search:
        conditions.append(
            f"(strpos(lower(title), lower(${idx})) > 0 OR strpos(lower(description), lower(${idx})) > 0)"
        )
        params.append(search)
        idx += 1

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


async def find_videos(
    *,
    user_id: str | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    sort_type: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> list[dict]:
    pool = get_pool()
    order = sort_clause(sort_by, sort_type)
    where, params = _where(user_id, search)
    idx = len(params) + 1
    params.extend([limit, offset])

    rows = await pool.fetch(
        f"SELECT * FROM videos {where} {order} LIMIT ${idx} OFFSET ${idx + 1}",
        *params,
    )
    return [dict(r) for r in rows]


async def count_videos(*, user_id: str | None = None, search: str | None = None) -> int:
    pool = get_pool()
    where, params = _where(user_id, search)
    return await pool.fetchval(f"SELECT count(*) FROM videos {where}", *params)


async def get_video(video_id: str) -> dict | None:
    pool = get_pool()
    row = await pool.fetchrow("SELECT * FROM videos WHERE id = $1", uuid.UUID(video_id))
    return dict(row) if row else None


async def insert_video(
    *,
    title: str | None,
    description: str | None,
    video_file: str,
    thumbnail: str,
    duration: float | None,
    user_id: str | None = None,
) -> dict:
    pool = get_pool()
    row = await pool.fetchrow(
        """
        INSERT INTO videos (title, description, video_file, thumbnail, duration, user_id)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING *
        """,
        title, description, video_file, thumbnail, duration, user_id,
    )
    return dict(row)


async def update_video(video_id: str, fields: dict) -> dict | None:
    """Apply a partial update and return the new row (None if it vanished)."""
    unknown = set(fields) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
    if not fields:
        return await get_video(video_id)

    pool = get_pool()
    assignments = []
    params: list = []
    for idx, (column, value) in enumerate(fields.items(), start=1):
        assignments.append(f"{column} = ${idx}")
        params.append(value)
    params.append(uuid.UUID(video_id))

    row = await pool.fetchrow(
        f"UPDATE videos SET {', '.join(assignments)}, updated_at = now() "
        f"WHERE id = ${len(params)} RETURNING *",
        *params,
    )
    return dict(row) if row else None


async def toggle_publish(video_id: str) -> dict | None:
    pool = get_pool()
    row = await pool.fetchrow(
        """
        UPDATE videos SET is_published = NOT is_published, updated_at = now()
        WHERE id = $1
        RETURNING *
        """,
        uuid.UUID(video_id),
    )
    return dict(row) if row else None


async def delete_video(video_id: str) -> dict | None:
    pool = get_pool()
    row = await pool.fetchrow("DELETE FROM videos WHERE id = $1 RETURNING *", uuid.UUID(video_id))
    return dict(row) if row else None
