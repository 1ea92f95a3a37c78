"""
inlandv/routes_posts.py

Public news ("posts") endpoints. Only news with a publication date is visible.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Path

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, commit, decode_row, execute_query, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import public_news_query
    from inlandv.media import normalize_path
    from inlandv.models import NEWS_BOOL_COLUMNS
    from inlandv.query_builder import paginated_response, parse_pagination, run_paginated
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, commit, decode_row, execute_query, fetch_all, fetch_one, get_db_connection
    from errors import server_error
    from filters import public_news_query
    from media import normalize_path
    from models import NEWS_BOOL_COLUMNS
    from query_builder import paginated_response, parse_pagination, run_paginated


router = APIRouter(
    prefix="/api/posts",
    tags=["posts"],
)

NEWS_ORDER = "n.published_at DESC, n.created_at DESC"

FEATURED_DEFAULT_LIMIT = 3

NEWS_DETAIL_SQL = """
    SELECT n.id, n.title, n.slug, n.excerpt, n.content, n.thumbnail AS thumbnail_url,
           n.featured, n.view_count, n.author, n.meta_title, n.meta_description,
           n.published_at, n.created_at, n.updated_at,
           COALESCE(nc.slug, 'tin-thi-truong') AS category,
           nc.name AS category_name
    FROM news n
    LEFT JOIN news_categories nc ON nc.id = n.category_id
"""


def normalize_post(post: Dict[str, Any]) -> Dict[str, Any]:
    decode_row(post, (), NEWS_BOOL_COLUMNS)
    post["thumbnail_url"] = normalize_path(post.get("thumbnail_url")) or None
    post["view_count"] = int(post.get("view_count") or 0)
    return post


@router.get("")
def list_posts(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """Published news, newest first. `category` matches a category slug or name."""
    page, limit = parse_pagination(page, limit)
    query = public_news_query({"category": category})

    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, NEWS_ORDER, page, limit)
    except DatabaseError as e:
        raise server_error("fetch posts", e)

    if IS_DEV:
        print(f"[POSTS] category={category!r} total={total} returned={len(rows)}")
    return paginated_response([normalize_post(row) for row in rows], page, limit, total)


@router.get("/featured")
def list_featured_posts(limit: Optional[int] = FEATURED_DEFAULT_LIMIT) -> Dict[str, Any]:
    _, limit = parse_pagination(1, limit, default_limit=FEATURED_DEFAULT_LIMIT)
    query = public_news_query({"featured": "true"})
    sql, params = query.page_sql(NEWS_ORDER, 1, limit)

    try:
        with get_db_connection() as conn:
            rows = fetch_all(conn, sql, params)
    except DatabaseError as e:
        raise server_error("fetch featured posts", e)

    return {"success": True, "data": [normalize_post(row) for row in rows]}


@router.get("/{slug}")
def get_post(slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    """Published post by slug, with its content. Each read bumps view_count."""
    try:
        with get_db_connection() as conn:
            post = fetch_one(
                conn,
                f"{NEWS_DETAIL_SQL} WHERE n.slug = :slug AND n.published_at IS NOT NULL",
                {"slug": slug},
            )
            if not post:
                raise HTTPException(status_code=404, detail="Post not found")
            execute_query(
                conn,
                "UPDATE news SET view_count = COALESCE(view_count, 0) + 1 WHERE id = :id",
                {"id": post["id"]},
            )
            commit(conn)
    except DatabaseError as e:
        raise server_error("fetch post", e)

    post = normalize_post(post)
    post["view_count"] += 1
    return {"success": True, "data": post}
