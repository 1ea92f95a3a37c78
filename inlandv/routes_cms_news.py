"""
inlandv/routes_cms_news.py

CMS management of news articles and news categories.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, commit, decode_row, fetch_all, fetch_one, fetch_value, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import CMS_NEWS_SQL, cms_news_query
    from inlandv.models import NEWS_BOOL_COLUMNS
    from inlandv.query_builder import cms_list_response, run_paginated
    from inlandv.schemas_cms import NewsCategoryCreate, NewsCategoryUpdate, NewsCreate, NewsUpdate
    from inlandv.utils import generate_slug
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from config import IS_DEV
    from db import DatabaseError, commit, decode_row, fetch_all, fetch_one, fetch_value, get_db_connection
    from errors import server_error
    from filters import CMS_NEWS_SQL, cms_news_query
    from models import NEWS_BOOL_COLUMNS
    from query_builder import cms_list_response, run_paginated
    from schemas_cms import NewsCategoryCreate, NewsCategoryUpdate, NewsCreate, NewsUpdate
    from utils import generate_slug


router = APIRouter(
    prefix="/api/cms",
    tags=["cms-news"],
    dependencies=[Depends(require_auth_context)],
)

# Unpublished drafts sort after published news
CMS_NEWS_ORDER = "(n.published_at IS NULL) ASC, n.published_at DESC, n.created_at DESC"


def _load_news(conn, news_id: str) -> Dict[str, Any]:
    news = fetch_one(conn, f"{CMS_NEWS_SQL} WHERE n.id = :id", {"id": news_id})
    if not news:
        raise HTTPException(status_code=404, detail="News not found")
    return decode_row(news, (), NEWS_BOOL_COLUMNS)


def _ensure_category(conn, category_id: str) -> None:
    if not fetch_value(conn, "SELECT COUNT(*) AS count FROM news_categories WHERE id = :id", {"id": category_id}):
        raise HTTPException(status_code=400, detail="Category not found")


# ========================================================================
# NEWS
# ========================================================================

@router.get("/news")
def list_news(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    category_id: Optional[str] = None,
    featured: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    """News with category name/slug; published first (newest first), then drafts."""
    page, page_size = cms_pagination(page, pageSize, limit)
    query = cms_news_query({"category_id": category_id, "featured": featured, "q": q})
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, CMS_NEWS_ORDER, page, page_size)
    except DatabaseError as e:
        raise server_error("fetch news", e)
    return cms_list_response([decode_row(r, (), NEWS_BOOL_COLUMNS) for r in rows], page, page_size, total)


@router.get("/news/{news_id}")
def get_news(news_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return _load_news(conn, news_id)
    except DatabaseError as e:
        raise server_error("fetch news", e)


@router.post("/news", status_code=201)
def create_news(req: NewsCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """
    Create a news article.

    The slug is generated from the title when not given and must be unique.

    Raises:
        HTTPException(400): Unknown category or duplicate slug
    """
    values = req.dict()
    values["slug"] = req.slug or generate_slug(req.title)
    if not values["slug"]:
        raise HTTPException(status_code=400, detail="Slug could not be generated from title")

    try:
        with get_db_connection() as conn:
            _ensure_category(conn, req.category_id)
            ensure_unique(conn, "news", "slug", values["slug"], "Slug already exists")
            values["view_count"] = 0
            news_id = insert_row(conn, "news", values)
            log_activity(conn, ctx, "create", "news", news_id, req.title)
            commit(conn)
            news = _load_news(conn, news_id)
    except DatabaseError as e:
        raise server_error("create news", e)

    if IS_DEV:
        print(f"[CMS_NEWS] Created news_id={news_id} slug={values['slug']}")
    return news


@router.put("/news/{news_id}")
def update_news(
    req: NewsUpdate,
    news_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "news", news_id, "News not found")
            if "slug" in values and not values["slug"]:
                values["slug"] = generate_slug(values.get("title") or current["title"])
            if values.get("slug"):
                ensure_unique(conn, "news", "slug", values["slug"], "Slug already exists", exclude_id=news_id)
            if values.get("category_id"):
                _ensure_category(conn, values["category_id"])
            for required in ("title", "category_id", "content"):
                if required in values and values[required] is None:
                    raise HTTPException(status_code=400, detail=f"{required} must not be empty")
            update_row(conn, "news", news_id, values)
            log_activity(conn, ctx, "update", "news", news_id, values.get("title") or current["title"])
            commit(conn)
            news = _load_news(conn, news_id)
    except DatabaseError as e:
        raise server_error("update news", e)
    return news


@router.delete("/news/{news_id}")
def delete_news(news_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "news", news_id, "News not found")
            delete_row(conn, "news", news_id)
            log_activity(conn, ctx, "delete", "news", news_id, current["title"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete news", e)
    return {"message": "News deleted successfully"}


# ========================================================================
# NEWS CATEGORIES
# ========================================================================

@router.get("/news-categories")
def list_news_categories(q: Optional[str] = Query(None)) -> Dict[str, Any]:
    sql = """
        SELECT nc.*, (SELECT COUNT(*) FROM news n WHERE n.category_id = nc.id) AS news_count
        FROM news_categories nc
    """
    params: Dict[str, Any] = {}
    if q:
        sql += " WHERE LOWER(nc.name) LIKE LOWER(:q) OR LOWER(nc.slug) LIKE LOWER(:q)"
        params["q"] = f"%{q}%"
    sql += " ORDER BY nc.display_order ASC, nc.name ASC"
    try:
        with get_db_connection() as conn:
            rows = fetch_all(conn, sql, params)
    except DatabaseError as e:
        raise server_error("fetch news categories", e)
    for row in rows:
        row["news_count"] = int(row.get("news_count") or 0)
    return {"data": rows, "total": len(rows)}


@router.get("/news-categories/{category_id}")
def get_news_category(category_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return get_or_404(conn, "news_categories", category_id, "News category not found")
    except DatabaseError as e:
        raise server_error("fetch news category", e)


@router.post("/news-categories", status_code=201)
def create_news_category(req: NewsCategoryCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    values["slug"] = req.slug or generate_slug(req.name)
    try:
        with get_db_connection() as conn:
            ensure_unique(conn, "news_categories", "slug", values["slug"], "Slug already exists")
            category_id = insert_row(conn, "news_categories", values)
            log_activity(conn, ctx, "create", "news_category", category_id, req.name)
            commit(conn)
            category = get_or_404(conn, "news_categories", category_id, "News category not found")
    except DatabaseError as e:
        raise server_error("create news category", e)
    return category


@router.put("/news-categories/{category_id}")
def update_news_category(
    req: NewsCategoryUpdate,
    category_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "news_categories", category_id, "News category not found")
            if "slug" in values and not values["slug"]:
                values["slug"] = generate_slug(values.get("name") or current["name"])
            if values.get("slug"):
                ensure_unique(
                    conn, "news_categories", "slug", values["slug"], "Slug already exists", exclude_id=category_id
                )
            if "name" in values and values["name"] is None:
                raise HTTPException(status_code=400, detail="Name is required")
            update_row(conn, "news_categories", category_id, values)
            log_activity(conn, ctx, "update", "news_category", category_id, values.get("name") or current["name"])
            commit(conn)
            category = get_or_404(conn, "news_categories", category_id, "News category not found")
    except DatabaseError as e:
        raise server_error("update news category", e)
    return category


@router.delete("/news-categories/{category_id}")
def delete_news_category(category_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Categories still referenced by news cannot be deleted (400)."""
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "news_categories", category_id, "News category not found")
            in_use = fetch_value(conn, "SELECT COUNT(*) AS count FROM news WHERE category_id = :id", {"id": category_id})
            if in_use:
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot delete category: {int(in_use)} news article(s) still use it",
                )
            delete_row(conn, "news_categories", category_id)
            log_activity(conn, ctx, "delete", "news_category", category_id, current["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete news category", e)
    return {"message": "News category deleted successfully"}
