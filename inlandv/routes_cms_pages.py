"""
inlandv/routes_cms_pages.py

CMS management of pages and their sections.

Hero, story and team sections can be edited as structured `data`; the
server regenerates the stored `content` (HTML or JSON) from it and parses
stored content back into `data` on read. Sections are never deleted through
the API, only unpublished.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import ValidationError

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from inlandv.config import IS_DEV
    from inlandv.db import (
        DatabaseError,
        commit,
        decode_row,
        fetch_all,
        fetch_value,
        get_db_connection,
        rollback,
    )
    from inlandv.errors import field_errors, server_error
    from inlandv.filters import page_query
    from inlandv.models import PAGE_BOOL_COLUMNS
    from inlandv.query_builder import cms_list_response, run_paginated
    from inlandv.routes_pages import section_images
    from inlandv.schemas_cms import (
        SECTION_DATA_MODELS,
        PageCreate,
        PageUpdate,
        SectionCreate,
        SectionOrderRequest,
        SectionUpdate,
    )
    from inlandv.sections import detect_format, is_structured, parse_section, render_section
    from inlandv.utils import generate_slug, is_truthy
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from config import IS_DEV
    from db import (
        DatabaseError,
        commit,
        decode_row,
        fetch_all,
        fetch_value,
        get_db_connection,
        rollback,
    )
    from errors import field_errors, server_error
    from filters import page_query
    from models import PAGE_BOOL_COLUMNS
    from query_builder import cms_list_response, run_paginated
    from routes_pages import section_images
    from schemas_cms import (
        SECTION_DATA_MODELS,
        PageCreate,
        PageUpdate,
        SectionCreate,
        SectionOrderRequest,
        SectionUpdate,
    )
    from sections import detect_format, is_structured, parse_section, render_section
    from utils import generate_slug, is_truthy


router = APIRouter(
    prefix="/api/cms",
    tags=["cms-pages"],
    dependencies=[Depends(require_auth_context)],
)


def present_section(section: Dict[str, Any], with_data: bool = False) -> Dict[str, Any]:
    decode_row(section, (), PAGE_BOOL_COLUMNS)
    section["images"] = section_images(section.get("images"))
    if with_data and is_structured(section.get("section_type")):
        section["format"] = detect_format(section.get("content"))
        section["data"] = parse_section(section["section_type"], section.get("content"))
    return section


def _section_values(
    values: Dict[str, Any],
    section_type: Optional[str],
    current_content: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Turn request fields into columns: structured data becomes content, images
    JSON text. Without an explicit format, an update keeps the format of the
    stored content; a new section is written as HTML.
    """
    data = values.pop("data", None)
    fmt = values.pop("format", None)
    if data is not None:
        if not is_structured(section_type):
            raise HTTPException(
                status_code=400,
                detail=f"Structured data is not supported for section type '{section_type}'",
            )
        try:
            data = SECTION_DATA_MODELS[section_type](**data).dict()
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=field_errors(e.errors(), prefix="data"))
        if not fmt:
            fmt = detect_format(current_content) if current_content is not None else "html"
        values["content"] = render_section(section_type, data, fmt)
    if "images" in values:
        values["images"] = values["images"] if values["images"] is not None else []
    return values


def _load_page(conn, page_id: str) -> Dict[str, Any]:
    page = get_or_404(conn, "pages", page_id, "Page not found")
    return decode_row(page, (), PAGE_BOOL_COLUMNS)


# ========================================================================
# PAGES
# ========================================================================

@router.get("/pages")
def list_pages(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    published: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = page_query({"published": published, "q": q})
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "title ASC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch pages", e)
    return cms_list_response([decode_row(r, (), PAGE_BOOL_COLUMNS) for r in rows], page, page_size, total)


@router.get("/pages/{page_id}")
def get_page(page_id: str = Path(...)) -> Dict[str, Any]:
    """Page with all of its sections (published or not) in display order."""
    try:
        with get_db_connection() as conn:
            page = _load_page(conn, page_id)
            sections = fetch_all(
                conn,
                "SELECT * FROM page_sections WHERE page_id = :page_id ORDER BY display_order ASC, created_at ASC",
                {"page_id": page_id},
            )
    except DatabaseError as e:
        raise server_error("fetch page", e)
    page["sections"] = [present_section(s) for s in sections]
    return page


@router.post("/pages", status_code=201)
def create_page(req: PageCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    values["slug"] = generate_slug(req.slug) or req.slug
    try:
        with get_db_connection() as conn:
            ensure_unique(conn, "pages", "slug", values["slug"], "Slug already exists")
            page_id = insert_row(conn, "pages", values)
            log_activity(conn, ctx, "create", "page", page_id, req.title)
            commit(conn)
            page = _load_page(conn, page_id)
    except DatabaseError as e:
        raise server_error("create page", e)
    return page


@router.put("/pages/{page_id}")
def update_page(
    req: PageUpdate,
    page_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = _load_page(conn, page_id)
            if values.get("slug"):
                values["slug"] = generate_slug(values["slug"]) or values["slug"]
                ensure_unique(conn, "pages", "slug", values["slug"], "Slug already exists", exclude_id=page_id)
            for required in ("slug", "title"):
                if required in values and not values[required]:
                    raise HTTPException(status_code=400, detail=f"{required} must not be empty")
            update_row(conn, "pages", page_id, values)
            log_activity(conn, ctx, "update", "page", page_id, values.get("title") or current["title"])
            commit(conn)
            page = _load_page(conn, page_id)
    except DatabaseError as e:
        raise server_error("update page", e)
    return page


@router.delete("/pages/{page_id}")
def delete_page(page_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Deletes the page; its sections go with it (ON DELETE CASCADE)."""
    try:
        with get_db_connection() as conn:
            current = _load_page(conn, page_id)
            delete_row(conn, "pages", page_id)
            log_activity(conn, ctx, "delete", "page", page_id, current["title"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete page", e)
    return {"message": "Page deleted successfully"}


# ========================================================================
# SECTIONS
# ========================================================================

@router.get("/pages/{page_id}/sections")
def list_page_sections(page_id: str = Path(...), published: Optional[str] = None) -> Dict[str, Any]:
    sql = "SELECT * FROM page_sections WHERE page_id = :page_id"
    params: Dict[str, Any] = {"page_id": page_id}
    if published not in (None, ""):
        sql += " AND published = :published"
        params["published"] = is_truthy(published)
    sql += " ORDER BY display_order ASC, created_at ASC"
    try:
        with get_db_connection() as conn:
            _load_page(conn, page_id)
            rows = fetch_all(conn, sql, params)
    except DatabaseError as e:
        raise server_error("fetch page sections", e)
    return {"data": [present_section(r) for r in rows]}


@router.put("/pages/{page_id}/sections/order")
def reorder_page_sections(
    req: SectionOrderRequest,
    page_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """Set display_order for several sections of one page in a single transaction."""
    try:
        with get_db_connection() as conn:
            _load_page(conn, page_id)
            ids = [item.id for item in req.sections]
            owned = fetch_all(
                conn,
                "SELECT id FROM page_sections WHERE page_id = :page_id",
                {"page_id": page_id},
            )
            unknown = set(ids) - {row["id"] for row in owned}
            if unknown:
                raise HTTPException(status_code=400, detail="Some sections do not belong to this page")
            try:
                for item in req.sections:
                    update_row(conn, "page_sections", item.id, {"display_order": item.display_order})
                log_activity(conn, ctx, "reorder", "page_section", page_id, None, f"Reordered {len(ids)} sections")
                commit(conn)
            except DatabaseError:
                rollback(conn)
                raise
    except DatabaseError as e:
        raise server_error("update sections order", e)
    return {"message": "Sections order updated successfully"}


@router.get("/page-sections/{section_id}")
def get_page_section(section_id: str = Path(...)) -> Dict[str, Any]:
    """Section row; hero/story/team sections also carry parsed `data` and detected `format`."""
    try:
        with get_db_connection() as conn:
            section = get_or_404(conn, "page_sections", section_id, "Page section not found")
    except DatabaseError as e:
        raise server_error("fetch page section", e)
    return present_section(section, with_data=True)


@router.post("/page-sections", status_code=201)
def create_page_section(req: SectionCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = _section_values(req.dict(exclude_unset=True), req.section_type)
    values.setdefault("display_order", 0)
    values.setdefault("published", True)
    values.setdefault("images", [])
    try:
        with get_db_connection() as conn:
            _load_page(conn, req.page_id)
            if fetch_value(
                conn,
                "SELECT COUNT(*) AS count FROM page_sections WHERE page_id = :page_id AND section_key = :key",
                {"page_id": req.page_id, "key": req.section_key},
            ):
                raise HTTPException(status_code=400, detail="Section key already exists for this page")
            section_id = insert_row(conn, "page_sections", values, json_columns=("images",))
            log_activity(conn, ctx, "create", "page_section", section_id, req.name)
            commit(conn)
            section = get_or_404(conn, "page_sections", section_id, "Page section not found")
    except DatabaseError as e:
        raise server_error("create page section", e)

    if IS_DEV:
        print(f"[CMS_PAGES] Created section {req.section_key} ({req.section_type}) on page {req.page_id}")
    return present_section(section, with_data=True)


@router.put("/page-sections/{section_id}")
def update_page_section(
    req: SectionUpdate,
    section_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    raw = req.dict(exclude_unset=True)
    if not raw:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "page_sections", section_id, "Page section not found")
            section_type = raw.get("section_type") or current["section_type"]
            values = _section_values(raw, section_type, current.get("content") or "")
            for required in ("section_key", "name", "section_type"):
                if required in values and not values[required]:
                    raise HTTPException(status_code=400, detail=f"{required} must not be empty")
            if values.get("section_key") and values["section_key"] != current["section_key"]:
                if fetch_value(
                    conn,
                    """
                    SELECT COUNT(*) AS count FROM page_sections
                    WHERE page_id = :page_id AND section_key = :key AND id <> :id
                    """,
                    {"page_id": current["page_id"], "key": values["section_key"], "id": section_id},
                ):
                    raise HTTPException(status_code=400, detail="Section key already exists for this page")
            update_row(conn, "page_sections", section_id, values, json_columns=("images",))
            log_activity(conn, ctx, "update", "page_section", section_id, values.get("name") or current["name"])
            commit(conn)
            section = get_or_404(conn, "page_sections", section_id, "Page section not found")
    except DatabaseError as e:
        raise server_error("update page section", e)
    return present_section(section, with_data=True)


@router.delete("/page-sections/{section_id}")
def delete_page_section(section_id: str = Path(...)) -> Dict[str, Any]:
    raise HTTPException(
        status_code=403,
        detail="Section deletion is not allowed",
    )
