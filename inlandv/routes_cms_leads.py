"""
inlandv/routes_cms_leads.py

CMS view of leads captured by the public site.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, delete_row, get_or_404
    from inlandv.db import DatabaseError, commit, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import lead_query
    from inlandv.query_builder import cms_list_response, run_paginated
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, delete_row, get_or_404
    from db import DatabaseError, commit, get_db_connection
    from errors import server_error
    from filters import lead_query
    from query_builder import cms_list_response, run_paginated


router = APIRouter(
    prefix="/api/cms/leads",
    tags=["cms-leads"],
    dependencies=[Depends(require_auth_context)],
)


@router.get("")
def list_leads(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    source: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = lead_query({"source": source, "q": q})
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch leads", e)
    return cms_list_response(rows, page, page_size, total)


@router.get("/{lead_id}")
def get_lead(lead_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return get_or_404(conn, "leads", lead_id, "Lead not found")
    except DatabaseError as e:
        raise server_error("fetch lead", e)


@router.delete("/{lead_id}")
def delete_lead(lead_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            lead = get_or_404(conn, "leads", lead_id, "Lead not found")
            delete_row(conn, "leads", lead_id)
            log_activity(conn, ctx, "delete", "lead", lead_id, lead["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete lead", e)
    return {"message": "Lead deleted successfully"}
