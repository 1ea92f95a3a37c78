"""
inlandv/routes_cms_settings.py

CMS settings upsert and the activity log listing.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, insert_row, update_row
    from inlandv.db import DatabaseError, commit, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import activity_query
    from inlandv.query_builder import cms_list_response, run_paginated
    from inlandv.routes_settings import decode_setting
    from inlandv.schemas_cms import SettingUpsert
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, insert_row, update_row
    from db import DatabaseError, commit, fetch_one, get_db_connection
    from errors import server_error
    from filters import activity_query
    from query_builder import cms_list_response, run_paginated
    from routes_settings import decode_setting
    from schemas_cms import SettingUpsert


router = APIRouter(
    prefix="/api/cms",
    tags=["cms-settings"],
    dependencies=[Depends(require_auth_context)],
)


@router.put("/settings/{namespace}")
def upsert_setting(
    req: SettingUpsert,
    namespace: str = Path(..., min_length=1, max_length=100),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """Create or replace the JSON object stored under a namespace."""
    try:
        with get_db_connection() as conn:
            existing = fetch_one(conn, "SELECT id FROM settings WHERE namespace = :namespace", {"namespace": namespace})
            if existing:
                update_row(conn, "settings", existing["id"], {"value": req.value}, json_columns=("value",))
                setting_id = existing["id"]
            else:
                setting_id = insert_row(
                    conn, "settings", {"namespace": namespace, "value": req.value}, json_columns=("value",)
                )
            log_activity(conn, ctx, "update", "setting", setting_id, namespace)
            commit(conn)
            setting = fetch_one(conn, "SELECT * FROM settings WHERE id = :id", {"id": setting_id})
    except DatabaseError as e:
        raise server_error("save setting", e)
    return decode_setting(setting)


@router.get("/activity-logs")
def list_activity_logs(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = activity_query({"entity_type": entity_type, "action": action, "user_id": user_id})
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch activity logs", e)
    return cms_list_response(rows, page, page_size, total)
