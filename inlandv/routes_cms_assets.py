"""
inlandv/routes_cms_assets.py

CMS media library: uploads (stored on disk with WebP variants), asset
metadata and folders.

Security:
- All endpoints require an authenticated CMS user
- Files are written only under UPLOADS_DIR (see media.save_upload)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, delete_row, get_or_404, insert_row, update_row
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, commit, decode_row, fetch_all, fetch_value, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import asset_query
    from inlandv.media import UploadError, delete_asset_files, format_asset, save_upload
    from inlandv.models import ASSET_JSON_COLUMNS
    from inlandv.query_builder import cms_list_response, run_paginated
    from inlandv.schemas_cms import AssetUpdate, FolderCreate
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, delete_row, get_or_404, insert_row, update_row
    from config import IS_DEV
    from db import DatabaseError, commit, decode_row, fetch_all, fetch_value, get_db_connection
    from errors import server_error
    from filters import asset_query
    from media import UploadError, delete_asset_files, format_asset, save_upload
    from models import ASSET_JSON_COLUMNS
    from query_builder import cms_list_response, run_paginated
    from schemas_cms import AssetUpdate, FolderCreate


router = APIRouter(
    prefix="/api/cms/assets",
    tags=["cms-assets"],
    dependencies=[Depends(require_auth_context)],
)


def present_asset(row: Dict[str, Any]) -> Dict[str, Any]:
    return format_asset(decode_row(row, ASSET_JSON_COLUMNS))


def _ensure_folder(conn, folder_id: Optional[str]) -> None:
    if folder_id:
        get_or_404(conn, "asset_folders", folder_id, "Folder not found")


# ========================================================================
# FOLDERS (declared before /{asset_id})
# ========================================================================

@router.get("/folders")
def list_folders() -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            rows = fetch_all(
                conn,
                """
                SELECT f.*, (SELECT COUNT(*) FROM assets a WHERE a.folder_id = f.id) AS asset_count
                FROM asset_folders f
                ORDER BY f.name ASC
                """,
            )
    except DatabaseError as e:
        raise server_error("fetch folders", e)
    for row in rows:
        row["asset_count"] = int(row.get("asset_count") or 0)
    return {"data": rows}


@router.post("/folders", status_code=201)
def create_folder(req: FolderCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            if req.parent_id:
                get_or_404(conn, "asset_folders", req.parent_id, "Parent folder not found")
            folder_id = insert_row(conn, "asset_folders", {"name": req.name, "parent_id": req.parent_id or None})
            log_activity(conn, ctx, "create", "asset_folder", folder_id, req.name)
            commit(conn)
            folder = get_or_404(conn, "asset_folders", folder_id, "Folder not found")
    except DatabaseError as e:
        raise server_error("create folder", e)
    return folder


@router.delete("/folders/{folder_id}")
def delete_folder(folder_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Only empty folders (no assets, no subfolders) can be deleted."""
    try:
        with get_db_connection() as conn:
            folder = get_or_404(conn, "asset_folders", folder_id, "Folder not found")
            assets = fetch_value(conn, "SELECT COUNT(*) AS count FROM assets WHERE folder_id = :id", {"id": folder_id})
            children = fetch_value(
                conn, "SELECT COUNT(*) AS count FROM asset_folders WHERE parent_id = :id", {"id": folder_id}
            )
            if assets or children:
                raise HTTPException(status_code=400, detail="Folder is not empty")
            delete_row(conn, "asset_folders", folder_id)
            log_activity(conn, ctx, "delete", "asset_folder", folder_id, folder["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete folder", e)
    return {"message": "Folder deleted successfully"}


# ========================================================================
# ASSETS
# ========================================================================

@router.get("")
def list_assets(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    folder_id: Optional[str] = None,
    asset_type: Optional[str] = Query(None, alias="type"),
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = asset_query({"folder_id": folder_id, "type": asset_type, "q": q})
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch assets", e)
    return cms_list_response([present_asset(r) for r in rows], page, page_size, total)


@router.post("/upload", status_code=201)
def upload_asset(
    file: UploadFile = File(...),
    folder_id: Optional[str] = Form(None),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """
    Upload one image.

    Raises:
        HTTPException(400): Disallowed extension, empty or unreadable image, unknown folder
        HTTPException(413): File larger than MAX_UPLOAD_MB
    """
    data = file.file.read()
    try:
        with get_db_connection() as conn:
            _ensure_folder(conn, folder_id)
    except DatabaseError as e:
        raise server_error("upload asset", e)

    try:
        stored = save_upload(file.filename or "", data, file.content_type)
    except UploadError as e:
        print(f"[ASSETS] Upload rejected ({file.filename}): {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        with get_db_connection() as conn:
            stored["folder_id"] = folder_id or None
            stored["provider"] = "local"
            asset_id = insert_row(conn, "assets", stored, json_columns=ASSET_JSON_COLUMNS)
            log_activity(conn, ctx, "upload", "asset", asset_id, stored["original_name"])
            commit(conn)
            asset = get_or_404(conn, "assets", asset_id, "Asset not found")
    except DatabaseError as e:
        delete_asset_files(stored["url"])
        raise server_error("upload asset", e)

    if IS_DEV:
        print(f"[ASSETS] Uploaded asset_id={asset_id} url={stored['url']}")
    return present_asset(asset)


@router.get("/{asset_id}")
def get_asset(asset_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            asset = get_or_404(conn, "assets", asset_id, "Asset not found")
    except DatabaseError as e:
        raise server_error("fetch asset", e)
    return present_asset(asset)


@router.patch("/{asset_id}")
def update_asset(
    req: AssetUpdate,
    asset_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "assets", asset_id, "Asset not found")
            if "folder_id" in values:
                values["folder_id"] = values["folder_id"] or None
                _ensure_folder(conn, values["folder_id"])
            update_row(conn, "assets", asset_id, values)
            log_activity(conn, ctx, "update", "asset", asset_id, current.get("original_name"))
            commit(conn)
            asset = get_or_404(conn, "assets", asset_id, "Asset not found")
    except DatabaseError as e:
        raise server_error("update asset", e)
    return present_asset(asset)


@router.delete("/{asset_id}")
def delete_asset(asset_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Remove the asset row, then its files on disk."""
    try:
        with get_db_connection() as conn:
            asset = get_or_404(conn, "assets", asset_id, "Asset not found")
            delete_row(conn, "assets", asset_id)
            log_activity(conn, ctx, "delete", "asset", asset_id, asset.get("original_name"))
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete asset", e)

    removed = delete_asset_files(asset.get("url"))
    if IS_DEV:
        print(f"[ASSETS] Deleted asset_id={asset_id} files_removed={removed}")
    return {"message": "Asset deleted successfully"}
