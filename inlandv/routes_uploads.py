"""
inlandv/routes_uploads.py

Serves uploaded media. `/uploads/<asset-id>` resolves an asset row and serves
its original file; any other path is a file under UPLOADS_DIR.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

try:
    from inlandv.db import DatabaseError, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.media import content_type_for, is_asset_id, resolve_asset_file
except ModuleNotFoundError:
    from db import DatabaseError, fetch_one, get_db_connection
    from errors import server_error
    from media import content_type_for, is_asset_id, resolve_asset_file


router = APIRouter(tags=["uploads"])

ASSET_CACHE_CONTROL = "public, max-age=31536000"


def _asset_response(asset_id: str) -> FileResponse:
    try:
        with get_db_connection() as conn:
            asset = fetch_one(conn, "SELECT id, url, mime_type FROM assets WHERE id = :id", {"id": asset_id})
    except DatabaseError as e:
        raise server_error("fetch asset", e)

    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    path = resolve_asset_file(asset.get("url"))
    if path is None or not path.is_file():
        print(f"[UPLOADS] Asset {asset_id} points at a missing file: {asset.get('url')}")
        raise HTTPException(status_code=404, detail="File not found")

    media_type = content_type_for(path.name)
    if media_type == "application/octet-stream" and asset.get("mime_type"):
        media_type = asset["mime_type"]
    return FileResponse(path, media_type=media_type, headers={"Cache-Control": ASSET_CACHE_CONTROL})


@router.get("/uploads/{file_path:path}")
def serve_upload(file_path: str):
    if "/" not in file_path.strip("/") and is_asset_id(file_path.strip("/")):
        return _asset_response(file_path.strip("/"))

    path = resolve_asset_file(file_path)
    if path is None or not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path, media_type=content_type_for(path.name))
