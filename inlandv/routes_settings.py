"""
inlandv/routes_settings.py

Public site settings, one JSON object per namespace.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Path

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, decode_json, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, decode_json, fetch_all, fetch_one, get_db_connection
    from errors import server_error


router = APIRouter(
    prefix="/api/settings",
    tags=["settings"],
)


def decode_setting(row: Dict[str, Any]) -> Dict[str, Any]:
    value = decode_json(row.get("value"))
    row["value"] = value if value is not None else {}
    return row


@router.get("")
def list_settings() -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            rows = fetch_all(conn, "SELECT * FROM settings ORDER BY namespace ASC")
    except DatabaseError as e:
        raise server_error("fetch settings", e)
    return {"success": True, "data": [decode_setting(row) for row in rows]}


@router.get("/{namespace}")
def get_setting(namespace: str = Path(..., min_length=1)) -> Dict[str, Any]:
    """A namespace that was never saved reads as an empty object rather than 404."""
    try:
        with get_db_connection() as conn:
            row = fetch_one(conn, "SELECT * FROM settings WHERE namespace = :namespace", {"namespace": namespace})
    except DatabaseError as e:
        raise server_error("fetch setting", e)

    if not row:
        if IS_DEV:
            print(f"[SETTINGS] No setting for namespace {namespace}, returning empty value")
        return {"success": True, "data": {"namespace": namespace, "value": {}}}
    return {"success": True, "data": decode_setting(row)}
