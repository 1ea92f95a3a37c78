"""
inlandv/routes_menus.py

Public navigation menus, returned as a tree per menu location.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Path

try:
    from inlandv.db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.models import MENU_BOOL_COLUMNS
except ModuleNotFoundError:
    from db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from errors import server_error
    from models import MENU_BOOL_COLUMNS


router = APIRouter(
    prefix="/api/menus",
    tags=["menus"],
)


def build_menu_tree(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Nest flat menu items under their parents (input order is kept within each
    level). Items whose parent is not in the list are treated as roots.
    """
    nodes = {item["id"]: {**item, "children": []} for item in items}
    roots: List[Dict[str, Any]] = []
    for item in items:
        node = nodes[item["id"]]
        parent = nodes.get(item.get("parent_id")) if item.get("parent_id") else None
        if parent is not None and parent is not node:
            parent["children"].append(node)
        else:
            roots.append(node)
    return roots


@router.get("/{location_slug}")
def get_menu(location_slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            location = fetch_one(
                conn,
                "SELECT * FROM menu_locations WHERE slug = :slug AND is_active = :active",
                {"slug": location_slug, "active": True},
            )
            if not location:
                raise HTTPException(status_code=404, detail="Menu location not found")
            items = fetch_all(
                conn,
                """
                SELECT * FROM menu_items
                WHERE menu_location_id = :location_id AND is_active = :active
                ORDER BY sort_order ASC, created_at ASC
                """,
                {"location_id": location["id"], "active": True},
            )
    except DatabaseError as e:
        raise server_error("fetch menu", e)

    decode_row(location, (), MENU_BOOL_COLUMNS)
    for item in items:
        decode_row(item, (), MENU_BOOL_COLUMNS)
    return {"success": True, "data": {"location": location, "items": build_menu_tree(items)}}
