"""
inlandv/routes_cms_menus.py

CMS management of menu locations (header, footer, ...) and their items.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import delete_row, ensure_unique, get_or_404, insert_row, update_row
    from inlandv.db import DatabaseError, commit, decode_row, execute_query, fetch_all, get_db_connection, rollback
    from inlandv.errors import server_error
    from inlandv.models import MENU_BOOL_COLUMNS
    from inlandv.schemas_cms import (
        MenuItemCreate,
        MenuItemUpdate,
        MenuLocationCreate,
        MenuLocationUpdate,
        MenuOrderRequest,
    )
    from inlandv.utils import generate_slug
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import delete_row, ensure_unique, get_or_404, insert_row, update_row
    from db import DatabaseError, commit, decode_row, execute_query, fetch_all, get_db_connection, rollback
    from errors import server_error
    from models import MENU_BOOL_COLUMNS
    from schemas_cms import (
        MenuItemCreate,
        MenuItemUpdate,
        MenuLocationCreate,
        MenuLocationUpdate,
        MenuOrderRequest,
    )
    from utils import generate_slug


router = APIRouter(
    prefix="/api/cms",
    tags=["cms-menus"],
    dependencies=[Depends(require_auth_context)],
)


def _menu_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return decode_row(row, (), MENU_BOOL_COLUMNS)


def _location_parents(conn, location_id: str) -> Dict[str, Optional[str]]:
    """item id -> parent id for every item of a menu location."""
    rows = fetch_all(
        conn,
        "SELECT id, parent_id FROM menu_items WHERE menu_location_id = :location_id",
        {"location_id": location_id},
    )
    return {row["id"]: row["parent_id"] or None for row in rows}


def _check_parent(parents: Dict[str, Optional[str]], parent_id: Optional[str], item_id: Optional[str] = None) -> None:
    """
    parent_id must be an item of the same location (a key of `parents`), and
    (for an existing item) neither the item itself nor one of its descendants.
    """
    if not parent_id:
        return
    if item_id is not None and parent_id == item_id:
        raise HTTPException(status_code=400, detail="Menu item cannot be its own parent")
    if parent_id not in parents:
        raise HTTPException(status_code=400, detail="Parent menu item not found in this menu location")
    if item_id is None:
        return
    seen = set()
    ancestor_id = parent_id
    while ancestor_id and ancestor_id not in seen:
        if ancestor_id == item_id:
            raise HTTPException(status_code=400, detail="Menu item cannot be moved under its own child")
        seen.add(ancestor_id)
        ancestor_id = parents.get(ancestor_id)


# ========================================================================
# MENU LOCATIONS
# ========================================================================

@router.get("/menu-locations")
def list_menu_locations() -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            rows = fetch_all(
                conn,
                """
                SELECT ml.*, (SELECT COUNT(*) FROM menu_items mi WHERE mi.menu_location_id = ml.id) AS item_count
                FROM menu_locations ml
                ORDER BY ml.name ASC
                """,
            )
    except DatabaseError as e:
        raise server_error("fetch menu locations", e)
    return {"data": [_menu_row(r) for r in rows]}


@router.get("/menu-locations/{location_id}")
def get_menu_location(location_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            location = get_or_404(conn, "menu_locations", location_id, "Menu location not found")
    except DatabaseError as e:
        raise server_error("fetch menu location", e)
    return _menu_row(location)


@router.post("/menu-locations", status_code=201)
def create_menu_location(req: MenuLocationCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    values["slug"] = req.slug or generate_slug(req.name)
    try:
        with get_db_connection() as conn:
            ensure_unique(conn, "menu_locations", "slug", values["slug"], "Slug already exists")
            location_id = insert_row(conn, "menu_locations", values)
            log_activity(conn, ctx, "create", "menu_location", location_id, req.name)
            commit(conn)
            location = get_or_404(conn, "menu_locations", location_id, "Menu location not found")
    except DatabaseError as e:
        raise server_error("create menu location", e)
    return _menu_row(location)


@router.put("/menu-locations/{location_id}")
def update_menu_location(
    req: MenuLocationUpdate,
    location_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "menu_locations", location_id, "Menu location not found")
            if "slug" in values and not values["slug"]:
                values["slug"] = generate_slug(values.get("name") or current["name"])
            if values.get("slug"):
                ensure_unique(
                    conn, "menu_locations", "slug", values["slug"], "Slug already exists", exclude_id=location_id
                )
            update_row(conn, "menu_locations", location_id, values)
            log_activity(conn, ctx, "update", "menu_location", location_id, values.get("name") or current["name"])
            commit(conn)
            location = get_or_404(conn, "menu_locations", location_id, "Menu location not found")
    except DatabaseError as e:
        raise server_error("update menu location", e)
    return _menu_row(location)


@router.delete("/menu-locations/{location_id}")
def delete_menu_location(location_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Deletes the location and, through the foreign key, all of its items."""
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "menu_locations", location_id, "Menu location not found")
            delete_row(conn, "menu_locations", location_id)
            log_activity(conn, ctx, "delete", "menu_location", location_id, current["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete menu location", e)
    return {"message": "Menu location deleted successfully"}


# ========================================================================
# MENU ITEMS
# ========================================================================

@router.get("/menu-items")
def list_menu_items(location_id: Optional[str] = None) -> Dict[str, Any]:
    sql = "SELECT * FROM menu_items"
    params: Dict[str, Any] = {}
    if location_id:
        sql += " WHERE menu_location_id = :location_id"
        params["location_id"] = location_id
    sql += " ORDER BY sort_order ASC, created_at ASC"
    try:
        with get_db_connection() as conn:
            rows = fetch_all(conn, sql, params)
    except DatabaseError as e:
        raise server_error("fetch menu items", e)
    return {"data": [_menu_row(r) for r in rows]}


@router.post("/menu-items", status_code=201)
def create_menu_item(req: MenuItemCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    values["parent_id"] = values.get("parent_id") or None
    try:
        with get_db_connection() as conn:
            get_or_404(conn, "menu_locations", req.menu_location_id, "Menu location not found")
            _check_parent(_location_parents(conn, req.menu_location_id), values["parent_id"])
            item_id = insert_row(conn, "menu_items", values)
            log_activity(conn, ctx, "create", "menu_item", item_id, req.title)
            commit(conn)
            item = get_or_404(conn, "menu_items", item_id, "Menu item not found")
    except DatabaseError as e:
        raise server_error("create menu item", e)
    return _menu_row(item)


@router.put("/menu-items/order")
def reorder_menu_items(req: MenuOrderRequest, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """
    Bulk update of sort_order in one transaction. parent_id is changed only
    for items that send it, and the resulting tree is checked as a whole.
    """
    changes = [item.dict(exclude_unset=True) for item in req.items]
    try:
        with get_db_connection() as conn:
            location_ids = set()
            for change in changes:
                item = get_or_404(conn, "menu_items", change["id"], "Menu item not found")
                location_ids.add(item["menu_location_id"])
            if len(location_ids) > 1:
                raise HTTPException(status_code=400, detail="Menu items must belong to the same menu location")

            parents = _location_parents(conn, location_ids.pop())
            for change in changes:
                if "parent_id" in change:
                    change["parent_id"] = change["parent_id"] or None
                    parents[change["id"]] = change["parent_id"]
            for change in changes:
                if "parent_id" in change:
                    _check_parent(parents, change["parent_id"], change["id"])

            try:
                for change in changes:
                    values = {key: value for key, value in change.items() if key != "id"}
                    update_row(conn, "menu_items", change["id"], values)
                log_activity(conn, ctx, "reorder", "menu_item", None, None, f"Reordered {len(changes)} menu items")
                commit(conn)
            except DatabaseError:
                rollback(conn)
                raise
    except DatabaseError as e:
        raise server_error("reorder menu items", e)
    return {"message": "Menu items order updated successfully"}


@router.put("/menu-items/{item_id}")
def update_menu_item(
    req: MenuItemUpdate,
    item_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "menu_items", item_id, "Menu item not found")
            if "parent_id" in values:
                values["parent_id"] = values["parent_id"] or None
                _check_parent(_location_parents(conn, current["menu_location_id"]), values["parent_id"], item_id)
            if "title" in values and not values["title"]:
                raise HTTPException(status_code=400, detail="Title is required")
            update_row(conn, "menu_items", item_id, values)
            log_activity(conn, ctx, "update", "menu_item", item_id, values.get("title") or current["title"])
            commit(conn)
            item = get_or_404(conn, "menu_items", item_id, "Menu item not found")
    except DatabaseError as e:
        raise server_error("update menu item", e)
    return _menu_row(item)


@router.delete("/menu-items/{item_id}")
def delete_menu_item(item_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """Children of the deleted item move up to the deleted item's parent."""
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "menu_items", item_id, "Menu item not found")
            execute_query(
                conn,
                "UPDATE menu_items SET parent_id = :new_parent WHERE parent_id = :id",
                {"new_parent": current.get("parent_id"), "id": item_id},
            )
            delete_row(conn, "menu_items", item_id)
            log_activity(conn, ctx, "delete", "menu_item", item_id, current["title"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete menu item", e)
    return {"message": "Menu item deleted successfully"}
