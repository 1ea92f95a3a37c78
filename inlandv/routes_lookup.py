"""
inlandv/routes_lookup.py

Public lookup lists used by the site's filter widgets.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter

try:
    from inlandv.db import DatabaseError, fetch_all, get_db_connection
    from inlandv.lookup import DEFAULT_LABELS
except ModuleNotFoundError:
    from db import DatabaseError, fetch_all, get_db_connection
    from lookup import DEFAULT_LABELS


router = APIRouter(
    prefix="/api/lookup",
    tags=["lookup"],
)


def _entry(row: Dict[str, Any], with_order: bool = True) -> Dict[str, Any]:
    entry = {
        "code": row["code"],
        "label": row["name_vi"],
        "name_vi": row["name_vi"],
        "name_en": row.get("name_en"),
    }
    if with_order:
        entry["display_order"] = row.get("display_order") or 0
    return entry


def _defaults(table: str) -> List[Dict[str, Any]]:
    return [
        {"code": code, "label": name, "name_vi": name, "name_en": None, "display_order": order}
        for order, (code, name) in enumerate(DEFAULT_LABELS[table].items(), start=1)
    ]


def _active_entries(table: str) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            rows = fetch_all(
                conn,
                f"""
                SELECT code, name_vi, name_en, display_order
                FROM {table}
                WHERE is_active = :active
                ORDER BY display_order ASC, name_vi ASC
                """,
                {"active": True},
            )
    except DatabaseError as e:
        print(f"[LOOKUP] Failed to read {table}, serving defaults: {e}")
        return {"success": True, "data": _defaults(table)}
    return {"success": True, "data": [_entry(row) for row in rows]}


@router.get("/product-types")
def list_product_types() -> Dict[str, Any]:
    return _active_entries("product_types")


@router.get("/transaction-types")
def list_transaction_types() -> Dict[str, Any]:
    return _active_entries("transaction_types")


@router.get("/location-types")
def list_location_types() -> Dict[str, Any]:
    return _active_entries("location_types")


@router.get("/industries")
def list_industries() -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            rows = fetch_all(
                conn,
                "SELECT code, name_vi, name_en FROM industries WHERE is_active = :active ORDER BY name_vi ASC",
                {"active": True},
            )
    except DatabaseError as e:
        print(f"[LOOKUP] Failed to read industries: {e}")
        return {"success": True, "data": []}
    return {"success": True, "data": [_entry(row, with_order=False) for row in rows]}
