"""
inlandv/routes_properties.py

Public property (BDS / in-park lot) listing, type summary and detail endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Path, Query

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import property_query
    from inlandv.media import normalize_path
    from inlandv.models import PROPERTY_BOOL_COLUMNS, PROPERTY_TYPE_LABELS
    from inlandv.query_builder import paginated_response, parse_pagination, run_paginated
    from inlandv.routes_industrial_parks import load_images
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from errors import server_error
    from filters import property_query
    from media import normalize_path
    from models import PROPERTY_BOOL_COLUMNS, PROPERTY_TYPE_LABELS
    from query_builder import paginated_response, parse_pagination, run_paginated
    from routes_industrial_parks import load_images


router = APIRouter(
    prefix="/api/properties",
    tags=["properties"],
)


def normalize_property(prop: Dict[str, Any]) -> Dict[str, Any]:
    decode_row(prop, (), PROPERTY_BOOL_COLUMNS)
    prop["thumbnail_url"] = normalize_path(prop.get("thumbnail_url")) or None
    prop["video_url"] = normalize_path(prop.get("video_url")) or None
    return prop


def load_location_tags(conn, property_id: str) -> List[str]:
    rows = fetch_all(
        conn,
        "SELECT location_type FROM property_location_types WHERE property_id = :id ORDER BY location_type",
        {"id": property_id},
    )
    return [r["location_type"] for r in rows]


@router.get("")
def list_properties(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    main_category: Optional[str] = None,
    sub_category: Optional[str] = None,
    property_type: Optional[str] = None,
    status: Optional[str] = None,
    location_types: Optional[List[str]] = Query(None),
    transaction_type: Optional[str] = None,
    province: Optional[str] = None,
    price_min: Optional[str] = None,
    price_max: Optional[str] = None,
    area_min: Optional[str] = None,
    area_max: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paginated properties, newest first.

    location_types may be repeated or comma separated; a property matches if
    any requested location type applies to it. Price bounds are only applied
    together with transaction_type (cho-thue -> rental prices,
    chuyen-nhuong -> sale prices).
    """
    page, limit = parse_pagination(page, limit)
    query = property_query({
        "main_category": main_category,
        "sub_category": sub_category,
        "property_type": property_type,
        "status": status,
        "location_types": location_types,
        "transaction_type": transaction_type,
        "province": province,
        "price_min": price_min,
        "price_max": price_max,
        "area_min": area_min,
        "area_max": area_max,
        "q": q,
    })

    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "p.created_at DESC", page, limit)
    except DatabaseError as e:
        raise server_error("fetch properties", e)

    data = [normalize_property(row) for row in rows]
    if IS_DEV:
        print(f"[PROPERTIES] filters={query.params} total={total} returned={len(data)}")
    return paginated_response(data, page, limit, total)


@router.get("/types")
def list_property_types() -> Dict[str, Any]:
    """Every known property type with its label and listing count (0 when none)."""
    try:
        with get_db_connection() as conn:
            rows = fetch_all(
                conn,
                "SELECT type, COUNT(*) AS count FROM properties WHERE type IS NOT NULL GROUP BY type",
            )
    except DatabaseError as e:
        raise server_error("fetch property types", e)

    counts = {row["type"]: int(row["count"]) for row in rows}
    data = [
        {"value": value, "label": label, "count": counts.get(value, 0)}
        for value, label in PROPERTY_TYPE_LABELS.items()
    ]
    return {"success": True, "data": data}


@router.get("/{slug}")
def get_property(slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            prop = fetch_one(conn, "SELECT * FROM properties WHERE slug = :slug", {"slug": slug})
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            prop["images"] = load_images(conn, "property_images", "property_id", prop["id"])
            prop["location_types"] = load_location_tags(conn, prop["id"])
    except DatabaseError as e:
        raise server_error("fetch property", e)

    return {"success": True, "data": normalize_property(prop)}
