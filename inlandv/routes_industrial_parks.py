"""
inlandv/routes_industrial_parks.py

Public industrial-park (KCN) listing and detail endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Path

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import industrial_park_query
    from inlandv.media import normalize_path
    from inlandv.models import INFRASTRUCTURE_KEYS, IMAGE_BOOL_COLUMNS, PARK_BOOL_COLUMNS, PARK_JSON_COLUMNS
    from inlandv.query_builder import paginated_response, parse_pagination, run_paginated
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from errors import server_error
    from filters import industrial_park_query
    from media import normalize_path
    from models import INFRASTRUCTURE_KEYS, IMAGE_BOOL_COLUMNS, PARK_BOOL_COLUMNS, PARK_JSON_COLUMNS
    from query_builder import paginated_response, parse_pagination, run_paginated


router = APIRouter(
    prefix="/api/industrial-parks",
    tags=["industrial-parks"],
)


def default_infrastructure() -> Dict[str, bool]:
    return {key: False for key in INFRASTRUCTURE_KEYS}


def normalize_park(park: Dict[str, Any]) -> Dict[str, Any]:
    """Decode JSON columns and give allowed_industries / infrastructure their public shapes."""
    decode_row(park, PARK_JSON_COLUMNS, PARK_BOOL_COLUMNS)
    park["thumbnail_url"] = normalize_path(park.get("thumbnail_url")) or None
    park["video_url"] = normalize_path(park.get("video_url")) or None

    industries = park.get("allowed_industries")
    if isinstance(industries, list):
        park["allowed_industries"] = [str(i).strip() for i in industries if i is not None and str(i).strip()]
    else:
        park["allowed_industries"] = []

    infrastructure = park.get("infrastructure")
    park["infrastructure"] = infrastructure if isinstance(infrastructure, dict) else default_infrastructure()
    return park


def load_images(conn, table: str, owner_column: str, owner_id: str) -> List[Dict[str, Any]]:
    """Image rows for one owner, ordered for display, with normalised urls."""
    rows = fetch_all(
        conn,
        f"""
        SELECT id, url, caption, display_order, is_primary, created_at
        FROM {table}
        WHERE {owner_column} = :owner_id
        ORDER BY display_order ASC, created_at ASC
        """,
        {"owner_id": owner_id},
    )
    for row in rows:
        decode_row(row, (), IMAGE_BOOL_COLUMNS)
        row["url"] = normalize_path(row.get("url"))
    return rows


@router.get("")
def list_industrial_parks(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    scope: Optional[str] = None,
    has_rental: Optional[str] = None,
    has_transfer: Optional[str] = None,
    province: Optional[str] = None,
    rental_price_min: Optional[str] = None,
    rental_price_max: Optional[str] = None,
    transfer_price_min: Optional[str] = None,
    transfer_price_max: Optional[str] = None,
    available_area_min: Optional[str] = None,
    available_area_max: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paginated industrial parks, newest first.

    Boolean flags accept "true"/"1"; price and area bounds compare against the
    park's own min/max columns.
    """
    page, limit = parse_pagination(page, limit)
    query = industrial_park_query({
        "scope": scope,
        "has_rental": has_rental,
        "has_transfer": has_transfer,
        "province": province,
        "rental_price_min": rental_price_min,
        "rental_price_max": rental_price_max,
        "transfer_price_min": transfer_price_min,
        "transfer_price_max": transfer_price_max,
        "available_area_min": available_area_min,
        "available_area_max": available_area_max,
    })

    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, limit)
    except DatabaseError as e:
        raise server_error("fetch industrial parks", e)

    data = [normalize_park(row) for row in rows]
    if IS_DEV:
        print(f"[INDUSTRIAL_PARKS] filters={query.params} total={total} returned={len(data)}")
    return paginated_response(data, page, limit, total)


@router.get("/{slug}")
def get_industrial_park(slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            park = fetch_one(conn, "SELECT * FROM industrial_parks WHERE slug = :slug", {"slug": slug})
            if not park:
                raise HTTPException(status_code=404, detail="Industrial park not found")
            park["images"] = load_images(conn, "industrial_park_images", "industrial_park_id", park["id"])
    except DatabaseError as e:
        raise server_error("fetch industrial park", e)

    normalize_park(park)
    if IS_DEV:
        print(f"[INDUSTRIAL_PARKS] slug={slug} images={len(park['images'])} industries={len(park['allowed_industries'])}")
    return {"success": True, "data": park}
