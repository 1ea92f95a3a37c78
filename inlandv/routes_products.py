"""
inlandv/routes_products.py

Public product endpoints. Products store their codes as JSON arrays; every
row returned here carries the Vietnamese labels from the lookup cache.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Path, Query

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, decode_row, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import product_query
    from inlandv.lookup import enrich_product, enrich_products
    from inlandv.media import normalize_path
    from inlandv.models import PRODUCT_BOOL_COLUMNS, PRODUCT_JSON_COLUMNS
    from inlandv.query_builder import paginated_response, parse_pagination, run_paginated
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, decode_row, fetch_one, get_db_connection
    from errors import server_error
    from filters import product_query
    from lookup import enrich_product, enrich_products
    from media import normalize_path
    from models import PRODUCT_BOOL_COLUMNS, PRODUCT_JSON_COLUMNS
    from query_builder import paginated_response, parse_pagination, run_paginated


router = APIRouter(
    prefix="/api/products",
    tags=["products"],
)


def decode_product(product: Dict[str, Any]) -> Dict[str, Any]:
    decode_row(product, PRODUCT_JSON_COLUMNS, PRODUCT_BOOL_COLUMNS)
    for column in ("product_types", "transaction_types", "location_types", "allowed_industries", "images", "documents"):
        if not isinstance(product.get(column), list):
            product[column] = []
    product["thumbnail_url"] = normalize_path(product.get("thumbnail_url")) or None
    product["video_url"] = normalize_path(product.get("video_url")) or None
    return product


@router.get("")
def list_products(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    location_types: Optional[List[str]] = Query(None),
    product_types: Optional[List[str]] = Query(None),
    transaction_types: Optional[List[str]] = Query(None),
    has_rental: Optional[str] = None,
    has_transfer: Optional[str] = None,
    has_factory: Optional[str] = None,
    province: Optional[str] = None,
    district: Optional[str] = None,
    rental_price_min: Optional[str] = None,
    rental_price_max: Optional[str] = None,
    transfer_price_min: Optional[str] = None,
    transfer_price_max: Optional[str] = None,
    available_area_min: Optional[str] = None,
    available_area_max: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paginated products, newest first.

    Array filters (location_types, product_types, transaction_types) match a
    product when any requested code is present in its array.
    """
    page, limit = parse_pagination(page, limit)
    query = product_query({
        "location_types": location_types,
        "product_types": product_types,
        "transaction_types": transaction_types,
        "has_rental": has_rental,
        "has_transfer": has_transfer,
        "has_factory": has_factory,
        "province": province,
        "district": district,
        "rental_price_min": rental_price_min,
        "rental_price_max": rental_price_max,
        "transfer_price_min": transfer_price_min,
        "transfer_price_max": transfer_price_max,
        "available_area_min": available_area_min,
        "available_area_max": available_area_max,
        "q": q,
    })

    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, limit)
    except DatabaseError as e:
        raise server_error("fetch products", e)

    data = enrich_products([decode_product(row) for row in rows])
    if IS_DEV:
        print(f"[PRODUCTS] filters={query.params} total={total} returned={len(data)}")
    return paginated_response(data, page, limit, total)


@router.get("/{slug}")
def get_product(slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            product = fetch_one(conn, "SELECT * FROM products WHERE slug = :slug", {"slug": slug})
    except DatabaseError as e:
        raise server_error("fetch product", e)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "data": enrich_product(decode_product(product))}
