"""
inlandv/filters.py

Query-string filters -> FilterQuery conditions, one builder per listing.

Builders take a plain mapping of already-parsed query parameters (routes
pass their Query(...) values through) and never touch the database, so
they are tested by inspecting the generated SQL and parameters.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from inlandv.db import ilike, json_array_contains_any
from inlandv.query_builder import FilterQuery
from inlandv.utils import as_list, clean_str, is_truthy, to_number

PRICE_MIN_DEFAULT = 0
PRICE_MAX_DEFAULT = 999999999999

# Location-type codes for properties: structural condition on the row,
# OR-ed with an explicit tag in property_location_types.
PROPERTY_LOCATION_CONDITIONS: Dict[str, str] = {
    "trong-kcn": "p.industrial_park_id IS NOT NULL OR p.sub_category = 'trong-kcn'",
    "ngoai-kcn": "p.sub_category = 'ngoai-kcn' OR (p.main_category = 'kcn' AND p.industrial_park_id IS NULL)",
    "trong-ccn": "p.industrial_cluster_id IS NOT NULL",
    "ngoai-ccn": "p.main_category = 'kcn' AND p.industrial_cluster_id IS NULL",
    "ngoai-kcn-ccn": (
        "p.main_category = 'bds' OR "
        "(p.main_category = 'kcn' AND p.industrial_park_id IS NULL AND p.industrial_cluster_id IS NULL)"
    ),
}

TRANSACTION_FLAG_COLUMNS = {
    "cho-thue": "has_rental",
    "chuyen-nhuong": "has_transfer",
}

TRANSACTION_PRICE_COLUMNS = {
    "cho-thue": "rental_price",
    "chuyen-nhuong": "sale_price",
}


def _given(params: Mapping[str, Any], key: str) -> bool:
    value = params.get(key)
    return value is not None and value != ""


def _contains(q: FilterQuery, column: str, value: Any) -> None:
    ph = q.bind(f"%{value}%")
    q.where(ilike(column, ph))


def _search(q: FilterQuery, columns: List[str], text: Any) -> None:
    """One placeholder matched against several columns (NULLs treated as '')."""
    ph = q.bind(f"%{text}%")
    q.where_any([ilike(f"COALESCE({col}, '')", ph) for col in columns])


def _flag(q: FilterQuery, params: Mapping[str, Any], key: str, column: Optional[str] = None) -> None:
    if _given(params, key):
        q.where(f"{column or key} = {{}}", is_truthy(params[key]))


def _numeric(q: FilterQuery, params: Mapping[str, Any], key: str, column: str, op: str) -> None:
    value = to_number(params.get(key))
    if value is not None:
        q.where(f"{column} {op} {{}}", value)


def _range_overlap(
    q: FilterQuery,
    min_col: str,
    max_col: str,
    low: Optional[float],
    high: Optional[float],
    single_col: Optional[str] = None,
) -> None:
    """
    Match rows whose [min_col, max_col] range (either end may be open) overlaps
    [low, high], or whose single_col price falls inside it.
    """
    lo = q.bind(PRICE_MIN_DEFAULT if low is None else low)
    hi = q.bind(PRICE_MAX_DEFAULT if high is None else high)
    options = []
    if single_col:
        options.append(f"{single_col} IS NOT NULL AND {single_col} >= {lo} AND {single_col} <= {hi}")
    options.extend([
        f"{min_col} IS NOT NULL AND {max_col} IS NOT NULL AND {min_col} <= {hi} AND {max_col} >= {lo}",
        f"{min_col} IS NOT NULL AND {max_col} IS NULL AND {min_col} <= {hi}",
        f"{min_col} IS NULL AND {max_col} IS NOT NULL AND {max_col} >= {lo}",
    ])
    q.where_any(options)


# ---------------------------------------------------------
# Industrial parks
# ---------------------------------------------------------
def industrial_park_query(params: Mapping[str, Any], base_sql: str = "SELECT * FROM industrial_parks") -> FilterQuery:
    q = FilterQuery(base_sql)

    if _given(params, "scope"):
        q.where("scope = {}", params["scope"])
    _flag(q, params, "has_rental")
    _flag(q, params, "has_transfer")
    if _given(params, "province"):
        _contains(q, "province", params["province"])

    _numeric(q, params, "rental_price_min", "rental_price_min", ">=")
    _numeric(q, params, "rental_price_max", "rental_price_max", "<=")
    _numeric(q, params, "transfer_price_min", "transfer_price_min", ">=")
    _numeric(q, params, "transfer_price_max", "transfer_price_max", "<=")
    _numeric(q, params, "available_area_min", "available_area", ">=")
    _numeric(q, params, "available_area_max", "available_area", "<=")

    if _given(params, "q"):
        _search(q, ["name", "code", "province", "address", "description"], params["q"])
    return q


# ---------------------------------------------------------
# Properties
# ---------------------------------------------------------
def property_location_condition(q: FilterQuery, code: str) -> Optional[str]:
    """Rendered condition for one location-type code, or None for unknown codes."""
    structural = PROPERTY_LOCATION_CONDITIONS.get(code)
    if structural is None:
        return None
    ph = q.bind(code)
    tagged = (
        "EXISTS (SELECT 1 FROM property_location_types plt "
        f"WHERE plt.property_id = p.id AND plt.location_type = {ph})"
    )
    return f"({structural}) OR {tagged}"


def property_query(params: Mapping[str, Any], base_sql: str = "SELECT p.* FROM properties p") -> FilterQuery:
    q = FilterQuery(base_sql)

    if _given(params, "main_category"):
        q.where("p.main_category = {}", params["main_category"])
    if _given(params, "sub_category"):
        q.where("p.sub_category = {}", params["sub_category"])
    if _given(params, "property_type"):
        q.where("p.type = {}", params["property_type"])
    if _given(params, "status"):
        q.where("p.status = {}", params["status"])

    location_types = as_list(params.get("location_types"))
    if location_types:
        conditions = [c for c in (property_location_condition(q, code) for code in location_types) if c]
        q.where_any(conditions)

    transaction_type = clean_str(params.get("transaction_type"))
    flag_column = TRANSACTION_FLAG_COLUMNS.get(transaction_type or "")
    if flag_column:
        q.where(f"p.{flag_column} = {{}}", True)

    if _given(params, "province"):
        _contains(q, "p.province", params["province"])

    low = to_number(params.get("price_min"))
    high = to_number(params.get("price_max"))
    price_column = TRANSACTION_PRICE_COLUMNS.get(transaction_type or "")
    if price_column and (low is not None or high is not None):
        _range_overlap(
            q,
            f"p.{price_column}_min",
            f"p.{price_column}_max",
            low,
            high,
            single_col=f"p.{price_column}",
        )

    _numeric(q, params, "area_min", "p.area", ">=")
    _numeric(q, params, "area_max", "p.area", "<=")

    if _given(params, "q"):
        _search(
            q,
            ["p.name", "p.description", "p.description_full", "p.address", "p.province", "p.ward"],
            params["q"],
        )
    return q


# ---------------------------------------------------------
# Products
# ---------------------------------------------------------
def product_query(params: Mapping[str, Any], base_sql: str = "SELECT * FROM products") -> FilterQuery:
    q = FilterQuery(base_sql)

    for column in ("location_types", "product_types", "transaction_types"):
        codes = as_list(params.get(column))
        if codes:
            q.where(json_array_contains_any(column, q.bind_many(codes)))

    _flag(q, params, "has_rental")
    _flag(q, params, "has_transfer")
    _flag(q, params, "has_factory")

    if _given(params, "province"):
        _contains(q, "province", params["province"])
    if _given(params, "district"):
        _contains(q, "district", params["district"])

    for prefix in ("rental_price", "transfer_price"):
        low = to_number(params.get(f"{prefix}_min"))
        high = to_number(params.get(f"{prefix}_max"))
        if low is not None or high is not None:
            _range_overlap(q, f"{prefix}_min", f"{prefix}_max", low, high)

    _numeric(q, params, "available_area_min", "available_area", ">=")
    _numeric(q, params, "available_area_max", "available_area", "<=")

    if _given(params, "q"):
        _search(
            q,
            ["name", "description", "description_full", "address", "province", "district", "ward"],
            params["q"],
        )
    return q


# ---------------------------------------------------------
# News
# ---------------------------------------------------------
NEWS_LIST_SQL = """
    SELECT n.id, n.title, n.slug, n.excerpt, n.thumbnail AS thumbnail_url,
           n.featured, n.view_count, n.author, n.published_at, n.created_at, n.updated_at,
           COALESCE(nc.slug, 'tin-thi-truong') AS category,
           nc.name AS category_name
    FROM news n
    LEFT JOIN news_categories nc ON nc.id = n.category_id
"""


def public_news_query(params: Mapping[str, Any], base_sql: str = NEWS_LIST_SQL) -> FilterQuery:
    q = FilterQuery(base_sql)
    q.where("n.published_at IS NOT NULL")
    category = clean_str(params.get("category"))
    if category:
        q.where("(LOWER(nc.slug) = LOWER({}) OR LOWER(nc.name) = LOWER({}))", category, category)
    if _given(params, "featured"):
        q.where("n.featured = {}", is_truthy(params["featured"]))
    return q


CMS_NEWS_SQL = """
    SELECT n.*, nc.name AS category_name, nc.slug AS category_slug
    FROM news n
    LEFT JOIN news_categories nc ON nc.id = n.category_id
"""


def cms_news_query(params: Mapping[str, Any]) -> FilterQuery:
    q = FilterQuery(CMS_NEWS_SQL)
    if _given(params, "category_id"):
        q.where("n.category_id = {}", params["category_id"])
    if _given(params, "featured"):
        q.where("n.featured = {}", is_truthy(params["featured"]))
    if _given(params, "q"):
        _search(q, ["n.title", "n.slug", "n.excerpt", "n.content"], params["q"])
    return q


# ---------------------------------------------------------
# CMS listings
# ---------------------------------------------------------
def lead_query(params: Mapping[str, Any]) -> FilterQuery:
    q = FilterQuery("SELECT * FROM leads")
    if _given(params, "source"):
        q.where("source = {}", params["source"])
    if _given(params, "q"):
        _search(q, ["name", "phone", "email", "message"], params["q"])
    return q


def asset_query(params: Mapping[str, Any]) -> FilterQuery:
    q = FilterQuery("SELECT * FROM assets")
    if _given(params, "folder_id"):
        q.where("folder_id = {}", params["folder_id"])
    if _given(params, "type"):
        q.where("type = {}", params["type"])
    if _given(params, "q"):
        _search(q, ["filename", "original_name", "url", "alt_text"], params["q"])
    return q


def activity_query(params: Mapping[str, Any]) -> FilterQuery:
    q = FilterQuery("SELECT * FROM activity_logs")
    for key in ("entity_type", "action", "user_id"):
        if _given(params, key):
            q.where(f"{key} = {{}}", params[key])
    return q


def page_query(params: Mapping[str, Any]) -> FilterQuery:
    q = FilterQuery("SELECT * FROM pages")
    if _given(params, "published"):
        q.where("published = {}", is_truthy(params["published"]))
    if _given(params, "q"):
        _search(q, ["title", "slug"], params["q"])
    return q
