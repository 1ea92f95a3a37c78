"""
inlandv/routes_cms_catalog.py

CMS management of the listing catalog: industrial parks, properties,
products, their image galleries, and the lookup tables that label product
codes.

Every write to a lookup table invalidates the in-process lookup cache so
public product responses pick up new labels immediately.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

try:
    from inlandv.activity import log_activity
    from inlandv.auth_context import AuthContext, require_auth_context
    from inlandv.cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, commit, decode_row, execute_query, fetch_all, get_db_connection
    from inlandv.errors import server_error
    from inlandv.filters import industrial_park_query, product_query, property_query
    from inlandv.lookup import lookup_cache
    from inlandv.models import LOOKUP_BOOL_COLUMNS, LOOKUP_TABLES, PARK_JSON_COLUMNS, PRODUCT_JSON_COLUMNS
    from inlandv.query_builder import cms_list_response, run_paginated
    from inlandv.routes_industrial_parks import load_images, normalize_park
    from inlandv.routes_products import decode_product
    from inlandv.routes_properties import load_location_tags, normalize_property
    from inlandv.schemas_cms import (
        ImagesReplace,
        IndustrialParkCreate,
        IndustrialParkFields,
        LookupEntryCreate,
        LookupEntryUpdate,
        ProductCreate,
        ProductFields,
        PropertyCreate,
        PropertyFields,
    )
    from inlandv.utils import generate_slug, new_id, now_iso
except ModuleNotFoundError:
    from activity import log_activity
    from auth_context import AuthContext, require_auth_context
    from cms_common import cms_pagination, delete_row, ensure_unique, get_or_404, insert_row, update_row
    from config import IS_DEV
    from db import DatabaseError, commit, decode_row, execute_query, fetch_all, get_db_connection
    from errors import server_error
    from filters import industrial_park_query, product_query, property_query
    from lookup import lookup_cache
    from models import LOOKUP_BOOL_COLUMNS, LOOKUP_TABLES, PARK_JSON_COLUMNS, PRODUCT_JSON_COLUMNS
    from query_builder import cms_list_response, run_paginated
    from routes_industrial_parks import load_images, normalize_park
    from routes_products import decode_product
    from routes_properties import load_location_tags, normalize_property
    from schemas_cms import (
        ImagesReplace,
        IndustrialParkCreate,
        IndustrialParkFields,
        LookupEntryCreate,
        LookupEntryUpdate,
        ProductCreate,
        ProductFields,
        PropertyCreate,
        PropertyFields,
    )
    from utils import generate_slug, new_id, now_iso


router = APIRouter(
    prefix="/api/cms",
    tags=["cms-catalog"],
    dependencies=[Depends(require_auth_context)],
)

# Columns a partial update must not clear
REQUIRED_COLUMNS = {
    "industrial_parks": ("code", "name", "province", "scope"),
    "properties": ("code", "name", "province", "type", "main_category", "status"),
    "products": ("code", "name"),
}


def _prepare_identity(conn, table: str, values: Dict[str, Any], name: str, exclude_id: Optional[str] = None) -> None:
    """Fill a missing slug from the name and enforce unique code and slug."""
    if "slug" in values or exclude_id is None:
        values["slug"] = values.get("slug") or generate_slug(name)
        if not values["slug"]:
            raise HTTPException(status_code=400, detail="Slug could not be generated from name")
        ensure_unique(conn, table, "slug", values["slug"], "Slug already exists", exclude_id=exclude_id)
    if values.get("code"):
        ensure_unique(conn, table, "code", values["code"], "Code already exists", exclude_id=exclude_id)


def _reject_cleared(table: str, values: Dict[str, Any]) -> None:
    for column in REQUIRED_COLUMNS[table]:
        if column in values and values[column] in (None, ""):
            raise HTTPException(status_code=400, detail=f"{column} must not be empty")


def _replace_images(conn, table: str, owner_column: str, owner_id: str, images: Iterable[Any]) -> None:
    execute_query(conn, f"DELETE FROM {table} WHERE {owner_column} = :owner_id", {"owner_id": owner_id})
    now = now_iso()
    for index, image in enumerate(images):
        execute_query(
            conn,
            f"""
            INSERT INTO {table} (id, {owner_column}, url, caption, display_order, is_primary, created_at)
            VALUES (:id, :owner_id, :url, :caption, :display_order, :is_primary, :created_at)
            """,
            {
                "id": new_id(),
                "owner_id": owner_id,
                "url": image.url,
                "caption": image.caption,
                "display_order": image.display_order if image.display_order is not None else index,
                "is_primary": image.is_primary,
                "created_at": now,
            },
        )


def _ensure_park(conn, park_id: Optional[str]) -> None:
    if park_id:
        get_or_404(conn, "industrial_parks", park_id, "Industrial park not found")


def _set_location_tags(conn, property_id: str, location_types: List[str]) -> None:
    execute_query(conn, "DELETE FROM property_location_types WHERE property_id = :id", {"id": property_id})
    for code in dict.fromkeys(location_types):
        execute_query(
            conn,
            "INSERT INTO property_location_types (property_id, location_type) VALUES (:id, :code)",
            {"id": property_id, "code": code},
        )


# ========================================================================
# INDUSTRIAL PARKS
# ========================================================================

def _load_park(conn, park_id: str) -> Dict[str, Any]:
    park = get_or_404(conn, "industrial_parks", park_id, "Industrial park not found")
    park["images"] = load_images(conn, "industrial_park_images", "industrial_park_id", park_id)
    return normalize_park(park)


@router.get("/industrial-parks")
def list_industrial_parks(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    scope: Optional[str] = None,
    has_rental: Optional[str] = None,
    has_transfer: Optional[str] = None,
    province: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = industrial_park_query({
        "scope": scope,
        "has_rental": has_rental,
        "has_transfer": has_transfer,
        "province": province,
        "q": q,
    })
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch industrial parks", e)
    return cms_list_response([normalize_park(r) for r in rows], page, page_size, total)


@router.get("/industrial-parks/{park_id}")
def get_industrial_park(park_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return _load_park(conn, park_id)
    except DatabaseError as e:
        raise server_error("fetch industrial park", e)


@router.post("/industrial-parks", status_code=201)
def create_industrial_park(req: IndustrialParkCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """
    Create an industrial park.

    Raises:
        HTTPException(400): Duplicate code/slug, or invalid field values
    """
    values = req.dict()
    try:
        with get_db_connection() as conn:
            _prepare_identity(conn, "industrial_parks", values, req.name)
            park_id = insert_row(conn, "industrial_parks", values, json_columns=PARK_JSON_COLUMNS)
            log_activity(conn, ctx, "create", "industrial_park", park_id, req.name)
            commit(conn)
            park = _load_park(conn, park_id)
    except DatabaseError as e:
        raise server_error("create industrial park", e)

    if IS_DEV:
        print(f"[CMS_CATALOG] Created industrial park {park_id} code={req.code}")
    return park


@router.put("/industrial-parks/{park_id}")
def update_industrial_park(
    req: IndustrialParkFields,
    park_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    _reject_cleared("industrial_parks", values)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "industrial_parks", park_id, "Industrial park not found")
            _prepare_identity(conn, "industrial_parks", values, values.get("name") or current["name"], park_id)
            update_row(conn, "industrial_parks", park_id, values, json_columns=PARK_JSON_COLUMNS)
            log_activity(conn, ctx, "update", "industrial_park", park_id, values.get("name") or current["name"])
            commit(conn)
            park = _load_park(conn, park_id)
    except DatabaseError as e:
        raise server_error("update industrial park", e)
    return park


@router.delete("/industrial-parks/{park_id}")
def delete_industrial_park(park_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "industrial_parks", park_id, "Industrial park not found")
            execute_query(conn, "DELETE FROM industrial_park_images WHERE industrial_park_id = :id", {"id": park_id})
            delete_row(conn, "industrial_parks", park_id)
            log_activity(conn, ctx, "delete", "industrial_park", park_id, current["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete industrial park", e)
    return {"message": "Industrial park deleted successfully"}


@router.put("/industrial-parks/{park_id}/images")
def replace_industrial_park_images(
    req: ImagesReplace,
    park_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "industrial_parks", park_id, "Industrial park not found")
            _replace_images(conn, "industrial_park_images", "industrial_park_id", park_id, req.images)
            log_activity(conn, ctx, "update", "industrial_park", park_id, current["name"], "Replaced images")
            commit(conn)
            images = load_images(conn, "industrial_park_images", "industrial_park_id", park_id)
    except DatabaseError as e:
        raise server_error("update industrial park images", e)
    return {"data": images}


# ========================================================================
# PROPERTIES
# ========================================================================

def _load_property(conn, property_id: str) -> Dict[str, Any]:
    prop = get_or_404(conn, "properties", property_id, "Property not found")
    prop["images"] = load_images(conn, "property_images", "property_id", property_id)
    prop["location_types"] = load_location_tags(conn, property_id)
    return normalize_property(prop)


@router.get("/properties")
def list_properties(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    main_category: Optional[str] = None,
    sub_category: Optional[str] = None,
    property_type: Optional[str] = None,
    status: Optional[str] = None,
    location_types: Optional[List[str]] = Query(None),
    transaction_type: Optional[str] = None,
    province: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = property_query({
        "main_category": main_category,
        "sub_category": sub_category,
        "property_type": property_type,
        "status": status,
        "location_types": location_types,
        "transaction_type": transaction_type,
        "province": province,
        "q": q,
    })
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "p.created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch properties", e)
    return cms_list_response([normalize_property(r) for r in rows], page, page_size, total)


@router.get("/properties/{property_id}")
def get_property(property_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return _load_property(conn, property_id)
    except DatabaseError as e:
        raise server_error("fetch property", e)


@router.post("/properties", status_code=201)
def create_property(req: PropertyCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    location_types = values.pop("location_types", None) or []
    try:
        with get_db_connection() as conn:
            _prepare_identity(conn, "properties", values, req.name)
            _ensure_park(conn, values.get("industrial_park_id"))
            property_id = insert_row(conn, "properties", values)
            _set_location_tags(conn, property_id, location_types)
            log_activity(conn, ctx, "create", "property", property_id, req.name)
            commit(conn)
            prop = _load_property(conn, property_id)
    except DatabaseError as e:
        raise server_error("create property", e)

    if IS_DEV:
        print(f"[CMS_CATALOG] Created property {property_id} code={req.code} tags={location_types}")
    return prop


@router.put("/properties/{property_id}")
def update_property(
    req: PropertyFields,
    property_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    location_types = values.pop("location_types", None)
    _reject_cleared("properties", values)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "properties", property_id, "Property not found")
            _prepare_identity(conn, "properties", values, values.get("name") or current["name"], property_id)
            _ensure_park(conn, values.get("industrial_park_id"))
            update_row(conn, "properties", property_id, values)
            if location_types is not None:
                _set_location_tags(conn, property_id, location_types)
            log_activity(conn, ctx, "update", "property", property_id, values.get("name") or current["name"])
            commit(conn)
            prop = _load_property(conn, property_id)
    except DatabaseError as e:
        raise server_error("update property", e)
    return prop


@router.delete("/properties/{property_id}")
def delete_property(property_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "properties", property_id, "Property not found")
            execute_query(conn, "DELETE FROM property_images WHERE property_id = :id", {"id": property_id})
            execute_query(conn, "DELETE FROM property_location_types WHERE property_id = :id", {"id": property_id})
            delete_row(conn, "properties", property_id)
            log_activity(conn, ctx, "delete", "property", property_id, current["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete property", e)
    return {"message": "Property deleted successfully"}


@router.put("/properties/{property_id}/images")
def replace_property_images(
    req: ImagesReplace,
    property_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "properties", property_id, "Property not found")
            _replace_images(conn, "property_images", "property_id", property_id, req.images)
            log_activity(conn, ctx, "update", "property", property_id, current["name"], "Replaced images")
            commit(conn)
            images = load_images(conn, "property_images", "property_id", property_id)
    except DatabaseError as e:
        raise server_error("update property images", e)
    return {"data": images}


# ========================================================================
# PRODUCTS
# ========================================================================

def _load_product(conn, product_id: str) -> Dict[str, Any]:
    return decode_product(get_or_404(conn, "products", product_id, "Product not found"))


@router.get("/products")
def list_products(
    page: Optional[int] = None,
    pageSize: Optional[int] = None,
    limit: Optional[int] = None,
    location_types: Optional[List[str]] = Query(None),
    product_types: Optional[List[str]] = Query(None),
    transaction_types: Optional[List[str]] = Query(None),
    province: Optional[str] = None,
    q: Optional[str] = None,
) -> Dict[str, Any]:
    page, page_size = cms_pagination(page, pageSize, limit)
    query = product_query({
        "location_types": location_types,
        "product_types": product_types,
        "transaction_types": transaction_types,
        "province": province,
        "q": q,
    })
    try:
        with get_db_connection() as conn:
            rows, total = run_paginated(conn, query, "created_at DESC", page, page_size)
    except DatabaseError as e:
        raise server_error("fetch products", e)
    return cms_list_response([decode_product(r) for r in rows], page, page_size, total)


@router.get("/products/{product_id}")
def get_product(product_id: str = Path(...)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            return _load_product(conn, product_id)
    except DatabaseError as e:
        raise server_error("fetch product", e)


@router.post("/products", status_code=201)
def create_product(req: ProductCreate, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    values = req.dict()
    for column in ("allowed_industries", "product_types", "transaction_types", "location_types", "images", "documents"):
        if values.get(column) is None:
            values[column] = []
    try:
        with get_db_connection() as conn:
            _prepare_identity(conn, "products", values, req.name)
            product_id = insert_row(conn, "products", values, json_columns=PRODUCT_JSON_COLUMNS)
            log_activity(conn, ctx, "create", "product", product_id, req.name)
            commit(conn)
            product = _load_product(conn, product_id)
    except DatabaseError as e:
        raise server_error("create product", e)
    return product


@router.put("/products/{product_id}")
def update_product(
    req: ProductFields,
    product_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    values = req.dict(exclude_unset=True)
    _reject_cleared("products", values)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "products", product_id, "Product not found")
            _prepare_identity(conn, "products", values, values.get("name") or current["name"], product_id)
            update_row(conn, "products", product_id, values, json_columns=PRODUCT_JSON_COLUMNS)
            log_activity(conn, ctx, "update", "product", product_id, values.get("name") or current["name"])
            commit(conn)
            product = _load_product(conn, product_id)
    except DatabaseError as e:
        raise server_error("update product", e)
    return product


@router.delete("/products/{product_id}")
def delete_product(product_id: str = Path(...), ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, "products", product_id, "Product not found")
            delete_row(conn, "products", product_id)
            log_activity(conn, ctx, "delete", "product", product_id, current["name"])
            commit(conn)
    except DatabaseError as e:
        raise server_error("delete product", e)
    return {"message": "Product deleted successfully"}


# ========================================================================
# LOOKUP TABLES
# ========================================================================

def _lookup_table(kind: str) -> str:
    table = LOOKUP_TABLES.get(kind)
    if not table:
        raise HTTPException(status_code=404, detail=f"Unknown lookup table: {kind}")
    return table


def _lookup_values(table: str, values: Dict[str, Any]) -> Dict[str, Any]:
    # industries has no display_order column
    if table == "industries":
        values.pop("display_order", None)
    return values


@router.get("/lookup/{kind}")
def list_lookup_entries(kind: str = Path(...)) -> Dict[str, Any]:
    table = _lookup_table(kind)
    order = "name_vi ASC" if table == "industries" else "display_order ASC, name_vi ASC"
    try:
        with get_db_connection() as conn:
            rows = fetch_all(conn, f"SELECT * FROM {table} ORDER BY {order}")
    except DatabaseError as e:
        raise server_error(f"fetch {kind}", e)
    return {"data": [decode_row(r, (), LOOKUP_BOOL_COLUMNS) for r in rows]}


@router.post("/lookup/{kind}", status_code=201)
def create_lookup_entry(
    req: LookupEntryCreate,
    kind: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    table = _lookup_table(kind)
    values = _lookup_values(table, req.dict())
    try:
        with get_db_connection() as conn:
            ensure_unique(conn, table, "code", values["code"], "Code already exists")
            entry_id = insert_row(conn, table, values)
            log_activity(conn, ctx, "create", table, entry_id, values["name_vi"])
            commit(conn)
            entry = get_or_404(conn, table, entry_id, "Lookup entry not found")
    except DatabaseError as e:
        raise server_error(f"create {kind} entry", e)
    lookup_cache.invalidate()
    return decode_row(entry, (), LOOKUP_BOOL_COLUMNS)


@router.put("/lookup/{kind}/{entry_id}")
def update_lookup_entry(
    req: LookupEntryUpdate,
    kind: str = Path(...),
    entry_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    table = _lookup_table(kind)
    values = _lookup_values(table, req.dict(exclude_unset=True))
    if "name_vi" in values and not values["name_vi"]:
        raise HTTPException(status_code=400, detail="name_vi must not be empty")
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, table, entry_id, "Lookup entry not found")
            update_row(conn, table, entry_id, values)
            log_activity(conn, ctx, "update", table, entry_id, values.get("name_vi") or current["name_vi"])
            commit(conn)
            entry = get_or_404(conn, table, entry_id, "Lookup entry not found")
    except DatabaseError as e:
        raise server_error(f"update {kind} entry", e)
    lookup_cache.invalidate()
    return decode_row(entry, (), LOOKUP_BOOL_COLUMNS)


@router.delete("/lookup/{kind}/{entry_id}")
def delete_lookup_entry(
    kind: str = Path(...),
    entry_id: str = Path(...),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    table = _lookup_table(kind)
    try:
        with get_db_connection() as conn:
            current = get_or_404(conn, table, entry_id, "Lookup entry not found")
            delete_row(conn, table, entry_id)
            log_activity(conn, ctx, "delete", table, entry_id, current["name_vi"])
            commit(conn)
    except DatabaseError as e:
        raise server_error(f"delete {kind} entry", e)
    lookup_cache.invalidate()
    return {"message": "Lookup entry deleted successfully"}
