"""
inlandv/query_builder.py

Incremental WHERE-clause builder shared by every list endpoint.

Each filter appends one AND-ed fragment; values are always bound through
numbered named placeholders (:p1, :p2, ...) so user input never reaches the
SQL text. The same builder produces the COUNT query (over the unpaginated
result) and the paginated page query, which keeps `total` consistent with
the rows a client can page through.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

from inlandv.db import fetch_all, fetch_value

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_LIMIT = 100


class FilterQuery:
    """Accumulates AND conditions and their bound parameters for a base SELECT."""

    # base_sql must not carry its own WHERE; add fixed conditions with where().
    def __init__(self, base_sql: str):
        self.base_sql = base_sql.strip()
        self.conditions: List[str] = []
        self.params: Dict[str, Any] = {}
        self._counter = 0

    def bind(self, value: Any) -> str:
        """Bind a value to the next placeholder and return the placeholder text."""
        self._counter += 1
        name = f"p{self._counter}"
        self.params[name] = value
        return f":{name}"

    def bind_many(self, values: List[Any]) -> List[str]:
        return [self.bind(v) for v in values]

    def where(self, fragment: str, *values: Any) -> "FilterQuery":
        """
        Add a condition. Each `{}` slot in `fragment` receives a freshly bound
        placeholder for the matching value, e.g. where("scope = {}", "trong-kcn").
        """
        placeholders = [self.bind(v) for v in values]
        self.conditions.append(fragment.format(*placeholders) if placeholders else fragment)
        return self

    def where_any(self, fragments: List[str]) -> "FilterQuery":
        """Add one condition that is the OR of already-rendered fragments."""
        if fragments:
            self.conditions.append("(" + " OR ".join(f"({f})" for f in fragments) + ")")
        return self

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    def sql(self) -> str:
        if not self.conditions:
            return self.base_sql
        return self.base_sql + " WHERE " + " AND ".join(self.conditions)

    def count_sql(self) -> Tuple[str, Dict[str, Any]]:
        return f"SELECT COUNT(*) AS count FROM ({self.sql()}) AS count_query", dict(self.params)

    def page_sql(self, order_by: str, page: int, limit: int) -> Tuple[str, Dict[str, Any]]:
        """Ordered, paginated query. Binds LIMIT and OFFSET on a copy of the parameters."""
        params = dict(self.params)
        limit_name = f"p{self._counter + 1}"
        offset_name = f"p{self._counter + 2}"
        params[limit_name] = limit
        params[offset_name] = (page - 1) * limit
        sql = f"{self.sql()} ORDER BY {order_by} LIMIT :{limit_name} OFFSET :{offset_name}"
        return sql, params


def parse_pagination(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..max_limit; malformed values fall back to defaults."""
    try:
        page_num = int(page) if page not in (None, "") else DEFAULT_PAGE
    except (TypeError, ValueError):
        page_num = DEFAULT_PAGE
    try:
        limit_num = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        limit_num = default_limit
    page_num = max(page_num, 1)
    limit_num = min(max(limit_num, 1), max_limit)
    return page_num, limit_num


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }


def run_paginated(conn, query: FilterQuery, order_by: str, page: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
    """Execute the COUNT and page queries; returns (rows, total)."""
    count_sql, count_params = query.count_sql()
    total = int(fetch_value(conn, count_sql, count_params) or 0)
    page_sql, page_params = query.page_sql(order_by, page, limit)
    rows = fetch_all(conn, page_sql, page_params)
    return rows, total


def paginated_response(data: List[Dict[str, Any]], page: int, limit: int, total: int) -> Dict[str, Any]:
    """Public list envelope: {success, data, pagination}."""
    return {"success": True, "data": data, "pagination": pagination_meta(page, limit, total)}


def cms_list_response(data: List[Dict[str, Any]], page: int, page_size: int, total: int) -> Dict[str, Any]:
    """CMS list envelope: {data, total, page, pageSize, totalPages}."""
    return {
        "data": data,
        "total": total,
        "page": page,
        "pageSize": page_size,
        "totalPages": total_pages(total, page_size),
    }
