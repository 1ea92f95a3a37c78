# inlandv/cms_common.py
# Row helpers shared by the CMS routers (pagination, existence checks, INSERT/UPDATE from dicts)
#
# Table and column names passed here always come from code (schema field
# names or module constants), never from the request.

from typing import Any, Dict, Iterable, Optional, Tuple

from fastapi import HTTPException

from inlandv.db import encode_json, execute_query, fetch_one, fetch_value
from inlandv.query_builder import parse_pagination
from inlandv.utils import new_id, now_iso

CMS_PAGE_SIZE = 20


def cms_pagination(page: Any = None, page_size: Any = None, limit: Any = None) -> Tuple[int, int]:
    """CMS lists accept either pageSize or limit; default 20 per page."""
    size = page_size if page_size not in (None, "") else limit
    return parse_pagination(page, size, default_limit=CMS_PAGE_SIZE)


def get_or_404(conn, table: str, row_id: str, message: str) -> Dict[str, Any]:
    row = fetch_one(conn, f"SELECT * FROM {table} WHERE id = :id", {"id": row_id})
    if not row:
        raise HTTPException(status_code=404, detail=message)
    return row


def value_taken(conn, table: str, column: str, value: Any, exclude_id: Optional[str] = None) -> bool:
    """True when another row of `table` already has `column = value`."""
    sql = f"SELECT COUNT(*) AS count FROM {table} WHERE {column} = :value"
    params: Dict[str, Any] = {"value": value}
    if exclude_id is not None:
        sql += " AND id <> :exclude_id"
        params["exclude_id"] = exclude_id
    return bool(fetch_value(conn, sql, params))


def ensure_unique(
    conn,
    table: str,
    column: str,
    value: Any,
    message: str,
    exclude_id: Optional[str] = None,
) -> None:
    if value is not None and value_taken(conn, table, column, value, exclude_id):
        raise HTTPException(status_code=400, detail=message)


def encode_columns(values: Dict[str, Any], json_columns: Iterable[str] = ()) -> Dict[str, Any]:
    encoded = dict(values)
    for column in json_columns:
        if column in encoded and not isinstance(encoded[column], str):
            encoded[column] = encode_json(encoded[column])
    return encoded


def insert_row(
    conn,
    table: str,
    values: Dict[str, Any],
    json_columns: Iterable[str] = (),
    timestamps: Iterable[str] = ("created_at", "updated_at"),
) -> str:
    """INSERT one row. id and the timestamp columns are filled in; returns the id."""
    now = now_iso()
    row = encode_columns(values, json_columns)
    row.setdefault("id", new_id())
    for column in timestamps:
        row.setdefault(column, now)
    columns = list(row.keys())
    execute_query(
        conn,
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
        row,
    )
    return row["id"]


def update_row(
    conn,
    table: str,
    row_id: str,
    values: Dict[str, Any],
    json_columns: Iterable[str] = (),
    touch: bool = True,
) -> None:
    """UPDATE the given columns of one row (and updated_at unless touch=False)."""
    row = encode_columns(values, json_columns)
    if touch:
        row["updated_at"] = now_iso()
    if not row:
        return
    assignments = ", ".join(f"{column} = :{column}" for column in row)
    row["id"] = row_id
    execute_query(conn, f"UPDATE {table} SET {assignments} WHERE id = :id", row)


def delete_row(conn, table: str, row_id: str) -> None:
    execute_query(conn, f"DELETE FROM {table} WHERE id = :id", {"id": row_id})
