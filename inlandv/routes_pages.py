"""
inlandv/routes_pages.py

Public CMS pages: a published page together with its published sections.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Path

try:
    from inlandv.config import IS_DEV
    from inlandv.db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from inlandv.errors import server_error
    from inlandv.models import PAGE_BOOL_COLUMNS
except ModuleNotFoundError:
    from config import IS_DEV
    from db import DatabaseError, decode_row, fetch_all, fetch_one, get_db_connection
    from errors import server_error
    from models import PAGE_BOOL_COLUMNS


router = APIRouter(
    prefix="/api/pages",
    tags=["pages"],
)


def section_images(value: Any) -> List[Any]:
    """Section images as a list: JSON text is decoded, any other text is a single image."""
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        return decoded if isinstance(decoded, list) else [value]
    return []


def normalize_section(section: Dict[str, Any]) -> Dict[str, Any]:
    decode_row(section, (), PAGE_BOOL_COLUMNS)
    section["images"] = section_images(section.get("images"))
    return section


@router.get("/{slug}")
def get_page(slug: str = Path(..., min_length=1)) -> Dict[str, Any]:
    try:
        with get_db_connection() as conn:
            page = fetch_one(
                conn,
                "SELECT * FROM pages WHERE slug = :slug AND published = :published",
                {"slug": slug, "published": True},
            )
            if not page:
                raise HTTPException(status_code=404, detail="Page not found")
            sections = fetch_all(
                conn,
                """
                SELECT * FROM page_sections
                WHERE page_id = :page_id AND published = :published
                ORDER BY display_order ASC, created_at ASC
                """,
                {"page_id": page["id"], "published": True},
            )
    except DatabaseError as e:
        raise server_error("fetch page", e)

    decode_row(page, (), PAGE_BOOL_COLUMNS)
    page["sections"] = [normalize_section(s) for s in sections]
    if IS_DEV:
        print(f"[PAGES] {slug}: {len(sections)} sections")
        for section in page["sections"]:
            print(f"[PAGES]   - {section['section_key']}: {len(section['images'])} images")
    return {"success": True, "data": page}
