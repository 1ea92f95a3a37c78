# inlandv/utils.py
# Small shared helpers (timestamps, ids, slugs, query-string parsing)

import re
import unicodedata
import uuid
from datetime import datetime
from typing import Any, List, Optional, Union


def now_iso() -> str:
    # Fixed-width so ISO strings sort chronologically
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def new_id() -> str:
    return str(uuid.uuid4())


def generate_slug(text: str) -> str:
    """
    URL slug from a Vietnamese title: "Khu Công Nghiệp Đồng Nai" -> "khu-cong-nghiep-dong-nai".
    """
    if not text:
        return ""
    value = text.lower().replace("đ", "d").replace("Đ", "d")
    value = unicodedata.normalize("NFD", value)
    value = "".join(ch for ch in value if unicodedata.category(ch) != "Mn")
    value = re.sub(r"[^a-z0-9]+", "-", value)
    return value.strip("-")


def is_truthy(value: Any) -> bool:
    """Query-string flag: 'true' and '1' are true, anything else false."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "1")


def to_number(value: Any) -> Optional[float]:
    """Parse a numeric query value; blank or malformed values are ignored."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def as_list(value: Union[None, str, List[Any]]) -> List[str]:
    """Normalise a repeated or comma-separated query parameter to a list of non-empty strings."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    result: List[str] = []
    for item in items:
        if item is None:
            continue
        for part in str(item).split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


def clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
