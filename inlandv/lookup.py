"""
inlandv/lookup.py

Translation of lookup codes (product types, transaction types, location
types, industries, province codes) into Vietnamese display labels.

Labels come from the lookup tables and are cached in-process for
LOOKUP_CACHE_SECONDS. When the tables cannot be read the built-in defaults
are served and the cache stays unstamped, so the next call retries the
database.
"""

from __future__ import annotations

import re
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from inlandv.config import IS_DEV, LOOKUP_CACHE_SECONDS

LOOKUP_KINDS = ("product_types", "transaction_types", "location_types", "industries")

DEFAULT_LABELS: Dict[str, Dict[str, str]] = {
    "product_types": {
        "dat": "Đất",
        "nha-xuong": "Nhà xưởng",
        "dat-co-nha-xuong": "Đất có nhà xưởng",
    },
    "transaction_types": {
        "chuyen-nhuong": "Chuyển nhượng",
        "cho-thue": "Cho thuê",
    },
    "location_types": {
        "trong-kcn": "Trong KCN",
        "ngoai-kcn": "Ngoài KCN",
        "trong-ccn": "Trong CCN",
        "ngoai-ccn": "Ngoài CCN",
        "ngoai-kcn-ccn": "Ngoài KCN / CCN",
    },
    "industries": {},
}

PROVINCE_CODE_TO_NAME: Dict[str, str] = {
    "1": "Hà Nội",
    "2": "Hà Giang",
    "4": "Cao Bằng",
    "6": "Bắc Kạn",
    "8": "Tuyên Quang",
    "10": "Lào Cai",
    "11": "Điện Biên",
    "12": "Lai Châu",
    "14": "Sơn La",
    "15": "Yên Bái",
    "17": "Hoà Bình",
    "19": "Thái Nguyên",
    "20": "Lạng Sơn",
    "22": "Quảng Ninh",
    "24": "Bắc Giang",
    "25": "Phú Thọ",
    "26": "Vĩnh Phúc",
    "27": "Bắc Ninh",
    "30": "Hải Dương",
    "31": "Hải Phòng",
    "33": "Hưng Yên",
    "34": "Thái Bình",
    "35": "Hà Nam",
    "36": "Nam Định",
    "37": "Ninh Bình",
    "38": "Thanh Hóa",
    "40": "Nghệ An",
    "42": "Hà Tĩnh",
    "44": "Quảng Bình",
    "45": "Quảng Trị",
    "46": "Thừa Thiên Huế",
    "48": "Đà Nẵng",
    "49": "Quảng Nam",
    "51": "Quảng Ngãi",
    "52": "Bình Định",
    "54": "Phú Yên",
    "56": "Khánh Hòa",
    "58": "Ninh Thuận",
    "60": "Bình Thuận",
    "62": "Kon Tum",
    "64": "Gia Lai",
    "66": "Đắk Lắk",
    "67": "Đắk Nông",
    "68": "Lâm Đồng",
    "70": "Bình Phước",
    "72": "Tây Ninh",
    "74": "Bình Dương",
    "75": "Đồng Nai",
    "77": "Bà Rịa - Vũng Tàu",
    "79": "Hồ Chí Minh",
    "80": "Long An",
    "82": "Tiền Giang",
    "83": "Bến Tre",
    "84": "Trà Vinh",
    "86": "Vĩnh Long",
    "87": "Đồng Tháp",
    "89": "An Giang",
    "91": "Kiên Giang",
    "92": "Cần Thơ",
    "93": "Hậu Giang",
    "94": "Sóc Trăng",
    "95": "Bạc Liêu",
    "96": "Cà Mau",
}

_CODE_PATTERN = re.compile(r"^[a-z0-9-]+$", re.IGNORECASE)

Loader = Callable[[], Dict[str, Dict[str, str]]]


def load_lookup_maps() -> Dict[str, Dict[str, str]]:
    """Read code -> name_vi maps from the lookup tables."""
    from inlandv.db import fetch_all, get_db_connection

    maps: Dict[str, Dict[str, str]] = {}
    with get_db_connection() as conn:
        for kind in ("product_types", "transaction_types", "location_types"):
            rows = fetch_all(conn, f"SELECT code, name_vi FROM {kind} WHERE is_active = :active", {"active": True})
            maps[kind] = {r["code"]: r["name_vi"] for r in rows}
        rows = fetch_all(conn, "SELECT code, name_vi FROM industries")
        maps["industries"] = {r["code"]: r["name_vi"] for r in rows}
    return maps


class LookupCache:
    """Time-bounded cache of the lookup label maps."""

    def __init__(
        self,
        loader: Optional[Loader] = None,
        ttl_seconds: float = LOOKUP_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader or load_lookup_maps
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._maps: Dict[str, Dict[str, str]] = {}
        self._loaded_at: Optional[float] = None

    def is_fresh(self) -> bool:
        return self._loaded_at is not None and (self._clock() - self._loaded_at) < self._ttl

    def get_maps(self) -> Dict[str, Dict[str, str]]:
        with self._lock:
            if self.is_fresh():
                return self._maps
            try:
                loaded = self._loader()
                self._maps = {kind: dict(loaded.get(kind) or {}) for kind in LOOKUP_KINDS}
                self._loaded_at = self._clock()
                if IS_DEV:
                    print(f"[LOOKUP] Loaded {sum(len(m) for m in self._maps.values())} labels")
            except Exception as e:
                # Serve defaults; leave _loaded_at unset so the next call retries
                print(f"[LOOKUP] Failed to load lookup data, using defaults: {e}")
                self._maps = {kind: dict(labels) for kind, labels in DEFAULT_LABELS.items()}
            return self._maps

    def invalidate(self) -> None:
        with self._lock:
            self._loaded_at = None

    def translate(self, codes: Any, kind: str) -> List[Dict[str, str]]:
        """Map codes to [{code, name_vi}], falling back to the code itself."""
        if not codes or not isinstance(codes, (list, tuple)):
            return []
        labels = self.get_maps().get(kind, {})
        return [
            {"code": code, "name_vi": labels.get(code) or code}
            for code in codes
            if code and isinstance(code, str)
        ]


lookup_cache = LookupCache()


def province_name(province: Any) -> str:
    """Province code ('79') to its name; names and unknown codes pass through."""
    if province is None:
        return ""
    value = str(province).strip()
    if value.isdigit():
        return PROVINCE_CODE_TO_NAME.get(value, value)
    return value


def enrich_product(product: Dict[str, Any], cache: Optional[LookupCache] = None) -> Dict[str, Any]:
    """Copy of a product row with Vietnamese labels attached."""
    cache = cache or lookup_cache
    enriched = dict(product)

    if product.get("province"):
        enriched["province"] = province_name(product["province"])

    for kind in ("product_types", "transaction_types", "location_types"):
        if product.get(kind):
            enriched[f"{kind}_vi"] = cache.translate(product[kind], kind)

    industries = product.get("allowed_industries")
    if industries:
        first = industries[0] if isinstance(industries, list) else None
        if isinstance(first, str) and _CODE_PATTERN.match(first):
            enriched["allowed_industries_vi"] = cache.translate(industries, "industries")
        elif isinstance(industries, list):
            enriched["allowed_industries_vi"] = [{"code": name, "name_vi": name} for name in industries]
        else:
            enriched["allowed_industries_vi"] = []

    return enriched


def enrich_products(products: List[Dict[str, Any]], cache: Optional[LookupCache] = None) -> List[Dict[str, Any]]:
    return [enrich_product(p, cache) for p in products]
