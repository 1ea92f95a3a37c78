"""
inlandv/conftest.py

Shared fixtures: every test gets a fresh SQLite database and uploads
directory under tmp_path, a TestClient, an admin user with a token, and
helpers that insert catalog/content rows directly.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

import inlandv.config as config_module
from inlandv.auth_context import create_access_token, hash_password
from inlandv.cms_common import insert_row
from inlandv.db import commit, get_db_connection
from inlandv.lookup import lookup_cache
from inlandv.main import app
from inlandv.migrate import run_migrations
from inlandv.rate_limit import limiter
from inlandv.utils import generate_slug

ADMIN_EMAIL = "admin@inlandv.test"
ADMIN_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Point the database and uploads at tmp_path and start from a migrated schema."""
    monkeypatch.setattr(config_module, "DATABASE_PATH", str(tmp_path / "test.db"))
    monkeypatch.setattr(config_module, "UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    run_migrations()
    limiter.reset()
    lookup_cache.invalidate()
    yield tmp_path
    limiter.reset()
    lookup_cache.invalidate()


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


# Tables that only record created_at
CREATED_ONLY_TABLES = {"industrial_park_images", "property_images", "leads", "activity_logs"}


def _insert(table: str, values: Dict[str, Any], json_columns=()) -> str:
    timestamps = ("created_at",) if table in CREATED_ONLY_TABLES else ("created_at", "updated_at")
    with get_db_connection() as conn:
        row_id = insert_row(conn, table, values, json_columns=json_columns, timestamps=timestamps)
        commit(conn)
    return row_id


@pytest.fixture
def make_user() -> Callable[..., Dict[str, Any]]:
    def _make(email: str = "editor@inlandv.test", password: str = "secret123", role: str = "editor", **extra):
        user_id = _insert("users", {
            "email": email,
            # Low iteration count keeps the suite fast; verify_password reads it from the hash
            "password_hash": hash_password(password, iterations=1000),
            "name": extra.pop("name", email.split("@")[0]),
            "role": role,
            "is_active": extra.pop("is_active", True),
            **extra,
        })
        return {"id": user_id, "email": email, "password": password, "role": role}
    return _make


@pytest.fixture
def admin_user(make_user) -> Dict[str, Any]:
    return make_user(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, role="admin", name="Admin")


@pytest.fixture
def admin_headers(admin_user) -> Dict[str, str]:
    token = create_access_token(admin_user["id"], admin_user["email"], "admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def editor_headers(make_user) -> Dict[str, str]:
    user = make_user()
    token = create_access_token(user["id"], user["email"], "editor")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_park() -> Callable[..., str]:
    def _seed(code: str = "KCN-01", name: str = "KCN Tân Phú Trung", **fields) -> str:
        values = {
            "code": code,
            "name": name,
            "slug": fields.pop("slug", generate_slug(name)),
            "scope": "trong-kcn",
            "province": "Hồ Chí Minh",
            "total_area": 500,
            "has_rental": False,
            "has_transfer": False,
            **fields,
        }
        return _insert("industrial_parks", values, json_columns=("infrastructure", "allowed_industries"))
    return _seed


@pytest.fixture
def seed_property() -> Callable[..., str]:
    def _seed(code: str = "BDS-01", name: str = "Nhà phố Quận 7", **fields) -> str:
        values = {
            "code": code,
            "name": name,
            "slug": fields.pop("slug", generate_slug(name)),
            "main_category": "bds",
            "type": "nha-pho",
            "status": "available",
            "province": "Hồ Chí Minh",
            "area": 100,
            "has_rental": False,
            "has_transfer": False,
            **fields,
        }
        return _insert("properties", values)
    return _seed


@pytest.fixture
def seed_product() -> Callable[..., str]:
    def _seed(code: str = "SP-01", name: str = "Đất KCN Long Hậu", **fields) -> str:
        values = {
            "code": code,
            "name": name,
            "slug": fields.pop("slug", generate_slug(name)),
            "province": "Long An",
            "has_rental": False,
            "has_transfer": False,
            "has_factory": False,
            "product_types": [],
            "transaction_types": [],
            "location_types": [],
            "allowed_industries": [],
            **fields,
        }
        return _insert(
            "products",
            values,
            json_columns=("product_types", "transaction_types", "location_types", "allowed_industries", "infrastructure"),
        )
    return _seed


@pytest.fixture
def seed_news() -> Callable[..., str]:
    def _seed(title: str = "Thị trường KCN quý 3", category_id: str = None, **fields) -> str:
        values = {
            "title": title,
            "slug": fields.pop("slug", generate_slug(title)),
            "category_id": category_id,
            "content": fields.pop("content", "<p>Nội dung</p>"),
            "featured": False,
            "view_count": 0,
            **fields,
        }
        return _insert("news", values)
    return _seed


@pytest.fixture
def seed_category() -> Callable[..., str]:
    def _seed(name: str = "Tin thị trường", slug: str = "tin-thi-truong", **fields) -> str:
        return _insert("news_categories", {"name": name, "slug": slug, **fields})
    return _seed


@pytest.fixture
def seed_page() -> Callable[..., str]:
    def _seed(slug: str = "gioi-thieu", title: str = "Giới thiệu", published: bool = True, **fields) -> str:
        return _insert("pages", {"slug": slug, "title": title, "published": published, **fields})
    return _seed


@pytest.fixture
def seed_section() -> Callable[..., str]:
    def _seed(page_id: str, section_key: str = "hero", section_type: str = "hero", **fields) -> str:
        values = {
            "page_id": page_id,
            "section_key": section_key,
            "name": fields.pop("name", section_key.title()),
            "section_type": section_type,
            "display_order": fields.pop("display_order", 0),
            "content": fields.pop("content", ""),
            "published": fields.pop("published", True),
            **fields,
        }
        return _insert("page_sections", values)
    return _seed


@pytest.fixture
def insert():
    """Generic row insert for tables without a dedicated helper."""
    return _insert
