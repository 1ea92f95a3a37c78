# inlandv/migrate.py
# Database migration module for PostgreSQL and SQLite
# Run: python -m inlandv.migrate

import os
import sys
import uuid
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from inlandv.db import IS_POSTGRES, commit, execute_query, fetch_value, get_db_connection
from inlandv.lookup import DEFAULT_LABELS
from inlandv.utils import now_iso

# Column types below are accepted by both SQLite and PostgreSQL.
# IDs are text UUIDs, timestamps ISO-8601 text, arrays/objects JSON text.
TABLES = [
    ("users", """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            name TEXT,
            role TEXT NOT NULL DEFAULT 'editor',
            is_active BOOLEAN DEFAULT TRUE,
            last_login_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("industrial_parks", """
        CREATE TABLE IF NOT EXISTS industrial_parks (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            scope TEXT NOT NULL DEFAULT 'trong-kcn',
            has_rental BOOLEAN DEFAULT FALSE,
            has_transfer BOOLEAN DEFAULT FALSE,
            province TEXT NOT NULL,
            district TEXT,
            ward TEXT,
            address TEXT,
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            google_maps_link TEXT,
            total_area DOUBLE PRECISION NOT NULL DEFAULT 0,
            available_area DOUBLE PRECISION,
            occupancy_rate DOUBLE PRECISION,
            rental_price_min DOUBLE PRECISION,
            rental_price_max DOUBLE PRECISION,
            transfer_price_min DOUBLE PRECISION,
            transfer_price_max DOUBLE PRECISION,
            infrastructure TEXT,
            allowed_industries TEXT,
            description TEXT,
            description_full TEXT,
            thumbnail_url TEXT,
            video_url TEXT,
            contact_name TEXT,
            contact_phone TEXT,
            contact_email TEXT,
            website_url TEXT,
            meta_title TEXT,
            meta_description TEXT,
            meta_keywords TEXT,
            published_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("industrial_park_images", """
        CREATE TABLE IF NOT EXISTS industrial_park_images (
            id TEXT PRIMARY KEY,
            industrial_park_id TEXT NOT NULL REFERENCES industrial_parks(id) ON DELETE CASCADE,
            url TEXT NOT NULL,
            caption TEXT,
            display_order INTEGER DEFAULT 0,
            is_primary BOOLEAN DEFAULT FALSE,
            created_at TEXT
        )
    """),
    ("properties", """
        CREATE TABLE IF NOT EXISTS properties (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            main_category TEXT NOT NULL DEFAULT 'bds',
            sub_category TEXT,
            industrial_park_id TEXT REFERENCES industrial_parks(id) ON DELETE SET NULL,
            industrial_cluster_id TEXT,
            type TEXT NOT NULL,
            category TEXT,
            status TEXT NOT NULL DEFAULT 'available',
            legal_status TEXT,
            province TEXT NOT NULL,
            district TEXT,
            ward TEXT,
            street TEXT,
            address TEXT,
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            area DOUBLE PRECISION NOT NULL DEFAULT 0,
            land_area DOUBLE PRECISION,
            construction_area DOUBLE PRECISION,
            width DOUBLE PRECISION,
            length DOUBLE PRECISION,
            bedrooms INTEGER,
            bathrooms INTEGER,
            floors INTEGER,
            orientation TEXT,
            has_rental BOOLEAN DEFAULT FALSE,
            has_transfer BOOLEAN DEFAULT FALSE,
            sale_price DOUBLE PRECISION,
            sale_price_min DOUBLE PRECISION,
            sale_price_max DOUBLE PRECISION,
            sale_price_per_sqm DOUBLE PRECISION,
            rental_price DOUBLE PRECISION,
            rental_price_min DOUBLE PRECISION,
            rental_price_max DOUBLE PRECISION,
            rental_price_per_sqm DOUBLE PRECISION,
            negotiable BOOLEAN DEFAULT FALSE,
            furniture TEXT,
            description TEXT,
            description_full TEXT,
            thumbnail_url TEXT,
            video_url TEXT,
            contact_name TEXT,
            contact_phone TEXT,
            contact_email TEXT,
            meta_title TEXT,
            meta_description TEXT,
            meta_keywords TEXT,
            published_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("property_images", """
        CREATE TABLE IF NOT EXISTS property_images (
            id TEXT PRIMARY KEY,
            property_id TEXT NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            url TEXT NOT NULL,
            caption TEXT,
            display_order INTEGER DEFAULT 0,
            is_primary BOOLEAN DEFAULT FALSE,
            created_at TEXT
        )
    """),
    ("property_location_types", """
        CREATE TABLE IF NOT EXISTS property_location_types (
            property_id TEXT NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            location_type TEXT NOT NULL,
            PRIMARY KEY (property_id, location_type)
        )
    """),
    ("products", """
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            has_rental BOOLEAN DEFAULT FALSE,
            has_transfer BOOLEAN DEFAULT FALSE,
            has_factory BOOLEAN DEFAULT FALSE,
            province TEXT,
            district TEXT,
            ward TEXT,
            address TEXT,
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            google_maps_link TEXT,
            total_area DOUBLE PRECISION,
            available_area DOUBLE PRECISION,
            occupancy_rate DOUBLE PRECISION,
            rental_price_min DOUBLE PRECISION,
            rental_price_max DOUBLE PRECISION,
            transfer_price_min DOUBLE PRECISION,
            transfer_price_max DOUBLE PRECISION,
            land_price DOUBLE PRECISION,
            infrastructure TEXT,
            allowed_industries TEXT,
            product_types TEXT,
            transaction_types TEXT,
            location_types TEXT,
            description TEXT,
            description_full TEXT,
            advantages TEXT,
            thumbnail_url TEXT,
            video_url TEXT,
            contact_name TEXT,
            contact_phone TEXT,
            contact_email TEXT,
            website_url TEXT,
            meta_title TEXT,
            meta_description TEXT,
            meta_keywords TEXT,
            images TEXT,
            documents TEXT,
            published_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("product_types", """
        CREATE TABLE IF NOT EXISTS product_types (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name_vi TEXT NOT NULL,
            name_en TEXT,
            display_order INTEGER DEFAULT 0,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("transaction_types", """
        CREATE TABLE IF NOT EXISTS transaction_types (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name_vi TEXT NOT NULL,
            name_en TEXT,
            display_order INTEGER DEFAULT 0,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("location_types", """
        CREATE TABLE IF NOT EXISTS location_types (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name_vi TEXT NOT NULL,
            name_en TEXT,
            display_order INTEGER DEFAULT 0,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("industries", """
        CREATE TABLE IF NOT EXISTS industries (
            id TEXT PRIMARY KEY,
            code TEXT UNIQUE NOT NULL,
            name_vi TEXT NOT NULL,
            name_en TEXT,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("news_categories", """
        CREATE TABLE IF NOT EXISTS news_categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            description TEXT,
            display_order INTEGER DEFAULT 0,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("news", """
        CREATE TABLE IF NOT EXISTS news (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            category_id TEXT REFERENCES news_categories(id),
            thumbnail TEXT,
            excerpt TEXT,
            content TEXT NOT NULL,
            featured BOOLEAN DEFAULT FALSE,
            view_count INTEGER DEFAULT 0,
            author TEXT,
            meta_title TEXT,
            meta_description TEXT,
            published_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("pages", """
        CREATE TABLE IF NOT EXISTS pages (
            id TEXT PRIMARY KEY,
            slug TEXT UNIQUE NOT NULL,
            title TEXT NOT NULL,
            page_type TEXT DEFAULT 'static',
            published BOOLEAN DEFAULT FALSE,
            meta_title TEXT,
            meta_description TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("page_sections", """
        CREATE TABLE IF NOT EXISTS page_sections (
            id TEXT PRIMARY KEY,
            page_id TEXT NOT NULL REFERENCES pages(id) ON DELETE CASCADE,
            section_key TEXT NOT NULL,
            name TEXT NOT NULL,
            section_type TEXT NOT NULL,
            display_order INTEGER DEFAULT 0,
            content TEXT,
            images TEXT,
            published BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT,
            UNIQUE (page_id, section_key)
        )
    """),
    ("menu_locations", """
        CREATE TABLE IF NOT EXISTS menu_locations (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            description TEXT,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("menu_items", """
        CREATE TABLE IF NOT EXISTS menu_items (
            id TEXT PRIMARY KEY,
            menu_location_id TEXT NOT NULL REFERENCES menu_locations(id) ON DELETE CASCADE,
            parent_id TEXT REFERENCES menu_items(id) ON DELETE SET NULL,
            title TEXT NOT NULL,
            url TEXT,
            icon TEXT,
            type TEXT DEFAULT 'custom',
            entity_id TEXT,
            target TEXT DEFAULT '_self',
            rel TEXT,
            css_classes TEXT,
            sort_order INTEGER DEFAULT 0,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("leads", """
        CREATE TABLE IF NOT EXISTS leads (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            email TEXT DEFAULT '',
            message TEXT NOT NULL,
            source TEXT NOT NULL,
            created_at TEXT
        )
    """),
    ("settings", """
        CREATE TABLE IF NOT EXISTS settings (
            id TEXT PRIMARY KEY,
            namespace TEXT UNIQUE NOT NULL,
            value TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("asset_folders", """
        CREATE TABLE IF NOT EXISTS asset_folders (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            parent_id TEXT REFERENCES asset_folders(id) ON DELETE CASCADE,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("assets", """
        CREATE TABLE IF NOT EXISTS assets (
            id TEXT PRIMARY KEY,
            folder_id TEXT REFERENCES asset_folders(id) ON DELETE SET NULL,
            type TEXT DEFAULT 'image',
            provider TEXT DEFAULT 'local',
            url TEXT NOT NULL,
            original_url TEXT,
            filename TEXT,
            original_name TEXT,
            mime_type TEXT,
            file_size INTEGER,
            width INTEGER,
            height INTEGER,
            format TEXT,
            sizes TEXT,
            alt_text TEXT,
            caption TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """),
    ("activity_logs", """
        CREATE TABLE IF NOT EXISTS activity_logs (
            id TEXT PRIMARY KEY,
            user_id TEXT,
            user_email TEXT,
            action TEXT NOT NULL,
            entity_type TEXT NOT NULL,
            entity_id TEXT,
            entity_name TEXT,
            description TEXT,
            created_at TEXT
        )
    """),
]

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_industrial_parks_province ON industrial_parks(province)",
    "CREATE INDEX IF NOT EXISTS idx_industrial_park_images_park ON industrial_park_images(industrial_park_id)",
    "CREATE INDEX IF NOT EXISTS idx_properties_type ON properties(type)",
    "CREATE INDEX IF NOT EXISTS idx_properties_main_category ON properties(main_category)",
    "CREATE INDEX IF NOT EXISTS idx_property_images_property ON property_images(property_id)",
    "CREATE INDEX IF NOT EXISTS idx_news_category ON news(category_id)",
    "CREATE INDEX IF NOT EXISTS idx_news_published_at ON news(published_at)",
    "CREATE INDEX IF NOT EXISTS idx_page_sections_page ON page_sections(page_id)",
    "CREATE INDEX IF NOT EXISTS idx_menu_items_location ON menu_items(menu_location_id)",
    "CREATE INDEX IF NOT EXISTS idx_assets_folder ON assets(folder_id)",
    "CREATE INDEX IF NOT EXISTS idx_activity_logs_entity ON activity_logs(entity_type, entity_id)",
]

# English labels for the seeded lookup rows
_SEED_NAMES_EN = {
    "dat": "Land",
    "nha-xuong": "Factory",
    "dat-co-nha-xuong": "Land with factory",
    "chuyen-nhuong": "Transfer",
    "cho-thue": "For rent",
    "trong-kcn": "Inside industrial park",
    "ngoai-kcn": "Outside industrial park",
    "trong-ccn": "Inside industrial cluster",
    "ngoai-ccn": "Outside industrial cluster",
    "ngoai-kcn-ccn": "Outside park / cluster",
}


def run_migrations() -> None:
    """
    Run all database migrations (idempotent).
    Creates tables and indexes if missing, then seeds lookup defaults.
    Safe to run multiple times.
    """
    print(f"[MIGRATE] Starting database migrations ({'PostgreSQL' if IS_POSTGRES else 'SQLite'})...")

    with get_db_connection() as conn:
        for name, ddl in TABLES:
            execute_query(conn, ddl)
        for ddl in INDEXES:
            execute_query(conn, ddl)
        print(f"[MIGRATE] Ensured {len(TABLES)} tables")

        _seed_lookup_defaults(conn)
        _seed_admin_user(conn)
        commit(conn)

    print("[MIGRATE] All migrations complete!")


def _seed_lookup_defaults(conn) -> None:
    """Insert the default lookup rows into empty lookup tables."""
    now = now_iso()
    for table in ("product_types", "transaction_types", "location_types"):
        count = fetch_value(conn, f"SELECT COUNT(*) AS count FROM {table}")
        if count:
            continue
        for order, (code, name_vi) in enumerate(DEFAULT_LABELS[table].items(), start=1):
            execute_query(
                conn,
                f"""
                INSERT INTO {table} (id, code, name_vi, name_en, display_order, is_active, created_at, updated_at)
                VALUES (:id, :code, :name_vi, :name_en, :display_order, :is_active, :now, :now)
                """,
                {
                    "id": str(uuid.uuid4()),
                    "code": code,
                    "name_vi": name_vi,
                    "name_en": _SEED_NAMES_EN.get(code),
                    "display_order": order,
                    "is_active": True,
                    "now": now,
                },
            )
        print(f"[MIGRATE] Seeded {table}")


def _seed_admin_user(conn) -> None:
    """Create the first admin from ADMIN_EMAIL / ADMIN_PASSWORD when no user exists."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")
    if not email or not password:
        return
    if fetch_value(conn, "SELECT COUNT(*) AS count FROM users"):
        return

    from inlandv.auth_context import hash_password

    now = now_iso()
    execute_query(
        conn,
        """
        INSERT INTO users (id, email, password_hash, name, role, is_active, created_at, updated_at)
        VALUES (:id, :email, :password_hash, :name, 'admin', :is_active, :now, :now)
        """,
        {
            "id": str(uuid.uuid4()),
            "email": email,
            "password_hash": hash_password(password),
            "name": "Administrator",
            "is_active": True,
            "now": now,
        },
    )
    print(f"[MIGRATE] Created admin user {email}")


if __name__ == "__main__":
    run_migrations()
