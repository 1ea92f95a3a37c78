"""
inlandv/test_cms_catalog.py

CMS management of industrial parks, properties, products and lookup tables.
"""

from __future__ import annotations

from inlandv.db import fetch_all, get_db_connection


PARK = {
    "code": "KCN-LH",
    "name": "KCN Long Hậu",
    "province": "Long An",
    "total_area": 850,
    "has_rental": True,
    "rental_price_min": 45,
    "allowed_industries": ["Cơ khí", "Điện tử"],
    "infrastructure": {"road": True, "power": True},
}


# ========================================================================
# INDUSTRIAL PARKS
# ========================================================================

def test_park_create_update_delete(client, admin_headers):
    res = client.post("/api/cms/industrial-parks", json=PARK, headers=admin_headers)
    assert res.status_code == 201
    park = res.json()
    assert park["slug"] == "kcn-long-hau"
    assert park["scope"] == "trong-kcn"
    assert park["has_rental"] is True
    assert park["allowed_industries"] == ["Cơ khí", "Điện tử"]
    assert park["infrastructure"] == {"road": True, "power": True}
    assert park["images"] == []

    res = client.post("/api/cms/industrial-parks", json={**PARK, "slug": "khac"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Code already exists"

    res = client.put(
        f"/api/cms/industrial-parks/{park['id']}",
        json={"available_area": 120, "name": "KCN Long Hậu mở rộng"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    updated = res.json()
    assert updated["available_area"] == 120
    assert updated["name"] == "KCN Long Hậu mở rộng"
    # Slug only changes when sent
    assert updated["slug"] == "kcn-long-hau"

    res = client.put(f"/api/cms/industrial-parks/{park['id']}", json={"province": None}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "province must not be empty"

    public = client.get("/api/industrial-parks/kcn-long-hau").json()["data"]
    assert public["available_area"] == 120

    res = client.delete(f"/api/cms/industrial-parks/{park['id']}", headers=admin_headers)
    assert res.json() == {"message": "Industrial park deleted successfully"}
    assert client.get(f"/api/cms/industrial-parks/{park['id']}", headers=admin_headers).status_code == 404


def test_park_validation(client, admin_headers):
    res = client.post(
        "/api/cms/industrial-parks",
        json={**PARK, "scope": "somewhere", "occupancy_rate": 120},
        headers=admin_headers,
    )
    assert res.status_code == 400
    fields = {e["field"] for e in res.json()["errors"]}
    assert {"scope", "occupancy_rate"} <= fields


def test_replace_park_images(client, admin_headers, seed_park):
    park_id = seed_park()
    res = client.put(
        f"/api/cms/industrial-parks/{park_id}/images",
        json={"images": [{"url": "/uploads/a.jpg", "is_primary": True}, {"url": "/uploads/b.jpg"}]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    images = res.json()["data"]
    assert [(i["url"], i["display_order"], i["is_primary"]) for i in images] == [
        ("/uploads/a.jpg", 0, True),
        ("/uploads/b.jpg", 1, False),
    ]

    res = client.put(
        f"/api/cms/industrial-parks/{park_id}/images",
        json={"images": [{"url": "/uploads/c.jpg"}]},
        headers=admin_headers,
    )
    assert [i["url"] for i in res.json()["data"]] == ["/uploads/c.jpg"]

    res = client.put("/api/cms/industrial-parks/missing/images", json={"images": []}, headers=admin_headers)
    assert res.status_code == 404


def test_cms_park_list(client, admin_headers, seed_park):
    seed_park("A", "KCN A", created_at="2024-01-01T00:00:00.000000Z")
    seed_park("B", "KCN B", scope="ngoai-kcn", created_at="2024-01-02T00:00:00.000000Z")

    body = client.get("/api/cms/industrial-parks", headers=admin_headers).json()
    assert [p["code"] for p in body["data"]] == ["B", "A"]
    assert body["pageSize"] == 20

    body = client.get("/api/cms/industrial-parks", params={"q": "KCN A"}, headers=admin_headers).json()
    assert [p["code"] for p in body["data"]] == ["A"]


# ========================================================================
# PROPERTIES
# ========================================================================

def test_property_create_with_location_tags(client, admin_headers, seed_park):
    park_id = seed_park()
    res = client.post(
        "/api/cms/properties",
        json={
            "code": "NX-01",
            "name": "Nhà xưởng 5.000 m2",
            "province": "Long An",
            "type": "nha-xuong",
            "main_category": "kcn",
            "industrial_park_id": park_id,
            "has_rental": True,
            "rental_price": 4.5,
            "location_types": ["trong-kcn", "trong-kcn", "trong-ccn"],
        },
        headers=admin_headers,
    )
    assert res.status_code == 201
    prop = res.json()
    assert prop["slug"] == "nha-xuong-5-000-m2"
    assert prop["status"] == "available"
    assert prop["location_types"] == ["trong-ccn", "trong-kcn"]

    res = client.put(
        f"/api/cms/properties/{prop['id']}",
        json={"location_types": ["ngoai-kcn"], "negotiable": True},
        headers=admin_headers,
    )
    assert res.json()["location_types"] == ["ngoai-kcn"]
    assert res.json()["negotiable"] is True

    body = client.get("/api/properties", params={"location_types": "ngoai-kcn"}).json()
    assert [p["code"] for p in body["data"]] == ["NX-01"]

    res = client.delete(f"/api/cms/properties/{prop['id']}", headers=admin_headers)
    assert res.json() == {"message": "Property deleted successfully"}
    with get_db_connection() as conn:
        assert fetch_all(conn, "SELECT * FROM property_location_types") == []


def test_property_rejects_unknown_park_and_type(client, admin_headers):
    base = {"code": "X", "name": "X", "province": "Hà Nội", "type": "can-ho"}
    res = client.post("/api/cms/properties", json={**base, "industrial_park_id": "missing"}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Industrial park not found"

    res = client.post("/api/cms/properties", json={**base, "type": "lau-dai"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "type"


def test_replace_property_images(client, admin_headers, seed_property):
    property_id = seed_property()
    res = client.put(
        f"/api/cms/properties/{property_id}/images",
        json={"images": [{"url": "uploads\\p.jpg", "display_order": 3}]},
        headers=admin_headers,
    )
    assert res.json()["data"][0]["url"] == "uploads/p.jpg"
    assert res.json()["data"][0]["display_order"] == 3

    detail = client.get(f"/api/cms/properties/{property_id}", headers=admin_headers).json()
    assert [i["url"] for i in detail["images"]] == ["uploads/p.jpg"]


# ========================================================================
# PRODUCTS
# ========================================================================

def test_product_crud(client, admin_headers):
    res = client.post(
        "/api/cms/products",
        json={
            "code": "SP-100",
            "name": "Đất có nhà xưởng Bình Dương",
            "province": "74",
            "product_types": [" dat-co-nha-xuong ", ""],
            "transaction_types": ["chuyen-nhuong"],
            "has_factory": True,
        },
        headers=admin_headers,
    )
    assert res.status_code == 201
    product = res.json()
    assert product["slug"] == "dat-co-nha-xuong-binh-duong"
    assert product["product_types"] == ["dat-co-nha-xuong"]
    assert product["location_types"] == []
    assert product["images"] == []
    assert product["has_factory"] is True

    public = client.get(f"/api/products/{product['slug']}").json()["data"]
    assert public["province"] == "Bình Dương"
    assert public["transaction_types_vi"] == [{"code": "chuyen-nhuong", "name_vi": "Chuyển nhượng"}]

    res = client.put(
        f"/api/cms/products/{product['id']}",
        json={"location_types": ["ngoai-kcn"], "images": [{"url": "/uploads/x.jpg"}]},
        headers=admin_headers,
    )
    assert res.json()["location_types"] == ["ngoai-kcn"]
    assert res.json()["images"] == [{"url": "/uploads/x.jpg"}]

    res = client.put(f"/api/cms/products/{product['id']}", json={"name": ""}, headers=admin_headers)
    assert res.status_code == 400

    body = client.get("/api/cms/products", params={"location_types": "ngoai-kcn"}, headers=admin_headers).json()
    assert body["total"] == 1

    assert client.delete(f"/api/cms/products/{product['id']}", headers=admin_headers).json() == {
        "message": "Product deleted successfully"
    }
    assert client.get(f"/api/cms/products/{product['id']}", headers=admin_headers).status_code == 404


# ========================================================================
# LOOKUP TABLES
# ========================================================================

def test_lookup_entry_changes_are_visible_immediately(client, admin_headers, seed_product):
    seed_product(slug="kho", product_types=["kho-bai"])

    # Loads the label cache; the unknown code falls back to itself
    first = client.get("/api/products/kho").json()["data"]
    assert first["product_types_vi"] == [{"code": "kho-bai", "name_vi": "kho-bai"}]

    res = client.post(
        "/api/cms/lookup/product-types",
        json={"code": " Kho-Bai ", "name_vi": "Kho bãi", "display_order": 4},
        headers=admin_headers,
    )
    assert res.status_code == 201
    entry = res.json()
    assert entry["code"] == "kho-bai"
    assert entry["is_active"] is True

    second = client.get("/api/products/kho").json()["data"]
    assert second["product_types_vi"] == [{"code": "kho-bai", "name_vi": "Kho bãi"}]

    res = client.put(
        f"/api/cms/lookup/product-types/{entry['id']}", json={"is_active": False}, headers=admin_headers
    )
    assert res.json()["is_active"] is False
    codes = [e["code"] for e in client.get("/api/lookup/product-types").json()["data"]]
    assert "kho-bai" not in codes

    res = client.post(
        "/api/cms/lookup/product-types", json={"code": "kho-bai", "name_vi": "Trùng"}, headers=admin_headers
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Code already exists"

    res = client.delete(f"/api/cms/lookup/product-types/{entry['id']}", headers=admin_headers)
    assert res.json() == {"message": "Lookup entry deleted successfully"}


def test_lookup_industries_and_unknown_kind(client, admin_headers):
    res = client.post(
        "/api/cms/lookup/industries",
        json={"code": "co-khi", "name_vi": "Cơ khí", "display_order": 9},
        headers=admin_headers,
    )
    assert res.status_code == 201
    assert "display_order" not in res.json()

    body = client.get("/api/cms/lookup/industries", headers=admin_headers).json()
    assert [e["code"] for e in body["data"]] == ["co-khi"]

    body = client.get("/api/cms/lookup/transaction-types", headers=admin_headers).json()
    assert [e["code"] for e in body["data"]] == ["chuyen-nhuong", "cho-thue"]

    res = client.get("/api/cms/lookup/colors", headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Unknown lookup table: colors"
