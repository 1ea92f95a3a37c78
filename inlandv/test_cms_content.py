"""
inlandv/test_cms_content.py

CMS content management: news, news categories, pages and sections, menus,
leads, settings and the activity log.
"""

from __future__ import annotations

import json

import pytest

from inlandv.db import fetch_all, fetch_one, get_db_connection
from inlandv.utils import generate_slug


@pytest.fixture
def category_id(seed_category):
    return seed_category()


# ========================================================================
# ACCESS
# ========================================================================

@pytest.mark.parametrize("path", ["/api/cms/news", "/api/cms/pages", "/api/cms/leads", "/api/cms/menu-locations"])
def test_cms_requires_token(client, path):
    res = client.get(path)
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "No token provided"}


def test_editor_can_manage_content(client, editor_headers):
    res = client.get("/api/cms/news", headers=editor_headers)
    assert res.status_code == 200
    assert res.json() == {"data": [], "total": 0, "page": 1, "pageSize": 20, "totalPages": 0}


# ========================================================================
# NEWS
# ========================================================================

def test_news_create_generates_slug(client, admin_headers, category_id):
    title = "Khu Công Nghiệp Đồng Nai mở rộng"
    res = client.post(
        "/api/cms/news",
        json={"title": title, "category_id": category_id, "content": "<p>Nội dung</p>"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    news = res.json()
    assert news["slug"] == generate_slug(title) == "khu-cong-nghiep-dong-nai-mo-rong"
    assert news["category_name"] == "Tin thị trường"
    assert news["featured"] is False
    assert news["view_count"] == 0

    res = client.post(
        "/api/cms/news",
        json={"title": title, "category_id": category_id, "content": "Khác"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Slug already exists"


def test_news_create_rejects_unknown_category_and_empty_title(client, admin_headers, category_id):
    res = client.post(
        "/api/cms/news",
        json={"title": "Tin", "category_id": "missing", "content": "x"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Category not found"

    res = client.post(
        "/api/cms/news",
        json={"title": "   ", "category_id": category_id, "content": "x"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "title"


def test_news_update_get_delete(client, admin_headers, seed_news, category_id):
    news_id = seed_news("Bản tin", category_id, published_at="2024-01-01T00:00:00.000000Z")

    res = client.put(f"/api/cms/news/{news_id}", json={"featured": True}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["featured"] is True
    assert res.json()["title"] == "Bản tin"

    res = client.put(f"/api/cms/news/{news_id}", json={"slug": ""}, headers=admin_headers)
    assert res.json()["slug"] == "ban-tin"

    assert client.get(f"/api/cms/news/{news_id}", headers=admin_headers).json()["id"] == news_id

    res = client.delete(f"/api/cms/news/{news_id}", headers=admin_headers)
    assert res.json() == {"message": "News deleted successfully"}
    res = client.get(f"/api/cms/news/{news_id}", headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "News not found"


def test_news_list_puts_drafts_last(client, admin_headers, seed_news, category_id):
    seed_news("Nháp", category_id, created_at="2024-06-01T00:00:00.000000Z")
    seed_news("Cũ", category_id, published_at="2024-01-01T00:00:00.000000Z")
    seed_news("Mới", category_id, published_at="2024-05-01T00:00:00.000000Z")

    body = client.get("/api/cms/news", headers=admin_headers).json()
    assert [n["title"] for n in body["data"]] == ["Mới", "Cũ", "Nháp"]
    assert body["total"] == 3

    body = client.get("/api/cms/news", params={"pageSize": 2, "page": 2}, headers=admin_headers).json()
    assert [n["title"] for n in body["data"]] == ["Nháp"]
    assert body["totalPages"] == 2

    body = client.get("/api/cms/news", params={"q": "mới"}, headers=admin_headers).json()
    assert [n["title"] for n in body["data"]] == ["Mới"]


def test_news_categories(client, admin_headers, seed_news):
    res = client.post("/api/cms/news-categories", json={"name": "Chính sách"}, headers=admin_headers)
    assert res.status_code == 201
    category = res.json()
    assert category["slug"] == "chinh-sach"

    seed_news("Nghị định mới", category["id"])
    body = client.get("/api/cms/news-categories", headers=admin_headers).json()
    assert body["total"] == 1
    assert body["data"][0]["news_count"] == 1

    res = client.put(
        f"/api/cms/news-categories/{category['id']}", json={"description": "Văn bản pháp luật"}, headers=admin_headers
    )
    assert res.json()["description"] == "Văn bản pháp luật"

    res = client.delete(f"/api/cms/news-categories/{category['id']}", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Cannot delete category: 1 news article(s) still use it"

    empty = client.post("/api/cms/news-categories", json={"name": "Sự kiện"}, headers=admin_headers).json()
    res = client.delete(f"/api/cms/news-categories/{empty['id']}", headers=admin_headers)
    assert res.json() == {"message": "News category deleted successfully"}


# ========================================================================
# PAGES / SECTIONS
# ========================================================================

def test_page_crud(client, admin_headers):
    res = client.post("/api/cms/pages", json={"slug": "Về chúng tôi", "title": "Về chúng tôi"}, headers=admin_headers)
    assert res.status_code == 201
    page = res.json()
    assert page["slug"] == "ve-chung-toi"
    assert page["published"] is False

    res = client.post("/api/cms/pages", json={"slug": "ve-chung-toi", "title": "Trùng"}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(f"/api/cms/pages/{page['id']}", json={"published": True}, headers=admin_headers)
    assert res.json()["published"] is True

    body = client.get("/api/cms/pages", params={"published": "true"}, headers=admin_headers).json()
    assert [p["slug"] for p in body["data"]] == ["ve-chung-toi"]

    assert client.delete(f"/api/cms/pages/{page['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/cms/pages/{page['id']}", headers=admin_headers).status_code == 404


def test_structured_hero_section(client, admin_headers, seed_page):
    page_id = seed_page()
    res = client.post(
        "/api/cms/page-sections",
        json={
            "page_id": page_id,
            "section_key": "hero",
            "name": "Hero",
            "section_type": "hero",
            "format": "json",
            "data": {"description": "Đối tác bất động sản công nghiệp", "stats": [{"number": "20+", "label": "Năm"}]},
        },
        headers=admin_headers,
    )
    assert res.status_code == 201
    section = res.json()
    assert section["format"] == "json"
    assert json.loads(section["content"]) == {
        "logo": "/logo-1.png",
        "description": "Đối tác bất động sản công nghiệp",
        "stats": [{"value": 20, "suffix": "+", "label": "Năm"}],
    }
    assert section["data"]["description"] == "Đối tác bất động sản công nghiệp"
    assert section["data"]["stats"][0] == {"number": "20+", "label": "Năm"}
    assert section["images"] == []

    res = client.put(
        f"/api/cms/page-sections/{section['id']}",
        json={"data": {"description": "Mới", "stats": []}, "format": "html"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["format"] == "html"
    assert res.json()["data"]["description"] == "Mới"
    assert 'class="hero-description">Mới</p>' in res.json()["content"]

    fetched = client.get(f"/api/cms/page-sections/{section['id']}", headers=admin_headers).json()
    assert fetched["data"]["description"] == "Mới"


@pytest.mark.parametrize("section_type,data,field", [
    ("hero", {"stats": ["20+", "Năm"]}, "data.stats"),
    ("hero", {"stats": "nhiều"}, "data.stats"),
    ("story", {"paragraphs": [1, 2]}, "data.paragraphs"),
    ("story", {"paragraphs": "Một đoạn"}, "data.paragraphs"),
    ("team", {"members": ["Anh Minh"]}, "data.members"),
])
def test_malformed_structured_data_is_rejected(client, admin_headers, seed_page, section_type, data, field):
    res = client.post(
        "/api/cms/page-sections",
        json={"page_id": seed_page(), "section_key": section_type, "name": "X", "section_type": section_type, "data": data},
        headers=admin_headers,
    )
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["errors"][0]["field"].startswith(field)


def test_numeric_structured_values_are_taken_as_text(client, admin_headers, seed_page):
    res = client.post(
        "/api/cms/page-sections",
        json={
            "page_id": seed_page(),
            "section_key": "hero",
            "name": "Hero",
            "section_type": "hero",
            "format": "json",
            "data": {"logo_id": 5, "stats": [{"number": 20, "label": "Năm"}]},
        },
        headers=admin_headers,
    )
    assert res.status_code == 201
    content = json.loads(res.json()["content"])
    assert content["logo"] == "/5"
    assert content["stats"] == [{"value": 20, "suffix": "", "label": "Năm"}]


def test_stored_json_with_odd_values_still_parses(client, admin_headers, seed_page, seed_section):
    page_id = seed_page()
    hero = seed_section(page_id, "hero", "hero", content=json.dumps({"logo": 5, "description": 3, "stats": "nhiều"}))
    story = seed_section(page_id, "story", "story", content=json.dumps({"paragraphs": "Một", "vision": {"title": 1}}))
    team = seed_section(page_id, "team", "team", content=json.dumps({"members": [{"name": "An", "image": 7}, "x"]}))

    data = client.get(f"/api/cms/page-sections/{hero}", headers=admin_headers).json()["data"]
    assert (data["logo_id"], data["logo_url"], data["description"]) == ("5", "/uploads/5", "3")
    assert data["stats"] == [{"number": "", "label": ""}] * 4

    data = client.get(f"/api/cms/page-sections/{story}", headers=admin_headers).json()["data"]
    assert data["paragraphs"] == ["", "", ""]
    assert data["vision"]["title"] == "1"

    data = client.get(f"/api/cms/page-sections/{team}", headers=admin_headers).json()["data"]
    assert [(m["name"], m["image_id"]) for m in data["members"]] == [("An", "7")]


def test_data_only_update_keeps_json_format(client, admin_headers, seed_page, seed_section):
    page_id = seed_page()
    section_id = seed_section(page_id, "hero", "hero", content=json.dumps({"logo": "/logo-1.png", "description": "Cũ", "stats": []}))

    res = client.put(
        f"/api/cms/page-sections/{section_id}",
        json={"data": {"description": "Mới", "stats": [{"number": "5+", "label": "Năm"}]}},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["format"] == "json"
    assert json.loads(res.json()["content"])["description"] == "Mới"


def test_section_rules(client, admin_headers, seed_page, seed_section):
    page_id = seed_page()
    section_id = seed_section(page_id, "intro", "text")

    base = {"page_id": page_id, "name": "Intro", "section_type": "text"}
    res = client.post("/api/cms/page-sections", json={**base, "section_key": "intro"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Section key already exists for this page"

    res = client.post(
        "/api/cms/page-sections", json={**base, "section_key": "other", "data": {"x": 1}}, headers=admin_headers
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Structured data is not supported for section type 'text'"

    res = client.post(
        "/api/cms/page-sections", json={**base, "page_id": "missing", "section_key": "x"}, headers=admin_headers
    )
    assert res.status_code == 404
    assert res.json()["message"] == "Page not found"

    res = client.put(f"/api/cms/page-sections/{section_id}", json={}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "No fields to update"

    res = client.put(
        f"/api/cms/page-sections/{section_id}", json={"images": ["/uploads/a.jpg"], "published": False},
        headers=admin_headers,
    )
    assert res.json()["images"] == ["/uploads/a.jpg"]
    assert res.json()["published"] is False

    res = client.delete(f"/api/cms/page-sections/{section_id}", headers=admin_headers)
    assert res.status_code == 403
    assert res.json()["message"] == "Section deletion is not allowed"


def test_section_order(client, admin_headers, seed_page, seed_section):
    page_id = seed_page()
    first = seed_section(page_id, "a", "text", display_order=1)
    second = seed_section(page_id, "b", "text", display_order=2, published=False)
    other_page = seed_page("lien-he", "Liên hệ")
    foreign = seed_section(other_page, "c", "text")

    res = client.put(
        f"/api/cms/pages/{page_id}/sections/order",
        json={"sections": [{"id": first, "display_order": 5}, {"id": foreign, "display_order": 1}]},
        headers=admin_headers,
    )
    assert res.status_code == 400

    res = client.put(
        f"/api/cms/pages/{page_id}/sections/order",
        json={"sections": [{"id": first, "display_order": 5}, {"id": second, "display_order": 1}]},
        headers=admin_headers,
    )
    assert res.json() == {"message": "Sections order updated successfully"}

    body = client.get(f"/api/cms/pages/{page_id}/sections", headers=admin_headers).json()
    assert [s["section_key"] for s in body["data"]] == ["b", "a"]
    body = client.get(f"/api/cms/pages/{page_id}/sections", params={"published": "true"}, headers=admin_headers).json()
    assert [s["section_key"] for s in body["data"]] == ["a"]

    page = client.get(f"/api/cms/pages/{page_id}", headers=admin_headers).json()
    assert [s["section_key"] for s in page["sections"]] == ["b", "a"]


# ========================================================================
# MENUS
# ========================================================================

def test_menu_locations_and_items(client, admin_headers):
    location = client.post("/api/cms/menu-locations", json={"name": "Header"}, headers=admin_headers).json()
    assert location["slug"] == "header"
    footer = client.post("/api/cms/menu-locations", json={"name": "Footer"}, headers=admin_headers).json()

    def create_item(**fields):
        return client.post("/api/cms/menu-items", json=fields, headers=admin_headers)

    home = create_item(menu_location_id=location["id"], title="Trang chủ", url="/", sort_order=1).json()
    about = create_item(menu_location_id=location["id"], title="Giới thiệu", sort_order=2).json()
    team = create_item(menu_location_id=location["id"], parent_id=about["id"], title="Đội ngũ").json()
    assert team["parent_id"] == about["id"]
    assert home["is_active"] is True

    res = create_item(menu_location_id=footer["id"], parent_id=about["id"], title="Sai chỗ")
    assert res.status_code == 400
    assert res.json()["message"] == "Parent menu item not found in this menu location"

    res = create_item(menu_location_id="missing", title="X")
    assert res.status_code == 404

    res = client.put(f"/api/cms/menu-items/{about['id']}", json={"parent_id": about["id"]}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Menu item cannot be its own parent"
    res = client.put(f"/api/cms/menu-items/{about['id']}", json={"parent_id": team["id"]}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Menu item cannot be moved under its own child"

    locations = client.get("/api/cms/menu-locations", headers=admin_headers).json()["data"]
    assert {loc["slug"]: loc["item_count"] for loc in locations} == {"footer": 0, "header": 3}

    public = client.get("/api/menus/header").json()["data"]["items"]
    assert [i["title"] for i in public] == ["Trang chủ", "Giới thiệu"]
    assert [c["title"] for c in public[1]["children"]] == ["Đội ngũ"]

    res = client.delete(f"/api/cms/menu-items/{about['id']}", headers=admin_headers)
    assert res.json() == {"message": "Menu item deleted successfully"}
    items = client.get("/api/cms/menu-items", params={"location_id": location["id"]}, headers=admin_headers).json()
    by_title = {i["title"]: i for i in items["data"]}
    assert set(by_title) == {"Trang chủ", "Đội ngũ"}
    assert by_title["Đội ngũ"]["parent_id"] is None


def test_menu_reorder(client, admin_headers, insert):
    location = insert("menu_locations", {"name": "Header", "slug": "header", "is_active": True})
    first = insert("menu_items", {"menu_location_id": location, "title": "Một", "sort_order": 1})
    second = insert("menu_items", {"menu_location_id": location, "title": "Hai", "sort_order": 2})

    res = client.put(
        "/api/cms/menu-items/order",
        json={"items": [{"id": first, "sort_order": 2}, {"id": second, "sort_order": 1}]},
        headers=admin_headers,
    )
    assert res.json() == {"message": "Menu items order updated successfully"}

    items = client.get("/api/cms/menu-items", params={"location_id": location}, headers=admin_headers).json()["data"]
    assert [i["title"] for i in items] == ["Hai", "Một"]


def test_menu_reorder_keeps_parents_unless_sent(client, admin_headers, insert):
    location = insert("menu_locations", {"name": "Header", "slug": "header", "is_active": True})
    about = insert("menu_items", {"menu_location_id": location, "title": "About", "sort_order": 1})
    team = insert("menu_items", {"menu_location_id": location, "title": "Team", "parent_id": about, "sort_order": 1})
    news = insert("menu_items", {"menu_location_id": location, "title": "News", "sort_order": 2})

    res = client.put(
        "/api/cms/menu-items/order",
        json={"items": [{"id": about, "sort_order": 3}, {"id": team, "sort_order": 2}]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    items = client.get("/api/cms/menu-items", params={"location_id": location}, headers=admin_headers).json()["data"]
    parents = {i["title"]: i["parent_id"] for i in items}
    assert parents == {"About": None, "Team": about, "News": None}

    res = client.put(
        "/api/cms/menu-items/order",
        json={"items": [{"id": team, "sort_order": 1, "parent_id": news}]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    public = client.get("/api/menus/header").json()["data"]["items"]
    assert [i["title"] for i in public] == ["News", "About"]
    assert [c["title"] for c in public[0]["children"]] == ["Team"]


def test_menu_reorder_rejects_invalid_trees(client, admin_headers, insert):
    header = insert("menu_locations", {"name": "Header", "slug": "header", "is_active": True})
    footer = insert("menu_locations", {"name": "Footer", "slug": "footer", "is_active": True})
    first = insert("menu_items", {"menu_location_id": header, "title": "A", "sort_order": 1})
    second = insert("menu_items", {"menu_location_id": header, "title": "B", "sort_order": 2})
    other = insert("menu_items", {"menu_location_id": footer, "title": "F", "sort_order": 1})

    def reorder(*items):
        return client.put("/api/cms/menu-items/order", json={"items": list(items)}, headers=admin_headers)

    res = reorder({"id": first, "sort_order": 1, "parent_id": second}, {"id": second, "sort_order": 2, "parent_id": first})
    assert res.status_code == 400
    assert res.json()["message"] == "Menu item cannot be moved under its own child"

    res = reorder({"id": first, "sort_order": 1, "parent_id": other})
    assert res.status_code == 400
    assert res.json()["message"] == "Parent menu item not found in this menu location"

    res = reorder({"id": first, "sort_order": 1}, {"id": other, "sort_order": 2})
    assert res.status_code == 400
    assert res.json()["message"] == "Menu items must belong to the same menu location"

    res = reorder({"id": "missing", "sort_order": 1})
    assert res.status_code == 404

    # Nothing was written
    public = client.get("/api/menus/header").json()["data"]["items"]
    assert [(i["title"], i["children"]) for i in public] == [("A", []), ("B", [])]


# ========================================================================
# LEADS / SETTINGS / ACTIVITY
# ========================================================================

def test_cms_leads(client, admin_headers):
    for source, name in (("homepage", "An"), ("project", "Bình")):
        client.post("/api/leads", json={
            "name": name, "phone": "0901234567", "message": "Cần tư vấn", "source": source,
        })

    body = client.get("/api/cms/leads", headers=admin_headers).json()
    assert body["total"] == 2

    body = client.get("/api/cms/leads", params={"source": "project"}, headers=admin_headers).json()
    assert [lead["name"] for lead in body["data"]] == ["Bình"]
    lead_id = body["data"][0]["id"]

    assert client.get(f"/api/cms/leads/{lead_id}", headers=admin_headers).json()["name"] == "Bình"
    assert client.delete(f"/api/cms/leads/{lead_id}", headers=admin_headers).json() == {
        "message": "Lead deleted successfully"
    }
    res = client.get(f"/api/cms/leads/{lead_id}", headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Lead not found"


def test_settings_upsert(client, admin_headers):
    res = client.put("/api/cms/settings/general", json={"value": {"site_name": "Inland"}}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["value"] == {"site_name": "Inland"}

    res = client.put("/api/cms/settings/general", json={"value": {"site_name": "InlandV"}}, headers=admin_headers)
    assert res.json()["value"] == {"site_name": "InlandV"}

    with get_db_connection() as conn:
        rows = fetch_all(conn, "SELECT * FROM settings WHERE namespace = 'general'")
    assert len(rows) == 1

    public = client.get("/api/settings/general").json()["data"]
    assert public["value"] == {"site_name": "InlandV"}


def test_activity_log_records_actor(client, admin_user, admin_headers, category_id):
    client.post(
        "/api/cms/news",
        json={"title": "Ghi nhật ký", "category_id": category_id, "content": "x"},
        headers=admin_headers,
    )
    client.put("/api/cms/settings/contact", json={"value": {}}, headers=admin_headers)

    body = client.get("/api/cms/activity-logs", headers=admin_headers).json()
    assert body["total"] == 2
    assert {log["entity_type"] for log in body["data"]} == {"news", "setting"}
    assert all(log["user_email"] == admin_user["email"] for log in body["data"])

    body = client.get("/api/cms/activity-logs", params={"entity_type": "news"}, headers=admin_headers).json()
    assert [log["entity_name"] for log in body["data"]] == ["Ghi nhật ký"]

    with get_db_connection() as conn:
        row = fetch_one(conn, "SELECT user_id FROM activity_logs WHERE entity_type = 'news'")
    assert row["user_id"] == admin_user["id"]


def test_failed_activity_log_keeps_the_change(client, admin_headers):
    with get_db_connection() as conn:
        conn.execute("DROP TABLE activity_logs")
        conn.commit()

    res = client.post("/api/cms/news-categories", json={"name": "Không ghi log"}, headers=admin_headers)
    assert res.status_code == 201

    with get_db_connection() as conn:
        row = fetch_one(conn, "SELECT name FROM news_categories WHERE id = :id", {"id": res.json()["id"]})
    assert row["name"] == "Không ghi log"
