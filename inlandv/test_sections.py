"""
inlandv/test_sections.py

Hero / story / team content: parsing HTML and JSON into editable data and
regenerating either format.
"""

import json

import pytest

from inlandv.sections import (
    asset_ref,
    detect_format,
    extract_asset_id,
    generate_hero_html,
    generate_hero_json,
    generate_story_html,
    generate_story_json,
    generate_team_html,
    generate_team_json,
    parse_hero,
    parse_section,
    parse_story,
    parse_team,
    render_section,
)


# ========================================================================
# ASSET REFERENCES
# ========================================================================

@pytest.mark.parametrize("value,expected", [
    ("/5", "5"),
    ("5", "5"),
    ("/uploads/5/original.jpg", "5"),
    ("http://localhost:4001/5", "5"),
    ("https://cdn.example.com/uploads/7/thumb.webp", "7"),
    (5, "5"),
    ("", ""),
    (None, ""),
])
def test_extract_asset_id(value, expected):
    assert extract_asset_id(value) == expected


def test_asset_ref():
    assert asset_ref("/uploads/12/original.png") == "/12"
    assert asset_ref("12") == "/12"
    assert asset_ref("/images/banner.jpg") == "/images/banner.jpg"
    assert asset_ref("") == ""
    assert asset_ref(12) == "/12"


def test_detect_format():
    assert detect_format('{"members": []}') == "json"
    assert detect_format("<div></div>") == "html"
    assert detect_format("{not json") == "html"
    assert detect_format(None) == "html"


# ========================================================================
# HERO
# ========================================================================

def test_parse_hero_json_splits_logo_and_pads_stats():
    content = json.dumps({
        "logo": "/42",
        "description": "Kết nối đầu tư",
        "stats": [{"value": 15, "suffix": "+", "label": "Năm kinh nghiệm"}],
        "backgroundImage": "/43",
    })
    data = parse_hero(content)

    assert data["logo_id"] == "42"
    assert data["logo_url"] == "/uploads/42"
    assert data["description"] == "Kết nối đầu tư"
    assert data["stats"][0] == {"number": "15+", "label": "Năm kinh nghiệm"}
    assert len(data["stats"]) == 4
    assert data["stats"][3] == {"number": "", "label": ""}
    assert data["background_image"] == "/43"


def test_parse_hero_html():
    content = (
        '<div class="hero-section"><div class="logo-container"><img src="/logo.png" alt="Inland" /></div>'
        '<p class="hero-description">Mô tả &amp; giới thiệu</p>'
        '<div class="stats-grid"><div class="stat-item"><div class="stat-number">200+</div>'
        '<div class="stat-label">Dự án</div></div></div></div>'
    )
    data = parse_hero(content)
    assert data["logo_url"] == "/logo.png"
    assert data["logo_alt"] == "Inland"
    assert data["description"] == "Mô tả & giới thiệu"
    assert data["stats"][0] == {"number": "200+", "label": "Dự án"}


def test_generate_hero_json_splits_numbers_and_normalises_refs():
    data = {
        "logo_url": "/uploads/42",
        "logo_id": "42",
        "description": "Mô tả",
        "stats": [
            {"number": "15+", "label": "Năm"},
            {"number": "2.5k", "label": "Khách hàng"},
            {"number": "", "label": ""},
            {"number": "nhiều", "label": "Đối tác"},
        ],
        "background_image": "/uploads/43/original.jpg",
    }
    payload = json.loads(generate_hero_json(data))

    assert payload["logo"] == "/42"
    assert payload["stats"] == [
        {"value": 15, "suffix": "+", "label": "Năm"},
        {"value": 2.5, "suffix": "k", "label": "Khách hàng"},
        {"value": 0, "suffix": "", "label": "Đối tác"},
    ]
    assert payload["backgroundImage"] == "/43"


def test_generate_hero_json_defaults_logo_and_omits_background():
    payload = json.loads(generate_hero_json({"description": "x", "stats": []}))
    assert payload["logo"] == "/logo-1.png"
    assert "backgroundImage" not in payload


def test_hero_html_escapes_and_round_trips():
    data = {
        "logo_url": "/logo.png",
        "logo_alt": "Logo",
        "description": '<script>alert("x")</script>',
        "stats": [{"number": "10+", "label": "KCN"}],
    }
    html = generate_hero_html(data)
    assert "<script>" not in html
    parsed = parse_hero(html)
    assert parsed["description"] == '<script>alert("x")</script>'
    assert parsed["stats"][0] == {"number": "10+", "label": "KCN"}


# ========================================================================
# STORY
# ========================================================================

def test_parse_story_json_pads_paragraphs_and_default_titles():
    data = parse_story(json.dumps({"paragraphs": ["Một"], "vision": {"content": "Dẫn đầu"}}))
    assert data["paragraphs"] == ["Một", "", ""]
    assert data["vision"] == {"title": "Tầm nhìn", "content": "Dẫn đầu"}
    assert data["mission"] == {"title": "Sứ mệnh", "content": ""}
    assert data["coreValues"]["title"] == "Giá trị cốt lõi"


def test_story_html_round_trip():
    data = {
        "paragraphs": ["Đoạn một", "Đoạn hai", ""],
        "vision": {"title": "Tầm nhìn", "content": "Tầm nhìn 2030"},
        "mission": {"title": "Sứ mệnh", "content": "Kết nối"},
        "coreValues": {"title": "Giá trị cốt lõi", "content": "Uy tín"},
    }
    parsed = parse_story(generate_story_html(data))
    assert parsed["paragraphs"] == ["Đoạn một", "Đoạn hai", ""]
    assert parsed["vision"] == {"title": "Tầm nhìn", "content": "Tầm nhìn 2030"}
    assert parsed["coreValues"]["content"] == "Uy tín"


def test_generate_story_json():
    payload = json.loads(generate_story_json({"paragraphs": ["a", "b", "c"]}))
    assert payload["paragraphs"] == ["a", "b", "c"]
    assert payload["mission"] == {"title": "Sứ mệnh", "content": ""}


# ========================================================================
# TEAM
# ========================================================================

def test_parse_json_ignores_non_list_collections():
    assert parse_hero('{"stats": {"value": 1}}')["stats"] == [{"number": "", "label": ""}] * 4
    assert parse_story('{"paragraphs": "abc"}')["paragraphs"] == ["", "", ""]
    assert parse_team('{"members": {"name": "An"}}')["members"][0]["name"] == ""


def test_parse_empty_team_yields_one_blank_member():
    data = parse_team("")
    assert len(data["members"]) == 1
    assert data["members"][0]["name"] == ""


def test_parse_team_json_resolves_images():
    content = json.dumps({"members": [{"id": 3, "name": "An", "position": "CEO", "image": "/9"}]})
    member = parse_team(content)["members"][0]
    assert member["id"] == "3"
    assert member["image_id"] == "9"
    assert member["image_url"] == "/uploads/9"


def test_generate_team_json_drops_empty_members_and_numbers_ids():
    data = {"members": [
        {"name": "An", "position": "CEO", "image_url": "/uploads/9/original.jpg"},
        {"name": "", "position": ""},
        {"name": "Bình", "position": "CTO", "image_id": "10"},
    ]}
    payload = json.loads(generate_team_json(data))
    assert [m["name"] for m in payload["members"]] == ["An", "Bình"]
    assert [m["id"] for m in payload["members"]] == [1, 2]
    assert payload["members"][0]["image"] == "/9"
    assert payload["members"][1]["image"] == "/10"


def test_team_html_round_trip_hides_bio_placeholder():
    data = {"members": [{"name": "An", "position": "CEO", "description": ""}]}
    html = generate_team_html(data)
    assert "Giới thiệu:...." in html
    member = parse_team(html)["members"][0]
    assert member["name"] == "An"
    assert member["position"] == "CEO"
    assert member["description"] == ""


# ========================================================================
# DISPATCH
# ========================================================================

def test_parse_and_render_dispatch():
    data = parse_section("story", "")
    assert render_section("story", data, "json").startswith("{")
    assert render_section("story", data, "html").startswith("<div")


def test_unknown_type_or_format_raises():
    with pytest.raises(ValueError):
        parse_section("gallery", "")
    with pytest.raises(ValueError):
        render_section("hero", {}, "xml")
