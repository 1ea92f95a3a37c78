"""
inlandv/sections.py

Structured editing of page-section content.

Section content is stored either as HTML (legacy pages) or as JSON (pages
rendered by the public site's components). For the hero, story and team
section types this module turns either form into an editable dict and
regenerates HTML or JSON from it:

    data = parse_section("hero", section["content"])
    data["description"] = "..."
    content = render_section("hero", data, "json")

Asset references inside JSON content are written as "/<asset-id>", which the
public site resolves through GET /uploads/<asset-id>.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from inlandv.media import is_asset_id

HERO_STAT_SLOTS = 4
STORY_PARAGRAPHS = 3
DEFAULT_LOGO = "/logo-1.png"
TEAM_BIO_PLACEHOLDER = "Giới thiệu:...."

STORY_DEFAULT_TITLES = {
    "vision": "Tầm nhìn",
    "mission": "Sứ mệnh",
    "coreValues": "Giá trị cốt lõi",
}

_STAT_NUMBER = re.compile(r"^(\d+(?:\.\d+)?)(.*)$")
_ASSET_PATH_PREFIXES = ("uploads", "assets")


# ---------------------------------------------------------
# Asset references
# ---------------------------------------------------------
def extract_asset_id(value: Any) -> str:
    """
    Asset id from a reference: "/5", "5", "/uploads/5/file.webp",
    "http://host:4001/5" and "http://host/uploads/5/file.webp" all give "5".
    """
    if value is None:
        return ""
    value = str(value).strip()
    if not value:
        return ""
    if value.startswith(("http://", "https://")):
        parts = [p for p in urlparse(value).path.split("/") if p]
        if not parts:
            return ""
        if parts[0] in _ASSET_PATH_PREFIXES:
            return parts[1] if len(parts) > 1 else ""
        return parts[-1]
    if value.startswith("/"):
        parts = [p for p in value.split("/") if p]
        if not parts:
            return ""
        if parts[0] in _ASSET_PATH_PREFIXES:
            return parts[1] if len(parts) > 1 else ""
        return parts[0]
    return value


def asset_url(asset_id: Optional[str]) -> str:
    return f"/uploads/{asset_id}" if asset_id else ""


def asset_ref(value: Any) -> str:
    """JSON form of an asset reference: "/<id>" when an id can be found, else the value unchanged."""
    if value is None or value == "":
        return ""
    value = str(value)
    asset_id = extract_asset_id(value)
    if asset_id and is_asset_id(asset_id):
        return f"/{asset_id}"
    return value


def _resolve_ref(value: Any) -> Tuple[str, str]:
    """(id, display url) for a reference read from JSON content."""
    if value is None or value == "":
        return "", ""
    value = str(value)
    asset_id = extract_asset_id(value)
    if asset_id and is_asset_id(asset_id):
        return asset_id, asset_url(asset_id)
    return "", value


def _ref_for_json(asset_id: Optional[str], url: Optional[str]) -> str:
    if asset_id:
        return f"/{asset_id}"
    return asset_ref(url)


def _esc(value: Any) -> str:
    return html.escape(str(value or ""), quote=True)


def _text(node) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _load_json(content: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parsed JSON object when content looks like one, else None (callers fall back to HTML)."""
    if not content or not content.strip().startswith("{"):
        return None
    try:
        parsed = json.loads(content)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def detect_format(content: Optional[str]) -> str:
    return "json" if _load_json(content) is not None else "html"


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------
# Hero
# ---------------------------------------------------------
def _pad_stats(stats: List[Dict[str, str]]) -> List[Dict[str, str]]:
    stats = list(stats)[:HERO_STAT_SLOTS]
    while len(stats) < HERO_STAT_SLOTS:
        stats.append({"number": "", "label": ""})
    return stats


def parse_hero(content: Optional[str]) -> Dict[str, Any]:
    parsed = _load_json(content)
    if parsed is not None:
        stats = [
            {
                "number": f"{_format_number(stat.get('value') or 0)}{stat.get('suffix') or ''}",
                "label": str(stat.get("label") or ""),
            }
            for stat in _list(parsed.get("stats"))
            if isinstance(stat, dict)
        ]
        logo_id, logo_url = _resolve_ref(parsed.get("logo"))
        return {
            "logo_url": logo_url,
            "logo_id": logo_id,
            "logo_alt": "",
            "description": str(parsed.get("description") or ""),
            "stats": _pad_stats(stats),
            "background_image": str(parsed.get("backgroundImage") or ""),
        }

    soup = BeautifulSoup(content or "", "html.parser")
    logo = soup.select_one(".logo-container img")
    stats = []
    for item in soup.select(".stat-item"):
        number = _text(item.select_one(".stat-number"))
        label = _text(item.select_one(".stat-label"))
        if number or label:
            stats.append({"number": number, "label": label})
    return {
        "logo_url": logo.get("src", "") if logo is not None else "",
        "logo_id": "",
        "logo_alt": logo.get("alt", "") if logo is not None else "",
        "description": _text(soup.select_one(".hero-description")),
        "stats": _pad_stats(stats),
        "background_image": "",
    }


def _filled_stats(data: Dict[str, Any]) -> List[Dict[str, str]]:
    return [s for s in data.get("stats") or [] if s.get("number") or s.get("label")]


def generate_hero_html(data: Dict[str, Any]) -> str:
    if data.get("logo_url"):
        logo_html = (
            '<div class="logo-container">'
            f'<img src="{_esc(data["logo_url"])}" alt="{_esc(data.get("logo_alt") or "Logo")}" class="logo-image" />'
            "</div>"
        )
    else:
        logo_html = (
            '<div class="logo-container">'
            '<h1 class="logo-text">INLANDV</h1>'
            "</div>"
        )
    stats_html = "".join(
        '<div class="stat-item">'
        f'<div class="stat-number">{_esc(stat.get("number") or "0+")}</div>'
        f'<div class="stat-label">{_esc(stat.get("label"))}</div>'
        "</div>"
        for stat in _filled_stats(data)
    )
    return (
        '<div id="hero" class="hero-section">'
        '<div class="hero-content">'
        f"{logo_html}"
        f'<p class="hero-description">{_esc(data.get("description"))}</p>'
        f'<div class="stats-grid">{stats_html}</div>'
        "</div>"
        "</div>"
    )


def generate_hero_json(data: Dict[str, Any]) -> str:
    stats = []
    for stat in _filled_stats(data):
        match = _STAT_NUMBER.match(stat.get("number") or "0")
        if match:
            number = float(match.group(1))
            value = int(number) if number.is_integer() else number
            stats.append({"value": value, "suffix": match.group(2) or "", "label": stat.get("label") or ""})
        else:
            stats.append({"value": 0, "suffix": "", "label": stat.get("label") or ""})

    payload: Dict[str, Any] = {
        "logo": _ref_for_json(data.get("logo_id"), data.get("logo_url")) or DEFAULT_LOGO,
        "description": data.get("description") or "",
        "stats": stats,
    }
    if data.get("background_image"):
        payload["backgroundImage"] = asset_ref(data["background_image"])
    return json.dumps(payload, ensure_ascii=False)


# ---------------------------------------------------------
# Story
# ---------------------------------------------------------
def _card(value: Any, key: str) -> Dict[str, str]:
    value = value if isinstance(value, dict) else {}
    return {
        "title": str(value.get("title") or STORY_DEFAULT_TITLES[key]),
        "content": str(value.get("content") or ""),
    }


def _pad_paragraphs(paragraphs: List[str]) -> List[str]:
    paragraphs = [p for p in paragraphs if isinstance(p, str)][:STORY_PARAGRAPHS]
    return paragraphs + [""] * (STORY_PARAGRAPHS - len(paragraphs))


def parse_story(content: Optional[str]) -> Dict[str, Any]:
    parsed = _load_json(content)
    if parsed is not None:
        return {
            "paragraphs": _pad_paragraphs(_list(parsed.get("paragraphs"))),
            "vision": _card(parsed.get("vision"), "vision"),
            "mission": _card(parsed.get("mission"), "mission"),
            "coreValues": _card(parsed.get("coreValues"), "coreValues"),
        }

    soup = BeautifulSoup(content or "", "html.parser")
    top = soup.select_one(".top-section")
    candidates = top.find_all("p") if top is not None else soup.select("p.text-base, p.text-lg")
    paragraphs = [_text(p) for p in candidates if _text(p)]

    cards = {}
    for key, selector in (
        ("vision", ".vision-card, .vision-section"),
        ("mission", ".mission-card, .mission-section"),
        ("coreValues", ".values-card, .values-section"),
    ):
        node = soup.select_one(selector)
        title = _text(node.find("h3")) if node is not None else ""
        body = _text(node.find("p")) if node is not None else ""
        cards[key] = {"title": title.rstrip(":").strip() or STORY_DEFAULT_TITLES[key], "content": body}

    return {"paragraphs": _pad_paragraphs(paragraphs), **cards}


def generate_story_html(data: Dict[str, Any]) -> str:
    paragraphs_html = "".join(
        f'<p class="text-base md:text-lg leading-relaxed">{_esc(p)}</p>'
        for p in data.get("paragraphs") or []
        if p and p.strip()
    )
    cards_html = "".join(
        f'<div class="value-card {css}">'
        f'<h3 class="value-title">{_esc(_card(data.get(key), key)["title"])}</h3>'
        f'<p class="value-content">{_esc(_card(data.get(key), key)["content"])}</p>'
        "</div>"
        for key, css in (("vision", "vision-card"), ("mission", "mission-card"), ("coreValues", "values-card"))
    )
    return (
        '<div id="cau-chuyen" class="story-section">'
        '<div class="story-content">'
        f'<div class="top-section">{paragraphs_html}</div>'
        f'<div class="vision-mission-values">{cards_html}</div>'
        "</div>"
        "</div>"
    )


def generate_story_json(data: Dict[str, Any]) -> str:
    return json.dumps(
        {
            "paragraphs": list(data.get("paragraphs") or []),
            "vision": _card(data.get("vision"), "vision"),
            "mission": _card(data.get("mission"), "mission"),
            "coreValues": _card(data.get("coreValues"), "coreValues"),
        },
        ensure_ascii=False,
    )


# ---------------------------------------------------------
# Team
# ---------------------------------------------------------
def _blank_member() -> Dict[str, str]:
    return {"id": "", "name": "", "position": "", "description": "", "image_url": "", "image_id": ""}


def parse_team(content: Optional[str]) -> Dict[str, Any]:
    parsed = _load_json(content)
    members: List[Dict[str, str]] = []
    if parsed is not None:
        for m in _list(parsed.get("members")):
            if not isinstance(m, dict):
                continue
            image_id, image_url = _resolve_ref(m.get("image"))
            members.append({
                "id": str(m["id"]) if m.get("id") not in (None, "") else "",
                "name": str(m.get("name") or ""),
                "position": str(m.get("position") or ""),
                "description": str(m.get("description") or ""),
                "image_url": image_url,
                "image_id": image_id,
            })
    else:
        soup = BeautifulSoup(content or "", "html.parser")
        for node in soup.select(".team-member"):
            img = node.find("img")
            bio = _text(node.select_one(".member-bio"))
            members.append({
                "id": "",
                "name": _text(node.select_one(".member-name")),
                "position": _text(node.select_one(".member-position")),
                "description": "" if bio == TEAM_BIO_PLACEHOLDER else bio,
                "image_url": img.get("src", "") if img is not None else "",
                "image_id": "",
            })

    return {"members": members or [_blank_member()]}


def _filled_members(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [m for m in data.get("members") or [] if m.get("name") or m.get("position")]


def generate_team_html(data: Dict[str, Any]) -> str:
    members_html = []
    for member in _filled_members(data):
        image_url = member.get("image_url") or asset_url(member.get("image_id"))
        image_html = (
            f'<img src="{_esc(image_url)}" alt="{_esc(member.get("name"))}" />'
            if image_url
            else '<div class="placeholder"></div>'
        )
        members_html.append(
            '<div class="team-member">'
            f'<div class="member-image">{image_html}</div>'
            f'<h3 class="member-name">{_esc(member.get("name"))}</h3>'
            f'<p class="member-position">{_esc(member.get("position"))}</p>'
            f'<p class="member-bio">{_esc(member.get("description") or TEAM_BIO_PLACEHOLDER)}</p>'
            "</div>"
        )
    return (
        '<div id="doi-ngu" class="team-section">'
        '<h2 class="section-title">Đội ngũ lãnh đạo</h2>'
        f'<div class="team-carousel">{"".join(members_html)}</div>'
        "</div>"
    )


def generate_team_json(data: Dict[str, Any]) -> str:
    members = []
    for index, member in enumerate(_filled_members(data), start=1):
        members.append({
            "id": member.get("id") or index,
            "name": member.get("name") or "",
            "position": member.get("position") or "",
            "description": member.get("description") or "",
            "image": _ref_for_json(member.get("image_id"), member.get("image_url")),
        })
    return json.dumps({"members": members}, ensure_ascii=False)


# ---------------------------------------------------------
# Dispatch
# ---------------------------------------------------------
SectionCodec = Tuple[
    Callable[[Optional[str]], Dict[str, Any]],
    Callable[[Dict[str, Any]], str],
    Callable[[Dict[str, Any]], str],
]

SECTION_CODECS: Dict[str, SectionCodec] = {
    "hero": (parse_hero, generate_hero_html, generate_hero_json),
    "story": (parse_story, generate_story_html, generate_story_json),
    "team": (parse_team, generate_team_html, generate_team_json),
}


def is_structured(section_type: Optional[str]) -> bool:
    return section_type in SECTION_CODECS


def _codec(section_type: str) -> SectionCodec:
    try:
        return SECTION_CODECS[section_type]
    except KeyError:
        raise ValueError(f"Unsupported section type: {section_type}")


def parse_section(section_type: str, content: Optional[str]) -> Dict[str, Any]:
    return _codec(section_type)[0](content)


def render_section(section_type: str, data: Dict[str, Any], fmt: str = "html") -> str:
    _, to_html, to_json = _codec(section_type)
    if fmt == "html":
        return to_html(data)
    if fmt == "json":
        return to_json(data)
    raise ValueError(f"Unsupported content format: {fmt}")
