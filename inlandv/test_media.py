"""
inlandv/test_media.py

Upload storage under UPLOADS_DIR: validation, WebP variants, path
resolution and deletion.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from inlandv import config
from inlandv.media import (
    UploadError,
    content_type_for,
    delete_asset_files,
    format_asset,
    is_asset_id,
    normalize_path,
    resolve_asset_file,
    save_upload,
)


def png_bytes(width=1200, height=600, color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, "PNG")
    return buffer.getvalue()


def test_normalize_path():
    assert normalize_path(None) == ""
    assert normalize_path("uploads\\2024\\a.jpg") == "uploads/2024/a.jpg"


@pytest.mark.parametrize("value,expected", [
    ("123", True),
    ("3f2b8c1e-9a4d-4c2b-8f7e-1a2b3c4d5e6f", True),
    ("logo.png", False),
    ("", False),
    (None, False),
])
def test_is_asset_id(value, expected):
    assert is_asset_id(value) is expected


def test_content_type_for():
    assert content_type_for("a/b/original.JPG") == "image/jpeg"
    assert content_type_for("x.webp") == "image/webp"
    assert content_type_for("x.svg") == "image/svg+xml"
    assert content_type_for("x.pdf") == "application/octet-stream"


def test_resolve_asset_file_stays_inside_uploads():
    root = Path(config.UPLOADS_DIR).resolve()
    assert resolve_asset_file("/uploads/2024-01-01/x/original.png") == root / "2024-01-01/x/original.png"
    assert resolve_asset_file("2024-01-01/x/original.png") == root / "2024-01-01/x/original.png"
    assert resolve_asset_file("/uploads/../../etc/passwd") is None
    assert resolve_asset_file("") is None


def test_save_upload_writes_original_and_variants():
    stored = save_upload("Ảnh KCN.png", png_bytes(), "image/png")

    assert stored["url"].startswith("/uploads/")
    assert stored["url"].endswith("/original.png")
    assert stored["original_name"] == "Ảnh KCN.png"
    assert (stored["width"], stored["height"]) == (1200, 600)
    assert stored["format"] == "png"
    assert stored["sizes"]["thumb"]["width"] == 300
    assert stored["sizes"]["thumb"]["height"] == 150
    assert stored["sizes"]["medium"]["width"] == 800
    # Never upscaled
    assert stored["sizes"]["large"]["width"] == 1200

    original = resolve_asset_file(stored["url"])
    assert original.is_file()
    assert (original.parent / "thumb.webp").is_file()


@pytest.mark.parametrize("filename,data,status", [
    ("notes.txt", b"hello", 400),
    ("empty.png", b"", 400),
    ("broken.jpg", b"not really a jpeg", 400),
])
def test_save_upload_rejects_bad_files(filename, data, status):
    with pytest.raises(UploadError) as excinfo:
        save_upload(filename, data)
    assert excinfo.value.status_code == status


def test_save_upload_rejects_oversized_files(monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_MB", 0)
    with pytest.raises(UploadError) as excinfo:
        save_upload("big.png", png_bytes(10, 10))
    assert excinfo.value.status_code == 413


def test_delete_asset_files_removes_directory():
    stored = save_upload("a.png", png_bytes(50, 50))
    directory = resolve_asset_file(stored["url"]).parent

    assert delete_asset_files(stored["url"]) is True
    assert not directory.exists()
    assert delete_asset_files(stored["url"]) is False


def test_delete_legacy_file_keeps_its_date_directory():
    date_dir = Path(config.UPLOADS_DIR).resolve() / "2023-05-01"
    date_dir.mkdir(parents=True)
    (date_dir / "legacy.png").write_bytes(png_bytes(10, 10))
    (date_dir / "other.png").write_bytes(png_bytes(10, 10))

    assert delete_asset_files("/uploads/2023-05-01/legacy.png") is True
    assert not (date_dir / "legacy.png").exists()
    assert (date_dir / "other.png").is_file()


def test_save_upload_rejects_decompression_bombs(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    with pytest.raises(UploadError) as excinfo:
        save_upload("huge.png", png_bytes(50, 50))
    assert excinfo.value.status_code == 400
    assert not any(Path(config.UPLOADS_DIR).glob("*/*"))


def test_format_asset_flattens_variant_urls():
    asset = format_asset({
        "url": "\\uploads\\d\\id\\original.png",
        "sizes": {"thumb": {"url": "/uploads/d/id/thumb.webp"}, "medium": "medium.webp"},
    })
    assert asset["url"] == "/uploads/d/id/original.png"
    assert asset["thumb_url"] == "/uploads/d/id/thumb.webp"
    assert asset["medium_url"] == "/uploads/d/id/medium.webp"
    assert asset["large_url"] == "/uploads/d/id/original.png"
