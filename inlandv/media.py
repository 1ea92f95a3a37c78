"""
inlandv/media.py

Uploaded-file storage for the asset library.

Files live under UPLOADS_DIR as <YYYY-MM-DD>/<uuid>/<file>; the public URL of
a file is "/uploads/" + that relative path. Raster uploads get WebP
variants (thumb, medium, large) written next to the original.
"""

from __future__ import annotations

import io
import os
import re
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from inlandv import config

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}

# Variant name -> max width in pixels
VARIANT_WIDTHS = {
    "thumb": 300,
    "medium": 800,
    "large": 1600,
}

_UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$", re.IGNORECASE)


class UploadError(ValueError):
    """Rejected upload (bad extension, too large, unreadable image)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def normalize_path(path: Optional[str]) -> str:
    """Windows-style separators stored by older imports -> URL separators."""
    if path is None:
        return ""
    return str(path).replace("\\", "/")


def is_asset_id(value: Optional[str]) -> bool:
    if not value:
        return False
    value = str(value).strip()
    return bool(_UUID_PATTERN.match(value)) or value.isdigit()


def content_type_for(path: str) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def uploads_root() -> Path:
    return Path(config.UPLOADS_DIR).resolve()


def resolve_asset_file(url: Optional[str]) -> Optional[Path]:
    """
    File on disk for a stored asset url ("/uploads/a/b.jpg", "/a/b.jpg" or "a/b.jpg").
    Returns None for empty urls and for paths that would leave UPLOADS_DIR.
    """
    if not url:
        return None
    relative = normalize_path(url)
    if relative.startswith("/uploads/"):
        relative = relative[len("/uploads/"):]
    relative = relative.lstrip("/")
    if not relative:
        return None

    root = uploads_root()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    return candidate


def _variant_sizes(image: Image.Image, directory: Path, url_prefix: str) -> Dict[str, Dict[str, Any]]:
    sizes: Dict[str, Dict[str, Any]] = {}
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    for name, max_width in VARIANT_WIDTHS.items():
        variant = image.copy()
        if variant.width > max_width:
            height = max(1, round(variant.height * max_width / variant.width))
            variant = variant.resize((max_width, height), Image.LANCZOS)
        filename = f"{name}.webp"
        variant.save(directory / filename, "WEBP", quality=85)
        sizes[name] = {
            "url": f"{url_prefix}/{filename}",
            "width": variant.width,
            "height": variant.height,
        }
    return sizes


def save_upload(filename: str, data: bytes, mime_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Validate and store an uploaded file. Returns the asset columns describing it
    (url, filename, mime_type, file_size, width, height, format, sizes).
    """
    original_name = os.path.basename(filename or "").strip()
    ext = Path(original_name).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadError(f"File type not allowed. Allowed: {', '.join(ALLOWED_EXTENSIONS)}")
    max_bytes = config.MAX_UPLOAD_MB * 1024 * 1024
    if len(data) > max_bytes:
        raise UploadError(f"File too large. Maximum size is {config.MAX_UPLOAD_MB}MB.", status_code=413)
    if not data:
        raise UploadError("Empty file")

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UploadError(f"Invalid image file: {e}")

    date_dir = datetime.utcnow().strftime("%Y-%m-%d")
    file_id = str(uuid.uuid4())
    relative_dir = f"{date_dir}/{file_id}"
    directory = uploads_root() / date_dir / file_id
    directory.mkdir(parents=True, exist_ok=True)

    stored_name = f"original{ext}"
    (directory / stored_name).write_bytes(data)
    url_prefix = f"/uploads/{relative_dir}"
    sizes = _variant_sizes(image, directory, url_prefix)

    if config.IS_DEV:
        print(f"[MEDIA] Stored {original_name} at {relative_dir} ({len(data)} bytes)")

    return {
        "type": "image",
        "url": f"{url_prefix}/{stored_name}",
        "original_url": f"{url_prefix}/{stored_name}",
        "filename": stored_name,
        "original_name": original_name,
        "mime_type": mime_type or content_type_for(stored_name),
        "file_size": len(data),
        "width": image.width,
        "height": image.height,
        "format": (image.format or ext.lstrip(".")).lower(),
        "sizes": sizes,
    }


def delete_asset_files(url: Optional[str]) -> bool:
    """Remove the directory holding an asset's files. Returns True when something was deleted."""
    path = resolve_asset_file(url)
    if path is None:
        return False
    directory = path.parent
    root = uploads_root()
    if root not in directory.parents or not _UUID_PATTERN.match(directory.name):
        # Legacy files without a per-asset <uuid> directory are removed one by one
        if path.is_file():
            path.unlink()
            return True
        return False
    if directory.is_dir():
        shutil.rmtree(directory)
        return True
    return False


def format_asset(row: Dict[str, Any]) -> Dict[str, Any]:
    """Asset row with normalised urls and flat thumb/medium/large urls."""
    asset = dict(row)
    asset["url"] = normalize_path(asset.get("url"))
    sizes = asset.get("sizes") if isinstance(asset.get("sizes"), dict) else {}
    for name in VARIANT_WIDTHS:
        variant = sizes.get(name)
        if isinstance(variant, dict):
            variant_url = variant.get("url")
        elif isinstance(variant, str):
            variant_url = f"{asset['url'].rsplit('/', 1)[0]}/{variant}"
        else:
            variant_url = None
        asset[f"{name}_url"] = normalize_path(variant_url) or asset["url"]
    return asset
