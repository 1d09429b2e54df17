"""
Media helpers - image header sniffing, size boxes and attachment URLs.

Pure functions; no I/O.
"""

from __future__ import annotations

import struct
from typing import Any

from src.domain.entities import Post
from src.rules.models import ImageSizeRule

# --- Image dimensions ---


def _png_size(data: bytes) -> tuple[int, int] | None:
    if len(data) >= 24 and data[12:16] == b"IHDR":
        width, height = struct.unpack(">II", data[16:24])
        return width, height
    return None


def _gif_size(data: bytes) -> tuple[int, int] | None:
    if len(data) >= 10:
        width, height = struct.unpack("<HH", data[6:10])
        return width, height
    return None


def _jpeg_size(data: bytes) -> tuple[int, int] | None:
    # Walk segments until a start-of-frame marker carries the dimensions.
    i = 2
    while i + 9 < len(data):
        if data[i] != 0xFF:
            i += 1
            continue
        marker = data[i + 1]
        if marker in (0xD8, 0x01) or 0xD0 <= marker <= 0xD7:
            i += 2
            continue
        (length,) = struct.unpack(">H", data[i + 2 : i + 4])
        if marker in (0xC0, 0xC1, 0xC2, 0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF):
            height, width = struct.unpack(">HH", data[i + 5 : i + 9])
            return width, height
        i += 2 + length
    return None


def _webp_size(data: bytes) -> tuple[int, int] | None:
    chunk = data[12:16]
    if chunk == b"VP8 " and len(data) >= 30:
        width, height = struct.unpack("<HH", data[26:30])
        return width & 0x3FFF, height & 0x3FFF
    if chunk == b"VP8L" and len(data) >= 25:
        bits = int.from_bytes(data[21:25], "little")
        return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1
    if chunk == b"VP8X" and len(data) >= 30:
        width = int.from_bytes(data[24:27], "little") + 1
        height = int.from_bytes(data[27:30], "little") + 1
        return width, height
    return None


def sniff_image_size(data: bytes) -> tuple[int, int] | None:
    """Read (width, height) from PNG, GIF, JPEG or WebP headers."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return _png_size(data)
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return _gif_size(data)
    if data.startswith(b"\xff\xd8"):
        return _jpeg_size(data)
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return _webp_size(data)
    return None


# --- Size boxes ---


def constrain_dimensions(
    width: int, height: int, max_width: int = 0, max_height: int = 0
) -> tuple[int, int]:
    """Scale (width, height) down to fit a box; 0 means unbounded. Never upscales."""
    if not max_width and not max_height:
        return width, height

    width_ratio = max_width / width if max_width and width > max_width else 1.0
    height_ratio = max_height / height if max_height and height > max_height else 1.0
    ratio = min(width_ratio, height_ratio)

    if ratio >= 1.0:
        return width, height

    new_width = max(1, round(width * ratio))
    new_height = max(1, round(height * ratio))
    return new_width, new_height


def exceeds_box(width: int, height: int, size: ImageSizeRule) -> bool:
    return bool((size.width and width > size.width) or (size.height and height > size.height))


# --- URLs ---


def attachment_url(post: Post, uploads_url: str) -> str:
    if post.attachment is None:
        return ""
    return f"{uploads_url.rstrip('/')}/{post.attachment.file}"


def featured_sizes(
    post: Post, uploads_url: str, image_sizes: dict[str, ImageSizeRule]
) -> dict[str, dict[str, Any]]:
    """Every registered size, served by the full file constrained to the size's box."""
    meta = post.attachment
    if not post.is_image or meta is None or not meta.width or not meta.height:
        return {}

    url = attachment_url(post, uploads_url)
    sizes: dict[str, dict[str, Any]] = {}
    for name, size in image_sizes.items():
        width, height = constrain_dimensions(meta.width, meta.height, size.width, size.height)
        sizes[name] = {"url": url, "width": width, "height": height}
    return sizes


def intermediate_sizes(
    post: Post, uploads_url: str, image_sizes: dict[str, ImageSizeRule]
) -> dict[str, dict[str, Any]]:
    """Sizes the original is large enough to need, with their mime type."""
    meta = post.attachment
    if not post.is_image or meta is None or not meta.width or not meta.height:
        return {}

    url = attachment_url(post, uploads_url)
    sizes: dict[str, dict[str, Any]] = {}
    for name, size in image_sizes.items():
        if not exceeds_box(meta.width, meta.height, size):
            continue
        width, height = constrain_dimensions(meta.width, meta.height, size.width, size.height)
        sizes[name] = {"url": url, "width": width, "height": height, "mime_type": post.mime_type}
    return sizes


# --- File names ---


def split_extension(filename: str) -> tuple[str, str]:
    """("photo", "jpg") for "photo.jpg"; extension is lowercase, "" when absent."""
    if "." not in filename.strip("."):
        return filename, ""
    stem, _, ext = filename.rpartition(".")
    return stem, ext.lower()


def mime_type_for(filename: str, allowlist: dict[str, str]) -> str | None:
    _, ext = split_extension(filename)
    return allowlist.get(ext) if ext else None
