"""
Media component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import Post

# --- Validation Error ---


@dataclass(frozen=True)
class MediaValidationError:
    """Media validation error."""

    code: str
    message: str
    field: str | None = None
    status: int = 400


# --- Input Models ---


@dataclass(frozen=True)
class ListMediaInput:
    per_page: Any = 50
    page: Any = 1
    media_type: Any = ""
    search: Any = ""


@dataclass(frozen=True)
class UploadMediaInput:
    """Upload from base64 ``file_data`` or from ``file_url``/``url``."""

    file_data: Any = None
    file_url: Any = None
    url: Any = None
    filename: Any = None
    title: Any = None
    description: Any = None
    caption: Any = None
    alt_text: Any = None
    acting_user_id: int = 0


@dataclass(frozen=True)
class UpdateMediaInput:
    media_id: int
    updates: dict[str, Any]


@dataclass(frozen=True)
class DeleteMediaInput:
    media_id: int
    force: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class MediaOutput:
    media: Post | None = None
    data: dict[str, Any] | None = None
    message: str = ""
    errors: list[MediaValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class MediaListOutput:
    media: list[dict[str, Any]]
    total: int
    total_pages: int
    page: int
    per_page: int
    errors: list[MediaValidationError] = field(default_factory=list)
    success: bool = True
