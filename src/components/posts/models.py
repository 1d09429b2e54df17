"""
Posts component input/output models.

Create/update inputs keep request values raw (``Any``); the component owns
sanitization so every caller gets the same treatment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import Post

# --- Validation Error ---


@dataclass(frozen=True)
class PostValidationError:
    """Post validation error."""

    code: str
    message: str
    field: str | None = None
    status: int = 400


# --- Input Models ---


@dataclass(frozen=True)
class ListPostsInput:
    post_type: Any = "post"
    status: Any = "any"
    per_page: Any = 100
    page: Any = 1
    search: Any = ""
    orderby: Any = "date"
    order: Any = "DESC"


@dataclass(frozen=True)
class CreatePostInput:
    """Input for creating a post; acting_user_id is the default author."""

    title: Any = ""
    content: Any = ""
    excerpt: Any = ""
    status: Any = "draft"
    post_type: Any = "post"
    author: Any = None
    slug: Any = None
    date: Any = None
    categories: Any = None
    tags: Any = None
    featured_media: Any = None
    meta: Any = None
    acting_user_id: int = 0


@dataclass(frozen=True)
class UpdatePostInput:
    """Input for updating a post; only keys present with a non-null value apply."""

    post_id: int
    updates: dict[str, Any]


@dataclass(frozen=True)
class DeletePostInput:
    post_id: int
    force: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class PostOutput:
    """Output containing a single formatted post."""

    post: Post | None = None
    data: dict[str, Any] | None = None
    message: str = ""
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PostListOutput:
    posts: list[dict[str, Any]]
    total: int
    total_pages: int
    page: int
    per_page: int
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class DeletePostOutput:
    trashed: bool = False
    message: str = ""
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class VerifyPostOutput:
    exists: bool
    status: str | None = None
    type: str | None = None
    url: str | None = None
    modified: str | None = None

    def as_dict(self) -> dict[str, Any]:
        if not self.exists:
            return {"exists": False}
        return {
            "exists": True,
            "status": self.status,
            "type": self.type,
            "url": self.url,
            "modified": self.modified,
        }
