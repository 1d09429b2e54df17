"""
Posts component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Author, Post, PostPage, PostQuery, Term


class PostRepoPort(Protocol):
    """Repository interface for post rows, their meta and term links."""

    def get(self, post_id: int) -> Post | None: ...

    def save(self, post: Post) -> Post:
        """Insert (id 0) or update a post, replacing its meta and term links."""
        ...

    def delete(self, post_id: int) -> None:
        """Delete a post with its meta and term links."""
        ...

    def query(self, query: PostQuery) -> PostPage: ...

    def slug_exists(self, slug: str, post_type: str, exclude_id: int = 0) -> bool: ...

    def count_by_status(self, post_type: str) -> dict[str, int]: ...


class TermLookupPort(Protocol):
    def get(self, term_id: int, taxonomy: str | None = None) -> Term | None: ...


class UserLookupPort(Protocol):
    def get(self, user_id: int) -> Author | None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
