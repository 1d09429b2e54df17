"""
Media component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Post, PostPage, PostQuery


class DownloadError(Exception):
    """Raised by a downloader when a remote file cannot be fetched."""


class DownloadTooLargeError(DownloadError):
    """Raised when a remote file grows past the byte limit while downloading."""


class PostRepoPort(Protocol):
    """Attachment rows live in the post repository."""

    def get(self, post_id: int) -> Post | None: ...

    def save(self, post: Post) -> Post: ...

    def delete(self, post_id: int) -> None: ...

    def query(self, query: PostQuery) -> PostPage: ...

    def slug_exists(self, slug: str, post_type: str, exclude_id: int = 0) -> bool: ...


class FileStorePort(Protocol):
    """Upload directory storage keyed by paths relative to the uploads root."""

    def save(self, subdir: str, filename: str, data: bytes) -> str:
        """Write under subdir with a unique filename; return the relative path."""
        ...

    def delete(self, rel_path: str) -> None:
        """Delete a file; raises FileNotFoundError when it is missing."""
        ...

    def exists(self, rel_path: str) -> bool: ...

    def size(self, rel_path: str) -> int: ...


class DownloaderPort(Protocol):
    def download(self, url: str, timeout: float, max_bytes: int) -> bytes:
        """Fetch a remote file; raises DownloadError on failure.

        DownloadTooLargeError is raised as soon as more than max_bytes arrive.
        """
        ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
