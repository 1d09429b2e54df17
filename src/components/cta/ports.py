"""
CTA component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol

from .models import ApiResponse


class ForgeApiError(Exception):
    """Raised by the API client when a request fails in transport."""


class ForgeApiPort(Protocol):
    def get(self, url: str, headers: dict[str, str], timeout: float) -> ApiResponse:
        """GET a Forge API URL; raises ForgeApiError on transport failure."""
        ...


class CtaCachePort(Protocol):
    """Expiring key/value cache for API responses."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, None when missing or expired."""
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete_prefix(self, prefix: str) -> int:
        """Delete every entry whose key starts with prefix; return the count."""
        ...
