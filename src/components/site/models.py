"""
Site component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SiteInfo:
    name: str
    description: str
    url: str
    home: str
    admin_email: str
    language: str
    timezone: str
    wp_version: str
    plugin_version: str
    multisite: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "home": self.home,
            "admin_email": self.admin_email,
            "language": self.language,
            "timezone": self.timezone,
            "wp_version": self.wp_version,
            "plugin_version": self.plugin_version,
            "multisite": self.multisite,
        }


@dataclass(frozen=True)
class SyncOutput:
    """Everything Forge needs to mirror the site in one response."""

    site: SiteInfo
    categories: list[dict[str, Any]] = field(default_factory=list)
    tags: list[dict[str, Any]] = field(default_factory=list)
    users: list[dict[str, Any]] = field(default_factory=list)
    post_types: list[dict[str, Any]] = field(default_factory=list)
    post_statuses: list[dict[str, Any]] = field(default_factory=list)
    media_count: int = 0
    success: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "site": self.site.as_dict(),
            "categories": self.categories,
            "tags": self.tags,
            "users": self.users,
            "post_types": self.post_types,
            "post_statuses": self.post_statuses,
            "media_count": self.media_count,
        }
