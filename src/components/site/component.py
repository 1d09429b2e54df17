"""
Site component - site metadata and the full sync payload.

Also resolves the acting user that authenticated Forge requests run as.
"""

from __future__ import annotations

import hashlib
from typing import Any
from urllib.parse import urlencode

from src.components.taxonomy import CATEGORY, TAG, run_list_terms
from src.domain.entities import Author
from src.domain.policy import PolicyEngine
from src.rules.models import ContentRules, SiteRules

from .models import SiteInfo, SyncOutput
from .ports import PostCountPort, TermRepoPort, UserRepoPort

GRAVATAR_BASE = "https://secure.gravatar.com/avatar/"


def gravatar_url(email: str, size: int = 96) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{GRAVATAR_BASE}{digest}?{urlencode({'s': size, 'd': 'mm', 'r': 'g'})}"


def get_site_info(site: SiteRules, plugin_version: str) -> SiteInfo:
    return SiteInfo(
        name=site.name,
        description=site.description,
        url=site.url,
        home=site.home,
        admin_email=site.admin_email,
        language=site.language,
        timezone=site.timezone,
        wp_version=site.wp_version,
        plugin_version=plugin_version,
        multisite=site.multisite,
    )


def fetch_all_categories(terms: TermRepoPort) -> list[dict[str, Any]]:
    return run_list_terms(CATEGORY, terms)


def fetch_all_tags(terms: TermRepoPort) -> list[dict[str, Any]]:
    return run_list_terms(TAG, terms)


def fetch_all_users(users: UserRepoPort, policy: PolicyEngine) -> list[dict[str, Any]]:
    """Users who can edit posts, ordered by display name."""
    editors = [u for u in users.list_all() if policy.can_edit_posts(u)]
    editors.sort(key=lambda u: u.display_name.lower())
    return [
        {
            "id": u.id,
            "username": u.username,
            "name": u.display_name,
            "email": u.email,
            "avatar": gravatar_url(u.email),
            "roles": list(u.roles),
        }
        for u in editors
    ]


def fetch_post_types(rules: ContentRules, posts: PostCountPort) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for slug, post_type in rules.post_types.items():
        if not post_type.public or slug == "attachment":
            continue
        result.append(
            {
                "slug": slug,
                "name": post_type.label,
                "singular_name": post_type.singular_name,
                "description": post_type.description,
                "public": post_type.public,
                "hierarchical": post_type.hierarchical,
                "has_archive": post_type.has_archive,
                "supports": list(post_type.supports),
                "taxonomies": list(post_type.taxonomies),
                "count": posts.count_by_status(slug).get("publish", 0),
            }
        )
    return result


def fetch_post_statuses(rules: ContentRules) -> list[dict[str, Any]]:
    return [
        {
            "name": name,
            "label": status.label,
            "public": status.public,
            "protected": status.protected,
            "private": status.private,
        }
        for name, status in rules.post_statuses.items()
        if not status.internal
    ]


def get_media_count(posts: PostCountPort) -> int:
    counts = posts.count_by_status("attachment")
    return sum(n for status, n in counts.items() if status != "trash")


def find_acting_user(users: UserRepoPort, policy: PolicyEngine) -> Author | None:
    """First administrator by ID, else the first user able to edit posts."""
    all_users = users.list_all()
    for user in all_users:
        if policy.is_administrator(user):
            return user
    for user in all_users:
        if policy.can_edit_posts(user):
            return user
    return None


def run_sync(
    *,
    site: SiteRules,
    plugin_version: str,
    content: ContentRules,
    users: UserRepoPort,
    terms: TermRepoPort,
    posts: PostCountPort,
    policy: PolicyEngine,
) -> SyncOutput:
    return SyncOutput(
        site=get_site_info(site, plugin_version),
        categories=fetch_all_categories(terms),
        tags=fetch_all_tags(terms),
        users=fetch_all_users(users, policy),
        post_types=fetch_post_types(content, posts),
        post_statuses=fetch_post_statuses(content),
        media_count=get_media_count(posts),
    )
