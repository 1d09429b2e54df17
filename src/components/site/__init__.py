"""
Site component - site info, users and the sync payload.
"""

from .component import (
    fetch_all_categories,
    fetch_all_tags,
    fetch_all_users,
    fetch_post_statuses,
    fetch_post_types,
    find_acting_user,
    get_media_count,
    get_site_info,
    gravatar_url,
    run_sync,
)
from .models import SiteInfo, SyncOutput
from .ports import PostCountPort, TermRepoPort, UserRepoPort

__all__ = [
    "fetch_all_categories",
    "fetch_all_tags",
    "fetch_all_users",
    "fetch_post_statuses",
    "fetch_post_types",
    "find_acting_user",
    "get_media_count",
    "get_site_info",
    "gravatar_url",
    "run_sync",
    "SiteInfo",
    "SyncOutput",
    "PostCountPort",
    "TermRepoPort",
    "UserRepoPort",
]
