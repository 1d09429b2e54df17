"""
Posts component - post CRUD for content sync.
"""

from .component import (
    format_post,
    normalize_post_type,
    permalink,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_update,
    run_verify,
    unique_post_slug,
)
from .models import (
    CreatePostInput,
    DeletePostInput,
    DeletePostOutput,
    ListPostsInput,
    PostListOutput,
    PostOutput,
    PostValidationError,
    UpdatePostInput,
    VerifyPostOutput,
)
from .ports import PostRepoPort, TermLookupPort, TimePort, UserLookupPort

__all__ = [
    # Entry points
    "run_create",
    "run_delete",
    "run_get",
    "run_list",
    "run_update",
    "run_verify",
    # Helpers
    "format_post",
    "normalize_post_type",
    "permalink",
    "unique_post_slug",
    # Models
    "CreatePostInput",
    "DeletePostInput",
    "DeletePostOutput",
    "ListPostsInput",
    "PostListOutput",
    "PostOutput",
    "PostValidationError",
    "UpdatePostInput",
    "VerifyPostOutput",
    # Ports
    "PostRepoPort",
    "TermLookupPort",
    "TimePort",
    "UserLookupPort",
]
