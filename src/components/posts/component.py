"""
Posts component - post CRUD for content sync.

Handles list, get, create, update, delete (trash or permanent) and verify for
posts, pages and the other registered post types.

Status rules:
- status must be one of the registered post statuses
- "future" with a date schedules the post at that site-local date
- a "future" date that is not in the future publishes immediately
- non-forced delete of a trashable type moves it to trash first
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo
from typing import Any

from src.components.media.component import format_featured_media
from src.domain.entities import (
    MYSQL_DATETIME_FORMAT,
    THUMBNAIL_META_KEY,
    TRASH_STATUS_META_KEY,
    TRASH_TIME_META_KEY,
    Post,
    PostQuery,
    SiteContext,
    to_mysql,
)
from src.domain.sanitize import (
    absint,
    is_empty,
    kses_post,
    sanitize_key,
    sanitize_text_field,
    sanitize_textarea_field,
    sanitize_title,
    to_text,
)
from src.rules.models import ContentRules

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

logger = logging.getLogger(__name__)

ORDERBY_COLUMNS = {
    "date": "date",
    "modified": "modified",
    "title": "title",
    "name": "slug",
    "id": "id",
    "author": "author_id",
}


# --- Helpers ---


def normalize_post_type(post_type: str, rules: ContentRules) -> str:
    """Map REST bases ("posts", "pages") to post type slugs."""
    return rules.rest_base_map.get(post_type, post_type)


def permalink(post: Post, home: str) -> str:
    base = home.rstrip("/")
    if post.post_type == "post":
        if post.status == "publish" and post.slug:
            return f"{base}/{post.slug}/"
        return f"{base}/?p={post.id}"
    if post.post_type == "page":
        if post.slug:
            return f"{base}/{post.slug}/"
        return f"{base}/?page_id={post.id}"
    return f"{base}/?post_type={post.post_type}&p={post.id}"


def unique_post_slug(repo: PostRepoPort, base: str, post_type: str, exclude_id: int = 0) -> str:
    slug = base
    suffix = 2
    while repo.slug_exists(slug, post_type, exclude_id):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def _fail(code: str, message: str, field: str | None = None, status: int = 400) -> PostOutput:
    return PostOutput(
        success=False,
        errors=[PostValidationError(code=code, message=message, field=field, status=status)],
    )


def _not_found() -> PostOutput:
    return _fail("not_found", "Post not found.", status=404)


def _parse_site_date(value: str, tz: tzinfo) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _term_ids(values: Any, taxonomy: str, terms: TermLookupPort) -> list[int]:
    ids: list[int] = []
    for value in values:
        term_id = absint(value)
        if term_id and term_id not in ids and terms.get(term_id, taxonomy) is not None:
            ids.append(term_id)
    return ids


def _categories_for(post_type: str, ids: list[int], rules: ContentRules) -> list[int]:
    if not ids and post_type == "post":
        return [rules.default_category_id]
    return ids


def _apply_meta(meta: dict[str, str], values: Any) -> None:
    if not isinstance(values, dict):
        return
    for key, value in values.items():
        clean_key = sanitize_key(key)
        if not clean_key:
            continue
        meta[clean_key] = "" if isinstance(value, (list, dict)) else sanitize_text_field(value)


def _apply_featured_media(meta: dict[str, str], value: Any, repo: PostRepoPort) -> None:
    if is_empty(value):
        meta.pop(THUMBNAIL_META_KEY, None)
        return
    attachment_id = absint(value)
    attachment = repo.get(attachment_id)
    if attachment is not None and attachment.post_type == "attachment":
        meta[THUMBNAIL_META_KEY] = str(attachment_id)


def _validate_status(status: str, rules: ContentRules) -> PostValidationError | None:
    if status not in rules.post_statuses:
        return PostValidationError(
            code="invalid_status", message=f'Invalid post status "{status}".', field="status"
        )
    return None


def _schedule(
    updates: dict[str, Any], date_value: Any, now: datetime, tz: tzinfo
) -> PostValidationError | None:
    """Set post dates for a "future" post from a site-local date."""
    scheduled = _parse_site_date(sanitize_text_field(date_value), tz)
    if scheduled is None:
        return PostValidationError(code="invalid_date", message="Invalid date.", field="date")

    updates["date"] = to_mysql(scheduled.astimezone(tz))
    updates["date_gmt"] = to_mysql(scheduled.astimezone(UTC))
    return None


def _resolve_status(status: str, date_gmt: str, now: datetime) -> str:
    """A "future" post whose GMT date is not after now is published."""
    if status != "future":
        return status
    try:
        scheduled = datetime.strptime(date_gmt, MYSQL_DATETIME_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return "publish"
    return "future" if scheduled > now else "publish"


# --- Formatting ---


def format_post(
    post: Post,
    *,
    repo: PostRepoPort,
    terms: TermLookupPort,
    users: UserLookupPort,
    site: SiteContext,
    rules: ContentRules,
    include_content: bool = False,
) -> dict[str, Any]:
    author = users.get(post.author_id)
    data: dict[str, Any] = {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "status": post.status,
        "type": post.post_type,
        "url": permalink(post, site.home),
        "author": {"id": post.author_id, "name": author.display_name if author else ""},
        "date": post.date,
        "date_gmt": post.date_gmt,
        "modified": post.modified,
        "modified_gmt": post.modified_gmt,
    }

    if include_content:
        data["content"] = post.content
        data["excerpt"] = post.excerpt

    def term_list(ids: list[int], taxonomy: str) -> list[dict[str, Any]]:
        found = [terms.get(term_id, taxonomy) for term_id in ids]
        return [{"id": t.id, "name": t.name, "slug": t.slug} for t in found if t is not None]

    data["categories"] = term_list(post.category_ids, "category")
    data["tags"] = term_list(post.tag_ids, "post_tag")

    featured = repo.get(post.thumbnail_id) if post.thumbnail_id else None
    data["featured_media"] = (
        format_featured_media(featured, site.uploads_url, rules.image_sizes)
        if featured is not None and featured.post_type == "attachment"
        else None
    )

    data["meta"] = {key: post.meta.get(key, "") for key in rules.seo_meta_keys}
    return data


# --- Entry points ---


def run_list(
    inp: ListPostsInput,
    *,
    repo: PostRepoPort,
    terms: TermLookupPort,
    users: UserLookupPort,
    site: SiteContext,
    rules: ContentRules,
) -> PostListOutput:
    post_type = normalize_post_type(sanitize_key(inp.post_type) or "post", rules)
    post_types = list(rules.post_types) if post_type == "any" else [post_type]

    requested = [sanitize_key(s) for s in to_text(inp.status).split(",")]
    requested = [s for s in requested if s]
    statuses = None if not requested or "any" in requested else requested

    per_page = absint(inp.per_page) or rules.default_per_page
    per_page = min(per_page, rules.max_per_page)
    page = absint(inp.page) or 1

    orderby = ORDERBY_COLUMNS.get(to_text(inp.orderby).lower(), "date")
    order = to_text(inp.order).upper()
    if order not in ("ASC", "DESC"):
        order = "DESC"

    result = repo.query(
        PostQuery(
            post_types=post_types,
            statuses=statuses,
            search=sanitize_text_field(inp.search),
            orderby=orderby,
            order=order,
            per_page=per_page,
            page=page,
        )
    )

    return PostListOutput(
        posts=[
            format_post(p, repo=repo, terms=terms, users=users, site=site, rules=rules)
            for p in result.posts
        ],
        total=result.total,
        total_pages=result.total_pages,
        page=page,
        per_page=per_page,
    )


def run_get(
    post_id: int,
    *,
    repo: PostRepoPort,
    terms: TermLookupPort,
    users: UserLookupPort,
    site: SiteContext,
    rules: ContentRules,
) -> PostOutput:
    post = repo.get(post_id)
    if post is None:
        return _not_found()

    data = format_post(
        post, repo=repo, terms=terms, users=users, site=site, rules=rules, include_content=True
    )
    return PostOutput(post=post, data=data)


def run_create(
    inp: CreatePostInput,
    *,
    repo: PostRepoPort,
    terms: TermLookupPort,
    users: UserLookupPort,
    time: TimePort,
    site: SiteContext,
    rules: ContentRules,
) -> PostOutput:
    title = sanitize_text_field(inp.title)
    post_type = normalize_post_type(sanitize_text_field(inp.post_type) or "post", rules)
    status = sanitize_text_field(inp.status) or "draft"

    if not title:
        return _fail("missing_title", "Post title is required.", "title")

    type_rule = rules.post_types.get(post_type)
    if type_rule is None or not type_rule.public:
        return _fail(
            "invalid_post_type",
            f'Post type "{post_type}" does not exist or is not public.',
            "post_type",
        )

    status_error = _validate_status(status, rules)
    if status_error is not None:
        return PostOutput(success=False, errors=[status_error])

    now = time.now_utc()
    local_now = to_mysql(now.astimezone(site.tz))
    fields: dict[str, Any] = {
        "status": status,
        "date": local_now,
        "date_gmt": to_mysql(now),
    }

    if status == "future" and not is_empty(inp.date):
        date_error = _schedule(fields, inp.date, now, site.tz)
        if date_error is not None:
            return PostOutput(success=False, errors=[date_error])
    fields["status"] = _resolve_status(fields["status"], fields["date_gmt"], now)

    base_slug = sanitize_title(inp.slug) if not is_empty(inp.slug) else ""
    base_slug = base_slug or sanitize_title(title, fallback=f"{post_type}-{int(now.timestamp())}")

    meta: dict[str, str] = {}
    if not is_empty(inp.featured_media):
        _apply_featured_media(meta, inp.featured_media, repo)
    _apply_meta(meta, inp.meta)

    category_ids = (
        _term_ids(inp.categories, "category", terms)
        if isinstance(inp.categories, list) and inp.categories
        else []
    )
    tag_ids = _term_ids(inp.tags, "post_tag", terms) if isinstance(inp.tags, list) else []

    post = repo.save(
        Post(
            post_type=post_type,
            title=title,
            slug=unique_post_slug(repo, base_slug, post_type),
            content=kses_post(inp.content),
            excerpt=sanitize_textarea_field(inp.excerpt),
            author_id=absint(inp.author) if inp.author is not None else inp.acting_user_id,
            modified=local_now,
            modified_gmt=to_mysql(now),
            meta=meta,
            category_ids=_categories_for(post_type, category_ids, rules),
            tag_ids=tag_ids,
            **fields,
        )
    )
    logger.info("Created %s %s (%s)", post.post_type, post.id, post.status)

    data = format_post(
        post, repo=repo, terms=terms, users=users, site=site, rules=rules, include_content=True
    )
    return PostOutput(post=post, data=data, message="Post created successfully.")


def run_update(
    inp: UpdatePostInput,
    *,
    repo: PostRepoPort,
    terms: TermLookupPort,
    users: UserLookupPort,
    time: TimePort,
    site: SiteContext,
    rules: ContentRules,
) -> PostOutput:
    existing = repo.get(inp.post_id)
    if existing is None:
        return _not_found()

    params = {k: v for k, v in inp.updates.items() if v is not None}
    updates: dict[str, Any] = {}

    if "title" in params:
        updates["title"] = sanitize_text_field(params["title"])
    if "content" in params:
        updates["content"] = kses_post(params["content"])
    if "excerpt" in params:
        updates["excerpt"] = sanitize_textarea_field(params["excerpt"])
    if "status" in params:
        status = sanitize_text_field(params["status"])
        status_error = _validate_status(status, rules)
        if status_error is not None:
            return PostOutput(success=False, errors=[status_error])
        updates["status"] = status
    if "slug" in params:
        slug = sanitize_title(params["slug"])
        updates["slug"] = (
            unique_post_slug(repo, slug, existing.post_type, existing.id) if slug else existing.slug
        )
    if "author" in params:
        updates["author_id"] = absint(params["author"])

    now = time.now_utc()
    if updates.get("status") == "future" and not is_empty(params.get("date")):
        date_error = _schedule(updates, params["date"], now, site.tz)
        if date_error is not None:
            return PostOutput(success=False, errors=[date_error])

    status = _resolve_status(
        updates.get("status", existing.status), updates.get("date_gmt", existing.date_gmt), now
    )
    if status != existing.status or "status" in updates:
        updates["status"] = status

    meta = dict(existing.meta)
    if "featured_media" in params:
        _apply_featured_media(meta, params["featured_media"], repo)
    _apply_meta(meta, params.get("meta"))
    updates["meta"] = meta

    if isinstance(params.get("categories"), list):
        ids = _term_ids(params["categories"], "category", terms)
        updates["category_ids"] = _categories_for(existing.post_type, ids, rules)
    if isinstance(params.get("tags"), list):
        updates["tag_ids"] = _term_ids(params["tags"], "post_tag", terms)

    updates["modified"] = to_mysql(now.astimezone(site.tz))
    updates["modified_gmt"] = to_mysql(now)

    post = repo.save(existing.model_copy(update=updates))
    logger.info("Updated %s %s", post.post_type, post.id)

    data = format_post(
        post, repo=repo, terms=terms, users=users, site=site, rules=rules, include_content=True
    )
    return PostOutput(post=post, data=data, message="Post updated successfully.")


def run_delete(
    inp: DeletePostInput,
    *,
    repo: PostRepoPort,
    time: TimePort,
    site: SiteContext,
    rules: ContentRules,
) -> DeletePostOutput:
    post = repo.get(inp.post_id)
    if post is None:
        return DeletePostOutput(
            success=False,
            errors=[PostValidationError(code="not_found", message="Post not found.", status=404)],
        )

    if not inp.force and post.post_type in rules.trashable_types and post.status != "trash":
        now = time.now_utc()
        meta = dict(post.meta)
        meta[TRASH_STATUS_META_KEY] = post.status
        meta[TRASH_TIME_META_KEY] = str(int(now.timestamp()))
        repo.save(
            post.model_copy(
                update={
                    "status": "trash",
                    "meta": meta,
                    "modified": to_mysql(now.astimezone(site.tz)),
                    "modified_gmt": to_mysql(now),
                }
            )
        )
        logger.info("Trashed %s %s", post.post_type, post.id)
        return DeletePostOutput(trashed=True, message="Post moved to trash.")

    repo.delete(post.id)
    logger.info("Deleted %s %s", post.post_type, post.id)
    return DeletePostOutput(trashed=False, message="Post permanently deleted.")


def run_verify(post_id: int, *, repo: PostRepoPort, site: SiteContext) -> VerifyPostOutput:
    post = repo.get(post_id)
    if post is None:
        return VerifyPostOutput(exists=False)

    return VerifyPostOutput(
        exists=True,
        status=post.status,
        type=post.post_type,
        url=permalink(post, site.home),
        modified=post.modified_gmt,
    )
