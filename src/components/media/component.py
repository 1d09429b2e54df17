"""
Media component - attachment library management.

Attachments are post rows (post_type "attachment", status "inherit") whose
file lives under the uploads root in a YYYY/MM directory.

Upload checks run before anything is written:
- file data or a URL is required
- base64 payloads must decode
- the extension must map to an allowed mime type
- the payload must fit the configured size limit
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any
from urllib.parse import urlparse

from src.domain.entities import (
    ALT_TEXT_META_KEY,
    AttachmentFile,
    Post,
    PostQuery,
    SiteContext,
    to_mysql,
)
from src.domain.sanitize import (
    absint,
    esc_url_raw,
    is_empty,
    sanitize_file_name,
    sanitize_text_field,
    sanitize_textarea_field,
    sanitize_title,
    to_text,
)
from src.rules.models import ImageSizeRule, UploadsRules

from ._impl import (
    attachment_url,
    featured_sizes,
    intermediate_sizes,
    mime_type_for,
    sniff_image_size,
)
from .models import (
    DeleteMediaInput,
    ListMediaInput,
    MediaListOutput,
    MediaOutput,
    MediaValidationError,
    UpdateMediaInput,
    UploadMediaInput,
)
from .ports import (
    DownloaderPort,
    DownloadError,
    DownloadTooLargeError,
    FileStorePort,
    PostRepoPort,
    TimePort,
)

logger = logging.getLogger(__name__)

ATTACHMENT = "attachment"
MAX_PER_PAGE = 100


def _fail(code: str, message: str, field: str | None = None, status: int = 400) -> MediaOutput:
    return MediaOutput(
        success=False,
        errors=[MediaValidationError(code=code, message=message, field=field, status=status)],
    )


def _not_found() -> MediaOutput:
    return _fail("not_found", "Media not found.", status=404)


def _too_large(uploads: UploadsRules, field: str) -> MediaOutput:
    return _fail(
        "file_too_large",
        f"File exceeds the maximum upload size of {uploads.max_upload_bytes} bytes.",
        field,
        status=413,
    )


def _get_attachment(repo: PostRepoPort, media_id: int) -> Post | None:
    post = repo.get(media_id)
    if post is None or post.post_type != ATTACHMENT:
        return None
    return post


def _strip_extension(filename: str) -> str:
    return re.sub(r"\.[^.]+$", "", filename)


# --- Formatting ---


def format_media(
    post: Post,
    *,
    files: FileStorePort,
    uploads_url: str,
    image_sizes: dict[str, ImageSizeRule],
    include_sizes: bool = False,
) -> dict[str, Any]:
    meta = post.attachment
    rel_path = meta.file if meta else ""

    data: dict[str, Any] = {
        "id": post.id,
        "title": post.title,
        "filename": rel_path.rsplit("/", 1)[-1],
        "url": attachment_url(post, uploads_url),
        "mime_type": post.mime_type,
        "date": post.date,
        "modified": post.modified,
        "alt_text": post.meta.get(ALT_TEXT_META_KEY, ""),
        "caption": post.excerpt,
        "description": post.content,
    }

    if rel_path and files.exists(rel_path):
        data["file_size"] = files.size(rel_path)

    if post.is_image and meta is not None:
        data["width"] = meta.width
        data["height"] = meta.height

        if include_sizes:
            sizes = intermediate_sizes(post, uploads_url, image_sizes)
            if sizes:
                data["sizes"] = sizes

    return data


def format_featured_media(
    post: Post, uploads_url: str, image_sizes: dict[str, ImageSizeRule]
) -> dict[str, Any]:
    return {
        "id": post.id,
        "url": attachment_url(post, uploads_url),
        "sizes": featured_sizes(post, uploads_url, image_sizes),
    }


# --- Entry points ---


def run_list(
    inp: ListMediaInput,
    *,
    repo: PostRepoPort,
    files: FileStorePort,
    site: SiteContext,
    uploads: UploadsRules,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaListOutput:
    per_page = min(absint(inp.per_page) or uploads.default_per_page, MAX_PER_PAGE)
    page = absint(inp.page) or 1

    result = repo.query(
        PostQuery(
            post_types=[ATTACHMENT],
            statuses=["inherit"],
            mime_type=sanitize_text_field(inp.media_type),
            search=sanitize_text_field(inp.search),
            orderby="date",
            order="DESC",
            per_page=per_page,
            page=page,
        )
    )

    return MediaListOutput(
        media=[
            format_media(p, files=files, uploads_url=site.uploads_url, image_sizes=image_sizes)
            for p in result.posts
        ],
        total=result.total,
        total_pages=result.total_pages,
        page=page,
        per_page=per_page,
    )


def run_get(
    media_id: int,
    *,
    repo: PostRepoPort,
    files: FileStorePort,
    site: SiteContext,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaOutput:
    post = _get_attachment(repo, media_id)
    if post is None:
        return _not_found()

    data = format_media(
        post, files=files, uploads_url=site.uploads_url, image_sizes=image_sizes, include_sizes=True
    )
    return MediaOutput(media=post, data=data)


def _store_upload(
    data: bytes,
    filename: str,
    *,
    title: str,
    description: str,
    caption: str,
    alt_text: str,
    author_id: int,
    repo: PostRepoPort,
    files: FileStorePort,
    time: TimePort,
    site: SiteContext,
    uploads: UploadsRules,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaOutput:
    mime_type = mime_type_for(filename, uploads.allowlist_mime_types)
    if mime_type is None:
        return _fail(
            "invalid_file_type",
            "Sorry, this file type is not permitted for security reasons.",
            "filename",
        )

    if len(data) > uploads.max_upload_bytes:
        return _too_large(uploads, "file_data")

    now = time.now_utc()
    local = now.astimezone(site.tz)
    rel_path = files.save(local.strftime("%Y/%m"), filename, data)

    width = height = None
    if mime_type.startswith("image/"):
        dims = sniff_image_size(data)
        if dims is not None:
            width, height = dims

    title = title or _strip_extension(filename)
    meta = {ALT_TEXT_META_KEY: alt_text} if alt_text else {}

    post = repo.save(
        Post(
            post_type=ATTACHMENT,
            title=title,
            slug=_unique_attachment_slug(repo, sanitize_title(title, fallback="attachment")),
            status="inherit",
            content=description,
            excerpt=caption,
            author_id=author_id,
            date=to_mysql(local),
            date_gmt=to_mysql(now),
            modified=to_mysql(local),
            modified_gmt=to_mysql(now),
            mime_type=mime_type,
            attachment=AttachmentFile(
                file=rel_path, filesize=len(data), width=width, height=height
            ),
            meta=meta,
        )
    )
    logger.info("Stored upload %s as attachment %s", rel_path, post.id)

    data_out = format_media(
        post, files=files, uploads_url=site.uploads_url, image_sizes=image_sizes, include_sizes=True
    )
    return MediaOutput(media=post, data=data_out, message="Media uploaded successfully.")


def _unique_attachment_slug(repo: PostRepoPort, base: str) -> str:
    slug = base
    suffix = 2
    while repo.slug_exists(slug, ATTACHMENT):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def run_upload(
    inp: UploadMediaInput,
    *,
    repo: PostRepoPort,
    files: FileStorePort,
    downloader: DownloaderPort,
    time: TimePort,
    site: SiteContext,
    uploads: UploadsRules,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaOutput:
    if is_empty(inp.file_data) and is_empty(inp.file_url):
        return _fail("missing_file", "File data or URL is required.", "file_data")

    if not is_empty(inp.file_url):
        return run_upload_from_url(
            inp,
            repo=repo,
            files=files,
            downloader=downloader,
            time=time,
            site=site,
            uploads=uploads,
            image_sizes=image_sizes,
        )

    try:
        data = base64.b64decode(to_text(inp.file_data))
    except (binascii.Error, ValueError):
        return _fail("invalid_file", "Invalid base64 file data.", "file_data")

    now = time.now_utc()
    raw_name = inp.filename if inp.filename is not None else f"upload-{int(now.timestamp())}"
    filename = sanitize_file_name(raw_name) or f"upload-{int(now.timestamp())}"

    return _store_upload(
        data,
        filename,
        title=sanitize_text_field(inp.title) if inp.title is not None else "",
        description=sanitize_textarea_field(inp.description),
        caption=sanitize_textarea_field(inp.caption),
        alt_text=sanitize_text_field(inp.alt_text),
        author_id=inp.acting_user_id,
        repo=repo,
        files=files,
        time=time,
        site=site,
        uploads=uploads,
        image_sizes=image_sizes,
    )


def run_upload_from_url(
    inp: UploadMediaInput,
    *,
    repo: PostRepoPort,
    files: FileStorePort,
    downloader: DownloaderPort,
    time: TimePort,
    site: SiteContext,
    uploads: UploadsRules,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaOutput:
    raw_url = inp.file_url if inp.file_url is not None else inp.url
    url = esc_url_raw(raw_url)
    if not url:
        return _fail("missing_url", "URL is required.", "file_url")

    try:
        data = downloader.download(
            url, uploads.download_timeout_seconds, uploads.max_upload_bytes
        )
    except DownloadTooLargeError:
        logger.warning("Download of %s exceeded %s bytes", url, uploads.max_upload_bytes)
        return _too_large(uploads, "file_url")
    except DownloadError as e:
        logger.warning("Download failed for %s: %s", url, e)
        return _fail("download_error", f"Failed to download file: {e}", "file_url", status=500)

    if inp.filename is not None:
        filename = sanitize_file_name(inp.filename)
    else:
        filename = sanitize_file_name(urlparse(url).path.rsplit("/", 1)[-1])
    if not filename or filename == "/":
        filename = f"upload-{int(time.now_utc().timestamp())}.jpg"

    return _store_upload(
        data,
        filename,
        title=sanitize_text_field(inp.title) if not is_empty(inp.title) else "",
        description=sanitize_textarea_field(inp.description),
        caption=sanitize_textarea_field(inp.caption),
        alt_text=sanitize_text_field(inp.alt_text),
        author_id=inp.acting_user_id,
        repo=repo,
        files=files,
        time=time,
        site=site,
        uploads=uploads,
        image_sizes=image_sizes,
    )


def run_update(
    inp: UpdateMediaInput,
    *,
    repo: PostRepoPort,
    files: FileStorePort,
    time: TimePort,
    site: SiteContext,
    image_sizes: dict[str, ImageSizeRule],
) -> MediaOutput:
    post = _get_attachment(repo, inp.media_id)
    if post is None:
        return _not_found()

    params = {k: v for k, v in inp.updates.items() if v is not None}
    updates: dict[str, Any] = {}

    if "title" in params:
        updates["title"] = sanitize_text_field(params["title"])
    if "description" in params:
        updates["content"] = sanitize_textarea_field(params["description"])
    if "caption" in params:
        updates["excerpt"] = sanitize_textarea_field(params["caption"])
    if "alt_text" in params:
        meta = dict(post.meta)
        meta[ALT_TEXT_META_KEY] = sanitize_text_field(params["alt_text"])
        updates["meta"] = meta

    if updates:
        now = time.now_utc()
        updates["modified"] = to_mysql(now.astimezone(site.tz))
        updates["modified_gmt"] = to_mysql(now)
        post = repo.save(post.model_copy(update=updates))

    data = format_media(
        post, files=files, uploads_url=site.uploads_url, image_sizes=image_sizes, include_sizes=True
    )
    return MediaOutput(media=post, data=data, message="Media updated successfully.")


def run_delete(
    inp: DeleteMediaInput, *, repo: PostRepoPort, files: FileStorePort
) -> MediaOutput:
    """Attachments are always deleted permanently, file included."""
    post = _get_attachment(repo, inp.media_id)
    if post is None:
        return _not_found()

    repo.delete(post.id)
    if post.attachment is not None:
        try:
            files.delete(post.attachment.file)
        except FileNotFoundError:
            logger.warning("Attachment %s file already missing: %s", post.id, post.attachment.file)

    logger.info("Deleted attachment %s", post.id)
    return MediaOutput(message="Media deleted successfully.")
