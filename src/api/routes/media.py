from typing import Any

from fastapi import APIRouter, Depends

from src.adapters.clock import SystemClock
from src.adapters.forge_client import HttpxDownloader
from src.adapters.fs.filestore import FileSystemStore
from src.adapters.sqlite.repos import SQLitePostRepo
from src.api.deps import (
    get_acting_user,
    get_clock,
    get_downloader,
    get_file_store,
    get_post_repo,
    get_request_params,
    get_rules,
    get_site_context,
    require_forge_auth,
)
from src.api.errors import raise_for_errors
from src.components.media import (
    DeleteMediaInput,
    ListMediaInput,
    UpdateMediaInput,
    UploadMediaInput,
    run_delete,
    run_get,
    run_list,
    run_update,
    run_upload,
    run_upload_from_url,
)
from src.domain.entities import Author, SiteContext
from src.domain.sanitize import is_empty
from src.rules.models import Rules

router = APIRouter()

UPLOAD_FIELDS = (
    "file_data",
    "file_url",
    "url",
    "filename",
    "title",
    "description",
    "caption",
    "alt_text",
)


def _upload_input(params: dict[str, Any], acting_user: Author | None) -> UploadMediaInput:
    fields = {k: params[k] for k in UPLOAD_FIELDS if k in params}
    return UploadMediaInput(**fields, acting_user_id=acting_user.id if acting_user else 0)


@router.get("/media", dependencies=[Depends(require_forge_auth)])
def list_media(
    params: dict[str, Any] = Depends(get_request_params),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    defaults = ListMediaInput()
    inp = ListMediaInput(
        per_page=params.get("per_page", defaults.per_page),
        page=params.get("page", defaults.page),
        media_type=params.get("media_type", defaults.media_type),
        search=params.get("search", defaults.search),
    )
    result = run_list(
        inp,
        repo=repo,
        files=files,
        site=site,
        uploads=rules.uploads,
        image_sizes=rules.content.image_sizes,
    )
    return {
        "success": True,
        "media": result.media,
        "total": result.total,
        "total_pages": result.total_pages,
        "page": result.page,
        "per_page": result.per_page,
    }


@router.post("/media")
def upload_media(
    params: dict[str, Any] = Depends(get_request_params),
    acting_user: Author | None = Depends(get_acting_user),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
    downloader: HttpxDownloader = Depends(get_downloader),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    """Upload base64 ``file_data``; a ``file_url`` is fetched instead."""
    result = run_upload(
        _upload_input(params, acting_user),
        repo=repo,
        files=files,
        downloader=downloader,
        time=clock,
        site=site,
        uploads=rules.uploads,
        image_sizes=rules.content.image_sizes,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message, "media": result.data}


@router.post("/media/upload-from-url")
def upload_media_from_url(
    params: dict[str, Any] = Depends(get_request_params),
    acting_user: Author | None = Depends(get_acting_user),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
    downloader: HttpxDownloader = Depends(get_downloader),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_upload_from_url(
        _upload_input(params, acting_user),
        repo=repo,
        files=files,
        downloader=downloader,
        time=clock,
        site=site,
        uploads=rules.uploads,
        image_sizes=rules.content.image_sizes,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message, "media": result.data}


@router.get("/media/{media_id}", dependencies=[Depends(require_forge_auth)])
def get_media(
    media_id: int,
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_get(
        media_id, repo=repo, files=files, site=site, image_sizes=rules.content.image_sizes
    )
    raise_for_errors(result.errors)
    return {"success": True, "media": result.data}


@router.api_route(
    "/media/{media_id}", methods=["PUT", "PATCH"], dependencies=[Depends(require_forge_auth)]
)
def update_media(
    media_id: int,
    params: dict[str, Any] = Depends(get_request_params),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_update(
        UpdateMediaInput(media_id=media_id, updates=params),
        repo=repo,
        files=files,
        time=clock,
        site=site,
        image_sizes=rules.content.image_sizes,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message, "media": result.data}


@router.delete("/media/{media_id}", dependencies=[Depends(require_forge_auth)])
def delete_media(
    media_id: int,
    params: dict[str, Any] = Depends(get_request_params),
    repo: SQLitePostRepo = Depends(get_post_repo),
    files: FileSystemStore = Depends(get_file_store),
) -> dict[str, Any]:
    result = run_delete(
        DeleteMediaInput(media_id=media_id, force=not is_empty(params.get("force"))),
        repo=repo,
        files=files,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message}
