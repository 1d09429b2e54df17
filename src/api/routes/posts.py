from typing import Any

from fastapi import APIRouter, Depends

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLitePostRepo, SQLiteTermRepo, SQLiteUserRepo
from src.api.deps import (
    get_acting_user,
    get_clock,
    get_post_repo,
    get_request_params,
    get_rules,
    get_site_context,
    get_term_repo,
    get_user_repo,
    require_forge_auth,
)
from src.api.errors import raise_for_errors
from src.components.posts import (
    CreatePostInput,
    DeletePostInput,
    ListPostsInput,
    UpdatePostInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_update,
    run_verify,
)
from src.domain.entities import Author, SiteContext
from src.domain.sanitize import is_empty
from src.rules.models import Rules

router = APIRouter()

CREATE_FIELDS = (
    "title",
    "content",
    "excerpt",
    "status",
    "post_type",
    "author",
    "slug",
    "date",
    "categories",
    "tags",
    "featured_media",
    "meta",
)


@router.get("/posts", dependencies=[Depends(require_forge_auth)])
def list_posts(
    params: dict[str, Any] = Depends(get_request_params),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    terms: SQLiteTermRepo = Depends(get_term_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    defaults = ListPostsInput()
    inp = ListPostsInput(
        post_type=params.get("post_type", defaults.post_type),
        status=params.get("status", defaults.status),
        per_page=params.get("per_page", defaults.per_page),
        page=params.get("page", defaults.page),
        search=params.get("search", defaults.search),
        orderby=params.get("orderby", defaults.orderby),
        order=params.get("order", defaults.order),
    )
    result = run_list(inp, repo=repo, terms=terms, users=users, site=site, rules=rules.content)
    return {
        "success": True,
        "posts": result.posts,
        "total": result.total,
        "total_pages": result.total_pages,
        "page": result.page,
        "per_page": result.per_page,
    }


@router.post("/posts")
def create_post(
    params: dict[str, Any] = Depends(get_request_params),
    acting_user: Author | None = Depends(get_acting_user),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    terms: SQLiteTermRepo = Depends(get_term_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    fields = {k: params[k] for k in CREATE_FIELDS if k in params and params[k] is not None}
    inp = CreatePostInput(**fields, acting_user_id=acting_user.id if acting_user else 0)
    result = run_create(
        inp, repo=repo, terms=terms, users=users, time=clock, site=site, rules=rules.content
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message, "post": result.data}


@router.get("/posts/{post_id}", dependencies=[Depends(require_forge_auth)])
def get_post(
    post_id: int,
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    terms: SQLiteTermRepo = Depends(get_term_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_get(post_id, repo=repo, terms=terms, users=users, site=site, rules=rules.content)
    raise_for_errors(result.errors)
    return {"success": True, "post": result.data}


@router.api_route(
    "/posts/{post_id}", methods=["PUT", "PATCH"], dependencies=[Depends(require_forge_auth)]
)
def update_post(
    post_id: int,
    params: dict[str, Any] = Depends(get_request_params),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    terms: SQLiteTermRepo = Depends(get_term_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_update(
        UpdatePostInput(post_id=post_id, updates=params),
        repo=repo,
        terms=terms,
        users=users,
        time=clock,
        site=site,
        rules=rules.content,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message, "post": result.data}


@router.delete("/posts/{post_id}", dependencies=[Depends(require_forge_auth)])
def delete_post(
    post_id: int,
    params: dict[str, Any] = Depends(get_request_params),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    result = run_delete(
        DeletePostInput(post_id=post_id, force=not is_empty(params.get("force"))),
        repo=repo,
        time=clock,
        site=site,
        rules=rules.content,
    )
    raise_for_errors(result.errors)
    return {"success": True, "message": result.message}


@router.get("/posts/{post_id}/verify", dependencies=[Depends(require_forge_auth)])
def verify_post(
    post_id: int,
    repo: SQLitePostRepo = Depends(get_post_repo),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    return {"success": True, **run_verify(post_id, repo=repo, site=site).as_dict()}
