"""Connection, site and taxonomy routes of the forge/v1 namespace."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import (
    SQLiteConnectionStore,
    SQLitePostRepo,
    SQLiteTermRepo,
    SQLiteUserRepo,
)
from src.api.deps import (
    get_clock,
    get_connection_store,
    get_policy,
    get_post_repo,
    get_rules,
    get_site_context,
    get_term_repo,
    get_user_repo,
    require_forge_auth,
)
from src.api.errors import raise_for_errors
from src.api.schemas import CategoryCreateRequest, ConnectRequest, TagCreateRequest
from src.components.auth import (
    ConnectInput,
    ConnectPermissionInput,
    run_check_connect_permission,
    run_connect,
    run_disconnect,
    run_status,
)
from src.components.site import (
    fetch_all_users,
    fetch_post_statuses,
    fetch_post_types,
    get_site_info,
    run_sync,
)
from src.components.taxonomy import (
    CATEGORY,
    TAG,
    CreateCategoryInput,
    CreateTagInput,
    format_term,
    run_create_category,
    run_create_tag,
    run_list_terms,
)
from src.domain.entities import SiteContext
from src.domain.policy import PolicyEngine
from src.domain.sanitize import leading_int, sanitize_text_field, to_text
from src.rules.models import Rules

router = APIRouter()


def _site_info(rules: Rules) -> dict[str, Any]:
    return get_site_info(rules.site, rules.project.plugin_version).as_dict()


# --- Connection ---


@router.post("/connect")
def connect(
    req: ConnectRequest,
    rules: Rules = Depends(get_rules),
    store: SQLiteConnectionStore = Depends(get_connection_store),
    clock: SystemClock = Depends(get_clock),
    site: SiteContext = Depends(get_site_context),
) -> dict[str, Any]:
    """Initial handshake; a connected site only accepts its own key."""
    provided_key = sanitize_text_field(req.connection_key)

    permission = run_check_connect_permission(ConnectPermissionInput(provided_key), store)
    if not permission.success and permission.error is not None:
        raise HTTPException(
            status_code=permission.error.status,
            detail={"code": permission.error.code, "message": permission.error.message},
        )

    result = run_connect(
        ConnectInput(
            connection_key=provided_key,
            forge_site_id=sanitize_text_field(req.forge_site_id) or None,
        ),
        store,
        clock,
        rules.auth,
        site.tz,
    )
    if result.error is not None:
        raise HTTPException(
            status_code=result.error.status,
            detail={"code": result.error.code, "message": result.error.message},
        )

    return {"success": True, "message": result.message, "site": _site_info(rules)}


@router.get("/status", dependencies=[Depends(require_forge_auth)])
def status(
    rules: Rules = Depends(get_rules),
    store: SQLiteConnectionStore = Depends(get_connection_store),
) -> dict[str, Any]:
    return {"success": True, "status": run_status(store).as_dict(), "site": _site_info(rules)}


@router.post("/disconnect", dependencies=[Depends(require_forge_auth)])
def disconnect(store: SQLiteConnectionStore = Depends(get_connection_store)) -> dict[str, Any]:
    result = run_disconnect(store)
    return {"success": True, "message": result.message}


# --- Site data ---


@router.get("/sync", dependencies=[Depends(require_forge_auth)])
def sync(
    rules: Rules = Depends(get_rules),
    users: SQLiteUserRepo = Depends(get_user_repo),
    terms: SQLiteTermRepo = Depends(get_term_repo),
    posts: SQLitePostRepo = Depends(get_post_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    """Everything Forge mirrors about the site in one payload."""
    return run_sync(
        site=rules.site,
        plugin_version=rules.project.plugin_version,
        content=rules.content,
        users=users,
        terms=terms,
        posts=posts,
        policy=policy,
    ).as_dict()


@router.get("/users", dependencies=[Depends(require_forge_auth)])
def list_users(
    users: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    return {"success": True, "users": fetch_all_users(users, policy)}


@router.get("/post-types", dependencies=[Depends(require_forge_auth)])
def list_post_types(
    rules: Rules = Depends(get_rules),
    posts: SQLitePostRepo = Depends(get_post_repo),
) -> dict[str, Any]:
    return {"success": True, "post_types": fetch_post_types(rules.content, posts)}


@router.get("/post-statuses", dependencies=[Depends(require_forge_auth)])
def list_post_statuses(rules: Rules = Depends(get_rules)) -> dict[str, Any]:
    return {"success": True, "post_statuses": fetch_post_statuses(rules.content)}


# --- Taxonomy ---


@router.get("/categories", dependencies=[Depends(require_forge_auth)])
def list_categories(terms: SQLiteTermRepo = Depends(get_term_repo)) -> dict[str, Any]:
    return {"success": True, "categories": run_list_terms(CATEGORY, terms)}


@router.post("/categories", dependencies=[Depends(require_forge_auth)])
def create_category(
    req: CategoryCreateRequest,
    terms: SQLiteTermRepo = Depends(get_term_repo),
) -> dict[str, Any]:
    result = run_create_category(
        CreateCategoryInput(
            name=req.name or "",
            description=req.description or "",
            parent=leading_int(to_text(req.parent)),
        ),
        terms,
    )
    raise_for_errors(result.errors)
    assert result.term is not None
    return {"success": True, "category": format_term(result.term)}


@router.get("/tags", dependencies=[Depends(require_forge_auth)])
def list_tags(terms: SQLiteTermRepo = Depends(get_term_repo)) -> dict[str, Any]:
    return {"success": True, "tags": run_list_terms(TAG, terms)}


@router.post("/tags", dependencies=[Depends(require_forge_auth)])
def create_tag(
    req: TagCreateRequest,
    terms: SQLiteTermRepo = Depends(get_term_repo),
) -> dict[str, Any]:
    result = run_create_tag(
        CreateTagInput(name=req.name or "", description=req.description or "", slug=req.slug),
        terms,
    )
    raise_for_errors(result.errors)
    assert result.term is not None
    return {"success": True, "tag": format_term(result.term)}
