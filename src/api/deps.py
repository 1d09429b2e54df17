import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from fastapi import Depends, HTTPException, Request

from src.adapters.clock import SystemClock
from src.adapters.forge_client import HttpxDownloader, HttpxForgeApi
from src.adapters.fs.filestore import FileSystemStore
from src.adapters.sqlite.repos import (
    SQLiteConnectionStore,
    SQLitePostRepo,
    SQLiteTermRepo,
    SQLiteTransientCache,
    SQLiteUserRepo,
)
from src.components.auth import ValidateRequestInput, run_validate_request
from src.components.site import find_acting_user
from src.domain.entities import Author, SiteContext
from src.domain.policy import PolicyEngine
from src.rules.loader import default_rules_path, load_rules
from src.rules.models import Rules

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("FORGE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "forge.db")
        self.uploads_dir = self.data_dir / "uploads"
        self.rules_path = default_rules_path()
        self.migrations_dir = MIGRATIONS_DIR


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


def get_site_context(rules: Rules = Depends(get_rules)) -> SiteContext:
    home = rules.site.home.rstrip("/")
    return SiteContext(
        home=home,
        uploads_url=f"{home}/wp-content/uploads",
        timezone=rules.site.timezone,
    )


def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


# --- Repos ---
def get_connection_store(settings: Settings = Depends(get_settings)) -> SQLiteConnectionStore:
    return SQLiteConnectionStore(settings.db_path)


def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_post_repo(settings: Settings = Depends(get_settings)) -> SQLitePostRepo:
    return SQLitePostRepo(settings.db_path)


def get_term_repo(settings: Settings = Depends(get_settings)) -> SQLiteTermRepo:
    return SQLiteTermRepo(settings.db_path)


def get_file_store(settings: Settings = Depends(get_settings)) -> FileSystemStore:
    return FileSystemStore(str(settings.uploads_dir))


# --- Adapters ---
def get_clock() -> SystemClock:
    return SystemClock()


def get_cta_cache(
    settings: Settings = Depends(get_settings), clock: SystemClock = Depends(get_clock)
) -> SQLiteTransientCache:
    return SQLiteTransientCache(settings.db_path, clock)


@lru_cache
def get_forge_api() -> HttpxForgeApi:
    return HttpxForgeApi()


@lru_cache
def get_downloader() -> HttpxDownloader:
    return HttpxDownloader()


# --- Request parsing ---
async def get_request_params(request: Request) -> dict[str, Any]:
    """Query parameters overlaid with the JSON body, like the REST host merges them."""
    params: dict[str, Any] = dict(request.query_params)
    body = await request.body()
    if body.strip():
        try:
            data = json.loads(body)
        except ValueError as e:
            raise HTTPException(
                status_code=400,
                detail={"code": "rest_invalid_json", "message": "Invalid JSON body passed."},
            ) from e
        if isinstance(data, dict):
            params.update(data)
    return params


# --- Auth ---
def signed_path(request: Request, rules: Rules) -> str:
    """Route path without the REST root; this is what Forge signs."""
    path = request.url.path
    root = rules.api.rest_root.rstrip("/")
    if root and path.startswith(root + "/"):
        path = path[len(root) :]
    return path


async def require_forge_auth(
    request: Request,
    rules: Rules = Depends(get_rules),
    store: SQLiteConnectionStore = Depends(get_connection_store),
    clock: SystemClock = Depends(get_clock),
) -> None:
    body = await request.body()
    headers = request.headers
    result = run_validate_request(
        ValidateRequestInput(
            method=request.method,
            path=signed_path(request, rules),
            body=body,
            signature=headers.get(rules.auth.signature_header),
            timestamp=headers.get(rules.auth.timestamp_header),
            site_id=headers.get(rules.auth.site_id_header),
        ),
        store,
        clock,
        rules.auth,
    )
    if not result.success and result.error is not None:
        raise HTTPException(
            status_code=result.error.status,
            detail={"code": result.error.code, "message": result.error.message},
        )


def get_acting_user(
    _: None = Depends(require_forge_auth),
    users: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> Author | None:
    """The first administrator (or editor) that signed requests act as."""
    return find_acting_user(users, policy)
