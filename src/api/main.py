import logging
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_rules, get_settings
from src.api.errors import http_exception_handler, validation_exception_handler
from src.app_shell.config import OpsConfigError, validate_ops_rules
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, check the environment and migrate before serving (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except (FileNotFoundError, ValueError, OpsConfigError, RuntimeError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="Forge Connector",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.middleware("http")
async def no_cache_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Forge responses must never be cached by the host or a proxy."""
    response = await call_next(request)
    rules = get_rules(get_settings())
    prefix = f"{rules.api.rest_root.rstrip('/')}/{rules.api.namespace}"
    if request.url.path.startswith(prefix):
        response.headers.update(rules.api.no_cache_headers)
    return response


# --- Routers ---
from src.api.routes import cta, forge, media, posts, uploads  # noqa: E402

NAMESPACE_PREFIX = "/wp-json/forge/v1"

app.include_router(forge.router, prefix=NAMESPACE_PREFIX, tags=["Forge"])
app.include_router(posts.router, prefix=NAMESPACE_PREFIX, tags=["Posts"])
app.include_router(media.router, prefix=NAMESPACE_PREFIX, tags=["Media"])
app.include_router(cta.router, prefix=NAMESPACE_PREFIX, tags=["CTA"])
app.include_router(cta.public_router, prefix="", tags=["CTA Public"])
app.include_router(uploads.router, prefix="", tags=["Uploads"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "forge-connector"}
