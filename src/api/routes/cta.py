"""CTA routes: signed preview/cache endpoints and the public front-end renderers."""

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse

from src.adapters.forge_client import HttpxForgeApi
from src.adapters.sqlite.repos import SQLiteConnectionStore, SQLiteTransientCache
from src.api.deps import (
    get_connection_store,
    get_cta_cache,
    get_forge_api,
    get_rules,
    require_forge_auth,
)
from src.api.errors import raise_for_errors
from src.api.schemas import CtaPageRequest, CtaPageResponse, CtaRenderRequest
from src.components.cta import (
    CtaPage,
    RenderPreviewInput,
    ShortcodeInput,
    clear_cache,
    run_render_preview,
)
from src.rules.models import Rules

TRACKER_SCRIPT_PATH = Path(__file__).resolve().parents[3] / "static" / "cta-tracker.js"
TRACKER_CACHE_CONTROL = "public, max-age=3600"

router = APIRouter()
public_router = APIRouter()


def get_cta_page(
    rules: Rules = Depends(get_rules),
    store: SQLiteConnectionStore = Depends(get_connection_store),
    cache: SQLiteTransientCache = Depends(get_cta_cache),
    api: HttpxForgeApi = Depends(get_forge_api),
) -> CtaPage:
    return CtaPage(store.get(), rules.cta, cache, api)


# --- Namespace (signed) ---


@router.post("/cta/render", dependencies=[Depends(require_forge_auth)])
def render_cta(req: CtaRenderRequest) -> dict[str, Any]:
    """Preview a CTA record exactly as a page would show it."""
    result = run_render_preview(RenderPreviewInput(cta=req.cta))
    raise_for_errors(result.errors)
    return {"success": True, "html": result.html}


@router.post("/cta/cache/clear", dependencies=[Depends(require_forge_auth)])
def clear_cta_cache(cache: SQLiteTransientCache = Depends(get_cta_cache)) -> dict[str, Any]:
    result = clear_cache(cache)
    return {"success": True, "message": result.message, "cleared": result.cleared}


# --- Public ---


@public_router.get("/forge-cta/{slug}", response_class=HTMLResponse)
def render_shortcode(
    slug: str, debug: str = "", page: CtaPage = Depends(get_cta_page)
) -> HTMLResponse:
    html = page.render_shortcode(ShortcodeInput(id=slug, debug=debug))
    return HTMLResponse(page.renderer.keyframes() + html)


@public_router.post("/forge-cta/page", response_model=CtaPageResponse)
def render_page(req: CtaPageRequest, page: CtaPage = Depends(get_cta_page)) -> CtaPageResponse:
    """Render every placement of one page view, then its footer."""
    output = page.render_page([ShortcodeInput(id=s.id, debug=s.debug) for s in req.shortcodes])
    return CtaPageResponse(shortcodes=output.shortcodes, footer=output.footer)


@public_router.get("/forge-cta-footer", response_class=HTMLResponse)
def render_footer(page: CtaPage = Depends(get_cta_page)) -> HTMLResponse:
    return HTMLResponse(page.render_footer())


@public_router.get("/forge-cta-tracker.js")
def tracker_script() -> FileResponse:
    """Impression/click tracking and close buttons for rendered CTAs."""
    return FileResponse(
        TRACKER_SCRIPT_PATH,
        media_type="application/javascript",
        headers={"Cache-Control": TRACKER_CACHE_CONTROL},
    )
