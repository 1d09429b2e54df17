"""
CTA component - fetch, cache and render Forge call-to-action widgets.

CTAs are authored in Forge and pulled over its API:
- single CTAs by slug for ``[forge_cta id="..."]`` placements
- site-wide CTAs (floating bars, popups) for the page footer

Responses are cached for a few minutes. A CtaPage tracks which CTAs one page
has already rendered so a site-wide CTA placed inline is not repeated.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any
from urllib.parse import quote_plus

from src.domain.entities import ConnectionSettings
from src.domain.sanitize import esc_html, is_empty, to_text
from src.rules.models import CtaRules

from ._impl import CtaRenderer
from .models import (
    CtaActionOutput,
    CtaListOutput,
    CtaValidationError,
    PageOutput,
    RenderOutput,
    RenderPreviewInput,
    ShortcodeInput,
)
from .ports import CtaCachePort, ForgeApiError, ForgeApiPort

logger = logging.getLogger(__name__)

CTA_CACHE_PREFIX = "forge_cta_"
SITE_CTAS_CACHE_PREFIX = "forge_site_ctas_"


def cache_key_for_slug(slug: str) -> str:
    return CTA_CACHE_PREFIX + hashlib.md5(slug.encode("utf-8")).hexdigest()


def is_cta_ready(settings: ConnectionSettings) -> bool:
    """CTAs need a connection and a pinned site ID."""
    return settings.connected and bool(settings.forge_site_id)


def _api_headers(settings: ConnectionSettings) -> dict[str, str]:
    return {
        "X-Forge-Site-Id": settings.forge_site_id or "",
        "X-Forge-Connection-Key": settings.connection_key,
    }


def _api_base(rules: CtaRules) -> str:
    return rules.api_url.rstrip("/")


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _encode_for_script(value: Any) -> str:
    return json.dumps(value, separators=(",", ":")).replace("/", "\\/")


# --- Fetching ---


def get_cta_by_slug(
    slug: str,
    settings: ConnectionSettings,
    rules: CtaRules,
    cache: CtaCachePort,
    api: ForgeApiPort,
) -> dict[str, Any] | None:
    """One CTA record; None when the API fails or does not know the slug."""
    cache_key = cache_key_for_slug(slug)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    url = f"{_api_base(rules)}/ctas/slug/{quote_plus(slug)}"
    try:
        response = api.get(url, _api_headers(settings), rules.request_timeout_seconds)
    except ForgeApiError as exc:
        logger.warning("CTA fetch failed for slug %s: %s", slug, exc)
        return None

    cta = _decode(response.text)
    if not isinstance(cta, dict) or not cta or cta.get("error") is not None:
        return None

    cache.set(cache_key, cta, rules.cache_ttl_seconds)
    return cta


def get_site_ctas(
    settings: ConnectionSettings,
    rules: CtaRules,
    cache: CtaCachePort,
    api: ForgeApiPort,
) -> list[dict[str, Any]]:
    """Site-wide CTAs. HTTP errors cache an empty list, transport errors do not."""
    cache_key = SITE_CTAS_CACHE_PREFIX + (settings.forge_site_id or "")
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    url = f"{_api_base(rules)}/ctas/wordpress"
    try:
        response = api.get(url, _api_headers(settings), rules.request_timeout_seconds)
    except ForgeApiError as exc:
        logger.warning("Site CTA fetch failed: %s", exc)
        return []

    data = _decode(response.text)
    ctas = data.get("ctas") if isinstance(data, dict) else None
    if isinstance(ctas, dict):
        ctas = list(ctas.values())
    if not isinstance(ctas, list):
        ctas = []

    cache.set(cache_key, ctas, rules.cache_ttl_seconds)
    return ctas


# --- Operator actions ---


def fetch_all_ctas(
    settings: ConnectionSettings, rules: CtaRules, api: ForgeApiPort
) -> CtaListOutput:
    """Every CTA of the site, inline and site-wide."""
    url = f"{_api_base(rules)}/ctas/wordpress/all"
    try:
        response = api.get(url, _api_headers(settings), rules.admin_timeout_seconds)
    except ForgeApiError as exc:
        return CtaListOutput(
            errors=[CtaValidationError("api_error", str(exc), status=502)], success=False
        )

    data = _decode(response.text)
    if response.status_code != 200:
        message = data.get("error") if isinstance(data, dict) else None
        if message is None:
            message = f"API returned status {response.status_code}"
        return CtaListOutput(
            errors=[CtaValidationError("api_error", to_text(message), status=502)],
            success=False,
        )

    ctas = data.get("ctas") if isinstance(data, dict) else None
    return CtaListOutput(ctas=ctas if isinstance(ctas, list) else [])


def clear_cache(cache: CtaCachePort) -> CtaActionOutput:
    cleared = cache.delete_prefix(CTA_CACHE_PREFIX) + cache.delete_prefix(SITE_CTAS_CACHE_PREFIX)
    logger.info("Cleared %d cached CTA entries", cleared)
    return CtaActionOutput(message="Cache cleared!", cleared=cleared)


def run_test_api(
    settings: ConnectionSettings,
    rules: CtaRules,
    cache: CtaCachePort,
    api: ForgeApiPort,
) -> CtaActionOutput:
    """Probe the site CTA endpoint; a healthy API also clears the cache."""
    if not settings.forge_site_id:
        return CtaActionOutput(
            errors=[
                CtaValidationError(
                    "missing_site_id", "Site ID not configured. Try syncing from Forge first."
                )
            ],
            success=False,
        )

    url = f"{_api_base(rules)}/ctas/wordpress"
    try:
        response = api.get(url, _api_headers(settings), rules.admin_timeout_seconds)
    except ForgeApiError as exc:
        return CtaActionOutput(
            errors=[CtaValidationError("api_error", str(exc), status=502)], success=False
        )

    if response.status_code == 200:
        cleared = clear_cache(cache).cleared
        return CtaActionOutput(message="API connection successful! Cache cleared.", cleared=cleared)

    data = _decode(response.text)
    message = data.get("error") if isinstance(data, dict) else None
    if message is None:
        message = f"HTTP {response.status_code}"
    return CtaActionOutput(
        errors=[CtaValidationError("api_error", to_text(message), status=502)], success=False
    )


def run_render_preview(inp: RenderPreviewInput) -> RenderOutput:
    """Render a supplied CTA record as it would appear on a page."""
    if not isinstance(inp.cta, dict):
        return RenderOutput(
            errors=[CtaValidationError("invalid_cta", "CTA must be an object.", field="cta")],
            success=False,
        )

    renderer = CtaRenderer()
    html = renderer.render(inp.cta)
    return RenderOutput(html=renderer.keyframes() + html)


# --- Page session ---


class CtaPage:
    """
    Rendering state for a single page view.

    Inline placements are rendered first; the footer then adds site-wide CTAs
    that were not already placed, the list of loaded CTAs for the tracker,
    and the keyframes block when any widget animates.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        rules: CtaRules,
        cache: CtaCachePort,
        api: ForgeApiPort,
    ):
        self.settings = settings
        self.rules = rules
        self.cache = cache
        self.api = api
        self.renderer = CtaRenderer()
        self.loaded: dict[str, dict[str, Any]] = {}

    def render_shortcode(self, inp: ShortcodeInput) -> str:
        debug = not is_empty(inp.debug) or self.rules.debug

        if is_empty(inp.id):
            return "<!-- Forge CTA: No ID specified -->"

        slug = to_text(inp.id)
        settings = self.settings

        if not is_cta_ready(settings):
            if debug:
                site_id = "(not set)" if settings.forge_site_id is None else settings.forge_site_id
                return (
                    '<div style="padding:20px;background:#fee;border:1px solid #c00;'
                    'margin:10px 0;font-size:12px;">'
                    "<strong>Forge CTA Debug:</strong> Connection issue<br>"
                    f"connected: {'true' if settings.connected else 'false'}<br>"
                    f"forge_site_id: {esc_html(site_id)}<br>"
                    f"connection_key: {'(set)' if settings.connection_key else '(not set)'}<br>"
                    "<br><strong>Fix:</strong> Try disconnecting and reconnecting "
                    "in the Forge Connector settings."
                    "</div>"
                )
            return "<!-- Forge CTA: Not connected to Forge -->"

        debug_output = ""
        if debug:
            debug_output += (
                '<div style="padding:20px;background:#eff;border:1px solid #09c;'
                'margin:10px 0;font-size:12px;">'
                "<strong>Forge CTA Debug:</strong><br>"
                f"Slug: {esc_html(slug)}<br>"
                f"Site ID: {esc_html(settings.forge_site_id)}<br>"
            )

        cta = get_cta_by_slug(slug, settings, self.rules, self.cache, self.api)

        if cta is None:
            if debug:
                api_url = f"{_api_base(self.rules)}/ctas/slug/{slug}"
                debug_output += (
                    'Status: <span style="color:red;">CTA not found</span><br>'
                    f"API URL: {esc_html(api_url)}<br>"
                    "</div>"
                )
                return debug_output
            return f"<!-- Forge CTA: CTA not found for slug: {esc_html(slug)} -->"

        if debug:
            content = cta.get("content") if isinstance(cta.get("content"), dict) else {}
            headline = content.get("headline")
            button = content.get("button_text")
            debug_output += (
                'Status: <span style="color:green;">Found</span><br>'
                f"CTA ID: {esc_html(cta.get('id'))}<br>"
                f"Type: {esc_html(cta.get('type'))}<br>"
                f"Headline: {esc_html('(empty)' if headline is None else headline)}<br>"
                f"Button: {esc_html('(empty)' if button is None else button)}<br>"
                "</div>"
            )

        self.loaded[to_text(cta.get("id"))] = cta
        return debug_output + self.renderer.render(cta)

    def render_site_ctas(self) -> str:
        """Site-wide CTAs not yet on the page, then the loaded-CTA list."""
        if not is_cta_ready(self.settings):
            return ""

        ctas = get_site_ctas(self.settings, self.rules, self.cache, self.api)
        if not ctas:
            return ""

        html = ""
        for cta in ctas:
            if not isinstance(cta, dict):
                continue
            key = to_text(cta.get("id"))
            if key not in self.loaded:
                self.loaded[key] = cta
                html += self.renderer.render(cta)

        html += (
            "<script>window.forgeCTAsLoaded = "
            f"{_encode_for_script(list(self.loaded.values()))};</script>"
        )
        return html

    def render_tracker(self) -> str:
        """Tracker configuration and script tag."""
        if not is_cta_ready(self.settings):
            return ""

        config = {
            "apiUrl": self.rules.api_url,
            "siteId": self.settings.forge_site_id,
            "debug": self.rules.debug,
        }
        html = f"<script>window.forgeCTA = {_encode_for_script(config)};</script>"
        if self.rules.tracker_script_url:
            html += f'<script src="{esc_html(self.rules.tracker_script_url)}"></script>'
        return html

    def render_footer(self) -> str:
        """Site CTAs, tracker, then keyframes for every animation rendered on the page."""
        html = self.render_site_ctas() + self.render_tracker()
        return html + self.renderer.keyframes()

    def render_page(self, placements: list[ShortcodeInput]) -> PageOutput:
        shortcodes = [self.render_shortcode(p) for p in placements]
        return PageOutput(shortcodes=shortcodes, footer=self.render_footer())
