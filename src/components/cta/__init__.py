"""
CTA component - Forge call-to-action delivery and rendering.
"""

from ._impl import (
    CONTENT_DEFAULTS,
    KEYFRAMES_CSS,
    STYLE_DEFAULTS,
    CtaRenderer,
    apply_opacity_to_color,
    build_style_string,
    get_background_pattern,
    get_font_size,
    get_font_weight,
    get_shadow_style,
    css_value,
)
from .component import (
    CTA_CACHE_PREFIX,
    SITE_CTAS_CACHE_PREFIX,
    CtaPage,
    cache_key_for_slug,
    clear_cache,
    fetch_all_ctas,
    get_cta_by_slug,
    get_site_ctas,
    is_cta_ready,
    run_render_preview,
    run_test_api,
)
from .models import (
    ApiResponse,
    CtaActionOutput,
    CtaListOutput,
    CtaValidationError,
    PageOutput,
    RenderOutput,
    RenderPreviewInput,
    ShortcodeInput,
)
from .ports import CtaCachePort, ForgeApiError, ForgeApiPort

__all__ = [
    # Entry points
    "CtaPage",
    "clear_cache",
    "fetch_all_ctas",
    "get_cta_by_slug",
    "get_site_ctas",
    "run_render_preview",
    "run_test_api",
    # Rendering
    "CtaRenderer",
    "CONTENT_DEFAULTS",
    "STYLE_DEFAULTS",
    "KEYFRAMES_CSS",
    "apply_opacity_to_color",
    "build_style_string",
    "get_background_pattern",
    "get_font_size",
    "get_font_weight",
    "get_shadow_style",
    "css_value",
    # Helpers
    "CTA_CACHE_PREFIX",
    "SITE_CTAS_CACHE_PREFIX",
    "cache_key_for_slug",
    "is_cta_ready",
    # Models
    "ApiResponse",
    "CtaActionOutput",
    "CtaListOutput",
    "CtaValidationError",
    "PageOutput",
    "RenderOutput",
    "RenderPreviewInput",
    "ShortcodeInput",
    # Ports
    "CtaCachePort",
    "ForgeApiError",
    "ForgeApiPort",
]
