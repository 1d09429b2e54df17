"""
CtaRenderer - deterministic HTML/CSS for Forge call-to-action widgets.

The markup must match the Forge editor preview exactly, so style maps keep
their declaration order and numbers render the way the editor prints them
(100/100 -> "1", 150/100 -> "1.5").

Key behaviors:
- Content and style are merged over fixed defaults (explicit nulls win)
- Three layouts: banner (inline), floating-bar (fixed), popup (modal)
- Every widget is isolated with ``all:initial`` and scoped by data-cta-id
- Text is HTML-escaped, URLs go through esc_url
- Keyframes are emitted once per page when any animation was used
"""

from __future__ import annotations

import re
from typing import Any

from src.domain.sanitize import esc_attr, esc_html, esc_url, is_empty, to_text

# --- Defaults ---

CONTENT_DEFAULTS: dict[str, Any] = {
    "headline": "",
    "text": "",
    "eyebrow_text": "",
    "button_text": "",
    "button_url": "#",
    "button_style": "solid",
    "button_icon": "",
    "button_icon_position": "left",
    "secondary_button_text": "",
    "secondary_button_url": "#",
    "secondary_button_style": "outline",
    "show_close_button": False,
    "fine_print": "",
    "phone": "",
    "show_phone_icon": True,
    "image_url": "",
    "image_position": "top",
    "image_alt": "",
    "image_scale": 100,
    "image_fit": "cover",
    "is_lead_magnet": False,
    "lead_magnet_title": "",
}

STYLE_DEFAULTS: dict[str, Any] = {
    "background": "#ffffff",
    "text_color": "#374151",
    "headline_color": "#111827",
    "headline_size": "lg",
    "headline_weight": "semibold",
    "text_size": "sm",
    "text_align": "left",
    "button_bg": "#2563eb",
    "button_text_color": "#ffffff",
    "button_hover_bg": "#1d4ed8",
    "button_radius": 6,
    "button_border_color": "",
    "secondary_button_bg": "transparent",
    "secondary_button_text_color": "#2563eb",
    "secondary_button_border_color": "#2563eb",
    "border_color": "#e5e7eb",
    "border_width": 0,
    "border_radius": 8,
    "padding": 24,
    "padding_x": None,
    "padding_y": None,
    "gap": 12,
    "shadow": "md",
    "shadow_offset_x": 0,
    "shadow_offset_y": 4,
    "shadow_blur": 12,
    "shadow_color": "rgba(0, 0, 0, 0.15)",
    "layout": "horizontal",
    "animation": "none",
    "custom_css": "",
    "bg_pattern": "none",
    "bg_pattern_opacity": 10,
    "bg_pattern_color": "#000000",
}

# --- Lookup tables ---

FONT_SIZES = {
    "xs": "12px",
    "sm": "14px",
    "base": "16px",
    "lg": "18px",
    "xl": "20px",
    "2xl": "24px",
    "3xl": "30px",
}

FONT_WEIGHTS = {
    "normal": "400",
    "medium": "500",
    "semibold": "600",
    "bold": "700",
}

SHADOW_PRESETS = {
    "none": "",
    "sm": "0 1px 2px 0 rgba(0, 0, 0, 0.05)",
    "md": "0 4px 6px -1px rgba(0, 0, 0, 0.1), 0 2px 4px -2px rgba(0, 0, 0, 0.1)",
    "lg": "0 10px 15px -3px rgba(0, 0, 0, 0.1), 0 4px 6px -4px rgba(0, 0, 0, 0.1)",
    "xl": "0 20px 25px -5px rgba(0, 0, 0, 0.1), 0 8px 10px -6px rgba(0, 0, 0, 0.1)",
}

ANIMATIONS = {
    "fade": "forgeFadeIn 0.3s ease-out",
    "slide-up": "forgeSlideUp 0.3s ease-out",
    "slide-down": "forgeSlideDown 0.3s ease-out",
    "scale": "forgeScale 0.3s ease-out",
}

KEYFRAMES_CSS = (
    "<style>"
    "@keyframes forgeFadeIn { from { opacity: 0; } to { opacity: 1; } }\n"
    "@keyframes forgeSlideUp { from { opacity: 0; transform: translateY(20px); } "
    "to { opacity: 1; transform: translateY(0); } }\n"
    "@keyframes forgeSlideDown { from { opacity: 0; transform: translateY(-20px); } "
    "to { opacity: 1; transform: translateY(0); } }\n"
    "@keyframes forgeScale { from { opacity: 0; transform: scale(0.95); } "
    "to { opacity: 1; transform: scale(1); } }"
    "</style>"
)

PATTERN_SIZES = {
    "dots": "20px 20px",
    "grid": "20px 20px, 20px 20px",
    "diagonal-lines": "auto",
}

FONT_STACK = (
    '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif'
)

DOWNLOAD_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16" viewBox="0 0 24 24" '
    'fill="none" stroke="{color}" stroke-width="2" stroke-linecap="round" '
    'stroke-linejoin="round" style="flex-shrink:0;">'
    '<path d="M21 15v4a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2v-4"></path>'
    '<polyline points="7 10 12 15 17 10"></polyline>'
    '<line x1="12" y1="15" x2="12" y2="3"></line></svg>'
)

PHONE_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16" viewBox="0 0 24 24" '
    'fill="none" stroke="{color}" stroke-width="2" stroke-linecap="round" '
    'stroke-linejoin="round" style="flex-shrink:0;">'
    '<path d="M22 16.92v3a2 2 0 0 1-2.18 2 19.79 19.79 0 0 1-8.63-3.07 19.5 19.5 0 0 1-6-6 '
    "19.79 19.79 0 0 1-3.07-8.67A2 2 0 0 1 4.11 2h3a2 2 0 0 1 2 1.72 12.84 12.84 0 0 0 "
    ".7 2.81 2 2 0 0 1-.45 2.11L8.09 9.91a16 16 0 0 0 6 6l1.27-1.27a2 2 0 0 1 2.11-.45 "
    '12.84 12.84 0 0 0 2.81.7A2 2 0 0 1 22 16.92z"></path></svg> '
)

# --- Value helpers ---

_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def css_value(value: Any) -> str:
    """Render a scalar the way it is printed into CSS (1.0 -> "1", None -> "")."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def to_number(value: Any) -> int | float:
    """Leading numeric value of a scalar; 0 when there is none."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    match = _NUMBER_RE.match(to_text(value))
    if not match:
        return 0
    text = match.group(0)
    try:
        return int(text)
    except ValueError:
        return float(text)


def percent(value: Any) -> int | float:
    """value / 100, integral results collapse to int."""
    result = to_number(value) / 100
    return int(result) if float(result).is_integer() else result


def coalesce(values: dict[str, Any], key: str, default: Any) -> Any:
    value = values.get(key)
    return default if value is None else value


def merge_defaults(defaults: dict[str, Any], values: Any) -> dict[str, Any]:
    merged = dict(defaults)
    if isinstance(values, dict):
        merged.update(values)
    return merged


def build_style_string(styles: dict[str, Any]) -> str:
    """Join ``prop:value`` pairs with ";", skipping "" and None values."""
    parts = [
        f"{prop}:{css_value(value)}" for prop, value in styles.items() if value not in ("", None)
    ]
    return ";".join(parts)


def _style_attr(styles: dict[str, Any]) -> str:
    return esc_attr(build_style_string(styles))


def get_font_size(size: Any) -> str:
    return FONT_SIZES.get(css_value(size), FONT_SIZES["base"])


def get_font_weight(weight: Any) -> str:
    return FONT_WEIGHTS.get(css_value(weight), FONT_WEIGHTS["semibold"])


def get_shadow_style(style: dict[str, Any]) -> str:
    shadow = css_value(coalesce(style, "shadow", "md"))
    if shadow == "none":
        return ""

    custom_keys = ("shadow_offset_x", "shadow_offset_y", "shadow_blur", "shadow_color")
    if any(style.get(key) is not None for key in custom_keys):
        x = css_value(coalesce(style, "shadow_offset_x", 0))
        y = css_value(coalesce(style, "shadow_offset_y", 4))
        blur = css_value(coalesce(style, "shadow_blur", 12))
        color = css_value(coalesce(style, "shadow_color", "rgba(0, 0, 0, 0.15)"))
        return f"{x}px {y}px {blur}px {color}"

    return SHADOW_PRESETS.get(shadow, SHADOW_PRESETS["md"])


def _hexdec(text: str) -> int:
    digits = "".join(c for c in text if c in "0123456789abcdefABCDEF")
    return int(digits, 16) if digits else 0


def apply_opacity_to_color(color: str, opacity: Any) -> str:
    """Hex, rgba() or rgb() colour with its alpha set to ``opacity``."""
    alpha = css_value(opacity)

    if color.startswith("#"):
        hex_value = color.lstrip("#")
        if len(hex_value) == 3:
            hex_value = "".join(c * 2 for c in hex_value)
        r = _hexdec(hex_value[0:2])
        g = _hexdec(hex_value[2:4])
        b = _hexdec(hex_value[4:6])
        return f"rgba({r},{g},{b},{alpha})"

    if color.startswith("rgba"):
        return re.sub(r"[\d.]+\)$", f"{alpha})", color)

    if color.startswith("rgb("):
        return color.replace(")", f",{alpha})").replace("rgb(", "rgba(")

    return color


def get_background_pattern(style: dict[str, Any]) -> dict[str, str]:
    pattern = css_value(coalesce(style, "bg_pattern", "none"))
    if pattern == "none" or pattern not in PATTERN_SIZES:
        return {}

    opacity = percent(coalesce(style, "bg_pattern_opacity", 10))
    color = apply_opacity_to_color(css_value(coalesce(style, "bg_pattern_color", "#000000")), opacity)

    images = {
        "dots": f"radial-gradient({color} 1px, transparent 1px)",
        "grid": (
            f"linear-gradient({color} 1px, transparent 1px), "
            f"linear-gradient(90deg, {color} 1px, transparent 1px)"
        ),
        "diagonal-lines": (
            f"repeating-linear-gradient(45deg, transparent, transparent 10px, "
            f"{color} 10px, {color} 11px)"
        ),
    }
    return {"background-image": images[pattern], "background-size": PATTERN_SIZES[pattern]}


def _scale_transform(content: dict[str, Any]) -> str | None:
    scale = content.get("image_scale")
    if is_empty(scale) or to_number(scale) == 100:
        return None
    return f"scale({css_value(percent(scale))})"


# --- Renderer ---


class CtaRenderer:
    """
    Renders CTA records for one page.

    Tracks whether any rendered widget used an animation so the shared
    keyframes block can be emitted once.
    """

    def __init__(self) -> None:
        self.animations_used = False

    def keyframes(self) -> str:
        return KEYFRAMES_CSS if self.animations_used else ""

    def get_animation_style(self, animation: Any) -> str:
        name = css_value(animation)
        if name == "none":
            return ""
        css = ANIMATIONS.get(name, "")
        if css:
            self.animations_used = True
        return css

    def render(self, cta: dict[str, Any]) -> str:
        cta_id = cta.get("id")
        cta_type = css_value(coalesce(cta, "type", "banner"))
        content = merge_defaults(CONTENT_DEFAULTS, cta.get("content"))
        style = merge_defaults(STYLE_DEFAULTS, cta.get("style"))

        shadow_css = get_shadow_style(style)
        animation_css = self.get_animation_style(coalesce(style, "animation", "none"))

        if cta_type == "banner":
            html = self._render_banner(cta_id, content, style, shadow_css, animation_css)
        elif cta_type == "floating-bar":
            html = self._render_floating_bar(cta_id, content, style, shadow_css, animation_css)
        elif cta_type == "popup":
            html = self._render_popup(cta_id, content, style, shadow_css, animation_css)
        else:
            html = ""

        if not is_empty(style.get("custom_css")):
            html += (
                f'<style>.forge-cta[data-cta-id="{esc_attr(cta_id)}"] '
                f"{{ {esc_html(style['custom_css'])} }}</style>"
            )

        return html

    # --- Banner ---

    def _render_banner(
        self,
        cta_id: Any,
        content: dict[str, Any],
        style: dict[str, Any],
        shadow_css: str,
        animation_css: str,
    ) -> str:
        is_horizontal = coalesce(style, "layout", "horizontal") == "horizontal"
        has_image = not is_empty(content.get("image_url"))
        image_position = coalesce(content, "image_position", "top")
        padding_y = coalesce(style, "padding_y", style.get("padding"))
        padding_x = coalesce(style, "padding_x", style.get("padding"))

        container: dict[str, Any] = {
            "all": "initial",
            "display": "block",
            "box-sizing": "border-box",
            "font-family": FONT_STACK,
            "font-size": "16px",
            "line-height": "1.5",
            "background-color": style.get("background"),
            "color": style.get("text_color"),
            "border-radius": f"{css_value(style.get('border_radius'))}px",
            "padding": f"{css_value(padding_y)}px {css_value(padding_x)}px",
            "width": "100%",
            "max-width": "100%",
            "position": "relative",
            "overflow": "hidden",
            "margin": "1em 0",
        }

        border_width = style.get("border_width")
        if not is_empty(border_width) and to_number(border_width) > 0:
            container["border"] = (
                f"{css_value(border_width)}px solid {css_value(style.get('border_color'))}"
            )
        if shadow_css:
            container["box-shadow"] = shadow_css
        if animation_css:
            container["animation"] = animation_css

        pattern = get_background_pattern(style)

        html = (
            '<div class="forge-cta forge-cta-banner" '
            f'data-cta-id="{esc_attr(cta_id)}" '
            'data-cta-type="banner" '
            f'style="{_style_attr(container)}">'
        )

        if pattern:
            html += (
                '<div style="position:absolute;inset:0;pointer-events:none;'
                f'{_style_attr(pattern)}"></div>'
            )

        if has_image and image_position == "background":
            img_styles: dict[str, Any] = {
                "position": "absolute",
                "top": "0",
                "left": "0",
                "width": "100%",
                "height": "100%",
                "object-fit": coalesce(content, "image_fit", "cover"),
                "z-index": "0",
            }
            transform = _scale_transform(content)
            if transform:
                img_styles["transform"] = transform
            html += (
                f'<img src="{esc_url(content["image_url"])}" '
                f'alt="{esc_attr(content.get("image_alt"))}" '
                f'style="{_style_attr(img_styles)}" />'
            )
            html += (
                '<div style="position:absolute;inset:0;'
                'background:rgba(0,0,0,0.4);z-index:1;"></div>'
            )

        wrapper = {"position": "relative", "z-index": "10"}

        if has_image and image_position == "top":
            html += f'<div style="{_style_attr(wrapper)}">'
            html += self._render_image(content, "top")
            html += '<div style="margin-top:16px;">'
            html += self._render_banner_content(content, style, False)
            html += "</div>"
            html += "</div>"
        elif has_image and image_position in ("left", "right"):
            flex_dir = "row-reverse" if image_position == "right" else "row"
            html += (
                '<div style="display:flex;gap:24px;align-items:center;'
                f'flex-direction:{flex_dir};{_style_attr(wrapper)}">'
            )
            html += self._render_image(content, image_position)
            html += '<div style="flex:1;">'
            html += self._render_banner_content(content, style, is_horizontal)
            html += "</div>"
            html += "</div>"
        else:
            html += f'<div style="{_style_attr(wrapper)}">'
            html += self._render_banner_content(content, style, is_horizontal)
            html += "</div>"

        if not is_empty(content.get("fine_print")):
            html += (
                '<p style="font-size:10px;opacity:0.5;margin:12px 0 0 0;'
                'position:relative;z-index:10;">'
                f"{esc_html(content['fine_print'])}</p>"
            )

        html += "</div>"
        return html

    def _render_image(self, content: dict[str, Any], position: str) -> str:
        if is_empty(content.get("image_url")):
            return ""

        img_styles: dict[str, Any] = {
            "display": "block",
            "object-fit": coalesce(content, "image_fit", "cover"),
        }
        if position == "top":
            img_styles["width"] = "100%"
            img_styles["max-height"] = "200px"
            img_styles["border-radius"] = "8px"
        elif position in ("left", "right"):
            img_styles["width"] = "128px"
            img_styles["height"] = "128px"
            img_styles["border-radius"] = "8px"
            img_styles["flex-shrink"] = "0"

        transform = _scale_transform(content)
        if transform:
            img_styles["transform"] = transform

        return (
            f'<img src="{esc_url(content["image_url"])}" '
            f'alt="{esc_attr(content.get("image_alt"))}" '
            f'style="{_style_attr(img_styles)}" />'
        )

    def _render_banner_content(
        self, content: dict[str, Any], style: dict[str, Any], is_horizontal: bool
    ) -> str:
        flex: dict[str, Any] = {
            "display": "flex",
            "gap": f"{css_value(coalesce(style, 'gap', 16))}px",
        }
        if is_horizontal:
            flex["align-items"] = "center"
            flex["justify-content"] = "space-between"
            flex["flex-wrap"] = "wrap"
        else:
            flex["flex-direction"] = "column"
            flex["text-align"] = "center"
            flex["align-items"] = "center"

        html = f'<div style="{_style_attr(flex)}">'

        content_align = "" if is_horizontal else "text-align:center;"
        html += f'<div style="{content_align}">'

        if not is_empty(content.get("eyebrow_text")):
            html += (
                '<span style="display:block;font-size:12px;font-weight:500;'
                "text-transform:uppercase;letter-spacing:0.05em;opacity:0.7;"
                'margin-bottom:4px;">'
                f"{esc_html(content['eyebrow_text'])}</span>"
            )

        if not is_empty(content.get("headline")):
            headline_styles = {
                "color": coalesce(style, "headline_color", style.get("text_color")),
                "margin": "0",
                "font-size": get_font_size(coalesce(style, "headline_size", "lg")),
                "font-weight": get_font_weight(coalesce(style, "headline_weight", "semibold")),
                "line-height": "1.3",
            }
            html += (
                f'<h3 style="{_style_attr(headline_styles)}">{esc_html(content["headline"])}</h3>'
            )

        if not is_empty(content.get("text")):
            text_styles = {
                "margin": "4px 0 0 0",
                "font-size": get_font_size(coalesce(style, "text_size", "sm")),
                "opacity": "0.9",
                "color": style.get("text_color"),
            }
            html += f'<p style="{_style_attr(text_styles)}">{esc_html(content["text"])}</p>'

        html += "</div>"

        buttons: dict[str, Any] = {
            "display": "flex",
            "gap": f"{css_value(coalesce(style, 'gap', 12))}px",
            "align-items": "center",
            "flex-shrink": "0",
        }
        if not is_horizontal:
            buttons["flex-direction"] = "column"
            buttons["width"] = "100%"
            buttons["margin-top"] = "16px"

        html += f'<div style="{_style_attr(buttons)}">'

        if not is_empty(content.get("phone")):
            phone_styles = {
                "display": "flex",
                "align-items": "center",
                "gap": "8px",
                "font-weight": "500",
                "white-space": "nowrap",
                "color": style.get("button_bg"),
                "text-decoration": "none",
            }
            digits = re.sub(r"\D", "", to_text(content["phone"]))
            html += f'<a href="tel:{esc_attr(digits)}" style="{_style_attr(phone_styles)}">'
            if not is_empty(content.get("show_phone_icon")):
                html += PHONE_ICON.format(color=esc_attr(style.get("button_bg")))
            html += esc_html(content["phone"])
            html += "</a>"

        if not is_empty(content.get("button_text")):
            html += self._render_button(
                content["button_text"],
                content.get("button_url"),
                True,
                coalesce(content, "button_style", "solid"),
                style,
                not is_empty(content.get("is_lead_magnet")),
            )

        if not is_empty(content.get("secondary_button_text")):
            html += self._render_button(
                content["secondary_button_text"],
                content.get("secondary_button_url"),
                False,
                coalesce(content, "secondary_button_style", "outline"),
                style,
                False,
            )

        html += "</div>"
        html += "</div>"
        return html

    # --- Floating bar ---

    def _render_floating_bar(
        self,
        cta_id: Any,
        content: dict[str, Any],
        style: dict[str, Any],
        shadow_css: str,
        animation_css: str,
    ) -> str:
        position = css_value(coalesce(style, "position", "bottom"))

        # A position naming an existing property overwrites it in place.
        container: dict[str, Any] = {
            "all": "initial",
            "box-sizing": "border-box",
            "font-family": FONT_STACK,
            "font-size": "16px",
            "line-height": "1.5",
            "position": "fixed",
            "left": "0",
            "right": "0",
            position: "0",
            "z-index": "999999",
            "background-color": style.get("background"),
            "color": style.get("text_color"),
            "padding": "16px 24px",
            "display": "flex",
            "align-items": "center",
            "justify-content": "center",
            "gap": "16px",
            "flex-wrap": "wrap",
        }
        if shadow_css:
            container["box-shadow"] = shadow_css
        if animation_css:
            container["animation"] = animation_css

        html = (
            '<div class="forge-cta forge-cta-floating-bar" '
            f'data-cta-id="{esc_attr(cta_id)}" '
            'data-cta-type="floating-bar" '
            f'style="{_style_attr(container)}">'
        )

        has_headline = not is_empty(content.get("headline"))
        has_text = not is_empty(content.get("text"))
        if has_headline or has_text:
            html += '<div style="text-align:center;">'
            if has_headline:
                html += (
                    f'<strong style="color:{esc_attr(style.get("headline_color"))};">'
                    f"{esc_html(content['headline'])}</strong>"
                )
            if has_text:
                html += (
                    '<span style="margin-left:8px;opacity:0.9;">'
                    f"{esc_html(content['text'])}</span>"
                )
            html += "</div>"

        if not is_empty(content.get("button_text")):
            html += self._render_button(
                content["button_text"],
                content.get("button_url"),
                True,
                "solid",
                style,
                not is_empty(content.get("is_lead_magnet")),
            )

        if not is_empty(content.get("show_close_button")):
            html += (
                '<button class="forge-cta-close" style="position:absolute;right:16px;top:50%;'
                "transform:translateY(-50%);background:none;border:none;font-size:20px;"
                f'cursor:pointer;color:{esc_attr(style.get("text_color"))};opacity:0.5;" '
                "data-cta-close>&times;</button>"
            )

        html += "</div>"
        return html

    # --- Popup ---

    def _render_popup(
        self,
        cta_id: Any,
        content: dict[str, Any],
        style: dict[str, Any],
        shadow_css: str,
        animation_css: str,
    ) -> str:
        html = (
            '<div class="forge-cta-backdrop" style="all:initial;position:fixed;top:0;left:0;'
            'right:0;bottom:0;background:rgba(0,0,0,0.5);z-index:999999;" '
            "data-cta-backdrop></div>"
        )

        container: dict[str, Any] = {
            "all": "initial",
            "box-sizing": "border-box",
            "font-family": FONT_STACK,
            "font-size": "16px",
            "line-height": "1.5",
            "position": "fixed",
            "top": "50%",
            "left": "50%",
            "transform": "translate(-50%, -50%)",
            "z-index": "1000000",
            "max-width": "500px",
            "width": "90%",
            "background-color": style.get("background"),
            "color": style.get("text_color"),
            "border-radius": f"{css_value(style.get('border_radius'))}px",
            "padding": f"{css_value(coalesce(style, 'padding', 24))}px",
        }
        if shadow_css:
            container["box-shadow"] = shadow_css
        if animation_css:
            container["animation"] = animation_css

        html += (
            '<div class="forge-cta forge-cta-popup" '
            f'data-cta-id="{esc_attr(cta_id)}" '
            'data-cta-type="popup" '
            f'style="{_style_attr(container)}">'
        )

        html += (
            '<button class="forge-cta-close" style="position:absolute;top:12px;right:12px;'
            "background:none;border:none;font-size:24px;cursor:pointer;"
            f'color:{esc_attr(style.get("text_color"))};opacity:0.5;" '
            "data-cta-close>&times;</button>"
        )

        html += '<div style="text-align:center;">'

        if not is_empty(content.get("headline")):
            headline_size = get_font_size(coalesce(style, "headline_size", "xl"))
            html += (
                f'<h3 style="color:{esc_attr(style.get("headline_color"))};margin:0 0 8px;'
                f'font-size:{headline_size};font-weight:600;">'
                f"{esc_html(content['headline'])}</h3>"
            )

        if not is_empty(content.get("text")):
            html += f'<p style="margin:0 0 16px;opacity:0.9;">{esc_html(content["text"])}</p>'

        html += '<div style="display:flex;flex-direction:column;gap:12px;align-items:center;">'
        if not is_empty(content.get("button_text")):
            html += self._render_button(
                content["button_text"],
                content.get("button_url"),
                True,
                "solid",
                style,
                not is_empty(content.get("is_lead_magnet")),
            )
        if not is_empty(content.get("secondary_button_text")):
            html += self._render_button(
                content["secondary_button_text"],
                content.get("secondary_button_url"),
                False,
                "outline",
                style,
                False,
            )
        html += "</div>"

        html += "</div>"
        html += "</div>"
        return html

    # --- Buttons ---

    def _render_button(
        self,
        text: Any,
        url: Any,
        is_primary: bool,
        button_style: Any,
        style: dict[str, Any],
        show_download_icon: bool = False,
    ) -> str:
        if is_empty(text):
            return ""

        button_bg = style.get("button_bg")
        if is_primary:
            bg = button_bg
            text_color = style.get("button_text_color")
            border_color = (
                style.get("button_border_color")
                if not is_empty(style.get("button_border_color"))
                else button_bg
            )
        else:
            bg = coalesce(style, "secondary_button_bg", "transparent")
            text_color = coalesce(style, "secondary_button_text_color", button_bg)
            border_color = coalesce(style, "secondary_button_border_color", button_bg)

        if not is_empty(button_style):
            effective = css_value(button_style)
        else:
            effective = "solid" if is_primary else "outline"

        radius = coalesce(style, "button_radius", coalesce(style, "border_radius", 6))
        styles: dict[str, Any] = {
            "display": "inline-flex",
            "align-items": "center",
            "gap": "8px",
            "font-weight": "500",
            "text-decoration": "none",
            "white-space": "nowrap",
            "cursor": "pointer",
            "border-radius": f"{css_value(radius)}px",
            "padding": "10px 20px",
            "font-size": "14px",
            "line-height": "1.5",
            "text-align": "center",
            "transition": "all 0.2s ease",
            "font-family": "inherit",
        }

        if effective == "solid":
            styles["background-color"] = bg
            styles["color"] = text_color
            styles["border"] = f"2px solid {css_value(border_color)}"
        elif effective == "outline":
            styles["background-color"] = "transparent"
            styles["color"] = border_color
            styles["border"] = f"2px solid {css_value(border_color)}"
        else:
            styles["background-color"] = "transparent"
            styles["color"] = border_color
            styles["border"] = "none"

        kind = "primary" if is_primary else "secondary"
        html = (
            f'<a href="{esc_url(url)}" '
            f'class="forge-cta-button forge-cta-button-{kind}" '
            f'data-cta-button="{kind}" '
            f'style="{_style_attr(styles)}">'
        )
        if show_download_icon:
            html += DOWNLOAD_ICON.format(color=esc_attr(text_color))
        html += esc_html(text)
        html += "</a>"
        return html
