"""
Input sanitizers and output escapers.

Mirror the host platform's helpers (sanitize_text_field, sanitize_title,
wp_kses_post, esc_url, ...) closely enough that data synced by Forge round-trips
unchanged.
"""

from __future__ import annotations

import html
import re
import unicodedata
from typing import Any

# --- Scalars ---


def to_text(value: Any) -> str:
    """Cast a JSON scalar to text the way a loosely typed form field would."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def absint(value: Any) -> int:
    """Absolute integer; anything unparsable becomes 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        return abs(int(value))
    return abs(leading_int(to_text(value)))


_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def leading_int(text: str) -> int:
    """Parse the leading integer of a string, 0 when there is none."""
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0


def is_empty(value: Any) -> bool:
    """Loose emptiness: None, False, 0, "", "0" and empty containers."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


# --- Text fields ---

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)[^>]*?>.*?</\1>", re.IGNORECASE | re.DOTALL)
_ANY_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")


def strip_all_tags(text: str) -> str:
    text = _SCRIPT_STYLE_RE.sub("", text)
    return _ANY_TAG_RE.sub("", text)


def _sanitize_text(value: Any, keep_newlines: bool) -> str:
    text = to_text(value)

    if "<" in text:
        text = strip_all_tags(text)
        text = text.replace("<", "&lt;")

    if keep_newlines:
        text = "\n".join(re.sub(r"[\t ]+", " ", line) for line in text.splitlines())
    else:
        text = re.sub(r"[\r\n\t ]+", " ", text)

    while _OCTET_RE.search(text):
        text = _OCTET_RE.sub("", text)

    return text.strip()


def sanitize_text_field(value: Any) -> str:
    return _sanitize_text(value, keep_newlines=False)


def sanitize_textarea_field(value: Any) -> str:
    return _sanitize_text(value, keep_newlines=True)


def remove_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def sanitize_title(value: Any, fallback: str = "") -> str:
    """Slugify: lowercase ASCII letters, digits, hyphens and underscores."""
    text = remove_accents(strip_all_tags(to_text(value))).lower()
    text = re.sub(r"&.+?;", "", text)
    text = text.replace(".", "-")
    text = re.sub(r"[^a-z0-9 _-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text).strip("-")
    return text or fallback


def sanitize_key(value: Any) -> str:
    return re.sub(r"[^a-z0-9_\-]", "", to_text(value).lower())


_FILENAME_SPECIAL = set("?[]/\\=<>:;,'\"&$#*()|~`!{}%+«»”“ ")


def sanitize_file_name(value: Any) -> str:
    name = remove_accents(to_text(value))
    name = "".join(c for c in name if c not in _FILENAME_SPECIAL and ord(c) >= 32)
    name = re.sub(r"[\r\n\t -]+", "-", name)
    return name.strip(".-_")


# --- Escaping ---


# Ampersands that do not already start a valid entity.
_BARE_AMP_RE = re.compile(r"&(?!(?:#\d+|#x[0-9a-fA-F]+|[a-zA-Z][a-zA-Z0-9]*);)")


def esc_html(value: Any) -> str:
    """Escape for HTML output without double-encoding existing entities."""
    text = _BARE_AMP_RE.sub("&amp;", to_text(value))
    return (
        text.replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#039;")
    )


def esc_attr(value: Any) -> str:
    return esc_html(value)


ALLOWED_PROTOCOLS = frozenset(
    [
        "http",
        "https",
        "ftp",
        "ftps",
        "mailto",
        "news",
        "irc",
        "gopher",
        "nntp",
        "feed",
        "telnet",
        "mms",
        "rtsp",
        "sms",
        "svn",
        "tel",
        "fax",
        "xmpp",
        "webcal",
        "urn",
    ]
)

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
_URL_STRIP_RE = re.compile(r"[^a-z0-9\-~+_.?#=!&;,/:%@$|*'()\[\]\u0080-\uffff]", re.IGNORECASE)


def clean_url(value: Any) -> str:
    """Normalize a URL; returns "" when its protocol is not allowed."""
    url = to_text(value).strip().replace(" ", "%20")
    if not url:
        return ""
    url = _URL_STRIP_RE.sub("", url)
    if not url:
        return ""

    if ":" not in url and url[0] not in "/#?" and not re.match(r"^[a-z0-9-]+?\.php", url, re.I):
        url = "http://" + url

    scheme = _SCHEME_RE.match(url)
    if scheme and scheme.group(1).lower() not in ALLOWED_PROTOCOLS:
        return ""
    return url


def esc_url(value: Any) -> str:
    """URL safe for an HTML attribute."""
    url = clean_url(value)
    return url.replace("&", "&#038;").replace("'", "&#039;")


def esc_url_raw(value: Any) -> str:
    """URL safe for storage or an outgoing request."""
    return clean_url(value)


# --- Post HTML (kses) ---

POST_ALLOWED_TAGS = frozenset(
    [
        "a", "abbr", "address", "article", "aside", "audio", "b", "blockquote",
        "br", "caption", "cite", "code", "col", "colgroup", "dd", "del", "details",
        "div", "dl", "dt", "em", "figcaption", "figure", "footer", "h1", "h2",
        "h3", "h4", "h5", "h6", "header", "hr", "i", "img", "ins", "kbd", "li",
        "main", "mark", "nav", "ol", "p", "pre", "q", "s", "section", "small",
        "source", "span", "strike", "strong", "sub", "summary", "sup", "table",
        "tbody", "td", "tfoot", "th", "thead", "tr", "u", "ul", "video",
    ]
)

POST_GLOBAL_ATTRS = frozenset(["class", "id", "style", "title", "lang", "dir", "role"])

POST_ALLOWED_ATTRS: dict[str, frozenset[str]] = {
    "a": frozenset(["href", "rel", "rev", "name", "target", "download", "hreflang"]),
    "img": frozenset(["src", "alt", "width", "height", "srcset", "sizes", "loading", "decoding"]),
    "td": frozenset(["colspan", "rowspan", "align", "valign"]),
    "th": frozenset(["colspan", "rowspan", "align", "valign", "scope"]),
    "ol": frozenset(["start", "type", "reversed"]),
    "blockquote": frozenset(["cite"]),
    "q": frozenset(["cite"]),
    "video": frozenset(
        ["src", "controls", "width", "height", "poster", "autoplay", "loop", "muted"]
    ),
    "audio": frozenset(["src", "controls", "autoplay", "loop", "muted"]),
    "source": frozenset(["src", "type"]),
}

URL_ATTRS = frozenset(["href", "src", "cite", "poster"])

TAG_PATTERN = re.compile(r"<(/?)(\w+)([^>]*)>", re.IGNORECASE)
ATTR_PATTERN = re.compile(
    r'([\w\-]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|(\S+))|([\w\-]+)', re.IGNORECASE
)


def parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse HTML attributes from a string; valueless attributes map to ""."""
    attrs: dict[str, str] = {}
    for match in ATTR_PATTERN.finditer(attr_string):
        if match.group(1):
            value = match.group(2) or match.group(3) or match.group(4) or ""
            attrs[match.group(1).lower()] = value
        elif match.group(5):
            attrs[match.group(5).lower()] = ""
    return attrs


def kses_post(content: Any) -> str:
    """
    Filter post HTML down to the post allowlist.

    Disallowed tags are dropped (their text survives), script/style blocks are
    removed with their contents, and URL attributes with disallowed protocols
    are dropped. HTML comments, block editor markers included, are kept.
    """
    text = _SCRIPT_STYLE_RE.sub("", to_text(content))

    def process_tag(match: re.Match[str]) -> str:
        is_closing = bool(match.group(1))
        tag_name = match.group(2).lower()
        attr_string = match.group(3)

        if tag_name not in POST_ALLOWED_TAGS:
            return ""

        if is_closing:
            return f"</{tag_name}>"

        self_closing = attr_string.rstrip().endswith("/")
        allowed = POST_GLOBAL_ATTRS | POST_ALLOWED_ATTRS.get(tag_name, frozenset())

        parts: list[str] = []
        for name, value in parse_attributes(attr_string.rstrip("/ ")).items():
            if name not in allowed and not name.startswith(("data-", "aria-")):
                continue
            if name in URL_ATTRS:
                value = clean_url(html.unescape(value))
                if not value:
                    continue
            parts.append(f'{name}="{html.escape(html.unescape(value), quote=True)}"')

        attrs = (" " + " ".join(parts)) if parts else ""
        return f"<{tag_name}{attrs}{' /' if self_closing else ''}>"

    return TAG_PATTERN.sub(process_tag, text)
