"""
CTA component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CtaValidationError:
    code: str
    message: str
    field: str | None = None
    status: int = 400


@dataclass(frozen=True)
class ApiResponse:
    """Status and raw body of a Forge API response."""

    status_code: int
    text: str


# --- Input Models ---


@dataclass(frozen=True)
class ShortcodeInput:
    """Attributes of one ``[forge_cta id="..." debug="..."]`` placement."""

    id: Any = ""
    debug: Any = ""


@dataclass(frozen=True)
class RenderPreviewInput:
    cta: Any


# --- Output Models ---


@dataclass(frozen=True)
class RenderOutput:
    html: str = ""
    errors: list[CtaValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CtaListOutput:
    ctas: list[dict[str, Any]] = field(default_factory=list)
    errors: list[CtaValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CtaActionOutput:
    message: str = ""
    cleared: int = 0
    errors: list[CtaValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PageOutput:
    shortcodes: list[str] = field(default_factory=list)
    footer: str = ""
