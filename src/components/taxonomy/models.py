"""
Taxonomy component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import Term

# --- Validation Error ---


@dataclass(frozen=True)
class TaxonomyValidationError:
    """Taxonomy validation error."""

    code: str
    message: str
    field: str | None = None
    status: int = 400


# --- Input Models ---


@dataclass(frozen=True)
class CreateCategoryInput:
    name: str
    description: str = ""
    parent: int = 0


@dataclass(frozen=True)
class CreateTagInput:
    name: str
    description: str = ""
    slug: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class TermOutput:
    """Output for term creation."""

    term: Term | None = None
    errors: list[TaxonomyValidationError] = field(default_factory=list)
    success: bool = True
