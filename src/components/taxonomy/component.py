"""
Taxonomy component - category and tag listing and creation.

Categories are hierarchical (parent must be 0 or an existing category); tags
are flat. Term names must be unique per parent within a taxonomy and slugs
unique within a taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

from src.domain.entities import Term
from src.domain.sanitize import sanitize_text_field, sanitize_textarea_field, sanitize_title

from .models import CreateCategoryInput, CreateTagInput, TaxonomyValidationError, TermOutput
from .ports import TermRepoPort

logger = logging.getLogger(__name__)

CATEGORY = "category"
TAG = "post_tag"


def format_term(term: Term) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": term.id,
        "name": term.name,
        "slug": term.slug,
        "description": term.description,
    }
    if term.taxonomy == CATEGORY:
        data["parent"] = term.parent
    data["count"] = term.count
    return data


def unique_term_slug(repo: TermRepoPort, taxonomy: str, base: str) -> str:
    slug = base
    suffix = 2
    while repo.slug_exists(taxonomy, slug):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def _fail(code: str, message: str, field: str | None = None) -> TermOutput:
    return TermOutput(
        success=False, errors=[TaxonomyValidationError(code=code, message=message, field=field)]
    )


# --- Entry points ---


def run_list_terms(taxonomy: str, repo: TermRepoPort) -> list[dict[str, Any]]:
    return [format_term(term) for term in repo.list_by_taxonomy(taxonomy)]


def run_create_category(inp: CreateCategoryInput, repo: TermRepoPort) -> TermOutput:
    name = sanitize_text_field(inp.name)
    if not name:
        return _fail("missing_name", "Category name is required.", "name")

    parent = inp.parent if inp.parent > 0 else 0
    if parent and repo.get(parent, CATEGORY) is None:
        return _fail("invalid_parent", "Parent category does not exist.", "parent")

    if repo.find_by_name(CATEGORY, name, parent) is not None:
        return _fail(
            "term_exists", "A term with the name provided already exists with this parent.", "name"
        )

    slug = unique_term_slug(repo, CATEGORY, sanitize_title(name, fallback="category"))
    term = repo.insert(
        Term(
            taxonomy=CATEGORY,
            name=name,
            slug=slug,
            description=sanitize_textarea_field(inp.description),
            parent=parent,
        )
    )
    logger.info("Created category %s (%s)", term.id, term.slug)
    return TermOutput(term=term)


def run_create_tag(inp: CreateTagInput, repo: TermRepoPort) -> TermOutput:
    name = sanitize_text_field(inp.name)
    if not name:
        return _fail("missing_name", "Tag name is required.", "name")

    if repo.find_by_name(TAG, name) is not None:
        return _fail(
            "term_exists", "A term with the name provided already exists in this taxonomy.", "name"
        )

    base = sanitize_title(inp.slug if inp.slug is not None else name) or sanitize_title(
        name, fallback="tag"
    )
    term = repo.insert(
        Term(
            taxonomy=TAG,
            name=name,
            slug=unique_term_slug(repo, TAG, base),
            description=sanitize_textarea_field(inp.description),
        )
    )
    logger.info("Created tag %s (%s)", term.id, term.slug)
    return TermOutput(term=term)
