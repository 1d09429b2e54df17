"""
Taxonomy component - categories and tags.
"""

from .component import (
    CATEGORY,
    TAG,
    format_term,
    run_create_category,
    run_create_tag,
    run_list_terms,
    unique_term_slug,
)
from .models import CreateCategoryInput, CreateTagInput, TaxonomyValidationError, TermOutput
from .ports import TermRepoPort

__all__ = [
    "CATEGORY",
    "TAG",
    "format_term",
    "run_create_category",
    "run_create_tag",
    "run_list_terms",
    "unique_term_slug",
    "CreateCategoryInput",
    "CreateTagInput",
    "TaxonomyValidationError",
    "TermOutput",
    "TermRepoPort",
]
