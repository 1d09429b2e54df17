"""
Taxonomy component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Term


class TermRepoPort(Protocol):
    """Repository interface for categories and tags."""

    def get(self, term_id: int, taxonomy: str | None = None) -> Term | None:
        """Get a term by ID, optionally restricted to one taxonomy."""
        ...

    def list_by_taxonomy(self, taxonomy: str) -> list[Term]:
        """All terms of a taxonomy ordered by name, with published post counts."""
        ...

    def find_by_name(self, taxonomy: str, name: str, parent: int | None = None) -> Term | None:
        """Case-insensitive name lookup; parent None matches any parent."""
        ...

    def slug_exists(self, taxonomy: str, slug: str) -> bool: ...

    def insert(self, term: Term) -> Term:
        """Insert a new term and return it with its assigned ID."""
        ...
