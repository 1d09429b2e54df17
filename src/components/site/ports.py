"""
Site component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Author, Term


class UserRepoPort(Protocol):
    def list_all(self) -> list[Author]:
        """All users ordered by ID."""
        ...


class TermRepoPort(Protocol):
    def list_by_taxonomy(self, taxonomy: str) -> list[Term]: ...


class PostCountPort(Protocol):
    def count_by_status(self, post_type: str) -> dict[str, int]:
        """Row counts per status for one post type."""
        ...
