"""
Taxonomy component unit tests.
"""

from __future__ import annotations

import pytest

from src.components.taxonomy import (
    CATEGORY,
    TAG,
    CreateCategoryInput,
    CreateTagInput,
    format_term,
    run_create_category,
    run_create_tag,
    run_list_terms,
)
from src.domain.entities import Term


class MockTermRepo:
    """In-memory term repository for testing."""

    def __init__(self) -> None:
        self._terms: dict[int, Term] = {
            1: Term(id=1, taxonomy=CATEGORY, name="Uncategorized", slug="uncategorized")
        }
        self._next_id = 2

    def get(self, term_id: int, taxonomy: str | None = None) -> Term | None:
        term = self._terms.get(term_id)
        if term is None or (taxonomy and term.taxonomy != taxonomy):
            return None
        return term

    def list_by_taxonomy(self, taxonomy: str) -> list[Term]:
        return sorted(
            (t for t in self._terms.values() if t.taxonomy == taxonomy), key=lambda t: t.name
        )

    def find_by_name(self, taxonomy: str, name: str, parent: int | None = None) -> Term | None:
        for term in self._terms.values():
            if term.taxonomy != taxonomy or term.name.lower() != name.lower():
                continue
            if parent is None or term.parent == parent:
                return term
        return None

    def slug_exists(self, taxonomy: str, slug: str) -> bool:
        return any(t.taxonomy == taxonomy and t.slug == slug for t in self._terms.values())

    def insert(self, term: Term) -> Term:
        saved = term.model_copy(update={"id": self._next_id})
        self._terms[saved.id] = saved
        self._next_id += 1
        return saved


@pytest.fixture
def repo() -> MockTermRepo:
    return MockTermRepo()


class TestCreateCategory:
    def test_creates_with_slug(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="  Big News "), repo)
        assert out.success
        assert out.term is not None
        assert out.term.name == "Big News"
        assert out.term.slug == "big-news"
        assert out.term.parent == 0

    def test_missing_name(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="<b></b>"), repo)
        assert not out.success
        assert out.errors[0].code == "missing_name"

    def test_invalid_parent(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="Child", parent=99), repo)
        assert out.errors[0].code == "invalid_parent"

    def test_child_of_existing(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="Child", parent=1), repo)
        assert out.term is not None
        assert out.term.parent == 1

    def test_duplicate_under_same_parent(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="uncategorized"), repo)
        assert out.errors[0].code == "term_exists"

    def test_same_name_other_parent_gets_unique_slug(self, repo: MockTermRepo) -> None:
        out = run_create_category(CreateCategoryInput(name="Uncategorized", parent=1), repo)
        assert out.term is not None
        assert out.term.slug == "uncategorized-2"


class TestCreateTag:
    def test_slug_from_param(self, repo: MockTermRepo) -> None:
        out = run_create_tag(CreateTagInput(name="Python", slug="Py Lang"), repo)
        assert out.term is not None
        assert out.term.taxonomy == TAG
        assert out.term.slug == "py-lang"

    def test_slug_from_name(self, repo: MockTermRepo) -> None:
        out = run_create_tag(CreateTagInput(name="Café Culture"), repo)
        assert out.term is not None
        assert out.term.slug == "cafe-culture"

    def test_duplicate(self, repo: MockTermRepo) -> None:
        run_create_tag(CreateTagInput(name="Python"), repo)
        out = run_create_tag(CreateTagInput(name="python"), repo)
        assert out.errors[0].code == "term_exists"

    def test_missing_name(self, repo: MockTermRepo) -> None:
        assert run_create_tag(CreateTagInput(name=""), repo).errors[0].code == "missing_name"


class TestListing:
    def test_category_has_parent_tag_does_not(self, repo: MockTermRepo) -> None:
        run_create_tag(CreateTagInput(name="Zeta"), repo)
        categories = run_list_terms(CATEGORY, repo)
        tags = run_list_terms(TAG, repo)
        assert categories == [
            {
                "id": 1,
                "name": "Uncategorized",
                "slug": "uncategorized",
                "description": "",
                "parent": 0,
                "count": 0,
            }
        ]
        assert "parent" not in tags[0]

    def test_format_term_keys_order(self) -> None:
        term = Term(id=3, taxonomy=CATEGORY, name="A", slug="a", parent=1, count=2)
        assert list(format_term(term)) == ["id", "name", "slug", "description", "parent", "count"]
