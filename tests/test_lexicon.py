"""
Tests for the category catalog and alias table.
"""

import json
from types import SimpleNamespace

import pytest

from meeting_bingo.errors import CategoryNotFound, InsufficientWordPool
from meeting_bingo.lexicon import LexiconService, distinct_words, service
from meeting_bingo.schemas import Category


class TestBuiltinCatalog:
    def test_categories(self):
        assert [c.id for c in service.list_categories()] == ["agile", "corporate", "tech"]

    def test_every_category_fills_a_card(self):
        for category in service.list_categories():
            assert len(distinct_words(category.words)) >= 24

    def test_unknown_category_raises(self):
        with pytest.raises(CategoryNotFound) as exc:
            service.get_category("knitting")
        assert isinstance(exc.value, LookupError)
        assert exc.value.category_id == "knitting"

    def test_find_category_returns_none(self):
        assert service.find_category("knitting") is None

    def test_category_name(self):
        assert service.category_name("tech") == "Tech Talk"
        assert service.category_name(None) is None


class TestAliases:
    def test_lookup_is_case_insensitive(self):
        assert "m v p" in service.aliases_for("MVP")

    def test_missing_key_means_no_aliases(self):
        assert service.aliases_for("Synergy") == []

    def test_custom_table_keys_lowercased(self):
        lexicon = LexiconService(aliases={"OKR": ["o k r"]})
        assert lexicon.aliases_for("okr") == ["o k r"]


class TestCatalogLoading:
    def test_distinct_words_keeps_first_spelling(self):
        assert distinct_words(["Sprint", "sprint ", "", "Epic"]) == ["Sprint", "Epic"]

    def test_small_category_rejected_at_load(self):
        small = Category(id="small", name="Small", words=["a", "b", "c"])
        with pytest.raises(InsufficientWordPool):
            LexiconService(categories=[small])

    def test_extra_catalog_file(self, tmp_path, fruit_category):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([fruit_category.model_dump()]))
        lexicon = LexiconService.from_settings(SimpleNamespace(catalog_file=path))
        assert lexicon.get_category("fruit").name == "Fruit Salad"
        assert lexicon.find_category("agile") is not None
