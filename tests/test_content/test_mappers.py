"""Unit tests for list-item mappers (themeforge.content.mappers)."""

from __future__ import annotations

import pytest

from themeforge.content.mappers import (
    MAX_SERVICES,
    MAX_TESTIMONIALS,
    map_faqs,
    map_features,
    map_items,
    map_links,
    map_services,
    map_stats,
    map_testimonials,
)


class TestMapServices:
    @pytest.mark.unit
    def test_full_item(self):
        mapped = map_services(
            [{"name": "Roofing", "description": "New roofs", "icon": "home", "url": "/roofing"}]
        )
        assert mapped == [
            {"name": "Roofing", "description": "New roofs", "icon": "home", "url": "/roofing"}
        ]

    @pytest.mark.unit
    def test_string_and_aliases(self):
        mapped = map_services(["Kitchen Remodels", {"title": "Decks", "summary": "Cedar decks"}])
        assert mapped[0] == {
            "name": "Kitchen Remodels",
            "description": "",
            "icon": "",
            "url": "#kitchen-remodels",
        }
        assert mapped[1]["name"] == "Decks"
        assert mapped[1]["description"] == "Cedar decks"

    @pytest.mark.unit
    def test_drops_unusable_items(self):
        assert map_services([None, 3, "  ", {"name": "Paving"}])[0]["name"] == "Paving"
        assert len(map_services([None, 3, "  ", {"name": "Paving"}])) == 1

    @pytest.mark.unit
    def test_capped(self):
        assert len(map_services([f"Service {i}" for i in range(20)])) == MAX_SERVICES


class TestMapTestimonials:
    @pytest.mark.unit
    def test_defaults_and_rating_clamp(self):
        mapped = map_testimonials(
            [
                {"text": "Great work", "author_name": "Sam", "rating": 9},
                {"quote": "Fine", "rating": "five"},
                "On time and on budget",
            ]
        )
        assert mapped[0]["quote"] == "Great work"
        assert mapped[0]["name"] == "Sam"
        assert mapped[0]["rating"] == 5
        assert mapped[1]["name"] == "Client"
        assert mapped[1]["rating"] == 5
        assert mapped[2]["quote"] == "On time and on budget"

    @pytest.mark.unit
    def test_low_rating_clamped_up(self):
        assert map_testimonials([{"quote": "Meh", "rating": 0}])[0]["rating"] == 1

    @pytest.mark.unit
    def test_capped(self):
        assert len(map_testimonials(["q"] * 10)) == MAX_TESTIMONIALS


class TestOtherMappers:
    @pytest.mark.unit
    def test_stats(self):
        assert map_stats([{"number": 25, "text": "Years"}]) == [{"value": "25", "label": "Years"}]

    @pytest.mark.unit
    def test_features(self):
        assert map_features(["Licensed"]) == [{"name": "Licensed", "description": "", "icon": ""}]

    @pytest.mark.unit
    def test_links(self):
        assert map_links(["Our Work", {"label": "Blog", "href": "/blog"}, {"url": "/x"}]) == [
            {"label": "Our Work", "url": "#our-work"},
            {"label": "Blog", "url": "/blog"},
        ]

    @pytest.mark.unit
    def test_faqs(self):
        assert map_faqs([{"q": "Insured?", "a": "Yes"}, "not a faq", {"answer": "orphan"}]) == [
            {"question": "Insured?", "answer": "Yes"}
        ]


class TestMapItems:
    @pytest.mark.unit
    def test_no_kind_passes_through(self):
        items = [{"anything": 1}]
        result = map_items(None, items)
        assert result == items
        assert result is not items

    @pytest.mark.unit
    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            map_items("widgets", [])
