from __future__ import annotations

import re

import pytest

from logostudio.cards.injection import LOGO_PLACEHOLDER_RE, find_placeholder_tokens
from logostudio.cards.layouts import (
    LAYOUTS,
    filter_layouts,
    get_layout,
    list_themes,
    paginate_layouts,
    require_layout,
    search_layouts,
)
from logostudio.errors import NotFoundError

KNOWN_TOKENS = {
    "name", "title", "company", "subtitle", "slogan", "descriptor", "established",
    "phone_1", "phone_2", "phone_3", "email_1", "email_2", "email_3",
    "website_1", "website_2", "address_1", "address_2", "social_1", "social_2", "social_3",
}


def test_catalog_ids_are_unique_and_well_formed() -> None:
    ids = [layout.catalog_id for layout in LAYOUTS]
    assert len(ids) == len(set(ids))
    assert all(re.match(r"^BC\d{3}$", catalog_id) for catalog_id in ids)


@pytest.mark.parametrize("layout", LAYOUTS, ids=lambda l: l.catalog_id)
def test_layout_markup_contract(layout) -> None:
    assert len(LOGO_PLACEHOLDER_RE.findall(layout.markup)) == 1
    assert set(find_placeholder_tokens(layout.markup)) <= KNOWN_TOKENS
    assert "{{name}}" in layout.markup
    assert "{{company}}" in layout.markup


def test_lookup_is_case_insensitive() -> None:
    assert get_layout("bc001").catalog_id == "BC001"
    assert get_layout(" BC003 ").name == "Modern Split Panel"
    assert get_layout("BC999") is None
    assert get_layout(None) is None


def test_require_layout_raises_not_found() -> None:
    with pytest.raises(NotFoundError) as excinfo:
        require_layout("BC999")
    assert excinfo.value.message == "Layout not found"


def test_filter_by_theme() -> None:
    modern = filter_layouts("Modern")
    assert {layout.catalog_id for layout in modern} == {"BC003", "BC004"}
    assert filter_layouts("all") == list(LAYOUTS)
    assert filter_layouts(None) == list(LAYOUTS)


def test_search_ors_across_fields() -> None:
    # feature tag
    assert {layout.catalog_id for layout in search_layouts("social-media")} == {"BC005", "BC008"}
    # description text
    assert [layout.catalog_id for layout in search_layouts("gold serif")] == ["BC006"]
    # style, restricted by theme
    assert [layout.catalog_id for layout in search_layouts("company-focused", theme="minimalistic")] == ["BC002"]
    assert search_layouts("") == list(LAYOUTS)
    assert search_layouts("nothing-like-this") == []


def test_themes_in_registry_order() -> None:
    assert list_themes() == [
        "minimalistic", "modern", "trendy", "luxury", "classic", "creative", "professional",
    ]


def test_paginate_layouts_clamps_page() -> None:
    page, total = paginate_layouts(LAYOUTS, 2, 4)
    assert total == 3
    assert [layout.catalog_id for layout in page] == ["BC005", "BC006", "BC007", "BC008"]
    last, _ = paginate_layouts(LAYOUTS, 99, 4)
    assert [layout.catalog_id for layout in last] == ["BC009"]
    first, _ = paginate_layouts(LAYOUTS, 0, 12)
    assert len(first) == len(LAYOUTS)
