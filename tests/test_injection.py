from __future__ import annotations

import base64
import re

import pytest

from logostudio.cards.contact import BusinessCardData, ContactKind, add_field, set_field
from logostudio.cards.injection import (
    TOKEN_RE,
    PreviewMode,
    analyze_logo_constraints,
    clean_placeholder_style,
    format_phone_number,
    format_website,
    generate_injected_html,
    inject_contact_info,
    inject_logo,
    logo_is_injected,
    validate_logo,
)
from logostudio.cards.layouts import LAYOUTS, get_layout


def _card() -> BusinessCardData:
    data = BusinessCardData.empty()
    data.name = "Sarah Mitchell"
    data.title = "Creative Director"
    data.company_name = "TechVision"
    set_field(data, ContactKind.PHONE, 0, "5551234567")
    set_field(data, ContactKind.EMAIL, 0, "s@tv.com")
    return data


def _img_width(markup: str) -> str:
    match = re.search(r'<img[^>]*style="width: ([0-9.]+)in', markup)
    assert match, markup
    return match.group(1)


@pytest.mark.parametrize("phone,expected", [
    ("5551234567", "(555) 123-4567"),
    ("555-123-4567", "(555) 123-4567"),
    ("15551234567", "+1 (555) 123-4567"),
    ("1234567", "123-4567"),
    ("+44 20 7946 0958", "+44 20 7946 0958"),
])
def test_format_phone_number(phone: str, expected: str) -> None:
    assert format_phone_number(phone) == expected


def test_format_website_strips_scheme_and_slash() -> None:
    assert format_website("https://techvision.io/") == "techvision.io"
    assert format_website("techvision.io/about") == "techvision.io/about"


@pytest.mark.parametrize("layout", LAYOUTS, ids=lambda l: l.catalog_id)
def test_no_tokens_survive_and_injection_is_pure(layout) -> None:
    data = _card()
    first = generate_injected_html(layout, data, PreviewMode.ENLARGED)
    second = generate_injected_html(layout, data, PreviewMode.ENLARGED)
    assert first == second
    assert not TOKEN_RE.search(first)
    assert "Sarah Mitchell" in first
    assert "TechVision" in first


def test_empty_optional_lines_are_removed() -> None:
    layout = get_layout("BC001")
    html_out = inject_contact_info(layout.markup, _card())
    assert "bc-optional" not in html_out
    assert "(555) 123-4567" in html_out

    data = _card()
    add_field(data, ContactKind.PHONE, "5559876543")
    html_out = inject_contact_info(layout.markup, data)
    assert "(555) 987-6543" in html_out
    assert html_out.count("bc-contact-phone") == 2


def test_blank_first_slot_does_not_leave_a_gap() -> None:
    data = _card()
    set_field(data, ContactKind.PHONE, 0, "")
    add_field(data, ContactKind.PHONE, "5559876543")
    html_out = inject_contact_info(get_layout("BC001").markup, data)
    assert "(555) 987-6543" in html_out
    assert html_out.count("bc-contact-phone") == 1


def test_user_values_are_escaped() -> None:
    data = _card()
    data.name = "<script>alert(1)</script> {{email_1}}"
    html_out = inject_contact_info(get_layout("BC001").markup, data)
    assert "<script>" not in html_out
    assert "&lt;script&gt;" in html_out
    assert "&#123;&#123;email_1&#125;&#125;" in html_out


def test_unknown_token_renders_empty(caplog) -> None:
    html_out = inject_contact_info("<div>{{fax_number}}</div>", _card())
    assert html_out == "<div></div>"
    assert "fax_number" in caplog.text


def test_validate_logo(logo_data_uri: str) -> None:
    assert validate_logo(logo_data_uri)
    assert not validate_logo(None)
    assert not validate_logo("")
    assert not validate_logo("https://example.com/logo.png")
    assert not validate_logo("data:image/png;base64,***not-base64***")
    tiny = "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    assert not validate_logo(tiny)


def test_invalid_logo_leaves_placeholder(caplog) -> None:
    layout = get_layout("BC001")
    html_out = generate_injected_html(layout, _card(), PreviewMode.ENLARGED, "data:image/png;base64,%%%")
    assert "<img" not in html_out
    assert ">LOGO</div>" in html_out
    assert not logo_is_injected(html_out)


def test_no_logo_keeps_placeholder() -> None:
    html_out = generate_injected_html(get_layout("BC001"), _card())
    assert ">LOGO</div>" in html_out
    assert "<img" not in html_out


def test_valid_logo_replaces_placeholder_visuals(logo_data_uri: str) -> None:
    html_out = generate_injected_html(get_layout("BC001"), _card(), PreviewMode.GRID, logo_data_uri)
    assert logo_is_injected(html_out)
    assert html_out.count("<img") == 1
    assert ">LOGO<" not in html_out
    placeholder = re.search(r'<div class="logo-placeholder" style="([^"]*)"', html_out).group(1)
    assert "background-color" not in placeholder
    assert "border:" not in placeholder
    assert "border-radius: 4px" in placeholder
    assert "width: 0.8in" in placeholder


def test_logo_from_form_data(logo_data_uri: str) -> None:
    data = _card()
    data.logo.logo_data_uri = logo_data_uri
    assert logo_is_injected(generate_injected_html(get_layout("BC003"), data))


def test_enlarged_mode_respects_layouts_without_room(logo_data_uri: str) -> None:
    bc002 = get_layout("BC002")
    assert not bc002.metadata.allow_enlarged_logo
    grid = generate_injected_html(bc002, _card(), PreviewMode.GRID, logo_data_uri)
    enlarged = generate_injected_html(bc002, _card(), PreviewMode.ENLARGED, logo_data_uri)
    assert _img_width(grid) == "0.6"
    assert _img_width(enlarged) == "0.5"

    bc001 = get_layout("BC001")
    assert _img_width(generate_injected_html(bc001, _card(), PreviewMode.ENLARGED, logo_data_uri)) == "0.6"


def test_header_banner_logo_stays_small(logo_data_uri: str) -> None:
    html_out = generate_injected_html(get_layout("BC004"), _card(), PreviewMode.GRID, logo_data_uri)
    assert float(_img_width(html_out)) <= 0.4


def test_constraint_classification() -> None:
    assert analyze_logo_constraints("width: 0.3in; height: 0.3in", '<div class="header-banner">').layout_type == "header-banner"
    assert analyze_logo_constraints("width: 0.9in; height: 0.9in; display: inline-flex").layout_type == "inline-flex"
    assert analyze_logo_constraints("width: 0.5in; height: 0.5in; display: flex").layout_type == "row-block"
    standard = analyze_logo_constraints("width: 0.55in; height: 0.55in")
    assert standard.layout_type == "standard"
    assert standard.max_size == 0.7
    assert analyze_logo_constraints("width: 96px; height: 96px").max_size == 0.9


def test_clean_placeholder_style() -> None:
    cleaned = clean_placeholder_style(
        "width: 0.5in; background: #fff; border: 1px solid; border-radius: 50%; color: #999; font-size: 8px; margin: 0 auto"
    )
    assert cleaned == "width: 0.5in; border-radius: 50%; margin: 0 auto"


def test_inject_logo_without_placeholder_is_noop(logo_data_uri: str) -> None:
    assert inject_logo("<div>no logo here</div>", logo_data_uri) == "<div>no logo here</div>"
