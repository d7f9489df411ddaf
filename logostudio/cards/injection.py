from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
import base64
import binascii
import html
import logging
import re

from .. import config
from .contact import BusinessCardData, ContactKind
from .layouts import CardLayout

logger = logging.getLogger(__name__)


class PreviewMode(str, Enum):
    GRID = "grid"          # thumbnail in the selection grid
    ENLARGED = "enlarged"  # full-size preview step


TOKEN_RE = re.compile(r"\{\{\s*([a-z0-9_]+)\s*\}\}")
OPTIONAL_LINE_RE = re.compile(
    r"[ \t]*<(?P<tag>[a-z0-9]+)(?P<attrs>[^>]*\bclass=\"[^\"]*\bbc-optional\b[^\"]*\"[^>]*)>"
    r"(?P<body>[^<]*)</(?P=tag)>[ \t]*\n?",
    re.IGNORECASE,
)
LOGO_PLACEHOLDER_RE = re.compile(
    r"<div(?P<attrs>[^>]*\bclass=\"[^\"]*\blogo-placeholder\b[^\"]*\"[^>]*)>(?P<body>.*?)</div>",
    re.IGNORECASE | re.DOTALL,
)
STYLE_ATTR_RE = re.compile(r"style=\"([^\"]*)\"", re.IGNORECASE)
DATA_URI_RE = re.compile(r"^data:image/[a-z0-9.+-]+;base64,(?P<payload>.+)$", re.IGNORECASE | re.DOTALL)
SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# placeholder visuals dropped on injection; layout declarations survive
VISUAL_STYLE_PREFIXES = (
    "background",
    "border",
    "color",
    "font-size",
    "font-weight",
    "text-shadow",
    "box-shadow",
    "backdrop-filter",
)
# border-radius shapes the logo box itself
KEPT_VISUAL_STYLES = ("border-radius",)


# ---------------------------------------------------------------------------
# contact pass
# ---------------------------------------------------------------------------

def format_phone_number(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    if len(digits) == 7:
        return f"{digits[:3]}-{digits[3:]}"
    return phone.strip()


def format_website(url: str) -> str:
    cleaned = SCHEME_RE.sub("", url.strip())
    return cleaned.rstrip("/")


def _slot_tokens(prefix: str, values: List[str], slots: int) -> Dict[str, str]:
    return {f"{prefix}_{i + 1}": (values[i] if i < len(values) else "") for i in range(slots)}


def build_token_values(data: BusinessCardData) -> Dict[str, str]:
    """Raw (unescaped) value for every token a layout may use.

    Contact slots are filled in order from the non-empty entries, so a blank
    first phone does not leave a gap on the card.
    """
    values = {
        "name": data.name.strip(),
        "title": data.title.strip(),
        "company": data.company_name.strip(),
        "subtitle": data.subtitle.strip(),
        "slogan": data.slogan.strip(),
        "descriptor": data.descriptor.strip(),
        "established": data.year_established.strip(),
    }
    phones = [format_phone_number(v) for v in data.filled_values(ContactKind.PHONE)]
    websites = [format_website(v) for v in data.filled_values(ContactKind.WEBSITE)]
    values.update(_slot_tokens("phone", phones, ContactKind.PHONE.max_slots))
    values.update(_slot_tokens("email", data.filled_values(ContactKind.EMAIL), ContactKind.EMAIL.max_slots))
    values.update(_slot_tokens("website", websites, ContactKind.WEBSITE.max_slots))
    values.update(_slot_tokens("address", data.filled_values(ContactKind.ADDRESS), ContactKind.ADDRESS.max_slots))
    values.update(_slot_tokens("social", data.filled_values(ContactKind.SOCIAL), ContactKind.SOCIAL.max_slots))
    return values


def _escape(value: str) -> str:
    # braces are escaped too so user input can never read as a token
    return html.escape(value, quote=True).replace("{", "&#123;").replace("}", "&#125;")


def find_placeholder_tokens(markup: str) -> List[str]:
    return TOKEN_RE.findall(markup)


def inject_contact_info(markup: str, data: BusinessCardData) -> str:
    values = build_token_values(data)

    def _drop_empty_optional(match: re.Match) -> str:
        tokens = TOKEN_RE.findall(match.group("body"))
        if tokens and not any(values.get(token) for token in tokens):
            return ""
        return match.group(0)

    result = OPTIONAL_LINE_RE.sub(_drop_empty_optional, markup)

    def _substitute(match: re.Match) -> str:
        token = match.group(1)
        if token not in values:
            logger.warning("Unknown placeholder token %r rendered empty", token)
            return ""
        return _escape(values[token])

    return TOKEN_RE.sub(_substitute, result)


# ---------------------------------------------------------------------------
# logo pass
# ---------------------------------------------------------------------------

def validate_logo(data_uri: str | None) -> bool:
    if not data_uri:
        return False
    match = DATA_URI_RE.match(data_uri.strip())
    if not match:
        return False
    try:
        raw = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        return False
    return len(raw) >= config.MIN_LOGO_BYTES


def parse_size(size: str) -> float:
    """CSS length to inches; bare numbers are read as inches."""
    cleaned = size.strip().lower()
    try:
        if cleaned.endswith("in"):
            return float(cleaned[:-2])
        if cleaned.endswith("px"):
            return float(cleaned[:-2]) / 96
        if cleaned.endswith("mm"):
            return float(cleaned[:-2]) / 25.4
        return float(cleaned)
    except ValueError:
        return 0.5


def parse_style(style: str) -> List[Tuple[str, str]]:
    declarations = []
    for chunk in style.split(";"):
        if ":" not in chunk:
            continue
        prop, value = chunk.split(":", 1)
        declarations.append((prop.strip().lower(), value.strip()))
    return declarations


def clean_placeholder_style(style: str) -> str:
    kept = []
    for prop, value in parse_style(style):
        if prop in KEPT_VISUAL_STYLES or not prop.startswith(VISUAL_STYLE_PREFIXES):
            kept.append(f"{prop}: {value}")
    return "; ".join(kept)


@dataclass(frozen=True)
class LogoConstraints:
    layout_type: str   # header-banner | row-block | inline-flex | standard
    native_width: float
    native_height: float
    max_size: float


def analyze_logo_constraints(style: str, context: str = "") -> LogoConstraints:
    """Pick a logo size (inches) that will not overflow the placeholder's slot.

    ``context`` is the markup just before the placeholder; header banners are
    recognised from it.
    """
    props = dict(parse_style(style))
    width = parse_size(props["width"]) if "width" in props else 0.5
    height = parse_size(props["height"]) if "height" in props else 0.5
    margin_bottom = parse_size(props["margin-bottom"]) if "margin-bottom" in props else 0.1
    display = props.get("display", "block").lower()

    is_header_banner = height <= 0.3 and (
        "header" in context.lower() or "justify-content: space-between" in context
    )
    if is_header_banner:
        layout_type = "header-banner"
    elif "inline" in display:
        layout_type = "inline-flex"
    elif "display" in props and ("block" in display or "flex" in display):
        layout_type = "row-block"
    else:
        layout_type = "standard"

    small_height = height <= 0.6
    tight_spacing = margin_bottom < 0.1
    over_constrained = height >= 0.35 and width >= 0.45 and not small_height

    if layout_type == "header-banner":
        max_size = min(0.4, height * 1.8)
    elif layout_type == "row-block":
        max_size = min(0.6, height * 1.5)
    elif layout_type == "inline-flex":
        max_size = 0.7 if (small_height or tight_spacing) else 0.9
    elif over_constrained:
        max_size = 0.9
    elif small_height and tight_spacing:
        max_size = 0.5
    elif small_height or tight_spacing:
        max_size = 0.7
    else:
        max_size = 1.0

    return LogoConstraints(layout_type, width, height, round(max_size, 3))


def _logo_img(data_uri: str, width: float, height: float) -> str:
    style = f"width: {width:g}in; height: {height:g}in; object-fit: contain; object-position: center; display: block"
    return f'<img src="{html.escape(data_uri, quote=True)}" style="{style}" alt="Logo" />'


def inject_logo(
    markup: str,
    data_uri: str | None,
    mode: PreviewMode = PreviewMode.GRID,
    allow_enlarged_logo: bool = True,
) -> str:
    """Fill every logo placeholder with the image; invalid logos change nothing."""
    if not validate_logo(data_uri):
        if data_uri:
            logger.warning("Logo rejected: not a decodable image data URI")
        return markup

    def _fill(match: re.Match) -> str:
        attrs = match.group("attrs")
        style_match = STYLE_ATTR_RE.search(attrs)
        style = style_match.group(1) if style_match else ""
        context = markup[max(0, match.start() - 400):match.start()]
        constraints = analyze_logo_constraints(style, context)

        width = height = constraints.max_size
        if mode == PreviewMode.ENLARGED and not allow_enlarged_logo:
            width = min(width, constraints.native_width)
            height = min(height, constraints.native_height)

        if style_match:
            attrs = STYLE_ATTR_RE.sub(f'style="{clean_placeholder_style(style)}"', attrs, count=1)
        return f"<div{attrs}>{_logo_img(data_uri, width, height)}</div>"

    return LOGO_PLACEHOLDER_RE.sub(_fill, markup)


def logo_is_injected(markup: str) -> bool:
    match = LOGO_PLACEHOLDER_RE.search(markup)
    return bool(match and "<img" in match.group("body"))


def generate_injected_html(
    layout: CardLayout,
    data: BusinessCardData,
    mode: PreviewMode = PreviewMode.GRID,
    logo_data_uri: Optional[str] = None,
) -> str:
    """Contact pass, then logo pass. Pure: same inputs give identical output."""
    html_out = inject_contact_info(layout.markup, data)
    data_uri = logo_data_uri or data.logo.logo_data_uri
    return inject_logo(html_out, data_uri, mode, layout.metadata.allow_enlarged_logo)
