from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import NotFoundError


CARD_WIDTH = "3.5in"
CARD_HEIGHT = "2in"


@dataclass(frozen=True)
class LayoutMetadata:
    features: Tuple[str, ...]
    colors: Tuple[str, ...]
    fonts: Tuple[str, ...]
    allow_enlarged_logo: bool = False
    dimensions: Tuple[str, str] = (CARD_WIDTH, CARD_HEIGHT)


@dataclass(frozen=True)
class CardLayout:
    catalog_id: str
    name: str
    theme: str
    style: str                       # contact-focused | company-focused
    description: str
    markup: str                      # {{token}} placeholders + one logo-placeholder div
    metadata: LayoutMetadata = field(compare=False)
    version: int = 1

    def summary(self) -> dict:
        return {
            "catalogId": self.catalog_id,
            "name": self.name,
            "theme": self.theme,
            "style": self.style,
            "description": self.description,
            "features": list(self.metadata.features),
            "colors": list(self.metadata.colors),
            "fonts": list(self.metadata.fonts),
            "allowEnlargedLogo": self.metadata.allow_enlarged_logo,
        }


_BC001 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #ffffff; padding: 0.25in; font-family: Arial, sans-serif; box-sizing: border-box;">
  <div class="logo-section" style="float: left; width: 0.8in; height: 0.6in;">
    <div class="logo-placeholder" style="width: 0.8in; height: 0.6in; background-color: #f0f0f0; border-radius: 4px; display: flex; align-items: center; justify-content: center; font-size: 8px; color: #999; border: 1px solid #e0e0e0;">LOGO</div>
  </div>
  <div class="main-content" style="margin-left: 1.2in; padding-top: 0.1in;">
    <div class="bc-contact-name" style="font-size: 14px; font-weight: 600; color: #2d3748;">{{name}}</div>
    <div class="bc-contact-title" style="font-size: 10px; color: #718096; margin-bottom: 8px;">{{title}}</div>
    <div class="bc-contact-company" style="font-size: 11px; color: #2d3748; font-weight: 500;">{{company}}</div>
    <div class="bc-contact-phone" style="font-size: 9px; color: #4a5568;">{{phone_1}}</div>
    <div class="bc-contact-phone bc-optional" style="font-size: 9px; color: #4a5568;">{{phone_2}}</div>
    <div class="bc-contact-email" style="font-size: 9px; color: #4a5568;">{{email_1}}</div>
    <div class="bc-contact-website bc-optional" style="font-size: 9px; color: #4a5568;">{{website_1}}</div>
  </div>
</div>
"""

_BC002 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #fafafa; padding: 0.2in; font-family: Helvetica, sans-serif; text-align: center; box-sizing: border-box;">
  <div class="logo-placeholder" style="width: 0.5in; height: 0.5in; margin: 0 auto 0.08in auto; background-color: #e5e7eb; border: 1px dashed #9ca3af; font-size: 7px; color: #6b7280; display: flex; align-items: center; justify-content: center;">LOGO</div>
  <div class="bc-contact-company" style="font-size: 15px; font-weight: 700; color: #111827; letter-spacing: 1px;">{{company}}</div>
  <div class="bc-contact-slogan bc-optional" style="font-size: 8px; color: #6b7280; font-style: italic;">{{slogan}}</div>
  <div class="bc-contact-name" style="font-size: 10px; color: #374151; margin-top: 6px;">{{name}}</div>
  <div class="bc-contact-title" style="font-size: 8px; color: #6b7280;">{{title}}</div>
  <div class="bc-contact-phone" style="font-size: 8px; color: #374151;">{{phone_1}}</div>
  <div class="bc-contact-email" style="font-size: 8px; color: #374151;">{{email_1}}</div>
</div>
"""

_BC003 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #ffffff; font-family: 'Segoe UI', sans-serif; box-sizing: border-box;">
  <div class="panel-left" style="float: left; width: 1.3in; height: 2in; background: #1e3a8a; padding: 0.2in; box-sizing: border-box;">
    <div class="logo-placeholder" style="width: 0.9in; height: 0.9in; display: inline-flex; background-color: #1e40af; border: 1px solid #93c5fd; color: #dbeafe; font-size: 8px;">LOGO</div>
    <div class="bc-contact-company" style="font-size: 10px; color: #ffffff; font-weight: 600; margin-top: 0.1in;">{{company}}</div>
  </div>
  <div class="panel-right" style="margin-left: 1.45in; padding-top: 0.25in;">
    <div class="bc-contact-name" style="font-size: 13px; color: #1e3a8a; font-weight: 700;">{{name}}</div>
    <div class="bc-contact-title" style="font-size: 9px; color: #64748b; margin-bottom: 6px;">{{title}}</div>
    <div class="bc-contact-phone" style="font-size: 8px; color: #334155;">&#128241; {{phone_1}}</div>
    <div class="bc-contact-phone bc-optional" style="font-size: 8px; color: #334155;">&#9742; {{phone_2}}</div>
    <div class="bc-contact-email" style="font-size: 8px; color: #334155;">&#9993; {{email_1}}</div>
    <div class="bc-contact-website bc-optional" style="font-size: 8px; color: #334155;">&#127760; {{website_1}}</div>
  </div>
</div>
"""

_BC004 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #ffffff; font-family: Arial, sans-serif; box-sizing: border-box;">
  <div class="header-banner" style="height: 0.45in; background: #0f766e; padding: 0.08in 0.2in; display: flex; justify-content: space-between;">
    <div class="logo-placeholder" style="width: 0.3in; height: 0.3in; background-color: #14b8a6; border-radius: 50%; font-size: 6px; color: #f0fdfa;">LOGO</div>
    <div class="bc-contact-company" style="font-size: 12px; color: #f0fdfa; font-weight: 700;">{{company}}</div>
  </div>
  <div class="body" style="padding: 0.15in 0.2in;">
    <div class="bc-contact-name" style="font-size: 13px; color: #134e4a; font-weight: 700;">{{name}}</div>
    <div class="bc-contact-title" style="font-size: 9px; color: #5f7471;">{{title}}</div>
    <div class="bc-contact-descriptor bc-optional" style="font-size: 8px; color: #0f766e;">{{descriptor}}</div>
    <div class="bc-contact-phone" style="font-size: 8px; color: #1f2937;">Tel: {{phone_1}}</div>
    <div class="bc-contact-email" style="font-size: 8px; color: #1f2937;">Email: {{email_1}}</div>
    <div class="bc-contact-address bc-optional" style="font-size: 8px; color: #1f2937;">{{address_1}}</div>
  </div>
</div>
"""

_BC005 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #7c3aed; padding: 0.22in; font-family: 'Poppins', sans-serif; color: #ffffff; box-sizing: border-box;">
  <div class="logo-placeholder" style="width: 0.7in; height: 0.7in; float: right; background-color: rgba(255,255,255,0.2); border-radius: 12px; font-size: 8px; color: #ede9fe;">LOGO</div>
  <div class="bc-contact-name" style="font-size: 16px; font-weight: 700;">{{name}}</div>
  <div class="bc-contact-title" style="font-size: 9px; color: #ddd6fe;">{{title}}</div>
  <div class="bc-contact-company" style="font-size: 10px; font-weight: 600; margin: 4px 0 8px 0;">{{company}}</div>
  <div class="bc-contact-phone" style="font-size: 8px;">&#128241; {{phone_1}}</div>
  <div class="bc-contact-email" style="font-size: 8px;">&#9993; {{email_1}}</div>
  <div class="bc-contact-email bc-optional" style="font-size: 8px;">&#9993; {{email_2}}</div>
  <div class="bc-contact-social bc-optional" style="font-size: 8px;">&#10024; {{social_1}}</div>
  <div class="bc-contact-social bc-optional" style="font-size: 8px;">&#10024; {{social_2}}</div>
</div>
"""

_BC006 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #111111; padding: 0.25in; font-family: 'Playfair Display', Georgia, serif; color: #d4af37; text-align: center; box-sizing: border-box;">
  <div class="logo-placeholder" style="width: 0.55in; height: 0.55in; margin: 0 auto; background-color: #1f1f1f; border: 1px solid #d4af37; font-size: 7px; color: #d4af37;">LOGO</div>
  <div class="bc-contact-company" style="font-size: 15px; letter-spacing: 2px; margin-top: 4px;">{{company}}</div>
  <div class="bc-contact-slogan bc-optional" style="font-size: 8px; color: #bfa14a; font-style: italic;">{{slogan}}</div>
  <div class="bc-contact-established bc-optional" style="font-size: 7px; color: #8c7a3a;">EST. {{established}}</div>
  <div class="bc-contact-name" style="font-size: 10px; color: #f5f5f5; margin-top: 6px;">{{name}}</div>
  <div class="bc-contact-title" style="font-size: 8px; color: #a3a3a3;">{{title}}</div>
  <div class="bc-contact-phone" style="font-size: 8px; color: #e5e5e5;">{{phone_1}}</div>
  <div class="bc-contact-email" style="font-size: 8px; color: #e5e5e5;">{{email_1}}</div>
</div>
"""

_BC007 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #fffdf7; padding: 0.22in; font-family: Georgia, 'Times New Roman', serif; border: 2px solid #7c2d12; box-sizing: border-box;">
  <div class="logo-placeholder" style="width: 0.6in; height: 0.6in; float: left; margin-right: 0.15in; margin-bottom: 0.05in; background-color: #fef3c7; border: 1px solid #92400e; font-size: 7px; color: #92400e;">LOGO</div>
  <div class="bc-contact-name" style="font-size: 14px; color: #7c2d12; font-weight: bold;">{{name}}</div>
  <div class="bc-contact-subtitle bc-optional" style="font-size: 8px; color: #9a3412;">{{subtitle}}</div>
  <div class="bc-contact-title" style="font-size: 9px; color: #57534e; font-style: italic;">{{title}}</div>
  <div class="bc-contact-company" style="font-size: 10px; color: #292524; margin-top: 6px;">{{company}}</div>
  <div class="bc-contact-address bc-optional" style="font-size: 8px; color: #44403c;">{{address_1}}</div>
  <div class="bc-contact-address bc-optional" style="font-size: 8px; color: #44403c;">{{address_2}}</div>
  <div class="bc-contact-phone" style="font-size: 8px; color: #44403c;">{{phone_1}}</div>
  <div class="bc-contact-phone bc-optional" style="font-size: 8px; color: #44403c;">Fax: {{phone_3}}</div>
  <div class="bc-contact-email" style="font-size: 8px; color: #44403c;">{{email_1}}</div>
</div>
"""

_BC008 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #fdf2f8; font-family: 'Montserrat', sans-serif; box-sizing: border-box;">
  <div class="sidebar" style="float: left; width: 0.35in; height: 2in; background: #db2777;"></div>
  <div class="content" style="margin-left: 0.55in; padding-top: 0.2in;">
    <div class="logo-placeholder" style="width: 0.5in; height: 0.5in; display: inline-flex; background-color: #fbcfe8; border-radius: 8px; font-size: 7px; color: #9d174d;">LOGO</div>
    <div class="bc-contact-name" style="font-size: 14px; color: #831843; font-weight: 800;">{{name}}</div>
    <div class="bc-contact-title" style="font-size: 9px; color: #be185d;">{{title}}</div>
    <div class="bc-contact-company" style="font-size: 9px; color: #500724;">{{company}}</div>
    <div class="bc-contact-phone" style="font-size: 8px; color: #500724;">{{phone_1}}</div>
    <div class="bc-contact-email" style="font-size: 8px; color: #500724;">{{email_1}}</div>
    <div class="bc-contact-website bc-optional" style="font-size: 8px; color: #500724;">{{website_1}}</div>
    <div class="bc-contact-social bc-optional" style="font-size: 8px; color: #9d174d;">{{social_1}}</div>
    <div class="bc-contact-social bc-optional" style="font-size: 8px; color: #9d174d;">{{social_2}}</div>
    <div class="bc-contact-social bc-optional" style="font-size: 8px; color: #9d174d;">{{social_3}}</div>
  </div>
</div>
"""

_BC009 = """
<div class="business-card" style="width: 3.5in; height: 2in; background: #f8fafc; padding: 0.2in 0.25in; font-family: 'Inter', Arial, sans-serif; border-bottom: 6px solid #334155; box-sizing: border-box;">
  <div class="top-row" style="display: flex; justify-content: space-between; margin-bottom: 0.1in;">
    <div class="bc-contact-company" style="font-size: 13px; color: #0f172a; font-weight: 700;">{{company}}</div>
    <div class="logo-placeholder" style="width: 0.55in; height: 0.45in; background-color: #e2e8f0; border: 1px solid #cbd5e1; font-size: 7px; color: #475569;">LOGO</div>
  </div>
  <div class="bc-contact-descriptor bc-optional" style="font-size: 8px; color: #475569; text-transform: uppercase;">{{descriptor}}</div>
  <div class="bc-contact-name" style="font-size: 11px; color: #0f172a; font-weight: 600; margin-top: 4px;">{{name}}</div>
  <div class="bc-contact-subtitle bc-optional" style="font-size: 8px; color: #334155;">{{subtitle}}</div>
  <div class="bc-contact-title" style="font-size: 8px; color: #64748b;">{{title}}</div>
  <div class="bc-contact-phone" style="font-size: 8px; color: #1e293b;">T {{phone_1}}</div>
  <div class="bc-contact-phone bc-optional" style="font-size: 8px; color: #1e293b;">M {{phone_2}}</div>
  <div class="bc-contact-email" style="font-size: 8px; color: #1e293b;">E {{email_1}}</div>
  <div class="bc-contact-website bc-optional" style="font-size: 8px; color: #1e293b;">W {{website_1}}</div>
</div>
"""


LAYOUTS: Tuple[CardLayout, ...] = (
    CardLayout(
        catalog_id="BC001",
        name="Minimal Professional v1",
        theme="minimalistic",
        style="contact-focused",
        description="Clean white background with subtle typography",
        markup=_BC001,
        metadata=LayoutMetadata(
            features=("clean", "logo-left", "two-phone"),
            colors=("#ffffff", "#2d3748", "#718096"),
            fonts=("Arial",),
            allow_enlarged_logo=True,
        ),
    ),
    CardLayout(
        catalog_id="BC002",
        name="Minimal Centered",
        theme="minimalistic",
        style="company-focused",
        description="Centered company mark with an optional slogan line",
        markup=_BC002,
        metadata=LayoutMetadata(
            features=("centered", "slogan", "compact"),
            colors=("#fafafa", "#111827", "#6b7280"),
            fonts=("Helvetica",),
            allow_enlarged_logo=False,
        ),
    ),
    CardLayout(
        catalog_id="BC003",
        name="Modern Split Panel",
        theme="modern",
        style="contact-focused",
        description="Navy brand panel on the left with contact details on the right",
        markup=_BC003,
        metadata=LayoutMetadata(
            features=("split-panel", "icons", "bold-color"),
            colors=("#1e3a8a", "#ffffff", "#334155"),
            fonts=("Segoe UI",),
            allow_enlarged_logo=True,
        ),
    ),
    CardLayout(
        catalog_id="BC004",
        name="Modern Header Banner",
        theme="modern",
        style="company-focused",
        description="Teal header banner carrying the logo and company name",
        markup=_BC004,
        metadata=LayoutMetadata(
            features=("header-banner", "address", "labels"),
            colors=("#0f766e", "#f0fdfa", "#134e4a"),
            fonts=("Arial",),
            allow_enlarged_logo=False,
        ),
    ),
    CardLayout(
        catalog_id="BC005",
        name="Trendy Violet",
        theme="trendy",
        style="contact-focused",
        description="Saturated violet card with social handles",
        markup=_BC005,
        metadata=LayoutMetadata(
            features=("social-media", "icons", "bold-color"),
            colors=("#7c3aed", "#ffffff", "#ddd6fe"),
            fonts=("Poppins",),
            allow_enlarged_logo=True,
        ),
    ),
    CardLayout(
        catalog_id="BC006",
        name="Luxury Gold Accent",
        theme="luxury",
        style="company-focused",
        description="Black card with gold serif lettering and year established",
        markup=_BC006,
        metadata=LayoutMetadata(
            features=("gold", "slogan", "established", "centered"),
            colors=("#111111", "#d4af37", "#f5f5f5"),
            fonts=("Playfair Display", "Georgia"),
            allow_enlarged_logo=False,
        ),
    ),
    CardLayout(
        catalog_id="BC007",
        name="Classic Letterpress",
        theme="classic",
        style="contact-focused",
        description="Cream stock with serif type, credentials and a postal address",
        markup=_BC007,
        metadata=LayoutMetadata(
            features=("serif", "address", "credentials", "fax"),
            colors=("#fffdf7", "#7c2d12", "#44403c"),
            fonts=("Georgia", "Times New Roman"),
            allow_enlarged_logo=True,
        ),
    ),
    CardLayout(
        catalog_id="BC008",
        name="Creative Sidebar",
        theme="creative",
        style="contact-focused",
        description="Pink sidebar accent with up to three social handles",
        markup=_BC008,
        metadata=LayoutMetadata(
            features=("sidebar", "social-media", "playful"),
            colors=("#fdf2f8", "#db2777", "#831843"),
            fonts=("Montserrat",),
            allow_enlarged_logo=True,
        ),
    ),
    CardLayout(
        catalog_id="BC009",
        name="Professional Firm",
        theme="professional",
        style="company-focused",
        description="Slate firm card with descriptor, credentials and labelled contacts",
        markup=_BC009,
        metadata=LayoutMetadata(
            features=("descriptor", "credentials", "labels", "logo-right"),
            colors=("#f8fafc", "#0f172a", "#334155"),
            fonts=("Inter", "Arial"),
            allow_enlarged_logo=False,
        ),
    ),
)

_BY_ID: Dict[str, CardLayout] = {layout.catalog_id: layout for layout in LAYOUTS}


def get_layout(catalog_id: str | None) -> Optional[CardLayout]:
    if not catalog_id:
        return None
    return _BY_ID.get(catalog_id.strip().upper())


def require_layout(catalog_id: str | None) -> CardLayout:
    layout = get_layout(catalog_id)
    if layout is None:
        raise NotFoundError("Layout not found", details={"catalogId": catalog_id})
    return layout


def list_themes() -> List[str]:
    themes: List[str] = []
    for layout in LAYOUTS:
        if layout.theme not in themes:
            themes.append(layout.theme)
    return themes


def filter_layouts(theme: str | None = None, layouts: Sequence[CardLayout] = LAYOUTS) -> List[CardLayout]:
    if not theme or theme.lower() == "all":
        return list(layouts)
    wanted = theme.lower()
    return [layout for layout in layouts if layout.theme.lower() == wanted]


def _matches(layout: CardLayout, term: str) -> bool:
    haystack = [
        layout.catalog_id,
        layout.name,
        layout.description,
        layout.theme,
        layout.style,
        *layout.metadata.features,
    ]
    return any(term in value.lower() for value in haystack)


def search_layouts(term: str | None, theme: str | None = None) -> List[CardLayout]:
    candidates = filter_layouts(theme)
    needle = (term or "").strip().lower()
    if not needle:
        return candidates
    return [layout for layout in candidates if _matches(layout, needle)]


def paginate_layouts(layouts: Sequence[CardLayout], page: int, per_page: int) -> Tuple[List[CardLayout], int]:
    """Return one page of layouts (1-based) and the total page count."""
    per_page = max(1, per_page)
    total_pages = max(1, math.ceil(len(layouts) / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return list(layouts[start:start + per_page]), total_pages
