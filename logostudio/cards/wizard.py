from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple
import logging

from .. import config
from ..errors import LogoStudioError, ValidationError
from . import contact
from .capture import CardCapturer, CardImage, MuPDFCardCapturer
from .contact import BusinessCardData, ContactKind, LogoRef
from .export import render_card_sheet
from .injection import PreviewMode, generate_injected_html
from .layouts import CardLayout, get_layout, paginate_layouts, search_layouts

logger = logging.getLogger(__name__)

LAYOUT_NOT_FOUND = "Layout not found"
EXPORT_FAILED = "Failed to generate business cards. Please try again."
CAPTURE_FAILED = "Could not render the preview. Please try again."


class WizardStep(str, Enum):
    INFO = "info"
    LAYOUT = "layout"
    PREVIEW = "preview"


_FORWARD = {WizardStep.INFO: WizardStep.LAYOUT, WizardStep.LAYOUT: WizardStep.PREVIEW}
_BACKWARD = {WizardStep.PREVIEW: WizardStep.LAYOUT, WizardStep.LAYOUT: WizardStep.INFO}


class BusinessCardWizard:
    """Three-step business card flow: contact info, layout pick, preview/export.

    All state lives on the instance; ``close()`` returns it to a fresh form.
    """

    def __init__(self, capturer: Optional[CardCapturer] = None) -> None:
        self.capturer = capturer or MuPDFCardCapturer()
        self._reset()

    def _reset(self) -> None:
        self.step = WizardStep.INFO
        self.form_data = BusinessCardData.empty()
        self.selected_layout_id: Optional[str] = None
        self.preview_html: Optional[str] = None
        self.preview_image: Optional[CardImage] = None
        self.error: Optional[str] = None
        self.loading = False
        self.theme: Optional[str] = None
        self.search = ""
        self.layout_page = 1

    # ------------------------------------------------------------------
    # form
    # ------------------------------------------------------------------

    def update_info(self, **values: str) -> None:
        for key, value in values.items():
            if key not in {"name", "title", "company_name", "subtitle", "slogan", "descriptor", "year_established"}:
                raise ValidationError(f"Unknown card field: {key}")
            setattr(self.form_data, key, value)

    def add_field(self, kind: ContactKind, value: str = "") -> None:
        contact.add_field(self.form_data, kind, value)

    def remove_field(self, kind: ContactKind, index: int) -> None:
        contact.remove_field(self.form_data, kind, index)

    def set_field(self, kind: ContactKind, index: int, value: str) -> None:
        contact.set_field(self.form_data, kind, index, value)

    def set_logo(self, logo_id: Optional[str], data_uri: Optional[str]) -> None:
        self.form_data.logo = LogoRef(logo_id=logo_id, logo_data_uri=data_uri)

    def validation_errors(self) -> List[str]:
        return contact.validate_contact_info(self.form_data, check_format=False)

    # ------------------------------------------------------------------
    # layout step
    # ------------------------------------------------------------------

    def visible_layouts(self) -> Tuple[List[CardLayout], int]:
        matches = search_layouts(self.search, self.theme)
        layouts, total_pages = paginate_layouts(matches, self.layout_page, config.LAYOUTS_PER_PAGE)
        return layouts, total_pages

    def set_filter(self, theme: Optional[str] = None, search: str = "") -> None:
        self.theme = theme
        self.search = search
        self.layout_page = 1

    def select_layout(self, catalog_id: str) -> None:
        self.selected_layout_id = catalog_id

    def thumbnail_html(self, layout: CardLayout) -> str:
        return generate_injected_html(layout, self.form_data, PreviewMode.GRID)

    # ------------------------------------------------------------------
    # navigation
    # ------------------------------------------------------------------

    def can_advance(self) -> bool:
        if self.step == WizardStep.INFO:
            return not self.validation_errors()
        if self.step == WizardStep.LAYOUT:
            return bool(self.selected_layout_id)
        return False

    def next(self) -> bool:
        if not self.can_advance():
            return False
        self.step = _FORWARD[self.step]
        if self.step == WizardStep.PREVIEW:
            self._enter_preview()
        return True

    def back(self) -> bool:
        if self.step not in _BACKWARD:
            return False
        self.step = _BACKWARD[self.step]
        self.error = None
        self.preview_html = None
        self.preview_image = None
        return True

    def _enter_preview(self) -> None:
        self.preview_image = None
        layout = get_layout(self.selected_layout_id)
        if layout is None:
            logger.warning("Selected layout %r is not in the catalog", self.selected_layout_id)
            self.preview_html = None
            self.error = LAYOUT_NOT_FOUND
            return
        self.error = None
        self.preview_html = generate_injected_html(layout, self.form_data, PreviewMode.ENLARGED)

    # ------------------------------------------------------------------
    # preview / export
    # ------------------------------------------------------------------

    def render_preview(self) -> Optional[CardImage]:
        if self.step != WizardStep.PREVIEW or not self.preview_html:
            return None
        if self.preview_image is not None:
            return self.preview_image
        self.loading = True
        try:
            self.preview_image = self.capturer.capture(self.preview_html)
            self.error = None
        except LogoStudioError:
            logger.exception("Preview capture failed")
            self.error = CAPTURE_FAILED
        finally:
            self.loading = False
        return self.preview_image

    def export_pdf(self, card_count: int = config.CARDS_PER_SHEET) -> Optional[bytes]:
        """Sheet PDF built from the captured preview, or None with ``error`` set."""
        if self.step != WizardStep.PREVIEW:
            return None
        if self.preview_image is None:
            self.error = "Preview is not ready yet. Please wait for it to render."
            return None
        self.loading = True
        try:
            pdf = render_card_sheet(self.preview_image, card_count)
        except LogoStudioError:
            logger.exception("Business card export failed")
            self.error = EXPORT_FAILED
            return None
        finally:
            self.loading = False
        self.error = None
        return pdf

    def close(self) -> None:
        self._reset()
