from __future__ import annotations

import fitz  # PyMuPDF

from logostudio.cards.contact import ContactKind
from logostudio.cards.injection import TOKEN_RE, logo_is_injected
from logostudio.cards.wizard import BusinessCardWizard, WizardStep


def test_contact_only_card_to_printable_sheet() -> None:
    wizard = BusinessCardWizard()
    wizard.update_info(name="Sarah Mitchell", title="Founder & CEO", company_name="TechVision")
    wizard.set_field(ContactKind.PHONE, 0, "5551234567")
    wizard.set_field(ContactKind.EMAIL, 0, "s@tv.com")
    assert wizard.next()

    layouts, _ = wizard.visible_layouts()
    assert "BC001" in [layout.catalog_id for layout in layouts]
    wizard.select_layout("BC001")
    assert wizard.next()
    assert wizard.step == WizardStep.PREVIEW

    html = wizard.preview_html
    assert "Sarah Mitchell" in html
    assert "Founder &amp; CEO" in html
    assert "(555) 123-4567" in html
    assert "s@tv.com" in html
    assert not TOKEN_RE.search(html)
    # no logo was chosen: the placeholder stays as drawn
    assert not logo_is_injected(html)
    assert ">LOGO</div>" in html

    image = wizard.render_preview()
    assert image is not None
    assert image.aspect == 1.75

    pdf = wizard.export_pdf()
    assert pdf is not None, wizard.error
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        assert doc.page_count == 1
        page = doc[0]
        rects = page.get_image_rects(page.get_images()[0][0])
        assert len(rects) == 10
        assert all(page.rect.contains(rect) for rect in rects)


def test_card_with_logo(logo_data_uri: str) -> None:
    wizard = BusinessCardWizard()
    wizard.update_info(name="Sarah Mitchell", company_name="TechVision")
    wizard.set_field(ContactKind.EMAIL, 0, "s@tv.com")
    wizard.set_logo("logo-1", logo_data_uri)
    wizard.next()
    wizard.select_layout("BC003")
    wizard.next()
    assert logo_is_injected(wizard.preview_html)
    assert ">LOGO<" not in wizard.preview_html
    assert "Sarah Mitchell" in wizard.preview_html
