from __future__ import annotations

import unittest

from logostudio.cards.capture import CardImage
from logostudio.cards.contact import ContactKind
from logostudio.cards.wizard import (
    CAPTURE_FAILED,
    EXPORT_FAILED,
    LAYOUT_NOT_FOUND,
    BusinessCardWizard,
    WizardStep,
)
from logostudio.errors import ExportError, ValidationError

from conftest import make_png


class FakeCapturer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def capture(self, html: str) -> CardImage:
        self.calls.append(html)
        if self.fail:
            raise ExportError("renderer crashed")
        return CardImage(png=make_png(252, 144), width_px=252, height_px=144)


def _filled(wizard: BusinessCardWizard) -> BusinessCardWizard:
    wizard.update_info(name="Sarah Mitchell", company_name="TechVision", title="Founder")
    wizard.set_field(ContactKind.PHONE, 0, "5551234567")
    return wizard


class BusinessCardWizardTest(unittest.TestCase):
    def test_info_step_blocks_until_required_fields(self) -> None:
        wizard = BusinessCardWizard(FakeCapturer())
        self.assertFalse(wizard.next())
        self.assertEqual(wizard.step, WizardStep.INFO)

        wizard.update_info(name="Sarah Mitchell", company_name="TechVision")
        self.assertFalse(wizard.next())
        wizard.set_field(ContactKind.EMAIL, 0, "s@tv.com")
        self.assertTrue(wizard.next())
        self.assertEqual(wizard.step, WizardStep.LAYOUT)

    def test_unknown_field_rejected(self) -> None:
        wizard = BusinessCardWizard(FakeCapturer())
        with self.assertRaises(ValidationError):
            wizard.update_info(favourite_colour="teal")

    def test_layout_step_needs_a_selection(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer()))
        wizard.next()
        self.assertFalse(wizard.next())
        wizard.select_layout("BC001")
        self.assertTrue(wizard.next())
        self.assertEqual(wizard.step, WizardStep.PREVIEW)
        self.assertIn("Sarah Mitchell", wizard.preview_html)
        self.assertIsNone(wizard.error)

    def test_layout_browsing(self) -> None:
        wizard = BusinessCardWizard(FakeCapturer())
        layouts, pages = wizard.visible_layouts()
        self.assertEqual(pages, 1)
        self.assertEqual(layouts[0].catalog_id, "BC001")
        wizard.set_filter(theme="luxury")
        layouts, _ = wizard.visible_layouts()
        self.assertEqual([l.catalog_id for l in layouts], ["BC006"])
        self.assertIn("LOGO", wizard.thumbnail_html(layouts[0]))

    def test_missing_layout_reports_not_found(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer()))
        wizard.next()
        wizard.select_layout("BC404")
        wizard.next()
        self.assertEqual(wizard.step, WizardStep.PREVIEW)
        self.assertEqual(wizard.error, LAYOUT_NOT_FOUND)
        self.assertIsNone(wizard.preview_html)
        self.assertIsNone(wizard.render_preview())
        self.assertIsNone(wizard.export_pdf())

        wizard.back()
        self.assertEqual(wizard.step, WizardStep.LAYOUT)
        self.assertIsNone(wizard.error)

    def test_preview_then_export(self) -> None:
        capturer = FakeCapturer()
        wizard = _filled(BusinessCardWizard(capturer))
        wizard.next()
        wizard.select_layout("BC003")
        wizard.next()

        image = wizard.render_preview()
        self.assertIsNotNone(image)
        # cached
        wizard.render_preview()
        self.assertEqual(len(capturer.calls), 1)

        pdf = wizard.export_pdf()
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertFalse(wizard.loading)
        self.assertIsNone(wizard.error)

    def test_export_before_preview_is_refused(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer()))
        self.assertIsNone(wizard.export_pdf())
        wizard.next()
        wizard.select_layout("BC001")
        wizard.next()
        self.assertIsNone(wizard.export_pdf())
        self.assertIsNotNone(wizard.error)

    def test_capture_failure_keeps_wizard_on_preview(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer(fail=True)))
        wizard.next()
        wizard.select_layout("BC001")
        wizard.next()
        self.assertIsNone(wizard.render_preview())
        self.assertEqual(wizard.error, CAPTURE_FAILED)
        self.assertEqual(wizard.step, WizardStep.PREVIEW)
        self.assertFalse(wizard.loading)

    def test_export_failure_returns_none(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer()))
        wizard.next()
        wizard.select_layout("BC001")
        wizard.next()
        wizard.render_preview()
        # corrupt the capture so the sheet renderer refuses it
        wizard.preview_image = CardImage(png=b"not a png", width_px=1, height_px=1)
        self.assertIsNone(wizard.export_pdf())
        self.assertEqual(wizard.error, EXPORT_FAILED)
        self.assertFalse(wizard.loading)
        self.assertEqual(wizard.step, WizardStep.PREVIEW)

    def test_back_clears_preview_and_close_resets(self) -> None:
        wizard = _filled(BusinessCardWizard(FakeCapturer()))
        wizard.next()
        wizard.select_layout("BC001")
        wizard.next()
        wizard.render_preview()
        self.assertTrue(wizard.back())
        self.assertIsNone(wizard.preview_html)
        self.assertIsNone(wizard.preview_image)
        self.assertEqual(wizard.selected_layout_id, "BC001")

        wizard.close()
        self.assertEqual(wizard.step, WizardStep.INFO)
        self.assertEqual(wizard.form_data.name, "")
        self.assertIsNone(wizard.selected_layout_id)
        self.assertFalse(wizard.back())


if __name__ == "__main__":
    unittest.main()
