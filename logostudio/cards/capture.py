from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Protocol
import logging

import fitz  # PyMuPDF

from .. import config
from ..errors import ExportError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# 3.5in x 2in in PDF points
CARD_RECT = fitz.Rect(0, 0, 3.5 * 72, 2 * 72)
CARD_CSS = "body { margin: 0; padding: 0; } * { box-sizing: border-box; }"


@dataclass(frozen=True)
class CardImage:
    png: bytes
    width_px: int
    height_px: int

    @property
    def aspect(self) -> float:
        return self.width_px / float(self.height_px)


class CardCapturer(Protocol):
    def capture(self, html: str) -> CardImage:
        ...


def validate_card_image(image: CardImage | None) -> None:
    if image is None:
        raise ExportError("No preview has been captured")
    if not image.png.startswith(PNG_SIGNATURE):
        raise ExportError("Captured preview is not a PNG image")
    if image.width_px <= 0 or image.height_px <= 0:
        raise ExportError("Captured preview has no size")


class MuPDFCardCapturer:
    """Lays card HTML out on a single card-sized page and rasterizes it.

    Anything that does not fit on the card is clipped, same as the printed
    card would be.
    """

    def __init__(self, scale: float = config.CAPTURE_SCALE) -> None:
        self.scale = scale

    def _layout_pdf(self, html: str) -> bytes:
        story = fitz.Story(html=html, user_css=CARD_CSS)
        buf = BytesIO()
        writer = fitz.DocumentWriter(buf)
        device = writer.begin_page(CARD_RECT)
        more, _ = story.place(CARD_RECT)
        story.draw(device)
        writer.end_page()
        writer.close()
        if more:
            logger.info("Card content overflowed the card bounds and was clipped")
        return buf.getvalue()

    def capture(self, html: str) -> CardImage:
        if not html or not html.strip():
            raise ExportError("Nothing to capture: preview HTML is empty")
        try:
            pdf_bytes = self._layout_pdf(html)
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                page = doc.load_page(0)
                pix = page.get_pixmap(matrix=fitz.Matrix(self.scale, self.scale), alpha=False)
                image = CardImage(png=pix.tobytes("png"), width_px=pix.width, height_px=pix.height)
        except Exception as exc:
            logger.exception("Card capture failed")
            raise ExportError("Could not capture the card preview") from exc
        return image
