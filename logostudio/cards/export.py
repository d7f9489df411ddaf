from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import List
import logging

from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .. import config
from ..errors import ExportError
from .capture import CardImage, validate_card_image

logger = logging.getLogger(__name__)

# Avery 8371: 2 x 5 cards on US Letter, all values in mm
PAGE_WIDTH_MM = 215.9
PAGE_HEIGHT_MM = 279.4
CARD_WIDTH_MM = 88.9
CARD_HEIGHT_MM = 50.8
MARGIN_TOP_MM = 12.7
MARGIN_LEFT_MM = 12.7
GAP_X_MM = 12.7
GAP_Y_MM = 1.6      # perforation
COLUMNS = 2
ROWS = 5


@dataclass(frozen=True)
class CardPosition:
    x: float  # mm from the left edge
    y: float  # mm from the top edge
    card_number: int


def validate_card_position(position: CardPosition) -> bool:
    return (
        position.x >= 0
        and position.y >= 0
        and position.x + CARD_WIDTH_MM <= PAGE_WIDTH_MM
        and position.y + CARD_HEIGHT_MM <= PAGE_HEIGHT_MM
    )


def avery_8371_positions() -> List[CardPosition]:
    positions = []
    for row in range(ROWS):
        for col in range(COLUMNS):
            positions.append(
                CardPosition(
                    x=MARGIN_LEFT_MM + col * (CARD_WIDTH_MM + GAP_X_MM),
                    y=MARGIN_TOP_MM + row * (CARD_HEIGHT_MM + GAP_Y_MM),
                    card_number=row * COLUMNS + col + 1,
                )
            )
    invalid = [p.card_number for p in positions if not validate_card_position(p)]
    if invalid:
        logger.warning("Card positions outside the page: %s", invalid)
    return positions


def clamp_card_count(card_count: int) -> int:
    clamped = max(1, min(config.CARDS_PER_SHEET, int(card_count)))
    if clamped != card_count:
        logger.warning("Card count %s adjusted to %s", card_count, clamped)
    return clamped


def render_card_sheet(image: CardImage, card_count: int = config.CARDS_PER_SHEET) -> bytes:
    """Draw the captured card ``card_count`` times at 100% scale on one Letter page.

    Returns the finished PDF bytes; raises ExportError without returning any
    partial document.
    """
    validate_card_image(image)
    count = clamp_card_count(card_count)
    positions = avery_8371_positions()[:count]

    buf = BytesIO()
    try:
        reader = ImageReader(BytesIO(image.png))
        c = canvas.Canvas(buf, pagesize=LETTER)
        c.setTitle("Business cards (Avery 8371)")
        page_h = LETTER[1]
        for pos in positions:
            # reportlab origin is bottom-left
            x = pos.x * mm
            y = page_h - (pos.y + CARD_HEIGHT_MM) * mm
            c.drawImage(reader, x, y, width=CARD_WIDTH_MM * mm, height=CARD_HEIGHT_MM * mm)
        c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Card sheet rasterization failed")
        raise ExportError("Could not build the business card PDF") from exc

    pdf = buf.getvalue()
    if not pdf.startswith(b"%PDF"):
        raise ExportError("Generated file is not a PDF")
    logger.info("Rendered card sheet with %d cards (%d bytes)", count, len(pdf))
    return pdf
