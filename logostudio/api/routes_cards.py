from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from .. import config
from ..cards.capture import CardCapturer
from ..cards.contact import BusinessCardData, validate_contact_info
from ..cards.export import render_card_sheet
from ..cards.injection import PreviewMode, generate_injected_html
from ..cards.layouts import list_themes, paginate_layouts, require_layout, search_layouts
from ..errors import ValidationError
from ..storage import safe_slug
from .deps import get_capturer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/business-cards", tags=["business-cards"])


class CardRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    layout_id: str = Field(alias="layoutId")
    form_data: BusinessCardData = Field(alias="formData")
    mode: PreviewMode = PreviewMode.GRID
    card_count: int = Field(default=config.CARDS_PER_SHEET, alias="cardCount")


def _validated_html(body: CardRequest, mode: PreviewMode) -> str:
    layout = require_layout(body.layout_id)
    errors = validate_contact_info(body.form_data)
    if errors:
        raise ValidationError(errors[0], details={"errors": errors})
    return generate_injected_html(layout, body.form_data, mode)


@router.get("/layouts")
def get_layouts(
    theme: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    perPage: int = config.LAYOUTS_PER_PAGE,
) -> Dict[str, Any]:
    matches = search_layouts(search, theme)
    layouts, total_pages = paginate_layouts(matches, page, perPage)
    return {
        "layouts": [layout.summary() for layout in layouts],
        "themes": list_themes(),
        "pagination": {
            "page": min(max(1, page), total_pages),
            "perPage": max(1, perPage),
            "total": len(matches),
            "totalPages": total_pages,
        },
    }


@router.post("/preview")
def preview(body: CardRequest) -> Dict[str, Any]:
    html = _validated_html(body, body.mode)
    return {"catalogId": body.layout_id.upper(), "mode": body.mode.value, "html": html}


@router.post("/generate")
def generate(body: CardRequest, capturer: CardCapturer = Depends(get_capturer)) -> Response:
    html = _validated_html(body, PreviewMode.ENLARGED)
    image = capturer.capture(html)
    pdf = render_card_sheet(image, body.card_count)
    slug = safe_slug(f"{body.layout_id} {body.form_data.company_name}")
    logger.info("Business card sheet generated for layout %s", body.layout_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="business-cards-{slug}.pdf"'},
    )
