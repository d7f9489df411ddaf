from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..auth.sessions import release_logo_slot, reserve_logo_slot
from ..errors import NotFoundError, ValidationError
from ..logos.generate import ImageProvider, LogoParameters, build_logo_prompt, decode_image_data_uri
from ..models import User, get_session
from .deps import current_user, get_image_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/logos", tags=["logos"])


class GenerateLogoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parameters: LogoParameters
    original_logo_id: Optional[str] = Field(default=None, alias="originalLogoId")
    reference_image_data_uri: Optional[str] = Field(default=None, alias="referenceImageDataUri")


@router.post("/generate")
async def generate_logo(
    body: GenerateLogoRequest,
    user: User = Depends(current_user),
    provider: ImageProvider = Depends(get_image_provider),
) -> Dict[str, Any]:
    is_revision = bool(body.original_logo_id)
    prompt = build_logo_prompt(body.parameters)
    reference: Optional[bytes] = None
    if body.reference_image_data_uri:
        _, reference = decode_image_data_uri(body.reference_image_data_uri)
    elif is_revision:
        raise ValidationError("A revision needs the original logo as its reference image")

    # revisions are free; only originals take a slot
    if not is_revision:
        reserve_logo_slot(user.id)
    try:
        image_data_uri = await provider.generate(prompt, size=body.parameters.size, reference_image=reference)
    except Exception:
        if not is_revision:
            release_logo_slot(user.id)
        raise

    with get_session() as session:
        row = session.get(User, user.id)
        if row is None:
            raise NotFoundError("User not found")
        logos_created, logos_limit = row.logos_created, row.logos_limit

    logger.info("Generated %s for user %s", "revision" if is_revision else "original", user.id)
    return {
        "imageDataUri": image_data_uri,
        "isRevision": is_revision,
        "logosCreated": logos_created,
        "logosLimit": logos_limit,
    }
