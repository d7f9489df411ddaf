from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from .. import catalog, config
from ..errors import ValidationError
from ..models import User
from .deps import current_user, superuser

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


class CatalogAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logo_key_id: str = Field(default="", alias="logoKeyId")
    image_data_uri: str = Field(default="", alias="imageDataUri")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    original_company_name: str = Field(default="", alias="originalCompanyName")


@router.get("")
def get_catalog(
    action: Optional[str] = None,
    code: Optional[str] = None,
    page: int = 1,
    limit: int = config.CATALOG_PAGE_LIMIT,
    search: Optional[str] = None,
    user: User = Depends(current_user),
) -> Dict[str, Any]:
    if action == "get_by_code":
        if not code:
            raise ValidationError("Catalog code is required")
        return {"catalogLogo": catalog.get_catalog_logo_by_code(code)}
    if action == "stats":
        return {"stats": catalog.catalog_stats()}
    if action:
        raise ValidationError("Invalid action", details={"action": action})
    return catalog.list_catalog(page=page, limit=limit, search=search)


@router.get("/public")
def get_public_catalog(
    page: int = 1,
    limit: int = config.CATALOG_PAGE_LIMIT,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """Catalog listing for visitors; metadata only, images stay behind login."""
    return catalog.list_catalog(page=page, limit=limit, search=search)


@router.post("", status_code=201)
def add_to_catalog(body: CatalogAddRequest, user: User = Depends(current_user)) -> Dict[str, Any]:
    entry = catalog.add_to_catalog(
        logo_key_id=body.logo_key_id,
        image_data_uri=body.image_data_uri,
        parameters=body.parameters,
        original_company_name=body.original_company_name,
        created_by=user.email,
    )
    return {"success": True, "catalogCode": entry["catalogCode"], "catalogLogo": entry}


@router.get("/image/{logo_id}")
def get_catalog_image(logo_id: int, user: User = Depends(current_user)) -> Dict[str, Any]:
    return catalog.get_catalog_image(logo_id)


@router.delete("/delete/{logo_id}")
def delete_catalog_logo(logo_id: int, user: User = Depends(superuser)) -> Dict[str, Any]:
    catalog.delete_catalog_logo(logo_id)
    return {"success": True, "id": logo_id}
