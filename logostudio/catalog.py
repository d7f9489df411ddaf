from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional
import logging
import math
import re

from sqlalchemy import func, or_
from sqlmodel import col, select

from . import config
from .errors import ConflictError, NotFoundError, ValidationError
from .models import CatalogLogo, as_utc, get_session

logger = logging.getLogger(__name__)

CATALOG_CODE_RE = re.compile(r"^CAT-[0-9]{3}$")
INVALID_CODE_MESSAGE = "Invalid format. Use: CAT-XXX (e.g., CAT-001)"
MAX_CATALOG_NUMBER = 999


def normalize_catalog_code(raw: str | None) -> str:
    code = (raw or "").strip().upper()
    if not CATALOG_CODE_RE.match(code):
        raise ValidationError(INVALID_CODE_MESSAGE, details={"code": raw})
    return code


def is_valid_catalog_code(raw: str | None) -> bool:
    try:
        normalize_catalog_code(raw)
    except ValidationError:
        return False
    return True


def _summary(row: CatalogLogo) -> Dict[str, Any]:
    return {
        "id": row.id,
        "catalogCode": row.catalog_code,
        "logoKeyId": row.logo_key_id,
        "originalCompanyName": row.original_company_name,
        "parameters": row.parameters or {},
        "createdBy": row.created_by,
        "createdAt": as_utc(row.created_at).isoformat() if row.created_at else None,
    }


def _with_image(row: CatalogLogo) -> Dict[str, Any]:
    data = _summary(row)
    data["imageDataUri"] = row.image_data_uri
    return data


def _search_clause(term: str):
    pattern = f"%{term}%"
    return or_(
        col(CatalogLogo.catalog_code).ilike(pattern),
        col(CatalogLogo.original_company_name).ilike(pattern),
        func.json_extract(CatalogLogo.parameters, "$.industry").ilike(pattern),
        func.json_extract(CatalogLogo.parameters, "$.overallStyle").ilike(pattern),
    )


def catalog_stats() -> Dict[str, Any]:
    with get_session() as session:
        params = session.exec(select(CatalogLogo.parameters)).all()
    industries: Counter = Counter()
    styles: Counter = Counter()
    for p in params:
        p = p or {}
        industries[p.get("industry") or "Unspecified"] += 1
        styles[p.get("overallStyle") or "Unspecified"] += 1
    return {"total": len(params), "industries": dict(industries), "styles": dict(styles)}


def list_catalog(page: int = 1, limit: int = config.CATALOG_PAGE_LIMIT, search: str | None = None) -> Dict[str, Any]:
    """One page of catalog entries without image payloads; stats ride along on page 1."""
    page = max(1, int(page or 1))
    limit = max(1, min(config.CATALOG_MAX_PAGE_LIMIT, int(limit or config.CATALOG_PAGE_LIMIT)))
    term = (search or "").strip()

    with get_session() as session:
        count_stmt = select(func.count()).select_from(CatalogLogo)
        stmt = select(CatalogLogo)
        if term:
            count_stmt = count_stmt.where(_search_clause(term))
            stmt = stmt.where(_search_clause(term))
        total = session.exec(count_stmt).one()
        stmt = (
            stmt.order_by(col(CatalogLogo.created_at).desc(), col(CatalogLogo.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = session.exec(stmt).all()

    total_pages = max(1, math.ceil(total / limit))
    return {
        "logos": [_summary(r) for r in rows],
        "stats": catalog_stats() if page == 1 else None,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasMore": page < total_pages,
        },
    }


def get_catalog_logo_by_code(raw_code: str) -> Dict[str, Any]:
    code = normalize_catalog_code(raw_code)
    with get_session() as session:
        row = session.exec(select(CatalogLogo).where(CatalogLogo.catalog_code == code)).first()
    if row is None:
        raise NotFoundError(f"Catalog code {code} not found", details={"code": code})
    return _with_image(row)


def get_catalog_image(logo_id: int) -> Dict[str, Any]:
    with get_session() as session:
        row = session.get(CatalogLogo, logo_id)
    if row is None:
        raise NotFoundError("Catalog logo not found", details={"id": logo_id})
    return {"id": row.id, "imageDataUri": row.image_data_uri}


def find_by_logo_key(logo_key_id: str) -> Optional[CatalogLogo]:
    with get_session() as session:
        return session.exec(select(CatalogLogo).where(CatalogLogo.logo_key_id == logo_key_id)).first()


def _next_catalog_code(session) -> str:
    codes = session.exec(select(CatalogLogo.catalog_code)).all()
    numbers = [int(c.split("-", 1)[1]) for c in codes if CATALOG_CODE_RE.match(c)]
    nxt = max(numbers, default=0) + 1
    if nxt > MAX_CATALOG_NUMBER:
        raise ConflictError("Catalog is full")
    return f"{config.CATALOG_CODE_PREFIX}-{nxt:03d}"


def add_to_catalog(
    logo_key_id: str,
    image_data_uri: str,
    parameters: Dict[str, Any],
    original_company_name: str,
    created_by: str | None = None,
) -> Dict[str, Any]:
    missing = [
        name
        for name, value in (
            ("logoKeyId", logo_key_id),
            ("imageDataUri", image_data_uri),
            ("parameters", parameters),
            ("originalCompanyName", original_company_name),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if not image_data_uri.startswith("data:image/"):
        raise ValidationError("imageDataUri must be an image data URI")

    existing = find_by_logo_key(logo_key_id)
    if existing is not None:
        raise ConflictError("Logo already in catalog", details={"catalogCode": existing.catalog_code})

    with get_session() as session:
        row = CatalogLogo(
            catalog_code=_next_catalog_code(session),
            logo_key_id=logo_key_id,
            image_data_uri=image_data_uri,
            parameters=dict(parameters),
            original_company_name=original_company_name.strip(),
            created_by=created_by,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
    logger.info("Added %s to catalog as %s", logo_key_id, row.catalog_code)
    return _summary(row)


def delete_catalog_logo(logo_id: int) -> None:
    with get_session() as session:
        row = session.get(CatalogLogo, logo_id)
        if row is None:
            raise NotFoundError("Catalog logo not found", details={"id": logo_id})
        code = row.catalog_code
        session.delete(row)
        session.commit()
    logger.info("Deleted catalog entry %s (%s)", logo_id, code)
