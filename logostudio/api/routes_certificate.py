from __future__ import annotations

from typing import Any, Dict, Optional
import base64
import binascii
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from ..certificates import (
    issue_certificate,
    issue_logo_certificate,
    render_certificate_pdf,
    render_logo_certificate_pdf,
    verify_certificate_id,
    verify_certificate_signature,
    verify_logo_certificate_id,
)
from ..errors import ValidationError
from ..logos.generate import decode_image_data_uri
from ..models import User
from ..storage import safe_slug
from .deps import current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/certificate", tags=["certificate"])

NO_STORE = "private, no-cache, no-store, must-revalidate"


class CertificateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logo_data_uri: Optional[str] = Field(default=None, alias="logoDataUri")


class SignatureCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    certificate_id: str = Field(default="", alias="certificateId")
    user_email: str = Field(default="", alias="userEmail")
    digital_signature: str = Field(default="", alias="digitalSignature")


class LogoCertificateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_email: str = Field(default="", alias="clientEmail")
    logo_id: str = Field(default="", alias="logoId")
    logo_image_base64: str = Field(default="", alias="logoImageBase64")


class LogoImageCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    certificate_id: str = Field(default="", alias="certificateId")
    logo_image_base64: str = Field(default="", alias="logoImageBase64")


def _logo_bytes(value: str) -> bytes:
    """Accept either a data URI or bare base64."""
    if value.startswith("data:"):
        return decode_image_data_uri(value)[1]
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Logo image is not valid base64") from exc
    if not raw:
        raise ValidationError("Logo image is required")
    return raw


@router.post("/generate")
def generate_certificate(body: Optional[CertificateRequest] = None, user: User = Depends(current_user)) -> Response:
    cert = issue_certificate(user.email)
    pdf = render_certificate_pdf(cert, body.logo_data_uri if body else None)
    filename = f"ownership-certificate-{safe_slug(user.email.split('@')[0])}-{cert.issue_date[:4]}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": NO_STORE,
            "X-Certificate-Id": cert.certificate_id,
            "X-Certificate-Signature": cert.signature,
        },
    )


@router.get("/verify")
def verify_certificate(id: str = "") -> Dict[str, Any]:
    if not id:
        raise ValidationError("Certificate ID is required")
    check = verify_certificate_id(id)
    return {
        "certificateId": check.certificate_id,
        "userEmail": check.email_prefix,
        "issueDate": check.issue_date,
        "createdAt": check.issued_at.isoformat(),
        "status": "active",
        "verified": True,
        "verificationMethod": "stateless",
    }


@router.post("/verify")
def verify_certificate_full(body: SignatureCheck) -> Dict[str, Any]:
    if not body.certificate_id:
        raise ValidationError("Certificate ID is required")
    verified = verify_certificate_signature(body.certificate_id, body.user_email, body.digital_signature)
    return {"success": True, "certificateId": body.certificate_id, "verified": verified}


@router.post("/logo/generate")
def generate_logo_certificate(body: LogoCertificateRequest, user: User = Depends(current_user)) -> Response:
    if not body.client_email or not body.logo_id or not body.logo_image_base64:
        raise ValidationError("clientEmail, logoId and logoImageBase64 are required")
    image = _logo_bytes(body.logo_image_base64)
    cert = issue_logo_certificate(body.client_email, body.logo_id, image)
    pdf = render_logo_certificate_pdf(cert, image)
    logger.info("Logo certificate %s issued by user %s", cert.certificate_id, user.id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="logo-certificate-{safe_slug(body.logo_id)}.pdf"',
            "Cache-Control": NO_STORE,
            "X-Certificate-Id": cert.certificate_id,
            "X-Certificate-Signature": cert.signature,
        },
    )


def _logo_check_payload(check) -> Dict[str, Any]:
    return {
        "certificateId": check.certificate_id,
        "logoId": check.logo_key,
        "clientHandle": check.client_handle,
        "imageFingerprint": check.image_hash,
        "issueDate": check.issue_date,
        "status": "active",
        "verified": True,
        "verificationMethod": "cryptographic_checksum",
        "logoImageVerified": check.image_verified,
    }


@router.get("/logo/verify")
def verify_logo_certificate(id: str = "") -> Dict[str, Any]:
    if not id:
        raise ValidationError("Certificate ID is required")
    return _logo_check_payload(verify_logo_certificate_id(id))


@router.post("/logo/verify")
def verify_logo_certificate_image(body: LogoImageCheck) -> Dict[str, Any]:
    if not body.certificate_id:
        raise ValidationError("Certificate ID is required")
    image = _logo_bytes(body.logo_image_base64) if body.logo_image_base64 else None
    return _logo_check_payload(verify_logo_certificate_id(body.certificate_id, image))
