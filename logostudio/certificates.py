from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import List, Optional
import base64
import binascii
import hashlib
import hmac
import logging
import re
import time

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from . import config
from .errors import ExportError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"
CERT_ID_RE = re.compile(r"^CERT-([0-9A-Z]+)-([0-9A-Z]{1,8})-([0-9A-Z]{1,6})$")
LOGO_CERT_ID_RE = re.compile(r"^LOGO-([0-9A-Z]+)-([0-9A-Z]{1,8})-([0-9A-Z]{1,32})-([0-9A-F]{12})-([0-9A-F]{10})$")

PRIMARY = colors.HexColor("#4F46E5")
SECONDARY = colors.HexColor("#6366F1")
ACCENT = colors.HexColor("#F59E0B")
TEXT_DARK = colors.HexColor("#1F2937")
TEXT_GRAY = colors.HexColor("#6B7280")

RIGHTS = [
    "CREATE, modify, and derive new works from all generated logos",
    "STORE, archive, and maintain copies in any format or medium",
    "EDIT, enhance, resize, recolor, and make any modifications",
    "SELL, license, and monetize the logos for commercial purposes",
    "TRANSFER ownership rights to third parties through sale or gift",
    "PRINT and reproduce the logos in physical and digital formats",
    "DISPLAY and DISTRIBUTE the logos through any means or channels",
    "USE the logos as trademarks or service marks (subject to trademark law)",
]


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_B36[rem])
    return "".join(reversed(out))


@dataclass(frozen=True)
class Certificate:
    certificate_id: str
    user_email: str
    issue_date: str      # YYYY-MM-DD (UTC), part of the signed payload
    signature: str


@dataclass(frozen=True)
class CertificateCheck:
    certificate_id: str
    email_prefix: str
    issued_at: datetime

    @property
    def issue_date(self) -> str:
        return self.issued_at.strftime("%Y-%m-%d")


def _email_prefix(email: str) -> str:
    local = email.split("@", 1)[0].lower()
    return re.sub(r"[^a-z0-9]", "", local)[:8] or "user"


def generate_certificate_id(user_email: str, now_ms: Optional[int] = None) -> str:
    if not user_email or "@" not in user_email:
        raise ValidationError("User email is required")
    ts = int(time.time() * 1000) if now_ms is None else now_ms
    digest = int(hashlib.sha256(user_email.lower().encode("utf-8")).hexdigest(), 16)
    email_hash = to_base36(digest)[:6]
    return f"CERT-{to_base36(ts)}-{_email_prefix(user_email)}-{email_hash}".upper()


def generate_signature(user_email: str, issue_date: str, certificate_id: str) -> str:
    payload = f"{user_email.lower()}:{issue_date}:{certificate_id}".encode("utf-8")
    return hmac.new(config.CERTIFICATE_SECRET.encode("utf-8"), payload, hashlib.sha256).hexdigest().upper()


def issue_certificate(user_email: str, now_ms: Optional[int] = None) -> Certificate:
    ts = int(time.time() * 1000) if now_ms is None else now_ms
    cert_id = generate_certificate_id(user_email, ts)
    issue_date = datetime.fromtimestamp(ts / 1000.0, tz=timezone.utc).strftime("%Y-%m-%d")
    return Certificate(
        certificate_id=cert_id,
        user_email=user_email.lower(),
        issue_date=issue_date,
        signature=generate_signature(user_email, issue_date, cert_id),
    )


def verify_certificate_id(certificate_id: str | None, now: Optional[datetime] = None) -> CertificateCheck:
    """Decode an id; NotFoundError unless it was issued within the last year."""
    match = CERT_ID_RE.match((certificate_id or "").strip().upper())
    if not match:
        raise NotFoundError("Certificate not found")
    issued_at = datetime.fromtimestamp(int(match.group(1), 36) / 1000.0, tz=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if issued_at < now - timedelta(days=config.CERTIFICATE_MAX_AGE_DAYS) or issued_at > now + timedelta(hours=1):
        raise NotFoundError("Certificate not found")
    return CertificateCheck(match.group(0), match.group(2).lower(), issued_at)


def verify_certificate_signature(certificate_id: str, user_email: str, signature: str) -> bool:
    try:
        check = verify_certificate_id(certificate_id)
    except NotFoundError:
        return False
    if _email_prefix(user_email) != check.email_prefix:
        return False
    expected = generate_signature(user_email, check.issue_date, check.certificate_id)
    return hmac.compare_digest(expected, (signature or "").strip().upper())


def _logo_reader(data_uri: str | None) -> Optional[ImageReader]:
    if not data_uri or "," not in data_uri:
        return None
    try:
        raw = base64.b64decode(data_uri.split(",", 1)[1], validate=True)
        return ImageReader(BytesIO(raw))
    except (binascii.Error, ValueError, OSError):
        logger.warning("Certificate logo could not be decoded; drawing without it")
        return None


def _draw_frame(c: canvas.Canvas, w: float, h: float, title: str) -> float:
    c.setStrokeColor(PRIMARY)
    c.setLineWidth(2)
    c.rect(15 * mm, 25 * mm, w - 30 * mm, h - 40 * mm)
    c.setStrokeColor(SECONDARY)
    c.setLineWidth(0.5)
    c.rect(18 * mm, 28 * mm, w - 36 * mm, h - 46 * mm)

    y = h - 35 * mm
    c.setFillColor(TEXT_DARK)
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(w / 2, y, title)
    c.setStrokeColor(ACCENT)
    c.setLineWidth(1)
    c.line(w / 2 - 40 * mm, y - 5 * mm, w / 2 + 40 * mm, y - 5 * mm)
    return y - 15 * mm


def _draw_logo(c: canvas.Canvas, w: float, y: float, logo: Optional[ImageReader], size: float) -> float:
    if logo is None:
        return y
    c.drawImage(logo, (w - size) / 2, y - size, width=size, height=size, preserveAspectRatio=True, mask="auto")
    return y - size - 8 * mm


def _draw_footer(c: canvas.Canvas, w: float, lines: List[str]) -> None:
    y = 40 * mm
    c.setFillColor(TEXT_GRAY)
    c.setFont("Helvetica", 9)
    for line in lines:
        c.drawCentredString(w / 2, y, line)
        y -= 5 * mm


def _draw_rights(c: canvas.Canvas, w: float, y: float) -> float:
    c.setFont("Helvetica", 10)
    for right in RIGHTS:
        y -= 5 * mm
        c.drawCentredString(w / 2, y, right)
    return y


def render_certificate_pdf(cert: Certificate, logo_data_uri: str | None = None) -> bytes:
    buf = BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=A4)
        w, h = A4
        c.setTitle(f"Certificate of Ownership {cert.certificate_id}")
        y = _draw_frame(c, w, h, "CERTIFICATE OF OWNERSHIP")
        y = _draw_logo(c, w, y, _logo_reader(logo_data_uri), 35 * mm)

        c.setFont("Helvetica", 12)
        c.drawCentredString(w / 2, y, "This certificate declares that the owner of this email:")
        y -= 9 * mm
        c.setFont("Helvetica-Bold", 15)
        c.setFillColor(PRIMARY)
        c.drawCentredString(w / 2, y, cert.user_email)
        y -= 9 * mm
        c.setFillColor(TEXT_DARK)
        c.setFont("Helvetica", 11)
        for line in (
            "is the sole and exclusive owner of all logos created with this account,",
            "including the following rights:",
        ):
            c.drawCentredString(w / 2, y, line)
            y -= 6 * mm
        _draw_rights(c, w, y)

        _draw_footer(c, w, [
            f"Certificate ID: {cert.certificate_id}",
            f"Issue date: {cert.issue_date}",
            f"Digital signature: {cert.signature[:32]}",
            f"Verify at: {config.PUBLIC_BASE_URL}/api/certificate/verify?id={cert.certificate_id}",
        ])
        c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Certificate rendering failed")
        raise ExportError("Certificate generation failed") from exc
    return buf.getvalue()


# Per-logo certificates bind one client email to one logo and the exact image
# bytes. The id carries its own HMAC checksum so it verifies without storage.

@dataclass(frozen=True)
class LogoCertificate:
    certificate_id: str
    client_email: str
    logo_id: str
    image_hash: str
    issue_date: str
    signature: str


@dataclass(frozen=True)
class LogoCertificateCheck:
    certificate_id: str
    client_handle: str
    logo_key: str
    image_hash: str
    issued_at: datetime
    image_verified: bool = False

    @property
    def issue_date(self) -> str:
        return self.issued_at.strftime("%Y-%m-%d")


def _logo_key(logo_id: str) -> str:
    return re.sub(r"[^0-9A-Z]", "", (logo_id or "").upper())[:32]


def image_fingerprint(image: bytes) -> str:
    return hashlib.sha256(image).hexdigest()[:12].upper()


def _logo_checksum(ts36: str, handle: str, logo_key: str, image_hash: str) -> str:
    payload = f"logo:{ts36}:{handle}:{logo_key}:{image_hash}".encode("utf-8")
    return hmac.new(config.CERTIFICATE_SECRET.encode("utf-8"), payload, hashlib.sha256).hexdigest()[:10].upper()


def generate_logo_certificate_id(client_email: str, logo_id: str, image: bytes, now_ms: Optional[int] = None) -> str:
    if not client_email or "@" not in client_email:
        raise ValidationError("Client email is required")
    logo_key = _logo_key(logo_id)
    if not logo_key:
        raise ValidationError("Logo id is required")
    if not image:
        raise ValidationError("Logo image is required")
    ts36 = to_base36(int(time.time() * 1000) if now_ms is None else now_ms).upper()
    handle = _email_prefix(client_email).upper()
    image_hash = image_fingerprint(image)
    checksum = _logo_checksum(ts36, handle, logo_key, image_hash)
    return f"LOGO-{ts36}-{handle}-{logo_key}-{image_hash}-{checksum}"


def issue_logo_certificate(client_email: str, logo_id: str, image: bytes, now_ms: Optional[int] = None) -> LogoCertificate:
    ts = int(time.time() * 1000) if now_ms is None else now_ms
    cert_id = generate_logo_certificate_id(client_email, logo_id, image, ts)
    issue_date = datetime.fromtimestamp(ts / 1000.0, tz=timezone.utc).strftime("%Y-%m-%d")
    return LogoCertificate(
        certificate_id=cert_id,
        client_email=client_email.strip().lower(),
        logo_id=logo_id,
        image_hash=image_fingerprint(image),
        issue_date=issue_date,
        signature=generate_signature(client_email.strip(), issue_date, cert_id),
    )


def verify_logo_certificate_id(
    certificate_id: str | None,
    image: Optional[bytes] = None,
    now: Optional[datetime] = None,
) -> LogoCertificateCheck:
    """Check the embedded checksum and age; with ``image``, also that it is the certified logo."""
    match = LOGO_CERT_ID_RE.match((certificate_id or "").strip().upper())
    if not match:
        raise NotFoundError("Certificate not found")
    ts36, handle, logo_key, image_hash, checksum = match.groups()
    if not hmac.compare_digest(_logo_checksum(ts36, handle, logo_key, image_hash), checksum):
        logger.info("Logo certificate %s failed its checksum", match.group(0))
        raise NotFoundError("Certificate not found")
    issued_at = datetime.fromtimestamp(int(ts36, 36) / 1000.0, tz=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if issued_at < now - timedelta(days=config.CERTIFICATE_MAX_AGE_DAYS) or issued_at > now + timedelta(hours=1):
        raise NotFoundError("Certificate not found")
    image_verified = False
    if image is not None:
        if not hmac.compare_digest(image_fingerprint(image), image_hash):
            raise ValidationError("Logo image does not match this certificate")
        image_verified = True
    return LogoCertificateCheck(match.group(0), handle.lower(), logo_key, image_hash, issued_at, image_verified)


def _image_reader(image: bytes) -> ImageReader:
    try:
        reader = ImageReader(BytesIO(image))
        reader.getSize()
    except Exception as exc:
        raise ValidationError("Logo image could not be read") from exc
    return reader


def render_logo_certificate_pdf(cert: LogoCertificate, image: bytes) -> bytes:
    logo = _image_reader(image)
    buf = BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=A4)
        w, h = A4
        c.setTitle(f"Logo Ownership Certificate {cert.certificate_id}")
        y = _draw_frame(c, w, h, "LOGO OWNERSHIP CERTIFICATE")
        y = _draw_logo(c, w, y, logo, 55 * mm)

        c.setFillColor(TEXT_DARK)
        c.setFont("Helvetica", 12)
        c.drawCentredString(w / 2, y, "This certificate declares that the logo shown above, ID")
        y -= 7 * mm
        c.setFont("Helvetica-Bold", 12)
        c.drawCentredString(w / 2, y, cert.logo_id)
        y -= 8 * mm
        c.setFont("Helvetica", 12)
        c.drawCentredString(w / 2, y, "is the exclusive property of:")
        y -= 9 * mm
        c.setFont("Helvetica-Bold", 15)
        c.setFillColor(PRIMARY)
        c.drawCentredString(w / 2, y, cert.client_email)
        y -= 9 * mm
        c.setFillColor(TEXT_DARK)
        c.setFont("Helvetica", 11)
        c.drawCentredString(w / 2, y, "who holds the following rights to it:")
        _draw_rights(c, w, y - 2 * mm)

        _draw_footer(c, w, [
            f"Certificate ID: {cert.certificate_id}",
            f"Issue date: {cert.issue_date}    Image fingerprint: {cert.image_hash}",
            f"Verify at: {config.PUBLIC_BASE_URL}/api/certificate/logo/verify?id={cert.certificate_id}",
        ])
        c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Logo certificate rendering failed")
        raise ExportError("Certificate generation failed") from exc
    return buf.getvalue()
