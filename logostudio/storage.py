from __future__ import annotations

from pathlib import Path
import hashlib
import re

from slugify import slugify

from . import config


ARTIFACT_NAMES = {
    "cards_pdf": "business-cards.pdf",
    "card_png": "card.png",
    "card_html": "card.html",
    "certificate_pdf": "certificate.pdf",
}


def safe_slug(text: str) -> str:
    slug = slugify(text or "")
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5((text or "").encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from text")
    return slug


def export_dir(slug: str, base_dir: Path | None = None) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / "exports" / slug
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(slug: str, artifact_type: str, base_dir: Path | None = None) -> Path:
    return export_dir(slug, base_dir=base_dir) / ARTIFACT_NAMES[artifact_type]


def write_artifact(slug: str, artifact_type: str, content: bytes | str, base_dir: Path | None = None) -> Path:
    path = artifact_path(slug, artifact_type, base_dir=base_dir)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path
