from __future__ import annotations

import base64
import csv
import hashlib
import mimetypes
from pathlib import Path
from typing import Dict, List, Tuple
import logging

from .catalog import add_to_catalog
from .errors import ConflictError
from .models import init_db
from .storage import safe_slug

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"company_name", "image"}
PARAMETER_COLUMNS = {
    "industry": "industry",
    "style": "overallStyle",
    "color_scheme": "colorScheme",
    "slogan": "slogan",
}


def load_rows(csv_path: Path) -> List[dict]:
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    with csv_path.open("r", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            raise ValueError("CSV has no header")
        missing = REQUIRED_COLUMNS - set(reader.fieldnames)
        if missing:
            raise ValueError(f"CSV missing columns: {', '.join(sorted(missing))}")
        rows = [row for row in reader if any((value or "").strip() for value in row.values())]
    if not rows:
        raise ValueError("CSV has no data rows")
    return rows


def image_to_data_uri(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        raise ValueError(f"Not an image file: {path}")
    return f"data:{mime};base64,{base64.b64encode(path.read_bytes()).decode('ascii')}"


def seed_catalog(csv_path: Path, created_by: str = "seed") -> Tuple[List[Dict], int]:
    """Add every CSV row to the catalog; rows already present are skipped."""
    init_db()
    rows = load_rows(csv_path)
    added: List[Dict] = []
    skipped = 0
    for row in rows:
        company = row["company_name"].strip()
        image_path = (csv_path.parent / row["image"].strip()).resolve()
        raw = image_path.read_bytes()
        key = f"seed-{safe_slug(company)}-{hashlib.md5(raw).hexdigest()[:8]}"
        params = {"companyName": company}
        for column, name in PARAMETER_COLUMNS.items():
            if (row.get(column) or "").strip():
                params[name] = row[column].strip()
        try:
            entry = add_to_catalog(key, image_to_data_uri(image_path), params, company, created_by)
        except ConflictError:
            logger.info("Skipping %s: already in catalog", company)
            skipped += 1
            continue
        added.append(entry)
    return added, skipped
