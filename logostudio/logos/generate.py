from __future__ import annotations

from typing import List, Optional, Protocol, Tuple
import base64
import binascii
import logging
import re

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .. import config
from ..errors import TransientError, ValidationError

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(image/[a-z0-9.+-]+);base64,(.*)$", re.IGNORECASE | re.DOTALL)


class LogoParameters(BaseModel):
    """Inputs from the generation form; also stored with every saved logo."""

    model_config = ConfigDict(populate_by_name=True)

    company_name: str = Field(alias="companyName")
    slogan: Optional[str] = None
    overall_style: str = Field(default="modern", alias="overallStyle")
    color_scheme: str = Field(default="", alias="colorScheme")
    custom_colors: List[str] = Field(default_factory=list, alias="customColors")
    symbol_focus: str = Field(default="", alias="symbolFocus")
    brand_personality: str = Field(default="", alias="brandPersonality")
    industry: str = ""
    size: str = "1024x1024"
    transparent_background: bool = Field(default=True, alias="transparentBackground")
    typography_style: Optional[str] = Field(default=None, alias="typographyStyle")
    line_style: Optional[str] = Field(default=None, alias="lineStyle")
    composition: Optional[str] = None
    shape_emphasis: Optional[str] = Field(default=None, alias="shapeEmphasis")
    texture: Optional[str] = None
    complexity_level: Optional[str] = Field(default=None, alias="complexityLevel")
    application_context: Optional[str] = Field(default=None, alias="applicationContext")
    special_instructions: Optional[str] = Field(default=None, alias="specialInstructions")


def build_logo_prompt(params: LogoParameters) -> str:
    if not params.company_name.strip():
        raise ValidationError("Company name is required")

    lines = ["Create a logo with the following characteristics:", f"Company Name: {params.company_name.strip()}"]
    if params.slogan:
        lines.append(f"Slogan/Subtitle: {params.slogan}")
    lines.append(f"Style: {params.overall_style}")
    if params.custom_colors:
        lines.append(f"Colors: Use these specific colors - {', '.join(params.custom_colors)}")
    elif params.color_scheme:
        lines.append(f"Colors: {params.color_scheme}")
    if params.symbol_focus:
        lines.append(f"Symbol Focus: {params.symbol_focus}")
    if params.brand_personality:
        lines.append(f"Brand Personality: {params.brand_personality}")
    if params.transparent_background:
        lines.append("Background: Transparent background (no background color or elements)")
    else:
        lines.append("Background: Include background color or design elements")

    optional = [
        ("Industry", params.industry),
        ("Typography", params.typography_style),
        ("Line Style", params.line_style),
        ("Composition", params.composition),
        ("Shape Emphasis", params.shape_emphasis),
        ("Texture", params.texture),
        ("Complexity", params.complexity_level),
        ("Application", params.application_context),
        ("Special Instructions", params.special_instructions),
    ]
    lines.extend(f"{label}: {value}" for label, value in optional if value)
    lines.append("")
    lines.append(
        "The logo should be professional, memorable, and suitable for various applications. "
        "Ensure it's scalable and works well in both color and monochrome."
    )
    return "\n".join(lines)


def decode_image_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a ``data:image/...;base64,`` URI into its mime type and raw bytes."""
    match = DATA_URI_RE.match((data_uri or "").strip())
    if not match:
        raise ValidationError("Reference image must be a base64 image data URI")
    try:
        raw = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Reference image is not valid base64") from exc
    if not raw:
        raise ValidationError("Reference image is empty")
    return match.group(1).lower(), raw


class ImageProvider(Protocol):
    async def generate(
        self,
        prompt: str,
        size: str = "1024x1024",
        reference_image: Optional[bytes] = None,
    ) -> str:
        """Return the generated image as a ``data:image/png;base64,...`` URI.

        With ``reference_image`` the provider edits that image instead of
        starting from a blank canvas.
        """
        ...


class OpenAIImageProvider:
    def __init__(
        self,
        api_key: str = "",
        base_url: str = "",
        model: str = config.IMAGE_MODEL,
        timeout: float = config.IMAGE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or config.OPENAI_API_KEY
        self.base_url = base_url or config.OPENAI_BASE_URL
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        # content type comes from json= or files= per request
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=self.timeout, transport=self.transport
        )

    async def generate(
        self,
        prompt: str,
        size: str = "1024x1024",
        reference_image: Optional[bytes] = None,
    ) -> str:
        if not self.api_key:
            raise TransientError("Image generation is not configured")
        try:
            async with self._client() as client:
                if reference_image:
                    resp = await client.post(
                        "/images/edits",
                        data={"model": self.model, "prompt": prompt},
                        files={"image": ("reference.png", reference_image, "image/png")},
                    )
                else:
                    payload = {"model": self.model, "prompt": prompt, "size": size, "n": 1}
                    resp = await client.post("/images/generations", json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.exception("Image provider request failed")
            raise TransientError("Failed to generate image", details={"reason": str(exc)}) from exc

        items = data.get("data") or []
        b64 = items[0].get("b64_json") if items else None
        if not b64:
            raise TransientError("Image provider returned no image")
        return f"data:image/png;base64,{b64}"
