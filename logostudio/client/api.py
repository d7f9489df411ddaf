from __future__ import annotations

from typing import Any, Dict, Optional, Type
import logging

import httpx

from .. import config, errors
from ..errors import LogoStudioError, TransientError

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error. Please check your connection and try again."

_BY_CODE: Dict[str, Type[LogoStudioError]] = {
    cls.code: cls
    for cls in (
        errors.ValidationError,
        errors.AuthError,
        errors.ForbiddenError,
        errors.NotFoundError,
        errors.ConflictError,
        errors.QuotaExceeded,
        errors.RevisionLimitReached,
        errors.TransientError,
        errors.ExportError,
    )
}
_BY_STATUS: Dict[int, Type[LogoStudioError]] = {
    400: errors.ValidationError,
    401: errors.AuthError,
    403: errors.ForbiddenError,
    404: errors.NotFoundError,
    409: errors.ConflictError,
}


def error_from_response(resp: httpx.Response) -> LogoStudioError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    detail = body.get("error") if isinstance(body, dict) else None
    if not isinstance(detail, dict):
        detail = {"message": str(detail or resp.reason_phrase or "Request failed")}
    cls = _BY_CODE.get(detail.get("code", "")) or _BY_STATUS.get(resp.status_code, TransientError)
    return cls(detail.get("message") or "Request failed", details=detail.get("details") or {})


class ApiClient:
    """Thin async wrapper over the HTTP routes; errors come back as LogoStudioError."""

    def __init__(
        self,
        base_url: str = config.PUBLIC_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransientError(NETWORK_ERROR) from exc
        if resp.status_code >= 400:
            raise error_from_response(resp)
        return resp

    async def _json(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return (await self._request(method, path, **kwargs)).json()

    # auth / user
    async def signup(self, email: str, password: str) -> Dict[str, Any]:
        return await self._json("POST", "/api/auth/signup", json={"email": email, "password": password})

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._json("POST", "/api/auth/login", json={"email": email, "password": password})

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout")

    async def get_user(self) -> Dict[str, Any]:
        return await self._json("GET", "/api/user")

    # catalog
    async def list_catalog(self, page: int, limit: int, search: str = "") -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        return await self._json("GET", "/api/catalog", params=params)

    async def get_catalog_by_code(self, code: str) -> Dict[str, Any]:
        data = await self._json("GET", "/api/catalog", params={"action": "get_by_code", "code": code})
        return data["catalogLogo"]

    async def get_catalog_image(self, logo_id: int) -> Dict[str, Any]:
        return await self._json("GET", f"/api/catalog/image/{logo_id}")

    async def delete_catalog_logo(self, logo_id: int) -> None:
        await self._request("DELETE", f"/api/catalog/delete/{logo_id}")

    async def add_to_catalog(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json("POST", "/api/catalog", json=payload)

    # logos / certificates
    async def generate_logo(
        self,
        parameters: Dict[str, Any],
        original_logo_id: Optional[str] = None,
        reference_image_data_uri: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"parameters": parameters}
        if original_logo_id:
            body["originalLogoId"] = original_logo_id
        if reference_image_data_uri:
            body["referenceImageDataUri"] = reference_image_data_uri
        return await self._json("POST", "/api/logos/generate", json=body)

    async def verify_certificate(self, certificate_id: str) -> Dict[str, Any]:
        return await self._json("GET", "/api/certificate/verify", params={"id": certificate_id})
