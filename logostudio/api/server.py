from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..errors import LogoStudioError
from ..models import init_db

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    code: str
    message: str
    http_status: int
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    return ErrorEnvelope(
        error=ErrorDetail(code=code, message=message, http_status=status_code, details=details or {})
    )


def _envelope_response(envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(content=envelope.model_dump(), status_code=envelope.error.http_status)


async def _app_error_handler(request: Request, exc: LogoStudioError):
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _envelope_response(build_error_envelope(exc.code, exc.message, exc.http_status, exc.details))


async def _http_exception_handler(request: Request, exc: HTTPException):
    message = str(exc.detail) if exc.detail else "HTTP exception"
    return _envelope_response(build_error_envelope("http_error", message, exc.status_code))


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    envelope = build_error_envelope(
        "validation_error",
        "Validation failed",
        400,
        details={"errors": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in exc.errors()]},
    )
    return _envelope_response(envelope)


async def _generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope_response(build_error_envelope("internal_error", "Internal server error", 500))


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(LogoStudioError, _app_error_handler)
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    target_app.add_exception_handler(Exception, _generic_exception_handler)


def create_app() -> FastAPI:
    init_db()
    app = FastAPI(title="Logo Studio")
    register_error_handlers(app)

    from .routes_auth import router as auth_router
    from .routes_cards import router as cards_router
    from .routes_catalog import router as catalog_router
    from .routes_certificate import router as certificate_router
    from .routes_logos import router as logos_router
    from .routes_user import router as user_router

    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(catalog_router)
    app.include_router(cards_router)
    app.include_router(logos_router)
    app.include_router(certificate_router)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app
