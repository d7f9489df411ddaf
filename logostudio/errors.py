from __future__ import annotations

from typing import Any, Dict, Optional


class LogoStudioError(Exception):
    """Base error carrying a machine code and the HTTP status it maps to."""

    code = "error"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(LogoStudioError):
    code = "validation_error"
    http_status = 400


class AuthError(LogoStudioError):
    code = "unauthorized"
    http_status = 401


class ForbiddenError(LogoStudioError):
    code = "forbidden"
    http_status = 403


class NotFoundError(LogoStudioError):
    code = "not_found"
    http_status = 404


class ConflictError(LogoStudioError):
    code = "conflict"
    http_status = 409


class QuotaExceeded(LogoStudioError):
    code = "quota_exceeded"
    http_status = 403


class RevisionLimitReached(LogoStudioError):
    code = "max_revisions_reached"
    http_status = 409


class TransientError(LogoStudioError):
    """Network or storage failure; callers surface a retry prompt, never retry."""

    code = "transient_error"
    http_status = 502


class ExportError(LogoStudioError):
    code = "export_failed"
    http_status = 500
