from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, Response

from .. import config
from ..auth.sessions import get_session_user
from ..cards.capture import CardCapturer, MuPDFCardCapturer
from ..errors import AuthError, ForbiddenError
from ..logos.generate import ImageProvider, OpenAIImageProvider
from ..models import User


def session_token(request: Request) -> Optional[str]:
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def optional_user(request: Request) -> Optional[User]:
    return get_session_user(session_token(request))


def current_user(request: Request) -> User:
    user = optional_user(request)
    if user is None:
        raise AuthError("Unauthorized")
    return user


def superuser(request: Request) -> User:
    user = current_user(request)
    if not config.is_superuser(user.email):
        raise ForbiddenError("Superuser access required")
    return user


def get_image_provider() -> ImageProvider:
    return OpenAIImageProvider()


def get_capturer() -> CardCapturer:
    return MuPDFCardCapturer()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        token,
        max_age=config.SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(config.SESSION_COOKIE_NAME, path="/")


def user_payload(user: User) -> Dict[str, Any]:
    return {
        "email": user.email,
        "status": user.status.value,
        "logosCreated": user.logos_created,
        "logosLimit": user.logos_limit,
        "remainingLogos": max(0, user.logos_limit - user.logos_created),
        "isSuperuser": config.is_superuser(user.email),
    }
