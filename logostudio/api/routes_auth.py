from __future__ import annotations

from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from .. import config
from ..auth import sessions
from ..models import User
from .deps import clear_session_cookie, current_user, session_token, set_session_cookie, user_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

RESET_REQUESTED = "If an account exists for that email, a password reset link has been sent."


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Credentials(_Body):
    email: str = ""
    password: str = ""


class ChangePasswordRequest(_Body):
    current_password: str = Field(default="", alias="currentPassword")
    new_password: str = Field(default="", alias="newPassword")


class ResetRequest(_Body):
    email: str = ""


class ResetPasswordRequest(_Body):
    token: str = ""
    new_password: str = Field(default="", alias="newPassword")


@router.post("/signup", status_code=201)
def signup(body: Credentials, response: Response) -> Dict[str, Any]:
    user = sessions.create_user(body.email, body.password)
    record = sessions.start_session(user)
    set_session_cookie(response, record.token)
    return {"success": True, "user": user_payload(user)}


@router.post("/login")
def login(body: Credentials, response: Response) -> Dict[str, Any]:
    user = sessions.authenticate(body.email, body.password)
    record = sessions.start_session(user)
    set_session_cookie(response, record.token)
    logger.info("User %s logged in", user.id)
    return {"success": True, "user": user_payload(user)}


@router.post("/logout")
def logout(request: Request, response: Response) -> Dict[str, Any]:
    sessions.end_session(session_token(request))
    clear_session_cookie(response)
    return {"success": True}


@router.post("/change-password")
def change_password(body: ChangePasswordRequest, user: User = Depends(current_user)) -> Dict[str, Any]:
    sessions.change_password(user, body.current_password, body.new_password)
    return {"success": True, "message": "Password updated successfully"}


@router.post("/send-password-reset")
def send_password_reset(body: ResetRequest) -> Dict[str, Any]:
    token = sessions.issue_reset_token(body.email)
    if token:
        # no mail transport is wired in; operators pick the link up from the log
        logger.info("Password reset link: %s/reset-password?token=%s", config.PUBLIC_BASE_URL, token)
    return {"success": True, "message": RESET_REQUESTED}


@router.get("/verify-reset-token")
def verify_reset_token(token: str = "") -> Dict[str, Any]:
    return {"valid": sessions.verify_reset_token(token)}


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest) -> Dict[str, Any]:
    sessions.reset_password(body.token, body.new_password)
    return {"success": True, "message": "Password has been reset"}
