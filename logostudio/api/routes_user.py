from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from ..auth import sessions
from ..models import User
from .deps import clear_session_cookie, current_user, user_payload

router = APIRouter(prefix="/api/user", tags=["user"])


class UserUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logos_limit: int = Field(alias="logosLimit")


@router.get("")
def get_user(user: User = Depends(current_user)) -> Dict[str, Any]:
    return user_payload(user)


@router.patch("")
def update_user(body: UserUpdate, user: User = Depends(current_user)) -> Dict[str, Any]:
    updated = sessions.update_logos_limit(user, body.logos_limit)
    return user_payload(updated)


@router.delete("")
def delete_user(response: Response, user: User = Depends(current_user)) -> Dict[str, Any]:
    sessions.delete_user(user)
    clear_session_cookie(response)
    return {"success": True}
