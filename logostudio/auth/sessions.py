from __future__ import annotations

from datetime import timedelta
from typing import Optional
import logging
import secrets

from sqlalchemy import update
from sqlmodel import col, select

from .. import config, models
from ..errors import AuthError, ConflictError, NotFoundError, QuotaExceeded, ValidationError
from ..models import PasswordResetToken, User, UserSession, UserStatus, as_utc, get_session, utcnow
from .passwords import check_password, make_password_hash

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    value = (email or "").strip().lower()
    if not value or "@" not in value:
        raise ValidationError("A valid email address is required")
    return value


def get_user_by_email(email: str) -> Optional[User]:
    with get_session() as session:
        return session.exec(select(User).where(User.email == email.strip().lower())).first()


def create_user(
    email: str,
    password: str,
    status: UserStatus = UserStatus.ACTIVE,
    logos_limit: int | None = None,
) -> User:
    address = normalize_email(email)
    password_hash = make_password_hash(password)
    if get_user_by_email(address) is not None:
        raise ConflictError("Email already registered")

    user = User(
        email=address,
        password_hash=password_hash,
        status=status,
        logos_limit=config.DEFAULT_LOGOS_LIMIT if logos_limit is None else logos_limit,
    )
    with get_session() as session:
        session.add(user)
        session.commit()
        session.refresh(user)
    logger.info("Created user %s (id=%s)", user.email, user.id)
    return user


def authenticate(email: str, password: str) -> User:
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = get_user_by_email(email)
    # same message for unknown e-mail and bad password
    if user is None or not check_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    if user.status.value not in config.ALLOWED_LOGIN_STATUSES:
        raise AuthError("Account is not active")
    return user


def start_session(user: User) -> UserSession:
    record = UserSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=utcnow() + timedelta(hours=config.SESSION_TTL_HOURS),
    )
    with get_session() as session:
        session.add(record)
        session.commit()
    return record


def get_session_user(token: str | None) -> Optional[User]:
    if not token:
        return None
    with get_session() as session:
        record = session.get(UserSession, token)
        if record is None:
            return None
        if as_utc(record.expires_at) <= utcnow():
            session.delete(record)
            session.commit()
            return None
        user = session.get(User, record.user_id)
    if user is None or user.status.value not in config.ALLOWED_LOGIN_STATUSES:
        return None
    return user


def end_session(token: str | None) -> None:
    if not token:
        return
    with get_session() as session:
        record = session.get(UserSession, token)
        if record is not None:
            session.delete(record)
            session.commit()


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not check_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    _set_password(user.id, new_password)


def _set_password(user_id: int, new_password: str) -> None:
    password_hash = make_password_hash(new_password)
    with get_session() as session:
        row = session.get(User, user_id)
        if row is None:
            raise NotFoundError("User not found")
        row.password_hash = password_hash
        session.add(row)
        session.commit()


def issue_reset_token(email: str) -> Optional[str]:
    """Token for a known account, None otherwise; callers must not reveal which."""
    try:
        address = normalize_email(email)
    except ValidationError:
        return None
    user = get_user_by_email(address)
    if user is None:
        logger.info("Password reset requested for unknown address")
        return None

    token = secrets.token_urlsafe(32)
    with get_session() as session:
        session.add(
            PasswordResetToken(
                token=token,
                user_id=user.id,
                expires_at=utcnow() + timedelta(minutes=config.RESET_TOKEN_TTL_MINUTES),
            )
        )
        session.commit()
    logger.info("Issued password reset token for user %s", user.id)
    return token


def _live_reset_token(session, token: str | None) -> Optional[PasswordResetToken]:
    if not token:
        return None
    record = session.get(PasswordResetToken, token)
    if record is None or record.used or as_utc(record.expires_at) <= utcnow():
        return None
    return record


def verify_reset_token(token: str | None) -> bool:
    with get_session() as session:
        return _live_reset_token(session, token) is not None


def reset_password(token: str, new_password: str) -> None:
    with get_session() as session:
        record = _live_reset_token(session, token)
        if record is None:
            raise ValidationError("Invalid or expired token")
        user_id = record.user_id
        password_hash = make_password_hash(new_password)
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        user.password_hash = password_hash
        record.used = True
        session.add(user)
        session.add(record)
        # every existing login ends with the reset
        for old in session.exec(select(UserSession).where(UserSession.user_id == user_id)).all():
            session.delete(old)
        session.commit()
    logger.info("Password reset for user %s", user_id)


def update_logos_limit(user: User, logos_limit: int) -> User:
    if logos_limit < 0:
        raise ValidationError("Invalid logos limit")
    with get_session() as session:
        row = session.get(User, user.id)
        if row is None:
            raise NotFoundError("User not found")
        row.logos_limit = logos_limit
        session.add(row)
        session.commit()
        return row


def delete_user(user: User) -> None:
    with get_session() as session:
        for model in (UserSession, PasswordResetToken):
            for row in session.exec(select(model).where(model.user_id == user.id)).all():
                session.delete(row)
        row = session.get(User, user.id)
        if row is not None:
            session.delete(row)
        session.commit()
    logger.info("Deleted user %s", user.id)


def reserve_logo_slot(user_id: int) -> None:
    """Take one original-creation slot, or raise QuotaExceeded if none are left.

    The check and the increment are a single UPDATE so concurrent requests
    cannot both take the last slot.
    """
    stmt = (
        update(User)
        .where(col(User.id) == user_id, col(User.logos_created) < col(User.logos_limit))
        .values(logos_created=col(User.logos_created) + 1)
    )
    with models.engine.begin() as conn:
        reserved = conn.execute(stmt).rowcount
    if reserved:
        return
    with get_session() as session:
        row = session.get(User, user_id)
    if row is None:
        raise NotFoundError("User not found")
    raise QuotaExceeded(
        "Logo limit reached",
        details={"logosCreated": row.logos_created, "logosLimit": row.logos_limit},
    )


def release_logo_slot(user_id: int) -> None:
    stmt = (
        update(User)
        .where(col(User.id) == user_id, col(User.logos_created) > 0)
        .values(logos_created=col(User.logos_created) - 1)
    )
    with models.engine.begin() as conn:
        conn.execute(stmt)
    logger.info("Released logo slot for user %s", user_id)
