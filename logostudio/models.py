from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import logging

from sqlalchemy import JSON, Column, inspect, text
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo; they were written as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    status: UserStatus = Field(default=UserStatus.ACTIVE)
    logos_created: int = 0
    logos_limit: int = Field(default=config.DEFAULT_LOGOS_LIMIT)
    created_at: datetime = Field(default_factory=utcnow)


class UserSession(SQLModel, table=True):
    __tablename__ = "user_sessions"

    token: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime


class PasswordResetToken(SQLModel, table=True):
    __tablename__ = "password_reset_tokens"

    token: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    expires_at: datetime
    used: bool = False


class CatalogLogo(SQLModel, table=True):
    __tablename__ = "catalog_logos"

    id: Optional[int] = Field(default=None, primary_key=True)
    catalog_code: str = Field(index=True, unique=True)
    logo_key_id: str = Field(index=True, unique=True)
    image_data_uri: str
    parameters: dict = Field(default_factory=dict, sa_column=Column(JSON))
    original_company_name: str
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class StoredLogo(SQLModel, table=True):
    """A generated logo kept in the client-side store."""

    __tablename__ = "logos"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    name: str = "Untitled"
    image_data_uri: str
    created_at: datetime = Field(default_factory=utcnow)
    parameters: dict = Field(default_factory=dict, sa_column=Column(JSON))
    is_revision: bool = Field(default=False, index=True)
    original_logo_id: Optional[str] = Field(default=None, index=True)
    revision_number: Optional[int] = None


class UserUsage(SQLModel, table=True):
    __tablename__ = "usage"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    logos_created: int = 0
    logos_limit: int = 0


SERVER_TABLES = [
    User.__table__,
    UserSession.__table__,
    PasswordResetToken.__table__,
    CatalogLogo.__table__,
]
LOCAL_TABLES = [StoredLogo.__table__, UserUsage.__table__]


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine, tables=SERVER_TABLES)
    _migrate_db()


def _migrate_db() -> None:
    """Add columns introduced after the first schema to existing databases."""
    inspector = inspect(engine)
    if "users" not in inspector.get_table_names():
        return
    columns = {col["name"] for col in inspector.get_columns("users")}

    if "status" not in columns:
        with engine.begin() as conn:
            conn.execute(text("ALTER TABLE users ADD COLUMN status VARCHAR DEFAULT 'ACTIVE'"))
        logger.info("Added users.status column")

    if "logos_limit" not in columns:
        with engine.begin() as conn:
            conn.execute(
                text(f"ALTER TABLE users ADD COLUMN logos_limit INTEGER DEFAULT {config.DEFAULT_LOGOS_LIMIT}")
            )
        logger.info("Added users.logos_limit column")


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
