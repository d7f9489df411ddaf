from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from .. import config
from ..errors import NotFoundError, RevisionLimitReached, ValidationError
from ..models import LOCAL_TABLES, StoredLogo, UserUsage

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 4

# columns added after the first local schema, with their back-fill defaults
_UPGRADE_COLUMNS: List[Tuple[int, str, str]] = [
    (2, "is_revision", "BOOLEAN DEFAULT 0"),
    (2, "original_logo_id", "VARCHAR"),
    (2, "revision_number", "INTEGER"),
    (3, "name", "VARCHAR DEFAULT 'Untitled'"),
    (4, "user_id", f"VARCHAR DEFAULT '{config.LEGACY_USER_ID}'"),
]


def open_local_engine(path: Optional[Path] = None) -> Engine:
    db_path = Path(path or config.LOCAL_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    migrate_local_db(engine)
    return engine


def _user_version(engine: Engine) -> int:
    with engine.connect() as conn:
        return int(conn.execute(text("PRAGMA user_version")).scalar() or 0)


def migrate_local_db(engine: Engine) -> int:
    """Bring the local store up to SCHEMA_VERSION; returns the version it started from."""
    version = _user_version(engine)
    if version >= SCHEMA_VERSION:
        return version

    inspector = inspect(engine)
    if "logos" in inspector.get_table_names():
        columns = {col["name"] for col in inspector.get_columns("logos")}
        with engine.begin() as conn:
            for since, column, ddl in _UPGRADE_COLUMNS:
                if version < since and column not in columns:
                    conn.execute(text(f"ALTER TABLE logos ADD COLUMN {column} {ddl}"))
                    logger.info("Local store: added logos.%s", column)
            if version < 4:
                # logos written before per-user stores have no owner
                conn.execute(
                    text("UPDATE logos SET user_id = :legacy WHERE user_id IS NULL OR user_id = ''"),
                    {"legacy": config.LEGACY_USER_ID},
                )

    SQLModel.metadata.create_all(engine, tables=LOCAL_TABLES)
    with engine.begin() as conn:
        conn.execute(text(f"PRAGMA user_version = {SCHEMA_VERSION}"))
    logger.info("Local store migrated from v%d to v%d", version, SCHEMA_VERSION)
    return version


def new_logo_id() -> str:
    return str(uuid.uuid4())


class LogoStore:
    """Local logo and usage records for exactly one user.

    Records that belong to anyone else are invisible through this handle.
    """

    def __init__(self, user_id: str, engine: Optional[Engine] = None) -> None:
        if not user_id:
            raise ValidationError("A user id is required to open the logo store")
        self.user_id = user_id
        self.engine = engine if engine is not None else open_local_engine()

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    # ------------------------------------------------------------------
    # logos
    # ------------------------------------------------------------------

    def get_logo(self, logo_id: str) -> Optional[StoredLogo]:
        with self._session() as session:
            logo = session.get(StoredLogo, logo_id)
        if logo is None or logo.user_id != self.user_id:
            return None
        return logo

    def list_originals(self) -> List[StoredLogo]:
        with self._session() as session:
            stmt = (
                select(StoredLogo)
                .where(StoredLogo.user_id == self.user_id, StoredLogo.is_revision == False)  # noqa: E712
                .order_by(StoredLogo.created_at.desc(), text("logos.rowid DESC"))
            )
            return list(session.exec(stmt).all())

    def list_revisions(self, original_id: str) -> List[StoredLogo]:
        with self._session() as session:
            stmt = (
                select(StoredLogo)
                .where(
                    StoredLogo.user_id == self.user_id,
                    StoredLogo.is_revision == True,  # noqa: E712
                    StoredLogo.original_logo_id == original_id,
                )
                .order_by(StoredLogo.revision_number)
            )
            return list(session.exec(stmt).all())

    def list_with_revisions(self) -> List[Dict[str, Any]]:
        return [
            {"original": original, "revisions": self.list_revisions(original.id)}
            for original in self.list_originals()
        ]

    def count_revisions(self, original_id: str) -> int:
        return len(self.list_revisions(original_id))

    def can_create_revision(self, original_id: str) -> bool:
        return self.count_revisions(original_id) < config.MAX_REVISIONS_PER_LOGO

    def save_logo(
        self,
        image_data_uri: str,
        parameters: Dict[str, Any],
        original_logo_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> StoredLogo:
        if not image_data_uri:
            raise ValidationError("Logo image is empty")

        revision_number = None
        if original_logo_id:
            original = self.get_logo(original_logo_id)
            if original is None:
                raise NotFoundError("Original logo not found", details={"id": original_logo_id})
            if original.is_revision:
                raise ValidationError("Revisions can only be created from an original logo")
            existing = self.count_revisions(original_logo_id)
            if existing >= config.MAX_REVISIONS_PER_LOGO:
                raise RevisionLimitReached(
                    f"Maximum revisions reached ({config.MAX_REVISIONS_PER_LOGO} per logo)",
                    details={"originalLogoId": original_logo_id},
                )
            revision_number = existing + 1

        logo = StoredLogo(
            id=new_logo_id(),
            user_id=self.user_id,
            name=(name or "").strip() or "Untitled",
            image_data_uri=image_data_uri,
            parameters=dict(parameters or {}),
            is_revision=bool(original_logo_id),
            original_logo_id=original_logo_id or None,
            revision_number=revision_number,
        )
        with self._session() as session:
            session.add(logo)
            session.commit()
        logger.info("Saved logo %s for %s (revision=%s)", logo.id, self.user_id, revision_number)
        return logo

    def rename_logo(self, logo_id: str, new_name: str) -> StoredLogo:
        name = (new_name or "").strip()
        if not name:
            raise ValidationError("Logo name cannot be empty")
        with self._session() as session:
            logo = session.get(StoredLogo, logo_id)
            if logo is None or logo.user_id != self.user_id:
                raise NotFoundError("Logo not found", details={"id": logo_id})
            logo.name = name
            session.add(logo)
            session.commit()
            return logo

    def delete_logo(self, logo_id: str) -> int:
        """Delete a logo; an original takes its revisions with it. Returns rows removed."""
        with self._session() as session:
            logo = session.get(StoredLogo, logo_id)
            if logo is None or logo.user_id != self.user_id:
                raise NotFoundError("Logo not found", details={"id": logo_id})
            doomed = [logo]
            if not logo.is_revision:
                stmt = select(StoredLogo).where(
                    StoredLogo.user_id == self.user_id,
                    StoredLogo.original_logo_id == logo_id,
                )
                doomed.extend(session.exec(stmt).all())
            for row in doomed:
                session.delete(row)
            session.commit()
        logger.info("Deleted %d logo record(s) starting at %s", len(doomed), logo_id)
        return len(doomed)

    # ------------------------------------------------------------------
    # usage
    # ------------------------------------------------------------------

    @property
    def _usage_id(self) -> str:
        return f"usage_{self.user_id}"

    def usage(self) -> Optional[UserUsage]:
        with self._session() as session:
            return session.get(UserUsage, self._usage_id)

    def initialize_usage(self) -> UserUsage:
        existing = self.usage()
        if existing is not None:
            return existing
        usage = UserUsage(id=self._usage_id, user_id=self.user_id, logos_created=0, logos_limit=0)
        with self._session() as session:
            session.add(usage)
            session.commit()
        return usage

    def sync_usage(self, logos_created: int, logos_limit: int) -> UserUsage:
        """Overwrite the local usage row with the server's numbers."""
        with self._session() as session:
            usage = session.get(UserUsage, self._usage_id)
            if usage is None:
                usage = UserUsage(id=self._usage_id, user_id=self.user_id)
            usage.logos_created = int(logos_created)
            usage.logos_limit = int(logos_limit)
            session.add(usage)
            session.commit()
            return usage

    def can_create_original(self) -> bool:
        usage = self.usage() or self.initialize_usage()
        return usage.logos_created < usage.logos_limit

    def clear(self) -> int:
        """Remove every record this user owns locally."""
        with self._session() as session:
            logos = session.exec(select(StoredLogo).where(StoredLogo.user_id == self.user_id)).all()
            for row in logos:
                session.delete(row)
            usage = session.get(UserUsage, self._usage_id)
            if usage is not None:
                session.delete(usage)
            session.commit()
        return len(logos)
