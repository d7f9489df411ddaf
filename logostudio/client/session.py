from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from .. import config
from ..catalog import normalize_catalog_code
from ..errors import AuthError, NotFoundError, QuotaExceeded, RevisionLimitReached
from ..logos.generate import LogoParameters
from ..logos.store import LogoStore, open_local_engine
from ..models import StoredLogo
from .api import ApiClient

logger = logging.getLogger(__name__)


class AppSession:
    """Everything the client knows about the signed-in user.

    Created signed-out; ``init()`` loads the user and opens their local
    store, ``teardown()`` logs out and drops it again.
    """

    def __init__(self, api: ApiClient, local_db_path: Optional[Path] = None) -> None:
        self.api = api
        self.local_db_path = local_db_path
        self.user: Optional[Dict[str, Any]] = None
        self.store: Optional[LogoStore] = None
        self.loading = False
        self.error: Optional[str] = None
        self._engine = None

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    async def init(self) -> bool:
        self.loading = True
        try:
            try:
                self.user = await self.api.get_user()
            except AuthError:
                self.user = None
                self.store = None
                return False
            if self._engine is None:
                self._engine = open_local_engine(self.local_db_path or config.LOCAL_DB_PATH)
            self.store = LogoStore(self.user["email"], self._engine)
            self.store.initialize_usage()
            self.store.sync_usage(self.user["logosCreated"], self.user["logosLimit"])
            logger.info("Session ready for %s", self.user["email"])
            return True
        finally:
            self.loading = False

    async def teardown(self) -> None:
        try:
            if self.user is not None:
                await self.api.logout()
        finally:
            self.user = None
            self.store = None
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None

    def _require_store(self) -> LogoStore:
        if self.store is None:
            raise AuthError("Please sign in first")
        return self.store

    async def refresh_usage(self) -> None:
        store = self._require_store()
        self.user = await self.api.get_user()
        store.sync_usage(self.user["logosCreated"], self.user["logosLimit"])

    async def generate_logo(
        self,
        parameters: Union[LogoParameters, Dict[str, Any]],
        original_logo_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> StoredLogo:
        store = self._require_store()
        params = parameters if isinstance(parameters, LogoParameters) else LogoParameters.model_validate(parameters)
        payload = params.model_dump(by_alias=True, exclude_none=True)

        reference: Optional[str] = None
        if original_logo_id:
            original = store.get_logo(original_logo_id)
            if original is None:
                raise NotFoundError("Original logo not found")
            if not store.can_create_revision(original_logo_id):
                raise RevisionLimitReached(f"Maximum revisions reached ({config.MAX_REVISIONS_PER_LOGO} per logo)")
            reference = original.image_data_uri
        elif not store.can_create_original():
            raise QuotaExceeded("Logo limit reached")

        self.loading = True
        self.error = None
        try:
            result = await self.api.generate_logo(payload, original_logo_id, reference)
            logo = store.save_logo(result["imageDataUri"], payload, original_logo_id, name)
            store.sync_usage(result["logosCreated"], result["logosLimit"])
            if self.user is not None:
                self.user.update(logosCreated=result["logosCreated"], logosLimit=result["logosLimit"])
            return logo
        except Exception:
            self.error = "Failed to generate logo. Please try again."
            raise
        finally:
            self.loading = False

    async def lookup_catalog_code(self, raw_code: str) -> Dict[str, Any]:
        code = normalize_catalog_code(raw_code)
        return await self.api.get_catalog_by_code(code)
