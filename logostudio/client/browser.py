from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import asyncio
import logging

from .. import config
from ..errors import LogoStudioError, NotFoundError

logger = logging.getLogger(__name__)

FetchPage = Callable[[int, int, str], Awaitable[Dict[str, Any]]]
FetchImage = Callable[[Any], Awaitable[Dict[str, Any]]]
DeleteLogo = Callable[[Any], Awaitable[None]]

LOAD_FAILED = "Failed to load catalog. Please try again."
IMAGE_FAILED = "Failed to load image"
DELETE_FAILED = "Failed to delete logo. Please try again."


class CatalogBrowser:
    """Admin catalog list state: paging, debounced search and lazy tile images.

    Every page request gets a sequence number; a response is applied only if
    no newer request was started after it.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        fetch_image: FetchImage,
        debounce: float = config.SEARCH_DEBOUNCE_SECONDS,
        limit: int = config.CATALOG_PAGE_LIMIT,
        delete_logo: Optional[DeleteLogo] = None,
    ) -> None:
        self.fetch_page = fetch_page
        self.fetch_image = fetch_image
        self.delete_logo = delete_logo
        self.debounce = debounce
        self.limit = limit

        self.page = 1
        self.search = ""
        self.search_input = ""
        self.logos: List[Dict[str, Any]] = []
        self.stats: Optional[Dict[str, Any]] = None
        self.pagination: Dict[str, Any] = {}
        self.loading = False
        self.error: Optional[str] = None

        self.images: Dict[Any, str] = {}
        self.image_errors: Dict[Any, str] = {}
        self._images_loading: Set[Any] = set()

        self._seq = 0
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # pages
    # ------------------------------------------------------------------

    async def load(self, page: Optional[int] = None) -> bool:
        """Fetch a page; returns False when the response was stale or failed."""
        if page is not None:
            self.page = max(1, page)
        self._seq += 1
        seq = self._seq
        self.loading = True
        self.error = None
        try:
            data = await self.fetch_page(self.page, self.limit, self.search)
            if seq != self._seq:
                logger.debug("Dropped stale catalog response #%d", seq)
                return False
            self.logos = list(data.get("logos") or [])
            if data.get("stats") is not None:
                self.stats = data["stats"]
            self.pagination = dict(data.get("pagination") or {})
            return True
        except LogoStudioError:
            if seq == self._seq:
                logger.exception("Catalog page %d failed", self.page)
                self.error = LOAD_FAILED
            return False
        finally:
            if seq == self._seq:
                self.loading = False

    @property
    def has_more(self) -> bool:
        return bool(self.pagination.get("hasMore"))

    async def next_page(self) -> bool:
        if not self.has_more:
            return False
        return await self.load(self.page + 1)

    async def previous_page(self) -> bool:
        if self.page <= 1:
            return False
        return await self.load(self.page - 1)

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    def set_search(self, term: str) -> asyncio.Task:
        """Schedule a search once typing settles; must be called inside a running loop."""
        self.search_input = term
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        task = asyncio.get_running_loop().create_task(self._debounced_search(term))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _debounced_search(self, term: str) -> None:
        await asyncio.sleep(self.debounce)
        # past the debounce window: later keystrokes no longer cancel this request
        if self._pending is asyncio.current_task():
            self._pending = None
        self.search = term.strip()
        await self.load(1)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # tiles
    # ------------------------------------------------------------------

    async def tile_visible(self, logo_id: Any) -> Optional[str]:
        if logo_id in self.images:
            return self.images[logo_id]
        if logo_id in self._images_loading:
            return None
        self._images_loading.add(logo_id)
        try:
            data = await self.fetch_image(logo_id)
            self.images[logo_id] = data["imageDataUri"]
            self.image_errors.pop(logo_id, None)
            return self.images[logo_id]
        except LogoStudioError:
            logger.exception("Tile image %s failed", logo_id)
            self.image_errors[logo_id] = IMAGE_FAILED
            return None
        finally:
            self._images_loading.discard(logo_id)

    async def delete(self, logo_id: Any) -> bool:
        if self.delete_logo is None:
            raise NotFoundError("Deleting is not available")
        try:
            await self.delete_logo(logo_id)
        except LogoStudioError:
            logger.exception("Deleting catalog logo %s failed", logo_id)
            self.error = DELETE_FAILED
            return False
        self.images.pop(logo_id, None)
        self.image_errors.pop(logo_id, None)
        await self.load()
        return True
