import asyncio
import logging

from larder.repository import OfflineStore


logger = logging.getLogger(__name__)


class FavoriteMembership:
    """Which recipe ids are favorites, derived from the offline store.

    Readers get an immutable `frozenset` and never wait. Writers rebuild or
    edit a copy under a lock and swap it in.
    """

    def __init__(self, store: OfflineStore) -> None:
        self.store = store
        self._ids: frozenset[str] | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._ids is not None

    def snapshot(self) -> frozenset[str]:
        return frozenset() if self._ids is None else self._ids

    async def refresh(self) -> frozenset[str]:
        async with self._lock:
            self._ids = frozenset(await self.store.ids())
            logger.debug("Membership rebuilt with %d ids", len(self._ids))
            return self._ids

    async def contains(self, id: str) -> bool:
        ids = self._ids if self._ids is not None else await self.refresh()
        return id in ids

    async def add(self, id: str) -> None:
        async with self._lock:
            # Not built yet; the next read rebuilds from the store anyway.
            if self._ids is not None:
                self._ids = self._ids | {id}

    async def discard(self, id: str) -> None:
        async with self._lock:
            if self._ids is not None:
                self._ids = self._ids - {id}

    async def reset(self) -> None:
        async with self._lock:
            self._ids = frozenset()
