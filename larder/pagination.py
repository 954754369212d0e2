"""Client-side paging over a result set that is fetched once.

    idle -> loading -> loaded | finished | error
    loaded -> loaded | finished        (load_next_page)
    any -> loading                     (refresh)

Favorite marks are read from the membership index whenever a page is built,
never stored with the fetched summaries.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
import os
from typing import Any, Awaitable, Callable

from ajolt import AsyncJolt
from larder.errors import LarderError, StorageUnavailable
from larder.membership import FavoriteMembership
from larder.models import RecipeSummary
from larder.observable import Observable


logger = logging.getLogger(__name__)


PAGE_SIZE = int(os.environ.get("LARDER_PAGE_SIZE", 20))


Fetcher = Callable[[str], Awaitable[list[RecipeSummary]]]


class Lifecycle(Enum):
    idle = "idle"
    loading = "loading"
    loaded = "loaded"
    finished = "finished"
    error = "error"


@dataclass(frozen=True)
class PageItem:
    summary: RecipeSummary
    is_favorite: bool

    def to_dict(self) -> dict[str, Any]:
        return {**self.summary.to_dict(), "is_favorite": self.is_favorite}


@dataclass(frozen=True)
class Page:
    context: str
    items: tuple[PageItem, ...]
    lifecycle: Lifecycle
    error: LarderError | None = None

    @property
    def can_load_more(self) -> bool:
        return self.lifecycle is Lifecycle.loaded

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "lifecycle": self.lifecycle.value,
            "items": [item.to_dict() for item in self.items],
            "error": None if self.error is None else self.error.describe(),
        }


@dataclass
class _Progress:
    full_set: tuple[RecipeSummary, ...] = ()
    cursor: int = 0
    lifecycle: Lifecycle = Lifecycle.idle
    error: LarderError | None = None


class PaginationController(Observable[Page]):
    def __init__(
        self,
        context: str,
        *,
        fetcher: Fetcher,
        membership: FavoriteMembership,
        page_size: int = PAGE_SIZE,
        jolt: float = 0,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive.")
        super().__init__(Page(context=context, items=(), lifecycle=Lifecycle.idle))
        self.context = context
        self.fetcher = fetcher
        self.membership = membership
        self.page_size = page_size
        self.jolt = jolt
        self._progress = _Progress()
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._restore = self._progress
        self._paging = False

    @property
    def lifecycle(self) -> Lifecycle:
        return self._progress.lifecycle

    @property
    def cursor(self) -> int:
        return self._progress.cursor

    @property
    def total(self) -> int:
        return len(self._progress.full_set)

    def page(self) -> Page:
        favorites = self.membership.snapshot()
        progress = self._progress
        return Page(
            context=self.context,
            items=tuple(
                PageItem(summary=s, is_favorite=s.id in favorites)
                for s in progress.full_set[: progress.cursor]
            ),
            lifecycle=progress.lifecycle,
            error=progress.error,
        )

    def _set(self, progress: _Progress) -> Page:
        self._progress = progress
        page = self.page()
        self.publish(page)
        return page

    def _republish(self) -> Page:
        # Nothing moved, but favorite marks may have.
        return self._set(self._progress)

    def _advance(self, full_set: tuple[RecipeSummary, ...], cursor: int) -> _Progress:
        end = min(cursor + self.page_size, len(full_set))
        lifecycle = Lifecycle.finished if end >= len(full_set) else Lifecycle.loaded
        return _Progress(full_set=full_set, cursor=end, lifecycle=lifecycle)

    async def _load(self, prior: _Progress, generation: int) -> None:
        try:
            full_set = tuple(await self.fetcher(self.context))
            if not self.membership.loaded:
                await self._refresh_membership_quietly()
        except asyncio.CancelledError:
            logger.debug("Fetch for %s cancelled", self.context)
            if generation == self._generation:
                self._set(prior)
            raise
        except LarderError as e:
            logger.warning("Fetch for %s failed: %s", self.context, e.message)
            if generation == self._generation:
                self._set(_Progress(lifecycle=Lifecycle.error, error=e))
            return

        if generation == self._generation:
            logger.info("Fetched %d items for %s", len(full_set), self.context)
            self._set(self._advance(full_set, 0))

    async def _refresh_membership_quietly(self) -> None:
        try:
            await self.membership.refresh()
        except StorageUnavailable as e:
            logger.warning("Favorite marks unavailable for %s: %s", self.context, e)

    async def _run(self, prior: _Progress) -> Page:
        self._generation += 1
        generation = self._generation
        self._restore = prior
        self._set(_Progress(lifecycle=Lifecycle.loading))
        task = asyncio.create_task(self._load(prior, generation))
        self._task = task
        try:
            await task
        except asyncio.CancelledError:
            # Covers a task cancelled before it ever ran.
            if generation == self._generation and self.lifecycle is Lifecycle.loading:
                self._set(prior)
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Superseded by a refresh, or dismissed through cancel().
            logger.debug("Fetch for %s superseded", self.context)
        finally:
            if self._task is task:
                self._task = None
        return self.state

    async def fetch(self) -> Page:
        if self.lifecycle is not Lifecycle.idle:
            return self._republish()
        return await self._run(self._progress)

    async def refresh(self) -> Page:
        prior = self._progress
        if self._task is not None and not self._task.done():
            # Restore to what was there before the fetch being replaced.
            prior = self._restore
            self._task.cancel()
        return await self._run(prior)

    async def retry(self) -> Page:
        return await self.refresh()

    async def load_next_page(self) -> Page:
        if self._paging or self.lifecycle is not Lifecycle.loaded:
            return self._republish()
        self._paging = True
        try:
            async with AsyncJolt(self.jolt):
                progress = self._progress
                # A refresh may have landed while we yielded.
                if progress.lifecycle is not Lifecycle.loaded:
                    return self._republish()
                return self._set(self._advance(progress.full_set, progress.cursor))
        finally:
            self._paging = False

    async def refresh_membership(self) -> Page:
        await self._refresh_membership_quietly()
        return self._republish()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
