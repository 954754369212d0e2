"""Offline-first recipe lookup.

A favorited recipe is a complete snapshot in the offline store, so a lookup
asks the store first and only goes to the network on a miss. The store is
always asked before the network within one lookup.
"""
import asyncio
from dataclasses import dataclass, replace
from enum import Enum
import logging

from larder.decoder import FieldScheme, MEALDB, decode
from larder.errors import LarderError, StorageUnavailable
from larder.mealdb import RecipeSource
from larder.membership import FavoriteMembership
from larder.models import FavoriteSnapshot, Recipe
from larder.observable import Observable
from larder.repository import OfflineStore


logger = logging.getLogger(__name__)


class Origin(Enum):
    offline = "offline"
    network = "network"


@dataclass(frozen=True)
class ResolvedRecipe:
    recipe: Recipe
    is_favorite: bool
    origin: Origin

    def to_dict(self) -> dict[str, object]:
        return {
            **self.recipe.to_dict(),
            "is_favorite": self.is_favorite,
            "origin": self.origin.value,
        }


class RecipeResolver:
    def __init__(
        self,
        *,
        source: RecipeSource,
        store: OfflineStore,
        membership: FavoriteMembership,
        scheme: FieldScheme = MEALDB,
    ) -> None:
        self.source = source
        self.store = store
        self.membership = membership
        self.scheme = scheme

    async def _offline(self, id: str) -> FavoriteSnapshot | None:
        try:
            return await self.store.get(id)
        except StorageUnavailable as e:
            logger.warning("Offline store unreadable, going to network: %s", e)
            return None

    async def is_favorite(self, id: str) -> bool:
        try:
            return await self.membership.contains(id)
        except StorageUnavailable as e:
            logger.warning("Membership unavailable for %s: %s", id, e)
            return False

    async def resolve(self, id: str) -> ResolvedRecipe:
        snapshot = await self._offline(id)
        if snapshot is not None:
            logger.info("Recipe %s served from offline store", id)
            return ResolvedRecipe(
                recipe=snapshot.recipe, is_favorite=True, origin=Origin.offline
            )

        raw = await self.source.lookup_by_id(id)
        recipe = decode(raw, self.scheme)
        logger.info("Recipe %s fetched from network", id)
        return ResolvedRecipe(
            recipe=recipe,
            is_favorite=await self.is_favorite(id),
            origin=Origin.network,
        )

    async def save_favorite(self, recipe: Recipe) -> FavoriteSnapshot:
        snapshot = FavoriteSnapshot.of(recipe)
        await self.store.save(snapshot)
        await self.membership.add(recipe.id)
        return snapshot

    async def remove_favorite(self, id: str) -> None:
        await self.store.delete(id)
        await self.membership.discard(id)


class DetailStatus(Enum):
    loading = "loading"
    ready = "ready"
    failed = "failed"


@dataclass(frozen=True)
class DetailState:
    id: str
    status: DetailStatus = DetailStatus.loading
    resolved: ResolvedRecipe | None = None
    error: LarderError | None = None

    @property
    def is_favorite(self) -> bool:
        return self.resolved is not None and self.resolved.is_favorite


class RecipeDetail(Observable[DetailState]):
    """One recipe as a consumer sees it: loading, ready or failed."""

    def __init__(self, id: str, *, resolver: RecipeResolver) -> None:
        super().__init__(DetailState(id=id))
        self.id = id
        self.resolver = resolver
        self._toggling = asyncio.Lock()

    async def _resolve(self, prior: DetailState) -> DetailState:
        try:
            resolved = await self.resolver.resolve(self.id)
        except asyncio.CancelledError:
            logger.debug("Lookup of %s cancelled", self.id)
            self.publish(prior)
            raise
        except LarderError as e:
            logger.warning("Lookup of %s failed: %s", self.id, e.message)
            self.publish(
                replace(prior, status=DetailStatus.failed, resolved=None, error=e)
            )
            return self.state
        self.publish(
            replace(prior, status=DetailStatus.ready, resolved=resolved, error=None)
        )
        return self.state

    async def load(self) -> DetailState:
        prior = self.state
        self.publish(DetailState(id=self.id))
        return await self._resolve(prior)

    async def refresh(self) -> DetailState:
        # Whatever is on screen stays published until the lookup settles.
        return await self._resolve(self.state)

    async def retry(self) -> DetailState:
        return await self.load()

    async def toggle_favorite(self, *, load: bool = False) -> bool:
        """Flip the favorite flag of the displayed recipe.

        Toggles run one at a time, so two overlapping toggles end where they
        started. With `load`, a recipe that is not on display yet is looked up
        first and a failed lookup raises its `LarderError`.
        """
        async with self._toggling:
            if load and self.state.status is not DetailStatus.ready:
                state = await self.load()
                if state.error is not None:
                    raise state.error

            resolved = self.state.resolved
            if self.state.status is not DetailStatus.ready or resolved is None:
                return False

            # The store decides, the displayed flag may be behind it.
            was_favorite = await self.resolver.is_favorite(self.id)
            try:
                if was_favorite:
                    await self.resolver.remove_favorite(self.id)
                else:
                    # The displayed recipe is the snapshot; nothing is re-fetched.
                    await self.resolver.save_favorite(resolved.recipe)
            except LarderError:
                logger.exception("Failed to toggle favorite for %s", self.id)
                return self.state.is_favorite

            return self.mark_favorite(not was_favorite)

    def mark_favorite(self, is_favorite: bool) -> bool:
        """Change the displayed flag after the store has already changed."""
        current = self.state
        if current.resolved is not None and current.resolved.is_favorite != is_favorite:
            self.publish(
                replace(
                    current,
                    resolved=replace(current.resolved, is_favorite=is_favorite),
                )
            )
        return is_favorite
