import logging

from larder.decoder import FieldScheme, MEALDB
from larder.mealdb import RecipeSource
from larder.membership import FavoriteMembership
from larder.models import Category, FavoriteSnapshot
from larder.pagination import PAGE_SIZE, Page, PaginationController
from larder.repository import OfflineStore
from larder.resolver import RecipeDetail, RecipeResolver, ResolvedRecipe


logger = logging.getLogger(__name__)


class RecipeBook:
    """What a front end talks to.

    Holds one `RecipeDetail` per recipe id it has been asked about and one
    `PaginationController` per category, so favorites toggle against what was
    last shown and pages carry on from where they stopped.
    """

    def __init__(
        self,
        *,
        source: RecipeSource,
        store: OfflineStore,
        page_size: int = PAGE_SIZE,
        scheme: FieldScheme = MEALDB,
    ) -> None:
        self.source = source
        self.store = store
        self.page_size = page_size
        self.membership = FavoriteMembership(store)
        self.resolver = RecipeResolver(
            source=source,
            store=store,
            membership=self.membership,
            scheme=scheme,
        )
        self.details: dict[str, RecipeDetail] = {}
        self.pages: dict[str, PaginationController] = {}

    def detail(self, id: str) -> RecipeDetail:
        if id not in self.details:
            self.details[id] = RecipeDetail(id, resolver=self.resolver)
        return self.details[id]

    def paginator(self, context: str) -> PaginationController:
        if context not in self.pages:
            self.pages[context] = PaginationController(
                context,
                fetcher=self.source.list_by_category,
                membership=self.membership,
                page_size=self.page_size,
            )
        return self.pages[context]

    async def categories(self) -> list[Category]:
        return await self.source.list_categories()

    async def fetch_recipe(self, id: str) -> ResolvedRecipe:
        """Resolve `id`, raising the `LarderError` if it cannot be shown."""
        state = await self.detail(id).load()
        if state.error is not None:
            raise state.error
        assert state.resolved is not None
        return state.resolved

    async def refresh_recipe(self, id: str) -> ResolvedRecipe:
        state = await self.detail(id).refresh()
        if state.error is not None:
            raise state.error
        assert state.resolved is not None
        return state.resolved

    async def toggle_favorite(self, id: str) -> bool:
        # Looks the recipe up first when nothing is on display to snapshot.
        return await self.detail(id).toggle_favorite(load=True)

    async def fetch_page(self, context: str) -> Page:
        return await self.paginator(context).fetch()

    async def load_next_page(self, context: str) -> Page:
        return await self.paginator(context).load_next_page()

    async def refresh(self, context: str) -> Page:
        return await self.paginator(context).refresh()

    async def refresh_membership(self, context: str) -> Page:
        return await self.paginator(context).refresh_membership()

    async def list_favorites(self) -> list[FavoriteSnapshot]:
        return await self.store.list_all()

    async def favorites_count(self) -> int:
        return await self.store.count()

    async def remove_favorite(self, id: str) -> None:
        await self.resolver.remove_favorite(id)
        if id in self.details:
            self.details[id].mark_favorite(False)

    async def clear_favorites(self) -> None:
        await self.store.clear()
        await self.membership.reset()
        logger.info("Favorites cleared")
        for detail in self.details.values():
            detail.mark_favorite(False)

    def close(self) -> None:
        for paginator in self.pages.values():
            paginator.cancel()
        self.pages.clear()
        self.details.clear()
