import logging
import os
from typing import Any, Protocol

import httpx

from larder.decoder import RawRecord, decode_category, decode_summary
from larder.errors import (
    EmptyResult,
    LarderError,
    MalformedResponse,
    RecipeNotFound,
    from_transport,
)
from larder.models import Category, RecipeSummary


logger = logging.getLogger(__name__)


BASE_URL = os.environ.get(
    "MEALDB_BASE_URL", "https://www.themealdb.com/api/json/v1/1/"
)
TIMEOUT = float(os.environ.get("MEALDB_TIMEOUT", 20))


class RecipeSource(Protocol):
    async def list_categories(self) -> list[Category]:
        ...

    async def list_by_category(self, name: str) -> list[RecipeSummary]:
        ...

    async def lookup_by_id(self, id: str) -> RawRecord:
        ...


def mealdb_client_factory(
    base_url: str | None = None,
    timeout: float | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL if base_url is None else base_url,
        headers={"Accept": "application/json"},
        timeout=TIMEOUT if timeout is None else timeout,
    )


def _entries(data: Any, key: str) -> list[Any] | None:
    if not isinstance(data, dict) or key not in data:
        raise MalformedResponse(f"Response has no '{key}' field.")
    entries = data[key]
    if entries is None:
        return None
    if not isinstance(entries, list):
        raise MalformedResponse(f"'{key}' is not a list.")
    return entries


class MealDBClient:
    """The upstream recipe provider, spoken to over JSON."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self.http_client = (
            mealdb_client_factory() if http_client is None else http_client
        )

    async def get(self, path: str, **params: str) -> Any:
        try:
            resp = await self.http_client.get(path, params=params)
            resp.raise_for_status()
            if not resp.content:
                raise MalformedResponse("Server returned an empty body.")
            return resp.json()
        except LarderError:
            raise
        except Exception as e:
            error = from_transport(e)
            logger.warning("GET %s failed: %s", path, error.message)
            raise error from e

    async def list_categories(self) -> list[Category]:
        data = await self.get("categories.php")
        entries = _entries(data, "categories")
        if not entries:
            raise EmptyResult("No categories returned.")
        return [decode_category(entry) for entry in entries]

    async def list_by_category(self, name: str) -> list[RecipeSummary]:
        data = await self.get("filter.php", c=name)
        entries = _entries(data, "meals")
        if not entries:
            raise EmptyResult(f"No recipes in category {name!r}.")
        logger.info("Fetched %d recipes for %s", len(entries), name)
        return [decode_summary(entry) for entry in entries]

    async def lookup_by_id(self, id: str) -> RawRecord:
        data = await self.get("lookup.php", i=id)
        entries = _entries(data, "meals")
        if not entries:
            raise RecipeNotFound(f"No recipe with id {id!r}.")
        return RawRecord(entries[0])

    async def aclose(self) -> None:
        await self.http_client.aclose()
