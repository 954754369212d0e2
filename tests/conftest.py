import asyncio
from typing import Any

import pytest

from larder.decoder import RawRecord
from larder.errors import LarderError, RecipeNotFound
from larder.models import Category, Ingredient, Recipe, RecipeSummary
from larder.repository import InMemoryOfflineStore


class FakeSource:
    """Stands in for the upstream provider and counts what it was asked."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.summaries: dict[str, list[RecipeSummary]] = {}
        self.fail: LarderError | None = None
        self.gate: asyncio.Event | None = None
        self.lookups: list[str] = []
        self.listings: list[str] = []

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail is not None:
            raise self.fail

    async def list_categories(self) -> list[Category]:
        await self._wait()
        return [Category(id="3", name="Dessert", description="Sweet", thumbnail_url="")]

    async def list_by_category(self, name: str) -> list[RecipeSummary]:
        self.listings.append(name)
        await self._wait()
        return list(self.summaries.get(name, []))

    async def lookup_by_id(self, id: str) -> RawRecord:
        self.lookups.append(id)
        await self._wait()
        if id not in self.records:
            raise RecipeNotFound(f"No recipe with id {id!r}.")
        return RawRecord(self.records[id])


def mealdb_record(id: str, title: str, *pairs: tuple[str | None, str | None]) -> dict[str, Any]:
    record: dict[str, Any] = {
        "idMeal": id,
        "strMeal": title,
        "strInstructions": f"Make the {title.lower()}.",
        "strMealThumb": f"https://example.com/{id}.jpg",
    }
    for index, (name, measure) in enumerate(pairs, start=1):
        record[f"strIngredient{index}"] = name
        record[f"strMeasure{index}"] = measure
    return record


def summaries(n: int) -> list[RecipeSummary]:
    return [
        RecipeSummary(id=str(i), title=f"Recipe {i}", thumbnail_url=f"https://example.com/{i}.jpg")
        for i in range(1, n + 1)
    ]


def make_recipe(id: str = "52772", title: str = "Teriyaki Chicken") -> Recipe:
    return Recipe(
        id=id,
        title=title,
        instructions="Preheat oven to 350.",
        thumbnail_url=f"https://example.com/{id}.jpg",
        ingredients=(
            Ingredient(name="soy sauce", measure="3/4 cup"),
            Ingredient(name="water", measure="1/2 cup"),
        ),
    )


@pytest.fixture
def source() -> FakeSource:
    src = FakeSource()
    src.records["52772"] = mealdb_record(
        "52772",
        "Teriyaki Chicken",
        ("soy sauce", "3/4 cup"),
        ("water", "1/2 cup"),
        ("brown sugar", "1/4 cup"),
    )
    src.records["52893"] = mealdb_record(
        "52893", "Apple Crumble", ("apples", "4"), ("flour", "100g")
    )
    src.summaries["Dessert"] = summaries(45)
    return src


@pytest.fixture
def memory_store() -> InMemoryOfflineStore:
    return InMemoryOfflineStore()
