from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Self


@dataclass(frozen=True)
class Ingredient:
    name: str
    measure: str

    @property
    def display_text(self) -> str:
        return f"{self.measure} {self.name}"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "measure": self.measure}


@dataclass(frozen=True)
class Recipe:
    id: str
    title: str
    instructions: str
    thumbnail_url: str
    ingredients: tuple[Ingredient, ...] = ()

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title={self.title})>"

    @property
    def summary(self) -> "RecipeSummary":
        return RecipeSummary(
            id=self.id,
            title=self.title,
            thumbnail_url=self.thumbnail_url,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "instructions": self.instructions,
            "thumbnail_url": self.thumbnail_url,
            "ingredients": [i.to_dict() for i in self.ingredients],
        }


@dataclass(frozen=True)
class RecipeSummary:
    id: str
    title: str
    thumbnail_url: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "thumbnail_url": self.thumbnail_url,
        }


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str
    thumbnail_url: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FavoriteSnapshot:
    """A complete copy of a recipe, readable without the network."""

    recipe: Recipe
    saved_at: datetime = field(default_factory=utc_now)

    @classmethod
    def of(cls, recipe: Recipe, *, saved_at: datetime | None = None) -> Self:
        return cls(recipe=recipe, saved_at=utc_now() if saved_at is None else saved_at)

    @property
    def id(self) -> str:
        return self.recipe.id

    def to_dict(self) -> dict[str, Any]:
        return {**self.recipe.to_dict(), "saved_at": self.saved_at.isoformat()}
