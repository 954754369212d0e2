"""Turn loosely-typed upstream records into canonical `Recipe`s.

Upstream records carry their ingredients as two families of numbered fields,
`strIngredient1`, `strMeasure1`, `strIngredient2`, ... The numbering has no
promised upper bound and any field may be missing, null or blank. The raw map
is kept whole in a `RawRecord`; the pattern parser below pairs the families up
by index.
"""
from dataclasses import dataclass
import re
from typing import Any, Iterator, Mapping

from larder.errors import MalformedResponse
from larder.models import Category, Ingredient, Recipe, RecipeSummary


@dataclass(frozen=True)
class FieldScheme:
    id: str
    title: str
    instructions: str
    thumbnail_url: str
    ingredient_prefix: str
    measure_prefix: str


MEALDB = FieldScheme(
    id="idMeal",
    title="strMeal",
    instructions="strInstructions",
    thumbnail_url="strMealThumb",
    ingredient_prefix="strIngredient",
    measure_prefix="strMeasure",
)


# Positive decimal integers, zero padding allowed. No sign, no whitespace.
INDEX_RE = re.compile(r"0*([1-9][0-9]*)")


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


class RawRecord:
    """A field name to optional string map, exactly as it arrived."""

    def __init__(self, fields: Mapping[str, Any]) -> None:
        if not isinstance(fields, Mapping):
            raise MalformedResponse(
                f"Expected a record object, got {type(fields).__name__}."
            )
        self.fields = dict(fields)

    def __repr__(self) -> str:
        return f"<RawRecord(fields={len(self.fields)})>"

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def get(self, name: str) -> str | None:
        return _text(self.fields.get(name))

    def text(self, name: str) -> str:
        value = self.get(name)
        return "" if value is None else value

    def indexed(self, prefix: str) -> dict[int, str | None]:
        family: dict[int, str | None] = {}
        for name, value in self.fields.items():
            if not isinstance(name, str) or not name.startswith(prefix):
                continue
            suffix = name[len(prefix) :]
            match = INDEX_RE.fullmatch(suffix)
            if match is None:
                continue
            index = int(match.group(1))
            # "strIngredient7" wins over "strIngredient07".
            if index in family and match.group(1) != suffix:
                continue
            family[index] = _text(value)
        return family

    def unindexed(self, prefix: str) -> dict[str, str | None]:
        """Fields that carry the prefix but no usable index."""
        return {
            name: _text(value)
            for name, value in self.fields.items()
            if isinstance(name, str)
            and name.startswith(prefix)
            and not INDEX_RE.fullmatch(name[len(prefix) :])
        }


def pair_ingredients(raw: RawRecord, scheme: FieldScheme = MEALDB) -> tuple[Ingredient, ...]:
    names = raw.indexed(scheme.ingredient_prefix)
    measures = raw.indexed(scheme.measure_prefix)
    ingredients: list[Ingredient] = []
    for index in sorted(names.keys() & measures.keys()):
        name = (names[index] or "").strip()
        measure = (measures[index] or "").strip()
        if name and measure:
            ingredients.append(Ingredient(name=name, measure=measure))
    return tuple(ingredients)


def decode(raw: RawRecord | Mapping[str, Any], scheme: FieldScheme = MEALDB) -> Recipe:
    if not isinstance(raw, RawRecord):
        raw = RawRecord(raw)
    return Recipe(
        id=raw.text(scheme.id),
        title=raw.text(scheme.title),
        instructions=raw.text(scheme.instructions),
        thumbnail_url=raw.text(scheme.thumbnail_url),
        ingredients=pair_ingredients(raw, scheme),
    )


def encode(recipe: Recipe, scheme: FieldScheme = MEALDB) -> dict[str, str]:
    fields = {
        scheme.id: recipe.id,
        scheme.title: recipe.title,
        scheme.instructions: recipe.instructions,
        scheme.thumbnail_url: recipe.thumbnail_url,
    }
    for index, ingredient in enumerate(recipe.ingredients, start=1):
        fields[f"{scheme.ingredient_prefix}{index}"] = ingredient.name
        fields[f"{scheme.measure_prefix}{index}"] = ingredient.measure
    return fields


def decode_summary(fields: Mapping[str, Any]) -> RecipeSummary:
    raw = RawRecord(fields)
    return RecipeSummary(
        id=raw.text("idMeal"),
        title=raw.text("strMeal"),
        thumbnail_url=raw.text("strMealThumb"),
    )


def decode_category(fields: Mapping[str, Any]) -> Category:
    raw = RawRecord(fields)
    return Category(
        id=raw.text("idCategory"),
        name=raw.text("strCategory"),
        description=raw.text("strCategoryDescription"),
        thumbnail_url=raw.text("strCategoryThumb"),
    )
