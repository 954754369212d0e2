import random
from typing import Any

import pytest

from larder.decoder import (
    FieldScheme,
    MEALDB,
    RawRecord,
    decode,
    decode_category,
    decode_summary,
    encode,
)
from larder.errors import MalformedResponse
from larder.models import Ingredient


DASHED = FieldScheme(
    id="id",
    title="title",
    instructions="instructions",
    thumbnail_url="thumbnail",
    ingredient_prefix="ingredient-",
    measure_prefix="measure-",
)


def test_pairs_only_complete_indices() -> None:
    raw = {
        "ingredient-1": "Flour",
        "measure-1": "2 cups",
        "ingredient-2": "",
        "measure-2": "1 tsp",
        "ingredient-5": "Salt",
        "measure-5": "1 tsp",
        "ingredient-6": "Sugar",
    }
    got = decode(raw, DASHED)
    assert got.ingredients == (
        Ingredient(name="Flour", measure="2 cups"),
        Ingredient(name="Salt", measure="1 tsp"),
    )


@pytest.mark.parametrize(
    "name,measure",
    (
        (None, "1 cup"),
        ("Milk", None),
        ("   ", "1 cup"),
        ("Milk", "\n\t "),
        ("", ""),
    ),
)
def test_null_or_blank_halves_drop_the_pair(name: str | None, measure: str | None) -> None:
    raw = {
        "idMeal": "1",
        "strIngredient1": "Eggs",
        "strMeasure1": "2",
        "strIngredient2": name,
        "strMeasure2": measure,
    }
    got = decode(raw)
    assert got.ingredients == (Ingredient(name="Eggs", measure="2"),)


def test_values_are_trimmed() -> None:
    got = decode({"strIngredient1": "  Butter \n", "strMeasure1": "\t50g "})
    assert got.ingredients == (Ingredient(name="Butter", measure="50g"),)


def test_order_follows_index_not_insertion() -> None:
    indices = list(range(1, 41))
    random.Random(7).shuffle(indices)
    raw: dict[str, Any] = {}
    for i in indices:
        raw[f"strMeasure{i}"] = f"{i} g"
        raw[f"strIngredient{i}"] = f"item {i}"

    got = decode(raw)

    assert [i.name for i in got.ingredients] == [f"item {i}" for i in range(1, 41)]


def test_indices_past_twenty_are_kept() -> None:
    raw = {
        "strIngredient20": "Vanilla",
        "strMeasure20": "1 tsp",
        "strIngredient25": "Cream",
        "strMeasure25": "200ml",
        "strIngredient103": "Mint",
        "strMeasure103": "Garnish",
    }
    got = decode(raw)
    assert [i.name for i in got.ingredients] == ["Vanilla", "Cream", "Mint"]


@pytest.mark.parametrize(
    "field",
    (
        "strIngredientX",
        "strIngredient0",
        "strIngredient-3",
        "strIngredient+3",
        "strIngredient 3",
        "strIngredient",
    ),
)
def test_unparsable_suffixes_are_kept_raw_but_not_paired(field: str) -> None:
    raw = RawRecord(
        {
            field: "Mystery",
            "strMeasure3": "1 pinch",
            "strMeasureX": "1 pinch",
            "strMeasure0": "1 pinch",
            "strMeasure01": "1 pinch",
        }
    )

    got = decode(raw)

    assert got.ingredients == ()
    assert raw.get(field) == "Mystery"
    assert field in raw.unindexed("strIngredient")
    assert 3 not in raw.indexed("strIngredient")


def test_zero_padded_indices_are_paired() -> None:
    raw = {
        "strIngredient07": "Basil",
        "strMeasure07": "1 handful",
        "strIngredient2": "Tomato",
        "strMeasure002": "3",
    }
    got = decode(raw)
    assert got.ingredients == (
        Ingredient(name="Tomato", measure="3"),
        Ingredient(name="Basil", measure="1 handful"),
    )


@pytest.mark.parametrize("padded_first", (True, False))
def test_unpadded_spelling_wins_a_clash(padded_first: bool) -> None:
    fields = [("strIngredient07", "Padded"), ("strIngredient7", "Plain")]
    if not padded_first:
        fields.reverse()
    raw = RawRecord({**dict(fields), "strMeasure7": "1"})

    assert raw.indexed("strIngredient") == {7: "Plain"}
    assert decode(raw).ingredients == (Ingredient(name="Plain", measure="1"),)


def test_missing_and_null_core_fields_degrade_to_empty() -> None:
    got = decode({"idMeal": "52772", "strMeal": None})
    assert got.id == "52772"
    assert got.title == ""
    assert got.instructions == ""
    assert got.thumbnail_url == ""
    assert got.ingredients == ()


def test_loose_scalars_are_read_as_text() -> None:
    got = decode({"idMeal": 52772, "strIngredient1": "Eggs", "strMeasure1": 3})
    assert got.id == "52772"
    assert got.ingredients == (Ingredient(name="Eggs", measure="3"),)


def test_non_text_values_count_as_null() -> None:
    got = decode({"strIngredient1": ["Eggs"], "strMeasure1": "3", 7: "ignored"})
    assert got.ingredients == ()


@pytest.mark.parametrize("payload", (None, "recipe", ["strMeal"], 42))
def test_non_mapping_is_malformed(payload: Any) -> None:
    with pytest.raises(MalformedResponse):
        decode(payload)


def test_decoding_twice_gives_the_same_recipe() -> None:
    raw = RawRecord(
        {
            "idMeal": "1",
            "strMeal": "Pancakes",
            "strIngredient2": "Milk",
            "strMeasure2": "300ml",
            "strIngredient1": "Flour",
            "strMeasure1": "100g",
        }
    )
    assert decode(raw) == decode(raw)


@pytest.mark.parametrize("scheme", (MEALDB, DASHED))
def test_decode_encode_decode_keeps_ingredients(scheme: FieldScheme) -> None:
    p = scheme.ingredient_prefix
    m = scheme.measure_prefix
    raw = {
        scheme.id: "9",
        scheme.title: "Stew",
        f"{p}4": "Carrot",
        f"{m}4": "2",
        f"{p}2": "Beef",
        f"{m}2": "500g",
        f"{p}7": "Salt",
        f"{p}x": "Junk",
        f"{m}x": "Junk",
    }

    first = decode(raw, scheme)
    again = decode(encode(first, scheme), scheme)

    assert again.ingredients == first.ingredients
    assert again == first


def test_encode_numbers_from_one() -> None:
    recipe = decode({"strIngredient9": "Egg", "strMeasure9": "1"})
    assert encode(recipe)["strIngredient1"] == "Egg"
    assert "strIngredient9" not in encode(recipe)


def test_decode_summary_and_category() -> None:
    summary = decode_summary(
        {"idMeal": "53049", "strMeal": "Apam balik", "strMealThumb": None}
    )
    assert summary.id == "53049"
    assert summary.title == "Apam balik"
    assert summary.thumbnail_url == ""

    category = decode_category(
        {
            "idCategory": "3",
            "strCategory": "Dessert",
            "strCategoryThumb": "https://example.com/dessert.png",
        }
    )
    assert category.name == "Dessert"
    assert category.description == ""


def test_ingredient_display_text() -> None:
    assert Ingredient(name="sugar", measure="1 cup").display_text == "1 cup sugar"
