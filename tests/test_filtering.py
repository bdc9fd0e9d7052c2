from __future__ import annotations

from app.schemas import RecipeCriteria
from app.services.filtering import available_cuisines, filter_recipes


def _names(recipes):
    return [r.name for r in recipes]


def test_no_criteria_returns_input_unchanged(catalog):
    assert filter_recipes(catalog, RecipeCriteria()) == catalog
    assert filter_recipes(catalog, None) == catalog


def test_filter_preserves_input_order(catalog):
    reversed_catalog = list(reversed(catalog))
    out = filter_recipes(reversed_catalog, RecipeCriteria(difficulty=["Easy", "Hard"]))
    assert _names(out) == [r.name for r in reversed_catalog if r.difficulty in ("Easy", "Hard")]


def test_difficulty_set_is_or(catalog):
    out = filter_recipes(catalog, RecipeCriteria(difficulty=["Easy"]))
    assert _names(out) == ["Basil Omelette", "Pasta Pomodoro", "Tofu Stir Fry"]
    out = filter_recipes(catalog, RecipeCriteria(difficulty=["Medium", "Hard"]))
    assert {r.difficulty for r in out} == {"Medium", "Hard"}


def test_time_range(catalog):
    out = filter_recipes(catalog, RecipeCriteria(min_time=25, max_time=45))
    assert _names(out) == ["Chicken Fried Rice", "Chicken Tikka", "Pasta Pomodoro"]
    assert all(r.total_time <= 20 for r in filter_recipes(catalog, RecipeCriteria(max_time=20)))
    assert _names(filter_recipes(catalog, RecipeCriteria(min_time=95))) == ["Chicken Trio Platter"]


def test_dietary_flags_only_narrow(catalog):
    vegan = filter_recipes(catalog, RecipeCriteria(is_vegan=True))
    assert _names(vegan) == ["Tofu Stir Fry"]
    # False never excludes anything
    assert filter_recipes(catalog, RecipeCriteria(is_vegetarian=False, is_vegan=False)) == catalog
    both = filter_recipes(catalog, RecipeCriteria(is_gluten_free=True, is_dairy_free=True))
    assert _names(both) == ["Chicken Trio Platter"]


def test_cuisine_set(catalog):
    out = filter_recipes(catalog, RecipeCriteria(cuisines=["Italian", "Indian"]))
    assert _names(out) == ["Chicken Tikka", "Eggplant Parmesan", "Pasta Pomodoro"]


def test_search_query_matches_name_description_or_cuisine(catalog):
    assert _names(filter_recipes(catalog, RecipeCriteria(search_query="OMELETTE"))) == ["Basil Omelette"]
    assert _names(filter_recipes(catalog, RecipeCriteria(search_query="marinara"))) == ["Eggplant Parmesan"]
    assert _names(filter_recipes(catalog, RecipeCriteria(search_query="chinese"))) == [
        "Chicken Fried Rice", "Tofu Stir Fry",
    ]
    assert filter_recipes(catalog, RecipeCriteria(search_query="")) == catalog


def test_whitespace_search_query_is_a_literal_substring(make_recipe):
    ramen = make_recipe(name="Ramen", cuisine="Japanese")
    fried_rice = make_recipe(name="Fried Rice", cuisine="Chinese")
    assert _names(filter_recipes([ramen, fried_rice], RecipeCriteria(search_query=" "))) == ["Fried Rice"]


def test_criteria_are_conjunctive(catalog):
    criteria = RecipeCriteria(cuisines=["Italian"], is_vegetarian=True, max_time=60)
    assert _names(filter_recipes(catalog, criteria)) == ["Pasta Pomodoro"]
    criteria = RecipeCriteria(cuisines=["Italian"], is_vegan=True)
    assert filter_recipes(catalog, criteria) == []


def test_filter_is_idempotent(catalog):
    for criteria in (
        RecipeCriteria(difficulty=["Easy"], search_query="tofu"),
        RecipeCriteria(min_time=20, is_dairy_free=True),
        RecipeCriteria(cuisines=["French"]),
    ):
        once = filter_recipes(catalog, criteria)
        assert filter_recipes(once, criteria) == once


def test_available_cuisines(catalog):
    assert available_cuisines(catalog) == ["Chinese", "French", "Indian", "Italian"]
