# app/services/matching.py
"""
Pantry-to-recipe ingredient matching.

Two names match when, lowercased, either one contains the other. This lets
"tomato" cover "tomatoes" (and the reverse) at the cost of false positives
such as "pea" covering "peanut" or "egg" covering "eggplant".
An empty pantry item is contained in every name, so the HTTP layer drops
blank items before calling in here.

Recipe ingredient rows whose ingredient reference is missing are skipped by
every function here.
"""

from __future__ import annotations

import math
from typing import Iterable

from app.schemas import Ingredient, Recipe


def matches(pantry_item: str, ingredient_name: str) -> bool:
    a = pantry_item.lower()
    b = ingredient_name.lower()
    return a in b or b in a


def _pantry(pantry: Iterable[str] | None) -> list[str]:
    return list(pantry or [])


def _in_pantry(name: str, pantry: list[str]) -> bool:
    return any(matches(p, name) for p in pantry)


def _resolved_ingredients(recipe: Recipe) -> list[Ingredient]:
    return [ri.ingredient for ri in recipe.ingredients if ri.ingredient is not None]


def match_percentage(recipe: Recipe, pantry: Iterable[str] | None) -> int:
    """Share of the recipe's ingredients covered by the pantry, 0-100, rounded half up."""
    ingredients = _resolved_ingredients(recipe)
    if not ingredients:
        return 0
    items = _pantry(pantry)
    matched = sum(1 for ing in ingredients if _in_pantry(ing.name, items))
    return int(math.floor(100 * matched / len(ingredients) + 0.5))


def missing_ingredients(recipe: Recipe, pantry: Iterable[str] | None) -> list[Ingredient]:
    items = _pantry(pantry)
    return [ing for ing in _resolved_ingredients(recipe) if not _in_pantry(ing.name, items)]


def matched_ingredients(recipe: Recipe, pantry: Iterable[str] | None) -> list[Ingredient]:
    items = _pantry(pantry)
    return [ing for ing in _resolved_ingredients(recipe) if _in_pantry(ing.name, items)]


def substitutes_for_missing(recipe: Recipe, pantry: Iterable[str] | None) -> dict[str, list[str]]:
    """Missing ingredient name -> its common substitutes (only those that have any)."""
    out: dict[str, list[str]] = {}
    for ing in missing_ingredients(recipe, pantry):
        if ing.common_substitutes and ing.name not in out:
            out[ing.name] = list(ing.common_substitutes)
    return out


# ── serving scaling (display values, never stored) ──────────────────────


def serving_multiplier(recipe: Recipe, servings: int | None) -> float:
    if not servings:
        return 1.0
    return servings / recipe.servings


def scale_quantity(quantity: float, multiplier: float) -> float:
    return round(quantity * multiplier, 1)


def scaled_nutrition(recipe: Recipe, servings: int | None) -> dict[str, float]:
    m = serving_multiplier(recipe, servings)
    return {
        "calories": int(math.floor(recipe.calories * m + 0.5)),
        "protein": round(recipe.protein * m, 1),
        "carbs": round(recipe.carbs * m, 1),
        "fat": round(recipe.fat * m, 1),
        "fiber": round(recipe.fiber * m, 1),
    }
