# app/services/filtering.py
from __future__ import annotations

from typing import Iterable

from app.schemas import Recipe, RecipeCriteria


def _matches_text(recipe: Recipe, query: str) -> bool:
    q = query.lower()
    return (
        q in recipe.name.lower()
        or q in recipe.description.lower()
        or q in recipe.cuisine.lower()
    )


def recipe_matches(recipe: Recipe, criteria: RecipeCriteria) -> bool:
    """AND across criteria, OR inside the difficulty and cuisine sets."""
    if criteria.difficulty and recipe.difficulty not in criteria.difficulty:
        return False

    if criteria.min_time is not None and recipe.total_time < criteria.min_time:
        return False
    if criteria.max_time is not None and recipe.total_time > criteria.max_time:
        return False

    # dietary flags only ever narrow; False means "don't care"
    if criteria.is_vegetarian and not recipe.is_vegetarian:
        return False
    if criteria.is_vegan and not recipe.is_vegan:
        return False
    if criteria.is_gluten_free and not recipe.is_gluten_free:
        return False
    if criteria.is_dairy_free and not recipe.is_dairy_free:
        return False

    if criteria.cuisines and recipe.cuisine not in criteria.cuisines:
        return False

    if criteria.search_query:
        if not _matches_text(recipe, criteria.search_query):
            return False

    return True


def filter_recipes(recipes: Iterable[Recipe], criteria: RecipeCriteria | None) -> list[Recipe]:
    """Stable filter: survivors keep their input order."""
    if criteria is None:
        return list(recipes)
    return [r for r in recipes if recipe_matches(r, criteria)]


def available_cuisines(recipes: Iterable[Recipe]) -> list[str]:
    return sorted({r.cuisine for r in recipes if r.cuisine})
