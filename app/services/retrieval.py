# app/services/retrieval.py
"""
Ingredient-based retrieval.

Pantry names are resolved to catalog ingredients by exact normalized name,
then recipes are ranked by how many of their ingredient rows point at a
resolved ingredient. This narrows the candidate set; the looser containment
match in ``matching`` is only used for the percentages shown next to results.
"""

from __future__ import annotations

import logging
from typing import Iterable

from app.schemas import Recipe
from app.services.store import RecipeStore
from app.utils.normalization import normalize_pantry

log = logging.getLogger(__name__)


def rank_recipe_ids(rows: Iterable[tuple[str, str]]) -> list[tuple[str, int]]:
    """Tally rows per recipe id; highest tally first, ties in first-seen order."""
    counts: dict[str, int] = {}
    for recipe_id, _ingredient_id in rows:
        counts[recipe_id] = counts.get(recipe_id, 0) + 1
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)


def find_by_ingredients_with_counts(
    pantry: Iterable[str], store: RecipeStore
) -> list[tuple[Recipe, int]]:
    names = normalize_pantry(pantry)
    if not names:
        return []

    ingredients = store.fetch_ingredients_by_exact_names(set(names))
    if not ingredients:
        log.debug("no catalog ingredient for pantry %s", names)
        return []

    rows = store.fetch_recipe_ingredient_rows_by_ingredient_ids({i.id for i in ingredients})
    ranked = rank_recipe_ids(rows)
    if not ranked:
        return []

    by_id = {r.id: r for r in store.fetch_recipes_by_ids([rid for rid, _ in ranked])}
    log.debug(
        "pantry resolved %d/%d names, %d candidate recipes",
        len(ingredients), len(names), len(ranked),
    )
    return [(by_id[rid], hits) for rid, hits in ranked if rid in by_id]


def find_by_ingredients(pantry: Iterable[str], store: RecipeStore) -> list[Recipe]:
    return [recipe for recipe, _ in find_by_ingredients_with_counts(pantry, store)]
