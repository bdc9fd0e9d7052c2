# app/services/recommendations.py
from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping

from app.schemas import Recipe

RECOMMENDATION_LIMIT = 6
HIGH_RATING = 4

RATING_WEIGHT = 10
CUISINE_WEIGHT = 20
DIFFICULTY_WEIGHT = 10


def popularity_score(recipe: Recipe) -> float:
    return recipe.average_rating * recipe.rating_count


def is_cold_start(favorite_ids: Iterable[str], ratings: Mapping[str, int]) -> bool:
    return not set(favorite_ids) and not ratings


def preference_profile(
    recipes: list[Recipe], favorite_ids: set[str], ratings: Mapping[str, int]
) -> tuple[Counter, Counter]:
    """Cuisine and difficulty tallies over favorites followed by recipes rated >= 4.

    A recipe that is both favorited and highly rated is counted twice.
    """
    preferred = [r for r in recipes if r.id in favorite_ids]
    preferred += [r for r in recipes if ratings.get(r.id, 0) >= HIGH_RATING]
    cuisines = Counter(r.cuisine for r in preferred)
    difficulties = Counter(r.difficulty for r in preferred)
    return cuisines, difficulties


def recommend(
    all_recipes: Iterable[Recipe],
    favorite_ids: Iterable[str],
    ratings: Mapping[str, int],
    limit: int = RECOMMENDATION_LIMIT,
) -> list[Recipe]:
    recipes = list(all_recipes)
    favorites = set(favorite_ids)

    if is_cold_start(favorites, ratings):
        return sorted(recipes, key=popularity_score, reverse=True)[:limit]

    cuisines, difficulties = preference_profile(recipes, favorites, ratings)

    def score(recipe: Recipe) -> float:
        return (
            recipe.average_rating * RATING_WEIGHT
            + cuisines[recipe.cuisine] * CUISINE_WEIGHT
            + difficulties[recipe.difficulty] * DIFFICULTY_WEIGHT
        )

    # rated-but-not-favorited recipes stay eligible
    candidates = [r for r in recipes if r.id not in favorites]
    return sorted(candidates, key=score, reverse=True)[:limit]
