# app/services/store.py
from __future__ import annotations

from typing import Iterable, Protocol

from app.schemas import Ingredient, Recipe


class RecipeStore(Protocol):
    """Storage collaborator the engine and the API read from and write to.

    Absence is returned as ``None`` / empty collections. Backend errors are
    raised unchanged; retries belong to whoever owns the connection.
    """

    def fetch_all_recipes(self) -> list[Recipe]: ...

    def get_recipe_by_id(self, recipe_id: str) -> Recipe | None: ...

    def fetch_recipes_by_ids(self, recipe_ids: Iterable[str]) -> list[Recipe]: ...

    def fetch_all_ingredients(self) -> list[Ingredient]: ...

    def fetch_ingredients_by_exact_names(self, names: Iterable[str]) -> list[Ingredient]: ...

    def fetch_recipe_ingredient_rows_by_ingredient_ids(
        self, ingredient_ids: Iterable[str]
    ) -> list[tuple[str, str]]: ...

    def fetch_favorite_recipe_ids(self, user_id: str) -> set[str]: ...

    def toggle_favorite(self, recipe_id: str, user_id: str) -> bool: ...

    def fetch_ratings(self, user_id: str) -> dict[str, int]: ...

    def upsert_rating(
        self, recipe_id: str, user_id: str, rating: int, review: str | None = None
    ) -> None: ...
