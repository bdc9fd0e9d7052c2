# app/services/recipe_service.py
import logging
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from app import schemas
from app.database import SessionLocal
from app.models import Recipe, Ingredient, RecipeIngredient, UserFavorite, UserRating
from app.utils.normalization import normalize_difficulty, normalize_name

log = logging.getLogger(__name__)


def _as_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _int_ids(values: Iterable) -> list[int]:
    return [i for i in (_as_int(v) for v in values) if i is not None]


def ingredient_to_schema(row: Ingredient) -> schemas.Ingredient:
    return schemas.Ingredient(
        id=str(row.id),
        name=row.name,
        category=row.category or "",
        common_substitutes=list(row.common_substitutes or []),
    )


def recipe_to_schema(row: Recipe) -> schemas.Recipe:
    ingredients = []
    for ri in row.ingredients:
        if ri.ingredient is None:
            log.debug("recipe %s: ingredient row %s has no ingredient", row.id, ri.id)
        ingredients.append(schemas.RecipeIngredient(
            id=str(ri.id),
            recipe_id=str(row.id),
            ingredient_id=str(ri.ingredient_id) if ri.ingredient_id is not None else None,
            quantity=ri.quantity or 0.0,
            unit=ri.unit or "",
            is_optional=bool(ri.is_optional),
            ingredient=ingredient_to_schema(ri.ingredient) if ri.ingredient is not None else None,
        ))
    return schemas.Recipe(
        id=str(row.id),
        name=row.name,
        description=row.description or "",
        cuisine=row.cuisine or "",
        difficulty=normalize_difficulty(row.difficulty),
        prep_time=row.prep_time or 0,
        cook_time=row.cook_time or 0,
        total_time=row.total_time or 0,
        servings=row.servings or 1,
        image_url=row.image_url,
        instructions=list(row.instructions or []),
        calories=row.calories or 0.0,
        protein=row.protein or 0.0,
        carbs=row.carbs or 0.0,
        fat=row.fat or 0.0,
        fiber=row.fiber or 0.0,
        is_vegetarian=bool(row.is_vegetarian),
        is_vegan=bool(row.is_vegan),
        is_gluten_free=bool(row.is_gluten_free),
        is_dairy_free=bool(row.is_dairy_free),
        average_rating=row.average_rating or 0.0,
        rating_count=row.rating_count or 0,
        ingredients=ingredients,
    )


def _recipes_with_ingredients():
    return select(Recipe).options(
        selectinload(Recipe.ingredients).selectinload(RecipeIngredient.ingredient)
    )


class SqlRecipeStore:
    """Recipe catalog, favorites and ratings backed by SQLAlchemy."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    # ── catalog ──────────────────────────────────────────────────────────

    def fetch_all_recipes(self) -> list[schemas.Recipe]:
        with self.session_factory() as db:
            rows = db.execute(_recipes_with_ingredients().order_by(Recipe.name, Recipe.id)).scalars().all()
            return [recipe_to_schema(r) for r in rows]

    def get_recipe_by_id(self, recipe_id: str) -> schemas.Recipe | None:
        rid = _as_int(recipe_id)
        if rid is None:
            return None
        with self.session_factory() as db:
            row = db.execute(_recipes_with_ingredients().where(Recipe.id == rid)).scalar_one_or_none()
            return recipe_to_schema(row) if row else None

    def fetch_recipes_by_ids(self, recipe_ids: Iterable[str]) -> list[schemas.Recipe]:
        ids = _int_ids(recipe_ids)
        if not ids:
            return []
        with self.session_factory() as db:
            rows = db.execute(_recipes_with_ingredients().where(Recipe.id.in_(ids))).scalars().all()
            return [recipe_to_schema(r) for r in rows]

    def fetch_all_ingredients(self) -> list[schemas.Ingredient]:
        with self.session_factory() as db:
            rows = db.execute(select(Ingredient).order_by(Ingredient.name)).scalars().all()
            return [ingredient_to_schema(r) for r in rows]

    def fetch_ingredients_by_exact_names(self, names: Iterable[str]) -> list[schemas.Ingredient]:
        norm = sorted({normalize_name(n) for n in names if n and n.strip()})
        if not norm:
            return []
        with self.session_factory() as db:
            rows = db.execute(
                select(Ingredient).where(Ingredient.normalized_name.in_(norm))
            ).scalars().all()
            return [ingredient_to_schema(r) for r in rows]

    def fetch_recipe_ingredient_rows_by_ingredient_ids(
        self, ingredient_ids: Iterable[str]
    ) -> list[tuple[str, str]]:
        ids = _int_ids(ingredient_ids)
        if not ids:
            return []
        with self.session_factory() as db:
            rows = db.execute(
                select(RecipeIngredient.recipe_id, RecipeIngredient.ingredient_id)
                .where(RecipeIngredient.ingredient_id.in_(ids))
                .order_by(RecipeIngredient.id)
            ).all()
            return [(str(rid), str(iid)) for rid, iid in rows]

    # ── favorites ────────────────────────────────────────────────────────

    def fetch_favorite_recipe_ids(self, user_id: str) -> set[str]:
        with self.session_factory() as db:
            ids = db.execute(
                select(UserFavorite.recipe_id).where(UserFavorite.user_id == user_id)
            ).scalars().all()
            return {str(i) for i in ids}

    def toggle_favorite(self, recipe_id: str, user_id: str) -> bool:
        rid = _as_int(recipe_id)
        if rid is None:
            raise ValueError(f"invalid recipe id: {recipe_id!r}")
        with self.session_factory() as db:
            existing = db.execute(
                select(UserFavorite).where(UserFavorite.user_id == user_id, UserFavorite.recipe_id == rid)
            ).scalar_one_or_none()
            if existing:
                db.delete(existing)
                db.commit()
                log.info("favorite removed user=%s recipe=%s", user_id, rid)
                return False
            db.add(UserFavorite(user_id=user_id, recipe_id=rid))
            db.commit()
            log.info("favorite added user=%s recipe=%s", user_id, rid)
            return True

    # ── ratings ──────────────────────────────────────────────────────────

    def fetch_ratings(self, user_id: str) -> dict[str, int]:
        with self.session_factory() as db:
            rows = db.execute(
                select(UserRating.recipe_id, UserRating.rating).where(UserRating.user_id == user_id)
            ).all()
            return {str(rid): rating for rid, rating in rows}

    def upsert_rating(self, recipe_id: str, user_id: str, rating: int, review: str | None = None) -> None:
        rid = _as_int(recipe_id)
        if rid is None:
            raise ValueError(f"invalid recipe id: {recipe_id!r}")
        with self.session_factory() as db:
            row = db.execute(
                select(UserRating).where(UserRating.user_id == user_id, UserRating.recipe_id == rid)
            ).scalar_one_or_none()
            if row:
                row.rating = rating
                row.review = review
            else:
                db.add(UserRating(user_id=user_id, recipe_id=rid, rating=rating, review=review))
            db.flush()
            self._refresh_rating_aggregates(db, rid)
            db.commit()
            log.info("rating stored user=%s recipe=%s rating=%s", user_id, rid, rating)

    @staticmethod
    def _refresh_rating_aggregates(db, recipe_id: int) -> None:
        avg, count = db.execute(
            select(func.avg(UserRating.rating), func.count()).where(UserRating.recipe_id == recipe_id)
        ).one()
        recipe = db.get(Recipe, recipe_id)
        if recipe is None:
            return
        recipe.average_rating = float(avg or 0.0)
        recipe.rating_count = int(count or 0)
