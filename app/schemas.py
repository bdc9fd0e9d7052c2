from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["Easy", "Medium", "Hard"]
DIFFICULTIES: tuple[str, ...] = ("Easy", "Medium", "Hard")


# ── Catalog records (immutable snapshots handed to the engine) ──────────


class Ingredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str = ""
    common_substitutes: list[str] = Field(default_factory=list)


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    recipe_id: str
    ingredient_id: str | None = None
    quantity: float = 0.0
    unit: str = ""
    is_optional: bool = False
    ingredient: Ingredient | None = Field(
        default=None, description="None when the referenced ingredient no longer exists"
    )


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    cuisine: str = ""
    difficulty: Difficulty = "Easy"
    prep_time: int = 0
    cook_time: int = 0
    total_time: int = 0
    servings: int = Field(default=1, ge=1)
    image_url: str | None = None
    instructions: list[str] = Field(default_factory=list)
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    average_rating: float = 0.0
    rating_count: int = Field(default=0, ge=0)
    ingredients: list[RecipeIngredient] = Field(default_factory=list)


class RecipeCriteria(BaseModel):
    """Compound recipe filter. Every field is optional; unset fields never exclude."""

    difficulty: list[Difficulty] = Field(default_factory=list)
    min_time: int | None = Field(default=None, ge=0)
    max_time: int | None = Field(default=None, ge=0)
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    cuisines: list[str] = Field(default_factory=list)
    search_query: str | None = None


# ── API payloads ────────────────────────────────────────────────────────


class RecipeQuery(BaseModel):
    ingredients: list[str] = Field(default_factory=list, description="Pantry ingredient names")
    filters: RecipeCriteria = Field(default_factory=RecipeCriteria)
    limit: int | None = Field(default=None, ge=1, le=200)


class RecipeMatch(BaseModel):
    recipe: Recipe
    match_pct: int = Field(ge=0, le=100)
    match_count: int = Field(default=0, ge=0)
    missing_ingredients: list[Ingredient] = Field(default_factory=list)


class SearchResponse(BaseModel):
    results: list[RecipeMatch]
    total: int


class ScaledIngredient(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    is_optional: bool
    in_pantry: bool


class RecipeDetail(BaseModel):
    recipe: Recipe
    servings: int
    serving_multiplier: float
    ingredients: list[ScaledIngredient]
    nutrition: dict[str, float]
    match_pct: int
    matched_ingredients: list[Ingredient]
    missing_ingredients: list[Ingredient]
    substitutes: dict[str, list[str]]


class RatingIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: str | None = None


class FavoriteState(BaseModel):
    recipe_id: str
    is_favorite: bool


class RecommendationResponse(BaseModel):
    recommendations: list[Recipe]
    personalized: bool
