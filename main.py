import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from app.config import CORS_ORIGINS, LOG_LEVEL, RECIPE_STORE
from app.deps import get_store
from app.schemas import (
    FavoriteState, Ingredient, RatingIn, RecipeDetail, RecipeMatch, RecipeQuery,
    RecommendationResponse, ScaledIngredient, SearchResponse,
)
from app.services.filtering import available_cuisines, filter_recipes
from app.services.matching import (
    match_percentage, matched_ingredients, matches, missing_ingredients, scale_quantity,
    scaled_nutrition, serving_multiplier, substitutes_for_missing,
)
from app.services.recommendations import is_cold_start, recommend
from app.services.retrieval import find_by_ingredients_with_counts
from app.services.store import RecipeStore

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger(__name__)

app = FastAPI(title="Pantry → Recipes API", version="0.5.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def _startup():
    if RECIPE_STORE == "mongo":
        from app.db_mongo import ensure_indexes, get_db
        ensure_indexes(get_db())
    else:
        from app.database import engine, init_db
        init_db(engine)

@app.exception_handler(SQLAlchemyError)
@app.exception_handler(PyMongoError)
async def storage_error(request: Request, exc: Exception):
    log.exception("storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "storage unavailable"})

def _require_recipe(store: RecipeStore, rid: str):
    recipe = store.get_recipe_by_id(rid)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe

@app.get("/health")
def health(): return {"status": "ok", "store": RECIPE_STORE}

@app.post("/recipes", response_model=SearchResponse)
def recipes(q: RecipeQuery, store: RecipeStore = Depends(get_store)):
    pantry = [i for i in q.ingredients if i and i.strip()]
    if pantry:
        ranked = find_by_ingredients_with_counts(pantry, store)
    else:
        ranked = [(r, 0) for r in store.fetch_all_recipes()]

    hits = {r.id: n for r, n in ranked}
    kept = filter_recipes([r for r, _ in ranked], q.filters)
    if q.limit:
        kept = kept[:q.limit]

    results = [
        RecipeMatch(
            recipe=r,
            match_pct=match_percentage(r, pantry),
            match_count=hits[r.id],
            missing_ingredients=missing_ingredients(r, pantry) if pantry else [],
        )
        for r in kept
    ]
    return SearchResponse(results=results, total=len(results))

@app.get("/recipes/{rid}", response_model=RecipeDetail)
def recipe_detail(
    rid: str,
    servings: Optional[int] = Query(default=None, ge=1),
    ingredients: List[str] = Query(default=[]),
    store: RecipeStore = Depends(get_store),
):
    recipe = _require_recipe(store, rid)
    pantry = [i for i in ingredients if i and i.strip()]
    multiplier = serving_multiplier(recipe, servings)

    rows = [
        ScaledIngredient(
            id=ri.ingredient.id,
            name=ri.ingredient.name,
            quantity=scale_quantity(ri.quantity, multiplier),
            unit=ri.unit,
            is_optional=ri.is_optional,
            in_pantry=any(matches(p, ri.ingredient.name) for p in pantry),
        )
        for ri in recipe.ingredients
        if ri.ingredient is not None
    ]
    return RecipeDetail(
        recipe=recipe,
        servings=servings or recipe.servings,
        serving_multiplier=multiplier,
        ingredients=rows,
        nutrition=scaled_nutrition(recipe, servings),
        match_pct=match_percentage(recipe, pantry),
        matched_ingredients=matched_ingredients(recipe, pantry),
        missing_ingredients=missing_ingredients(recipe, pantry) if pantry else [],
        substitutes=substitutes_for_missing(recipe, pantry),
    )

@app.get("/ingredients", response_model=List[Ingredient])
def ingredients(store: RecipeStore = Depends(get_store)):
    return store.fetch_all_ingredients()

@app.get("/cuisines")
def cuisines(store: RecipeStore = Depends(get_store)):
    return {"cuisines": available_cuisines(store.fetch_all_recipes())}

@app.get("/users/{user_id}/favorites")
def favorites(user_id: str, store: RecipeStore = Depends(get_store)):
    return {"recipe_ids": sorted(store.fetch_favorite_recipe_ids(user_id))}

@app.post("/users/{user_id}/favorites/{rid}", response_model=FavoriteState)
def toggle_favorite(user_id: str, rid: str, store: RecipeStore = Depends(get_store)):
    recipe = _require_recipe(store, rid)
    return FavoriteState(recipe_id=recipe.id, is_favorite=store.toggle_favorite(recipe.id, user_id))

@app.get("/users/{user_id}/ratings")
def ratings(user_id: str, store: RecipeStore = Depends(get_store)):
    return {"ratings": store.fetch_ratings(user_id)}

@app.put("/users/{user_id}/ratings/{rid}")
def rate_recipe(user_id: str, rid: str, body: RatingIn, store: RecipeStore = Depends(get_store)):
    recipe = _require_recipe(store, rid)
    store.upsert_rating(recipe.id, user_id, body.rating, body.review)
    return {"recipe_id": recipe.id, "rating": body.rating}

@app.get("/users/{user_id}/recommendations", response_model=RecommendationResponse)
def recommendations(user_id: str, store: RecipeStore = Depends(get_store)):
    favorite_ids = store.fetch_favorite_recipe_ids(user_id)
    user_ratings = store.fetch_ratings(user_id)
    picks = recommend(store.fetch_all_recipes(), favorite_ids, user_ratings)
    return RecommendationResponse(
        recommendations=picks,
        personalized=not is_cold_start(favorite_ids, user_ratings),
    )
