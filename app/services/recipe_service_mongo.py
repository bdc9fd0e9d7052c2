# app/services/recipe_service_mongo.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING

from app import schemas
from app.db_mongo import get_db
from app.utils.normalization import normalize_difficulty, normalize_name

log = logging.getLogger(__name__)


def _oid(value) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _oids(values: Iterable) -> List[ObjectId]:
    return [o for o in (_oid(v) for v in values) if o is not None]


def ingredient_from_doc(doc: Dict[str, Any]) -> schemas.Ingredient:
    return schemas.Ingredient(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        category=doc.get("category") or "",
        common_substitutes=list(doc.get("common_substitutes") or []),
    )


def recipe_from_doc(doc: Dict[str, Any], ingredients_by_id: Dict[ObjectId, schemas.Ingredient]) -> schemas.Recipe:
    rid = str(doc["_id"])
    rows = []
    for idx, row in enumerate(doc.get("ingredients") or []):
        ing_oid = row.get("ingredient_id")
        ingredient = ingredients_by_id.get(ing_oid)
        if ingredient is None:
            log.debug("recipe %s: ingredient %s not found", rid, ing_oid)
        rows.append(schemas.RecipeIngredient(
            id=str(row.get("row_id") or f"{rid}:{idx}"),
            recipe_id=rid,
            ingredient_id=str(ing_oid) if ing_oid is not None else None,
            quantity=float(row.get("quantity") or 0.0),
            unit=row.get("unit") or "",
            is_optional=bool(row.get("is_optional", False)),
            ingredient=ingredient,
        ))
    return schemas.Recipe(
        id=rid,
        name=doc.get("name", ""),
        description=doc.get("description") or "",
        cuisine=doc.get("cuisine") or "",
        difficulty=normalize_difficulty(doc.get("difficulty")),
        prep_time=int(doc.get("prep_time") or 0),
        cook_time=int(doc.get("cook_time") or 0),
        total_time=int(doc.get("total_time") or 0),
        servings=int(doc.get("servings") or 1),
        image_url=doc.get("image_url"),
        instructions=list(doc.get("instructions") or []),
        calories=float(doc.get("calories") or 0.0),
        protein=float(doc.get("protein") or 0.0),
        carbs=float(doc.get("carbs") or 0.0),
        fat=float(doc.get("fat") or 0.0),
        fiber=float(doc.get("fiber") or 0.0),
        is_vegetarian=bool(doc.get("is_vegetarian", False)),
        is_vegan=bool(doc.get("is_vegan", False)),
        is_gluten_free=bool(doc.get("is_gluten_free", False)),
        is_dairy_free=bool(doc.get("is_dairy_free", False)),
        average_rating=float(doc.get("average_rating") or 0.0),
        rating_count=int(doc.get("rating_count") or 0),
        ingredients=rows,
    )


class MongoRecipeStore:
    """Same operations as ``SqlRecipeStore`` over the recipes / ingredients /
    favorites / ratings collections. Recipe documents embed their ingredient
    rows and reference ingredients by ``ingredient_id``."""

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def _hydrate(self, docs: List[Dict[str, Any]]) -> List[schemas.Recipe]:
        ids = {row.get("ingredient_id") for d in docs for row in d.get("ingredients") or []}
        ids.discard(None)
        by_id = {}
        if ids:
            by_id = {d["_id"]: ingredient_from_doc(d) for d in self.db.ingredients.find({"_id": {"$in": list(ids)}})}
        return [recipe_from_doc(d, by_id) for d in docs]

    def fetch_all_recipes(self) -> List[schemas.Recipe]:
        docs = list(self.db.recipes.find().sort([("name", ASCENDING), ("_id", ASCENDING)]))
        return self._hydrate(docs)

    def get_recipe_by_id(self, recipe_id: str) -> schemas.Recipe | None:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        doc = self.db.recipes.find_one({"_id": oid})
        if not doc:
            return None
        return self._hydrate([doc])[0]

    def fetch_recipes_by_ids(self, recipe_ids: Iterable[str]) -> List[schemas.Recipe]:
        oids = _oids(recipe_ids)
        if not oids:
            return []
        return self._hydrate(list(self.db.recipes.find({"_id": {"$in": oids}})))

    def fetch_all_ingredients(self) -> List[schemas.Ingredient]:
        return [ingredient_from_doc(d) for d in self.db.ingredients.find().sort("name", ASCENDING)]

    def fetch_ingredients_by_exact_names(self, names: Iterable[str]) -> List[schemas.Ingredient]:
        norm = sorted({normalize_name(n) for n in names if n and n.strip()})
        if not norm:
            return []
        return [ingredient_from_doc(d) for d in self.db.ingredients.find({"normalized_name": {"$in": norm}})]

    def fetch_recipe_ingredient_rows_by_ingredient_ids(self, ingredient_ids: Iterable[str]) -> List[tuple[str, str]]:
        oids = _oids(ingredient_ids)
        if not oids:
            return []
        wanted = set(oids)
        cursor = self.db.recipes.find(
            {"ingredients.ingredient_id": {"$in": oids}},
            {"ingredients.ingredient_id": 1},
        ).sort("_id", ASCENDING)
        out = []
        for doc in cursor:
            for row in doc.get("ingredients") or []:
                if row.get("ingredient_id") in wanted:
                    out.append((str(doc["_id"]), str(row["ingredient_id"])))
        return out

    def fetch_favorite_recipe_ids(self, user_id: str) -> set[str]:
        return {d["recipe_id"] for d in self.db.favorites.find({"user_id": user_id}, {"recipe_id": 1})}

    def toggle_favorite(self, recipe_id: str, user_id: str) -> bool:
        oid = _oid(recipe_id)
        if oid is None:
            raise ValueError(f"invalid recipe id: {recipe_id!r}")
        key = {"user_id": user_id, "recipe_id": str(oid)}
        if self.db.favorites.delete_one(key).deleted_count:
            log.info("favorite removed user=%s recipe=%s", user_id, recipe_id)
            return False
        self.db.favorites.insert_one({**key, "created_at": datetime.now(timezone.utc)})
        log.info("favorite added user=%s recipe=%s", user_id, recipe_id)
        return True

    def fetch_ratings(self, user_id: str) -> Dict[str, int]:
        return {d["recipe_id"]: int(d["rating"]) for d in self.db.ratings.find({"user_id": user_id})}

    def upsert_rating(self, recipe_id: str, user_id: str, rating: int, review: str | None = None) -> None:
        oid = _oid(recipe_id)
        if oid is None:
            raise ValueError(f"invalid recipe id: {recipe_id!r}")
        rid = str(oid)
        now = datetime.now(timezone.utc)
        self.db.ratings.update_one(
            {"user_id": user_id, "recipe_id": rid},
            {"$set": {"rating": int(rating), "review": review, "updated_at": now},
             "$setOnInsert": {"created_at": now}},
            upsert=True,
        )
        self._refresh_rating_aggregates(oid)
        log.info("rating stored user=%s recipe=%s rating=%s", user_id, rid, rating)

    def _refresh_rating_aggregates(self, oid: ObjectId) -> None:
        agg = list(self.db.ratings.aggregate([
            {"$match": {"recipe_id": str(oid)}},
            {"$group": {"_id": None, "avg": {"$avg": "$rating"}, "count": {"$sum": 1}}},
        ]))
        avg = float(agg[0]["avg"]) if agg else 0.0
        count = int(agg[0]["count"]) if agg else 0
        self.db.recipes.update_one({"_id": oid}, {"$set": {"average_rating": avg, "rating_count": count}})
