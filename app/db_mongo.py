# app/db_mongo.py
from functools import lru_cache

from pymongo import MongoClient, ASCENDING

from app.config import MONGODB_URI, MONGODB_DB

@lru_cache(maxsize=1)
def get_client(uri: str = MONGODB_URI) -> MongoClient:
    return MongoClient(uri, serverSelectionTimeoutMS=5000)

def get_db(name: str = MONGODB_DB):
    return get_client()[name]

def ensure_indexes(db):
    # exact-name lookups and the reverse ingredient -> recipe lookup
    db.ingredients.create_index([("normalized_name", ASCENDING)], unique=True)
    db.recipes.create_index([("ingredients.ingredient_id", ASCENDING)])
    db.recipes.create_index([("name", ASCENDING)])

    # one favorite / one rating per (user, recipe)
    db.favorites.create_index([("user_id", ASCENDING), ("recipe_id", ASCENDING)], unique=True)
    db.ratings.create_index([("user_id", ASCENDING), ("recipe_id", ASCENDING)], unique=True)
