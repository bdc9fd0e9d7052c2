# app/deps.py
# Store selection for the API; tests override get_store through app.dependency_overrides.
from app.config import RECIPE_STORE


def get_store():
    if RECIPE_STORE == "mongo":
        from app.services.recipe_service_mongo import MongoRecipeStore
        return MongoRecipeStore()
    from app.services.recipe_service import SqlRecipeStore
    return SqlRecipeStore()
