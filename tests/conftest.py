from __future__ import annotations

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from main import app
from app import schemas
from app.database import init_db, make_engine, make_session_factory
from app.deps import get_store
from app.models import Ingredient, Recipe, RecipeIngredient
from app.services.recipe_service import SqlRecipeStore

# normalized name -> (display name, category, substitutes)
INGREDIENTS = {
    "chicken": ("Chicken", "protein", []),
    "tomato": ("Tomato", "produce", []),
    "garlic": ("Garlic", "produce", []),
    "pasta": ("Pasta", "grain", ["rice noodles"]),
    "basil": ("Basil", "herb", ["oregano"]),
    "egg": ("Egg", "protein", ["flax egg"]),
    "eggplant": ("Eggplant", "produce", ["zucchini"]),
    "milk": ("Milk", "dairy", ["oat milk", "almond milk"]),
    "rice": ("Rice", "grain", []),
    "tofu": ("Tofu", "protein", []),
    "soy sauce": ("Soy Sauce", "condiment", ["tamari"]),
    "flour": ("Flour", "grain", ["almond flour"]),
}

# inserted in this order; rows are (ingredient, quantity, unit, optional)
RECIPES = [
    dict(name="Chicken Tikka", cuisine="Indian", difficulty="Medium", prep_time=15, cook_time=30,
         total_time=45, servings=4, average_rating=4.5, rating_count=10, is_gluten_free=True,
         description="Charred yogurt-marinated chicken in a spiced tomato sauce",
         calories=520, protein=38, carbs=45, fat=18, fiber=3,
         rows=[("chicken", 1.5, "lb", False), ("tomato", 2, "", False),
               ("garlic", 4, "cloves", False), ("rice", 2, "cups", False)]),
    dict(name="Pasta Pomodoro", cuisine="Italian", difficulty="Easy", prep_time=10, cook_time=15,
         total_time=25, servings=2, average_rating=4.0, rating_count=20, is_vegetarian=True,
         description="Spaghetti tossed in a quick fresh tomato and garlic sauce",
         calories=610, protein=19, carbs=98, fat=14, fiber=7,
         rows=[("pasta", 200, "g", False), ("tomato", 4, "", False),
               ("garlic", 2, "cloves", False), ("basil", 1, "bunch", True)]),
    dict(name="Eggplant Parmesan", cuisine="Italian", difficulty="Hard", prep_time=30, cook_time=60,
         total_time=90, servings=6, average_rating=5.0, rating_count=1, is_vegetarian=True,
         description="Layers of breaded eggplant baked with marinara",
         calories=430, protein=16, carbs=40, fat=22, fiber=8,
         rows=[("eggplant", 2, "", False), ("tomato", 3, "", False), ("flour", 1, "cup", False),
               ("egg", 2, "", False), ("milk", 0.5, "cup", False)]),
    dict(name="Tofu Stir Fry", cuisine="Chinese", difficulty="Easy", prep_time=10, cook_time=10,
         total_time=20, servings=2, average_rating=3.5, rating_count=4, is_vegan=True,
         is_vegetarian=True, is_dairy_free=True,
         description="Crispy tofu with vegetables in a soy glaze",
         calories=380, protein=22, carbs=41, fat=15, fiber=5,
         rows=[("tofu", 400, "g", False), ("soy sauce", 3, "tbsp", False),
               ("garlic", 2, "cloves", False), ("rice", 1, "cup", False)]),
    dict(name="Chicken Fried Rice", cuisine="Chinese", difficulty="Medium", prep_time=10, cook_time=20,
         total_time=30, servings=4, average_rating=4.2, rating_count=8, is_dairy_free=True,
         description="Wok-fried rice with chicken and scrambled egg",
         calories=560, protein=30, carbs=70, fat=16, fiber=2,
         rows=[("chicken", 1, "lb", False), ("rice", 3, "cups", False), ("egg", 2, "", False),
               ("soy sauce", 2, "tbsp", False), ("garlic", 3, "cloves", False)]),
    dict(name="Chicken Trio Platter", cuisine="French", difficulty="Hard", prep_time=40, cook_time=60,
         total_time=100, servings=8, average_rating=4.8, rating_count=3, is_gluten_free=True,
         is_dairy_free=True,
         description="Roast thighs, grilled wings and poached breast",
         calories=690, protein=58, carbs=4, fat=44, fiber=1,
         rows=[("chicken", 2, "lb", False), ("chicken", 1, "lb", False), ("chicken", 1, "lb", False),
               ("garlic", 6, "cloves", False)]),
    dict(name="Basil Omelette", cuisine="French", difficulty="Easy", prep_time=5, cook_time=5,
         total_time=10, servings=1, average_rating=0.0, rating_count=0, is_vegetarian=True,
         is_gluten_free=True,
         description="Fluffy eggs folded with fresh basil",
         calories=310, protein=20, carbs=3, fat=24, fiber=0.5,
         rows=[("egg", 3, "", False), ("basil", 5, "leaves", False), ("milk", 2, "tbsp", True)]),
]


def seed_catalog(session_factory) -> dict[str, str]:
    """Insert INGREDIENTS and RECIPES; returns recipe name -> id."""
    ids: dict[str, str] = {}
    with session_factory() as db:
        ing_rows = {}
        for norm, (name, category, subs) in INGREDIENTS.items():
            ing_rows[norm] = Ingredient(name=name, normalized_name=norm, category=category,
                                        common_substitutes=subs)
            db.add(ing_rows[norm])
        db.flush()
        for entry in RECIPES:
            fields = dict(entry)
            rows = fields.pop("rows")
            recipe = Recipe(instructions=["Prep everything.", "Cook it.", "Serve."], **fields)
            db.add(recipe)
            db.flush()
            for norm, qty, unit, optional in rows:
                db.add(RecipeIngredient(recipe_id=recipe.id, ingredient_id=ing_rows[norm].id,
                                        quantity=qty, unit=unit, is_optional=optional))
                db.flush()
            ids[recipe.name] = str(recipe.id)
        db.commit()
    return ids


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def recipe_ids(session_factory):
    return seed_catalog(session_factory)


@pytest.fixture
def store(session_factory, recipe_ids):
    return SqlRecipeStore(session_factory)


@pytest.fixture
def catalog(store):
    return store.fetch_all_recipes()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_recipe():
    """Build a schemas.Recipe from ingredient names; ``None`` makes a dangling row."""
    counter = itertools.count(1)

    def _make(name="Recipe", ingredients=(), **fields):
        rid = str(fields.pop("id", None) or next(counter))
        rows = []
        for idx, ing in enumerate(ingredients):
            if ing is None:
                ingredient = None
            elif isinstance(ing, schemas.Ingredient):
                ingredient = ing
            else:
                ingredient = schemas.Ingredient(id=f"ing-{ing}", name=ing)
            rows.append(schemas.RecipeIngredient(
                id=f"{rid}-{idx}",
                recipe_id=rid,
                ingredient_id=ingredient.id if ingredient else None,
                quantity=1.0,
                ingredient=ingredient,
            ))
        return schemas.Recipe(id=rid, name=name, ingredients=rows, **fields)

    return _make
