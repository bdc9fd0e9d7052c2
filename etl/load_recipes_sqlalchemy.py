# etl/load_recipes_sqlalchemy.py
import logging

from sqlalchemy import select, func

from app.database import engine, SessionLocal
from app.models import Base, Recipe, Ingredient, RecipeIngredient
from app.utils.normalization import normalize_name
from etl.parsing import detect_columns, read_table, row_to_recipe

log = logging.getLogger(__name__)


def upsert_ingredient(session, entry: dict):
    norm = normalize_name(entry["name"])
    if not norm:
        return None
    row = session.execute(
        select(Ingredient).where(Ingredient.normalized_name == norm)
    ).scalar_one_or_none()
    if row:
        # first sheet row that knows the category / substitutes wins
        if entry.get("category") and not row.category:
            row.category = entry["category"]
        if entry.get("substitutes") and not row.common_substitutes:
            row.common_substitutes = list(entry["substitutes"])
        return row
    row = Ingredient(
        name=entry["name"].strip(),
        normalized_name=norm,
        category=entry.get("category") or "",
        common_substitutes=list(entry.get("substitutes") or []),
    )
    session.add(row)
    session.flush()
    return row


def load_table(path: str, bind=engine, session_factory=SessionLocal, drop_existing: bool = True):
    if drop_existing:
        # Dev-friendly: recreate schema each run
        Base.metadata.drop_all(bind=bind)
    Base.metadata.create_all(bind=bind)

    df = read_table(path)
    cols = detect_columns(df)

    recipes_inserted = 0
    links_ing = 0

    with session_factory() as session:
        for i, row in df.iterrows():
            fields = row_to_recipe(row, cols, i)
            entries = fields.pop("ingredients")

            recipe = Recipe(**fields)
            session.add(recipe)
            session.flush()
            recipes_inserted += 1

            for entry in entries:
                ing_row = upsert_ingredient(session, entry)
                if ing_row is None:
                    continue
                session.add(
                    RecipeIngredient(
                        recipe_id=recipe.id,
                        ingredient_id=ing_row.id,
                        quantity=entry["quantity"],
                        unit=entry["unit"],
                        is_optional=entry["optional"],
                        raw_text=entry["raw_text"],
                    )
                )
                links_ing += 1

        # Commit & gather counts while session is open
        session.commit()

        ing_count = session.execute(
            select(func.count()).select_from(Ingredient)
        ).scalar_one()

    log.info("loaded %d recipes, %d ingredients from %s", recipes_inserted, ing_count, path)
    return {
        "recipes_inserted": recipes_inserted,
        "ingredient_rows": ing_count,
        "links_recipe_ingredients": links_ing,
    }


if __name__ == "__main__":
    import sys
    logging.basicConfig(level=logging.INFO)
    p = sys.argv[1] if len(sys.argv) > 1 else "recipes.xlsx"
    print(load_table(p))
