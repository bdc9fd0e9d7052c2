# etl/load_recipes_mongo.py
import logging

from bson import ObjectId
from pymongo import ReturnDocument

from app.db_mongo import get_db, ensure_indexes
from app.utils.normalization import normalize_name
from etl.parsing import detect_columns, read_table, row_to_recipe

log = logging.getLogger(__name__)


def upsert_ingredient_doc(db, entry: dict):
    norm = normalize_name(entry["name"])
    if not norm:
        return None
    doc = db.ingredients.find_one_and_update(
        {"normalized_name": norm},
        {"$setOnInsert": {
            "name": entry["name"].strip(),
            "category": entry.get("category") or "",
            "common_substitutes": list(entry.get("substitutes") or []),
        }},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc["_id"]


def load_table_to_mongo(path: str, db=None, drop_existing: bool = True):
    db = db if db is not None else get_db()
    if drop_existing:
        # recipe _ids are regenerated, so user rows keyed on them go too
        for name in ("recipes", "ingredients", "favorites", "ratings"):
            db[name].drop()
    ensure_indexes(db)

    df = read_table(path)
    cols = detect_columns(df)

    docs = []
    ing_links = 0
    for i, row in df.iterrows():
        fields = row_to_recipe(row, cols, i)
        entries = fields.pop("ingredients")
        rows = []
        for entry in entries:
            ing_id = upsert_ingredient_doc(db, entry)
            if ing_id is None:
                continue
            rows.append({
                "row_id": str(ObjectId()),
                "ingredient_id": ing_id,
                "quantity": entry["quantity"],
                "unit": entry["unit"],
                "is_optional": entry["optional"],
                "raw_text": entry["raw_text"],
            })
        docs.append({**fields, "_id": ObjectId(), "ingredients": rows})
        ing_links += len(rows)

    if docs:
        db.recipes.insert_many(docs, ordered=False)

    log.info("loaded %d recipes into %s", len(docs), db.name)
    return {
        "recipes_inserted": len(docs),
        "ingredient_rows": db.ingredients.count_documents({}),
        "links_recipe_ingredients": ing_links,
    }


if __name__ == "__main__":
    import sys
    logging.basicConfig(level=logging.INFO)
    p = sys.argv[1] if len(sys.argv) > 1 else "recipes.xlsx"
    print(load_table_to_mongo(p))
