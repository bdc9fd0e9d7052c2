# etl/parsing.py
import json, re, ast
import pandas as pd

from app.utils.normalization import normalize_difficulty

UNITS = {
    "cup", "cups", "tbsp", "tablespoon", "tablespoons", "tsp", "teaspoon", "teaspoons",
    "g", "gram", "grams", "kg", "ml", "l", "oz", "ounce", "ounces", "lb", "lbs", "pound", "pounds",
    "clove", "cloves", "can", "cans", "pinch", "slice", "slices", "piece", "pieces", "bunch",
}
TRUE_STRINGS = {"true", "yes", "y", "1", "x", "t"}

def _literal_list(s: str):
    for parser in (json.loads, ast.literal_eval):
        try:
            arr = parser(s)
        except (ValueError, SyntaxError):
            continue
        if isinstance(arr, list):
            return arr
    return None

def parse_list_cell(val):
    """
    Robustly parse cells that may contain:
      - JSON arrays: ["a","b"]
      - Python repr arrays: ['a','b']
      - Comma/semicolon separated strings: a,b ; c
    Returns a list[str].
    """
    if val is None: return []
    if isinstance(val, list): return [str(x) for x in val]
    if isinstance(val, float) and pd.isna(val): return []
    s = str(val).strip()
    if not s: return []
    if s.startswith("[") and s.endswith("]"):
        arr = _literal_list(s)
        if arr is not None:
            return [str(x) for x in arr]
    return [p.strip() for p in re.split(r"[;,]", s) if p.strip()]

def clean_display(text: str) -> str:
    t = str(text).strip().strip("[]\"'")
    return re.sub(r"\s+", " ", t)

def parse_steps_cell(val):
    if val is None: return []
    if isinstance(val, list): return [clean_display(x) for x in val if str(x).strip()]
    if isinstance(val, float) and pd.isna(val): return []
    s = str(val).strip()
    if not s: return []
    if s.startswith("[") and s.endswith("]"):
        arr = _literal_list(s)
        if arr is not None:
            return [clean_display(x) for x in arr if str(x).strip()]
    lines = [l.strip() for l in re.split(r"\r?\n+", s) if l.strip()]
    if len(lines) > 1:
        return [re.sub(r"^\s*(\d+[\)\.\:\-]\s*|[-•]\s*)", "", l) for l in lines]
    parts = [p.strip() for p in re.split(r"\s*[;|]\s*", s) if p.strip()]
    if len(parts) > 1:
        return [re.sub(r"^\s*(\d+[\)\.\:\-]\s*|[-•]\s*)", "", p) for p in parts]
    return [s]

def parse_minutes(val):
    """Return minutes as int, or None. Handles: 55, 'minutes 55', '55 minutes', '1 hr 30 min', 'PT45M', '1:30'."""
    if val is None:
        return None
    if isinstance(val, (int, float)):
        return None if pd.isna(val) else int(val)

    s = str(val).strip().lower()
    if not s:
        return None

    m = re.match(r"^pt(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$", s)
    if m:
        h = int(m.group(1) or 0)
        mi = int(m.group(2) or 0)
        sec = int(m.group(3) or 0)
        return h * 60 + mi + (1 if (h == 0 and mi == 0 and sec > 0) else 0)

    hours = re.search(r"(\d+)\s*(h|hr|hrs|hour|hours)\b", s)
    mins  = re.search(r"(\d+)\s*(m|min|mins|minute|minutes)\b", s)
    total = 0
    if hours: total += int(hours.group(1)) * 60
    if mins:  total += int(mins.group(1))
    if total > 0: return total

    m = re.match(r"^\s*(\d+)\s*:\s*(\d{1,2})\s*$", s)
    if m: return int(m.group(1)) * 60 + int(m.group(2))

    nums = re.findall(r"\d+", s)  # covers 'minutes 55'
    return int(nums[-1]) if nums else None

def parse_flag(val) -> bool:
    if val is None: return False
    if isinstance(val, bool): return val
    if isinstance(val, (int, float)):
        return False if pd.isna(val) else bool(val)
    return str(val).strip().lower() in TRUE_STRINGS

def parse_difficulty(val) -> str:
    return normalize_difficulty(val)

def parse_number(val, default=0.0) -> float:
    if val is None: return default
    if isinstance(val, (int, float)):
        return default if pd.isna(val) else float(val)
    m = re.search(r"\d+(?:\.\d+)?", str(val))
    return float(m.group(0)) if m else default

def _quantity(token: str):
    if re.fullmatch(r"\d+/\d+", token):
        num, den = token.split("/")
        return int(num) / int(den) if int(den) else None
    if re.fullmatch(r"\d+(?:\.\d+)?", token):
        return float(token)
    return None

def parse_ingredient_text(text: str) -> dict:
    """'2 cups flour' -> quantity 2, unit 'cups', name 'flour'. Anything unparsed stays in the name."""
    disp = clean_display(text)
    optional = bool(re.search(r"\(optional\)|,\s*optional$", disp, re.I))
    disp = re.sub(r"\s*(\(optional\)|,\s*optional)$", "", disp, flags=re.I).strip()
    tokens = disp.split(" ")
    qty, unit = 1.0, ""
    if len(tokens) > 1:
        q = _quantity(tokens[0])
        if q is not None:
            qty = q
            tokens = tokens[1:]
            if len(tokens) > 1 and tokens[0].lower() in UNITS:
                unit = tokens[0].lower()
                tokens = tokens[1:]
    return {
        "name": " ".join(tokens),
        "quantity": qty,
        "unit": unit,
        "optional": optional,
        "category": "",
        "substitutes": [],
        "raw_text": disp,
    }

def _entry_from_dict(d: dict) -> dict:
    name = clean_display(d.get("name") or d.get("ingredient") or "")
    return {
        "name": name,
        "quantity": parse_number(d.get("quantity"), default=1.0),
        "unit": str(d.get("unit") or "").strip(),
        "optional": parse_flag(d.get("optional", d.get("is_optional"))),
        "category": str(d.get("category") or "").strip(),
        "substitutes": [clean_display(s) for s in d.get("substitutes") or d.get("common_substitutes") or []],
        "raw_text": name,
    }

def parse_ingredient_cell(val) -> list[dict]:
    """Ingredient entries from a cell: JSON/literal list of names or objects, or a separated string."""
    if val is None: return []
    if isinstance(val, float) and pd.isna(val): return []
    items = val if isinstance(val, list) else None
    if items is None:
        s = str(val).strip()
        if s.startswith("[") and s.endswith("]"):
            items = _literal_list(s)
        if items is None:
            items = parse_list_cell(s)
    out = []
    for item in items:
        entry = _entry_from_dict(item) if isinstance(item, dict) else parse_ingredient_text(str(item))
        if entry["name"]:
            out.append(entry)
    return out

def read_table(path: str) -> pd.DataFrame:
    if str(path).lower().endswith((".csv", ".txt")):
        return pd.read_csv(path)
    return pd.read_excel(path)

def detect_columns(df: pd.DataFrame):
    cols = {c.lower().strip(): c for c in df.columns}

    def col_like(*names):
        for n in names:
            if n in cols:
                return cols[n]
        for k, orig in cols.items():
            for n in names:
                if n in k:
                    return orig
        return None

    return dict(
        id=col_like("id", "external_id", "recipe_id"),
        name=col_like("name", "title"),
        desc=col_like("description", "desc", "summary"),
        img=col_like("image_url", "image", "photo"),
        cuisine=col_like("cuisine"),
        difficulty=col_like("difficulty", "level"),
        prep=col_like("prep_time", "prep"),
        cook=col_like("cook_time", "cook"),
        total=col_like("total_time", "ready in", "duration"),
        servings=col_like("servings", "serves", "yield"),
        ingredients=col_like("ingredients", "ingredient_list", "ings"),
        steps=col_like("instructions", "steps", "directions", "method"),
        calories=col_like("calories", "kcal"),
        protein=col_like("protein"),
        carbs=col_like("carbs", "carbohydrates"),
        fat=col_like("fat"),
        fiber=col_like("fiber", "fibre"),
        vegetarian=col_like("is_vegetarian", "vegetarian"),
        vegan=col_like("is_vegan", "vegan"),
        gluten_free=col_like("is_gluten_free", "gluten_free", "gluten-free"),
        dairy_free=col_like("is_dairy_free", "dairy_free", "dairy-free"),
        avg_rating=col_like("average_rating", "avg_rating"),
        rating_count=col_like("rating_count", "num_ratings"),
    )

def _cell(row, col):
    if not col: return None
    v = row[col]
    if isinstance(v, float) and pd.isna(v): return None
    return v

def row_to_recipe(row, cols, index: int) -> dict:
    """One sheet row -> recipe field dict plus its ingredient entries under 'ingredients'."""
    name = _cell(row, cols["name"])
    prep = parse_minutes(_cell(row, cols["prep"])) or 0
    cook = parse_minutes(_cell(row, cols["cook"])) or 0
    total = parse_minutes(_cell(row, cols["total"]))
    servings = int(parse_number(_cell(row, cols["servings"]), default=1)) or 1

    def text(key):
        v = _cell(row, cols[key])
        return clean_display(v) if v is not None else ""

    return {
        "external_id": text("id") or None,
        "name": clean_display(name) if name is not None else f"Recipe {index + 1}",
        "description": text("desc"),
        "image_url": text("img") or None,
        "cuisine": text("cuisine"),
        "difficulty": parse_difficulty(_cell(row, cols["difficulty"])),
        "prep_time": prep,
        "cook_time": cook,
        "total_time": total if total is not None else prep + cook,
        "servings": max(servings, 1),
        "instructions": parse_steps_cell(_cell(row, cols["steps"])),
        "calories": parse_number(_cell(row, cols["calories"])),
        "protein": parse_number(_cell(row, cols["protein"])),
        "carbs": parse_number(_cell(row, cols["carbs"])),
        "fat": parse_number(_cell(row, cols["fat"])),
        "fiber": parse_number(_cell(row, cols["fiber"])),
        "is_vegetarian": parse_flag(_cell(row, cols["vegetarian"])),
        "is_vegan": parse_flag(_cell(row, cols["vegan"])),
        "is_gluten_free": parse_flag(_cell(row, cols["gluten_free"])),
        "is_dairy_free": parse_flag(_cell(row, cols["dairy_free"])),
        "average_rating": parse_number(_cell(row, cols["avg_rating"])),
        "rating_count": int(parse_number(_cell(row, cols["rating_count"]))),
        "ingredients": parse_ingredient_cell(_cell(row, cols["ingredients"])),
    }
