from app.schemas import DIFFICULTIES

def normalize_name(s: str) -> str:
    """Key used for exact ingredient lookups: lowercased and trimmed, nothing else."""
    if not s: return ""
    return str(s).lower().strip()

def normalize_pantry(items) -> list[str]:
    """Normalized, de-duplicated pantry names in first-seen order; blanks dropped."""
    out: list[str] = []
    seen: set[str] = set()
    for item in items or []:
        name = normalize_name(item)
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return out

def normalize_difficulty(val) -> str:
    """'easy' / ' HARD ' -> canonical label; anything unrecognized -> 'Easy'."""
    s = str(val or "").strip().capitalize()
    return s if s in DIFFICULTIES else "Easy"
