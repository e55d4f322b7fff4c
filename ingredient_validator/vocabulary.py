import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from . import crud, schemas


def load_master_ingredients(path) -> List[Dict[str, Any]]:
    """Load master ingredient entries from a JSON file.

    Args:
        path (str or Path): Path to the JSON file, a list of
            ``{"name", "category", "aliases"}`` objects.

    Returns:
        list: entry dictionaries, empty when the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def seed_vocabulary(db: Session, entries: Iterable[Dict[str, Any]]) -> int:
    """Insert entries whose name is not in the vocabulary yet; returns count added."""
    added = 0
    for entry in entries:
        name = (entry.get("name") or "").strip()
        if not name or crud.get_ingredient_by_name(db, name):
            continue
        crud.create_ingredient(db, schemas.IngredientCreate(
            name=name,
            category=entry.get("category"),
            aliases=entry.get("aliases") or [],
        ))
        added += 1
    return added
