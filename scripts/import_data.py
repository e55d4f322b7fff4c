from pathlib import Path

from ingredient_validator.db import init_db, SessionLocal
from ingredient_validator.vocabulary import load_master_ingredients, seed_vocabulary


def main():
    init_db()
    p = Path(__file__).resolve().parents[1] / 'data' / 'master_ingredients.json'
    if not p.exists():
        print('data/master_ingredients.json not found')
        return
    entries = load_master_ingredients(p)
    db = SessionLocal()
    try:
        added = seed_vocabulary(db, entries)
    finally:
        db.close()
    print(f'Imported {added} master ingredients')


if __name__ == '__main__':
    main()
