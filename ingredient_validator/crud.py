import json
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .normalize import normalize


def _aliases(db_ingredient: models.MasterIngredient) -> List[str]:
    return json.loads(db_ingredient.aliases or "[]")


def to_schema(db_ingredient: models.MasterIngredient) -> schemas.Ingredient:
    return schemas.Ingredient(
        id=db_ingredient.id,
        name=db_ingredient.name,
        normalized_name=db_ingredient.normalized_name,
        category=db_ingredient.category,
        aliases=_aliases(db_ingredient),
        is_active=db_ingredient.is_active,
    )


def get_ingredient(db: Session, ingredient_id: int):
    return (
        db.query(models.MasterIngredient)
        .filter(models.MasterIngredient.id == ingredient_id)
        .first()
    )


def get_ingredient_by_name(db: Session, name: str):
    return (
        db.query(models.MasterIngredient)
        .filter(models.MasterIngredient.name == name)
        .first()
    )


def get_ingredients(db: Session, skip: int = 0, limit: int = 100,
                    category: Optional[str] = None):
    q = db.query(models.MasterIngredient)
    if category:
        q = q.filter(models.MasterIngredient.category == category)
    return q.order_by(models.MasterIngredient.name).offset(skip).limit(limit).all()


def create_ingredient(db: Session, ingredient: schemas.IngredientCreate):
    name = ingredient.name.strip()
    db_ingredient = models.MasterIngredient(
        name=name,
        normalized_name=normalize(name),
        category=ingredient.category,
        aliases=json.dumps(ingredient.aliases or [], ensure_ascii=False),
        is_active=True,
    )
    db.add(db_ingredient)
    db.commit()
    db.refresh(db_ingredient)
    return db_ingredient


def load_vocabulary(db: Session) -> List[schemas.Ingredient]:
    """Every active master ingredient, as plain schema objects."""
    rows = (
        db.query(models.MasterIngredient)
        .filter(models.MasterIngredient.is_active.is_(True))
        .order_by(models.MasterIngredient.id)
        .all()
    )
    return [to_schema(r) for r in rows]


def get_reports(db: Session, normalized_prefix: str):
    """Report history whose normalized name starts with ``normalized_prefix``."""
    escaped = (
        normalized_prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return (
        db.query(models.InvalidIngredientReport)
        .filter(models.InvalidIngredientReport.normalized_name.like(escaped + "%", escape="\\"))
        .order_by(models.InvalidIngredientReport.reported_at)
        .all()
    )


def get_summary(db: Session, normalized_name: str):
    return db.get(models.InvalidIngredientSummary, normalized_name)


def get_summaries(db: Session, needs_review: Optional[bool] = None,
                  skip: int = 0, limit: int = 100):
    q = db.query(models.InvalidIngredientSummary)
    if needs_review is not None:
        q = q.filter(models.InvalidIngredientSummary.needs_admin_review.is_(needs_review))
    return (
        q.order_by(
            models.InvalidIngredientSummary.total_reports.desc(),
            models.InvalidIngredientSummary.normalized_name,
        )
        .offset(skip)
        .limit(limit)
        .all()
    )
