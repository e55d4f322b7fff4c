from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from .db import Base


class MasterIngredient(Base):
    __tablename__ = "master_ingredients"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    normalized_name = Column(String(100), index=True, nullable=False)
    category = Column(String(50), nullable=True)
    aliases = Column(Text, nullable=True)  # JSON-encoded list
    is_active = Column(Boolean, default=True, nullable=False)


class InvalidIngredientReport(Base):
    """One row per failed classification; never updated."""
    __tablename__ = "invalid_ingredient_reports"
    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(String(36), unique=True, nullable=False)
    original_name = Column(String(200), nullable=False)
    normalized_name = Column(String(200), index=True, nullable=False)
    report_count = Column(Integer, nullable=False)
    reported_at = Column(DateTime(timezone=True), nullable=False)
    needs_admin_review = Column(Boolean, default=False, nullable=False)


class InvalidIngredientSummary(Base):
    """Running totals per normalized name."""
    __tablename__ = "invalid_ingredient_summaries"
    normalized_name = Column(String(200), primary_key=True)
    original_name = Column(String(200), nullable=False)
    total_reports = Column(Integer, default=0, nullable=False)
    first_reported_at = Column(DateTime(timezone=True), nullable=False)
    last_reported_at = Column(DateTime(timezone=True), nullable=False)
    needs_admin_review = Column(Boolean, default=False, nullable=False)
