from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr

MatchType = Literal["exact", "alias", "fuzzy"]


class IngredientBase(BaseModel):
    name: str = Field(
        ..., min_length=1, max_length=100, json_schema_extra={"example": "Thịt gà"}
    )
    category: Optional[str] = Field(
        default=None, json_schema_extra={"example": "meat"}
    )
    aliases: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["gà", "chicken", "thit ga"]},
    )


class IngredientCreate(IngredientBase):
    pass


class Ingredient(IngredientBase):
    id: int
    normalized_name: str
    is_active: bool = True


class MatchCandidate(BaseModel):
    """A scored vocabulary entry for one input; never persisted."""
    name: str
    normalized_name: str
    category: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)
    match_type: MatchType
    match_score: float = Field(..., ge=0.0, le=1.0)


class CorrectionWarning(BaseModel):
    model_config = ConfigDict(extra="forbid")

    original: str
    corrected: str
    confidence: float
    message: str


class SuggestionWarning(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ingredient: str
    suggestions: List[str] = Field(default_factory=list, max_length=3)
    message: str


class NotFoundWarning(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ingredient: str
    message: str
    reported: bool = True


ValidationWarning = Union[CorrectionWarning, SuggestionWarning, NotFoundWarning]


class ValidationOutcome(BaseModel):
    original: str
    corrected_name: Optional[str] = None
    is_valid: bool
    warning: Optional[ValidationWarning] = None


class ValidationRequest(BaseModel):
    ingredients: List[StrictStr] = Field(
        ..., json_schema_extra={"example": ["thit ga", "ca chua", "hanh tay"]}
    )


class ValidationResponse(BaseModel):
    valid: List[str] = Field(default_factory=list)
    invalid: List[str] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)


class ReportSummary(BaseModel):
    normalized_name: str
    original_name: str
    total_reports: int
    first_reported_at: datetime
    last_reported_at: datetime
    needs_admin_review: bool

    model_config = ConfigDict(from_attributes=True)
