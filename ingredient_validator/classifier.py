"""Turns the candidates found for one input into a validation outcome.

Score bands, lower bounds inclusive:

    1.0            valid, corrected to the standard form if spelled differently
    [0.8, 1.0)     valid, auto-corrected, always warned
    [0.6, 0.8)     invalid, up to three suggestions
    below 0.6      invalid, not found, reported to curators
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .schemas import (
    CorrectionWarning,
    MatchCandidate,
    NotFoundWarning,
    SuggestionWarning,
    ValidationOutcome,
)

AUTO_CORRECT_THRESHOLD = 0.8
SUGGEST_THRESHOLD = 0.6
MAX_SUGGESTIONS = 3

STANDARD_FORM_MESSAGE = "Ingredient name corrected to standard form"
SIMILARITY_MESSAGE = "Ingredient name auto-corrected based on similarity"
SUGGESTION_MESSAGE = "Ingredient not found. Did you mean one of these?"
NOT_FOUND_MESSAGE = "Ingredient not found in database"
ERROR_MESSAGE = "Error occurred during validation"


@dataclass(frozen=True)
class Classification:
    outcome: ValidationOutcome
    # the input had no acceptable match and should be gap-reported
    report: bool = False


def best_candidate(candidates: Sequence[MatchCandidate]) -> Optional[MatchCandidate]:
    best = None
    for candidate in candidates:
        if best is None or candidate.match_score > best.match_score:
            best = candidate
    return best


def top_suggestions(candidates: Sequence[MatchCandidate],
                    limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Distinct display names by descending score, at most ``limit``."""
    ordered = sorted(candidates, key=lambda c: -c.match_score)
    names: List[str] = []
    for candidate in ordered:
        if candidate.name not in names:
            names.append(candidate.name)
        if len(names) == limit:
            break
    return names


def classify(original: str, candidates: Sequence[MatchCandidate],
             auto_correct_threshold: float = AUTO_CORRECT_THRESHOLD,
             suggest_threshold: float = SUGGEST_THRESHOLD) -> Classification:
    best = best_candidate(candidates)
    score = best.match_score if best is not None else 0.0

    if best is not None and score >= 1.0:
        warning = None
        if best.name != original:
            warning = CorrectionWarning(
                original=original,
                corrected=best.name,
                confidence=1.0,
                message=STANDARD_FORM_MESSAGE,
            )
        return Classification(ValidationOutcome(
            original=original, corrected_name=best.name, is_valid=True, warning=warning,
        ))

    if best is not None and score >= auto_correct_threshold:
        return Classification(ValidationOutcome(
            original=original,
            corrected_name=best.name,
            is_valid=True,
            warning=CorrectionWarning(
                original=original,
                corrected=best.name,
                confidence=score,
                message=SIMILARITY_MESSAGE,
            ),
        ))

    if best is not None and score >= suggest_threshold:
        return Classification(ValidationOutcome(
            original=original,
            is_valid=False,
            warning=SuggestionWarning(
                ingredient=original,
                suggestions=top_suggestions(candidates),
                message=SUGGESTION_MESSAGE,
            ),
        ))

    return Classification(
        ValidationOutcome(
            original=original,
            is_valid=False,
            warning=NotFoundWarning(ingredient=original, message=NOT_FOUND_MESSAGE),
        ),
        report=True,
    )


def error_outcome(original: str, message: str = ERROR_MESSAGE) -> ValidationOutcome:
    """Outcome for an item whose validation failed internally."""
    return ValidationOutcome(
        original=original,
        is_valid=False,
        warning=NotFoundWarning(ingredient=original, message=message, reported=False),
    )
