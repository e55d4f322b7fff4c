import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence

from . import classifier
from .errors import DeadlineExceeded, InvalidRequestError, SearchBackendError
from .gap_reporter import GapReporter
from .normalize import is_valid_ingredient_format, normalize
from .schemas import ValidationOutcome, ValidationResponse
from .search import SearchBackend

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 20


def check_batch(items: Any, max_size: int = MAX_BATCH_SIZE) -> None:
    """Reject a malformed batch before any item is looked at."""
    if items is None:
        raise InvalidRequestError("ingredients field is required")
    if not isinstance(items, (list, tuple)):
        raise InvalidRequestError("ingredients field must be an array")
    if len(items) == 0:
        raise InvalidRequestError("ingredients array cannot be empty")
    if len(items) > max_size:
        raise InvalidRequestError(
            f"ingredients array cannot contain more than {max_size} items"
        )
    for item in items:
        if not isinstance(item, str):
            raise InvalidRequestError("All ingredients must be strings")


def aggregate(outcomes: Sequence[ValidationOutcome]) -> ValidationResponse:
    """Fold per-item outcomes into the response lists, keeping input order."""
    response = ValidationResponse()
    for outcome in outcomes:
        if outcome.is_valid:
            response.valid.append(outcome.corrected_name or outcome.original)
        else:
            response.invalid.append(outcome.original)
        if outcome.warning is not None:
            response.warnings.append(outcome.warning)
    return response


class BatchValidator:
    """Validates a batch of raw ingredient names against the vocabulary.

    Items are independent: one failing lookup degrades only that item.
    With ``max_workers > 1`` items are looked up on a thread pool; the
    response order always follows the input order.
    """

    def __init__(self, search: SearchBackend,
                 reporter: Optional[GapReporter] = None,
                 max_batch_size: int = MAX_BATCH_SIZE,
                 search_limit: int = 5,
                 fuzzy_threshold: float = 0.6,
                 auto_correct_threshold: float = classifier.AUTO_CORRECT_THRESHOLD,
                 suggest_threshold: float = classifier.SUGGEST_THRESHOLD,
                 max_workers: int = 1):
        self.search = search
        self.reporter = reporter
        self.max_batch_size = max_batch_size
        self.search_limit = search_limit
        self.fuzzy_threshold = fuzzy_threshold
        self.auto_correct_threshold = auto_correct_threshold
        self.suggest_threshold = suggest_threshold
        self.max_workers = max_workers

    def validate(self, items: List[str],
                 deadline: Optional[float] = None) -> ValidationResponse:
        """Validate ``items``; ``deadline`` is a ``time.monotonic()`` value."""
        check_batch(items, self.max_batch_size)
        trimmed = [item.strip() for item in items]
        logger.info("Processing ingredient validation: %d item(s)", len(trimmed))

        if self.max_workers > 1 and len(trimmed) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(trimmed))) as pool:
                outcomes = list(pool.map(lambda s: self.validate_one(s, deadline), trimmed))
        else:
            outcomes = [self.validate_one(s, deadline) for s in trimmed]

        response = aggregate(outcomes)
        logger.info(
            "Validation completed: valid=%d invalid=%d warnings=%d",
            len(response.valid), len(response.invalid), len(response.warnings),
        )
        return response

    def validate_one(self, ingredient: str,
                     deadline: Optional[float] = None) -> ValidationOutcome:
        normalized = normalize(ingredient)
        logger.debug("Validating %r (normalized %r)", ingredient, normalized)

        ok, reason = is_valid_ingredient_format(ingredient)
        if not ok:
            return classifier.error_outcome(ingredient, reason)

        try:
            if deadline is not None and time.monotonic() >= deadline:
                raise DeadlineExceeded(f"deadline passed before looking up {ingredient!r}")
            try:
                candidates = self.search.search(
                    ingredient, limit=self.search_limit,
                    fuzzy_threshold=self.fuzzy_threshold, deadline=deadline,
                )
            except SearchBackendError as exc:
                # an unreachable vocabulary counts as "nothing found"
                logger.warning("Search backend unavailable for %r: %s", ingredient, exc)
                candidates = []
            result = classifier.classify(
                ingredient,
                candidates,
                auto_correct_threshold=self.auto_correct_threshold,
                suggest_threshold=self.suggest_threshold,
            )
        except Exception:
            logger.exception("Error validating ingredient %r", ingredient)
            return classifier.error_outcome(ingredient)

        if result.outcome.is_valid:
            logger.info(
                "Match for %r: %r (confidence %.3f)",
                ingredient, result.outcome.corrected_name,
                getattr(result.outcome.warning, "confidence", 1.0),
            )
        elif result.report:
            logger.warning("No matches found for %r (normalized %r)", ingredient, normalized)
            if self.reporter is not None:
                self.reporter.report(ingredient, normalized)
        else:
            logger.info("Medium confidence matches for %r", ingredient)
        return result.outcome
