"""In-process vocabulary search.

The validator only depends on the ``SearchBackend`` protocol; any service
returning ranked, scored ``MatchCandidate`` objects can be plugged in.
``VocabularySearch`` scores a vocabulary snapshot locally with
:func:`similarity.score`.
"""
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from . import schemas
from .errors import DeadlineExceeded, SearchBackendError
from .normalize import clean_ingredient_name, extract_search_keywords, normalize, variations
from .similarity import EXACT_SCORE, score

logger = logging.getLogger(__name__)

# Caps for scores earned through a variant instead of the input itself:
# a qualifier-stripped form may auto-correct, a lone word may only suggest.
CLEANED_VARIANT_CAP = 0.95
WORD_VARIANT_CAP = 0.75


class SearchBackend(Protocol):
    def search(self, query: str, limit: int = 5, fuzzy_threshold: float = 0.6,
               deadline: Optional[float] = None) -> List[schemas.MatchCandidate]:
        ...


def check_deadline(deadline: Optional[float], query: str) -> None:
    """Raise ``DeadlineExceeded`` once the ``time.monotonic()`` deadline has passed."""
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceeded(f"deadline passed while searching for {query!r}")


def rank_candidates(candidates: Iterable[schemas.MatchCandidate]) -> List[schemas.MatchCandidate]:
    """Exact matches first, then by descending score, then by name."""
    return sorted(
        candidates,
        key=lambda c: (c.match_type != "exact", -c.match_score, c.name),
    )


class VocabularySearch:
    def __init__(self, vocabulary: Callable[[], Sequence[schemas.Ingredient]],
                 secondary_threshold: float = 0.8):
        self._vocabulary = vocabulary
        self.secondary_threshold = secondary_threshold

    def search(self, query: str, limit: int = 5, fuzzy_threshold: float = 0.6,
               deadline: Optional[float] = None) -> List[schemas.MatchCandidate]:
        if not normalize(query):
            return []
        check_deadline(deadline, query)
        try:
            entries = self._vocabulary()
        except SQLAlchemyError as exc:
            raise SearchBackendError("vocabulary unavailable") from exc

        found: Dict[str, schemas.MatchCandidate] = {}
        for entry in entries:
            check_deadline(deadline, query)
            self._keep_best(found, self._candidate(query, entry), fuzzy_threshold)

        if not any(c.match_score >= self.secondary_threshold for c in found.values()):
            for variant, cap in self._secondary_queries(query):
                check_deadline(deadline, query)
                for entry in entries:
                    candidate = self._candidate(variant, entry, cap=cap)
                    self._keep_best(found, candidate, fuzzy_threshold)

        ranked = rank_candidates(found.values())[:limit]
        logger.debug("search %r -> %d candidate(s)", query, len(ranked))
        return ranked

    @staticmethod
    def _keep_best(found: Dict[str, schemas.MatchCandidate],
                   candidate: schemas.MatchCandidate, threshold: float) -> None:
        if candidate.match_score < threshold:
            return
        current = found.get(candidate.name)
        if current is None or candidate.match_score > current.match_score:
            found[candidate.name] = candidate

    @staticmethod
    def _candidate(query: str, entry: schemas.Ingredient,
                   cap: Optional[float] = None) -> schemas.MatchCandidate:
        full = score(query, entry.name, entry.aliases)
        if cap is not None:
            full = min(full, cap)

        if full == EXACT_SCORE:
            match_type = "exact"
        elif full > score(query, entry.name):
            match_type = "alias"
        else:
            match_type = "fuzzy"

        return schemas.MatchCandidate(
            name=entry.name,
            normalized_name=entry.normalized_name,
            category=entry.category,
            aliases=list(entry.aliases),
            match_type=match_type,
            match_score=full,
        )

    @staticmethod
    def _secondary_queries(query: str) -> List[Tuple[str, float]]:
        primary = normalize(query)
        cleaned = normalize(clean_ingredient_name(query))
        seen = {primary}
        out: List[Tuple[str, float]] = []
        # word pairs widen recall for inputs of three or more words
        pairs = [k for k in extract_search_keywords(query) if " " in k]
        for variant in sorted(variations(query)) + pairs:
            key = normalize(variant)
            if not key or key in seen:
                continue
            seen.add(key)
            out.append((variant, CLEANED_VARIANT_CAP if key == cleaned else WORD_VARIANT_CAP))
        return out
