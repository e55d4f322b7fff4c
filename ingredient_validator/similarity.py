"""String similarity used to score an input name against a vocabulary entry.

``score`` is the public entry point; ``similarity`` is the weighted
Jaro-Winkler / Levenshtein blend it is built on.
"""
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from .normalize import normalize

EXACT_SCORE = 1.0
ALIAS_SCORE = 0.95

JARO_WINKLER_WEIGHT = 0.7
LEVENSHTEIN_WEIGHT = 0.3

# Winkler prefix bonus
PREFIX_SCALE = 0.1
MAX_PREFIX = 4
BOOST_THRESHOLD = 0.7

NAME_SUBSTRING_BOOST = 0.15
NAME_SUBSTRING_CAP = 0.99
ALIAS_SUBSTRING_BOOST = 0.10


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def jaro(a: str, b: str) -> float:
    """Jaro similarity; half the transposition count is kept fractional."""
    if a == b:
        return 1.0
    len_a, len_b = len(a), len(b)
    if len_a == 0 or len_b == 0:
        return 0.0
    window = max(len_a, len_b) // 2 - 1
    if window < 0:
        return 0.0

    a_matched = [False] * len_a
    b_matched = [False] * len_b
    matches = 0
    for i, ch in enumerate(a):
        for j in range(max(0, i - window), min(i + window + 1, len_b)):
            if b_matched[j] or b[j] != ch:
                continue
            a_matched[i] = b_matched[j] = True
            matches += 1
            break
    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, ch in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[k]:
            k += 1
        if ch != b[k]:
            transpositions += 1
        k += 1

    return (matches / len_a + matches / len_b
            + (matches - transpositions / 2) / matches) / 3


def jaro_winkler(a: str, b: str) -> float:
    """Jaro similarity with a common-prefix bonus once Jaro reaches 0.7."""
    if a == b:
        return 1.0
    jaro_score = jaro(a, b)
    if jaro_score < BOOST_THRESHOLD:
        return jaro_score

    prefix = 0
    for ca, cb in zip(a[:MAX_PREFIX], b[:MAX_PREFIX]):
        if ca != cb:
            break
        prefix += 1
    return jaro_score + PREFIX_SCALE * prefix * (1.0 - jaro_score)


def similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    leven = 1.0 - levenshtein(a, b) / max(len(a), len(b))
    return JARO_WINKLER_WEIGHT * jaro_winkler(a, b) + LEVENSHTEIN_WEIGHT * leven


def _overlaps(a: str, b: str) -> bool:
    return a in b or b in a


def score(input_name: str, candidate_name: str,
          aliases: Optional[Iterable[str]] = None) -> float:
    """Confidence in [0, 1] that ``input_name`` denotes ``candidate_name``.

    Exact normalized equality scores 1.0 and an exact alias 0.95. Otherwise
    the best similarity over the name and its aliases is taken, then
    boosted when one string contains the other.
    """
    normalized_input = normalize(input_name)
    normalized_candidate = normalize(candidate_name)
    normalized_aliases = [normalize(a) for a in (aliases or [])]

    if normalized_input == normalized_candidate:
        return EXACT_SCORE
    if normalized_input in normalized_aliases:
        return ALIAS_SCORE

    max_score = similarity(normalized_input, normalized_candidate)
    from_name = True
    for alias in normalized_aliases:
        alias_score = similarity(normalized_input, alias)
        if alias_score > max_score:
            max_score = alias_score
            from_name = False

    if from_name and _overlaps(normalized_input, normalized_candidate):
        max_score = min(NAME_SUBSTRING_CAP, max_score + NAME_SUBSTRING_BOOST)
    elif any(_overlaps(normalized_input, alias) for alias in normalized_aliases):
        max_score = min(1.0, max_score + ALIAS_SUBSTRING_BOOST)

    return max_score
