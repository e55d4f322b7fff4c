import re
import unicodedata
from typing import List, Set, Tuple

# Tone and diacritic marks left behind by NFD decomposition
_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_WHITESPACE = re.compile(r"\s+")

# Words that qualify an ingredient without changing its identity:
# a leading meat-type prefix and trailing freshness/state markers.
QUALIFIER_PREFIXES = ("thịt", "thit")
QUALIFIER_SUFFIXES = ("tươi", "tuoi", "khô", "kho", "đông lạnh", "dong lanh")

_PREFIX_RE = re.compile(
    r"^(?:%s)\s+" % "|".join(QUALIFIER_PREFIXES), re.IGNORECASE
)
_SUFFIX_RE = re.compile(
    r"\s+(?:%s)$" % "|".join(QUALIFIER_SUFFIXES), re.IGNORECASE
)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100


def normalize(text: str) -> str:
    """Return the canonical comparable form of ``text``.

    Lower-cased, diacritics stripped (``đ`` folded to ``d``), whitespace
    collapsed. ``None`` and non-strings normalize to the empty string.
    """
    if not text or not isinstance(text, str):
        return ""
    s = text.lower().strip()
    s = unicodedata.normalize("NFD", s)
    s = _COMBINING_MARKS.sub("", s)
    s = s.replace("đ", "d").replace("Đ", "d")
    s = _WHITESPACE.sub(" ", s)
    return s.strip()


def clean_ingredient_name(name: str) -> str:
    """Strip qualifier words that don't affect ingredient identity."""
    if not name or not isinstance(name, str):
        return ""
    s = unicodedata.normalize("NFC", name).strip()
    s = _PREFIX_RE.sub("", s)
    s = _SUFFIX_RE.sub("", s)
    s = _WHITESPACE.sub(" ", s)
    return s.strip()


def variations(name: str) -> Set[str]:
    """Lexical variants of ``name`` used to widen lookup recall."""
    if not name or not isinstance(name, str):
        return set()
    cleaned = clean_ingredient_name(name)
    out = {name, cleaned, normalize(name), normalize(cleaned)}

    words = cleaned.lower().split()
    if len(words) > 1:
        for word in words:
            # very short words are too ambiguous to look up on their own
            if len(word) > 2:
                out.add(word)
                out.add(normalize(word))

    out.discard("")
    return out


def is_valid_ingredient_format(name: str) -> Tuple[bool, str]:
    """Cheap shape checks run before any lookup.

    Returns ``(True, "")`` or ``(False, reason)``.
    """
    if not name or not isinstance(name, str):
        return False, "Ingredient name must be a non-empty string"
    trimmed = name.strip()
    if not trimmed:
        return False, "Ingredient name cannot be empty"
    if len(trimmed) > MAX_NAME_LENGTH:
        return False, f"Ingredient name too long (max {MAX_NAME_LENGTH} characters)"
    if len(trimmed) < MIN_NAME_LENGTH:
        return False, f"Ingredient name too short (min {MIN_NAME_LENGTH} characters)"
    if trimmed.isdigit():
        return False, "Ingredient name cannot be only numbers"
    if not any(ch.isalnum() for ch in trimmed):
        return False, "Ingredient name contains only special characters"
    return True, ""


def extract_search_keywords(name: str) -> List[str]:
    words = [w for w in normalize(name).split(" ") if len(w) > 1]
    keywords: List[str] = []
    for w in words:
        if w not in keywords:
            keywords.append(w)
    for first, second in zip(words, words[1:]):
        pair = f"{first} {second}"
        if pair not in keywords:
            keywords.append(pair)
    return keywords
