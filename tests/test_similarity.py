# flake8: noqa
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import pytest

from ingredient_validator.similarity import (
    ALIAS_SCORE,
    jaro,
    jaro_winkler,
    levenshtein,
    score,
    similarity,
)


def test_levenshtein_unit_costs():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("abc", "abc") == 0


def test_jaro_winkler_reference_values():
    assert jaro_winkler("MARTHA", "MARHTA") == pytest.approx(0.9611, abs=1e-4)
    assert jaro_winkler("DIXON", "DICKSONX") == pytest.approx(0.8133, abs=1e-4)


def test_jaro_keeps_half_transpositions_fractional():
    # three out-of-order matches count as 1.5 transpositions, not 1
    assert jaro("aabacc", "aacbca") == pytest.approx(0.916667, abs=1e-6)
    assert jaro_winkler("aabacc", "aacbca") == pytest.approx(0.933333, abs=1e-6)


def test_jaro_guards():
    assert jaro("", "abc") == 0.0
    assert jaro("a", "b") == 0.0
    assert jaro("abc", "abc") == 1.0


def test_odd_transpositions_keep_typo_in_suggestion_band():
    assert 0.6 <= score("ca hio", "Cải thảo", []) < 0.8


def test_jaro_winkler_no_prefix_bonus_below_threshold():
    assert jaro_winkler("abc", "xyz") == 0.0


def test_similarity_edge_cases():
    assert similarity("", "") == 1.0
    assert similarity("abc", "") == 0.0
    assert similarity("", "abc") == 0.0


def test_similarity_weights():
    expected = 0.7 * jaro_winkler("martha", "marhta") + 0.3 * (1 - 2 / 6)
    assert similarity("martha", "marhta") == pytest.approx(expected)


@pytest.mark.parametrize("text", ["tom", "Thịt gà", "nuoc mam", "x"])
def test_score_identity(text):
    assert score(text, text, []) == 1.0


def test_score_empty_inputs():
    assert score("", "", []) == 1.0
    assert score("", "abc", []) < 0.5


def test_score_ignores_diacritics_and_case():
    assert score("THIT GA", "Thịt gà") == 1.0


def test_score_exact_alias():
    assert score("chicken", "Thịt gà", ["gà", "chicken"]) == ALIAS_SCORE
    assert score("Chicken", "Thịt gà", ["CHICKEN"]) == ALIAS_SCORE


def test_score_name_substring_boost():
    boosted = score("ca", "ca chua")
    assert boosted == pytest.approx(similarity("ca", "ca chua") + 0.15)


def test_score_name_substring_boost_is_capped_below_exact():
    assert score("ca chu", "Cà chua") == 0.99


def test_score_alias_substring_boost():
    # the alias wins on similarity and contains the input
    expected = min(1.0, similarity("salmo", "salmon") + 0.10)
    assert score("salmo", "Cá hồi", ["salmon"]) == pytest.approx(expected)


def test_name_boost_needs_the_name_to_win():
    # "thit ga" contains "ga" but the alias "gz" is the closer match
    assert similarity("ga", "gz") > similarity("ga", "thit ga")
    assert score("ga", "Thịt gà", ["gz"]) == pytest.approx(similarity("ga", "gz"))


def test_alias_boost_applies_when_alias_wins_over_containing_name():
    expected = similarity("ga", "gaa") + 0.10
    assert score("ga", "Thịt gà", ["gaa"]) == pytest.approx(expected)
    assert expected < min(0.99, similarity("ga", "gaa") + 0.15)


def test_score_unrelated_is_low():
    assert score("xyzzy", "Nước mắm", ["fish sauce"]) < 0.6


@pytest.mark.parametrize("a, b", [
    ("thit ga", "thit gaa"),
    ("ca chua", "ca chau"),
    ("nuoc mam", "nuoc nam"),
])
def test_score_in_unit_range(a, b):
    s = score(a, b, ["something else"])
    assert 0.0 <= s <= 1.0
