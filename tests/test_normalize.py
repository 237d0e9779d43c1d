"""Tests for the lexical normalizer (rewrites and age extraction)."""

from __future__ import annotations

import pytest

from src.intent.normalize import (
    extract_age,
    normalize_operators,
    normalize_percentages,
    normalize_ph_phrases,
    normalize_query,
    normalize_ranges,
    rewrite_query,
)


@pytest.mark.parametrize(
    "query",
    [
        "high protein no sodium vegan between 5 and 10 vitamin c",
        "Protein >= 10g and less than 5% sugar",
        "strictly between 2 and 4 mg iron, low acid",
        "ph levels 7 with total fat under 3",
        "sodium 5 max, at least 20 g fiber",
        "no added sugar gluten-free snacks",
    ],
)
def test_rewrite_is_idempotent(kb, query: str) -> None:
    once = rewrite_query(query, kb)
    assert rewrite_query(once, kb) == once


def test_rewrite_folds_symbols_phrases_and_percentages(kb) -> None:
    assert (
        rewrite_query("Protein >= 10g and less than 5% sugar", kb)
        == "protein _op_gte_ 10g and _op_lt_ 5_percent sugar"
    )


def test_rewrite_protects_multi_word_nutrients(kb) -> None:
    assert rewrite_query("high vitamin c and total fat", kb) == "high vitamin_c and total_fat"


def test_percentages() -> None:
    assert normalize_percentages("12.5% fat") == "12.5_percent fat"
    assert normalize_percentages("no percent here") == "no percent here"


def test_ranges() -> None:
    assert normalize_ranges("between 5 and 10 fat") == "_op_gte_ 5 _op_lte_ 10 fat"
    assert normalize_ranges("from 2 to 4 mg iron") == "_op_gte_ 2 _op_lte_ 4 mg iron"
    assert normalize_ranges("strictly between 2 and 4 iron") == "_op_gt_ 2 _op_lt_ 4 iron"


def test_ph_idioms(kb) -> None:
    assert normalize_ph_phrases("low acid tomatoes", kb) == "_ph_alkaline_ tomatoes"
    assert normalize_ph_phrases("high acid fruit", kb) == "_ph_acidic_ fruit"
    assert normalize_ph_phrases("neutral ph water", kb) == "_ph_neutral_ water"


def test_ph_level_phrases_collapse_before_idioms(kb) -> None:
    assert normalize_ph_phrases("ph levels 7", kb) == "_ph_neutral_"
    assert normalize_ph_phrases("low acidity level", kb) == "_ph_alkaline_"
    assert normalize_ph_phrases("over low ph value", kb) == "over _ph_acidic_"


@pytest.mark.parametrize(
    "query",
    ["low acidity level", "high ph values please", "over low ph value", "acidity levels low"],
)
def test_ph_level_phrases_are_idempotent(kb, query: str) -> None:
    once = rewrite_query(query, kb)
    assert rewrite_query(once, kb) == once


def test_ph_seven_does_not_eat_decimals(kb) -> None:
    assert normalize_ph_phrases("ph 7.5", kb) == "ph 7.5"


def test_operators(kb) -> None:
    assert normalize_operators("sodium 5 max", kb) == "sodium 5 _op_lte_"
    assert normalize_operators("at least 20 fiber", kb) == "_op_gte_ 20 fiber"
    assert normalize_operators("less 5 sugar", kb) == "_op_lt_ 5 sugar"
    assert normalize_operators("no more than 3 fat", kb) == "_op_lte_ 3 fat"


def test_comparative_adjective_needs_a_number(kb) -> None:
    assert normalize_operators("less sugar", kb) == "less sugar"


def test_age_in_years() -> None:
    result = extract_age("snacks for a 2 year old")
    assert result.age_months == 24.0
    assert result.text == "snacks for a old"


def test_age_exclusive_bound_is_nudged(kb) -> None:
    result = normalize_query("under 6 months", kb)
    assert result.age_months == pytest.approx(5.9)
    assert result.text == ""


def test_age_removed_from_text(kb) -> None:
    result = normalize_query("for a 6 month old", kb)
    assert result.age_months == 6.0
    assert "6" not in result.text
    assert "month" not in result.text


def test_units_and_nutrient_digits_are_not_ages(kb) -> None:
    assert normalize_query("vitamin b12 500 mcg", kb).age_months is None
    assert normalize_query("5 mg iron", kb).age_months is None
