"""Tests for the ordered pattern-family candidate extractor."""

from __future__ import annotations

from src.intent.extractor import FAMILY_PATTERNS, clean_subject, extract_candidates


def _summary(candidates) -> list[tuple[str, str, str | None, str | None, str | None]]:
    return [
        (c.family, c.subject_text, c.operator_text, c.value_text, c.second_value_text)
        for c in candidates
    ]


def test_family_order_is_most_specific_first() -> None:
    assert [name for name, _ in FAMILY_PATTERNS] == [
        "range",
        "subject_range",
        "value_first",
        "subject_first",
        "postfix_abstract",
        "prefix_abstract",
        "dangling_operator",
    ]


def test_explicit_range(kb) -> None:
    candidates = extract_candidates("between 5 and 10 g protein", kb)
    assert _summary(candidates) == [("range", "protein", "between", "5", "10")]
    assert candidates[0].unit_text == "g"


def test_strict_range_gets_two_operators(kb) -> None:
    (candidate,) = extract_candidates("strictly between 2 and 4 mg iron", kb)
    assert candidate.family == "range"
    assert candidate.operator_text == ">"
    assert candidate.operator_text2 == "<"


def test_value_first(kb) -> None:
    candidates = extract_candidates("more than 10 vitamin c", kb)
    assert _summary(candidates) == [("value_first", "vitamin c", "more than", "10", None)]


def test_value_first_chain_splits_into_two_candidates(kb) -> None:
    candidates = extract_candidates("more than 10 vitamin c more than 14 fat", kb)
    assert _summary(candidates) == [
        ("value_first", "vitamin c", "more than", "10", None),
        ("value_first", "fat", "more than", "14", None),
    ]


def test_subject_first(kb) -> None:
    candidates = extract_candidates("sodium < 5g", kb)
    assert _summary(candidates) == [("subject_first", "sodium", "<", "5", None)]
    assert candidates[0].unit_text == "g"


def test_subject_first_with_second_bound(kb) -> None:
    (candidate,) = extract_candidates("protein > 10 and < 20", kb)
    assert candidate.family == "subject_first"
    assert candidate.operator_text == ">"
    assert candidate.operator_text2 == "<"
    assert candidate.second_value_text == "20"


def test_bare_number_after_a_subject_stays_with_it(kb) -> None:
    candidates = extract_candidates("protein 20 fat 10", kb)
    assert _summary(candidates) == [
        ("subject_first", "protein", None, "20", None),
        ("subject_first", "fat", None, "10", None),
    ]


def test_postfix_abstract(kb) -> None:
    candidates = extract_candidates("sugar free cookies", kb)
    assert _summary(candidates) == [("postfix_abstract", "sugar", "free", None, None)]


def test_prefix_abstract(kb) -> None:
    assert _summary(extract_candidates("high ph", kb)) == [
        ("prefix_abstract", "ph", "high", None, None)
    ]
    assert _summary(extract_candidates("without peanuts", kb)) == [
        ("prefix_abstract", "peanuts", "without", None, None)
    ]


def test_bare_mention(kb) -> None:
    (candidate,) = extract_candidates("vegan", kb)
    assert candidate.family == "prefix_abstract"
    assert candidate.is_bare_mention
    assert candidate.is_abstract


def test_dangling_operator(kb) -> None:
    candidates = extract_candidates("at least protein", kb)
    assert _summary(candidates) == [("dangling_operator", "protein", "at least", None, None)]


def test_bare_mentions_only_fill_gaps(kb) -> None:
    candidates = extract_candidates("high protein vegan", kb)
    assert _summary(candidates) == [
        ("prefix_abstract", "protein", "high", None, None),
        ("prefix_abstract", "vegan", None, None, None),
    ]


def test_unknown_subjects_are_dropped(kb) -> None:
    assert extract_candidates("between 5 and 10 g unicorns", kb) == []
    assert extract_candidates("something tasty", kb) == []
    assert extract_candidates("", kb) == []


def test_clean_subject_aliases_and_qualifiers(kb) -> None:
    assert clean_subject("b12", kb) == ("vitamin b12", None)
    assert clean_subject("(sodium),", kb) == ("sodium", None)
    assert clean_subject("low-fat", kb) == ("low-fat", None)
    assert clean_subject("sugar-free", kb) == ("sugar", "free")
    assert clean_subject("unicorn", kb) is None


def test_subject_then_range(kb) -> None:
    assert _summary(extract_candidates("protein between 5 and 10", kb)) == [
        ("subject_range", "protein", "between", "5", "10")
    ]
    assert _summary(extract_candidates("ph between 6 and 7", kb)) == [
        ("subject_range", "ph", "between", "6", "7")
    ]


def test_strict_subject_range_gets_two_operators(kb) -> None:
    (candidate,) = extract_candidates("iron strictly between 2 and 4 mg", kb)
    assert candidate.family == "subject_range"
    assert (candidate.operator_text, candidate.operator_text2) == (">", "<")


def test_trailing_operator_after_the_value(kb) -> None:
    assert _summary(extract_candidates("5 max sodium", kb)) == [
        ("value_first", "sodium", "max", "5", None)
    ]
    assert _summary(extract_candidates("sodium 5 max", kb)) == [
        ("subject_first", "sodium", "max", "5", None)
    ]
    assert _summary(extract_candidates("sugar 10 g less", kb)) == [
        ("subject_first", "sugar", "less", "10", None)
    ]


def test_trailing_less_is_a_postfix_qualifier(kb) -> None:
    assert _summary(extract_candidates("sugar less", kb)) == [
        ("postfix_abstract", "sugar", "less", None, None)
    ]


def test_less_before_a_subject_qualifies_that_subject(kb) -> None:
    assert _summary(extract_candidates("sodium less sugar", kb)) == [
        ("prefix_abstract", "sodium", None, None, None),
        ("prefix_abstract", "sugar", "less", None, None),
    ]
