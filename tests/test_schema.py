"""Tests for the compiled query Pydantic schema and its shape invariants."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.intent.schema import (
    ComparisonOperator,
    ConstraintKind,
    ConstraintValue,
    DietaryConstraint,
    NutrientGoal,
    SearchIntent,
    search_intent_from_obj,
)
from src.knowledge.vocabulary import Allergen, DietType, Nutrient


def test_range_requires_ordered_bounds() -> None:
    with pytest.raises(ValidationError):
        ConstraintValue(kind=ConstraintKind.range, value=10.0, upper=5.0)


def test_between_orders_its_bounds() -> None:
    value = ConstraintValue.between(10.0, 5.0)
    assert (value.value, value.upper) == (5.0, 10.0)


def test_qualitative_kinds_take_no_value() -> None:
    with pytest.raises(ValidationError):
        ConstraintValue(kind=ConstraintKind.high, value=1.0)


def test_bound_kinds_require_exactly_one_value() -> None:
    with pytest.raises(ValidationError):
        ConstraintValue(kind=ConstraintKind.min)
    with pytest.raises(ValidationError):
        ConstraintValue(kind=ConstraintKind.max, value=1.0, upper=2.0)


def test_constraint_value2_requires_value() -> None:
    with pytest.raises(ValidationError):
        DietaryConstraint(
            original_text="x", subject="fat", comparison=ComparisonOperator.gte, value2=5.0
        )


def test_constraint_is_frozen() -> None:
    constraint = DietaryConstraint(
        original_text="high protein", subject="protein", comparison=ComparisonOperator.gt
    )
    assert constraint.is_abstract
    with pytest.raises(ValidationError):
        constraint.value = 5.0  # type: ignore[misc]


def test_describe() -> None:
    constraint = DietaryConstraint(
        original_text="sodium < 5 mg",
        subject="sodium",
        comparison=ComparisonOperator.lt,
        value=5.0,
        unit="mg",
    )
    assert constraint.describe() == "sodium < 5 mg"


def test_search_intent_rejects_negative_age() -> None:
    with pytest.raises(ValidationError):
        SearchIntent(target_consumer_age=-1.0)


def test_search_intent_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        search_intent_from_obj({"text_tokens": [], "calories": 5})


def test_search_intent_from_json_payload() -> None:
    intent = SearchIntent(
        text_tokens=frozenset({"soup"}),
        nutrient_goals=(
            NutrientGoal(nutrient=Nutrient.sodium, constraint=ConstraintValue.at_most(5.0)),
        ),
        diets=frozenset({"Vegan"}),
        diet_filter=DietType.vegan,
        allergen_exclusions=frozenset({Allergen.peanuts}),
    )

    parsed = search_intent_from_obj(intent.model_dump(mode="json"))

    assert parsed == intent
    assert parsed.goals_for(Nutrient.sodium) == [ConstraintValue.at_most(5.0)]
    assert parsed.goals_for(Nutrient.fiber) == []
