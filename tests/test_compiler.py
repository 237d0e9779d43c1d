"""End-to-end tests for the unified query compiler."""

from __future__ import annotations

import pytest

from src.intent.compiler import compile_query, unify
from src.intent.schema import (
    ConstraintMapperResult,
    ConstraintValue,
    NutrientGoal,
    SearchIntent,
)
from src.knowledge.base import StaticKnowledgeBase
from src.knowledge.vocabulary import Allergen, DietType, Nutrient


def test_end_to_end_scenario(kb) -> None:
    intent = compile_query("high protein no sodium vegan between 5 and 10 vitamin c", kb)

    goals = {goal.nutrient: goal.constraint for goal in intent.nutrient_goals}
    assert goals == {
        Nutrient.protein: ConstraintValue.high(),
        Nutrient.sodium: ConstraintValue.at_most(5.0),
        Nutrient.vitamin_c: ConstraintValue.between(5.0, 10.0),
    }
    assert len(intent.nutrient_goals) == 3
    assert intent.diets == {"Vegan"}
    assert intent.diet_filter == DietType.vegan
    assert intent.ph_constraint is None
    assert intent.target_consumer_age is None
    assert intent.text_tokens == frozenset()


def test_vegan_alone(kb) -> None:
    intent = compile_query("vegan", kb)
    assert intent.diets == {"Vegan"}
    assert intent.nutrient_goals == ()


def test_no_peanuts_and_no_allergens(kb) -> None:
    assert compile_query("no peanuts", kb).allergen_exclusions == {Allergen.peanuts}
    assert compile_query("no allergens", kb).exclude_all_allergens is True


def test_age_is_lifted_out_of_the_text(kb) -> None:
    intent = compile_query("for a 6 month old", kb)
    assert intent.target_consumer_age == pytest.approx(6.0)
    assert intent.text_tokens == frozenset()
    assert intent.nutrient_goals == ()


def test_range_decomposition(kb) -> None:
    assert compile_query("between 5 and 10 fat", kb).nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.total_fat, constraint=ConstraintValue.between(5.0, 10.0)),
    )


def test_multi_constraint_splitting(kb) -> None:
    goals = compile_query("more than 10 vitamin c more than 14 fat", kb).nutrient_goals
    assert goals == (
        NutrientGoal(nutrient=Nutrient.vitamin_c, constraint=ConstraintValue.above(10.0)),
        NutrientGoal(nutrient=Nutrient.total_fat, constraint=ConstraintValue.above(14.0)),
    )


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("low acid", ConstraintValue.at_least(7.0)),
        ("high acid", ConstraintValue.at_most(6.0)),
        ("acidic", ConstraintValue.at_most(6.0)),
    ],
)
def test_ph_inversion(kb, text: str, expected: ConstraintValue) -> None:
    assert compile_query(text, kb).ph_constraint == expected


@pytest.mark.parametrize("template", ["no {}", "{} free", "without {}", "free of {}"])
def test_negation_symmetry(kb, template: str) -> None:
    sugar = compile_query(template.format("sugar"), kb)
    assert sugar.nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.total_sugar, constraint=ConstraintValue.at_most(0.5)),
    )
    assert compile_query(template.format("peanuts"), kb).allergen_exclusions == {
        Allergen.peanuts
    }


def test_determinism(kb) -> None:
    query = "low sodium high fiber no peanuts gluten-free soup for a toddler ph 7"
    first = compile_query(query, kb)
    second = compile_query(query, kb)
    assert first == second
    assert first.model_dump(mode="json") == second.model_dump(mode="json")


def test_tokenizer_only_mode(kb) -> None:
    intent = compile_query("no sodium", kb, use_constraint_engine=False)
    assert intent.nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.sodium, constraint=ConstraintValue.below(0.5)),
    )


def test_unify_prefers_mapper_goals_and_unions_sets() -> None:
    intent = SearchIntent(
        text_tokens=frozenset({"soup"}),
        nutrient_goals=(
            NutrientGoal(nutrient=Nutrient.sodium, constraint=ConstraintValue.below(0.5)),
            NutrientGoal(nutrient=Nutrient.fiber, constraint=ConstraintValue.high()),
        ),
        diets=frozenset({"Vegan"}),
        diet_filter=DietType.vegan,
        target_consumer_age=12.0,
        ph_constraint=ConstraintValue.at_most(6.0),
    )
    mapped = ConstraintMapperResult(
        nutrient_goals=(
            NutrientGoal(nutrient=Nutrient.sodium, constraint=ConstraintValue.at_most(5.0)),
        ),
        ph_constraint=ConstraintValue.at_least(7.0),
        include_diets=frozenset({"Halal"}),
        include_allergens=frozenset({Allergen.nuts}),
        exclude_allergens=frozenset({Allergen.milk}),
    )

    merged = unify(intent, mapped)

    assert merged.nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.sodium, constraint=ConstraintValue.at_most(5.0)),
        NutrientGoal(nutrient=Nutrient.fiber, constraint=ConstraintValue.high()),
    )
    assert merged.diets == {"Vegan", "Halal"}
    assert merged.diet_filter == DietType.vegan
    assert merged.allergen_inclusions == {Allergen.nuts}
    assert merged.allergen_exclusions == {Allergen.milk}
    assert merged.ph_constraint == ConstraintValue.at_least(7.0)
    assert merged.target_consumer_age == 12.0
    assert merged.text_tokens == {"soup"}


def test_synthetic_knowledge_base() -> None:
    kb = StaticKnowledgeBase(
        nutrients={"zing": Nutrient.zinc},
        diets={},
        diet_synonyms={},
        ingredient_diets={},
        allergens={},
    )

    intent = compile_query("high zing", kb)
    assert intent.nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.zinc, constraint=ConstraintValue.high()),
    )
    assert compile_query("vegan sodium", kb).diets == frozenset()


@pytest.mark.parametrize("text", ["5 max sodium", "sodium 5 max", "sodium max 5"])
def test_trailing_and_leading_max(kb, text: str) -> None:
    assert compile_query(text, kb).goals_for(Nutrient.sodium) == [ConstraintValue.at_most(5.0)]


@pytest.mark.parametrize(
    "text", ["protein between 5 and 10", "protein from 5 to 10", "between 5 and 10 protein"]
)
def test_subject_first_ranges(kb, text: str) -> None:
    assert compile_query(text, kb).goals_for(Nutrient.protein) == [
        ConstraintValue.between(5.0, 10.0)
    ]


def test_trailing_less_never_asks_for_more(kb) -> None:
    assert compile_query("sugar less", kb).goals_for(Nutrient.total_sugar) == [
        ConstraintValue.below(0.5)
    ]


@pytest.mark.parametrize("text", ["ph between 6 and 7", "between 6 and 7 ph"])
def test_ph_ranges(kb, text: str) -> None:
    assert compile_query(text, kb).ph_constraint == ConstraintValue.between(6.0, 7.0)


def test_unify_keeps_numeric_tokenizer_goal_over_qualitative_mapper_goal() -> None:
    intent = SearchIntent(
        nutrient_goals=(
            NutrientGoal(nutrient=Nutrient.protein, constraint=ConstraintValue.between(5.0, 10.0)),
            NutrientGoal(nutrient=Nutrient.fiber, constraint=ConstraintValue.high()),
        ),
    )
    mapped = ConstraintMapperResult(
        nutrient_goals=(
            NutrientGoal(nutrient=Nutrient.protein, constraint=ConstraintValue.high()),
            NutrientGoal(nutrient=Nutrient.fiber, constraint=ConstraintValue.low()),
        ),
    )

    merged = unify(intent, mapped)

    assert merged.goals_for(Nutrient.protein) == [ConstraintValue.between(5.0, 10.0)]
    assert merged.goals_for(Nutrient.fiber) == [ConstraintValue.low()]


def test_tokenizer_only_mode_splits_value_first_chains(kb) -> None:
    intent = compile_query(
        "more than 10 vitamin c more than 14 fat", kb, use_constraint_engine=False
    )
    assert intent.nutrient_goals == (
        NutrientGoal(nutrient=Nutrient.vitamin_c, constraint=ConstraintValue.above(10.0)),
        NutrientGoal(nutrient=Nutrient.total_fat, constraint=ConstraintValue.above(14.0)),
    )
