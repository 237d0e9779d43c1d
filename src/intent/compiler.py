"""Query compiler entry points.

Two independent parsers read the same query:

    - the candidate path (`extract_candidates` -> `parse_candidates` -> `map_constraints`), tuned
      for prose-like queries;
    - the tokenizer path (`parse_search_intent`), tuned for compact keyword queries.

`compile_query` runs both and unifies them into one `SearchIntent`. All functions are pure: no
I/O, no shared mutable state beyond the read-only knowledge base.
"""

from __future__ import annotations

import logging

from src.intent.constraint_parser import parse_candidates
from src.intent.extractor import extract_candidates
from src.intent.mapper import map_constraints
from src.intent.schema import (
    ConstraintMapperResult,
    DietaryConstraint,
    NutrientGoal,
    SearchIntent,
)
from src.intent.tokenizer import parse_search_intent
from src.knowledge.base import KnowledgeBase
from src.knowledge.vocabulary import DietType, Nutrient

logger = logging.getLogger(__name__)


def extract_constraints(text: str, kb: KnowledgeBase) -> list[DietaryConstraint]:
    """Run extraction and parsing; returns constraints in query order."""

    return parse_candidates(extract_candidates(text, kb), kb)


def compile_constraints(text: str, kb: KnowledgeBase) -> ConstraintMapperResult:
    """Compile a query through the candidate path only."""

    return map_constraints(extract_constraints(text, kb), kb)


def unify(intent: SearchIntent, mapped: ConstraintMapperResult) -> SearchIntent:
    """Merge the candidate-path result into a tokenizer intent.

    Mapper goals replace tokenizer goals for the same nutrient, except that a qualitative mapper
    goal (high, low, highest, lowest) never replaces a tokenizer goal carrying a number. Diet and
    allergen sets are unioned. The mapper's pH goal wins when it has one. Age and free-text tokens
    come from the tokenizer.
    """

    numeric_nutrients = {
        goal.nutrient
        for goal in intent.nutrient_goals
        if not goal.constraint.is_qualitative
    }
    goals: list[NutrientGoal] = []
    mapped_nutrients: set[Nutrient] = set()
    for goal in mapped.nutrient_goals:
        if goal.constraint.is_qualitative and goal.nutrient in numeric_nutrients:
            logger.debug(
                "keeping numeric tokenizer goal for %s over %s", goal.nutrient, goal.constraint.kind
            )
            continue
        goals.append(goal)
        mapped_nutrients.add(goal.nutrient)
    goals.extend(goal for goal in intent.nutrient_goals if goal.nutrient not in mapped_nutrients)

    diet_filter = intent.diet_filter
    if diet_filter is None:
        for name in sorted(mapped.include_diets):
            diet_filter = DietType.from_name(name)
            if diet_filter is not None:
                break

    return SearchIntent(
        text_tokens=intent.text_tokens,
        negative_tokens=intent.negative_tokens,
        nutrient_goals=tuple(goals),
        diets=intent.diets | mapped.include_diets,
        diet_filter=diet_filter,
        excluded_diets=intent.excluded_diets | mapped.exclude_diets,
        target_consumer_age=intent.target_consumer_age,
        allergen_exclusions=intent.allergen_exclusions | mapped.exclude_allergens,
        allergen_inclusions=intent.allergen_inclusions | mapped.include_allergens,
        exclude_all_allergens=intent.exclude_all_allergens,
        ph_constraint=mapped.ph_constraint or intent.ph_constraint,
    )


def compile_query(
        text: str,
        kb: KnowledgeBase,
        available_diets: frozenset[str] = frozenset(),
        *,
        use_constraint_engine: bool = True,
) -> SearchIntent:
    """Compile a free-form dietary query into a `SearchIntent`.

    When `use_constraint_engine` is false only the tokenizer path runs.
    """

    intent = parse_search_intent(text, kb, available_diets)
    if not use_constraint_engine:
        return intent

    mapped = compile_constraints(text, kb)
    logger.debug("candidate path for %r: %s", text, mapped)
    return unify(intent, mapped)
