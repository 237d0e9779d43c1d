"""Fold parsed constraints into a `ConstraintMapperResult`.

Every constraint is classified through the knowledge base and routed by subject kind. Nutrient
goals are kept in input order and never merged here; pH keeps the last constraint seen.

Negation scope is decided by `is_negated`, a phrase-template check over the constraint's matched
text. It is a heuristic, so its accepted phrasings live in `NEGATION_TEMPLATES` where they can be
read and extended in one place.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.intent.schema import (
    ComparisonOperator,
    ConstraintMapperResult,
    ConstraintValue,
    DietaryConstraint,
    NutrientGoal,
)
from src.knowledge.base import KnowledgeBase, normalize_key
from src.knowledge.tables import GRAM_SCALE_NUTRIENTS, MICROGRAM_SCALE_NUTRIENTS
from src.knowledge.vocabulary import Allergen, Nutrient, SubjectKind

logger = logging.getLogger(__name__)

# `{s}` is replaced by the subject (and its plural forms).
NEGATION_TEMPLATES: tuple[str, ...] = (
    "no {s}",
    "without {s}",
    "{s} free",
    "free of {s}",
    "free from {s}",
    "not {s}",
    "non {s}",
    "zero {s}",
    "avoid {s}",
    "exclude {s}",
    "excluding {s}",
    "except {s}",
    "minus {s}",
)

# How far (in characters) "no" may sit before the subject in the fallback check.
NEGATION_PROXIMITY = 12
_PROXIMITY_GAP_WORDS = frozenset({"added", "any", "extra", "of", "the"})

SOFT_ZERO_ENERGY = 5.0
SOFT_ZERO_GRAMS = 0.5
SOFT_ZERO_MILLIGRAMS = 5.0
SOFT_ZERO_MICROGRAMS = 50.0

# Product policy: "low fat" is a hard ceiling, not a soft bias.
LOW_FAT_MAX = 12.0

_EQUALITY_TOLERANCE = 0.1

_MULTISPACE_RE = re.compile(r"\s+")


def _plain(text: str) -> str:
    return _MULTISPACE_RE.sub(" ", normalize_key(text)).strip()


def _subject_forms(subject: str) -> list[str]:
    forms = [subject, f"{subject}s", f"{subject}es"]
    if subject.endswith("s") and len(subject) > 3:
        forms.append(subject[:-1])
    return forms


def is_negated(constraint: DietaryConstraint) -> bool:
    """Whether the constraint's matched text negates its subject.

    Checks `NEGATION_TEMPLATES` first, then falls back to a "no" placed at most
    `NEGATION_PROXIMITY` characters before the subject with only filler words in between
    ("no added sugar").
    """

    text = _plain(constraint.original_text)
    subject = _plain(constraint.subject)
    if not text or not subject:
        return False

    for form in _subject_forms(subject):
        escaped = re.escape(form)
        for template in NEGATION_TEMPLATES:
            phrase = re.escape(template).replace(re.escape("{s}"), escaped)
            if re.search(rf"\b{phrase}\b", text):
                return True

        for match in re.finditer(rf"\bno\s+(?P<gap>(?:[a-z]+\s+)*?){escaped}\b", text):
            gap = match.group("gap")
            if len(gap) <= NEGATION_PROXIMITY and set(gap.split()) <= _PROXIMITY_GAP_WORDS:
                return True

    return False


def soft_zero_threshold(nutrient: Nutrient) -> float:
    """Upper bound used for "no <nutrient>"; real foods rarely hold exactly zero."""

    if nutrient == Nutrient.energy:
        return SOFT_ZERO_ENERGY
    if nutrient in GRAM_SCALE_NUTRIENTS:
        return SOFT_ZERO_GRAMS
    if nutrient in MICROGRAM_SCALE_NUTRIENTS:
        return SOFT_ZERO_MICROGRAMS
    return SOFT_ZERO_MILLIGRAMS


def to_constraint_value(constraint: DietaryConstraint) -> ConstraintValue | None:
    """Generic operator-to-rule conversion shared by nutrients and pH."""

    op = constraint.comparison
    value = constraint.value

    if value is None:
        if op in (ComparisonOperator.lt, ComparisonOperator.lte):
            return ConstraintValue.low()
        if op in (ComparisonOperator.gt, ComparisonOperator.gte, ComparisonOperator.eq):
            return ConstraintValue.high()
        return None

    if constraint.value2 is not None:
        return ConstraintValue.between(value, constraint.value2)

    if op == ComparisonOperator.lt:
        return ConstraintValue.below(value)
    if op == ComparisonOperator.lte:
        return ConstraintValue.at_most(value)
    if op == ComparisonOperator.gt:
        return ConstraintValue.above(value)
    if op == ComparisonOperator.gte:
        return ConstraintValue.at_least(value)
    if op == ComparisonOperator.eq:
        return ConstraintValue.between(
            max(0.0, value - _EQUALITY_TOLERANCE), value + _EQUALITY_TOLERANCE
        )
    if op == ComparisonOperator.neq:
        return ConstraintValue.other_than(value)
    return ConstraintValue.at_least(value)


def _superlative(text: str, kb: KnowledgeBase) -> ConstraintValue | None:
    words = _plain(text).split()
    for index, word in enumerate(words):
        if index > 0 and words[index - 1] == "at":
            # "at least" / "at most" are bounds, not superlatives.
            continue
        bias = kb.bias_of(word)
        if bias == "lowest":
            return ConstraintValue.lowest()
        if bias == "highest":
            return ConstraintValue.highest()
    return None


def map_nutrient(
        constraint: DietaryConstraint, nutrient: Nutrient, kb: KnowledgeBase
) -> ConstraintValue | None:
    """Resolve one nutrient constraint, applying negation and abstract defaults."""

    op = constraint.comparison
    negated = is_negated(constraint)

    if constraint.is_abstract:
        if negated:
            return ConstraintValue.at_most(soft_zero_threshold(nutrient))
        superlative = _superlative(constraint.original_text, kb)
        if superlative is not None:
            return superlative
        if nutrient == Nutrient.total_fat and op in (
                ComparisonOperator.lt,
                ComparisonOperator.lte,
        ):
            return ConstraintValue.at_most(LOW_FAT_MAX)
        return to_constraint_value(constraint)

    if (
            negated
            and constraint.value == 0.0
            and constraint.value2 is None
            and op
            in (
                ComparisonOperator.eq,
                ComparisonOperator.lt,
                ComparisonOperator.lte,
                ComparisonOperator.unknown,
            )
    ):
        return ConstraintValue.at_most(soft_zero_threshold(nutrient))

    return to_constraint_value(constraint)


def wants_presence(constraint: DietaryConstraint) -> bool | None:
    """Presence test for diet and allergen subjects.

    Returns True to include, False to exclude and None when the constraint says neither.
    """

    if is_negated(constraint):
        return False

    op = constraint.comparison
    if op in (ComparisonOperator.gt, ComparisonOperator.gte):
        return True
    if op in (ComparisonOperator.lt, ComparisonOperator.lte):
        return False
    if op == ComparisonOperator.eq:
        return constraint.value is None or constraint.value != 0.0
    return None


@dataclass
class MapperAccumulator:
    """Mutable collector; `build()` freezes it into a `ConstraintMapperResult`."""

    nutrient_goals: list[NutrientGoal] = field(default_factory=list)
    ph_constraint: ConstraintValue | None = None
    include_diets: set[str] = field(default_factory=set)
    exclude_diets: set[str] = field(default_factory=set)
    include_allergens: set[Allergen] = field(default_factory=set)
    exclude_allergens: set[Allergen] = field(default_factory=set)

    def build(self) -> ConstraintMapperResult:
        return ConstraintMapperResult(
            nutrient_goals=tuple(self.nutrient_goals),
            ph_constraint=self.ph_constraint,
            include_diets=frozenset(self.include_diets),
            exclude_diets=frozenset(self.exclude_diets),
            include_allergens=frozenset(self.include_allergens),
            exclude_allergens=frozenset(self.exclude_allergens),
        )


def map_constraints(
        constraints: Iterable[DietaryConstraint], kb: KnowledgeBase
) -> ConstraintMapperResult:
    """Classify every constraint and accumulate the mapped goals."""

    acc = MapperAccumulator()

    for constraint in constraints:
        subject = kb.classify(constraint.subject)

        if subject.kind == SubjectKind.nutrient and subject.nutrient is not None:
            value = map_nutrient(constraint, subject.nutrient, kb)
            if value is None:
                logger.debug("dropping nutrient constraint %s", constraint.describe())
                continue
            acc.nutrient_goals.append(NutrientGoal(nutrient=subject.nutrient, constraint=value))

        elif subject.kind == SubjectKind.ph:
            value = to_constraint_value(constraint)
            if value is not None:
                acc.ph_constraint = value

        elif subject.kind == SubjectKind.diet and subject.diet is not None:
            presence = wants_presence(constraint)
            if presence is True:
                acc.include_diets.add(subject.diet)
            elif presence is False:
                acc.exclude_diets.add(subject.diet)

        elif subject.kind == SubjectKind.allergen and subject.allergen is not None:
            presence = wants_presence(constraint)
            if presence is True:
                acc.include_allergens.add(subject.allergen)
            elif presence is False:
                acc.exclude_allergens.add(subject.allergen)

        else:
            logger.debug("dropping constraint with unknown subject %r", constraint.subject)

    return acc.build()
