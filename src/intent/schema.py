"""Compiled query schema (Pydantic models).

This schema is the contract between the query compiler and the food-catalog filter/scorer. Every
model is frozen: a compiled query is a value, created fresh per call and never mutated.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.knowledge.vocabulary import Allergen, DietType, Nutrient


class ComparisonOperator(StrEnum):
    """Comparison tags; each is an independent predicate, no ordering implied."""

    lt = "<"
    lte = "<="
    gt = ">"
    gte = ">="
    eq = "="
    neq = "!="
    unknown = "?"


OPERATOR_MARKERS: dict[str, ComparisonOperator] = {
    "_op_lt_": ComparisonOperator.lt,
    "_op_lte_": ComparisonOperator.lte,
    "_op_gt_": ComparisonOperator.gt,
    "_op_gte_": ComparisonOperator.gte,
    "_op_eq_": ComparisonOperator.eq,
    "_op_neq_": ComparisonOperator.neq,
}


class DietaryConstraint(BaseModel):
    """One parsed constraint before classification.

    A constraint without `value` is abstract (it came from a word such as "high" or "free") and is
    resolved against subject defaults by the mapper.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    original_text: str
    subject: str
    comparison: ComparisonOperator
    value: float | None = None
    value2: float | None = None
    unit: str | None = None

    @model_validator(mode="after")
    def validate_values(self) -> DietaryConstraint:
        """A second value only makes sense next to a first one."""

        if self.value2 is not None and self.value is None:
            raise ValueError("value2 requires value")
        return self

    @property
    def is_abstract(self) -> bool:
        return self.value is None

    def describe(self) -> str:
        """Short human-readable form, e.g. `sodium <= 5 mg`."""

        if self.value is None:
            return f"{self.subject} {self.comparison.value} (abstract)"
        text = f"{self.subject} {self.comparison.value} {self.value:g}"
        if self.value2 is not None:
            text += f"..{self.value2:g}"
        if self.unit:
            text += f" {self.unit}"
        return text


class ConstraintKind(StrEnum):
    """Shapes a resolved filter/sort rule can take."""

    high = "high"
    low = "low"
    min = "min"
    max = "max"
    strict_min = "strict_min"
    strict_max = "strict_max"
    range = "range"
    not_equal = "not_equal"
    lowest = "lowest"
    highest = "highest"


_QUALITATIVE_KINDS = frozenset(
    {ConstraintKind.high, ConstraintKind.low, ConstraintKind.lowest, ConstraintKind.highest}
)


class ConstraintValue(BaseModel):
    """Filter or sort rule for one nutrient (or pH).

    `value` holds the bound for bound kinds and the lower end of a range; `upper` is only used by
    `range`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ConstraintKind
    value: float | None = None
    upper: float | None = None

    @model_validator(mode="after")
    def validate_shape(self) -> ConstraintValue:
        """Enforce exactly the fields each kind needs."""

        if self.kind in _QUALITATIVE_KINDS:
            if self.value is not None or self.upper is not None:
                raise ValueError(f"{self.kind} takes no value")
        elif self.kind == ConstraintKind.range:
            if self.value is None or self.upper is None:
                raise ValueError("range requires value and upper")
            if self.value > self.upper:
                raise ValueError("range requires value <= upper")
        else:
            if self.value is None:
                raise ValueError(f"{self.kind} requires value")
            if self.upper is not None:
                raise ValueError(f"{self.kind} takes no upper bound")
        return self

    @property
    def is_qualitative(self) -> bool:
        """True for rules that carry no number (high, low, highest, lowest)."""

        return self.kind in _QUALITATIVE_KINDS

    @classmethod
    def high(cls) -> ConstraintValue:
        return cls(kind=ConstraintKind.high)

    @classmethod
    def low(cls) -> ConstraintValue:
        return cls(kind=ConstraintKind.low)

    @classmethod
    def highest(cls) -> ConstraintValue:
        return cls(kind=ConstraintKind.highest)

    @classmethod
    def lowest(cls) -> ConstraintValue:
        return cls(kind=ConstraintKind.lowest)

    @classmethod
    def at_least(cls, value: float) -> ConstraintValue:
        return cls(kind=ConstraintKind.min, value=value)

    @classmethod
    def at_most(cls, value: float) -> ConstraintValue:
        return cls(kind=ConstraintKind.max, value=value)

    @classmethod
    def above(cls, value: float) -> ConstraintValue:
        return cls(kind=ConstraintKind.strict_min, value=value)

    @classmethod
    def below(cls, value: float) -> ConstraintValue:
        return cls(kind=ConstraintKind.strict_max, value=value)

    @classmethod
    def between(cls, a: float, b: float) -> ConstraintValue:
        """Inclusive range; the bounds may be given in either order."""

        low, high = (a, b) if a <= b else (b, a)
        return cls(kind=ConstraintKind.range, value=low, upper=high)

    @classmethod
    def other_than(cls, value: float) -> ConstraintValue:
        return cls(kind=ConstraintKind.not_equal, value=value)


class NutrientGoal(BaseModel):
    """A constraint on one nutrient."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    nutrient: Nutrient
    constraint: ConstraintValue


class ConstraintMapperResult(BaseModel):
    """Goals produced by the candidate-extraction path."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    nutrient_goals: tuple[NutrientGoal, ...] = ()
    ph_constraint: ConstraintValue | None = None
    include_diets: frozenset[str] = frozenset()
    exclude_diets: frozenset[str] = frozenset()
    include_allergens: frozenset[Allergen] = frozenset()
    exclude_allergens: frozenset[Allergen] = frozenset()


class SearchIntent(BaseModel):
    """Structured search request handed to the food-catalog filter."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text_tokens: frozenset[str] = frozenset()
    negative_tokens: frozenset[str] = frozenset()
    nutrient_goals: tuple[NutrientGoal, ...] = ()
    diets: frozenset[str] = frozenset()
    diet_filter: DietType | None = None
    excluded_diets: frozenset[str] = frozenset()
    target_consumer_age: float | None = Field(default=None, ge=0)
    allergen_exclusions: frozenset[Allergen] = frozenset()
    allergen_inclusions: frozenset[Allergen] = frozenset()
    exclude_all_allergens: bool = False
    ph_constraint: ConstraintValue | None = None

    def goals_for(self, nutrient: Nutrient) -> list[ConstraintValue]:
        """All constraints recorded for `nutrient`, in query order."""

        return [goal.constraint for goal in self.nutrient_goals if goal.nutrient == nutrient]


def search_intent_from_obj(obj: Any) -> SearchIntent:
    """Validate and parse a SearchIntent from an arbitrary decoded JSON object."""

    return SearchIntent.model_validate(obj)
