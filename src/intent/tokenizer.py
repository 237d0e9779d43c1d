"""Single-pass contextual parser for compact, keyword-style queries.

The tokenizer normalizes the query itself, splits it into words and walks them once, keeping a
small amount of state:

    - `active_op`: the last operator marker not yet bound to a number.
    - `context`: the subject a following number applies to (a nutrient, pH, or nothing).
    - `pending`: `(operator, value)` pairs seen before any subject ("> 10 protein").
    - `implicit_value`: a bare number seen before any subject ("20 protein").

Any free-text word is a hard boundary and clears all of it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum

from src.intent.normalize import normalize_query
from src.intent.schema import (
    OPERATOR_MARKERS,
    ComparisonOperator,
    ConstraintKind,
    ConstraintValue,
    NutrientGoal,
    SearchIntent,
)
from src.knowledge.base import KnowledgeBase
from src.knowledge.vocabulary import Allergen, DietType, Nutrient, PhType

logger = logging.getLogger(__name__)

_WORD_SPLIT_RE = re.compile(r"[^a-z0-9_.\-+:]+")
_WORD_EDGES = ".:-+"
_NUMBER_RE = re.compile(r"^(\d+(?:\.\d+)?)(?:_?(?:percent|mcg|mg|ug|g|kcal|kg|iu|ml))?$")

NUTRIENT_TOLERANCE = 0.5
PH_TOLERANCE = 0.2
SUFFIX_NEGATION_MAX = 0.5
PH_ACIDIC_MAX = 6.0
PH_ALKALINE_MIN = 7.0
PH_NEUTRAL_RANGE = (6.8, 7.2)

_ALLERGEN_WORDS = frozenset({"allergen", "allergens"})
_ACID_WORDS = frozenset({"acid", "acidity"})

_INVERTED: dict[ComparisonOperator, ComparisonOperator] = {
    ComparisonOperator.lt: ComparisonOperator.gt,
    ComparisonOperator.lte: ComparisonOperator.gte,
    ComparisonOperator.gt: ComparisonOperator.lt,
    ComparisonOperator.gte: ComparisonOperator.lte,
}

_PH_MARKERS: dict[str, PhType] = {
    "_ph_acidic_": PhType.acidic,
    "_ph_alkaline_": PhType.alkaline,
    "_ph_neutral_": PhType.neutral,
}


class Context(StrEnum):
    """What a number seen next would apply to."""

    none = "none"
    nutrient = "nutrient"
    ph = "ph"


def split_words(text: str) -> list[str]:
    """Split normalized text into words, trimming stray edge punctuation."""

    words = []
    for raw in _WORD_SPLIT_RE.split(text):
        word = raw.strip(_WORD_EDGES)
        if word:
            words.append(word)
    return words


def parse_number(word: str) -> float | None:
    match = _NUMBER_RE.match(word)
    if match is None:
        return None
    return float(match.group(1))


def process_word(word: str, kb: KnowledgeBase) -> str:
    """Stem a free-text word (exceptions first, then a trailing "s") and apply synonyms."""

    stemmed = kb.stem_exception(word)
    if stemmed is None:
        stemmed = word
        if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
            stemmed = word[:-1]
    return kb.synonym(stemmed) or stemmed


def goal_value(
        op: ComparisonOperator, value: float, tolerance: float = NUTRIENT_TOLERANCE
) -> ConstraintValue | None:
    """Convert an operator and a number into a rule; `eq` becomes a narrow range."""

    if op == ComparisonOperator.lt:
        return ConstraintValue.below(value)
    if op == ComparisonOperator.lte:
        return ConstraintValue.at_most(value)
    if op == ComparisonOperator.gt:
        return ConstraintValue.above(value)
    if op == ComparisonOperator.gte:
        return ConstraintValue.at_least(value)
    if op == ComparisonOperator.eq:
        return ConstraintValue.between(max(0.0, value - tolerance), value + tolerance)
    if op == ComparisonOperator.neq:
        return ConstraintValue.other_than(value)
    return None


def ph_value(ph_type: PhType) -> ConstraintValue:
    if ph_type == PhType.acidic:
        return ConstraintValue.at_most(PH_ACIDIC_MAX)
    if ph_type == PhType.alkaline:
        return ConstraintValue.at_least(PH_ALKALINE_MIN)
    return ConstraintValue.between(*PH_NEUTRAL_RANGE)


def _bias_value(bias: str | None) -> ConstraintValue:
    if bias == "low":
        return ConstraintValue.low()
    if bias == "lowest":
        return ConstraintValue.lowest()
    if bias == "highest":
        return ConstraintValue.highest()
    return ConstraintValue.high()


@dataclass
class IntentBuilder:
    """Mutable parse state for one query; `build()` returns the frozen `SearchIntent`."""

    kb: KnowledgeBase
    available_diets: frozenset[str] = frozenset()

    text_tokens: set[str] = field(default_factory=set)
    negative_tokens: set[str] = field(default_factory=set)
    nutrient_goals: list[NutrientGoal] = field(default_factory=list)
    diets: set[str] = field(default_factory=set)
    diet_filter: DietType | None = None
    excluded_diets: set[str] = field(default_factory=set)
    age_months: float | None = None
    allergen_exclusions: set[Allergen] = field(default_factory=set)
    exclude_all_allergens: bool = False
    ph_constraint: ConstraintValue | None = None

    active_op: ComparisonOperator | None = None
    context: Context = Context.none
    context_nutrient: Nutrient | None = None
    ph_inverted: bool = False
    ph_bound_in_context: bool = False
    pending: list[tuple[ComparisonOperator, float]] = field(default_factory=list)
    implicit_value: float | None = None

    # --- state helpers ---------------------------------------------------------------------

    def reset(self) -> None:
        if self.pending or self.implicit_value is not None:
            logger.debug(
                "discarding unbound values pending=%s implicit=%s",
                self.pending,
                self.implicit_value,
            )
        self.active_op = None
        self.context = Context.none
        self.context_nutrient = None
        self.ph_inverted = False
        self.ph_bound_in_context = False
        self.pending = []
        self.implicit_value = None

    def close_context(self) -> None:
        """End a value-first phrase ("> 10 protein"): the next number starts a new one."""

        self.context = Context.none
        self.context_nutrient = None

    def add_diet(self, name: str) -> None:
        self.diets.add(name)
        if self.diet_filter is None:
            self.diet_filter = DietType.from_name(name)

    def add_goal(self, nutrient: Nutrient, value: ConstraintValue) -> None:
        """Append a goal, folding `min(a)` directly followed by `max(b)` into `range(a, b)`."""

        if self.nutrient_goals:
            last = self.nutrient_goals[-1]
            if (
                    last.nutrient == nutrient
                    and last.constraint.kind == ConstraintKind.min
                    and value.kind == ConstraintKind.max
                    and last.constraint.value is not None
                    and value.value is not None
            ):
                merged = ConstraintValue.between(last.constraint.value, value.value)
                self.nutrient_goals[-1] = NutrientGoal(nutrient=nutrient, constraint=merged)
                return
        self.nutrient_goals.append(NutrientGoal(nutrient=nutrient, constraint=value))

    def available_free_diet(self, word: str) -> str | None:
        """Match "<word>-Free" against the caller's dynamic diet names."""

        wanted = f"{word}-free".lower()
        for name in sorted(self.available_diets):
            if name.lower() == wanted:
                return name
        return None

    def available_diet(self, word: str) -> str | None:
        key = word.replace("_", " ").lower()
        for name in sorted(self.available_diets):
            if name.lower() == key:
                return name
        return None

    def lookup_diet(self, word: str) -> str | None:
        diet = self.kb.diet(word)
        if diet is not None:
            return diet.value
        return self.kb.diet_synonym(word) or self.available_diet(word)

    # --- word handlers ---------------------------------------------------------------------

    def handle_ph_context_number(self, op: ComparisonOperator | None, value: float) -> None:
        """Bind a number to pH; `min(a)` directly followed by `max(b)` becomes `range(a, b)`."""

        if op is None:
            self.ph_constraint = ConstraintValue.between(
                max(0.0, value - PH_TOLERANCE), value + PH_TOLERANCE
            )
            return
        if self.ph_inverted:
            op = _INVERTED.get(op, op)
        result = goal_value(op, value, PH_TOLERANCE)
        if result is None:
            return
        last = self.ph_constraint
        if (
                self.ph_bound_in_context
                and last is not None
                and last.kind == ConstraintKind.min
                and result.kind == ConstraintKind.max
                and last.value is not None
                and result.value is not None
        ):
            result = ConstraintValue.between(last.value, result.value)
        self.ph_constraint = result
        self.ph_bound_in_context = True

    def handle_number(self, value: float, op: ComparisonOperator | None) -> None:
        if self.context == Context.nutrient and self.context_nutrient is not None:
            if op is None:
                result = ConstraintValue.between(
                    max(0.0, value - NUTRIENT_TOLERANCE), value + NUTRIENT_TOLERANCE
                )
            else:
                result = goal_value(op, value)
            if result is not None:
                self.add_goal(self.context_nutrient, result)
        elif self.context == Context.ph:
            self.handle_ph_context_number(op, value)
        elif op is not None:
            self.pending.append((op, value))
        else:
            self.implicit_value = value
        self.active_op = None

    def handle_negation(self, target: str | None) -> None:
        """Resolve what a negation word applies to."""

        kb = self.kb
        if target is None:
            return
        if target in _ALLERGEN_WORDS:
            self.exclude_all_allergens = True
            return

        allergen = kb.allergen(target)
        if allergen is not None:
            self.allergen_exclusions.add(allergen)
            return

        diet = kb.diet(target)
        if diet is not None:
            self.excluded_diets.add(diet.value)
            return
        synonym = kb.diet_synonym(target)
        if synonym is not None:
            self.excluded_diets.add(synonym)
            return

        avoiding = kb.ingredient_diet(target) or self.available_free_diet(target)
        if avoiding is not None:
            self.add_diet(avoiding)
            return

        nutrient = kb.resolve_nutrient(target)
        if nutrient is not None:
            self.add_goal(nutrient, ConstraintValue.below(SUFFIX_NEGATION_MAX))
            return

        self.negative_tokens.add(process_word(target, kb))

    def handle_nutrient(self, nutrient: Nutrient, words: list[str], index: int) -> int:
        """Bind a nutrient word; returns how many following words were consumed."""

        kb = self.kb
        self.context = Context.nutrient
        self.context_nutrient = nutrient

        if self.pending:
            for op, value in self.pending:
                result = goal_value(op, value)
                if result is not None:
                    self.add_goal(nutrient, result)
            self.pending = []
            self.implicit_value = None
            self.close_context()
            return 0

        if self.implicit_value is not None:
            value = self.implicit_value
            self.implicit_value = None
            self.add_goal(
                nutrient,
                ConstraintValue.between(
                    max(0.0, value - NUTRIENT_TOLERANCE), value + NUTRIENT_TOLERANCE
                ),
            )
            self.close_context()
            return 0

        following = words[index + 1] if index + 1 < len(words) else None

        if following is not None and kb.is_suffix_negation(following):
            self.add_goal(nutrient, ConstraintValue.below(SUFFIX_NEGATION_MAX))
            self.context = Context.none
            self.context_nutrient = None
            return 1

        if following is not None and (
                parse_number(following) is not None or following in OPERATOR_MARKERS
        ):
            # A value follows; the number handler will bind it.
            return 0

        if self.active_op is not None:
            op = self.active_op
            self.active_op = None
            if op in (ComparisonOperator.lt, ComparisonOperator.lte):
                self.add_goal(nutrient, ConstraintValue.low())
            elif op in (ComparisonOperator.gt, ComparisonOperator.gte):
                self.add_goal(nutrient, ConstraintValue.high())
            return 0

        previous = words[index - 1] if index > 0 else None
        bias = kb.bias_of(previous) if previous is not None else None
        self.add_goal(nutrient, _bias_value(bias))
        return 0

    def negation_target(self, words: list[str], index: int) -> tuple[str | None, int]:
        """Return the word a negation at `index` points to and the index of that word."""

        cursor = index + 1
        while cursor < len(words) and self.kb.is_negation_filler(words[cursor]):
            cursor += 1
        if cursor >= len(words):
            return None, cursor
        return words[cursor], cursor

    def is_negatable(self, word: str) -> bool:
        kb = self.kb
        return (
                kb.allergen(word) is not None
                or kb.ingredient_diet(word) is not None
                or self.available_free_diet(word) is not None
        )

    def feed(self, words: list[str]) -> None:
        kb = self.kb
        index = 0
        while index < len(words):
            word = words[index]
            following = words[index + 1] if index + 1 < len(words) else None

            diet = self.lookup_diet(word)
            if diet is not None:
                self.add_diet(diet)
                self.reset()
                index += 1
                continue

            persona_age = kb.persona_age(word)
            if persona_age is not None:
                if self.age_months is None:
                    self.age_months = persona_age
                index += 1
                continue

            marker = _PH_MARKERS.get(word)
            if marker is not None:
                self.ph_constraint = ph_value(marker)
                self.reset()
                index += 1
                continue

            ph_type = kb.ph_term(word)
            if ph_type is not None:
                self.ph_constraint = ph_value(ph_type)
                self.reset()
                index += 1
                continue

            if kb.is_ph_keyword(word):
                self.context = Context.ph
                self.context_nutrient = None
                self.ph_inverted = word in _ACID_WORDS
                self.ph_bound_in_context = False
                for op, value in self.pending:
                    self.handle_ph_context_number(op, value)
                self.pending = []
                index += 1
                continue

            op = OPERATOR_MARKERS.get(word)
            if op is not None:
                if self.context == Context.none and self.implicit_value is not None:
                    # "5 max sodium": the operator trails its number.
                    self.pending.append((op, self.implicit_value))
                    self.implicit_value = None
                else:
                    self.active_op = op
                index += 1
                continue

            value = parse_number(word)
            if value is not None:
                op = self.active_op
                consumed = 1
                if op is None and following in OPERATOR_MARKERS:
                    op = OPERATOR_MARKERS[following]
                    consumed = 2
                self.handle_number(value, op)
                index += consumed
                continue

            nutrient = kb.resolve_nutrient(word)
            if nutrient is not None:
                index += 1 + self.handle_nutrient(nutrient, words, index)
                continue

            if kb.is_negation(word):
                target, target_index = self.negation_target(words, index)
                self.handle_negation(target)
                self.reset()
                index = target_index + 1
                continue

            if kb.is_stop_word(word) or kb.is_operator_keyword_prefix(word):
                index += 1
                continue

            suffix_negated = following is not None and kb.is_suffix_negation(following)
            if suffix_negated and self.is_negatable(word):
                # "gluten free", "egg free"
                self.handle_negation(word)
                self.reset()
                index += 2
                continue

            self.text_tokens.add(process_word(word, kb))
            self.reset()
            index += 1

        self.reset()

    def build(self) -> SearchIntent:
        return SearchIntent(
            text_tokens=frozenset(self.text_tokens),
            negative_tokens=frozenset(self.negative_tokens),
            nutrient_goals=tuple(self.nutrient_goals),
            diets=frozenset(self.diets),
            diet_filter=self.diet_filter,
            excluded_diets=frozenset(self.excluded_diets),
            target_consumer_age=self.age_months,
            allergen_exclusions=frozenset(self.allergen_exclusions),
            exclude_all_allergens=self.exclude_all_allergens,
            ph_constraint=self.ph_constraint,
        )


def parse_search_intent(
        query: str, kb: KnowledgeBase, available_diets: frozenset[str] = frozenset()
) -> SearchIntent:
    """Parse a keyword-style query straight into a `SearchIntent`."""

    normalized = normalize_query(query, kb)
    builder = IntentBuilder(kb=kb, available_diets=frozenset(available_diets))
    builder.age_months = normalized.age_months
    builder.feed(split_words(normalized.text))
    intent = builder.build()
    logger.debug("tokenizer intent for %r: %s", query, intent)
    return intent
