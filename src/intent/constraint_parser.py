"""Turn extraction candidates into canonical `DietaryConstraint` records.

Operator text is resolved with an exact phrase table first and then by word-level keyword
priority. Abstract candidates (no number) keep `value=None` for nutrients so that the mapper can
apply subject-specific defaults; only negation, diet/allergen presence and pH get concrete values
here.
"""

from __future__ import annotations

import logging
import re

from src.intent.extractor import NUMBER_WORDS, ExtractionCandidate
from src.intent.schema import ComparisonOperator, DietaryConstraint
from src.knowledge.base import KnowledgeBase, normalize_key
from src.knowledge.vocabulary import SubjectKind

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")

_EXACT_OPERATORS: dict[str, ComparisonOperator] = {
    "<": ComparisonOperator.lt,
    "<=": ComparisonOperator.lte,
    ">": ComparisonOperator.gt,
    ">=": ComparisonOperator.gte,
    "=": ComparisonOperator.eq,
    "==": ComparisonOperator.eq,
    "!=": ComparisonOperator.neq,
    "no more than": ComparisonOperator.lte,
    "not more than": ComparisonOperator.lte,
    "not exceeding": ComparisonOperator.lte,
    "up to": ComparisonOperator.lte,
    "at most": ComparisonOperator.lte,
    "limit to": ComparisonOperator.lte,
    "cap at": ComparisonOperator.lte,
    "no less than": ComparisonOperator.gte,
    "not less than": ComparisonOperator.gte,
    "at least": ComparisonOperator.gte,
    "less than": ComparisonOperator.lt,
    "fewer than": ComparisonOperator.lt,
    "lower than": ComparisonOperator.lt,
    "more than": ComparisonOperator.gt,
    "greater than": ComparisonOperator.gt,
    "higher than": ComparisonOperator.gt,
    "equal to": ComparisonOperator.eq,
    "not equal to": ComparisonOperator.neq,
}

# Checked in order; the first group sharing a word with the operator text wins.
_KEYWORD_PRIORITY: tuple[tuple[frozenset[str], ComparisonOperator], ...] = (
    (
        frozenset(
            {
                "no", "without", "free", "zero", "non", "not", "never", "nix", "none",
                "minus", "except", "avoid", "exclude", "excluding", "excepting", "lack", "lacks",
            }
        ),
        ComparisonOperator.eq,
    ),
    (
        frozenset(
            {
                "low", "lower", "lowest", "least", "less", "under", "below", "poor", "lite",
                "light", "reduced", "little", "minimal", "fewer",
            }
        ),
        ComparisonOperator.lt,
    ),
    (frozenset({"max", "maximum", "cap", "limit"}), ComparisonOperator.lte),
    (
        frozenset({"min", "minimum", "source", "contains", "containing", "has", "with"}),
        ComparisonOperator.gte,
    ),
    (
        frozenset(
            {
                "high", "higher", "highest", "most", "more", "rich", "greater", "over", "above",
                "exceeds", "exceeding", "heavy", "extra", "plenty", "lots",
            }
        ),
        ComparisonOperator.gt,
    ),
    (
        frozenset(
            {
                "equal", "equals", "exactly", "is", "around", "about", "approximately", "approx",
                "close", "neutral", "balanced", "normal",
            }
        ),
        ComparisonOperator.eq,
    ),
    (frozenset({"between"}), ComparisonOperator.gte),
)

ZERO_WORDS: frozenset[str] = _KEYWORD_PRIORITY[0][0]
_NEUTRAL_WORDS = frozenset({"neutral", "balanced", "normal"})
_ACID_SUBJECTS = frozenset({"acid", "acidic", "acidity"})
_ALKALINE_SUBJECTS = frozenset({"alkaline", "alkalinity", "alkalizing", "base", "basic"})

_INVERTED: dict[ComparisonOperator, ComparisonOperator] = {
    ComparisonOperator.lt: ComparisonOperator.gt,
    ComparisonOperator.lte: ComparisonOperator.gte,
    ComparisonOperator.gt: ComparisonOperator.lt,
    ComparisonOperator.gte: ComparisonOperator.lte,
}

PH_NEUTRAL_RANGE = (6.8, 7.2)
PH_HIGH_DEFAULT = 7.0
PH_LOW_DEFAULT = 6.0


def _words(text: str) -> set[str]:
    return set(re.findall(r"[a-z]+", text.lower()))


def parse_operator(text: str | None) -> ComparisonOperator:
    """Resolve operator or qualifier text to a comparison operator.

    Empty text means a bare mention and resolves to `eq`. Text that matches nothing resolves to
    `unknown`.
    """

    if text is None or not text.strip():
        return ComparisonOperator.eq

    key = " ".join(text.lower().split())
    exact = _EXACT_OPERATORS.get(key)
    if exact is not None:
        return exact

    words = _words(key)
    for keywords, op in _KEYWORD_PRIORITY:
        if words & keywords:
            return op
    return ComparisonOperator.unknown


def parse_number(text: str | None) -> float | None:
    """Parse digits or a number word; anything else is not a number."""

    if text is None:
        return None
    key = text.strip().lower()
    if key in NUMBER_WORDS:
        return NUMBER_WORDS[key]
    if _NUMBER_RE.match(key):
        return float(key)
    return None


def _is_zero_wording(text: str | None) -> bool:
    return bool(text) and bool(_words(text) & ZERO_WORDS)


def _ph_direction(op: ComparisonOperator) -> str | None:
    if op in (ComparisonOperator.lt, ComparisonOperator.lte):
        return "low"
    if op in (ComparisonOperator.gt, ComparisonOperator.gte):
        return "high"
    return None


def _abstract_ph(
        subject: str, operator_text: str | None, op: ComparisonOperator, original: str
) -> DietaryConstraint | None:
    words = _words(operator_text or "")
    if words & _NEUTRAL_WORDS or subject == "neutral":
        low, high = PH_NEUTRAL_RANGE
        return DietaryConstraint(
            original_text=original,
            subject="ph",
            comparison=ComparisonOperator.gte,
            value=low,
            value2=high,
        )

    direction = "low" if _is_zero_wording(operator_text) else _ph_direction(op)

    if subject in _ACID_SUBJECTS:
        # Acidity runs opposite to pH. A bare "acidic" asks for acidic food.
        wants_high_ph = direction == "low"
    elif subject in _ALKALINE_SUBJECTS:
        wants_high_ph = direction != "low"
    elif direction is not None:
        wants_high_ph = direction == "high"
    else:
        logger.debug("dropping bare pH mention %r", original)
        return None

    if wants_high_ph:
        return DietaryConstraint(
            original_text=original,
            subject="ph",
            comparison=ComparisonOperator.gte,
            value=PH_HIGH_DEFAULT,
        )
    return DietaryConstraint(
        original_text=original,
        subject="ph",
        comparison=ComparisonOperator.lte,
        value=PH_LOW_DEFAULT,
    )


def _ph_constraints(
        candidate: ExtractionCandidate, subject: str, op: ComparisonOperator
) -> list[DietaryConstraint]:
    original = candidate.matched_text
    value = parse_number(candidate.value_text)
    if value is None:
        constraint = _abstract_ph(subject, candidate.operator_text, op, original)
        return [constraint] if constraint is not None else []

    invert = subject in _ACID_SUBJECTS
    if invert:
        op = _INVERTED.get(op, op)

    value2 = parse_number(candidate.second_value_text)
    if value2 is not None and candidate.operator_text2:
        op2 = parse_operator(candidate.operator_text2)
        if invert:
            op2 = _INVERTED.get(op2, op2)
        return [
            DietaryConstraint(original_text=original, subject="ph", comparison=op, value=value),
            DietaryConstraint(original_text=original, subject="ph", comparison=op2, value=value2),
        ]

    return [
        DietaryConstraint(
            original_text=original,
            subject="ph",
            comparison=op,
            value=value,
            value2=value2,
            unit=candidate.unit_text,
        )
    ]


def parse_candidate(candidate: ExtractionCandidate, kb: KnowledgeBase) -> list[DietaryConstraint]:
    """Convert one candidate into zero, one or two constraints."""

    subject = normalize_key(candidate.subject_text)
    kind = kb.classify(subject).kind
    op = parse_operator(candidate.operator_text)

    if kind == SubjectKind.ph:
        return _ph_constraints(candidate, subject, op)

    original = candidate.matched_text
    value = parse_number(candidate.value_text)
    value2 = parse_number(candidate.second_value_text)

    if value is None:
        if candidate.value_text is not None:
            logger.debug("dropping candidate %r: unparseable number", original)
            return []
        if _is_zero_wording(candidate.operator_text):
            return [
                DietaryConstraint(
                    original_text=original,
                    subject=subject,
                    comparison=ComparisonOperator.eq,
                    value=0.0,
                )
            ]
        if kind in (SubjectKind.diet, SubjectKind.allergen) and op != ComparisonOperator.unknown:
            if op in (ComparisonOperator.lt, ComparisonOperator.lte):
                return [
                    DietaryConstraint(
                        original_text=original, subject=subject, comparison=op, value=0.0
                    )
                ]
            return [
                DietaryConstraint(
                    original_text=original,
                    subject=subject,
                    comparison=ComparisonOperator.gte,
                    value=1.0,
                )
            ]
        return [DietaryConstraint(original_text=original, subject=subject, comparison=op)]

    if value2 is not None and candidate.operator_text2:
        op2 = parse_operator(candidate.operator_text2)
        return [
            DietaryConstraint(
                original_text=original,
                subject=subject,
                comparison=op,
                value=value,
                unit=candidate.unit_text,
            ),
            DietaryConstraint(
                original_text=original,
                subject=subject,
                comparison=op2,
                value=value2,
                unit=candidate.unit_text2 or candidate.unit_text,
            ),
        ]

    return [
        DietaryConstraint(
            original_text=original,
            subject=subject,
            comparison=op,
            value=value,
            value2=value2,
            unit=candidate.unit_text,
        )
    ]


def parse_candidates(
        candidates: list[ExtractionCandidate], kb: KnowledgeBase
) -> list[DietaryConstraint]:
    """Parse every candidate, preserving order."""

    constraints: list[DietaryConstraint] = []
    for candidate in candidates:
        constraints.extend(parse_candidate(candidate, kb))
    return constraints
