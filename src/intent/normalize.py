"""Lexical normalization of raw dietary queries.

Surface forms are rewritten into a canonical intermediate text before tokenization:
    - `<number>%` -> `<number>_percent`.
    - Numeric ranges -> paired operator markers (`_op_gte_ 5 _op_lte_ 10`).
    - pH idioms -> `_ph_acidic_`, `_ph_alkaline_`, `_ph_neutral_`.
    - Operator symbols/phrases -> `_op_lt_`, `_op_lte_`, `_op_gt_`, `_op_gte_`, `_op_eq_`,
      `_op_neq_`.
    - Multi-word nutrient/diet phrases -> underscore-joined single tokens.

Every rewrite is idempotent, so `rewrite_query(rewrite_query(q)) == rewrite_query(q)`. Age
extraction is the only step that removes text and is kept out of `rewrite_query`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.knowledge.base import KnowledgeBase

_MULTISPACE_RE = re.compile(r"\s+")
_NUM = r"(\d+(?:\.\d+)?)"

_PERCENT_RE = re.compile(rf"\b{_NUM}%")
_STRICT_RANGE_RE = re.compile(rf"\bstrictly\s+between\s+{_NUM}\s+and\s+{_NUM}\b")
_RANGE_RES = (
    re.compile(rf"\bbetween\s+{_NUM}\s+and\s+{_NUM}\b"),
    re.compile(rf"\bfrom\s+{_NUM}\s+to\s+{_NUM}\b"),
)

_AGE_RE = re.compile(
    r"(_op_[a-z]+_)?\s*(?<![\w.])(\d+(?:\.\d+)?)\s*"
    r"(months?|mos?|mths?|m|years?|yrs?|y\.o\.|y/o|yo|y)(?![a-z0-9_])"
)


@dataclass(frozen=True)
class NormalizedQuery:
    """Rewritten query text plus the age expression lifted out of it."""

    text: str
    age_months: float | None = None


def _collapse(text: str) -> str:
    return _MULTISPACE_RE.sub(" ", text).strip()


def normalize_percentages(text: str) -> str:
    """Rewrite `12.5%` as `12.5_percent` so the value survives word splitting."""

    if "%" not in text:
        return text
    return _PERCENT_RE.sub(r"\1_percent", text)


def normalize_ranges(text: str) -> str:
    """Rewrite `between X and Y` / `from X to Y` into operator marker pairs.

    Must run before operator rewriting, otherwise "between ... and" loses its pairing.
    """

    if "between" not in text and "from" not in text:
        return text

    text = _STRICT_RANGE_RE.sub(r" _op_gt_ \1 _op_lt_ \2 ", text)
    for pattern in _RANGE_RES:
        text = pattern.sub(r" _op_gte_ \1 _op_lte_ \2 ", text)
    return _collapse(text)


def normalize_ph_phrases(text: str, kb: KnowledgeBase) -> str:
    """Replace pH idioms ("low acid", "neutral ph") with pre-resolved tokens.

    Runs before generic operator rewriting so that "low acid" does not become "less than acid".
    Text is collapsed after every replacement so a shortened phrase ("low ph value" -> "low ph")
    is visible to the idioms that follow it.
    """

    text = _collapse(text)
    for phrase, token in kb.ph_phrases:
        if phrase not in text:
            continue
        # "ph 7" must not eat the start of "ph 7.5".
        pattern = rf"\b{re.escape(phrase)}\b(?!\.\d)"
        text = _collapse(re.sub(pattern, f" {token} ", text))
    return text


def normalize_operators(text: str, kb: KnowledgeBase) -> str:
    """Fold operator symbols and phrases into the marker vocabulary."""

    for symbol, token in kb.strict_operators:
        if symbol in text:
            text = text.replace(symbol, f" {token} ")

    for phrase, token in kb.operator_phrases:
        if phrase in text:
            text = re.sub(rf"\b{re.escape(phrase)}\b", f" {token} ", text)

    for word, token in kb.comparative_adjectives:
        if word in text:
            text = re.sub(rf"\b{re.escape(word)}\s+(?=\d)", f"{token} ", text)

    for word, token in kb.postfix_operators:
        if word in text:
            text = re.sub(rf"(?<=\d)\s*\b{re.escape(word)}\b", f" {token} ", text)

    return _collapse(text)


def protect_phrases(text: str, phrases: tuple[str, ...]) -> str:
    """Join each known multi-word phrase with underscores (`vitamin c` -> `vitamin_c`).

    `phrases` must be ordered longest first so that "vitamin b12" wins over "vitamin b".
    """

    for phrase in phrases:
        if phrase not in text:
            continue
        text = re.sub(rf"(?<![\w\-]){re.escape(phrase)}(?![\w\-])", phrase.replace(" ", "_"), text)
    return text


def rewrite_query(query: str, kb: KnowledgeBase) -> str:
    """Apply every text rewrite in order. Idempotent."""

    text = _collapse((query or "").lower())
    text = normalize_percentages(text)
    text = normalize_ranges(text)
    text = normalize_ph_phrases(text, kb)
    text = normalize_operators(text, kb)
    text = protect_phrases(text, kb.nutrient_phrases)
    text = protect_phrases(text, kb.diet_phrases)
    return text


def extract_age(text: str) -> NormalizedQuery:
    """Lift the first age expression out of already rewritten text.

    Years become months; an adjacent `_op_lt_`/`_op_gt_` nudges the value by 0.1 month to express
    an exclusive bound on the continuous age scale.
    """

    match = _AGE_RE.search(text)
    if match is None:
        return NormalizedQuery(text=text)

    value = float(match.group(2))
    unit = match.group(3)
    months = value * 12.0 if unit.startswith("y") else value

    op = match.group(1)
    if op == "_op_lt_":
        months -= 0.1
    elif op == "_op_gt_":
        months += 0.1

    remaining = _collapse(f"{text[:match.start()]} {text[match.end():]}")
    return NormalizedQuery(text=remaining, age_months=max(0.0, months))


def normalize_query(query: str, kb: KnowledgeBase) -> NormalizedQuery:
    """Full normalization used by the stateful tokenizer: rewrites, then age extraction."""

    return extract_age(rewrite_query(query, kb))
