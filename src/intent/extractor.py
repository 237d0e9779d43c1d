"""Pattern-family candidate extraction for prose-style queries.

The extractor runs an ordered battery of regex families over lightly normalized text. Family order
is significant: when two matches overlap, the one from the earlier (more specific) family wins.

    1. Explicit range:       "between 5 and 10 g protein", "from 2 to 4 mg iron"
    2. Subject, then range:  "protein between 5 and 10", "ph between 6 and 7"
    3. Value first:          "more than 10 vitamin c", ">= 5g fat", "20 g protein", "5 max sodium"
    4. Subject first:        "sodium < 5g", "protein > 10 and < 20", "sodium 5 max"
    5. Abstract, postfix:    "sugar free", "iron rich", "sugar less"
    6. Abstract, op first:   "high ph", "no sugar", "without peanuts", bare "vegan"
    7. Dangling comparator:  "at least protein", "more than fiber"

Subjects are bounded to a single (phrase-protected) token, so "more than 10 vitamin c more than 14
fat" yields two candidates instead of one subject spanning both numbers.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from src.intent.normalize import protect_phrases
from src.knowledge.base import KnowledgeBase

logger = logging.getLogger(__name__)

NUMBER_WORDS: dict[str, float] = {
    "one": 1.0,
    "two": 2.0,
    "three": 3.0,
    "four": 4.0,
    "five": 5.0,
    "six": 6.0,
    "seven": 7.0,
    "eight": 8.0,
    "nine": 9.0,
    "ten": 10.0,
    "twenty": 20.0,
}

COMPARATOR_TERMS: tuple[str, ...] = (
    "<=", ">=", "==", "!=", "<", ">", "=",
    "max", "maximum", "min", "minimum",
    "at least", "at most", "no more than", "not more than", "no less than", "not less than",
    "not exceeding", "up to", "limit to", "cap at",
    "more than", "less than", "fewer than", "greater than", "higher than", "lower than",
    "under", "over", "above", "below", "exceeds", "exceeding",
    "equals", "equal to", "exactly", "around", "about", "approximately", "close to",
)

ABSTRACT_TERMS: tuple[str, ...] = (
    "high", "higher", "highest", "most", "rich in", "rich", "good source of", "source of",
    "plenty of", "lots of", "extra", "heavy",
    "low", "lower", "lowest", "least", "less", "more", "minimal", "reduced", "little",
    "poor in", "poor", "lite", "light",
    "free of", "free from", "free", "no", "without", "non", "minus", "except", "zero",
    "not", "never", "nix", "avoid", "exclude", "excluding", "excepting",
    "contains", "containing", "has", "with",
    "neutral", "balanced", "normal",
)

POSTFIX_TERMS: tuple[str, ...] = ("free", "rich", "poor", "zero", "heavy", "lite", "light", "less")

# Operators that may trail their number ("5 max sodium", "sodium 5 max").
TRAILING_OPERATOR_TERMS: tuple[str, ...] = ("max", "maximum", "min", "minimum", "less", "more")

UNIT_TERMS: tuple[str, ...] = (
    "mcg", "mg", "ug", "µg", "kg", "kcal", "grams", "gram", "g", "lbs", "lb", "oz", "ml", "l",
    "iu", "%",
)

# Qualifiers that sometimes stick to a captured subject ("low fat", "sugar free").
_QUALIFIER_PREFIXES: tuple[str, ...] = (
    "low", "high", "non", "no", "free", "rich", "least", "most", "minimal",
    "neutral", "balanced", "normal",
)
_QUALIFIER_SUFFIXES: tuple[str, ...] = ("free", "rich", "zero")

# Postfix qualifiers that also read as a prefix of the word after them.
_PREFIX_CAPABLE_POSTFIX = frozenset({"less"})

_SUBJECT_ALIASES: dict[str, str] = {
    "b12": "vitamin b12",
    "b6": "vitamin b6",
    "vit c": "vitamin c",
    "vit d": "vitamin d",
    "ph.": "ph",
    "p.h": "ph",
    "p.h.": "ph",
}

_MULTISPACE_RE = re.compile(r"\s+")
_TOKEN_START_RE = re.compile(r"\S+")
_PUNCT_EDGES = "()[],;:/!?\"'"


def _alternation(options: Iterable[str]) -> str:
    """Regex alternation, longest option first, word options ending on a word boundary."""

    parts: list[str] = []
    for option in sorted(set(options), key=lambda o: (-len(o), o)):
        escaped = r"\s+".join(re.escape(word) for word in option.split())
        if option[-1].isalpha():
            escaped += r"(?![a-z])"
        parts.append(escaped)
    return "(?:" + "|".join(parts) + ")"


_NUM = r"(?:\d+(?:\.\d+)?|" + _alternation(NUMBER_WORDS) + ")"
_UNIT = _alternation(UNIT_TERMS)
_COMP = _alternation(COMPARATOR_TERMS)
_ABSTRACT = _alternation(ABSTRACT_TERMS)
_POSTFIX = _alternation(POSTFIX_TERMS)
_TRAILING_OP = rf"(?:\s+(?P<op_post>{_alternation(TRAILING_OPERATOR_TERMS)})(?!\s+than\b))?"
_FILLER = r"(?:(?:of|in|added|any|the)\s+)"
_NOISE = r"(?:\s*(?:/|per)\s*(?:serving|portion|100\s*g|day|scoop|bar)s?)?"
_SUBJECT = r"(?P<subject>[a-z][a-z0-9_\-\.]*)(?![\w\-])"


def _pattern(*parts: str) -> re.Pattern[str]:
    return re.compile("".join(parts))


FAMILY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "range",
        _pattern(
            r"(?P<strict>strictly\s+)?(?:between|from)\s+",
            rf"(?P<value>{_NUM})(?:\s*(?P<unit>{_UNIT}))?",
            r"(?:\s+(?:and|to)\s+|\s*-\s*)",
            rf"(?P<value2>{_NUM})(?:\s*(?P<unit2>{_UNIT}))?",
            _NOISE,
            r"\s+(?:of\s+|in\s+)?",
            _SUBJECT,
        ),
    ),
    (
        "subject_range",
        _pattern(
            _SUBJECT,
            r"(?:\s*:|\s+(?:is|at))?\s+",
            r"(?P<strict>strictly\s+)?(?:between|from)\s+",
            rf"(?P<value>{_NUM})(?:\s*(?P<unit>{_UNIT}))?",
            r"(?:\s+(?:and|to)\s+|\s*-\s*)",
            rf"(?P<value2>{_NUM})(?:\s*(?P<unit2>{_UNIT}))?",
            _NOISE,
            r"(?![\w.])",
        ),
    ),
    (
        "value_first",
        _pattern(
            rf"(?:(?P<op>{_COMP})\s*)?",
            rf"(?P<value>{_NUM})(?:\s*(?P<unit>{_UNIT}))?",
            rf"(?:\s*(?:-|to)\s*(?P<value2>{_NUM})(?:\s*(?P<unit2>{_UNIT}))?)?",
            _NOISE,
            _TRAILING_OP,
            r"\s+(?:of\s+|in\s+)?",
            _SUBJECT,
        ),
    ),
    (
        "subject_first",
        _pattern(
            _SUBJECT,
            r"(?:\s*:|\s+(?:is|at|of))?",
            rf"\s*(?:(?P<op>{_COMP})\s*)?",
            rf"(?P<value>{_NUM})(?:\s*(?P<unit>{_UNIT}))?",
            rf"(?:\s*(?:-|to)\s*(?P<value2>{_NUM}))?",
            _NOISE,
            _TRAILING_OP,
            rf"(?:\s+(?:and\s+)?(?P<op2>{_COMP})\s*(?P<bound2>{_NUM})(?:\s*(?P<unit2>{_UNIT}))?)?",
            r"(?![\w.])",
        ),
    ),
    (
        "postfix_abstract",
        _pattern(_SUBJECT, rf"\s+(?P<op>{_POSTFIX})"),
    ),
    (
        "prefix_abstract",
        _pattern(rf"(?:(?P<op>{_ABSTRACT})\s+{_FILLER}?)?", _SUBJECT),
    ),
    (
        "dangling_operator",
        _pattern(rf"(?P<op>{_COMP})\s+{_FILLER}?", _SUBJECT),
    ),
)


@dataclass(frozen=True)
class ExtractionCandidate:
    """An unvalidated constraint match: subject, operator(s), value(s), unit and span."""

    subject_text: str
    operator_text: str | None
    value_text: str | None
    second_value_text: str | None
    unit_text: str | None
    operator_text2: str | None
    unit_text2: str | None
    matched_text: str
    start: int
    end: int
    family: str

    @property
    def is_abstract(self) -> bool:
        return self.value_text is None

    @property
    def is_bare_mention(self) -> bool:
        return self.value_text is None and self.operator_text is None

    def overlaps(self, other: ExtractionCandidate) -> bool:
        return self.start < other.end and other.start < self.end


def light_normalize(text: str, kb: KnowledgeBase) -> str:
    """Lowercase, collapse whitespace and protect multi-word subjects with underscores."""

    value = _MULTISPACE_RE.sub(" ", (text or "").lower()).strip()
    value = value.replace("\u2014", "-").replace("\u2013", "-")
    value = protect_phrases(value, kb.nutrient_phrases)
    value = protect_phrases(value, kb.diet_phrases)
    value = protect_phrases(value, kb.allergen_phrases)
    return value


def _alias(subject: str) -> str:
    return _SUBJECT_ALIASES.get(subject, subject)


def clean_subject(raw: str, kb: KnowledgeBase) -> tuple[str, str | None] | None:
    """Normalize a captured subject and validate it against the knowledge base.

    Returns `(subject, qualifier)` where `qualifier` is a stripped word such as "low" or "free"
    that can stand in for a missing operator, or None when the subject is not recognized.
    """

    subject = raw.strip(_PUNCT_EDGES).replace("_", " ").strip()
    subject = _SUBJECT_ALIASES.get(subject) or subject.rstrip(".")
    if not subject:
        return None
    if kb.is_valid_subject(subject):
        return subject, None

    spaced = _MULTISPACE_RE.sub(" ", subject.replace("-", " ")).strip(" .")
    spaced = _alias(spaced)
    if kb.is_valid_subject(spaced):
        return spaced, None

    words = spaced.split(" ")
    if len(words) > 1:
        if words[0] in _QUALIFIER_PREFIXES:
            rest = _alias(" ".join(words[1:]))
            if kb.is_valid_subject(rest):
                return rest, words[0]
        if words[-1] in _QUALIFIER_SUFFIXES:
            rest = _alias(" ".join(words[:-1]))
            if kb.is_valid_subject(rest):
                return rest, words[-1]

    return None


def _group(match: re.Match[str], name: str) -> str | None:
    if name not in match.re.groupindex:
        return None
    value = match.group(name)
    if value is None:
        return None
    value = _MULTISPACE_RE.sub(" ", value.strip())
    return value or None


def _starts_comparator(phrase: str) -> bool:
    return any(term == phrase or term.startswith(f"{phrase} ") for term in COMPARATOR_TERMS)


def _previous_token(text: str, start: int) -> str | None:
    before = text[:start].split()
    return before[-1] if before else None


def _next_token(text: str, end: int) -> str | None:
    after = text[end:].split()
    return after[0] if after else None


def _candidate_from_match(
        family: str, match: re.Match[str], text: str, kb: KnowledgeBase
) -> ExtractionCandidate | None:
    raw_subject = _group(match, "subject")
    if raw_subject is None:
        return None

    cleaned = clean_subject(raw_subject, kb)
    if cleaned is None:
        logger.debug(
            "dropping %s match %r: unknown subject %r", family, match.group(0), raw_subject
        )
        return None
    subject, qualifier = cleaned

    op = _group(match, "op")
    op2 = _group(match, "op2")
    value = _group(match, "value")
    value2 = _group(match, "value2")
    bound2 = _group(match, "bound2")
    unit = _group(match, "unit")
    unit2 = _group(match, "unit2")

    if family == "value_first" and op is None:
        # "protein 20 fat 10": the bare number belongs to the subject before it.
        previous = _previous_token(text, match.start())
        if previous is not None and clean_subject(previous, kb) is not None:
            logger.debug("skipping value-first match %r: number follows a subject", match.group(0))
            return None

    if family == "prefix_abstract" and op is not None:
        # "at least protein" / "no more sugar": the qualifier is the tail of a comparator.
        previous = _previous_token(text, match.start())
        if previous is not None and _starts_comparator(f"{previous} {op}"):
            return None

    if family == "postfix_abstract" and op in _PREFIX_CAPABLE_POSTFIX:
        # "sodium less sugar": the qualifier belongs to the subject after it.
        following = _next_token(text, match.end())
        if following is not None and clean_subject(following, kb) is not None:
            return None

    if family in ("range", "subject_range") and _group(match, "strict"):
        op, op2 = ">", "<"
    elif value2 is not None and op is None:
        op = "between"

    op_post = _group(match, "op_post")
    if op is None and op_post is not None:
        op = op_post

    if bound2 is not None:
        # Subject-first "x > 10 and < 20": the tail is a second bound, not a range end.
        value2 = bound2

    if op is None and qualifier is not None:
        op = qualifier

    return ExtractionCandidate(
        subject_text=subject,
        operator_text=op,
        value_text=value,
        second_value_text=value2,
        unit_text=unit or unit2,
        operator_text2=op2,
        unit_text2=unit2,
        matched_text=match.group(0),
        start=match.start(),
        end=match.end(),
        family=family,
    )


def _scan(text: str, kb: KnowledgeBase) -> list[ExtractionCandidate]:
    starts = [m.start() for m in _TOKEN_START_RE.finditer(text)]
    found: list[ExtractionCandidate] = []
    for family, pattern in FAMILY_PATTERNS:
        for pos in starts:
            match = pattern.match(text, pos)
            if match is None:
                continue
            candidate = _candidate_from_match(family, match, text, kb)
            if candidate is not None:
                found.append(candidate)
    return found


def select_candidates(found: Iterable[ExtractionCandidate]) -> list[ExtractionCandidate]:
    """Resolve overlaps: earlier family wins, bare mentions only fill gaps.

    The returned list is ordered by position in the text.
    """

    accepted: list[ExtractionCandidate] = []
    deferred: list[ExtractionCandidate] = []
    seen_spans: set[tuple[int, int]] = set()

    for candidate in found:
        span = (candidate.start, candidate.end)
        if span in seen_spans:
            continue
        seen_spans.add(span)
        if candidate.is_bare_mention:
            deferred.append(candidate)
            continue
        if any(candidate.overlaps(other) for other in accepted):
            logger.debug("dropping overlapped candidate %r", candidate.matched_text)
            continue
        accepted.append(candidate)

    for candidate in deferred:
        if any(candidate.overlaps(other) for other in accepted):
            continue
        accepted.append(candidate)

    return sorted(accepted, key=lambda c: (c.start, c.end))


def extract_candidates(text: str, kb: KnowledgeBase) -> list[ExtractionCandidate]:
    """Extract constraint candidates from raw query text."""

    normalized = light_normalize(text, kb)
    if not normalized:
        return []
    candidates = select_candidates(_scan(normalized, kb))
    logger.debug("extracted %d candidates from %r", len(candidates), normalized)
    return candidates
