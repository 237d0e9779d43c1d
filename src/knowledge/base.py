"""Knowledge base port and its static, table-backed implementation.

Parsing code depends only on `KnowledgeBase`. `StaticKnowledgeBase` serves the bundled English
tables; every table can be replaced through the constructor, which is how tests run the compiler
against a tiny synthetic vocabulary.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from src.knowledge import tables
from src.knowledge.vocabulary import Allergen, DietType, Nutrient, PhType, SubjectKind

logger = logging.getLogger(__name__)

_MULTISPACE_RE = re.compile(r"\s+")
_COMPACT_RE = re.compile(r"[\s_\-:]+")


class KnowledgeBaseError(ValueError):
    """Raised when knowledge base data cannot be loaded."""


def normalize_key(raw: str) -> str:
    """Lowercase, turn `_`/`-` into spaces and collapse whitespace."""

    value = (raw or "").lower().replace("_", " ").replace("-", " ")
    return _MULTISPACE_RE.sub(" ", value).strip()


def normalize_diet_key(raw: str) -> str:
    """Like `normalize_key` but keeps hyphens, which are significant for diet names."""

    value = (raw or "").lower().replace("_", " ")
    return _MULTISPACE_RE.sub(" ", value).strip()


def compact_key(raw: str) -> str:
    """Drop every separator so `pufa 18:2`, `pufa_18-2` and `pufa182` compare equal."""

    return _COMPACT_RE.sub("", (raw or "").lower())


@dataclass(frozen=True)
class Subject:
    """Classification of a normalized constraint subject."""

    kind: SubjectKind
    nutrient: Nutrient | None = None
    diet: str | None = None
    allergen: Allergen | None = None


UNKNOWN_SUBJECT = Subject(kind=SubjectKind.unknown)
PH_SUBJECT = Subject(kind=SubjectKind.ph)


class KnowledgeBase(ABC):
    """Read-only lexical lookups consumed by every compiler stage."""

    # --- Subject lookups -------------------------------------------------------------------

    @abstractmethod
    def resolve_nutrient(self, term: str) -> Nutrient | None:
        """Map a nutrient word or protected phrase (`vitamin_c`) to its identifier."""
        ...

    @abstractmethod
    def diet(self, term: str) -> DietType | None:
        """Map a diet keyword (`vegan`, `gluten-free`) to a diet tag."""
        ...

    @abstractmethod
    def diet_synonym(self, term: str) -> str | None:
        """Map a diet synonym (`plant based`) to a diet name."""
        ...

    @abstractmethod
    def ingredient_diet(self, term: str) -> str | None:
        """Map an avoided ingredient (`meat`) to the diet name that excludes it."""
        ...

    @abstractmethod
    def allergen(self, term: str) -> Allergen | None:
        """Map an allergen alias (`walnuts`, `shrimp`) to its allergen group."""
        ...

    @abstractmethod
    def ph_term(self, term: str) -> PhType | None:
        """Return the pH class of a single-word adjective (`acidic`, `neutral`)."""
        ...

    @abstractmethod
    def is_ph_keyword(self, term: str) -> bool:
        """Whether `term` explicitly names acidity (`ph`, `acidity`, `p.h.`)."""
        ...

    @abstractmethod
    def is_ph_subject(self, term: str) -> bool:
        """Whether `term` may stand alone as a pH constraint subject."""
        ...

    @abstractmethod
    def persona_age(self, term: str) -> float | None:
        """Return the age in months implied by a persona word (`toddler`)."""
        ...

    # --- Word classes ----------------------------------------------------------------------

    @abstractmethod
    def is_stop_word(self, word: str) -> bool: ...

    @abstractmethod
    def is_negation(self, word: str) -> bool: ...

    @abstractmethod
    def is_suffix_negation(self, word: str) -> bool: ...

    @abstractmethod
    def is_negation_filler(self, word: str) -> bool: ...

    @abstractmethod
    def is_operator_keyword_prefix(self, word: str) -> bool:
        """Whether `word` is a prefix of any operator keyword (stray operator fragments)."""
        ...

    @abstractmethod
    def bias_of(self, word: str) -> str | None:
        """Return `low`, `high`, `lowest` or `highest` for a qualitative word, else None."""
        ...

    @abstractmethod
    def stem_exception(self, word: str) -> str | None: ...

    @abstractmethod
    def synonym(self, word: str) -> str | None: ...

    # --- Phrase tables ---------------------------------------------------------------------

    @property
    @abstractmethod
    def nutrient_phrases(self) -> tuple[str, ...]:
        """Multi-word nutrient keys, longest first."""
        ...

    @property
    @abstractmethod
    def diet_phrases(self) -> tuple[str, ...]:
        """Multi-word diet keys and synonyms, longest first."""
        ...

    @property
    @abstractmethod
    def allergen_phrases(self) -> tuple[str, ...]:
        """Multi-word allergen aliases, longest first."""
        ...

    @property
    @abstractmethod
    def ph_phrases(self) -> tuple[tuple[str, str], ...]:
        """Ordered `(phrase, replacement)` pH idioms."""
        ...

    @property
    @abstractmethod
    def strict_operators(self) -> tuple[tuple[str, str], ...]: ...

    @property
    @abstractmethod
    def operator_phrases(self) -> tuple[tuple[str, str], ...]:
        """`(phrase, marker)` pairs, longest phrase first."""
        ...

    @property
    @abstractmethod
    def comparative_adjectives(self) -> tuple[tuple[str, str], ...]: ...

    @property
    @abstractmethod
    def postfix_operators(self) -> tuple[tuple[str, str], ...]: ...

    # --- Derived lookups -------------------------------------------------------------------

    def classify(self, raw: str) -> Subject:
        """Classify a subject as nutrient, pH, diet or allergen.

        pH wins over nutrients so that "acid" is never resolved fuzzily; nutrients win over diets
        and allergens.
        """

        key = normalize_key(raw)
        if not key:
            return UNKNOWN_SUBJECT

        if self.is_ph_keyword(key) or self.is_ph_subject(key):
            return PH_SUBJECT

        nutrient = self.resolve_nutrient(raw)
        if nutrient is not None:
            return Subject(kind=SubjectKind.nutrient, nutrient=nutrient)

        diet = self.diet(raw)
        if diet is not None:
            return Subject(kind=SubjectKind.diet, diet=diet.value)
        synonym = self.diet_synonym(raw)
        if synonym is not None:
            return Subject(kind=SubjectKind.diet, diet=synonym)

        allergen = self.allergen(raw)
        if allergen is not None:
            return Subject(kind=SubjectKind.allergen, allergen=allergen)

        return UNKNOWN_SUBJECT

    def is_valid_subject(self, raw: str) -> bool:
        """Whether `raw` names anything a constraint can apply to."""

        return self.classify(raw).kind != SubjectKind.unknown


def _longest_first(phrases: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(phrases), key=lambda p: (-len(p), p)))


def _multi_word(keys: Iterable[str]) -> list[str]:
    return [key for key in keys if " " in key]


class StaticKnowledgeBase(KnowledgeBase):
    """`KnowledgeBase` backed by in-memory tables (the bundled English ones by default)."""

    def __init__(
            self,
            *,
            nutrients: Mapping[str, Nutrient] | None = None,
            diets: Mapping[str, DietType] | None = None,
            diet_synonyms: Mapping[str, str] | None = None,
            ingredient_diets: Mapping[str, str] | None = None,
            allergens: Mapping[str, Allergen] | None = None,
            ph_keywords: Iterable[str] | None = None,
            ph_terms: Mapping[str, PhType] | None = None,
            ph_subject_terms: Iterable[str] | None = None,
            ph_phrases: Iterable[tuple[str, str]] | None = None,
            persona_ages: Mapping[str, float] | None = None,
            stop_words: Iterable[str] | None = None,
            negation_terms: Iterable[str] | None = None,
            suffix_negation_terms: Iterable[str] | None = None,
            negation_fillers: Iterable[str] | None = None,
            stemming_exceptions: Mapping[str, str] | None = None,
            synonyms: Mapping[str, str] | None = None,
    ) -> None:
        nutrient_map = dict(tables.NUTRIENT_TERMS if nutrients is None else nutrients)
        self._nutrients = {normalize_key(k): v for k, v in nutrient_map.items()}
        self._compact_nutrients = {compact_key(k): v for k, v in nutrient_map.items()}

        diet_map = dict(tables.DIET_TERMS if diets is None else diets)
        self._diets = {normalize_diet_key(k): v for k, v in diet_map.items()}
        synonym_map = dict(tables.DIET_SYNONYMS if diet_synonyms is None else diet_synonyms)
        self._diet_synonyms = {normalize_diet_key(k): v for k, v in synonym_map.items()}
        ingredient_map = tables.INGREDIENT_DIETS if ingredient_diets is None else ingredient_diets
        self._ingredient_diets = {normalize_key(k): v for k, v in ingredient_map.items()}

        allergen_map = dict(tables.ALLERGEN_TERMS if allergens is None else allergens)
        self._allergens = {normalize_key(k): v for k, v in allergen_map.items()}
        # The group display names double as aliases ("peanuts", "sesame seeds").
        for allergen in set(allergen_map.values()):
            self._allergens.setdefault(normalize_key(allergen.value), allergen)

        self._ph_keywords = frozenset(tables.PH_KEYWORDS if ph_keywords is None else ph_keywords)
        self._ph_terms = dict(tables.PH_TERMS if ph_terms is None else ph_terms)
        self._ph_subject_terms = frozenset(
            tables.PH_SUBJECT_TERMS if ph_subject_terms is None else ph_subject_terms
        )
        self._ph_phrases = tuple(tables.PH_PHRASES if ph_phrases is None else ph_phrases)
        self._persona_ages = dict(tables.PERSONA_AGES if persona_ages is None else persona_ages)

        self._stop_words = frozenset(tables.STOP_WORDS if stop_words is None else stop_words)
        self._negations = frozenset(
            tables.NEGATION_TERMS if negation_terms is None else negation_terms
        )
        self._suffix_negations = frozenset(
            tables.SUFFIX_NEGATION_TERMS if suffix_negation_terms is None else suffix_negation_terms
        )
        self._negation_fillers = frozenset(
            tables.NEGATION_FILLERS if negation_fillers is None else negation_fillers
        )
        self._stemming = dict(
            tables.STEMMING_EXCEPTIONS if stemming_exceptions is None else stemming_exceptions
        )
        self._synonyms = dict(synonyms or {})

        self._nutrient_phrases = _longest_first(_multi_word(nutrient_map))
        self._diet_phrases = _longest_first(_multi_word([*diet_map, *synonym_map]))
        self._allergen_phrases = _longest_first(_multi_word(allergen_map))
        self._operator_phrases = tuple(
            sorted(tables.OPERATOR_PHRASES.items(), key=lambda item: (-len(item[0]), item[0]))
        )

        operator_words: set[str] = set(tables.COMPARATIVE_ADJECTIVES)
        for phrase in tables.OPERATOR_PHRASES:
            operator_words.update(phrase.split())
        operator_words.update(tables.OPERATOR_CONNECTORS)
        operator_words.update(tables.SUPERLATIVES_HIGH | tables.SUPERLATIVES_LOW)
        self._operator_words = frozenset(operator_words)

    def resolve_nutrient(self, term: str) -> Nutrient | None:
        exact = self._nutrients.get(normalize_key(term))
        if exact is not None:
            return exact
        return self._compact_nutrients.get(compact_key(term))

    def diet(self, term: str) -> DietType | None:
        return self._diets.get(normalize_diet_key(term))

    def diet_synonym(self, term: str) -> str | None:
        return self._diet_synonyms.get(normalize_diet_key(term))

    def ingredient_diet(self, term: str) -> str | None:
        return self._ingredient_diets.get(normalize_key(term))

    def allergen(self, term: str) -> Allergen | None:
        return self._allergens.get(normalize_key(term))

    def ph_term(self, term: str) -> PhType | None:
        return self._ph_terms.get(normalize_key(term))

    def is_ph_keyword(self, term: str) -> bool:
        return (term or "").lower().strip() in self._ph_keywords

    def is_ph_subject(self, term: str) -> bool:
        return normalize_key(term) in self._ph_subject_terms

    def persona_age(self, term: str) -> float | None:
        return self._persona_ages.get(normalize_key(term))

    def is_stop_word(self, word: str) -> bool:
        return word in self._stop_words

    def is_negation(self, word: str) -> bool:
        return word in self._negations

    def is_suffix_negation(self, word: str) -> bool:
        return word in self._suffix_negations

    def is_negation_filler(self, word: str) -> bool:
        return word in self._negation_fillers

    def is_operator_keyword_prefix(self, word: str) -> bool:
        return any(keyword.startswith(word) for keyword in self._operator_words)

    def bias_of(self, word: str) -> str | None:
        if word in tables.SUPERLATIVES_HIGH:
            return "highest"
        if word in tables.SUPERLATIVES_LOW:
            return "lowest"
        if word in tables.LOW_BIAS_WORDS:
            return "low"
        if word in tables.HIGH_BIAS_WORDS:
            return "high"
        return None

    def stem_exception(self, word: str) -> str | None:
        return self._stemming.get(word)

    def synonym(self, word: str) -> str | None:
        return self._synonyms.get(word)

    @property
    def nutrient_phrases(self) -> tuple[str, ...]:
        return self._nutrient_phrases

    @property
    def diet_phrases(self) -> tuple[str, ...]:
        return self._diet_phrases

    @property
    def allergen_phrases(self) -> tuple[str, ...]:
        return self._allergen_phrases

    @property
    def ph_phrases(self) -> tuple[tuple[str, str], ...]:
        return self._ph_phrases

    @property
    def strict_operators(self) -> tuple[tuple[str, str], ...]:
        return tables.STRICT_OPERATORS

    @property
    def operator_phrases(self) -> tuple[tuple[str, str], ...]:
        return self._operator_phrases

    @property
    def comparative_adjectives(self) -> tuple[tuple[str, str], ...]:
        return tuple(tables.COMPARATIVE_ADJECTIVES.items())

    @property
    def postfix_operators(self) -> tuple[tuple[str, str], ...]:
        return tuple(tables.POSTFIX_OPERATORS.items())


def load_synonyms(path: str | Path) -> dict[str, str]:
    """Load a `{"word": "replacement"}` food synonym table from a JSON file.

    Raises:
        KnowledgeBaseError: If the file is missing, not JSON, or not a flat string mapping.
    """

    try:
        payload = json.loads(Path(path).read_bytes())
    except (OSError, ValueError) as exc:
        raise KnowledgeBaseError(f"Cannot read synonyms file {path}: {exc}") from exc

    if not isinstance(payload, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in payload.items()
    ):
        raise KnowledgeBaseError(
            f"Unexpected synonyms format in {path}: expected an object of string to string"
        )

    synonyms = {k.lower(): v.lower() for k, v in payload.items()}
    logger.info("loaded %d food synonyms from %s", len(synonyms), path)
    return synonyms


def build_knowledge_base(*, synonyms_path: str | Path | None = None) -> StaticKnowledgeBase:
    """Build the default knowledge base, optionally with a food synonym table."""

    synonyms = load_synonyms(synonyms_path) if synonyms_path else None
    return StaticKnowledgeBase(synonyms=synonyms)
