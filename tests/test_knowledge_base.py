"""Tests for the knowledge base port, its static implementation and the synonyms loader."""

from __future__ import annotations

import json

import pytest

from src.knowledge.base import (
    KnowledgeBase,
    KnowledgeBaseError,
    StaticKnowledgeBase,
    build_knowledge_base,
    compact_key,
    load_synonyms,
    normalize_key,
)
from src.knowledge.vocabulary import Allergen, DietType, Nutrient, PhType, SubjectKind


def test_keys() -> None:
    assert normalize_key("Vitamin_C") == "vitamin c"
    assert normalize_key("  low-fat  ") == "low fat"
    assert compact_key("PUFA 18:2") == "pufa182"


def test_port_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        KnowledgeBase()  # type: ignore[abstract]


def test_classify(kb) -> None:
    assert kb.classify("sodium").nutrient == Nutrient.sodium
    assert kb.classify("vitamin_c").nutrient == Nutrient.vitamin_c
    assert kb.classify("vegan").diet == "Vegan"
    assert kb.classify("gluten-free").diet == "Gluten-Free"
    assert kb.classify("gluten").allergen == Allergen.cereals_containing_gluten
    assert kb.classify("acid").kind == SubjectKind.ph
    assert kb.classify("acidic").kind == SubjectKind.ph
    assert kb.classify("sour").kind == SubjectKind.unknown
    assert kb.classify("").kind == SubjectKind.unknown


def test_hyphen_is_significant_for_diets(kb) -> None:
    assert kb.diet("low-fat") == DietType.low_fat
    assert kb.diet("low fat") is None


def test_nutrient_resolution_falls_back_to_compact_keys(kb) -> None:
    assert kb.resolve_nutrient("vitamin-c") == Nutrient.vitamin_c
    assert kb.resolve_nutrient("vitaminc") == Nutrient.vitamin_c
    assert kb.resolve_nutrient("unicorn") is None


def test_allergen_display_names_are_aliases(kb) -> None:
    assert kb.allergen("peanuts") == Allergen.peanuts
    assert kb.allergen("sesame seeds") == Allergen.sesame_seeds
    assert kb.allergen("shrimp") == Allergen.crustaceans


def test_word_classes(kb) -> None:
    assert kb.ph_term("alkaline") == PhType.alkaline
    assert kb.persona_age("toddler") == 12.0
    assert kb.is_negation("without")
    assert kb.is_suffix_negation("free")
    assert kb.is_operator_keyword_prefix("hig")
    assert not kb.is_operator_keyword_prefix("soup")
    assert kb.bias_of("lowest") == "lowest"
    assert kb.bias_of("rich") == "high"
    assert kb.bias_of("soup") is None
    assert kb.ingredient_diet("meat") == "Vegetarian"
    assert kb.diet_synonym("plant based") == "Vegan"


def test_phrase_tables_are_longest_first(kb) -> None:
    phrases = kb.nutrient_phrases
    assert "vitamin c" in phrases
    assert all(len(a) >= len(b) for a, b in zip(phrases, phrases[1:]))
    operator_phrases = [phrase for phrase, _ in kb.operator_phrases]
    assert operator_phrases.index("no more than") < operator_phrases.index("more than")


def test_diet_type_from_name() -> None:
    assert DietType.from_name("Vegan") == DietType.vegan
    assert DietType.from_name("Carnivore") is None


def test_table_overrides() -> None:
    kb = StaticKnowledgeBase(nutrients={"zing": Nutrient.zinc}, allergens={})
    assert kb.resolve_nutrient("zing") == Nutrient.zinc
    assert kb.resolve_nutrient("zinc") is None
    assert kb.allergen("peanuts") is None


def test_load_synonyms(tmp_path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(json.dumps({"Soda": "Soft Drink"}), encoding="utf-8")

    assert load_synonyms(path) == {"soda": "soft drink"}
    assert build_knowledge_base(synonyms_path=path).synonym("soda") == "soft drink"


@pytest.mark.parametrize("payload", ["{not json", json.dumps(["soda"]), json.dumps({"a": 1})])
def test_load_synonyms_rejects_bad_files(tmp_path, payload: str) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(KnowledgeBaseError):
        load_synonyms(path)


def test_load_synonyms_missing_file(tmp_path) -> None:
    with pytest.raises(KnowledgeBaseError):
        load_synonyms(tmp_path / "missing.json")
