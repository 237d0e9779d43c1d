"""English dietary dictionaries.

Keys are lowercase and space separated unless noted otherwise. These tables are the default
content of `StaticKnowledgeBase`; they should stay small and deterministic.
"""

from __future__ import annotations

from src.knowledge.vocabulary import Allergen, DietType, Nutrient, PhType

NUTRIENT_TERMS: dict[str, Nutrient] = {
    # Macros
    "protein": Nutrient.protein,
    "proteins": Nutrient.protein,
    "prot": Nutrient.protein,
    "carbs": Nutrient.carbs,
    "carb": Nutrient.carbs,
    "carbohydrate": Nutrient.carbs,
    "carbohydrates": Nutrient.carbs,
    "fat": Nutrient.total_fat,
    "fats": Nutrient.total_fat,
    "total fat": Nutrient.total_fat,
    "lipids": Nutrient.total_fat,
    "fiber": Nutrient.fiber,
    "fibre": Nutrient.fiber,
    "dietary fiber": Nutrient.fiber,
    "sugar": Nutrient.total_sugar,
    "sugars": Nutrient.total_sugar,
    "total sugars": Nutrient.total_sugar,
    "calories": Nutrient.energy,
    "calorie": Nutrient.energy,
    "energy": Nutrient.energy,
    "kcal": Nutrient.energy,
    "water": Nutrient.water,
    "moisture": Nutrient.water,
    "alcohol": Nutrient.alcohol,
    "ash": Nutrient.ash,
    "starch": Nutrient.starch,
    # Specific sugars
    "glucose": Nutrient.glucose,
    "fructose": Nutrient.fructose,
    "galactose": Nutrient.galactose,
    "sucrose": Nutrient.sucrose,
    "maltose": Nutrient.maltose,
    # Minerals
    "calcium": Nutrient.calcium,
    "iron": Nutrient.iron,
    "magnesium": Nutrient.magnesium,
    "phosphorus": Nutrient.phosphorus,
    "potassium": Nutrient.potassium,
    "sodium": Nutrient.sodium,
    "salt": Nutrient.sodium,
    "zinc": Nutrient.zinc,
    "copper": Nutrient.copper,
    "manganese": Nutrient.manganese,
    "selenium": Nutrient.selenium,
    "fluoride": Nutrient.fluoride,
    # Vitamins
    "vitamin a": Nutrient.vitamin_a,
    "vit a": Nutrient.vitamin_a,
    "retinol": Nutrient.retinol,
    "beta carotene": Nutrient.beta_carotene,
    "alpha carotene": Nutrient.alpha_carotene,
    "lycopene": Nutrient.lycopene,
    "lutein": Nutrient.lutein_zeaxanthin,
    "vitamin c": Nutrient.vitamin_c,
    "vit c": Nutrient.vitamin_c,
    "ascorbic acid": Nutrient.vitamin_c,
    "vitamin d": Nutrient.vitamin_d,
    "vitamin d2": Nutrient.vitamin_d,
    "vitamin d3": Nutrient.vitamin_d,
    "vit d": Nutrient.vitamin_d,
    "vitamin e": Nutrient.vitamin_e,
    "vit e": Nutrient.vitamin_e,
    "vitamin k": Nutrient.vitamin_k,
    "vit k": Nutrient.vitamin_k,
    "thiamin": Nutrient.thiamin,
    "thiamine": Nutrient.thiamin,
    "vitamin b1": Nutrient.thiamin,
    "vit b1": Nutrient.thiamin,
    "riboflavin": Nutrient.riboflavin,
    "vitamin b2": Nutrient.riboflavin,
    "vit b2": Nutrient.riboflavin,
    "niacin": Nutrient.niacin,
    "vitamin b3": Nutrient.niacin,
    "vit b3": Nutrient.niacin,
    "pantothenic acid": Nutrient.pantothenic_acid,
    "vitamin b5": Nutrient.pantothenic_acid,
    "vit b5": Nutrient.pantothenic_acid,
    "vitamin b6": Nutrient.vitamin_b6,
    "vitamin b-6": Nutrient.vitamin_b6,
    "vit b6": Nutrient.vitamin_b6,
    "vitamin b12": Nutrient.vitamin_b12,
    "vitamin b-12": Nutrient.vitamin_b12,
    "vit b12": Nutrient.vitamin_b12,
    "cobalamin": Nutrient.vitamin_b12,
    "folate": Nutrient.folate_total,
    "total folate": Nutrient.folate_total,
    "folic acid": Nutrient.folic_acid,
    "choline": Nutrient.choline,
    "betaine": Nutrient.betaine,
    # Fats and fatty acids
    "saturated fat": Nutrient.saturated_fat,
    "sat fat": Nutrient.saturated_fat,
    "monounsaturated fat": Nutrient.monounsaturated_fat,
    "monounsaturated": Nutrient.monounsaturated_fat,
    "mufa": Nutrient.monounsaturated_fat,
    "polyunsaturated fat": Nutrient.polyunsaturated_fat,
    "polyunsaturated": Nutrient.polyunsaturated_fat,
    "pufa": Nutrient.polyunsaturated_fat,
    "trans fat": Nutrient.trans_fat,
    "cholesterol": Nutrient.cholesterol,
    "phytosterols": Nutrient.phytosterols,
    "oleic acid": Nutrient.oleic_acid,
    "oleic": Nutrient.oleic_acid,
    "linoleic acid": Nutrient.linoleic_acid,
    "linoleic": Nutrient.linoleic_acid,
    "linolenic acid": Nutrient.linolenic_acid,
    "linolenic": Nutrient.linolenic_acid,
    "epa": Nutrient.epa,
    "dha": Nutrient.dha,
    # Amino acids
    "alanine": Nutrient.alanine,
    "arginine": Nutrient.arginine,
    "aspartic acid": Nutrient.aspartic_acid,
    "cystine": Nutrient.cystine,
    "glutamic acid": Nutrient.glutamic_acid,
    "glycine": Nutrient.glycine,
    "histidine": Nutrient.histidine,
    "isoleucine": Nutrient.isoleucine,
    "leucine": Nutrient.leucine,
    "lysine": Nutrient.lysine,
    "methionine": Nutrient.methionine,
    "phenylalanine": Nutrient.phenylalanine,
    "proline": Nutrient.proline,
    "serine": Nutrient.serine,
    "threonine": Nutrient.threonine,
    "tryptophan": Nutrient.tryptophan,
    "tyrosine": Nutrient.tyrosine,
    "valine": Nutrient.valine,
    # Other
    "caffeine": Nutrient.caffeine,
    "theobromine": Nutrient.theobromine,
}

# Soft-zero scale buckets. Anything not listed here is milligram scale.
GRAM_SCALE_NUTRIENTS: frozenset[Nutrient] = frozenset(
    {
        Nutrient.protein,
        Nutrient.carbs,
        Nutrient.total_sugar,
        Nutrient.fiber,
        Nutrient.total_fat,
        Nutrient.water,
        Nutrient.alcohol,
        Nutrient.ash,
        Nutrient.starch,
        Nutrient.glucose,
        Nutrient.fructose,
        Nutrient.galactose,
        Nutrient.sucrose,
        Nutrient.maltose,
        Nutrient.saturated_fat,
        Nutrient.monounsaturated_fat,
        Nutrient.polyunsaturated_fat,
        Nutrient.trans_fat,
        Nutrient.oleic_acid,
        Nutrient.linoleic_acid,
        Nutrient.linolenic_acid,
        Nutrient.epa,
        Nutrient.dha,
    }
)

MICROGRAM_SCALE_NUTRIENTS: frozenset[Nutrient] = frozenset(
    {
        Nutrient.vitamin_a,
        Nutrient.retinol,
        Nutrient.beta_carotene,
        Nutrient.alpha_carotene,
        Nutrient.lycopene,
        Nutrient.lutein_zeaxanthin,
        Nutrient.vitamin_d,
        Nutrient.vitamin_k,
        Nutrient.vitamin_b12,
        Nutrient.folate_total,
        Nutrient.folic_acid,
        Nutrient.selenium,
        Nutrient.fluoride,
    }
)

# Hyphens are significant here: "gluten-free" is a diet, "gluten free" is a negated allergen.
DIET_TERMS: dict[str, DietType] = {
    "vegan": DietType.vegan,
    "vegetarian": DietType.vegetarian,
    "veg": DietType.vegetarian,
    "pescatarian": DietType.pescatarian,
    "pescetarian": DietType.pescatarian,
    "keto": DietType.keto,
    "ketogenic": DietType.keto,
    "paleo": DietType.paleo,
    "gluten-free": DietType.gluten_free,
    "gf": DietType.gluten_free,
    "dairy-free": DietType.dairy_free,
    "df": DietType.dairy_free,
    "lactose-free": DietType.lactose_free,
    "halal": DietType.halal,
    "kosher": DietType.kosher,
    "low-carb": DietType.low_carb,
    "low-fat": DietType.low_fat,
    "low-sodium": DietType.low_sodium,
    "high-protein": DietType.high_protein,
    "nut-free": DietType.nut_free,
    "egg-free": DietType.egg_free,
    "soy-free": DietType.soy_free,
    "fat-free": DietType.fat_free,
    "no added sugar": DietType.no_added_sugar,
    "mineral-rich": DietType.mineral_rich,
    "vitamin-rich": DietType.vitamin_rich,
}

DIET_SYNONYMS: dict[str, str] = {
    "plant based": DietType.vegan.value,
    "plant-based": DietType.vegan.value,
    "no animal products": DietType.vegan.value,
    "veggie": DietType.vegetarian.value,
    "whole30": DietType.paleo.value,
}

# An ingredient someone avoids implies the diet tag that guarantees its absence.
INGREDIENT_DIETS: dict[str, str] = {
    "milk": DietType.dairy_free.value,
    "cow milk": DietType.dairy_free.value,
    "cream": DietType.dairy_free.value,
    "cheese": DietType.dairy_free.value,
    "yogurt": DietType.dairy_free.value,
    "yoghurt": DietType.dairy_free.value,
    "lactose": DietType.lactose_free.value,
    "egg": DietType.egg_free.value,
    "eggs": DietType.egg_free.value,
    "nut": DietType.nut_free.value,
    "nuts": DietType.nut_free.value,
    "peanut": DietType.nut_free.value,
    "peanuts": DietType.nut_free.value,
    "almond": DietType.nut_free.value,
    "cashew": DietType.nut_free.value,
    "walnut": DietType.nut_free.value,
    "soy": DietType.soy_free.value,
    "soya": DietType.soy_free.value,
    "tofu": DietType.soy_free.value,
    "gluten": DietType.gluten_free.value,
    "wheat": DietType.gluten_free.value,
    "bread": DietType.gluten_free.value,
    "pasta": DietType.gluten_free.value,
    "flour": DietType.gluten_free.value,
    "barley": DietType.gluten_free.value,
    "rye": DietType.gluten_free.value,
    "meat": DietType.vegetarian.value,
    "beef": DietType.vegetarian.value,
    "pork": DietType.vegetarian.value,
    "chicken": DietType.vegetarian.value,
    "animal": DietType.vegan.value,
}

ALLERGEN_KEYWORDS: dict[Allergen, tuple[str, ...]] = {
    Allergen.celery: ("celery",),
    Allergen.cereals_containing_gluten: ("gluten", "wheat", "cereal", "cereals"),
    Allergen.cereals_containing_gluten_barley: ("barley",),
    Allergen.cereals_containing_gluten_oats: ("oats",),
    Allergen.cereals_containing_gluten_rye: ("rye",),
    Allergen.crustaceans: (
        "crustacean",
        "crustaceans",
        "shellfish",
        "shrimp",
        "prawn",
        "crab",
        "lobster",
    ),
    Allergen.eggs: ("egg", "eggs"),
    Allergen.fish: ("fish",),
    Allergen.milk: ("milk", "dairy", "cheese", "lactose", "cream", "yogurt", "yoghurt"),
    Allergen.molluscs: (
        "mollusc",
        "molluscs",
        "mussels",
        "oyster",
        "oysters",
        "clam",
        "clams",
        "scallops",
    ),
    Allergen.mustard: ("mustard",),
    Allergen.nuts: ("nut", "nuts"),
    Allergen.nuts_brazil: ("brazil nut", "brazil nuts"),
    Allergen.nuts_almonds: ("almond", "almonds"),
    Allergen.nuts_cashews: ("cashew", "cashews"),
    Allergen.nuts_chestnuts: ("chestnut", "chestnuts"),
    Allergen.nuts_coconut: ("coconut",),
    Allergen.nuts_hazelnuts: ("hazelnut", "hazelnuts"),
    Allergen.nuts_macadamia: ("macadamia", "macadamia nut", "macadamia nuts"),
    Allergen.nuts_pecans: ("pecan", "pecans"),
    Allergen.nuts_pine: ("pine nut", "pine nuts"),
    Allergen.nuts_pistachio: ("pistachio", "pistachios"),
    Allergen.nuts_walnuts: ("walnut", "walnuts"),
    Allergen.peanuts: ("peanut", "peanuts"),
    Allergen.sesame_seeds: ("sesame", "sesame seed", "sesame seeds"),
    Allergen.soybeans: ("soy", "soya", "soybean", "soybeans"),
    Allergen.sulphites: (
        "sulphite",
        "sulphites",
        "sulfite",
        "sulfites",
        "sulfur dioxide",
        "sulphur dioxide",
    ),
}

ALLERGEN_TERMS: dict[str, Allergen] = {
    term: allergen for allergen, terms in ALLERGEN_KEYWORDS.items() for term in terms
}

PH_KEYWORDS: frozenset[str] = frozenset(
    {"ph", "p.h", "p.h.", "acid", "acidity", "alkaline", "alkalinity", "base", "basic"}
)

PH_TERMS: dict[str, PhType] = {
    "acid": PhType.acidic,
    "acidic": PhType.acidic,
    "sour": PhType.acidic,
    "alkaline": PhType.alkaline,
    "basic": PhType.alkaline,
    "alkalizing": PhType.alkaline,
    "neutral": PhType.neutral,
    "balanced": PhType.neutral,
    "normal": PhType.neutral,
}

# Words that may stand on their own as a pH constraint subject. Narrower than PH_TERMS so that
# "sour cream" or "normal yogurt" are not read as acidity requests.
PH_SUBJECT_TERMS: frozenset[str] = frozenset({"acidic", "alkalizing", "neutral"})

# Ordered: earlier entries win when phrases overlap. Level/scale wording collapses first so that
# "ph level 7" ends up as the same token as "ph 7".
PH_PHRASES: tuple[tuple[str, str], ...] = (
    ("ph levels", "ph"),
    ("ph level", "ph"),
    ("ph values", "ph"),
    ("ph value", "ph"),
    ("ph scale", "ph"),
    ("acidity levels", "acidity"),
    ("acidity level", "acidity"),
    ("alkalinity levels", "alkalinity"),
    ("alkalinity level", "alkalinity"),
    ("neutral ph", "_ph_neutral_"),
    ("balanced ph", "_ph_neutral_"),
    ("ph 7", "_ph_neutral_"),
    ("low ph", "_ph_acidic_"),
    ("high acidity", "_ph_acidic_"),
    ("high acid", "_ph_acidic_"),
    ("most acidic", "_ph_acidic_"),
    ("high ph", "_ph_alkaline_"),
    ("low acidity", "_ph_alkaline_"),
    ("low acid", "_ph_alkaline_"),
    ("no acid", "_ph_alkaline_"),
    ("least acidic", "_ph_alkaline_"),
    ("high alkalinity", "_ph_alkaline_"),
    ("most alkaline", "_ph_alkaline_"),
    ("low alkalinity", "_ph_acidic_"),
    ("least alkaline", "_ph_acidic_"),
    ("more acidic", "_ph_acidic_"),
    ("less acidic", "_ph_alkaline_"),
    ("more alkaline", "_ph_alkaline_"),
    ("less alkaline", "_ph_acidic_"),
    ("alkaline food", "_ph_alkaline_"),
    ("acidic food", "_ph_acidic_"),
)

# Symbols are replaced verbatim, two-character operators first.
STRICT_OPERATORS: tuple[tuple[str, str], ...] = (
    ("<=", "_op_lte_"),
    (">=", "_op_gte_"),
    ("!=", "_op_neq_"),
    ("<", "_op_lt_"),
    (">", "_op_gt_"),
    ("=", "_op_eq_"),
)

OPERATOR_PHRASES: dict[str, str] = {
    "less than or equal to": "_op_lte_",
    "no more than": "_op_lte_",
    "not more than": "_op_lte_",
    "not exceeding": "_op_lte_",
    "at most": "_op_lte_",
    "up to": "_op_lte_",
    "maximum": "_op_lte_",
    "max": "_op_lte_",
    "limit": "_op_lte_",
    "greater than or equal to": "_op_gte_",
    "no less than": "_op_gte_",
    "not less than": "_op_gte_",
    "at least": "_op_gte_",
    "minimum": "_op_gte_",
    "min": "_op_gte_",
    "less than": "_op_lt_",
    "fewer than": "_op_lt_",
    "lower than": "_op_lt_",
    "under": "_op_lt_",
    "below": "_op_lt_",
    "greater than": "_op_gt_",
    "more than": "_op_gt_",
    "higher than": "_op_gt_",
    "over": "_op_gt_",
    "above": "_op_gt_",
    "not equal to": "_op_neq_",
    "not equal": "_op_neq_",
    "equal to": "_op_eq_",
}

# Only rewritten when immediately followed by a number ("less 5", "high 20").
COMPARATIVE_ADJECTIVES: dict[str, str] = {
    "less": "_op_lt_",
    "lower": "_op_lt_",
    "low": "_op_lt_",
    "small": "_op_lt_",
    "greater": "_op_gt_",
    "great": "_op_gt_",
    "more": "_op_gt_",
    "higher": "_op_gt_",
    "high": "_op_gt_",
    "equal": "_op_eq_",
    "not": "_op_neq_",
}

# Only rewritten when immediately preceded by a number ("5 less").
POSTFIX_OPERATORS: dict[str, str] = {
    "max": "_op_lte_",
    "min": "_op_gte_",
    "less": "_op_lt_",
    "more": "_op_gt_",
}

OPERATOR_CONNECTORS: frozenset[str] = frozenset({"between", "from", "to", "range"})

SUPERLATIVES_HIGH: frozenset[str] = frozenset({"highest", "most", "richest", "maximal"})
SUPERLATIVES_LOW: frozenset[str] = frozenset({"lowest", "least", "minimal"})

LOW_BIAS_WORDS: frozenset[str] = frozenset({"low", "lower", "less", "small", "reduced", "little"})
HIGH_BIAS_WORDS: frozenset[str] = frozenset({"high", "higher", "more", "great", "greater", "rich"})

PERSONA_AGES: dict[str, float] = {
    "newborn": 0.0,
    "baby": 6.0,
    "infant": 6.0,
    "toddler": 12.0,
    "kid": 24.0,
    "child": 24.0,
}

STOP_WORDS: frozenset[str] = frozenset(
    {
        "with", "and", "of", "in", "style", "type", "ns", "nfs",
        "based", "added", "to", "or", "a", "an", "the", "contain", "containing",
        "source", "content", "amount", "for", "old", "my", "safe", "can", "eat",
        "is", "are", "was", "were", "be", "being", "been",
        "strictly", "exactly", "roughly", "approximately", "around", "about",
        "just", "almost", "nearly", "virtually",
        "value", "values", "level", "levels", "scale", "balance",
        "than", "then", "g", "mg", "ug", "kcal", "diet", "diets",
    }
)

NEGATION_TERMS: frozenset[str] = frozenset(
    {
        "no", "without", "free", "non", "minus", "except", "zero",
        "not", "never", "nix", "none", "avoid",
        "exclude", "excluding", "excepting",
    }
)

SUFFIX_NEGATION_TERMS: frozenset[str] = frozenset({"free", "zero", "less"})

# Words skipped between a negation and its object ("free of sugar", "no added salt").
NEGATION_FILLERS: frozenset[str] = frozenset({"of", "from", "any", "added"})

STEMMING_EXCEPTIONS: dict[str, str] = {
    "fries": "fry",
    "berries": "berry",
    "cherries": "cherry",
    "tomatoes": "tomato",
    "potatoes": "potato",
}
