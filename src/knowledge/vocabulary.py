"""Closed vocabularies: nutrient identifiers, diet names, allergens and pH classes."""

from __future__ import annotations

from enum import StrEnum


class Nutrient(StrEnum):
    """Nutrient identifiers understood by the food catalog."""

    # Macros
    energy = "energy"
    protein = "protein"
    carbs = "carbs"
    total_sugar = "total_sugar"
    fiber = "fiber"
    total_fat = "total_fat"
    water = "water"
    alcohol = "alcohol"
    ash = "ash"
    starch = "starch"

    # Specific sugars
    glucose = "glucose"
    fructose = "fructose"
    galactose = "galactose"
    sucrose = "sucrose"
    maltose = "maltose"

    # Minerals
    calcium = "calcium"
    iron = "iron"
    magnesium = "magnesium"
    phosphorus = "phosphorus"
    potassium = "potassium"
    sodium = "sodium"
    zinc = "zinc"
    copper = "copper"
    manganese = "manganese"
    selenium = "selenium"
    fluoride = "fluoride"

    # Vitamins
    vitamin_a = "vitamin_a"
    retinol = "retinol"
    beta_carotene = "beta_carotene"
    alpha_carotene = "alpha_carotene"
    lycopene = "lycopene"
    lutein_zeaxanthin = "lutein_zeaxanthin"
    vitamin_c = "vitamin_c"
    vitamin_d = "vitamin_d"
    vitamin_e = "vitamin_e"
    vitamin_k = "vitamin_k"
    thiamin = "thiamin"
    riboflavin = "riboflavin"
    niacin = "niacin"
    pantothenic_acid = "pantothenic_acid"
    vitamin_b6 = "vitamin_b6"
    vitamin_b12 = "vitamin_b12"
    folate_total = "folate_total"
    folic_acid = "folic_acid"
    choline = "choline"
    betaine = "betaine"

    # Fats
    saturated_fat = "saturated_fat"
    monounsaturated_fat = "monounsaturated_fat"
    polyunsaturated_fat = "polyunsaturated_fat"
    trans_fat = "trans_fat"
    cholesterol = "cholesterol"
    phytosterols = "phytosterols"
    oleic_acid = "oleic_acid"
    linoleic_acid = "linoleic_acid"
    linolenic_acid = "linolenic_acid"
    epa = "epa"
    dha = "dha"

    # Amino acids
    alanine = "alanine"
    arginine = "arginine"
    aspartic_acid = "aspartic_acid"
    cystine = "cystine"
    glutamic_acid = "glutamic_acid"
    glycine = "glycine"
    histidine = "histidine"
    isoleucine = "isoleucine"
    leucine = "leucine"
    lysine = "lysine"
    methionine = "methionine"
    phenylalanine = "phenylalanine"
    proline = "proline"
    serine = "serine"
    threonine = "threonine"
    tryptophan = "tryptophan"
    tyrosine = "tyrosine"
    valine = "valine"

    # Other
    caffeine = "caffeine"
    theobromine = "theobromine"


class DietType(StrEnum):
    """Catalog diet tags (values are the display names stored on foods)."""

    vegan = "Vegan"
    vegetarian = "Vegetarian"
    pescatarian = "Pescatarian"
    gluten_free = "Gluten-Free"
    dairy_free = "Dairy-Free"
    lactose_free = "Lactose-Free"
    egg_free = "Egg-Free"
    nut_free = "Nut-Free"
    soy_free = "Soy-Free"
    halal = "Halal"
    kosher = "Kosher"
    high_protein = "High-Protein"
    keto = "Keto"
    paleo = "Paleo"
    low_carb = "Low-Carb"
    low_fat = "Low-Fat"
    low_sodium = "Low Sodium"
    no_added_sugar = "No Added Sugar"
    mineral_rich = "Mineral-Rich"
    vitamin_rich = "Vitamin-Rich"
    fat_free = "Fat-Free"

    @classmethod
    def from_name(cls, name: str) -> DietType | None:
        """Return the diet whose display name is `name`, if any."""

        try:
            return cls(name)
        except ValueError:
            return None


class Allergen(StrEnum):
    """Allergen groups (EU FIC list, nuts split by kind)."""

    celery = "Celery"
    cereals_containing_gluten = "Cereals containing gluten"
    cereals_containing_gluten_barley = "Cereals containing gluten (barley)"
    cereals_containing_gluten_oats = "Cereals containing gluten (oats)"
    cereals_containing_gluten_rye = "Cereals containing gluten (rye)"
    crustaceans = "Crustaceans"
    eggs = "Eggs"
    fish = "Fish"
    milk = "Milk"
    molluscs = "Molluscs"
    mustard = "Mustard"
    nuts = "Nuts"
    nuts_brazil = "Nuts (Brazil nuts)"
    nuts_almonds = "Nuts (almonds)"
    nuts_cashews = "Nuts (cashews)"
    nuts_chestnuts = "Nuts (chestnuts)"
    nuts_coconut = "Nuts (coconut)"
    nuts_hazelnuts = "Nuts (hazelnuts)"
    nuts_macadamia = "Nuts (macadamia nuts)"
    nuts_pecans = "Nuts (pecans)"
    nuts_pine = "Nuts (pine nuts)"
    nuts_pistachio = "Nuts (pistachio nuts)"
    nuts_walnuts = "Nuts (walnuts)"
    peanuts = "Peanuts"
    sesame_seeds = "Sesame seeds"
    soybeans = "Soybeans"
    sulphites = "Sulphur dioxide/sulphites"


class PhType(StrEnum):
    """Coarse acidity classes used by single-word pH adjectives."""

    acidic = "acidic"
    alkaline = "alkaline"
    neutral = "neutral"


class SubjectKind(StrEnum):
    """What a constraint subject refers to."""

    nutrient = "nutrient"
    ph = "ph"
    diet = "diet"
    allergen = "allergen"
    unknown = "unknown"
