"""
Suitability filter: diet tags, allergy/exclusion substrings, cuisine preferences
"""

import pytest

from mealgen.schemas.meal_plan import DietType, MealType, UserDietaryProfile
from mealgen.services.suitability import (
    exclusion_terms,
    is_suitable,
    is_suitable_for_profile,
    matches_meal_type,
    suitability_report,
    within_calories,
)


# ===== ALLERGIES & EXCLUSIONS =====

@pytest.mark.parametrize("term", ["peanut", "PEANUT", "Peanut Butter", "butter"])
def test_any_ingredient_containing_an_excluded_term_is_rejected(make_recipe, term):
    recipe = make_recipe("r1", "Satay Noodles", 600, "dinner", ["2 tbsp Peanut Butter", "rice noodles"])
    assert not is_suitable(recipe, DietType.ANY, excluded_ingredients=[term])


def test_allergy_name_expands_to_ingredient_terms(make_recipe):
    recipe = make_recipe("r1", "Mac and Cheese", 650, "dinner", ["macaroni", "sharp cheddar cheese"])
    assert not is_suitable(recipe, DietType.ANY, allergies=["Dairy"])
    assert is_suitable(recipe, DietType.ANY, allergies=["shellfish"])


def test_exclusion_is_a_blunt_substring_match(make_recipe):
    # "egg" also rejects eggplant; safety over recall
    recipe = make_recipe("r1", "Eggplant Parmesan", 600, "dinner", ["1 large eggplant", "parmesan"])
    assert not is_suitable(recipe, DietType.ANY, excluded_ingredients=["egg"])


def test_exclusion_terms_keep_raw_allergy_and_drop_duplicates():
    terms = exclusion_terms(["Tree Nuts", "nuts"], ["almond", " Cilantro "])
    assert terms[0] == "tree nuts"
    assert "cashew" in terms
    assert "cilantro" in terms
    assert terms.count("almond") == 1


# ===== DIET TYPES =====

def test_any_diet_accepts_untagged_recipes(make_recipe):
    assert is_suitable(make_recipe("r1", "Steak", 700, "dinner", ["ribeye"]), DietType.ANY)


@pytest.mark.parametrize("diet, tags, expected", [
    (DietType.VEGAN, ["vegan"], True),
    (DietType.VEGAN, ["vegetarian"], False),
    (DietType.VEGETARIAN, ["vegan"], True),
    (DietType.KETO, ["low-carb"], True),
    (DietType.PALEO, ["keto"], False),
    (DietType.GLUTEN_FREE, ["Gluten_Free"], True),
])
def test_diet_requires_one_of_its_tags(make_recipe, diet, tags, expected):
    recipe = make_recipe("r1", "Bowl", 600, "lunch", ["greens"], dietary=tags)
    assert is_suitable(recipe, diet) is expected


# ===== CUISINE =====

def test_excluded_cuisine_is_rejected(make_recipe):
    recipe = make_recipe("r1", "Pad Kra Pao", 650, "dinner", ["basil"], ["thai"])
    assert not is_suitable(recipe, DietType.ANY, excluded_cuisines=["Thai"])


def test_preferred_cuisines_reject_other_detected_cuisines_only(make_recipe):
    thai = make_recipe("r1", "Green Curry", 650, "dinner", ["coconut milk"], ["thai"])
    unknown = make_recipe("r2", "House Salad", 400, "lunch", ["lettuce"])
    assert not is_suitable(thai, DietType.ANY, preferred_cuisines=["italian"])
    assert is_suitable(unknown, DietType.ANY, preferred_cuisines=["italian"])


def test_profile_wrapper_uses_every_profile_field(make_recipe):
    profile = UserDietaryProfile(diet_type="vegetarian", allergies=["soy"])
    tofu = make_recipe("r1", "Tofu Bowl", 600, "lunch", ["firm tofu"], dietary=["vegan"])
    beans = make_recipe("r2", "Bean Bowl", 600, "lunch", ["black beans"], dietary=["vegan"])
    assert not is_suitable_for_profile(tofu, profile)
    assert is_suitable_for_profile(beans, profile)


# ===== MEAL TYPE & CALORIES =====

def test_breakfast_negative_keyword_beats_upstream_meal_type(make_recipe):
    chili = make_recipe("r1", "Breakfast Chili", 600, "breakfast", ["beans"], ["breakfast"])
    oats = make_recipe("r2", "Overnight Oats", 450, "dinner", ["rolled oats", "milk"])
    assert not matches_meal_type(chili, MealType.BREAKFAST)
    assert matches_meal_type(oats, MealType.BREAKFAST)


def test_lunch_and_dinner_reject_breakfast_hints(make_recipe):
    pancakes = make_recipe("r1", "Pancakes", 500, "breakfast", ["flour"])
    assert not matches_meal_type(pancakes, MealType.LUNCH)
    assert matches_meal_type(make_recipe("r2", "Soup", 500, None, ["stock"]), MealType.DINNER)


def test_within_calories_window(make_recipe):
    assert within_calories(make_recipe("x", "x", 481, None), 600, 0.20)
    assert within_calories(make_recipe("x", "x", 719, None), 600, 0.20)
    assert not within_calories(make_recipe("x", "x", 479, None), 600, 0.20)
    assert not within_calories(make_recipe("x", "x", 721, None), 600, 0.20)
    assert within_calories(make_recipe("x", "x", 821, None), 600, 0.40)


# ===== DIAGNOSTICS =====

def test_suitability_report_counts_each_stage(make_recipe):
    profile = UserDietaryProfile(diet_type="vegetarian", allergies=["peanuts"], excluded_cuisines=["thai"])
    recipes = [
        make_recipe("r1", "Steak", 700, "dinner", ["ribeye"]),
        make_recipe("r2", "Satay Tofu", 600, "dinner", ["peanut sauce", "tofu"], dietary=["vegan"]),
        make_recipe("r3", "Thai Curry", 650, "dinner", ["coconut milk"], ["thai"], dietary=["vegetarian"]),
        make_recipe("r4", "Lentil Dal", 600, "dinner", ["red lentils"], dietary=["vegan"]),
    ]

    report = suitability_report(recipes, profile)

    assert (report.total, report.after_diet, report.after_allergies, report.after_cuisine) == (4, 3, 2, 1)
    assert "4 candidates found" in report.describe()
