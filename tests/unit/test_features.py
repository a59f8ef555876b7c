"""
Keyword feature extraction
"""

from mealgen.schemas.meal_plan import Complexity
from mealgen.services.features import (
    GENERIC_REPURPOSE,
    KeywordClassifier,
    contains_keyword,
    cuisine,
    is_batch_friendly,
    is_breakfast_appropriate,
    main_ingredient,
    repurpose_suggestion,
)


def test_keyword_match_is_whole_word_with_plural():
    assert contains_keyword("3 large eggs", "egg")
    assert not contains_keyword("1 eggplant", "egg")
    assert contains_keyword("slow-cooker", "slow-cooker")


def test_keyword_match_accepts_verb_endings():
    assert contains_keyword("roasted chicken", "roast")
    assert contains_keyword("baked ziti", "bake")
    assert contains_keyword("baking day", "bake")
    assert contains_keyword("stewed beans", "stew")
    assert not contains_keyword("roaster pan", "roast")


def test_main_ingredient_prefers_ingredients_then_tags(make_recipe):
    from_ingredients = make_recipe("r1", "Weeknight Bowl", 600, "dinner", ["2 chicken breasts", "rice"], ["beef"])
    from_tags = make_recipe("r2", "Mystery Bowl", 600, "dinner", ["rice"], ["tofu"])
    assert main_ingredient(from_ingredients) == "chicken"
    assert main_ingredient(from_tags) == "tofu"
    assert main_ingredient(make_recipe("r3", "Plain Rice", 300, None, ["rice"])) is None


def test_main_ingredient_vocabulary_order_wins(make_recipe):
    recipe = make_recipe("r1", "Loaded Burrito", 700, "lunch", ["black beans", "ground beef"])
    assert main_ingredient(recipe) == "beef"


def test_cuisine_comes_from_tags(make_recipe):
    assert cuisine(make_recipe("r1", "Tikka", 600, "dinner", ["chicken"], ["Indian"])) == "indian"
    assert cuisine(make_recipe("r2", "Italian-ish Pasta", 600, "dinner", ["pasta"])) is None


def test_breakfast_appropriate_from_keywords_and_hints(make_recipe):
    assert is_breakfast_appropriate(make_recipe("r1", "Morning Bowl", 400, None, ["rolled oats", "milk"]))
    assert is_breakfast_appropriate(make_recipe("r2", "Shakshuka", 450, None, ["tomatoes"]))
    assert is_breakfast_appropriate(make_recipe("r3", "Anything", 450, "brunch", ["bread"]))
    assert not is_breakfast_appropriate(make_recipe("r4", "Beef Lasagna", 700, None, ["eggs", "beef"]))
    assert not is_breakfast_appropriate(make_recipe("r5", "Grilled Fish", 500, None, ["cod"]))


def test_batch_friendly_keywords(make_recipe):
    assert is_batch_friendly(make_recipe("r1", "Slow Cooker Chili", 700, "dinner", ["beans"]))
    assert is_batch_friendly(make_recipe("r2", "Chicken Bowls", 600, "lunch", ["chicken"], ["meal_prep"]))
    assert not is_batch_friendly(make_recipe("r3", "Seared Scallops", 500, "dinner", ["scallops"]))
    assert is_batch_friendly(make_recipe("r4", "Baked Ziti", 750, "dinner", ["ziti", "ricotta"]))
    assert is_batch_friendly(make_recipe("r5", "Stewed Beans", 550, "lunch", ["cannellini beans"]))


def test_repurpose_suggestion_rules(make_recipe):
    roast = make_recipe("r1", "Sunday Roast Chicken", 800, "dinner", ["whole chicken"])
    stew = make_recipe("r2", "Irish Stew", 750, "dinner", ["lamb", "potatoes"])
    plain = make_recipe("r3", "Risotto", 600, "dinner", ["arborio rice"])
    roasted = make_recipe("r4", "Roasted Chicken", 800, "dinner", ["whole chicken"])
    assert "sandwiches or tacos" in repurpose_suggestion(roast)
    assert repurpose_suggestion(roasted) == "Shred the leftover chicken for sandwiches or tacos"
    assert "stew" in repurpose_suggestion(stew).lower()
    assert repurpose_suggestion(plain) == GENERIC_REPURPOSE


def test_custom_vocabulary_and_plant_based(make_recipe):
    classifier = KeywordClassifier(main_ingredients=("jackfruit",))
    recipe = make_recipe("r1", "Pulled Jackfruit", 500, "lunch", ["young jackfruit"], dietary=["vegan"], complexity="hard")
    assert classifier.main_ingredient(recipe) == "jackfruit"
    assert classifier.is_plant_based(recipe)
    assert classifier.complexity(recipe) == Complexity.COMPLEX
