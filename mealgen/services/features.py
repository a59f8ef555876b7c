# mealgen/services/features.py
"""
Recipe feature extraction
=========================

Upstream tagging is unreliable, so coarse descriptors (main protein, cuisine,
breakfast fit, batch fit) are derived from free text with keyword tables.
These are approximations, not ground truth: a "Chicken-Free Noodle Soup" is
still classified as chicken. Swap in another Classifier when better metadata
is available.
"""

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from mealgen.schemas.meal_plan import Complexity, Recipe

# Order matters: first hit wins, so specific terms come before generic ones
MAIN_INGREDIENTS: Tuple[str, ...] = (
    "chicken", "turkey", "beef", "pork", "lamb", "bacon", "sausage",
    "salmon", "tuna", "cod", "shrimp", "prawn", "fish",
    "tofu", "tempeh", "seitan",
    "lentil", "chickpea", "black bean", "bean",
    "egg", "paneer", "halloumi", "cheese", "yogurt",
    "quinoa", "mushroom",
)

CUISINES: Tuple[str, ...] = (
    "italian", "mexican", "chinese", "japanese", "thai", "indian", "korean",
    "vietnamese", "french", "greek", "spanish", "mediterranean",
    "middle-eastern", "moroccan", "caribbean", "american", "british",
)

BREAKFAST_MEAL_TYPES = ("breakfast", "brunch")

BREAKFAST_POSITIVE: Tuple[str, ...] = (
    "breakfast", "brunch", "oat", "oats", "oatmeal", "porridge", "granola",
    "muesli", "cereal", "pancake", "waffle", "crepe", "french toast", "toast",
    "bagel", "muffin", "smoothie", "parfait", "chia", "omelet", "omelette",
    "frittata", "scramble", "scrambled", "shakshuka", "hash brown", "egg",
)

# Dinner-style dishes; these veto a breakfast classification
BREAKFAST_NEGATIVE: Tuple[str, ...] = (
    "curry", "stew", "chili", "lasagna", "lasagne", "burger", "steak",
    "pasta", "spaghetti", "risotto", "pizza", "stir-fry", "stir fry",
    "fried rice", "taco", "tacos", "enchilada", "meatball", "meatloaf",
    "roast", "pot pie", "soup", "kebab", "biryani", "noodle", "ramen",
    "pad thai",
)

BATCH_KEYWORDS: Tuple[str, ...] = (
    "make-ahead", "make ahead", "meal-prep", "meal prep", "batch",
    "slow-cooker", "slow cooker", "crockpot", "crock-pot", "instant-pot",
    "instant pot", "casserole", "stew", "chili", "soup", "curry", "bake",
    "overnight-oats", "overnight oats", "overnight", "freezer", "sheet-pan",
    "sheet pan", "lasagna", "egg muffins",
)

PLANT_BASED_TAGS = ("vegetarian", "vegan")

# (main ingredient or None, dish-style keyword or None, suggestion)
REPURPOSE_RULES: Tuple[Tuple[Optional[str], Optional[str], str], ...] = (
    ("chicken", "roast", "Shred the leftover chicken for sandwiches or tacos"),
    ("chicken", None, "Slice the chicken into salads or wraps"),
    ("turkey", None, "Use the turkey in wraps or a quick grain bowl"),
    ("beef", "stew", "Serve the stew over rice or a baked potato"),
    ("beef", "chili", "Spoon the chili over nachos or a baked potato"),
    ("beef", None, "Fold the beef into burritos or a grain bowl"),
    ("pork", None, "Crisp the pork in a pan for tacos or fried rice"),
    ("salmon", None, "Flake the salmon into a salad or fish cakes"),
    ("fish", None, "Flake the fish into tacos or a rice bowl"),
    ("tofu", None, "Toss the tofu into a stir-fry or noodle bowl"),
    (None, "curry", "Pack the curry over rice or with flatbread for lunch"),
    (None, "soup", "Portion the soup into jars for a grab-and-go lunch"),
    (None, "stew", "Portion the stew into containers and reheat for lunch"),
    (None, "chili", "Stuff the chili into baked sweet potatoes"),
    (None, "pasta", "Turn the pasta into a baked pasta or a cold pasta salad"),
    ("lentil", None, "Mash the lentils into a wrap filling or thicken into a soup"),
    ("chickpea", None, "Pile the chickpeas onto a salad or into pitas"),
    ("bean", None, "Use the beans in quesadillas or a burrito bowl"),
    ("egg", None, "Reheat and wrap in a tortilla for a grab-and-go breakfast"),
    (None, "oats", "Grab a jar straight from the fridge"),
)

GENERIC_REPURPOSE = "Portion into containers and reheat for an easy lunch"


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> "re.Pattern[str]":
    # Whole-word match allowing plural and verb endings ("roasted", "baking");
    # "egg" never hits "eggplant"
    stem = keyword[:-1] if keyword.endswith("e") else keyword
    return re.compile(
        r"(?<![a-z])(?:" + re.escape(keyword) + r"(?:e?s|e?d)?|" + re.escape(stem) + r"ing)(?![a-z])"
    )


def contains_keyword(text: str, keyword: str) -> bool:
    return _keyword_pattern(keyword.lower()).search(text.lower()) is not None


def first_match(texts: Iterable[str], vocabulary: Sequence[str]) -> Optional[str]:
    """Return the first vocabulary entry found in any of the texts"""
    lowered = [t.lower() for t in texts if t]
    for keyword in vocabulary:
        for text in lowered:
            if contains_keyword(text, keyword):
                return keyword
    return None


def _tag_texts(recipe: Recipe) -> List[str]:
    # Tags are hyphenated; compare on spaced form as well so "slow-cooker" and
    # "slow cooker" both hit
    texts = []
    for tag in recipe.all_tags:
        texts.append(tag)
        texts.append(tag.replace("-", " "))
    return texts


class Classifier(Protocol):
    """Coarse recipe descriptors used by scoring and filtering"""

    def main_ingredient(self, recipe: Recipe) -> Optional[str]: ...

    def cuisine(self, recipe: Recipe) -> Optional[str]: ...

    def is_breakfast_appropriate(self, recipe: Recipe) -> bool: ...

    def is_batch_friendly(self, recipe: Recipe) -> bool: ...

    def is_plant_based(self, recipe: Recipe) -> bool: ...

    def complexity(self, recipe: Recipe) -> Complexity: ...

    def repurpose_suggestion(self, recipe: Recipe) -> str: ...


class KeywordClassifier:
    """Keyword-table implementation of Classifier"""

    def __init__(
        self,
        main_ingredients: Sequence[str] = MAIN_INGREDIENTS,
        cuisines: Sequence[str] = CUISINES,
        breakfast_positive: Sequence[str] = BREAKFAST_POSITIVE,
        breakfast_negative: Sequence[str] = BREAKFAST_NEGATIVE,
        batch_keywords: Sequence[str] = BATCH_KEYWORDS,
    ):
        self.main_ingredients = tuple(main_ingredients)
        self.cuisines = tuple(cuisines)
        self.breakfast_positive = tuple(breakfast_positive)
        self.breakfast_negative = tuple(breakfast_negative)
        self.batch_keywords = tuple(batch_keywords)

    def main_ingredient(self, recipe: Recipe) -> Optional[str]:
        found = first_match(recipe.ingredients, self.main_ingredients)
        if found:
            return found
        return first_match(_tag_texts(recipe), self.main_ingredients)

    def cuisine(self, recipe: Recipe) -> Optional[str]:
        tags = recipe.all_tags
        for cuisine in self.cuisines:
            if cuisine in tags:
                return cuisine
        return None

    def is_breakfast_appropriate(self, recipe: Recipe) -> bool:
        name_and_tags = [recipe.name] + _tag_texts(recipe)

        # Negative list always wins, even over an explicit breakfast hint
        if first_match(name_and_tags, self.breakfast_negative):
            return False

        if recipe.meal_type in BREAKFAST_MEAL_TYPES:
            return True
        if any(tag in BREAKFAST_MEAL_TYPES for tag in recipe.all_tags):
            return True

        return first_match(name_and_tags + list(recipe.ingredients), self.breakfast_positive) is not None

    def is_batch_friendly(self, recipe: Recipe) -> bool:
        return first_match([recipe.name] + _tag_texts(recipe), self.batch_keywords) is not None

    def is_plant_based(self, recipe: Recipe) -> bool:
        return any(tag in PLANT_BASED_TAGS for tag in recipe.all_tags)

    def complexity(self, recipe: Recipe) -> Complexity:
        return recipe.complexity

    def repurpose_suggestion(self, recipe: Recipe) -> str:
        main = self.main_ingredient(recipe)
        style_texts = [recipe.name] + _tag_texts(recipe)

        for rule_main, rule_style, suggestion in REPURPOSE_RULES:
            if rule_main is not None and rule_main != main:
                continue
            if rule_style is not None and not first_match(style_texts, (rule_style,)):
                continue
            return suggestion

        return GENERIC_REPURPOSE


default_classifier = KeywordClassifier()


def main_ingredient(recipe: Recipe) -> Optional[str]:
    return default_classifier.main_ingredient(recipe)


def cuisine(recipe: Recipe) -> Optional[str]:
    return default_classifier.cuisine(recipe)


def is_breakfast_appropriate(recipe: Recipe) -> bool:
    return default_classifier.is_breakfast_appropriate(recipe)


def is_batch_friendly(recipe: Recipe) -> bool:
    return default_classifier.is_batch_friendly(recipe)


def repurpose_suggestion(recipe: Recipe) -> str:
    return default_classifier.repurpose_suggestion(recipe)
