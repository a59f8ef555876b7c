# mealgen/services/suitability.py

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Sequence, Tuple

from mealgen.schemas.meal_plan import DietType, MealType, Recipe, UserDietaryProfile, normalize_tag
from mealgen.services.features import Classifier, default_classifier

# A recipe must carry at least one of these tags once a diet is selected
DIET_REQUIRED_TAGS: Dict[DietType, FrozenSet[str]] = {
    DietType.VEGETARIAN: frozenset({"vegetarian", "vegan"}),
    DietType.VEGAN: frozenset({"vegan"}),
    DietType.PESCATARIAN: frozenset({"pescatarian", "vegetarian", "vegan"}),
    DietType.KETO: frozenset({"keto", "low-carb"}),
    DietType.PALEO: frozenset({"paleo"}),
    DietType.GLUTEN_FREE: frozenset({"gluten-free"}),
    DietType.DAIRY_FREE: frozenset({"dairy-free", "vegan"}),
    DietType.LOW_CARB: frozenset({"low-carb", "keto"}),
}

# Allergy names expand to the ingredient terms that usually carry them
ALLERGY_INGREDIENTS: Dict[str, Tuple[str, ...]] = {
    "dairy": ("milk", "cheese", "butter", "cream", "yogurt", "lactose", "whey", "casein"),
    "eggs": ("egg", "albumin", "mayonnaise", "meringue", "ovalbumin", "lysozyme"),
    "peanuts": ("peanut", "arachis", "groundnut", "beer nuts", "mixed nuts"),
    "tree nuts": ("almond", "cashew", "walnut", "pecan", "hazelnut", "pistachio", "macadamia", "brazil nut"),
    "shellfish": ("shrimp", "crab", "lobster", "crawfish", "prawn", "langoustine", "scampi"),
    "fish": ("fish", "cod", "salmon", "tuna", "tilapia", "anchovy", "bass", "flounder", "halibut"),
    "wheat": ("wheat", "flour", "bread", "pasta", "cereal", "bran", "bulgur", "couscous", "semolina"),
    "gluten": ("gluten", "wheat", "barley", "rye", "malt", "brewer's yeast", "triticale", "spelt"),
    "soy": ("soy", "soya", "edamame", "tofu", "tempeh", "miso", "tamari", "lecithin"),
    "sesame": ("sesame", "tahini", "halvah", "gomashio", "benne"),
    "corn": ("corn", "maize", "cornstarch", "cornmeal", "polenta", "grits", "hominy"),
    "mustard": ("mustard", "mustard seed", "mustard powder", "dijon", "wasabi"),
}

_ALLERGY_ALIASES = {"egg": "eggs", "peanut": "peanuts", "tree nut": "tree nuts", "nuts": "tree nuts"}


def exclusion_terms(allergies: Iterable[str], excluded_ingredients: Iterable[str]) -> List[str]:
    """
    Lower-cased substring terms for the allergy/exclusion check.

    The raw allergy name is always kept alongside its expansion.
    """
    terms: List[str] = []
    for allergy in allergies or []:
        key = str(allergy).strip().lower()
        if not key:
            continue
        terms.append(key)
        terms.extend(ALLERGY_INGREDIENTS.get(_ALLERGY_ALIASES.get(key, key), ()))
    for excluded in excluded_ingredients or []:
        term = str(excluded).strip().lower()
        if term:
            terms.append(term)
    # Preserve order, drop duplicates
    return list(dict.fromkeys(terms))


def matches_diet(recipe: Recipe, diet_type: DietType) -> bool:
    diet = DietType(diet_type)
    if diet == DietType.ANY:
        return True
    required = DIET_REQUIRED_TAGS.get(diet, frozenset({diet.value}))
    return bool(required.intersection(recipe.all_tags))


def contains_excluded(recipe: Recipe, terms: Sequence[str]) -> bool:
    # Blunt substring test: "egg" also rejects "eggplant". Safety over recall.
    for ingredient in recipe.ingredients:
        line = ingredient.lower()
        for term in terms:
            if term in line:
                return True
    return False


def matches_cuisine(
    recipe: Recipe,
    preferred_cuisines: Sequence[str] = (),
    excluded_cuisines: Sequence[str] = (),
    classifier: Classifier = default_classifier,
) -> bool:
    detected = classifier.cuisine(recipe)
    if detected is None:
        return True
    if detected in {normalize_tag(c) for c in excluded_cuisines}:
        return False
    preferred = {normalize_tag(c) for c in preferred_cuisines}
    if preferred and detected not in preferred:
        return False
    return True


def is_suitable(
    recipe: Recipe,
    diet_type: DietType,
    allergies: Sequence[str] = (),
    excluded_ingredients: Sequence[str] = (),
    preferred_cuisines: Sequence[str] = (),
    excluded_cuisines: Sequence[str] = (),
    classifier: Classifier = default_classifier,
) -> bool:
    """Pure eligibility test: diet tags, cuisine preference, allergy/exclusion terms"""
    if not matches_diet(recipe, diet_type):
        return False
    if not matches_cuisine(recipe, preferred_cuisines, excluded_cuisines, classifier):
        return False
    return not contains_excluded(recipe, exclusion_terms(allergies, excluded_ingredients))


def is_suitable_for_profile(
    recipe: Recipe,
    profile: UserDietaryProfile,
    classifier: Classifier = default_classifier,
) -> bool:
    return is_suitable(
        recipe,
        profile.diet_type,
        profile.allergies,
        profile.excluded_ingredients,
        profile.preferred_cuisines,
        profile.excluded_cuisines,
        classifier,
    )


def matches_meal_type(
    recipe: Recipe,
    meal_type: MealType,
    classifier: Classifier = default_classifier,
) -> bool:
    """Breakfast must pass the breakfast check; lunch/dinner reject breakfast/snack hints"""
    if MealType(meal_type) == MealType.BREAKFAST:
        return classifier.is_breakfast_appropriate(recipe)
    return recipe.meal_type not in ("breakfast", "brunch", "snack", "dessert")


def within_calories(recipe: Recipe, target: float, tolerance: float) -> bool:
    if target <= 0:
        return True
    return target * (1 - tolerance) <= recipe.calories <= target * (1 + tolerance)


@dataclass
class SuitabilityReport:
    """Candidate counts through each filter stage, for failure diagnostics"""
    total: int = 0
    after_diet: int = 0
    after_allergies: int = 0
    after_cuisine: int = 0

    def merge(self, other: "SuitabilityReport") -> "SuitabilityReport":
        return SuitabilityReport(
            total=self.total + other.total,
            after_diet=self.after_diet + other.after_diet,
            after_allergies=self.after_allergies + other.after_allergies,
            after_cuisine=self.after_cuisine + other.after_cuisine,
        )

    def describe(self) -> str:
        return (
            f"{self.total} candidates found, {self.after_diet} after diet filter, "
            f"{self.after_allergies} after allergy/exclusion filter, "
            f"{self.after_cuisine} after cuisine filter"
        )


def suitability_report(
    recipes: Sequence[Recipe],
    profile: UserDietaryProfile,
    classifier: Classifier = default_classifier,
) -> SuitabilityReport:
    terms = exclusion_terms(profile.allergies, profile.excluded_ingredients)

    diet_ok = [r for r in recipes if matches_diet(r, profile.diet_type)]
    allergy_ok = [r for r in diet_ok if not contains_excluded(r, terms)]
    cuisine_ok = [
        r for r in allergy_ok
        if matches_cuisine(r, profile.preferred_cuisines, profile.excluded_cuisines, classifier)
    ]

    return SuitabilityReport(
        total=len(recipes),
        after_diet=len(diet_ok),
        after_allergies=len(allergy_ok),
        after_cuisine=len(cuisine_ok),
    )
