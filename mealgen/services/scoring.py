# mealgen/services/scoring.py
"""
Selection cost for candidate recipes (lower is better).

Every penalty is a named entry in PenaltyWeights so the priority ordering is
visible in one place and each term can be tuned or tested on its own.
Scoring is pure: nothing here mutates generation state.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence

from mealgen.core.config import settings
from mealgen.schemas.meal_plan import Complexity, MealType, Recipe, UserDietaryProfile
from mealgen.services.features import Classifier, default_classifier


@dataclass(frozen=True)
class PenaltyWeights:
    """Cost terms added on top of abs(calories - target)"""
    exact_repeat: float = 1000
    same_main_as_previous_day: float = 60
    same_cuisine_as_previous_day: float = 30
    main_used_today: float = 20
    complex_disallowed: float = 1000
    complex_breakfast: float = 120
    complex_other: float = 40
    intermediate_breakfast: float = 20
    intermediate_other: float = 8
    simple_preferred: float = -10
    simple_breakfast_strong_bias: float = -20
    # Weekly runs only, multiplied by prior usage counts
    weekly_main_usage: float = 20
    weekly_cuisine_usage: float = 10
    # Batch-prep profiles only
    batch_friendly: float = -25
    ingredient_overlap_max: float = -20


DEFAULT_WEIGHTS = PenaltyWeights()


def slot_target_calories(
    calorie_goal: float,
    meal_type: MealType,
    split: Optional[Mapping[str, float]] = None,
) -> float:
    """Per-slot calorie target from the daily goal (30/35/35 by default)"""
    split = split or settings.calorie_split
    return calorie_goal * split.get(MealType(meal_type).value, 1 / 3)


_INGREDIENT_STOPWORDS = frozenset({
    "cup", "cups", "tbsp", "tsp", "tablespoon", "tablespoons", "teaspoon",
    "teaspoons", "gram", "grams", "ounce", "ounces", "pound", "pounds", "lbs",
    "can", "cans", "jar", "pinch", "dash", "clove", "cloves", "piece", "pieces",
    "slice", "slices", "chopped", "diced", "sliced", "minced", "grated",
    "fresh", "large", "small", "medium", "whole", "ground", "finely", "roughly",
    "optional", "taste", "and", "for", "the", "with", "into", "about", "plus",
})


def ingredient_tokens(recipe: Recipe) -> FrozenSet[str]:
    """Pantry words from free-text ingredient lines ("2 cups diced onions" -> {"onion"})"""
    tokens = set()
    for line in recipe.ingredients:
        for word in re.findall(r"[a-z]+", line.lower()):
            if len(word) < 3 or word in _INGREDIENT_STOPWORDS:
                continue
            if len(word) > 3 and word.endswith("s"):
                word = word[:-1]
            tokens.add(word)
    return frozenset(tokens)


def ingredient_overlap(candidate: FrozenSet[str], neighbors: FrozenSet[str]) -> float:
    if not candidate or not neighbors:
        return 0.0
    return len(candidate & neighbors) / len(candidate)


def complexity_terms(
    complexity: Complexity,
    slot_type: MealType,
    profile: UserDietaryProfile,
    weights: PenaltyWeights = DEFAULT_WEIGHTS,
) -> Dict[str, float]:
    prefs = profile.preferences
    is_breakfast = MealType(slot_type) == MealType.BREAKFAST
    terms: Dict[str, float] = {}

    if complexity == Complexity.COMPLEX:
        if prefs.disallow_complex:
            terms["complex_disallowed"] = weights.complex_disallowed
        else:
            terms["complex"] = weights.complex_breakfast if is_breakfast else weights.complex_other
    elif complexity == Complexity.INTERMEDIATE:
        terms["intermediate"] = weights.intermediate_breakfast if is_breakfast else weights.intermediate_other
    else:
        if prefs.prefer_simple:
            terms["simple_preferred"] = weights.simple_preferred
        if is_breakfast and prefs.strong_simple_breakfast_bias:
            terms["simple_breakfast_bias"] = weights.simple_breakfast_strong_bias

    return terms


def cost_terms(
    candidate: Recipe,
    target_calories: float,
    is_exact_repeat: bool,
    same_main_as_neighbor: bool,
    same_cuisine_as_neighbor: bool,
    main_already_used_today: bool,
    complexity: Complexity,
    slot_type: MealType,
    profile: UserDietaryProfile,
    weights: PenaltyWeights = DEFAULT_WEIGHTS,
) -> Dict[str, float]:
    terms = {"calorie_gap": abs(candidate.calories - target_calories)}

    if is_exact_repeat:
        terms["exact_repeat"] = weights.exact_repeat
    if same_main_as_neighbor:
        terms["same_main_as_previous_day"] = weights.same_main_as_previous_day
    if same_cuisine_as_neighbor:
        terms["same_cuisine_as_previous_day"] = weights.same_cuisine_as_previous_day
    if main_already_used_today:
        terms["main_used_today"] = weights.main_used_today

    terms.update(complexity_terms(complexity, slot_type, profile, weights))
    return terms


def selection_cost(
    candidate: Recipe,
    target_calories: float,
    is_exact_repeat: bool,
    same_main_as_neighbor: bool,
    same_cuisine_as_neighbor: bool,
    main_already_used_today: bool,
    complexity: Complexity,
    slot_type: MealType,
    profile: UserDietaryProfile,
    weights: PenaltyWeights = DEFAULT_WEIGHTS,
) -> float:
    return sum(cost_terms(
        candidate, target_calories, is_exact_repeat, same_main_as_neighbor,
        same_cuisine_as_neighbor, main_already_used_today, complexity,
        slot_type, profile, weights,
    ).values())


@dataclass
class ScoringContext:
    """Read-only view of variety state for scoring one slot"""
    slot_type: MealType
    target_calories: float
    profile: UserDietaryProfile
    committed_ids: FrozenSet[str] = frozenset()
    previous_day_main: Optional[str] = None
    previous_day_cuisine: Optional[str] = None
    mains_used_today: FrozenSet[str] = frozenset()
    weekly: bool = False
    main_usage: Mapping[str, int] = field(default_factory=dict)
    cuisine_usage: Mapping[str, int] = field(default_factory=dict)
    neighbor_ingredients: FrozenSet[str] = frozenset()


@dataclass
class ScoredCandidate:
    recipe: Recipe
    cost: float
    breakdown: Dict[str, float]
    main_ingredient: Optional[str] = None
    cuisine: Optional[str] = None


def score_candidate(
    recipe: Recipe,
    ctx: ScoringContext,
    classifier: Classifier = default_classifier,
    weights: PenaltyWeights = DEFAULT_WEIGHTS,
) -> ScoredCandidate:
    main = classifier.main_ingredient(recipe)
    recipe_cuisine = classifier.cuisine(recipe)

    terms = cost_terms(
        recipe,
        ctx.target_calories,
        is_exact_repeat=recipe.id in ctx.committed_ids,
        same_main_as_neighbor=main is not None and main == ctx.previous_day_main,
        same_cuisine_as_neighbor=recipe_cuisine is not None and recipe_cuisine == ctx.previous_day_cuisine,
        main_already_used_today=main is not None and main in ctx.mains_used_today,
        complexity=classifier.complexity(recipe),
        slot_type=ctx.slot_type,
        profile=ctx.profile,
        weights=weights,
    )

    if ctx.weekly:
        if main is not None and ctx.main_usage.get(main):
            terms["weekly_main_usage"] = ctx.main_usage[main] * weights.weekly_main_usage
        if recipe_cuisine is not None and ctx.cuisine_usage.get(recipe_cuisine):
            terms["weekly_cuisine_usage"] = ctx.cuisine_usage[recipe_cuisine] * weights.weekly_cuisine_usage

    if ctx.profile.preferences.prefer_batch_prep:
        if classifier.is_batch_friendly(recipe):
            terms["batch_friendly"] = weights.batch_friendly
        overlap = ingredient_overlap(ingredient_tokens(recipe), ctx.neighbor_ingredients)
        if overlap > 0:
            terms["ingredient_overlap"] = weights.ingredient_overlap_max * overlap

    return ScoredCandidate(
        recipe=recipe,
        cost=sum(terms.values()),
        breakdown=terms,
        main_ingredient=main,
        cuisine=recipe_cuisine,
    )


def rank_candidates(
    candidates: Sequence[Recipe],
    ctx: ScoringContext,
    classifier: Classifier = default_classifier,
    weights: PenaltyWeights = DEFAULT_WEIGHTS,
) -> List[ScoredCandidate]:
    """Ascending cost; sorted() is stable so ties keep pool order"""
    scored = [score_candidate(r, ctx, classifier, weights) for r in candidates]
    return sorted(scored, key=lambda s: s.cost)
