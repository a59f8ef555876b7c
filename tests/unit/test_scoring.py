"""
Selection cost: calorie gap plus named penalty terms
"""

import pytest

from mealgen.schemas.meal_plan import Complexity, MealType, UserDietaryProfile
from mealgen.services.scoring import (
    DEFAULT_WEIGHTS,
    ScoringContext,
    ingredient_tokens,
    rank_candidates,
    score_candidate,
    selection_cost,
    slot_target_calories,
)


def _profile(**prefs) -> UserDietaryProfile:
    return UserDietaryProfile(preferences=prefs)


def _cost(recipe, slot=MealType.LUNCH, profile=None, complexity=Complexity.SIMPLE, **flags):
    return selection_cost(
        recipe,
        target_calories=700,
        is_exact_repeat=flags.get("repeat", False),
        same_main_as_neighbor=flags.get("same_main", False),
        same_cuisine_as_neighbor=flags.get("same_cuisine", False),
        main_already_used_today=flags.get("main_today", False),
        complexity=complexity,
        slot_type=slot,
        profile=profile or _profile(),
    )


def test_slot_targets_follow_30_35_35_split():
    assert slot_target_calories(2000, MealType.BREAKFAST) == pytest.approx(600)
    assert slot_target_calories(2000, MealType.LUNCH) == pytest.approx(700)
    assert slot_target_calories(2000, MealType.DINNER) == pytest.approx(700)


def test_base_cost_is_calorie_gap(make_recipe):
    assert _cost(make_recipe("r", "R", 650, "lunch")) == 50
    assert _cost(make_recipe("r", "R", 760, "lunch")) == 60


def test_variety_penalties_add_up(make_recipe):
    recipe = make_recipe("r", "R", 700, "lunch")
    assert _cost(recipe, repeat=True) == 1000
    assert _cost(recipe, same_main=True) == 60
    assert _cost(recipe, same_cuisine=True) == 30
    assert _cost(recipe, main_today=True) == 20
    assert _cost(recipe, same_main=True, same_cuisine=True, main_today=True) == 110


@pytest.mark.parametrize("complexity, slot, expected", [
    (Complexity.COMPLEX, MealType.BREAKFAST, 120),
    (Complexity.COMPLEX, MealType.DINNER, 40),
    (Complexity.INTERMEDIATE, MealType.BREAKFAST, 20),
    (Complexity.INTERMEDIATE, MealType.LUNCH, 8),
    (Complexity.SIMPLE, MealType.DINNER, 0),
])
def test_complexity_penalties(make_recipe, complexity, slot, expected):
    assert _cost(make_recipe("r", "R", 700, None), slot=slot, complexity=complexity) == expected


def test_disallowed_complex_outweighs_everything(make_recipe):
    profile = _profile(disallow_complex=True)
    assert _cost(make_recipe("r", "R", 700, None), profile=profile, complexity=Complexity.COMPLEX) == 1000


def test_simple_bonuses(make_recipe):
    recipe = make_recipe("r", "R", 700, None)
    assert _cost(recipe, profile=_profile(prefer_simple=True)) == -10
    assert _cost(recipe, slot=MealType.BREAKFAST, profile=_profile(prefer_simple=True, strong_simple_breakfast_bias=True)) == -30
    # Strong breakfast bias stands on its own
    assert _cost(recipe, slot=MealType.BREAKFAST, profile=_profile(strong_simple_breakfast_bias=True)) == -20
    assert _cost(recipe, slot=MealType.LUNCH, profile=_profile(strong_simple_breakfast_bias=True)) == 0


def test_score_candidate_detects_neighbors(make_recipe):
    recipe = make_recipe("r1", "Chicken Tacos", 700, "dinner", ["chicken thighs"], ["mexican"])
    ctx = ScoringContext(
        slot_type=MealType.DINNER,
        target_calories=700,
        profile=_profile(),
        committed_ids=frozenset({"r1"}),
        previous_day_main="chicken",
        previous_day_cuisine="mexican",
        mains_used_today=frozenset({"chicken"}),
    )

    scored = score_candidate(recipe, ctx)

    assert scored.main_ingredient == "chicken"
    assert scored.cuisine == "mexican"
    assert scored.breakdown["exact_repeat"] == DEFAULT_WEIGHTS.exact_repeat
    assert scored.cost == 1000 + 60 + 30 + 20


def test_weekly_usage_counts_scale_penalties(make_recipe):
    recipe = make_recipe("r1", "Beef Pho", 700, "dinner", ["beef brisket"], ["vietnamese"])
    base = dict(slot_type=MealType.DINNER, target_calories=700, profile=_profile(),
                main_usage={"beef": 2}, cuisine_usage={"vietnamese": 3})

    assert score_candidate(recipe, ScoringContext(**base)).cost == 0
    assert score_candidate(recipe, ScoringContext(weekly=True, **base)).cost == 2 * 20 + 3 * 10


def test_batch_prep_bonus_and_pantry_overlap(make_recipe):
    stew = make_recipe("r1", "Beef Stew", 700, "dinner", ["2 cups diced onions", "beef chuck"])
    ctx = ScoringContext(
        slot_type=MealType.DINNER,
        target_calories=700,
        profile=_profile(prefer_batch_prep=True),
        neighbor_ingredients=frozenset({"onion"}),
    )

    scored = score_candidate(stew, ctx)

    assert ingredient_tokens(stew) == frozenset({"onion", "beef", "chuck"})
    assert scored.breakdown["batch_friendly"] == -25
    assert scored.breakdown["ingredient_overlap"] == pytest.approx(-20 / 3)


def test_ranking_is_ascending_and_stable(make_recipe):
    ctx = ScoringContext(slot_type=MealType.LUNCH, target_calories=700, profile=_profile())
    first = make_recipe("a", "A", 720, "lunch")
    second = make_recipe("b", "B", 680, "lunch")
    best = make_recipe("c", "C", 701, "lunch")

    ranked = rank_candidates([first, second, best], ctx)

    assert [s.recipe.id for s in ranked] == ["c", "a", "b"]
