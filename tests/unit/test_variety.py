"""
Variety tracker, pool cache and per-call generation context
"""

from datetime import date, timedelta

from mealgen.schemas.meal_plan import DailyMealPlan, LeftoverLink, MealSlot, MealType, UserDietaryProfile
from mealgen.services.variety import GenerationContext, PoolCache, VarietyTracker, profile_signature

MON = date(2025, 3, 3)
TUE = MON + timedelta(days=1)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ===== VARIETY TRACKER =====

def test_commit_updates_ids_and_usage(make_recipe):
    tracker = VarietyTracker()
    tracker.commit(MON, MealType.LUNCH, make_recipe("l1", "Chicken Wrap", 700, "lunch", ["chicken"], ["mexican"]))

    assert tracker.committed_ids == frozenset({"l1"})
    assert tracker.main_counts["chicken"] == 1
    assert tracker.cuisine_counts["mexican"] == 1


def test_recommit_same_slot_releases_previous_pick(make_recipe):
    tracker = VarietyTracker()
    tracker.commit(MON, MealType.LUNCH, make_recipe("l1", "Chicken Wrap", 700, "lunch", ["chicken"]))
    tracker.commit(MON, MealType.LUNCH, make_recipe("l2", "Beef Wrap", 700, "lunch", ["beef"]))

    assert tracker.committed_ids == frozenset({"l2"})
    assert tracker.main_counts["chicken"] == 0
    assert tracker.main_counts["beef"] == 1


def test_projection_is_visible_but_not_counted(make_recipe):
    tracker = VarietyTracker()
    stew = make_recipe("d1", "Beef Stew", 700, "dinner", ["beef chuck"])
    tracker.commit(MON, MealType.DINNER, stew)
    tracker.record_projection(TUE, MealType.LUNCH, stew)

    assert tracker.main_counts["beef"] == 1
    assert tracker.mains_on(TUE) == frozenset({"beef"})

    tracker.release(TUE, MealType.LUNCH)
    assert tracker.is_committed("d1")


def test_scoring_context_reads_previous_day_and_same_day(make_recipe):
    tracker = VarietyTracker()
    tracker.commit(MON, MealType.DINNER, make_recipe("d1", "Salmon", 700, "dinner", ["salmon fillet"], ["japanese"]))
    tracker.commit(TUE, MealType.LUNCH, make_recipe("l1", "Tofu Bowl", 700, "lunch", ["tofu"]))

    ctx = tracker.scoring_context(TUE, MealType.DINNER, 700, UserDietaryProfile(), weekly=True)

    assert ctx.previous_day_main == "salmon"
    assert ctx.previous_day_cuisine == "japanese"
    assert ctx.mains_used_today == frozenset({"tofu"})
    assert ctx.committed_ids == frozenset({"d1", "l1"})
    assert ctx.main_usage == {"salmon": 1, "tofu": 1}


def test_seed_commits_direct_picks_and_projects_linked_slots(make_recipe):
    stew = make_recipe("d1", "Beef Stew", 700, "dinner", ["beef"])
    source = MealSlot.from_recipe(stew)
    leftover = source.model_copy(update={
        "leftover_source": LeftoverLink(source_date=MON, source_meal_type=MealType.DINNER),
    })
    days = [
        DailyMealPlan(plan_date=MON, dinner=source),
        DailyMealPlan(plan_date=TUE, lunch=leftover),
    ]

    tracker = VarietyTracker()
    seeded = tracker.seed(days, {"d1": stew}.get)

    assert seeded == 2
    assert tracker.main_counts["beef"] == 1
    assert tracker.slot_features(TUE, MealType.LUNCH) == ("beef", None)


def test_seed_falls_back_to_slot_snapshot(make_recipe):
    slot = MealSlot.from_recipe(make_recipe("gone", "Chicken Soup", 500, "lunch", ["chicken"]))
    tracker = VarietyTracker()
    tracker.seed([DailyMealPlan(plan_date=MON, lunch=slot)], lambda _id: None)

    assert tracker.committed_ids == frozenset({"gone"})
    # A name-only snapshot has no ingredients or tags to classify
    assert tracker.slot_features(MON, MealType.LUNCH) == (None, None)


# ===== POOL CACHE =====

def test_pool_cache_expires_after_ttl(make_recipe):
    clock = FakeClock()
    cache = PoolCache(ttl_seconds=300, clock=clock)
    signature = profile_signature(UserDietaryProfile())
    cache.put(signature, MealType.LUNCH, [make_recipe("l1", "Wrap", 700, "lunch")], limit=30)

    clock.now += 299
    assert [r.id for r in cache.get(signature, MealType.LUNCH)] == ["l1"]

    clock.now += 2
    assert cache.get(signature, MealType.LUNCH) is None
    assert len(cache) == 0


def test_pool_cache_misses_when_a_bigger_pool_is_needed(make_recipe):
    cache = PoolCache(ttl_seconds=300)
    signature = profile_signature(UserDietaryProfile())
    cache.put(signature, MealType.DINNER, [make_recipe("d1", "Stew", 700, "dinner")], limit=30)

    assert cache.get(signature, MealType.DINNER, limit=30) is not None
    assert cache.get(signature, MealType.DINNER, limit=42) is None
    assert cache.get(signature, MealType.LUNCH) is None


def test_profile_signature_ignores_order_and_case():
    a = UserDietaryProfile(allergies=["Peanuts", "dairy"], excluded_ingredients=["cilantro"], fitness_goals=["fat_loss"])
    b = UserDietaryProfile(allergies=["DAIRY", "peanuts"], excluded_ingredients=["Cilantro"], fitness_goals=["fat_loss", "x"])
    c = UserDietaryProfile(allergies=["dairy"], calorie_goal=1800)

    assert profile_signature(a) == profile_signature(b)
    assert profile_signature(a) != profile_signature(c)


# ===== GENERATION CONTEXT =====

def _context(weekly: bool, window_end: date) -> GenerationContext:
    return GenerationContext(
        profile=UserDietaryProfile(),
        tracker=VarietyTracker(),
        pool_cache=PoolCache(),
        horizon_start=MON,
        horizon_end=MON + timedelta(days=6),
        window_start=MON,
        window_end=window_end,
        weekly=weekly,
    )


def test_generated_meals_are_ordered_and_windowed():
    ctx = _context(weekly=True, window_end=TUE)
    ctx.label(TUE, MealType.BREAKFAST, "breakfast")
    ctx.label(MON, MealType.DINNER, "dinner-relaxed")
    ctx.label(MON, MealType.BREAKFAST, "breakfast-local")
    ctx.label(TUE + timedelta(days=1), MealType.LUNCH, "lunch-leftover")

    assert ctx.generated_meals == [
        "2025-03-03:breakfast-local",
        "2025-03-03:dinner-relaxed",
        "2025-03-04:breakfast",
    ]


def test_daily_labels_are_undated_and_suggestions_deduplicated():
    ctx = _context(weekly=False, window_end=MON)
    ctx.label(MON, MealType.LUNCH, "lunch")
    ctx.label(MON, MealType.LUNCH, "lunch-fallback")
    ctx.suggest("Add more recipes")
    ctx.suggest("Add more recipes")

    assert ctx.generated_meals == ["lunch-fallback"]
    assert ctx.suggestions == ["Add more recipes"]
