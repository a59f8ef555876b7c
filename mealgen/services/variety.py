# mealgen/services/variety.py

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from mealgen.core.config import settings
from mealgen.schemas.meal_plan import MEAL_ORDER, DailyMealPlan, MealSlot, MealType, Recipe, UserDietaryProfile
from mealgen.services.features import Classifier, default_classifier
from mealgen.services.scoring import ScoringContext, ingredient_tokens

logger = logging.getLogger(__name__)

ProfileSignature = Tuple[str, Tuple[str, ...], Tuple[str, ...], int, Optional[str]]


def profile_signature(profile: UserDietaryProfile) -> ProfileSignature:
    """Cache key for fetched pools: anything that changes what a provider returns"""
    return (
        profile.diet_type.value,
        tuple(sorted(a.strip().lower() for a in profile.allergies)),
        tuple(sorted(e.strip().lower() for e in profile.excluded_ingredients)),
        int(profile.calorie_goal),
        profile.primary_fitness_goal,
    )


@dataclass
class _SlotRecord:
    recipe_id: str
    main: Optional[str]
    cuisine: Optional[str]
    ingredients: FrozenSet[str]
    counted: bool


class VarietyTracker:
    """
    Run-scoped variety state: committed recipe ids plus main-ingredient and
    cuisine usage. Updated right after each commit so the next slot is scored
    against everything chosen so far.
    """

    def __init__(self, classifier: Classifier = default_classifier):
        self.classifier = classifier
        self.reset()

    def reset(self) -> None:
        self._id_counts: Counter = Counter()
        self.main_counts: Counter = Counter()
        self.cuisine_counts: Counter = Counter()
        self._slots: Dict[Tuple[date, MealType], _SlotRecord] = {}

    @property
    def committed_ids(self) -> FrozenSet[str]:
        return frozenset(rid for rid, count in self._id_counts.items() if count > 0)

    def is_committed(self, recipe_id: str) -> bool:
        return self._id_counts.get(recipe_id, 0) > 0

    def _record(self, recipe: Recipe, counted: bool) -> _SlotRecord:
        return _SlotRecord(
            recipe_id=recipe.id,
            main=self.classifier.main_ingredient(recipe),
            cuisine=self.classifier.cuisine(recipe),
            ingredients=ingredient_tokens(recipe),
            counted=counted,
        )

    def commit(self, plan_date: date, meal_type: MealType, recipe: Recipe) -> None:
        key = (plan_date, MealType(meal_type))
        if key in self._slots:
            self.release(plan_date, meal_type)

        record = self._record(recipe, counted=True)
        self._slots[key] = record
        self._id_counts[recipe.id] += 1
        if record.main:
            self.main_counts[record.main] += 1
        if record.cuisine:
            self.cuisine_counts[record.cuisine] += 1

    def record_projection(self, plan_date: date, meal_type: MealType, recipe: Recipe) -> None:
        """Leftover/repeat slots: visible to neighbor checks, exempt from uniqueness and counts"""
        key = (plan_date, MealType(meal_type))
        if key in self._slots:
            self.release(plan_date, meal_type)
        self._slots[key] = self._record(recipe, counted=False)

    def release(self, plan_date: date, meal_type: MealType) -> None:
        record = self._slots.pop((plan_date, MealType(meal_type)), None)
        if record is None or not record.counted:
            return
        self._id_counts[record.recipe_id] -= 1
        if record.main:
            self.main_counts[record.main] -= 1
        if record.cuisine:
            self.cuisine_counts[record.cuisine] -= 1

    def seed(
        self,
        days: Iterable[DailyMealPlan],
        resolve: Callable[[str], Optional[Recipe]],
    ) -> int:
        """Pre-load already planned slots so new picks avoid stepping on them"""
        seeded = 0
        for day in days:
            for meal_type, slot in day.filled_slots().items():
                recipe = resolve(slot.recipe_id) or _recipe_from_slot(slot)
                if slot.is_linked:
                    self.record_projection(day.plan_date, meal_type, recipe)
                else:
                    self.commit(day.plan_date, meal_type, recipe)
                seeded += 1
        if seeded:
            logger.info(f"Seeded variety tracker with {seeded} existing slots")
        return seeded

    def slot_features(self, plan_date: date, meal_type: MealType) -> Tuple[Optional[str], Optional[str]]:
        record = self._slots.get((plan_date, MealType(meal_type)))
        if record is None:
            return None, None
        return record.main, record.cuisine

    def mains_on(self, plan_date: date, exclude: Optional[MealType] = None) -> FrozenSet[str]:
        return frozenset(
            record.main
            for (d, mt), record in self._slots.items()
            if d == plan_date and mt != exclude and record.main
        )

    def ingredients_near(self, plan_date: date, exclude: Optional[MealType] = None) -> FrozenSet[str]:
        """Ingredient words of the same day's other picks and the previous day's picks"""
        previous = plan_date - timedelta(days=1)
        tokens = set()
        for (d, mt), record in self._slots.items():
            if d == previous or (d == plan_date and mt != exclude):
                tokens.update(record.ingredients)
        return frozenset(tokens)

    def scoring_context(
        self,
        plan_date: date,
        meal_type: MealType,
        target_calories: float,
        profile: UserDietaryProfile,
        weekly: bool = False,
    ) -> ScoringContext:
        meal_type = MealType(meal_type)
        previous_main, previous_cuisine = self.slot_features(plan_date - timedelta(days=1), meal_type)
        return ScoringContext(
            slot_type=meal_type,
            target_calories=target_calories,
            profile=profile,
            committed_ids=self.committed_ids,
            previous_day_main=previous_main,
            previous_day_cuisine=previous_cuisine,
            mains_used_today=self.mains_on(plan_date, exclude=meal_type),
            weekly=weekly,
            main_usage=dict(self.main_counts),
            cuisine_usage=dict(self.cuisine_counts),
            neighbor_ingredients=self.ingredients_near(plan_date, exclude=meal_type),
        )


def _recipe_from_slot(slot: MealSlot) -> Recipe:
    # Source recipe is gone; classify on the snapshot name alone
    return Recipe(id=slot.recipe_id, name=slot.name, calories=slot.nutrition.calories)


@dataclass
class _CacheEntry:
    stored_at: float
    limit: int
    recipes: List[Recipe]


class PoolCache:
    """Time-boxed cache of fetched pools keyed by (profile signature, meal type)"""

    def __init__(
        self,
        ttl_seconds: float = settings.pool_cache_ttl_seconds,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[ProfileSignature, MealType], _CacheEntry] = {}

    def get(self, signature: ProfileSignature, meal_type: MealType, limit: int = 0) -> Optional[List[Recipe]]:
        key = (signature, MealType(meal_type))
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        if entry.limit < limit:
            return None
        return list(entry.recipes)

    def put(self, signature: ProfileSignature, meal_type: MealType, recipes: List[Recipe], limit: int) -> None:
        self._entries[(signature, MealType(meal_type))] = _CacheEntry(
            stored_at=self._clock(),
            limit=limit,
            recipes=list(recipes),
        )

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class GenerationContext:
    """
    Live state for one top-level generation call.

    ``horizon_*`` bounds uniqueness and tracker seeding; ``window_*`` is the
    range the caller asked for, the only dates reported in generated_meals.
    """
    profile: UserDietaryProfile
    tracker: VarietyTracker
    pool_cache: PoolCache
    horizon_start: date
    horizon_end: date
    window_start: date
    window_end: date
    weekly: bool = False
    recipe_index: Dict[str, Recipe] = field(default_factory=dict)
    labels: Dict[Tuple[date, MealType], str] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    # Slots written by this call; only these may be substituted later in the call
    touched: Dict[Tuple[date, MealType], str] = field(default_factory=dict)

    @property
    def signature(self) -> ProfileSignature:
        return profile_signature(self.profile)

    def in_horizon(self, plan_date: date) -> bool:
        return self.horizon_start <= plan_date <= self.horizon_end

    def in_window(self, plan_date: date) -> bool:
        return self.window_start <= plan_date <= self.window_end

    def index(self, recipes: Iterable[Recipe]) -> None:
        for recipe in recipes:
            self.recipe_index.setdefault(recipe.id, recipe)

    def resolve(self, recipe_id: str) -> Optional[Recipe]:
        return self.recipe_index.get(recipe_id)

    def label(self, plan_date: date, meal_type: MealType, tag: str) -> None:
        self.labels[(plan_date, MealType(meal_type))] = tag

    def suggest(self, message: str) -> None:
        if message not in self.suggestions:
            self.suggestions.append(message)

    @property
    def generated_meals(self) -> List[str]:
        """Tier-tagged identifiers of in-window slots, in date then meal order"""
        keys = sorted(
            (key for key in self.labels if self.in_window(key[0])),
            key=lambda k: (k[0], MEAL_ORDER.index(k[1])),
        )
        if self.weekly:
            return [f"{d.isoformat()}:{self.labels[(d, mt)]}" for d, mt in keys]
        return [self.labels[key] for key in keys]
