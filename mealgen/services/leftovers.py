# mealgen/services/leftovers.py

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Sequence

from mealgen.schemas.meal_plan import LeftoverLink, MealSlot, MealType, Recipe, SlotKey, UserDietaryProfile
from mealgen.services.features import Classifier, default_classifier

logger = logging.getLogger(__name__)

LEFTOVER_SUFFIX = "(Leftovers)"
MAKE_AHEAD_SUFFIX = "(Make-ahead)"
MAKE_AHEAD_WINDOW_DAYS = 2
MAKE_AHEAD_MAX_COPIES = 2


@dataclass
class Projection:
    plan_date: date
    meal_type: MealType
    slot: MealSlot

    @property
    def key(self) -> SlotKey:
        return SlotKey(plan_date=self.plan_date, meal_type=self.meal_type)


class LeftoverPlanner:
    """
    Projects batch-friendly picks forward onto empty slots.

    Dinners become a leftover lunch within ``max_leftover_gap_days``; batch
    breakfasts are copied onto up to two following empty breakfasts. Only ever
    looks forward and only proposes slots the caller reports as empty.
    """

    def __init__(self, classifier: Classifier = default_classifier):
        self.classifier = classifier

    def project(
        self,
        source_date: date,
        source_meal_type: MealType,
        source_slot: MealSlot,
        recipe: Recipe,
        profile: UserDietaryProfile,
        is_empty: Callable[[date, MealType], bool],
        allow_make_ahead: bool = True,
    ) -> List[Projection]:
        prefs = profile.preferences
        source_meal_type = MealType(source_meal_type)

        if not prefs.plan_leftovers or source_slot.is_linked:
            return []
        if not self.classifier.is_batch_friendly(recipe):
            return []

        if source_meal_type == MealType.DINNER:
            for offset in range(1, prefs.max_leftover_gap_days + 1):
                target = source_date + timedelta(days=offset)
                if is_empty(target, MealType.LUNCH):
                    return [Projection(target, MealType.LUNCH, self.leftover_slot(
                        source_date, source_meal_type, source_slot, recipe,
                    ))]
            logger.info(f"No empty lunch within {prefs.max_leftover_gap_days} days of {source_date} for leftovers")
            return []

        if source_meal_type == MealType.BREAKFAST and allow_make_ahead:
            projections = []
            for offset in range(1, MAKE_AHEAD_WINDOW_DAYS + 1):
                target = source_date + timedelta(days=offset)
                if is_empty(target, MealType.BREAKFAST):
                    projections.append(Projection(target, MealType.BREAKFAST, self.make_ahead_slot(
                        source_date, source_slot, recipe,
                    )))
                if len(projections) >= MAKE_AHEAD_MAX_COPIES:
                    break
            return projections

        return []

    def leftover_slot(
        self,
        source_date: date,
        source_meal_type: MealType,
        source_slot: MealSlot,
        recipe: Recipe,
    ) -> MealSlot:
        return MealSlot(
            recipe_id=source_slot.recipe_id,
            name=f"{source_slot.name} {LEFTOVER_SUFFIX}",
            nutrition=source_slot.nutrition,
            servings=source_slot.servings,
            notes=f"Leftovers from {MealType(source_meal_type).value} on {source_date.isoformat()}",
            batch_prep=True,
            is_leftover=True,
            leftover_source=LeftoverLink(source_date=source_date, source_meal_type=source_meal_type),
            repurpose_suggestion=self.classifier.repurpose_suggestion(recipe),
            generation_tier="leftover",
        )

    def make_ahead_slot(self, source_date: date, source_slot: MealSlot, recipe: Recipe) -> MealSlot:
        return MealSlot(
            recipe_id=source_slot.recipe_id,
            name=f"{source_slot.name} {MAKE_AHEAD_SUFFIX}",
            nutrition=source_slot.nutrition,
            servings=source_slot.servings,
            notes=f"Made ahead on {source_date.isoformat()}",
            batch_prep=True,
            is_leftover=True,
            leftover_source=LeftoverLink(source_date=source_date, source_meal_type=MealType.BREAKFAST),
            repurpose_suggestion=self.classifier.repurpose_suggestion(recipe),
            generation_tier="make-ahead",
        )

    @staticmethod
    def annotate_source(source_slot: MealSlot, projections: Sequence[Projection]) -> MealSlot:
        """Copy of the source slot pointing at the slots it now feeds"""
        targets = list(source_slot.leftover_targets) + [p.key for p in projections]
        return source_slot.model_copy(update={"leftover_targets": targets, "batch_prep": True}, deep=True)
