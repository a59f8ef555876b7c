# mealgen/services/generation_engine.py
"""
Meal Plan Generation Engine
===========================

Greedy, explainable slot-by-slot planner:

    fetch pools (concurrently, one shared deadline, cached per profile)
      -> per slot: suitability -> cost ranking -> fallback cascade
      -> commit to the store + variety tracker
      -> optional leftover / make-ahead projection
    -> plant-based guarantee pass

Selection (scoring, cascade) is pure. Everything that mutates state - the
store, the tracker, the call's GenerationContext - happens here.

Public methods never raise: failures come back as GenerationResult with an
error and suggestions, ``False`` from swap_meal, or an empty alternatives list.
"""

import asyncio
import logging
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from mealgen.core.config import Settings, settings
from mealgen.core.exceptions import InvalidSwapRequest, PoolFetchError
from mealgen.schemas.meal_plan import (
    MEAL_ORDER,
    BreakfastRepeatMode,
    GenerationResult,
    LeftoverLink,
    MealSlot,
    MealType,
    Recipe,
    UserDietaryProfile,
)
from mealgen.services.fallback import (
    WIDE_CALORIE_TOLERANCE,
    CandidateSources,
    CascadeOutcome,
    FallbackCascade,
    SlotRequest,
    tier_tag,
)
from mealgen.services.features import Classifier, default_classifier
from mealgen.services.leftovers import LeftoverPlanner
from mealgen.services.plan_store import MealPlanStore
from mealgen.services.profile_provider import UserProfileProvider
from mealgen.services.recipe_sources import (
    LocalRecipeRepository,
    NullPoolProvider,
    PoolFilters,
    RecipePoolProvider,
    bundled_recipes,
)
from mealgen.services.scoring import DEFAULT_WEIGHTS, PenaltyWeights, rank_candidates, slot_target_calories
from mealgen.services.suitability import (
    is_suitable_for_profile,
    matches_meal_type,
    suitability_report,
    within_calories,
)
from mealgen.services.variety import GenerationContext, PoolCache, VarietyTracker, profile_signature

logger = logging.getLogger(__name__)

BREAKFAST_BLOCK_DAYS = 3
ALTERNATIVES_CALORIE_TOLERANCE = 0.30
DAILY_CALORIE_TOLERANCE = 0.20

POOLS_FETCHED_PROGRESS = 0.4
ASSIGNMENT_DONE_PROGRESS = 0.9
PLANT_CHECK_PROGRESS = 0.95

FAILURE_TIPS = [
    "Try relaxing your diet type or allergy/exclusion settings",
    "Add more recipes to your local collection",
    "Check your internet connection so online recipes can be loaded",
]


class GenerationState(str, Enum):
    IDLE = "idle"
    FETCHING_POOLS = "fetching_pools"
    ASSIGNING_SLOTS = "assigning_slots"
    PLANT_BASED_CHECK = "plant_based_check"
    DONE = "done"


ProgressCallback = Callable[[GenerationState, float], None]


def iso_week(plan_date: date) -> Tuple[date, date]:
    """Monday..Sunday containing the date"""
    monday = plan_date - timedelta(days=plan_date.weekday())
    return monday, monday + timedelta(days=6)


def date_range(start_date: date, end_date: date) -> List[date]:
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


class GenerationEngine:
    """
    Owns collaborators and the shared pool cache; each top-level call builds
    its own GenerationContext. Calls are serialized with one asyncio.Lock,
    which may be shared between engines built per request.
    """

    def __init__(
        self,
        profile_provider: UserProfileProvider,
        plan_store: MealPlanStore,
        pool_provider: Optional[RecipePoolProvider] = None,
        local_repository: Optional[LocalRecipeRepository] = None,
        bundled: Optional[Sequence[Recipe]] = None,
        classifier: Classifier = default_classifier,
        weights: PenaltyWeights = DEFAULT_WEIGHTS,
        pool_cache: Optional[PoolCache] = None,
        lock: Optional[asyncio.Lock] = None,
        progress_callback: Optional[ProgressCallback] = None,
        config: Settings = settings,
    ):
        self.profile_provider = profile_provider
        self.plan_store = plan_store
        self.pool_provider = pool_provider or NullPoolProvider()
        self.local_repository = local_repository
        self.bundled = list(bundled) if bundled is not None else bundled_recipes()
        self.classifier = classifier
        self.weights = weights
        self.config = config
        self.pool_cache = pool_cache if pool_cache is not None else PoolCache(config.pool_cache_ttl_seconds)
        self.progress_callback = progress_callback

        self.cascade = FallbackCascade(classifier, weights)
        self.leftovers = LeftoverPlanner(classifier)
        self._lock = lock or asyncio.Lock()

        self.state = GenerationState.IDLE
        self.progress = 0.0

    # ===== PUBLIC SURFACE =====

    async def generate_meal_plan(
        self,
        plan_date: date,
        fallback_recipes: Sequence[Recipe] = (),
        slot_type: Optional[MealType] = None,
    ) -> GenerationResult:
        """Fill one slot (replacing it) or, without slot_type, every empty slot of the day"""
        async with self._lock:
            self._begin()
            try:
                return await self._generate_day(plan_date, list(fallback_recipes), slot_type)
            except Exception as e:
                logger.error(f"Meal plan generation failed for {plan_date}: {e}", exc_info=True)
                return GenerationResult.failure(f"Meal plan generation failed: {e}", list(FAILURE_TIPS))
            finally:
                self._finish()

    async def generate_all_meals_for_day(
        self,
        plan_date: date,
        fallback_recipes: Sequence[Recipe] = (),
    ) -> GenerationResult:
        return await self.generate_meal_plan(plan_date, fallback_recipes, None)

    async def generate_weekly_meal_plan(self, start_date: date, end_date: date) -> GenerationResult:
        async with self._lock:
            self._begin()
            try:
                return await self._generate_week(start_date, end_date)
            except Exception as e:
                logger.error(f"Weekly generation failed for {start_date}..{end_date}: {e}", exc_info=True)
                return GenerationResult.failure(f"Weekly meal plan generation failed: {e}", list(FAILURE_TIPS))
            finally:
                self._finish()

    def swap_meal(self, plan_date: date, slot_type: MealType, new_recipe_id: str) -> bool:
        """Replace a slot with a specific recipe; False (and no mutation) when the swap is invalid"""
        try:
            if self._lock.locked():
                raise InvalidSwapRequest("A generation run is in progress", new_recipe_id)
            self._swap(plan_date, MealType(slot_type), str(new_recipe_id))
            return True
        except InvalidSwapRequest as e:
            logger.warning(f"Swap rejected for {slot_type} on {plan_date}: {e.reason}")
            return False
        except Exception as e:
            logger.error(f"Swap failed for {slot_type} on {plan_date}: {e}", exc_info=True)
            return False

    async def get_alternative_recipes(
        self,
        plan_date: date,
        slot_type: MealType,
        current_recipe_id: str,
    ) -> List[Recipe]:
        async with self._lock:
            try:
                return await self._alternatives(plan_date, MealType(slot_type), str(current_recipe_id))
            except Exception as e:
                logger.error(f"Could not load alternatives for {slot_type} on {plan_date}: {e}", exc_info=True)
                return []

    # ===== STATE / PROGRESS =====

    def _notify(self) -> None:
        if self.progress_callback is not None:
            self.progress_callback(self.state, self.progress)

    def _begin(self) -> None:
        self.state = GenerationState.IDLE
        self.progress = 0.0
        self._notify()

    def _transition(self, state: GenerationState, progress: Optional[float] = None) -> None:
        self.state = state
        if progress is not None:
            self.progress = max(self.progress, progress)
        self._notify()

    def _advance(self, progress: float) -> None:
        if progress > self.progress:
            self.progress = progress
            self._notify()

    def _finish(self) -> None:
        self._transition(GenerationState.DONE, 1.0)

    # ===== SHARED STEPS =====

    def _new_context(
        self,
        profile: UserDietaryProfile,
        horizon: Tuple[date, date],
        window: Tuple[date, date],
        weekly: bool = False,
    ) -> GenerationContext:
        return GenerationContext(
            profile=profile,
            tracker=VarietyTracker(self.classifier),
            pool_cache=self.pool_cache,
            horizon_start=horizon[0],
            horizon_end=horizon[1],
            window_start=window[0],
            window_end=window[1],
            weekly=weekly,
        )

    def _target_calories(self, profile: UserDietaryProfile, meal_type: MealType) -> float:
        return slot_target_calories(profile.calorie_goal, meal_type, self.config.calorie_split)

    async def _fetch_pools(
        self,
        ctx: GenerationContext,
        meal_types: Sequence[MealType],
        limit: int,
    ) -> Dict[MealType, List[Recipe]]:
        """
        Fan out one fetch per meal type against a single shared deadline.
        A fetch that fails or misses the deadline yields an empty pool and is
        not cached, so the cascade simply moves on to local sources.
        """
        loop = asyncio.get_running_loop()
        timeout = self.config.pool_fetch_timeout_seconds
        deadline = loop.time() + timeout

        async def fetch_one(meal_type: MealType) -> Tuple[MealType, List[Recipe]]:
            cached = ctx.pool_cache.get(ctx.signature, meal_type, limit)
            if cached is not None:
                logger.info(f"Using cached {meal_type.value} pool ({len(cached)} recipes)")
                return meal_type, cached

            target = self._target_calories(ctx.profile, meal_type)
            filters = PoolFilters.for_profile(
                ctx.profile,
                calorie_range=(target * (1 - WIDE_CALORIE_TOLERANCE), target * (1 + WIDE_CALORIE_TOLERANCE)),
            )
            remaining = max(0.0, deadline - loop.time())
            try:
                recipes = await asyncio.wait_for(self.pool_provider.fetch(meal_type, filters, limit), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning(f"{meal_type.value} pool fetch timed out after {timeout:.1f}s; treating as empty")
                return meal_type, []
            except PoolFetchError as e:
                logger.warning(f"{e}; treating as empty")
                return meal_type, []
            except Exception as e:
                logger.error(f"Unexpected {meal_type.value} pool provider error: {e}", exc_info=True)
                return meal_type, []

            recipes = list(recipes)
            ctx.pool_cache.put(ctx.signature, meal_type, recipes, limit)
            return meal_type, recipes

        results = await asyncio.gather(*(fetch_one(MealType(mt)) for mt in meal_types))
        pools = dict(results)
        logger.info("Fetched pools: " + ", ".join(f"{mt.value}={len(r)}" for mt, r in pools.items()))
        return pools

    def _sources(
        self,
        pools: Dict[MealType, List[Recipe]],
        fallback_recipes: Sequence[Recipe] = (),
    ) -> CandidateSources:
        local = list(self.local_repository.all()) if self.local_repository is not None else []
        # Caller-held recipes join the local tier
        seen = {r.id for r in local}
        for recipe in fallback_recipes:
            if recipe.id not in seen:
                seen.add(recipe.id)
                local.append(recipe)
        return CandidateSources(remote=pools, local=local, bundled=list(self.bundled))

    def _prepare(
        self,
        ctx: GenerationContext,
        pools: Dict[MealType, List[Recipe]],
        fallback_recipes: Sequence[Recipe] = (),
    ) -> CandidateSources:
        sources = self._sources(pools, fallback_recipes)
        ctx.index(sources.all_recipes())
        days = self.plan_store.get_range(ctx.horizon_start, ctx.horizon_end).values()
        ctx.tracker.seed(days, ctx.resolve)
        return sources

    def _slot_request(
        self,
        ctx: GenerationContext,
        plan_date: date,
        meal_type: MealType,
        exclude_ids: FrozenSet[str] = frozenset(),
        require: Optional[Callable[[Recipe], bool]] = None,
    ) -> SlotRequest:
        target = self._target_calories(ctx.profile, meal_type)
        return SlotRequest(
            meal_type=meal_type,
            scoring=ctx.tracker.scoring_context(plan_date, meal_type, target, ctx.profile, weekly=ctx.weekly),
            enforce_uniqueness=ctx.profile.preferences.strict_uniqueness,
            exclude_ids=exclude_ids,
            require=require,
        )

    def _commit(
        self,
        ctx: GenerationContext,
        plan_date: date,
        meal_type: MealType,
        outcome: CascadeOutcome,
    ) -> MealSlot:
        recipe = outcome.choice.recipe
        slot = MealSlot.from_recipe(recipe, tier=outcome.tier.value)
        self.plan_store.set_slot(plan_date, meal_type, slot)

        ctx.tracker.commit(plan_date, meal_type, recipe)
        ctx.index([recipe])
        ctx.touched[(plan_date, meal_type)] = recipe.id
        ctx.label(plan_date, meal_type, tier_tag(meal_type, outcome.tier))
        logger.info(
            f"{plan_date} {meal_type.value}: '{recipe.name}' from {outcome.tier.value} tier "
            f"(cost {outcome.choice.cost:.1f})"
        )
        return slot

    def _fill_slot(
        self,
        ctx: GenerationContext,
        sources: CandidateSources,
        plan_date: date,
        meal_type: MealType,
        allow_make_ahead: bool = True,
        exclude_ids: FrozenSet[str] = frozenset(),
    ) -> Optional[MealSlot]:
        outcome = self.cascade.select(sources, self._slot_request(ctx, plan_date, meal_type, exclude_ids))
        if not outcome.filled:
            ctx.failures.append(f"{plan_date.isoformat()}:{meal_type.value}")
            ctx.suggest(
                f"No suitable {meal_type.value} could be found for {plan_date.isoformat()} "
                f"({outcome.describe_attempts()})"
            )
            return None

        slot = self._commit(ctx, plan_date, meal_type, outcome)
        return self._project_leftovers(ctx, plan_date, meal_type, slot, outcome.choice.recipe, allow_make_ahead)

    def _project_leftovers(
        self,
        ctx: GenerationContext,
        plan_date: date,
        meal_type: MealType,
        slot: MealSlot,
        recipe: Recipe,
        allow_make_ahead: bool,
    ) -> MealSlot:
        def is_empty(target_date: date, target_type: MealType) -> bool:
            return self.plan_store.get_slot(target_date, target_type) is None

        projections = self.leftovers.project(
            plan_date, meal_type, slot, recipe, ctx.profile, is_empty, allow_make_ahead,
        )
        written = []
        for projection in projections:
            # Never overwrite; the store may have changed since the planner looked
            if not is_empty(projection.plan_date, projection.meal_type):
                continue
            self.plan_store.set_slot(projection.plan_date, projection.meal_type, projection.slot)
            ctx.tracker.record_projection(projection.plan_date, projection.meal_type, recipe)
            written.append(projection)

            kind = "leftover" if projection.meal_type == MealType.LUNCH else "make-ahead"
            ctx.label(projection.plan_date, projection.meal_type, f"{projection.meal_type.value}-{kind}")
            if not ctx.in_window(projection.plan_date):
                ctx.suggest(
                    f"{recipe.name} will also cover {projection.meal_type.value} on "
                    f"{projection.plan_date.isoformat()} as {kind}"
                )

        if not written:
            return slot

        logger.info(
            f"Projected '{recipe.name}' onto "
            + ", ".join(f"{p.plan_date} {p.meal_type.value}" for p in written)
        )
        annotated = LeftoverPlanner.annotate_source(slot, written)
        self.plan_store.set_slot(plan_date, meal_type, annotated)
        return annotated

    def _live_targets(self, plan_date: date, meal_type: MealType, slot: MealSlot) -> List[str]:
        """Projected or repeated slots that still point back at this one"""
        source = LeftoverLink(source_date=plan_date, source_meal_type=meal_type)
        live = []
        for target in slot.leftover_targets:
            other = self.plan_store.get_slot(target.plan_date, target.meal_type)
            if other is not None and other.leftover_source == source:
                live.append(f"{target.meal_type.value} on {target.plan_date.isoformat()}")

        # Repeat copies are not listed on their source; they always come later in the range
        if meal_type == MealType.BREAKFAST:
            later = self.plan_store.get_range(
                plan_date + timedelta(days=1), plan_date + timedelta(days=self.config.max_plan_days),
            )
            for other_date, day in later.items():
                if day.breakfast is not None and day.breakfast.repeat_of == source:
                    live.append(f"breakfast on {other_date.isoformat()}")
        return live

    def _calorie_diagnostics(self, ctx: GenerationContext, plan_date: date) -> None:
        day = self.plan_store.get_day(plan_date)
        touched = False
        for meal_type, slot in day.filled_slots().items():
            if (plan_date, meal_type) not in ctx.touched:
                continue
            touched = True
            target = self._target_calories(ctx.profile, meal_type)
            calories = slot.nutrition.calories * slot.servings
            if target > 0 and abs(calories - target) > target * DAILY_CALORIE_TOLERANCE:
                ctx.suggest(
                    f"{meal_type.value.capitalize()} on {plan_date.isoformat()} has {calories:.0f} kcal, "
                    f"outside 20% of its {target:.0f} kcal target"
                )

        goal = ctx.profile.calorie_goal
        if touched and day.is_complete and abs(day.total_calories - goal) > goal * DAILY_CALORIE_TOLERANCE:
            ctx.suggest(
                f"Total for {plan_date.isoformat()} is {day.total_calories:.0f} kcal "
                f"against a {goal} kcal goal; consider adjusting servings"
            )

    def _slot_is_plant_based(self, ctx: GenerationContext, slot: MealSlot) -> bool:
        recipe = ctx.resolve(slot.recipe_id)
        return recipe is not None and self.classifier.is_plant_based(recipe)

    def _plant_based_pass(
        self,
        ctx: GenerationContext,
        sources: CandidateSources,
        dates: Sequence[date],
        meal_types: Sequence[MealType] = MEAL_ORDER,
    ) -> None:
        """Substitute one plant-based pick into each day that has none (dinner, then lunch, then breakfast)"""
        if not ctx.profile.preferences.require_daily_plant_based:
            return

        for plan_date in dates:
            day = self.plan_store.get_day(plan_date)
            if any(self._slot_is_plant_based(ctx, s) for s in day.filled_slots().values()):
                continue

            substituted = False
            for meal_type in (MealType.DINNER, MealType.LUNCH, MealType.BREAKFAST):
                if meal_type not in meal_types:
                    continue
                current = day.get_slot(meal_type)
                if current is not None:
                    # Only this call's own, unlinked picks may be replaced
                    if ctx.touched.get((plan_date, meal_type)) != current.recipe_id:
                        continue
                    if current.is_linked or self._live_targets(plan_date, meal_type, current):
                        continue

                exclude = frozenset({current.recipe_id}) if current is not None else frozenset()
                request = self._slot_request(
                    ctx, plan_date, meal_type, exclude, require=self.classifier.is_plant_based,
                )
                outcome = self.cascade.select(sources, request)
                if not outcome.filled:
                    continue

                self._commit(ctx, plan_date, meal_type, outcome)
                logger.info(f"{plan_date}: substituted plant-based {meal_type.value} '{outcome.choice.recipe.name}'")
                substituted = True
                break

            if not substituted:
                ctx.suggest(
                    f"No vegetarian or vegan option could be added on {plan_date.isoformat()}; "
                    f"add plant-based recipes to your collection"
                )

    def _result(self, ctx: GenerationContext, sources: CandidateSources) -> GenerationResult:
        generated = ctx.generated_meals
        if generated or not ctx.failures:
            if ctx.failures:
                ctx.suggest(f"{len(ctx.failures)} meal(s) could not be planned; fill them manually or retry later")
            return GenerationResult(success=True, generated_meals=generated, suggestions=list(ctx.suggestions))

        report = suitability_report(sources.all_recipes(), ctx.profile, self.classifier)
        logger.warning(f"Nothing generated: {report.describe()}")
        suggestions = list(ctx.suggestions)
        for tip in FAILURE_TIPS:
            if tip not in suggestions:
                suggestions.append(tip)
        return GenerationResult.failure(f"Could not generate any meals: {report.describe()}", suggestions)

    # ===== DAILY =====

    async def _generate_day(
        self,
        plan_date: date,
        fallback_recipes: List[Recipe],
        slot_type: Optional[MealType],
    ) -> GenerationResult:
        profile = self.profile_provider.get_profile()
        ctx = self._new_context(profile, iso_week(plan_date), (plan_date, plan_date))
        day = self.plan_store.get_day(plan_date)

        replaced: Optional[MealSlot] = None
        if slot_type is not None:
            slot_type = MealType(slot_type)
            replaced = day.get_slot(slot_type)
            if replaced is not None and replaced.is_linked:
                link = replaced.leftover_source or replaced.repeat_of
                return GenerationResult.failure(
                    f"The {slot_type.value} on {plan_date.isoformat()} comes from the "
                    f"{link.source_meal_type.value} on {link.source_date.isoformat()}",
                    ["Regenerate or swap the original meal instead, or remove this slot first"],
                )
            if replaced is not None:
                live = self._live_targets(plan_date, slot_type, replaced)
                if live:
                    return GenerationResult.failure(
                        f"The {slot_type.value} on {plan_date.isoformat()} also feeds " + ", ".join(live),
                        ["Remove the leftover or repeated slots first, then regenerate this meal"],
                    )
            targets = [slot_type]
        else:
            targets = day.empty_meal_types()
            if not targets:
                logger.info(f"{plan_date} already has all meals planned")
                return GenerationResult(success=True, generated_meals=[])

        self._transition(GenerationState.FETCHING_POOLS)
        pools = await self._fetch_pools(ctx, targets, self.config.pool_fetch_limit)
        sources = self._prepare(ctx, pools, fallback_recipes)
        if replaced is not None:
            ctx.tracker.release(plan_date, slot_type)
        self._advance(POOLS_FETCHED_PROGRESS)

        self._transition(GenerationState.ASSIGNING_SLOTS)
        step = (ASSIGNMENT_DONE_PROGRESS - POOLS_FETCHED_PROGRESS) / len(targets)
        for i, meal_type in enumerate(targets):
            if slot_type is None and self.plan_store.get_slot(plan_date, meal_type) is not None:
                continue
            exclude = frozenset({replaced.recipe_id}) if replaced is not None else frozenset()
            self._fill_slot(ctx, sources, plan_date, meal_type, exclude_ids=exclude)
            self._advance(POOLS_FETCHED_PROGRESS + step * (i + 1))

        self._transition(GenerationState.PLANT_BASED_CHECK, ASSIGNMENT_DONE_PROGRESS)
        self._plant_based_pass(ctx, sources, [plan_date], targets)
        self._advance(PLANT_CHECK_PROGRESS)
        self._calorie_diagnostics(ctx, plan_date)

        return self._result(ctx, sources)

    # ===== WEEKLY =====

    async def _generate_week(self, start_date: date, end_date: date) -> GenerationResult:
        if end_date < start_date:
            return GenerationResult.failure(
                f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
            )
        dates = date_range(start_date, end_date)
        if len(dates) > self.config.max_plan_days:
            return GenerationResult.failure(
                f"Cannot plan {len(dates)} days at once (maximum {self.config.max_plan_days})"
            )

        profile = self.profile_provider.get_profile()
        ctx = self._new_context(profile, (start_date, end_date), (start_date, end_date), weekly=True)
        mode = profile.preferences.breakfast_repeat_mode

        self._transition(GenerationState.FETCHING_POOLS)
        limit = max(self.config.pool_fetch_limit, 3 * len(dates))
        pools = await self._fetch_pools(ctx, MEAL_ORDER, limit)
        sources = self._prepare(ctx, pools)
        self._advance(POOLS_FETCHED_PROGRESS)

        self._transition(GenerationState.ASSIGNING_SLOTS)
        breakfasts: Dict[int, Tuple[date, MealSlot]] = {}
        if mode == BreakfastRepeatMode.ALTERNATE:
            breakfasts = self._pick_alternating_breakfasts(ctx, sources, dates)

        total = len(dates) * len(MEAL_ORDER)
        step = (ASSIGNMENT_DONE_PROGRESS - POOLS_FETCHED_PROGRESS) / total
        done = 0
        for index, plan_date in enumerate(dates):
            for meal_type in MEAL_ORDER:
                done += 1
                if self.plan_store.get_slot(plan_date, meal_type) is None:
                    if meal_type == MealType.BREAKFAST and mode == BreakfastRepeatMode.REPEAT:
                        self._fill_block_breakfast(ctx, sources, plan_date, index, breakfasts)
                    elif meal_type == MealType.BREAKFAST and mode == BreakfastRepeatMode.ALTERNATE:
                        held = breakfasts.get(index % 2)
                        if held is not None:
                            self._write_repeat(ctx, plan_date, *held)
                    else:
                        self._fill_slot(
                            ctx, sources, plan_date, meal_type,
                            allow_make_ahead=mode == BreakfastRepeatMode.NO_REPEAT,
                        )
                self._advance(POOLS_FETCHED_PROGRESS + step * done)

        self._transition(GenerationState.PLANT_BASED_CHECK, ASSIGNMENT_DONE_PROGRESS)
        self._plant_based_pass(ctx, sources, dates)
        self._advance(PLANT_CHECK_PROGRESS)

        for plan_date in dates:
            self._calorie_diagnostics(ctx, plan_date)
        return self._result(ctx, sources)

    def _write_repeat(
        self,
        ctx: GenerationContext,
        plan_date: date,
        source_date: date,
        source_slot: MealSlot,
    ) -> None:
        """Copy a held breakfast forward; repeats never count toward uniqueness"""
        if plan_date == source_date:
            return
        repeat = source_slot.model_copy(
            update={
                "repeat_of": LeftoverLink(source_date=source_date, source_meal_type=MealType.BREAKFAST),
                "leftover_targets": [],
                "generation_tier": "repeat",
                "notes": f"Same breakfast as {source_date.isoformat()}",
            },
            deep=True,
        )
        self.plan_store.set_slot(plan_date, MealType.BREAKFAST, repeat)
        recipe = ctx.resolve(source_slot.recipe_id)
        if recipe is not None:
            ctx.tracker.record_projection(plan_date, MealType.BREAKFAST, recipe)
        ctx.label(plan_date, MealType.BREAKFAST, "breakfast-repeat")

    def _fill_block_breakfast(
        self,
        ctx: GenerationContext,
        sources: CandidateSources,
        plan_date: date,
        index: int,
        blocks: Dict[int, Tuple[date, MealSlot]],
    ) -> None:
        block = index // BREAKFAST_BLOCK_DAYS
        held = blocks.get(block)
        if held is not None:
            self._write_repeat(ctx, plan_date, *held)
            return

        previous = blocks.get(block - 1)
        exclude = frozenset({previous[1].recipe_id}) if previous is not None else frozenset()
        slot = self._fill_slot(
            ctx, sources, plan_date, MealType.BREAKFAST, allow_make_ahead=False, exclude_ids=exclude,
        )
        if slot is not None:
            blocks[block] = (plan_date, slot)

    def _pick_alternating_breakfasts(
        self,
        ctx: GenerationContext,
        sources: CandidateSources,
        dates: Sequence[date],
    ) -> Dict[int, Tuple[date, MealSlot]]:
        """Two distinct breakfasts chosen up front, keyed by day parity"""
        picks: Dict[int, Tuple[date, MealSlot]] = {}
        for parity in (0, 1):
            first_empty = next(
                (d for i, d in enumerate(dates)
                 if i % 2 == parity and self.plan_store.get_slot(d, MealType.BREAKFAST) is None),
                None,
            )
            if first_empty is None:
                continue
            other = picks.get(1 - parity)
            exclude = frozenset({other[1].recipe_id}) if other is not None else frozenset()
            slot = self._fill_slot(
                ctx, sources, first_empty, MealType.BREAKFAST, allow_make_ahead=False, exclude_ids=exclude,
            )
            if slot is not None:
                picks[parity] = (first_empty, slot)
        return picks

    # ===== SWAP / ALTERNATIVES =====

    def _resolve_recipe(self, profile: UserDietaryProfile, recipe_id: str) -> Optional[Recipe]:
        if self.local_repository is not None:
            recipe = self.local_repository.get(recipe_id)
            if recipe is not None:
                return recipe

        signature = profile_signature(profile)
        for meal_type in MEAL_ORDER:
            for recipe in self.pool_cache.get(signature, meal_type) or []:
                if recipe.id == recipe_id:
                    return recipe

        return next((r for r in self.bundled if r.id == recipe_id), None)

    def _swap(self, plan_date: date, slot_type: MealType, new_recipe_id: str) -> None:
        profile = self.profile_provider.get_profile()
        recipe = self._resolve_recipe(profile, new_recipe_id)
        if recipe is None:
            raise InvalidSwapRequest(f"Recipe {new_recipe_id} not found", new_recipe_id)
        if not matches_meal_type(recipe, slot_type, self.classifier):
            raise InvalidSwapRequest(f"'{recipe.name}' is not a {slot_type.value} recipe", new_recipe_id)
        if not is_suitable_for_profile(recipe, profile, self.classifier):
            raise InvalidSwapRequest(f"'{recipe.name}' does not fit the dietary profile", new_recipe_id)

        current = self.plan_store.get_slot(plan_date, slot_type)
        if current is not None:
            live = self._live_targets(plan_date, slot_type, current)
            if live:
                raise InvalidSwapRequest(f"Other meals depend on this one: {', '.join(live)}", new_recipe_id)

        this_slot = LeftoverLink(source_date=plan_date, source_meal_type=slot_type)
        start, end = iso_week(plan_date)
        for other_date, day in self.plan_store.get_range(start, end).items():
            for meal_type, other in day.filled_slots().items():
                if other_date == plan_date and meal_type == slot_type:
                    continue
                if this_slot in (other.leftover_source, other.repeat_of):
                    continue
                if other.recipe_id == recipe.id:
                    raise InvalidSwapRequest(
                        f"'{recipe.name}' is already planned for {meal_type.value} on {other_date.isoformat()}",
                        new_recipe_id,
                    )

        servings = current.servings if current is not None else 1
        self.plan_store.set_slot(plan_date, slot_type, MealSlot.from_recipe(recipe, servings=servings, tier="swap"))
        logger.info(f"Swapped {slot_type.value} on {plan_date} to '{recipe.name}'")

    async def _alternatives(self, plan_date: date, slot_type: MealType, current_recipe_id: str) -> List[Recipe]:
        profile = self.profile_provider.get_profile()
        week = iso_week(plan_date)
        ctx = self._new_context(profile, week, (plan_date, plan_date))

        pools = await self._fetch_pools(ctx, [slot_type], self.config.pool_fetch_limit)
        sources = self._prepare(ctx, pools)
        current_slot = self.plan_store.get_slot(plan_date, slot_type)
        ctx.tracker.release(plan_date, slot_type)

        current = ctx.resolve(current_recipe_id)
        if current is not None:
            reference = current.calories
        elif current_slot is not None and current_slot.recipe_id == current_recipe_id:
            reference = current_slot.nutrition.calories
        else:
            reference = self._target_calories(profile, slot_type)

        request = self._slot_request(ctx, plan_date, slot_type)
        committed = request.scoring.committed_ids
        candidates = [
            recipe for recipe in sources.all_for(slot_type)
            if recipe.id != current_recipe_id
            and recipe.id not in committed
            and matches_meal_type(recipe, slot_type, self.classifier)
            and within_calories(recipe, reference, ALTERNATIVES_CALORIE_TOLERANCE)
            and is_suitable_for_profile(recipe, profile, self.classifier)
        ]
        ranked = rank_candidates(candidates, request.scoring, self.classifier, self.weights)
        return [scored.recipe for scored in ranked[: self.config.alternatives_limit]]
