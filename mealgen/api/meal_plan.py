# mealgen/api/meal_plan.py

import asyncio
import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mealgen.models.database import get_db
from mealgen.schemas.meal_plan import (
    DailyMealPlan,
    GenerateDayRequest,
    GenerateWeekRequest,
    GenerationResult,
    MealType,
    Recipe,
    SwapMealRequest,
    SwapMealResponse,
)
from mealgen.services.generation_engine import GenerationEngine
from mealgen.services.plan_store import MealPlanStore, SqlMealPlanStore
from mealgen.services.profile_provider import StaticProfileProvider, UserProfileProvider
from mealgen.services.recipe_sources import RecipePoolProvider, SqlRecipeRepository, build_pool_provider
from mealgen.services.variety import PoolCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meal-plans", tags=["meal-plans"])

# Shared across requests: engines are built per request, the cache and the
# single-flight lock are not
_pool_cache = PoolCache()
_generation_lock = asyncio.Lock()


def get_profile_provider() -> UserProfileProvider:
    return StaticProfileProvider()


def get_pool_provider() -> RecipePoolProvider:
    return build_pool_provider()


def get_plan_store(db: Session = Depends(get_db)) -> MealPlanStore:
    return SqlMealPlanStore(db)


def get_engine(
    db: Session = Depends(get_db),
    plan_store: MealPlanStore = Depends(get_plan_store),
    profile_provider: UserProfileProvider = Depends(get_profile_provider),
    pool_provider: RecipePoolProvider = Depends(get_pool_provider),
) -> GenerationEngine:
    return GenerationEngine(
        profile_provider=profile_provider,
        plan_store=plan_store,
        pool_provider=pool_provider,
        local_repository=SqlRecipeRepository(db),
        pool_cache=_pool_cache,
        lock=_generation_lock,
    )


# Declared before the /{plan_date} routes so "week" is never parsed as a date
@router.post("/week/generate", response_model=GenerationResult)
async def generate_week(
    request: GenerateWeekRequest,
    engine: GenerationEngine = Depends(get_engine),
):
    """
    Fill every empty slot between start_date and end_date (inclusive).
    success=False still answers 200; error and suggestions explain why.
    """
    result = await engine.generate_weekly_meal_plan(request.start_date, request.end_date)
    logger.info(f"Weekly generation {request.start_date}..{request.end_date}: {len(result.generated_meals)} slots")
    return result


@router.get("/{plan_date}", response_model=DailyMealPlan)
def get_day_plan(plan_date: date, plan_store: MealPlanStore = Depends(get_plan_store)):
    return plan_store.get_day(plan_date)


@router.post("/{plan_date}/generate", response_model=GenerationResult)
async def generate_day(
    plan_date: date,
    request: GenerateDayRequest,
    engine: GenerationEngine = Depends(get_engine),
):
    return await engine.generate_meal_plan(plan_date, request.fallback_recipes, request.slot_type)


@router.post("/{plan_date}/swap", response_model=SwapMealResponse)
def swap_meal(
    plan_date: date,
    request: SwapMealRequest,
    engine: GenerationEngine = Depends(get_engine),
):
    success = engine.swap_meal(plan_date, request.meal_type, request.new_recipe_id)
    return SwapMealResponse(success=success, plan_date=plan_date, meal_type=request.meal_type)


@router.get("/{plan_date}/alternatives", response_model=List[Recipe])
async def get_alternatives(
    plan_date: date,
    meal_type: MealType = Query(...),
    current_recipe_id: str = Query(...),
    engine: GenerationEngine = Depends(get_engine),
):
    return await engine.get_alternative_recipes(plan_date, meal_type, current_recipe_id)


@router.delete("/{plan_date}", response_model=DailyMealPlan)
def clear_day(plan_date: date, plan_store: MealPlanStore = Depends(get_plan_store)):
    plan_store.clear_day(plan_date)
    return plan_store.get_day(plan_date)


@router.delete("/{plan_date}/{meal_type}", response_model=DailyMealPlan)
def remove_meal(plan_date: date, meal_type: MealType, plan_store: MealPlanStore = Depends(get_plan_store)):
    plan_store.remove_slot(plan_date, meal_type)
    return plan_store.get_day(plan_date)
