# mealgen/services/recipe_sources.py
"""
Recipe Sources
==============

Narrow contracts the generator pulls candidates from:

1. RecipePoolProvider - per-meal-type pools, async, may be slow or fail
2. LocalRecipeRepository - synchronous, always available
3. Bundled defaults - static last-resort dataset

The engine wraps every pool fetch in its own deadline, so providers only need
to raise (or return) promptly; they never need to implement timeouts.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from mealgen.core.config import settings
from mealgen.core.exceptions import PoolFetchError, PoolFetchTimeout
from mealgen.data.default_recipes import load_default_recipes
from mealgen.models.database import RecipeRecord
from mealgen.schemas.meal_plan import DietType, MealType, Recipe, UserDietaryProfile
from mealgen.services.suitability import contains_excluded, exclusion_terms, matches_diet

logger = logging.getLogger(__name__)


@dataclass
class PoolFilters:
    diet_type: DietType = DietType.ANY
    allergies: List[str] = field(default_factory=list)
    excluded_ingredients: List[str] = field(default_factory=list)
    fitness_goal: Optional[str] = None
    calorie_range: Optional[Tuple[float, float]] = None
    exclude_ids: List[str] = field(default_factory=list)

    @classmethod
    def for_profile(
        cls,
        profile: UserDietaryProfile,
        calorie_range: Optional[Tuple[float, float]] = None,
        exclude_ids: Sequence[str] = (),
    ) -> "PoolFilters":
        return cls(
            diet_type=profile.diet_type,
            allergies=list(profile.allergies),
            excluded_ingredients=list(profile.excluded_ingredients),
            fitness_goal=profile.primary_fitness_goal,
            calorie_range=calorie_range,
            exclude_ids=list(exclude_ids),
        )


class RecipePoolProvider(Protocol):
    async def fetch(self, meal_type: MealType, filters: PoolFilters, limit: int) -> List[Recipe]: ...


class LocalRecipeRepository(Protocol):
    def all(self) -> List[Recipe]: ...

    def get(self, recipe_id: str) -> Optional[Recipe]: ...


def parse_recipes(entries: Sequence[Any], source: str) -> List[Recipe]:
    """Validate raw recipe dicts, skipping (and logging) the malformed ones"""
    recipes = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning(f"{source}: skipping non-object recipe entry")
            continue
        data = dict(entry)
        if "name" not in data and "title" in data:
            data["name"] = data["title"]
        try:
            recipes.append(Recipe.model_validate(data))
        except ValidationError as e:
            logger.warning(f"{source}: skipping malformed recipe {data.get('id')!r}: {e.error_count()} errors")
    return recipes


class HttpRecipePoolProvider:
    """
    Remote recipe pool over HTTP.

    GET {base_url}/recipes/pool answers {"results": [...]} (a bare list is
    accepted too). Pass ``client`` to reuse a connection pool or to inject a
    mock transport.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = 10.0,
    ):
        self.base_url = (base_url or settings.recipe_api_base_url or "").rstrip("/")
        self.api_key = api_key or settings.recipe_api_key
        self.client = client
        self.request_timeout = request_timeout

        if not self.base_url:
            raise ValueError("Recipe API base URL is required for the remote pool provider")

    def build_params(self, meal_type: MealType, filters: PoolFilters, limit: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "meal_type": MealType(meal_type).value,
            "limit": limit,
        }
        if filters.diet_type and DietType(filters.diet_type) != DietType.ANY:
            params["diet"] = DietType(filters.diet_type).value
        if filters.allergies:
            params["allergies"] = ",".join(filters.allergies)
        if filters.excluded_ingredients:
            params["excluded_ingredients"] = ",".join(filters.excluded_ingredients)
        if filters.fitness_goal:
            params["fitness_goal"] = filters.fitness_goal
        if filters.calorie_range:
            params["min_calories"] = int(filters.calorie_range[0])
            params["max_calories"] = int(filters.calorie_range[1])
        if filters.exclude_ids:
            params["exclude_ids"] = ",".join(filters.exclude_ids)
        if self.api_key:
            params["apiKey"] = self.api_key
        return params

    async def fetch(self, meal_type: MealType, filters: PoolFilters, limit: int) -> List[Recipe]:
        meal_type = MealType(meal_type)
        url = f"{self.base_url}/recipes/pool"
        params = self.build_params(meal_type, filters, limit)

        try:
            if self.client is not None:
                response = await self.client.get(url, params=params, timeout=self.request_timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, params=params, timeout=self.request_timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise PoolFetchTimeout(meal_type.value, self.request_timeout) from e
        except httpx.HTTPStatusError as e:
            raise PoolFetchError(meal_type.value, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise PoolFetchError(meal_type.value, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise PoolFetchError(meal_type.value, f"invalid JSON: {e}") from e

        entries = data.get("results", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise PoolFetchError(meal_type.value, "unexpected response shape")

        recipes = parse_recipes(entries, f"{meal_type.value} pool")
        logger.info(f"Fetched {len(recipes)} {meal_type.value} recipes from {self.base_url}")
        return recipes[:limit]


class NullPoolProvider:
    """No remote source configured; every pool is empty"""

    async def fetch(self, meal_type: MealType, filters: PoolFilters, limit: int) -> List[Recipe]:
        return []


class InMemoryPoolProvider:
    """
    Serves pools from a fixed recipe list, applying the same server-side
    filters a remote provider would (meal type hint, diet, exclusions,
    calories, excluded ids).
    """

    def __init__(self, recipes: Sequence[Recipe]):
        self.recipes = list(recipes)

    async def fetch(self, meal_type: MealType, filters: PoolFilters, limit: int) -> List[Recipe]:
        meal_type = MealType(meal_type)
        terms = exclusion_terms(filters.allergies, filters.excluded_ingredients)
        excluded_ids = set(filters.exclude_ids)

        results = []
        for recipe in self.recipes:
            if recipe.meal_type and recipe.meal_type != meal_type.value:
                continue
            if recipe.id in excluded_ids:
                continue
            if not matches_diet(recipe, filters.diet_type):
                continue
            if terms and contains_excluded(recipe, terms):
                continue
            if filters.calorie_range:
                low, high = filters.calorie_range
                if not low <= recipe.calories <= high:
                    continue
            results.append(recipe)
            if len(results) >= limit:
                break
        return results


class InMemoryRecipeRepository:
    def __init__(self, recipes: Sequence[Recipe] = ()):
        self._recipes: Dict[str, Recipe] = {}
        for recipe in recipes:
            self.add(recipe)

    def add(self, recipe: Recipe) -> None:
        self._recipes[recipe.id] = recipe

    def all(self) -> List[Recipe]:
        return list(self._recipes.values())

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(str(recipe_id))


class SqlRecipeRepository:
    """Local recipe repository backed by the recipes table"""

    def __init__(self, db: Session):
        self.db = db

    def all(self) -> List[Recipe]:
        records = self.db.query(RecipeRecord).order_by(RecipeRecord.created_at, RecipeRecord.id).all()
        return [record.to_recipe() for record in records]

    def get(self, recipe_id: str) -> Optional[Recipe]:
        record = self.db.query(RecipeRecord).filter(RecipeRecord.id == str(recipe_id)).first()
        return record.to_recipe() if record else None

    def add(self, recipe: Recipe) -> None:
        self.db.merge(RecipeRecord.from_recipe(recipe))
        self.db.commit()


@lru_cache(maxsize=1)
def _bundled() -> Tuple[Recipe, ...]:
    return tuple(load_default_recipes())


def bundled_recipes() -> List[Recipe]:
    """Static last-resort dataset; always available"""
    return list(_bundled())


def build_pool_provider(client: Optional[httpx.AsyncClient] = None) -> RecipePoolProvider:
    if settings.remote_pool_enabled:
        return HttpRecipePoolProvider(client=client)
    logger.info("No recipe API configured; remote pools disabled")
    return NullPoolProvider()
