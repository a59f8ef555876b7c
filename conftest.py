# conftest.py
"""
Pytest configuration and fixtures for meal plan generation tests
Provides recipe corpora, fake pool providers, stores, engines and an API client.
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mealgen.api import meal_plan as meal_plan_api
from mealgen.core.exceptions import PoolFetchError
from mealgen.main import app
from mealgen.models.database import Base, get_db
from mealgen.schemas.meal_plan import MealType, Recipe, UserDietaryProfile
from mealgen.services.generation_engine import GenerationEngine
from mealgen.services.plan_store import InMemoryMealPlanStore
from mealgen.services.profile_provider import StaticProfileProvider
from mealgen.services.recipe_sources import InMemoryRecipeRepository, PoolFilters
from mealgen.services.variety import PoolCache

MONDAY = date(2025, 3, 3)


# ===== DATABASE FIXTURES =====

@pytest.fixture(scope="function")
def test_db():
    """
    Provide a clean test database for each test
    Uses in-memory SQLite for speed
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


# ===== RECIPE FIXTURES =====

def _recipe(
    recipe_id: str,
    name: str,
    calories: float,
    meal_type: Optional[str],
    ingredients: Sequence[str] = (),
    tags: Sequence[str] = (),
    complexity: str = "simple",
    dietary: Sequence[str] = (),
) -> Recipe:
    return Recipe(
        id=recipe_id,
        name=name,
        calories=calories,
        protein=calories * 0.25 / 4,
        carbs=calories * 0.45 / 4,
        fat=calories * 0.30 / 9,
        fiber=6,
        meal_type=meal_type,
        tags=list(tags),
        ingredients=list(ingredients),
        complexity=complexity,
        dietary_preferences=list(dietary),
    )


@pytest.fixture
def make_recipe():
    """Factory for one-off recipes"""
    return _recipe


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest.fixture
def breakfast_pool() -> List[Recipe]:
    return [
        _recipe("b1", "Blueberry Oatmeal", 560, "breakfast", ["1 cup rolled oats", "1 cup milk", "blueberries"], ["breakfast"], dietary=["vegetarian"]),
        _recipe("b2", "Veggie Omelette", 600, "breakfast", ["3 eggs", "spinach", "bell pepper"], ["breakfast"], dietary=["vegetarian"]),
        _recipe("b3", "Greek Yogurt Parfait", 580, "breakfast", ["greek yogurt", "granola", "honey"], ["breakfast"], dietary=["vegetarian"]),
        _recipe("b4", "Banana Pancakes", 620, "breakfast", ["flour", "banana", "milk"], ["breakfast"], "intermediate", ["vegetarian"]),
        _recipe("b5", "Avocado Toast", 590, "breakfast", ["sourdough bread", "avocado", "lemon"], ["breakfast"], dietary=["vegan"]),
        _recipe("b6", "Turkey Sausage Hash", 610, "breakfast", ["turkey sausage", "potatoes", "onion"], ["breakfast"]),
        _recipe("b7", "Chia Pudding", 570, "breakfast", ["chia seeds", "almond milk", "mango"], ["breakfast"], dietary=["vegan"]),
        _recipe("b8", "Smoked Salmon Bagel", 640, "breakfast", ["bagel", "smoked salmon", "cream cheese"], ["breakfast"]),
    ]


@pytest.fixture
def lunch_pool() -> List[Recipe]:
    return [
        _recipe("l1", "Chicken Caesar Wrap", 700, "lunch", ["grilled chicken breast", "tortilla", "romaine"], ["american"]),
        _recipe("l2", "Turkey Club Sandwich", 720, "lunch", ["sliced turkey", "whole grain bread", "tomato"], ["american"]),
        _recipe("l3", "Tuna Poke", 690, "lunch", ["sushi-grade tuna", "sushi rice", "avocado"], ["japanese"]),
        _recipe("l4", "Beef Burrito Bowl", 710, "lunch", ["ground beef", "rice", "black beans"], ["mexican"]),
        _recipe("l5", "Shrimp Tacos", 700, "lunch", ["shrimp", "corn tortillas", "slaw"], ["mexican"]),
        _recipe("l6", "Pork Banh Mi", 705, "lunch", ["pork shoulder", "baguette", "pickled carrots"], ["vietnamese"]),
        _recipe("l7", "Cod Fish Sandwich", 680, "lunch", ["cod fillet", "brioche bun", "tartar sauce"], ["british"]),
        _recipe("l8", "Lamb Pita", 695, "lunch", ["lamb mince", "pita", "cucumber"], ["greek"]),
    ]


@pytest.fixture
def dinner_pool() -> List[Recipe]:
    return [
        _recipe("d1", "Grilled Chicken with Rice", 700, "dinner", ["chicken thighs", "jasmine rice", "broccoli"], ["american"]),
        _recipe("d2", "Beef Stir-Fry", 720, "dinner", ["flank steak beef", "snap peas", "soy sauce"], ["chinese"]),
        _recipe("d3", "Baked Salmon", 690, "dinner", ["salmon fillet", "asparagus", "lemon"], ["mediterranean"]),
        _recipe("d4", "Pork Chops with Apples", 710, "dinner", ["pork chops", "apples", "thyme"], ["french"]),
        _recipe("d5", "Lamb Kofta", 700, "dinner", ["lamb mince", "onion", "flatbread"], ["middle-eastern"]),
        _recipe("d6", "Shrimp Paella", 730, "dinner", ["shrimp", "paella rice", "saffron"], ["spanish"]),
        _recipe("d7", "Turkey Meatballs", 705, "dinner", ["turkey mince", "marinara", "spaghetti squash"], ["italian"]),
        _recipe("d8", "Cod with Potatoes", 680, "dinner", ["cod fillet", "baby potatoes", "parsley"], ["british"]),
    ]


@pytest.fixture
def pools(breakfast_pool, lunch_pool, dinner_pool) -> Dict[MealType, List[Recipe]]:
    return {
        MealType.BREAKFAST: breakfast_pool,
        MealType.LUNCH: lunch_pool,
        MealType.DINNER: dinner_pool,
    }


# ===== POOL PROVIDER FIXTURES =====

class FakePoolProvider:
    """Serves fixed pools; can be slowed down or made to fail per meal type"""

    def __init__(
        self,
        pools: Optional[Dict[MealType, List[Recipe]]] = None,
        delays: Optional[Dict[MealType, float]] = None,
        failing: Sequence[MealType] = (),
        error: Optional[Exception] = None,
    ):
        self.pools = pools or {}
        self.delays = delays or {}
        self.failing = set(failing)
        self.error = error
        self.calls: List[tuple] = []

    async def fetch(self, meal_type: MealType, filters: PoolFilters, limit: int) -> List[Recipe]:
        meal_type = MealType(meal_type)
        self.calls.append((meal_type, filters, limit))
        delay = self.delays.get(meal_type, 0)
        if delay:
            await asyncio.sleep(delay)
        if meal_type in self.failing:
            raise self.error or PoolFetchError(meal_type.value, "service unavailable")
        return list(self.pools.get(meal_type, []))[:limit]


@pytest.fixture
def make_provider():
    return FakePoolProvider


# ===== ENGINE FIXTURES =====

@pytest.fixture
def plan_store() -> InMemoryMealPlanStore:
    return InMemoryMealPlanStore()


@pytest.fixture
def make_engine(plan_store):
    """
    Build an engine over the shared in-memory store.
    Bundled defaults are off unless passed, so tier behaviour stays explicit.
    """
    def _make(
        profile: Optional[UserDietaryProfile] = None,
        pools: Optional[Dict[MealType, List[Recipe]]] = None,
        local: Sequence[Recipe] = (),
        bundled: Sequence[Recipe] = (),
        provider=None,
        **kwargs,
    ) -> GenerationEngine:
        return GenerationEngine(
            profile_provider=StaticProfileProvider(profile or UserDietaryProfile()),
            plan_store=plan_store,
            pool_provider=provider or FakePoolProvider(pools),
            local_repository=InMemoryRecipeRepository(local),
            bundled=list(bundled),
            pool_cache=kwargs.pop("pool_cache", PoolCache()),
            **kwargs,
        )

    return _make


# ===== API CLIENT FIXTURES =====

@pytest.fixture
def client(test_db, pools):
    """Test client with the database, pool provider and profile swapped for test doubles"""
    provider = FakePoolProvider(pools)
    meal_plan_api._pool_cache.clear()

    app.dependency_overrides[get_db] = lambda: test_db
    app.dependency_overrides[meal_plan_api.get_pool_provider] = lambda: provider
    app.dependency_overrides[meal_plan_api.get_profile_provider] = lambda: StaticProfileProvider()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        meal_plan_api._pool_cache.clear()


# ===== PYTEST CONFIGURATION =====

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: Engine and API tests (services working together)"
    )
