# mealgen/core/exceptions.py
"""
Internal error taxonomy for meal plan generation.

None of these cross the GenerationEngine public boundary: fetch failures turn
into empty pools and invalid swaps turn into ``False``.
"""

from typing import Optional


class MealPlanningError(Exception):
    """Base class for engine errors"""


class PoolFetchError(MealPlanningError):
    """A recipe pool provider failed to answer"""

    def __init__(self, meal_type: str, message: str):
        super().__init__(f"{meal_type} pool fetch failed: {message}")
        self.meal_type = meal_type


class PoolFetchTimeout(PoolFetchError):
    """A recipe pool provider did not answer before the shared deadline"""

    def __init__(self, meal_type: str, timeout: float):
        super().__init__(meal_type, f"timed out after {timeout:.1f}s")
        self.timeout = timeout


class InvalidSwapRequest(MealPlanningError, ValueError):
    """Requested swap target is unknown, unsuitable or already planned"""

    def __init__(self, reason: str, recipe_id: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.recipe_id = recipe_id
