# mealgen/schemas/meal_plan.py

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional, Any
from datetime import date
from enum import Enum


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


# Fill order for a day; later slots see the mains chosen by earlier ones
MEAL_ORDER = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


class DietType(str, Enum):
    ANY = "any"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"
    KETO = "keto"
    PALEO = "paleo"
    GLUTEN_FREE = "gluten-free"
    DAIRY_FREE = "dairy-free"
    LOW_CARB = "low-carb"


class Complexity(str, Enum):
    SIMPLE = "simple"
    INTERMEDIATE = "intermediate"
    COMPLEX = "complex"


class BreakfastRepeatMode(str, Enum):
    NO_REPEAT = "no-repeat"
    REPEAT = "repeat"
    ALTERNATE = "alternate"


_COMPLEXITY_ALIASES = {
    "easy": Complexity.SIMPLE,
    "quick": Complexity.SIMPLE,
    "medium": Complexity.INTERMEDIATE,
    "moderate": Complexity.INTERMEDIATE,
    "hard": Complexity.COMPLEX,
    "difficult": Complexity.COMPLEX,
    "advanced": Complexity.COMPLEX,
}


def normalize_tag(tag: Any) -> str:
    """Lower-case a free-text tag and fold separators to hyphens"""
    return "-".join(str(tag).strip().lower().replace("_", " ").split())


class NutritionSnapshot(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0

    class Config:
        frozen = True


class Recipe(BaseModel):
    id: str
    name: str
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0
    meal_type: Optional[str] = None
    tags: List[str] = []
    ingredients: List[str] = []
    complexity: Complexity = Complexity.SIMPLE
    dietary_preferences: List[str] = []
    fitness_goals: List[str] = []
    instructions: List[str] = []

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if v is None or str(v).strip() == "":
            raise ValueError("recipe id is required")
        return str(v).strip()

    @field_validator("meal_type", mode="before")
    @classmethod
    def normalize_meal_type(cls, v):
        if v is None:
            return None
        value = str(v).strip().lower()
        return value or None

    @field_validator("tags", "dietary_preferences", "fitness_goals", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        if not v:
            return []
        return [normalize_tag(t) for t in v if str(t).strip()]

    @field_validator("ingredients", mode="before")
    @classmethod
    def strip_ingredients(cls, v):
        if not v:
            return []
        return [str(i).strip() for i in v if str(i).strip()]

    @field_validator("complexity", mode="before")
    @classmethod
    def map_complexity(cls, v):
        if v is None:
            return Complexity.SIMPLE
        value = str(v).strip().lower()
        if value in _COMPLEXITY_ALIASES:
            return _COMPLEXITY_ALIASES[value]
        if value in {c.value for c in Complexity}:
            return value
        return Complexity.SIMPLE

    @property
    def all_tags(self) -> List[str]:
        return list(self.tags) + list(self.dietary_preferences)

    def nutrition(self) -> NutritionSnapshot:
        return NutritionSnapshot(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
        )


class LeftoverLink(BaseModel):
    """Back-reference from a projected slot to the slot it was copied from"""
    source_date: date
    source_meal_type: MealType


class SlotKey(BaseModel):
    plan_date: date
    meal_type: MealType


class MealSlot(BaseModel):
    recipe_id: str
    name: str
    nutrition: NutritionSnapshot
    servings: int = Field(1, ge=1, le=20)
    notes: Optional[str] = None
    batch_prep: bool = False
    is_leftover: bool = False
    leftover_source: Optional[LeftoverLink] = None
    repeat_of: Optional[LeftoverLink] = None
    repurpose_suggestion: Optional[str] = None
    leftover_targets: List[SlotKey] = []
    generation_tier: Optional[str] = None

    @property
    def is_linked(self) -> bool:
        """True for slots created by projection rather than direct selection"""
        return self.leftover_source is not None or self.repeat_of is not None

    @classmethod
    def from_recipe(
        cls,
        recipe: Recipe,
        servings: int = 1,
        tier: Optional[str] = None,
        batch_prep: bool = False,
        notes: Optional[str] = None,
    ) -> "MealSlot":
        # Snapshot is taken now and never re-read from the recipe
        return cls(
            recipe_id=recipe.id,
            name=recipe.name,
            nutrition=recipe.nutrition(),
            servings=servings,
            notes=notes,
            batch_prep=batch_prep,
            generation_tier=tier,
        )


class DailyMealPlan(BaseModel):
    plan_date: date
    breakfast: Optional[MealSlot] = None
    lunch: Optional[MealSlot] = None
    dinner: Optional[MealSlot] = None

    def get_slot(self, meal_type: MealType) -> Optional[MealSlot]:
        return getattr(self, MealType(meal_type).value)

    def set_slot(self, meal_type: MealType, slot: Optional[MealSlot]) -> None:
        setattr(self, MealType(meal_type).value, slot)

    def filled_slots(self) -> Dict[MealType, MealSlot]:
        return {mt: self.get_slot(mt) for mt in MEAL_ORDER if self.get_slot(mt) is not None}

    def empty_meal_types(self) -> List[MealType]:
        return [mt for mt in MEAL_ORDER if self.get_slot(mt) is None]

    @property
    def is_complete(self) -> bool:
        return not self.empty_meal_types()

    @property
    def total_calories(self) -> float:
        return sum(
            slot.nutrition.calories * slot.servings
            for slot in self.filled_slots().values()
        )


class GenerationPreferences(BaseModel):
    strict_uniqueness: bool = True
    prefer_simple: bool = False
    disallow_complex: bool = False
    prefer_batch_prep: bool = False
    plan_leftovers: bool = False
    max_leftover_gap_days: int = Field(2, ge=1, le=3)
    require_daily_plant_based: bool = False
    breakfast_repeat_mode: BreakfastRepeatMode = BreakfastRepeatMode.NO_REPEAT
    strong_simple_breakfast_bias: bool = False

    @model_validator(mode="before")
    @classmethod
    def fold_unique_per_week(cls, data):
        # Older profiles carried a separate weekly toggle; either flag enables uniqueness
        if isinstance(data, dict) and "unique_per_week" in data:
            data = dict(data)
            legacy = bool(data.pop("unique_per_week"))
            if "strict_uniqueness" in data:
                data["strict_uniqueness"] = bool(data["strict_uniqueness"]) or legacy
            else:
                data["strict_uniqueness"] = legacy
        return data


class UserDietaryProfile(BaseModel):
    diet_type: DietType = DietType.ANY
    allergies: List[str] = []
    excluded_ingredients: List[str] = []
    preferred_cuisines: List[str] = []
    excluded_cuisines: List[str] = []
    calorie_goal: int = Field(2000, gt=0)
    fitness_goals: List[str] = []
    preferences: GenerationPreferences = Field(default_factory=GenerationPreferences)

    @field_validator("preferred_cuisines", "excluded_cuisines", mode="before")
    @classmethod
    def normalize_cuisines(cls, v):
        if not v:
            return []
        return [normalize_tag(c) for c in v if str(c).strip()]

    @property
    def primary_fitness_goal(self) -> Optional[str]:
        return self.fitness_goals[0] if self.fitness_goals else None


class GenerationResult(BaseModel):
    success: bool
    generated_meals: List[str] = []
    error: Optional[str] = None
    suggestions: List[str] = []

    @classmethod
    def failure(cls, error: str, suggestions: Optional[List[str]] = None) -> "GenerationResult":
        return cls(success=False, generated_meals=[], error=error, suggestions=suggestions or [])


# ===== API request/response bodies =====

class GenerateDayRequest(BaseModel):
    slot_type: Optional[MealType] = None
    fallback_recipes: List[Recipe] = []


class GenerateWeekRequest(BaseModel):
    start_date: date
    end_date: date


class SwapMealRequest(BaseModel):
    meal_type: MealType
    new_recipe_id: str


class SwapMealResponse(BaseModel):
    success: bool
    plan_date: date
    meal_type: MealType
