#/mealgen/models/database.py
from sqlalchemy import create_engine, Column, Integer, String, Float, JSON, DateTime, Boolean, Date, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime

from mealgen.core.config import settings
from mealgen.schemas.meal_plan import MealSlot, Recipe

Base = declarative_base()

# SQLite needs cross-thread access when used behind FastAPI's threadpool
_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class RecipeRecord(Base):
    __tablename__ = "recipes"

    id = Column(String(128), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    calories = Column(Float, default=0)
    protein = Column(Float, default=0)
    carbs = Column(Float, default=0)
    fat = Column(Float, default=0)
    fiber = Column(Float, default=0)
    meal_type = Column(String(20), nullable=True)  # hint only, see is_breakfast_appropriate
    tags = Column(JSON, default=list)  # ["italian", "slow-cooker"]
    ingredients = Column(JSON, default=list)  # free-text lines
    complexity = Column(String(20), default="simple")
    dietary_tags = Column(JSON, default=list)  # ["vegetarian", "gluten-free"]
    fitness_goals = Column(JSON, default=list)  # ["muscle_gain"]
    instructions = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_recipe(self) -> Recipe:
        return Recipe(
            id=self.id,
            name=self.name,
            calories=self.calories or 0,
            protein=self.protein or 0,
            carbs=self.carbs or 0,
            fat=self.fat or 0,
            fiber=self.fiber or 0,
            meal_type=self.meal_type,
            tags=self.tags or [],
            ingredients=self.ingredients or [],
            complexity=self.complexity,
            dietary_preferences=self.dietary_tags or [],
            fitness_goals=self.fitness_goals or [],
            instructions=self.instructions or [],
        )

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeRecord":
        return cls(
            id=recipe.id,
            name=recipe.name,
            calories=recipe.calories,
            protein=recipe.protein,
            carbs=recipe.carbs,
            fat=recipe.fat,
            fiber=recipe.fiber,
            meal_type=recipe.meal_type,
            tags=list(recipe.tags),
            ingredients=list(recipe.ingredients),
            complexity=recipe.complexity.value,
            dietary_tags=list(recipe.dietary_preferences),
            fitness_goals=list(recipe.fitness_goals),
            instructions=list(recipe.instructions),
        )


class MealSlotRecord(Base):
    __tablename__ = "meal_slots"
    __table_args__ = (UniqueConstraint("plan_date", "meal_type", name="uq_meal_slot_date_type"),)

    id = Column(Integer, primary_key=True, index=True)
    plan_date = Column(Date, nullable=False, index=True)
    meal_type = Column(String(20), nullable=False)
    recipe_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    nutrition = Column(JSON, nullable=False)  # frozen at assignment, never re-read from recipes
    servings = Column(Integer, default=1)
    notes = Column(Text, nullable=True)
    batch_prep = Column(Boolean, default=False)
    is_leftover = Column(Boolean, default=False)
    leftover_source = Column(JSON, nullable=True)  # {"source_date": "2025-03-03", "source_meal_type": "dinner"}
    repeat_of = Column(JSON, nullable=True)
    repurpose_suggestion = Column(Text, nullable=True)
    leftover_targets = Column(JSON, default=list)
    generation_tier = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_slot(self) -> MealSlot:
        return MealSlot.model_validate({
            "recipe_id": self.recipe_id,
            "name": self.name,
            "nutrition": self.nutrition,
            "servings": self.servings or 1,
            "notes": self.notes,
            "batch_prep": bool(self.batch_prep),
            "is_leftover": bool(self.is_leftover),
            "leftover_source": self.leftover_source,
            "repeat_of": self.repeat_of,
            "repurpose_suggestion": self.repurpose_suggestion,
            "leftover_targets": self.leftover_targets or [],
            "generation_tier": self.generation_tier,
        })

    def apply_slot(self, slot: MealSlot) -> None:
        data = slot.model_dump(mode="json")
        self.recipe_id = data["recipe_id"]
        self.name = data["name"]
        self.nutrition = data["nutrition"]
        self.servings = data["servings"]
        self.notes = data["notes"]
        self.batch_prep = data["batch_prep"]
        self.is_leftover = data["is_leftover"]
        self.leftover_source = data["leftover_source"]
        self.repeat_of = data["repeat_of"]
        self.repurpose_suggestion = data["repurpose_suggestion"]
        self.leftover_targets = data["leftover_targets"]
        self.generation_tier = data["generation_tier"]
