from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "development"
    log_level: str = "INFO"

    # Database (local recipe repository + week plan store)
    database_url: str = "sqlite:///./mealgen.db"

    # Remote recipe pool
    recipe_api_base_url: Optional[str] = None
    recipe_api_key: Optional[str] = None

    # Pool fetching
    pool_fetch_timeout_seconds: float = 2.5
    pool_cache_ttl_seconds: int = 300
    pool_fetch_limit: int = 30

    # Generation
    alternatives_limit: int = 5
    max_plan_days: int = 28
    calorie_split: Dict[str, float] = {
        "breakfast": 0.30,
        "lunch": 0.35,
        "dinner": 0.35,
    }

    @property
    def remote_pool_enabled(self) -> bool:
        return bool(self.recipe_api_base_url)

    class Config:
        env_file = ".env"


settings = Settings()
