import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mealgen.api import meal_plan
from mealgen.core.config import settings
from mealgen.models.database import Base, engine

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info(f"Meal plan service started ({settings.environment})")
    if not settings.remote_pool_enabled:
        logger.info("Remote recipe pool disabled; using local and bundled recipes only")
    yield
    logger.info("Meal plan service stopped")


app = FastAPI(
    title="Meal Plan Generator API",
    description="Meal plan generation with variety tracking, leftovers and graceful fallbacks",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(meal_plan.router, prefix="/api")


@app.get("/")
def root():
    return {"message": "Meal Plan Generator API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
