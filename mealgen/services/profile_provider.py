# mealgen/services/profile_provider.py

from typing import Optional, Protocol

from mealgen.schemas.meal_plan import UserDietaryProfile


class UserProfileProvider(Protocol):
    """Read-only source of the current user's dietary profile"""

    def get_profile(self) -> UserDietaryProfile: ...


class StaticProfileProvider:
    def __init__(self, profile: Optional[UserDietaryProfile] = None):
        self._profile = profile or UserDietaryProfile()

    def get_profile(self) -> UserDietaryProfile:
        # Snapshot per call; the engine never writes back
        return self._profile.model_copy(deep=True)
