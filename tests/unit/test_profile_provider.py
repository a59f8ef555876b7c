"""
Static profile provider
"""

from mealgen.schemas.meal_plan import DietType, UserDietaryProfile
from mealgen.services.profile_provider import StaticProfileProvider


def test_defaults_without_a_profile():
    profile = StaticProfileProvider(None).get_profile()

    assert profile == UserDietaryProfile()
    assert profile.calorie_goal == 2000


def test_each_read_is_a_snapshot():
    provider = StaticProfileProvider(UserDietaryProfile(diet_type="vegan", allergies=["peanuts"]))

    first = provider.get_profile()
    first.allergies.append("soy")

    second = provider.get_profile()
    assert second.diet_type == DietType.VEGAN
    assert second.allergies == ["peanuts"]
