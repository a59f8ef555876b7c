# mealgen/data/default_recipes.py
"""
Bundled default recipes - last-resort candidate tier.

Always available and never fetched; kept small but spread across meal types,
main ingredients and cuisines so an offline plan still has some variety.
"""

from typing import List

from mealgen.schemas.meal_plan import Recipe

DEFAULT_RECIPE_DATA = [
    # ===== BREAKFAST =====
    {
        "id": "default-overnight-oats",
        "name": "Berry Overnight Oats",
        "meal_type": "breakfast",
        "calories": 420, "protein": 16, "carbs": 62, "fat": 11, "fiber": 9,
        "tags": ["breakfast", "make-ahead", "overnight-oats"],
        "ingredients": ["1 cup rolled oats", "1 cup almond milk", "1 tbsp chia seeds", "1/2 cup mixed berries", "1 tsp maple syrup"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "vegan", "dairy-free"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-veggie-omelette",
        "name": "Spinach and Feta Omelette",
        "meal_type": "breakfast",
        "calories": 380, "protein": 26, "carbs": 6, "fat": 27, "fiber": 2,
        "tags": ["breakfast", "greek", "high-protein"],
        "ingredients": ["3 large eggs", "1 cup baby spinach", "30 g feta cheese", "1 tsp olive oil"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "keto", "low-carb", "gluten-free"],
        "fitness_goals": ["muscle_gain", "fat_loss"],
    },
    {
        "id": "default-greek-yogurt-parfait",
        "name": "Greek Yogurt Parfait",
        "meal_type": "breakfast",
        "calories": 350, "protein": 22, "carbs": 45, "fat": 8, "fiber": 5,
        "tags": ["breakfast", "quick"],
        "ingredients": ["1 cup greek yogurt", "1/3 cup granola", "1/2 cup strawberries", "1 tsp honey"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-avocado-toast",
        "name": "Avocado Toast with Lemon",
        "meal_type": "breakfast",
        "calories": 400, "protein": 11, "carbs": 40, "fat": 22, "fiber": 11,
        "tags": ["breakfast", "quick"],
        "ingredients": ["2 slices whole grain bread", "1 ripe avocado", "1 lemon wedge", "pinch red pepper flakes"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "vegan", "dairy-free"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-breakfast-burrito",
        "name": "Black Bean Breakfast Burrito",
        "meal_type": "breakfast",
        "calories": 520, "protein": 24, "carbs": 58, "fat": 20, "fiber": 12,
        "tags": ["breakfast", "mexican", "meal-prep"],
        "ingredients": ["1 large flour tortilla", "2 eggs", "1/2 cup black beans", "1/4 cup salsa", "30 g cheddar cheese"],
        "complexity": "intermediate",
        "dietary_preferences": ["vegetarian"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-protein-pancakes",
        "name": "Banana Protein Pancakes",
        "meal_type": "breakfast",
        "calories": 460, "protein": 30, "carbs": 55, "fat": 12, "fiber": 6,
        "tags": ["breakfast", "american"],
        "ingredients": ["1 banana", "2 eggs", "1/2 cup oat flour", "1 scoop whey protein", "1 tsp baking powder"],
        "complexity": "intermediate",
        "dietary_preferences": ["vegetarian"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-tofu-scramble",
        "name": "Turmeric Tofu Scramble",
        "meal_type": "breakfast",
        "calories": 360, "protein": 24, "carbs": 14, "fat": 22, "fiber": 5,
        "tags": ["breakfast"],
        "ingredients": ["200 g firm tofu", "1/2 tsp turmeric", "1 cup kale", "1/2 red bell pepper", "1 tbsp olive oil"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "vegan", "dairy-free", "gluten-free"],
        "fitness_goals": ["fat_loss"],
    },
    # ===== LUNCH =====
    {
        "id": "default-chicken-caesar-wrap",
        "name": "Chicken Caesar Wrap",
        "meal_type": "lunch",
        "calories": 620, "protein": 42, "carbs": 48, "fat": 26, "fiber": 4,
        "tags": ["lunch", "american"],
        "ingredients": ["150 g grilled chicken breast", "1 large tortilla", "2 cups romaine", "2 tbsp caesar dressing", "15 g parmesan"],
        "complexity": "simple",
        "dietary_preferences": [],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-lentil-soup",
        "name": "Red Lentil Soup",
        "meal_type": "lunch",
        "calories": 540, "protein": 28, "carbs": 80, "fat": 10, "fiber": 18,
        "tags": ["lunch", "middle-eastern", "batch"],
        "ingredients": ["1 cup red lentils", "1 onion", "2 carrots", "1 tsp cumin", "4 cups vegetable stock"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "vegan", "dairy-free", "gluten-free"],
        "fitness_goals": ["general_health", "fat_loss"],
    },
    {
        "id": "default-quinoa-salad",
        "name": "Mediterranean Quinoa Salad",
        "meal_type": "lunch",
        "calories": 580, "protein": 20, "carbs": 70, "fat": 24, "fiber": 10,
        "tags": ["lunch", "mediterranean", "salad"],
        "ingredients": ["1 cup cooked quinoa", "1/2 cucumber", "1 cup cherry tomatoes", "1/2 cup chickpeas", "2 tbsp olive oil"],
        "complexity": "simple",
        "dietary_preferences": ["vegetarian", "vegan", "gluten-free"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-tuna-poke-bowl",
        "name": "Tuna Poke Bowl",
        "meal_type": "lunch",
        "calories": 650, "protein": 38, "carbs": 72, "fat": 20, "fiber": 6,
        "tags": ["lunch", "japanese"],
        "ingredients": ["150 g sushi-grade tuna", "1 cup sushi rice", "1/2 avocado", "1 tbsp soy sauce", "1 tsp sesame seeds"],
        "complexity": "intermediate",
        "dietary_preferences": ["pescatarian", "dairy-free"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-turkey-club",
        "name": "Turkey Club Sandwich",
        "meal_type": "lunch",
        "calories": 600, "protein": 36, "carbs": 50, "fat": 26, "fiber": 5,
        "tags": ["lunch", "american", "quick"],
        "ingredients": ["120 g sliced turkey", "3 slices whole grain bread", "2 slices bacon", "1 tomato", "lettuce"],
        "complexity": "simple",
        "dietary_preferences": [],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-falafel-pita",
        "name": "Falafel Pita with Tahini",
        "meal_type": "lunch",
        "calories": 680, "protein": 22, "carbs": 82, "fat": 28, "fiber": 14,
        "tags": ["lunch", "middle-eastern"],
        "ingredients": ["5 baked falafel", "1 whole wheat pita", "2 tbsp tahini", "1 cup shredded cabbage", "pickled onions"],
        "complexity": "intermediate",
        "dietary_preferences": ["vegetarian", "vegan"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-shrimp-tacos",
        "name": "Lime Shrimp Tacos",
        "meal_type": "lunch",
        "calories": 560, "protein": 34, "carbs": 52, "fat": 22, "fiber": 8,
        "tags": ["lunch", "mexican"],
        "ingredients": ["180 g shrimp", "3 corn tortillas", "1 cup slaw", "1 lime", "2 tbsp sour cream"],
        "complexity": "simple",
        "dietary_preferences": ["pescatarian", "gluten-free"],
        "fitness_goals": ["fat_loss"],
    },
    # ===== DINNER =====
    {
        "id": "default-beef-chili",
        "name": "Slow Cooker Beef Chili",
        "meal_type": "dinner",
        "calories": 700, "protein": 48, "carbs": 55, "fat": 30, "fiber": 15,
        "tags": ["dinner", "american", "slow-cooker"],
        "ingredients": ["400 g lean ground beef", "1 can kidney beans", "1 can crushed tomatoes", "1 onion", "2 tbsp chili powder"],
        "complexity": "simple",
        "dietary_preferences": ["gluten-free", "dairy-free"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-salmon-traybake",
        "name": "Lemon Salmon Sheet Pan",
        "meal_type": "dinner",
        "calories": 680, "protein": 44, "carbs": 40, "fat": 36, "fiber": 7,
        "tags": ["dinner", "mediterranean", "sheet-pan"],
        "ingredients": ["180 g salmon fillet", "200 g baby potatoes", "1 cup green beans", "1 lemon", "1 tbsp olive oil"],
        "complexity": "simple",
        "dietary_preferences": ["pescatarian", "gluten-free", "dairy-free"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-chickpea-curry",
        "name": "Chickpea Spinach Curry",
        "meal_type": "dinner",
        "calories": 640, "protein": 22, "carbs": 78, "fat": 24, "fiber": 17,
        "tags": ["dinner", "indian", "batch"],
        "ingredients": ["1 can chickpeas", "200 g spinach", "1 can coconut milk", "2 tbsp curry paste", "1 cup basmati rice"],
        "complexity": "intermediate",
        "dietary_preferences": ["vegetarian", "vegan", "gluten-free"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-chicken-stir-fry",
        "name": "Ginger Chicken Stir-Fry",
        "meal_type": "dinner",
        "calories": 650, "protein": 46, "carbs": 62, "fat": 20, "fiber": 6,
        "tags": ["dinner", "chinese", "quick"],
        "ingredients": ["200 g chicken thigh", "2 cups mixed vegetables", "1 tbsp grated ginger", "2 tbsp soy sauce", "1 cup jasmine rice"],
        "complexity": "simple",
        "dietary_preferences": ["dairy-free"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-veggie-lasagna",
        "name": "Roasted Vegetable Lasagna",
        "meal_type": "dinner",
        "calories": 720, "protein": 32, "carbs": 76, "fat": 30, "fiber": 9,
        "tags": ["dinner", "italian", "make-ahead"],
        "ingredients": ["9 lasagna sheets", "2 cups ricotta", "1 zucchini", "1 eggplant", "2 cups marinara sauce"],
        "complexity": "complex",
        "dietary_preferences": ["vegetarian"],
        "fitness_goals": ["general_health"],
    },
    {
        "id": "default-pork-tenderloin",
        "name": "Herb Pork Tenderloin with Roasted Roots",
        "meal_type": "dinner",
        "calories": 690, "protein": 50, "carbs": 48, "fat": 28, "fiber": 8,
        "tags": ["dinner", "french"],
        "ingredients": ["200 g pork tenderloin", "2 carrots", "1 parsnip", "1 tbsp dijon mustard", "fresh thyme"],
        "complexity": "intermediate",
        "dietary_preferences": ["gluten-free", "dairy-free", "paleo"],
        "fitness_goals": ["muscle_gain"],
    },
    {
        "id": "default-tofu-pad-thai",
        "name": "Tofu Pad Thai",
        "meal_type": "dinner",
        "calories": 670, "protein": 28, "carbs": 86, "fat": 24, "fiber": 6,
        "tags": ["dinner", "thai"],
        "ingredients": ["200 g extra firm tofu", "150 g rice noodles", "2 tbsp tamarind paste", "2 tbsp crushed peanuts", "bean sprouts"],
        "complexity": "intermediate",
        "dietary_preferences": ["vegetarian", "vegan", "dairy-free"],
        "fitness_goals": ["general_health"],
    },
]


def load_default_recipes() -> List[Recipe]:
    return [Recipe(**data) for data in DEFAULT_RECIPE_DATA]
