from __future__ import annotations

from whats_cooking.models.recipe import (
    DEFAULT_COOKING_TIME,
    DEFAULT_CUISINE,
    DEFAULT_SPICE_LEVEL,
    GenerationRequest,
)

DEFAULT_RECIPE_COUNT = 6

# Shape expected by recipe_ingestion.coerce_recipe; keep the two in sync.
RECIPE_JSON_SHAPE = """{
  "recipes": [
    {
      "name": "Recipe Name",
      "description": "Brief description",
      "cuisine_type": "Cuisine Type",
      "spice_level": "Mild/Medium/Hot",
      "difficulty": "Easy/Medium/Hard",
      "servings": 4,
      "cooking_time": 30,
      "ingredients": [
        {"name": "ingredient", "amount": "1", "unit": "cup"}
      ],
      "instructions": [
        {"step": 1, "instruction": "Detailed step", "time": 5}
      ],
      "nutrition_info": {
        "calories": 350,
        "protein": "25g",
        "carbs": "30g",
        "fat": "15g"
      },
      "tags": ["tag1", "tag2"]
    }
  ]
}"""

GENERATION_REQUIREMENTS = (
    "Each recipe should primarily use the provided ingredients",
    "Include realistic cooking times and serving sizes",
    "Provide VERY DETAILED step-by-step instructions (minimum 6-12 steps per recipe)",
    "Each instruction should be specific, clear, and actionable",
    "Include preparation techniques, cooking methods, temperatures, and timing",
    "Mention visual cues and doneness indicators",
    "Include tips for seasoning, texture, and flavor development",
    "Add specific cooking times for each step where relevant",
    "Include nutritional estimates where possible",
    "Add relevant tags for easy categorization",
    "Make recipes practical and achievable for home cooking",
    "Vary the difficulty levels across recipes",
    "Ensure recipes respect dietary restrictions if specified",
    "Instructions should be detailed enough that a beginner can follow them successfully",
    "Write ingredient amounts as plain numbers or decimals, never fractions",
    "Do not include comments or any text outside the JSON object",
)


def build_prompt(request: GenerationRequest, *, recipe_count: int = DEFAULT_RECIPE_COUNT) -> str:
    """Render the generation prompt for one request. Pure and deterministic."""
    restrictions = ", ".join(request.dietary_restrictions) if request.dietary_restrictions else "None"
    requirements = "\n".join(f"- {line}" for line in GENERATION_REQUIREMENTS)
    return (
        f"Generate {recipe_count} diverse and creative recipes using the following criteria:\n"
        "\n"
        f"Available Ingredients: {', '.join(request.ingredients)}\n"
        f"Cuisine Type: {request.cuisine_type or DEFAULT_CUISINE}\n"
        f"Spice Level: {request.spice_level or DEFAULT_SPICE_LEVEL}\n"
        f"Dietary Restrictions: {restrictions}\n"
        f"Maximum Cooking Time: {request.cooking_time or DEFAULT_COOKING_TIME} minutes\n"
        "\n"
        "Requirements:\n"
        f"{requirements}\n"
        "\n"
        "Please respond with a JSON object in this exact format:\n"
        f"{RECIPE_JSON_SHAPE}"
    )
