from __future__ import annotations

from whats_cooking.models.recipe import GenerationRequest
from whats_cooking.services.prompt_builder import RECIPE_JSON_SHAPE, build_prompt


def _request(**overrides) -> GenerationRequest:
    payload = {
        "ingredients": ["chicken", "rice"],
        "cuisineType": "Indian",
        "spiceLevel": "hot",
        "dietaryRestrictions": [],
        "cookingTime": 45,
        "sessionId": "abc",
    }
    payload.update(overrides)
    return GenerationRequest.model_validate(payload)


def test_build_prompt_is_deterministic():
    first = build_prompt(_request())
    second = build_prompt(_request())
    assert first == second


def test_build_prompt_renders_request_fields():
    prompt = build_prompt(_request(dietaryRestrictions=["Gluten-Free", "Dairy-Free"]))

    assert "Generate 6 diverse and creative recipes" in prompt
    assert "Available Ingredients: chicken, rice" in prompt
    assert "Cuisine Type: Indian" in prompt
    assert "Spice Level: Hot" in prompt
    assert "Dietary Restrictions: Gluten-Free, Dairy-Free" in prompt
    assert "Maximum Cooking Time: 45 minutes" in prompt
    assert "minimum 6-12 steps per recipe" in prompt
    assert prompt.endswith(RECIPE_JSON_SHAPE)


def test_build_prompt_fills_defaults():
    request = GenerationRequest(ingredients=["eggs"])
    prompt = build_prompt(request)

    assert "Cuisine Type: Any" in prompt
    assert "Spice Level: Medium" in prompt
    assert "Dietary Restrictions: None" in prompt
    assert "Maximum Cooking Time: 60 minutes" in prompt


def test_build_prompt_recipe_count_is_configurable():
    assert "Generate 3 diverse" in build_prompt(_request(), recipe_count=3)


def test_generation_request_splits_ingredient_text():
    request = GenerationRequest.model_validate({"ingredients": " tomato,  basil\n\n,garlic "})
    assert request.ingredients == ["tomato", "basil", "garlic"]
    assert request.session_id
