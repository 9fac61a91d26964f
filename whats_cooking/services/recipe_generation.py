from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import httpx

from whats_cooking.config import get_settings
from whats_cooking.models.recipe import GenerationRequest, PersistedRecipe
from whats_cooking.providers import gemini, openai_provider
from whats_cooking.services.prompt_builder import build_prompt
from whats_cooking.services.recipe_ingestion import ingest
from whats_cooking.services.recipe_store import RecipeStore
from whats_cooking.utils.exceptions import (
    ConfigurationError,
    ModelError,
    ModelTimeout,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def complete_prompt(prompt: str) -> str:
    """Single model call bounded by ``llm_timeout_seconds``. Not retried."""
    settings = get_settings()
    if settings.llm_provider == "openai":
        provider, api_key, model = openai_provider, settings.openai_api_key, settings.openai_model
    else:
        provider, api_key, model = gemini, settings.gemini_api_key, settings.gemini_model

    if not api_key:
        logger.error("Missing model API key", extra={"provider": settings.llm_provider})
        raise ConfigurationError(f"Missing {settings.llm_provider} API configuration")

    try:
        result = await asyncio.wait_for(
            provider.complete(
                api_key=api_key,
                model=model,
                prompt=prompt,
                temperature=settings.llm_temperature,
                max_output_tokens=settings.llm_max_output_tokens,
                timeout_seconds=settings.llm_timeout_seconds,
            ),
            timeout=settings.llm_timeout_seconds,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.error(
            "Model call timed out",
            extra={"provider": settings.llm_provider, "timeout_seconds": settings.llm_timeout_seconds},
        )
        raise ModelTimeout(f"{settings.llm_provider} call exceeded {settings.llm_timeout_seconds}s") from exc
    except httpx.HTTPError as exc:
        logger.error("Model call failed", extra={"provider": settings.llm_provider, "error": str(exc)})
        raise ModelError(f"{settings.llm_provider} request failed: {exc}") from exc

    if result["mapped"] is None:
        logger.error(
            "Model returned no usable content",
            extra={"provider": settings.llm_provider, "attempt": result["attempt"]},
        )
        raise ModelError(f"{settings.llm_provider} returned no usable content")
    return result["mapped"]


async def generate_recipes(request: GenerationRequest, *, store: RecipeStore) -> list[PersistedRecipe]:
    """Prompt -> model -> ingestion -> persistence for one submission."""
    if not request.ingredients:
        raise ValidationError("Ingredients are required")

    settings = get_settings()
    logger.info(
        "Starting recipe generation",
        extra={
            "session_id": request.session_id,
            "ingredient_count": len(request.ingredients),
            "provider": settings.llm_provider,
        },
    )
    prompt = build_prompt(request, recipe_count=settings.recipe_count)
    raw = await complete_prompt(prompt)
    candidates = ingest(raw, request)

    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.recipe_ttl_minutes)
    persisted = store.insert_recipes(
        candidates,
        dietary_restrictions=request.dietary_restrictions,
        expires_at=expires_at,
    )

    # The generation row is an audit trail; losing it must not lose the recipes.
    try:
        store.insert_generation_record(request, [recipe.id for recipe in persisted])
    except StoreError:
        logger.exception(
            "Failed to store generation record",
            extra={"session_id": request.session_id, "recipe_count": len(persisted)},
        )

    logger.info(
        "Stored generated recipes",
        extra={"session_id": request.session_id, "recipe_count": len(persisted)},
    )
    return persisted
