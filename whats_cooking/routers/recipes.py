# whats_cooking/routers/recipes.py — recipe generation and lookup endpoints

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from whats_cooking.auth import AuthContext, get_optional_user
from whats_cooking.models.recipe import GenerationRequest, PersistedRecipe
from whats_cooking.routers._responses import DataEnvelope, ErrorEnvelope
from whats_cooking.services.recipe_generation import generate_recipes as run_generation
from whats_cooking.services.recipe_store import RecipeStore, get_recipe_store
from whats_cooking.utils.exceptions import NotFoundError
from whats_cooking.utils.identifiers import to_uuid_or_none

router = APIRouter()


class RecipeGetRequest(BaseModel):
    id: str


class SessionRecipesRequest(BaseModel):
    session_id: str


def _with_saved_flags(
    recipes: list[PersistedRecipe],
    auth: AuthContext | None,
    store: RecipeStore,
) -> list[dict]:
    if auth is None:
        return [recipe.model_dump(mode="json", exclude={"is_saved"}) for recipe in recipes]
    saved_ids = store.saved_recipe_ids(auth.user_id, [recipe.id for recipe in recipes])
    return [
        recipe.model_copy(update={"is_saved": recipe.id in saved_ids}).model_dump(mode="json")
        for recipe in recipes
    ]


@router.post(
    "/generate-recipes",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}, 503: {"model": ErrorEnvelope}},
)
async def generate_recipes(
    payload: GenerationRequest,
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    """Generate recipes for the submitted ingredients and persist them."""
    recipes = await run_generation(payload, store=store)
    return DataEnvelope(
        data={
            "recipes": [recipe.model_dump(mode="json", exclude={"is_saved"}) for recipe in recipes],
            "count": len(recipes),
            "session_id": payload.session_id,
        }
    )


@router.post("/recipes/get", response_model=DataEnvelope, responses={404: {"model": ErrorEnvelope}})
async def get_recipe(
    payload: RecipeGetRequest,
    auth: AuthContext | None = Depends(get_optional_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    recipe_id = to_uuid_or_none(payload.id)
    if recipe_id is None:
        raise NotFoundError("Recipe", payload.id)
    recipe = store.get_recipe(recipe_id)
    if recipe is None:
        raise NotFoundError("Recipe", payload.id)
    return DataEnvelope(data=_with_saved_flags([recipe], auth, store)[0])


@router.post("/recipes/session", response_model=DataEnvelope)
async def list_session_recipes(
    payload: SessionRecipesRequest,
    auth: AuthContext | None = Depends(get_optional_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    """Recipes produced by the latest generation for a session."""
    recipe_ids = store.get_session_recipe_ids(payload.session_id.strip())
    recipes = store.get_recipes(recipe_ids)
    return DataEnvelope(data={"recipes": _with_saved_flags(recipes, auth, store), "count": len(recipes)})
