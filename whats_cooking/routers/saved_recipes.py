# whats_cooking/routers/saved_recipes.py — save / unsave / list (signed-in users)

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from whats_cooking.auth import AuthContext, get_current_user
from whats_cooking.routers._responses import DataEnvelope, ErrorEnvelope
from whats_cooking.services.recipe_store import RecipeStore, get_recipe_store
from whats_cooking.utils.exceptions import NotFoundError, ValidationError
from whats_cooking.utils.identifiers import is_uuid_v4
from whats_cooking.utils.pagination import PaginatedResponse, PaginationParams

router = APIRouter()

TEMPORARY_RECIPE_MESSAGE = "Only saved recipes with a permanent id can be bookmarked"


class SavedRecipeRequest(BaseModel):
    recipe_id: str


class SavedRecipeListRequest(PaginationParams):
    pass


def _require_durable_id(recipe_id: str) -> str:
    cleaned = (recipe_id or "").strip()
    if not is_uuid_v4(cleaned):
        raise ValidationError(TEMPORARY_RECIPE_MESSAGE)
    return cleaned.lower()


@router.post(
    "/save",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 401: {"model": ErrorEnvelope}, 404: {"model": ErrorEnvelope}},
)
async def save_recipe(
    payload: SavedRecipeRequest,
    auth: AuthContext = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    recipe_id = _require_durable_id(payload.recipe_id)
    if store.get_recipe(recipe_id) is None:
        raise NotFoundError("Recipe", recipe_id)
    saved = store.save_recipe(auth.user_id, recipe_id)
    return DataEnvelope(data=saved.model_dump(mode="json", exclude={"recipe"}))


@router.post(
    "/unsave",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 401: {"model": ErrorEnvelope}},
)
async def unsave_recipe(
    payload: SavedRecipeRequest,
    auth: AuthContext = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    recipe_id = _require_durable_id(payload.recipe_id)
    store.unsave_recipe(auth.user_id, recipe_id)
    return DataEnvelope(data={"recipe_id": recipe_id, "saved": False})


@router.post("/list", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def list_saved_recipes(
    payload: SavedRecipeListRequest,
    auth: AuthContext = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
) -> DataEnvelope:
    saved, total = store.list_saved_recipes(auth.user_id, payload)
    page = PaginatedResponse.from_window([item.model_dump(mode="json") for item in saved], total, payload)
    return DataEnvelope(data=page.model_dump())
