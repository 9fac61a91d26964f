# whats_cooking/main.py — FastAPI app entry point

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from whats_cooking.config import get_settings
from whats_cooking.routers import auth, health, recipes, saved_recipes
from whats_cooking.routers._responses import error_response
from whats_cooking.utils.exceptions import IngestError, RecipeAppError

logger = logging.getLogger(__name__)


def configure_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(
    title="whats-cooking-api",
    description="Ingredient-driven recipe suggestions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response("; ".join(messages) or "Invalid request", 400)


@app.exception_handler(RecipeAppError)
async def recipe_app_error_handler(request: Request, exc: RecipeAppError):
    if exc.status_code >= 500 and not isinstance(exc, IngestError):
        # IngestError is already logged with the raw-response prefix.
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_kind": type(exc).__name__, "error": exc.message},
        )
    return error_response(exc.to_public(), exc.status_code, exc.details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return error_response("An unexpected error occurred. Please try again.", 500)


app.include_router(health.router, tags=["health"])
app.include_router(recipes.router, prefix="/api", tags=["recipes"])
app.include_router(saved_recipes.router, prefix="/api/saved-recipes", tags=["saved-recipes"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
