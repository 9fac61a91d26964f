# whats_cooking/utils/exceptions.py — Custom exception classes

from __future__ import annotations

from typing import Any

RAW_PREFIX_CHARS = 500


class RecipeAppError(Exception):
    """Base error. Carries the HTTP status and a message safe to show callers."""

    status_code = 500
    public_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None):
        self.message = message or self.public_message
        self.details = details
        super().__init__(self.message)

    def to_public(self) -> str:
        return self.message


class ValidationError(RecipeAppError):
    status_code = 400
    public_message = "Invalid request"


class AuthenticationError(RecipeAppError):
    status_code = 401
    public_message = "Invalid credentials"


class NotFoundError(RecipeAppError):
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with ID '{identifier}' not found")


class ConflictError(RecipeAppError):
    status_code = 409
    public_message = "Conflict"


class ConfigurationError(RecipeAppError):
    status_code = 500
    public_message = "Missing service configuration"


class ModelError(RecipeAppError):
    status_code = 503
    public_message = "Failed to generate recipes. Please try again."

    def to_public(self) -> str:
        return self.public_message


class ModelTimeout(ModelError):
    public_message = "Recipe generation timed out. Please try again."


class EmailDeliveryError(RecipeAppError):
    status_code = 502
    public_message = "Failed to send verification email"


class IngestError(RecipeAppError):
    """Model output could not be turned into recipes.

    The diagnostic message stays server-side; callers only ever see the
    generic public message.
    """

    status_code = 500
    public_message = "Failed to parse recipe data"

    def __init__(self, diagnostic: str, *, raw: str = ""):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.raw_prefix = raw[:RAW_PREFIX_CHARS]

    def to_public(self) -> str:
        return self.public_message


class NoJsonFound(IngestError):
    pass


class MalformedJson(IngestError):
    pass


class EmptyRecipeList(IngestError):
    pass


class StoreError(RecipeAppError):
    status_code = 500
    public_message = "Database operation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        persisted: list[Any] | None = None,
        public_message: str | None = None,
    ):
        self.persisted = list(persisted or [])
        if public_message:
            self.public_message = public_message
        details = None
        if self.persisted:
            details = {"persisted_recipe_ids": [getattr(r, "id", None) for r in self.persisted]}
        super().__init__(message, details=details)

    def to_public(self) -> str:
        return self.public_message
