# whats_cooking/auth/__init__.py — Authentication module

from whats_cooking.auth.dependencies import get_current_user, get_optional_user
from whats_cooking.auth.models import AuthContext

__all__ = [
    "get_current_user",
    "get_optional_user",
    "AuthContext",
]
