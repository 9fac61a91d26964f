# whats_cooking/auth/dependencies.py — get_current_user / get_optional_user → AuthContext

from datetime import datetime, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from whats_cooking.auth.models import AuthContext
from whats_cooking.auth.tokens import InvalidJWTTypeError, JWTDecodeError, decode_session_jwt
from whats_cooking.database import get_supabase_client

security = HTTPBearer(auto_error=False)


def is_session_revoked(session_id: str) -> bool:
    client = get_supabase_client()
    result = (
        client.table("revoked_sessions")
        .select("jti")
        .eq("jti", session_id)
        .limit(1)
        .execute()
    )
    return bool(result.data)


def resolve_auth_context(token: str) -> AuthContext:
    """Validate a bearer token. Raises HTTPException(401) on any failure."""
    try:
        payload = decode_session_jwt(token)
    except InvalidJWTTypeError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )
    except JWTDecodeError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )

    if is_session_revoked(payload.jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has been signed out",
        )

    expires_at = (
        datetime.fromtimestamp(payload.exp, tz=timezone.utc) if payload.exp is not None else None
    )
    return AuthContext(
        user_id=payload.user_id,
        email=payload.email,
        session_id=payload.jti,
        expires_at=expires_at,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthContext:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )
    return resolve_auth_context(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthContext | None:
    """Anonymous callers (no or unusable token) resolve to None."""
    if credentials is None:
        return None
    try:
        return resolve_auth_context(credentials.credentials)
    except HTTPException:
        return None
