# whats_cooking/auth/tokens.py — JWT, OTP and password helpers

from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import secrets
import uuid

import bcrypt
import jwt

from whats_cooking.auth.models import PendingSignupTokenPayload, SessionTokenPayload
from whats_cooking.config import get_settings


class JWTDecodeError(Exception):
    """Raised when a JWT cannot be decoded/validated."""


class JWTExpiredError(JWTDecodeError):
    """Raised when a JWT signature is valid but the token has expired."""


class InvalidJWTTypeError(Exception):
    """Raised when a JWT has a valid signature but unsupported type."""


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _decode(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as exc:
        raise JWTExpiredError(str(exc)) from exc
    except jwt.InvalidTokenError as exc:
        raise JWTDecodeError(str(exc)) from exc


def create_session_jwt(
    *,
    user_id: str,
    email: str,
    expires_in_hours: int | None = None,
) -> str:
    """Create a user session JWT. ``jti`` identifies the session for logout."""
    settings = get_settings()
    hours = expires_in_hours if expires_in_hours is not None else settings.session_ttl_hours
    now = _now_utc()
    payload = {
        "type": "session",
        "sub": user_id,
        "user_id": user_id,
        "email": email,
        "jti": str(uuid.uuid4()),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=hours)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_session_jwt(token: str) -> SessionTokenPayload:
    """
    Decode a session JWT.
    Raises InvalidJWTTypeError if token is valid JWT but wrong type.
    Raises JWTDecodeError for invalid/expired signatures and payloads.
    """
    payload = _decode(token)
    token_type = payload.get("type", "session")
    if token_type != "session":
        raise InvalidJWTTypeError(f"Unsupported JWT type: {token_type}")
    try:
        return SessionTokenPayload(
            sub=payload.get("sub") or payload.get("user_id"),
            user_id=payload.get("user_id") or payload.get("sub"),
            email=payload["email"],
            jti=payload["jti"],
            type="session",
            exp=payload.get("exp"),
            iat=payload.get("iat"),
        )
    except KeyError as exc:
        raise JWTDecodeError(f"Missing JWT claim: {exc}") from exc


def create_pending_signup_token(*, pending_id: str, email: str, expires_at: datetime) -> str:
    """Opaque reference to a server-held pending registration."""
    settings = get_settings()
    payload = {
        "type": "pending_signup",
        "sub": pending_id,
        "email": email,
        "iat": int(_now_utc().timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_pending_signup_token(token: str) -> PendingSignupTokenPayload:
    payload = _decode(token)
    token_type = payload.get("type")
    if token_type != "pending_signup":
        raise InvalidJWTTypeError(f"Unsupported JWT type: {token_type}")
    try:
        return PendingSignupTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=payload.get("exp"),
            iat=payload.get("iat"),
        )
    except KeyError as exc:
        raise JWTDecodeError(f"Missing JWT claim: {exc}") from exc


def generate_otp(length: int | None = None) -> str:
    digits = length or get_settings().otp_length
    return "".join(str(secrets.randbelow(10)) for _ in range(digits))


def hash_otp(pending_id: str, otp: str) -> str:
    """Keyed SHA-256 of the OTP, bound to its pending registration."""
    secret = get_settings().jwt_secret.encode("utf-8")
    message = f"{pending_id}:{otp.strip()}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


def verify_otp(pending_id: str, otp: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(pending_id, otp), expected_hash or "")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
