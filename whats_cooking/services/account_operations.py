"""Signup, login and logout.

Canonical signup sequence:

1. ``start_signup``: generate OTP, then concurrently email it and store the
   pending registration (10 minute expiry). The caller only receives a
   signed ``pending_token`` referencing the stored row.
2. ``verify_otp_and_create_account``: check the OTP, create the account,
   create the profile (non-fatal), drop the pending row, send the welcome
   email (best-effort) and sign the user in.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from whats_cooking.auth.models import AuthContext
from whats_cooking.auth.tokens import (
    InvalidJWTTypeError,
    JWTDecodeError,
    JWTExpiredError,
    check_password,
    create_pending_signup_token,
    create_session_jwt,
    decode_pending_signup_token,
    generate_otp,
    hash_otp,
    hash_password,
    verify_otp,
)
from whats_cooking.config import get_settings
from whats_cooking.database import get_supabase_client
from whats_cooking.services.email_operations import send_otp_email, send_welcome_email
from whats_cooking.utils.exceptions import (
    AuthenticationError,
    ConflictError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_OTP_ATTEMPTS = 5
SIGNUP_EXPIRED_MESSAGE = "Signup session expired. Please try again."
INVALID_OTP_MESSAGE = "Invalid or expired OTP"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = value.replace("Z", "+00:00")
    return datetime.fromisoformat(parsed)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _find_user_by_email(email: str) -> dict[str, Any] | None:
    result = (
        get_supabase_client()
        .table("users")
        .select("id, email, password_hash, created_at")
        .eq("email", email)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def _session_response(user_id: str, email: str, full_name: str | None) -> dict[str, Any]:
    return {
        "access_token": create_session_jwt(user_id=user_id, email=email),
        "token_type": "bearer",
        "user": {"id": user_id, "email": email, "full_name": full_name},
    }


def _load_pending_signup(pending_token: str) -> dict[str, Any]:
    try:
        payload = decode_pending_signup_token(pending_token)
    except JWTExpiredError:
        raise AuthenticationError(SIGNUP_EXPIRED_MESSAGE)
    except (JWTDecodeError, InvalidJWTTypeError):
        raise AuthenticationError("Invalid signup session")

    result = (
        get_supabase_client()
        .table("pending_signups")
        .select("id, email, full_name, password_hash, otp_hash, attempts, expires_at")
        .eq("id", payload.pending_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise AuthenticationError(SIGNUP_EXPIRED_MESSAGE)
    row = result.data[0]
    expires_at = _parse_timestamp(row.get("expires_at"))
    if expires_at is None or expires_at <= _utc_now():
        raise AuthenticationError(SIGNUP_EXPIRED_MESSAGE)
    return row


def _delete_pending_signup(pending_id: str) -> None:
    try:
        get_supabase_client().table("pending_signups").delete().eq("id", pending_id).execute()
    except Exception:  # noqa: BLE001
        logger.exception("Failed to delete pending signup", extra={"pending_id": pending_id})


async def start_signup(*, full_name: str, email: str, password: str) -> dict[str, Any]:
    full_name = (full_name or "").strip()
    email = _normalize_email(email)
    if not full_name or not email or not password:
        raise ValidationError("All fields are required")
    if "@" not in email:
        raise ValidationError("A valid email address is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if _find_user_by_email(email):
        raise ConflictError("An account with this email already exists")

    settings = get_settings()
    pending_id = str(uuid.uuid4())
    otp = generate_otp(settings.otp_length)
    expires_at = _utc_now() + timedelta(minutes=settings.pending_signup_ttl_minutes)
    row = {
        "id": pending_id,
        "email": email,
        "full_name": full_name,
        "password_hash": hash_password(password),
        "otp_hash": hash_otp(pending_id, otp),
        "attempts": 0,
        "expires_at": expires_at.isoformat(),
    }

    def _insert_pending() -> None:
        get_supabase_client().table("pending_signups").insert(row).execute()

    # Both halves must finish before reporting; the email half decides failure.
    email_result, store_result = await asyncio.gather(
        send_otp_email(email=email, otp=otp, full_name=full_name),
        asyncio.to_thread(_insert_pending),
        return_exceptions=True,
    )
    if isinstance(email_result, BaseException):
        raise email_result
    if isinstance(store_result, BaseException):
        logger.error("Failed to store pending signup", extra={"email": email, "error": str(store_result)})
        raise StoreError(
            f"Pending signup insert failed: {store_result}",
            public_message="An unexpected error occurred. Please try again.",
        ) from store_result

    logger.info("Signup OTP issued", extra={"email": email, "pending_id": pending_id})
    return {
        "pending_token": create_pending_signup_token(pending_id=pending_id, email=email, expires_at=expires_at),
        "email": email,
        "expires_in_seconds": settings.pending_signup_ttl_minutes * 60,
    }


async def resend_signup_otp(*, pending_token: str) -> dict[str, Any]:
    pending = _load_pending_signup(pending_token)
    otp = generate_otp()
    await send_otp_email(email=pending["email"], otp=otp, full_name=pending.get("full_name"))
    (
        get_supabase_client()
        .table("pending_signups")
        .update({"otp_hash": hash_otp(pending["id"], otp), "attempts": 0})
        .eq("id", pending["id"])
        .execute()
    )
    expires_at = _parse_timestamp(pending["expires_at"])
    remaining = int((expires_at - _utc_now()).total_seconds()) if expires_at else 0
    return {"pending_token": pending_token, "email": pending["email"], "expires_in_seconds": max(remaining, 0)}


async def verify_otp_and_create_account(*, pending_token: str, otp: str) -> dict[str, Any]:
    otp = (otp or "").strip()
    if not otp.isdigit():
        raise ValidationError("A numeric OTP is required")

    pending = _load_pending_signup(pending_token)
    pending_id = pending["id"]
    if not verify_otp(pending_id, otp, pending.get("otp_hash") or ""):
        attempts = int(pending.get("attempts") or 0) + 1
        if attempts >= MAX_OTP_ATTEMPTS:
            _delete_pending_signup(pending_id)
        else:
            (
                get_supabase_client()
                .table("pending_signups")
                .update({"attempts": attempts})
                .eq("id", pending_id)
                .execute()
            )
        raise AuthenticationError(INVALID_OTP_MESSAGE)

    email = pending["email"]
    full_name = pending.get("full_name") or ""
    if _find_user_by_email(email):
        _delete_pending_signup(pending_id)
        raise ConflictError("An account with this email already exists")

    client = get_supabase_client()
    try:
        created = (
            client.table("users")
            .insert({"email": email, "password_hash": pending["password_hash"]})
            .execute()
        )
    except Exception as exc:  # noqa: BLE001
        raise StoreError(f"Account insert failed: {exc}", public_message="Failed to create account") from exc
    if not created.data:
        raise StoreError("Account insert returned no row", public_message="Failed to create account")
    user_id = created.data[0]["id"]

    try:
        client.table("user_profiles").insert({"id": user_id, "full_name": full_name, "email": email}).execute()
    except Exception:  # noqa: BLE001
        logger.exception("Profile creation failed", extra={"user_id": user_id})

    _delete_pending_signup(pending_id)
    await send_welcome_email(email=email, full_name=full_name)

    logger.info("Account created", extra={"user_id": user_id})
    return _session_response(user_id, email, full_name or None)


def sign_in(*, email: str, password: str) -> dict[str, Any]:
    normalized_email = _normalize_email(email)
    if not normalized_email or not password:
        raise ValidationError("Email and password are required")
    user = _find_user_by_email(normalized_email)
    if not user or not check_password(password, user.get("password_hash")):
        raise AuthenticationError("Invalid credentials")
    profile = get_profile_row(user["id"])
    return _session_response(user["id"], user["email"], (profile or {}).get("full_name"))


def sign_out(auth: AuthContext) -> None:
    row = {
        "jti": auth.session_id,
        "user_id": auth.user_id,
        "expires_at": auth.expires_at.isoformat() if auth.expires_at else None,
    }
    get_supabase_client().table("revoked_sessions").upsert(row, on_conflict="jti").execute()
    logger.info("Session revoked", extra={"user_id": auth.user_id})


def get_profile_row(user_id: str) -> dict[str, Any] | None:
    result = (
        get_supabase_client()
        .table("user_profiles")
        .select("id, full_name, email")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None
