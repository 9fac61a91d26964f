# whats_cooking/utils/identifiers.py — Identifier helpers

from __future__ import annotations

import re
import uuid
from uuid import UUID

_UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid_v4(value: str | None) -> bool:
    """True only for database-assigned (version 4) recipe ids."""
    if not isinstance(value, str):
        return False
    return bool(_UUID_V4_PATTERN.match(value.strip()))


def to_uuid_or_none(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(UUID(value))
    except ValueError:
        return None


def new_session_id() -> str:
    return str(uuid.uuid4())
