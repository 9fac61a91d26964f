from __future__ import annotations

import time
from typing import Any, TypedDict


class ProviderAdapterResult(TypedDict):
    """``attempt`` is diagnostic metadata; ``mapped`` is the usable payload or None."""

    attempt: dict[str, Any]
    mapped: Any


def now_ms() -> int:
    return int(time.time() * 1000)


def build_attempt(provider: str, action: str, status: str, **fields: Any) -> dict[str, Any]:
    return {"provider": provider, "action": action, "status": status, **fields}


def missing_api_key(provider: str, action: str) -> ProviderAdapterResult:
    return {"attempt": build_attempt(provider, action, "failed", error="missing_api_key"), "mapped": None}


def http_failure(
    provider: str,
    action: str,
    status_code: int,
    body: dict[str, Any],
    start_ms: int | None = None,
) -> ProviderAdapterResult:
    fields: dict[str, Any] = {"http_status": status_code, "raw_response": body}
    if start_ms is not None:
        fields["duration_ms"] = now_ms() - start_ms
    return {"attempt": build_attempt(provider, action, "failed", **fields), "mapped": None}


def text_result(provider: str, action: str, text: str, status_code: int, start_ms: int) -> ProviderAdapterResult:
    """Completion outcome; blank text counts as a failed attempt."""
    has_text = bool(text.strip())
    return {
        "attempt": build_attempt(
            provider,
            action,
            "completed" if has_text else "failed",
            provider_status="ok" if has_text else "empty_output",
            http_status=status_code,
            duration_ms=now_ms() - start_ms,
        ),
        "mapped": text if has_text else None,
    }


def parse_json_or_raw(text: str, parser: Any) -> dict[str, Any]:
    try:
        parsed = parser()
    except ValueError:
        return {"raw": text}
    if isinstance(parsed, dict):
        return parsed
    return {"value": parsed}
