from __future__ import annotations

import httpx

from whats_cooking.providers.common import (
    ProviderAdapterResult,
    build_attempt,
    http_failure,
    missing_api_key,
    parse_json_or_raw,
)

RESEND_API_URL = "https://api.resend.com/emails"
ACTION = "send_email"


async def send_email(
    *,
    api_key: str | None,
    sender: str,
    to: str,
    subject: str,
    html: str,
    text: str,
) -> ProviderAdapterResult:
    if not api_key:
        return missing_api_key("resend", ACTION)
    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            res = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
                json={
                    "from": sender,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                    "text": text,
                },
            )
            body = parse_json_or_raw(res.text, res.json)
    except httpx.HTTPError as exc:
        return {"attempt": build_attempt("resend", ACTION, "failed", error=str(exc)), "mapped": None}
    if res.status_code >= 400:
        return http_failure("resend", ACTION, res.status_code, body)
    return {
        "attempt": build_attempt("resend", ACTION, "completed", http_status=res.status_code),
        "mapped": {"message_id": body.get("id")},
    }
