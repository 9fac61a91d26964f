from __future__ import annotations

import httpx

from whats_cooking.providers.common import (
    ProviderAdapterResult,
    http_failure,
    missing_api_key,
    now_ms,
    parse_json_or_raw,
    text_result,
)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
ACTION = "generate_recipes"


def _message_text(body: dict) -> str:
    choices = body.get("choices") or []
    if not choices:
        return ""
    content = ((choices[0] or {}).get("message") or {}).get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Content-part arrays: keep only the text parts.
        return "".join(
            part["text"] for part in content if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    return ""


async def complete(
    *,
    api_key: str | None,
    model: str,
    prompt: str,
    temperature: float = 0.7,
    max_output_tokens: int = 8192,
    timeout_seconds: float = 60.0,
) -> ProviderAdapterResult:
    if not api_key:
        return missing_api_key("openai", ACTION)
    start_ms = now_ms()
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        res = await client.post(
            OPENAI_CHAT_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json={
                "model": model,
                "temperature": temperature,
                "max_tokens": max_output_tokens,
                "response_format": {"type": "json_object"},
                "messages": [
                    {"role": "system", "content": "Return JSON only."},
                    {"role": "user", "content": prompt},
                ],
            },
        )
        body = parse_json_or_raw(res.text, res.json)
    if res.status_code >= 400:
        return http_failure("openai", ACTION, res.status_code, body, start_ms)
    return text_result("openai", ACTION, _message_text(body), res.status_code, start_ms)
