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

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
ACTION = "generate_recipes"


def _candidate_text(body: dict) -> str:
    text = ""
    for candidate in body.get("candidates") or []:
        for part in (candidate.get("content") or {}).get("parts") or []:
            if isinstance(part.get("text"), str):
                text += part["text"]
    return text


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
        return missing_api_key("gemini", ACTION)
    start_ms = now_ms()
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        res = await client.post(
            f"{GEMINI_API_URL}/{model.strip()}:generateContent",
            params={"key": api_key},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": temperature,
                    "topK": 40,
                    "topP": 0.95,
                    "maxOutputTokens": max_output_tokens,
                },
            },
        )
        body = parse_json_or_raw(res.text, res.json)
    if res.status_code >= 400:
        return http_failure("gemini", ACTION, res.status_code, body, start_ms)
    return text_result("gemini", ACTION, _candidate_text(body), res.status_code, start_ms)
