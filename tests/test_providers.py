from __future__ import annotations

from typing import Any

import httpx
import pytest

from whats_cooking.providers import gemini, openai_provider, resend


class _FakeResponse:
    def __init__(self, *, status_code: int, payload: Any, text: str = "{}") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _capture_post(monkeypatch: pytest.MonkeyPatch, response: _FakeResponse) -> dict[str, Any]:
    captured: dict[str, Any] = {}

    async def _mock_post(self, url: str, **kwargs: Any):  # noqa: ANN001
        _ = self
        captured["url"] = url
        captured.update(kwargs)
        return response

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)
    return captured


@pytest.mark.asyncio
async def test_gemini_missing_api_key_skips_request() -> None:
    result = await gemini.complete(api_key=None, model="gemini-1.5-flash", prompt="hi")
    assert result["mapped"] is None
    assert result["attempt"]["error"] == "missing_api_key"


@pytest.mark.asyncio
async def test_gemini_joins_candidate_text(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_post(
        monkeypatch,
        _FakeResponse(
            status_code=200,
            payload={"candidates": [{"content": {"parts": [{"text": '{"recipes": '}, {"text": "[]}"}]}}]},
        ),
    )

    result = await gemini.complete(
        api_key="gem-key",
        model="gemini-1.5-flash",
        prompt="make food",
        temperature=0.5,
        max_output_tokens=1024,
    )

    assert result["mapped"] == '{"recipes": []}'
    assert result["attempt"]["status"] == "completed"
    assert captured["url"].endswith("/gemini-1.5-flash:generateContent")
    assert captured["params"] == {"key": "gem-key"}
    assert captured["json"]["contents"][0]["parts"][0]["text"] == "make food"
    assert captured["json"]["generationConfig"]["maxOutputTokens"] == 1024
    assert captured["json"]["generationConfig"]["temperature"] == 0.5


@pytest.mark.asyncio
async def test_gemini_http_error_maps_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture_post(monkeypatch, _FakeResponse(status_code=500, payload=ValueError("bad"), text="upstream down"))

    result = await gemini.complete(api_key="gem-key", model="gemini-1.5-flash", prompt="x")

    assert result["mapped"] is None
    assert result["attempt"]["http_status"] == 500
    assert result["attempt"]["raw_response"] == {"raw": "upstream down"}


@pytest.mark.asyncio
async def test_gemini_empty_output_is_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture_post(monkeypatch, _FakeResponse(status_code=200, payload={"candidates": []}))

    result = await gemini.complete(api_key="gem-key", model="gemini-1.5-flash", prompt="x")

    assert result["mapped"] is None
    assert result["attempt"]["provider_status"] == "empty_output"


@pytest.mark.asyncio
async def test_openai_reads_message_content(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_post(
        monkeypatch,
        _FakeResponse(status_code=200, payload={"choices": [{"message": {"content": '{"recipes": []}'}}]}),
    )

    result = await openai_provider.complete(api_key="sk-test", model="gpt-4o-mini", prompt="make food")

    assert result["mapped"] == '{"recipes": []}'
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["json"]["model"] == "gpt-4o-mini"
    assert captured["json"]["messages"][-1] == {"role": "user", "content": "make food"}


@pytest.mark.asyncio
async def test_openai_content_parts_are_joined(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture_post(
        monkeypatch,
        _FakeResponse(
            status_code=200,
            payload={"choices": [{"message": {"content": [{"type": "text", "text": "{}"}, "noise"]}}]},
        ),
    )

    result = await openai_provider.complete(api_key="sk-test", model="gpt-4o-mini", prompt="x")

    assert result["mapped"] == "{}"


@pytest.mark.asyncio
async def test_resend_success_returns_message_id(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_post(monkeypatch, _FakeResponse(status_code=200, payload={"id": "msg_123"}))

    result = await resend.send_email(
        api_key="re_key",
        sender="What's Cooking <noreply@example.com>",
        to="cook@example.com",
        subject="Hi",
        html="<p>Hi</p>",
        text="Hi",
    )

    assert result["mapped"] == {"message_id": "msg_123"}
    assert captured["url"] == resend.RESEND_API_URL
    assert captured["json"]["to"] == ["cook@example.com"]


@pytest.mark.asyncio
async def test_resend_transport_error_maps_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _mock_post(self, url: str, **kwargs: Any):  # noqa: ANN001
        _ = (self, url, kwargs)
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    result = await resend.send_email(
        api_key="re_key",
        sender="noreply@example.com",
        to="cook@example.com",
        subject="Hi",
        html="<p>Hi</p>",
        text="Hi",
    )

    assert result["mapped"] is None
    assert "connection refused" in result["attempt"]["error"]
