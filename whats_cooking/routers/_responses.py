# whats_cooking/routers/_responses.py — shared API response envelopes

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class DataEnvelope(BaseModel):
    success: bool = True
    data: Any


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: dict[str, Any] | None = None


def error_response(message: str, status_code: int, details: dict[str, Any] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message, details=details).model_dump(),
    )
