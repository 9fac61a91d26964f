# whats_cooking/auth/models.py — AuthContext, token payloads

from datetime import datetime

from pydantic import BaseModel


class SessionTokenPayload(BaseModel):
    sub: str
    user_id: str
    email: str
    jti: str
    type: str = "session"
    exp: int | None = None
    iat: int | None = None


class PendingSignupTokenPayload(BaseModel):
    sub: str
    email: str
    type: str = "pending_signup"
    exp: int | None = None
    iat: int | None = None

    @property
    def pending_id(self) -> str:
        return self.sub


class AuthContext(BaseModel):
    user_id: str
    email: str
    session_id: str
    expires_at: datetime | None = None
