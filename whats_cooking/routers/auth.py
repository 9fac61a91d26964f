# whats_cooking/routers/auth.py — signup (OTP), login, logout

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from whats_cooking.auth import AuthContext, get_current_user
from whats_cooking.routers._responses import DataEnvelope, ErrorEnvelope
from whats_cooking.services import account_operations

router = APIRouter()


class SignupRequest(BaseModel):
    full_name: str
    email: str
    password: str


class ResendOtpRequest(BaseModel):
    pending_token: str


class VerifyOtpRequest(BaseModel):
    pending_token: str
    otp: str


class LoginRequest(BaseModel):
    email: str
    password: str


class MeResponse(BaseModel):
    user_id: str
    email: str
    full_name: str | None = None


@router.post(
    "/signup",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 409: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def signup(payload: SignupRequest) -> DataEnvelope:
    """Start signup: emails an OTP and returns a pending-signup token."""
    result = await account_operations.start_signup(
        full_name=payload.full_name,
        email=payload.email,
        password=payload.password,
    )
    return DataEnvelope(data=result)


@router.post("/resend-otp", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def resend_otp(payload: ResendOtpRequest) -> DataEnvelope:
    result = await account_operations.resend_signup_otp(pending_token=payload.pending_token)
    return DataEnvelope(data=result)


@router.post("/verify-otp", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def verify_otp(payload: VerifyOtpRequest) -> DataEnvelope:
    """Finish signup and sign the new user in."""
    result = await account_operations.verify_otp_and_create_account(
        pending_token=payload.pending_token,
        otp=payload.otp,
    )
    return DataEnvelope(data=result)


@router.post("/login", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def login(payload: LoginRequest) -> DataEnvelope:
    return DataEnvelope(data=account_operations.sign_in(email=payload.email, password=payload.password))


@router.post("/logout", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def logout(auth: AuthContext = Depends(get_current_user)) -> DataEnvelope:
    account_operations.sign_out(auth)
    return DataEnvelope(data={"signed_out": True})


@router.post("/me", response_model=DataEnvelope, responses={401: {"model": ErrorEnvelope}})
async def me(auth: AuthContext = Depends(get_current_user)) -> DataEnvelope:
    profile = account_operations.get_profile_row(auth.user_id) or {}
    return DataEnvelope(
        data=MeResponse(user_id=auth.user_id, email=auth.email, full_name=profile.get("full_name")).model_dump()
    )
