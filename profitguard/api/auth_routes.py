"""Auth API: merchant login and current session."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from profitguard.config import get_settings
from profitguard.services.auth import (
    authenticate_merchant,
    create_merchant_token,
    get_current_merchant,
)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MerchantInfo(BaseModel):
    email: str
    shop: str = ""
    role: str = "merchant"


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest):
    """Authenticate and return JWT."""
    if not authenticate_merchant(data.email, data.password):
        raise HTTPException(401, "Invalid credentials")
    return TokenResponse(
        access_token=create_merchant_token(data.email),
        expires_in=settings.jwt_expire_minutes * 60,
    )


@router.get("/me", response_model=MerchantInfo)
async def get_me(merchant: dict = Depends(get_current_merchant)):
    return MerchantInfo(
        email=merchant.get("sub", ""),
        shop=merchant.get("shop", ""),
        role=merchant.get("role", "merchant"),
    )
