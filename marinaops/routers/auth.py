"""
Authentication router - password login and JWT issuance for portal users.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from marinaops.auth.dependencies import SessionUser, get_current_user
from marinaops.auth.jwt import create_user_token
from marinaops.auth.passwords import verify_password
from marinaops.config import get_settings
from marinaops.routers.deps import envelope, get_active_storage
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class LoginRequest(BaseModel):
    """Email/password login body."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str
    expires_in: int
    user_id: str
    marina_id: Optional[str] = None
    role: str


@router.post("/token", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    storage: StorageBackend = Depends(get_active_storage),
):
    """
    Exchange email and password for a bearer token.

    Users are looked up in the active data source, so demo users log in
    while the API serves sample data.
    """
    settings = get_settings()
    user = storage.get_user_by_email(body.email)

    if (
        user is None
        or not user.is_active
        or not user.password_hash
        or not verify_password(user.password_hash, body.password)
    ):
        logger.warning("login_failed", email=body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_user_token(user)
    logger.info("jwt_issued", user_id=user.id, role=user.primary_role.value)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.jwt_expiration_minutes * 60,
        user_id=user.id,
        marina_id=user.marina_id,
        role=user.primary_role.value,
    )


@router.get("/me")
async def current_user(user: SessionUser = Depends(get_current_user)):
    """Session user resolved from the bearer token."""
    return envelope(
        {
            "id": user.id,
            "email": user.email,
            "marinaId": user.marina_id,
            "role": user.role.value,
            "seesAllMarinas": user.sees_all_marinas,
        }
    )
