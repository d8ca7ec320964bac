"""
Auth endpoints
==============

POST /api/v1/auth/register -- create an account and return a token
POST /api/v1/auth/login    -- exchange credentials for a bearer token
GET  /api/v1/auth/me       -- the account behind the current token
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_current_user, get_db
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.security import create_access_token
from fleetops.services.auth import authenticate, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: UserModel) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role.value),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    summary="Register a new user",
)
@limiter.limit(RATE_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await register_user(
        db,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
        role=body.role,
        phone=body.phone,
        department=body.department,
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse, summary="Log in")
@limiter.limit(RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.email, body.password)
    return _token_response(user)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: UserModel = Depends(get_current_user)):
    return user
