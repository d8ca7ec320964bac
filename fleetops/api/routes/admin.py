"""
Admin endpoints
===============

GET   /api/v1/admin/health            -- simple health check
GET   /api/v1/admin/users             -- list accounts (filters: role, is_active, search)
PATCH /api/v1/admin/users/{id}/active -- activate / deactivate an account
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import HealthResponse, UserActiveRequest, UserResponse
from fleetops.domain.authorization import Action
from fleetops.domain.enums import Role
from fleetops.infrastructure.models import UserModel
from fleetops.services import auth as auth_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="List user accounts",
    dependencies=[Depends(require(Action.USER_MANAGE))],
)
@limiter.limit(RATE_LIMIT)
async def list_users(
    request: Request,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.list_users(
        db, role=role, is_active=is_active, search=search
    )


@router.patch(
    "/users/{user_id}/active",
    response_model=UserResponse,
    summary="Activate or deactivate an account",
)
@limiter.limit(RATE_LIMIT)
async def set_user_active(
    request: Request,
    user_id: int,
    body: UserActiveRequest,
    actor: UserModel = Depends(require(Action.USER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.set_active(db, user_id, body.is_active, actor)
