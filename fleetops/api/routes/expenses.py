"""
Expense endpoints
=================

GET    /api/v1/expenses              -- list (filters: status, search)
POST   /api/v1/expenses              -- record the expense for a trip
PATCH  /api/v1/expenses/{id}         -- edit amounts while Pending
PATCH  /api/v1/expenses/{id}/status  -- Pending -> Approved -> Done
DELETE /api/v1/expenses/{id}         -- remove
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_clock, get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpenseStatusRequest,
    ExpenseUpdateRequest,
    MessageResponse,
)
from fleetops.domain.authorization import Action
from fleetops.domain.enums import ExpenseStatus, Role
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import ExpenseRepository
from fleetops.services import expenses as expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=list[ExpenseResponse], summary="List expenses")
@limiter.limit(RATE_LIMIT)
async def list_expenses(
    request: Request,
    status: Optional[ExpenseStatus] = None,
    search: Optional[str] = None,
    user: UserModel = Depends(require(Action.EXPENSE_READ)),
    db: AsyncSession = Depends(get_db),
):
    driver_id = user.id if Role(user.role) == Role.DRIVER else None
    return await ExpenseRepository(db).find(
        status=status, search=search, driver_id=driver_id
    )


@router.post(
    "",
    status_code=201,
    response_model=ExpenseResponse,
    summary="Record a trip expense",
)
@limiter.limit(RATE_LIMIT)
async def create_expense(
    request: Request,
    body: ExpenseCreateRequest,
    user: UserModel = Depends(require(Action.EXPENSE_WRITE)),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await expense_service.record_expense(
        db, **body.model_dump(), actor=user, now=clock()
    )


@router.patch(
    "/{expense_id}", response_model=ExpenseResponse, summary="Edit a pending expense"
)
@limiter.limit(RATE_LIMIT)
async def update_expense(
    request: Request,
    expense_id: int,
    body: ExpenseUpdateRequest,
    user: UserModel = Depends(require(Action.EXPENSE_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    return await expense_service.update_expense(
        db, expense_id, body.model_dump(exclude_unset=True), user
    )


@router.patch(
    "/{expense_id}/status",
    response_model=ExpenseResponse,
    summary="Approve / settle an expense",
    dependencies=[Depends(require(Action.EXPENSE_APPROVE))],
)
@limiter.limit(RATE_LIMIT)
async def change_expense_status(
    request: Request,
    expense_id: int,
    body: ExpenseStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    return await expense_service.change_expense_status(db, expense_id, body.status)


@router.delete(
    "/{expense_id}", response_model=MessageResponse, summary="Delete an expense"
)
@limiter.limit(RATE_LIMIT)
async def delete_expense(
    request: Request,
    expense_id: int,
    user: UserModel = Depends(require(Action.EXPENSE_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    await expense_service.delete_expense(db, expense_id, user)
    return MessageResponse(message="Expense removed")
