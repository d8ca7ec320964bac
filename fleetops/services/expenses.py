"""Trip-scoped expenses with a Pending -> Approved -> Done approval flow."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.enums import ExpenseStatus, Role
from fleetops.domain.errors import (
    DuplicateEntry,
    ExpenseNotFound,
    Forbidden,
    InvalidState,
    InvalidTransition,
    TripNotFound,
)
from fleetops.domain.lifecycle import EXPENSE_LIFECYCLE
from fleetops.infrastructure.models import ExpenseModel, UserModel
from fleetops.infrastructure.repositories import ExpenseRepository, TripRepository

logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("distance", "fuel_cost", "misc_expense")


def _ensure_owner(actor: UserModel, driver_id: int) -> None:
    if Role(actor.role) == Role.DRIVER and actor.id != driver_id:
        raise Forbidden("Drivers may only manage expenses for their own trips")


async def record_expense(
    session: AsyncSession,
    *,
    trip_id: int,
    fuel_cost: float,
    distance: float = 0.0,
    misc_expense: float = 0.0,
    actor: UserModel,
    now: datetime,
) -> ExpenseModel:
    trip = await TripRepository(session).get_by_id(trip_id)
    if trip is None:
        raise TripNotFound()
    _ensure_owner(actor, trip.driver_id)

    repo = ExpenseRepository(session)
    if await repo.get_by_trip(trip.id) is not None:
        raise DuplicateEntry(f"Trip {trip.id} already has an expense record")

    expense = await repo.create(
        ExpenseModel(
            trip_id=trip.id,
            driver_id=trip.driver_id,
            distance=distance,
            fuel_cost=fuel_cost,
            misc_expense=misc_expense,
            status=ExpenseStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("Expense %s recorded for trip %s", expense.id, trip.id)
    return expense


async def get_expense(session: AsyncSession, expense_id: int) -> ExpenseModel:
    expense = await ExpenseRepository(session).get_by_id(expense_id)
    if expense is None:
        raise ExpenseNotFound()
    return expense


async def update_expense(
    session: AsyncSession, expense_id: int, changes: dict[str, Any], actor: UserModel
) -> ExpenseModel:
    expense = await get_expense(session, expense_id)
    _ensure_owner(actor, expense.driver_id)
    if ExpenseStatus(expense.status) != ExpenseStatus.PENDING:
        raise InvalidState(
            f"Expense is {ExpenseStatus(expense.status).value}; "
            "only pending expenses can be edited"
        )
    for field in AMOUNT_FIELDS:
        if changes.get(field) is not None:
            setattr(expense, field, changes[field])
    await session.flush()
    return expense


async def change_expense_status(
    session: AsyncSession, expense_id: int, new_status: ExpenseStatus
) -> ExpenseModel:
    repo = ExpenseRepository(session)
    expense = await get_expense(session, expense_id)
    current = ExpenseStatus(expense.status)
    EXPENSE_LIFECYCLE.ensure(current, new_status)
    if not await repo.transition(expense, new_status, expected=current):
        raise InvalidTransition(
            f"Expense {expense.id} was moved to "
            f"{ExpenseStatus(expense.status).value} by another request"
        )
    logger.info("Expense %s: %s -> %s", expense.id, current.value, new_status.value)
    return expense


async def delete_expense(
    session: AsyncSession, expense_id: int, actor: UserModel
) -> None:
    expense = await get_expense(session, expense_id)
    _ensure_owner(actor, expense.driver_id)
    await ExpenseRepository(session).delete(expense)
    logger.info("Expense %s deleted", expense_id)
