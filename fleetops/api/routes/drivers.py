"""
Driver endpoints
================

GET    /api/v1/drivers                      -- list drivers
POST   /api/v1/drivers                      -- create a driver account
GET    /api/v1/drivers/performance          -- per-driver trip stats
GET    /api/v1/drivers/performance/summary  -- duty / licence / safety overview
GET    /api/v1/drivers/{id}                 -- fetch one
PATCH  /api/v1/drivers/{id}                 -- edit licence, duty, safety fields
DELETE /api/v1/drivers/{id}                 -- remove (deactivate when trips reference it)
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_clock, get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    DriverCreateRequest,
    DriverPerformanceResponse,
    DriverResponse,
    DriverUpdateRequest,
    MessageResponse,
    PerformanceSummaryResponse,
)
from fleetops.config import settings
from fleetops.domain.authorization import Action
from fleetops.infrastructure.repositories import UserRepository
from fleetops.services import drivers as driver_service

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "",
    response_model=list[DriverResponse],
    summary="List drivers",
    dependencies=[Depends(require(Action.DRIVER_READ))],
)
@limiter.limit(RATE_LIMIT)
async def list_drivers(
    request: Request,
    search: Optional[str] = None,
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await UserRepository(db).list_drivers(
        active_only=active_only, search=search
    )


@router.post(
    "",
    status_code=201,
    response_model=DriverResponse,
    summary="Create a driver",
    dependencies=[Depends(require(Action.DRIVER_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def create_driver(
    request: Request,
    body: DriverCreateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await driver_service.create_driver(db, **body.model_dump(), now=clock())


@router.get(
    "/performance",
    response_model=list[DriverPerformanceResponse],
    summary="Per-driver trip completion and licence state",
    dependencies=[Depends(require(Action.PERFORMANCE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def driver_performance(
    request: Request,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    rows = await driver_service.driver_performance(db, now=clock(), search=search)
    return [
        DriverPerformanceResponse(
            **DriverResponse.model_validate(row.driver).model_dump(),
            total_trips=row.total_trips,
            completed_trips=row.completed_trips,
            completion_rate=row.completion_rate,
            license_expired=row.license_expired,
        )
        for row in rows
    ]


@router.get(
    "/performance/summary",
    response_model=PerformanceSummaryResponse,
    summary="Driver duty, licence and safety overview",
    dependencies=[Depends(require(Action.PERFORMANCE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def performance_summary(
    request: Request,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await driver_service.performance_summary(
        db, now=clock(), warning_days=settings.license_warning_days
    )


@router.get(
    "/{driver_id}",
    response_model=DriverResponse,
    summary="Get a driver",
    dependencies=[Depends(require(Action.DRIVER_READ))],
)
@limiter.limit(RATE_LIMIT)
async def get_driver(
    request: Request, driver_id: int, db: AsyncSession = Depends(get_db)
):
    return await driver_service.get_driver(db, driver_id)


@router.patch(
    "/{driver_id}",
    response_model=DriverResponse,
    summary="Update a driver",
    dependencies=[Depends(require(Action.DRIVER_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def update_driver(
    request: Request,
    driver_id: int,
    body: DriverUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await driver_service.update_driver(
        db, driver_id, body.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{driver_id}",
    response_model=MessageResponse,
    summary="Delete a driver",
    description=(
        "Drivers with trips on record are deactivated instead of deleted. "
        "A driver on an active trip cannot be removed."
    ),
    dependencies=[Depends(require(Action.DRIVER_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def delete_driver(
    request: Request, driver_id: int, db: AsyncSession = Depends(get_db)
):
    if await driver_service.delete_driver(db, driver_id):
        return MessageResponse(message="Driver removed")
    return MessageResponse(message="Driver deactivated")
