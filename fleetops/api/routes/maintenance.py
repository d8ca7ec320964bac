"""
Maintenance endpoints
=====================

GET    /api/v1/maintenance              -- list (filters: status, search, vehicle_id)
POST   /api/v1/maintenance              -- open a log; vehicle goes In Shop
PATCH  /api/v1/maintenance/{id}         -- edit issue / date / cost
PATCH  /api/v1/maintenance/{id}/status  -- New -> In Progress -> Completed
DELETE /api/v1/maintenance/{id}         -- remove a log
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_clock, get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    MaintenanceCreateRequest,
    MaintenanceResponse,
    MaintenanceStatusRequest,
    MaintenanceUpdateRequest,
    MessageResponse,
)
from fleetops.domain.authorization import Action
from fleetops.domain.enums import MaintenanceStatus
from fleetops.infrastructure.repositories import MaintenanceRepository
from fleetops.services import maintenance as maintenance_service

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get(
    "",
    response_model=list[MaintenanceResponse],
    summary="List maintenance logs",
    dependencies=[Depends(require(Action.MAINTENANCE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def list_logs(
    request: Request,
    status: Optional[MaintenanceStatus] = None,
    search: Optional[str] = None,
    vehicle_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    return await MaintenanceRepository(db).find(
        status=status, search=search, vehicle_id=vehicle_id
    )


@router.post(
    "",
    status_code=201,
    response_model=MaintenanceResponse,
    summary="Open a maintenance log",
    description="Pulls the vehicle out of service (In Shop) immediately.",
    dependencies=[Depends(require(Action.MAINTENANCE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def create_log(
    request: Request,
    body: MaintenanceCreateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await maintenance_service.open_maintenance(
        db, **body.model_dump(), now=clock()
    )


@router.patch(
    "/{log_id}",
    response_model=MaintenanceResponse,
    summary="Edit a maintenance log",
    dependencies=[Depends(require(Action.MAINTENANCE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def update_log(
    request: Request,
    log_id: int,
    body: MaintenanceUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await maintenance_service.update_maintenance(
        db, log_id, body.model_dump(exclude_unset=True)
    )


@router.patch(
    "/{log_id}/status",
    response_model=MaintenanceResponse,
    summary="Change maintenance status",
    description="Completing a log returns the vehicle to Available if it is still In Shop.",
    dependencies=[Depends(require(Action.MAINTENANCE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def change_log_status(
    request: Request,
    log_id: int,
    body: MaintenanceStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    return await maintenance_service.change_maintenance_status(db, log_id, body.status)


@router.delete(
    "/{log_id}",
    response_model=MessageResponse,
    summary="Delete a maintenance log",
    dependencies=[Depends(require(Action.MAINTENANCE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def delete_log(
    request: Request, log_id: int, db: AsyncSession = Depends(get_db)
):
    await maintenance_service.delete_maintenance(db, log_id)
    return MessageResponse(message="Maintenance log removed")
