"""
Vehicle registry endpoints
==========================

GET    /api/v1/vehicles                -- list (filters: type, status, search)
GET    /api/v1/vehicles/stats          -- KPI tiles for the dashboard
POST   /api/v1/vehicles                -- register a vehicle
GET    /api/v1/vehicles/{id}           -- fetch one
PATCH  /api/v1/vehicles/{id}           -- edit registry attributes
PATCH  /api/v1/vehicles/{id}/status    -- retire / reactivate
DELETE /api/v1/vehicles/{id}           -- remove from the registry
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_clock, get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    MessageResponse,
    VehicleCreateRequest,
    VehicleResponse,
    VehicleStatsResponse,
    VehicleStatusRequest,
    VehicleUpdateRequest,
)
from fleetops.domain.authorization import Action
from fleetops.domain.enums import VehicleStatus, VehicleType
from fleetops.domain.errors import AnalyticsFailed
from fleetops.infrastructure.repositories import VehicleRepository
from fleetops.services import analytics as analytics_service
from fleetops.services import vehicles as vehicle_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get(
    "",
    response_model=list[VehicleResponse],
    summary="List vehicles",
    dependencies=[Depends(require(Action.VEHICLE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def list_vehicles(
    request: Request,
    vehicle_type: Optional[VehicleType] = Query(None, alias="type"),
    status: Optional[VehicleStatus] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return await VehicleRepository(db).find(
        vehicle_type=vehicle_type, status=status, search=search
    )


@router.get(
    "/stats",
    response_model=VehicleStatsResponse,
    summary="Fleet KPI statistics",
    dependencies=[Depends(require(Action.VEHICLE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def vehicle_stats(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        return await analytics_service.vehicle_stats(db)
    except SQLAlchemyError:
        logger.exception("Vehicle stats aggregation failed")
        raise AnalyticsFailed()


@router.post(
    "",
    status_code=201,
    response_model=VehicleResponse,
    summary="Register a vehicle",
    dependencies=[Depends(require(Action.VEHICLE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def create_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await vehicle_service.register_vehicle(
        db, **body.model_dump(), now=clock()
    )


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Get a vehicle",
    dependencies=[Depends(require(Action.VEHICLE_READ))],
)
@limiter.limit(RATE_LIMIT)
async def get_vehicle(
    request: Request, vehicle_id: int, db: AsyncSession = Depends(get_db)
):
    return await vehicle_service.get_vehicle(db, vehicle_id)


@router.patch(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Edit vehicle attributes",
    dependencies=[Depends(require(Action.VEHICLE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def update_vehicle(
    request: Request,
    vehicle_id: int,
    body: VehicleUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await vehicle_service.update_vehicle(
        db, vehicle_id, body.model_dump(exclude_unset=True)
    )


@router.patch(
    "/{vehicle_id}/status",
    response_model=VehicleResponse,
    summary="Retire or reactivate a vehicle",
    description=(
        "Only Available/In Shop -> Retired and Retired -> Available are "
        "accepted here.  On Trip and In Shop are set by dispatch and "
        "maintenance."
    ),
    dependencies=[Depends(require(Action.VEHICLE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def change_vehicle_status(
    request: Request,
    vehicle_id: int,
    body: VehicleStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    return await vehicle_service.change_vehicle_status(db, vehicle_id, body.status)


@router.delete(
    "/{vehicle_id}",
    response_model=MessageResponse,
    summary="Delete a vehicle",
    dependencies=[Depends(require(Action.VEHICLE_WRITE))],
)
@limiter.limit(RATE_LIMIT)
async def delete_vehicle(
    request: Request, vehicle_id: int, db: AsyncSession = Depends(get_db)
):
    await vehicle_service.delete_vehicle(db, vehicle_id)
    return MessageResponse(message="Vehicle removed")
