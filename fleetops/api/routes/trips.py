"""
Trip dispatch endpoints
=======================

GET    /api/v1/trips              -- list (filters: status, search)
POST   /api/v1/trips              -- dispatch a trip (capacity-checked)
GET    /api/v1/trips/{id}         -- fetch one
PATCH  /api/v1/trips/{id}/status  -- advance Pending -> On Way -> Delivered | Cancelled
DELETE /api/v1/trips/{id}         -- remove; frees the vehicle if still active

Drivers only ever see their own trips.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.api.dependencies import get_clock, get_db, require
from fleetops.api.middleware import RATE_LIMIT, limiter
from fleetops.api.schemas import (
    MessageResponse,
    TripCreateRequest,
    TripResponse,
    TripStatusRequest,
)
from fleetops.domain.authorization import Action
from fleetops.domain.enums import Role, TripStatus
from fleetops.domain.errors import TripNotFound
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import TripRepository
from fleetops.services import dispatch

router = APIRouter(prefix="/trips", tags=["trips"])


def _own_trips_only(user: UserModel) -> Optional[int]:
    return user.id if Role(user.role) == Role.DRIVER else None


@router.get("", response_model=list[TripResponse], summary="List trips")
@limiter.limit(RATE_LIMIT)
async def list_trips(
    request: Request,
    status: Optional[TripStatus] = None,
    search: Optional[str] = None,
    user: UserModel = Depends(require(Action.TRIP_READ)),
    db: AsyncSession = Depends(get_db),
):
    return await TripRepository(db).find(
        status=status, search=search, driver_id=_own_trips_only(user)
    )


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Dispatch a trip",
    description=(
        "Checks the driver is active, the vehicle is Available and the cargo "
        "fits the vehicle's capacity (tons are converted to kg), then locks "
        "the vehicle to the trip."
    ),
    dependencies=[Depends(require(Action.TRIP_DISPATCH))],
)
@limiter.limit(RATE_LIMIT)
async def create_trip(
    request: Request,
    body: TripCreateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return await dispatch.dispatch_trip(db, **body.model_dump(), now=clock())


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip")
@limiter.limit(RATE_LIMIT)
async def get_trip(
    request: Request,
    trip_id: int,
    user: UserModel = Depends(require(Action.TRIP_READ)),
    db: AsyncSession = Depends(get_db),
):
    trip = await dispatch.get_trip(db, trip_id)
    own = _own_trips_only(user)
    if own is not None and trip.driver_id != own:
        raise TripNotFound()
    return trip


@router.patch(
    "/{trip_id}/status",
    response_model=TripResponse,
    summary="Advance trip status",
    dependencies=[Depends(require(Action.TRIP_UPDATE))],
)
@limiter.limit(RATE_LIMIT)
async def change_trip_status(
    request: Request,
    trip_id: int,
    body: TripStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    return await dispatch.advance_trip(db, trip_id, body.status)


@router.delete(
    "/{trip_id}",
    response_model=MessageResponse,
    summary="Delete a trip",
    dependencies=[Depends(require(Action.TRIP_UPDATE))],
)
@limiter.limit(RATE_LIMIT)
async def delete_trip(
    request: Request, trip_id: int, db: AsyncSession = Depends(get_db)
):
    await dispatch.delete_trip(db, trip_id)
    return MessageResponse(message="Trip removed")
