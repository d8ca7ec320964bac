"""
Analytics endpoints
===================

GET /api/v1/analytics             -- fleet, trips, financials, cost rankings, dead stock
GET /api/v1/analytics/monthly     -- revenue / cost / net profit per calendar month
GET /api/v1/analytics/dead-stock  -- vehicles with no recent trips

All figures are recomputed on each request.  A failing aggregation answers
503 so the client can simply retry.
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
    DashboardResponse,
    DeadStockResponse,
    FinancialTotals,
    FleetBreakdown,
    MonthSummaryResponse,
    TripBreakdown,
    VehicleCostResponse,
)
from fleetops.config import settings
from fleetops.domain.authorization import Action
from fleetops.domain.errors import AnalyticsFailed
from fleetops.services import analytics as analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(require(Action.ANALYTICS_READ))],
)


@router.get("", response_model=DashboardResponse, summary="Operational analytics")
@limiter.limit(RATE_LIMIT)
async def dashboard(
    request: Request,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        report = await analytics_service.dashboard(
            db,
            now=clock(),
            per_vehicle_top_n=settings.per_vehicle_top_n,
            costliest_top_n=settings.costliest_top_n,
            dead_stock_window_days=settings.dead_stock_window_days,
        )
    except SQLAlchemyError:
        logger.exception("Dashboard aggregation failed")
        raise AnalyticsFailed()

    return DashboardResponse(
        fleet=FleetBreakdown(**report["fleet"]),
        trips=TripBreakdown(**report["trips"]),
        financials=FinancialTotals(**report["financials"]),
        per_vehicle_costs=[
            VehicleCostResponse.model_validate(c) for c in report["per_vehicle_costs"]
        ],
        costliest_vehicles=[
            VehicleCostResponse.model_validate(c)
            for c in report["costliest_vehicles"]
        ],
        dead_stock=[DeadStockResponse.model_validate(v) for v in report["dead_stock"]],
    )


@router.get(
    "/monthly",
    response_model=list[MonthSummaryResponse],
    summary="Monthly financial summary",
)
@limiter.limit(RATE_LIMIT)
async def monthly(
    request: Request,
    months: Optional[int] = Query(None, ge=1, le=36),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        summaries = await analytics_service.monthly_summary(
            db, now=clock(), months=months or settings.monthly_summary_months
        )
    except SQLAlchemyError:
        logger.exception("Monthly summary aggregation failed")
        raise AnalyticsFailed()
    return [MonthSummaryResponse.model_validate(s) for s in summaries]


@router.get(
    "/dead-stock",
    response_model=list[DeadStockResponse],
    summary="Vehicles without trips in the trailing window",
)
@limiter.limit(RATE_LIMIT)
async def dead_stock(
    request: Request,
    days: Optional[int] = Query(None, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        return await analytics_service.dead_stock(
            db, now=clock(), window_days=days or settings.dead_stock_window_days
        )
    except SQLAlchemyError:
        logger.exception("Dead stock query failed")
        raise AnalyticsFailed()
