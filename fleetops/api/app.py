"""
FastAPI application factory.

* Registers versioned routers under ``/api/v1``.
* Maps the domain error hierarchy onto JSON error responses.
* Applies rate-limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from fleetops.api.middleware import limiter
from fleetops.api.routes import (
    admin,
    analytics,
    auth,
    drivers,
    expenses,
    maintenance,
    trips,
    vehicles,
)
from fleetops.domain.errors import FleetError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def fleet_error_handler(request: Request, exc: FleetError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="FleetOps API",
        description=(
            "Fleet operations backend: vehicle registry, capacity-checked "
            "trip dispatch, maintenance tracking, trip expenses with "
            "approval, driver performance and financial analytics."
        ),
        version="1.0.0",
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Errors
    app.add_exception_handler(FleetError, fleet_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    for module in (auth, vehicles, trips, maintenance, expenses, drivers, analytics, admin):
        app.include_router(module.router, prefix="/api/v1")

    return app
