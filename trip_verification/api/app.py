"""
FastAPI application factory.

* Registers routes for trips, rewards and admin.
* Renders ``TripVerificationError`` as ``{detail, code, error}``.
* Picks the lock backend (in-process or Redis) via lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from trip_verification.api.middleware import limiter
from trip_verification.api.routes import admin, rewards, trips
from trip_verification.config import settings
from trip_verification.domain.enums import ErrorCode
from trip_verification.domain.errors import TripVerificationError
from trip_verification.infrastructure.clock import SystemClock
from trip_verification.infrastructure.database import dispose_engine
from trip_verification.infrastructure.locks import (
    KeyedLock,
    RedisLockProvider,
    redis_lock_provider,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_AUTHORIZED: 403,
    ErrorCode.ORACLE_NOT_TRUSTED: 403,
    ErrorCode.TRIP_NOT_FOUND: 404,
    ErrorCode.INVALID_STATUS: 409,
    ErrorCode.TRIP_ALREADY_VERIFIED: 409,
    ErrorCode.DISPUTE_ALREADY_RAISED: 409,
    ErrorCode.INVALID_CONFIRMATIONS: 409,
    ErrorCode.ALREADY_CONFIRMED: 409,
    ErrorCode.MAX_TRIPS_EXCEEDED: 409,
}


async def trip_error_handler(request: Request, exc: TripVerificationError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 422),
        content={"detail": exc.detail, "code": int(exc.code), "error": exc.code.name},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Pick the lock backend on startup; release DB connections on shutdown."""
    if settings.lock_backend == "redis":
        app.state.locks = redis_lock_provider(
            settings.redis_url,
            ttl_seconds=settings.lock_ttl_seconds,
            blocking_timeout=settings.lock_blocking_timeout,
        )
        logger.info("Using Redis lock backend")
    yield
    if isinstance(app.state.locks, RedisLockProvider):
        await app.state.locks.client.aclose()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trip Verification & Reward API",
        description=(
            "Tracks ride-sharing trips through oracle attestation, "
            "participant confirmation and dispute, and mints a reward "
            "once a trip is verified."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.clock = SystemClock()
    app.state.locks = KeyedLock()

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(TripVerificationError, trip_error_handler)

    # Routers
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(rewards.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
