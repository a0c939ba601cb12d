"""FastAPI dependency injection helpers."""

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trip_verification.config import settings
from trip_verification.domain.entities import IDENTITY_MAX_LENGTH
from trip_verification.domain.lifecycle import TripLifecycleEngine
from trip_verification.domain.ports import Clock, LockProvider
from trip_verification.infrastructure.database import async_session_factory
from trip_verification.infrastructure.repositories import (
    ConfigurationRepository,
    LedgerMintGateway,
    OracleSubmissionRepository,
    TripRepository,
)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_caller(
    x_caller_id: str = Header(
        ..., max_length=IDENTITY_MAX_LENGTH, description="Caller identity"
    ),
) -> str:
    return x_caller_id


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_locks(request: Request) -> LockProvider:
    return request.app.state.locks


def get_engine(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    locks: LockProvider = Depends(get_locks),
) -> TripLifecycleEngine:
    """Engine bound to the request's unit-of-work."""
    return TripLifecycleEngine(
        TripRepository(db),
        OracleSubmissionRepository(db),
        ConfigurationRepository(db),
        LedgerMintGateway(db),
        clock,
        locks,
        max_passengers=settings.max_passengers,
        unique_confirmations=settings.unique_confirmations,
    )
