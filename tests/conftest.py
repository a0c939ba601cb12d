"""
Shared test fixtures.

Engine-level tests run against the in-memory stores with a manual
block-height clock.  Repository and API tests use an in-memory SQLite
database (via aiosqlite) so they run without Docker / PostgreSQL / Redis.
"""

from contextlib import contextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from trip_verification.domain.errors import TripVerificationError
from trip_verification.domain.lifecycle import TripLifecycleEngine
from trip_verification.domain.registry import Configuration
from trip_verification.infrastructure.clock import ManualClock
from trip_verification.infrastructure.database import Base
from trip_verification.infrastructure.locks import KeyedLock
from trip_verification.infrastructure.memory import (
    InMemoryConfigurationStore,
    InMemoryMintGateway,
    InMemoryOracleSubmissionStore,
    InMemoryTripStore,
)

ADMIN = "ST1ADMIN"
ORACLE = "ST1ORACLE"
TOKEN = "ST1ADMIN.ride-token"
DISPATCHER = "ST9DISPATCHER"
DRIVER = "ST2DRIVER"
P1 = "ST3PASS1"
P2 = "ST4PASS2"
OUTSIDER = "ST5FAKE"

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@contextmanager
def raises_code(code):
    """Assert the block raises ``TripVerificationError`` with ``code``."""
    with pytest.raises(TripVerificationError) as exc_info:
        yield exc_info
    assert exc_info.value.code == code, exc_info.value


def make_configuration(**overrides) -> Configuration:
    values = dict(
        admin=ADMIN,
        trusted_oracle=ORACLE,
        token_contract=TOKEN,
        base_reward_rate=10,
        congestion_multiplier=2,
        max_trips=100_000,
    )
    values.update(overrides)
    return Configuration(**values)


# ── In-memory engine ──────────────────────────────────────────────────


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(height=0)


@pytest.fixture
def mint_gateway() -> InMemoryMintGateway:
    return InMemoryMintGateway()


@pytest.fixture
def trip_store() -> InMemoryTripStore:
    return InMemoryTripStore()


@pytest.fixture
def config_store() -> InMemoryConfigurationStore:
    return InMemoryConfigurationStore(make_configuration())


@pytest.fixture
def engine(trip_store, config_store, mint_gateway, clock) -> TripLifecycleEngine:
    return TripLifecycleEngine(
        trip_store,
        InMemoryOracleSubmissionStore(),
        config_store,
        mint_gateway,
        clock,
        KeyedLock(),
    )


# ── SQLite ────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create tables on a fresh in-memory database, drop them afterwards."""
    db_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await db_engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine) -> async_sessionmaker:
    return async_sessionmaker(
        sqlite_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
