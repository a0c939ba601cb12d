"""
Repository tests against an in-memory SQLite database.

Covers the row <-> entity mapping, the lazily created configuration row,
and the all-or-nothing coupling of verification and minting inside one
transaction.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tests.conftest import ADMIN, DISPATCHER, DRIVER, ORACLE, P1, P2, TOKEN
from trip_verification.config import Settings
from trip_verification.domain.entities import OracleSubmission, Trip
from trip_verification.domain.enums import TripStatus
from trip_verification.domain.lifecycle import TripLifecycleEngine
from trip_verification.infrastructure.clock import ManualClock
from trip_verification.infrastructure.locks import KeyedLock
from trip_verification.infrastructure.models import ConfigurationModel, TokenMintModel
from trip_verification.infrastructure.repositories import (
    ConfigurationRepository,
    LedgerMintGateway,
    OracleSubmissionRepository,
    TripRepository,
)

TEST_SETTINGS = Settings(
    admin_identity=ADMIN,
    trusted_oracle=ORACLE,
    token_contract=TOKEN,
    base_reward_rate=10,
    congestion_multiplier=2,
    max_trips=50,
)


def sql_engine(session, clock=None) -> TripLifecycleEngine:
    return TripLifecycleEngine(
        TripRepository(session),
        OracleSubmissionRepository(session),
        ConfigurationRepository(session, TEST_SETTINGS),
        LedgerMintGateway(session),
        clock or ManualClock(),
        KeyedLock(),
    )


class _EmptyOnFirstRead(ConfigurationRepository):
    """Misses the row once, as a request racing another first load would."""

    def __init__(self, session, settings):
        super().__init__(session, settings)
        self._missed = False

    async def _get_row(self, for_update):
        if not self._missed:
            self._missed = True
            return None
        return await super()._get_row(for_update)


class TestTripRepository:
    @pytest.mark.asyncio
    async def test_insert_get_update(self, db_session):
        repo = TripRepository(db_session)
        await repo.insert(
            Trip(id=0, driver=DRIVER, passengers=[P1, P2], route="R", start_time=5, timestamp=1)
        )

        trip = await repo.get(0, for_update=True)
        assert trip.passengers == [P1, P2]
        assert trip.status == TripStatus.PENDING
        assert trip.confirmed_by == []

        trip.record_oracle_data(gps_valid=True, distance=9, congestion=40, end_time=30)
        trip.add_confirmation(P1)
        trip.mark_disputed("No show")
        await repo.update(trip)
        await db_session.commit()

        reloaded = await repo.get(0)
        assert reloaded == trip

    @pytest.mark.asyncio
    async def test_missing_trip_is_none(self, db_session):
        assert await TripRepository(db_session).get(123) is None


class TestOracleSubmissionRepository:
    @pytest.mark.asyncio
    async def test_put_overwrites(self, db_session):
        await TripRepository(db_session).insert(
            Trip(id=0, driver=DRIVER, passengers=[P1], route="R", start_time=5, timestamp=1)
        )
        repo = OracleSubmissionRepository(db_session)
        await repo.put(OracleSubmission(0, ORACLE, True, 10, 20, 3))
        await repo.put(OracleSubmission(0, ORACLE, True, 11, 21, 4))

        assert await repo.get(0) == OracleSubmission(0, ORACLE, True, 11, 21, 4)
        assert await repo.get(1) is None


class TestConfigurationRepository:
    @pytest.mark.asyncio
    async def test_first_load_uses_settings(self, db_session):
        config = await ConfigurationRepository(db_session, TEST_SETTINGS).load()
        assert config.admin == ADMIN
        assert config.trusted_oracle == ORACLE
        assert config.max_trips == 50
        assert config.next_trip_id == 0

    @pytest.mark.asyncio
    async def test_save_keeps_admin(self, db_session):
        repo = ConfigurationRepository(db_session, TEST_SETTINGS)
        config = await repo.load(for_update=True)
        config.set_base_reward_rate(ADMIN, 25)
        config.admin = "ST6IMPOSTOR"
        await repo.save(config)

        reloaded = await repo.load()
        assert reloaded.base_reward_rate == 25
        assert reloaded.admin == ADMIN

    @pytest.mark.asyncio
    async def test_seed_yields_to_row_created_concurrently(self, session_factory):
        async with session_factory() as session:
            await ConfigurationRepository(session, TEST_SETTINGS).load()
            await session.commit()

        late_settings = TEST_SETTINGS.model_copy(update={"base_reward_rate": 99})
        async with session_factory() as session:
            config = await _EmptyOnFirstRead(session, late_settings).load(for_update=True)
            await session.commit()

        assert config.base_reward_rate == 10
        async with session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(ConfigurationModel)
            )
        assert count == 1

    @pytest.mark.asyncio
    async def test_interleaved_first_loads_share_one_row(self, session_factory):
        async with session_factory() as first, session_factory() as second:
            config = await ConfigurationRepository(first, TEST_SETTINGS).load(
                for_update=True
            )
            pending = asyncio.create_task(
                ConfigurationRepository(second, TEST_SETTINGS).load()
            )
            await asyncio.sleep(0)
            await first.commit()

            assert await pending == config


class TestEngineOverSql:
    @pytest.mark.asyncio
    async def test_full_lifecycle_persists(self, session_factory):
        async with session_factory() as session:
            engine = sql_engine(session)
            trip_id = await engine.initiate_trip(DISPATCHER, DRIVER, [P1, P2], "R", 100)
            await engine.submit_oracle_data(ORACLE, trip_id, True, 50, 80, 200)
            await engine.confirm_trip(P1, trip_id)
            assert await engine.verify_trip(DRIVER, trip_id) == 2600
            await session.commit()

        async with session_factory() as session:
            engine = sql_engine(session)
            trip = await engine.get_trip(trip_id)
            assert trip.status == TripStatus.VERIFIED
            assert trip.reward == 2600
            assert trip.confirmed_by == [P1]
            assert await engine.get_trip_count() == 1

            mint = await LedgerMintGateway(session).get_for_trip(trip_id)
            assert mint.amount == 2600
            assert mint.driver == DRIVER
            assert mint.passengers == [P1, P2]
            assert mint.token_contract == TOKEN

    @pytest.mark.asyncio
    async def test_failed_mint_rolls_back_verification(self, session_factory):
        async with session_factory() as session:
            engine = sql_engine(session)
            trip_id = await engine.initiate_trip(DISPATCHER, DRIVER, [P1], "R", 100)
            await engine.submit_oracle_data(ORACLE, trip_id, True, 50, 80, 200)
            # a stale ledger row makes the mint insert collide
            session.add(
                TokenMintModel(
                    trip_id=trip_id,
                    token_contract=TOKEN,
                    amount=1,
                    driver=DRIVER,
                    passengers=[P1],
                )
            )
            await session.commit()

        async with session_factory() as session:
            engine = sql_engine(session)
            with pytest.raises(IntegrityError):
                await engine.verify_trip(DRIVER, trip_id)
            await session.rollback()

        async with session_factory() as session:
            trip = await TripRepository(session).get(trip_id)
            assert trip.status == TripStatus.PENDING
            assert trip.reward == 0
            count = await session.execute(select(func.count()).select_from(TokenMintModel))
            assert count.scalar() == 1

    @pytest.mark.asyncio
    async def test_uncommitted_initiation_leaves_no_trace(self, session_factory):
        async with session_factory() as session:
            await sql_engine(session).initiate_trip(DISPATCHER, DRIVER, [P1], "R", 100)
            await session.rollback()

        async with session_factory() as session:
            engine = sql_engine(session)
            assert await engine.get_trip(0) is None
            assert await engine.get_trip_count() == 0
