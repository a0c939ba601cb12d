"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work), implements one
of the ports in ``trip_verification.domain.ports`` and converts between ORM
rows and domain entities.  Nothing here commits: the caller owns the
transaction, which is what makes every engine call all-or-nothing.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    ConfigurationModel,
    OracleSubmissionModel,
    TokenMintModel,
    TripModel,
)
from trip_verification.config import Settings, settings as default_settings
from trip_verification.domain.entities import OracleSubmission, Trip
from trip_verification.domain.enums import TripStatus
from trip_verification.domain.ports import (
    ConfigurationStore,
    MintGateway,
    OracleSubmissionStore,
    TripStore,
)
from trip_verification.domain.registry import Configuration

CONFIGURATION_ROW_ID = 1

# INSERT ... ON CONFLICT DO NOTHING constructs per dialect
UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


class TripRepository(TripStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, trip_id: int, *, for_update: bool = False) -> Optional[Trip]:
        query = select(TripModel).where(TripModel.id == trip_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        row = result.scalar_one_or_none()
        return _trip_from_row(row) if row else None

    async def insert(self, trip: Trip) -> None:
        self.session.add(
            TripModel(
                id=trip.id,
                driver=trip.driver,
                passengers=list(trip.passengers),
                route=trip.route,
                start_time=trip.start_time,
                timestamp=trip.timestamp,
                status=trip.status,
                confirmed_by=list(trip.confirmed_by),
            )
        )
        await self.session.flush()

    async def update(self, trip: Trip) -> None:
        row = await self.session.get(TripModel, trip.id)
        if row is None:
            raise LookupError(f"Trip {trip.id} does not exist")
        row.end_time = trip.end_time
        row.distance = trip.distance
        row.congestion_index = trip.congestion_index
        row.gps_verified = trip.gps_verified
        row.status = trip.status
        row.reward = trip.reward
        row.timestamp = trip.timestamp
        row.confirmations = trip.confirmations
        # new list so the JSON column registers the change
        row.confirmed_by = list(trip.confirmed_by)
        row.disputed = trip.disputed
        row.dispute_reason = trip.dispute_reason
        await self.session.flush()


class OracleSubmissionRepository(OracleSubmissionStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, trip_id: int) -> Optional[OracleSubmission]:
        row = await self.session.get(OracleSubmissionModel, trip_id)
        if row is None:
            return None
        return OracleSubmission(
            trip_id=row.trip_id,
            oracle=row.oracle,
            gps_valid=row.gps_valid,
            distance=row.distance,
            congestion=row.congestion,
            submit_time=row.submit_time,
        )

    async def put(self, submission: OracleSubmission) -> None:
        row = await self.session.get(OracleSubmissionModel, submission.trip_id)
        if row is None:
            row = OracleSubmissionModel(trip_id=submission.trip_id)
            self.session.add(row)
        row.oracle = submission.oracle
        row.gps_valid = submission.gps_valid
        row.distance = submission.distance
        row.congestion = submission.congestion
        row.submit_time = submission.submit_time
        await self.session.flush()


class ConfigurationRepository(ConfigurationStore):
    """Single-row registry; created from ``Settings`` on first load.

    Concurrent first loads may both find the table empty, so the row is
    seeded with ``ON CONFLICT DO NOTHING`` and read back: whichever insert
    commits first wins and the others see its row.
    """

    def __init__(self, session: AsyncSession, settings: Settings = default_settings):
        self.session = session
        self.settings = settings

    async def load(self, *, for_update: bool = False) -> Configuration:
        row = await self._get_row(for_update)
        if row is None:
            await self._seed()
            row = await self._get_row(for_update)
        return Configuration(
            admin=row.admin,
            trusted_oracle=row.trusted_oracle,
            token_contract=row.token_contract,
            base_reward_rate=row.base_reward_rate,
            congestion_multiplier=row.congestion_multiplier,
            max_trips=row.max_trips,
            next_trip_id=row.next_trip_id,
        )

    async def save(self, config: Configuration) -> None:
        row = await self._get_row(for_update=False)
        if row is None:
            raise LookupError("Configuration must be loaded before it is saved")
        # admin is immutable and never written back
        row.trusted_oracle = config.trusted_oracle
        row.token_contract = config.token_contract
        row.base_reward_rate = config.base_reward_rate
        row.congestion_multiplier = config.congestion_multiplier
        row.max_trips = config.max_trips
        row.next_trip_id = config.next_trip_id
        await self.session.flush()

    async def _seed(self) -> None:
        dialect = self.session.get_bind().dialect.name
        stmt = (
            UPSERT_INSERTS[dialect](ConfigurationModel)
            .values(
                id=CONFIGURATION_ROW_ID,
                admin=self.settings.admin_identity,
                trusted_oracle=self.settings.trusted_oracle,
                token_contract=self.settings.token_contract,
                base_reward_rate=self.settings.base_reward_rate,
                congestion_multiplier=self.settings.congestion_multiplier,
                max_trips=self.settings.max_trips,
                next_trip_id=0,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        await self.session.execute(stmt)

    async def _get_row(self, for_update: bool) -> Optional[ConfigurationModel]:
        query = select(ConfigurationModel).where(
            ConfigurationModel.id == CONFIGURATION_ROW_ID
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()


class LedgerMintGateway(MintGateway):
    """Records each mint as a ``token_mints`` row in the caller's transaction.

    The row commits or rolls back together with the trip's status change,
    so a trip is verified if and only if its reward was minted.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def mint(
        self,
        amount: int,
        driver: str,
        passengers: Sequence[str],
        *,
        trip_id: int,
        token_contract: str,
    ) -> None:
        self.session.add(
            TokenMintModel(
                trip_id=trip_id,
                token_contract=token_contract,
                amount=amount,
                driver=driver,
                passengers=list(passengers),
            )
        )
        await self.session.flush()

    async def get_for_trip(self, trip_id: int) -> Optional[TokenMintModel]:
        result = await self.session.execute(
            select(TokenMintModel).where(TokenMintModel.trip_id == trip_id)
        )
        return result.scalar_one_or_none()


def _trip_from_row(row: TripModel) -> Trip:
    return Trip(
        id=row.id,
        driver=row.driver,
        passengers=list(row.passengers),
        route=row.route,
        start_time=row.start_time,
        timestamp=row.timestamp,
        end_time=row.end_time,
        distance=row.distance,
        congestion_index=row.congestion_index,
        gps_verified=row.gps_verified,
        status=TripStatus(row.status),
        reward=row.reward,
        confirmations=row.confirmations,
        confirmed_by=list(row.confirmed_by or []),
        disputed=row.disputed,
        dispute_reason=row.dispute_reason,
    )
