"""
In-memory implementations of the engine's ports.

Used by the unit tests and for embedding the engine without a database.
Stored entities are copied on the way in and on the way out, so callers
never hold a live reference into the store and an aborted call can not
leave a half-mutated record behind.
"""

from __future__ import annotations

import copy
from typing import Optional, Sequence

from trip_verification.domain.entities import MintRecord, OracleSubmission, Trip
from trip_verification.domain.ports import (
    ConfigurationStore,
    MintGateway,
    OracleSubmissionStore,
    TripStore,
)
from trip_verification.domain.registry import Configuration


class InMemoryTripStore(TripStore):
    def __init__(self):
        self._trips: dict[int, Trip] = {}

    async def get(self, trip_id: int, *, for_update: bool = False) -> Optional[Trip]:
        trip = self._trips.get(trip_id)
        return copy.deepcopy(trip) if trip else None

    async def insert(self, trip: Trip) -> None:
        if trip.id in self._trips:
            raise KeyError(f"Trip {trip.id} already exists")
        self._trips[trip.id] = copy.deepcopy(trip)

    async def update(self, trip: Trip) -> None:
        if trip.id not in self._trips:
            raise LookupError(f"Trip {trip.id} does not exist")
        self._trips[trip.id] = copy.deepcopy(trip)


class InMemoryOracleSubmissionStore(OracleSubmissionStore):
    def __init__(self):
        self._submissions: dict[int, OracleSubmission] = {}

    async def get(self, trip_id: int) -> Optional[OracleSubmission]:
        submission = self._submissions.get(trip_id)
        return copy.copy(submission) if submission else None

    async def put(self, submission: OracleSubmission) -> None:
        self._submissions[submission.trip_id] = copy.copy(submission)


class InMemoryConfigurationStore(ConfigurationStore):
    def __init__(self, config: Configuration):
        self._config = copy.copy(config)

    async def load(self, *, for_update: bool = False) -> Configuration:
        return copy.copy(self._config)

    async def save(self, config: Configuration) -> None:
        admin = self._config.admin
        self._config = copy.copy(config)
        self._config.admin = admin  # immutable


class InMemoryMintGateway(MintGateway):
    """Keeps every mint call in ``self.mints`` in call order."""

    def __init__(self):
        self.mints: list[MintRecord] = []

    async def mint(
        self,
        amount: int,
        driver: str,
        passengers: Sequence[str],
        *,
        trip_id: int,
        token_contract: str,
    ) -> None:
        self.mints.append(
            MintRecord(
                trip_id=trip_id,
                token_contract=token_contract,
                amount=amount,
                driver=driver,
                passengers=tuple(passengers),
            )
        )
