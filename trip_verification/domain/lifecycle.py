"""
Trip Lifecycle Engine
=====================

State machine
-------------
  PENDING --verify_trip--> VERIFIED   (terminal, reward minted once)
  PENDING --dispute_trip-> DISPUTED   (terminal)

Every operation takes the caller identity explicitly, checks all of its
preconditions in a fixed order (first failure wins) and only then mutates
state.  A failed call raises ``TripVerificationError`` and leaves the
stores untouched.

Concurrency safety
------------------
* Each call holds the lock for the key it mutates (``trip:<id>`` or
  ``config``) for its whole duration.
* Rows are loaded ``for_update`` so the SQL store also takes a row lock
  that lives until the surrounding transaction commits.
* ``verify_trip`` computes the reward from a single configuration
  snapshot, so rate and multiplier always come from the same version.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .entities import OracleSubmission, Trip
from .enums import ErrorCode, TripStatus
from .errors import TripVerificationError
from .ports import (
    Clock,
    ConfigurationStore,
    LockProvider,
    MintGateway,
    OracleSubmissionStore,
    TripStore,
)
from .registry import Configuration

logger = logging.getLogger(__name__)

CONFIG_LOCK_KEY = "config"
MAX_CONGESTION = 100


def _trip_lock_key(trip_id: int) -> str:
    return f"trip:{trip_id}"


def _fail(code: ErrorCode, detail: Optional[str] = None) -> TripVerificationError:
    err = TripVerificationError(code, detail)
    logger.debug("Rejected: %s", err)
    return err


class TripLifecycleEngine:
    """High-level API used by the HTTP layer and by embedding code."""

    def __init__(
        self,
        trips: TripStore,
        submissions: OracleSubmissionStore,
        config: ConfigurationStore,
        mint_gateway: MintGateway,
        clock: Clock,
        locks: LockProvider,
        *,
        max_passengers: int = 10,
        unique_confirmations: bool = True,
    ):
        self.trips = trips
        self.submissions = submissions
        self.config = config
        self.mint_gateway = mint_gateway
        self.clock = clock
        self.locks = locks
        self.max_passengers = max_passengers
        self.unique_confirmations = unique_confirmations

    # ── Configuration registry ────────────────────────────────────────

    async def get_configuration(self) -> Configuration:
        return await self.config.load()

    async def set_trusted_oracle(self, caller: str, oracle: str) -> bool:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            config.set_trusted_oracle(caller, oracle)
            await self.config.save(config)
        logger.info("Trusted oracle set to %s", oracle)
        return True

    async def set_token_contract(self, caller: str, contract: str) -> bool:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            config.set_token_contract(caller, contract)
            await self.config.save(config)
        logger.info("Token contract set to %s", contract)
        return True

    async def set_base_reward_rate(self, caller: str, rate: int) -> bool:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            config.set_base_reward_rate(caller, rate)
            await self.config.save(config)
        logger.info("Base reward rate set to %d", rate)
        return True

    async def set_congestion_multiplier(self, caller: str, multiplier: int) -> bool:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            config.set_congestion_multiplier(caller, multiplier)
            await self.config.save(config)
        logger.info("Congestion multiplier set to %d", multiplier)
        return True

    async def set_max_trips(self, caller: str, max_trips: int) -> bool:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            config.set_max_trips(caller, max_trips)
            await self.config.save(config)
        logger.info("Trip capacity set to %d", max_trips)
        return True

    # ── Trip lifecycle ────────────────────────────────────────────────

    async def initiate_trip(
        self,
        caller: str,
        driver: str,
        passengers: Sequence[str],
        route: str,
        start_time: int,
    ) -> int:
        async with self.locks.hold(CONFIG_LOCK_KEY):
            config = await self.config.load(for_update=True)
            now = self.clock.now()

            if config.capacity_exhausted:
                raise _fail(
                    ErrorCode.MAX_TRIPS_EXCEEDED,
                    f"Trip capacity of {config.max_trips} reached",
                )
            if driver == caller:
                raise _fail(ErrorCode.INVALID_DRIVER, "Caller can not initiate as driver")
            if not 1 <= len(passengers) <= self.max_passengers:
                raise _fail(
                    ErrorCode.INVALID_PASSENGERS,
                    f"A trip needs 1 to {self.max_passengers} passengers",
                )
            if not route:
                raise _fail(ErrorCode.INVALID_ROUTE, "Route must not be empty")
            if start_time < now:
                raise _fail(ErrorCode.INVALID_TIMESTAMP, "Start time is in the past")

            trip = Trip(
                id=config.allocate_trip_id(),
                driver=driver,
                passengers=list(passengers),
                route=route,
                start_time=start_time,
                timestamp=now,
            )
            await self.trips.insert(trip)
            await self.config.save(config)

        logger.info(
            "Trip %d initiated (driver=%s, passengers=%d)",
            trip.id, driver, trip.passenger_count,
        )
        return trip.id

    async def submit_oracle_data(
        self,
        caller: str,
        trip_id: int,
        gps_valid: bool,
        distance: int,
        congestion: int,
        end_time: int,
    ) -> bool:
        async with self.locks.hold(_trip_lock_key(trip_id)):
            trip = await self._load_trip(trip_id)
            config = await self.config.load()
            now = self.clock.now()

            if caller != config.trusted_oracle:
                raise _fail(ErrorCode.ORACLE_NOT_TRUSTED)
            if not gps_valid:
                raise _fail(ErrorCode.INVALID_GPS_DATA, "GPS data was not validated")
            if distance <= 0:
                raise _fail(ErrorCode.INVALID_DISTANCE, "Distance must be positive")
            if not 0 <= congestion <= MAX_CONGESTION:
                raise _fail(
                    ErrorCode.INVALID_CONGESTION,
                    f"Congestion must be within 0..{MAX_CONGESTION}",
                )
            if end_time < now:
                raise _fail(ErrorCode.INVALID_TIMESTAMP, "End time is in the past")
            self._require_pending(trip)

            await self.submissions.put(
                OracleSubmission(
                    trip_id=trip_id,
                    oracle=caller,
                    gps_valid=gps_valid,
                    distance=distance,
                    congestion=congestion,
                    submit_time=now,
                )
            )
            trip.record_oracle_data(
                gps_valid=gps_valid,
                distance=distance,
                congestion=congestion,
                end_time=end_time,
            )
            await self.trips.update(trip)

        logger.info(
            "Oracle data recorded for trip %d (distance=%d, congestion=%d)",
            trip_id, distance, congestion,
        )
        return True

    async def confirm_trip(self, caller: str, trip_id: int) -> bool:
        async with self.locks.hold(_trip_lock_key(trip_id)):
            trip = await self._load_trip(trip_id)

            if not trip.is_participant(caller):
                raise _fail(ErrorCode.NOT_AUTHORIZED, "Only trip participants may confirm")
            self._require_pending(trip)
            if not trip.gps_verified:
                raise _fail(
                    ErrorCode.INVALID_GPS_DATA,
                    "Trip has no oracle attestation yet",
                )
            if self.unique_confirmations and caller in trip.confirmed_by:
                raise _fail(ErrorCode.ALREADY_CONFIRMED, f"{caller} already confirmed")

            trip.add_confirmation(caller)
            await self.trips.update(trip)

        logger.info(
            "Trip %d confirmed by %s (%d/%d)",
            trip_id, caller, trip.confirmations, trip.quorum,
        )
        return True

    async def verify_trip(self, caller: str, trip_id: int) -> int:
        async with self.locks.hold(_trip_lock_key(trip_id)):
            trip = await self._load_trip(trip_id)

            if caller != trip.driver:
                raise _fail(ErrorCode.NOT_AUTHORIZED, "Only the driver may verify")
            if trip.confirmations < trip.quorum:
                raise _fail(
                    ErrorCode.INVALID_CONFIRMATIONS,
                    f"{trip.confirmations} of {trip.quorum} confirmations",
                )
            if trip.disputed:
                raise _fail(ErrorCode.DISPUTE_ALREADY_RAISED)
            if trip.status == TripStatus.VERIFIED:
                raise _fail(ErrorCode.TRIP_ALREADY_VERIFIED)

            config = await self.config.load()
            reward = config.reward_schedule.compute(
                trip.distance, trip.passenger_count, trip.congestion_index
            )
            if reward <= 0:
                raise _fail(ErrorCode.INVALID_REWARD, f"Computed reward {reward}")

            # Mint first: if the gateway raises, the trip stays pending.
            await self.mint_gateway.mint(
                reward,
                trip.driver,
                list(trip.passengers),
                trip_id=trip.id,
                token_contract=config.token_contract,
            )
            trip.mark_verified(reward, self.clock.now())
            await self.trips.update(trip)

        logger.info("Trip %d verified, reward=%d", trip_id, reward)
        return reward

    async def dispute_trip(self, caller: str, trip_id: int, reason: str) -> bool:
        async with self.locks.hold(_trip_lock_key(trip_id)):
            trip = await self._load_trip(trip_id)

            if not reason:
                raise _fail(ErrorCode.INVALID_DISPUTE_REASON, "Reason must not be empty")
            if not trip.is_participant(caller):
                raise _fail(ErrorCode.NOT_AUTHORIZED, "Only trip participants may dispute")
            if trip.disputed:
                raise _fail(ErrorCode.DISPUTE_ALREADY_RAISED)
            self._require_pending(trip)

            trip.mark_disputed(reason)
            await self.trips.update(trip)

        logger.info("Trip %d disputed by %s: %s", trip_id, caller, reason)
        return True

    async def compute_reward(
        self, distance: int, passenger_count: int, congestion_index: int
    ) -> int:
        config = await self.config.load()
        return config.reward_schedule.compute(
            distance, passenger_count, congestion_index
        )

    # ── Queries ───────────────────────────────────────────────────────

    async def get_trip(self, trip_id: int) -> Optional[Trip]:
        return await self.trips.get(trip_id)

    async def get_oracle_submission(self, trip_id: int) -> Optional[OracleSubmission]:
        return await self.submissions.get(trip_id)

    async def get_trip_count(self) -> int:
        config = await self.config.load()
        return config.next_trip_id

    # ── Internals ─────────────────────────────────────────────────────

    async def _load_trip(self, trip_id: int) -> Trip:
        trip = await self.trips.get(trip_id, for_update=True)
        if trip is None:
            raise _fail(ErrorCode.TRIP_NOT_FOUND, f"Trip {trip_id} not found")
        return trip

    @staticmethod
    def _require_pending(trip: Trip) -> None:
        if trip.status != TripStatus.PENDING:
            raise _fail(
                ErrorCode.INVALID_STATUS,
                f"Trip {trip.id} is {trip.status.value}",
            )
