"""
Seed script -- populates the database with sample trips for reviewers.

Run after migrations:
    python seed.py

Drives the real lifecycle engine so every row obeys the same rules as the
API.  Creates:
  - the configuration row (from settings)
  - 2 pending trips (one without, one with oracle data)
  - 2 verified trips with their token mints
  - 1 disputed trip
"""

import asyncio

from sqlalchemy import text

from trip_verification.config import settings
from trip_verification.domain.lifecycle import TripLifecycleEngine
from trip_verification.infrastructure.clock import SystemClock
from trip_verification.infrastructure.database import async_session_factory, engine
from trip_verification.infrastructure.locks import KeyedLock
from trip_verification.infrastructure.repositories import (
    ConfigurationRepository,
    LedgerMintGateway,
    OracleSubmissionRepository,
    TripRepository,
)

# Trips are initiated by a dispatcher identity, never by the driver itself
DISPATCHER = "ST9DISPATCHER0000000000000000000000000"
ORACLE = settings.trusted_oracle

TRIPS = [
    {
        "driver": "ST2DRIVER0AAMIR",
        "passengers": ["ST3PASS0NINA", "ST3PASS0OMAR"],
        "route": "Central Station -> Airport T2",
        "oracle": None,
        "outcome": "pending",
    },
    {
        "driver": "ST2DRIVER0BEA",
        "passengers": ["ST3PASS0PIA"],
        "route": "Harbour Front -> Tech Park",
        "oracle": (12, 35),
        "outcome": "pending",
    },
    {
        "driver": "ST2DRIVER0CHEN",
        "passengers": ["ST3PASS0QUIN", "ST3PASS0RAVI", "ST3PASS0SOL"],
        "route": "University -> Old Town",
        "oracle": (8, 80),
        "outcome": "verified",
    },
    {
        "driver": "ST2DRIVER0DANA",
        "passengers": ["ST3PASS0TOVE"],
        "route": "Stadium -> Riverside",
        "oracle": (20, 0),
        "outcome": "verified",
    },
    {
        "driver": "ST2DRIVER0ELI",
        "passengers": ["ST3PASS0UMA", "ST3PASS0VIK"],
        "route": "Market Square -> Hospital",
        "oracle": None,
        "outcome": "disputed",
    },
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM trips"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        clock = SystemClock()
        lifecycle = TripLifecycleEngine(
            TripRepository(session),
            OracleSubmissionRepository(session),
            ConfigurationRepository(session),
            LedgerMintGateway(session),
            clock,
            KeyedLock(),
            max_passengers=settings.max_passengers,
            unique_confirmations=settings.unique_confirmations,
        )

        for t in TRIPS:
            start = clock.now() + 60
            trip_id = await lifecycle.initiate_trip(
                DISPATCHER, t["driver"], t["passengers"], t["route"], start
            )
            if t["oracle"]:
                distance, congestion = t["oracle"]
                await lifecycle.submit_oracle_data(
                    ORACLE, trip_id, True, distance, congestion, start + 900
                )
            if t["outcome"] == "verified":
                for p in t["passengers"][: max(1, len(t["passengers"]) // 2)]:
                    await lifecycle.confirm_trip(p, trip_id)
                reward = await lifecycle.verify_trip(t["driver"], trip_id)
                print(f"  Trip {trip_id} verified, reward {reward}")
            elif t["outcome"] == "disputed":
                await lifecycle.dispute_trip(
                    t["passengers"][0], trip_id, "Driver never arrived"
                )
                print(f"  Trip {trip_id} disputed")
            else:
                print(f"  Trip {trip_id} pending")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
