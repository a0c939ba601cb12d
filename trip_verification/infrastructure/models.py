"""
SQLAlchemy ORM models.

Tables
------
* ``trips``              -- one row per trip, id assigned by the registry
* ``oracle_submissions`` -- latest oracle attestation per trip
* ``configuration``      -- single-row registry (admin, oracle, reward constants)
* ``token_mints``        -- ledger of rewards minted on verification

Indexes
-------
* **B-Tree** on ``trips.status`` and ``trips.driver`` for listing,
  ``token_mints.trip_id`` for reconciliation.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from trip_verification.domain.entities import CONTRACT_MAX_LENGTH, IDENTITY_MAX_LENGTH
from trip_verification.domain.enums import TripStatus


class TripModel(Base):
    __tablename__ = "trips"

    # Assigned from configuration.next_trip_id, never autoincremented
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    driver = Column(String(IDENTITY_MAX_LENGTH), nullable=False)
    passengers = Column(JSON, nullable=False)
    route = Column(Text, nullable=False)

    start_time = Column(BigInteger, nullable=False)
    end_time = Column(BigInteger, default=0, nullable=False)
    distance = Column(BigInteger, default=0, nullable=False)
    congestion_index = Column(Integer, default=0, nullable=False)
    gps_verified = Column(Boolean, default=False, nullable=False)

    status = Column(
        Enum(TripStatus, values_callable=lambda e: [m.value for m in e]),
        default=TripStatus.PENDING,
        nullable=False,
    )
    reward = Column(BigInteger, default=0, nullable=False)
    timestamp = Column(BigInteger, nullable=False)

    confirmations = Column(Integer, default=0, nullable=False)
    confirmed_by = Column(JSON, nullable=False, default=list)
    disputed = Column(Boolean, default=False, nullable=False)
    dispute_reason = Column(Text, default="", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_driver", "driver"),
    )


class OracleSubmissionModel(Base):
    __tablename__ = "oracle_submissions"

    trip_id = Column(BigInteger, ForeignKey("trips.id"), primary_key=True)
    oracle = Column(String(IDENTITY_MAX_LENGTH), nullable=False)
    gps_valid = Column(Boolean, nullable=False)
    distance = Column(BigInteger, nullable=False)
    congestion = Column(Integer, nullable=False)
    submit_time = Column(BigInteger, nullable=False)


class ConfigurationModel(Base):
    __tablename__ = "configuration"

    id = Column(Integer, primary_key=True, autoincrement=False)
    admin = Column(String(IDENTITY_MAX_LENGTH), nullable=False)
    trusted_oracle = Column(String(IDENTITY_MAX_LENGTH), nullable=False)
    token_contract = Column(String(CONTRACT_MAX_LENGTH), nullable=False)
    base_reward_rate = Column(BigInteger, nullable=False)
    congestion_multiplier = Column(BigInteger, nullable=False)
    max_trips = Column(BigInteger, nullable=False)
    next_trip_id = Column(BigInteger, default=0, nullable=False)

    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TokenMintModel(Base):
    __tablename__ = "token_mints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(BigInteger, ForeignKey("trips.id"), nullable=False, unique=True)
    token_contract = Column(String(CONTRACT_MAX_LENGTH), nullable=False)
    amount = Column(BigInteger, nullable=False)
    driver = Column(String(IDENTITY_MAX_LENGTH), nullable=False)
    passengers = Column(JSON, nullable=False)
    minted_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_token_mints_driver", "driver"),)
