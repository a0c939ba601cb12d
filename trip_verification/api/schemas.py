"""Pydantic request / response schemas for the REST API.

Request bodies enforce types and the column widths of stored identities;
range and emptiness rules belong to the lifecycle engine so that every
rejection carries its error code.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field

from trip_verification.domain.entities import CONTRACT_MAX_LENGTH, IDENTITY_MAX_LENGTH
from trip_verification.domain.enums import TripStatus

Identity = Annotated[str, Field(max_length=IDENTITY_MAX_LENGTH)]


# ── Requests ──────────────────────────────────────────────────────────


class TripCreateRequest(BaseModel):
    driver: Identity
    passengers: list[Identity]
    route: str
    start_time: int


class OracleDataRequest(BaseModel):
    gps_valid: bool
    distance: int
    congestion: int
    end_time: int


class DisputeRequest(BaseModel):
    reason: str


class TrustedOracleRequest(BaseModel):
    oracle: Identity


class TokenContractRequest(BaseModel):
    token_contract: str = Field(..., max_length=CONTRACT_MAX_LENGTH)


class BaseRewardRateRequest(BaseModel):
    rate: int


class CongestionMultiplierRequest(BaseModel):
    multiplier: int


class MaxTripsRequest(BaseModel):
    max_trips: int


# ── Responses ─────────────────────────────────────────────────────────


class TripCreatedResponse(BaseModel):
    trip_id: int


class TripResponse(BaseModel):
    id: int
    driver: str
    passengers: list[str]
    route: str
    start_time: int
    end_time: int
    distance: int
    congestion_index: int
    gps_verified: bool
    status: TripStatus
    reward: int
    timestamp: int
    confirmations: int
    confirmed_by: list[str] = []
    disputed: bool
    dispute_reason: str

    model_config = {"from_attributes": True}


class OracleSubmissionResponse(BaseModel):
    trip_id: int
    oracle: str
    gps_valid: bool
    distance: int
    congestion: int
    submit_time: int

    model_config = {"from_attributes": True}


class VerifyResponse(BaseModel):
    trip_id: int
    reward: int


class TripCountResponse(BaseModel):
    count: int


class RewardQuoteResponse(BaseModel):
    distance: int
    passenger_count: int
    congestion_index: int
    reward: int


class ConfigurationResponse(BaseModel):
    admin: str
    trusted_oracle: str
    token_contract: str
    base_reward_rate: int
    congestion_multiplier: int
    max_trips: int
    next_trip_id: int

    model_config = {"from_attributes": True}


class AckResponse(BaseModel):
    ok: bool = True


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: int = Field(..., description="Numeric error code")
    error: str = Field(..., description="Error code name")
