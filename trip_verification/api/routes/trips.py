"""
Trip endpoints
==============

POST /api/v1/trips                          -- initiate a trip (201)
GET  /api/v1/trips/count                    -- number of trips ever created
GET  /api/v1/trips/{trip_id}                -- trip record
GET  /api/v1/trips/{trip_id}/oracle-submission -- latest oracle attestation
POST /api/v1/trips/{trip_id}/oracle-data    -- trusted oracle attests
POST /api/v1/trips/{trip_id}/confirm        -- participant confirms
POST /api/v1/trips/{trip_id}/verify         -- driver verifies, reward minted
POST /api/v1/trips/{trip_id}/dispute        -- participant disputes

The caller identity is read from the ``X-Caller-Id`` header.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from trip_verification.api.dependencies import get_caller, get_engine
from trip_verification.api.middleware import limiter
from trip_verification.api.schemas import (
    AckResponse,
    DisputeRequest,
    ErrorResponse,
    OracleDataRequest,
    OracleSubmissionResponse,
    TripCountResponse,
    TripCreatedResponse,
    TripCreateRequest,
    TripResponse,
    VerifyResponse,
)
from trip_verification.domain.lifecycle import TripLifecycleEngine

router = APIRouter(
    prefix="/trips",
    tags=["trips"],
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.post(
    "",
    status_code=201,
    response_model=TripCreatedResponse,
    summary="Initiate a trip",
)
@limiter.limit("100/minute")
async def initiate_trip(
    request: Request,
    body: TripCreateRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    trip_id = await engine.initiate_trip(
        caller, body.driver, body.passengers, body.route, body.start_time
    )
    return TripCreatedResponse(trip_id=trip_id)


@router.get("/count", response_model=TripCountResponse, summary="Trip count")
@limiter.limit("100/minute")
async def get_trip_count(
    request: Request,
    engine: TripLifecycleEngine = Depends(get_engine),
):
    return TripCountResponse(count=await engine.get_trip_count())


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip")
@limiter.limit("100/minute")
async def get_trip(
    request: Request,
    trip_id: int,
    engine: TripLifecycleEngine = Depends(get_engine),
):
    trip = await engine.get_trip(trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return TripResponse.model_validate(trip)


@router.get(
    "/{trip_id}/oracle-submission",
    response_model=OracleSubmissionResponse,
    summary="Get the latest oracle submission for a trip",
)
@limiter.limit("100/minute")
async def get_oracle_submission(
    request: Request,
    trip_id: int,
    engine: TripLifecycleEngine = Depends(get_engine),
):
    submission = await engine.get_oracle_submission(trip_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Oracle submission not found")
    return OracleSubmissionResponse.model_validate(submission)


@router.post(
    "/{trip_id}/oracle-data",
    response_model=AckResponse,
    summary="Submit oracle attestation",
    description="Only the configured trusted oracle may call this.",
)
@limiter.limit("100/minute")
async def submit_oracle_data(
    request: Request,
    trip_id: int,
    body: OracleDataRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.submit_oracle_data(
        caller, trip_id, body.gps_valid, body.distance, body.congestion, body.end_time
    )
    return AckResponse()


@router.post("/{trip_id}/confirm", response_model=AckResponse, summary="Confirm a trip")
@limiter.limit("100/minute")
async def confirm_trip(
    request: Request,
    trip_id: int,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.confirm_trip(caller, trip_id)
    return AckResponse()


@router.post(
    "/{trip_id}/verify",
    response_model=VerifyResponse,
    summary="Verify a trip and mint its reward",
    description=(
        "Driver only. Requires confirmations >= floor(passengers / 2) and "
        "no dispute. Mints the reward exactly once."
    ),
)
@limiter.limit("100/minute")
async def verify_trip(
    request: Request,
    trip_id: int,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    reward = await engine.verify_trip(caller, trip_id)
    return VerifyResponse(trip_id=trip_id, reward=reward)


@router.post("/{trip_id}/dispute", response_model=AckResponse, summary="Dispute a trip")
@limiter.limit("100/minute")
async def dispute_trip(
    request: Request,
    trip_id: int,
    body: DisputeRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.dispute_trip(caller, trip_id, body.reason)
    return AckResponse()
