"""
Admin / configuration endpoints
===============================

GET /api/v1/admin/config                 -- current registry values
PUT /api/v1/admin/trusted-oracle         -- admin only
PUT /api/v1/admin/token-contract         -- admin only
PUT /api/v1/admin/base-reward-rate       -- admin only, > 0
PUT /api/v1/admin/congestion-multiplier  -- admin only, > 0
PUT /api/v1/admin/max-trips              -- admin only, raise trip capacity
GET /api/v1/admin/health                 -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from trip_verification.api.dependencies import get_caller, get_engine
from trip_verification.api.middleware import limiter
from trip_verification.api.schemas import (
    AckResponse,
    BaseRewardRateRequest,
    ConfigurationResponse,
    CongestionMultiplierRequest,
    ErrorResponse,
    HealthResponse,
    MaxTripsRequest,
    TokenContractRequest,
    TrustedOracleRequest,
)
from trip_verification.domain.lifecycle import TripLifecycleEngine

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)


@router.get("/config", response_model=ConfigurationResponse, summary="Current configuration")
@limiter.limit("100/minute")
async def get_config(
    request: Request,
    engine: TripLifecycleEngine = Depends(get_engine),
):
    return ConfigurationResponse.model_validate(await engine.get_configuration())


@router.put("/trusted-oracle", response_model=AckResponse, summary="Set trusted oracle")
@limiter.limit("30/minute")
async def set_trusted_oracle(
    request: Request,
    body: TrustedOracleRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.set_trusted_oracle(caller, body.oracle)
    return AckResponse()


@router.put("/token-contract", response_model=AckResponse, summary="Set token contract")
@limiter.limit("30/minute")
async def set_token_contract(
    request: Request,
    body: TokenContractRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.set_token_contract(caller, body.token_contract)
    return AckResponse()


@router.put("/base-reward-rate", response_model=AckResponse, summary="Set base reward rate")
@limiter.limit("30/minute")
async def set_base_reward_rate(
    request: Request,
    body: BaseRewardRateRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.set_base_reward_rate(caller, body.rate)
    return AckResponse()


@router.put(
    "/congestion-multiplier",
    response_model=AckResponse,
    summary="Set congestion multiplier",
)
@limiter.limit("30/minute")
async def set_congestion_multiplier(
    request: Request,
    body: CongestionMultiplierRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.set_congestion_multiplier(caller, body.multiplier)
    return AckResponse()


@router.put("/max-trips", response_model=AckResponse, summary="Set trip capacity")
@limiter.limit("30/minute")
async def set_max_trips(
    request: Request,
    body: MaxTripsRequest,
    caller: str = Depends(get_caller),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    await engine.set_max_trips(caller, body.max_trips)
    return AckResponse()


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
