"""
Reward endpoints
================

GET /api/v1/rewards/quote -- reward a trip would earn under the live configuration
"""

from fastapi import APIRouter, Depends, Query, Request

from trip_verification.api.dependencies import get_engine
from trip_verification.api.middleware import limiter
from trip_verification.api.schemas import RewardQuoteResponse
from trip_verification.config import settings
from trip_verification.domain.lifecycle import TripLifecycleEngine

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/quote", response_model=RewardQuoteResponse, summary="Quote a reward")
@limiter.limit("100/minute")
async def quote_reward(
    request: Request,
    distance: int = Query(..., ge=0),
    passengers: int = Query(..., ge=1, le=settings.max_passengers),
    congestion: int = Query(0, ge=0, le=100),
    engine: TripLifecycleEngine = Depends(get_engine),
):
    reward = await engine.compute_reward(distance, passengers, congestion)
    return RewardQuoteResponse(
        distance=distance,
        passenger_count=passengers,
        congestion_index=congestion,
        reward=reward,
    )
