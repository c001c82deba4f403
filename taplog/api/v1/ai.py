from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from taplog.core.deps import get_current_user_id
from taplog.schemas.rating import CategorizeRequest, CategorizeResponse
from taplog.services.rate_limit import RateLimiter, get_rate_limiter
from taplog.services.rating_engine import Degraded, RatingEngine, get_rating_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/categorize", response_model=CategorizeResponse, response_model_exclude_none=True)
async def categorize(
    payload: CategorizeRequest,
    user_id: str = Depends(get_current_user_id),
    limiter: RateLimiter = Depends(get_rate_limiter),
    engine: RatingEngine = Depends(get_rating_engine),
):
    """
    Suggest ratings for a check-in from its free-text description.

    Answers 200 even when no model could be reached: the ratings are then
    neutral and ``error`` says why.
    """
    limit = await limiter.hit(f"ai:{user_id}")
    if not limit.success:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded ({limiter.limit}/hour). Try later.",
            headers={"Retry-After": str(limit.retry_after_seconds())},
        )

    hint = payload.beer_meta.name if payload.beer_meta else None
    result = await engine.infer(payload.description, payload.context, hint)

    outcome = result.value
    return CategorizeResponse(
        ratings=outcome.ratings,
        overall=outcome.overall,
        ai_review=outcome.ai_review,
        ai_model=outcome.ai_model,
        error=result.reason if isinstance(result, Degraded) else None,
    )
