from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.core.deps import get_current_user_id
from taplog.db.session import get_db
from taplog.models.checkin import Checkin
from taplog.models.venue import Venue
from taplog.schemas.checkin import CheckinCreate, CheckinCreated, CheckinRead, CheckinUpdate
from taplog.schemas.community import LikeRequest
from taplog.services.community import like_checkin, unlike_checkin
from taplog.services.exceptions import CheckinNotFoundError
from taplog.services.rate_limit import RateLimiter, get_rate_limiter

router = APIRouter(prefix="/checkins", tags=["checkins"])


async def _get_owned(db: AsyncSession, checkin_id: int, user_id: str) -> Checkin:
    checkin = await db.get(Checkin, checkin_id)
    if checkin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    if checkin.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return checkin


@router.post("", response_model=CheckinCreated, status_code=status.HTTP_201_CREATED)
async def create_checkin(
    payload: CheckinCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if await db.get(Venue, payload.venue_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")

    checkin = Checkin(
        user_id=user_id,
        venue_id=payload.venue_id,
        beer_name=payload.beer_name,
        description=payload.description,
        overall=payload.overall,
        ai_review=payload.ai_review,
        ai_model=payload.ai_model,
        image_paths=[],
        **payload.ratings.model_dump(),
        **payload.context.model_dump(),
    )
    db.add(checkin)
    await db.commit()
    await db.refresh(checkin)
    return CheckinCreated(id=checkin.id)


# Declared before /{checkin_id} so "like" is not read as an id
@router.post("/like", status_code=status.HTTP_204_NO_CONTENT)
async def like(
    payload: LikeRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Like a check-in. Liking it again changes nothing."""
    limit = await limiter.hit(f"like:{user_id}")
    if not limit.success:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limited",
            headers={"Retry-After": str(limit.retry_after_seconds())},
        )
    try:
        await like_checkin(db, payload.checkin_id, user_id)
    except CheckinNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/like", status_code=status.HTTP_204_NO_CONTENT)
async def unlike(
    checkin_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await unlike_checkin(db, checkin_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{checkin_id}", response_model=CheckinRead)
async def get_checkin(checkin_id: int, db: AsyncSession = Depends(get_db)):
    checkin = await db.get(Checkin, checkin_id)
    if checkin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return checkin


@router.put("/{checkin_id}")
async def update_checkin(
    checkin_id: int,
    payload: CheckinUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Attach image paths. Everything else on a check-in is immutable."""
    checkin = await _get_owned(db, checkin_id, user_id)
    if payload.image_paths is not None:
        checkin.image_paths = list(payload.image_paths)
        await db.commit()
    return {"ok": True}


@router.delete("/{checkin_id}")
async def delete_checkin(
    checkin_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    checkin = await _get_owned(db, checkin_id, user_id)
    await db.delete(checkin)
    await db.commit()
    return {"ok": True}
