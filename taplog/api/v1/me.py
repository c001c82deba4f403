from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.core.deps import get_current_user_id
from taplog.db.session import get_db
from taplog.schemas.checkin import MyCheckinsResponse
from taplog.schemas.stats import TopVenuesResponse, UserStats
from taplog.services.stats import recent_checkins, top_venues, user_stats

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/stats", response_model=UserStats)
async def my_stats(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await user_stats(db, user_id)


@router.get("/top-venues", response_model=TopVenuesResponse)
async def my_top_venues(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return TopVenuesResponse(top=await top_venues(db, user_id))


@router.get("/checkins", response_model=MyCheckinsResponse)
async def my_checkins(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return MyCheckinsResponse(rows=await recent_checkins(db, user_id))
