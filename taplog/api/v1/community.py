from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.core.deps import get_current_user_id
from taplog.db.session import get_db
from taplog.schemas.community import ActivityResponse
from taplog.services.community import FEED_DEFAULT_LIMIT, activity_feed

router = APIRouter(prefix="/community", tags=["community"])


@router.get("/activity", response_model=ActivityResponse)
async def community_activity(
    limit: int = Query(FEED_DEFAULT_LIMIT, ge=1),
    since: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Latest check-ins from everyone; ``limit`` is capped at 100."""
    return ActivityResponse(items=await activity_feed(db, user_id, limit=limit, since=since))
