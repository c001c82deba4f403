import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.db.session import get_db
from taplog.models.venue import Venue
from taplog.schemas.venue import VenueRead, VenueSummaryResponse
from taplog.services.exceptions import VenueNotFoundError
from taplog.services.summarizer import summarize

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/venues", tags=["venues"])


@router.get("/{venue_id}", response_model=VenueRead)
async def get_venue(venue_id: int, db: AsyncSession = Depends(get_db)):
    venue = await db.get(Venue, venue_id)
    if venue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return venue


@router.get("/{venue_id}/summary", response_model=VenueSummaryResponse)
async def venue_summary(venue_id: int, db: AsyncSession = Depends(get_db)):
    try:
        result = await summarize(db, venue_id)
    except VenueNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SQLAlchemyError as exc:
        logger.exception("Summary failed for venue %s: %s", venue_id, exc)
        raise HTTPException(status_code=500, detail=f"Summary error: {str(exc)}")

    return VenueSummaryResponse(
        summary=result.summary,
        cached=result.cached,
        aggregate_scores=result.aggregate_scores,
    )
