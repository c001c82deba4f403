"""
Community activity: the public feed of recent check-ins and likes on them.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.models.checkin import Checkin
from taplog.models.checkin_like import CheckinLike
from taplog.models.venue import Venue
from taplog.schemas.community import ActivityItem, FeedCheckin, FeedUser, FeedVenue
from taplog.services.exceptions import CheckinNotFoundError

logger = logging.getLogger(__name__)

FEED_DEFAULT_LIMIT = 50
FEED_MAX_LIMIT = 100


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def activity_feed(
    db: AsyncSession,
    user_id: str,
    limit: int = FEED_DEFAULT_LIMIT,
    since: Optional[datetime] = None,
) -> List[ActivityItem]:
    """
    Newest check-ins from everyone, with like counts.

    ``since`` is a cursor: pass the ``created_at`` of the last item seen to
    get the page after it.
    """
    query = (
        select(
            Checkin.id, Checkin.user_id, Checkin.venue_id, Checkin.beer_name,
            Checkin.overall, Checkin.created_at, Venue.name,
        )
        .join(Venue, Venue.id == Checkin.venue_id)
        .order_by(Checkin.created_at.desc(), Checkin.id.desc())
        .limit(min(limit, FEED_MAX_LIMIT))
    )
    if since is not None:
        query = query.where(Checkin.created_at < _as_utc(since))

    rows = (await db.execute(query)).all()
    if not rows:
        return []

    counts: Dict[int, int] = defaultdict(int)
    liked: Set[int] = set()
    likes = await db.execute(
        select(CheckinLike.checkin_id, CheckinLike.user_id)
        .where(CheckinLike.checkin_id.in_([r.id for r in rows]))
    )
    for checkin_id, liker in likes.all():
        counts[checkin_id] += 1
        if liker == user_id:
            liked.add(checkin_id)

    return [
        ActivityItem(
            checkin=FeedCheckin(
                id=r.id, beer_name=r.beer_name, overall=r.overall, created_at=r.created_at,
            ),
            venue=FeedVenue(id=r.venue_id, name=r.name),
            user=FeedUser(id=r.user_id),
            likes_count=counts[r.id],
            liked_by_me=r.id in liked,
        )
        for r in rows
    ]


async def like_checkin(db: AsyncSession, checkin_id: int, user_id: str) -> None:
    if await db.get(Checkin, checkin_id) is None:
        raise CheckinNotFoundError(checkin_id)

    existing = await db.scalar(
        select(CheckinLike.id).where(
            CheckinLike.checkin_id == checkin_id, CheckinLike.user_id == user_id
        )
    )
    if existing is not None:
        return

    db.add(CheckinLike(checkin_id=checkin_id, user_id=user_id))
    try:
        await db.commit()
    except IntegrityError:
        # concurrent like from the same user already landed
        await db.rollback()
        logger.debug("[like] duplicate like checkin=%s user=%s", checkin_id, user_id)


async def unlike_checkin(db: AsyncSession, checkin_id: int, user_id: str) -> None:
    await db.execute(
        delete(CheckinLike).where(
            CheckinLike.checkin_id == checkin_id, CheckinLike.user_id == user_id
        )
    )
    await db.commit()
