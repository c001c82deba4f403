from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.models.checkin import Checkin
from taplog.models.venue import Venue
from taplog.schemas.stats import DayCount, RecentCheckin, TopVenue, UserStats

_STATS_WINDOW = 500
_MY_CHECKINS_LIMIT = 50
_HISTOGRAM_DAYS = 7


def _day(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def build_user_stats(rows: List[Checkin], today: Optional[date] = None) -> UserStats:
    """Totals and a last-7-days histogram over rows ordered newest first."""
    today = today or datetime.now(timezone.utc).date()
    first_day = today - timedelta(days=_HISTOGRAM_DAYS - 1)

    counts = OrderedDict(
        (first_day + timedelta(days=i), 0) for i in range(_HISTOGRAM_DAYS)
    )
    for row in rows:
        day = _day(row.created_at)
        if day in counts:
            counts[day] += 1

    beers = {(r.beer_name or "").strip() for r in rows}
    beers.discard("")

    return UserStats(
        total=len(rows),
        unique_venues=len({r.venue_id for r in rows}),
        unique_beers=len(beers),
        by_day=[DayCount(day=d, count=c) for d, c in counts.items()],
        recent=[RecentCheckin.model_validate(r) for r in rows[:5]],
    )


async def user_stats(db: AsyncSession, user_id: str) -> UserStats:
    result = await db.execute(
        select(Checkin)
        .where(Checkin.user_id == user_id)
        .order_by(Checkin.created_at.desc(), Checkin.id.desc())
        .limit(_STATS_WINDOW)
    )
    return build_user_stats(list(result.scalars().all()))


async def recent_checkins(db: AsyncSession, user_id: str) -> List[Checkin]:
    """The user's latest check-ins with their venue loaded."""
    result = await db.execute(
        select(Checkin)
        .options(selectinload(Checkin.venue))
        .where(Checkin.user_id == user_id)
        .order_by(Checkin.created_at.desc(), Checkin.id.desc())
        .limit(_MY_CHECKINS_LIMIT)
    )
    return list(result.scalars().all())


async def top_venues(db: AsyncSession, user_id: str, n: int = 5) -> List[TopVenue]:
    """The user's most visited venues; ties broken by mean overall score."""
    result = await db.execute(
        select(Checkin.venue_id, Checkin.overall, Venue.name, Venue.address)
        .join(Venue, Venue.id == Checkin.venue_id)
        .where(Checkin.user_id == user_id)
    )

    grouped: dict[int, dict] = {}
    for venue_id, overall, name, address in result.all():
        entry = grouped.setdefault(
            venue_id, {"name": name, "address": address, "count": 0, "total": 0}
        )
        entry["count"] += 1
        entry["total"] += overall or 0

    venues = [
        TopVenue(
            venue_id=venue_id,
            name=v["name"],
            address=v["address"],
            count=v["count"],
            avg=int(v["total"] / v["count"] + 0.5),
        )
        for venue_id, v in grouped.items()
    ]
    venues.sort(key=lambda t: (-t.count, -t.avg))
    return venues[:n]
