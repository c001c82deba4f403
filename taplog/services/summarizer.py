"""
Venue summaries.

Averages the ambiance dimensions and overall score over a venue's most recent
check-ins and turns them into a short deterministic blurb. The result is
cached on the venue row and rebuilt on read once it is older than
``SUMMARY_TTL_DAYS``. Concurrent rebuilds of the same venue are harmless:
both compute the same thing from the same rows and the last write wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taplog.core.config import settings
from taplog.models.checkin import Checkin
from taplog.models.venue import Venue
from taplog.services.exceptions import VenueNotFoundError

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough data available for this bar yet."

ASPECT_KEYS = ("music", "lighting", "crowd_vibe", "cleanliness", "decor")
SUMMARY_KEYS = (*ASPECT_KEYS, "overall")


@dataclass
class VenueSummary:
    summary: str
    cached: bool
    aggregate_scores: Dict[str, float] = field(default_factory=dict)


# ── Scoring ───────────────────────────────────────────────────────────────────

def _one_decimal(value: float) -> float:
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _valid(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and value >= 0
    )


def compute_aggregate_scores(rows: Sequence[Any]) -> Dict[str, float]:
    """
    Mean per dimension, each divided by its own count of valid values.

    A row with a null or negative music score doesn't drag the music mean
    down; it just doesn't count toward it. No valid values → 0.0.
    """
    totals = {key: 0.0 for key in SUMMARY_KEYS}
    counts = {key: 0 for key in SUMMARY_KEYS}

    for row in rows:
        for key in SUMMARY_KEYS:
            value = row.get(key) if isinstance(row, dict) else getattr(row, key, None)
            if _valid(value):
                totals[key] += value
                counts[key] += 1

    return {
        key: _one_decimal(totals[key] / counts[key]) if counts[key] else 0.0
        for key in SUMMARY_KEYS
    }


def top_aspects(scores: Dict[str, float], n: int = 3) -> List[Tuple[str, float]]:
    ranked = sorted(
        ((key, scores.get(key, 0)) for key in ASPECT_KEYS),
        key=lambda item: item[1],
        reverse=True,
    )
    return [(key.replace("_", " "), score) for key, score in ranked[:n]]


def compose_summary(scores: Dict[str, float]) -> str:
    aspects = top_aspects(scores)
    overall = scores.get("overall", 0)

    summary = f"This bar is known for its {', '.join(name for name, _ in aspects)}. "

    if overall >= 7:
        summary += "Patrons consistently rate this as a high-quality establishment. "
    elif overall >= 5:
        summary += "This spot offers a solid experience for most visitors. "
    else:
        summary += "This location has mixed reviews from the community. "

    if aspects and aspects[0][1] >= 7:
        summary += f"Particularly praised for excellent {aspects[0][0]}. "

    if scores.get("music", 0) >= 7 and scores.get("crowd_vibe", 0) >= 7:
        summary += "Great for social gatherings and enjoying good vibes."
    elif scores.get("lighting", 0) >= 7 and scores.get("decor", 0) >= 7:
        summary += "Perfect for those who appreciate ambiance and aesthetic."
    elif scores.get("cleanliness", 0) >= 8:
        summary += "Known for maintaining high cleanliness standards."
    else:
        summary += "A casual spot for drinks and relaxation."

    return summary


# ── Cache + persistence ───────────────────────────────────────────────────────

def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_fresh(venue: Venue, now: datetime) -> bool:
    if not venue.ai_summary or venue.summary_updated_at is None:
        return False
    ttl = timedelta(days=settings.SUMMARY_TTL_DAYS)
    return _as_utc(venue.summary_updated_at) > now - ttl


async def load_recent_checkins(
    db: AsyncSession,
    venue_id: int,
    limit: Optional[int] = None,
) -> List[Checkin]:
    result = await db.execute(
        select(Checkin)
        .where(Checkin.venue_id == venue_id)
        .order_by(Checkin.created_at.desc(), Checkin.id.desc())
        .limit(limit or settings.SUMMARY_MAX_CHECKINS)
    )
    return list(result.scalars().all())


async def summarize(
    db: AsyncSession,
    venue_id: int,
    now: Optional[datetime] = None,
) -> VenueSummary:
    """
    Cached summary for a venue, rebuilt when stale.

    Database errors propagate to the caller; the only substituted result is
    the fixed "not enough data" message for a venue without check-ins, and
    that one is never written to the cache.
    """
    now = now or datetime.now(timezone.utc)

    venue = await db.get(Venue, venue_id)
    if venue is None:
        raise VenueNotFoundError(venue_id)

    if is_fresh(venue, now):
        logger.debug("[summary] HIT  venue=%s", venue_id)
        return VenueSummary(
            summary=venue.ai_summary,
            cached=True,
            aggregate_scores=venue.aggregate_scores or {},
        )

    logger.debug("[summary] MISS venue=%s", venue_id)
    rows = await load_recent_checkins(db, venue_id)
    if not rows:
        return VenueSummary(summary=NOT_ENOUGH_DATA, cached=False, aggregate_scores={})

    scores = compute_aggregate_scores(rows)
    summary = compose_summary(scores)

    venue.ai_summary = summary
    venue.summary_updated_at = now
    venue.aggregate_scores = scores
    await db.commit()
    logger.info("[summary] rebuilt venue=%s from %d check-ins", venue_id, len(rows))

    return VenueSummary(summary=summary, cached=False, aggregate_scores=scores)
