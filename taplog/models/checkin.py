from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taplog.db.session import Base

if TYPE_CHECKING:
    from taplog.models.checkin_like import CheckinLike
    from taplog.models.venue import Venue


class Checkin(Base):
    __tablename__ = "checkins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id:  Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    venue_id: Mapped[int] = mapped_column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)

    beer_name:   Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Rating vector, 0–10 each ──────────────────────────────────────────────
    taste:       Mapped[int] = mapped_column(Integer, nullable=False)
    bitterness:  Mapped[int] = mapped_column(Integer, nullable=False)
    aroma:       Mapped[int] = mapped_column(Integer, nullable=False)
    smoothness:  Mapped[int] = mapped_column(Integer, nullable=False)
    carbonation: Mapped[int] = mapped_column(Integer, nullable=False)
    temperature: Mapped[int] = mapped_column(Integer, nullable=False)
    music:       Mapped[int] = mapped_column(Integer, nullable=False)
    lighting:    Mapped[int] = mapped_column(Integer, nullable=False)
    crowd_vibe:  Mapped[int] = mapped_column(Integer, nullable=False)
    cleanliness: Mapped[int] = mapped_column(Integer, nullable=False)
    decor:       Mapped[int] = mapped_column(Integer, nullable=False)

    overall: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # ── Context at the time of the visit ──────────────────────────────────────
    day_of_week:   Mapped[int] = mapped_column(Integer, nullable=False)
    group_size:    Mapped[int] = mapped_column(Integer, nullable=False)
    company_type:  Mapped[str] = mapped_column(String(60), nullable=False)
    beers_already: Mapped[int] = mapped_column(Integer, nullable=False)

    ai_review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_model:  Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # The only column the owner may change after creation
    image_paths: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    venue: Mapped["Venue"] = relationship("Venue", back_populates="checkins")
    likes: Mapped[list["CheckinLike"]] = relationship(
        "CheckinLike", cascade="all, delete-orphan"
    )
