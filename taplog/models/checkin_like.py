from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taplog.db.session import Base


class CheckinLike(Base):
    """One user liking one check-in. Liking twice is a no-op."""

    __tablename__ = "checkin_likes"
    __table_args__ = (
        UniqueConstraint("checkin_id", "user_id", name="uq_checkin_likes_checkin_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    checkin_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("checkins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
