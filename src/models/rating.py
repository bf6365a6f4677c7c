"""ratings table model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, JSONType
from models.mixins import PeriodColumnsMixin, TimestampMixin


class RatingRow(PeriodColumnsMixin, TimestampMixin, Base):
    """One rating per (competition, rating type).

    ``competition_snapshot`` is the denormalized competition as it was rated; it
    is not updated when the live competition row changes.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("competition_id", "rating_type", name="uq_ratings_competition_type"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_ratings_score"),
        Index("idx_ratings_competition", "competition_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    competition_id: Mapped[str] = mapped_column(ForeignKey("competitions.id"), nullable=False)
    event_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rating_type: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False)
    spoiler_free_explanation: Mapped[str] = mapped_column(Text, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    competition_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
