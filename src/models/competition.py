"""teams, competitions, competition_teams and competition_details table models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, JSONType
from models.mixins import CreatedAtMixin, PeriodColumnsMixin


class TeamRow(Base):
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("name", "sport", name="uq_teams_name_sport"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    sport: Mapped[str] = mapped_column(String(32), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)


class CompetitionRow(PeriodColumnsMixin, CreatedAtMixin, Base):
    """Live competition record written by ingestion."""

    __tablename__ = "competitions"
    __table_args__ = (
        CheckConstraint("period_type IN (1, 2, 3)", name="ck_competitions_period_type"),
        Index("idx_competitions_sport_period", "sport", "season", "period_type", "period"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    event_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    sport: Mapped[str] = mapped_column(String(32), nullable=False)
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)


class CompetitionTeamRow(Base):
    """One participant of a competition; at most one home and one away per competition."""

    __tablename__ = "competition_teams"
    __table_args__ = (
        UniqueConstraint("competition_id", "home_away", name="uq_competition_teams_role"),
        CheckConstraint("home_away IN ('home', 'away')", name="ck_competition_teams_home_away"),
    )

    competition_id: Mapped[str] = mapped_column(ForeignKey("competitions.id"), primary_key=True)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), primary_key=True)
    home_away: Mapped[str] = mapped_column(String(4), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    record_wins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    record_losses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    record_ties: Mapped[int | None] = mapped_column(Integer, nullable=True)


class CompetitionDetailsRow(Base):
    __tablename__ = "competition_details"

    competition_id: Mapped[str] = mapped_column(ForeignKey("competitions.id"), primary_key=True)
    play_by_play: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    metadata_json: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
