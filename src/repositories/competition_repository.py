"""SQLAlchemy-backed competition and rating store."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.common import Competition, Period, PeriodType
from domain.errors import CompetitionNotFoundError, RepositoryError
from domain.rating import RATING_TYPE_EXCITEMENT, Rating
from models import (
    Base,
    CompetitionDetailsRow,
    CompetitionRow,
    CompetitionTeamRow,
    RatingRow,
    TeamRow,
)
from repositories.records import (
    competition_from_rows,
    competition_from_snapshot,
    competition_row_values,
    group_participants,
    participant_row_values,
    period_from_values,
    rating_from_row,
    rating_row_values,
    team_row_values,
)

_RATING_CONFLICT_COLUMNS = ("competition_id", "rating_type")


def ensure_schema(engine: Engine) -> None:
    """Create competition and rating tables and their indexes if they do not exist."""
    Base.metadata.create_all(bind=engine)


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class SqlCompetitionRepository:
    """Competition repository over a SQLAlchemy session factory.

    Every public call runs in its own session. Driver failures surface as
    ``RepositoryError`` so callers can treat them as transient.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        rating_type: str = RATING_TYPE_EXCITEMENT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.rating_type = rating_type
        self.clock = clock

    @contextmanager
    def _session(self, action: str, *, write: bool = False) -> Iterator[Session]:
        with self.session_factory() as session:
            try:
                yield session
                if write:
                    session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise RepositoryError(f"Failed to {action}: {exc}") from exc
            except Exception:
                session.rollback()
                raise

    def get_competition_by_id(self, competition_id: str) -> Competition:
        with self._session(f"load competition {competition_id}") as session:
            row = session.get(CompetitionRow, competition_id)
            if row is None:
                raise CompetitionNotFoundError(competition_id)
            competitions = self._hydrate(session, [row])
        return competitions[0]

    def competition_exists(self, competition_id: str) -> bool:
        with self._session(f"check competition {competition_id}") as session:
            found = session.scalar(select(CompetitionRow.id).where(CompetitionRow.id == competition_id))
        return found is not None

    def find_by_period(
        self,
        season: int,
        period: int,
        period_type: PeriodType,
        sport: str,
    ) -> list[Competition]:
        statement = (
            select(CompetitionRow)
            .where(
                CompetitionRow.sport == sport,
                CompetitionRow.season == season,
                CompetitionRow.period == period,
                CompetitionRow.period_type == int(period_type),
            )
            .order_by(CompetitionRow.start_time, CompetitionRow.id)
        )
        with self._session(f"list competitions for {sport} {season}/{int(period_type)}/{period}") as session:
            rows = list(session.scalars(statement))
            return self._hydrate(session, rows)

    def get_available_periods(self, sport: str) -> list[Period]:
        """Distinct stored periods, most recent first."""
        statement = (
            select(CompetitionRow.season, CompetitionRow.period, CompetitionRow.period_type)
            .where(CompetitionRow.sport == sport)
            .distinct()
            .order_by(
                CompetitionRow.season.desc(),
                CompetitionRow.period_type.desc(),
                CompetitionRow.period.desc(),
            )
        )
        with self._session(f"list periods for {sport}") as session:
            rows = session.execute(statement).all()
        return [period_from_values(season, period, period_type) for season, period, period_type in rows]

    def get_rating(self, competition_id: str, rating_type: str | None = None) -> Rating | None:
        """Rating of ``rating_type``, defaulting to the type this repository was built for."""
        statement = select(RatingRow).where(
            RatingRow.competition_id == competition_id,
            RatingRow.rating_type == (rating_type or self.rating_type),
        )
        with self._session(f"load rating for {competition_id}") as session:
            row = session.execute(statement).scalar_one_or_none()
            return None if row is None else rating_from_row(row)

    def get_rated_snapshot(
        self,
        competition_id: str,
        rating_type: str | None = None,
    ) -> Competition | None:
        """The competition exactly as it looked when it was last rated."""
        statement = select(RatingRow.competition_snapshot).where(
            RatingRow.competition_id == competition_id,
            RatingRow.rating_type == (rating_type or self.rating_type),
        )
        with self._session(f"load rating snapshot for {competition_id}") as session:
            snapshot = session.execute(statement).scalar_one_or_none()
        return None if snapshot is None else competition_from_snapshot(snapshot)

    def save_rating(self, competition_id: str, rating: Rating) -> None:
        """Insert or replace the rating for (competition, rating type)."""
        with self._session(f"save rating for {competition_id}", write=True) as session:
            row = session.get(CompetitionRow, competition_id)
            if row is None:
                raise CompetitionNotFoundError(competition_id)
            competition = self._hydrate(session, [row], with_rating=False)[0]
            values = rating_row_values(competition, rating, now=self.clock())
            _upsert_rating(session, values)

    def save_competition(self, competition: Competition) -> None:
        """Write or refresh a competition with its participants and details."""
        with self._session(f"save competition {competition.id}", write=True) as session:
            for participant in competition.teams:
                session.merge(TeamRow(**team_row_values(participant.team, competition.sport)))
            session.merge(CompetitionRow(**competition_row_values(competition)))
            session.flush()

            session.execute(
                delete(CompetitionTeamRow).where(CompetitionTeamRow.competition_id == competition.id)
            )
            session.add_all(
                CompetitionTeamRow(**participant_row_values(competition.id, participant, position))
                for position, participant in enumerate(competition.teams)
            )

            if competition.details is not None:
                session.merge(
                    CompetitionDetailsRow(
                        competition_id=competition.id,
                        play_by_play=list(competition.details.play_by_play),
                        metadata_json=dict(competition.details.metadata),
                    )
                )

    def _hydrate(
        self,
        session: Session,
        rows: Sequence[CompetitionRow],
        *,
        with_rating: bool = True,
    ) -> list[Competition]:
        if not rows:
            return []
        ids = [row.id for row in rows]

        participant_rows = session.execute(
            select(CompetitionTeamRow, TeamRow)
            .join(TeamRow, TeamRow.id == CompetitionTeamRow.team_id)
            .where(CompetitionTeamRow.competition_id.in_(ids))
        ).all()
        participants = group_participants([(participant, team) for participant, team in participant_rows])

        details = {
            row.competition_id: row
            for row in session.scalars(
                select(CompetitionDetailsRow).where(CompetitionDetailsRow.competition_id.in_(ids))
            )
        }

        ratings: dict[str, RatingRow] = {}
        if with_rating:
            ratings = {
                row.competition_id: row
                for row in session.scalars(
                    select(RatingRow).where(
                        RatingRow.competition_id.in_(ids),
                        RatingRow.rating_type == self.rating_type,
                    )
                )
            }

        return [
            competition_from_rows(
                row,
                participants.get(row.id, []),
                details=details.get(row.id),
                rating=ratings.get(row.id),
            )
            for row in rows
        ]


def _upsert_rating(session: Session, values: dict[str, Any]) -> None:
    bind = session.get_bind()
    dialect_name = None if bind is None else bind.dialect.name

    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        _upsert_rating_portable(session, values)
        return

    statement = dialect_insert(RatingRow).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=list(_RATING_CONFLICT_COLUMNS),
        set_={column: statement.excluded[column] for column in values if column not in _RATING_CONFLICT_COLUMNS},
    )
    session.execute(statement)


def _upsert_rating_portable(session: Session, values: dict[str, Any]) -> None:
    existing = session.execute(
        select(RatingRow).where(
            RatingRow.competition_id == values["competition_id"],
            RatingRow.rating_type == values["rating_type"],
        )
    ).scalar_one_or_none()
    if existing is None:
        session.add(RatingRow(**values))
        return
    for column, value in values.items():
        setattr(existing, column, value)


__all__ = ["SqlCompetitionRepository", "ensure_schema"]
