"""Conversion between ORM rows and domain values.

Numeric and enum coercion happens here, once, on the way in and out of the
database. Nothing downstream re-parses stored values.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from domain.common import (
    Competition,
    CompetitionDetails,
    CompetitionTeam,
    HomeAway,
    Period,
    PeriodType,
    Team,
    TeamRecord,
)
from domain.rating import Rating
from models import CompetitionDetailsRow, CompetitionRow, CompetitionTeamRow, RatingRow, TeamRow


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def period_from_values(season: object, period: object, period_type: object) -> Period:
    return Period(season=int(season), period=int(period), period_type=PeriodType.parse(period_type))


def _record_from_row(row: CompetitionTeamRow) -> TeamRecord | None:
    if row.record_wins is None or row.record_losses is None:
        return None
    return TeamRecord(wins=row.record_wins, losses=row.record_losses, ties=row.record_ties or 0)


def participant_from_rows(participant: CompetitionTeamRow, team: TeamRow) -> CompetitionTeam:
    return CompetitionTeam(
        team=Team(
            id=team.id,
            name=team.name,
            logo_url=team.logo_url,
            record=_record_from_row(participant),
        ),
        home_away=HomeAway(participant.home_away),
        score=float(participant.score),
    )


def details_from_row(row: CompetitionDetailsRow | None) -> CompetitionDetails | None:
    if row is None:
        return None
    return CompetitionDetails(
        play_by_play=tuple(row.play_by_play or ()),
        metadata=dict(row.metadata_json or {}),
    )


def rating_from_row(row: RatingRow) -> Rating:
    return Rating(
        score=int(row.score),
        explanation=row.explanation,
        spoiler_free_explanation=row.spoiler_free_explanation,
        source=row.source,
        rating_type=row.rating_type,
        generated_at=row.generated_at,
    )


def competition_from_rows(
    row: CompetitionRow,
    participants: Iterable[tuple[CompetitionTeamRow, TeamRow]],
    *,
    details: CompetitionDetailsRow | None = None,
    rating: RatingRow | None = None,
) -> Competition:
    ordered = sorted(participants, key=lambda pair: pair[0].position)
    return Competition(
        id=row.id,
        event_id=row.event_id,
        sport=row.sport,
        season=int(row.season),
        period=int(row.period),
        period_type=PeriodType.parse(row.period_type),
        status=row.status,
        start_time=row.start_time,
        teams=tuple(participant_from_rows(participant, team) for participant, team in ordered),
        details=details_from_row(details),
        rating=None if rating is None else rating_from_row(rating),
    )


def competition_row_values(competition: Competition) -> dict[str, Any]:
    return {
        "id": competition.id,
        "event_id": competition.event_id,
        "sport": competition.sport,
        "season": competition.season,
        "period": competition.period,
        "period_type": int(competition.period_type),
        "start_time": None if competition.start_time is None else to_naive_utc(competition.start_time),
        "status": competition.status,
    }


def team_row_values(team: Team, sport: str) -> dict[str, Any]:
    return {"id": team.id, "name": team.name, "sport": sport, "logo_url": team.logo_url}


def participant_row_values(
    competition_id: str,
    participant: CompetitionTeam,
    position: int,
) -> dict[str, Any]:
    record = participant.team.record
    return {
        "competition_id": competition_id,
        "team_id": participant.team.id,
        "home_away": participant.home_away.value,
        "position": position,
        "score": participant.score,
        "record_wins": None if record is None else record.wins,
        "record_losses": None if record is None else record.losses,
        "record_ties": None if record is None else record.ties,
    }


def competition_snapshot(competition: Competition) -> dict[str, Any]:
    """JSON-safe denormalized copy of what was rated."""
    return {
        "id": competition.id,
        "event_id": competition.event_id,
        "sport": competition.sport,
        "season": competition.season,
        "period": competition.period,
        "period_type": int(competition.period_type),
        "status": competition.status,
        "start_time": None if competition.start_time is None else competition.start_time.isoformat(),
        "teams": [
            {
                "id": participant.team.id,
                "name": participant.team.name,
                "logo_url": participant.team.logo_url,
                "home_away": participant.home_away.value,
                "score": participant.score,
                "record": None if participant.team.record is None else str(participant.team.record),
            }
            for participant in competition.teams
        ],
    }


def competition_from_snapshot(snapshot: dict[str, Any]) -> Competition:
    start_time = snapshot.get("start_time")
    return Competition(
        id=str(snapshot["id"]),
        event_id=snapshot.get("event_id"),
        sport=str(snapshot.get("sport", "nfl")),
        season=int(snapshot["season"]),
        period=int(snapshot["period"]),
        period_type=PeriodType.parse(snapshot["period_type"]),
        status=snapshot.get("status"),
        start_time=None if start_time is None else datetime.fromisoformat(start_time),
        teams=tuple(
            CompetitionTeam(
                team=Team(
                    id=str(team["id"]),
                    name=str(team["name"]),
                    logo_url=team.get("logo_url"),
                    record=TeamRecord.parse(team.get("record")),
                ),
                home_away=HomeAway(team["home_away"]),
                score=float(team.get("score", 0.0)),
            )
            for team in snapshot.get("teams", ())
        ),
    )


def rating_row_values(
    competition: Competition,
    rating: Rating,
    *,
    now: datetime,
) -> dict[str, Any]:
    return {
        "competition_id": competition.id,
        "event_id": competition.event_id,
        "season": competition.season,
        "period": competition.period,
        "period_type": int(competition.period_type),
        "rating_type": rating.rating_type,
        "source": rating.source,
        "score": rating.score,
        "explanation": rating.explanation,
        "spoiler_free_explanation": rating.spoiler_free_explanation,
        "generated_at": to_naive_utc(rating.generated_at),
        "competition_snapshot": competition_snapshot(competition),
        "updated_at": to_naive_utc(now),
    }


def group_participants(
    rows: Sequence[tuple[CompetitionTeamRow, TeamRow]],
) -> dict[str, list[tuple[CompetitionTeamRow, TeamRow]]]:
    grouped: dict[str, list[tuple[CompetitionTeamRow, TeamRow]]] = {}
    for participant, team in rows:
        grouped.setdefault(participant.competition_id, []).append((participant, team))
    return grouped


__all__ = [
    "competition_from_rows",
    "competition_from_snapshot",
    "competition_row_values",
    "competition_snapshot",
    "details_from_row",
    "group_participants",
    "participant_row_values",
    "period_from_values",
    "rating_from_row",
    "rating_row_values",
    "team_row_values",
    "to_naive_utc",
]
