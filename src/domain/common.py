"""Shared value types for competitions, teams and periods."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from domain.rating import Rating


class PeriodType(IntEnum):
    """Phase of a season. Values match the upstream numeric season types."""

    PRE = 1
    REGULAR = 2
    POST = 3

    @property
    def label(self) -> str:
        return _PERIOD_TYPE_LABELS[self]

    @classmethod
    def parse(cls, value: object) -> PeriodType:
        """Accept enum members, numeric values and the textual names upstream feeds use."""
        if isinstance(value, PeriodType):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)

        text = str(value).strip().lower()
        if text.isdigit():
            return cls(int(text))
        try:
            return _PERIOD_TYPE_ALIASES[text]
        except KeyError as exc:
            raise ValueError(f"Unknown period type: {value!r}") from exc


_PERIOD_TYPE_LABELS = {
    PeriodType.PRE: "Preseason",
    PeriodType.REGULAR: "Regular Season",
    PeriodType.POST: "Postseason",
}

_PERIOD_TYPE_ALIASES = {
    "pre": PeriodType.PRE,
    "preseason": PeriodType.PRE,
    "pre-season": PeriodType.PRE,
    "regular": PeriodType.REGULAR,
    "regular season": PeriodType.REGULAR,
    "post": PeriodType.POST,
    "postseason": PeriodType.POST,
    "post-season": PeriodType.POST,
    "playoff": PeriodType.POST,
    "playoffs": PeriodType.POST,
}


class HomeAway(str, Enum):
    """Role of a team within one competition."""

    HOME = "home"
    AWAY = "away"


@dataclass(frozen=True)
class Period:
    """A season/period/type triple identifying one batch of competitions."""

    season: int
    period: int
    period_type: PeriodType = PeriodType.REGULAR

    def __post_init__(self) -> None:
        object.__setattr__(self, "period_type", PeriodType.parse(self.period_type))

    @property
    def recency_key(self) -> tuple[int, int, int]:
        """Sort key; larger means more recent."""
        return (self.season, int(self.period_type), self.period)

    @property
    def label(self) -> str:
        return f"{self.season} {self.period_type.label} Week {self.period}"


def sort_most_recent_first(periods: list[Period]) -> list[Period]:
    return sorted(periods, key=lambda period: period.recency_key, reverse=True)


_RECORD_PATTERN = re.compile(r"^\s*(\d+)-(\d+)(?:-(\d+))?\s*$")


@dataclass(frozen=True)
class TeamRecord:
    """Season win/loss(/tie) record."""

    wins: int
    losses: int
    ties: int = 0

    @classmethod
    def parse(cls, value: str | None) -> TeamRecord | None:
        if value is None or not value.strip():
            return None
        match = _RECORD_PATTERN.match(value)
        if match is None:
            raise ValueError(f"Invalid team record: {value!r}")
        wins, losses, ties = match.groups()
        return cls(wins=int(wins), losses=int(losses), ties=int(ties or 0))

    def __str__(self) -> str:
        if self.ties:
            return f"{self.wins}-{self.losses}-{self.ties}"
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    logo_url: str | None = None
    record: TeamRecord | None = None


@dataclass(frozen=True)
class CompetitionTeam:
    """One team's participation in a competition."""

    team: Team
    home_away: HomeAway
    score: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "home_away", HomeAway(self.home_away))


@dataclass(frozen=True)
class CompetitionDetails:
    """Play-by-play and provider metadata the rating generator reads."""

    play_by_play: tuple[dict[str, Any], ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.play_by_play


@dataclass(frozen=True)
class Competition:
    """One scheduled or played match between a home and an away team."""

    id: str
    season: int
    period: int
    period_type: PeriodType
    teams: tuple[CompetitionTeam, ...]
    sport: str = "nfl"
    event_id: str | None = None
    status: str | None = None
    start_time: datetime | None = None
    details: CompetitionDetails | None = None
    rating: Rating | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "period_type", PeriodType.parse(self.period_type))
        object.__setattr__(self, "teams", tuple(self.teams))
        roles = sorted(participant.home_away.value for participant in self.teams)
        if roles != [HomeAway.AWAY.value, HomeAway.HOME.value]:
            raise ValueError(
                f"Competition {self.id} must have exactly one home and one away team, got roles={roles}"
            )

    @property
    def period_key(self) -> Period:
        return Period(season=self.season, period=self.period, period_type=self.period_type)

    @property
    def home(self) -> CompetitionTeam:
        return self._participant(HomeAway.HOME)

    @property
    def away(self) -> CompetitionTeam:
        return self._participant(HomeAway.AWAY)

    @property
    def matchup(self) -> str:
        return f"{self.away.team.name} @ {self.home.team.name}"

    @property
    def scoreline(self) -> str:
        return f"{self.away.score:.0f}-{self.home.score:.0f}"

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    def _participant(self, role: HomeAway) -> CompetitionTeam:
        for participant in self.teams:
            if participant.home_away is role:
                return participant
        raise LookupError(f"Competition {self.id} has no {role.value} team")


__all__ = [
    "Competition",
    "CompetitionDetails",
    "CompetitionTeam",
    "HomeAway",
    "Period",
    "PeriodType",
    "Team",
    "TeamRecord",
    "sort_most_recent_first",
]
