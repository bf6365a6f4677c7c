"""ORM models."""

from models.base import Base, JSONType
from models.competition import CompetitionDetailsRow, CompetitionRow, CompetitionTeamRow, TeamRow
from models.rating import RatingRow

__all__ = [
    "Base",
    "CompetitionDetailsRow",
    "CompetitionRow",
    "CompetitionTeamRow",
    "JSONType",
    "RatingRow",
    "TeamRow",
]
