"""Competition rating domain modules."""

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
from domain.rating import Rating, RatingCategory, rating_category

__all__ = [
    "Competition",
    "CompetitionDetails",
    "CompetitionTeam",
    "HomeAway",
    "Period",
    "PeriodType",
    "Rating",
    "RatingCategory",
    "Team",
    "TeamRecord",
    "rating_category",
]
