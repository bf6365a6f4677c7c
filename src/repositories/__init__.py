"""Database repository helpers."""

from repositories.competition_repository import SqlCompetitionRepository, ensure_schema

__all__ = [
    "SqlCompetitionRepository",
    "ensure_schema",
]
