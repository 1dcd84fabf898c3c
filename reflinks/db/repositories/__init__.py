"""Repository package for database access."""

from .projects import SqliteProjectRepository
from .milestones import SqliteMilestoneRepository

__all__ = [
    "SqliteProjectRepository",
    "SqliteMilestoneRepository",
]
