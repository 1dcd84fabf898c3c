"""Repository factory to abstract DB backend (SQLite vs Postgres)."""
from __future__ import annotations

from typing import Any

import aiosqlite

from reflinks.db.repositories.milestones import SqliteMilestoneRepository
from reflinks.db.repositories.projects import SqliteProjectRepository


def get_project_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteProjectRepository(db)
    from reflinks.db.repositories.postgres.projects import PostgresProjectRepository
    return PostgresProjectRepository(db)


def get_milestone_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteMilestoneRepository(db)
    from reflinks.db.repositories.postgres.milestones import PostgresMilestoneRepository
    return PostgresMilestoneRepository(db)
