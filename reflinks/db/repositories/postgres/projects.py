"""PostgreSQL implementation of ProjectRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import asyncpg


class PostgresProjectRepository:
    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def create(self, project_data: dict) -> int:
        now = datetime.now(timezone.utc).isoformat()
        return await self.db.fetchval(
            """INSERT INTO projects (path, name, description, visibility, created_at)
               VALUES ($1, $2, $3, $4, $5)
               RETURNING id""",
            project_data["path"],
            project_data.get("name", ""),
            project_data.get("description", ""),
            project_data.get("visibility", "private"),
            now,
        )

    async def get_by_id(self, project_id: int) -> dict | None:
        row = await self.db.fetchrow("SELECT * FROM projects WHERE id = $1", project_id)
        return dict(row) if row else None

    async def get_by_path(self, path: str) -> dict | None:
        row = await self.db.fetchrow("SELECT * FROM projects WHERE path = $1", path)
        return dict(row) if row else None

    async def list_all(self) -> list[dict]:
        rows = await self.db.fetch("SELECT * FROM projects ORDER BY path")
        return [dict(r) for r in rows]

    async def add_member(self, project_id: int, user_id: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO project_members (project_id, user_id, created_at)
               VALUES ($1, $2, $3)
               ON CONFLICT (project_id, user_id) DO NOTHING""",
            project_id, user_id, now,
        )

    async def is_member(self, project_id: int, user_id: str) -> bool:
        found = await self.db.fetchval(
            "SELECT 1 FROM project_members WHERE project_id = $1 AND user_id = $2",
            project_id, user_id,
        )
        return found is not None

    async def list_members(self, project_id: int) -> list[str]:
        rows = await self.db.fetch(
            "SELECT user_id FROM project_members WHERE project_id = $1 ORDER BY user_id",
            project_id,
        )
        return [r["user_id"] for r in rows]
