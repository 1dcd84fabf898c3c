"""PostgreSQL implementation of MilestoneRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import asyncpg


class PostgresMilestoneRepository:
    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def create(self, project_id: int, milestone_data: dict) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        async with self.db.acquire() as conn:
            async with conn.transaction():
                # Serialize iid allocation per project.
                await conn.execute("SELECT id FROM projects WHERE id = $1 FOR UPDATE", project_id)
                iid = await conn.fetchval(
                    "SELECT COALESCE(MAX(iid), 0) + 1 FROM milestones WHERE project_id = $1",
                    project_id,
                )
                row = await conn.fetchrow(
                    """INSERT INTO milestones (
                        project_id, iid, title, description, state, due_date,
                        created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING *""",
                    project_id,
                    iid,
                    milestone_data["title"],
                    milestone_data.get("description", ""),
                    milestone_data.get("state", "active"),
                    milestone_data.get("dueDate"),
                    now,
                    now,
                )
        return dict(row)

    async def get_by_iid(self, project_id: int, iid: int) -> dict | None:
        row = await self.db.fetchrow(
            "SELECT * FROM milestones WHERE project_id = $1 AND iid = $2",
            project_id, iid,
        )
        return dict(row) if row else None

    async def list_by_project(self, project_id: int, state: str | None = None) -> list[dict]:
        if state:
            rows = await self.db.fetch(
                "SELECT * FROM milestones WHERE project_id = $1 AND state = $2 ORDER BY iid",
                project_id, state,
            )
        else:
            rows = await self.db.fetch(
                "SELECT * FROM milestones WHERE project_id = $1 ORDER BY iid",
                project_id,
            )
        return [dict(r) for r in rows]
