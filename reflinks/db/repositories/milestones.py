"""SQLite implementation of MilestoneRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite


class SqliteMilestoneRepository:
    """Milestones keyed by (project_id, iid); iids are allocated per project."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, project_id: int, milestone_data: dict) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        # The next iid is computed inside the INSERT so concurrent creates
        # on the shared connection never read the same MAX(iid).
        async with self.db.execute(
            """INSERT INTO milestones (
                project_id, iid, title, description, state, due_date,
                created_at, updated_at
            )
            SELECT ?, COALESCE(MAX(iid), 0) + 1, ?, ?, ?, ?, ?, ?
            FROM milestones WHERE project_id = ?""",
            (
                project_id,
                milestone_data["title"],
                milestone_data.get("description", ""),
                milestone_data.get("state", "active"),
                milestone_data.get("dueDate"),
                now,
                now,
                project_id,
            ),
        ) as cur:
            milestone_id = cur.lastrowid
        await self.db.commit()

        async with self.db.execute("SELECT * FROM milestones WHERE id = ?", (milestone_id,)) as cur:
            row = await cur.fetchone()
            return dict(row)

    async def get_by_iid(self, project_id: int, iid: int) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM milestones WHERE project_id = ? AND iid = ?",
            (project_id, iid),
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def list_by_project(self, project_id: int, state: str | None = None) -> list[dict]:
        if state:
            query = "SELECT * FROM milestones WHERE project_id = ? AND state = ? ORDER BY iid"
            params: tuple = (project_id, state)
        else:
            query = "SELECT * FROM milestones WHERE project_id = ? ORDER BY iid"
            params = (project_id,)
        async with self.db.execute(query, params) as cur:
            return [dict(r) for r in await cur.fetchall()]
