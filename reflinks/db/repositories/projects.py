"""SQLite implementation of ProjectRepository (projects + membership)."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite


class SqliteProjectRepository:
    """Projects addressed by integer id or by their ``namespace/name`` path."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, project_data: dict) -> int:
        now = datetime.now(timezone.utc).isoformat()
        async with self.db.execute(
            """INSERT INTO projects (path, name, description, visibility, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                project_data["path"],
                project_data.get("name", ""),
                project_data.get("description", ""),
                project_data.get("visibility", "private"),
                now,
            ),
        ) as cur:
            project_id = cur.lastrowid or 0
        await self.db.commit()
        return project_id

    async def get_by_id(self, project_id: int) -> dict | None:
        async with self.db.execute("SELECT * FROM projects WHERE id = ?", (project_id,)) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def get_by_path(self, path: str) -> dict | None:
        # Exact, case-sensitive match.
        async with self.db.execute("SELECT * FROM projects WHERE path = ?", (path,)) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def list_all(self) -> list[dict]:
        async with self.db.execute("SELECT * FROM projects ORDER BY path") as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def add_member(self, project_id: int, user_id: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO project_members (project_id, user_id, created_at)
               VALUES (?, ?, ?)
               ON CONFLICT(project_id, user_id) DO NOTHING""",
            (project_id, user_id, now),
        )
        await self.db.commit()

    async def is_member(self, project_id: int, user_id: str) -> bool:
        async with self.db.execute(
            "SELECT 1 FROM project_members WHERE project_id = ? AND user_id = ?",
            (project_id, user_id),
        ) as cur:
            return await cur.fetchone() is not None

    async def list_members(self, project_id: int) -> list[str]:
        async with self.db.execute(
            "SELECT user_id FROM project_members WHERE project_id = ? ORDER BY user_id",
            (project_id,),
        ) as cur:
            return [r[0] for r in await cur.fetchall()]
