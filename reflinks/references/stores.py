"""Project and milestone stores consumed by the reference filters.

The filters only see these narrow interfaces. The repository-backed
implementations adapt database rows to the shared pydantic models.
"""
from __future__ import annotations

import re
from typing import Any, Optional, Protocol

from reflinks.models import Milestone, Project
from reflinks.references.grammar import MAX_IID

_NUMERIC_HANDLE_PATTERN = re.compile(r"[0-9]+")


class ProjectStore(Protocol):
    async def find_by_handle(self, handle: str) -> Optional[Project]: ...


class MilestoneStore(Protocol):
    async def find(self, project: Project, iid: int) -> Optional[Milestone]: ...


class MembershipStore(Protocol):
    async def is_member(self, project_id: int, user_id: str) -> bool: ...


def project_from_row(row: dict[str, Any]) -> Project:
    return Project(
        id=row["id"],
        path=row["path"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        visibility=row.get("visibility") or "private",
        createdAt=str(row.get("created_at") or ""),
    )


def milestone_from_row(row: dict[str, Any]) -> Milestone:
    return Milestone(
        id=row["id"],
        projectId=row["project_id"],
        iid=row["iid"],
        title=row.get("title") or "",
        description=row.get("description") or "",
        state=row.get("state") or "active",
        dueDate=row.get("due_date"),
        createdAt=str(row.get("created_at") or ""),
    )


class RepositoryProjectStore:
    """Resolves project handles through a project repository.

    A handle made only of ASCII digits is a project id; anything else is
    matched exactly against project paths.
    """

    def __init__(self, repo: Any):
        self.repo = repo

    async def find_by_handle(self, handle: str) -> Optional[Project]:
        if not handle:
            return None
        if _NUMERIC_HANDLE_PATTERN.fullmatch(handle):
            project_id = int(handle)
            if project_id > MAX_IID:
                return None
            row = await self.repo.get_by_id(project_id)
        else:
            row = await self.repo.get_by_path(handle)
        return project_from_row(row) if row else None

    async def is_member(self, project_id: int, user_id: str) -> bool:
        return await self.repo.is_member(project_id, user_id)


class RepositoryMilestoneStore:
    def __init__(self, repo: Any):
        self.repo = repo

    async def find(self, project: Project, iid: int) -> Optional[Milestone]:
        row = await self.repo.get_by_iid(project.id, iid)
        return milestone_from_row(row) if row else None
