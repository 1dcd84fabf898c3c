"""API router for projects, their members and their milestones."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from reflinks.db import connection
from reflinks.db.factory import get_milestone_repository, get_project_repository
from reflinks.models import (
    Milestone,
    MilestoneCreateRequest,
    Project,
    ProjectCreateRequest,
    ProjectMemberRequest,
)
from reflinks.references.stores import milestone_from_row, project_from_row

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


async def _require_project(project_repo, project_id: int) -> Project:
    row = await project_repo.get_by_id(project_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return project_from_row(row)


@projects_router.get("", response_model=list[Project])
async def list_projects():
    """List all projects."""
    db = await connection.get_connection()
    rows = await get_project_repository(db).list_all()
    return [project_from_row(r) for r in rows]


@projects_router.post("", response_model=Project)
async def create_project(req: ProjectCreateRequest):
    """Create a project; its path must be unused."""
    db = await connection.get_connection()
    repo = get_project_repository(db)
    if await repo.get_by_path(req.path):
        raise HTTPException(status_code=409, detail=f"Project path '{req.path}' already exists")
    project_id = await repo.create(req.model_dump())
    return await _require_project(repo, project_id)


@projects_router.get("/{project_id}", response_model=Project)
async def get_project(project_id: int):
    db = await connection.get_connection()
    return await _require_project(get_project_repository(db), project_id)


@projects_router.post("/{project_id}/members", response_model=list[str])
async def add_project_member(project_id: int, req: ProjectMemberRequest):
    """Add a member; members may reference milestones of private projects."""
    db = await connection.get_connection()
    repo = get_project_repository(db)
    await _require_project(repo, project_id)
    await repo.add_member(project_id, req.userId)
    return await repo.list_members(project_id)


@projects_router.get("/{project_id}/milestones", response_model=list[Milestone])
async def list_milestones(project_id: int, state: str | None = None):
    db = await connection.get_connection()
    await _require_project(get_project_repository(db), project_id)
    rows = await get_milestone_repository(db).list_by_project(project_id, state=state)
    return [milestone_from_row(r) for r in rows]


@projects_router.post("/{project_id}/milestones", response_model=Milestone)
async def create_milestone(project_id: int, req: MilestoneCreateRequest):
    """Create a milestone with the next iid in the project."""
    db = await connection.get_connection()
    await _require_project(get_project_repository(db), project_id)
    row = await get_milestone_repository(db).create(project_id, req.model_dump())
    return milestone_from_row(row)
