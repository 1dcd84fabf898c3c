"""Pydantic models shared by the API and the reference filters."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal, Optional

# ── Project-related models ──────────────────────────────────────────

class Project(BaseModel):
    id: int
    path: str  # "namespace/name", the handle used by cross-project references
    name: str = ""
    description: str = ""
    visibility: Literal["public", "internal", "private"] = "private"
    createdAt: str = ""


class ProjectCreateRequest(BaseModel):
    path: str = Field(..., min_length=3, pattern=r"^[A-Za-z0-9][A-Za-z0-9-]*(?:/[A-Za-z0-9][A-Za-z0-9-]*)+$")
    name: str = ""
    description: str = ""
    visibility: Literal["public", "internal", "private"] = "private"


class ProjectMemberRequest(BaseModel):
    userId: str = Field(..., min_length=1)


# ── Milestone-related models ────────────────────────────────────────

class Milestone(BaseModel):
    id: int
    projectId: int
    iid: int  # sequential within its project, not globally unique
    title: str
    description: str = ""
    state: Literal["active", "closed"] = "active"
    dueDate: Optional[str] = None
    createdAt: str = ""


class MilestoneCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    state: Literal["active", "closed"] = "active"
    dueDate: Optional[str] = None


# ── Reference rendering models ──────────────────────────────────────

class ReferenceRenderRequest(BaseModel):
    text: str
    projectId: int
    userId: Optional[str] = None
    onlyPath: Optional[bool] = None


class ReferenceRenderResponse(BaseModel):
    html: str
    references: list[Milestone] = Field(default_factory=list)


class ReferenceScanRequest(BaseModel):
    text: str


class ReferenceTokenInfo(BaseModel):
    match: str
    id: int
    project: Optional[str] = None
    start: int
    end: int
