"""API router for rendering milestone references in document text."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from reflinks.db import connection
from reflinks.db.factory import get_milestone_repository, get_project_repository
from reflinks.link_rendering import milestone_link_renderer
from reflinks.models import (
    ReferenceRenderRequest,
    ReferenceRenderResponse,
    ReferenceScanRequest,
    ReferenceTokenInfo,
)
from reflinks.references import ReferenceCollector, ReferenceStoreError, build_milestone_filter, scan
from reflinks.references.stores import project_from_row

logger = logging.getLogger("reflinks.references")

references_router = APIRouter(prefix="/api/references", tags=["references"])


@references_router.post("/milestones/render", response_model=ReferenceRenderResponse)
async def render_milestone_references(req: ReferenceRenderRequest):
    """Replace milestone references in ``text`` with links and list the milestones mentioned."""
    db = await connection.get_connection()
    project_repo = get_project_repository(db)

    row = await project_repo.get_by_id(req.projectId)
    if not row:
        raise HTTPException(status_code=404, detail=f"Project {req.projectId} not found")
    current_project = project_from_row(row)

    reference_filter = build_milestone_filter(project_repo, get_milestone_repository(db), user_id=req.userId)
    collector = ReferenceCollector()
    try:
        rendered = await reference_filter.process(
            req.text,
            current_project,
            milestone_link_renderer(req.onlyPath),
            collector=collector,
        )
    except ReferenceStoreError as e:
        logger.error(f"Milestone reference rendering failed for project {current_project.path}: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return ReferenceRenderResponse(html=rendered, references=collector.drain("milestone"))


@references_router.post("/milestones/scan", response_model=list[ReferenceTokenInfo])
def scan_milestone_references(req: ReferenceScanRequest):
    """List milestone reference tokens in ``text`` without resolving them."""
    return [
        ReferenceTokenInfo(
            match=token.raw_match,
            id=token.id,
            project=token.qualifier,
            start=token.start,
            end=token.end,
        )
        for token in scan(req.text)
    ]
