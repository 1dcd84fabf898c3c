"""Turn a reference qualifier into the project it names."""
from __future__ import annotations

import logging
from typing import Optional

from reflinks.models import Project
from reflinks.references.access import ReferenceAccessPolicy
from reflinks.references.stores import ProjectStore

logger = logging.getLogger("reflinks.references")


class ProjectResolver:
    """Resolves ``None``/``""`` to the current project and anything else by handle.

    Unknown, disallowed, or inaccessible handles resolve to ``None``; there is
    no fallback to the current project. The result depends only on the
    qualifier and the current project, so callers may memoize by qualifier
    for the duration of one document.
    """

    def __init__(
        self,
        project_store: ProjectStore,
        access_policy: Optional[ReferenceAccessPolicy] = None,
        allow_cross_project: bool = True,
    ):
        self.project_store = project_store
        self.access_policy = access_policy
        self.allow_cross_project = allow_cross_project

    async def resolve(self, qualifier: Optional[str], current_project: Project) -> Optional[Project]:
        if not qualifier:
            return current_project
        if not self.allow_cross_project:
            return None

        project = await self.project_store.find_by_handle(qualifier)
        if project is None:
            logger.debug(f"No project found for reference qualifier {qualifier!r}")
            return None

        if self.access_policy and not await self.access_policy.can_reference(project, current_project):
            logger.debug(f"Project {project.path} is not referenceable from {current_project.path}")
            return None
        return project
