"""Reference filters: replace resolvable reference tokens in document text.

A filter scans text with its token grammar, resolves each token's qualifier
to a project (memoized per document), looks the entity up inside that
project, and hands the hit to a caller-supplied renderer. Anything that does
not resolve is copied through untouched.

    collector = ReferenceCollector()
    html = await milestone_filter.process(text, project, renderer, collector=collector)
    mentioned = collector.drain("milestone")
"""
from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Optional

from reflinks import config
from reflinks.models import Milestone, Project
from reflinks.observability import record_document, record_reference, start_span
from reflinks.references.access import ReferenceAccessPolicy
from reflinks.references.cache import MISSING, ResolutionCache
from reflinks.references.collector import ReferenceCollector
from reflinks.references.grammar import MILESTONE_REFERENCE_PATTERN, ReferenceToken, scan
from reflinks.references.resolver import ProjectResolver
from reflinks.references.stores import MilestoneStore, RepositoryMilestoneStore, RepositoryProjectStore

logger = logging.getLogger("reflinks.references")

Renderer = Callable[[str, Any, Project], str]


class ReferenceStoreError(RuntimeError):
    """A project or entity store failed to answer a lookup."""


class ReferenceFilter:
    """Base for filters that link ``<qualifier><sigil><id>`` tokens to entities."""

    kind = "reference"
    pattern: re.Pattern

    def __init__(self, resolver: ProjectResolver):
        self.resolver = resolver

    async def find_entity(self, project: Project, entity_id: int) -> Optional[Any]:
        raise NotImplementedError

    async def process(
        self,
        text: str,
        current_project: Project,
        renderer: Renderer,
        cache: Optional[ResolutionCache] = None,
        collector: Optional[ReferenceCollector] = None,
    ) -> str:
        """Return ``text`` with every resolvable token replaced by ``renderer``'s output.

        Raises ReferenceStoreError if a store lookup fails; no partial output
        is returned in that case.
        """
        if cache is None:
            cache = ResolutionCache()
        if collector is None:
            collector = ReferenceCollector()

        started = time.perf_counter()
        with start_span(f"references.{self.kind}.process", {"project_id": current_project.id}):
            parts: list[str] = []
            cursor = 0
            for token in scan(text, self.pattern):
                parts.append(text[cursor:token.start])
                parts.append(await self._replace(token, current_project, renderer, cache, collector))
                cursor = token.end
            parts.append(text[cursor:])
        record_document(self.kind, (time.perf_counter() - started) * 1000, project_id=current_project.id)
        return "".join(parts)

    async def _replace(
        self,
        token: ReferenceToken,
        current_project: Project,
        renderer: Renderer,
        cache: ResolutionCache,
        collector: ReferenceCollector,
    ) -> str:
        if not token.is_valid_id:
            logger.debug(f"Ignoring {self.kind} reference {token.raw_match!r}: id out of range")
            record_reference(self.kind, "malformed", project_id=current_project.id)
            return token.raw_match

        project = await self._resolve_project(token.qualifier, current_project, cache)
        if project is None:
            record_reference(self.kind, "unresolved_project", project_id=current_project.id)
            return token.raw_match

        try:
            entity = await self.find_entity(project, token.id)
        except Exception as exc:
            raise ReferenceStoreError(
                f"Failed to look up {self.kind} {token.id} in project {project.path}"
            ) from exc
        if entity is None:
            logger.debug(f"No {self.kind} {token.id} in project {project.path}")
            record_reference(self.kind, "unresolved_entity", project_id=current_project.id)
            return token.raw_match

        replacement = renderer(token.raw_match, entity, project)
        collector.record(entity, kind=self.kind)
        record_reference(self.kind, "resolved", project_id=current_project.id)
        return replacement

    async def _resolve_project(
        self,
        qualifier: Optional[str],
        current_project: Project,
        cache: ResolutionCache,
    ) -> Optional[Project]:
        cached = cache.get(qualifier)
        if cached is not MISSING:
            return cached
        try:
            project = await self.resolver.resolve(qualifier, current_project)
        except Exception as exc:
            raise ReferenceStoreError(f"Failed to resolve project reference {qualifier!r}") from exc
        cache.put(qualifier, project)
        return project


class MilestoneReferenceFilter(ReferenceFilter):
    """Links ``%123`` and ``group/project%123`` to milestones.

    The id is the milestone's iid within the resolved project. References to
    milestones that do not exist are left as written.
    """

    kind = "milestone"
    pattern = MILESTONE_REFERENCE_PATTERN

    def __init__(self, resolver: ProjectResolver, milestone_store: MilestoneStore):
        super().__init__(resolver)
        self.milestone_store = milestone_store

    async def find_entity(self, project: Project, entity_id: int) -> Optional[Milestone]:
        return await self.milestone_store.find(project, entity_id)


def build_milestone_filter(
    project_repo: Any,
    milestone_repo: Any,
    user_id: Optional[str] = None,
) -> MilestoneReferenceFilter:
    """Wire a milestone filter to repositories using the configured reference policy."""
    project_store = RepositoryProjectStore(project_repo)
    access_policy = ReferenceAccessPolicy(project_store, user_id) if config.ENFORCE_REFERENCE_ACCESS else None
    resolver = ProjectResolver(
        project_store,
        access_policy=access_policy,
        allow_cross_project=config.CROSS_PROJECT_REFERENCES,
    )
    return MilestoneReferenceFilter(resolver, RepositoryMilestoneStore(milestone_repo))
