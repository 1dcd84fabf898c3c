"""Reference resolution: token grammar, project resolution, and filters."""

from reflinks.references.access import ReferenceAccessPolicy
from reflinks.references.cache import MISSING, ResolutionCache
from reflinks.references.collector import ReferenceCollector
from reflinks.references.filters import (
    MilestoneReferenceFilter,
    ReferenceFilter,
    ReferenceStoreError,
    build_milestone_filter,
)
from reflinks.references.grammar import (
    MAX_IID,
    MILESTONE_REFERENCE_PATTERN,
    ReferenceToken,
    scan,
)
from reflinks.references.resolver import ProjectResolver

__all__ = [
    "MAX_IID",
    "MILESTONE_REFERENCE_PATTERN",
    "MISSING",
    "MilestoneReferenceFilter",
    "ProjectResolver",
    "ReferenceAccessPolicy",
    "ReferenceCollector",
    "ReferenceFilter",
    "ReferenceStoreError",
    "ReferenceToken",
    "ResolutionCache",
    "build_milestone_filter",
    "scan",
]
