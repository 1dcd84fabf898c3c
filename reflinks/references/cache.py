"""Per-document memo of qualifier → project resolutions."""
from __future__ import annotations

from typing import Any, Optional

from reflinks.models import Project


MISSING: Any = object()


def cache_key(qualifier: Optional[str]) -> str:
    # No qualifier and an empty qualifier both mean "current project".
    return qualifier or ""


class ResolutionCache:
    """Qualifier → resolved project, for the lifetime of one document.

    A stored ``None`` is the explicit "no project" outcome; ``MISSING`` means
    the qualifier has not been resolved yet.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Optional[Project]] = {}

    def get(self, qualifier: Optional[str]) -> Any:
        return self._entries.get(cache_key(qualifier), MISSING)

    def put(self, qualifier: Optional[str], result: Optional[Project]) -> None:
        self._entries[cache_key(qualifier)] = result

    def __contains__(self, qualifier: Optional[str]) -> bool:
        return cache_key(qualifier) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
