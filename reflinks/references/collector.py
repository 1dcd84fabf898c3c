"""Collected references: the entities a document actually linked to."""
from __future__ import annotations

from typing import Any


def entity_identity(kind: str, entity: Any) -> tuple[str, Any]:
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        # Entities without an id are only equal to themselves.
        return (kind, ("object", id(entity)))
    return (kind, entity_id)


class ReferenceCollector:
    """Ordered, de-duplicated record of substituted entities, per kind.

    One collector can be shared by several reference filters running over
    the same document; each filter records under its own kind.
    """

    def __init__(self) -> None:
        self._results: dict[str, list[Any]] = {}
        self._seen: set[tuple[str, Any]] = set()

    def record(self, entity: Any, kind: str = "milestone") -> bool:
        """Append ``entity`` unless already recorded. Returns True if appended."""
        key = entity_identity(kind, entity)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._results.setdefault(kind, []).append(entity)
        return True

    def references(self, kind: str = "milestone") -> list[Any]:
        return list(self._results.get(kind, []))

    def drain(self, kind: str = "milestone") -> list[Any]:
        """Return the recorded entities of ``kind`` in first-seen order and forget them."""
        drained = self._results.pop(kind, [])
        self._seen = {key for key in self._seen if key[0] != kind}
        return drained
