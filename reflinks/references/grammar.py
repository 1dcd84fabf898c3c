"""Milestone reference token grammar.

A milestone reference is ``%<iid>``, optionally qualified with the path of
another project: ``group/project%<iid>``. Scanning is left to right and never
yields overlapping tokens.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional


MILESTONE_SIGIL = "%"

# iids are stored in signed 32-bit integer columns.
MAX_IID = 2**31 - 1
_MAX_IID_DIGITS = len(str(MAX_IID))

PROJECT_PATH_PATTERN = r"[A-Za-z0-9][A-Za-z0-9-]*(?:/[A-Za-z0-9][A-Za-z0-9-]*)+"

# A token may not begin inside a longer word or path run, so a qualifier that
# contains the sigil (``a%b/c%1``) or a dot (``a.b/c%1``) is never split into
# a shorter match.
_TOKEN_BOUNDARY = r"(?<![A-Za-z0-9_.\-/%])"

MILESTONE_REFERENCE_PATTERN = re.compile(
    _TOKEN_BOUNDARY
    + rf"(?:(?P<project>{PROJECT_PATH_PATTERN}))?"
    + re.escape(MILESTONE_SIGIL)
    + r"(?P<milestone>\d+)(?!\w)"
)


@dataclass(frozen=True)
class ReferenceToken:
    raw_match: str
    id: int
    qualifier: Optional[str] = None
    start: int = 0
    end: int = 0

    @property
    def is_valid_id(self) -> bool:
        return 0 <= self.id <= MAX_IID


def parse_id(digits: str) -> int:
    # Runs too long for an iid are reported as MAX_IID + 1 without converting.
    significant = digits.lstrip("0") or "0"
    if len(significant) > _MAX_IID_DIGITS:
        return MAX_IID + 1
    return int(significant)


def token_from_match(match: re.Match, id_group: str = "milestone") -> ReferenceToken:
    return ReferenceToken(
        raw_match=match.group(0),
        id=parse_id(match.group(id_group)),
        qualifier=match.group("project") or None,
        start=match.start(),
        end=match.end(),
    )


def scan(text: str, pattern: re.Pattern = MILESTONE_REFERENCE_PATTERN) -> Iterator[ReferenceToken]:
    """Lazily yield every reference token in ``text`` in document order."""
    for match in pattern.finditer(text or ""):
        yield token_from_match(match)
