"""Core data types shared by the walker, scorer and ranking stages."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple


class EntryKind(Enum):
    """Filesystem entry kind as reported by the walker."""
    FILE = "FILE"
    DIR = "DIR"


class MatchCategory(Enum):
    """Match class of a scored candidate.

    The category dominates the numeric score when ranking: every EXACT
    result sorts before every PREFIX result, which sorts before every FUZZY
    result. NO_MATCH results never reach a ranked list.
    """
    EXACT = "exact"
    PREFIX = "prefix"
    FUZZY = "fuzzy"
    NO_MATCH = "no_match"

    @property
    def rank(self) -> int:
        """Sort rank, lower is better."""
        return _CATEGORY_RANK[self]


_CATEGORY_RANK = {
    MatchCategory.EXACT: 0,
    MatchCategory.PREFIX: 1,
    MatchCategory.FUZZY: 2,
    MatchCategory.NO_MATCH: 3,
}


@dataclass(frozen=True)
class Query:
    """Normalized search string.

    Attributes:
        raw: Text as typed by the user
        text: Text used for comparison (case-folded unless case_sensitive)
        case_sensitive: Whether ``text`` kept the original case
    """
    raw: str
    text: str
    case_sensitive: bool = False

    @classmethod
    def create(cls, raw: str, case_sensitive: bool = False) -> "Query":
        text = raw if case_sensitive else raw.casefold()
        return cls(raw=raw, text=text, case_sensitive=case_sensitive)

    @property
    def length(self) -> int:
        return len(self.text)

    def fold(self, value: str) -> str:
        """Apply this query's case rule to another string."""
        return value if self.case_sensitive else value.casefold()


@dataclass(frozen=True)
class Candidate:
    """One filesystem entry produced by the walker.

    ``path`` is kept as a string so that the ranking tie-break is a plain
    lexicographic comparison of the full path.
    """
    path: str
    name: str
    kind: EntryKind

    @classmethod
    def from_path(cls, path: str | os.PathLike, kind: EntryKind) -> "Candidate":
        path_str = os.fspath(path)
        return cls(path=path_str, name=os.path.basename(path_str.rstrip("/\\")) or path_str, kind=kind)

    @property
    def as_path(self) -> Path:
        return Path(self.path)

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR


@dataclass(frozen=True)
class MatchResult:
    """A scored candidate. Never mutated after creation."""
    candidate: Candidate
    score: int
    category: MatchCategory

    @property
    def path(self) -> str:
        return self.candidate.path

    @property
    def kind(self) -> EntryKind:
        return self.candidate.kind

    @property
    def is_match(self) -> bool:
        return self.category is not MatchCategory.NO_MATCH

    def rank_key(self) -> Tuple[int, int, str]:
        """Total-order key: category, then score descending, then path."""
        return (self.category.rank, -self.score, self.candidate.path)
