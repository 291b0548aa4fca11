"""shodh - fuzzy file and directory finder.

Walks a directory tree, scores every entry name against a query with a
local-alignment matcher and returns a deterministic top-N ranking.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, KindFilter
from .entities import Candidate, EntryKind, MatchCategory, MatchResult, Query
from .errors import ConfigError, ShodhError, TraversalError
from .search.engine import FuzzySearchEngine, FuzzySearchResult, SearchStats, quick_search

__all__ = [
    "__version__",
    "Candidate",
    "Config",
    "ConfigError",
    "EntryKind",
    "FuzzySearchEngine",
    "FuzzySearchResult",
    "KindFilter",
    "MatchCategory",
    "MatchResult",
    "Query",
    "SearchStats",
    "ShodhError",
    "TraversalError",
    "quick_search",
]
