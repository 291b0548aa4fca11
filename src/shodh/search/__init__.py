"""Scoring, dispatch and ranking."""

from .dispatcher import ParallelDispatcher, WorkerReport
from .engine import FuzzySearchEngine, FuzzySearchResult, SearchStats, quick_search, timer
from .ranking import RankedList, merge_ranked, rank_all, rank_key
from .scorer import (
    AlignmentScorer,
    alignment_score,
    classify,
    folded_boundaries,
    fuzzy_score,
    score_candidate,
    word_boundaries,
)

__all__ = [
    "AlignmentScorer",
    "FuzzySearchEngine",
    "FuzzySearchResult",
    "ParallelDispatcher",
    "RankedList",
    "SearchStats",
    "WorkerReport",
    "alignment_score",
    "classify",
    "folded_boundaries",
    "fuzzy_score",
    "merge_ranked",
    "quick_search",
    "rank_all",
    "rank_key",
    "score_candidate",
    "timer",
    "word_boundaries",
]
