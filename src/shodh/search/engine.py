"""Fuzzy search engine: walk, score in parallel, merge.

Process:
1. Walk the tree below the root, yielding candidates lazily
2. Fan the candidates out to scoring workers (ThreadPoolExecutor)
3. Merge the worker-local top-N lists into the final ranking
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from ..config import Config
from ..entities import Candidate, MatchResult, Query
from ..walker import TreeWalker
from .dispatcher import ParallelDispatcher, WorkerReport
from .ranking import merge_ranked
from .scorer import AlignmentScorer


@contextmanager
def timer(name: str, logger: logging.Logger, level: int = logging.DEBUG):
    """Context manager for timing code blocks.

    Args:
        name: Name of the operation being timed
        logger: Logger instance to use
        level: Logging level (default DEBUG)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.log(level, "[TIMING] %s: %.2fms", name, elapsed_ms)


@dataclass
class SearchStats:
    """Statistics collected during search execution.

    Attributes:
        entries_scanned: Directory entries seen by the walker
        candidates_scored: Candidates passed to the scorer
        candidates_matched: Candidates with a positive score
        entries_skipped: Unreadable directories, broken links and cycles
        workers: Number of scoring workers used
        time_ms: Total search time in milliseconds
        errors: Messages for skipped directories
    """
    entries_scanned: int = 0
    candidates_scored: int = 0
    candidates_matched: int = 0
    entries_skipped: int = 0
    workers: int = 1
    time_ms: float = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class FuzzySearchResult:
    """Ranked search outcome.

    Attributes:
        query: Normalized query
        results: Final ranking, at most ``limit`` entries
        stats: SearchStats with execution metrics
    """
    query: Query
    results: List[MatchResult]
    stats: SearchStats

    def __len__(self) -> int:
        return len(self.results)

    @property
    def is_empty(self) -> bool:
        return not self.results


class FuzzySearchEngine:
    """Parallel fuzzy finder over a directory tree.

    The thread pool is created on first parallel search and reused until
    ``close()``. Config and query are passed by value into every worker;
    nothing else is shared.

    Attributes:
        config: Default configuration for searches
        logger: Python logger instance
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_workers = 0

    def _get_executor(self, workers: int) -> ThreadPoolExecutor:
        """Get or create the shared thread pool executor.

        Recreated when a search needs more workers than the current pool.
        """
        if self._executor is None or self._executor_workers < workers:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
            self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="shodh-score")
            self._executor_workers = workers
        return self._executor

    def close(self) -> None:
        """Shutdown the thread pool executor."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._executor_workers = 0

    def __enter__(self) -> "FuzzySearchEngine":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def search(
        self,
        query: Union[str, Query],
        root: Union[str, Path] = ".",
        config: Optional[Config] = None,
    ) -> FuzzySearchResult:
        """Search the tree below ``root`` for names matching ``query``.

        Args:
            query: Query text or a prepared Query
            root: Directory to search (a regular file searches just itself)
            config: Per-search configuration (defaults to the engine's)

        Returns:
            FuzzySearchResult with the final ranking and statistics

        Examples:
            >>> with FuzzySearchEngine() as engine:
            ...     result = engine.search("kilo", Path("src"))
            ...     for match in result.results:
            ...         print(f"[{match.score}] {match.kind.value} {match.path}")
        """
        config = config or self.config
        walker = TreeWalker(config)
        result = self._run(query, walker.walk(root), config)

        result.stats.entries_scanned = walker.stats.entries_scanned
        result.stats.entries_skipped = walker.stats.entries_skipped
        result.stats.errors = list(walker.stats.errors)
        if walker.stats.entries_skipped:
            self.logger.info("Skipped %d entries under %s", walker.stats.entries_skipped, root)
        return result

    def rank(
        self,
        query: Union[str, Query],
        candidates: Iterable[Candidate],
        config: Optional[Config] = None,
    ) -> FuzzySearchResult:
        """Score and rank an explicit candidate collection (no walking)."""
        config = config or self.config
        return self._run(query, candidates, config)

    def _run(
        self,
        query: Union[str, Query],
        candidates: Iterable[Candidate],
        config: Config,
    ) -> FuzzySearchResult:
        start_time = time.time()
        prepared = self._prepare_query(query, config)
        stats = SearchStats(workers=config.effective_workers)

        if config.limit == 0 or prepared.length == 0:
            self.logger.debug("Nothing to rank (limit=%d, query=%r)", config.limit, prepared.raw)
            stats.time_ms = (time.time() - start_time) * 1000
            return FuzzySearchResult(query=prepared, results=[], stats=stats)

        scorer = AlignmentScorer(prepared, config)
        executor = self._get_executor(config.effective_workers) if config.effective_workers > 1 else None
        dispatcher = ParallelDispatcher(scorer, config, executor=executor)

        with timer("score", self.logger):
            reports = dispatcher.dispatch(candidates)

        with timer("merge", self.logger):
            final = merge_ranked((report.ranked for report in reports), limit=config.limit)

        self._collect_stats(stats, reports)
        stats.time_ms = (time.time() - start_time) * 1000
        self.logger.debug(
            "Ranked %d of %d matches for %r in %.1fms",
            len(final),
            stats.candidates_matched,
            prepared.raw,
            stats.time_ms,
        )
        return FuzzySearchResult(query=prepared, results=final.to_list(), stats=stats)

    @staticmethod
    def _prepare_query(query: Union[str, Query], config: Config) -> Query:
        if isinstance(query, Query) and query.case_sensitive == config.case_sensitive:
            return query
        raw = query.raw if isinstance(query, Query) else query
        return Query.create(raw, case_sensitive=config.case_sensitive)

    @staticmethod
    def _collect_stats(stats: SearchStats, reports: List[WorkerReport]) -> None:
        stats.candidates_scored = sum(r.scored for r in reports)
        stats.candidates_matched = sum(r.matched for r in reports)
        stats.workers = len(reports)


# === Convenience Functions ===

def quick_search(query: str, root: Union[str, Path] = ".", **overrides: Any) -> List[MatchResult]:
    """One-off search with a default config.

    Args:
        query: Query text
        root: Directory to search
        **overrides: Config fields to change (e.g. limit=20, parallel=False)

    Returns:
        Ranked list of MatchResult

    Examples:
        >>> results = quick_search("readme", ".", limit=5)
        >>> print(f"Found {len(results)} matches")
    """
    config = Config(**overrides)
    with FuzzySearchEngine(config) as engine:
        return engine.search(query, root).results
