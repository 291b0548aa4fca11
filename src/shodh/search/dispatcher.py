"""Fan candidates out to scoring workers.

The calling thread drives the candidate stream (usually the tree walker,
which may block on I/O) and feeds batches into a queue. Each worker pulls
batches, scores them and keeps its own bounded RankedList. Workers share
nothing mutable except the queue; their lists are handed back once at the
barrier and merged by the caller.
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from itertools import islice
from typing import Iterable, Iterator, List, Optional

from ..config import Config
from ..entities import Candidate
from .ranking import RankedList
from .scorer import AlignmentScorer

logger = logging.getLogger(__name__)

_SENTINEL = object()

# Batches buffered per worker before the producer blocks
QUEUE_DEPTH_PER_WORKER = 4


def _batched(items: Iterable[Candidate], size: int) -> Iterator[List[Candidate]]:
    iterator = iter(items)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


@dataclass
class WorkerReport:
    """Partial result of one worker.

    Attributes:
        worker_id: Index of the worker in the pool
        ranked: Worker-local top-N, already ordered
        scored: Candidates scored by this worker
        matched: Candidates with a non-zero score
    """
    worker_id: int
    ranked: RankedList
    scored: int = 0
    matched: int = 0
    batches: int = field(default=0, repr=False)


class ParallelDispatcher:
    """Distribute scoring over a fixed pool of workers.

    With ``config.parallel`` False (or a single worker) everything runs
    inline on the calling thread, which is the reference configuration for
    the parallel path.

    Attributes:
        scorer: Shared, stateless scorer
        config: Run configuration
    """

    def __init__(
        self,
        scorer: AlignmentScorer,
        config: Config,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.scorer = scorer
        self.config = config
        self._executor = executor

    @property
    def worker_count(self) -> int:
        return self.config.effective_workers

    def dispatch(self, candidates: Iterable[Candidate]) -> List[WorkerReport]:
        """Score every candidate and return one report per worker.

        Reports are returned in worker order; their content does not depend
        on which worker saw which candidate once merged.
        """
        batches = _batched(candidates, self.config.batch_size)

        if self.worker_count == 1:
            report = WorkerReport(worker_id=0, ranked=RankedList(capacity=self.config.limit))
            for batch in batches:
                self._score_batch(batch, report)
            return [report]

        if self._executor is not None:
            return self._run_pool(self._executor, batches)

        with ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="shodh-score") as executor:
            return self._run_pool(executor, batches)

    def _run_pool(self, executor: ThreadPoolExecutor, batches: Iterator[List[Candidate]]) -> List[WorkerReport]:
        workers = self.worker_count
        work: "queue.Queue[object]" = queue.Queue(maxsize=workers * QUEUE_DEPTH_PER_WORKER)

        future_to_worker = {
            executor.submit(self._worker_loop, worker_id, work): worker_id
            for worker_id in range(workers)
        }

        submitted = 0
        try:
            for batch in batches:
                work.put(batch)
                submitted += 1
        finally:
            # Workers only exit on a sentinel
            for _ in range(workers):
                work.put(_SENTINEL)

        logger.debug("Queued %d batches for %d workers", submitted, workers)

        reports: List[WorkerReport] = []
        for future in as_completed(future_to_worker):
            worker_id = future_to_worker[future]
            try:
                report = future.result()
            except Exception as exc:
                logger.error("Scoring worker %d failed: %s", worker_id, exc)
                raise
            logger.debug(
                "Worker %d scored %d candidates in %d batches, kept %d",
                worker_id,
                report.scored,
                report.batches,
                len(report.ranked),
            )
            reports.append(report)

        reports.sort(key=lambda r: r.worker_id)
        return reports

    def _worker_loop(self, worker_id: int, work: "queue.Queue[object]") -> WorkerReport:
        report = WorkerReport(worker_id=worker_id, ranked=RankedList(capacity=self.config.limit))
        failure: Optional[BaseException] = None
        while True:
            batch = work.get()
            if batch is _SENTINEL:
                break
            if failure is not None:
                # Keep draining so the bounded queue never blocks the producer
                continue
            try:
                self._score_batch(batch, report)  # type: ignore[arg-type]
            except Exception as exc:
                failure = exc
        if failure is not None:
            raise failure
        return report

    def _score_batch(self, batch: List[Candidate], report: WorkerReport) -> None:
        ranked = report.ranked
        for candidate in batch:
            result = self.scorer.score(candidate)
            report.scored += 1
            if result.is_match:
                report.matched += 1
                ranked.offer(result)
        report.batches += 1
