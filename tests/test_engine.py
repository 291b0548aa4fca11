"""End-to-end tests for FuzzySearchEngine: scenarios, determinism, bounds."""

import os
import random
import threading
import time

import pytest

from shodh.config import Config, KindFilter
from shodh.entities import Candidate, EntryKind, MatchCategory, MatchResult, Query
from shodh.search.dispatcher import QUEUE_DEPTH_PER_WORKER, ParallelDispatcher
from shodh.search.engine import FuzzySearchEngine, quick_search
from shodh.search.ranking import merge_ranked, rank_all
from shodh.search.scorer import AlignmentScorer
from shodh.walker import walk

WORDS = ["kilo", "byte", "main", "test", "util", "src", "lib", "core", "data", "io", "Kilo", "KB"]


def _names(results):
    return [os.path.basename(r.path) for r in results]


def _signature(results):
    return [(r.path, r.score, r.category, r.kind) for r in results]


@pytest.fixture
def random_tree(tmp_path):
    rng = random.Random(42)
    for i in range(400):
        depth = rng.randint(0, 3)
        parts = [rng.choice(WORDS) + rng.choice(["", "_", "-"]) + rng.choice(WORDS) for _ in range(depth)]
        name = rng.choice(WORDS) + rng.choice(["", "_", "."]) + rng.choice(WORDS) + f"{i}" + rng.choice(["", ".rs", ".py"])
        target = tmp_path.joinpath(*parts, name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("")
    return tmp_path


class TestScenarios:
    """Behaviour on small, hand-built trees."""

    def test_kilo_scenario(self, make_tree):
        root = make_tree(["kilobyte.rs", "kilo", "kodak.txt"])
        with FuzzySearchEngine(Config(limit=3)) as engine:
            result = engine.search("kilo", root)

        assert _names(result.results) == ["kilo", "kilobyte.rs"]
        assert [r.category for r in result.results] == [MatchCategory.EXACT, MatchCategory.PREFIX]

    def test_empty_root_directory(self, tmp_path):
        with FuzzySearchEngine() as engine:
            result = engine.search("anything", tmp_path)
        assert result.results == []
        assert result.is_empty
        assert result.stats.entries_scanned == 0

    def test_files_only_never_scores_matching_directory(self, make_tree):
        root = make_tree(["kilo/", "kilobyte.rs"])
        config = Config(kind_filter=KindFilter.FILES)
        with FuzzySearchEngine(config) as engine:
            result = engine.search("kilo", root)

        assert _names(result.results) == ["kilobyte.rs"]
        assert all(r.kind is EntryKind.FILE for r in result.results)
        assert result.stats.candidates_scored == 1

    def test_dirs_only(self, make_tree):
        root = make_tree(["kilo/", "kilobyte.rs"])
        with FuzzySearchEngine(Config(kind_filter=KindFilter.DIRS)) as engine:
            result = engine.search("kilo", root)
        assert _names(result.results) == ["kilo"]
        assert result.results[0].kind is EntryKind.DIR

    def test_case_policy(self, make_tree):
        root = make_tree(["abc.txt"])
        with FuzzySearchEngine() as engine:
            insensitive = engine.search("ABC", root, Config())
            sensitive = engine.search("ABC", root, Config(case_sensitive=True))

        assert [r.category for r in insensitive.results] == [MatchCategory.EXACT]
        assert all(r.category is not MatchCategory.EXACT for r in sensitive.results)

    def test_empty_query_returns_nothing(self, make_tree):
        root = make_tree(["a.txt"])
        with FuzzySearchEngine() as engine:
            assert engine.search("", root).results == []

    def test_no_match_is_not_an_error(self, make_tree):
        root = make_tree(["alpha.txt", "beta.txt"])
        with FuzzySearchEngine() as engine:
            result = engine.search("zzz", root)
        assert result.results == []
        assert result.stats.candidates_scored == 2
        assert result.stats.candidates_matched == 0

    def test_prepared_query_is_accepted(self, make_tree):
        root = make_tree(["Readme.md"])
        with FuzzySearchEngine() as engine:
            result = engine.search(Query.create("README"), root)
        assert result.query.text == "readme"
        assert result.results[0].category is MatchCategory.EXACT

    def test_quick_search(self, make_tree):
        root = make_tree(["docs/guide.md", "src/guide.py"])
        results = quick_search("guide", root, limit=1, parallel=False)
        assert len(results) == 1
        assert results[0].category is MatchCategory.EXACT

    def test_unreadable_directory_reported_in_stats(self, make_tree, monkeypatch):
        root = make_tree(["ok/kilo.txt", "bad/kilo.txt"])
        from shodh.errors import TraversalError
        from shodh.walker import fs, tree_walker

        real = fs.list_children

        def flaky(directory):
            if os.path.basename(str(directory)) == "bad":
                raise TraversalError(directory, TraversalError.NOT_READABLE)
            return real(directory)

        monkeypatch.setattr(tree_walker, "list_children", flaky)
        with FuzzySearchEngine() as engine:
            result = engine.search("kilo", root)

        assert [os.path.relpath(r.path, root).replace(os.sep, "/") for r in result.results] == ["ok/kilo.txt"]
        assert result.stats.entries_skipped == 1
        assert result.stats.errors


class TestDeterminism:
    """Parallel and sequential runs must produce the same ranking."""

    @pytest.mark.parametrize("query", ["kilo", "kb", "main", "srcutil", "io"])
    def test_parallel_matches_sequential(self, random_tree, query):
        sequential = Config(limit=15, parallel=False)
        parallel = Config(limit=15, parallel=True, max_workers=4, batch_size=7)

        with FuzzySearchEngine() as engine:
            seq = engine.search(query, random_tree, sequential)
            par = engine.search(query, random_tree, parallel)

        assert _signature(par.results) == _signature(seq.results)
        assert par.stats.workers == 4
        assert seq.stats.workers == 1

    @pytest.mark.parametrize("workers,batch_size", [(2, 1), (3, 5), (8, 64)])
    def test_matches_unbounded_reference(self, random_tree, workers, batch_size):
        config = Config(limit=20, max_workers=workers, batch_size=batch_size)
        candidates = list(walk(random_tree, config))
        scorer = AlignmentScorer(Query.create("kilo"), config)
        reference = rank_all((scorer.score(c) for c in candidates), limit=20)

        with FuzzySearchEngine() as engine:
            result = engine.rank("kilo", candidates, config)

        assert _signature(result.results) == _signature(reference)

    def test_candidate_order_does_not_matter(self, random_tree):
        config = Config(limit=10, max_workers=3, batch_size=4)
        candidates = list(walk(random_tree, config))
        shuffled = list(candidates)
        random.Random(7).shuffle(shuffled)

        with FuzzySearchEngine(config) as engine:
            first = engine.rank("util", candidates)
            second = engine.rank("util", shuffled)

        assert _signature(first.results) == _signature(second.results)

    def test_dispatcher_reports_cover_all_candidates(self, random_tree):
        config = Config(limit=5, max_workers=4, batch_size=3)
        candidates = list(walk(random_tree, config))
        dispatcher = ParallelDispatcher(AlignmentScorer(Query.create("core"), config), config)

        reports = dispatcher.dispatch(candidates)

        assert [r.worker_id for r in reports] == [0, 1, 2, 3]
        assert sum(r.scored for r in reports) == len(candidates)
        assert all(len(r.ranked) <= 5 for r in reports)
        merged = merge_ranked([r.ranked for r in reports], limit=5)
        assert len(merged) <= 5


class TestBoundsAndOrdering:
    """Limit handling and category precedence."""

    @pytest.mark.parametrize("limit", [0, 1, 5, 1000])
    def test_result_count_bounded(self, random_tree, limit):
        with FuzzySearchEngine(Config(limit=limit, max_workers=2)) as engine:
            result = engine.search("k", random_tree)
        assert len(result.results) <= limit
        if limit == 0:
            assert result.results == []

    def test_exact_before_fuzzy(self, random_tree):
        with FuzzySearchEngine(Config(limit=1000, max_workers=2)) as engine:
            result = engine.search("kb", random_tree)

        ranks = [r.category.rank for r in result.results]
        assert ranks == sorted(ranks)
        assert all(r.score > 0 for r in result.results)

    def test_rank_explicit_candidates(self):
        candidates = [
            Candidate(path="/x/zz_kilo_zz", name="zz_kilo_zz", kind=EntryKind.FILE),
            Candidate(path="/x/kilo", name="kilo", kind=EntryKind.DIR),
            Candidate(path="/x/kilogram", name="kilogram", kind=EntryKind.FILE),
        ]
        with FuzzySearchEngine(Config(parallel=False)) as engine:
            result = engine.rank("kilo", candidates)
        assert [r.path for r in result.results] == ["/x/kilo", "/x/kilogram", "/x/zz_kilo_zz"]

    def test_engine_reuses_executor(self, make_tree):
        root = make_tree(["a.txt"])
        engine = FuzzySearchEngine(Config(max_workers=2))
        try:
            engine.search("a", root)
            executor = engine._executor
            engine.search("a", root)
            assert engine._executor is executor
        finally:
            engine.close()
        assert engine._executor is None


def _numbered(count):
    return [Candidate(path=f"/t/{i:03d}", name=f"{i:03d}", kind=EntryKind.FILE) for i in range(count)]


class _GatedScorer:
    """Scores every candidate as a weak match once the gate opens."""

    def __init__(self, gate):
        self.gate = gate

    def score(self, candidate):
        self.gate.wait(timeout=10)
        return MatchResult(candidate=candidate, score=1, category=MatchCategory.FUZZY)


class _FailingScorer:
    def score(self, candidate):
        if int(candidate.name) >= 5:
            raise RuntimeError("scorer failed")
        return MatchResult(candidate=candidate, score=1, category=MatchCategory.FUZZY)


class TestDispatcherQueue:
    """Backpressure and failure handling of the work queue."""

    def test_producer_blocks_when_workers_are_busy(self):
        config = Config(limit=5, max_workers=2, batch_size=1)
        gate = threading.Event()
        pulled = []
        reports = []

        def stream():
            for candidate in _numbered(200):
                pulled.append(candidate)
                yield candidate

        dispatcher = ParallelDispatcher(_GatedScorer(gate), config)
        thread = threading.Thread(target=lambda: reports.extend(dispatcher.dispatch(stream())))
        thread.start()
        try:
            time.sleep(0.3)
            buffered = len(pulled)
        finally:
            gate.set()
            thread.join(timeout=10)

        # Two batches held by workers, a full queue and one waiting on put
        assert buffered <= 2 + 2 * QUEUE_DEPTH_PER_WORKER + 1
        assert not thread.is_alive()
        assert sum(r.scored for r in reports) == 200

    def test_failing_workers_do_not_stall_the_producer(self):
        config = Config(limit=5, max_workers=2, batch_size=1)
        dispatcher = ParallelDispatcher(_FailingScorer(), config)

        with pytest.raises(RuntimeError, match="scorer failed"):
            dispatcher.dispatch(iter(_numbered(100)))
