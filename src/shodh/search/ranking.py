"""Bounded ranked lists and the k-way merge that combines them.

Total order used everywhere:
1. Category (EXACT, PREFIX, FUZZY)
2. Score, descending
3. Full path, ascending

Because the order is total, merging per-worker top-N lists yields exactly
the top-N of a single sequential pass over every candidate.
"""

from __future__ import annotations

import bisect
import heapq
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union, overload

from ..entities import MatchResult

RankKey = Tuple[int, int, str]


def rank_key(result: MatchResult) -> RankKey:
    return result.rank_key()


class RankedList(Sequence[MatchResult]):
    """Ordered, optionally bounded collection of match results.

    NO_MATCH results are rejected. When full, a new result is kept only if
    it ranks strictly before the current last entry, which is then evicted.
    A RankedList has a single owner at a time; it is not thread-safe.

    Args:
        capacity: Maximum size, or None for unbounded
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be >= 0 or None, got {capacity}")
        self.capacity = capacity
        self._keys: List[RankKey] = []
        self._items: List[MatchResult] = []

    def offer(self, result: MatchResult) -> bool:
        """Insert ``result`` if it belongs in the list.

        Returns:
            True if the result was kept
        """
        if not result.is_match or self.capacity == 0:
            return False

        key = result.rank_key()
        if self.is_full and key >= self._keys[-1]:
            return False

        index = bisect.bisect_right(self._keys, key)
        self._keys.insert(index, key)
        self._items.insert(index, result)
        if self.capacity is not None and len(self._items) > self.capacity:
            self._keys.pop()
            self._items.pop()
        return True

    def extend(self, results: Iterable[MatchResult]) -> int:
        """Offer every result; returns how many were kept at insertion time."""
        return sum(1 for result in results if self.offer(result))

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and len(self._items) >= self.capacity

    def worst(self) -> Optional[MatchResult]:
        return self._items[-1] if self._items else None

    def to_list(self) -> List[MatchResult]:
        return list(self._items)

    def _append_sorted(self, result: MatchResult) -> None:
        # Caller guarantees result ranks at or after the current last entry
        self._keys.append(result.rank_key())
        self._items.append(result)

    @overload
    def __getitem__(self, index: int) -> MatchResult: ...

    @overload
    def __getitem__(self, index: slice) -> List[MatchResult]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[MatchResult, List[MatchResult]]:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[MatchResult]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"RankedList(capacity={self.capacity}, size={len(self._items)})"


def merge_ranked(
    lists: Iterable[Sequence[MatchResult]],
    limit: Optional[int] = None,
) -> RankedList:
    """Stable k-way merge of pre-sorted result lists.

    Each input must already be ordered by ``rank_key`` (every RankedList
    is). Runs in O(total * log(k)) and stops after ``limit`` results.

    Args:
        lists: Sorted partial lists, typically one per worker
        limit: Capacity of the merged list (None for unbounded)

    Returns:
        Merged RankedList
    """
    merged = RankedList(capacity=limit)
    if limit == 0:
        return merged

    stream = (r for r in heapq.merge(*lists, key=rank_key) if r.is_match)
    for result in islice(stream, limit):
        merged._append_sorted(result)
    return merged


def rank_all(results: Iterable[MatchResult], limit: Optional[int] = None) -> List[MatchResult]:
    """Rank results with a full sort.

    Reference behaviour for the bounded and parallel paths: drop NO_MATCH,
    sort by the total order, truncate to ``limit``.
    """
    ranked = sorted((r for r in results if r.is_match), key=rank_key)
    return ranked if limit is None else ranked[:limit]
