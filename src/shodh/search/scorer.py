"""Local-alignment fuzzy scorer.

Scores a candidate name against the query with a Smith-Waterman style
dynamic program:

    S[i][j] = max(0,
                  S[i-1][j-1] + match_or_mismatch(i, j),
                  S[i][j-1] - gap_penalty)

There is no vertical move, so query characters are never skipped. A name
that does not contain every query character in order is rejected before
the matrix is built. The score is the maximum cell of S.

Rows are computed with numpy: the diagonal term depends only on the
previous row, and the horizontal gap chain is a running maximum:

    S[i][j] = max_{k<=j}(base[k] + g*k) - g*j
"""

from __future__ import annotations

import os
from typing import Optional

import numpy as np

from ..config import Config, ScoringWeights
from ..entities import Candidate, MatchCategory, MatchResult, Query

# Characters after which a new word starts
WORD_SEPARATORS = frozenset("/\\_-. ")


def _codes(text: str) -> np.ndarray:
    return np.fromiter((ord(ch) for ch in text), dtype=np.int64, count=len(text))


def _is_subsequence(needle: str, haystack: str) -> bool:
    it = iter(haystack)
    return all(ch in it for ch in needle)


def word_boundaries(name: str) -> np.ndarray:
    """Mark positions of ``name`` that start a word.

    A position starts a word if it is the first character, follows a
    separator, or is an upper-case letter following a lower-case one.
    """
    n = len(name)
    marks = np.zeros(n, dtype=bool)
    if n == 0:
        return marks
    marks[0] = True
    for j in range(1, n):
        prev, cur = name[j - 1], name[j]
        if prev in WORD_SEPARATORS or (prev.islower() and cur.isupper()):
            marks[j] = True
    return marks


def folded_boundaries(name: str, folded: str) -> np.ndarray:
    """Word-start marks of ``name`` projected onto its case-folded form.

    Folding may expand a character (``ß`` -> ``ss``). The first folded
    character inherits the mark of its source character and the rest of
    the expansion is unmarked, so camelCase starts survive folding.
    """
    if len(folded) == len(name):
        return word_boundaries(name)

    raw_marks = word_boundaries(name)
    marks = np.zeros(len(folded), dtype=bool)
    pos = 0
    for ch, mark in zip(name, raw_marks):
        width = len(ch.casefold())
        if width == 0:
            continue
        if pos + width > len(folded):
            return word_boundaries(folded)
        marks[pos] = mark
        pos += width
    if pos != len(folded):
        return word_boundaries(folded)
    return marks


def alignment_score(
    query_text: str,
    name_text: str,
    weights: Optional[ScoringWeights] = None,
    boundaries: Optional[np.ndarray] = None,
) -> int:
    """Compute the local-alignment score of already-normalized strings.

    Args:
        query_text: Query after the case rule was applied
        name_text: Candidate name after the case rule was applied
        weights: Scoring weights (defaults if None)
        boundaries: Word-start marks for ``name_text`` (computed if None)

    Returns:
        Non-negative score; 0 means no match
    """
    m = len(query_text)
    n = len(name_text)
    if m == 0 or n == 0:
        return 0
    if not _is_subsequence(query_text, name_text):
        return 0

    weights = weights or ScoringWeights()
    if boundaries is None or len(boundaries) != n:
        boundaries = word_boundaries(name_text)

    q_codes = _codes(query_text)
    c_codes = _codes(name_text)
    gap = weights.gap_penalty
    offsets = gap * np.arange(n + 1, dtype=np.int64)
    match_gain = weights.match_weight + weights.boundary_bonus * boundaries.astype(np.int64)

    prev_row = np.zeros(n + 1, dtype=np.int64)
    prev_run = np.zeros(n + 1, dtype=bool)
    base = np.zeros(n + 1, dtype=np.int64)
    run = np.zeros(n + 1, dtype=bool)
    best = 0

    for i in range(m):
        equal = c_codes == q_codes[i]
        step = np.where(
            equal,
            match_gain + weights.consecutive_bonus * prev_run[:-1],
            -weights.mismatch_penalty,
        )
        diag = prev_row[:-1] + step
        base[1:] = np.maximum(diag, 0)
        row = np.maximum.accumulate(base + offsets) - offsets

        # A cell continues a run only if the match itself produced it
        run = np.zeros(n + 1, dtype=bool)
        run[1:] = equal & (diag > 0) & (diag == row[1:])

        best = max(best, int(row.max()))
        prev_row, prev_run = row, run

    return best


def classify(query_text: str, name_text: str, score: int) -> MatchCategory:
    """Assign the match category for a scored candidate.

    EXACT when the name, or the name without its last extension, equals
    the query; PREFIX when the name starts with the query; FUZZY otherwise.
    """
    if score <= 0 or not query_text:
        return MatchCategory.NO_MATCH
    if name_text == query_text or os.path.splitext(name_text)[0] == query_text:
        return MatchCategory.EXACT
    if name_text.startswith(query_text):
        return MatchCategory.PREFIX
    return MatchCategory.FUZZY


class AlignmentScorer:
    """Score candidates against one query under one config.

    Stateless after construction, so a single instance may be shared by
    every worker thread.
    """

    def __init__(self, query: Query, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        if query.case_sensitive != self.config.case_sensitive:
            query = Query.create(query.raw, case_sensitive=self.config.case_sensitive)
        self.query = query
        self.weights = self.config.weights

    def score(self, candidate: Candidate) -> MatchResult:
        name_text = self.query.fold(candidate.name)
        # Case transitions are only visible in the raw name
        boundaries = folded_boundaries(candidate.name, name_text)

        value = alignment_score(self.query.text, name_text, self.weights, boundaries)
        category = classify(self.query.text, name_text, value)
        if category is MatchCategory.NO_MATCH:
            value = 0
        return MatchResult(candidate=candidate, score=value, category=category)


def score_candidate(query: Query, candidate: Candidate, config: Optional[Config] = None) -> MatchResult:
    """Score a single candidate. Pure function of its arguments."""
    return AlignmentScorer(query, config).score(candidate)


def fuzzy_score(
    query: str,
    name: str,
    case_sensitive: bool = False,
    weights: Optional[ScoringWeights] = None,
) -> int:
    """Score two plain strings.

    Examples:
        >>> fuzzy_score("kilo", "kilobyte.rs") > 0
        True
        >>> fuzzy_score("kilo", "kodak.txt")
        0
    """
    q = Query.create(query, case_sensitive=case_sensitive)
    text = q.fold(name)
    return alignment_score(q.text, text, weights, folded_boundaries(name, text))
