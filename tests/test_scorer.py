"""Tests for the local-alignment scorer and match classification."""

import pytest

from shodh.config import Config, ScoringWeights
from shodh.entities import Candidate, EntryKind, MatchCategory, Query
from shodh.search.scorer import (
    AlignmentScorer,
    alignment_score,
    classify,
    folded_boundaries,
    fuzzy_score,
    score_candidate,
    word_boundaries,
)


def _file(name):
    return Candidate(path=f"/root/{name}", name=name, kind=EntryKind.FILE)


class TestAlignmentScore:
    """Tests for the raw DP score."""

    def test_identical_strings(self):
        # k: 2 + boundary 2; i, l, o: 2 + consecutive 1 each
        assert fuzzy_score("kilo", "kilo") == 13

    def test_empty_query_scores_zero(self):
        assert fuzzy_score("", "anything") == 0

    def test_empty_name_scores_zero(self):
        assert fuzzy_score("abc", "") == 0

    def test_both_empty(self):
        assert alignment_score("", "") == 0

    def test_missing_query_character_scores_zero(self):
        assert fuzzy_score("kilo", "kodak.txt") == 0

    def test_out_of_order_characters_score_zero(self):
        assert fuzzy_score("ba", "ab") == 0

    def test_query_longer_than_name(self):
        assert fuzzy_score("abcdef", "abc") == 0

    def test_contiguous_beats_scattered(self):
        contiguous = fuzzy_score("abc", "abcxyz")
        scattered = fuzzy_score("abc", "axbxcx")
        assert contiguous == 10
        assert scattered == 4
        assert contiguous > scattered

    def test_separator_boundary_bonus(self):
        assert fuzzy_score("b", "a_b") == 4
        assert fuzzy_score("b", "aab") == 2

    def test_case_transition_boundary_bonus(self):
        assert fuzzy_score("b", "fooBar") > fuzzy_score("b", "foobar")

    def test_gap_penalty_lowers_scattered_score(self):
        lenient = ScoringWeights(gap_penalty=0, mismatch_penalty=0)
        assert fuzzy_score("abc", "axbxcx", weights=lenient) > fuzzy_score("abc", "axbxcx")

    def test_case_sensitive_rejects_case_mismatch(self):
        assert fuzzy_score("ABC", "abc.txt", case_sensitive=True) == 0
        assert fuzzy_score("ABC", "abc.txt", case_sensitive=False) > 0

    @pytest.mark.parametrize(
        "query,name",
        [
            ("a", "b"),
            ("abc", "cba"),
            ("x", "xxxxxxxx"),
            ("main", "m_a_i_n.py"),
            ("zz", "a" * 50 + "z" + "b" * 50 + "z"),
            ("über", "Über-Datei"),
        ],
    )
    def test_score_is_never_negative(self, query, name):
        assert fuzzy_score(query, name) >= 0

    def test_scoring_is_idempotent(self):
        first = fuzzy_score("srcmain", "src/main_module.py")
        second = fuzzy_score("srcmain", "src/main_module.py")
        assert first == second


class TestWordBoundaries:
    """Tests for word-start detection."""

    def test_first_character_starts_word(self):
        assert word_boundaries("abc").tolist() == [True, False, False]

    def test_separators(self):
        marks = word_boundaries("a_b-c.d e")
        assert [i for i, flag in enumerate(marks) if flag] == [0, 2, 4, 6, 8]

    def test_camel_case(self):
        marks = word_boundaries("fooBarBaz")
        assert [i for i, flag in enumerate(marks) if flag] == [0, 3, 6]

    def test_empty(self):
        assert len(word_boundaries("")) == 0

    def test_folding_keeps_raw_case_transitions(self):
        marks = folded_boundaries("StraßeDatei", "strassedatei")
        assert [i for i, flag in enumerate(marks) if flag] == [0, 7]

    def test_folding_without_expansion(self):
        assert folded_boundaries("fooBar", "foobar").tolist() == word_boundaries("fooBar").tolist()

    def test_expanding_fold_keeps_boundary_bonus(self):
        expanded = fuzzy_score("datei", "StraßeDatei")
        assert expanded == fuzzy_score("datei", "StrasseDatei")
        assert expanded > fuzzy_score("datei", "Strassedatei")

    def test_scorer_uses_raw_boundaries_after_expansion(self):
        scorer = AlignmentScorer(Query.create("datei"), Config())
        assert scorer.score(_file("StraßeDatei")).score == scorer.score(_file("StrasseDatei")).score


class TestClassify:
    """Tests for EXACT / PREFIX / FUZZY assignment."""

    def test_zero_score_is_no_match(self):
        assert classify("kilo", "kilo", 0) is MatchCategory.NO_MATCH

    def test_exact_name(self):
        assert classify("kilo", "kilo", 13) is MatchCategory.EXACT

    def test_exact_stem(self):
        assert classify("abc", "abc.txt", 10) is MatchCategory.EXACT

    def test_prefix(self):
        assert classify("kilo", "kilobyte.rs", 13) is MatchCategory.PREFIX

    def test_fuzzy(self):
        assert classify("klo", "kilo.txt", 5) is MatchCategory.FUZZY


class TestAlignmentScorer:
    """Tests for scoring candidates under a Config."""

    def test_kilo_scenario_categories(self):
        scorer = AlignmentScorer(Query.create("kilo"), Config())
        assert scorer.score(_file("kilo")).category is MatchCategory.EXACT
        assert scorer.score(_file("kilobyte.rs")).category is MatchCategory.PREFIX
        kodak = scorer.score(_file("kodak.txt"))
        assert kodak.category is MatchCategory.NO_MATCH
        assert kodak.score == 0

    def test_case_insensitive_exact(self):
        result = score_candidate(Query.create("ABC"), _file("abc.txt"), Config())
        assert result.category is MatchCategory.EXACT

    def test_case_sensitive_never_exact(self):
        config = Config(case_sensitive=True)
        result = score_candidate(Query.create("ABC", case_sensitive=True), _file("abc.txt"), config)
        assert result.category is not MatchCategory.EXACT
        assert result.category is MatchCategory.NO_MATCH

    def test_query_is_refolded_to_config_case_rule(self):
        # Query prepared case-sensitive, config insensitive
        scorer = AlignmentScorer(Query.create("ABC", case_sensitive=True), Config())
        assert scorer.query.text == "abc"
        assert scorer.score(_file("abc.txt")).category is MatchCategory.EXACT

    def test_unicode_case_folding(self):
        result = score_candidate(Query.create("STRASSE"), _file("Straße"), Config())
        assert result.category is MatchCategory.EXACT
        assert result.score > 0

    def test_fuzzy_match(self):
        result = score_candidate(Query.create("klo"), _file("kilo.txt"), Config())
        assert result.category is MatchCategory.FUZZY
        assert result.score > 0

    def test_empty_query_is_no_match(self):
        result = score_candidate(Query.create(""), _file("anything"), Config())
        assert result.category is MatchCategory.NO_MATCH
        assert result.score == 0

    def test_custom_weights_apply(self):
        config = Config(weights=ScoringWeights(match_weight=10, boundary_bonus=0, consecutive_bonus=0))
        result = score_candidate(Query.create("ab"), _file("ab"), config)
        assert result.score == 20

    def test_same_input_same_result(self):
        scorer = AlignmentScorer(Query.create("mod"), Config())
        candidate = _file("my_module.py")
        assert scorer.score(candidate) == scorer.score(candidate)
