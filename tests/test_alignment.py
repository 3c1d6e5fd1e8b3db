#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Tests for window alignment scoring and disattended-constraint detection.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from pairweaver.pctg.alignment import (
    GappedScorer,
    UngappedScorer,
    WindowAlignment,
    aligned_pairs,
    find_disattended,
)


class TestUngappedScorer:
    """Test best placement search."""

    def test_exact_placement(self, random_dna):
        ref = random_dna(400, seed=11)
        query = ref[150:300]
        scorer = UngappedScorer()

        best = scorer.best_shift(ref, query, center=150, max_shift=50, min_overlap=100)

        assert best.shift == 0
        assert best.ref_start == 150
        assert best.query_start == 0
        assert best.length == 150
        assert best.homology == 1.0

    def test_placement_off_center(self, random_dna):
        ref = random_dna(400, seed=12)
        query = ref[170:320]

        best = UngappedScorer().best_shift(ref, query, center=150, max_shift=50, min_overlap=100)

        assert best.shift == 20
        assert best.ref_start == 170

    def test_query_overhanging_reference(self, random_dna):
        """Only the overlapping part is scored."""
        ref = random_dna(300, seed=13)
        query = ref[200:] + random_dna(100, seed=14)

        best = UngappedScorer().best_shift(ref, query, center=200, max_shift=10, min_overlap=50)

        assert best.shift == 0
        assert best.length == 100
        assert best.matches == 100

    def test_tie_prefers_negative_shift(self):
        """Equal homology, length and |shift|: the negative shift wins."""
        best = UngappedScorer().best_shift("AAAAGGAAAA", "AAAA", center=3, max_shift=3, min_overlap=4)

        assert best.shift == -3
        assert best.ref_start == 0

    def test_tie_prefers_longer_overlap(self):
        best = UngappedScorer().best_shift("AAAAAA", "AA", center=5, max_shift=1, min_overlap=1)

        assert best.shift == -1
        assert best.length == 2

    def test_tie_prefers_smaller_shift(self):
        best = UngappedScorer().best_shift("A" * 10, "AAAA", center=3, max_shift=3, min_overlap=4)
        assert best.shift == 0

    def test_placeholders_never_match(self):
        best = UngappedScorer().best_shift("NNNN", "NNNN", center=0, max_shift=0, min_overlap=1)
        assert best.matches == 0
        assert best.homology == 0.0

    def test_no_candidate(self):
        assert UngappedScorer().best_shift("ACGT", "ACGT", center=0, max_shift=2, min_overlap=10) is None

    def test_empty_inputs(self):
        scorer = UngappedScorer()
        assert scorer.best_shift("", "ACGT", center=0, max_shift=2, min_overlap=1) is None
        assert scorer.best_shift("ACGT", "", center=0, max_shift=2, min_overlap=1) is None


class TestGappedScorer:
    """Test seed chaining across indels."""

    def test_deletion_in_query(self, random_dna):
        """One reference base missing from the query costs one gap column."""
        ref = random_dna(600, seed=31)
        query = ref[100:250] + ref[251:400]

        best = GappedScorer().best_shift(ref, query, center=100, max_shift=50, min_overlap=100)

        assert best.ref_start == 100
        assert best.query_start == 0
        assert [op for op, _ in best.cigar] == ['M', 'D', 'M']
        assert (best.ref_gaps, best.query_gaps) == (0, 1)
        assert best.length == 300
        assert best.matches == 299
        assert (best.ref_end, best.query_end) == (400, 299)

    def test_insertion_in_query(self, random_dna):
        ref = random_dna(600, seed=32)
        extra = 'A' if ref[250] != 'A' else 'C'
        query = ref[100:250] + extra + ref[250:400]

        best = GappedScorer().best_shift(ref, query, center=100, max_shift=50, min_overlap=100)

        assert [op for op, _ in best.cigar] == ['M', 'I', 'M']
        assert (best.ref_gaps, best.query_gaps) == (1, 0)
        assert best.length == 301
        assert best.matches == 300
        assert best.homology > 0.99
        assert (best.ref_end, best.query_end) == (400, 301)

    def test_beats_ungapped_placement(self, random_dna):
        ref = random_dna(600, seed=33)
        query = ref[100:250] + ref[251:400]

        ungapped = UngappedScorer().best_shift(ref, query, center=100, max_shift=50, min_overlap=100)
        gapped = GappedScorer().best_shift(ref, query, center=100, max_shift=50, min_overlap=100)

        assert ungapped.homology < 0.85
        assert gapped.homology > 0.99

    def test_ungapped_input_matches_ungapped_scorer(self, random_dna):
        ref = random_dna(400, seed=34)
        query = ref[170:320]

        gapped = GappedScorer().best_shift(ref, query, center=150, max_shift=50, min_overlap=100)
        ungapped = UngappedScorer().best_shift(ref, query, center=150, max_shift=50, min_overlap=100)

        assert gapped == ungapped
        assert gapped.ops == ()

    def test_gap_limit(self, random_dna):
        """A deletion longer than the allowed query gap is not bridged."""
        ref = random_dna(600, seed=35)
        query = ref[100:250] + ref[270:420]
        scorer = GappedScorer()

        bridged = scorer.best_shift(ref, query, center=100, max_shift=50, min_overlap=100)
        limited = scorer.best_shift(ref, query, center=100, max_shift=50, min_overlap=100, max_query_gap=10)

        assert bridged.query_gaps == 20
        assert limited.query_gaps == 0
        assert limited.homology < 0.85

    def test_short_windows_fall_back_to_ungapped(self):
        best = GappedScorer().best_shift("AAAAGGAAAA", "AAAA", center=3, max_shift=3, min_overlap=4)
        assert best.shift == -3

    def test_empty_inputs(self):
        assert GappedScorer().best_shift("", "ACGT", center=0, max_shift=2, min_overlap=1) is None

    def test_invalid_seed_length(self):
        with pytest.raises(ValueError):
            GappedScorer(seed_length=0)


class TestAlignedPairs:
    """Test expansion of column runs into paired indices."""

    def test_mixed_ops(self):
        ref_idx, query_idx = aligned_pairs((('M', 2), ('I', 1), ('M', 1), ('D', 2), ('M', 1)), 10, 0)

        assert ref_idx.tolist() == [10, 11, 12, 15]
        assert query_idx.tolist() == [0, 1, 3, 4]

    def test_empty(self):
        ref_idx, query_idx = aligned_pairs((), 5, 5)
        assert len(ref_idx) == 0
        assert len(query_idx) == 0

    def test_unknown_op(self):
        with pytest.raises(ValueError):
            aligned_pairs((('X', 1),), 0, 0)


class TestWindowAlignment:
    """Test ranking of candidate placements."""

    def test_rank_key_order(self):
        better = WindowAlignment(shift=0, ref_start=0, query_start=0, length=100, matches=90)
        worse = WindowAlignment(shift=0, ref_start=0, query_start=0, length=200, matches=170)
        assert better.rank_key() > worse.rank_key()

    def test_empty_homology(self):
        assert WindowAlignment(shift=0, ref_start=0, query_start=0, length=0, matches=0).homology == 0.0

    def test_gapped_ends(self):
        window = WindowAlignment(
            shift=0, ref_start=5, query_start=0, length=10, matches=8,
            ops=(('M', 4), ('I', 2), ('M', 4)), ref_gaps=2,
        )
        assert window.ref_end == 13
        assert window.query_end == 10
        assert window.cigar == (('M', 4), ('I', 2), ('M', 4))


class TestFindDisattended:
    """Test detection of long mismatch runs."""

    def test_run_above_tolerance(self):
        assert find_disattended("AAAAAAAAAA", "AAACCCCAAA", tolerance=3) == [3]

    def test_run_within_tolerance(self):
        assert find_disattended("AAAAAAAAAA", "AAACCCCAAA", tolerance=4) == []

    def test_placeholder_is_neutral(self):
        """An N inside a run neither breaks it nor lengthens it."""
        assert find_disattended("AAAAAAAAAA", "AACCNCCAAA", tolerance=3) == [2]
        assert find_disattended("AAAAAAAAAA", "AACCNCCAAA", tolerance=4) == []

    def test_multiple_runs(self):
        ref = "A" * 20
        query = "CCA" + "A" * 5 + "CCC" + "A" * 9
        assert find_disattended(ref, query, tolerance=1) == [0, 8]

    def test_identical_windows(self):
        assert find_disattended("ACGT", "ACGT", tolerance=0) == []

    def test_empty_windows(self):
        assert find_disattended("", "", tolerance=0) == []

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            find_disattended("ACGT", "ACG", tolerance=0)

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
