#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Tests for the assembly-wide merge driver.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from pairweaver.config import load_config
from pairweaver.pctg.data_structures import Block, Frame
from pairweaver.pctg.merger import BlockPair, PctgMerger, pair_blocks, split_chains


def _block(master_id, m_begin, m_end, slave_id, s_begin, s_end, reads=10, strand='+'):
    return Block(
        master_frame=Frame(master_id, m_begin, m_end, '+'),
        slave_frame=Frame(slave_id, s_begin, s_end, strand),
        num_reads=reads,
    )


@pytest.fixture
def assemblies(genome, random_dna):
    """
    Masters M0, M1 chained through slave S0, plus an unrelated M3/S1 pair
    and a master M2 without any block.
    """
    masters = {
        0: genome[0:800],
        1: genome[1500:2300],
        2: random_dna(300, seed=21),
        3: genome[2400:2900],
    }
    slaves = {
        0: genome[600:1700],
        1: random_dna(500, seed=99),
        2: random_dna(200, seed=22),
    }
    blocks = [
        _block(0, 600, 799, 0, 0, 199, reads=20),
        _block(1, 0, 199, 0, 900, 1099, reads=10),
        _block(3, 0, 199, 1, 0, 199, reads=5),
    ]
    return masters, slaves, blocks


class TestPairBlocks:
    """Test reduction of blocks to first/last pairs."""

    def test_first_and_last(self):
        blocks = [
            _block(0, 300, 399, 1, 300, 399),
            _block(0, 100, 199, 1, 100, 199),
            _block(0, 500, 599, 1, 500, 599),
        ]
        pairs = pair_blocks(blocks)

        assert len(pairs) == 1
        assert pairs[0].first.master_frame.begin == 100
        assert pairs[0].last.master_frame.end == 599
        assert pairs[0].num_reads == 30

    def test_orientation_with_most_reads_wins(self):
        blocks = [
            _block(0, 0, 99, 1, 0, 99, reads=3),
            _block(0, 200, 299, 1, 200, 299, reads=3),
            _block(0, 400, 499, 1, 0, 99, reads=50, strand='-'),
        ]
        pairs = pair_blocks(blocks)

        assert len(pairs) == 1
        assert pairs[0].first.is_reversed
        assert pairs[0].num_reads == 50

    def test_sorted_by_support(self):
        blocks = [
            _block(0, 0, 99, 0, 0, 99, reads=1),
            _block(1, 0, 99, 1, 0, 99, reads=9),
            _block(2, 0, 99, 2, 0, 99, reads=9),
        ]
        order = [(p.first.master_ctg_id, p.num_reads) for p in pair_blocks(blocks)]
        assert order == [(1, 9), (2, 9), (0, 1)]


class TestSplitChains:
    """Test grouping of contig pairs into independent chains."""

    def test_components(self):
        def pair(m, s):
            block = _block(m, 0, 99, s, 0, 99)
            return BlockPair(block, block, 1)

        pairs = [pair(0, 0), pair(1, 1), pair(2, 0), pair(1, 2), pair(3, 3)]
        chains = split_chains(pairs)

        members = [sorted((p.first.master_ctg_id, p.first.slave_ctg_id) for p in c) for c in chains]
        assert members == [
            [(0, 0), (2, 0)],
            [(1, 1), (1, 2)],
            [(3, 3)],
        ]

    def test_empty(self):
        assert split_chains([]) == []


class TestPctgMerger:
    """Test merging of whole assemblies."""

    def test_merge_all(self, assemblies, make_builder, genome):
        masters, slaves, blocks = assemblies
        merger = PctgMerger(make_builder(masters, slaves))

        summary = merger.merge_all(blocks)

        assert summary.total_pctgs == 4
        assert summary.merged_pctgs == 1
        assert summary.standalone_masters == 1
        assert summary.standalone_slaves == 1
        assert summary.rejected_merges == 1
        assert [p.id for p in summary.paired_contigs] == [0, 1, 2, 3]

        merged = summary.paired_contigs[0]
        assert merged.sequence == genome[0:2300]
        assert merged.get_ctg_info(1, True).position == 1500
        assert merged.get_ctg_info(0, False).position == 600
        for pctg in summary.paired_contigs:
            pctg.check_bounds()

    def test_rejected_slave_is_emitted_alone(self, assemblies, make_builder):
        masters, slaves, blocks = assemblies
        summary = PctgMerger(make_builder(masters, slaves)).merge_all(blocks)

        slave_only = [p for p in summary.paired_contigs if p.num_master_ctgs == 0]
        assert len(slave_only) == 1
        assert slave_only[0].contains_slave_ctg(1)
        assert slave_only[0].sequence == slaves[1]

    def test_every_master_emitted_once(self, assemblies, make_builder):
        masters, slaves, blocks = assemblies
        summary = PctgMerger(make_builder(masters, slaves)).merge_all(blocks)

        seen = [ctg_id for p in summary.paired_contigs for ctg_id in p.master_ctgs]
        assert sorted(seen) == sorted(masters)

    def test_include_unpaired_slaves(self, assemblies, make_builder):
        masters, slaves, blocks = assemblies
        merger = PctgMerger(make_builder(masters, slaves), include_unpaired_slaves=True)

        summary = merger.merge_all(blocks)

        assert summary.standalone_slaves == 2
        assert summary.total_pctgs == 5

    def test_parallel_matches_serial(self, assemblies, make_builder):
        masters, slaves, blocks = assemblies
        serial = PctgMerger(make_builder(masters, slaves)).merge_all(blocks)
        parallel = PctgMerger(make_builder(masters, slaves), workers=2).merge_all(blocks)

        assert [p.sequence for p in parallel.paired_contigs] == [p.sequence for p in serial.paired_contigs]
        assert parallel.rejected_merges == serial.rejected_merges

    def test_merges_pair_with_indel(self, genome, make_builder):
        """A slave one base short of the master inside the block still joins it."""
        masters = {0: genome[0:800]}
        slaves = {0: genome[600:700] + genome[701:1700]}
        blocks = [_block(0, 600, 799, 0, 0, 198, reads=20)]

        summary = PctgMerger(make_builder(masters, slaves)).merge_all(blocks)

        assert summary.total_pctgs == 1
        assert summary.merged_pctgs == 1
        assert summary.rejected_merges == 0
        merged = summary.paired_contigs[0]
        assert merged.sequence == genome[0:1700]
        assert merged.get_ctg_info(0, False).ctg_gaps == 1
        merged.check_bounds()

    def test_pairs_never_straddle_paired_contigs(self, genome, make_builder):
        """
        M0-S0-M1-S1 chained, plus a spurious M0/S1 pair: everything grows
        one paired contig, and the spurious pair is only a rejected merge.
        """
        masters = {0: genome[0:800], 1: genome[1500:2300]}
        slaves = {0: genome[600:1700], 1: genome[2100:2900]}
        blocks = [
            _block(0, 600, 799, 0, 0, 199, reads=30),
            _block(1, 600, 799, 1, 0, 199, reads=20),
            _block(1, 0, 199, 0, 900, 1099, reads=10),
            _block(0, 0, 199, 1, 0, 199, reads=5),
        ]

        summary = PctgMerger(make_builder(masters, slaves)).merge_all(blocks)

        assert summary.total_pctgs == 1
        assert summary.rejected_merges == 1
        merged = summary.paired_contigs[0]
        assert merged.sequence == genome[0:2900]
        assert sorted(merged.master_ctgs) == [0, 1]
        assert sorted(merged.slave_ctgs) == [0, 1]

    def test_no_blocks(self, make_builder, genome):
        builder = make_builder({0: genome[:100], 1: genome[100:200]}, {0: genome[:100]})
        summary = PctgMerger(builder).merge_all([])

        assert summary.total_pctgs == 2
        assert summary.standalone_masters == 2
        assert summary.merged_pctgs == 0

    def test_from_config(self, make_builder):
        config = load_config()
        config['execution']['workers'] = 3
        config['execution']['include_unpaired_slaves'] = True

        merger = PctgMerger.from_config(make_builder({}, {}), config)

        assert merger.workers == 3
        assert merger.include_unpaired_slaves

    def test_invalid_workers(self, make_builder):
        with pytest.raises(ValueError):
            PctgMerger(make_builder({}, {}), workers=0)

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
