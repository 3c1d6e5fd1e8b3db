#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Tests for contig pools and reference-name tables.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import gzip

import pytest

from pairweaver.errors import ContigNotFoundError, PairWeaverError
from pairweaver.io import ContigPool, RefVector
from pairweaver.pctg.data_structures import Contig
from pairweaver.utils.sequence_utils import DEFAULT_PHRED


class TestRefVector:
    """Test ID -> name lookup."""

    def test_names(self):
        refs = RefVector(["chr1_ctg", "chr2_ctg"])
        assert refs.name_of(1) == "chr2_ctg"
        assert len(refs) == 2

    def test_unknown_id(self):
        assert RefVector().name_of(7) == "ctg_7"

    def test_append_returns_id(self):
        refs = RefVector()
        assert refs.append("a") == 0
        assert refs.append("b") == 1
        assert list(refs) == ["a", "b"]


class TestContigPool:
    """Test in-memory contig storage."""

    def test_lookup(self):
        pool = ContigPool([Contig(0, "ACGT"), Contig(5, "GGCC")], name="master")
        assert pool.lookup(5).sequence == "GGCC"
        assert 5 in pool and 1 not in pool
        assert pool.ids() == [0, 5]
        assert pool.total_length() == 8

    def test_missing_contig(self):
        pool = ContigPool(name="slave")
        with pytest.raises(ContigNotFoundError, match="slave pool") as excinfo:
            pool.lookup(3)
        assert isinstance(excinfo.value, PairWeaverError)
        assert isinstance(excinfo.value, KeyError)

    def test_duplicate_id(self):
        pool = ContigPool([Contig(0, "ACGT")])
        with pytest.raises(ValueError):
            pool.add(Contig(0, "TTTT"))

    def test_from_records(self):
        pool, refs = ContigPool.from_records([("tigA", "acgt"), ("tigB", "GG")], name="master")

        assert len(pool) == 2
        assert pool.lookup(0).sequence == "ACGT"
        assert pool.lookup(1).name == "tigB"
        assert refs.name_of(1) == "tigB"


class TestLoadAssembly:
    """Test FASTA/FASTQ loading."""

    def test_fasta(self, tmp_path):
        path = tmp_path / "asm.fasta"
        path.write_text(">ctg1\nACGTACGT\nACGT\n>ctg2\nTTTT\n")

        pool, refs = ContigPool.from_fasta(path, name="master")

        assert len(pool) == 2
        assert pool.lookup(0).sequence == "ACGTACGTACGT"
        assert pool.lookup(0).quality.tolist() == [DEFAULT_PHRED] * 12
        assert refs.name_of(1) == "ctg2"
        assert pool.name == "master"

    def test_fastq_keeps_quality(self, tmp_path):
        path = tmp_path / "asm.fastq"
        path.write_text("@ctg1\nACGT\n+\nI5#I\n")

        pool, _ = ContigPool.from_fasta(path)

        assert pool.lookup(0).quality.tolist() == [40, 20, 2, 40]

    def test_gzipped_fasta(self, tmp_path):
        path = tmp_path / "asm.fa.gz"
        with gzip.open(path, 'wt') as f:
            f.write(">ctg1\nACGT\n")

        pool, refs = ContigPool.from_fasta(path)

        assert pool.lookup(0).sequence == "ACGT"
        assert refs.name_of(0) == "ctg1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ContigPool.from_fasta(tmp_path / "absent.fasta")

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
