#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Pytest configuration and shared fixtures.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import random

import pytest

from pairweaver.io.contig_pool import ContigPool, RefVector
from pairweaver.pctg.builder import PctgBuilder
from pairweaver.pctg.data_structures import Contig


def _random_dna(length: int, seed: int) -> str:
    rng = random.Random(seed)
    return ''.join(rng.choice('ACGT') for _ in range(length))


@pytest.fixture
def random_dna():
    """Factory for deterministic random DNA: random_dna(length, seed)."""
    return _random_dna


@pytest.fixture
def genome():
    """3 kb reference genome both assemblies are cut from."""
    return _random_dna(3000, seed=7)


@pytest.fixture
def make_builder():
    """
    Factory building a configured PctgBuilder.

    Usage: make_builder({0: "ACGT..."}, {0: Contig(...)}, config=...)
    Values may be plain sequences or Contig objects.
    """
    def _make(masters, slaves, config=None):
        def to_pool(entries, name):
            contigs = []
            names = []
            for ctg_id in sorted(entries):
                value = entries[ctg_id]
                ctg = value if isinstance(value, Contig) else Contig(id=ctg_id, sequence=value)
                contigs.append(ctg)
                names.append(f"{name}_{ctg_id}")
            return ContigPool(contigs, name=name), RefVector(names)

        master_pool, master_refs = to_pool(masters, 'master')
        slave_pool, slave_refs = to_pool(slaves, 'slave')
        return PctgBuilder(master_pool, slave_pool, master_refs, slave_refs, config=config)

    return _make


@pytest.fixture
def seed_builder(genome, make_builder):
    """
    Master contig of 500 bp and slave contig of 520 bp sharing M[100-400] / S[90-390].
    """
    master = genome[10:510]
    slave = genome[20:540]
    return make_builder({0: master}, {0: slave})


@pytest.fixture
def root_logger():
    """Root logger whose handlers and level are restored after the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    # Detach pytest's own capture handlers so tests only see handlers they set up
    for handler in handlers:
        if type(handler).__module__.startswith('_pytest'):
            root.removeHandler(handler)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
