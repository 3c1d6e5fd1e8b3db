#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Merger - drives PctgBuilder over every block of two assemblies.

Algorithm:
  1. Group blocks by (master contig, slave contig); keep the orientation
     with the most supporting reads and reduce each group to its first and
     last block.
  2. Split the contig pairs into chains (connected components of the
     master/slave contig graph).
  3. For each chain, seed a paired contig with add_first_block_to and grow
     it with extend_by_block, best-supported pairs first. Pairs whose
     contigs are in no paired contig yet seed a new one once nothing else
     can be added.
  4. Contigs whose merge was rejected and master contigs without any block
     become standalone paired contigs.

Chains never share a paired contig, so they can run on separate threads.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from ..errors import InvalidStateError
from .builder import PctgBuilder
from .data_structures import Block, PairedContig

logger = logging.getLogger(__name__)

# (is_master, contig id)
CtgKey = Tuple[bool, int]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlockPair:
    """First and last block shared by one master/slave contig pair."""
    first: Block
    last: Block
    num_reads: int = 0

    @property
    def master_key(self) -> CtgKey:
        return (True, self.first.master_ctg_id)

    @property
    def slave_key(self) -> CtgKey:
        return (False, self.first.slave_ctg_id)


@dataclass
class MergeSummary:
    """Statistics from merging two assemblies."""
    total_pctgs: int = 0
    merged_pctgs: int = 0          # paired contigs holding 2+ contigs
    standalone_masters: int = 0
    standalone_slaves: int = 0
    rejected_merges: int = 0
    reconciled_bases: int = 0
    paired_contigs: List[PairedContig] = field(default_factory=list)


@dataclass
class _ChainResult:
    pctgs: List[PairedContig] = field(default_factory=list)
    rejected_merges: int = 0
    reconciled_bases: int = 0
    standalone: List[CtgKey] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def pair_blocks(blocks: Iterable[Block]) -> List[BlockPair]:
    """
    Reduce blocks to one first/last pair per master/slave contig pair.

    Returns:
        Pairs sorted by decreasing read support, then by contig IDs
    """
    groups: Dict[Tuple[int, int, bool], List[Block]] = defaultdict(list)
    for block in blocks:
        groups[(block.master_ctg_id, block.slave_ctg_id, block.is_reversed)].append(block)

    best: Dict[Tuple[int, int], List[Block]] = {}
    for (master_id, slave_id, _), group in groups.items():
        current = best.get((master_id, slave_id))
        if current is None or _support(group) > _support(current):
            best[(master_id, slave_id)] = group

    pairs = []
    for group in best.values():
        first = min(group, key=lambda b: (b.master_frame.begin, b.master_frame.end))
        last = max(group, key=lambda b: (b.master_frame.end, b.master_frame.begin))
        pairs.append(BlockPair(first=first, last=last, num_reads=_support(group)))

    pairs.sort(key=lambda p: (-p.num_reads, p.first.master_ctg_id, p.first.slave_ctg_id))
    return pairs


def _support(group: List[Block]) -> int:
    return sum(b.num_reads for b in group) or len(group)


def split_chains(pairs: List[BlockPair]) -> List[List[BlockPair]]:
    """Group pairs into connected components over their contigs (order kept)."""
    parent: Dict[CtgKey, CtgKey] = {}

    def find(key: CtgKey) -> CtgKey:
        parent.setdefault(key, key)
        while parent[key] != key:
            parent[key] = parent[parent[key]]
            key = parent[key]
        return key

    for pair in pairs:
        a, b = find(pair.master_key), find(pair.slave_key)
        if a != b:
            parent[b] = a

    chains: Dict[CtgKey, List[BlockPair]] = {}
    for pair in pairs:
        chains.setdefault(find(pair.master_key), []).append(pair)
    return list(chains.values())


# ---------------------------------------------------------------------------
# Main merger
# ---------------------------------------------------------------------------

class PctgMerger:
    """
    Merge two assemblies into paired contigs.

    Usage
    -----
    >>> merger = PctgMerger(builder, workers=4)
    >>> summary = merger.merge_all(blocks)
    """

    def __init__(self, builder: PctgBuilder, workers: int = 1, include_unpaired_slaves: bool = False):
        """
        Args:
            builder: Fully configured PctgBuilder
            workers: Number of chains merged concurrently
            include_unpaired_slaves: Also emit slave contigs without any block
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.builder = builder
        self.workers = workers
        self.include_unpaired_slaves = include_unpaired_slaves

    @classmethod
    def from_config(cls, builder: PctgBuilder, config: Dict[str, Any]) -> 'PctgMerger':
        """Create a merger from the ``execution`` section of a configuration dict."""
        execution = config.get('execution', {})
        return cls(
            builder,
            workers=execution.get('workers', 1),
            include_unpaired_slaves=execution.get('include_unpaired_slaves', False),
        )

    def merge_all(self, blocks: Iterable[Block]) -> MergeSummary:
        """
        Merge every block chain and emit the remaining contigs.

        Args:
            blocks: Blocks of agreement between the two assemblies

        Returns:
            MergeSummary whose paired contigs are numbered from 0
        """
        pairs = pair_blocks(blocks)
        chains = split_chains(pairs)
        logger.info(f"Merging {len(pairs)} contig pairs in {len(chains)} chains "
                    f"({self.workers} workers)")

        if self.workers > 1 and len(chains) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                results = list(executor.map(self.merge_chain, chains))
        else:
            results = [self.merge_chain(chain) for chain in chains]

        summary = MergeSummary()
        blocked: Set[CtgKey] = set()
        for chain in chains:
            for pair in chain:
                blocked.add(pair.master_key)
                blocked.add(pair.slave_key)

        for result in results:
            summary.paired_contigs.extend(result.pctgs)
            summary.rejected_merges += result.rejected_merges
            summary.reconciled_bases += result.reconciled_bases
            for is_master, ctg_id in result.standalone:
                summary.paired_contigs.append(self.builder.init_by_contig(0, ctg_id, is_master))
                if is_master:
                    summary.standalone_masters += 1
                else:
                    summary.standalone_slaves += 1

        for ctg_id in self.builder.master_pool.ids():
            if (True, ctg_id) not in blocked:
                summary.paired_contigs.append(self.builder.init_by_contig(0, ctg_id))
                summary.standalone_masters += 1

        if self.include_unpaired_slaves:
            for ctg_id in self.builder.slave_pool.ids():
                if (False, ctg_id) not in blocked:
                    summary.paired_contigs.append(self.builder.init_by_contig(0, ctg_id, is_master=False))
                    summary.standalone_slaves += 1

        for pctg_id, pctg in enumerate(summary.paired_contigs):
            pctg.id = pctg_id
        summary.total_pctgs = len(summary.paired_contigs)
        summary.merged_pctgs = sum(
            1 for p in summary.paired_contigs if p.num_master_ctgs + p.num_slave_ctgs > 1
        )

        logger.info(
            f"Built {summary.total_pctgs} paired contigs: {summary.merged_pctgs} merged, "
            f"{summary.standalone_masters} master-only, {summary.standalone_slaves} slave-only, "
            f"{summary.rejected_merges} rejected merges"
        )
        return summary

    def merge_chain(self, chain: List[BlockPair]) -> _ChainResult:
        """Build the paired contigs of one chain of contig pairs."""
        result = _ChainResult()
        placed: Dict[CtgKey, int] = {}
        rejected: Set[CtgKey] = set()
        queue = list(chain)

        while queue:
            progressed = False
            for pair in list(queue):
                at_master = placed.get(pair.master_key)
                at_slave = placed.get(pair.slave_key)
                if at_master is None and at_slave is None:
                    continue

                queue.remove(pair)
                progressed = True
                if at_master is not None and at_slave is not None and at_master != at_slave:
                    # A new paired contig is only seeded once no queued pair touches a
                    # placed contig, so a pair cannot straddle two paired contigs
                    raise InvalidStateError(
                        f"Contig pair ({pair.first.master_ctg_id}, {pair.first.slave_ctg_id}) "
                        f"spans paired contigs {at_master} and {at_slave}"
                    )

                index = at_master if at_master is not None else at_slave
                missing = None
                if at_master is None:
                    missing = pair.master_key
                elif at_slave is None:
                    missing = pair.slave_key

                merge = self.builder.extend_by_block(result.pctgs[index], pair.first, pair.last)
                if merge.rejected:
                    result.rejected_merges += 1
                    rejected.add(missing)
                    continue

                result.pctgs[index] = merge.pctg
                result.reconciled_bases += merge.changed_bases
                if missing is not None:
                    placed[missing] = index

            if not progressed:
                # Nothing touches an existing paired contig: seed a new one
                pair = queue.pop(0)
                index = len(result.pctgs)
                seed = self.builder.add_first_block_to(PairedContig(id=index), pair.first, pair.last)
                result.pctgs.append(seed.pctg)
                placed[pair.master_key] = index
                if seed.rejected:
                    result.rejected_merges += 1
                    rejected.add(pair.slave_key)
                else:
                    placed[pair.slave_key] = index
                    result.reconciled_bases += seed.changed_bases

        result.standalone = sorted(key for key in rejected if key not in placed)
        return result


__all__ = [
    'BlockPair',
    'MergeSummary',
    'PctgMerger',
    'pair_blocks',
    'split_chains',
]

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
