#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Window alignment scoring used by the paired-contig alignment search.

Algorithm (UngappedScorer):
  1. Encode both windows as uint8 arrays.
  2. For every shift in [-max_shift, max_shift], place the query at
     ``center + shift`` on the reference and compare the overlapping bases.
  3. Skip placements whose overlap is shorter than ``min_overlap``.
  4. Keep the placement with the best (homology, overlap, -|shift|, -shift)
     key, i.e. ties go to the longer overlap, then the smaller shift, then
     the negative shift.

Algorithm (GappedScorer):
  1. Collect maximal exact-match runs (seeds) of at least ``seed_length``
     bases on every diagonal of the same band.
  2. Chain seeds that advance on both windows. A link pays one per bridged
     column, plus ``gap_open`` and the indel size when it changes diagonal.
  3. Stretch the best chain ungapped to the window boundaries and count its
     matches over every column; gap columns count as non-matching.
  4. Keep the chain only when it outranks the ungapped placement, so an
     alignment without indels is reported exactly as by UngappedScorer.

Placeholder bases (N) never count as matches.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..utils.sequence_utils import PLACEHOLDER_BASE, encode_bases

logger = logging.getLogger(__name__)

_PLACEHOLDER_CODE = ord(PLACEHOLDER_BASE)

# (op, count) runs: 'M' aligned pair, 'I' query base only, 'D' reference base only
Cigar = Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class WindowAlignment:
    """Best placement of a query window on a reference window."""
    shift: int
    ref_start: int      # first aligned index in the reference window
    query_start: int    # first aligned index in the query window
    length: int         # alignment columns, gap columns included
    matches: int
    ops: Cigar = ()
    ref_gaps: int = 0   # 'I' columns
    query_gaps: int = 0  # 'D' columns

    @property
    def homology(self) -> float:
        return self.matches / self.length if self.length > 0 else 0.0

    @property
    def cigar(self) -> Cigar:
        if self.ops:
            return self.ops
        return (('M', self.length),) if self.length else ()

    @property
    def ref_end(self) -> int:
        return self.ref_start + self.length - self.ref_gaps

    @property
    def query_end(self) -> int:
        return self.query_start + self.length - self.query_gaps

    def rank_key(self) -> Tuple[float, int, int, int]:
        """Ordering key; the larger key is the better alignment."""
        return (self.homology, self.length, -abs(self.shift), -self.shift)


class AlignmentScorer(Protocol):
    """Alignment primitive consumed by PctgBuilder.find_best_alignment()."""

    def best_shift(
        self,
        ref: str,
        query: str,
        center: int,
        max_shift: int,
        min_overlap: int,
        max_ref_gap: Optional[int] = None,
        max_query_gap: Optional[int] = None,
    ) -> Optional[WindowAlignment]:
        ...


class UngappedScorer:
    """
    Score every diagonal within a band around an expected placement.

    Cost is proportional to ``(window length) x (2 * max_shift + 1)``.
    """

    def best_shift(
        self,
        ref: str,
        query: str,
        center: int,
        max_shift: int,
        min_overlap: int,
        max_ref_gap: Optional[int] = None,
        max_query_gap: Optional[int] = None,
    ) -> Optional[WindowAlignment]:
        """
        Find the best placement of *query* on *ref*.

        Args:
            ref: Reference window (paired-contig bases)
            query: Query window (contig bases)
            center: Index of *ref* where query[0] is expected
            max_shift: Largest shift explored on each side of *center*
            min_overlap: Shortest overlap considered a candidate
            max_ref_gap: Unused; ungapped placements have no gap columns
            max_query_gap: Unused; ungapped placements have no gap columns

        Returns:
            WindowAlignment, or None if no placement overlaps enough
        """
        if not ref or not query:
            return None

        ref_codes = encode_bases(ref)
        query_codes = encode_bases(query)
        ref_valid = ref_codes != _PLACEHOLDER_CODE
        min_overlap = max(1, min_overlap)

        best: Optional[WindowAlignment] = None
        for shift in range(-max_shift, max_shift + 1):
            q0 = center + shift
            lo = max(0, q0)
            hi = min(len(ref_codes), q0 + len(query_codes))
            if hi - lo < min_overlap:
                continue

            r = ref_codes[lo:hi]
            q = query_codes[lo - q0:hi - q0]
            matches = int(np.count_nonzero((r == q) & ref_valid[lo:hi]))

            candidate = WindowAlignment(
                shift=shift,
                ref_start=lo,
                query_start=lo - q0,
                length=hi - lo,
                matches=matches,
            )
            if best is None or candidate.rank_key() > best.rank_key():
                best = candidate

        if best is not None:
            logger.debug(
                f"Best shift {best.shift}: {best.matches}/{best.length} matches "
                f"over {2 * max_shift + 1} shifts"
            )
        return best


class _Seed(NamedTuple):
    query_start: int
    ref_start: int
    length: int

    @property
    def query_end(self) -> int:
        return self.query_start + self.length

    @property
    def ref_end(self) -> int:
        return self.ref_start + self.length

    @property
    def diagonal(self) -> int:
        return self.ref_start - self.query_start


class GappedScorer:
    """
    Chain exact seeds across the diagonals of the band to absorb indels.

    A query that carries an insertion or deletion relative to the reference
    sits on two diagonals; scoring each diagonal on its own splits the
    overlap and sinks the homology. Chaining the seeds of both diagonals
    recovers one alignment whose gap columns count against the homology.

    Usage
    -----
    >>> scorer = GappedScorer(seed_length=12)
    >>> window = scorer.best_shift(ref, query, center=100, max_shift=300, min_overlap=100)
    >>> window.cigar
    (('M', 110), ('D', 1), ('M', 190))
    """

    def __init__(self, seed_length: int = 12, gap_open: int = 2, max_lookback: int = 64):
        """
        Args:
            seed_length: Shortest exact-match run used as a chain anchor
            gap_open: Chain penalty for changing diagonal, on top of the indel size
            max_lookback: Number of preceding seeds considered for each link
        """
        if seed_length < 1:
            raise ValueError(f"seed_length must be >= 1, got {seed_length}")
        if max_lookback < 1:
            raise ValueError(f"max_lookback must be >= 1, got {max_lookback}")
        self.seed_length = seed_length
        self.gap_open = gap_open
        self.max_lookback = max_lookback
        self._ungapped = UngappedScorer()

    def best_shift(
        self,
        ref: str,
        query: str,
        center: int,
        max_shift: int,
        min_overlap: int,
        max_ref_gap: Optional[int] = None,
        max_query_gap: Optional[int] = None,
    ) -> Optional[WindowAlignment]:
        """
        Find the best, possibly gapped, alignment of *query* on *ref*.

        Args:
            ref: Reference window (paired-contig bases)
            query: Query window (contig bases)
            center: Index of *ref* where query[0] is expected
            max_shift: Largest shift explored on each side of *center*
            min_overlap: Fewest alignment columns considered a candidate
            max_ref_gap: Most 'I' columns allowed (defaults to *max_shift*)
            max_query_gap: Most 'D' columns allowed (defaults to *max_shift*)

        Returns:
            WindowAlignment, or None if no candidate is long enough
        """
        best = self._ungapped.best_shift(ref, query, center, max_shift, min_overlap)
        if not ref or not query:
            return best

        max_ref_gap = max_shift if max_ref_gap is None else max_ref_gap
        max_query_gap = max_shift if max_query_gap is None else max_query_gap

        ref_codes = encode_bases(ref)
        query_codes = encode_bases(query)
        ref_valid = ref_codes != _PLACEHOLDER_CODE

        seeds = self._find_seeds(ref_codes, query_codes, ref_valid, center, max_shift)
        chain = self._best_chain(seeds, max_ref_gap, max_query_gap)
        if len(chain) < 2:
            # A single seed stretched to the boundaries is an ungapped placement
            return best

        candidate = _stretch(chain, ref_codes, query_codes, ref_valid, center)
        if (candidate.length < max(1, min_overlap)
                or candidate.ref_gaps > max_ref_gap
                or candidate.query_gaps > max_query_gap):
            return best
        if best is not None and candidate.rank_key() <= best.rank_key():
            return best

        logger.debug(
            f"Gapped alignment over {len(chain)} seeds: {candidate.matches}/{candidate.length} "
            f"matches, {candidate.ref_gaps} ref gaps, {candidate.query_gaps} query gaps"
        )
        return candidate

    # -----------------------------------------------------------------
    # Seeding and chaining
    # -----------------------------------------------------------------

    def _find_seeds(
        self,
        ref_codes: np.ndarray,
        query_codes: np.ndarray,
        ref_valid: np.ndarray,
        center: int,
        max_shift: int,
    ) -> List[_Seed]:
        seeds = []
        for shift in range(-max_shift, max_shift + 1):
            q0 = center + shift
            lo = max(0, q0)
            hi = min(len(ref_codes), q0 + len(query_codes))
            if hi - lo < self.seed_length:
                continue

            equal = (ref_codes[lo:hi] == query_codes[lo - q0:hi - q0]) & ref_valid[lo:hi]
            edges = np.diff(np.concatenate(([0], equal.astype(np.int8), [0])))
            starts = np.flatnonzero(edges == 1)
            ends = np.flatnonzero(edges == -1)
            for s, e in zip(starts, ends):
                if e - s >= self.seed_length:
                    seeds.append(_Seed(int(lo - q0 + s), int(lo + s), int(e - s)))
        return seeds

    def _best_chain(self, seeds: List[_Seed], max_ref_gap: int, max_query_gap: int) -> List[_Seed]:
        """Highest-scoring chain of seeds, each trimmed so consecutive seeds never overlap."""
        if not seeds:
            return []
        seeds = sorted(seeds)

        scores = [0] * len(seeds)
        links = [(-1, 0)] * len(seeds)   # (previous seed, bases trimmed from this seed)
        for j, cur in enumerate(seeds):
            scores[j] = cur.length
            for i in range(max(0, j - self.max_lookback), j):
                prev = seeds[i]
                trim = max(0, prev.query_end - cur.query_start, prev.ref_end - cur.ref_start)
                if trim >= cur.length:
                    continue
                # > 0: reference bases the query lacks ('D'), < 0: query bases the reference lacks ('I')
                indel = cur.diagonal - prev.diagonal
                if indel > max_query_gap or -indel > max_ref_gap:
                    continue
                bridged = min(cur.query_start + trim - prev.query_end,
                              cur.ref_start + trim - prev.ref_end)
                score = scores[i] + cur.length - trim - bridged
                if indel:
                    score -= self.gap_open + abs(indel)
                if score > scores[j]:
                    scores[j] = score
                    links[j] = (i, trim)

        chain = []
        k = max(range(len(seeds)), key=lambda idx: scores[idx])
        while k >= 0:
            previous, trim = links[k]
            seed = seeds[k]
            chain.append(_Seed(seed.query_start + trim, seed.ref_start + trim, seed.length - trim))
            k = previous
        chain.reverse()
        return chain


def _stretch(
    chain: Sequence[_Seed],
    ref_codes: np.ndarray,
    query_codes: np.ndarray,
    ref_valid: np.ndarray,
    center: int,
) -> WindowAlignment:
    """Turn a seed chain into a full alignment running to the window boundaries."""
    first, last = chain[0], chain[-1]
    lead = min(first.query_start, first.ref_start)
    tail = min(len(query_codes) - last.query_end, len(ref_codes) - last.ref_end)

    ops: List[Tuple[str, int]] = []
    _push(ops, 'M', lead + first.length)
    for prev, cur in zip(chain, chain[1:]):
        bridge_q = cur.query_start - prev.query_end
        bridge_r = cur.ref_start - prev.ref_end
        _push(ops, 'M', min(bridge_q, bridge_r))
        if bridge_q > bridge_r:
            _push(ops, 'I', bridge_q - bridge_r)
        elif bridge_r > bridge_q:
            _push(ops, 'D', bridge_r - bridge_q)
        _push(ops, 'M', cur.length)
    _push(ops, 'M', tail)

    ref_start = first.ref_start - lead
    query_start = first.query_start - lead
    ref_idx, query_idx = aligned_pairs(ops, ref_start, query_start)
    matches = int(np.count_nonzero((ref_codes[ref_idx] == query_codes[query_idx]) & ref_valid[ref_idx]))

    return WindowAlignment(
        shift=ref_start - query_start - center,
        ref_start=ref_start,
        query_start=query_start,
        length=sum(count for _, count in ops),
        matches=matches,
        ops=tuple(ops),
        ref_gaps=sum(count for op, count in ops if op == 'I'),
        query_gaps=sum(count for op, count in ops if op == 'D'),
    )


def _push(ops: List[Tuple[str, int]], op: str, count: int):
    if count <= 0:
        return
    if ops and ops[-1][0] == op:
        ops[-1] = (op, ops[-1][1] + count)
    else:
        ops.append((op, count))


def aligned_pairs(ops: Cigar, ref_start: int, query_start: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Indices of the paired ('M') columns of an alignment.

    Args:
        ops: (op, count) runs as in WindowAlignment.cigar
        ref_start: Reference index of the first column
        query_start: Query index of the first column

    Returns:
        (reference indices, query indices), one entry per 'M' column
    """
    ref_parts = []
    query_parts = []
    r, q = ref_start, query_start
    for op, count in ops:
        if op == 'M':
            ref_parts.append(np.arange(r, r + count))
            query_parts.append(np.arange(q, q + count))
            r += count
            q += count
        elif op == 'I':
            q += count
        elif op == 'D':
            r += count
        else:
            raise ValueError(f"Unknown alignment op {op!r}")
    if not ref_parts:
        empty = np.array([], dtype=np.int64)
        return empty, empty
    return np.concatenate(ref_parts), np.concatenate(query_parts)


def find_disattended(ref: str, query: str, tolerance: int) -> List[int]:
    """
    Locate disattended constraints between two aligned, equal-length windows.

    A disattended constraint is a maximal run of consecutive mismatching
    positions longer than *tolerance*. Positions where either side holds a
    placeholder are neutral: they neither mismatch nor break a run.

    Returns:
        Start offsets (within the windows) of each offending run
    """
    if len(ref) != len(query):
        raise ValueError(f"Aligned windows differ in length: {len(ref)} != {len(query)}")
    if not ref:
        return []

    r = encode_bases(ref)
    q = encode_bases(query)
    placeholder = (r == _PLACEHOLDER_CODE) | (q == _PLACEHOLDER_CODE)
    mismatch = (r != q) & ~placeholder

    # Drop neutral positions so runs continue across them, keeping original offsets
    offsets = np.flatnonzero(~placeholder)
    flags = mismatch[offsets].astype(np.int8)
    if not flags.any():
        return []

    edges = np.diff(np.concatenate(([0], flags, [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)

    return [int(offsets[s]) for s, e in zip(starts, ends) if e - s > tolerance]


__all__ = [
    'WindowAlignment',
    'AlignmentScorer',
    'UngappedScorer',
    'GappedScorer',
    'aligned_pairs',
    'find_disattended',
]

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
