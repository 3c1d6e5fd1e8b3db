#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Data structures for paired-contig construction.

1. Contig / Frame / Block - read-only inputs handed to the builder
2. ContigInPctgInfo / PairedContig - the evolving merged contig
3. BestPctgCtgAlignment / MergeResult - alignment search and merge outcomes

Coordinates are 0-based. Frame ends are inclusive, paired-contig spans
(position, size) are half-open.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from ..errors import InvalidStateError
from ..utils.sequence_utils import (
    DEFAULT_PHRED,
    placeholder_run,
    phred_array,
    reverse_complement,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Part 1: Inputs
# ============================================================================

@dataclass(frozen=True, eq=False)
class Contig:
    """
    One assembled sequence from either assembly.

    Sequence is upper-cased and the quality array is made read-only on
    construction; a contig never changes once loaded.
    """
    id: int
    sequence: str
    quality: Optional[np.ndarray] = None
    name: str = ""
    is_reversed: bool = False  # True when this is the reverse complement of the pool entry

    def __post_init__(self):
        seq = self.sequence.upper()
        if self.quality is None:
            qual = phred_array(length=len(seq), fill=DEFAULT_PHRED)
        else:
            if len(self.quality) != len(seq):
                raise ValueError(
                    f"Contig {self.id}: quality length {len(self.quality)} != sequence length {len(seq)}"
                )
            qual = phred_array(self.quality, length=len(seq))
        qual.setflags(write=False)
        object.__setattr__(self, 'sequence', seq)
        object.__setattr__(self, 'quality', qual)

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def length(self) -> int:
        """Length of the contig in bases."""
        return len(self.sequence)

    def reverse_complement(self) -> 'Contig':
        """Return the contig as read from the opposite strand."""
        return Contig(
            id=self.id,
            sequence=reverse_complement(self.sequence),
            quality=self.quality[::-1].copy(),
            name=self.name,
            is_reversed=not self.is_reversed,
        )


class Strand(str, Enum):
    """Strand of a frame."""
    FORWARD = '+'
    REVERSE = '-'

    def opposite(self) -> 'Strand':
        return Strand.REVERSE if self is Strand.FORWARD else Strand.FORWARD


@dataclass(frozen=True)
class Frame:
    """A coordinate range (inclusive) with strand orientation on a contig."""
    ctg_id: int
    begin: int
    end: int
    strand: Strand = Strand.FORWARD

    def __post_init__(self):
        if self.begin < 0 or self.end < self.begin:
            raise ValueError(f"Invalid frame [{self.begin}, {self.end}] on contig {self.ctg_id}")
        object.__setattr__(self, 'strand', Strand(self.strand))

    @property
    def length(self) -> int:
        return self.end - self.begin + 1

    def flip(self, ctg_length: int) -> 'Frame':
        """Same bases seen on the reverse complement of a contig of *ctg_length*."""
        return Frame(
            ctg_id=self.ctg_id,
            begin=ctg_length - 1 - self.end,
            end=ctg_length - 1 - self.begin,
            strand=self.strand.opposite(),
        )


@dataclass(frozen=True)
class Block:
    """
    Claimed region of agreement between one master and one slave contig.

    Produced by block discovery; the builder only reads it.
    """
    master_frame: Frame
    slave_frame: Frame
    num_reads: int = 0

    @property
    def master_ctg_id(self) -> int:
        return self.master_frame.ctg_id

    @property
    def slave_ctg_id(self) -> int:
        return self.slave_frame.ctg_id

    @property
    def is_reversed(self) -> bool:
        """Whether the slave region lies on the opposite strand of the master one."""
        return self.master_frame.strand != self.slave_frame.strand

    def frame(self, master: bool) -> Frame:
        return self.master_frame if master else self.slave_frame


# ============================================================================
# Part 2: Paired contig state
# ============================================================================

@dataclass
class ContigInPctgInfo:
    """
    How one source contig maps into a paired contig.

    The contig (reverse complemented when ``reversed``) lies on the paired
    contig's diagonal: its base ``ctg_start`` sits at paired-contig index
    ``position`` and it covers ``size`` paired-contig positions.

    ``leading_gap``/``trailing_gap`` count placeholder positions written
    before/after the contig's bases. ``pctg_gaps`` counts contig bases with
    no paired-contig counterpart and ``ctg_gaps`` paired-contig positions of
    the span the contig lacks. Both come from the indels of the alignment the
    contig was merged with; with either set the span follows the diagonal
    piecewise only.
    """
    ctg_id: int
    ctg_length: int
    is_master: bool
    position: int = 0
    size: int = 0
    ctg_start: int = 0
    reversed: bool = False
    leading_gap: int = 0
    trailing_gap: int = 0
    pctg_gaps: int = 0
    ctg_gaps: int = 0

    @property
    def end(self) -> int:
        """Paired-contig index one past the last covered position."""
        return self.position + self.size

    def shift(self, amount: int):
        self.position += amount

    def clip(self, length: int):
        """Drop coverage beyond paired-contig index *length*."""
        if self.end > length:
            self.position = min(self.position, length)
            self.size = max(0, length - self.position)
            self.trailing_gap = 0

    def oriented_position(self, ctg_pos: int) -> int:
        """Contig coordinate *ctg_pos* expressed on the strand used in the paired contig."""
        return self.ctg_length - 1 - ctg_pos if self.reversed else ctg_pos

    def pctg_position_of(self, ctg_pos: int) -> int:
        """Map a (forward-strand) contig coordinate onto the paired contig."""
        return self.position + self.oriented_position(ctg_pos) - self.ctg_start


@dataclass(eq=False)
class PairedContig:
    """
    Merged contig built from master and slave contigs.

    Owns its bases and qualities; every mutation keeps the recorded
    ContigInPctgInfo spans inside the sequence (see check_bounds()).
    """
    id: int
    sequence: str = ""
    quality: np.ndarray = field(default_factory=lambda: phred_array())
    master_ctgs: Dict[int, ContigInPctgInfo] = field(default_factory=dict)
    slave_ctgs: Dict[int, ContigInPctgInfo] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def num_master_ctgs(self) -> int:
        return len(self.master_ctgs)

    @property
    def num_slave_ctgs(self) -> int:
        return len(self.slave_ctgs)

    def is_empty(self) -> bool:
        """True while no contig contributes to this paired contig."""
        return not self.master_ctgs and not self.slave_ctgs

    # ------------------------------------------------------------------
    # Contig bookkeeping
    # ------------------------------------------------------------------

    def ctg_infos(self, is_master: bool) -> Dict[int, ContigInPctgInfo]:
        return self.master_ctgs if is_master else self.slave_ctgs

    def contains_ctg(self, ctg_id: int, is_master: bool) -> bool:
        return ctg_id in self.ctg_infos(is_master)

    def contains_master_ctg(self, ctg_id: int) -> bool:
        return ctg_id in self.master_ctgs

    def contains_slave_ctg(self, ctg_id: int) -> bool:
        return ctg_id in self.slave_ctgs

    def get_ctg_info(self, ctg_id: int, is_master: bool) -> Optional[ContigInPctgInfo]:
        return self.ctg_infos(is_master).get(ctg_id)

    def add_ctg_info(self, info: ContigInPctgInfo):
        self.ctg_infos(info.is_master)[info.ctg_id] = info

    def all_ctg_infos(self) -> Iterator[ContigInPctgInfo]:
        yield from self.master_ctgs.values()
        yield from self.slave_ctgs.values()

    # ------------------------------------------------------------------
    # Sequence mutation
    # ------------------------------------------------------------------

    def append(self, bases: str, quality: np.ndarray):
        self.sequence += bases
        self.quality = np.concatenate([self.quality, np.asarray(quality, dtype=np.uint8)])

    def append_placeholders(self, count: int):
        self.append(placeholder_run(count), phred_array(length=count))

    def prepend(self, bases: str, quality: np.ndarray):
        """Prepend bases and shift every contig span accordingly."""
        self.sequence = bases + self.sequence
        self.quality = np.concatenate([np.asarray(quality, dtype=np.uint8), self.quality])
        for info in self.all_ctg_infos():
            info.shift(len(bases))

    def truncate(self, length: int):
        """Cut the sequence at *length*, clipping contig spans that cross the cut."""
        self.sequence = self.sequence[:length]
        self.quality = self.quality[:length]
        for info in self.all_ctg_infos():
            info.clip(length)

    def overwrite(self, start: int, bases: str, quality: np.ndarray):
        """Replace bases in place; the length never changes."""
        end = start + len(bases)
        if start < 0 or end > len(self.sequence):
            raise IndexError(f"Overwrite [{start}, {end}) outside paired contig {self.id}")
        self.sequence = self.sequence[:start] + bases + self.sequence[end:]
        self.quality[start:end] = quality

    def check_bounds(self):
        """
        Verify every contig span lies within the current sequence.

        Raises:
            InvalidStateError: If any ContigInPctgInfo falls outside the bounds
        """
        length = len(self.sequence)
        if len(self.quality) != length:
            raise InvalidStateError(
                f"Paired contig {self.id}: {len(self.quality)} qualities for {length} bases"
            )
        for info in self.all_ctg_infos():
            if info.position < 0 or info.size < 0 or info.end > length:
                kind = 'master' if info.is_master else 'slave'
                raise InvalidStateError(
                    f"Paired contig {self.id}: {kind} contig {info.ctg_id} span "
                    f"[{info.position}, {info.end}) outside [0, {length})"
                )
            if min(info.leading_gap, info.trailing_gap, info.pctg_gaps, info.ctg_gaps) < 0:
                raise InvalidStateError(
                    f"Paired contig {self.id}: negative gap on contig {info.ctg_id}"
                )

    def copy(self) -> 'PairedContig':
        """Deep copy: the copy shares no mutable state with the original."""
        return PairedContig(
            id=self.id,
            sequence=self.sequence,
            quality=self.quality.copy(),
            master_ctgs={k: copy.copy(v) for k, v in self.master_ctgs.items()},
            slave_ctgs={k: copy.copy(v) for k, v in self.slave_ctgs.items()},
        )


# ============================================================================
# Part 3: Alignment and merge outcomes
# ============================================================================

@dataclass(frozen=True)
class BestPctgCtgAlignment:
    """
    Best local alignment between a paired-contig region and a contig.

    Positions are in paired-contig coordinates and in the coordinates of the
    contig as oriented for the merge. Callers must check ``is_accepted``
    before trusting the positions.

    ``length`` counts alignment columns, gap columns included, so gaps
    lower the homology. ``ops`` holds the columns as (op, count) runs:
    'M' pairs a paired-contig base with a contig base, 'I' is a contig base
    missing from the paired contig and 'D' a paired-contig base missing
    from the contig. Empty ``ops`` means one ungapped run of ``length``.
    """
    pctg_pos: int = 0
    ctg_pos: int = 0
    length: int = 0
    matches: int = 0
    disattended: Tuple[int, ...] = ()  # paired-contig positions of disattended constraints
    ctg_reversed: bool = False
    is_accepted: bool = False
    ops: Tuple[Tuple[str, int], ...] = ()
    pctg_gap: int = 0   # 'I' columns: gaps in the paired-contig row
    ctg_gap: int = 0    # 'D' columns: gaps in the contig row

    def __post_init__(self):
        if self.length < 0 or not 0 <= self.matches <= max(self.length, 0):
            raise ValueError(f"Invalid alignment: length={self.length}, matches={self.matches}")
        if self.pctg_gap < 0 or self.ctg_gap < 0 or self.pctg_gap + self.ctg_gap > self.length:
            raise ValueError(
                f"Invalid alignment gaps: pctg_gap={self.pctg_gap}, ctg_gap={self.ctg_gap}, "
                f"length={self.length}"
            )

    @property
    def homology(self) -> float:
        """Fraction of matching bases, 0.0 for an empty alignment."""
        return self.matches / self.length if self.length > 0 else 0.0

    @property
    def num_disattended(self) -> int:
        return len(self.disattended)

    @property
    def diagonal(self) -> int:
        """Paired-contig index where the contig's base 0 falls, at the alignment start."""
        return self.pctg_pos - self.ctg_pos

    @property
    def end_diagonal(self) -> int:
        """Diagonal after the last alignment column; differs from diagonal across indels."""
        return self.pctg_end - self.ctg_end

    @property
    def pctg_end(self) -> int:
        return self.pctg_pos + self.length - self.pctg_gap

    @property
    def ctg_end(self) -> int:
        return self.ctg_pos + self.length - self.ctg_gap

    @property
    def cigar(self) -> Tuple[Tuple[str, int], ...]:
        """Column runs, with an ungapped alignment spelled out as one 'M' run."""
        if self.ops:
            return self.ops
        return (('M', self.length),) if self.length else ()

    @classmethod
    def not_found(cls, ctg_reversed: bool = False) -> 'BestPctgCtgAlignment':
        return cls(ctg_reversed=ctg_reversed)


class MergeStatus(Enum):
    """Outcome of a merge or extension step."""
    EXTENDED_LEFT = 'extended_left'
    EXTENDED_RIGHT = 'extended_right'
    EXTENDED_BOTH = 'extended_both'
    CONTAINED = 'contained'
    RECONCILED = 'reconciled'
    REJECTED = 'rejected'


@dataclass
class MergeResult:
    """Paired contig after a merge step, with how the step went."""
    pctg: PairedContig
    status: MergeStatus
    alignment: Optional[BestPctgCtgAlignment] = None
    changed_bases: int = 0

    @property
    def rejected(self) -> bool:
        return self.status is MergeStatus.REJECTED

    @property
    def merged(self) -> bool:
        return not self.rejected


# PairWeaver v0.1.0
# Any usage is subject to this software's license.
