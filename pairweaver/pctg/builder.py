#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Paired-contig builder - merges master and slave contigs into paired contigs.

Operations come in two families:
  - value-producing: init_by_contig, add_first_contig_to, add_first_block_to,
    extend_by_block, merge_contig, shift_pctg_of return a new PairedContig
    (wrapped in a MergeResult where a merge decision is involved) and never
    modify their input;
  - mutators: extend_pctg_with_ctg_from, extend_pctg_with_ctg_upto,
    merge_ctg_in_pos, merge_master_ctg_in_pos, merge_slave_ctg_in_pos modify
    the PairedContig they are given and hand the same object back.

Merge procedure for a block pair (merge_contig):
  1. Load the contig to merge and orient it against the contig of the block
     already in the paired contig.
  2. Project the block onto the paired contig to get the expected position.
  3. Search the best alignment in a band of +/- max_gaps around it.
  4. Reject, record (containment) or extend left and/or right.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

from ..config.schema import MergeConfig
from ..errors import BuilderNotConfiguredError, InvalidBlockError, InvalidStateError
from ..utils.sequence_utils import PLACEHOLDER_BASE, decode_bases, encode_bases, phred_array
from .alignment import AlignmentScorer, GappedScorer, aligned_pairs, find_disattended
from .data_structures import (
    BestPctgCtgAlignment,
    Block,
    Contig,
    ContigInPctgInfo,
    Frame,
    MergeResult,
    MergeStatus,
    PairedContig,
)

if TYPE_CHECKING:
    from ..io.contig_pool import ContigPool, RefVector

logger = logging.getLogger(__name__)


class PctgBuilder:
    """
    Builder of paired contigs.

    Holds read-only references to the two contig pools and the two
    reference-name tables; it keeps no per-merge state, so one builder can
    serve several threads as long as each works on its own PairedContig.

    A builder may be created before its collaborators are known, but every
    operation that loads contigs raises BuilderNotConfiguredError until all
    four are set.
    """

    def __init__(
        self,
        master_pool: Optional['ContigPool'] = None,
        slave_pool: Optional['ContigPool'] = None,
        master_ref_vector: Optional['RefVector'] = None,
        slave_ref_vector: Optional['RefVector'] = None,
        config: Optional[MergeConfig] = None,
        scorer: Optional[AlignmentScorer] = None,
    ):
        """
        Args:
            master_pool: Pool of master contigs
            slave_pool: Pool of slave contigs
            master_ref_vector: ID -> name table of the master assembly
            slave_ref_vector: ID -> name table of the slave assembly
            config: Merge-acceptance policy (defaults if None)
            scorer: Alignment primitive (GappedScorer if None)
        """
        self._master_pool = master_pool
        self._slave_pool = slave_pool
        self._master_ref_vector = master_ref_vector
        self._slave_ref_vector = slave_ref_vector
        self.config = config or MergeConfig()
        self.scorer = scorer or GappedScorer()

    # -----------------------------------------------------------------
    # Collaborators
    # -----------------------------------------------------------------

    @property
    def master_pool(self) -> Optional['ContigPool']:
        return self._master_pool

    @property
    def slave_pool(self) -> Optional['ContigPool']:
        return self._slave_pool

    @property
    def is_configured(self) -> bool:
        return None not in (
            self._master_pool, self._slave_pool,
            self._master_ref_vector, self._slave_ref_vector,
        )

    def _require_configured(self):
        if self.is_configured:
            return
        missing = [
            label for label, value in (
                ('master_pool', self._master_pool),
                ('slave_pool', self._slave_pool),
                ('master_ref_vector', self._master_ref_vector),
                ('slave_ref_vector', self._slave_ref_vector),
            )
            if value is None
        ]
        raise BuilderNotConfiguredError(f"PctgBuilder is missing: {', '.join(missing)}")

    def ctg_name(self, ctg_id: int, is_master: bool) -> str:
        """Human-readable name of a contig, for messages."""
        refs = self._master_ref_vector if is_master else self._slave_ref_vector
        if refs is None:
            return f"ctg_{ctg_id}"
        return refs.name_of(ctg_id)

    # -----------------------------------------------------------------
    # Contig loading
    # -----------------------------------------------------------------

    def load_master_contig(self, ctg_id: int) -> Contig:
        """Get a master contig by ID (ContigNotFoundError if absent)."""
        self._require_configured()
        return self._master_pool.lookup(ctg_id)

    def load_slave_contig(self, ctg_id: int) -> Contig:
        """Get a slave contig by ID (ContigNotFoundError if absent)."""
        self._require_configured()
        return self._slave_pool.lookup(ctg_id)

    def _load_contig(self, ctg_id: int, is_master: bool) -> Contig:
        return self.load_master_contig(ctg_id) if is_master else self.load_slave_contig(ctg_id)

    # -----------------------------------------------------------------
    # Initialisation
    # -----------------------------------------------------------------

    def init_by_contig(self, pctg_id: int, ctg_id: int, is_master: bool = True) -> PairedContig:
        """
        Build a paired contig holding a single contig.

        Used for contigs that share no accepted block with the other assembly.

        Args:
            pctg_id: Identifier of the new paired contig
            ctg_id: Contig to copy in (master unless *is_master* is False)

        Returns:
            New PairedContig of the contig's length with one info at offset 0
        """
        ctg = self._load_contig(ctg_id, is_master)
        pctg = PairedContig(id=pctg_id)
        pctg.append(ctg.sequence, ctg.quality)
        pctg.add_ctg_info(ContigInPctgInfo(
            ctg_id=ctg.id,
            ctg_length=len(ctg),
            is_master=is_master,
            position=0,
            size=len(ctg),
        ))
        pctg.check_bounds()
        return pctg

    def add_first_contig_to(self, pctg: PairedContig, ctg_id: int) -> PairedContig:
        """
        Seed an empty paired contig with a master contig.

        Raises:
            InvalidStateError: If *pctg* already holds contigs
        """
        if not pctg.is_empty():
            raise InvalidStateError(f"Paired contig {pctg.id} is not empty")
        return self.init_by_contig(pctg.id, ctg_id)

    def add_first_block_to(self, pctg: PairedContig, first_block: Block, last_block: Block) -> MergeResult:
        """
        Seed an empty paired contig from the blocks shared by a master/slave pair.

        The master contig is copied in, the slave contig is merged around it
        and the shared span is reconciled base by base (higher quality wins,
        ties go to the master).

        Args:
            pctg: An empty paired contig (its ID is kept)
            first_block: First block in common between the contigs
            last_block: Last block in common between the contigs

        Returns:
            MergeResult; when REJECTED its paired contig holds the master only

        Raises:
            InvalidStateError: If *pctg* is not empty
        """
        if not pctg.is_empty():
            raise InvalidStateError(f"Paired contig {pctg.id} is not empty")
        self._check_block_pair(first_block, last_block)

        seeded = self.add_first_contig_to(pctg, first_block.master_ctg_id)
        result = self.merge_contig(seeded, first_block, last_block, merge_master_ctg=False)
        if result.rejected:
            return result

        result.changed_bases = self._reconcile_block(result.pctg, first_block, last_block)
        return result

    # -----------------------------------------------------------------
    # Extension
    # -----------------------------------------------------------------

    def extend_by_block(self, pctg: PairedContig, first_block: Block, last_block: Block) -> MergeResult:
        """
        Extend a paired contig with the evidence of a block pair.

        The contig of the block missing from *pctg* is merged in; if both
        are present their shared span is reconciled. *pctg* itself is left
        untouched.

        Raises:
            InvalidStateError: If neither contig of the block is in *pctg*
        """
        self._require_configured()
        self._check_block_pair(first_block, last_block)

        has_master = pctg.contains_master_ctg(first_block.master_ctg_id)
        has_slave = pctg.contains_slave_ctg(first_block.slave_ctg_id)

        if has_master and has_slave:
            work = pctg.copy()
            changed = self._reconcile_block(work, first_block, last_block)
            return MergeResult(work, MergeStatus.RECONCILED, changed_bases=changed)
        if has_master:
            return self.merge_contig(pctg, first_block, last_block, merge_master_ctg=False)
        if has_slave:
            return self.merge_contig(pctg, first_block, last_block, merge_master_ctg=True)

        raise InvalidStateError(
            f"Paired contig {pctg.id} contains neither master contig "
            f"{self.ctg_name(first_block.master_ctg_id, True)} nor slave contig "
            f"{self.ctg_name(first_block.slave_ctg_id, False)}"
        )

    def extend_pctg_with_ctg_from(
        self,
        orig: PairedContig,
        ctg: Contig,
        ctg_info: ContigInPctgInfo,
        pos: Tuple[int, int],
        gaps: Tuple[int, int],
        is_master_ctg: bool,
    ) -> PairedContig:
        """
        Extend the right end of a paired contig with a contig.

        ``orig`` is cut at ``pos[0]`` and followed by ``gaps[0]`` placeholders,
        ``ctg[pos[1]:]`` and ``gaps[1]`` placeholders.

        Args:
            orig: Paired contig, modified in place
            ctg: Contig supplying the new bases (already oriented)
            ctg_info: Info used for *ctg* if *orig* does not track it yet
            pos: (paired-contig position, contig position) where the extension starts
            gaps: (gap before, gap after) placeholder counts
            is_master_ctg: Whether *ctg* is a master contig

        Returns:
            *orig*
        """
        pctg_pos, ctg_pos = pos
        gap_before, gap_after = gaps
        if not 0 <= pctg_pos <= len(orig):
            raise ValueError(f"Paired contig position {pctg_pos} outside [0, {len(orig)}]")
        if not 0 <= ctg_pos <= len(ctg):
            raise ValueError(f"Contig position {ctg_pos} outside [0, {len(ctg)}]")
        if gap_before < 0 or gap_after < 0:
            raise ValueError(f"Gaps must be non-negative, got {gaps}")

        orig.truncate(pctg_pos)
        orig.append_placeholders(gap_before)
        orig.append(ctg.sequence[ctg_pos:], ctg.quality[ctg_pos:])
        orig.append_placeholders(gap_after)

        tail_end = pctg_pos + gap_before + len(ctg) - ctg_pos
        existing = orig.get_ctg_info(ctg_info.ctg_id, is_master_ctg)
        if existing is not None:
            existing.size = tail_end - existing.position
            existing.trailing_gap = gap_after
        else:
            ctg_info.is_master = is_master_ctg
            ctg_info.position = pctg_pos + gap_before
            ctg_info.ctg_start = ctg_pos
            ctg_info.size = len(ctg) - ctg_pos
            ctg_info.leading_gap = gap_before
            ctg_info.trailing_gap = gap_after
            orig.add_ctg_info(ctg_info)

        orig.check_bounds()
        logger.debug(
            f"Paired contig {orig.id}: appended {len(ctg) - ctg_pos} bp of "
            f"{self.ctg_name(ctg_info.ctg_id, is_master_ctg)} from {pos}, gaps {gaps}"
        )
        return orig

    def extend_pctg_with_ctg_upto(
        self,
        orig: PairedContig,
        ctg: Contig,
        ctg_info: ContigInPctgInfo,
        pos: Tuple[int, int],
        pctg_shift: int,
        is_master_ctg: bool,
    ) -> PairedContig:
        """
        Extend the left end of a paired contig with a contig.

        Prepends the *pctg_shift* contig bases lying just before the base
        aligned with ``orig[0]`` (placeholders where the contig has none)
        and shifts every recorded span by *pctg_shift*.

        Args:
            orig: Paired contig, modified in place
            ctg: Contig supplying the new bases (already oriented)
            ctg_info: Info used for *ctg* if *orig* does not track it yet
            pos: First matching (paired-contig position, contig position)
            pctg_shift: Number of bases added to the left end
            is_master_ctg: Whether *ctg* is a master contig

        Returns:
            *orig*
        """
        pctg_pos, ctg_pos = pos
        if pctg_shift < 0:
            raise ValueError(f"pctg_shift must be non-negative, got {pctg_shift}")
        if not 0 <= pctg_pos <= len(orig):
            raise ValueError(f"Paired contig position {pctg_pos} outside [0, {len(orig)}]")
        if not 0 <= ctg_pos <= len(ctg):
            raise ValueError(f"Contig position {ctg_pos} outside [0, {len(ctg)}]")

        # Contig coordinate lying on orig[0]; the prefix covers [anchor - shift, anchor)
        anchor = ctg_pos - pctg_pos
        first = anchor - pctg_shift
        lead = min(pctg_shift, max(0, -first))
        ctg_from = max(0, first)
        ctg_to = max(ctg_from, min(anchor, len(ctg)))
        trail = pctg_shift - lead - (ctg_to - ctg_from)

        bases = (
            PLACEHOLDER_BASE * lead
            + ctg.sequence[ctg_from:ctg_to]
            + PLACEHOLDER_BASE * trail
        )
        quality = np.concatenate([
            phred_array(length=lead),
            ctg.quality[ctg_from:ctg_to],
            phred_array(length=trail),
        ])
        orig.prepend(bases, quality)

        # Paired-contig index of contig base ctg_from after the shift
        position = ctg_from - anchor + pctg_shift
        existing = orig.get_ctg_info(ctg_info.ctg_id, is_master_ctg)
        if existing is not None:
            end = max(existing.end, position)
            existing.position = position
            existing.ctg_start = ctg_from
            existing.size = end - position
            existing.leading_gap = lead
        else:
            ctg_info.is_master = is_master_ctg
            ctg_info.position = position
            ctg_info.ctg_start = ctg_from
            ctg_info.size = max(0, min(len(ctg) - ctg_from, len(orig) - position))
            ctg_info.leading_gap = lead
            orig.add_ctg_info(ctg_info)

        orig.check_bounds()
        logger.debug(
            f"Paired contig {orig.id}: prepended {pctg_shift} bp of "
            f"{self.ctg_name(ctg_info.ctg_id, is_master_ctg)} before {pos}"
        )
        return orig

    def shift_pctg_of(self, orig: PairedContig, shift_size: int) -> PairedContig:
        """
        Return a copy of *orig* with *shift_size* placeholder bases prepended.

        Every recorded span moves right by *shift_size*.
        """
        if shift_size < 0:
            raise ValueError(f"shift_size must be non-negative, got {shift_size}")
        shifted = orig.copy()
        shifted.prepend(PLACEHOLDER_BASE * shift_size, phred_array(length=shift_size))
        shifted.check_bounds()
        return shifted

    # -----------------------------------------------------------------
    # Merging
    # -----------------------------------------------------------------

    def merge_contig(
        self,
        pctg: PairedContig,
        first_block: Block,
        last_block: Block,
        merge_master_ctg: bool,
    ) -> MergeResult:
        """
        Merge the master or slave contig of a block pair into a paired contig.

        The other contig of the block must already be in *pctg*; it anchors
        the alignment search. *pctg* itself is left untouched.

        Args:
            pctg: A paired contig
            first_block: First block in common between the contigs
            last_block: Last block in common between the contigs
            merge_master_ctg: Merge the master contig (True) or the slave one

        Returns:
            MergeResult holding a new paired contig

        Raises:
            InvalidStateError: If the anchoring contig is missing from *pctg*
                or the contig to merge is already in it
        """
        self._require_configured()
        self._check_block_pair(first_block, last_block)

        anchor_is_master = not merge_master_ctg
        anchor_id = first_block.frame(anchor_is_master).ctg_id
        merged_id = first_block.frame(merge_master_ctg).ctg_id

        anchor_info = pctg.get_ctg_info(anchor_id, anchor_is_master)
        if anchor_info is None:
            raise InvalidStateError(
                f"Paired contig {pctg.id} does not contain "
                f"{self.ctg_name(anchor_id, anchor_is_master)}"
            )
        if pctg.contains_ctg(merged_id, merge_master_ctg):
            raise InvalidStateError(
                f"Paired contig {pctg.id} already contains "
                f"{self.ctg_name(merged_id, merge_master_ctg)}"
            )

        ctg = self._load_contig(merged_id, merge_master_ctg)
        reverse_ctg = anchor_info.reversed != first_block.is_reversed
        if reverse_ctg:
            ctg = ctg.reverse_complement()

        anchor_first, _ = _frame_span(
            [first_block.frame(anchor_is_master), last_block.frame(anchor_is_master)],
            anchor_info.ctg_length, anchor_info.reversed,
        )
        ctg_first, ctg_last = _frame_span(
            [first_block.frame(merge_master_ctg), last_block.frame(merge_master_ctg)],
            len(ctg), reverse_ctg,
        )
        pctg_pos = anchor_info.position + anchor_first.begin - anchor_info.ctg_start

        best = self.find_best_alignment(pctg, anchor_info, pctg_pos, ctg, ctg_first, ctg_last)
        return self.merge_ctg_in_pos(pctg.copy(), ctg, merged_id, best, merge_master_ctg)

    def merge_ctg_in_pos(
        self,
        pctg: PairedContig,
        ctg: Contig,
        ctg_id: int,
        best_align: BestPctgCtgAlignment,
        merge_master: bool,
    ) -> MergeResult:
        """Merge *ctg* into *pctg* at *best_align*; dispatches on *merge_master*."""
        if merge_master:
            return self.merge_master_ctg_in_pos(pctg, ctg, ctg_id, best_align)
        return self.merge_slave_ctg_in_pos(pctg, ctg, ctg_id, best_align)

    def merge_master_ctg_in_pos(
        self,
        pctg: PairedContig,
        ctg: Contig,
        ctg_id: int,
        best_align: BestPctgCtgAlignment,
    ) -> MergeResult:
        """Merge a master contig into *pctg* (in place) at *best_align*."""
        return self._merge_in_pos(pctg, ctg, ctg_id, best_align, is_master=True)

    def merge_slave_ctg_in_pos(
        self,
        pctg: PairedContig,
        ctg: Contig,
        ctg_id: int,
        best_align: BestPctgCtgAlignment,
    ) -> MergeResult:
        """Merge a slave contig into *pctg* (in place) at *best_align*."""
        return self._merge_in_pos(pctg, ctg, ctg_id, best_align, is_master=False)

    def _merge_in_pos(
        self,
        pctg: PairedContig,
        ctg: Contig,
        ctg_id: int,
        best_align: BestPctgCtgAlignment,
        is_master: bool,
    ) -> MergeResult:
        name = self.ctg_name(ctg_id, is_master)

        accepted = best_align.is_accepted and self._is_accepted(
            best_align.length, best_align.matches, best_align.num_disattended
        )
        if not accepted:
            logger.warning(
                f"Rejected merge of {name} into paired contig {pctg.id}: "
                f"length={best_align.length}, homology={best_align.homology:.3f}, "
                f"disattended={best_align.num_disattended}"
            )
            return MergeResult(pctg, MergeStatus.REJECTED, best_align)

        # Indels move the contig from the start diagonal to the end diagonal:
        # the left extension follows the first, the right extension the second
        diagonal = best_align.diagonal
        end_diagonal = best_align.end_diagonal
        left = max(0, -diagonal)
        right = max(0, end_diagonal + len(ctg) - len(pctg))
        info = ContigInPctgInfo(
            ctg_id=ctg_id,
            ctg_length=len(ctg),
            is_master=is_master,
            reversed=ctg.is_reversed,
            pctg_gaps=best_align.pctg_gap,
            ctg_gaps=best_align.ctg_gap,
        )

        if left:
            self.extend_pctg_with_ctg_upto(
                pctg, ctg, info, (best_align.pctg_pos, best_align.ctg_pos), left, is_master
            )
            diagonal += left
            end_diagonal += left

        if right:
            if not pctg.contains_ctg(ctg_id, is_master):
                # Cover the overlapping part first; the extension then grows it
                info.position = diagonal
                info.ctg_start = 0
                info.size = len(pctg) - diagonal
                pctg.add_ctg_info(info)
            end = len(pctg)
            self.extend_pctg_with_ctg_from(pctg, ctg, info, (end, end - end_diagonal), (0, 0), is_master)
        elif left:
            info.size = end_diagonal + len(ctg) - info.position
        else:
            info.position = diagonal
            info.size = end_diagonal + len(ctg) - diagonal
            pctg.add_ctg_info(info)
        pctg.check_bounds()

        if left and right:
            status = MergeStatus.EXTENDED_BOTH
        elif left:
            status = MergeStatus.EXTENDED_LEFT
        elif right:
            status = MergeStatus.EXTENDED_RIGHT
        else:
            status = MergeStatus.CONTAINED

        logger.info(
            f"Merged {name} into paired contig {pctg.id} ({status.value}, "
            f"homology={best_align.homology:.3f}, gaps={best_align.pctg_gap}/{best_align.ctg_gap}, "
            f"length={len(pctg)})"
        )
        return MergeResult(pctg, status, best_align)

    # -----------------------------------------------------------------
    # Alignment search
    # -----------------------------------------------------------------

    def find_best_alignment(
        self,
        pctg: PairedContig,
        pctg_info: ContigInPctgInfo,
        pctg_pos: int,
        ctg: Contig,
        first_frame: Frame,
        last_frame: Frame,
    ) -> BestPctgCtgAlignment:
        """
        Compute the best alignment between a paired contig and a contig to merge.

        Args:
            pctg: A paired contig
            pctg_info: Span of *pctg* the search is confined to
            pctg_pos: Expected position of ``first_frame.begin`` in *pctg*
            ctg: Contig to merge, as oriented for the merge
            first_frame: First frame on *ctg*
            last_frame: Last frame on *ctg*

        Returns:
            Best alignment found; ``is_accepted`` is False when no candidate
            reaches the thresholds
        """
        cfg = self.config

        ctg_begin = min(first_frame.begin, len(ctg))
        ctg_end = min(last_frame.end + 1, len(ctg), ctg_begin + cfg.max_searched_alignment)
        query = ctg.sequence[ctg_begin:ctg_end]

        win_lo = max(pctg_info.position, pctg_pos - cfg.max_gaps, 0)
        win_hi = min(pctg_info.end, pctg_pos + len(query) + cfg.max_gaps, len(pctg))
        if win_hi <= win_lo or not query:
            logger.debug(f"Empty search window on paired contig {pctg.id}")
            return BestPctgCtgAlignment.not_found(ctg.is_reversed)

        ref = pctg.sequence[win_lo:win_hi]
        window = self.scorer.best_shift(
            ref, query, pctg_pos - win_lo, cfg.max_gaps, cfg.min_alignment,
            max_ref_gap=cfg.max_pctg_gap, max_query_gap=cfg.max_ctg_gap,
        )
        if window is None:
            logger.debug(
                f"No alignment of {cfg.min_alignment}+ bp between paired contig {pctg.id} "
                f"and contig {ctg.id}"
            )
            return BestPctgCtgAlignment.not_found(ctg.is_reversed)

        pctg_start = win_lo + window.ref_start
        ctg_start = ctg_begin + window.query_start

        # Only paired columns can mismatch; gap columns are neutral like N
        pctg_idx, ctg_idx = aligned_pairs(window.cigar, 0, 0)
        pctg_bases = encode_bases(pctg.sequence[pctg_start:win_lo + window.ref_end])
        ctg_bases = encode_bases(ctg.sequence[ctg_start:ctg_begin + window.query_end])
        disattended = find_disattended(
            decode_bases(pctg_bases[pctg_idx]),
            decode_bases(ctg_bases[ctg_idx]),
            cfg.mismatch_tolerance,
        )

        align = BestPctgCtgAlignment(
            pctg_pos=pctg_start,
            ctg_pos=ctg_start,
            length=window.length,
            matches=window.matches,
            disattended=tuple(pctg_start + int(pctg_idx[offset]) for offset in disattended),
            ctg_reversed=ctg.is_reversed,
            is_accepted=self._is_accepted(window.length, window.matches, len(disattended)),
            ops=window.ops,
            pctg_gap=window.ref_gaps,
            ctg_gap=window.query_gaps,
        )
        logger.debug(
            f"Best alignment pctg={align.pctg_pos} ctg={align.ctg_pos} length={align.length} "
            f"homology={align.homology:.3f} gaps={align.pctg_gap}/{align.ctg_gap} "
            f"accepted={align.is_accepted}"
        )
        return align

    def _is_accepted(self, length: int, matches: int, disattended: int) -> bool:
        cfg = self.config
        if length < cfg.min_alignment or length == 0:
            return False
        if matches / length < cfg.min_homology:
            return False
        return disattended / length <= cfg.min_alignment_quotient

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _check_block_pair(self, first_block: Block, last_block: Block):
        if (first_block.master_ctg_id != last_block.master_ctg_id
                or first_block.slave_ctg_id != last_block.slave_ctg_id):
            raise InvalidBlockError(
                f"Blocks link different contigs: ({first_block.master_ctg_id}, "
                f"{first_block.slave_ctg_id}) vs ({last_block.master_ctg_id}, "
                f"{last_block.slave_ctg_id})"
            )
        if first_block.is_reversed != last_block.is_reversed:
            raise InvalidBlockError(
                f"Blocks on contigs ({first_block.master_ctg_id}, {first_block.slave_ctg_id}) "
                f"disagree on orientation"
            )

    def _reconcile_block(self, pctg: PairedContig, first_block: Block, last_block: Block) -> int:
        """
        Rewrite the span shared by a block's contigs with the best evidence.

        Each contig of the block is aligned back onto *pctg* over its block
        frames, so the paired columns stay right across indels. On every
        paired column the contig base replaces the paired-contig base when
        its Phred quality is higher. The slave is applied first and the
        master second with ties in its favour, so ties go to the master; a
        placeholder always loses.

        Returns:
            Number of paired-contig bases that changed
        """
        master_info = pctg.get_ctg_info(first_block.master_ctg_id, True)
        slave_info = pctg.get_ctg_info(first_block.slave_ctg_id, False)
        if master_info is None or slave_info is None:
            raise InvalidStateError(f"Paired contig {pctg.id} lacks a contig of the block")

        before = encode_bases(pctg.sequence)
        self._apply_contig_evidence(pctg, slave_info, first_block, last_block, wins_ties=False)
        self._apply_contig_evidence(pctg, master_info, first_block, last_block, wins_ties=True)
        pctg.check_bounds()

        changed = int(np.count_nonzero(encode_bases(pctg.sequence) != before))
        if changed:
            logger.debug(f"Paired contig {pctg.id}: reconciled {changed} bases")
        return changed

    def _apply_contig_evidence(
        self,
        pctg: PairedContig,
        info: ContigInPctgInfo,
        first_block: Block,
        last_block: Block,
        wins_ties: bool,
    ):
        ctg = self._load_contig(info.ctg_id, info.is_master)
        if info.reversed:
            ctg = ctg.reverse_complement()

        first, last = _frame_span(
            [first_block.frame(info.is_master), last_block.frame(info.is_master)],
            info.ctg_length, info.reversed,
        )
        pctg_pos = info.position + first.begin - info.ctg_start
        align = self.find_best_alignment(pctg, info, pctg_pos, ctg, first, last)
        if not align.is_accepted:
            logger.debug(
                f"Paired contig {pctg.id}: block span of "
                f"{self.ctg_name(info.ctg_id, info.is_master)} no longer aligns, left as is"
            )
            return

        pctg_idx, ctg_idx = aligned_pairs(align.cigar, 0, 0)
        current = encode_bases(pctg.sequence[align.pctg_pos:align.pctg_end])
        current_qual = pctg.quality[align.pctg_pos:align.pctg_end].copy()
        bases = encode_bases(ctg.sequence[align.ctg_pos:align.ctg_end])[ctg_idx]
        qual = ctg.quality[align.ctg_pos:align.ctg_end][ctg_idx]

        placeholder = ord(PLACEHOLDER_BASE)
        if wins_ties:
            better = qual >= current_qual[pctg_idx]
        else:
            better = qual > current_qual[pctg_idx]
        take = (bases != placeholder) & ((current[pctg_idx] == placeholder) | better)

        current[pctg_idx[take]] = bases[take]
        current_qual[pctg_idx[take]] = qual[take]
        pctg.overwrite(align.pctg_pos, decode_bases(current), current_qual)


def _frame_span(frames: List[Frame], ctg_length: int, reverse: bool) -> Tuple[Frame, Frame]:
    """
    First and last frame as seen on the contig's orientation.

    The first frame has the smallest begin, the last frame the largest end;
    with nested frames they can differ from the extremes of a sort by begin.
    """
    if reverse:
        frames = [frame.flip(ctg_length) for frame in frames]
    first = min(frames, key=lambda frame: (frame.begin, frame.end))
    last = max(frames, key=lambda frame: (frame.end, frame.begin))
    return first, last


__all__ = ['PctgBuilder']

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
