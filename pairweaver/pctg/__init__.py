"""
PairWeaver v0.1.0

Paired-contig construction.

1. data_structures.py - Contig, Frame, Block, ContigInPctgInfo, PairedContig,
   BestPctgCtgAlignment, MergeResult
2. alignment.py - window alignment scoring (AlignmentScorer, UngappedScorer)
3. builder.py - PctgBuilder, the merge engine
4. merger.py - PctgMerger, drives the builder over all blocks
"""

from .data_structures import (
    Contig,
    Strand,
    Frame,
    Block,
    ContigInPctgInfo,
    PairedContig,
    BestPctgCtgAlignment,
    MergeStatus,
    MergeResult,
)
from .alignment import (
    WindowAlignment,
    AlignmentScorer,
    UngappedScorer,
    find_disattended,
)
from .builder import PctgBuilder
from .merger import (
    BlockPair,
    MergeSummary,
    PctgMerger,
    pair_blocks,
    split_chains,
)

__all__ = [
    # Data structures
    "Contig",
    "Strand",
    "Frame",
    "Block",
    "ContigInPctgInfo",
    "PairedContig",
    "BestPctgCtgAlignment",
    "MergeStatus",
    "MergeResult",
    # Alignment
    "WindowAlignment",
    "AlignmentScorer",
    "UngappedScorer",
    "find_disattended",
    # Builder / driver
    "PctgBuilder",
    "BlockPair",
    "MergeSummary",
    "PctgMerger",
    "pair_blocks",
    "split_chains",
]
