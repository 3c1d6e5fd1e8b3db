"""
PairWeaver v0.1.0

I/O Module for PairWeaver.

contig_pool.py - in-memory contig pools (FASTA/FASTQ loading via Biopython)
and the id -> name reference tables of each assembly.
"""

from .contig_pool import ContigPool, RefVector

__all__ = [
    "ContigPool",
    "RefVector",
]
