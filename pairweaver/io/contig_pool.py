#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

In-memory contig pools and reference-name tables.

A pool holds every contig of one assembly keyed by its integer ID (the
index of the contig in the assembly's alignment header). The builder only
ever reads from a pool.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import gzip
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple, Union

from Bio import SeqIO

from ..errors import ContigNotFoundError
from ..pctg.data_structures import Contig

logger = logging.getLogger(__name__)

FASTQ_SUFFIXES = ('.fastq', '.fq')


class RefVector:
    """
    ID -> name table of one assembly.

    Used for human-readable messages only, never for merge decisions.
    """

    def __init__(self, names: Optional[Iterable[str]] = None):
        self._names: List[str] = list(names or [])

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def name_of(self, ctg_id: int) -> str:
        """Name of contig *ctg_id*, or a generated label when unknown."""
        if 0 <= ctg_id < len(self._names):
            return self._names[ctg_id]
        return f"ctg_{ctg_id}"

    def append(self, name: str) -> int:
        """Register *name* and return its ID."""
        self._names.append(name)
        return len(self._names) - 1

    def __repr__(self) -> str:
        return f"RefVector({len(self._names)} names)"


class ContigPool:
    """
    Hash-backed pool of contigs.

    Lookups return the stored Contig itself; contigs are immutable so
    callers cannot alter pool state through them.
    """

    def __init__(self, contigs: Optional[Iterable[Contig]] = None, name: str = "contig"):
        """
        Args:
            contigs: Contigs to store; IDs must be unique
            name: Label used in error messages ('master', 'slave', ...)
        """
        self.name = name
        self._contigs: Dict[int, Contig] = {}
        for ctg in contigs or []:
            self.add(ctg)

    def add(self, ctg: Contig):
        if ctg.id in self._contigs:
            raise ValueError(f"Duplicate contig ID {ctg.id} in {self.name} pool")
        self._contigs[ctg.id] = ctg

    def lookup(self, ctg_id: int) -> Contig:
        """
        Get a contig by ID.

        Raises:
            ContigNotFoundError: If *ctg_id* is not in the pool
        """
        try:
            return self._contigs[ctg_id]
        except KeyError:
            raise ContigNotFoundError(ctg_id, self.name) from None

    def __contains__(self, ctg_id: int) -> bool:
        return ctg_id in self._contigs

    def __len__(self) -> int:
        return len(self._contigs)

    def ids(self) -> List[int]:
        """Contig IDs in ascending order."""
        return sorted(self._contigs)

    def total_length(self) -> int:
        return sum(len(ctg) for ctg in self._contigs.values())

    def __repr__(self) -> str:
        return f"ContigPool(name={self.name!r}, contigs={len(self)})"

    @classmethod
    def from_records(cls, records: Iterable[Tuple[str, str]], name: str = "contig") -> Tuple['ContigPool', RefVector]:
        """
        Build a pool from (name, sequence) pairs; IDs follow input order.
        """
        pool = cls(name=name)
        refs = RefVector()
        for ctg_name, sequence in records:
            ctg_id = refs.append(ctg_name)
            pool.add(Contig(id=ctg_id, sequence=sequence, name=ctg_name))
        return pool, refs

    @classmethod
    def from_fasta(cls, filepath: Union[str, Path], name: str = "contig") -> Tuple['ContigPool', RefVector]:
        """
        Load an assembly from a FASTA or FASTQ file (optionally gzipped).

        FASTQ records keep their Phred qualities; FASTA records get the
        default quality.

        Args:
            filepath: Path to the assembly
            name: Pool label

        Returns:
            (pool, ref_vector) with IDs assigned in file order
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Assembly file not found: {filepath}")

        stem_suffix = filepath.with_suffix('').suffix if filepath.suffix in ('.gz', '.gzip') else filepath.suffix
        fmt = 'fastq' if stem_suffix.lower() in FASTQ_SUFFIXES else 'fasta'

        pool = cls(name=name)
        refs = RefVector()

        with _open_text(filepath) as handle:
            for record in SeqIO.parse(handle, fmt):
                ctg_id = refs.append(record.id)
                pool.add(Contig(
                    id=ctg_id,
                    sequence=str(record.seq),
                    quality=record.letter_annotations.get('phred_quality'),
                    name=record.id,
                ))

        logger.info(f"Loaded {len(pool)} {name} contigs ({pool.total_length()} bp) from {filepath}")
        return pool, refs


def _open_text(filepath: Path) -> TextIO:
    if filepath.suffix in ('.gz', '.gzip'):
        return gzip.open(filepath, 'rt')
    return open(filepath, 'r')


__all__ = ['ContigPool', 'RefVector']

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
