"""
PairWeaver v0.1.0

Sequence utility functions for PairWeaver.

Provides the base-level helpers shared by contigs, paired contigs and the
alignment scorer.
"""

from typing import Sequence

import numpy as np

# Base written where no assembly supplies evidence
PLACEHOLDER_BASE = 'N'

# Phred score assumed for bases read from files without qualities
DEFAULT_PHRED = 20

_COMPLEMENT = str.maketrans('ACGTNacgtn', 'TGCANtgcan')


def reverse_complement(sequence: str) -> str:
    """
    Generate reverse complement of DNA sequence.
    
    Args:
        sequence: DNA sequence string
        
    Returns:
        Reverse complement sequence
        
    Example:
        >>> reverse_complement("ATCG")
        'CGAT'
    """
    return sequence.translate(_COMPLEMENT)[::-1]


def encode_bases(sequence: str) -> np.ndarray:
    """Return *sequence* as a uint8 array of ASCII codes (upper-cased)."""
    return np.frombuffer(sequence.upper().encode('ascii'), dtype=np.uint8)


def decode_bases(codes: np.ndarray) -> str:
    """Inverse of :func:`encode_bases`."""
    return np.asarray(codes, dtype=np.uint8).tobytes().decode('ascii')


def placeholder_run(length: int) -> str:
    """Run of placeholder bases used for gaps and blank shifts."""
    return PLACEHOLDER_BASE * max(0, length)


def phred_array(scores: Sequence[int] = (), length: int = 0, fill: int = 0) -> np.ndarray:
    """
    Build a Phred quality array.

    Args:
        scores: Explicit per-base scores; wins over *length*/*fill*
        length: Array length when *scores* is empty
        fill: Score used for every position when *scores* is empty

    Returns:
        uint8 numpy array of Phred scores
    """
    if len(scores):
        return np.clip(np.asarray(scores, dtype=np.int64), 0, 255).astype(np.uint8)
    return np.full(max(0, length), fill, dtype=np.uint8)


def phred_from_ascii(quality: str, offset: int = 33) -> np.ndarray:
    """
    Convert a Phred+33 quality string to scores.

    Example:
        >>> phred_from_ascii("I#").tolist()
        [40, 2]
    """
    return phred_array([ord(c) - offset for c in quality], length=len(quality))


__all__ = [
    'PLACEHOLDER_BASE',
    'DEFAULT_PHRED',
    'reverse_complement',
    'encode_bases',
    'decode_bases',
    'placeholder_run',
    'phred_array',
    'phred_from_ascii',
]
