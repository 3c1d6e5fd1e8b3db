"""
Utilities module for PairWeaver.

- Sequence helpers (reverse complement, Phred arrays, placeholder runs)
- Logging setup for the command line
"""

from .sequence_utils import (
    PLACEHOLDER_BASE,
    DEFAULT_PHRED,
    reverse_complement,
    encode_bases,
    decode_bases,
    placeholder_run,
    phred_array,
    phred_from_ascii,
)
from .logging_utils import setup_logging

__all__ = [
    # Sequence helpers
    "PLACEHOLDER_BASE",
    "DEFAULT_PHRED",
    "reverse_complement",
    "encode_bases",
    "decode_bases",
    "placeholder_run",
    "phred_array",
    "phred_from_ascii",
    # Logging
    "setup_logging",
]
