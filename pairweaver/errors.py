#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PairWeaver v0.1.0

Exception hierarchy shared by the pools, the builder and the configuration
layer.

Rejected alignments are not errors: they are reported through
``MergeStatus.REJECTED`` on the merge result.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""


class PairWeaverError(Exception):
    """Base class for all PairWeaver errors."""
    pass


class ContigNotFoundError(PairWeaverError, KeyError):
    """Raised when a contig ID is absent from its pool."""

    def __init__(self, ctg_id, pool_name: str = "contig"):
        self.ctg_id = ctg_id
        self.pool_name = pool_name
        super().__init__(f"Contig {ctg_id!r} not found in {pool_name} pool")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidStateError(PairWeaverError):
    """Raised when a paired contig is not in the state an operation requires."""
    pass


class InvalidBlockError(PairWeaverError, ValueError):
    """Raised when a first/last block pair does not describe one contig pair."""
    pass


class BuilderNotConfiguredError(PairWeaverError):
    """Raised when a builder operation needs collaborators that were never set."""
    pass


class ConfigValidationError(PairWeaverError, ValueError):
    """Raised when configuration validation fails."""
    pass


__all__ = [
    'PairWeaverError',
    'ContigNotFoundError',
    'InvalidStateError',
    'InvalidBlockError',
    'BuilderNotConfiguredError',
    'ConfigValidationError',
]

# PairWeaver v0.1.0
# Any usage is subject to this software's license.
