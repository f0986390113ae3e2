"""
Exception hierarchy for demultiplexing failures.

Per-record quality and lookup outcomes are never raised; they are
classification results counted in the run statistics.
"""

from typing import Tuple


class DemuxError(Exception):
    pass


class ConfigurationError(DemuxError, ValueError):
    """Bad thresholds, manifest contents or input file set."""
    pass


class AmbiguityError(DemuxError, ValueError):
    """Two samples cannot be told apart with the configured indexes."""

    def __init__(self, message: str, sample_ids: Tuple[str, ...] = ()):
        super().__init__(message)
        self.sample_ids = tuple(sample_ids)


class IndexTableError(DemuxError):
    """Internal inconsistency while building the index table."""
    pass
