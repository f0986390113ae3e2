"""
Quality gate applied to the index reads before any table lookup.
"""

from typing import Optional

from .config import DemuxConfig
from .constants import FilterReason
from .fastq import FastqRecord


class QualityGate:
    def __init__(self, scores_mean: int, scores_min: int):
        self.scores_mean = scores_mean
        self.scores_min = scores_min

    @classmethod
    def from_config(cls, config: DemuxConfig) -> "QualityGate":
        return cls(config.scores_mean, config.scores_min)

    def evaluate(self, index1: FastqRecord, index2: FastqRecord) -> Optional[FilterReason]:
        """
        First failing check in precedence order, or None if the pair passes.

        Order: index1 mean, index2 mean, index1 min, index2 min.
        """
        if index1.scores_mean < self.scores_mean:
            return FilterReason.INDEX1_BAD_MEAN
        if index2.scores_mean < self.scores_mean:
            return FilterReason.INDEX2_BAD_MEAN
        if index1.scores_min < self.scores_min:
            return FilterReason.INDEX1_BAD_MIN
        if index2.scores_min < self.scores_min:
            return FilterReason.INDEX2_BAD_MIN
        return None
