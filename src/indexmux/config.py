"""
Immutable run configuration threaded through registry, table and classifier.
"""

import argparse
from dataclasses import dataclass
from typing import Optional

from .constants import (
    Compression, TableBacking, DEFAULT_MISMATCHES, DEFAULT_SCORES_MIN, DEFAULT_SCORES_MEAN,
    DEFAULT_REPORT_INTERVAL, MISMATCHES_RANGE, SCORES_RANGE
)
from .errors import ConfigurationError


@dataclass(frozen=True)
class DemuxConfig:
    mismatches_max: int = DEFAULT_MISMATCHES
    scores_min: int = DEFAULT_SCORES_MIN
    scores_mean: int = DEFAULT_SCORES_MEAN
    revcomp_index1: bool = False
    revcomp_index2: bool = False
    compress: Optional[str] = Compression.NONE
    output_dir: str = "."
    report_interval: int = DEFAULT_REPORT_INTERVAL
    num_pairs: int = -1
    table_backing: str = TableBacking.AUTO
    verbose: bool = False

    def __post_init__(self):
        _check_range("mismatches_max", self.mismatches_max, MISMATCHES_RANGE)
        _check_range("scores_min", self.scores_min, SCORES_RANGE)
        _check_range("scores_mean", self.scores_mean, SCORES_RANGE)

        if self.compress not in [Compression.NONE] + Compression.choices():
            raise ConfigurationError(f"Bad compression mode: {self.compress}")
        if self.table_backing not in TableBacking.choices():
            raise ConfigurationError(f"Bad index table backing: {self.table_backing}")
        if self.report_interval <= 0:
            raise ConfigurationError(f"report_interval must be > 0 - not {self.report_interval}")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "DemuxConfig":
        return cls(
            mismatches_max=args.mismatches_max,
            scores_min=args.scores_min,
            scores_mean=args.scores_mean,
            revcomp_index1=args.revcomp_index1,
            revcomp_index2=args.revcomp_index2,
            compress=args.compress,
            output_dir=args.output_dir,
            report_interval=args.report_interval,
            num_pairs=args.num_pairs,
            table_backing=args.table_backing,
            verbose=args.verbose,
        )


def _check_range(name: str, value: int, bounds):
    low, high = bounds
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer - not {value!r}")
    if value < low:
        raise ConfigurationError(f"{name} must be >= {low} - not {value}")
    if value > high:
        raise ConfigurationError(f"{name} must be <= {high} - not {value}")
