"""
Run statistics and the durable run log.
"""

import json
import logging
import os
from typing import Dict, Optional

from .constants import FilterReason, LOG_FILE_NAME
from .samples import SampleRegistry

READS_PER_PAIR = 2


class RunStatistics:
    """Per-read counters: every classified pair adds two reads."""

    def __init__(self):
        self.count = 0
        self.match = 0
        self.undetermined = 0
        self.filtered: Dict[FilterReason, int] = {reason: 0 for reason in FilterReason}

    def record_match(self):
        self.count += READS_PER_PAIR
        self.match += READS_PER_PAIR

    def record_undetermined(self, reason: Optional[FilterReason] = None):
        self.count += READS_PER_PAIR
        self.undetermined += READS_PER_PAIR
        if reason is not None:
            self.filtered[reason] += READS_PER_PAIR

    @property
    def pairs(self) -> int:
        return self.count // READS_PER_PAIR

    def match_rate(self) -> float:
        return self.match / self.count if self.count else 0.0

    def undetermined_percent(self) -> float:
        return round(100 * self.undetermined / self.count, 1) if self.count else 0.0

    def as_dict(self) -> Dict[str, int]:
        counters = {
            'count': self.count,
            'match': self.match,
            'undetermined': self.undetermined,
        }
        for reason in FilterReason:
            counters[reason.to_string()] = self.filtered[reason]
        return counters

    def snapshot(self) -> str:
        counters = ", ".join(f"{k}={v:,}" for k, v in self.as_dict().items())
        return f"{counters}, undetermined_percent={self.undetermined_percent()}"


def run_log_content(stats: RunStatistics, registry: SampleRegistry) -> str:
    log = stats.as_dict()
    log['sample_id'] = sorted(registry.sample_ids())
    log['index1'] = registry.distinct_index1()
    log['index2'] = registry.distinct_index2()
    return json.dumps(log, indent=2) + "\n"


def write_run_log(output_dir: str, stats: RunStatistics, registry: SampleRegistry) -> str:
    """Write Demultiplex.log and return its path."""
    path = os.path.join(output_dir, LOG_FILE_NAME)
    with open(path, 'w') as f:
        f.write(run_log_content(stats, registry))
    logging.info(f"Wrote run log to {path}")
    return path
