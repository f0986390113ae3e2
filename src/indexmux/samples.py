"""
Sample registry: the validated, ordered list of samples and their index pairs.
"""

import csv
import logging
import os
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from Bio.Seq import reverse_complement

from .config import DemuxConfig
from .constants import ALPHABET, SampleId
from .errors import AmbiguityError, ConfigurationError


class Sample(NamedTuple):
    id: str
    index1: str
    index2: str


class SampleRegistry:
    """Ordered samples; a sample's position is its numeric key in the index table."""

    def __init__(self, revcomp_index1: bool = False, revcomp_index2: bool = False):
        self._samples: List[Sample] = []
        self._revcomp_index1 = revcomp_index1
        self._revcomp_index2 = revcomp_index2
        self._rows_by_id: Dict[str, int] = {}
        self._ids_by_pair: Dict[Tuple[str, str], str] = {}

    def add_sample(self, sample_id: str, index1: str, index2: str, row_num: Optional[int] = None) -> Sample:
        """Add a sample, applying any reverse complement before uniqueness checks."""
        row_num = row_num if row_num is not None else len(self._samples) + 1
        if not sample_id:
            raise ConfigurationError(f"Empty sample id on row {row_num}")
        if "/" in sample_id or os.sep in sample_id:
            raise ConfigurationError(f"Sample id {sample_id} on row {row_num} contains a path separator")
        if sample_id == SampleId.UNDETERMINED:
            raise ConfigurationError(f"Sample id {sample_id} on row {row_num} is reserved for unmatched reads")
        index1 = index1.strip().upper()
        index2 = index2.strip().upper()

        for name, index in (("index1", index1), ("index2", index2)):
            if not index:
                raise ConfigurationError(f"Empty {name} for sample {sample_id} on row {row_num}")
            bad = set(index) - set(ALPHABET)
            if bad:
                raise ConfigurationError(
                    f"Invalid characters {sorted(bad)} in {name} {index} for sample {sample_id} on row {row_num}")

        if self._revcomp_index1:
            index1 = reverse_complement(index1)
        if self._revcomp_index2:
            index2 = reverse_complement(index2)

        if sample_id in self._rows_by_id:
            raise AmbiguityError(
                f"Non-unique sample id {sample_id} on rows {self._rows_by_id[sample_id]} and {row_num}",
                (sample_id, sample_id))

        pair = (index1, index2)
        if pair in self._ids_by_pair:
            other = self._ids_by_pair[pair]
            raise AmbiguityError(
                f"Samples with same index combination {index1}+{index2}: {other} and {sample_id}",
                (other, sample_id))

        sample = Sample(sample_id, index1, index2)
        self._rows_by_id[sample_id] = row_num
        self._ids_by_pair[pair] = sample_id
        self._samples.append(sample)
        return sample

    def validate(self):
        if not self._samples:
            raise ConfigurationError("No samples found in the samples file")
        self._validate_index_lengths()

    def _validate_index_lengths(self):
        for column in ("index1", "index2"):
            lengths = set(len(getattr(s, column)) for s in self._samples)
            if len(lengths) > 1:
                raise ConfigurationError(f"{column} sequences have inconsistent lengths: {sorted(lengths)}")

    def __len__(self):
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    def __getitem__(self, position: int) -> Sample:
        return self._samples[position]

    def sample_ids(self) -> List[str]:
        return [s.id for s in self._samples]

    def index_lengths(self) -> Tuple[int, int]:
        if not self._samples:
            return 0, 0
        return len(self._samples[0].index1), len(self._samples[0].index2)

    def distinct_index1(self) -> List[str]:
        return sorted(set(s.index1 for s in self._samples))

    def distinct_index2(self) -> List[str]:
        return sorted(set(s.index2 for s in self._samples))


def build_registry(rows: Iterable[Sequence[str]], config: DemuxConfig) -> SampleRegistry:
    """Build and validate a registry from (id, index1, index2) rows."""
    registry = SampleRegistry(config.revcomp_index1, config.revcomp_index2)
    for row_num, row in enumerate(rows, start=1):
        if len(row) < 3:
            raise ConfigurationError(f"Expected 3 columns on row {row_num} - not {len(row)}")
        registry.add_sample(row[0].strip(), row[1], row[2], row_num)
    registry.validate()
    return registry


def read_samples_file(filename: str, config: DemuxConfig) -> SampleRegistry:
    """
    Read a tab-separated samples file and return a validated SampleRegistry.
    Expected columns (no header): sample_id, index1, index2
    """
    if not os.path.isfile(filename):
        raise ConfigurationError(f"No such file: {filename}")

    rows = []
    with open(filename, 'r', newline='') as f:
        reader = csv.reader(f, delimiter='\t')
        for line_num, row in enumerate(reader, start=1):
            if not row or not "".join(row).strip() or row[0].startswith('#'):
                continue
            if len(row) < 3:
                raise ConfigurationError(f"Expected 3 columns on line {line_num} of {filename} - not {len(row)}")
            rows.append(row)

    registry = build_registry(rows, config)
    logging.info(f"Loaded {len(registry)} samples from {filename}")
    return registry
