"""
Input file roles, output file naming and the output routing table.
"""

import logging
import os
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import Compression, ReadRole, ROLE_TAGS, SampleId
from .errors import ConfigurationError
from .fastq import FastqRecord, FastqWriter
from .samples import SampleRegistry

SUFFIX_PATTERN = re.compile(r'.+(_L\d{3}_R[1234]_\d{3}).+$')

COMPRESSION_SUFFIXES = {
    Compression.NONE: ".fastq",
    Compression.GZIP: ".fastq.gz",
    Compression.BZIP2: ".fastq.bz2",
}


def assign_input_roles(fastq_files: Sequence[str]) -> Dict[ReadRole, str]:
    """
    Map each of the four input files to its role using bcl2fastq read tags:
    _R1_ read1, _R2_ index1, _R3_ index2, _R4_ read2.
    """
    if len(fastq_files) != 4:
        raise ConfigurationError(f"Expected 4 input files - not {len(fastq_files)}")

    roles = {}
    for role, tag in ROLE_TAGS.items():
        matches = [f for f in fastq_files if tag in os.path.basename(f)]
        if len(matches) != 1:
            raise ConfigurationError(f"Expected exactly one {role.value} file containing {tag} - "
                                     f"found {len(matches)}: {matches}")
        roles[role] = matches[0]
    return roles


def suffix_extract(filename: str, compress: Optional[str] = Compression.NONE) -> str:
    """Output suffix such as _L001_R1_001.fastq.gz taken from an input file name."""
    match = SUFFIX_PATTERN.match(os.path.basename(filename))
    if not match:
        raise ConfigurationError(f"Unable to parse file suffix from: {filename}")
    return match.group(1) + COMPRESSION_SUFFIXES[compress]


class OutputRouter:
    """
    Forward/reverse writers for every sample position plus one undetermined pair.

    Sinks are opened on __enter__ and each is closed exactly once on __exit__,
    whatever ended the run.
    """

    def __init__(self, output_dir: str, registry: SampleRegistry, suffix1: str, suffix2: str,
                 compress: Optional[str] = Compression.NONE):
        self.output_dir = output_dir
        self.compress = compress
        self._names = [(f"{s.id}{suffix1}", f"{s.id}{suffix2}") for s in registry]
        self._undetermined_names = (f"{SampleId.UNDETERMINED}{suffix1}", f"{SampleId.UNDETERMINED}{suffix2}")
        self._sinks: List[Tuple[FastqWriter, FastqWriter]] = []
        self._undetermined: Optional[Tuple[FastqWriter, FastqWriter]] = None
        self._opened: List[FastqWriter] = []

    def __enter__(self):
        os.makedirs(self.output_dir, exist_ok=True)
        try:
            self._sinks = [self._open_pair(names) for names in self._names]
            self._undetermined = self._open_pair(self._undetermined_names)
        except BaseException:
            self.close_all()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()

    def _open_pair(self, names: Tuple[str, str]) -> Tuple[FastqWriter, FastqWriter]:
        pair = []
        for name in names:
            writer = FastqWriter(os.path.join(self.output_dir, name), self.compress)
            self._opened.append(writer)
            pair.append(writer)
        return pair[0], pair[1]

    def write(self, position: Optional[int], read1: FastqRecord, read2: FastqRecord):
        """Write a read pair to a sample position, or to undetermined when position is None."""
        forward, reverse = self._undetermined if position is None else self._sinks[position]
        forward.write(read1)
        reverse.write(read2)

    def output_files(self) -> List[str]:
        return [w.filename for w in self._opened]

    def close_all(self):
        """Close every opened writer, reporting the first failure after trying them all."""
        first_error = None
        for writer in self._opened:
            try:
                writer.close()
            except Exception as e:
                logging.error(f"Error closing {writer.filename}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
