"""
FASTQ record streams: a reader yielding records with index quality summaries
and a buffered writer, both handling gzip and bzip2 compression.
"""

import bz2
import gzip
import logging
import os
from typing import Iterator, List, Optional

from Bio.SeqIO.QualityIO import FastqGeneralIterator

from .constants import Compression, PHRED_OFFSET

COMPRESSION_EXTENSIONS = {
    '.gz': Compression.GZIP,
    '.gzip': Compression.GZIP,
    '.bz2': Compression.BZIP2,
}


class FastqRecord:
    __slots__ = ('title', 'sequence', 'quality')

    def __init__(self, title: str, sequence: str, quality: str):
        self.title = title
        self.sequence = sequence
        self.quality = quality

    @property
    def scores_mean(self) -> float:
        if not self.quality:
            return 0.0
        return sum(self.quality.encode('ascii')) / len(self.quality) - PHRED_OFFSET

    @property
    def scores_min(self) -> int:
        if not self.quality:
            return 0
        return ord(min(self.quality)) - PHRED_OFFSET

    def append_to_title(self, text: str):
        self.title = f"{self.title} {text}"

    def to_fastq(self) -> str:
        return f"@{self.title}\n{self.sequence}\n+\n{self.quality}\n"

    def __repr__(self):
        return f"FastqRecord({self.title!r}, {self.sequence!r}, {self.quality!r})"


def detect_compression(filename: str) -> Optional[str]:
    _, ext = os.path.splitext(filename)
    return COMPRESSION_EXTENSIONS.get(ext.lower(), Compression.NONE)


def open_text(filename: str, mode: str, compress: Optional[str] = Compression.NONE):
    """Open a text handle, compressed according to `compress`."""
    if compress == Compression.GZIP:
        return gzip.open(filename, mode + 't')
    if compress == Compression.BZIP2:
        return bz2.open(filename, mode + 't')
    return open(filename, mode)


class FastqReader:
    """Sequential FASTQ reader; compression is detected from the file extension."""

    def __init__(self, filename: str):
        self.filename = filename
        self._handle = open_text(filename, 'r', detect_compression(filename))
        self._records = FastqGeneralIterator(self._handle)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator[FastqRecord]:
        for title, sequence, quality in self._records:
            yield FastqRecord(title, sequence, quality)

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class FastqWriter:
    """Buffered FASTQ writer."""

    def __init__(self, filename: str, compress: Optional[str] = Compression.NONE, buffer_size: int = 500):
        self.filename = filename
        self.buffer_size = buffer_size
        self._buffer: List[str] = []
        self._handle = open_text(filename, 'w', compress)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def write(self, record: FastqRecord):
        self._buffer.append(record.to_fastq())
        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self):
        if not self._buffer:
            return
        self._handle.write(''.join(self._buffer))
        self._buffer.clear()

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self):
        """Flush and close; later calls do nothing."""
        if self._handle is None:
            return
        try:
            self.flush()
        finally:
            self._handle.close()
            self._handle = None
            logging.debug(f"Closed {self.filename}")
