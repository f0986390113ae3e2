"""
Constants and enumerations shared across the indexmux modules.
"""

from enum import Enum

ALPHABET = "ATCG"

# Nucleotide to decimal digit table used to build integer index keys
KEY_DIGITS = str.maketrans("ATCG", "0123")

DEFAULT_SCORES_MIN = 16
DEFAULT_SCORES_MEAN = 16
DEFAULT_MISMATCHES = 1
DEFAULT_REPORT_INTERVAL = 1000

MISMATCHES_RANGE = (0, 3)
SCORES_RANGE = (0, 40)

PHRED_OFFSET = 33

LOG_FILE_NAME = "Demultiplex.log"


class SampleId:
    UNDETERMINED = "Undetermined"


class Compression:
    NONE = None
    GZIP = "gzip"
    BZIP2 = "bzip2"

    @staticmethod
    def choices():
        return [Compression.GZIP, Compression.BZIP2]


class TableBacking:
    AUTO = "auto"
    SPARSE = "sparse"
    DENSE = "dense"

    @staticmethod
    def choices():
        return [TableBacking.AUTO, TableBacking.SPARSE, TableBacking.DENSE]


class ReadRole(Enum):
    """Positional role of each of the four synchronized input streams."""
    INDEX1 = "index1"
    INDEX2 = "index2"
    READ1 = "read1"
    READ2 = "read2"


# bcl2fastq read number tags identifying each input role
ROLE_TAGS = {
    ReadRole.READ1: "_R1_",
    ReadRole.INDEX1: "_R2_",
    ReadRole.INDEX2: "_R3_",
    ReadRole.READ2: "_R4_",
}


class FilterReason(Enum):
    """Quality gate failures, in the order they are evaluated."""
    INDEX1_BAD_MEAN = 1
    INDEX2_BAD_MEAN = 2
    INDEX1_BAD_MIN = 3
    INDEX2_BAD_MIN = 4

    def to_string(self) -> str:
        """Counter name used in statistics and the run log."""
        return self.name.lower()
