"""Indexmux: Demultiplexing of dual-indexed Illumina paired-end reads."""

__version__ = "0.1.0"

# Public API
from .config import DemuxConfig
from .demultiplex import Demultiplexer, DemuxState, run_demultiplex
from .errors import AmbiguityError, ConfigurationError, DemuxError
from .index_table import build_index_table, expand_ball, index_key
from .samples import Sample, SampleRegistry, read_samples_file

__all__ = [
    "DemuxConfig",
    "Demultiplexer",
    "DemuxState",
    "run_demultiplex",
    "AmbiguityError",
    "ConfigurationError",
    "DemuxError",
    "build_index_table",
    "expand_ball",
    "index_key",
    "Sample",
    "SampleRegistry",
    "read_samples_file",
]
