#!/usr/bin/env python3

"""
Command line interface for indexmux.
"""

import argparse
import logging
import sys

from . import __version__
from .config import DemuxConfig
from .constants import (
    Compression, TableBacking, DEFAULT_MISMATCHES, DEFAULT_SCORES_MIN, DEFAULT_SCORES_MEAN,
    DEFAULT_REPORT_INTERVAL
)
from .demultiplex import run_demultiplex
from .errors import DemuxError


def version():
    return f"indexmux version {__version__}"


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Indexmux: Demultiplex Illumina paired-end reads by dual index reads.",
        epilog="The four FASTQ files are recognised by their read tags: "
               "_R1_ read1, _R2_ index1, _R3_ index2, _R4_ read2.")

    parser.add_argument("fastq_files", nargs='+', help="Index and read FASTQ files, gzipped, bzipped or plain text")
    parser.add_argument("-s", "--samples-file", required=True,
                        help="TSV file with sample id, index1 and index2 columns")
    parser.add_argument("-m", "--mismatches-max", type=int, default=DEFAULT_MISMATCHES,
                        help=f"Maximum mismatches allowed per index, 0-3 (default: {DEFAULT_MISMATCHES})")
    parser.add_argument("--revcomp-index1", action="store_true", help="Reverse complement index1")
    parser.add_argument("--revcomp-index2", action="store_true", help="Reverse complement index2")
    parser.add_argument("--scores-min", type=int, default=DEFAULT_SCORES_MIN,
                        help=f"Drop reads if a single position in an index has a quality score below this "
                             f"(default: {DEFAULT_SCORES_MIN})")
    parser.add_argument("--scores-mean", type=int, default=DEFAULT_SCORES_MEAN,
                        help=f"Drop reads if the mean index quality score is below this (default: {DEFAULT_SCORES_MEAN})")
    parser.add_argument("-o", "--output-dir", default=".", help="Output directory (default: .)")
    parser.add_argument("-c", "--compress", choices=Compression.choices(), default=None,
                        help="Compress output (default: no compression)")
    parser.add_argument("-n", "--num-pairs", type=int, default=-1,
                        help="Number of read pairs to process (default: all)")
    parser.add_argument("--report-interval", type=int, default=DEFAULT_REPORT_INTERVAL,
                        help=f"Read pairs between progress updates (default: {DEFAULT_REPORT_INTERVAL})")
    parser.add_argument("--table-backing", choices=TableBacking.choices(), default=TableBacking.AUTO,
                        help="Index table storage (default: auto)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=version())

    return parser.parse_args(argv[1:])


def main(argv=None):
    if argv is None:
        argv = sys.argv
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = DemuxConfig.from_args(args)
        run_demultiplex(args.fastq_files, args.samples_file, config)
    except DemuxError as e:
        logging.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv)
