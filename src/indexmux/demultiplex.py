#!/usr/bin/env python3

"""
Core demultiplexing pipeline logic.

Drives the four synchronized FASTQ streams (index1, index2, read1, read2)
in lockstep: each index pair passes the quality gate and the index table
lookup, and the read pair is written to its sample or to Undetermined.
"""

import logging
import os
import timeit
from contextlib import ExitStack
from enum import Enum
from typing import Dict, NamedTuple, Optional, Sequence

from tqdm import tqdm

from .config import DemuxConfig
from .constants import FilterReason, ReadRole
from .errors import ConfigurationError, DemuxError
from .fastq import FastqReader, FastqRecord
from .files import OutputRouter, assign_input_roles, suffix_extract
from .index_table import IndexLookup, build_index_table
from .quality import QualityGate
from .samples import SampleRegistry, read_samples_file
from .stats import RunStatistics, write_run_log


class DemuxState(Enum):
    IDLE = 1
    INITIALIZED = 2
    RUNNING = 3
    FINALIZING = 4
    DONE = 5
    FAILED = 6


class Classification(NamedTuple):
    """Routing decision for one index pair; position None means Undetermined."""
    position: Optional[int]
    reason: Optional[FilterReason] = None

    @property
    def matched(self) -> bool:
        return self.position is not None


class Demultiplexer:
    def __init__(self, fastq_files: Sequence[str], registry: SampleRegistry, config: DemuxConfig):
        self.fastq_files = list(fastq_files)
        self.registry = registry
        self.config = config
        self.state = DemuxState.IDLE
        self.stats = RunStatistics()
        self.inputs: Dict[ReadRole, str] = {}
        self.suffix1 = None
        self.suffix2 = None
        self.lookup: Optional[IndexLookup] = None
        self.gate: Optional[QualityGate] = None
        self.log_path = None
        self._stop_requested = False

    def initialize(self):
        """Validate inputs and build the index table; no output is created here."""
        if self.state != DemuxState.IDLE:
            raise DemuxError(f"Cannot initialize from state {self.state.name}")
        try:
            self.inputs = assign_input_roles(self.fastq_files)
            for role, filename in self.inputs.items():
                if not os.path.isfile(filename):
                    raise ConfigurationError(f"No such {role.value} file: {filename}")
            self.suffix1 = suffix_extract(self.inputs[ReadRole.READ1], self.config.compress)
            self.suffix2 = suffix_extract(self.inputs[ReadRole.READ2], self.config.compress)
            self.lookup = build_index_table(self.registry, self.config)
            self.gate = QualityGate.from_config(self.config)
        except DemuxError:
            self.state = DemuxState.FAILED
            raise
        self.state = DemuxState.INITIALIZED

    def request_stop(self):
        """Stop after the record pair currently being processed."""
        self._stop_requested = True

    def classify(self, index1: FastqRecord, index2: FastqRecord) -> Classification:
        reason = self.gate.evaluate(index1, index2)
        if reason is not None:
            return Classification(None, reason)
        return Classification(self.lookup.lookup(index1.sequence, index2.sequence))

    def run(self) -> RunStatistics:
        if self.state == DemuxState.IDLE:
            self.initialize()
        if self.state != DemuxState.INITIALIZED:
            raise DemuxError(f"Cannot run from state {self.state.name}")

        start_time = timeit.default_timer()
        self.state = DemuxState.RUNNING
        try:
            with ExitStack() as stack:
                readers = {role: stack.enter_context(FastqReader(filename))
                           for role, filename in self.inputs.items()}
                router = stack.enter_context(OutputRouter(self.config.output_dir, self.registry,
                                                          self.suffix1, self.suffix2, self.config.compress))
                # Callbacks unwind first, so the state flips before any sink is closed
                stack.callback(self._finalize)
                self._run_loop(readers, router)
        except BaseException:
            self.state = DemuxState.FAILED
            raise

        if self.stats.count > 0:
            logging.info(f"Processed {self.stats.count:,} reads, match rate: {self.stats.match_rate():.1%}")
        else:
            logging.warning("No reads processed")
        self.log_path = write_run_log(self.config.output_dir, self.stats, self.registry)

        elapsed = timeit.default_timer() - start_time
        logging.info(f"Elapsed time: {elapsed:.2f} seconds")
        self.state = DemuxState.DONE
        return self.stats

    def _finalize(self):
        self.state = DemuxState.FINALIZING

    def _run_loop(self, readers: Dict[ReadRole, FastqReader], router: OutputRouter):
        # zip stops at the shortest stream; unequal inputs are truncated silently
        records = zip(readers[ReadRole.INDEX1], readers[ReadRole.INDEX2],
                      readers[ReadRole.READ1], readers[ReadRole.READ2])
        limit = self.config.num_pairs
        interval = self.config.report_interval

        pbar = tqdm(desc="Demultiplexing", unit="pair", disable=not self.config.verbose)
        try:
            while not self._stop_requested and (limit < 0 or self.stats.pairs < limit):
                quad = next(records, None)
                if quad is None:
                    break
                self._process(*quad, router)
                pbar.update(1)
                if self.stats.pairs % interval == 0:
                    self._report_progress(pbar)
        finally:
            pbar.close()

    def _process(self, index1: FastqRecord, index2: FastqRecord,
                 read1: FastqRecord, read2: FastqRecord, router: OutputRouter):
        classification = self.classify(index1, index2)
        if classification.matched:
            router.write(classification.position, read1, read2)
            self.stats.record_match()
        else:
            read1.append_to_title(index1.sequence)
            read2.append_to_title(index2.sequence)
            router.write(None, read1, read2)
            self.stats.record_undetermined(classification.reason)

    def _report_progress(self, pbar: tqdm):
        pbar.set_description(f"Demultiplexing [Undetermined: {self.stats.undetermined_percent()}%]")
        logging.debug(f"Progress: {self.stats.snapshot()}")


def run_demultiplex(fastq_files: Sequence[str], samples_file: str, config: DemuxConfig) -> RunStatistics:
    registry = read_samples_file(samples_file, config)
    demultiplexer = Demultiplexer(fastq_files, registry, config)
    return demultiplexer.run()
