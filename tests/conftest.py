"""
Shared pytest fixtures for indexmux tests.
"""

import pytest
import tempfile
from pathlib import Path

from indexmux.config import DemuxConfig
from indexmux.samples import build_registry

HIGH_QUALITY = "I"  # Phred 40


def fastq_text(records):
    """FASTQ text from (title, sequence, quality) tuples; quality defaults to all 'I'."""
    lines = []
    for record in records:
        title, sequence = record[0], record[1]
        quality = record[2] if len(record) > 2 else HIGH_QUALITY * len(sequence)
        lines.append(f"@{title}\n{sequence}\n+\n{quality}\n")
    return "".join(lines)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="indexmux_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_manifest():
    """Provide sample manifest data for testing."""
    return "S1\tAAAA\tCCCC\nS2\tTTTT\tGGGG\n"


@pytest.fixture
def samples_file(temp_dir, sample_manifest):
    path = temp_dir / "samples.tsv"
    path.write_text(sample_manifest)
    return path


@pytest.fixture
def registry():
    return build_registry([("S1", "AAAA", "CCCC"), ("S2", "TTTT", "GGGG")], DemuxConfig())


@pytest.fixture
def make_run(temp_dir):
    """
    Write the four input files for a run.

    Each pair is a dict with index1/index2 sequences and optional
    index1_quality/index2_quality strings. Returns the four paths in
    read1, index1, index2, read2 order.
    """
    def _make_run(pairs, prefix="Run", lengths=None):
        streams = {"R1": [], "R2": [], "R3": [], "R4": []}
        for n, pair in enumerate(pairs, start=1):
            i1 = pair["index1"]
            i2 = pair["index2"]
            streams["R1"].append((f"read{n} 1:N:0", "ACGTACGTAC"))
            streams["R2"].append((f"read{n} 2:N:0", i1, pair.get("index1_quality", HIGH_QUALITY * len(i1))))
            streams["R3"].append((f"read{n} 3:N:0", i2, pair.get("index2_quality", HIGH_QUALITY * len(i2))))
            streams["R4"].append((f"read{n} 4:N:0", "TTGCATGCAA"))

        paths = []
        for tag in ("R1", "R2", "R3", "R4"):
            records = streams[tag]
            if lengths and tag in lengths:
                records = records[:lengths[tag]]
            path = temp_dir / f"{prefix}_S1_L001_{tag}_001.fastq"
            path.write_text(fastq_text(records))
            paths.append(str(path))
        return paths

    return _make_run


def read_fastq_titles(path):
    lines = Path(path).read_text().splitlines()
    return [line[1:] for line in lines[0::4]]


# Markers for test organization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
