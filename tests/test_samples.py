"""
Tests for the sample registry and samples file reader.
"""

import pytest

from indexmux.config import DemuxConfig
from indexmux.errors import AmbiguityError, ConfigurationError
from indexmux.samples import SampleRegistry, build_registry, read_samples_file


@pytest.mark.unit
class TestSampleRegistry:

    def test_positions_follow_manifest_order(self, registry):
        assert len(registry) == 2
        assert registry[0].id == "S1"
        assert registry[1].id == "S2"
        assert [s.index1 for s in registry] == ["AAAA", "TTTT"]

    def test_indexes_upper_cased(self):
        registry = build_registry([("S1", "acgt", "ttgg")], DemuxConfig())
        assert registry[0].index1 == "ACGT"
        assert registry[0].index2 == "TTGG"

    def test_duplicate_id_names_both_rows(self):
        with pytest.raises(AmbiguityError) as exc_info:
            build_registry([("S1", "AAAA", "CCCC"), ("S1", "TTTT", "GGGG")], DemuxConfig())
        assert "rows 1 and 2" in str(exc_info.value)
        assert exc_info.value.sample_ids == ("S1", "S1")

    def test_duplicate_index_pair(self):
        with pytest.raises(AmbiguityError) as exc_info:
            build_registry([("S1", "AAAA", "CCCC"), ("S2", "AAAA", "CCCC")], DemuxConfig())
        assert exc_info.value.sample_ids == ("S1", "S2")

    def test_shared_single_index_is_allowed(self):
        registry = build_registry([("S1", "AAAA", "CCCC"), ("S2", "AAAA", "GGGG")], DemuxConfig())
        assert len(registry) == 2

    def test_revcomp_applied_on_load(self):
        config = DemuxConfig(revcomp_index1=True)
        registry = build_registry([("S1", "AACG", "CCCC")], config)
        assert registry[0].index1 == "CGTT"
        assert registry[0].index2 == "CCCC"

        config = DemuxConfig(revcomp_index2=True)
        registry = build_registry([("S1", "AACG", "CCCA")], config)
        assert registry[0].index1 == "AACG"
        assert registry[0].index2 == "TGGG"

    def test_revcomp_applied_before_uniqueness_check(self):
        registry = SampleRegistry(revcomp_index1=True)
        registry.add_sample("S1", "AACG", "CCCC")
        with pytest.raises(AmbiguityError) as exc_info:
            registry.add_sample("S2", "AACG", "CCCC", row_num=2)
        # The transformed values are what is compared
        assert "CGTT+CCCC" in str(exc_info.value)

    def test_undetermined_id_is_reserved(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_registry([("Undetermined", "AAAA", "CCCC"), ("S2", "TTTT", "GGGG")], DemuxConfig())
        assert "reserved" in str(exc_info.value)

    @pytest.mark.parametrize("sample_id", ["", "sub/S2", "../S2"])
    def test_id_unusable_as_file_name(self, sample_id):
        with pytest.raises(ConfigurationError):
            build_registry([("S1", "AAAA", "CCCC"), (sample_id, "TTTT", "GGGG")], DemuxConfig())

    def test_invalid_characters(self):
        with pytest.raises(ConfigurationError):
            build_registry([("S1", "AANA", "CCCC")], DemuxConfig())

    def test_inconsistent_lengths(self):
        with pytest.raises(ConfigurationError):
            build_registry([("S1", "AAAA", "CCCC"), ("S2", "TTT", "GGGG")], DemuxConfig())

    def test_short_row(self):
        with pytest.raises(ConfigurationError):
            build_registry([("S1", "AAAA")], DemuxConfig())

    def test_empty_registry(self):
        with pytest.raises(ConfigurationError):
            build_registry([], DemuxConfig())

    def test_distinct_indexes_sorted(self):
        rows = [("S3", "TTTT", "CCCC"), ("S1", "AAAA", "CCCC"), ("S2", "GGGG", "AAAA")]
        registry = build_registry(rows, DemuxConfig())
        assert registry.distinct_index1() == ["AAAA", "GGGG", "TTTT"]
        assert registry.distinct_index2() == ["AAAA", "CCCC"]
        assert registry.sample_ids() == ["S3", "S1", "S2"]


@pytest.mark.unit
class TestReadSamplesFile:

    def test_read(self, samples_file):
        registry = read_samples_file(str(samples_file), DemuxConfig())
        assert registry.sample_ids() == ["S1", "S2"]
        assert registry.index_lengths() == (4, 4)

    def test_comments_and_blank_lines_skipped(self, temp_dir):
        path = temp_dir / "samples.tsv"
        path.write_text("# id\tindex1\tindex2\n\nS1\tAAAA\tCCCC\n\nS2\tTTTT\tGGGG\n")
        registry = read_samples_file(str(path), DemuxConfig())
        assert len(registry) == 2

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError):
            read_samples_file(str(temp_dir / "missing.tsv"), DemuxConfig())

    def test_missing_column(self, temp_dir):
        path = temp_dir / "samples.tsv"
        path.write_text("S1\tAAAA\n")
        with pytest.raises(ConfigurationError):
            read_samples_file(str(path), DemuxConfig())
