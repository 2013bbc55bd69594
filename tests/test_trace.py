"""Tests for ABIF trace reading and FASTQ/FASTA output."""

import struct
from io import StringIO

import pytest

from tracemerge.output import to_record, write_records
from tracemerge.trace import format_tag_value, list_tags, read_trace, set_string_tag

from conftest import ABIF_CSTRING, ABIF_SHORT


SEQUENCE = "ACGTTGCAACGTACGGATCC"
QUALITY = [10, 20, 30, 40, 50, 60, 12, 22, 32, 42, 15, 25, 35, 45, 55, 18, 28, 38, 48, 58]


class TestReadTrace:
    """Test loading base calls, qualities and sample names."""

    def test_reads_calls_qualities_and_name(self, write_trace):
        path = write_trace("sample_F.ab1", SEQUENCE, QUALITY, sample_name="Sample42_F")
        trace = read_trace(path)
        assert trace.sequence == SEQUENCE
        assert trace.quality == QUALITY
        assert trace.sample_name == "Sample42_F"
        assert trace.path == path
        assert len(trace.sequence) == len(trace.quality)

    def test_missing_sample_name_uses_file_stem(self, write_trace):
        path = write_trace("well_A01.ab1", SEQUENCE, QUALITY)
        assert read_trace(path).sample_name == "well_A01"

    def test_no_base_calls_rejected(self, write_trace):
        path = write_trace("fragments.ab1", None, None, sample_name="fragments")
        with pytest.raises(ValueError):
            read_trace(path)

    def test_not_abif_rejected(self, tmp_path):
        path = tmp_path / "bogus.ab1"
        path.write_bytes(b"NOTABIF" + b"\x00" * 200)
        with pytest.raises(ValueError):
            read_trace(str(path))


class TestListTags:
    """Test listing of decoded directory tags."""

    def test_lists_decoded_tags(self, write_trace):
        signal = list(range(25))
        data_tag = ("DATA", 9, ABIF_SHORT, 2, len(signal), struct.pack(f">{len(signal)}h", *signal))
        path = write_trace("tags.ab1", SEQUENCE, QUALITY, sample_name="TagSample",
                           extra_tags=[data_tag])
        tags = dict(list_tags(path))
        assert set(tags) == {"DATA9", "PBAS2", "PCON2", "SMPL1"}
        assert tags["SMPL1"] == "TagSample"
        assert tags["PBAS2"] == SEQUENCE
        assert list(tags["DATA9"]) == signal

    def test_tags_sorted(self, write_trace):
        path = write_trace("tags.ab1", SEQUENCE, QUALITY, sample_name="TagSample")
        keys = [key for key, _ in list_tags(path)]
        assert keys == sorted(keys)


class TestFormatTagValue:
    """Test display formatting of tag values."""

    def test_long_array_summarised(self):
        text = format_tag_value(tuple(range(20)), max_items=5)
        assert text == "[0, 1, 2, 3, 4, ...] (20 values)"

    def test_array_in_full(self):
        assert format_tag_value((1, 2, 3), max_items=0) == "[1, 2, 3]"

    def test_unprintable_characters_replaced(self):
        assert format_tag_value("ab\x01c") == "ab.c"

    def test_scalar(self):
        assert format_tag_value(101) == "101"


class TestOutput:
    """Test FASTQ and FASTA record output."""

    def test_fastq_record(self):
        handle = StringIO()
        count = write_records([to_record("read1", "ACGT", [0, 10, 30, 40])], handle, "fastq")
        assert count == 1
        assert handle.getvalue() == "@read1\nACGT\n+\n!+?I\n"

    def test_fasta_record(self):
        handle = StringIO()
        write_records([to_record("read1", "ACGT", [30] * 4)], handle, "fasta")
        assert handle.getvalue() == ">read1\nACGT\n"

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            to_record("read1", "ACGT", [30, 30])

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            write_records([to_record("read1", "ACGT", [30] * 4)], StringIO(), "genbank")


class TestSetStringTag:
    """Test writing a copy of a trace with one string tag replaced."""

    def test_longer_sample_name(self, write_trace, tmp_path):
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, sample_name="S1")
        output = str(tmp_path / "edited.ab1")
        set_string_tag(path, "SMPL1", "RenamedSample_042", output)
        trace = read_trace(output)
        assert trace.sample_name == "RenamedSample_042"
        assert trace.sequence == SEQUENCE
        assert trace.quality == QUALITY

    def test_short_value_stored_inline(self, write_trace, tmp_path):
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, sample_name="LongSampleName")
        output = str(tmp_path / "edited.ab1")
        set_string_tag(path, "SMPL1", "S2", output)
        assert read_trace(output).sample_name == "S2"

    def test_input_left_unchanged(self, write_trace, tmp_path):
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, sample_name="Original")
        set_string_tag(path, "SMPL1", "Changed", str(tmp_path / "edited.ab1"))
        assert read_trace(path).sample_name == "Original"

    def test_c_string_tag(self, write_trace, tmp_path):
        comment = b"plate one\x00"
        ctid = ("CTID", 1, ABIF_CSTRING, 1, len(comment), comment)
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, sample_name="S1", extra_tags=[ctid])
        output = str(tmp_path / "edited.ab1")
        set_string_tag(path, "CTID1", "plate two", output)
        tags = dict(list_tags(output))
        assert tags["CTID1"] == "plate two"
        assert tags["SMPL1"] == "S1"

    def test_numeric_tag_rejected(self, write_trace, tmp_path):
        signal = struct.pack(">5h", 1, 2, 3, 4, 5)
        data_tag = ("DATA", 9, ABIF_SHORT, 2, 5, signal)
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, extra_tags=[data_tag])
        with pytest.raises(ValueError):
            set_string_tag(path, "DATA9", "text", str(tmp_path / "edited.ab1"))

    def test_missing_tag_rejected(self, write_trace, tmp_path):
        path = write_trace("edit.ab1", SEQUENCE, QUALITY)
        with pytest.raises(ValueError):
            set_string_tag(path, "SMPL1", "Name", str(tmp_path / "edited.ab1"))

    def test_pascal_string_length_limit(self, write_trace, tmp_path):
        path = write_trace("edit.ab1", SEQUENCE, QUALITY, sample_name="S1")
        with pytest.raises(ValueError):
            set_string_tag(path, "SMPL1", "x" * 256, str(tmp_path / "edited.ab1"))
