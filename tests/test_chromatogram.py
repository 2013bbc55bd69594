"""Tests for chromatogram channel loading and plotting."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from tracemerge.chromatogram import (
    downsample,
    plot_chromatogram,
    read_channels,
    render_chromatogram,
    scale_signal,
)

from conftest import channel_tags


SEQUENCE = "ACGTA"
QUALITY = [40] * 5
PEAKS = [5, 15, 25, 35, 45]
LENGTH = 50
BASES = {"A", "C", "G", "T"}

# One rising channel, one with a negative dip, one flat and one constant
SIGNALS = [
    [2 * i for i in range(LENGTH)],
    [-5] + [100] * (LENGTH - 1),
    [0] * LENGTH,
    [50] * LENGTH,
]


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


@pytest.fixture
def trace_path(write_trace):
    tags = channel_tags(SIGNALS, PEAKS, base_order="GATC")
    return write_trace("chrom.ab1", SEQUENCE, QUALITY, sample_name="Chrom1", extra_tags=tags)


class TestScaleSignal:
    """Test per-channel scaling to the 0-1000 range."""

    def test_maximum_maps_to_1000(self):
        assert list(scale_signal([0, 50, 100])) == [0, 500, 1000]

    def test_negative_values_clamped(self):
        assert list(scale_signal([-20, 10, 20])) == [0, 500, 1000]

    def test_flat_zero_channel(self):
        assert list(scale_signal([0, 0, 0])) == [0, 0, 0]

    def test_empty_channel(self):
        assert scale_signal([]).size == 0


class TestDownsample:
    """Test reduction of a signal range to per-bin maxima."""

    def test_bin_maxima_with_padding(self):
        signal = np.array([1, 5, 2, 8, 3])
        assert list(downsample(signal, 0, 5, 2)) == [5, 8, 3]

    def test_factor_one_returns_range(self):
        signal = np.arange(10)
        assert list(downsample(signal, 2, 6, 1)) == [2, 3, 4, 5]


class TestReadChannels:
    """Test loading channels in the trace's base order."""

    def test_base_order_assigns_channels(self, trace_path):
        channels = read_channels(trace_path)
        assert set(channels.signals) == {"A", "C", "G", "T"}
        assert channels.signals["G"][-1] == 1000
        assert channels.signals["G"][0] == 0
        assert channels.signals["A"][0] == 0
        assert channels.signals["A"][1] == 1000
        assert not channels.signals["T"].any()
        assert channels.signals["C"][0] == 1000

    def test_peaks_sequence_and_name(self, trace_path):
        channels = read_channels(trace_path)
        assert channels.peaks == PEAKS
        assert channels.sequence == SEQUENCE
        assert channels.sample_name == "Chrom1"
        assert channels.length == LENGTH

    def test_raw_channels_with_default_order(self, write_trace):
        tags = channel_tags(SIGNALS, PEAKS, first_channel=1)
        path = write_trace("raw.ab1", SEQUENCE, QUALITY, sample_name="Raw1", extra_tags=tags)
        channels = read_channels(path)
        # Default order ACGT puts the rising channel (DATA1) on A
        assert channels.signals["A"][-1] == 1000
        assert channels.signals["A"][10] == 204
        assert not channels.signals["G"].any()


class TestPlotChromatogram:
    """Test figure rendering and base call labels."""

    def test_writes_svg(self, trace_path, tmp_path):
        output = tmp_path / "chrom.svg"
        render_chromatogram(trace_path, str(output))
        assert output.exists()
        assert "<svg" in output.read_text()

    def test_labels_only_visible_bases(self, trace_path):
        _, ax = plot_chromatogram(read_channels(trace_path), start=10, end=40)
        assert [text.get_text() for text in ax.texts] == ["C", "G", "T"]
        assert ax.get_xlim() == (10, 40)

    def test_hide_bases(self, trace_path):
        _, ax = plot_chromatogram(read_channels(trace_path), show_bases=False)
        assert len(ax.texts) == 0

    def test_one_line_per_channel(self, trace_path):
        _, ax = plot_chromatogram(read_channels(trace_path), factor=5)
        assert sorted(line.get_label() for line in ax.get_lines()
                      if line.get_label() in BASES) == ["A", "C", "G", "T"]
        assert all(len(line.get_xdata()) == LENGTH // 5 for line in ax.get_lines()
                   if line.get_label() in BASES)

    def test_empty_range_rejected(self, trace_path):
        with pytest.raises(ValueError):
            plot_chromatogram(read_channels(trace_path), start=LENGTH + 10)
