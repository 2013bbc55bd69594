"""
Chromatogram plots of the four fluorescence channels of an ABIF trace.

Channel data come from the processed DATA9-12 tags when present, otherwise
from the raw DATA1-4 tags; FWO_1 gives the base each channel belongs to.
Signals are scaled per channel to 0-1000 before plotting.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np
from Bio import SeqIO

from .trace import UNKNOWN_SAMPLE_ID, decode_tag_value


BASE_COLORS = {'A': 'green', 'C': 'blue', 'G': 'black', 'T': 'red'}
DEFAULT_BASE_ORDER = "ACGT"
PROCESSED_CHANNELS = ["DATA9", "DATA10", "DATA11", "DATA12"]
RAW_CHANNELS = ["DATA1", "DATA2", "DATA3", "DATA4"]
SCALE_MAX = 1000


class TraceChannels(NamedTuple):
    """Scaled channel signals with the base calls and their peak positions."""
    signals: Dict[str, np.ndarray]
    peaks: List[int]
    sequence: str
    sample_name: str

    @property
    def length(self) -> int:
        return max((len(s) for s in self.signals.values()), default=0)


def _as_list(value) -> List[int]:
    # Biopython unpacks single-element arrays to a bare number
    if value is None:
        return []
    if isinstance(value, (tuple, list)):
        return list(value)
    return [value]


def scale_signal(values: List[int]) -> np.ndarray:
    """Scale a channel to 0-SCALE_MAX by its own maximum; negative values become 0."""
    signal = np.asarray(values, dtype=float)
    if signal.size == 0:
        return signal
    peak = max(1.0, signal.max())
    return np.where(signal <= 0, 0.0, signal / peak * SCALE_MAX).astype(int)


def read_channels(path: str) -> TraceChannels:
    """Load and scale the four trace channels of an ABIF file."""
    record = SeqIO.read(path, "abi")
    raw = record.annotations.get("abif_raw", {})

    base_order = decode_tag_value(raw.get("FWO_1")) or DEFAULT_BASE_ORDER
    tags = PROCESSED_CHANNELS if "DATA9" in raw else RAW_CHANNELS
    logging.debug(f"Using {tags[0]}-{tags[-1]} with base order {base_order}")

    signals = {}
    for base, tag in zip(base_order, tags):
        if base in BASE_COLORS:
            signals[base] = scale_signal(_as_list(raw.get(tag)))

    sample_name = record.id if record.id != UNKNOWN_SAMPLE_ID else record.name
    return TraceChannels(signals, _as_list(raw.get("PLOC2")), str(record.seq), sample_name)


def downsample(signal: np.ndarray, start: int, end: int, factor: int) -> np.ndarray:
    """Reduce signal[start:end] to the maximum of each bin of `factor` points."""
    segment = signal[start:end]
    if factor <= 1 or segment.size == 0:
        return segment
    padded = np.zeros(-(-segment.size // factor) * factor, dtype=segment.dtype)
    padded[:segment.size] = segment
    return padded.reshape(-1, factor).max(axis=1)


def plot_chromatogram(channels: TraceChannels, outpath: Optional[str] = None, *,
                      width: int = 1200, height: int = 600,
                      start: int = 0, end: int = -1, factor: int = 1,
                      show_bases: bool = True, dpi: int = 100):
    """
    Draw the channels between trace positions start and end (-1 = trace end).

    Base calls whose peak falls inside the range are written above the plot
    with a dashed marker at the peak. The figure is saved when outpath is
    given; the format follows its extension (SVG, PNG, PDF...).

    Returns:
        (fig, ax)

    Raises:
        ValueError: if the selected range holds no data
    """
    factor = max(1, factor)
    display_start = max(0, start)
    display_end = channels.length if end < 0 else min(channels.length, end)
    if display_end <= display_start:
        raise ValueError(f"No trace data between positions {start} and {end}")

    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)

    for base in "ACGT":
        if base not in channels.signals:
            continue
        values = downsample(channels.signals[base], display_start, display_end, factor)
        x = np.arange(display_start, display_start + len(values) * factor, factor)
        ax.plot(x, values, color=BASE_COLORS[base], linewidth=1.0, label=base)

    visible = 0
    if show_bases:
        for peak, base in zip(channels.peaks, channels.sequence):
            if not display_start <= peak < display_end:
                continue
            ax.axvline(peak, color='#BBBBBB', linewidth=0.5, linestyle='--')
            ax.text(peak, SCALE_MAX * 1.05, base, ha='center', fontweight='bold',
                    family='monospace', color=BASE_COLORS.get(base, 'black'))
            visible += 1
        logging.debug(f"Showing {visible} of {len(channels.sequence)} bases")

    ax.set_xlim(display_start, display_end)
    ax.set_ylim(0, SCALE_MAX * 1.12)
    ax.set_xlabel("Trace position")
    ax.set_ylabel("Signal")
    ax.set_title(f"Chromatogram: {channels.sample_name}")
    ax.legend(loc='upper right', ncol=4, frameon=False)
    fig.tight_layout()

    if outpath is not None:
        fig.savefig(outpath, dpi=dpi)
    return fig, ax


def render_chromatogram(path: str, outpath: str, **kwargs) -> TraceChannels:
    """Read a trace, save its chromatogram to outpath and release the figure."""
    channels = read_channels(path)
    fig, _ = plot_chromatogram(channels, outpath, **kwargs)
    plt.close(fig)
    return channels
