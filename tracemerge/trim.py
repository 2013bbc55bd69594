"""Sliding-window quality trimming of read ends."""

import logging
from typing import List, NamedTuple, Optional, Tuple


class TrimResult(NamedTuple):
    """Trimmed read plus the half-open window [start, end) kept from the input."""
    sequence: str
    quality: List[int]
    start: int
    end: int


def _window_passes(quality: List[int], start: int, window: int, threshold: int) -> bool:
    window_sum = sum(quality[start:start + window])
    return window_sum / window >= threshold


def quality_bounds(quality: List[int], window: int, threshold: int) -> Optional[Tuple[int, int]]:
    """
    Locate the high-quality region of a read.

    Scans windows of `window` bases from both ends and returns the half-open
    interval spanning the first and last windows whose mean quality reaches
    `threshold`. Returns None when no window qualifies.
    """
    last_start = len(quality) - window
    start_pos = None
    for i in range(last_start + 1):
        if _window_passes(quality, i, window, threshold):
            start_pos = i
            break

    end_pos = None
    for i in range(last_start, -1, -1):
        if _window_passes(quality, i, window, threshold):
            end_pos = i + window
            break

    if start_pos is None or end_pos is None or end_pos <= start_pos:
        return None
    return start_pos, end_pos


def trim_by_quality(sequence: str, quality: List[int], window: int, threshold: int) -> TrimResult:
    """
    Trim low-quality bases from both ends of a read.

    Reads shorter than the window are returned untouched. A read without any
    qualifying window comes back empty, which callers treat as entirely low
    quality rather than as an error.
    """
    if len(sequence) != len(quality):
        raise ValueError(f"Sequence length ({len(sequence)}) does not match "
                         f"quality length ({len(quality)})")
    if window < 1:
        raise ValueError(f"Window size must be at least 1, got {window}")

    if len(sequence) < window:
        return TrimResult(sequence, list(quality), 0, len(sequence))

    bounds = quality_bounds(quality, window, threshold)
    if bounds is None:
        logging.debug(f"No window of {window} bases reaches quality {threshold}; read is fully trimmed")
        return TrimResult("", [], 0, 0)

    start, end = bounds
    return TrimResult(sequence[start:end], list(quality[start:end]), start, end)


def soft_mask(sequence: str, quality: List[int], window: int, threshold: int) -> str:
    """Lower-case the bases that trim_by_quality would remove, keeping the read length."""
    if len(sequence) != len(quality):
        raise ValueError(f"Sequence length ({len(sequence)}) does not match "
                         f"quality length ({len(quality)})")
    if len(sequence) < window:
        return sequence

    bounds = quality_bounds(quality, window, threshold)
    if bounds is None:
        return sequence.lower()

    start, end = bounds
    return sequence[:start].lower() + sequence[start:end] + sequence[end:].lower()
