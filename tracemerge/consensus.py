"""
Consensus construction from an accepted alignment, and the N-gap fallback join.

Every function here takes "working" reads: sequences already transformed for
the chosen orientation, with quality lists indexed the same way as their
sequence. The merged layout is

    reverse prefix | forward prefix | overlap | reverse suffix | forward suffix

where each part is empty when the alignment reaches the corresponding end.
"""

import logging
from typing import List, NamedTuple, Tuple

from .align import AlignmentResult


DEFAULT_QUALITY = 0
UNKNOWN_BASE = 'N'


class MergedResult(NamedTuple):
    """A merged read. An empty sequence signals that no merge was produced."""
    sequence: str
    quality: List[int]

    def __bool__(self) -> bool:
        return len(self.sequence) > 0


def _quality_span(quality: List[int], start: int, end: int) -> List[int]:
    """Slice quality[start:end], padding with DEFAULT_QUALITY where it runs short."""
    span = list(quality[start:end])
    if len(span) < end - start:
        span.extend([DEFAULT_QUALITY] * (end - start - len(span)))
    return span


def _consensus_base(f_base, f_qual, r_base, r_qual) -> Tuple[str, int]:
    """Resolve one overlap column. Missing sides are passed as None."""
    if f_base is not None and r_base is not None:
        if f_base == r_base:
            if f_qual is not None and r_qual is not None:
                return f_base, max(f_qual, r_qual)
            if f_qual is not None:
                return f_base, f_qual
            if r_qual is not None:
                return f_base, r_qual
            return f_base, DEFAULT_QUALITY
        if f_qual is not None and r_qual is not None:
            # Ties favor the forward read
            if f_qual >= r_qual:
                return f_base, f_qual
            return r_base, r_qual
        if f_qual is not None:
            return f_base, f_qual
        if r_qual is not None:
            return r_base, r_qual
        return UNKNOWN_BASE, DEFAULT_QUALITY

    if f_base is not None:
        return f_base, f_qual if f_qual is not None else DEFAULT_QUALITY
    if r_base is not None:
        return r_base, r_qual if r_qual is not None else DEFAULT_QUALITY
    return UNKNOWN_BASE, DEFAULT_QUALITY


def _at(items, pos):
    return items[pos] if 0 <= pos < len(items) else None


def build_consensus(alignment: AlignmentResult,
                    forward_seq: str, forward_qual: List[int],
                    reverse_seq: str, reverse_qual: List[int]) -> MergedResult:
    """
    Merge two working reads around their aligned overlap.

    The forward read is the alignment query and the reverse read its target.
    Within the overlap, agreeing bases take the higher of the two qualities and
    disagreeing bases are taken from the side with the higher quality.
    """
    merged_seq = []
    merged_qual: List[int] = []

    if alignment.target_start > 0:
        prefix = reverse_seq[:alignment.target_start]
        logging.debug(f"Adding beginning of reverse sequence ({len(prefix)} bases)")
        merged_seq.append(prefix)
        merged_qual.extend(_quality_span(reverse_qual, 0, len(prefix)))

    if alignment.query_start > 0:
        prefix = forward_seq[:alignment.query_start]
        logging.debug(f"Adding beginning of forward sequence ({len(prefix)} bases)")
        merged_seq.append(prefix)
        merged_qual.extend(_quality_span(forward_qual, 0, len(prefix)))

    for i in range(alignment.length):
        f_pos = alignment.query_start + i
        r_pos = alignment.target_start + i
        base, qual = _consensus_base(
            _at(forward_seq, f_pos), _at(forward_qual, f_pos),
            _at(reverse_seq, r_pos), _at(reverse_qual, r_pos),
        )
        merged_seq.append(base)
        merged_qual.append(qual)

    if alignment.target_end < len(reverse_seq):
        suffix = reverse_seq[alignment.target_end:]
        logging.debug(f"Adding trailing part of reverse sequence ({len(suffix)} bases)")
        merged_seq.append(suffix)
        merged_qual.extend(_quality_span(reverse_qual, alignment.target_end, len(reverse_seq)))

    if alignment.query_end < len(forward_seq):
        suffix = forward_seq[alignment.query_end:]
        logging.debug(f"Adding trailing part of forward sequence ({len(suffix)} bases)")
        merged_seq.append(suffix)
        merged_qual.extend(_quality_span(forward_qual, alignment.query_end, len(forward_seq)))

    return MergedResult(''.join(merged_seq), merged_qual)


def join_with_gap(forward_seq: str, forward_qual: List[int],
                  reverse_seq: str, reverse_qual: List[int],
                  gap_length: int) -> MergedResult:
    """Concatenate two working reads separated by gap_length Ns of quality 0."""
    return MergedResult(
        forward_seq + UNKNOWN_BASE * gap_length + reverse_seq,
        list(forward_qual) + [DEFAULT_QUALITY] * gap_length + list(reverse_qual),
    )
