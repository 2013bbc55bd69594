"""
Smith-Waterman local alignment with full traceback.

The scoring model is linear: every gap position costs `gap`. Tie-breaking
between predecessors is fixed so that repeated runs give identical
alignments for identical inputs and weights.
"""

import operator
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from .sequence import iupac_compatible


# Traceback directions
TRACE_NONE = -1
TRACE_UP = 1    # consume beta only (gap in alpha)
TRACE_LEFT = 2  # consume alpha only (gap in beta)
TRACE_DIAG = 3

MATCH_CHAR = '|'
MISMATCH_CHAR = ' '
GAP_CHAR = '-'


@dataclass(frozen=True)
class ScoringWeights:
    """Scoring parameters for local alignment.

    Attributes:
        match: Score for identical bases
        mismatch: Score for differing bases
        gap: Score for each gap position
        gap_opening: Gap opening penalty (accepted for compatibility, the
            linear model scores every gap position with `gap`)
        min_score: Alignments scoring below this are not traced back
        iupac: Score compatible IUPAC ambiguity codes as matches instead of
            requiring identical symbols
    """
    match: int = 10
    mismatch: int = -8
    gap: int = -10
    gap_opening: int = -10
    min_score: int = 80
    iupac: bool = False


class AlignmentResult(NamedTuple):
    """Outcome of a local alignment.

    Coordinates are 0-based half-open: alpha[query_start:query_end] is aligned
    against beta[target_start:target_end]. `length` counts diagonal (match or
    mismatch) columns only.
    """
    score: int
    length: int = 0
    percent_identity: float = 0.0
    query_start: int = 0
    query_end: int = 0
    target_start: int = 0
    target_end: int = 0
    top: str = ""
    middle: str = ""
    bottom: str = ""

    @property
    def found(self) -> bool:
        return len(self.middle) > 0


def smith_waterman(alpha: str, beta: str, weights: ScoringWeights) -> AlignmentResult:
    """
    Locally align alpha (matrix rows) against beta (matrix columns).

    Cell (i, j) takes the best of the diagonal, left (i-1, j) and top (i, j-1)
    predecessors, preferring diagonal over top over left on ties, and resets to
    zero when all three are negative. The first cell reaching the overall
    maximum (row-major scan) seeds the traceback.

    If the best score is below weights.min_score, the returned result carries
    that score and nothing else.
    """
    rows = len(alpha) + 1
    cols = len(beta) + 1
    match, mismatch, gap = weights.match, weights.mismatch, weights.gap
    same = iupac_compatible if weights.iupac else operator.eq

    # Only the traceback is kept; scores need just the previous row
    trace = np.full((rows, cols), TRACE_NONE, dtype=np.int8)

    i_max = j_max = 0
    score_max = -1

    prev_row = [0] * cols
    for i in range(1, rows):
        a = alpha[i - 1]
        pair_scores = [match if same(a, b) else mismatch for b in beta]
        cur_row = [0] * cols
        trace_row = [TRACE_NONE] * cols
        for j in range(1, cols):
            diag = prev_row[j - 1] + pair_scores[j - 1]
            left = prev_row[j] + gap
            top = cur_row[j - 1] + gap

            if diag < 0 and left < 0 and top < 0:
                continue

            if diag >= top:
                if diag >= left:
                    best, direction = diag, TRACE_DIAG
                else:
                    best, direction = left, TRACE_LEFT
            elif top >= left:
                best, direction = top, TRACE_UP
            else:
                best, direction = left, TRACE_LEFT

            cur_row[j] = best
            trace_row[j] = direction
            if best > score_max:
                score_max = best
                i_max = i
                j_max = j

        trace[i] = trace_row
        prev_row = cur_row

    if score_max < weights.min_score:
        return AlignmentResult(score=score_max)

    top_track = []
    bottom_track = []
    middle_track = []
    length = match_count = total_count = 0
    i, j = i_max, j_max

    while True:
        direction = trace[i, j]
        if direction == TRACE_NONE:
            break
        if direction == TRACE_DIAG:
            a, b = alpha[i - 1], beta[j - 1]
            top_track.append(a)
            bottom_track.append(b)
            length += 1
            total_count += 1
            if same(a, b):
                middle_track.append(MATCH_CHAR)
                match_count += 1
            else:
                middle_track.append(MISMATCH_CHAR)
            i -= 1
            j -= 1
        elif direction == TRACE_LEFT:
            top_track.append(alpha[i - 1])
            bottom_track.append(GAP_CHAR)
            middle_track.append(MISMATCH_CHAR)
            total_count += 1
            i -= 1
        else:
            top_track.append(GAP_CHAR)
            bottom_track.append(beta[j - 1])
            middle_track.append(MISMATCH_CHAR)
            total_count += 1
            j -= 1

    percent_identity = 100 * match_count / total_count if total_count else 0.0

    return AlignmentResult(
        score=score_max,
        length=length,
        percent_identity=percent_identity,
        query_start=i,
        query_end=i_max,
        target_start=j,
        target_end=j_max,
        top=''.join(reversed(top_track)),
        middle=''.join(reversed(middle_track)),
        bottom=''.join(reversed(bottom_track)),
    )


def format_alignment(alignment: AlignmentResult) -> str:
    """Render the three alignment tracks with coordinates, for debug output."""
    return (f"query  {alignment.query_start:>5} {alignment.top} {alignment.query_end}\n"
            f"       {'':>5} {alignment.middle}\n"
            f"target {alignment.target_start:>5} {alignment.bottom} {alignment.target_end}")
