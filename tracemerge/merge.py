"""
Paired-read merging: orientation selection, acceptance and consensus.

Three read orientations are tested by local alignment:

1. Innie (5'->3' and 3'<-5'):  ----> <----  reverse read is reverse complemented
2. Outie (5'->3' and 5'->3'):  ----> ---->  both reads used as given
3. Same strand:                <---- <----  both reads reverse complemented

The best scoring orientation defines the working reads used for either the
consensus or the N-gap join.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from .align import AlignmentResult, ScoringWeights, format_alignment, smith_waterman
from .config import MergeConfig
from .consensus import MergedResult, build_consensus, join_with_gap
from .sequence import reverse_complement
from .trim import trim_by_quality


class Orientation(Enum):
    INNIE = "innie"
    OUTIE = "outie"
    SAME_STRAND = "same-strand"


class MergeStatus(Enum):
    MERGED = "merged"          # reads overlapped and were merged
    JOINED = "joined"          # no accepted overlap, reads joined with Ns
    NO_OVERLAP = "no_overlap"  # no accepted overlap and joining disabled


class WorkingRead(NamedTuple):
    """A read transformed for one orientation, quality indexed like sequence."""
    sequence: str
    quality: List[int]


class MergeOutcome(NamedTuple):
    """Everything a merge produced. result is empty when status is NO_OVERLAP.

    read_lengths holds the forward and reverse lengths that went into
    alignment, i.e. after quality trimming when it is enabled.
    """
    status: MergeStatus
    result: MergedResult
    orientation: Orientation
    alignment: AlignmentResult
    trials: Dict[Orientation, int]
    read_lengths: Tuple[int, int]

    @property
    def merged(self) -> bool:
        return self.status == MergeStatus.MERGED


ReadTransform = Callable[[WorkingRead], WorkingRead]


def as_given(read: WorkingRead) -> WorkingRead:
    return read


def reverse_complemented(read: WorkingRead) -> WorkingRead:
    """Reverse complement a read, reversing its quality list to stay aligned."""
    return WorkingRead(reverse_complement(read.sequence), list(reversed(read.quality)))


# Evaluation order doubles as tie-break priority
ORIENTATION_TRIALS: List[Tuple[Orientation, ReadTransform, ReadTransform]] = [
    (Orientation.INNIE, as_given, reverse_complemented),
    (Orientation.OUTIE, as_given, as_given),
    (Orientation.SAME_STRAND, reverse_complemented, reverse_complemented),
]


class OrientationTrial(NamedTuple):
    orientation: Orientation
    forward: WorkingRead
    reverse: WorkingRead
    alignment: AlignmentResult


def run_trial(orientation: Orientation,
              forward: WorkingRead, reverse: WorkingRead,
              forward_transform: ReadTransform, reverse_transform: ReadTransform,
              weights: ScoringWeights) -> OrientationTrial:
    """Transform both reads for one orientation and align them."""
    working_forward = forward_transform(forward)
    working_reverse = reverse_transform(reverse)
    alignment = smith_waterman(working_forward.sequence, working_reverse.sequence, weights)
    return OrientationTrial(orientation, working_forward, working_reverse, alignment)


def select_orientation(forward: WorkingRead, reverse: WorkingRead,
                       weights: ScoringWeights) -> Tuple[OrientationTrial, Dict[Orientation, int]]:
    """
    Align the reads in every orientation and keep the best scoring trial.

    Only a strictly higher score displaces an earlier trial, so ties resolve
    as Innie, then Outie, then same strand.
    """
    best: Optional[OrientationTrial] = None
    scores: Dict[Orientation, int] = {}
    for orientation, forward_transform, reverse_transform in ORIENTATION_TRIALS:
        trial = run_trial(orientation, forward, reverse,
                          forward_transform, reverse_transform, weights)
        scores[orientation] = trial.alignment.score
        if best is None or trial.alignment.score > best.alignment.score:
            best = trial

    logging.debug("Alignment scores for different orientations:")
    for orientation, score in scores.items():
        logging.debug(f"  {orientation.value}: {score}")
    logging.debug(f"Best orientation: {best.orientation.value}")
    return best, scores


def accepts(alignment: AlignmentResult, config: MergeConfig) -> bool:
    """Check an alignment against the score, identity and overlap thresholds."""
    return (alignment.score >= config.min_score
            and alignment.percent_identity >= config.min_percent_identity
            and alignment.length >= config.min_overlap)


def _check_pair(name: str, sequence: str, quality: List[int]) -> None:
    if len(sequence) != len(quality):
        raise ValueError(f"{name} read has {len(sequence)} bases but {len(quality)} quality values")
    if any(q < 0 for q in quality):
        raise ValueError(f"{name} read has negative quality values")


def merge_pair(forward_seq: str, forward_qual: List[int],
               reverse_seq: str, reverse_qual: List[int],
               config: Optional[MergeConfig] = None) -> MergeOutcome:
    """
    Merge a forward and a reverse read into one consensus read.

    Reads are upper-cased, optionally quality trimmed, aligned in each
    orientation and, when the best alignment passes the thresholds in config,
    merged into a consensus. Otherwise they are joined with config.join_gap Ns,
    or an empty result is returned when join_gap is 0.

    Raises:
        ValueError: if a sequence and its quality list differ in length
    """
    if config is None:
        config = MergeConfig()
    _check_pair("Forward", forward_seq, forward_qual)
    _check_pair("Reverse", reverse_seq, reverse_qual)

    forward = WorkingRead(forward_seq.upper(), list(forward_qual))
    reverse = WorkingRead(reverse_seq.upper(), list(reverse_qual))

    if config.trim_enabled:
        trimmed_f = trim_by_quality(forward.sequence, forward.quality,
                                    config.trim_window, config.trim_threshold)
        trimmed_r = trim_by_quality(reverse.sequence, reverse.quality,
                                    config.trim_window, config.trim_threshold)
        forward = WorkingRead(trimmed_f.sequence, trimmed_f.quality)
        reverse = WorkingRead(trimmed_r.sequence, trimmed_r.quality)
        logging.debug(f"After quality trimming: forward {len(forward.sequence)} bp, "
                      f"reverse {len(reverse.sequence)} bp")

    best, scores = select_orientation(forward, reverse, config.weights)
    alignment = best.alignment

    logging.debug(f"Best alignment: score={alignment.score}, "
                  f"identity={alignment.percent_identity:.1f}%, length={alignment.length}")
    if alignment.found:
        logging.debug(f"Query {alignment.query_start}..{alignment.query_end}, "
                      f"target {alignment.target_start}..{alignment.target_end}\n"
                      f"{format_alignment(alignment)}")

    if accepts(alignment, config):
        result = build_consensus(alignment,
                                 best.forward.sequence, best.forward.quality,
                                 best.reverse.sequence, best.reverse.quality)
        status = MergeStatus.MERGED
    elif config.join_gap > 0:
        logging.debug(f"Alignment did not meet merge criteria; joining with {config.join_gap} Ns")
        result = join_with_gap(best.forward.sequence, best.forward.quality,
                               best.reverse.sequence, best.reverse.quality,
                               config.join_gap)
        status = MergeStatus.JOINED
    else:
        logging.debug("Alignment did not meet merge criteria")
        result = MergedResult("", [])
        status = MergeStatus.NO_OVERLAP

    return MergeOutcome(status, result, best.orientation, alignment, scores,
                        (len(forward.sequence), len(reverse.sequence)))


def merge_sequences(forward_seq: str, forward_qual: List[int],
                    reverse_seq: str, reverse_qual: List[int],
                    config: Optional[MergeConfig] = None) -> MergedResult:
    """Merge two reads and return only the merged read (empty on failure)."""
    return merge_pair(forward_seq, forward_qual, reverse_seq, reverse_qual, config).result
