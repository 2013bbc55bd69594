"""Validated configuration for trimming and merging."""

from dataclasses import dataclass

from .align import ScoringWeights


MAX_QUALITY_THRESHOLD = 60


class InvalidConfigError(ValueError):
    """Raised when a configuration value is outside its permitted range."""


def _check_trim(window: int, threshold: int) -> None:
    if window < 1:
        raise InvalidConfigError(f"Window size must be at least 1, got {window}")
    if threshold < 0 or threshold > MAX_QUALITY_THRESHOLD:
        raise InvalidConfigError(
            f"Quality threshold must be between 0 and {MAX_QUALITY_THRESHOLD}, got {threshold}")


@dataclass(frozen=True)
class TrimConfig:
    """Quality trimming settings for single-trace conversion.

    Attributes:
        window: Sliding window size in bases
        threshold: Minimum mean quality of a window to be kept
        enabled: When False, reads keep all bases and low quality ends are
            lower-cased instead of removed
    """
    window: int = 10
    threshold: int = 20
    enabled: bool = True

    def __post_init__(self):
        _check_trim(self.window, self.threshold)

    @classmethod
    def from_args(cls, args) -> 'TrimConfig':
        """Create config from command-line arguments."""
        return cls(
            window=args.window,
            threshold=args.quality,
            enabled=not getattr(args, 'no_trim', False),
        )


@dataclass(frozen=True)
class MergeConfig:
    """Settings for merging a forward and reverse read.

    Attributes:
        min_overlap: Minimum aligned (diagonal) length to accept a merge
        min_score: Minimum alignment score to accept a merge
        min_percent_identity: Minimum percent identity (0-100) to accept a merge
        join_gap: Number of Ns joining the reads when no overlap is accepted
            (0 = report failure instead)
        score_match: Alignment score for a match
        score_mismatch: Alignment score for a mismatch
        score_gap: Alignment score for a gap position
        iupac_match: Treat compatible IUPAC ambiguity codes as matching bases
        trim_window: Window size for quality trimming before alignment
        trim_threshold: Quality threshold for trimming
        trim_enabled: Whether reads are quality trimmed before alignment
    """
    min_overlap: int = 20
    min_score: int = 80
    min_percent_identity: float = 85.0
    join_gap: int = 0
    score_match: int = 10
    score_mismatch: int = -8
    score_gap: int = -10
    iupac_match: bool = False
    trim_window: int = 4
    trim_threshold: int = 22
    trim_enabled: bool = True

    def __post_init__(self):
        if self.min_overlap < 1:
            raise InvalidConfigError(f"Minimum overlap must be at least 1, got {self.min_overlap}")
        if self.join_gap < 0:
            raise InvalidConfigError(f"Join gap must not be negative, got {self.join_gap}")
        if not 0 <= self.min_percent_identity <= 100:
            raise InvalidConfigError(
                f"Percent identity must be between 0 and 100, got {self.min_percent_identity}")
        if self.score_match <= 0:
            raise InvalidConfigError(f"Match score must be positive, got {self.score_match}")
        _check_trim(self.trim_window, self.trim_threshold)

    @property
    def weights(self) -> ScoringWeights:
        return ScoringWeights(
            match=self.score_match,
            mismatch=self.score_mismatch,
            gap=self.score_gap,
            gap_opening=self.score_gap,
            min_score=self.min_score,
            iupac=self.iupac_match,
        )

    @classmethod
    def from_args(cls, args) -> 'MergeConfig':
        """Create config from command-line arguments."""
        return cls(
            min_overlap=args.min_overlap,
            min_score=args.min_score,
            min_percent_identity=args.pct_id,
            join_gap=args.join,
            score_match=args.score_match,
            score_mismatch=args.score_mismatch,
            score_gap=args.score_gap,
            iupac_match=args.iupac,
            trim_window=args.window,
            trim_threshold=args.quality,
            trim_enabled=not args.no_trim,
        )
