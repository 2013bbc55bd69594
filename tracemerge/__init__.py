"""
Tracemerge: Sanger trace conversion and paired-read merging.

Reads ABIF (.ab1) capillary sequencer traces, trims low quality ends and
reconciles forward/reverse reads into a single quality-weighted consensus.
"""

__version__ = "0.1.0"

from .cli import main as tracemerge_main
from .cli import convert_main, info_main, chromatogram_main
from .config import MergeConfig, TrimConfig, InvalidConfigError
from .merge import merge_pair, merge_sequences, MergeOutcome, MergeStatus

__all__ = [
    "tracemerge_main",
    "convert_main",
    "info_main",
    "chromatogram_main",
    "MergeConfig",
    "TrimConfig",
    "InvalidConfigError",
    "merge_pair",
    "merge_sequences",
    "MergeOutcome",
    "MergeStatus",
    "__version__",
]
