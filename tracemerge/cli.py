#!/usr/bin/env python3

"""
Command-line tools.

tracemerge          merge a forward and reverse trace into one FASTQ read
tracemerge-convert  convert traces to FASTQ/FASTA with quality trimming
tracemerge-info     list or edit the directory tags stored in a trace
tracemerge-chromatogram  plot the trace channels with their base calls
"""

import argparse
import dataclasses
import logging
import sys
from contextlib import contextmanager
from typing import List

from tqdm import tqdm

from . import __version__
from .chromatogram import render_chromatogram
from .config import InvalidConfigError, MergeConfig, TrimConfig
from .merge import MergeStatus, merge_pair
from .output import to_record, write_records
from .trace import format_tag_value, list_tags, read_trace, set_string_tag
from .trim import soft_mask, trim_by_quality


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(log_level: str, log_file: str = None):
    """Setup logging configuration with optional file output."""
    # Clear any existing handlers
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    # Console output goes to stderr so records on stdout stay clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        return log_file

    return None


def _add_common_arguments(parser: argparse.ArgumentParser, prog: str) -> None:
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Print additional information (same as --log-level DEBUG)")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS,
                        help="Logging level (default: WARNING)")
    parser.add_argument("--version", action="version",
                        version=f"{prog} {__version__}",
                        help="Show program's version number and exit")


def _configure_logging(args) -> None:
    setup_logging("DEBUG" if args.verbose else args.log_level)


@contextmanager
def _open_output(path: str):
    """Yield a writable text handle for path, or stdout when path is empty."""
    if not path:
        yield sys.stdout
    else:
        with open(path, 'w') as handle:
            yield handle


def build_merge_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracemerge",
        description="Merge forward and reverse AB1 trace files into a single read.",
        epilog="If no output file is given, FASTQ is written to STDOUT.")
    parser.add_argument("forward", help="Forward trace (.ab1)")
    parser.add_argument("reverse", help="Reverse trace (.ab1)")
    parser.add_argument("output_file", nargs="?", default="",
                        help="Output file (default: STDOUT)")
    parser.add_argument("-o", "--output", default="",
                        help="Output file name (default: STDOUT)")
    parser.add_argument("-m", "--min-overlap", type=int, default=20,
                        help="Minimum overlap length for merging (default: 20)")
    parser.add_argument("-j", "--join", type=int, default=0, metavar="INT",
                        help="If no overlap is detected join the two sequences with a gap of INT Ns "
                             "(default: 0 = report failure)")
    parser.add_argument("--fasta", action="store_true",
                        help="Output in FASTA format instead of FASTQ")

    trimming = parser.add_argument_group("Quality trimming options")
    trimming.add_argument("-w", "--window", type=int, default=4,
                          help="Window size for quality trimming (default: 4)")
    trimming.add_argument("-q", "--quality", type=int, default=22,
                          help="Quality threshold 0-60 (default: 22)")
    trimming.add_argument("-n", "--no-trim", action="store_true",
                          help="Disable quality trimming")

    scoring = parser.add_argument_group("Smith-Waterman options")
    scoring.add_argument("--score-match", type=int, default=10,
                         help="Score for a match (default: 10)")
    scoring.add_argument("--score-mismatch", type=int, default=-8,
                         help="Score for a mismatch (default: -8)")
    scoring.add_argument("--score-gap", type=int, default=-10,
                         help="Score for a gap (default: -10)")
    scoring.add_argument("--min-score", type=int, default=80,
                         help="Minimum alignment score (default: 80)")
    scoring.add_argument("--pct-id", type=float, default=85.0,
                         help="Minimum percentage of identity (default: 85)")
    scoring.add_argument("--iupac", action="store_true",
                         help="Count compatible IUPAC ambiguity codes (e.g. R and A) as matches")

    _add_common_arguments(parser, "tracemerge")
    return parser


def main(argv: List[str] = None):
    """Merge a forward and a reverse trace and write the merged read."""
    parser = build_merge_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        config = MergeConfig.from_args(args)
    except InvalidConfigError as e:
        logging.error(str(e))
        sys.exit(1)

    output_path = args.output_file or args.output
    logging.info(f"Forward: {args.forward}")
    logging.info(f"Reverse: {args.reverse}")
    logging.info(f"Output: {output_path or 'STDOUT'}")
    logging.debug(f"Parameters: {dataclasses.asdict(config)}")

    try:
        forward = read_trace(args.forward)
        reverse = read_trace(args.reverse)
    except (OSError, ValueError) as e:
        logging.error(f"Failed to read trace: {e}")
        sys.exit(1)

    logging.info(f"Forward sequence: {len(forward.sequence)} bp ({forward.sample_name})")
    logging.info(f"Reverse sequence: {len(reverse.sequence)} bp ({reverse.sample_name})")

    outcome = merge_pair(forward.sequence, forward.quality, reverse.sequence, reverse.quality, config)

    if config.trim_enabled:
        forward_len, reverse_len = outcome.read_lengths
        logging.info(f"After quality trimming: forward {forward_len} bp, reverse {reverse_len} bp")
        if forward_len < config.trim_window or reverse_len < config.trim_window:
            logging.error("Sequences too short after quality trimming. "
                          "Consider using -n/--no-trim to disable trimming or lowering the quality threshold.")
            sys.exit(1)

    if outcome.status == MergeStatus.NO_OVERLAP:
        logging.error("Failed to merge sequences. No valid overlap found.")
        if config.join_gap == 0:
            logging.error("Consider using --join option to concatenate sequences.")
        sys.exit(1)

    if outcome.status == MergeStatus.JOINED:
        logging.warning(f"No valid overlap found; joined reads with {config.join_gap} Ns "
                        f"({outcome.orientation.value} orientation)")
    else:
        logging.info(f"Merged using {outcome.orientation.value} orientation "
                     f"(score {outcome.alignment.score}, "
                     f"{outcome.alignment.percent_identity:.1f}% identity, "
                     f"overlap {outcome.alignment.length} bp)")
    logging.info(f"Merged sequence length: {len(outcome.result.sequence)}")

    record = to_record(f"{forward.sample_name}_merged", outcome.result.sequence, outcome.result.quality)
    with _open_output(output_path) as handle:
        write_records([record], handle, "fasta" if args.fasta else "fastq")


def build_convert_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracemerge-convert",
        description="Convert AB1 trace files to FASTQ (or FASTA) with quality trimming.",
        epilog="If no output file is given, records are written to STDOUT.")
    parser.add_argument("inputs", nargs="+", help="Input trace file(s) (.ab1)")
    parser.add_argument("-o", "--output", default="",
                        help="Output file (default: STDOUT)")
    parser.add_argument("-w", "--window", type=int, default=10,
                        help="Window size for quality trimming (default: 10)")
    parser.add_argument("-q", "--quality", type=int, default=20,
                        help="Quality threshold 0-60 (default: 20)")
    parser.add_argument("-n", "--no-trim", action="store_true",
                        help="Disable quality trimming; low quality ends are written in lower case")
    parser.add_argument("--fasta", action="store_true",
                        help="Output in FASTA format instead of FASTQ")
    _add_common_arguments(parser, "tracemerge-convert")
    return parser


def convert_trace(path: str, trim_config: TrimConfig):
    """Read one trace and return its trimmed (or soft-masked) SeqRecord."""
    trace = read_trace(path)
    if not trace.sequence:
        raise ValueError(f"No sequence data found in {path}")

    if trim_config.enabled:
        trimmed = trim_by_quality(trace.sequence, trace.quality, trim_config.window, trim_config.threshold)
        logging.info(f"{trace.sample_name}: trimmed {len(trace.sequence)} -> {len(trimmed.sequence)} bp")
        if not trimmed.sequence:
            logging.warning(f"{trace.sample_name}: entire sequence was below quality threshold")
        return to_record(trace.sample_name, trimmed.sequence, trimmed.quality)

    masked = soft_mask(trace.sequence, trace.quality, trim_config.window, trim_config.threshold)
    masked_count = sum(1 for c in masked if c.islower())
    if masked_count:
        logging.info(f"{trace.sample_name}: {masked_count} bases would be trimmed")
    return to_record(trace.sample_name, masked, trace.quality)


def convert_main(argv: List[str] = None):
    """Convert one or more traces to FASTQ/FASTA."""
    parser = build_convert_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        trim_config = TrimConfig.from_args(args)
    except InvalidConfigError as e:
        logging.error(str(e))
        sys.exit(1)

    records = []
    for path in tqdm(args.inputs, desc="Converting traces", unit="trace",
                     disable=len(args.inputs) < 2):
        try:
            records.append(convert_trace(path, trim_config))
        except (OSError, ValueError) as e:
            logging.error(f"Failed to convert {path}: {e}")
            sys.exit(1)

    with _open_output(args.output) as handle:
        write_records(records, handle, "fasta" if args.fasta else "fastq")


def build_info_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracemerge-info",
        description="Display or edit the metadata tags stored in an AB1 trace file.",
        epilog="To edit a string tag, give -t TAG --value VALUE -o OUTPUT; the input is not modified.")
    parser.add_argument("input", help="Input trace file (.ab1)")
    parser.add_argument("-t", "--tag", help="Show the full content of a single tag (e.g. SMPL1)")
    parser.add_argument("--value", help="New value for the string tag given with -t")
    parser.add_argument("-o", "--output", default="",
                        help="Output trace file for --value")
    parser.add_argument("--limit", type=int, default=0,
                        help="Limit number of tags displayed (default: 0 = all)")
    parser.add_argument("--max-values", type=int, default=10,
                        help="Maximum array values shown per tag in listings (default: 10)")
    _add_common_arguments(parser, "tracemerge-info")
    return parser


def _edit_tag(args, values) -> None:
    if not args.output:
        logging.error("--value requires -o/--output for the modified trace")
        sys.exit(1)
    logging.info(f"Original value of {args.tag}: {format_tag_value(values[args.tag], max_items=0)}")
    try:
        set_string_tag(args.input, args.tag, args.value, args.output)
        new_value = dict(list_tags(args.output))[args.tag]
    except (OSError, ValueError) as e:
        logging.error(f"Failed to modify tag {args.tag}: {e}")
        sys.exit(1)
    logging.info(f"New value of {args.tag}: {format_tag_value(new_value, max_items=0)}")
    logging.info(f"Modified trace written to {args.output}")


def info_main(argv: List[str] = None):
    """List the tags of a trace, print one tag in full, or write a copy with one tag changed."""
    parser = build_info_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.value is not None and not args.tag:
        logging.error("--value requires -t/--tag")
        sys.exit(1)

    try:
        tags = list_tags(args.input)
    except (OSError, ValueError) as e:
        logging.error(f"Failed to read trace: {e}")
        sys.exit(1)

    if args.tag:
        values = dict(tags)
        if args.tag not in values:
            logging.error(f"Tag {args.tag} not found in {args.input}")
            sys.exit(1)
        if args.value is not None:
            _edit_tag(args, values)
        else:
            print(format_tag_value(values[args.tag], max_items=0))
        return

    if args.limit > 0:
        tags = tags[:args.limit]
    for key, value in tags:
        print(f"{key}\t{format_tag_value(value, max_items=args.max_values)}")


def build_chromatogram_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracemerge-chromatogram",
        description="Plot the four fluorescence channels of an AB1 trace with its base calls.",
        epilog="The image format follows the output extension (.svg, .png, .pdf).")
    parser.add_argument("input", help="Input trace file (.ab1)")
    parser.add_argument("-o", "--output", default="chromatogram.svg",
                        help="Output image file (default: chromatogram.svg)")
    parser.add_argument("-w", "--width", type=int, default=1200,
                        help="Image width in pixels (default: 1200)")
    parser.add_argument("--height", type=int, default=600,
                        help="Image height in pixels (default: 600)")
    parser.add_argument("-s", "--start", type=int, default=0,
                        help="Start trace position (default: 0)")
    parser.add_argument("-e", "--end", type=int, default=-1,
                        help="End trace position (default: whole trace)")
    parser.add_argument("-d", "--downsample", type=int, default=1,
                        help="Downsample factor for smoother plots (default: 1)")
    parser.add_argument("--hide-bases", action="store_true",
                        help="Do not draw base calls")
    _add_common_arguments(parser, "tracemerge-chromatogram")
    return parser


def chromatogram_main(argv: List[str] = None):
    """Render a chromatogram image of one trace."""
    parser = build_chromatogram_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.width <= 0 or args.height <= 0:
        logging.error(f"Image size must be positive, got {args.width}x{args.height}")
        sys.exit(1)

    try:
        channels = render_chromatogram(args.input, args.output,
                                       width=args.width, height=args.height,
                                       start=args.start, end=args.end,
                                       factor=args.downsample,
                                       show_bases=not args.hide_bases)
    except (OSError, ValueError) as e:
        logging.error(f"Failed to render chromatogram: {e}")
        sys.exit(1)

    logging.info(f"Chromatogram of {channels.sample_name} written to {args.output}")


if __name__ == "__main__":
    main()
