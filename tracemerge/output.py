"""FASTQ/FASTA output of trimmed and merged reads."""

from typing import Iterable, List

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord


def to_record(name: str, sequence: str, quality: List[int]) -> SeqRecord:
    """Build a SeqRecord carrying Phred qualities as letter annotations."""
    if len(sequence) != len(quality):
        raise ValueError(f"Sequence length ({len(sequence)}) does not match "
                         f"quality length ({len(quality)}) for {name}")
    return SeqRecord(
        Seq(sequence),
        id=name,
        description="",
        letter_annotations={"phred_quality": list(quality)},
    )


def write_records(records: Iterable[SeqRecord], handle, fmt: str = "fastq") -> int:
    """Write records to a path or open text handle; returns the number written."""
    if fmt not in ("fastq", "fasta"):
        raise ValueError(f"Unsupported output format: {fmt}")
    return SeqIO.write(records, handle, fmt)
