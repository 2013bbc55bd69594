"""Shared fixtures: deterministic sequences and synthetic ABIF trace files."""

import random
import struct

import pytest


# ABIF element type codes
ABIF_CHAR = 2
ABIF_SHORT = 4
ABIF_PSTRING = 18
ABIF_CSTRING = 19

HEADER_SIZE = 128
DIR_ENTRY_SIZE = 28


def generate_dna_sequence(seed_str: str, length: int) -> str:
    """Generate a deterministic DNA sequence from a seed string."""
    rng = random.Random(seed_str)
    return ''.join(rng.choice('ACGT') for _ in range(length))


def build_abif(sequence: str, quality, sample_name=None, extra_tags=None) -> bytes:
    """
    Assemble a minimal ABIF file.

    Directory entries hold PBAS2 (base calls), PCON2 (qualities) and, when
    given, SMPL1 (sample name, Pascal string). extra_tags is a list of
    (name, number, elem_type, elem_size, num_elements, payload) tuples.
    """
    entries = []
    if sequence is not None:
        entries.append(("PBAS", 2, ABIF_CHAR, 1, len(sequence), sequence.encode()))
        entries.append(("PCON", 2, ABIF_CHAR, 1, len(quality), bytes(quality)))
    if sample_name is not None:
        name = sample_name.encode()
        entries.append(("SMPL", 1, ABIF_PSTRING, 1, len(name) + 1, bytes([len(name)]) + name))
    entries.extend(extra_tags or [])

    data = b""
    directory = b""
    for tag, number, elem_type, elem_size, num_elements, payload in entries:
        if len(payload) <= 4:
            # Small payloads live in the offset field itself
            offset_field = payload.ljust(4, b"\x00")
        else:
            offset_field = struct.pack(">I", HEADER_SIZE + len(data))
            data += payload
        directory += struct.pack(">4sI2HII", tag.encode(), number, elem_type, elem_size,
                                 num_elements, len(payload))
        directory += offset_field + struct.pack(">I", 0)

    dir_offset = HEADER_SIZE + len(data)
    header = b"ABIF" + struct.pack(">H4sI2H3II", 101, b"tdir", 1, 1023, DIR_ENTRY_SIZE,
                                   len(entries), len(directory), dir_offset, 0)
    return header.ljust(HEADER_SIZE, b"\x00") + data + directory


def channel_tags(signals, peaks, base_order=None, first_channel=9):
    """Directory entries for four signal channels, the peak positions and the base order."""
    tags = []
    for offset, signal in enumerate(signals):
        payload = struct.pack(f">{len(signal)}h", *signal)
        tags.append(("DATA", first_channel + offset, ABIF_SHORT, 2, len(signal), payload))
    tags.append(("PLOC", 2, ABIF_SHORT, 2, len(peaks), struct.pack(f">{len(peaks)}h", *peaks)))
    if base_order is not None:
        tags.append(("FWO_", 1, ABIF_CHAR, 1, len(base_order), base_order.encode()))
    return tags


@pytest.fixture
def write_trace(tmp_path):
    """Factory writing a synthetic .ab1 file and returning its path as a string."""
    def _write(filename, sequence, quality, sample_name=None, extra_tags=None):
        path = tmp_path / filename
        path.write_bytes(build_abif(sequence, quality, sample_name, extra_tags))
        return str(path)
    return _write
