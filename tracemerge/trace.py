"""
Reading and tag editing of ABIF (.ab1) sequencer traces.

Decoding of the tagged directory format is delegated to Biopython's "abi"
parser. Base calls come from the PBAS2 tag, per-base qualities from PCON2 and
the sample name from SMPL1. Editing rewrites directory entries in place,
which Biopython does not support.
"""

import logging
import os
import struct
from typing import Any, List, NamedTuple, Tuple

from Bio import SeqIO


UNKNOWN_SAMPLE_ID = "<unknown id>"


class TraceRead(NamedTuple):
    """Base calls of one trace file."""
    sequence: str
    quality: List[int]
    sample_name: str
    path: str


def decode_tag_value(value: Any) -> Any:
    if isinstance(value, bytes):
        try:
            return value.decode()
        except UnicodeDecodeError:
            return value.decode('latin-1')
    return value


def read_trace(path: str) -> TraceRead:
    """
    Load base calls, qualities and sample name from an ABIF file.

    Traces without quality values get quality 0 for every base. Files without
    base calls (e.g. fragment analysis .fsa files) are rejected.

    Raises:
        ValueError: if the file is not an ABIF trace or has no base calls
    """
    record = SeqIO.read(path, "abi")
    raw = record.annotations.get("abif_raw", {})
    if "PBAS2" not in raw:
        raise ValueError(f"No base calls found in {path}")

    sequence = str(record.seq)
    quality = list(record.letter_annotations.get("phred_quality", []))
    if not quality and sequence:
        logging.warning(f"No quality values in {path}; using quality 0 for all bases")
        quality = [0] * len(sequence)

    sample_name = record.id
    if not sample_name or sample_name == UNKNOWN_SAMPLE_ID:
        sample_name = os.path.splitext(os.path.basename(path))[0]

    logging.debug(f"Read {len(sequence)} bases from {path} (sample {sample_name})")
    return TraceRead(sequence, quality, sample_name, path)


def list_tags(path: str) -> List[Tuple[str, Any]]:
    """Return every directory tag of an ABIF file as (tag, value) pairs, sorted by tag."""
    record = SeqIO.read(path, "abi")
    raw = record.annotations.get("abif_raw", {})
    return [(key, decode_tag_value(raw[key])) for key in sorted(raw)]


def format_tag_value(value: Any, max_items: int = 10) -> str:
    """Render a tag value for display, summarising long numeric arrays."""
    if isinstance(value, (tuple, list)):
        if max_items and len(value) > max_items:
            shown = ', '.join(str(v) for v in value[:max_items])
            return f"[{shown}, ...] ({len(value)} values)"
        return '[' + ', '.join(str(v) for v in value) + ']'
    if isinstance(value, str):
        return ''.join(c if c.isprintable() else '.' for c in value)
    return str(value)


# ABIF header (after the "ABIF" marker) and directory entry layouts
_HEADER_FORMAT = ">H4sI2H3I"
_ENTRY_FORMAT = ">4sI2H4I"

ABIF_CHAR = 2
ABIF_PSTRING = 18
ABIF_CSTRING = 19
STRING_TYPES = (ABIF_CHAR, ABIF_PSTRING, ABIF_CSTRING)


def _encode_string(elem_type: int, value: str) -> bytes:
    raw = value.encode('latin-1')
    if elem_type == ABIF_PSTRING:
        if len(raw) > 255:
            raise ValueError("Pascal string tags cannot exceed 255 characters")
        return bytes([len(raw)]) + raw
    if elem_type == ABIF_CSTRING:
        return raw + b"\x00"
    return raw


def set_string_tag(path: str, tag: str, value: str, output_path: str) -> None:
    """
    Write a copy of an ABIF file with one string tag (e.g. SMPL1) replaced.

    The new value is appended after the existing data and the tag's directory
    entry is pointed at it, so values of any length fit without moving other
    tags. Values of 4 bytes or less are stored inside the entry itself.

    Raises:
        ValueError: if the file is not ABIF, the tag is missing or is not a
            string (char, pString or cString) tag
    """
    with open(path, 'rb') as handle:
        data = bytearray(handle.read())
    if data[:4] != b"ABIF":
        raise ValueError(f"{path} is not an ABIF file")

    header = struct.unpack_from(_HEADER_FORMAT, data, 4)
    entry_size, entry_count, directory_offset = header[4], header[5], header[7]

    for index in range(entry_count):
        start = directory_offset + index * entry_size
        name, number, elem_type = struct.unpack_from(_ENTRY_FORMAT, data, start)[:3]
        if name.decode('latin-1') + str(number) != tag:
            continue
        if elem_type not in STRING_TYPES:
            raise ValueError(f"Tag {tag} is not a string tag (element type {elem_type})")

        payload = _encode_string(elem_type, value)
        if len(payload) <= 4:
            offset_field = payload.ljust(4, b"\x00")
        else:
            offset_field = struct.pack(">I", len(data))
            data.extend(payload)
        # Element count and data size, then the data offset
        struct.pack_into(">2I", data, start + 12, len(payload), len(payload))
        data[start + 20:start + 24] = offset_field
        break
    else:
        raise ValueError(f"Tag {tag} not found in {path}")

    with open(output_path, 'wb') as handle:
        handle.write(data)
    logging.debug(f"Set {tag} to {value!r} in {output_path}")
