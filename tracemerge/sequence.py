"""IUPAC-aware sequence helpers shared by trimming, alignment and merging."""

from typing import Dict


# Complement of each IUPAC nucleotide code
IUPAC_COMPLEMENT: Dict[str, str] = {
    'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G',
    'Y': 'R', 'R': 'Y', 'S': 'S', 'W': 'W',
    'K': 'M', 'M': 'K',
    'B': 'V', 'V': 'B', 'D': 'H', 'H': 'D',
    'N': 'N',
}

_COMPLEMENT_TABLE = str.maketrans(IUPAC_COMPLEMENT)

# Two-base codes and the bases they stand for
TWO_BASE_CODES: Dict[str, str] = {
    'Y': 'CT', 'R': 'AG', 'S': 'GC', 'W': 'AT', 'K': 'TG', 'M': 'AC',
}

# Three-base codes and the one base each of them excludes
THREE_BASE_CODES: Dict[str, str] = {
    'B': 'A', 'D': 'C', 'H': 'G', 'V': 'T',
}


def reverse(seq: str) -> str:
    """Return the symbols of seq in opposite order."""
    return seq[::-1]


def reverse_complement(seq: str) -> str:
    """
    Reverse complement a nucleotide sequence using IUPAC ambiguity codes.

    Input is upper-cased before lookup, so the result is always upper case.
    Characters without a complement (e.g. '-', '*') pass through unchanged.

    >>> reverse_complement("AATTGC")
    'GCAATT'
    >>> reverse_complement("ACGYN")
    'NRCGT'
    """
    return reverse(seq).upper().translate(_COMPLEMENT_TABLE)


def match_iupac(pattern_base: str, read_base: str) -> bool:
    """
    Check whether a read base is compatible with a (possibly ambiguous) pattern base.

    An 'N' in the read is an uncalled base and never matches, while an 'N' in
    the pattern matches anything. Two-base codes match their two bases; a
    three-base code matches every read symbol except the base it excludes.
    """
    if read_base == 'N':
        return False
    if pattern_base == read_base or pattern_base == 'N':
        return True
    if pattern_base in TWO_BASE_CODES:
        return read_base in TWO_BASE_CODES[pattern_base]
    if pattern_base in THREE_BASE_CODES:
        return read_base != THREE_BASE_CODES[pattern_base]
    return False


def iupac_compatible(a: str, b: str) -> bool:
    """Symmetric form of match_iupac, used when aligning two reads that may both carry codes."""
    return a == b or match_iupac(a, b) or match_iupac(b, a)
