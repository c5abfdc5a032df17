"""Fingerprint data model.

A fingerprint holds, for every configured vector length L, a (4, L) float
matrix: one row per allele letter in sorted order (A, C, G, T), one column per
bin. Rows are always present; an allele that was never observed is a row of
whatever the reference subtraction left behind (often zeros).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Set
import time

import numpy as np

from .. import __version__


class Allele(IntEnum):
    A = 0
    C = 1
    G = 2
    T = 3


ALLELES = "".join(a.name for a in Allele)  # "ACGT", also the folding order
N_ALLELES = len(ALLELES)


def allele_index(letter: str) -> Optional[int]:
    """Row index of a nucleotide letter, or None if it is not A/C/G/T."""
    try:
        return Allele[letter].value
    except KeyError:
        return None


@dataclass
class Fingerprint:
    """Per-individual fingerprint vectors plus the header metadata of its file."""
    vectors: Dict[int, np.ndarray] = field(default_factory=dict)  # L -> (4, L)
    allele_count: Optional[int] = None
    source: str = ""
    normalized: bool = False
    software_version: str = __version__
    created: str = field(default_factory=time.ctime)
    # lengths whose rows were present in a file but incomplete
    malformed_lengths: Set[int] = field(default_factory=set)

    @property
    def vector_lengths(self) -> List[int]:
        return list(self.vectors.keys())

    def copy(self) -> Fingerprint:
        return Fingerprint(
            vectors={L: m.copy() for L, m in self.vectors.items()},
            allele_count=self.allele_count,
            source=self.source,
            normalized=self.normalized,
            software_version=self.software_version,
            created=self.created,
            malformed_lengths=set(self.malformed_lengths),
        )
