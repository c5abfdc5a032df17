"""Genotype source plugin interface.

A source turns one input (a genotype file, a VCF, a PLINK file set) into a
stream of GenotypeCall records. Sources do not validate calls; the
accumulator decides what is usable, so every format is judged the same way.

All sources expose a unified `stream()` generator yielding GenotypeCall.
"""

from __future__ import annotations
import bz2
import gzip
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, Optional, Tuple

from ..errors import GenotypeSourceError


def open_text(path: str) -> IO[str]:
    """Open a plain, .gz or .bz2 text file for reading."""
    if path.endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8")
    if path.endswith(".bz2"):
        return bz2.open(path, "rt", encoding="utf-8")
    return open(path, "r", encoding="utf-8")


def read_lines(path: str) -> Iterator[Tuple[int, str]]:
    """Yield (line number, line without newline); unreadable input raises GenotypeSourceError."""
    try:
        with open_text(path) as f:
            for line_num, line in enumerate(f, start=1):
                yield line_num, line.rstrip("\r\n")
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise GenotypeSourceError(f"Cannot read {path}: {e}") from e


@dataclass
class GenotypeCall:
    variant_id: str     # e.g. "rs123"
    chromosome: str     # "1".."22", "chr1", "X", ...
    position: int
    genotype: str       # two letters, possibly with separators ("A/G")
    sample: Optional[str] = None  # set by multi-individual sources


@dataclass
class SourceSpec:
    path: str
    format: str = "tabular"         # tabular | 23andme | vcf | plink
    regions: Optional[str] = None   # BED file of regions of interest
    too_close: int = 0              # proximity filter distance (0 disables)
    # plink only
    plink_executable: str = "plink"
    chunk_size: int = 1000


class GenotypeSource:
    """Base interface for all genotype sources."""
    name: str

    def stream(self) -> Iterable[GenotypeCall]:
        raise NotImplementedError
