"""Population allele-frequency reference table.

File format (gzip or plain text), one line per variant:

    rs123 \t A \t 0.31 \t G \t 0.69

The table is all-or-nothing: any unreadable line aborts the load.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterator, Optional, Tuple

from .errors import ReferenceTableError
from .fingerprints.schema import N_ALLELES, allele_index
from .sources.base import open_text

log = logging.getLogger("genotype_fingerprints.reference")

Frequencies = Tuple[float, ...]  # one slot per Allele


class ReferenceTable:
    """Variant id (e.g. `rs123`) -> allele frequencies indexed by Allele."""

    def __init__(self, frequencies: Optional[Dict[str, Frequencies]] = None, path: str = ""):
        self._freqs: Dict[str, Frequencies] = dict(frequencies or {})
        self.path = path

    @classmethod
    def from_mapping(cls, table: Dict[str, Dict[str, float]]) -> ReferenceTable:
        """Build from `{rsid: {allele: freq}}`; letters other than A/C/G/T are ignored."""
        return cls({rsid: _to_slots(f.items()) for rsid, f in table.items()})

    def __contains__(self, variant_id: str) -> bool:
        return variant_id in self._freqs

    def __len__(self) -> int:
        return len(self._freqs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._freqs)

    def get(self, variant_id: str) -> Optional[Frequencies]:
        return self._freqs.get(variant_id)


def _to_slots(pairs) -> Frequencies:
    slots = [0.0] * N_ALLELES
    for letter, freq in pairs:
        idx = allele_index(letter)
        if idx is not None:
            slots[idx] += float(freq)
    return tuple(slots)


def load_reference(path: str) -> ReferenceTable:
    """Load the frequency table at `path`. Raises ReferenceTableError on any failure."""
    freqs: Dict[str, Frequencies] = {}
    try:
        with open_text(path) as f:
            for line_num, line in enumerate(f, start=1):
                line = line.rstrip("\r\n")
                if not line:
                    continue
                rsid, *fields = line.split("\t")
                while fields and fields[-1] == "":
                    fields.pop()
                if len(fields) % 2:
                    raise ReferenceTableError(
                        f"{path}:{line_num}: expected allele/frequency pairs, got {len(fields)} fields"
                    )
                try:
                    freqs[rsid] = _to_slots(zip(fields[0::2], fields[1::2]))
                except ValueError as e:
                    raise ReferenceTableError(f"{path}:{line_num}: bad frequency: {e}") from e
    except OSError as e:
        raise ReferenceTableError(f"Cannot read reference table {path}: {e}") from e
    except EOFError as e:
        raise ReferenceTableError(f"Truncated reference table {path}: {e}") from e
    log.info(f"Loaded {len(freqs):,} reference variants from {path}")
    return ReferenceTable(freqs, path=path)
