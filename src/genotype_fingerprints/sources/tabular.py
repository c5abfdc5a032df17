"""Tab-delimited genotype source (23andMe-style export).

Each non-comment line holds:

    rsid \t chromosome \t position \t genotype

e.g. `rs4477212 \t 1 \t 82154 \t AA`. Lines starting with `#` are comments.
Plain, .gz and .bz2 files are accepted.
"""

from __future__ import annotations
import logging
from typing import Iterable

from .base import GenotypeCall, GenotypeSource, SourceSpec, read_lines

log = logging.getLogger("genotype_fingerprints.sources.tabular")


class TabularSource(GenotypeSource):

    def __init__(self, spec: SourceSpec):
        self.spec = spec
        self.name = spec.path

    def stream(self) -> Iterable[GenotypeCall]:
        for line_num, line in read_lines(self.spec.path):
            if not line or line.startswith("#"):
                continue
            fields = line.split("\t")
            if len(fields) < 4:
                log.warning(f"{self.spec.path}:{line_num}: expected 4 fields, got {len(fields)}")
                continue
            try:
                position = int(fields[2])
            except ValueError:
                log.warning(f"{self.spec.path}:{line_num}: bad position {fields[2]!r}")
                continue
            yield GenotypeCall(
                variant_id=fields[0],
                chromosome=fields[1],
                position=position,
                genotype=fields[3],
            )
