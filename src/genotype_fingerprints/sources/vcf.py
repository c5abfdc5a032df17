"""VCF genotype source.

Reads the GT subfield of every sample column and spells it out in bases
through REF/ALT, e.g. REF=A ALT=G GT=0/1 -> "AG". The ID column provides the
variant id; when it lists several ids the first `rs` id is used.

Single-sample files yield calls with `sample=None`; multi-sample files tag
every call with its sample name so one fingerprint is built per sample.
Missing calls and calls involving an indel allele (any REF/ALT longer than one
base) are passed through unspelled, so the accumulator rejects them.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, List, Optional

from .base import GenotypeCall, GenotypeSource, SourceSpec, read_lines

log = logging.getLogger("genotype_fingerprints.sources.vcf")

_GT_SPLIT_RE = re.compile(r"[/|]")
_FIXED_COLUMNS = 9


def _variant_id(id_field: str) -> str:
    ids = id_field.split(";")
    for i in ids:
        if i.startswith("rs"):
            return i
    return ids[0]


def _spell_genotype(gt: str, alleles: List[str]) -> str:
    letters = []
    for idx in _GT_SPLIT_RE.split(gt):
        if not idx.isdigit() or int(idx) >= len(alleles):
            return gt
        allele = alleles[int(idx)]
        if len(allele) != 1:
            return gt
        letters.append(allele)
    return "".join(letters)


class VCFSource(GenotypeSource):

    def __init__(self, spec: SourceSpec):
        self.spec = spec
        self.name = spec.path
        self.samples: List[str] = []

    def stream(self) -> Iterable[GenotypeCall]:
        for line_num, line in read_lines(self.spec.path):
            if not line or line.startswith("##"):
                continue
            fields = line.split("\t")
            if line.startswith("#"):
                self.samples = fields[_FIXED_COLUMNS:]
                continue
            if len(fields) <= _FIXED_COLUMNS:
                log.warning(f"{self.spec.path}:{line_num}: no sample columns, skipping")
                continue
            try:
                position = int(fields[1])
            except ValueError:
                log.warning(f"{self.spec.path}:{line_num}: bad position {fields[1]!r}")
                continue
            fmt = fields[8].split(":")
            if "GT" not in fmt:
                continue
            gt_idx = fmt.index("GT")
            alleles = [fields[3]] + fields[4].split(",")
            variant_id = _variant_id(fields[2])
            columns = fields[_FIXED_COLUMNS:]
            multi = len(columns) > 1
            for i, column in enumerate(columns):
                parts = column.split(":")
                gt = parts[gt_idx] if gt_idx < len(parts) else "."
                yield GenotypeCall(
                    variant_id=variant_id,
                    chromosome=fields[0],
                    position=position,
                    genotype=_spell_genotype(gt, alleles),
                    sample=self._sample_name(i) if multi else None,
                )

    def _sample_name(self, i: int) -> Optional[str]:
        if i < len(self.samples):
            return self.samples[i]
        return f"sample{i + 1}"
