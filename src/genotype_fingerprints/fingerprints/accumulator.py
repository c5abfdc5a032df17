"""Fingerprint accumulator.

Streams genotype calls for one individual and accumulates, for every
configured vector length L, how far the individual's allele usage deviates
from the population reference in each bin:

    bin = numeric rsid % L
    counts[allele, bin] += copies of allele in the genotype
    counts[allele, bin] -= reference frequency, for every reference allele

Calls are validated one at a time but applied in vectorised batches.
"""

from __future__ import annotations
import logging
import re
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..sources.base import GenotypeCall
from .metrics import (
    AccumulatorMetrics,
    SKIP_CHROMOSOME,
    SKIP_GENOTYPE,
    SKIP_UNKNOWN_VARIANT,
    SKIP_VARIANT_ID,
)
from .schema import N_ALLELES, Allele, Fingerprint

if TYPE_CHECKING:
    from ..reference import ReferenceTable

log = logging.getLogger("genotype_fingerprints.accumulator")

_CHROM_RE = re.compile(r"^(?:chr)?(\d+)$")
_NON_WORD_RE = re.compile(r"\W")
_GENOTYPE_RE = re.compile(r"^[ACGT][ACGT]$")
_RSID_RE = re.compile(r"^rs(\d+)")

AUTOSOMES = range(1, 23)


def is_autosome(chromosome: str) -> bool:
    m = _CHROM_RE.match(chromosome)
    return bool(m) and int(m.group(1)) in AUTOSOMES


def clean_genotype(genotype: str) -> Optional[str]:
    """Strip separators and upper-case; None unless exactly two of A/C/G/T remain."""
    gt = _NON_WORD_RE.sub("", genotype).upper()
    return gt if _GENOTYPE_RE.match(gt) else None


def numeric_variant_id(variant_id: str) -> Optional[int]:
    m = _RSID_RE.match(variant_id)
    return int(m.group(1)) if m else None


class FingerprintAccumulator:
    """Accumulates raw fingerprint vectors for one individual."""

    def __init__(
        self,
        vector_lengths: Sequence[int],
        reference: ReferenceTable,
        source: str = "",
        batch_size: int = 100_000,
        metrics: Optional[AccumulatorMetrics] = None,
    ):
        self.vector_lengths: List[int] = list(dict.fromkeys(int(L) for L in vector_lengths))
        if not self.vector_lengths or any(L <= 0 for L in self.vector_lengths):
            raise ValueError(f"vector lengths must be positive: {vector_lengths!r}")
        self.reference = reference
        self.source = source
        self.batch_size = batch_size
        self.metrics = metrics or AccumulatorMetrics()
        self.allele_count = 0
        self._counts = {L: np.zeros((N_ALLELES, L), dtype=np.float64) for L in self.vector_lengths}
        self._nids: List[int] = []
        self._first: List[int] = []
        self._second: List[int] = []
        self._freqs: List[Tuple[float, ...]] = []

    def add(self, call: GenotypeCall) -> bool:
        """Queue one call; returns False (and counts the reason) if it is unusable."""
        if not is_autosome(call.chromosome):
            return self._skip(call, SKIP_CHROMOSOME)
        gt = clean_genotype(call.genotype)
        if gt is None:
            return self._skip(call, SKIP_GENOTYPE)
        freqs = self.reference.get(call.variant_id)
        if freqs is None:
            return self._skip(call, SKIP_UNKNOWN_VARIANT)
        nid = numeric_variant_id(call.variant_id)
        if nid is None:
            return self._skip(call, SKIP_VARIANT_ID)

        self._nids.append(nid)
        self._first.append(Allele[gt[0]].value)
        self._second.append(Allele[gt[1]].value)
        self._freqs.append(freqs)
        self.allele_count += 2
        self.metrics.record_accepted()
        if len(self._nids) >= self.batch_size:
            self._flush()
        return True

    def extend(self, calls: Iterable[GenotypeCall]) -> int:
        return sum(1 for call in calls if self.add(call))

    def _skip(self, call: GenotypeCall, reason: str) -> bool:
        self.metrics.record_skipped(reason)
        log.debug(f"Skipping {call.variant_id} chr={call.chromosome} gt={call.genotype!r}: {reason}")
        return False

    def _flush(self) -> None:
        if not self._nids:
            return
        nids = np.array(self._nids, dtype=np.int64)
        first = np.array(self._first, dtype=np.intp)
        second = np.array(self._second, dtype=np.intp)
        freqs = np.array(self._freqs, dtype=np.float64)
        for L, counts in self._counts.items():
            bins = nids % L
            for k in range(N_ALLELES):
                weights = (first == k).astype(np.float64) + (second == k) - freqs[:, k]
                counts[k] += np.bincount(bins, weights=weights, minlength=L)
        self._nids.clear()
        self._first.clear()
        self._second.clear()
        self._freqs.clear()

    def result(self) -> Fingerprint:
        """Raw fingerprint of everything added so far."""
        self._flush()
        return Fingerprint(
            vectors={L: m.copy() for L, m in self._counts.items()},
            allele_count=self.allele_count,
            source=self.source,
            normalized=False,
        )
