"""Fingerprint computation runners.

    source.stream() -> region filter -> proximity filter -> accumulator(s)
        -> raw fingerprint -> normalize -> <out>.out.gz / <out>.outn.gz

Single-individual inputs (23andMe-style files, single-sample VCFs) write one
pair of files at the output base. Multi-individual inputs (PLINK, multi-sample
VCFs) treat the output as a directory and write `<out>/<individual>.out(n).gz`.
"""

from __future__ import annotations
import logging
import os
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from .fingerprints.accumulator import FingerprintAccumulator
from .fingerprints.io import write_fingerprint_pair
from .fingerprints.normalize import normalize
from .reference import ReferenceTable
from .sources.base import GenotypeCall, SourceSpec
from .sources.filters import RegionFilter, drop_clustered
from .sources.registry import make_source

log = logging.getLogger("genotype_fingerprints.pipeline")


def accumulate(
    spec: SourceSpec,
    reference: ReferenceTable,
    vector_lengths: Sequence[int],
) -> Dict[Optional[str], FingerprintAccumulator]:
    """Stream the source described by `spec` into one accumulator per individual."""
    source = make_source(spec)
    accumulators: Dict[Optional[str], FingerprintAccumulator] = {}

    def accumulator_for(sample: Optional[str]) -> FingerprintAccumulator:
        acc = accumulators.get(sample)
        if acc is None:
            acc = FingerprintAccumulator(vector_lengths, reference, source=spec.path)
            accumulators[sample] = acc
        return acc

    def on_skip(call: GenotypeCall, reason: str) -> None:
        accumulator_for(call.sample).metrics.record_skipped(reason)

    log.info(f"Reading {spec.format} genotypes from {spec.path}")
    calls = source.stream()
    if spec.regions:
        calls = RegionFilter.from_bed(spec.regions).apply(calls, on_skip)
    calls = drop_clustered(calls, spec.too_close, on_skip)
    for call in calls:
        accumulator_for(call.sample).add(call)

    if not accumulators:
        accumulator_for(None)
    return accumulators


def compute(
    out: str,
    spec: SourceSpec,
    reference: ReferenceTable,
    vector_lengths: Sequence[int],
) -> List[str]:
    """Compute and write fingerprints; returns the normalized fingerprint paths."""
    accumulators = accumulate(spec, reference, vector_lengths)
    single = list(accumulators) == [None]
    written: List[str] = []
    for sample, acc in tqdm(accumulators.items(), desc="fingerprints", unit="fp", disable=single):
        raw = acc.result()
        base = out if single else os.path.join(out, str(sample))
        _, norm_path = write_fingerprint_pair(base, raw, normalize(raw))
        log.info(f"{sample or out}: {acc.allele_count} alleles\n{acc.metrics.summary()}")
        written.append(norm_path)
    return written
