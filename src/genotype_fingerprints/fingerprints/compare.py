"""Fingerprint comparison by Spearman rank correlation.

For every vector length the two fingerprints share, both are folded and
rank-encoded exactly as the database does, and the Pearson correlation of the
two rank vectors is reported.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from .encoding import rank_encode, ranks
from .schema import Fingerprint


def correlation(a, b) -> float:
    """Pearson correlation with sample (n-1) statistics; nan if undefined."""
    x = np.asarray(a, dtype=np.float64)
    y = np.asarray(b, dtype=np.float64)
    n = len(x)
    if n < 2 or n != len(y):
        return float("nan")
    sx = x.std(ddof=1)
    sy = y.std(ddof=1)
    if sx == 0 or sy == 0:
        return float("nan")
    cov = np.sum((x - x.mean()) * (y - y.mean())) / (n - 1)
    return float(cov / sx / sy)


def spearman(a, b) -> float:
    return correlation(ranks(a), ranks(b))


@dataclass
class ComparisonResult:
    query_allele_count: Optional[int] = None
    target_allele_count: Optional[int] = None
    scores: Dict[int, float] = field(default_factory=dict)  # L -> Spearman

    @staticmethod
    def _snps(allele_count: Optional[int]) -> str:
        if not allele_count:
            return "NA"
        snps = allele_count / 2
        return str(int(snps)) if snps == int(snps) else str(snps)

    def header(self) -> List[str]:
        return ["q_SNPs", "t_SNPs"] + [f"L={L}" for L in self.scores]

    def row(self) -> List[str]:
        return [self._snps(self.query_allele_count), self._snps(self.target_allele_count)] + [
            f"{s:.4f}" for s in self.scores.values()
        ]

    def to_text(self) -> str:
        return "\t".join(self.header()) + "\n" + "\t".join(self.row()) + "\n"


def compare(
    query: Fingerprint,
    target: Fingerprint,
    lengths: Optional[Iterable[int]] = None,
) -> ComparisonResult:
    """Spearman correlation for every vector length present in both fingerprints."""
    wanted = set(lengths) if lengths else None
    result = ComparisonResult(query.allele_count, target.allele_count)
    for L in sorted(query.vectors):
        if L not in target.vectors:
            continue
        if wanted is not None and L not in wanted:
            continue
        result.scores[L] = correlation(rank_encode(query, L), rank_encode(target, L))
    return result
