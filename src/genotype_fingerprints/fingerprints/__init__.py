"""Fingerprint layer: accumulate, normalize, encode, compare, read and write."""

from .schema import ALLELES, Allele, Fingerprint
from .metrics import AccumulatorMetrics
from .accumulator import FingerprintAccumulator
from .normalize import normalize, normalize_matrix
from .encoding import fold, ranks, rank_encode
from .compare import ComparisonResult, compare, correlation, spearman
from .io import read_fingerprint, write_fingerprint, write_fingerprint_pair

__all__ = [
    "ALLELES",
    "Allele",
    "Fingerprint",
    "AccumulatorMetrics",
    "FingerprintAccumulator",
    "normalize",
    "normalize_matrix",
    "fold",
    "ranks",
    "rank_encode",
    "ComparisonResult",
    "compare",
    "correlation",
    "spearman",
    "read_fingerprint",
    "write_fingerprint",
    "write_fingerprint_pair",
]
