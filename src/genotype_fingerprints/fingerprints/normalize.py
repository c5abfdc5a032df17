"""Two-pass z-score normalization of raw fingerprints.

Pass 1 standardizes every bin (column) across the four allele rows; pass 2
then standardizes every allele row across its L bins. Both use the sample
standard deviation (n - 1). A zero standard deviation is treated as 1, and a
pass over fewer than two values leaves the data unchanged.
"""

from __future__ import annotations

import numpy as np

from .schema import Fingerprint


def _standardize(m: np.ndarray, axis: int) -> np.ndarray:
    n = m.shape[axis]
    if n < 2:
        return m
    mean = m.mean(axis=axis, keepdims=True)
    std = m.std(axis=axis, ddof=1, keepdims=True)
    std[std == 0] = 1.0
    return (m - mean) / std


def normalize_matrix(matrix: np.ndarray) -> np.ndarray:
    """Normalize one (4, L) matrix; returns a new array."""
    m = np.asarray(matrix, dtype=np.float64)
    m = _standardize(m, axis=0)   # per bin, across alleles
    return _standardize(m, axis=1)  # per allele, across bins


def normalize(fingerprint: Fingerprint) -> Fingerprint:
    """Normalized copy of a raw fingerprint; the input is not modified."""
    out = fingerprint.copy()
    out.vectors = {L: normalize_matrix(m) for L, m in fingerprint.vectors.items()}
    out.normalized = True
    return out
