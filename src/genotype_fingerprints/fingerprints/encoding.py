"""Folding and rank encoding.

Folding concatenates the four allele rows of one vector length in sorted
allele order (A, C, G, T) into a single vector of 4L values. Rank encoding
replaces every value by its 0-based position in a stable ascending sort, so
the result is always a permutation of 0..n-1 and ties keep input order.

Databases store rank-encoded folds, and the comparator correlates them, so
both must fold the same way.
"""

from __future__ import annotations

import numpy as np

from .schema import Fingerprint


def fold(fingerprint: Fingerprint, L: int) -> np.ndarray:
    """Concatenated allele rows for vector length L (length 4L)."""
    return np.asarray(fingerprint.vectors[L], dtype=np.float64).reshape(-1)


def ranks(vector) -> np.ndarray:
    """0-based ordinal ranks as int32; equal values are ranked in input order."""
    v = np.asarray(vector, dtype=np.float64)
    order = np.argsort(v, kind="stable")
    out = np.empty(len(v), dtype=np.int32)
    out[order] = np.arange(len(v), dtype=np.int32)
    return out


def rank_encode(fingerprint: Fingerprint, L: int) -> np.ndarray:
    return ranks(fold(fingerprint, L))
