"""Fingerprint databases: rank-encoded fingerprints in `<base>.fp` with a `<base>.id` index."""

from .names import simplify_names
from .store import FingerprintDatabase, IndexRecord, expand_inputs

__all__ = ["FingerprintDatabase", "IndexRecord", "expand_inputs", "simplify_names"]
