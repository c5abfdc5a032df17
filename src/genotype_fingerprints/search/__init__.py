"""Similarity search over fingerprint databases."""

from .engine import (
    ExternalEngine,
    NumpyEngine,
    SearchEngine,
    SearchHit,
    make_engine,
    parse_engine_output,
    search,
)
from .report import format_hits, write_hits_parquet

__all__ = [
    "ExternalEngine",
    "NumpyEngine",
    "SearchEngine",
    "SearchHit",
    "make_engine",
    "parse_engine_output",
    "search",
    "format_hits",
    "write_hits_parquet",
]
