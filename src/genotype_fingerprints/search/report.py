"""Search hit output: tab-separated text for the terminal, Parquet for analysis."""

from __future__ import annotations
import os
from typing import Iterable, List

import pyarrow as pa
import pyarrow.parquet as pq

from .engine import SearchHit


def hits_schema() -> pa.Schema:
    return pa.schema([
        ("query", pa.string()),
        ("target", pa.string()),
        ("score", pa.float64()),
        ("query_index", pa.int64()),
        ("target_index", pa.int64()),
    ])


def format_hits(hits: Iterable[SearchHit]) -> List[str]:
    return [f"{h.query}\t{h.target}\t{h.score:.4f}" for h in hits]


def write_hits_parquet(path: str, hits: Iterable[SearchHit]) -> None:
    dirpath = os.path.dirname(path)
    if dirpath:
        os.makedirs(dirpath, exist_ok=True)
    rows = [
        {
            "query": h.query,
            "target": h.target,
            "score": h.score,
            "query_index": h.query_index,
            "target_index": h.target_index,
        }
        for h in hits
    ]
    table = pa.Table.from_pylist(rows, schema=hits_schema())
    pq.write_table(table, path, compression="zstd")
