"""Database-wide similarity search.

A search compares every fingerprint of a query database against every
fingerprint of a target database (or, without a target, all pairs within the
query database) and reports the pairs that score above a relevance threshold.

Engines:
- ExternalEngine: the compiled `fpc` program. Invoked as
  `fpc <query.fp> [<target.fp>]`, it prints `query_idx \t target_idx \t score`
  lines with 1-based record indices.
- NumpyEngine: the same computation in-process. Stored records are rank
  permutations, so the Pearson correlation of two records is their Spearman
  correlation.

search() resolves the inputs, runs an engine and translates record indices
back to display names through the `.id` index.
"""

from __future__ import annotations
import logging
import os
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from ..database.store import FingerprintDatabase
from ..errors import ConfigurationError, ExternalToolError
from ..fingerprints.io import read_fingerprint

log = logging.getLogger("genotype_fingerprints.search")

RawHit = Tuple[int, int, float]  # 1-based query index, 1-based target index, score


@dataclass
class SearchHit:
    query: str
    target: str
    score: float
    query_index: int
    target_index: int


class SearchEngine(ABC):
    name: str = "engine"

    @abstractmethod
    def run(self, query_fp: str, target_fp: Optional[str] = None) -> Iterator[RawHit]:
        """Yield hits between two .fp files (all pairs within query_fp if no target)."""
        ...


def parse_engine_output(text: str) -> Iterator[RawHit]:
    for line in text.splitlines():
        fields = line.strip().split("\t")
        if len(fields) < 3:
            if line.strip():
                log.warning(f"Unexpected search engine output line: {line!r}")
            continue
        try:
            yield int(fields[0]), int(fields[1]), float(fields[2])
        except ValueError:
            log.warning(f"Unexpected search engine output line: {line!r}")


class ExternalEngine(SearchEngine):
    name = "fpc"

    def __init__(self, executable: str = "fpc", runner: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        self.executable = shutil.which(executable)
        if not self.executable:
            raise ConfigurationError(f"Cannot find fpc (the search engine), looked for {executable!r}")
        self.runner = runner

    def run(self, query_fp: str, target_fp: Optional[str] = None) -> Iterator[RawHit]:
        cmd = [self.executable, query_fp] + ([target_fp] if target_fp else [])
        proc = self.runner(cmd, capture_output=True, text=True)
        if proc.returncode != 0:
            raise ExternalToolError(f"fpc failed ({proc.returncode}): {(proc.stderr or '').strip()}")
        yield from parse_engine_output(proc.stdout)


def correlation_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Row-wise Pearson correlation between every row of `a` and every row of `b`."""
    a = a.astype(np.float64)
    b = b.astype(np.float64)
    a = a - a.mean(axis=1, keepdims=True)
    b = b - b.mean(axis=1, keepdims=True)
    na = np.sqrt((a * a).sum(axis=1))
    nb = np.sqrt((b * b).sum(axis=1))
    with np.errstate(divide="ignore", invalid="ignore"):
        return (a @ b.T) / np.outer(na, nb)


class NumpyEngine(SearchEngine):
    name = "numpy"

    def __init__(self, min_score: float = 0.1, block_size: int = 1024):
        self.min_score = float(min_score)
        self.block_size = block_size

    def run(self, query_fp: str, target_fp: Optional[str] = None) -> Iterator[RawHit]:
        q = FingerprintDatabase.open(query_fp).load_matrix()
        t = FingerprintDatabase.open(target_fp).load_matrix() if target_fp else q
        if q.shape[1] != t.shape[1]:
            raise ConfigurationError(
                f"Query and target records differ in width ({q.shape[1]} vs {t.shape[1]})"
            )
        self_search = target_fp is None
        for start in range(0, len(q), self.block_size):
            scores = correlation_matrix(q[start:start + self.block_size], t)
            for i, j in zip(*np.nonzero(scores >= self.min_score)):
                qi = start + int(i)
                if self_search and int(j) <= qi:
                    continue
                yield qi + 1, int(j) + 1, float(scores[i, j])


def make_engine(kind: str = "auto", executable: str = "fpc", min_score: float = 0.1) -> SearchEngine:
    kind = (kind or "auto").lower()
    if kind == "fpc":
        return ExternalEngine(executable)
    if kind == "numpy":
        return NumpyEngine(min_score)
    if kind == "auto":
        if shutil.which(executable):
            return ExternalEngine(executable)
        log.info(f"{executable} not found, using the in-process search engine")
        return NumpyEngine(min_score)
    raise ConfigurationError(f"Unknown search engine: {kind}. Available: auto, fpc, numpy")


def resolve_database(path: str) -> Optional[FingerprintDatabase]:
    """Interpret `path` as `<base>.fp` or as a base with an existing `<base>.id`."""
    if path.endswith(".fp"):
        return FingerprintDatabase.open(path)
    if os.path.exists(f"{path}.id"):
        return FingerprintDatabase.open(path)
    return None


def search(
    query: str,
    target: Optional[str] = None,
    engine: Optional[SearchEngine] = None,
) -> List[SearchHit]:
    """Search `query` against `target` (or within `query` when target is None)."""
    engine = engine or make_engine()
    target_db = None
    if target:
        target_db = resolve_database(target)
        if target_db is None:
            raise ConfigurationError(f"Couldn't interpret {target} as target")

    with tempfile.TemporaryDirectory(prefix="gf_search_") as tmp_dir:
        query_db = resolve_database(query)
        if query_db is None:
            query_db = _serialize_query(query, target_db, tmp_dir)
        target_db = target_db or query_db

        hits: List[SearchHit] = []
        qnames, tnames = query_db.names, target_db.names
        target_fp = target_db.data_path if target else None
        for qi, ti, score in engine.run(query_db.data_path, target_fp):
            if not (1 <= qi <= len(qnames) and 1 <= ti <= len(tnames)):
                log.warning(f"Search engine returned out-of-range pair ({qi}, {ti})")
                continue
            hits.append(SearchHit(qnames[qi - 1], tnames[ti - 1], score, qi, ti))
    log.info(f"{len(hits)} hits from engine={engine.name}")
    return hits


def _serialize_query(query: str, target_db: Optional[FingerprintDatabase], tmp_dir: str) -> FingerprintDatabase:
    """Serialize a fingerprint file into a temporary database with the target's L."""
    if target_db is None:
        raise ConfigurationError(f"Couldn't interpret {query} as query (a target database is needed to choose L)")
    db = FingerprintDatabase(os.path.join(tmp_dir, "query"), target_db.vector_length)
    fp = read_fingerprint(query, lengths=[target_db.vector_length])
    db.append([(query, fp)])
    if not len(db):
        raise ConfigurationError(f"Couldn't interpret {query} as query")
    return db
