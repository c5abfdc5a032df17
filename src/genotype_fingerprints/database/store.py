"""Serialized fingerprint database.

A database is a pair of files sharing one base name and one vector length L:

- `<base>.fp`: binary. One little-endian int32 holding 4L, then one record
  per individual of 4L little-endian int32 ranks (the rank-encoded fold).
  Record k therefore starts at byte `4 + k * 16L`.
- `<base>.id`: text. Header lines `#created`, `#version`, `#L`, then one
  `offset \t display_name \t source_filename` line per record, in .fp order.

The database is append-only. Re-serializing the same inputs is a no-op:
sources already listed (by filename or display name) are skipped. Writers of
one database are serialized with an exclusive lock on `<base>.lock`, and each
record is written to the .fp before its index line.
"""

from __future__ import annotations
import contextlib
import fcntl
import logging
import os
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np
from tqdm import tqdm

from .. import __version__
from ..errors import ConfigurationError, DatabaseFormatError, IncompatibleDatabaseError
from ..fingerprints.encoding import rank_encode
from ..fingerprints.io import read_fingerprint
from ..fingerprints.schema import N_ALLELES, Fingerprint
from .names import simplify_names

log = logging.getLogger("genotype_fingerprints.database")

RANK_DTYPE = np.dtype("<i4")
HEADER_BYTES = RANK_DTYPE.itemsize


@dataclass
class IndexRecord:
    offset: int
    name: str
    source: str


def expand_inputs(args: Sequence[str]) -> List[str]:
    """Expand `@listfile` arguments (one filename per line, non-empty files only)."""
    files: List[str] = []
    for arg in args:
        list_path = arg[1:] if arg.startswith("@") else None
        if list_path and os.path.isfile(list_path) and os.path.getsize(list_path) > 0:
            with open(list_path, "r", encoding="utf-8") as f:
                for line in f:
                    path = line.strip()
                    if path and os.path.isfile(path) and os.path.getsize(path) > 0:
                        files.append(path)
        else:
            files.append(arg)
    return files


def _parse_int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise DatabaseFormatError(f"{what} is not an integer: {value!r}") from e


def read_vector_length(index_path: str) -> Optional[int]:
    """The `#L` header value of an index file, or None if it has none."""
    with open(index_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.startswith("#"):
                break
            fields = line.rstrip("\r\n").split("\t")
            if fields[0] == "#L" and len(fields) > 1:
                return _parse_int(fields[1], f"{index_path}: #L header")
    return None


class FingerprintDatabase:
    """Append-only collection of rank-encoded fingerprints of one vector length."""

    def __init__(self, base: str, vector_length: int):
        self.base = base
        self.vector_length = int(vector_length)
        if self.vector_length <= 0:
            raise ConfigurationError(f"Vector length must be positive, got {vector_length}")
        self.index_path = f"{base}.id"
        self.data_path = f"{base}.fp"
        self.lock_path = f"{base}.lock"
        self.created: Optional[str] = None
        self.version: Optional[str] = None
        self.records: List[IndexRecord] = []
        if os.path.exists(self.index_path):
            self._load_index()

    @classmethod
    def open(cls, base: str) -> FingerprintDatabase:
        """Open an existing database, taking L from its index."""
        for suffix in (".fp", ".id"):
            if base.endswith(suffix):
                base = base[: -len(suffix)]
        index_path = f"{base}.id"
        if not os.path.exists(index_path):
            raise ConfigurationError(f"No fingerprint database index at {index_path}")
        L = read_vector_length(index_path)
        if L is None:
            raise ConfigurationError(f"{index_path} has no #L header")
        return cls(base, L)

    # layout

    @property
    def record_width(self) -> int:
        """Number of int32 values per record (4L)."""
        return N_ALLELES * self.vector_length

    @property
    def record_bytes(self) -> int:
        return self.record_width * RANK_DTYPE.itemsize

    def record_offset(self, k: int) -> int:
        return HEADER_BYTES + k * self.record_bytes

    # index

    @property
    def names(self) -> List[str]:
        return [r.name for r in self.records]

    @property
    def sources(self) -> List[str]:
        return [r.source for r in self.records]

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, name: str) -> bool:
        return any(r.name == name for r in self.records)

    def _load_index(self) -> None:
        self.records = []
        with open(self.index_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.rstrip("\r\n")
                if not line:
                    continue
                fields = line.split("\t")
                if fields[0].startswith("#"):
                    self._apply_header(fields)
                    continue
                if len(fields) < 2:
                    log.warning(f"{self.index_path}:{line_num}: malformed index line, skipping")
                    continue
                source = fields[2] if len(fields) > 2 else fields[1]
                offset = _parse_int(fields[0], f"{self.index_path}:{line_num}: record offset")
                self.records.append(IndexRecord(offset, fields[1], source))

    def _apply_header(self, fields: List[str]) -> None:
        key = fields[0]
        value = fields[1].strip() if len(fields) > 1 else ""
        if key == "#L":
            if _parse_int(value, f"{self.index_path}: #L header") != self.vector_length:
                raise IncompatibleDatabaseError(
                    f"Incompatible fingerprint sizes: {self.base} holds L={value}, "
                    f"requested L={self.vector_length}"
                )
        elif key == "#created":
            self.created = value
        elif key == "#version":
            self.version = value

    def _create(self) -> None:
        for path in (self.index_path, self.data_path):
            dirpath = os.path.dirname(path)
            if dirpath:
                os.makedirs(dirpath, exist_ok=True)
        self.created = time.ctime()
        self.version = __version__
        with open(self.data_path, "wb") as f:
            f.write(np.array([self.record_width], dtype=RANK_DTYPE).tobytes())
        with open(self.index_path, "w", encoding="utf-8") as f:
            f.write(f"#created\t{self.created}\n")
            f.write(f"#version\t{self.version}\n")
            f.write(f"#L\t{self.vector_length}\n")
        log.info(f"Created fingerprint database {self.base} (L={self.vector_length})")

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        dirpath = os.path.dirname(self.lock_path)
        if dirpath:
            os.makedirs(dirpath, exist_ok=True)
        with open(self.lock_path, "a") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)

    # writing

    def append(self, entries: Iterable[Tuple[str, Fingerprint]]) -> int:
        """Append (source, normalized fingerprint) pairs; returns the number added."""
        entries = list(entries)
        by_source = {source: fp for source, fp in entries}
        return self._append_sources([s for s, _ in entries], by_source.__getitem__)

    def append_files(self, paths: Sequence[str], progress: bool = False) -> int:
        """Read fingerprint files (and `@list` files) and append them."""
        files = expand_inputs(paths)
        L = self.vector_length
        return self._append_sources(files, lambda p: read_fingerprint(p, lengths=[L]), progress=progress)

    def _append_sources(self, sources: List[str], load, progress: bool = False) -> int:
        added = 0
        with self._locked():
            if os.path.exists(self.index_path):
                self._load_index()
            else:
                self._create()
            done: Set[str] = set(self.names) | set(self.sources)
            todo = list(dict.fromkeys(s for s in sources if s not in done))
            simple = simplify_names(todo)
            with open(self.data_path, "ab") as data, open(self.index_path, "a", encoding="utf-8") as index:
                for source in tqdm(todo, desc="serialize", unit="fp", disable=not progress):
                    name = simple.get(source) or source
                    if name in done:
                        log.info(f"{name} already in {self.base}, skipping")
                        continue
                    if self._write_record(data, index, source, name, load(source)):
                        done.add(name)
                        added += 1
        log.debug(f"Added {added} fingerprints to {self.data_path}")
        return added

    def _write_record(self, data, index, source: str, name: str, fp: Fingerprint) -> bool:
        L = self.vector_length
        if L not in fp.vectors:
            if L in fp.malformed_lengths:
                log.warning(f"{source} yields an incorrect number of values for L={L}, skipping")
                return False
            raise IncompatibleDatabaseError(f"{source} lacks a fingerprint of length {L}")
        ranked = rank_encode(fp, L)
        if len(ranked) != self.record_width:
            log.warning(f"{source} yields an incorrect number of values for L={L}, skipping")
            return False
        data.seek(0, os.SEEK_END)
        offset = data.tell()
        data.write(ranked.astype(RANK_DTYPE).tobytes())
        data.flush()
        index.write(f"{offset}\t{name}\t{source}\n")
        index.flush()
        self.records.append(IndexRecord(offset, name, source))
        return True

    # reading

    def read_header(self) -> int:
        with open(self.data_path, "rb") as f:
            raw = f.read(HEADER_BYTES)
        if len(raw) != HEADER_BYTES:
            raise IncompatibleDatabaseError(f"{self.data_path} has no record-width header")
        return int(np.frombuffer(raw, dtype=RANK_DTYPE)[0])

    def read_ranks(self, k: int) -> np.ndarray:
        """Rank record number k (0-based), read by direct seek."""
        if not 0 <= k < self.data_record_count():
            raise IndexError(f"record {k} out of range for {self.data_path}")
        with open(self.data_path, "rb") as f:
            f.seek(self.record_offset(k))
            raw = f.read(self.record_bytes)
        return np.frombuffer(raw, dtype=RANK_DTYPE).astype(np.int32)

    def load_matrix(self) -> np.ndarray:
        """All records as an (n, 4L) int32 array."""
        width = self.read_header()
        if width != self.record_width:
            raise IncompatibleDatabaseError(
                f"{self.data_path} declares records of {width} values, expected {self.record_width}"
            )
        flat = np.fromfile(self.data_path, dtype=RANK_DTYPE, offset=HEADER_BYTES)
        n = len(flat) // self.record_width
        return flat[: n * self.record_width].reshape(n, self.record_width).astype(np.int32)

    def data_record_count(self) -> int:
        size = os.path.getsize(self.data_path) if os.path.exists(self.data_path) else 0
        return max(0, size - HEADER_BYTES) // self.record_bytes

    def check_consistency(self) -> List[str]:
        """Problems found between the index and the data file (empty when consistent)."""
        problems: List[str] = []
        if not os.path.exists(self.data_path):
            return [f"{self.data_path} is missing"]
        width = self.read_header()
        if width != self.record_width:
            problems.append(f"record width header is {width}, expected {self.record_width}")
        tail = (os.path.getsize(self.data_path) - HEADER_BYTES) % self.record_bytes
        if tail:
            problems.append(f"{tail} trailing bytes after the last full record")
        n = self.data_record_count()
        if n != len(self.records):
            problems.append(f"index lists {len(self.records)} records, data file holds {n}")
        for k, rec in enumerate(self.records):
            if rec.offset != self.record_offset(k):
                problems.append(f"record {k} ({rec.name}) has offset {rec.offset}, expected {self.record_offset(k)}")
                break
        return problems
