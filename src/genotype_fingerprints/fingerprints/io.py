"""Fingerprint text files.

Layout (gzip-compressed by convention, `.out.gz` raw / `.outn.gz` normalized):

    #software-version \t 1.0.0
    #source \t genotypes/sample.txt.gz
    #alleleCount \t 1234566
    #vectorLengths \t 500 \t 1000 \t 5000
    #created \t Mon Oct 16 12:00:00 2017
    500 \t A \t v_0 \t ... \t v_499
    500 \t C \t ...

One row per (L, allele). Older files omit the L column (`A \t v_0 ...`);
L is then the number of values on the row.
"""

from __future__ import annotations
import gzip
import logging
import os
import re
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..errors import FingerprintFormatError
from ..sources.base import open_text
from .schema import ALLELES, Fingerprint

log = logging.getLogger("genotype_fingerprints.io")

RAW_EXT = "out"
NORMALIZED_EXT = "outn"

_OLD_STYLE_KEY_RE = re.compile(r"^[ACGT]+$")


def _header_lines(fp: Fingerprint) -> List[str]:
    allele_count = "" if fp.allele_count is None else str(fp.allele_count)
    headers = [
        ("#software-version", fp.software_version),
        ("#source", fp.source),
        ("#alleleCount", allele_count),
        ("#vectorLengths", "\t".join(str(L) for L in fp.vector_lengths)),
        ("#created", fp.created),
    ]
    return ["\t".join(h) for h in headers]


def _format_raw(v: float) -> str:
    return f"{v:.15g}"


def _format_normalized(v: float) -> str:
    return f"{v:.4f}"


def write_fingerprint(path: str, fp: Fingerprint) -> None:
    """Write one fingerprint file; gzip-compressed when `path` ends in .gz."""
    fmt = _format_normalized if fp.normalized else _format_raw
    dirpath = os.path.dirname(path)
    if dirpath:
        os.makedirs(dirpath, exist_ok=True)
    opener = gzip.open if path.endswith(".gz") else open
    with opener(path, "wt", encoding="utf-8") as f:
        for line in _header_lines(fp):
            f.write(line + "\n")
        for L in fp.vector_lengths:
            matrix = fp.vectors[L]
            for k, allele in enumerate(ALLELES):
                f.write("\t".join([str(L), allele] + [fmt(v) for v in matrix[k]]) + "\n")


def write_fingerprint_pair(base: str, raw: Fingerprint, normalized: Fingerprint) -> Tuple[str, str]:
    """Write `<base>.out.gz` and `<base>.outn.gz`; returns both paths."""
    raw_path = f"{base}.{RAW_EXT}.gz"
    norm_path = f"{base}.{NORMALIZED_EXT}.gz"
    write_fingerprint(raw_path, raw)
    write_fingerprint(norm_path, normalized)
    return raw_path, norm_path


def read_fingerprint(path: str, lengths: Optional[Iterable[int]] = None) -> Fingerprint:
    """Read a fingerprint file, optionally keeping only the given vector lengths.

    Vector lengths whose rows are incomplete (missing alleles, wrong number
    of values, unparseable numbers) are reported in `malformed_lengths`.
    """
    wanted = set(lengths) if lengths else None
    rows: Dict[int, Dict[str, List[str]]] = {}
    fp = Fingerprint(source=path, created="", normalized=not _is_raw_path(path))
    try:
        with open_text(path) as f:
            for line_num, line in enumerate(f, start=1):
                line = line.rstrip("\r\n")
                if not line:
                    continue
                fields = line.split("\t")
                if fields[0].startswith("#"):
                    _apply_header(fp, fields)
                    continue
                if _OLD_STYLE_KEY_RE.match(fields[0]):
                    key, values = fields[0], fields[1:]
                    L = len(values)
                else:
                    try:
                        L = int(fields[0])
                    except ValueError:
                        log.warning(f"{path}:{line_num}: unrecognised row, skipping")
                        continue
                    if len(fields) < 2:
                        log.warning(f"{path}:{line_num}: row without allele, skipping")
                        continue
                    key, values = fields[1], fields[2:]
                if wanted is not None and L not in wanted:
                    continue
                rows.setdefault(L, {})[key] = values
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise FingerprintFormatError(f"Cannot read fingerprint file {path}: {e}") from e

    for L, by_key in rows.items():
        matrix = _to_matrix(L, by_key)
        if matrix is None:
            log.warning(f"{path} yields an incorrect number of values for L={L}")
            fp.malformed_lengths.add(L)
        else:
            fp.vectors[L] = matrix
    return fp


def _is_raw_path(path: str) -> bool:
    name = path[:-3] if path.endswith(".gz") else path
    return name.endswith("." + RAW_EXT)


def _apply_header(fp: Fingerprint, fields: List[str]) -> None:
    key = fields[0]
    value = fields[1].strip() if len(fields) > 1 else ""
    if key == "#alleleCount":
        try:
            fp.allele_count = int(float(value)) if value else None
        except ValueError:
            fp.allele_count = None
    elif key == "#source":
        fp.source = value
    elif key == "#software-version":
        fp.software_version = value
    elif key == "#created":
        fp.created = value


def _to_matrix(L: int, by_key: Dict[str, List[str]]) -> Optional[np.ndarray]:
    if sorted(by_key) != list(ALLELES):
        return None
    if any(len(by_key[a]) != L for a in ALLELES):
        return None
    try:
        return np.array([[float(v) for v in by_key[a]] for a in ALLELES], dtype=np.float64)
    except ValueError:
        return None
