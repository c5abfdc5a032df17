"""Shared fixtures: small reference tables, genotype files and fingerprints."""

from __future__ import annotations
import gzip
import os

import numpy as np
import pytest

from genotype_fingerprints.fingerprints.schema import Fingerprint
from genotype_fingerprints.reference import ReferenceTable

REFERENCE_ROWS = [
    ("rs1", [("A", 0.3), ("C", 0.7)]),
    ("rs2", [("G", 0.5), ("T", 0.5)]),
    ("rs3", [("A", 0.1), ("G", 0.9)]),
    ("rs4", [("C", 0.25), ("T", 0.75)]),
    ("rs5", [("A", 0.6), ("C", 0.2), ("G", 0.2)]),
    ("rs10", [("A", 0.5), ("T", 0.5)]),
]


def write_reference(path: str, rows=REFERENCE_ROWS) -> str:
    with gzip.open(path, "wt", encoding="utf-8") as f:
        for rsid, pairs in rows:
            fields = [rsid]
            for allele, freq in pairs:
                fields += [allele, str(freq)]
            f.write("\t".join(fields) + "\n")
    return path


def write_genotypes(path: str, rows) -> str:
    """rows: (rsid, chrom, pos, genotype) tuples; gzip when path ends in .gz."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    opener = gzip.open if path.endswith(".gz") else open
    with opener(path, "wt", encoding="utf-8") as f:
        f.write("# rsid\tchromosome\tposition\tgenotype\n")
        for row in rows:
            f.write("\t".join(str(v) for v in row) + "\n")
    return path


def random_fingerprint(seed: int, lengths=(50,), source: str = "") -> Fingerprint:
    rng = np.random.default_rng(seed)
    return Fingerprint(
        vectors={L: rng.normal(size=(4, L)) for L in lengths},
        allele_count=2000 + seed,
        source=source,
        normalized=True,
    )


@pytest.fixture
def reference_path(tmp_path) -> str:
    return write_reference(os.path.join(tmp_path, "1000g.freq.gz"))


@pytest.fixture
def reference() -> ReferenceTable:
    return ReferenceTable.from_mapping({rsid: dict(pairs) for rsid, pairs in REFERENCE_ROWS})


@pytest.fixture
def genotype_rows():
    return [
        ("rs1", "1", 100, "AC"),
        ("rs2", "2", 200, "GG"),
        ("rs3", "chr3", 300, "AG"),
        ("rs4", "4", 400, "TT"),
        ("rs5", "5", 500, "AA"),
        ("rs10", "10", 1000, "AT"),
        ("rs2", "X", 600, "GT"),       # sex chromosome
        ("rs99", "1", 700, "AC"),      # not in the reference
        ("rs3", "3", 800, "--"),       # no call
    ]
