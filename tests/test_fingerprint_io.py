import gzip
import os

import numpy as np
import pytest

from genotype_fingerprints.errors import FingerprintFormatError
from genotype_fingerprints.fingerprints.io import (
    read_fingerprint,
    write_fingerprint,
    write_fingerprint_pair,
)
from genotype_fingerprints.fingerprints.normalize import normalize
from genotype_fingerprints.fingerprints.schema import Fingerprint


def _raw(lengths=(3, 5)):
    rng = np.random.default_rng(0)
    return Fingerprint(
        vectors={L: rng.normal(size=(4, L)) for L in lengths},
        allele_count=1234,
        source="genotypes/sample.txt.gz",
    )


def test_pair_is_written_with_headers(tmp_path):
    raw = _raw()
    raw_path, norm_path = write_fingerprint_pair(os.path.join(tmp_path, "out", "s1"), raw, normalize(raw))
    assert raw_path.endswith("s1.out.gz")
    assert norm_path.endswith("s1.outn.gz")

    with gzip.open(norm_path, "rt") as f:
        lines = f.read().splitlines()
    assert lines[0].startswith("#software-version\t")
    assert lines[1] == "#source\tgenotypes/sample.txt.gz"
    assert lines[2] == "#alleleCount\t1234"
    assert lines[3] == "#vectorLengths\t3\t5"
    assert lines[4].startswith("#created\t")
    assert lines[5].split("\t")[:2] == ["3", "A"]
    assert len(lines) == 5 + 8
    # normalized values carry four decimals
    assert all(len(v.split(".")[1]) == 4 for v in lines[5].split("\t")[2:])


def test_raw_file_reads_back_exactly(tmp_path):
    raw = _raw()
    path = os.path.join(tmp_path, "s1.out.gz")
    write_fingerprint(path, raw)
    back = read_fingerprint(path)
    assert not back.normalized
    assert back.allele_count == 1234
    assert back.vector_lengths == [3, 5]
    for L in (3, 5):
        np.testing.assert_allclose(back.vectors[L], raw.vectors[L], rtol=1e-14)


def test_normalized_file_is_flagged(tmp_path):
    norm = normalize(_raw())
    path = os.path.join(tmp_path, "s1.outn.gz")
    write_fingerprint(path, norm)
    back = read_fingerprint(path, lengths=[5])
    assert back.normalized
    assert back.vector_lengths == [5]
    np.testing.assert_allclose(back.vectors[5], norm.vectors[5], atol=5e-5)


def test_old_style_rows_without_length_column(tmp_path):
    path = os.path.join(tmp_path, "old.outn")
    with open(path, "w") as f:
        f.write("#alleleCount\t2.0e3\n")
        for allele in "ACGT":
            f.write("\t".join([allele, "0.1", "0.2", "0.3"]) + "\n")
    fp = read_fingerprint(path)
    assert fp.allele_count == 2000
    assert fp.vector_lengths == [3]
    assert fp.vectors[3].shape == (4, 3)


def test_incomplete_length_is_reported_as_malformed(tmp_path):
    path = os.path.join(tmp_path, "bad.outn")
    with open(path, "w") as f:
        for allele in "ACGT":
            f.write("\t".join(["2", allele, "1.0", "2.0"]) + "\n")
        for allele in "ACG":
            f.write("\t".join(["4", allele, "1", "2", "3", "4"]) + "\n")
        f.write("\t".join(["4", "T", "1", "2", "3"]) + "\n")
    fp = read_fingerprint(path)
    assert fp.vector_lengths == [2]
    assert fp.malformed_lengths == {4}


def test_missing_allele_count_header(tmp_path):
    path = os.path.join(tmp_path, "plain.outn")
    with open(path, "w") as f:
        for allele in "ACGT":
            f.write("\t".join(["1", allele, "0.5"]) + "\n")
    assert read_fingerprint(path).allele_count is None


def test_unreadable_file(tmp_path):
    with pytest.raises(FingerprintFormatError):
        read_fingerprint(os.path.join(tmp_path, "missing.outn.gz"))
