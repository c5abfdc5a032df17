"""Tests for the fingerprint accumulator."""

import numpy as np
import pytest

from genotype_fingerprints.fingerprints.accumulator import (
    FingerprintAccumulator,
    clean_genotype,
    is_autosome,
    numeric_variant_id,
)
from genotype_fingerprints.fingerprints.metrics import (
    SKIP_CHROMOSOME,
    SKIP_GENOTYPE,
    SKIP_UNKNOWN_VARIANT,
    SKIP_VARIANT_ID,
)
from genotype_fingerprints.reference import ReferenceTable
from genotype_fingerprints.sources.base import GenotypeCall


def call(rsid, chrom, gt, pos=100):
    return GenotypeCall(variant_id=rsid, chromosome=chrom, position=pos, genotype=gt)


class TestValidationHelpers:

    @pytest.mark.parametrize("chrom,ok", [
        ("1", True), ("chr22", True), ("22", True), ("23", False),
        ("0", False), ("X", False), ("chrX", False), ("MT", False), ("1_random", False),
    ])
    def test_is_autosome(self, chrom, ok):
        assert is_autosome(chrom) is ok

    @pytest.mark.parametrize("gt,expected", [
        ("AC", "AC"), ("a/g", "AG"), ("T|T", "TT"), ("--", None), ("A", None),
        ("ACG", None), ("AN", None), ("", None),
    ])
    def test_clean_genotype(self, gt, expected):
        assert clean_genotype(gt) == expected

    def test_numeric_variant_id(self):
        assert numeric_variant_id("rs4477212") == 4477212
        assert numeric_variant_id("i713426") is None


class TestAccumulation:

    def test_single_locus_example(self):
        ref = ReferenceTable.from_mapping({"rs1": {"A": 0.3, "C": 0.7}})
        acc = FingerprintAccumulator([2], ref)
        for _ in range(3):
            assert acc.add(call("rs1", "chr1", "AC"))
        fp = acc.result()

        m = fp.vectors[2]
        assert m.shape == (4, 2)
        assert m[0, 1] == pytest.approx(2.1)   # A
        assert m[1, 1] == pytest.approx(0.9)   # C
        assert m[2, 1] == 0.0                  # G
        assert m[3, 1] == 0.0                  # T
        assert np.all(m[:, 0] == 0.0)
        assert fp.allele_count == 6
        assert not fp.normalized

    def test_homozygous_call_counts_two_copies(self):
        ref = ReferenceTable.from_mapping({"rs3": {"A": 0.1, "G": 0.9}})
        acc = FingerprintAccumulator([5], ref)
        acc.add(call("rs3", "3", "GG"))
        m = acc.result().vectors[5]
        assert m[2, 3] == pytest.approx(2 - 0.9)
        assert m[0, 3] == pytest.approx(-0.1)

    def test_all_reference_alleles_are_subtracted(self):
        ref = ReferenceTable.from_mapping({"rs5": {"A": 0.6, "C": 0.2, "G": 0.2}})
        acc = FingerprintAccumulator([1], ref)
        acc.add(call("rs5", "5", "AA"))
        m = acc.result().vectors[1]
        assert m[:, 0] == pytest.approx([2 - 0.6, -0.2, -0.2, 0.0])
        assert m.sum() == pytest.approx(2 - 1.0)

    def test_every_vector_length_is_filled(self, reference):
        acc = FingerprintAccumulator([3, 7], reference)
        acc.add(call("rs10", "10", "AT"))
        fp = acc.result()
        assert sorted(fp.vectors) == [3, 7]
        assert fp.vectors[3][0, 10 % 3] == pytest.approx(0.5)
        assert fp.vectors[7][3, 10 % 7] == pytest.approx(0.5)

    def test_invalid_calls_are_skipped_and_counted(self):
        ref = ReferenceTable.from_mapping({"rs1": {"A": 0.3, "C": 0.7}, "i9": {"A": 1.0}})
        acc = FingerprintAccumulator([4], ref)
        assert not acc.add(call("rs1", "X", "AC"))
        assert not acc.add(call("rs1", "1", "--"))
        assert not acc.add(call("rs2", "1", "AC"))
        assert not acc.add(call("i9", "1", "AA"))
        fp = acc.result()
        assert fp.allele_count == 0
        assert np.all(fp.vectors[4] == 0.0)
        assert acc.metrics.skipped == {
            SKIP_CHROMOSOME: 1,
            SKIP_GENOTYPE: 1,
            SKIP_UNKNOWN_VARIANT: 1,
            SKIP_VARIANT_ID: 1,
        }
        assert acc.metrics.accepted_calls == 0

    def test_batching_does_not_change_the_result(self, reference, genotype_rows):
        calls = [call(r, c, g, p) for r, c, p, g in genotype_rows] * 5
        one_by_one = FingerprintAccumulator([3, 4], reference, batch_size=1)
        batched = FingerprintAccumulator([3, 4], reference, batch_size=10_000)
        assert one_by_one.extend(calls) == batched.extend(calls) == 30
        a, b = one_by_one.result(), batched.result()
        for L in (3, 4):
            np.testing.assert_allclose(a.vectors[L], b.vectors[L], atol=1e-12)
        assert a.allele_count == b.allele_count == 60

    def test_result_can_be_taken_midway(self, reference):
        acc = FingerprintAccumulator([2], reference)
        acc.add(call("rs1", "1", "AC"))
        first = acc.result()
        acc.add(call("rs1", "1", "AC"))
        second = acc.result()
        assert first.allele_count == 2
        assert second.vectors[2][0, 1] == pytest.approx(2 * first.vectors[2][0, 1])

    def test_rejects_non_positive_lengths(self, reference):
        with pytest.raises(ValueError):
            FingerprintAccumulator([0], reference)


def test_metrics_summary(reference):
    acc = FingerprintAccumulator([4], reference)
    acc.extend([call("rs1", "1", "AC"), call("rs2", "X", "GT"), call("rs3", "3", "--"), call("rs4", "Y", "CT")])
    lines = acc.metrics.summary().splitlines()
    assert lines[:3] == ["Calls seen: 4", "Calls used: 1 (25.00%)", "Calls skipped: 3"]
    assert lines[3] == f"  skipped {SKIP_CHROMOSOME}: 2"
    assert lines[4] == f"  skipped {SKIP_GENOTYPE}: 1"
