import numpy as np

from genotype_fingerprints.fingerprints.encoding import fold, rank_encode, ranks
from genotype_fingerprints.fingerprints.schema import Fingerprint


def test_fold_concatenates_allele_rows_in_order():
    m = np.arange(8, dtype=float).reshape(4, 2)
    fp = Fingerprint(vectors={2: m})
    assert fold(fp, 2).tolist() == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]


def test_ranks_are_a_permutation():
    r = ranks([0.5, -1.0, 3.2, 0.0])
    assert r.dtype == np.int32
    assert r.tolist() == [2, 0, 3, 1]


def test_ties_keep_input_order():
    assert ranks([1.0, 0.0, 1.0, 0.0, 1.0]).tolist() == [2, 0, 3, 1, 4]


def test_rank_encode_of_fingerprint():
    m = np.array([[0.3, -0.1], [0.0, 0.0], [2.0, -5.0], [0.1, 0.2]])
    ranked = rank_encode(Fingerprint(vectors={2: m}), 2)
    assert sorted(ranked.tolist()) == list(range(8))
    assert ranked[5] == 0          # G, bin 1 is the smallest
    assert ranked[4] == 7          # G, bin 0 is the largest
    assert ranked[2] < ranked[3]   # equal C values rank in input order
