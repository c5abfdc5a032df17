import logging
import os

import pytest

from genotype_fingerprints.cli import main
from genotype_fingerprints.logging_ import setup_logging

from conftest import write_genotypes


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def computed(tmp_path, reference_path, genotype_rows):
    """Two fingerprints of the same genotypes plus one of a different individual."""
    other_rows = [("rs1", "1", 100, "CC"), ("rs2", "2", 200, "TT"), ("rs4", "4", 400, "CT"),
                  ("rs5", "5", 500, "GG"), ("rs10", "10", 1000, "TT")]
    inputs = {
        "alice": genotype_rows,
        "alice2": genotype_rows,
        "bob": other_rows,
    }
    outs = []
    for name, rows in inputs.items():
        geno = write_genotypes(os.path.join(tmp_path, "raw", f"{name}.txt"), rows)
        out = os.path.join(tmp_path, "fps", name)
        assert main(["compute", out, geno, "--reference", reference_path, "--lengths", "3,5"]) == 0
        outs.append(f"{out}.outn.gz")
    return outs


def test_compute_writes_both_files(computed):
    for path in computed:
        assert os.path.exists(path)
        assert os.path.exists(path.replace(".outn.gz", ".out.gz"))


def test_compare(computed, capsys):
    capsys.readouterr()
    assert main(["compare", computed[0], computed[1]]) == 0
    header, row = capsys.readouterr().out.splitlines()
    assert header == "q_SNPs\tt_SNPs\tL=3\tL=5"
    assert row == "6\t6\t1.0000\t1.0000"


def test_serialize_info_and_search(computed, tmp_path, capsys):
    db = os.path.join(tmp_path, "db", "cohort")
    assert main(["serialize", db, "5"] + computed) == 0
    assert capsys.readouterr().out.strip() == f"Added 3 fingerprints to {db}.fp"

    assert main(["serialize", db, "5"] + computed) == 0
    assert capsys.readouterr().out.strip() == f"Added zero fingerprints to {db}.fp"

    assert main(["info", f"{db}.fp"]) == 0
    info = dict(line.split("\t", 1) for line in capsys.readouterr().out.splitlines())
    assert info["L"] == "5"
    assert info["records"] == "3"
    assert "problem" not in info

    parquet = os.path.join(tmp_path, "hits.parquet")
    assert main(["search", db, "--engine", "numpy", "--min-score", "0.99", "--parquet", parquet]) == 0
    assert capsys.readouterr().out.splitlines() == ["alice\talice2\t1.0000"]
    assert os.path.exists(parquet)


def test_serialize_rejects_other_length(computed, tmp_path):
    db = os.path.join(tmp_path, "cohort")
    assert main(["serialize", db, "5"] + computed[:1]) == 0
    assert main(["serialize", db, "3"] + computed[1:]) == 1
    assert main(["serialize", db, "five"] + computed[1:]) == 1


def test_missing_reference_fails(tmp_path, genotype_rows):
    geno = write_genotypes(os.path.join(tmp_path, "g.txt"), genotype_rows)
    args = ["compute", os.path.join(tmp_path, "g"), geno, "--reference", os.path.join(tmp_path, "none.gz")]
    assert main(args) == 1


def test_config_file_and_log_dir(tmp_path, reference_path, genotype_rows):
    cfg = os.path.join(tmp_path, "run.yaml")
    with open(cfg, "w") as f:
        f.write(f"reference:\n  path: {reference_path}\nfingerprint:\n  vector_lengths: [4]\n")
    geno = write_genotypes(os.path.join(tmp_path, "g.txt"), genotype_rows)
    logs = os.path.join(tmp_path, "logs")
    out = os.path.join(tmp_path, "g")
    assert main(["compute", out, geno, "--config", cfg, "--log-dir", logs]) == 0
    assert os.path.exists(f"{out}.outn.gz")
    assert len([n for n in os.listdir(logs) if n.startswith("compute_")]) == 1


def test_missing_genotype_file_fails(tmp_path, reference_path):
    args = ["compute", os.path.join(tmp_path, "g"), os.path.join(tmp_path, "nope.txt"), "--reference", reference_path]
    assert main(args) == 1


def test_bad_region_file_fails(tmp_path, reference_path, genotype_rows):
    geno = write_genotypes(os.path.join(tmp_path, "g.txt"), genotype_rows)
    out = os.path.join(tmp_path, "g")
    missing = os.path.join(tmp_path, "missing.bed")
    assert main(["compute", out, geno, "--reference", reference_path, "--regions", missing]) == 1
    bed = os.path.join(tmp_path, "broken.bed")
    with open(bed, "w") as f:
        f.write("chr1\tstart\tend\n")
    assert main(["compute", out, geno, "--reference", reference_path, "--regions", bed]) == 1


def test_corrupt_index_fails(computed, tmp_path):
    db = os.path.join(tmp_path, "cohort")
    assert main(["serialize", db, "5"] + computed) == 0
    with open(f"{db}.id") as f:
        lines = f.read().splitlines()
    lines[3] = "x" + lines[3]
    with open(f"{db}.id", "w") as f:
        f.write("\n".join(lines) + "\n")
    assert main(["info", db]) == 1
    assert main(["serialize", db, "5"] + computed) == 1


def test_repeated_runs_do_not_stack_handlers(tmp_path):
    root = logging.getLogger()
    before = len(root.handlers)
    setup_logging("a", log_dir=os.path.join(tmp_path, "logs"))
    setup_logging("b", log_dir=os.path.join(tmp_path, "logs"))
    setup_logging("c")
    assert len(root.handlers) == before + 1
