"""PLINK bed/bim/fam source.

Genotypes are extracted with the external `plink` program:

    plink --bfile <base> --list --noweb --out <tmp> --from <rsid> --to <rsid>

run chromosome by chromosome over chunks of `chunk_size` consecutive rsids
from the .bim file, strictly one chunk at a time. Each line of the resulting
`<tmp>.list` groups the individuals sharing one genotype:

    chrom rsid genotype fam1 id1 fam2 id2 ...

Individuals are named `fam-id`, or just `id` when both are equal.
"""

from __future__ import annotations
import logging
import os
import shutil
import subprocess
import tempfile
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from ..errors import ConfigurationError, ExternalToolError
from .base import GenotypeCall, GenotypeSource, SourceSpec, read_lines

log = logging.getLogger("genotype_fingerprints.sources.plink")

Runner = Callable[..., subprocess.CompletedProcess]


def read_bim(path: str) -> Tuple[Dict[int, List[str]], Dict[str, int]]:
    """Autosomal rsids per chromosome (file order) and rsid -> position."""
    by_chrom: Dict[int, List[str]] = {}
    positions: Dict[str, int] = {}
    for _, line in read_lines(path):
        fields = line.split()
        if len(fields) < 2 or not fields[0].isdigit():
            continue
        chrom = int(fields[0])
        if not 1 <= chrom <= 22:
            continue
        rsid = fields[1]
        by_chrom.setdefault(chrom, []).append(rsid)
        if len(fields) >= 4 and fields[3].isdigit():
            positions[rsid] = int(fields[3])
    return by_chrom, positions


def individual_name(family: str, individual: str) -> str:
    return individual if family == individual else f"{family}-{individual}"


class PlinkSource(GenotypeSource):

    def __init__(self, spec: SourceSpec, runner: Runner = subprocess.run):
        self.spec = spec
        self.name = spec.path
        self.runner = runner
        self.executable = shutil.which(spec.plink_executable)
        if not self.executable:
            raise ConfigurationError(f"Cannot find plink (looked for {spec.plink_executable!r})")

    def chunks(self, rsids: List[str]) -> Iterator[Tuple[int, str, str]]:
        size = max(1, int(self.spec.chunk_size))
        for start in range(0, len(rsids), size):
            block = rsids[start:start + size]
            yield start, block[0], block[-1]

    def stream(self) -> Iterable[GenotypeCall]:
        by_chrom, positions = read_bim(f"{self.spec.path}.bim")
        with tempfile.TemporaryDirectory(prefix="gf_plink_") as tmp_dir:
            out = os.path.join(tmp_dir, "chunk")
            for chrom in sorted(by_chrom):
                for offset, first, last in self.chunks(by_chrom[chrom]):
                    log.info(f"chr{chrom} chunk@{offset} {first}..{last}")
                    self._run_chunk(out, first, last)
                    yield from self._read_list(f"{out}.list", positions)

    def _run_chunk(self, out: str, first: str, last: str) -> None:
        cmd = [
            self.executable, "--bfile", self.spec.path, "--list", "--noweb",
            "--out", out, "--from", first, "--to", last,
        ]
        proc = self.runner(cmd, capture_output=True, text=True)
        if proc.returncode != 0:
            raise ExternalToolError(
                f"plink failed ({proc.returncode}) for {first}..{last}: {(proc.stderr or '').strip()}"
            )

    def _read_list(self, path: str, positions: Dict[str, int]) -> Iterator[GenotypeCall]:
        if not os.path.exists(path):
            log.warning(f"plink produced no {path}")
            return
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                fields = line.split()
                if len(fields) < 3:
                    continue
                chrom, rsid, gt, ids = fields[0], fields[1], fields[2], fields[3:]
                if not rsid.startswith("rs"):
                    continue
                for i in range(0, len(ids) - 1, 2):
                    yield GenotypeCall(
                        variant_id=rsid,
                        chromosome=chrom,
                        position=positions.get(rsid, 0),
                        genotype=gt,
                        sample=individual_name(ids[i], ids[i + 1]),
                    )
        os.remove(path)
