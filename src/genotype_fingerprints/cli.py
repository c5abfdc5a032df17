"""CLI entrypoint.

Commands:
- `genotype-fingerprints compute <out> <genotypes> [--format vcf] [--lengths 500,1000]`
- `genotype-fingerprints plink <out_dir> <plink_base> [--lengths ...]`
- `genotype-fingerprints serialize <db_base> <L> <fingerprint files | @list ...>`
- `genotype-fingerprints compare <a.outn.gz> <b.outn.gz> [--lengths ...]`
- `genotype-fingerprints search <query> [<target>] [--engine numpy] [--parquet hits.parquet]`
- `genotype-fingerprints info <db_base>`

Every command accepts `--config <file.yaml>` (see configs/default.yaml);
explicit flags win over the configuration file.
"""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import load_config, parse_vector_lengths
from .errors import ConfigurationError, GenotypeFingerprintError
from .logging_ import make_run_id, setup_logging

log = logging.getLogger("genotype_fingerprints.cli")


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="YAML configuration file")
    common.add_argument("--log-dir", help="Write a per-run log file into this directory")
    common.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")

    p = argparse.ArgumentParser(prog="genotype-fingerprints")
    sub = p.add_subparsers(dest="cmd", required=True)

    pc = sub.add_parser("compute", parents=[common], help="Fingerprint one genotype file")
    pc.add_argument("out", help="Output base; writes <out>.out.gz and <out>.outn.gz")
    pc.add_argument("input", help="Genotype file (.gz/.bz2 accepted)")
    pc.add_argument("--format", default="tabular", help="tabular (23andme) | vcf (default: tabular)")
    pc.add_argument("--lengths", help="Comma-separated vector lengths, e.g. 500,1000,5000")
    pc.add_argument("--too-close", type=int, help="Drop SNVs closer than this many bp to a neighbour")
    pc.add_argument("--regions", help="BED file of regions of interest")
    pc.add_argument("--reference", help="Allele-frequency reference table")

    pp = sub.add_parser("plink", parents=[common], help="Fingerprint every individual of a PLINK file set")
    pp.add_argument("out_dir", help="Output directory")
    pp.add_argument("bfile", help="PLINK base name (without .bed)")
    pp.add_argument("--lengths", help="Comma-separated vector lengths")
    pp.add_argument("--chunk-size", type=int, help="rsids per plink invocation")
    pp.add_argument("--plink", help="plink executable")
    pp.add_argument("--reference", help="Allele-frequency reference table")

    ps = sub.add_parser("serialize", parents=[common], help="Add fingerprints to a database")
    ps.add_argument("db", help="Database base name; writes <db>.fp and <db>.id")
    ps.add_argument("length", help="Fingerprint size (L) stored in the database")
    ps.add_argument("files", nargs="+", help="Fingerprint files, or @file listing them")

    pm = sub.add_parser("compare", parents=[common], help="Compare two fingerprints")
    pm.add_argument("query")
    pm.add_argument("target")
    pm.add_argument("--lengths", help="Comma-separated vector lengths to compare (default: all shared)")

    pq = sub.add_parser("search", parents=[common], help="Search fingerprint databases")
    pq.add_argument("query", help="Query database (<base> or <base>.fp) or fingerprint file")
    pq.add_argument("target", nargs="?", help="Target database; omit for all-against-all within query")
    pq.add_argument("--engine", help="auto | fpc | numpy")
    pq.add_argument("--min-score", type=float, help="Score threshold for the numpy engine")
    pq.add_argument("--parquet", help="Also write hits to this Parquet file")

    pi = sub.add_parser("info", parents=[common], help="Summarize and check a database")
    pi.add_argument("db")
    return p


def _lengths(args: argparse.Namespace, cfg: Dict[str, Any]) -> List[int]:
    value = getattr(args, "lengths", None) or cfg["fingerprint"]["vector_lengths"]
    return parse_vector_lengths(value)


def _cmd_compute(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .pipeline import compute
    from .reference import load_reference
    from .sources.base import SourceSpec

    too_close = args.too_close if args.too_close is not None else cfg["fingerprint"]["too_close"]
    spec = SourceSpec(path=args.input, format=args.format, regions=args.regions, too_close=int(too_close or 0))
    reference = load_reference(args.reference or cfg["reference"]["path"])
    compute(args.out, spec, reference, _lengths(args, cfg))
    return 0


def _cmd_plink(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .pipeline import compute
    from .reference import load_reference
    from .sources.base import SourceSpec

    spec = SourceSpec(
        path=args.bfile,
        format="plink",
        plink_executable=args.plink or cfg["plink"]["executable"],
        chunk_size=int(args.chunk_size or cfg["plink"]["chunk_size"]),
    )
    reference = load_reference(args.reference or cfg["reference"]["path"])
    written = compute(args.out_dir, spec, reference, _lengths(args, cfg))
    log.info(f"Wrote {len(written)} fingerprints to {args.out_dir}")
    return 0


def _cmd_serialize(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .database.store import FingerprintDatabase

    try:
        L = int(args.length)
    except ValueError:
        raise ConfigurationError("The second parameter must be a number.")
    db = FingerprintDatabase(args.db, L)
    added = db.append_files(args.files, progress=True)
    print(f"Added {added or 'zero'} fingerprints to {db.data_path}")
    return 0


def _cmd_compare(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .fingerprints.compare import compare
    from .fingerprints.io import read_fingerprint

    lengths = parse_vector_lengths(args.lengths) if args.lengths else None
    query = read_fingerprint(args.query, lengths=lengths)
    target = read_fingerprint(args.target, lengths=lengths)
    sys.stdout.write(compare(query, target, lengths).to_text())
    return 0


def _cmd_search(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .search.engine import make_engine, search
    from .search.report import format_hits, write_hits_parquet

    scfg = cfg["search"]
    min_score = args.min_score if args.min_score is not None else scfg["min_score"]
    engine = make_engine(args.engine or scfg["engine"], scfg["executable"], min_score)
    hits = search(args.query, args.target, engine=engine)
    for line in format_hits(hits):
        print(line)
    if args.parquet:
        write_hits_parquet(args.parquet, hits)
        log.info(f"Wrote {len(hits)} hits to {args.parquet}")
    return 0


def _cmd_info(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    from .database.store import FingerprintDatabase

    db = FingerprintDatabase.open(args.db)
    print(f"database\t{db.base}")
    print(f"created\t{db.created}")
    print(f"version\t{db.version}")
    print(f"L\t{db.vector_length}")
    print(f"records\t{len(db)}")
    problems = db.check_consistency()
    for problem in problems:
        print(f"problem\t{problem}")
    return 1 if problems else 0


_COMMANDS = {
    "compute": _cmd_compute,
    "plink": _cmd_plink,
    "serialize": _cmd_serialize,
    "compare": _cmd_compare,
    "search": _cmd_search,
    "info": _cmd_info,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    log_cfg = cfg["logging"]
    setup_logging(
        run_id=make_run_id(args.cmd),
        log_dir=args.log_dir or log_cfg.get("log_dir"),
        level=args.log_level or log_cfg.get("level", "INFO"),
    )
    try:
        return _COMMANDS[args.cmd](args, cfg)
    except GenotypeFingerprintError as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
