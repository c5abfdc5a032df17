"""Configuration loader.

Configuration lives in YAML files with a handful of sections, see
`configs/default.yaml`. User files only need to name the keys they change;
they are deep-merged over DEFAULTS. Command-line flags override both.
"""

from __future__ import annotations
import copy
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigurationError

DEFAULTS: Dict[str, Any] = {
    "reference": {
        "path": "genotype-fingerprints/data/1000g.freq.gz",
    },
    "fingerprint": {
        "vector_lengths": [500, 1000, 5000],
        "too_close": 0,
    },
    "plink": {
        "executable": "plink",
        "chunk_size": 1000,
    },
    "search": {
        "engine": "auto",  # auto | fpc | numpy
        "executable": "fpc",
        "min_score": 0.1,
    },
    "logging": {
        "level": "INFO",
        "log_dir": None,
    },
}


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Return DEFAULTS, deep-merged with the YAML file at `path` if given."""
    cfg = copy.deepcopy(DEFAULTS)
    if not path:
        return cfg
    try:
        user = load_yaml(path)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(user, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return _merge(cfg, user)


def parse_vector_lengths(value: Any) -> List[int]:
    """Accept `"500,1000"`, `[500, 1000]` or a single int; return positive ints."""
    if isinstance(value, int):
        items = [value]
    elif isinstance(value, str):
        items = [v for v in value.split(",") if v.strip()]
    else:
        items = list(value or [])
    try:
        lengths = [int(v) for v in items]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Vector lengths must be integers: {value!r}") from e
    if not lengths or any(L <= 0 for L in lengths):
        raise ConfigurationError(f"Vector lengths must be positive integers: {value!r}")
    return lengths
