"""Source registry.

Adding a new input format:
1) implement a GenotypeSource subclass in `genotype_fingerprints.sources.*`
2) register it here under a new format key (static) OR use register_source() (dynamic)
3) select it with `--format <key>` on the command line
"""

from __future__ import annotations
from typing import Callable, Dict

from ..errors import ConfigurationError
from .base import GenotypeSource, SourceSpec
from .plink import PlinkSource
from .tabular import TabularSource
from .vcf import VCFSource

# Static registry (built-in formats)
_STATIC_REGISTRY: Dict[str, Callable[[SourceSpec], GenotypeSource]] = {
    "tabular": TabularSource,
    "23andme": TabularSource,
    "vcf": VCFSource,
    "plink": PlinkSource,
}

# Dynamic registry (plugins/extensions)
_DYNAMIC_REGISTRY: Dict[str, Callable[[SourceSpec], GenotypeSource]] = {}


def register_source(fmt: str, factory: Callable[[SourceSpec], GenotypeSource]) -> None:
    """Register a new input format dynamically.

    Example:
        from genotype_fingerprints.sources.registry import register_source

        register_source("my_format", lambda spec: MyFormatSource(spec))
    """
    if fmt in _STATIC_REGISTRY:
        raise ValueError(f"Source format '{fmt}' is already registered statically. Use a different name.")
    _DYNAMIC_REGISTRY[fmt] = factory


def unregister_source(fmt: str) -> None:
    """Unregister a dynamically registered format."""
    _DYNAMIC_REGISTRY.pop(fmt, None)


def list_sources() -> Dict[str, str]:
    """List all registered formats (static + dynamic)."""
    all_sources = {fmt: "static" for fmt in _STATIC_REGISTRY}
    all_sources.update({fmt: "dynamic" for fmt in _DYNAMIC_REGISTRY})
    return all_sources


def make_source(spec: SourceSpec) -> GenotypeSource:
    """Create a source instance from spec. Checks static registry first, then dynamic."""
    fmt = spec.format.lower()
    if fmt in _STATIC_REGISTRY:
        return _STATIC_REGISTRY[fmt](spec)
    if fmt in _DYNAMIC_REGISTRY:
        return _DYNAMIC_REGISTRY[fmt](spec)
    available = list(_STATIC_REGISTRY.keys()) + list(_DYNAMIC_REGISTRY.keys())
    raise ConfigurationError(
        f"Unknown source format: {spec.format}. "
        f"Available: {available}. "
        f"Register dynamically with register_source() or add to registry.py"
    )
