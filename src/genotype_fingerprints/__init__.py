"""genotype_fingerprints

Compact genotype fingerprints for fast genome-identity and relatedness screening.

Public API surface:
- genotype_fingerprints.cli.main : CLI entrypoint
- genotype_fingerprints.pipeline : compute fingerprints from genotype files
- genotype_fingerprints.fingerprints : accumulate, normalize, encode, compare
- genotype_fingerprints.database : serialized fingerprint collections (.fp + .id)
- genotype_fingerprints.search : database-wide similarity search
"""
__all__ = ["__version__"]
__version__ = "1.0.0"
