"""Genotype sources. Use `registry.make_source(spec)` to build one from a SourceSpec."""
