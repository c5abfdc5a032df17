"""Exception taxonomy.

Fatal problems raise one of these and abort the current operation.
Per-record problems (bad genotype lines, malformed fingerprint rows) are
logged as warnings by the module that finds them and never raise.
"""

from __future__ import annotations


class GenotypeFingerprintError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(GenotypeFingerprintError):
    """Bad configuration or environment, e.g. a required external tool is missing."""


class ReferenceTableError(ConfigurationError):
    """The population allele-frequency table could not be loaded."""


class IncompatibleDatabaseError(ConfigurationError):
    """A fingerprint or request does not match the vector length of a database."""


class FingerprintFormatError(GenotypeFingerprintError):
    """A fingerprint file could not be read."""


class ExternalToolError(GenotypeFingerprintError):
    """An external program (plink, fpc) exited with an error."""


class GenotypeSourceError(GenotypeFingerprintError):
    """A genotype, PLINK or region file could not be read."""


class DatabaseFormatError(GenotypeFingerprintError):
    """An existing database index or data file is corrupt."""
