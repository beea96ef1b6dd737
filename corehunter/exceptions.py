"""
Error types raised by the Core Hunter data and objective layers.
"""


class CoreHunterError(Exception):
    """Base class for all Core Hunter errors."""


class ConfigurationError(CoreHunterError, ValueError):
    """Invalid or missing construction arguments."""


class InvalidConfigurationError(ConfigurationError):
    """Unsupported combination of configured options (e.g. scale and data type)."""


class InvalidDataError(CoreHunterError, ValueError):
    """In-memory data that violates the invariants of a data source."""


class DimensionMismatchError(InvalidDataError):
    """Row, column or name counts disagree."""


class InconsistentDataError(CoreHunterError, ValueError):
    """Data sources that cannot be merged (different sizes, conflicting headers)."""


class InvalidSelectionError(CoreHunterError, KeyError):
    """Selected IDs that are not part of the dataset."""

    def __str__(self):
        # KeyError quotes its argument otherwise
        return str(self.args[0]) if self.args else ""


class DomainError(CoreHunterError, ArithmeticError):
    """Numeric degeneracy, such as an empty selection or a zero denominator."""
