"""Error types shared by the calculators and the compliance engine.

Two families:
- TaxInputError: the caller passed something unusable (negative amounts,
  unknown tokens, inverted date ranges). Raised before any computation.
- PolicyConfigError: the tax-year bundle is missing or incomplete for the
  requested calculation. Never papered over with a default.
"""

from typing import Optional


class TaxInputError(ValueError):
    """Raised when calculator input fails validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnknownFrequencyError(TaxInputError):
    """Raised for a payment frequency token outside the supported set."""

    def __init__(self, frequency: str, field: str = "frequency"):
        super().__init__(f"Unknown payment frequency: {frequency!r}", field=field)
        self.frequency = frequency


class PolicyConfigError(Exception):
    """Raised when policy data needed for a calculation is missing or invalid."""
    pass


class TaxRulesNotFoundError(PolicyConfigError):
    """Raised when no rules bundle exists for a tax year."""
    pass
