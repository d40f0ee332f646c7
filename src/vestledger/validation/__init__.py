"""Validation and sanity checks for distributions."""

from .sanity_checks import SanityChecker, ValidationWarning, pledge_breakdown, validate_simulation_results

__all__ = [
    "SanityChecker",
    "ValidationWarning",
    "pledge_breakdown",
    "validate_simulation_results"
]
