"""
Custom exceptions for the dispatch insight engine.

Insufficient data is never an error: detectors return None instead.
These exceptions cover malformed input and invalid settings only.
"""


class InsightError(Exception):
    """Base exception for insight generation failures."""
    pass


class DataValidationError(InsightError):
    """Raised when a raw dispatch record fails validation during processing."""
    pass


class ConfigurationError(InsightError):
    """Raised when a detector is called with invalid settings (e.g. unknown grouping)."""
    pass
