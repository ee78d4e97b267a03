"""
Error types surfaced by the analytics engine.

Statistical edge cases (zero variance, zero denominators, short history) are
never raised; engines resolve them locally to neutral values. Only structural
input problems, bad configuration and lookups of unknown locations reach the
caller.
"""


class SentinelError(Exception):
    """Base class for all engine errors."""


class StructuralInputError(SentinelError, ValueError):
    """A record is missing a required field or cannot be parsed."""

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class ConfigurationError(SentinelError, ValueError):
    """Alert rule configuration was rejected; previous values are kept."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or []


class LocationNotFoundError(SentinelError, KeyError):
    """Requested location code is not present in the current snapshot."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return f"Unknown location code: {self.code}"
