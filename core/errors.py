"""
    Exceptions raised by the readiness checker.

    Only ConfigError is allowed to end a run; everything else is recovered
    at the check runner boundary and turned into a FAIL result.
"""


class ReadinessError(Exception):
    """Base class for readiness checker errors."""


class ConfigError(ReadinessError):
    """Missing or invalid configuration file, profile, or value."""


class ProbeLoadError(ReadinessError):
    """A check's probe could not be imported or resolved."""

    def __init__(self, reference: str, reason: str):
        super().__init__(f"module not found: {reference} ({reason})")
        self.reference = reference
        self.reason = reason
