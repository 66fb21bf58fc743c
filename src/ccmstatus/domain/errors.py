"""
Error taxonomy.

Only input validation is fatal. Everything raised below the application
layer is caught at the smallest unit (host, query, item) and logged.
"""


class CcmStatusError(Exception):
    """Base class for all ccmstatus errors."""


class HostListError(CcmStatusError, ValueError):
    """The host list handed to a pipeline stage is missing or empty."""


class SessionOpenError(CcmStatusError):
    """A remote management session could not be established."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"Could not open session to {target}: {reason}")
        self.target = target
        self.reason = reason


class ConfigError(CcmStatusError):
    """Configuration file is unreadable or fails validation."""
