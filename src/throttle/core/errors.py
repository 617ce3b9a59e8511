from __future__ import annotations


class ThrottleError(Exception):
    """Base error for the throttle library."""


class ConfigurationError(ThrottleError):
    """Raised when throttle() is given invalid options."""
