"""Error classes for the BazaarNexus SDK.

Only construction-time problems are raised. Request-time failures are
returned as ResponseEnvelope values, never raised.
"""
from __future__ import annotations


class BazaarNexusError(Exception):
    """Base error for BazaarNexus SDK operations."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class InvalidKey(BazaarNexusError):
    """Raised when private key material cannot be turned into an Ed25519 secret key."""

    def __init__(self, message: str):
        super().__init__("INVALID_KEY", message)


class ConfigurationError(BazaarNexusError):
    """Raised for missing credentials or a missing endpoint."""

    def __init__(self, message: str):
        super().__init__("CONFIGURATION_ERROR", message)
