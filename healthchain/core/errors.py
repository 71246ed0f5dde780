"""
Exception hierarchy for the ledger core.

Domain outcomes (rejected claims, unknown organizations, broken chains)
are returned as data. These exceptions are for misuse and misconfiguration.
"""


class HealthChainError(Exception):
    """Base exception for ledger errors."""
    pass


class ConfigurationError(HealthChainError):
    """Raised when configuration values are out of range."""
    pass


class ValidationError(HealthChainError):
    """Raised when a request conflicts with registered state."""
    pass


class SealingCancelledError(HealthChainError):
    """Raised when a proof-of-work search is cancelled before completion."""
    pass


class TokenError(HealthChainError):
    """Raised on invalid token ledger operations."""
    pass
