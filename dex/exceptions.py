"""
Exception hierarchy for the DEX reserve scanner.

Per-item decode failures never raise; they turn into ``None`` slots. The
classes here cover the failures that abort a unit of work or indicate a bug.
"""

from typing import Any, Dict, Optional


class DexArbitrageError(Exception):
    """Base exception for all scanner related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(DexArbitrageError):
    """Raised when a chain or venue is missing required configuration."""

    def __init__(
        self,
        message: str,
        chain_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.chain_id = chain_id


class InfrastructureError(DexArbitrageError):
    """
    Raised when the RPC endpoint cannot serve a whole batch or the reference block.

    Always retryable by the caller on its next cycle. Results of a failed
    batch are never written to any cache.
    """

    def __init__(
        self,
        message: str,
        chain_id: Optional[int] = None,
        venue: Optional[str] = None,
        retryable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.chain_id = chain_id
        self.venue = venue
        self.retryable = retryable


class InvariantViolation(DexArbitrageError):
    """Raised when aligned pipeline outputs disagree with their inputs."""

    def __init__(
        self,
        message: str,
        expected: Optional[Any] = None,
        actual: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.actual = actual
