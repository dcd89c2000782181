"""Tests for the exceptions module."""

from dex.config import ConfigError
from dex.exceptions import (
    ConfigurationError,
    DexArbitrageError,
    InfrastructureError,
    InvariantViolation,
)


def test_base_exception():
    """Test the base exception class."""
    error = DexArbitrageError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = DexArbitrageError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    """Test configuration error carries the chain it is scoped to."""
    error = ConfigurationError("No RPC URL", chain_id=137)
    assert str(error) == "No RPC URL"
    assert error.chain_id == 137
    assert isinstance(error, DexArbitrageError)


def test_infrastructure_error_defaults_retryable():
    """Test infrastructure errors are retryable unless told otherwise."""
    error = InfrastructureError("timeout", chain_id=1, venue="UniswapV2")
    assert error.retryable is True
    assert error.venue == "UniswapV2"

    fatal = InfrastructureError("bad response", retryable=False)
    assert fatal.retryable is False


def test_invariant_violation():
    """Test invariant violation records expected and actual values."""
    error = InvariantViolation("misaligned", expected=3, actual=2)
    assert error.expected == 3
    assert error.actual == 2
    assert isinstance(error, DexArbitrageError)


def test_config_error_hierarchy():
    """Test config file errors are configuration errors."""
    error = ConfigError("Missing required config field: venues")
    assert isinstance(error, ConfigurationError)
    assert isinstance(error, DexArbitrageError)
