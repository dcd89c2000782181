"""
Common helpers for the DEX scanner: logging, address handling and formatting.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
    minimal: bool = False,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages
        minimal: If True, use simplified format (time + message only)

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()

        if minimal:
            format_str = "%(asctime)s | %(message)s"
        else:
            format_str = (
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | " "%(message)s"
            )

        if extra:
            extra_fields = " | ".join([f"{k}=%(extra_{k})s" for k in extra.keys()])
            format_str = format_str.replace(
                " | %(message)s", f" | {extra_fields} | %(message)s"
            )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        # Root handlers installed by logging_config.setup() would print twice
        logger.propagate = False

        if extra:
            logger = logging.LoggerAdapter(
                logger, {"extra_" + k: v for k, v in extra.items()}
            )

    return logger


# Address utilities
def safe_address(value: Any) -> Optional[str]:
    """
    Validate an address string and return its checksummed form.

    Accepts any letter case. Returns None for non-strings, wrong length or
    non-hex input instead of raising.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if len(candidate) != 42 or not candidate.startswith(("0x", "0X")):
        return None
    try:
        return Web3.to_checksum_address("0x" + candidate[2:].lower())
    except ValueError:
        return None


def is_zero_address(address: Optional[str]) -> bool:
    """True for None or the all-zero address."""
    return address is None or address.lower() == ZERO_ADDRESS


def canonical_pair(token_a: str, token_b: str) -> Tuple[str, str]:
    """Order two addresses so the lower-cased smaller one comes first."""
    if token_a.lower() <= token_b.lower():
        return token_a, token_b
    return token_b, token_a


# Formatting utilities
def format_profit(decimal_profit):
    """Format a decimal profit value as a percentage string.

    Converts a decimal profit value (e.g., 0.0123) to a formatted
    percentage string with a sign prefix (e.g., "+1.23%").

    Examples:
        >>> format_profit(0.0123)
        '+1.23%'
        >>> format_profit(-0.0456)
        '-4.56%'
    """
    percentage = decimal_profit * 100

    if percentage >= 0:
        return f"+{percentage:.2f}%"
    else:
        return f"{percentage:.2f}%"


def bps_to_fraction(bps: Union[int, str, Decimal]) -> Decimal:
    """Convert basis points to a fee fraction (30 bps -> 0.003)."""
    return Decimal(str(bps)) / Decimal("10000")
