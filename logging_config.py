"""
Logging configuration for cleaner output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Suppresses verbose HTTP request logs from web3/urllib3
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    # Scanner modules log through their own handlers (dex.utils.get_logger)
    for name in (
        "dex.assembler",
        "dex.engine",
        "dex.multicall",
        "dex.pipeline",
        "dex.reserves",
        "dex.resolver",
        "dex.runner",
        "dex.sinks",
        "dex.tokens",
    ):
        logging.getLogger(name).setLevel(level)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows per-comparison engine output and round-trip counts.
    """
    setup(level=logging.DEBUG)
