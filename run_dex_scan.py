#!/usr/bin/env python3
"""
Cross-DEX reserve scanner CLI.

Fetches V2 pool reserves for every configured venue through Multicall2
batches and logs two-venue arbitrage opportunities.

Usage:
    python3 run_dex_scan.py
    python3 run_dex_scan.py --config configs/dex_scan.yaml
    python3 run_dex_scan.py --config configs/dex_scan.yaml --once
"""

import argparse
import sys

from dotenv import load_dotenv

import logging_config
from dex.config import ConfigError, load_config
from dex.runner import DexScanRunner


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Cross-DEX reserve arbitrage scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config
  python3 run_dex_scan.py

  # Single cycle (for testing/CI)
  python3 run_dex_scan.py --config configs/dex_scan.yaml --once
        """,
    )

    parser.add_argument(
        "--config",
        default="configs/dex_scan.yaml",
        help="Path to config YAML file (default: configs/dex_scan.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit (overrides config setting)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging, including every venue comparison",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    load_dotenv()

    if args.debug:
        logging_config.setup_debug()
    else:
        logging_config.setup()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    if args.once:
        config.once = True

    try:
        runner = DexScanRunner(config)
    except Exception as e:
        print(f"❌ Initialization failed: {e}", file=sys.stderr)
        return 1

    try:
        runner.run()
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
