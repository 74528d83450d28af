"""Command-line interface for presieve."""

from __future__ import annotations

import argparse
import json
import logging
import sys


def setup_logger(verbose: bool = False) -> logging.Logger:
    """Set up the package logger to write to the console."""
    logger = logging.getLogger("presieve")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_format = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    return logger


def _build_config(args: argparse.Namespace):
    from presieve.core.segmented import SieveConfig

    if args.config:
        try:
            config = SieveConfig.from_json(args.config)
        except OSError as e:
            raise ValueError(f"cannot read config {args.config}: {e}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON in config {args.config}: {e}") from e
    else:
        config = SieveConfig()
    if args.limit is not None:
        config.limit = args.limit
    if args.segment_size is not None:
        config.segment_size = args.segment_size
    if args.workers is not None:
        config.workers = args.workers
    return config


def cmd_info(args: argparse.Namespace) -> int:
    """Show the effective pre-sieve parameters for a limit."""
    from presieve.core.presieve import PreSieve

    presieve = PreSieve(args.limit)
    print(f"Requested limit: {args.limit}")
    print(f"Effective limit: {presieve.limit}")
    print(f"Prime product:   {presieve.prime_product}")
    print(f"Wheel bytes:     {presieve.size}")
    return 0


def cmd_table(args: argparse.Namespace) -> int:
    """Print the wheel memory cost for each limit."""
    from presieve.core.presieve import MEMORY_TABLE, prime_product

    print(f"{'limit':>5}  {'product':>10}  {'bytes':>9}  {'KiB':>9}")
    for limit, size in MEMORY_TABLE.items():
        print(f"{limit:>5}  {prime_product(limit):>10}  {size:>9}  {size / 1024:>9.2f}")
    return 0


def cmd_count(args: argparse.Namespace) -> int:
    """Count primes in [start, stop]."""
    from presieve.core.segmented import SegmentedSieve

    sieve = SegmentedSieve(_build_config(args))
    print(sieve.count(args.start, args.stop))
    return 0


def cmd_primes(args: argparse.Namespace) -> int:
    """Print primes in [start, stop], one per line."""
    from presieve.core.segmented import SegmentedSieve

    sieve = SegmentedSieve(_build_config(args))
    for p in sieve.primes(args.start, args.stop):
        print(int(p))
    return 0


def _add_sieve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("start", type=int, help="Lower bound (inclusive)")
    parser.add_argument("stop", type=int, help="Upper bound (inclusive)")
    parser.add_argument("--limit", type=int, default=None, help="Pre-sieve limit (max 23)")
    parser.add_argument("--segment-size", type=int, default=None, help="Segment size in bytes")
    parser.add_argument("--workers", type=int, default=None, help="Sieving threads")
    parser.add_argument("--config", default=None, help="JSON configuration file")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="presieve",
        description="Mod 30 wheel pre-sieving for segmented prime sieves",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    info_parser = subparsers.add_parser("info", help="Show pre-sieve parameters")
    info_parser.add_argument("--limit", type=int, default=19, help="Requested pre-sieve limit")

    subparsers.add_parser("table", help="Print wheel memory usage per limit")

    count_parser = subparsers.add_parser("count", help="Count primes in a range")
    _add_sieve_arguments(count_parser)

    primes_parser = subparsers.add_parser("primes", help="Print primes in a range")
    _add_sieve_arguments(primes_parser)

    args = parser.parse_args(argv)
    logger = setup_logger(args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "info": cmd_info,
        "table": cmd_table,
        "count": cmd_count,
        "primes": cmd_primes,
    }

    try:
        return commands[args.command](args)
    except ValueError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
