"""
Command line entry point.

Usage:
    coffeewatch [ROOT ...]                 watch roots (default: current directory)
    coffeewatch ROOT --once a.coffee ...   compile the given files once and exit
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from coffeewatch import __version__
from coffeewatch.compiler import CoffeeCompiler
from coffeewatch.lifecycle import compile_files, watch
from coffeewatch.logging_config import setup_logging
from coffeewatch.notifications import LoggingNotifier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coffeewatch",
        description="Compile CoffeeScript files to JavaScript whenever they are saved",
    )
    parser.add_argument(
        "roots",
        nargs="*",
        metavar="ROOT",
        help="Workspace root directories (default: current directory)",
    )
    parser.add_argument(
        "--once",
        nargs="+",
        metavar="FILE",
        help="Compile these files once instead of watching",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("COFFEEWATCH_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO, or COFFEEWATCH_LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Also write daily log files to this directory",
    )
    parser.add_argument(
        "--debounce",
        type=float,
        default=0.2,
        help="Seconds to wait for writes to settle before compiling (default: 0.2)",
    )
    parser.add_argument(
        "--node",
        default=os.environ.get("COFFEEWATCH_NODE", "node"),
        help="Node executable used to run the coffeescript package",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit status: 1 if any compile error was reported in
        --once mode, 2 if a root cannot be watched, 0 otherwise
    """
    args = build_parser().parse_args(argv)

    setup_logging(log_dir=args.log_dir, level=getattr(logging, args.log_level))

    roots = args.roots or [os.getcwd()]
    compiler = CoffeeCompiler(node=args.node)
    notifier = LoggingNotifier()

    if args.once:
        asyncio.run(compile_files(roots, args.once, compiler, notifier))
        return 1 if notifier.error_count else 0

    try:
        asyncio.run(watch(roots, compiler, notifier, debounce_delay=args.debounce))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot watch: {e}")
        return 2
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
