"""
Command-line interface for cutsim-bench.

    cutsim-bench revisions             - List revisions with benchmark data
    cutsim-bench compare               - Compare two revisions
    cutsim-bench series <testcase>     - History of one testcase
    cutsim-bench summary <metric_key>  - One metric for all testcases
    cutsim-bench serve                 - Run the HTTP report server
    cutsim-bench config                - Show or create configuration

Examples:
    cutsim-bench compare --r1 810000 --r2 810250 --sort memory
    cutsim-bench compare --category ini --details
    cutsim-bench series pocket.ini --format json
    cutsim-bench summary ini_cut_time --r1 810000 --r2 810250
    cutsim-bench serve --port 8080
"""

import argparse
import sys
from typing import List, Optional

from cutsim_bench import __version__
from cutsim_bench.exceptions import BenchError, StorageError
from cutsim_bench.logging import enable_verbose

from . import config_cmd, report_cmd, serve_cmd

__all__ = ["main"]

COMMANDS = {
    "revisions": report_cmd.run_revisions,
    "compare": report_cmd.run_compare,
    "series": report_cmd.run_series,
    "summary": report_cmd.run_summary,
    "serve": serve_cmd.run,
    "config": config_cmd.run,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cutsim-bench",
        description="CutSim benchmark comparison reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"cutsim-bench {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    report_cmd.add_parsers(subparsers)
    serve_cmd.add_parser(subparsers)
    config_cmd.add_parser(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for cutsim-bench CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        enable_verbose("DEBUG")

    try:
        return COMMANDS[args.command](args)
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except BenchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
