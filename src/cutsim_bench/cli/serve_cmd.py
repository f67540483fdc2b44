"""Serve command: run the HTTP report server."""

from __future__ import annotations

import argparse
from pathlib import Path

from cutsim_bench.config import Config
from cutsim_bench.logging import configure_server_logging
from cutsim_bench.server import serve

from .report_cmd import make_service


def add_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser("serve", help="Run the HTTP report server")
    parser.add_argument("--db", help="Benchmark database (default: [database] path)")
    parser.add_argument("--host", help="Bind address (default: [server] host)")
    parser.add_argument("--port", type=int, help="Port (default: [server] port)")
    parser.add_argument("--static-dir", help="Directory served under /static")
    return parser


def run(args: argparse.Namespace) -> int:
    config = Config.load()
    configure_server_logging()

    service = make_service(args, config)
    static_dir = Path(args.static_dir or config.server.static_dir)
    serve(
        service,
        host=args.host or config.server.host,
        port=args.port if args.port is not None else config.server.port,
        static_dir=static_dir if static_dir.is_dir() else None,
    )
    return 0
