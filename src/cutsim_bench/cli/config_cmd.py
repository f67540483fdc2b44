"""
Config command for the cutsim-bench CLI.

Usage:
    cutsim-bench config                 Print the merged configuration as TOML
    cutsim-bench config --init [--user] Write a commented template
    cutsim-bench config --paths         Show which config files are picked up
    cutsim-bench config get <key>       Print one value, e.g. server.port
"""

import argparse
import sys
from pathlib import Path

from cutsim_bench.config import (
    CONFIG_FILENAMES,
    USER_CONFIG_PATH,
    Config,
    generate_template,
    get_config_paths,
)
from cutsim_bench.exceptions import ConfigError


def add_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser("config", help="Show or create cutsim-bench configuration")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--show", action="store_true", help="Print merged settings (default)")
    mode.add_argument("--init", action="store_true", help="Write a template .cutsim-bench.toml")
    mode.add_argument("--paths", action="store_true", help="Show config file locations")
    parser.add_argument("action", nargs="?", choices=["get"], help="Config action")
    parser.add_argument("key", nargs="?", help="Setting as section.key (e.g. database.path)")
    parser.add_argument(
        "--user",
        action="store_true",
        help="With --init, write ~/.config/cutsim-bench/config.toml instead",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    try:
        if args.init:
            return _write_template(USER_CONFIG_PATH if args.user else None)
        if args.paths:
            return _print_paths()
        if args.action == "get":
            return _print_setting(args.key)
        return _print_settings()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _toml_value(value) -> str:
    return f'"{value}"' if isinstance(value, str) else str(value)


def _print_settings() -> int:
    """Print every setting in TOML form, annotated with the file it came from."""
    config = Config.load()

    print("# Effective cutsim-bench configuration")
    current = None
    for dotted, value in config.items():
        section, key = dotted.split(".")
        if section != current:
            print(f"\n[{section}]")
            current = section
        source = config.get_source(dotted)
        origin = source if source == "default" else Path(source).name
        print(f"{key} = {_toml_value(value)}  # from: {origin}")
    return 0


def _print_setting(key: str | None) -> int:
    if not key:
        print("Error: 'get' needs a section.key argument", file=sys.stderr)
        return 1

    settings = dict(Config.load().items())
    if key not in settings:
        print(f"Error: Unknown config key '{key}'", file=sys.stderr)
        print(f"Known keys: {', '.join(settings)}", file=sys.stderr)
        return 1
    print(settings[key])
    return 0


def _print_paths() -> int:
    paths = get_config_paths()

    found = "found" if paths["user"] else "not found"
    print(f"User config: {USER_CONFIG_PATH} ({found})")
    print(f"Project config search: {', '.join(CONFIG_FILENAMES)}")
    if paths["project"]:
        print(f"  Using: {paths['project']}")
    else:
        print("  No project config found")
    return 0


def _write_template(target: Path | None) -> int:
    if target is None:
        target = Path.cwd() / CONFIG_FILENAMES[0]

    if target.exists():
        print(f"Error: {target} already exists, edit it instead", file=sys.stderr)
        return 1

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generate_template())
    except OSError as e:
        print(f"Error: cannot write {target}: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {target}")
    return 0
