"""
Settings for the report tools, read from TOML files.

Two files are consulted, the later one winning:

1. ``~/.config/cutsim-bench/config.toml`` (per user)
2. ``.cutsim-bench.toml`` or ``cutsim-bench.toml`` in the working directory or
   one of its parents, up to the repository root

Command-line options override both.
"""

import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cutsim_bench.catalog import DEFAULT_REVISION_WINDOW, LOWEST_REVISION, RevisionPolicy
from cutsim_bench.categories import DEFAULT_SORT
from cutsim_bench.change import NEUTRAL_BAND
from cutsim_bench.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

# Project file names, in order of preference
CONFIG_FILENAMES = [".cutsim-bench.toml", "cutsim-bench.toml"]

USER_CONFIG_PATH = Path.home() / ".config" / "cutsim-bench" / "config.toml"

# section -> key -> accepted value types (ints are accepted for floats)
SCHEMA: dict[str, dict[str, tuple[type, ...]]] = {
    "database": {"path": (str,)},
    "revisions": {"lowest_revision": (int,), "default_window": (int,)},
    "report": {"default_sort": (str,), "neutral_band": (float, int)},
    "server": {"host": (str,), "port": (int,), "static_dir": (str,)},
}


@dataclass
class DatabaseConfig:
    path: str = "benchmarks.sqlite"


@dataclass
class RevisionsConfig:
    lowest_revision: int = LOWEST_REVISION
    default_window: int = DEFAULT_REVISION_WINDOW

    def policy(self) -> RevisionPolicy:
        return RevisionPolicy(floor=self.lowest_revision, window=self.default_window)


@dataclass
class ReportConfig:
    default_sort: str = DEFAULT_SORT.value
    neutral_band: float = NEUTRAL_BAND


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    static_dir: str = "static"


@dataclass
class Config:
    """All settings, one attribute per TOML section."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    revisions: RevisionsConfig = field(default_factory=RevisionsConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # "section.key" -> file that set it
    _sources: dict = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, start_dir: Path | None = None) -> "Config":
        """
        Read the user file, then the project file found from ``start_dir``.

        Args:
            start_dir: Where the project file search begins (default: cwd)

        Raises:
            ConfigError: If a file is unreadable, not TOML, or has a value of
                the wrong type
        """
        config = cls()
        for path in (_existing(USER_CONFIG_PATH), _find_project_config(start_dir or Path.cwd())):
            if path is not None:
                _apply(config, _load_toml_file(path), str(path))
        return config

    def get_source(self, key: str) -> str:
        """File that set ``key`` (``section.key``), or ``"default"``."""
        return self._sources.get(key, "default")

    def items(self) -> list[tuple[str, Any]]:
        """All settings as ``(section.key, value)`` pairs."""
        return [
            (f"{section}.{key}", getattr(getattr(self, section), key))
            for section, keys in SCHEMA.items()
            for key in sorted(keys)
        ]


def _existing(path: Path) -> Path | None:
    return path if path.exists() else None


def get_config_paths(start_dir: Path | None = None) -> dict[str, Path | None]:
    """The user and project files :meth:`Config.load` would read."""
    return {
        "user": _existing(USER_CONFIG_PATH),
        "project": _find_project_config(start_dir or Path.cwd()),
    }


def _find_project_config(start_dir: Path) -> Path | None:
    """
    Look for a project file in ``start_dir`` and its parents.

    The search ends at the first directory holding ``.git``, or at the
    filesystem root.
    """
    for directory in (start_dir.resolve(), *start_dir.resolve().parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        if (directory / ".git").exists():
            return None
    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """
    Parse one TOML file.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", context={"file": str(path)}) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read config file {path}: {e}", context={"file": str(path)}
        ) from e


def _apply(config: Config, data: dict[str, Any], source: str) -> None:
    """
    Copy the values of one parsed file onto ``config``.

    Unknown sections and keys only produce a warning.

    Raises:
        ConfigError: If a known key has a value of the wrong type
    """
    for section, values in data.items():
        schema = SCHEMA.get(section)
        if schema is None or not isinstance(values, dict):
            warnings.warn(f"Unknown config key '{section}' in {source}", stacklevel=4)
            continue

        target = getattr(config, section)
        for key, value in values.items():
            dotted = f"{section}.{key}"
            if key not in schema:
                warnings.warn(f"Unknown config key '{dotted}' in {source}", stacklevel=4)
                continue
            accepted = schema[key]
            if isinstance(value, bool) or not isinstance(value, accepted):
                raise ConfigError(
                    f"Invalid value for '{dotted}' in {source}",
                    context={"value": value, "expected": accepted[0].__name__},
                )
            setattr(target, key, float(value) if accepted[0] is float else value)
            config._sources[dotted] = source


def generate_template() -> str:
    """Commented TOML listing every setting with its default."""
    return f"""# cutsim-bench configuration
# Save as .cutsim-bench.toml next to your benchmark checkout, or as
# ~/.config/cutsim-bench/config.toml for per-user defaults.

[database]
# SQLite database written by the benchmark harness
# path = "benchmarks.sqlite"

[revisions]
# Revisions below this are ignored
# lowest_revision = {LOWEST_REVISION}

# Default comparison starts this many revisions back from the latest
# default_window = {DEFAULT_REVISION_WINDOW}

[report]
# Sort order: name, cut time, draw time, memory
# default_sort = "{DEFAULT_SORT.value}"

# Changes within this fraction are reported as neutral
# neutral_band = {NEUTRAL_BAND}

[server]
# host = "127.0.0.1"
# port = 8000

# Directory served under /static
# static_dir = "static"
"""
