"""
Logging setup for cutsim-bench.

Every module logs through ``logging.getLogger(__name__)`` below the
``cutsim_bench`` logger, which stays silent until an application turns
output on.
"""

import logging
import sys

_logger = logging.getLogger("cutsim_bench")
_logger.addHandler(logging.NullHandler())

_HANDLER_NAME = "cutsim_bench.verbose"

DEFAULT_FORMAT = "[%(levelname)s] %(message)s"
SERVER_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _remove_verbose_handler() -> None:
    for handler in list(_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            _logger.removeHandler(handler)


def enable_verbose(level: str = "INFO", format: str | None = None) -> None:
    """Send package log records at ``level`` and above to stderr.

    Calling it again replaces the previous handler.

    Args:
        level: "DEBUG", "INFO", "WARNING" or "ERROR"
        format: Log format (default: ``[LEVEL] message``)

    Example:
        enable_verbose("DEBUG")
        rows = compare(store, INI, 810_000, 810_250)  # logs dropped testcases
        disable_verbose()
    """
    numeric = logging.getLevelName(level.upper())
    _remove_verbose_handler()

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(format or DEFAULT_FORMAT))

    _logger.setLevel(numeric)
    _logger.addHandler(handler)


def disable_verbose() -> None:
    """Undo :func:`enable_verbose`."""
    _remove_verbose_handler()
    _logger.setLevel(logging.WARNING)


def configure_server_logging(level: int = logging.INFO) -> None:
    """Timestamped log output for the long-running HTTP server."""
    logging.basicConfig(level=level, format=SERVER_FORMAT, stream=sys.stderr)
