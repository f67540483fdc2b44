"""
Exception hierarchy for cutsim-bench.

Every error carries a message, a context dictionary and a list of
suggestions, so the CLI and the HTTP API can report failures the same way.

Example::

    from cutsim_bench.exceptions import UnsupportedCategory

    raise UnsupportedCategory(
        "Unknown metric key: ini_speed",
        context={"metric_key": "ini_speed", "available": ["ini_cut_time", "ini_memory"]},
        suggestions=["Use one of the available metric keys"],
    )
"""

from __future__ import annotations

from typing import Any


class BenchError(Exception):
    """
    Base exception for all cutsim-bench errors.

    Attributes:
        context: Dictionary of contextual information (table, revision, etc.)
        suggestions: List of actionable suggestions for fixing the error
        error_code: Machine-readable error type used in API responses
    """

    error_code = "BENCH_ERROR"

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Message followed by indented context and suggestion blocks."""
        lines = [self.message]
        if self.context:
            lines += ["", "Context:"] + [f"  {k}: {v}" for k, v in self.context.items()]
        if self.suggestions:
            lines += ["", "Suggestions:"] + [f"  - {s}" for s in self.suggestions]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self._format_message()


class StorageError(BenchError):
    """
    Reading from the measurement store failed.

    Surfaced to callers as a server-side failure. The core never retries.

    Example::

        raise StorageError(
            "Cannot query processed_ini",
            context={"database": "benchmarks.sqlite", "reason": "no such table"},
        )
    """

    error_code = "STORAGE_ERROR"


class UnsupportedCategory(BenchError):
    """
    A category, metric key or sort criterion outside the configured set.

    This is a client error: the request named something the report does
    not know about.
    """

    error_code = "UNSUPPORTED_CATEGORY"


class RequestError(BenchError):
    """
    Request parameters could not be parsed.

    Collects all parameter problems instead of failing on the first one.

    Attributes:
        errors: List of individual parameter error messages
    """

    error_code = "REQUEST_ERROR"

    def __init__(
        self,
        errors: list[str],
        context: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ):
        self.errors = errors
        message = f"Invalid request with {len(errors)} error(s):\n"
        message += "\n".join(f"  {i + 1}. {e}" for i, e in enumerate(errors))
        super().__init__(message, context, suggestions)


class NoDataError(BenchError):
    """No benchmark revisions are available to build a report from."""

    error_code = "NO_DATA"


class ConfigError(BenchError):
    """Configuration file is invalid or unreadable."""

    error_code = "CONFIGURATION_ERROR"


class DegenerateMetric(BenchError):
    """
    A reference value is zero, NaN or infinite.

    Raised by ratio helpers and always caught where the ratio is used: the
    affected value becomes undefined while the rest of the result stays intact.
    """

    error_code = "DEGENERATE_METRIC"


__all__ = [
    "BenchError",
    "StorageError",
    "UnsupportedCategory",
    "RequestError",
    "NoDataError",
    "ConfigError",
    "DegenerateMetric",
]
