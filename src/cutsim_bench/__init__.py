"""
cutsim-bench: performance comparison of CutSim benchmark runs across revisions.

Modules:
    naming: Testcase identifier normalization and filtering
    change: Relative change and its classification
    categories: Benchmark categories, metrics and sort criteria
    store: Measurement store access (SQLite, in-memory)
    aggregate: Per-testcase averages of repeated runs
    catalog: Known revisions and default comparison range
    comparison: Revision-to-revision comparison
    series: Chart datasets over revisions
    api: Request validation and response shapes
    server: HTTP server

Quick Start::

    from cutsim_bench import SqliteStore, build_report

    store = SqliteStore("benchmarks.sqlite")
    report = build_report(store)
    for row in report.rows_by_category["ini"]:
        print(row.name, [m.change.label for m in row.metrics])
"""

__version__ = "0.1.0"

from cutsim_bench.aggregate import aggregate
from cutsim_bench.catalog import RevisionPolicy, list_revisions
from cutsim_bench.categories import CATEGORIES, METRIC_KEYS, SortCriterion
from cutsim_bench.change import ChangeKind, ChangeResult, Polarity, relative_change
from cutsim_bench.comparison import ComparisonReport, ComparisonRow, build_report, compare
from cutsim_bench.logging import disable_verbose, enable_verbose
from cutsim_bench.naming import normalize_name
from cutsim_bench.series import series_for_metric, series_for_testcase
from cutsim_bench.store import BenchmarkRecord, InMemoryStore, SqliteStore

__all__ = [
    # Version
    "__version__",
    # Data
    "BenchmarkRecord",
    "InMemoryStore",
    "SqliteStore",
    # Core
    "normalize_name",
    "relative_change",
    "ChangeKind",
    "ChangeResult",
    "Polarity",
    "aggregate",
    "list_revisions",
    "RevisionPolicy",
    "CATEGORIES",
    "METRIC_KEYS",
    "SortCriterion",
    "compare",
    "build_report",
    "ComparisonReport",
    "ComparisonRow",
    "series_for_testcase",
    "series_for_metric",
    # Logging
    "enable_verbose",
    "disable_verbose",
]
