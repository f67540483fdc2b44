"""Report commands: revisions, compare, series, summary.

Usage:
    cutsim-bench revisions
    cutsim-bench compare --r1 810000 --r2 810250 --sort memory
    cutsim-bench compare --category ini --format json
    cutsim-bench series pocket.ini
    cutsim-bench summary ini_cut_time --r1 810000 --r2 810250
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cutsim_bench.api import ReportService
from cutsim_bench.catalog import MAX_REVISION, list_revisions
from cutsim_bench.categories import (
    CATEGORIES,
    METRIC_KEYS,
    PRIMARY_CATEGORY,
    SortCriterion,
    category_for_testcase,
    get_category,
    get_metric_key,
)
from cutsim_bench.change import ChangeKind
from cutsim_bench.comparison import ComparisonRow, build_report
from cutsim_bench.config import Config
from cutsim_bench.naming import as_suffix_pattern
from cutsim_bench.series import ChartData, series_for_metric, series_for_testcase
from cutsim_bench.store import SqliteStore

CHANGE_STYLES = {
    ChangeKind.REGRESSED: "bold red",
    ChangeKind.UNDEFINED: "bold red",
    ChangeKind.IMPROVED: "bold green",
    ChangeKind.NEUTRAL: "dim",
}


def revision(text: str) -> int:
    """argparse type for a revision number."""
    value = int(text)
    if not 0 <= value <= MAX_REVISION:
        raise argparse.ArgumentTypeError(f"revision out of range: {text}")
    return value


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--db", help="Benchmark database (default: [database] path)")
    parser.add_argument("--format", "-f", choices=["table", "json"], default="table")


def add_parsers(subparsers) -> None:
    revisions_parser = subparsers.add_parser("revisions", help="List revisions with benchmark data")
    add_common_arguments(revisions_parser)
    revisions_parser.add_argument("--floor", type=revision, help="Oldest revision to list")

    compare_parser = subparsers.add_parser("compare", help="Compare two revisions")
    add_common_arguments(compare_parser)
    compare_parser.add_argument(
        "--r1", type=revision, help="Reference revision (default: 5th from last)"
    )
    compare_parser.add_argument("--r2", type=revision, help="Candidate revision (default: latest)")
    compare_parser.add_argument(
        "--sort", choices=[c.value for c in SortCriterion], help="Row ordering"
    )
    compare_parser.add_argument(
        "--category", choices=sorted(CATEGORIES), help="Only compare one category"
    )
    compare_parser.add_argument(
        "--details", action="store_true", help="Show the values at both revisions"
    )

    series_parser = subparsers.add_parser("series", help="History of one testcase")
    add_common_arguments(series_parser)
    series_parser.add_argument("testcase", help="Testcase name or LIKE pattern")
    series_parser.add_argument(
        "--category",
        choices=sorted(CATEGORIES),
        help="Testcase category (default: from the file extension)",
    )

    summary_parser = subparsers.add_parser("summary", help="One metric for all testcases")
    add_common_arguments(summary_parser)
    summary_parser.add_argument("metric_key", choices=sorted(METRIC_KEYS))
    summary_parser.add_argument("--r1", type=revision, required=True, help="First revision")
    summary_parser.add_argument("--r2", type=revision, required=True, help="Last revision")


def make_service(args: argparse.Namespace, config: Config | None = None) -> ReportService:
    """Build a ReportService from the loaded config and command-line overrides."""
    config = config or Config.load()
    store = SqliteStore(getattr(args, "db", None) or config.database.path)
    return ReportService(
        store=store,
        policy=config.revisions.policy(),
        default_sort=SortCriterion.parse(config.report.default_sort),
        neutral_band=config.report.neutral_band,
    )


def run_revisions(args: argparse.Namespace) -> int:
    service = make_service(args)
    floor = args.floor if args.floor is not None else service.policy.floor
    revisions = list_revisions(service.store, PRIMARY_CATEGORY.table, floor)

    if args.format == "json":
        print(json.dumps({"revisions": revisions}))
    else:
        for revision in revisions:
            print(revision)
    return 0


def run_compare(args: argparse.Namespace) -> int:
    service = make_service(args)
    sort = SortCriterion(args.sort) if args.sort else service.default_sort

    report = build_report(
        service.store,
        args.r1,
        args.r2,
        sort,
        policy=service.policy,
        neutral_band=service.neutral_band,
        categories=[get_category(args.category)] if args.category else None,
    )

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    console = Console()
    console.print(f"[bold]r{report.low_revision} vs r{report.high_revision}[/bold]")
    for key, rows in report.rows_by_category.items():
        console.print(
            _comparison_table(key, rows, report.low_revision, report.high_revision, args.details)
        )
    return 0


def _comparison_table(
    key: str, rows: list[ComparisonRow], low: int, high: int, details: bool
) -> Table:
    category = get_category(key)
    table = Table(title=f"{key.upper()} benchmarks ({len(rows)})", title_justify="left")
    table.add_column("Testcase")
    for metric in category.metrics:
        table.add_column(metric.title, justify="right")
        if details:
            table.add_column(f"r{low}", justify="right", style="dim")
            table.add_column(f"r{high}", justify="right", style="dim")

    for row in rows:
        cells = [escape(row.name)]
        for m in row.metrics:
            style = CHANGE_STYLES[m.change.kind]
            cells.append(f"[{style}]{m.change.label}[/{style}]")
            if details:
                cells.extend([m.metric.format(m.low), m.metric.format(m.high)])
        table.add_row(*cells)
    return table


def run_series(args: argparse.Namespace) -> int:
    service = make_service(args)
    if args.category:
        category = get_category(args.category)
    else:
        category = category_for_testcase(args.testcase)
    chart = series_for_testcase(
        service.store, category, as_suffix_pattern(args.testcase), service.policy.floor
    )

    if args.format == "json":
        print(json.dumps(chart.to_dict(), indent=2))
        return 0

    if not chart.labels:
        print(f"No data for {args.testcase}", file=sys.stderr)
        return 1

    table = Table(title=f"{args.testcase} ({category.key})", title_justify="left")
    table.add_column("Revision", justify="right")
    for dataset in chart.datasets:
        table.add_column(dataset.label, justify="right")
    for i, revision in enumerate(chart.labels):
        cells = [str(revision)]
        for dataset, metric in zip(chart.datasets, category.metrics):
            point = dataset.points[i]
            cells.append(f"{metric.format(point.raw_value)} ({_ratio(point.normalized_value)})")
        table.add_row(*cells)
    Console().print(table)
    return 0


def run_summary(args: argparse.Namespace) -> int:
    service = make_service(args)
    metric_key = get_metric_key(args.metric_key)
    chart = series_for_metric(service.store, metric_key, args.r1, args.r2)

    if args.format == "json":
        print(json.dumps(chart.to_dict(), indent=2))
        return 0

    Console().print(_summary_table(args.metric_key, chart))
    return 0


def _summary_table(title: str, chart: ChartData) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("Testcase")
    table.add_column("Points", justify="right")
    table.add_column("First", justify="right")
    table.add_column("Last (rel.)", justify="right")
    for dataset in chart.datasets:
        first, last = dataset.points[0], dataset.points[-1]
        table.add_row(
            escape(dataset.label),
            str(len(dataset.points)),
            f"r{first.revision}",
            f"r{last.revision}: {_ratio(last.normalized_value)}",
        )
    return table


def _ratio(value: Any) -> str:
    return "?" if value is None else f"{value:.2f}x"
