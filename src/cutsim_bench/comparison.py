"""
Revision-to-revision comparison of benchmark results.

Both revisions are averaged per testcase, joined on the raw testcase
identifier (testcases missing from either side are dropped), and every
tracked metric gets a relative change. Rows are then ordered by a
:class:`~cutsim_bench.categories.SortCriterion`.

Example::

    from cutsim_bench.categories import INI, SortCriterion
    from cutsim_bench.comparison import compare

    rows = compare(store, INI, 810_000, 810_250, SortCriterion.CUT_TIME)
    for row in rows:
        print(row.name, row.metric("cutting_time").change)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .aggregate import Stats, aggregate
from .catalog import RevisionPolicy, list_revisions
from .categories import CATEGORIES, DEFAULT_SORT, PRIMARY_CATEGORY, Category, Metric, SortCriterion
from .change import NEUTRAL_BAND, ChangeResult, ratio, relative_change
from .exceptions import DegenerateMetric
from .naming import normalize_name
from .store import MeasurementStore

logger = logging.getLogger(__name__)


def _json_number(value: float) -> float | None:
    # JSON has no NaN / Infinity
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class MetricComparison:
    """One metric of one testcase at both revisions."""

    metric: Metric
    low: float
    high: float
    change: ChangeResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.metric.title,
            "unit": self.metric.unit.value,
            "low": _json_number(self.low),
            "high": _json_number(self.high),
            "low_display": self.metric.format(self.low),
            "high_display": self.metric.format(self.high),
            "change": self.change.label,
            "change_kind": self.change.kind.value,
            "change_percent": self.change.percent,
        }


@dataclass(frozen=True)
class ComparisonRow:
    """A testcase present at both compared revisions.

    Attributes:
        name: Normalized testcase name
        testcase_id: Raw testcase identifier
        metrics: Per-metric comparison, in the category's metric order
    """

    name: str
    testcase_id: str
    metrics: tuple[MetricComparison, ...]

    def metric(self, column: str) -> MetricComparison:
        for m in self.metrics:
            if m.metric.column == column:
                return m
        raise KeyError(column)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "testcase_id": self.testcase_id,
            "metrics": {m.metric.column: m.to_dict() for m in self.metrics},
        }


SortKey = Callable[[ComparisonRow], tuple]


def _name_key(row: ComparisonRow) -> tuple:
    return (row.name, row.testcase_id)


def _ratio_key(metric: Metric) -> SortKey:
    """Order by ``mean(low) / mean(high)`` ascending, most regressed first.

    Rows whose ratio is undefined come first.
    """

    def key(row: ComparisonRow) -> tuple:
        m = row.metric(metric.column)
        try:
            return (1, ratio(m.low, m.high), row.name, row.testcase_id)
        except DegenerateMetric:
            return (0, 0.0, row.name, row.testcase_id)

    return key


def sort_key(category: Category, criterion: SortCriterion) -> SortKey:
    """Key function implementing ``criterion`` for rows of ``category``."""
    metric = category.sort_metric(criterion)
    if metric is None:
        return _name_key
    return _ratio_key(metric)


def join_stats(
    category: Category,
    low_stats: dict[str, Stats],
    high_stats: dict[str, Stats],
    neutral_band: float = NEUTRAL_BAND,
) -> list[ComparisonRow]:
    """Build rows for testcases present in both ``low_stats`` and ``high_stats``."""
    common = low_stats.keys() & high_stats.keys()
    dropped = len(low_stats) + len(high_stats) - 2 * len(common)
    if dropped:
        logger.debug("%s: dropped %d testcases present at one revision only", category.key, dropped)

    rows = []
    for testcase in common:
        low, high = low_stats[testcase], high_stats[testcase]
        rows.append(
            ComparisonRow(
                name=normalize_name(testcase),
                testcase_id=testcase,
                metrics=tuple(
                    MetricComparison(
                        metric=m,
                        low=low[m.column],
                        high=high[m.column],
                        change=relative_change(
                            low[m.column], high[m.column], m.polarity, neutral_band
                        ),
                    )
                    for m in category.metrics
                ),
            )
        )
    return rows


def compare(
    store: MeasurementStore,
    category: Category,
    low_revision: int,
    high_revision: int,
    sort: SortCriterion = DEFAULT_SORT,
    neutral_band: float = NEUTRAL_BAND,
) -> list[ComparisonRow]:
    """Compare one category between two revisions.

    Args:
        store: Measurement store
        category: Category to compare
        low_revision: Reference revision
        high_revision: Candidate revision
        sort: Row ordering
        neutral_band: Neutral band for change classification

    Returns:
        Rows for testcases measured at both revisions, ordered by ``sort``
    """
    columns = category.columns
    low_stats = aggregate(
        store.fetch(category.table, columns, revision=low_revision), low_revision, columns
    )
    high_stats = aggregate(
        store.fetch(category.table, columns, revision=high_revision), high_revision, columns
    )
    rows = join_stats(category, low_stats, high_stats, neutral_band)
    rows.sort(key=sort_key(category, sort))
    return rows


def compare_all(
    store: MeasurementStore,
    low_revision: int,
    high_revision: int,
    sort: SortCriterion = DEFAULT_SORT,
    categories: Iterable[Category] | None = None,
    neutral_band: float = NEUTRAL_BAND,
) -> dict[str, list[ComparisonRow]]:
    """Run :func:`compare` for every category, keyed by category."""
    if categories is None:
        categories = CATEGORIES.values()
    return {
        c.key: compare(store, c, low_revision, high_revision, sort, neutral_band)
        for c in categories
    }


@dataclass
class ComparisonReport:
    """Everything a comparison page shows."""

    revisions: list[int]
    low_revision: int
    high_revision: int
    sort: SortCriterion
    rows_by_category: dict[str, list[ComparisonRow]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "revisions": self.revisions,
            "low_revision": self.low_revision,
            "high_revision": self.high_revision,
            "sort": self.sort.value,
            "rows_by_category": {
                key: [row.to_dict() for row in rows]
                for key, rows in self.rows_by_category.items()
            },
        }


def build_report(
    store: MeasurementStore,
    low_revision: int | None = None,
    high_revision: int | None = None,
    sort: SortCriterion = DEFAULT_SORT,
    policy: RevisionPolicy | None = None,
    neutral_band: float = NEUTRAL_BAND,
    categories: Iterable[Category] | None = None,
) -> ComparisonReport:
    """Compare categories (all by default), defaulting missing revisions from the catalog."""
    policy = policy or RevisionPolicy()
    revisions = list_revisions(store, PRIMARY_CATEGORY.table, policy.floor)
    low, high = policy.resolve(revisions, low_revision, high_revision)
    logger.info("Comparing r%d against r%d sorted by %s", low, high, sort.value)
    return ComparisonReport(
        revisions=revisions,
        low_revision=low,
        high_revision=high,
        sort=sort,
        rows_by_category=compare_all(store, low, high, sort, categories, neutral_band),
    )
