"""
Chart datasets of benchmark results over revisions.

Two shapes are built, both in the Chart.js ``{labels, datasets}`` layout:

- one testcase, every metric of its category, across all known revisions
- one metric, every testcase, across a revision range

Values are normalized to the first point of their series so that
testcases of very different size share one axis. A degenerate reference
(zero, NaN, infinite) leaves the normalized values of that series as
``None`` rather than infinity.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from .aggregate import aggregate_by_revision, aggregate_revisions
from .catalog import LOWEST_REVISION, MAX_REVISION
from .categories import Category, Metric, MetricKey
from .change import ratio
from .exceptions import DegenerateMetric
from .naming import normalize_name
from .store import MeasurementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSeriesPoint:
    revision: int
    raw_value: float
    normalized_value: float | None

    def to_dict(self, include_raw: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"x": self.revision, "y": self.normalized_value}
        if include_raw:
            data["v"] = self.raw_value if math.isfinite(self.raw_value) else None
        return data


def normalize(points: list[tuple[int, float]]) -> list[TimeSeriesPoint]:
    """Normalize ``(revision, value)`` pairs against the first pair's value.

    The input must already be ordered by revision.
    """
    if not points:
        return []
    reference = points[0][1]
    result = []
    for revision, value in points:
        try:
            normalized: float | None = ratio(value, reference)
        except DegenerateMetric:
            normalized = None
        result.append(TimeSeriesPoint(revision, value, normalized))
    if result[0].normalized_value is None:
        logger.debug("Degenerate reference value %r, series left unnormalized", reference)
    return result


@dataclass
class Series:
    """One line of a chart."""

    label: str
    color: str
    points: list[TimeSeriesPoint] = field(default_factory=list)

    def to_dict(self, include_raw: bool = True) -> dict[str, Any]:
        return {
            "label": self.label,
            "backgroundColor": self.color,
            "borderColor": self.color,
            "fill": False,
            "data": [p.to_dict(include_raw) for p in self.points],
        }


@dataclass
class ChartData:
    """Chart.js dataset bundle."""

    labels: list[int]
    datasets: list[Series]
    include_raw: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": self.labels,
            "datasets": [s.to_dict(self.include_raw) for s in self.datasets],
        }


def series_for_testcase(
    store: MeasurementStore,
    category: Category,
    testcase_filter: str,
    floor: int = LOWEST_REVISION,
) -> ChartData:
    """History of every metric of one testcase.

    All runs whose raw identifier matches ``testcase_filter`` (an SQL LIKE
    pattern) are averaged per revision.

    Args:
        store: Measurement store
        category: Category the testcase belongs to
        testcase_filter: LIKE pattern selecting the testcase
        floor: Oldest revision to include

    Returns:
        Chart with one dataset per metric; each point carries the raw value as ``v``
    """
    columns = category.columns
    records = store.fetch(
        category.table,
        columns,
        revision_range=(floor, MAX_REVISION),
        testcase_filter=testcase_filter,
    )
    by_revision = aggregate_revisions(records, columns)
    labels = list(by_revision)

    datasets = [
        Series(
            label=metric.title,
            color=metric.color,
            points=normalize([(rev, stats[metric.column]) for rev, stats in by_revision.items()]),
        )
        for metric in category.metrics
    ]
    logger.debug("Series for %s: %d revisions", testcase_filter, len(labels))
    return ChartData(labels=labels, datasets=datasets)


def series_for_metric(
    store: MeasurementStore,
    metric_key: MetricKey,
    low_revision: int,
    high_revision: int,
) -> ChartData:
    """History of one metric for every testcase in ``[low_revision, high_revision]``.

    Each testcase is normalized against its own first point in the range.
    Testcases without data in the range are absent.

    Returns:
        Chart with one dataset per testcase, ordered by name
    """
    metric: Metric = metric_key.metric
    records = store.fetch(
        metric_key.category.table,
        [metric.column],
        revision_range=(low_revision, high_revision),
    )
    stats = aggregate_by_revision(records, [metric.column])

    per_testcase: dict[str, list[tuple[int, float]]] = defaultdict(list)
    for (testcase, revision), values in sorted(stats.items(), key=lambda kv: kv[0][1]):
        per_testcase[testcase].append((revision, values[metric.column]))

    labels = sorted({revision for _, revision in stats})
    datasets = [
        Series(label=normalize_name(testcase), color=metric.color, points=normalize(points))
        for testcase, points in sorted(
            per_testcase.items(), key=lambda kv: (normalize_name(kv[0]), kv[0])
        )
    ]
    return ChartData(labels=labels, datasets=datasets, include_raw=False)
