"""Per-testcase averages of repeated benchmark runs."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence

import numpy as np

from .naming import testcase_matches
from .store import BenchmarkRecord

logger = logging.getLogger(__name__)

Stats = dict[str, float]


def _mean(runs: list[BenchmarkRecord], metric: str) -> float:
    # Runs that did not record the metric are skipped, as SQL AVG skips NULL.
    values = np.array([r.value(metric) for r in runs if r.recorded(metric)], dtype=np.float64)
    if values.size == 0:
        return math.nan
    # Sorted so the floating-point sum does not depend on record order.
    # Zero, NaN and inf flow through without raising.
    with np.errstate(invalid="ignore", over="ignore"):
        return float(np.mean(np.sort(values)))


def _means(runs: list[BenchmarkRecord], metrics: Sequence[str]) -> Stats:
    return {m: _mean(runs, m) for m in metrics}


def aggregate(
    records: Iterable[BenchmarkRecord],
    revision: int,
    metrics: Sequence[str],
    name_filter: str | None = None,
) -> dict[str, Stats]:
    """Average each metric per testcase for one revision.

    Args:
        records: Raw benchmark runs (any order)
        revision: Revision to aggregate
        metrics: Metric columns to average
        name_filter: Optional SQL LIKE pattern on the raw testcase identifier

    Returns:
        Mapping of raw testcase identifier to ``{metric: mean}``. Testcases
        without a matching run are absent.
    """
    groups: dict[str, list[BenchmarkRecord]] = defaultdict(list)
    for record in records:
        if record.revision != revision:
            continue
        if name_filter is not None and not testcase_matches(record.testcase_id, name_filter):
            continue
        groups[record.testcase_id].append(record)

    logger.debug("Aggregated %d testcases at r%d", len(groups), revision)
    return {testcase: _means(runs, metrics) for testcase, runs in groups.items()}


def aggregate_by_revision(
    records: Iterable[BenchmarkRecord],
    metrics: Sequence[str],
) -> dict[tuple[str, int], Stats]:
    """Average each metric per ``(testcase, revision)`` pair.

    Returns:
        Mapping of ``(raw testcase identifier, revision)`` to ``{metric: mean}``
    """
    groups: dict[tuple[str, int], list[BenchmarkRecord]] = defaultdict(list)
    for record in records:
        groups[(record.testcase_id, record.revision)].append(record)
    return {key: _means(runs, metrics) for key, runs in groups.items()}


def aggregate_revisions(
    records: Iterable[BenchmarkRecord],
    metrics: Sequence[str],
) -> dict[int, Stats]:
    """Average each metric per revision, pooling every testcase in ``records``.

    Used for the history of one testcase pattern, which may match the same
    testcase stored under different paths.
    """
    groups: dict[int, list[BenchmarkRecord]] = defaultdict(list)
    for record in records:
        groups[record.revision].append(record)
    return {revision: _means(runs, metrics) for revision, runs in sorted(groups.items())}
